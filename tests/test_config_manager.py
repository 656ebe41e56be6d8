"""Tests for configuration manager."""

import json
import tempfile
import warnings
from pathlib import Path

import pathspec
import pytest

from twig.config import (
    ConfigManager,
    ConfigValidationError,
    LayeredConfigProvider,
    LocalFileConfigProvider,
    Settings,
    create_config_manager,
    get_default_config,
    validate_config,
)
from twig.config.schema import deep_merge
from twig.core.repository import Repository

# =============================================================================
# Tests for deep_merge and validation
# =============================================================================


def test_deep_merge_basic():
    """Test basic deep merge behavior."""
    base = {"a": 1, "b": {"c": 2, "d": 3}}
    updates = {"b": {"c": 10, "e": 5}}

    result = deep_merge(base, updates)

    assert result["a"] == 1
    assert result["b"]["c"] == 10
    assert result["b"]["d"] == 3
    assert result["b"]["e"] == 5


def test_deep_merge_none_preserves_value():
    """Test that None in updates preserves base value (skip behavior)."""
    base = {"a": 1, "b": 2}
    updates = {"a": None}

    result = deep_merge(base, updates)

    assert result["a"] == 1  # None means "don't touch"
    assert result["b"] == 2


def test_deep_merge_does_not_mutate_inputs():
    base = {"reserved_paths": [".twig/"], "nested": {"k": 1}}
    deep_merge(base, {"nested": {"k": 2}})

    assert base == {"reserved_paths": [".twig/"], "nested": {"k": 1}}


def test_validate_defaults():
    """Defaults pass validation unchanged."""
    assert validate_config(get_default_config()) == get_default_config()


def test_validate_uppercases_log_level():
    config = validate_config({"log_level": "debug"})
    assert config["log_level"] == "DEBUG"


@pytest.mark.parametrize(
    "bad, field",
    [
        ({"commit_id_display_length": 2}, "commit_id_display_length"),
        ({"commit_id_display_length": 41}, "commit_id_display_length"),
        ({"commit_id_display_length": "six"}, "commit_id_display_length"),
        ({"default_branch": "two words"}, "default_branch"),
        ({"log_format": "xml"}, "log_format"),
        ({"reserved_paths": "Makefile"}, "reserved_paths"),
    ],
)
def test_validate_rejects_bad_values(bad, field):
    with pytest.raises(ConfigValidationError) as exc_info:
        validate_config(bad)

    assert any(field in err for err in exc_info.value.errors)


def test_unknown_keys_are_ignored():
    assert "colour" not in validate_config({"colour": "blue"})


# =============================================================================
# Tests for providers
# =============================================================================


def test_local_file_provider_missing_file_returns_defaults():
    """A missing file yields defaults and is not created."""
    with tempfile.TemporaryDirectory() as tmpdir:
        config_path = Path(tmpdir) / "config.json"
        defaults = {"default_branch": "master"}

        provider = LocalFileConfigProvider(config_path, defaults=defaults)
        config = provider.load()

        assert config == defaults
        assert not config_path.exists()


def test_local_file_provider_create_if_missing():
    with tempfile.TemporaryDirectory() as tmpdir:
        config_path = Path(tmpdir) / "config.json"

        provider = LocalFileConfigProvider(config_path, create_if_missing=True)
        provider.load()

        assert json.loads(config_path.read_text()) == {}


def test_local_file_provider_loads_existing_config():
    """Test that LocalFileConfigProvider loads existing config."""
    with tempfile.TemporaryDirectory() as tmpdir:
        config_path = Path(tmpdir) / "config.json"
        config_path.write_text(json.dumps({"default_branch": "main"}))

        provider = LocalFileConfigProvider(
            config_path, defaults={"default_branch": "master", "log_colors": True}
        )
        config = provider.load()

        # Should merge with defaults
        assert config == {"default_branch": "main", "log_colors": True}


def test_local_file_provider_invalid_json_falls_back_to_defaults():
    with tempfile.TemporaryDirectory() as tmpdir:
        config_path = Path(tmpdir) / "config.json"
        config_path.write_text("{not json")

        provider = LocalFileConfigProvider(
            config_path, defaults={"default_branch": "master"}
        )

        assert provider.load() == {"default_branch": "master"}


def test_local_file_provider_saves_config():
    """Test that LocalFileConfigProvider saves config atomically."""
    with tempfile.TemporaryDirectory() as tmpdir:
        config_path = Path(tmpdir) / "nested" / "config.json"

        provider = LocalFileConfigProvider(config_path)
        provider.save({"commit_id_display_length": 8})

        assert json.loads(config_path.read_text()) == {"commit_id_display_length": 8}
        assert not config_path.with_suffix(".tmp").exists()


def test_layered_provider_precedence():
    """Later layers override earlier ones."""
    with tempfile.TemporaryDirectory() as tmpdir:
        global_path = Path(tmpdir) / "global.json"
        local_path = Path(tmpdir) / "local.json"
        global_path.write_text(
            json.dumps({"default_branch": "trunk", "commit_id_display_length": 8})
        )
        local_path.write_text(json.dumps({"commit_id_display_length": 12}))

        provider = LayeredConfigProvider(
            [
                LocalFileConfigProvider(global_path, defaults=get_default_config()),
                LocalFileConfigProvider(local_path),
            ],
            primary_index=1,
        )
        config = provider.load()

        assert config["default_branch"] == "trunk"
        assert config["commit_id_display_length"] == 12
        assert config["log_level"] == "WARNING"


def test_layered_provider_rejects_bad_primary_index():
    with pytest.raises(ValueError):
        LayeredConfigProvider([], primary_index=0)
    with tempfile.TemporaryDirectory() as tmpdir:
        provider = LocalFileConfigProvider(Path(tmpdir) / "c.json")
        with pytest.raises(ValueError):
            LayeredConfigProvider([provider], primary_index=1)


# =============================================================================
# Tests for ConfigManager and Settings
# =============================================================================


def test_config_manager_rejects_invalid_file():
    with tempfile.TemporaryDirectory() as tmpdir:
        config_path = Path(tmpdir) / "config.json"
        config_path.write_text(json.dumps({"commit_id_display_length": 1}))

        manager = ConfigManager(
            LocalFileConfigProvider(config_path, defaults=get_default_config())
        )
        with pytest.raises(ConfigValidationError):
            manager.initialize()
        assert not manager.loaded


def test_config_manager_typed_getters():
    with tempfile.TemporaryDirectory() as tmpdir:
        manager = ConfigManager(
            LocalFileConfigProvider(
                Path(tmpdir) / "config.json", defaults=get_default_config()
            )
        )
        manager.initialize()

        assert manager.loaded
        assert manager.get_int("commit_id_display_length") == 6
        assert manager.get_str("default_branch") == "master"
        assert manager.get_bool("log_colors") is True
        # Type mismatch falls back to the given default
        assert manager.get_int("default_branch", 3) == 3


def test_config_manager_set_writes_only_local_user_keys(temp_global_config_dir):
    """Writes land in the repository file and keep only user-set keys."""
    (temp_global_config_dir / "config.json").write_text(
        json.dumps({"default_branch": "trunk"})
    )
    with tempfile.TemporaryDirectory() as tmpdir:
        state_dir = Path(tmpdir)
        manager = create_config_manager(state_dir)

        manager.set("commit_id_display_length", 10)
        manager.set("log_level", "info")

        local = json.loads((state_dir / "config.json").read_text())
        assert local == {"commit_id_display_length": 10, "log_level": "INFO"}
        assert manager.get("default_branch") == "trunk"
        assert json.loads((temp_global_config_dir / "config.json").read_text()) == {
            "default_branch": "trunk"
        }


def test_config_manager_set_validates():
    with tempfile.TemporaryDirectory() as tmpdir:
        manager = create_config_manager(Path(tmpdir))

        with pytest.raises(ConfigValidationError):
            manager.set("commit_id_display_length", 0)
        assert not (Path(tmpdir) / "config.json").exists()
        assert manager.get("commit_id_display_length") == 6


def test_settings_reads_from_manager():
    with tempfile.TemporaryDirectory() as tmpdir:
        state_dir = Path(tmpdir)
        (state_dir / "config.json").write_text(
            json.dumps({"default_branch": "main", "reserved_paths": ["build/"]})
        )

        settings = Settings(create_config_manager(state_dir))

        assert settings.default_branch == "main"
        assert settings.initial_commit_message == "initial commit"
        # The state directory is always reserved
        assert settings.reserved_paths == ["build/", ".twig/"]
        spec = settings.reserved_spec()
        assert spec.match_file("build/out.o")
        assert spec.match_file(".twig/twig.sqlite")
        assert not spec.match_file("src/main.py")


def test_settings_env_fallback_without_manager(monkeypatch):
    monkeypatch.setenv("TWIG_DEFAULT_BRANCH", "develop")
    monkeypatch.setenv("TWIG_COMMIT_ID_DISPLAY_LENGTH", "9")
    monkeypatch.setenv("TWIG_RESERVED_PATHS", "dist/, .env")

    settings = Settings()

    assert settings.default_branch == "develop"
    assert settings.commit_id_display_length == 9
    assert settings.reserved_paths == ["dist/", ".env", ".twig/"]


def test_settings_defaults_without_manager(monkeypatch):
    monkeypatch.delenv("TWIG_DEFAULT_BRANCH", raising=False)
    monkeypatch.delenv("LOG_COLORS", raising=False)

    settings = Settings()

    assert settings.default_branch == "master"
    assert settings.log_colors is True
    assert settings.reserved_paths == [".twig/", ".gitignore", "Makefile"]


# =============================================================================
# Tests for environment variables as a config layer
# =============================================================================


def test_env_vars_apply_to_new_repository(monkeypatch, temp_root):
    monkeypatch.setenv("TWIG_DEFAULT_BRANCH", "main")
    monkeypatch.setenv("TWIG_INITIAL_COMMIT_MESSAGE", "start")
    monkeypatch.setenv("TWIG_COMMIT_ID_DISPLAY_LENGTH", "8")

    with Repository.init(temp_root) as repo:
        assert repo.active_branch == "main"
        assert repo.head.message == "start"
        assert repo.short_id(repo.head) == repo.head.id[:8]


def test_env_reserved_paths_reach_repository(monkeypatch, temp_root):
    monkeypatch.setenv("TWIG_RESERVED_PATHS", "build/, *.log")
    (temp_root / "build").mkdir()
    (temp_root / "build" / "out.o").write_text("obj")
    (temp_root / "debug.log").write_text("log")
    (temp_root / "main.c").write_text("int main;")

    with Repository.init(temp_root) as repo:
        assert repo.worktree.list_files() == ["main.c"]


def test_config_file_wins_over_env(monkeypatch, temp_global_config_dir):
    monkeypatch.setenv("TWIG_DEFAULT_BRANCH", "main")
    (temp_global_config_dir / "config.json").write_text(
        json.dumps({"default_branch": "trunk"})
    )

    settings = Settings(create_config_manager())

    assert settings.default_branch == "trunk"


def test_env_values_are_not_persisted_on_set(monkeypatch):
    monkeypatch.setenv("TWIG_DEFAULT_BRANCH", "main")
    with tempfile.TemporaryDirectory() as tmpdir:
        state_dir = Path(tmpdir)
        manager = create_config_manager(state_dir)

        manager.set("log_level", "ERROR")

        assert manager.get("default_branch") == "main"
        local = json.loads((state_dir / "config.json").read_text())
        assert local == {"log_level": "ERROR"}


def test_invalid_env_value_is_a_validation_error(monkeypatch):
    monkeypatch.setenv("TWIG_COMMIT_ID_DISPLAY_LENGTH", "lots")

    with pytest.raises(ConfigValidationError):
        create_config_manager()
    with pytest.raises(ConfigValidationError):
        Settings().commit_id_display_length


def test_reserved_spec_builds_without_deprecation_warnings():
    with warnings.catch_warnings():
        warnings.simplefilter("error", DeprecationWarning)
        spec = Settings().reserved_spec()

    assert isinstance(spec, pathspec.GitIgnoreSpec)
    assert spec.match_file("Makefile")
    assert spec.match_file(".twig/objects/ab/cdef")
