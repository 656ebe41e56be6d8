"""Shared pytest fixtures for all tests."""

import tempfile
from pathlib import Path

import pytest

from twig.config.defaults import ENV_VARS
from twig.core.objects import ObjectStore
from twig.core.repository import Repository
from twig.db import ensure_tables, get_engine


@pytest.fixture(autouse=True)
def temp_global_config_dir(monkeypatch, tmp_path_factory):
    """Use a temporary directory for global config during tests."""
    config_dir = Path(tmp_path_factory.mktemp("global_config"))
    monkeypatch.setenv("TWIG_CONFIG_DIR", str(config_dir))
    return config_dir


@pytest.fixture(autouse=True)
def clean_config_env(monkeypatch):
    """Keep configuration environment variables from the host out of tests."""
    for env_key in ENV_VARS.values():
        monkeypatch.delenv(env_key, raising=False)


@pytest.fixture
def temp_root():
    """An empty directory to act as a repository root."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir).resolve()


@pytest.fixture
def store(tmp_path):
    """Object store backed by a throwaway database, outside any working tree."""
    engine = get_engine(tmp_path / "store" / "state.sqlite")
    ensure_tables(engine)
    yield ObjectStore.init(tmp_path / "store" / "objects", engine)
    engine.dispose()


@pytest.fixture
def repo(temp_root):
    """A freshly initialized repository: root commit only, on master."""
    repository = Repository.init(temp_root)
    yield repository
    repository.close()
