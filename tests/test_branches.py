"""Tests for the branch table."""

import pytest

from twig.core.branches import BranchTable
from twig.core.errors import AlreadyExists, NotFound


def test_active_must_exist():
    with pytest.raises(ValueError):
        BranchTable({"master": "c0"}, "dev")


def test_create_and_get():
    table = BranchTable({"master": "c0"}, "master")
    table.create("dev", "c0")

    assert "dev" in table
    assert table.get("dev") == "c0"


def test_create_duplicate():
    table = BranchTable({"master": "c0"}, "master")

    with pytest.raises(AlreadyExists, match="A branch with that name already exists."):
        table.create("master", "c1")


def test_move_adds_missing_branch_at_end():
    table = BranchTable({"master": "c0"}, "master")
    table.move("master", "c1")
    table.move("restored", "c2")

    assert table.as_dict() == {"master": "c1", "restored": "c2"}
    assert [b.name for b in table.listing()] == ["master", "restored"]


def test_delete():
    table = BranchTable({"master": "c0", "dev": "c0"}, "master")
    table.delete("dev")

    assert "dev" not in table
    with pytest.raises(NotFound):
        table.delete("dev")


def test_switch_and_listing():
    table = BranchTable({"master": "c0", "dev": "c1"}, "master")
    table.switch("dev")

    assert table.active == "dev"
    assert [(b.name, b.active) for b in table.listing()] == [
        ("master", False),
        ("dev", True),
    ]


def test_switch_unknown():
    table = BranchTable({"master": "c0"}, "master")

    with pytest.raises(NotFound):
        table.switch("nope")
    assert table.active == "master"
