"""Tests for commit ids, timestamps and ancestry."""

from datetime import datetime, timedelta

import pytest

from twig.core.commit import (
    ancestors,
    compute_commit_id,
    create_commit,
    current_timestamp,
    find_split_point,
)
from twig.core.errors import NotFound

T0 = datetime(2024, 3, 1, 12, 0, 0)


class Graph:
    """In-memory commit store for ancestry tests."""

    def __init__(self):
        self.commits = {}
        self._tick = 0

    def add(self, parent, message, tracked=None, branch="master"):
        self._tick += 1
        commit = create_commit(
            tracked or {},
            parent,
            message,
            branch,
            now=T0 + timedelta(seconds=self._tick),
        )
        self.commits[commit.id] = commit
        return commit

    def load(self, commit_id):
        return self.commits[commit_id]


def test_timestamp_format_truncates_to_seconds():
    assert current_timestamp(datetime(2024, 1, 2, 3, 4, 5, 678)) == "2024-01-02 03:04:05"


def test_commit_id_is_deterministic():
    a = compute_commit_id({"f": "b1"}, "p" * 40, "msg", "2024-01-01 00:00:00")
    b = compute_commit_id({"f": "b1"}, "p" * 40, "msg", "2024-01-01 00:00:00")
    assert a == b
    assert len(a) == 40


def test_commit_id_depends_on_every_field():
    base = ({"f": "b1"}, "p" * 40, "msg", "2024-01-01 00:00:00")
    ids = {
        compute_commit_id(*base),
        compute_commit_id({"f": "b2"}, *base[1:]),
        compute_commit_id(base[0], "q" * 40, *base[2:]),
        compute_commit_id(*base[:2], "other", base[3]),
        compute_commit_id(*base[:3], "2024-01-01 00:00:01"),
    }
    assert len(ids) == 5


def test_root_commit():
    root = create_commit({}, None, "initial commit", "master", now=T0)

    assert root.is_root
    assert root.parent_id is None
    assert dict(root.tracked) == {}
    assert root.id == compute_commit_id({}, None, "initial commit", root.timestamp)


def test_root_commit_cannot_track_files():
    with pytest.raises(ValueError):
        create_commit({"f": "b"}, None, "initial commit", "master")


def test_short_id():
    root = create_commit({}, None, "initial commit", "master", now=T0)
    assert root.short_id(6) == root.id[:6]


def test_ancestors_walks_to_root():
    g = Graph()
    root = g.add(None, "initial commit")
    c1 = g.add(root, "c1")
    c2 = g.add(c1, "c2")

    assert [c.message for c in ancestors(c2, g.load)] == ["c2", "c1", "initial commit"]


class TestSplitPoint:
    def test_same_commit(self):
        g = Graph()
        root = g.add(None, "initial commit")
        c1 = g.add(root, "c1")

        assert find_split_point(c1, c1, g.load) == c1

    def test_fork(self):
        g = Graph()
        root = g.add(None, "initial commit")
        base = g.add(root, "base")
        left = g.add(g.add(base, "l1"), "l2")
        right = g.add(base, "r1")

        assert find_split_point(left, right, g.load) == base
        assert find_split_point(right, left, g.load) == base

    def test_ancestor_is_split_point(self):
        g = Graph()
        root = g.add(None, "initial commit")
        c1 = g.add(root, "c1")
        c2 = g.add(c1, "c2")

        assert find_split_point(c2, c1, g.load) == c1
        assert find_split_point(c1, c2, g.load) == c1

    def test_disjoint_histories(self):
        g = Graph()
        a = g.add(None, "first root")
        b = g.add(None, "second root")

        with pytest.raises(NotFound):
            find_split_point(a, b, g.load)
