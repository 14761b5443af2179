# Copyright (c) 2023-2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""Tests for Progression ordering and _members synchronization."""

from __future__ import annotations

from typing import Any

import pytest
from pydantic import Field

from pileview._errors import ItemNotFoundError
from pileview.protocols.generic.element import Element
from pileview.protocols.generic.progression import Progression


class MockElement(Element):
    value: Any = Field(None)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def elems():
    """Five distinct MockElements for general use."""
    return [MockElement(value=i) for i in range(5)]


@pytest.fixture
def prog(elems):
    """Progression seeded with the five element IDs."""
    return Progression(order=[e.id for e in elems])


@pytest.fixture
def empty_prog():
    """An empty Progression."""
    return Progression()


# ===================================================================
# _members initialization and synchronization
# ===================================================================


class TestMembersInitialization:
    """_members is built from order during model_post_init."""

    def test_members_initialized_from_order(self, prog, elems):
        """_members should contain exactly the IDs present in order."""
        assert prog._members == set(e.id for e in elems)

    def test_members_empty_on_empty_progression(self, empty_prog):
        assert empty_prog._members == set()

    def test_members_initialized_from_elements(self):
        """When order is given as Element objects, _members still syncs."""
        elements = [MockElement(value=i) for i in range(3)]
        p = Progression(order=elements)
        assert p.order == [e.id for e in elements]
        assert p._members == set(e.id for e in elements)


class TestMembersSyncAfterMutations:
    """After every mutation, _members must reflect the current order contents."""

    def test_insert_at_index(self, prog):
        new = MockElement(value="ins")
        prog.insert(1, new)
        assert prog[1] == new.id
        assert new.id in prog._members

    def test_insert_many_keeps_given_order(self, prog):
        a, b = MockElement(), MockElement()
        prog.insert(0, [a, b])
        assert prog.order[:2] == [a.id, b.id]

    def test_pop_default_removes_last(self, prog, elems):
        popped = prog.pop()
        assert popped == elems[-1].id
        assert popped not in prog._members

    def test_pop_out_of_range(self, empty_prog):
        with pytest.raises(ItemNotFoundError):
            empty_prog.pop()

    def test_replace(self, prog, elems):
        prog.replace(list(reversed(elems)))
        assert prog.order == [e.id for e in reversed(elems)]
        assert prog._members == set(e.id for e in elems)


# ===================================================================
# lookups
# ===================================================================


class TestLookups:
    def test_getitem(self, prog, elems):
        assert prog[0] == elems[0].id
        assert prog[-1] == elems[-1].id
        assert prog[1:3] == [elems[1].id, elems[2].id]

    def test_getitem_out_of_range(self, prog):
        with pytest.raises(ItemNotFoundError):
            prog[10]

    def test_getitem_bad_key(self, prog):
        with pytest.raises(TypeError):
            prog["a"]

    def test_index(self, prog, elems):
        assert prog.index(elems[3]) == 3

    def test_index_missing(self, prog):
        with pytest.raises(ItemNotFoundError):
            prog.index(MockElement())

    def test_iter(self, prog, elems):
        assert list(prog) == [e.id for e in elems]

    def test_bool(self, prog, empty_prog):
        assert prog
        assert not empty_prog

    def test_hashable(self, prog):
        assert hash(prog) == hash(prog.id)
