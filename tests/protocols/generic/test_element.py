# Copyright (c) 2023-2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""Tests for Element identity, change and destroy notifications."""

from datetime import datetime, timezone
from uuid import UUID, uuid4

import pytest

from pileview.protocols.generic.element import ID, Element, validate_order
from pileview.protocols.generic.events import Destroyed, EventKind, ItemChanged


class Record(Element):
    value: int = -1
    label: str = ""


@pytest.fixture
def record():
    return Record(value=1, label="a")


@pytest.fixture
def changes(record):
    seen = []
    record.on(EventKind.CHANGE, seen.append)
    return seen


# ---------------------------------------------------------------------------
# identity
# ---------------------------------------------------------------------------


def test_element_creation():
    element = Element()
    assert isinstance(element.id, UUID)
    assert isinstance(element.created_at, datetime)
    assert element.created_at.tzinfo is not None
    assert element.metadata == {}


def test_element_metadata_validation():
    element = Element(metadata={"key": "value"})
    assert element.metadata == {"key": "value"}


def test_element_metadata_rejects_non_mapping():
    with pytest.raises(Exception):
        Element(metadata=[1, 2])


def test_element_id_from_string():
    uid = uuid4()
    assert Element(id=str(uid)).id == uid


def test_element_created_at_from_timestamp():
    element = Element(created_at=0)
    assert element.created_at == datetime(1970, 1, 1, tzinfo=timezone.utc)


def test_element_equality():
    element1 = Element()
    element2 = Element()
    assert element1 != element2
    assert element1 == element1


def test_element_hash_is_id_hash():
    element = Element()
    assert hash(element) == hash(element.id)
    assert {element: 1}[element] == 1


def test_element_is_truthy():
    assert bool(Element())


def test_id_is_frozen(record, changes):
    with pytest.raises(Exception):
        record.id = uuid4()
    assert changes == []


def test_get_id():
    element = Element()
    assert ID.get_id(element) == element.id
    assert ID.get_id(element.id) == element.id
    assert ID.get_id(str(element.id)) == element.id
    with pytest.raises(ValueError):
        ID.get_id("not-a-uuid")


def test_validate_order():
    element1 = Element()
    element2 = Element()
    order = validate_order([element1, [element2.id]])
    assert order == [element1.id, element2.id]
    assert validate_order({element1.id: element1}) == [element1.id]
    assert validate_order(None) == []
    with pytest.raises(ValueError):
        validate_order([1])


# ---------------------------------------------------------------------------
# change notifications
# ---------------------------------------------------------------------------


class TestChangeNotification:
    def test_assignment_emits_change(self, record, changes):
        """Assigning a new value emits one change with (old, new)."""
        record.value = 5
        assert len(changes) == 1
        event = changes[0]
        assert isinstance(event, ItemChanged)
        assert event.item is record
        assert event.index is None
        assert event.changes == {"value": (1, 5)}

    def test_same_value_is_silent(self, record, changes):
        """Assigning an equal value emits nothing."""
        record.value = 1
        assert changes == []

    def test_assignment_is_validated(self, record, changes):
        """Invalid values are rejected before anything is emitted."""
        with pytest.raises(Exception):
            record.value = "not a number"
        assert record.value == 1
        assert changes == []

    def test_update_emits_once(self, record, changes):
        """update() groups several fields into one change."""
        result = record.update(value=2, label="b")
        assert result == {"value": (1, 2), "label": ("a", "b")}
        assert len(changes) == 1
        assert changes[0].changes == result

    def test_update_without_changes_is_silent(self, record, changes):
        assert record.update(value=1) == {}
        assert changes == []

    def test_update_unknown_field(self, record, changes):
        with pytest.raises(AttributeError):
            record.update(missing=1)
        assert changes == []

    def test_update_unknown_field_assigns_nothing(self, record, changes):
        """A bad name anywhere in the call leaves every field untouched."""
        with pytest.raises(AttributeError):
            record.update(value=50, missing=1)
        assert record.value == 1
        assert changes == []

    def test_update_invalid_value_announces_prior_fields(self, record, changes):
        """Fields assigned before a validation failure are still announced."""
        with pytest.raises(Exception):
            record.update(value=50, label=["not", "a", "str"])
        assert record.value == 50
        assert record.label == "a"
        assert changes == [ItemChanged(record, changes={"value": (1, 50)})]

    def test_off_stops_notifications(self, record, changes):
        record.off(EventKind.CHANGE, changes.append)
        record.value = 3
        assert changes == []


class TestDestroy:
    def test_destroy_emits_destroyed(self, record):
        seen = []
        record.on(EventKind.DESTROY, seen.append)
        record.destroy()
        assert seen == [Destroyed(record)]

    def test_destroy_does_not_emit_change(self, record, changes):
        record.destroy()
        assert changes == []
