# Copyright (c) 2023-2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, ClassVar

if TYPE_CHECKING:
    from .element import Element

__all__ = (
    "EventKind",
    "CollectionEvent",
    "ItemAdded",
    "ItemRemoved",
    "ItemChanged",
    "Reset",
    "Sorted",
    "Settled",
    "Destroyed",
)


class EventKind(str, Enum):
    """Notification kinds emitted by elements, piles and views.

    Attributes:
        ADD: An element entered the collection at ``index``.
        REMOVE: An element left the collection from ``index``.
        CHANGE: An element's attributes changed.
        RESET: The whole content was replaced.
        SORT: The collection was reordered in place.
        SETTLED: A batch of changes is finished.
        DESTROY: An element reached the end of its life.
    """

    ADD = "add"
    REMOVE = "remove"
    CHANGE = "change"
    RESET = "reset"
    SORT = "sort"
    SETTLED = "settled"
    DESTROY = "destroy"


class CollectionEvent:
    """Base for every notification payload."""

    __slots__ = ()
    kind: ClassVar[EventKind]


@dataclass(frozen=True, slots=True)
class ItemAdded(CollectionEvent):
    kind: ClassVar[EventKind] = EventKind.ADD

    item: Element
    index: int


@dataclass(frozen=True, slots=True)
class ItemRemoved(CollectionEvent):
    kind: ClassVar[EventKind] = EventKind.REMOVE

    item: Element
    index: int


@dataclass(frozen=True, slots=True)
class ItemChanged(CollectionEvent):
    """Attribute change of one element.

    ``index`` is None when the element itself emits the event, and the
    element's position when a collection relays it. ``changes`` maps each
    changed field to its ``(old, new)`` pair.
    """

    kind: ClassVar[EventKind] = EventKind.CHANGE

    item: Element
    index: int | None = None
    changes: Mapping[str, tuple[Any, Any]] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class Reset(CollectionEvent):
    """Whole-content replacement.

    ``settles`` is True when the emitter follows this reset with its own
    ``settled`` notification.
    """

    kind: ClassVar[EventKind] = EventKind.RESET

    items: tuple[Element, ...] = ()
    previous: tuple[Element, ...] = ()
    settles: bool = False


@dataclass(frozen=True, slots=True)
class Sorted(CollectionEvent):
    kind: ClassVar[EventKind] = EventKind.SORT

    items: tuple[Element, ...] = ()


@dataclass(frozen=True, slots=True)
class Settled(CollectionEvent):
    kind: ClassVar[EventKind] = EventKind.SETTLED


@dataclass(frozen=True, slots=True)
class Destroyed(CollectionEvent):
    kind: ClassVar[EventKind] = EventKind.DESTROY

    item: Element

