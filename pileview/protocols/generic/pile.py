# Copyright (c) 2023-2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Sequence
from typing import TYPE_CHECKING, Any, Generic, TypeVar
from uuid import UUID

from pydantic import Field, field_validator, model_validator
from typing_extensions import Self

from pileview._errors import ItemExistsError, ItemNotFoundError

from .._concepts import Collective
from .element import ID, Element
from .events import (
    Destroyed,
    EventKind,
    ItemAdded,
    ItemChanged,
    ItemRemoved,
    Reset,
    Settled,
    Sorted,
)
from .progression import Progression

if TYPE_CHECKING:
    from pileview.view.filtered import FilteredPile

T = TypeVar("T", bound=Element)
D = TypeVar("D")

__all__ = ("Pile",)

logger = logging.getLogger(__name__)


def _to_collections(v: Any) -> dict[UUID, Element]:
    """Key a sequence of elements by ID, rejecting non-elements and duplicates."""
    if v is None:
        return {}
    if isinstance(v, dict):
        v = list(v.values())
    v = [v] if isinstance(v, Element) else list(v)
    if not all(isinstance(item, Element) for item in v):
        raise TypeError("All items must be Elements.")
    dict_ = {item.id: item for item in v}
    if len(dict_) != len(v):
        raise ItemExistsError("Duplicate IDs found in collections.")
    return dict_


class Pile(Element, Collective[T], Generic[T]):
    """Ordered, observable collection of elements.

    Items are stored by ID in `collections`, their order lives in
    `progression`. Every mutation is announced synchronously through the
    pile's notifications (``add``, ``remove``, ``reset``, ``sort``,
    ``settled``), and the pile relays the ``change`` notification of each
    element it holds with the element's current position attached. An
    element that emits ``destroy`` is removed.

    if item_type is not specified, any Element is accepted.
    if strict_type is set to True, items must be exactly of item_type, not
    even subclasses are allowed.
    """

    collections: dict[UUID, Any] = Field(default_factory=dict)
    progression: Progression = Field(default_factory=Progression)
    item_type: type[Element] | None = None
    strict_type: bool = False

    @field_validator("collections", mode="before")
    def _validate_collections(cls, v: Any) -> dict[UUID, Element]:
        return _to_collections(v)

    @model_validator(mode="after")
    def _validate_collections_type_length(self) -> Self:
        for item in self.collections.values():
            self._validate_item_type(item)
        if not self.progression and self.collections:
            self.progression.replace(list(self.collections.keys()))
        if len(self.progression) != len(self.collections) or any(
            uid not in self.collections for uid in self.progression
        ):
            raise ValueError("The items in collections and order must match.")
        return self

    def model_post_init(self, __context: Any) -> None:
        super().model_post_init(__context)
        for item in self.collections.values():
            self._watch(item)

    def _validate_item_type(self, item: Any) -> None:
        if not isinstance(item, Element):
            raise TypeError(
                f"Item must be an Element, not {item.__class__.__name__}."
            )
        if self.item_type is None:
            return
        if not isinstance(item, self.item_type) or (
            self.strict_type and item.__class__ is not self.item_type
        ):
            raise TypeError(
                f"Item must be of type {self.item_type.__name__}, "
                f"not {item.__class__.__name__}."
            )

    def _watch(self, item: Element) -> None:
        item.on(EventKind.CHANGE, self._on_item_changed)
        item.on(EventKind.DESTROY, self._on_item_destroyed)

    def _unwatch(self, item: Element) -> None:
        item.off(EventKind.CHANGE, self._on_item_changed)
        item.off(EventKind.DESTROY, self._on_item_destroyed)

    def _on_item_changed(self, event: ItemChanged) -> None:
        if event.item.id not in self.collections:
            return
        index = self.progression.index(event.item.id)
        self._broadcaster.emit(ItemChanged(event.item, index, event.changes))

    def _on_item_destroyed(self, event: Destroyed) -> None:
        if event.item.id in self.collections:
            self.remove(event.item)

    @staticmethod
    def _as_list(items: Any) -> list[Any]:
        if items is None:
            return []
        if isinstance(items, (Element, UUID, str)):
            return [items]
        return list(items)

    def _clamp(self, index: int | None) -> int:
        length = len(self.progression)
        if index is None:
            return length
        if index < 0:
            index += length
        return min(max(index, 0), length)

    # ------------------------------------------------------------------
    # read access
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self.progression)

    def __iter__(self) -> Iterator[T]:
        return (self.collections[uid] for uid in list(self.progression))

    def __contains__(self, item: Any) -> bool:
        try:
            return ID.get_id(item) in self.collections
        except ValueError:
            return False

    def __getitem__(self, key: Any) -> Any:
        """Index by position, slice, ID, or predicate.

        A callable key returns :meth:`filter` of that predicate.
        """
        if callable(key) and not isinstance(key, (Element, UUID, type)):
            return self.filter(key)
        if isinstance(key, slice):
            return [self.collections[uid] for uid in self.progression[key]]
        if isinstance(key, int):
            return self.at(key)
        return self.get(key)

    def at(self, index: int) -> T:
        """Returns the element at ``index``.

        Raises:
            ItemNotFoundError: If the index is out of range.
        """
        return self.collections[self.progression[index]]

    def index_of(self, item: Any, /) -> int:
        """Returns the current position of ``item`` (element or ID)."""
        return self.progression.index(item)

    def get(self, item: Any, default: D = ...) -> T | D:
        try:
            uid = ID.get_id(item)
        except ValueError as e:
            if default is not ...:
                return default
            raise ItemNotFoundError(f"Invalid item: {item!r}", cause=e)
        if uid not in self.collections:
            if default is not ...:
                return default
            raise ItemNotFoundError(
                "Item not found in collections.", details={"item": str(uid)}
            )
        return self.collections[uid]

    def keys(self) -> list[UUID]:
        return list(self.progression)

    def values(self) -> list[T]:
        return list(self)

    def pairs(self) -> Iterator[tuple[T, int]]:
        """Yields ``(item, position)`` in order."""
        for index, uid in enumerate(list(self.progression)):
            yield self.collections[uid], index

    def is_empty(self) -> bool:
        return not self.progression

    def filter(self, predicate: Callable[[T], bool]) -> Pile[T]:
        """Returns a new Pile holding the items that satisfy ``predicate``.

        The result is a snapshot. Use :meth:`view` for a live subset.
        """
        return self.__class__(
            collections=[item for item in self if predicate(item)],
            item_type=self.item_type,
            strict_type=self.strict_type,
        )

    def view(self, predicate: Callable[..., bool] | None = None) -> FilteredPile[T]:
        """Returns a live, read-only view of the items passing ``predicate``."""
        from pileview.view.filtered import FilteredPile

        return FilteredPile(self, predicate)

    # ------------------------------------------------------------------
    # notifications
    # ------------------------------------------------------------------

    def settle(self) -> None:
        """Tells subscribers that the current batch of changes is over."""
        self._broadcaster.emit(Settled())

    # ------------------------------------------------------------------
    # mutations
    # ------------------------------------------------------------------

    def add(self, items: T | Sequence[T], /, index: int | None = None) -> None:
        """Inserts one or more elements, in order, starting at ``index``.

        Appends when ``index`` is None. Negative indexes count from the
        end, out of range indexes are clamped.

        Raises:
            TypeError: If an item is not of an accepted type.
            ItemExistsError: If an item is already in the pile, or given
                twice.
        """
        batch = self._as_list(items)
        seen: set[UUID] = set()
        for item in batch:
            self._validate_item_type(item)
            if item.id in self.collections or item.id in seen:
                raise ItemExistsError(
                    "Item already exists in the collection.",
                    details={"item": str(item.id)},
                )
            seen.add(item.id)

        position = self._clamp(index)
        for item in batch:
            self.collections[item.id] = item
            self.progression.insert(position, item.id)
            self._watch(item)
            self._broadcaster.emit(ItemAdded(item, position))
            position += 1
        if len(batch) > 1:
            self.settle()

    def insert(self, index: int, item: T, /) -> None:
        self.add(item, index=index)

    def include(self, item: T | Sequence[T], /) -> bool:
        """Adds the items not yet present. Returns True if any was added."""
        new = [i for i in self._as_list(item) if i not in self]
        if new:
            self.add(new)
        return bool(new)

    def remove(self, items: Any, /) -> None:
        """Removes one or more elements (or IDs).

        Raises:
            ItemNotFoundError: If any item is missing, before anything is
                removed.
        """
        batch = [self.get(i) for i in self._as_list(items)]
        for item in batch:
            if item.id not in self.collections:
                continue
            position = self.progression.index(item.id)
            self.progression.pop(position)
            self.collections.pop(item.id)
            self._unwatch(item)
            self._broadcaster.emit(ItemRemoved(item, position))
        if len(batch) > 1:
            self.settle()

    def exclude(self, item: Any, /) -> bool:
        """Removes the items present. Returns True if any was removed."""
        present = [i for i in self._as_list(item) if i in self]
        if present:
            self.remove(present)
        return bool(present)

    def pop(self, index: int = -1) -> T:
        item = self.at(index)
        self.remove(item)
        return item

    def reset(self, items: Any = None, /) -> None:
        """Replaces the whole content, emitting a single ``reset``."""
        batch = self._as_list(items)
        new = _to_collections(batch)
        for item in new.values():
            self._validate_item_type(item)

        previous = tuple(self)
        for item in previous:
            self._unwatch(item)
        self.collections.clear()
        self.collections.update(new)
        self.progression.replace(list(new.keys()))
        for item in new.values():
            self._watch(item)
        logger.debug("Pile %s reset: %d -> %d items", self.id, len(previous), len(new))
        self._broadcaster.emit(Reset(tuple(self), previous))

    def clear(self) -> None:
        self.reset()

    def sort(
        self, key: Callable[[T], Any] | None = None, reverse: bool = False
    ) -> None:
        """Stable in-place reorder, emitting a single ``sort``.

        Items are ordered by creation time when no ``key`` is given.
        """
        key = key or (lambda item: item.created_at)
        ordered = sorted(self, key=key, reverse=reverse)
        self.progression.replace([item.id for item in ordered])
        self._broadcaster.emit(Sorted(tuple(ordered)))

    def __repr__(self) -> str:
        return f"Pile({len(self)})"
