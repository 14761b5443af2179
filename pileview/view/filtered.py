# Copyright (c) 2023-2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable, Iterator
from typing import Any, Generic, NoReturn, TypeVar
from uuid import UUID

from pileview._errors import ItemNotFoundError, ReadOnlyViewError, ViewReleasedError
from pileview.config import settings
from pileview.protocols._concepts import Collective
from pileview.protocols.generic.broadcaster import Broadcaster
from pileview.protocols.generic.element import ID, Element
from pileview.protocols.generic.events import (
    EventKind,
    ItemAdded,
    ItemChanged,
    ItemRemoved,
    Reset,
    Settled,
    Sorted,
)

from .index_map import IndexMap

T = TypeVar("T", bound=Element)
D = TypeVar("D")

Predicate = Callable[[Any, int], bool]

__all__ = ("FilteredPile", "as_predicate", "pass_all")

logger = logging.getLogger(__name__)


def pass_all(item: Any, index: int) -> bool:
    """Predicate used when no filtering is requested."""
    return True


def _positional_arity(func: Callable[..., Any]) -> int:
    try:
        params = inspect.signature(func).parameters.values()
    except (TypeError, ValueError):
        return 2
    count = 0
    for p in params:
        if p.kind is inspect.Parameter.VAR_POSITIONAL:
            return 2
        if p.kind in (
            inspect.Parameter.POSITIONAL_ONLY,
            inspect.Parameter.POSITIONAL_OR_KEYWORD,
        ):
            count += 1
    return count


def as_predicate(func: Callable[..., bool]) -> Predicate:
    """Normalize ``func`` to the ``(item, position)`` calling convention.

    Single-argument callables are wrapped so they only receive the item.
    """
    if not callable(func):
        raise TypeError(f"Filter must be callable, not {type(func).__name__}")
    if _positional_arity(func) >= 2:
        return func

    def _predicate(item: Any, index: int) -> bool:
        return func(item)

    _predicate.__wrapped__ = func
    return _predicate


class FilteredPile(Collective[T], Generic[T]):
    """Live, read-only view of the source elements passing a predicate.

    The view listens to its source and keeps itself in step: insertions,
    removals, resets and sorts of the source, and attribute changes of its
    elements, are translated into the view's own ``add``, ``remove``,
    ``change``, ``reset`` and ``settled`` notifications, with indexes
    expressed in view space.

    An :class:`IndexMap` records, for every slot of the view, the source
    position of the element shown there. Membership and order are
    therefore always those of the source filtered by the predicate.

    Do not modify the view directly via ``add``/``remove``, modify the
    source instead: mutators raise :class:`ReadOnlyViewError`.

    Args:
        source: The collection to observe (a ``Pile`` or another view).
        predicate: ``(item, position) -> bool`` or ``(item) -> bool``.
            None means no filtering.
        validate: Check the index map after every change. Defaults to
            ``settings.VALIDATE_INDEX_MAP``.
    """

    def __init__(
        self,
        source: Collective[T],
        predicate: Callable[..., bool] | None = None,
        *,
        validate: bool | None = None,
    ) -> None:
        self._broadcaster = Broadcaster()
        self._index_map = IndexMap()
        self._items: list[T] = []
        self._members: set[UUID] = set()
        self._filter: Callable[..., bool] = predicate or pass_all
        self._predicate: Predicate = as_predicate(self._filter)
        self._source: Collective[T] | None = None
        self._released = False
        self._validate = (
            settings.VALIDATE_INDEX_MAP if validate is None else validate
        )
        self._bind(source)
        self._rebuild()

    # ------------------------------------------------------------------
    # properties
    # ------------------------------------------------------------------

    @property
    def source(self) -> Collective[T] | None:
        return self._source

    @property
    def predicate(self) -> Callable[..., bool]:
        """The filter as given by the caller."""
        return self._filter

    @property
    def mapping(self) -> tuple[int, ...]:
        """Source position of the element at each view index."""
        return tuple(self._index_map)

    @property
    def released(self) -> bool:
        return self._released

    # ------------------------------------------------------------------
    # read access
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(list(self._items))

    def __contains__(self, item: Any) -> bool:
        try:
            return ID.get_id(item) in self._members
        except ValueError:
            return False

    def __getitem__(self, key: Any) -> Any:
        if isinstance(key, slice):
            return self._items[key]
        if isinstance(key, int):
            return self.at(key)
        return self.get(key)

    def at(self, index: int) -> T:
        """Returns the element at view ``index``.

        Raises:
            ItemNotFoundError: If the index is out of range.
        """
        try:
            return self._items[index]
        except IndexError as e:
            raise ItemNotFoundError(f"index {index} item not found", cause=e)

    def index_of(self, item: Any, /) -> int:
        """Returns the view index of ``item`` (element or ID)."""
        uid = ID.get_id(item)
        if uid in self._members:
            for index, member in enumerate(self._items):
                if member.id == uid:
                    return index
        raise ItemNotFoundError(
            "Item not found in view.", details={"item": str(uid)}
        )

    def get(self, item: Any, default: D = ...) -> T | D:
        try:
            return self._items[self.index_of(item)]
        except (ItemNotFoundError, ValueError):
            if default is not ...:
                return default
            raise

    def keys(self) -> list[UUID]:
        return [item.id for item in self._items]

    def values(self) -> list[T]:
        return list(self._items)

    def pairs(self) -> Iterator[tuple[T, int]]:
        """Yields ``(item, view index)`` in order."""
        for index, item in enumerate(list(self._items)):
            yield item, index

    def is_empty(self) -> bool:
        return not self._items

    def on(self, kind: EventKind | str, callback: Callable[[Any], Any], /) -> None:
        self._broadcaster.subscribe(kind, callback)

    def off(
        self,
        kind: EventKind | str,
        callback: Callable[[Any], Any] | None = None,
        /,
    ) -> None:
        self._broadcaster.unsubscribe(kind, callback)

    # ------------------------------------------------------------------
    # caller operations
    # ------------------------------------------------------------------

    def set_filter(
        self,
        predicate: Callable[..., bool] | bool | None = None,
        *,
        silent: bool = False,
    ) -> None:
        """Install a predicate and rebuild the view from the source.

        Args:
            predicate: A callable to install; None keeps (and re-applies)
                the current one; False drops filtering.
            silent: Skip the ``reset`` and ``settled`` notifications.

        Raises:
            TypeError: If ``predicate`` is neither callable, None nor False.
            ViewReleasedError: If the view was released.
        """
        if self._released:
            raise ViewReleasedError()
        previous = self._filter, self._predicate
        if predicate is False:
            self._filter, self._predicate = pass_all, pass_all
        elif predicate is not None:
            self._filter, self._predicate = predicate, as_predicate(predicate)
        before = tuple(self._items)
        try:
            self._rebuild()
        except Exception:
            # a failing predicate leaves the view as it was
            self._filter, self._predicate = previous
            raise
        self._announce(before, silent=silent)

    def reset_with(self, source: Collective[T], *, silent: bool = False) -> None:
        """Rebind the view to another source collection.

        Everything tied to the old source is unsubscribed before the new
        source is observed. Also revives a released view.

        Raises:
            TypeError: If ``source`` is not a collection, in which case the
                view stays bound to its current source.
        """
        self._require_collective(source)
        self._unbind()
        self._released = False
        self._bind(source)
        logger.debug("View %s rebound to %r", id(self), source)
        self._refresh(silent=silent)

    def release(self) -> None:
        """Stop observing the source and the members, and empty the view."""
        if self._released:
            return
        self._unbind()
        self._empty()
        self._released = True
        logger.debug("View %s released", id(self))

    close = release

    def __enter__(self) -> FilteredPile[T]:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.release()

    # ------------------------------------------------------------------
    # read-only guards
    # ------------------------------------------------------------------

    def _read_only(self, *args: Any, **kwargs: Any) -> NoReturn:
        raise ReadOnlyViewError()

    add = insert = include = remove = exclude = pop = _read_only
    clear = reset = sort = settle = _read_only
    __setitem__ = __delitem__ = _read_only

    # ------------------------------------------------------------------
    # subscriptions
    # ------------------------------------------------------------------

    @staticmethod
    def _require_collective(source: Any) -> None:
        if not isinstance(source, Collective):
            raise TypeError(
                f"Source must be a Collective, not {type(source).__name__}"
            )

    def _bind(self, source: Collective[T]) -> None:
        self._require_collective(source)
        self._source = source
        source.on(EventKind.ADD, self._on_add)
        source.on(EventKind.REMOVE, self._on_remove)
        source.on(EventKind.CHANGE, self._on_source_change)
        source.on(EventKind.RESET, self._on_reset)
        source.on(EventKind.SORT, self._on_sort)
        source.on(EventKind.SETTLED, self._on_settled)

    def _unbind(self) -> None:
        source = self._source
        if source is not None:
            source.off(EventKind.ADD, self._on_add)
            source.off(EventKind.REMOVE, self._on_remove)
            source.off(EventKind.CHANGE, self._on_source_change)
            source.off(EventKind.RESET, self._on_reset)
            source.off(EventKind.SORT, self._on_sort)
            source.off(EventKind.SETTLED, self._on_settled)
        self._source = None

    def _admit(self, item: T) -> None:
        self._members.add(item.id)
        item.on(EventKind.CHANGE, self._on_item_change)

    def _dismiss(self, item: T) -> None:
        self._members.discard(item.id)
        item.off(EventKind.CHANGE, self._on_item_change)

    # ------------------------------------------------------------------
    # synchronization
    # ------------------------------------------------------------------

    def _check(self) -> None:
        if self._validate:
            self._index_map.validate(len(self._items))

    def _rebuild(self) -> None:
        """Re-apply the predicate to the whole source in one pass."""
        positions: list[int] = []
        items: list[T] = []
        for item, position in self._source.pairs():
            if self._predicate(item, position):
                positions.append(position)
                items.append(item)

        for item in self._items:
            item.off(EventKind.CHANGE, self._on_item_change)
        self._members.clear()
        self._index_map.rebuild(positions)
        self._items[:] = items
        for item in items:
            self._admit(item)
        self._check()
        logger.debug("View %s rebuilt with %d items", id(self), len(items))

    def _announce(
        self, previous: tuple[T, ...], *, silent: bool, settle: bool = True
    ) -> None:
        if silent:
            return
        self._broadcaster.emit(Reset(tuple(self._items), previous, settles=True))
        if settle:
            self._broadcaster.emit(Settled())

    def _empty(self) -> None:
        for item in self._items:
            item.off(EventKind.CHANGE, self._on_item_change)
        self._members.clear()
        self._items.clear()
        self._index_map.clear()

    def _refresh(self, *, silent: bool, settle: bool = True) -> None:
        """Rebuild after the source content changed as a whole.

        If the predicate raises, the view is emptied: nothing it showed is
        still mapped to a valid source position. The emptied state is
        announced, then the error propagates.
        """
        previous = tuple(self._items)
        try:
            self._rebuild()
        except Exception:
            self._empty()
            logger.warning(
                "View %s emptied: predicate failed during rebuild", id(self)
            )
            raise
        finally:
            self._announce(previous, silent=silent, settle=settle)

    def _include(self, item: T, position: int, *, inserted: bool) -> None:
        if inserted:
            index = self._index_map.insert(position)
        else:
            index = self._index_map.add(position)
        self._items.insert(index, item)
        self._admit(item)
        self._check()
        self._broadcaster.emit(ItemAdded(item, index))

    def _exclude(self, item: T, position: int) -> None:
        index = self._index_map.discard(position)
        if index is None:
            return
        self._items.pop(index)
        self._dismiss(item)
        self._check()
        self._broadcaster.emit(ItemRemoved(item, index))

    def _on_add(self, event: ItemAdded) -> None:
        try:
            passes = self._predicate(event.item, event.index)
        except Exception:
            # the source already grew; positions must follow before raising
            self._index_map.note_insert(event.index)
            self._check()
            raise
        if passes:
            self._include(event.item, event.index, inserted=True)
        else:
            self._index_map.note_insert(event.index)
            self._check()

    def _on_remove(self, event: ItemRemoved) -> None:
        index = self._index_map.remove(event.index)
        if index is None:
            logger.debug(
                "View %s ignored removal at %d: not in view", id(self), event.index
            )
            self._check()
            return
        item = self._items.pop(index)
        self._dismiss(item)
        self._check()
        self._broadcaster.emit(ItemRemoved(item, index))

    def _on_reset(self, event: Reset) -> None:
        # a source that settles its own reset is forwarded by _on_settled
        self._refresh(silent=False, settle=not event.settles)

    def _on_sort(self, event: Sorted) -> None:
        self._refresh(silent=False)

    def _on_settled(self, event: Settled) -> None:
        self._broadcaster.emit(Settled())

    def _on_source_change(self, event: ItemChanged) -> None:
        # members are handled through their own subscription; a change
        # without a position concerns the source itself, not an element
        if event.index is None or event.item.id in self._members:
            return
        if self._predicate(event.item, event.index):
            self._include(event.item, event.index, inserted=False)

    def _on_item_change(self, event: ItemChanged) -> None:
        item = event.item
        if item.id not in self._members:
            return
        position = self._source.index_of(item)
        if self._predicate(item, position):
            index = self._index_map.find(position)
            self._broadcaster.emit(ItemChanged(item, index, event.changes))
        else:
            self._exclude(item, position)

    def __repr__(self) -> str:
        return f"FilteredPile({len(self)} of {len(self._source or ())})"
