# Copyright (c) 2023-2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import inspect
import logging
import weakref
from collections.abc import Callable
from typing import Any

from .events import CollectionEvent, EventKind

__all__ = ("Broadcaster",)

logger = logging.getLogger(__name__)

Callback = Callable[[Any], Any]


class _StrongRef:
    """Callable holder mimicking the weakref call protocol."""

    __slots__ = ("_callback",)

    def __init__(self, callback: Callback) -> None:
        self._callback = callback

    def __call__(self) -> Callback:
        return self._callback


class Broadcaster:
    """Synchronous pub/sub keyed by :class:`EventKind`.

    Every kind gets its own subscriber list. Bound methods are stored as
    ``WeakMethod`` so subscribers are dropped when their owner is garbage
    collected; plain functions, lambdas and builtin methods are held
    strongly.

    Example::

        bus = Broadcaster()
        bus.subscribe(EventKind.ADD, handler)
        bus.emit(ItemAdded(item, 0))

    Callback exceptions are not suppressed, they surface to whoever
    triggered the emit.
    """

    __slots__ = ("_subscribers", "__weakref__")

    def __init__(self) -> None:
        self._subscribers: dict[EventKind, list[Callable[[], Callback | None]]] = {
            kind: [] for kind in EventKind
        }

    @staticmethod
    def _ref(callback: Callback) -> Callable[[], Callback | None]:
        if inspect.ismethod(callback):
            return weakref.WeakMethod(callback)
        return _StrongRef(callback)

    def subscribe(self, kind: EventKind | str, callback: Callback) -> None:
        """Add subscriber callback for one kind (idempotent).

        Args:
            kind: The notification kind, as an ``EventKind`` or its value.
            callback: Callable receiving the event payload.
        """
        if not callable(callback):
            raise TypeError(f"Callback must be callable, not {type(callback).__name__}")
        refs = self._subscribers[EventKind(kind)]
        for ref in refs:
            if ref() == callback:
                return
        refs.append(self._ref(callback))

    def unsubscribe(
        self, kind: EventKind | str, callback: Callback | None = None
    ) -> None:
        """Remove one callback, or every callback of ``kind`` when None."""
        refs = self._subscribers[EventKind(kind)]
        if callback is None:
            refs.clear()
            return
        for ref in list(refs):
            if ref() == callback:
                refs.remove(ref)
                return

    def clear(self) -> None:
        for refs in self._subscribers.values():
            refs.clear()

    def _live(self, kind: EventKind) -> list[Callback]:
        """Prune dead weakrefs, return a snapshot of live callbacks."""
        callbacks, alive = [], []
        for ref in self._subscribers[kind]:
            if (cb := ref()) is not None:
                callbacks.append(cb)
                alive.append(ref)
        self._subscribers[kind][:] = alive
        return callbacks

    def emit(self, event: CollectionEvent) -> None:
        """Deliver ``event`` to the subscribers of its kind, in order.

        The subscriber list is snapshotted first: callbacks subscribed
        while dispatching do not see this event.

        Raises:
            TypeError: If ``event`` is not a ``CollectionEvent``.
        """
        if not isinstance(event, CollectionEvent):
            raise TypeError(
                f"Event must be a CollectionEvent, not {type(event).__name__}"
            )
        for callback in self._live(event.kind):
            callback(event)

    def subscriber_count(self, kind: EventKind | str | None = None) -> int:
        """Count live subscribers (triggers dead ref cleanup)."""
        if kind is not None:
            return len(self._live(EventKind(kind)))
        return sum(len(self._live(k)) for k in EventKind)
