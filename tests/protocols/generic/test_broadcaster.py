# Copyright (c) 2023-2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""Tests for Broadcaster (pileview/protocols/generic/broadcaster.py)."""

import gc

import pytest

from pileview.protocols.generic.broadcaster import Broadcaster
from pileview.protocols.generic.element import Element
from pileview.protocols.generic.events import (
    EventKind,
    ItemAdded,
    ItemRemoved,
    Settled,
)


class Listener:
    def __init__(self):
        self.events = []

    def handle(self, event):
        self.events.append(event)


@pytest.fixture
def bus():
    return Broadcaster()


@pytest.fixture
def item():
    return Element()


# ---------------------------------------------------------------------------
# event types
# ---------------------------------------------------------------------------


class TestEventTypes:
    def test_payloads_are_frozen(self, item):
        event = ItemAdded(item, 0)
        with pytest.raises(Exception):
            event.index = 1

    def test_kind_values(self):
        assert EventKind("add") is EventKind.ADD
        assert EventKind.SETTLED == "settled"


# ---------------------------------------------------------------------------
# subscribe
# ---------------------------------------------------------------------------


class TestSubscribe:
    def test_subscribe_adds_callback(self, bus):
        def handler(e):
            pass

        bus.subscribe(EventKind.ADD, handler)
        assert bus.subscriber_count(EventKind.ADD) == 1
        assert bus.subscriber_count(EventKind.REMOVE) == 0

    def test_subscribe_idempotent(self, bus):
        """Subscribing the same callback twice does not duplicate."""

        def handler(e):
            pass

        bus.subscribe(EventKind.ADD, handler)
        bus.subscribe(EventKind.ADD, handler)
        assert bus.subscriber_count() == 1

    def test_subscribe_bound_method_idempotent(self, bus):
        listener = Listener()
        bus.subscribe(EventKind.ADD, listener.handle)
        bus.subscribe(EventKind.ADD, listener.handle)
        assert bus.subscriber_count(EventKind.ADD) == 1

    def test_subscribe_by_kind_value(self, bus):
        bus.subscribe("settled", print)
        assert bus.subscriber_count(EventKind.SETTLED) == 1

    def test_subscribe_unknown_kind(self, bus):
        with pytest.raises(ValueError):
            bus.subscribe("explode", print)

    def test_subscribe_non_callable(self, bus):
        with pytest.raises(TypeError):
            bus.subscribe(EventKind.ADD, 42)


# ---------------------------------------------------------------------------
# unsubscribe
# ---------------------------------------------------------------------------


class TestUnsubscribe:
    def test_unsubscribe_one(self, bus):
        first, second = [], []
        bus.subscribe(EventKind.ADD, first.append)
        bus.subscribe(EventKind.ADD, second.append)
        bus.unsubscribe(EventKind.ADD, first.append)
        assert bus.subscriber_count(EventKind.ADD) == 1

    def test_unsubscribe_bound_method(self, bus):
        listener = Listener()
        bus.subscribe(EventKind.ADD, listener.handle)
        bus.unsubscribe(EventKind.ADD, listener.handle)
        assert bus.subscriber_count() == 0

    def test_unsubscribe_all_of_kind(self, bus):
        bus.subscribe(EventKind.ADD, print)
        bus.subscribe(EventKind.ADD, repr)
        bus.subscribe(EventKind.REMOVE, print)
        bus.unsubscribe(EventKind.ADD)
        assert bus.subscriber_count(EventKind.ADD) == 0
        assert bus.subscriber_count(EventKind.REMOVE) == 1

    def test_unsubscribe_unknown_is_noop(self, bus):
        bus.unsubscribe(EventKind.ADD, print)
        assert bus.subscriber_count() == 0

    def test_clear(self, bus):
        bus.subscribe(EventKind.ADD, print)
        bus.subscribe(EventKind.SORT, print)
        bus.clear()
        assert bus.subscriber_count() == 0


# ---------------------------------------------------------------------------
# emit
# ---------------------------------------------------------------------------


class TestEmit:
    def test_emit_reaches_kind_subscribers_only(self, bus, item):
        added, removed = [], []
        bus.subscribe(EventKind.ADD, added.append)
        bus.subscribe(EventKind.REMOVE, removed.append)
        bus.emit(ItemAdded(item, 0))
        assert added == [ItemAdded(item, 0)]
        assert removed == []

    def test_emit_in_subscription_order(self, bus):
        calls = []
        bus.subscribe(EventKind.SETTLED, lambda e: calls.append("first"))
        bus.subscribe(EventKind.SETTLED, lambda e: calls.append("second"))
        bus.emit(Settled())
        assert calls == ["first", "second"]

    def test_emit_rejects_non_events(self, bus):
        with pytest.raises(TypeError):
            bus.emit("add")

    def test_exceptions_propagate(self, bus):
        """A failing callback surfaces to the emitter."""

        def boom(e):
            raise RuntimeError("boom")

        bus.subscribe(EventKind.SETTLED, boom)
        with pytest.raises(RuntimeError, match="boom"):
            bus.emit(Settled())

    def test_subscribed_during_dispatch_not_called(self, bus):
        """Callbacks added while dispatching wait for the next event."""
        late = []

        def register(e):
            bus.subscribe(EventKind.SETTLED, late.append)

        bus.subscribe(EventKind.SETTLED, register)
        bus.emit(Settled())
        assert late == []
        bus.emit(Settled())
        assert late == [Settled()]

    def test_removed_during_dispatch_still_called(self, bus, item):
        seen = []

        def drop(e):
            bus.unsubscribe(EventKind.REMOVE, seen.append)

        bus.subscribe(EventKind.REMOVE, drop)
        bus.subscribe(EventKind.REMOVE, seen.append)
        bus.emit(ItemRemoved(item, 0))
        assert len(seen) == 1
        bus.emit(ItemRemoved(item, 0))
        assert len(seen) == 1


# ---------------------------------------------------------------------------
# weak references
# ---------------------------------------------------------------------------


class TestWeakRefs:
    def test_dead_bound_method_is_pruned(self, bus):
        listener = Listener()
        bus.subscribe(EventKind.ADD, listener.handle)
        assert bus.subscriber_count() == 1
        del listener
        gc.collect()
        assert bus.subscriber_count() == 0

    def test_lambda_is_kept(self, bus):
        bus.subscribe(EventKind.ADD, lambda e: None)
        gc.collect()
        assert bus.subscriber_count() == 1
