# Copyright (c) 2023-2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

from ._concepts import Collective, Observable
from .generic.broadcaster import Broadcaster
from .generic.element import ID, Element, validate_order
from .generic.events import (
    CollectionEvent,
    Destroyed,
    EventKind,
    ItemAdded,
    ItemChanged,
    ItemRemoved,
    Reset,
    Settled,
    Sorted,
)
from .generic.pile import Pile
from .generic.progression import Progression

__all__ = (
    "Collective",
    "Observable",
    "Broadcaster",
    "ID",
    "Element",
    "validate_order",
    "CollectionEvent",
    "Destroyed",
    "EventKind",
    "ItemAdded",
    "ItemChanged",
    "ItemRemoved",
    "Reset",
    "Settled",
    "Sorted",
    "Pile",
    "Progression",
)
