# Copyright (c) 2023-2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

import logging

from ._errors import (
    InconsistencyError,
    ItemExistsError,
    ItemNotFoundError,
    PileViewError,
    ReadOnlyViewError,
    UsageError,
    ViewReleasedError,
)
from .config import settings
from .protocols.types import (
    Element,
    EventKind,
    ItemAdded,
    ItemChanged,
    ItemRemoved,
    Pile,
    Reset,
    Settled,
    Sorted,
)
from .version import __version__
from .view import FilteredPile, IndexMap

logger = logging.getLogger(__name__)
logger.setLevel(settings.log_level)

__all__ = (
    "__version__",
    "settings",
    "Element",
    "EventKind",
    "ItemAdded",
    "ItemChanged",
    "ItemRemoved",
    "Pile",
    "Reset",
    "Settled",
    "Sorted",
    "FilteredPile",
    "IndexMap",
    "PileViewError",
    "ItemNotFoundError",
    "ItemExistsError",
    "InconsistencyError",
    "UsageError",
    "ReadOnlyViewError",
    "ViewReleasedError",
)
