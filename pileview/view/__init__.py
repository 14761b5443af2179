# Copyright (c) 2023-2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

from .filtered import FilteredPile, as_predicate, pass_all
from .index_map import IndexMap

__all__ = ("FilteredPile", "IndexMap", "as_predicate", "pass_all")
