# Copyright (c) 2023-2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from typing import Any
from uuid import UUID

from pydantic import Field, PrivateAttr, field_validator

from pileview._errors import ItemNotFoundError

from .element import ID, Element, validate_order

__all__ = ("Progression",)


class Progression(Element):
    """Tracks an ordered sequence of item IDs.

    Items are stored in `order`, a plain list of UUIDs, with a `_members`
    set kept in sync for O(1) membership checks. A `Pile` uses one to
    remember the position of every element it holds.

    Attributes:
        order (list[UUID]):
            The sequence of item IDs representing the progression.
    """

    order: list[UUID] = Field(
        default_factory=list,
        title="Order",
        description="A sequence of IDs representing the progression.",
    )
    _members: set[UUID] = PrivateAttr(default_factory=set)

    def model_post_init(self, __context: Any) -> None:
        """Initialize _members set from order for O(1) membership checks."""
        super().model_post_init(__context)
        self._members = set(self.order)

    @field_validator("order", mode="before")
    def _validate_ordering(cls, value: Any) -> list[UUID]:
        return validate_order(value)

    def __len__(self) -> int:
        """Returns the number of items in this progression."""
        return len(self.order)

    def __bool__(self) -> bool:
        """Indicates if this progression has any items."""
        return bool(self.order)

    def __getitem__(self, key: int | slice) -> UUID | list[UUID]:
        """Gets one ID by index, or a list of IDs by slice.

        Raises:
            ItemNotFoundError: If the index is out of range.
            TypeError: If `key` is neither an int nor a slice.
        """
        if not isinstance(key, (int, slice)):
            key_cls = key.__class__.__name__
            raise TypeError(f"indices must be integers or slices, not {key_cls}")
        try:
            return self.order[key]
        except IndexError as e:
            raise ItemNotFoundError(f"index {key} item not found", cause=e)

    def __iter__(self):
        """Iterates over the IDs in this progression."""
        return iter(self.order)

    def insert(self, index: int, item: Any, /) -> None:
        """Inserts one or more IDs at a specified index."""
        refs = validate_order(item)
        for ref in reversed(refs):
            self.order.insert(index, ref)
            self._members.add(ref)

    def pop(self, index: int = -1) -> UUID:
        """Removes and returns one ID by index.

        Raises:
            ItemNotFoundError: If the index is invalid or out of range.
        """
        try:
            uid = self.order.pop(index)
        except IndexError as e:
            raise ItemNotFoundError(str(e), cause=e)
        if uid not in self.order:
            self._members.discard(uid)
        return uid

    def index(self, item: Any, start: int = 0, end: int | None = None) -> int:
        """Finds the index of the first occurrence of an ID.

        Raises:
            ItemNotFoundError: If the item is not in that range.
        """
        ref = ID.get_id(item)
        if ref not in self._members:
            raise ItemNotFoundError(f"{ref} not in progression")
        try:
            if end is not None:
                return self.order.index(ref, start, end)
            return self.order.index(ref, start)
        except ValueError as e:
            raise ItemNotFoundError(f"{ref} not in range", cause=e)

    def replace(self, item: Any, /) -> None:
        """Replaces the whole order in place."""
        self.order[:] = validate_order(item)
        self._members = set(self.order)

    def __repr__(self) -> str:
        return f"Progression(order={self.order})"
