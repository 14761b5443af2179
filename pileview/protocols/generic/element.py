# Copyright (c) 2023-2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from collections.abc import Callable, Mapping
from datetime import datetime, timezone
from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator

from .._concepts import Observable
from .broadcaster import Broadcaster
from .events import Destroyed, EventKind, ItemChanged

__all__ = (
    "ID",
    "Element",
    "validate_order",
)


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


class Element(BaseModel, Observable):
    """Identifiable record that announces its own mutations.

    Subclasses declare their attributes as pydantic fields. Assigning a
    field to a new value emits one ``change`` notification carrying the
    ``(old, new)`` pair; :meth:`update` groups several assignments into a
    single notification and :meth:`destroy` emits the terminal ``destroy``
    notification that collections translate into a removal.
    """

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        use_enum_values=True,
        populate_by_name=True,
        extra="forbid",
        use_attribute_docstrings=True,
        validate_assignment=True,
    )

    id: UUID = Field(default_factory=uuid4, frozen=True)
    """A unique identifier for the element."""

    created_at: datetime = Field(default_factory=_now_utc, frozen=True)
    """The timestamp when the element was created."""

    metadata: dict = Field(default_factory=dict)
    """Additional data for this element."""

    _broadcaster: Broadcaster = PrivateAttr(default_factory=Broadcaster)
    _pending: dict[str, tuple[Any, Any]] | None = PrivateAttr(default=None)

    @classmethod
    def class_name(cls, full: bool = False) -> str:
        """Returns this class's name.

        full (bool): If True, returns the fully qualified class name; otherwise,
            returns only the class name.
        """
        if full:
            return f"{cls.__module__}.{cls.__qualname__}"
        return cls.__name__

    @field_validator("metadata", mode="before")
    def _validate_meta(cls, val: Any) -> dict:
        if not val:
            return {}
        if not isinstance(val, Mapping):
            raise ValueError(f"metadata must be a mapping, not {type(val).__name__}")
        return dict(val)

    @field_validator("created_at", mode="before")
    def _coerce_created_at(cls, value: Any) -> datetime:
        if value is None:
            return _now_utc()
        if isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                return datetime.fromisoformat(value).astimezone(tz=timezone.utc)
            except ValueError as e:
                raise ValueError(f"Invalid datetime string: {value}") from e
        if isinstance(value, (int, float)):
            return datetime.fromtimestamp(value, tz=timezone.utc)
        raise TypeError(f"Invalid type for created_at: {type(value)}")

    @field_validator("id", mode="before")
    def _validate_id(cls, value: Any) -> UUID:
        if isinstance(value, UUID):
            return value
        if isinstance(value, str):
            try:
                return UUID(value)
            except ValueError as e:
                raise ValueError(f"Invalid UUID string: {value}") from e
        raise TypeError(f"Invalid type for id: {type(value)}")

    def __setattr__(self, name: str, value: Any) -> None:
        if name not in type(self).model_fields:
            super().__setattr__(name, value)
            return
        old = getattr(self, name)
        super().__setattr__(name, value)
        new = getattr(self, name)
        if old == new:
            return
        if self._pending is not None:
            first = self._pending.get(name, (old, None))[0]
            self._pending[name] = (first, new)
            return
        self._broadcaster.emit(ItemChanged(self, changes={name: (old, new)}))

    def update(self, **fields: Any) -> dict[str, tuple[Any, Any]]:
        """Assign several fields, then emit a single ``change``.

        Unknown field names are rejected before anything is assigned. If a
        value fails validation, the fields assigned before it keep their
        new values and are still announced, then the error propagates.

        Returns:
            dict: The ``(old, new)`` pairs of the fields that actually
                changed. Nothing is emitted when it is empty.

        Raises:
            AttributeError: If a name is not a field of this element.
        """
        for name in fields:
            if name not in type(self).model_fields:
                raise AttributeError(f"{self.class_name()} has no field '{name}'")

        self._pending = {}
        try:
            for name, value in fields.items():
                setattr(self, name, value)
        finally:
            pending, self._pending = self._pending, None
            changes = {k: v for k, v in pending.items() if v[0] != v[1]}
            if changes:
                self._broadcaster.emit(ItemChanged(self, changes=changes))
        return changes

    def destroy(self) -> None:
        """Announce the end of this element's life to its observers."""
        self._broadcaster.emit(Destroyed(self))

    def on(self, kind: EventKind | str, callback: Callable[[Any], Any], /) -> None:
        self._broadcaster.subscribe(kind, callback)

    def off(
        self,
        kind: EventKind | str,
        callback: Callable[[Any], Any] | None = None,
        /,
    ) -> None:
        self._broadcaster.unsubscribe(kind, callback)

    def __bool__(self) -> bool:
        """Elements are always considered truthy."""
        return True

    def __hash__(self) -> int:
        """Returns a hash of this element's ID."""
        return hash(self.id)


class ID:
    """Helpers for resolving element identities."""

    @staticmethod
    def get_id(item: Any) -> UUID:
        """Returns the UUID of an element, UUID or UUID string.

        Raises:
            ValueError: If ``item`` does not resolve to a UUID.
        """
        if isinstance(item, Element):
            return item.id
        if isinstance(item, UUID):
            return item
        if isinstance(item, str):
            try:
                return UUID(item)
            except ValueError as e:
                raise ValueError(f"Invalid UUID string: {item}") from e
        raise ValueError(f"Cannot get ID from {type(item).__name__}")


def validate_order(order: Any) -> list[UUID]:
    """Validates and flattens an ordering into a list of UUIDs.

    Accepts a single Element or ID, a mapping keyed by IDs, or any nesting
    of lists/tuples/sets of them.
    """
    if isinstance(order, (Element, UUID)):
        return [ID.get_id(order)]
    if isinstance(order, Mapping):
        order = list(order.keys())

    stack = [order]
    out: list[UUID] = []
    while stack:
        cur = stack.pop()
        if cur is None:
            continue
        if isinstance(cur, (Element, UUID, str)):
            out.append(ID.get_id(cur))
        elif isinstance(cur, (list, tuple, set)):
            stack.extend(reversed(list(cur)))
        else:
            raise ValueError("Invalid item in order.")
    return out
