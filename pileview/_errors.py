# Copyright (c) 2023 - 2025, HaiyangLi <quantocean.li at gmail dot com>
#
# SPDX-License-Identifier: Apache-2.0

from typing import Any, ClassVar

__all__ = (
    "PileViewError",
    "ItemNotFoundError",
    "ItemExistsError",
    "InconsistencyError",
    "UsageError",
    "ReadOnlyViewError",
    "ViewReleasedError",
)


class PileViewError(Exception):
    default_message: ClassVar[str] = "pileview error"
    __slots__ = ("message", "details")

    def __init__(
        self,
        message: str | None = None,
        *,
        details: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message or self.default_message)
        if cause:
            self.__cause__ = cause  # preserves traceback
        self.message = message or self.default_message
        self.details = details or {}

    def to_dict(self, *, include_cause: bool = False) -> dict[str, Any]:
        data = {
            "error": self.__class__.__name__,
            "message": self.message,
            **({"details": self.details} if self.details else {}),
        }
        if include_cause and (cause := self.get_cause()):
            data["cause"] = repr(cause)
        return data

    def get_cause(self) -> Exception | None:
        """Get the cause of this error, if any."""
        return self.__cause__ if hasattr(self, "__cause__") else None


class ItemNotFoundError(PileViewError):
    default_message = "Item not found"
    __slots__ = ()


class ItemExistsError(PileViewError):
    default_message = "Item already exists"
    __slots__ = ()


class InconsistencyError(PileViewError):
    """The index map no longer describes the view."""

    default_message = "Index map is inconsistent"
    __slots__ = ()


class UsageError(PileViewError):
    default_message = "Invalid use of a collection"
    __slots__ = ()


class ReadOnlyViewError(UsageError):
    """Raised when a filtered view is mutated directly.

    Views follow their source; change the source collection instead.
    """

    default_message = (
        "Filtered views are read-only, modify the source collection instead"
    )
    __slots__ = ()


class ViewReleasedError(UsageError):
    default_message = "View has been released"
    __slots__ = ()
