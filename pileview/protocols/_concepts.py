# Copyright (c) 2023 - 2025, HaiyangLi <quantocean.li at gmail dot com>
#
# SPDX-License-Identifier: Apache-2.0

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterator
from typing import Any, Generic, TypeVar

E = TypeVar("E")


__all__ = (
    "Observable",
    "Collective",
)


class Observable(ABC):
    """Observable entities must define 'id'."""


class Collective(Observable, Generic[E]):
    """Base for ordered, observable collections of elements.

    Anything implementing this contract can back a filtered view: it must
    yield ``(item, position)`` pairs in order, resolve an item's position
    by identity and accept per-kind subscriptions.
    """

    @abstractmethod
    def __len__(self) -> int:
        pass

    @abstractmethod
    def pairs(self) -> Iterator[tuple[E, int]]:
        pass

    @abstractmethod
    def index_of(self, item: Any, /) -> int:
        pass

    @abstractmethod
    def on(self, kind: Any, callback: Callable[[Any], Any], /) -> None:
        pass

    @abstractmethod
    def off(
        self, kind: Any, callback: Callable[[Any], Any] | None = None, /
    ) -> None:
        pass
