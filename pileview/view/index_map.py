# Copyright (c) 2023-2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from bisect import bisect_left, bisect_right
from collections.abc import Iterable, Iterator

from pileview._errors import InconsistencyError

__all__ = ("IndexMap",)


class IndexMap:
    """Ascending source positions backing each slot of a filtered view.

    ``positions[i]`` is the source position of the element shown at view
    index ``i``. Positions are absolute offsets into the source, so every
    source insertion or removal shifts the stored positions that follow
    it, whether or not the inserted or removed element is in the view.
    Lookups are ``O(log n)``, shifts ``O(n)``.
    """

    __slots__ = ("_positions",)

    def __init__(self, positions: Iterable[int] = ()) -> None:
        self._positions: list[int] = list(positions)

    def __len__(self) -> int:
        return len(self._positions)

    def __iter__(self) -> Iterator[int]:
        return iter(self._positions)

    def __getitem__(self, index: int) -> int:
        return self._positions[index]

    def __contains__(self, position: object) -> bool:
        return isinstance(position, int) and self.find(position) is not None

    def __eq__(self, other: object) -> bool:
        if isinstance(other, IndexMap):
            return self._positions == other._positions
        if isinstance(other, (list, tuple)):
            return self._positions == list(other)
        return NotImplemented

    __hash__ = None

    def __repr__(self) -> str:
        return f"IndexMap({self._positions})"

    def to_list(self) -> list[int]:
        return self._positions[:]

    def insertion_point(self, position: int) -> int:
        """View index where ``position`` belongs (leftmost slot >= it)."""
        return bisect_left(self._positions, position)

    def find(self, position: int) -> int | None:
        """View index holding ``position``, or None if it is filtered out."""
        index = bisect_left(self._positions, position)
        if index < len(self._positions) and self._positions[index] == position:
            return index
        return None

    def _shift(self, start: int, delta: int) -> None:
        for i in range(start, len(self._positions)):
            self._positions[i] += delta

    def note_insert(self, position: int) -> int:
        """Account for a source insertion at ``position`` not shown in the view.

        Returns the view index the inserted element would occupy.
        """
        index = bisect_left(self._positions, position)
        self._shift(index, 1)
        return index

    def insert(self, position: int) -> int:
        """Account for a source insertion at ``position`` shown in the view.

        Returns:
            int: The view index of the new slot.
        """
        index = self.note_insert(position)
        self._positions.insert(index, position)
        return index

    def remove(self, position: int) -> int | None:
        """Account for a source removal at ``position``.

        Returns:
            int | None: The view index that held ``position``, or None when
                the removed element was not shown.
        """
        index = self.find(position)
        if index is not None:
            del self._positions[index]
        self._shift(bisect_right(self._positions, position), -1)
        return index

    def add(self, position: int) -> int:
        """Show an element already at ``position`` in the source.

        Nothing moves in the source, so no stored position shifts.

        Raises:
            InconsistencyError: If ``position`` is already shown.
        """
        index = bisect_left(self._positions, position)
        if index < len(self._positions) and self._positions[index] == position:
            raise InconsistencyError(f"Position {position} is already mapped")
        self._positions.insert(index, position)
        return index

    def discard(self, position: int) -> int | None:
        """Stop showing the element at ``position``, which stays in the source."""
        index = self.find(position)
        if index is not None:
            del self._positions[index]
        return index

    def rebuild(self, positions: Iterable[int]) -> None:
        self._positions[:] = positions

    def clear(self) -> None:
        self._positions.clear()

    def validate(self, size: int | None = None) -> None:
        """Check the mapping is strictly ascending and non-negative.

        Args:
            size: Expected number of slots, i.e. the view's length.

        Raises:
            InconsistencyError: If the invariant does not hold.
        """
        positions = self._positions
        if size is not None and size != len(positions):
            raise InconsistencyError(
                f"Index map holds {len(positions)} slots for a view of {size}",
                details={"positions": positions[:]},
            )
        if positions and positions[0] < 0:
            raise InconsistencyError(
                "Negative source position", details={"positions": positions[:]}
            )
        for i in range(1, len(positions)):
            if positions[i - 1] >= positions[i]:
                raise InconsistencyError(
                    f"Positions not strictly ascending at slot {i}",
                    details={"positions": positions[:]},
                )
