"""Closed integer intervals over token positions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable


@dataclass(frozen=True, order=True)
class Interval:
    """A closed, contiguous range ``[start, end]`` of token indices."""

    start: int
    end: int

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise ValueError(f"Interval end {self.end} precedes start {self.start}")

    @classmethod
    def single(cls, index: int) -> "Interval":
        return cls(index, index)

    @classmethod
    def span(cls, intervals: Iterable["Interval"]) -> "Interval":
        """Return the smallest interval covering every interval given."""
        intervals = list(intervals)
        if not intervals:
            raise ValueError("Cannot span an empty collection of intervals")
        return cls(
            min(interval.start for interval in intervals),
            max(interval.end for interval in intervals),
        )

    def __len__(self) -> int:
        return self.end - self.start + 1

    def __contains__(self, index: object) -> bool:
        return isinstance(index, int) and self.start <= index <= self.end

    def intersects(self, other: "Interval") -> bool:
        return self.start <= other.end and other.start <= self.end

    def borders(self, other: "Interval") -> bool:
        """True when the intervals touch without overlapping."""
        return self.end + 1 == other.start or other.end + 1 == self.start

    def superset(self, other: "Interval") -> bool:
        return self.start <= other.start and other.end <= self.end

    def union(self, other: "Interval") -> "Interval":
        """Merge two overlapping or bordering intervals."""
        if not (self.intersects(other) or self.borders(other)):
            raise ValueError(f"Cannot union disjoint intervals {self} and {other}")
        return Interval(min(self.start, other.start), max(self.end, other.end))

    def __str__(self) -> str:
        return f"[{self.start}, {self.end}]"
