"""Half-open line ranges and their merge."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

MERGE_SLACK = 5


@dataclass(frozen=True, slots=True)
class LineRange:
    """Lines ``start`` (inclusive) to ``end`` (exclusive), 0-indexed."""

    start: int
    end: int

    def intersects(self, other: LineRange) -> bool:
        return self.start < other.end and other.start < self.end

    def covers(self, other: LineRange) -> bool:
        return self.start <= other.start and other.end <= self.end

    def union(self, other: LineRange) -> LineRange:
        return LineRange(min(self.start, other.start), max(self.end, other.end))


def merge_ranges(ranges: Iterable[LineRange], slack: int = MERGE_SLACK) -> list[LineRange]:
    """Sort by start and coalesce ranges separated by at most *slack* lines.

    >>> merge_ranges([LineRange(0, 5), LineRange(4, 10), LineRange(20, 25)])
    [LineRange(start=0, end=10), LineRange(start=20, end=25)]
    """
    merged: list[LineRange] = []
    for current in sorted(ranges, key=lambda r: (r.start, r.end)):
        if merged and current.start <= merged[-1].end + slack:
            merged[-1] = merged[-1].union(current)
        else:
            merged.append(current)
    return merged
