from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable


@dataclass(frozen=True)
class HourInterval:
    """
    Half-open hour range [start, end) on a single calendar day.
    """

    start: int
    end: int

    def __post_init__(self) -> None:
        if self.end <= self.start:
            raise ValueError(f"Invalid interval [{self.start}, {self.end}): end must be after start.")

    def overlaps(self, other: HourInterval) -> bool:
        # A shared endpoint is not an overlap: [8, 10) and [10, 12) can coexist.
        return self.start < other.end and self.end > other.start

    def within(self, open_hour: int, close_hour: int) -> bool:
        return self.start >= open_hour and self.end <= close_hour


def overlaps_any(candidate: HourInterval, intervals: Iterable[HourInterval]) -> bool:
    return any(candidate.overlaps(existing) for existing in intervals)
