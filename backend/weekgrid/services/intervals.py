from __future__ import annotations

import re
from dataclasses import dataclass

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def parse_time_to_minutes(value: str) -> int:
    if not TIME_PATTERN.match(value):
        raise ValueError("Time must be in HH:MM 24-hour format")
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def minutes_to_time(value: int) -> str:
    hours = value // 60
    minutes = value % 60
    return f"{hours:02d}:{minutes:02d}"


@dataclass(frozen=True)
class Interval:
    """Half-open range ``[start, end)`` in minutes from midnight.

    ``start < end`` is owned by the caller; nothing here checks it.
    """

    start: int
    end: int

    @classmethod
    def from_times(cls, start: str, end: str) -> "Interval":
        return cls(parse_time_to_minutes(start), parse_time_to_minutes(end))

    def as_times(self) -> tuple[str, str]:
        return minutes_to_time(self.start), minutes_to_time(self.end)


def overlaps(a: Interval, b: Interval) -> bool:
    # Touching ranges (a.end == b.start) share no minute.
    return a.start < b.end and b.start < a.end
