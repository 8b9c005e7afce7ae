from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator

from weekgrid.schemas.session import SessionPayload
from weekgrid.services.intervals import Interval


@dataclass
class LaneEntry:
    """A session inside the working index plus its transient wave tag."""

    session: SessionPayload
    wave: int = 0

    @property
    def session_id(self) -> str:
        return self.session.id

    @property
    def interval(self) -> Interval:
        return self.session.interval


class WeekdayLaneIndex:
    """Lane number -> ordered sessions occupying that lane, for one weekday.

    The index owns its buckets. Readers get copies, so a colliding set computed
    from ``entries_at`` stays valid while the index is mutated.
    """

    def __init__(self, weekday: int) -> None:
        self.weekday = weekday
        self._lanes: dict[int, list[LaneEntry]] = {}

    @classmethod
    def build(cls, sessions: Iterable[SessionPayload], weekday: int) -> "WeekdayLaneIndex":
        index = cls(weekday)
        for session in sessions:
            if session.weekday == weekday:
                index.add(session, session.lane)
        return index

    def add(self, session: SessionPayload, lane: int, *, wave: int = 0) -> LaneEntry:
        entry = LaneEntry(session=session, wave=wave)
        self._lanes.setdefault(lane, []).append(entry)
        return entry

    def entries_at(self, lane: int) -> list[LaneEntry]:
        return list(self._lanes.get(lane, ()))

    def lanes(self) -> list[int]:
        return sorted(lane for lane, entries in self._lanes.items() if entries)

    def remove(self, session_id: str) -> list[LaneEntry]:
        """Drop ``session_id`` from every lane it occupies."""
        removed: list[LaneEntry] = []
        for lane in list(self._lanes):
            kept = []
            for entry in self._lanes[lane]:
                if entry.session_id == session_id:
                    removed.append(entry)
                else:
                    kept.append(entry)
            if kept:
                self._lanes[lane] = kept
            else:
                del self._lanes[lane]
        return removed

    def push_down(self, entries: Iterable[LaneEntry], from_lane: int) -> int:
        """Move ``entries`` from ``from_lane`` to the lane below, bumping each wave."""
        to_lane = from_lane + 1
        moving = {id(entry) for entry in entries}
        source = self._lanes.get(from_lane, [])
        kept = [entry for entry in source if id(entry) not in moving]
        shifted = [entry for entry in source if id(entry) in moving]
        if kept:
            self._lanes[from_lane] = kept
        else:
            self._lanes.pop(from_lane, None)
        target = self._lanes.setdefault(to_lane, [])
        for entry in shifted:
            entry.wave += 1
            target.append(entry)
        return to_lane

    def placements(self) -> dict[str, int]:
        return {entry.session_id: lane for lane, entry in self}

    def __iter__(self) -> Iterator[tuple[int, LaneEntry]]:
        for lane in self.lanes():
            for entry in self._lanes[lane]:
                yield lane, entry

