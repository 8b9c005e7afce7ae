from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from weekgrid.core.config import DEFAULT_CASCADE_MAX_ROUNDS
from weekgrid.schemas.session import SessionPayload
from weekgrid.services.intervals import Interval, overlaps
from weekgrid.services.lane_index import LaneEntry, WeekdayLaneIndex

TraceHook = Callable[[str, dict[str, Any]], None]


@dataclass(frozen=True)
class CascadeResult:
    final_lane: int
    rounds: int
    displaced: tuple[str, ...]
    hit_round_limit: bool = False


class CascadeResolver:
    """Wave-propagation resolver for a single weekday.

    Round 1 pushes every lane-mate that overlaps the moving session's target
    interval one lane down. Each later round looks only at the lane the
    previous round pushed into and moves the untouched (wave 0) sessions there
    that overlap a pushed (wave >= 1) session. Sessions that merely share a lane
    with a pushed session without overlapping it stay where they are.

    ``max_rounds`` caps the number of displacing rounds. Hitting it leaves the
    layout as of the last completed round, which may still contain an overlap;
    the condition is reported through ``trace`` and never raised.
    """

    def __init__(
        self,
        index: WeekdayLaneIndex,
        *,
        max_rounds: int = DEFAULT_CASCADE_MAX_ROUNDS,
        trace: TraceHook | None = None,
        describe: Callable[[SessionPayload], str] | None = None,
    ) -> None:
        self.index = index
        self.max_rounds = max_rounds
        self._trace = trace
        self._describe = describe

    def resolve(self, moving: SessionPayload, requested_lane: int) -> CascadeResult:
        """Place ``moving`` at ``requested_lane`` and push colliding sessions down.

        ``moving`` must already carry its target weekday and interval.
        """
        self.index.remove(moving.id)
        target = moving.interval

        current_lane = requested_lane
        rounds = 0
        displaced: list[str] = []
        hit_round_limit = False
        while True:
            colliding = self._colliding(current_lane, moving.id, target, first_round=rounds == 0)
            if not colliding:
                break
            if rounds >= self.max_rounds:
                hit_round_limit = True
                self._emit(
                    "cascade.round_limit",
                    weekday=self.index.weekday,
                    session_id=moving.id,
                    rounds=rounds,
                    lane=current_lane,
                    unresolved=",".join(entry.session_id for entry in colliding),
                )
                break
            rounds += 1
            next_lane = self.index.push_down(colliding, current_lane)
            for entry in colliding:
                displaced.append(entry.session_id)
                self._emit_displaced(entry, current_lane, next_lane)
            current_lane = next_lane

        self.index.add(moving, requested_lane, wave=1)
        self._emit(
            "cascade.settled",
            weekday=self.index.weekday,
            session_id=moving.id,
            lane=requested_lane,
            rounds=rounds,
        )
        return CascadeResult(
            final_lane=requested_lane,
            rounds=rounds,
            displaced=tuple(displaced),
            hit_round_limit=hit_round_limit,
        )

    def insert(self, session: SessionPayload, requested_lane: int) -> CascadeResult:
        """Place a new session at the first free lane from ``requested_lane`` on.

        Nothing already on the grid is displaced.
        """
        self.index.remove(session.id)
        target = session.interval
        lane = requested_lane
        while any(overlaps(entry.interval, target) for entry in self.index.entries_at(lane)):
            lane += 1
        self.index.add(session, lane, wave=1)
        self._emit(
            "cascade.inserted",
            weekday=self.index.weekday,
            session_id=session.id,
            requested_lane=requested_lane,
            lane=lane,
        )
        return CascadeResult(final_lane=lane, rounds=0, displaced=())

    def _colliding(self, lane: int, moving_id: str, target: Interval, *, first_round: bool) -> list[LaneEntry]:
        entries = [entry for entry in self.index.entries_at(lane) if entry.session_id != moving_id]
        if first_round:
            return [entry for entry in entries if overlaps(entry.interval, target)]

        pushed = [entry for entry in entries if entry.wave >= 1]
        return [
            entry
            for entry in entries
            if entry.wave == 0 and any(overlaps(entry.interval, other.interval) for other in pushed)
        ]

    def _emit_displaced(self, entry: LaneEntry, from_lane: int, to_lane: int) -> None:
        if self._trace is None:
            return
        start, end = entry.interval.as_times()
        self._emit(
            "cascade.displaced",
            weekday=self.index.weekday,
            session_id=entry.session_id,
            subject=self._describe(entry.session) if self._describe else None,
            time=f"{start}-{end}",
            from_lane=from_lane,
            to_lane=to_lane,
            wave=entry.wave,
        )

    def _emit(self, event: str, **fields: Any) -> None:
        if self._trace is not None:
            self._trace(event, fields)
