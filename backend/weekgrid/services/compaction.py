from __future__ import annotations

from typing import Iterable, Sequence

from weekgrid.schemas.session import SessionPayload


def lane_ranks(lanes: Iterable[int]) -> dict[int, int]:
    """Map each distinct lane to its 1-based rank, e.g. {3, 6} -> {3: 1, 6: 2}."""
    return {lane: rank for rank, lane in enumerate(sorted(set(lanes)), start=1)}


def compact_lanes(sessions: Sequence[SessionPayload]) -> list[SessionPayload]:
    """Renumber the lanes of one weekday's sessions to 1..k.

    Sessions that shared a lane still share one and lane order is kept.
    Sessions whose lane does not change are returned as-is.
    """
    ranks = lane_ranks(session.lane for session in sessions)
    return [
        session if ranks[session.lane] == session.lane else session.model_copy(update={"lane": ranks[session.lane]})
        for session in sessions
    ]


def compact_weekday(sessions: Sequence[SessionPayload], weekday: int) -> list[SessionPayload]:
    """Compact ``weekday`` inside a full collection, leaving other days untouched."""
    compacted = iter(compact_lanes([session for session in sessions if session.weekday == weekday]))
    return [next(compacted) if session.weekday == weekday else session for session in sessions]
