from __future__ import annotations

from typing import Sequence

from weekgrid.core.config import DEFAULT_CASCADE_MAX_ROUNDS
from weekgrid.schemas.session import EnrollmentPayload, SessionPayload, SubjectPayload
from weekgrid.services.cascade import CascadeResolver, TraceHook
from weekgrid.services.compaction import compact_lanes
from weekgrid.services.intervals import Interval
from weekgrid.services.lane_index import WeekdayLaneIndex
from weekgrid.services.session_lookup import SubjectLookup


def reposition(
    sessions: Sequence[SessionPayload],
    enrollments: Sequence[EnrollmentPayload],
    subjects: Sequence[SubjectPayload],
    target_weekday: int,
    target_start: int,
    target_end: int,
    target_lane: int,
    moving_session_id: str,
    *,
    new_session: SessionPayload | None = None,
    max_rounds: int = DEFAULT_CASCADE_MAX_ROUNDS,
    trace: TraceHook | None = None,
) -> list[SessionPayload]:
    """Move, resize or insert one session and return the corrected collection.

    ``target_start``/``target_end`` are minutes from midnight. A session that is
    already in ``sessions`` keeps ``target_lane`` and whatever it collides with
    cascades into the lanes below. An identity that is absent is inserted
    (``new_session`` supplies its payload) at the first free lane from
    ``target_lane`` on, displacing nothing.

    The target weekday, and the source weekday of a cross-weekday move, come
    back with compacted lanes. Every other session is returned as the same
    object, in input order; an inserted session is appended. ``enrollments``
    and ``subjects`` only feed the ``trace`` hook.
    """
    target = Interval(target_start, target_end)
    starts_at, ends_at = target.as_times()
    lookup = SubjectLookup(enrollments, subjects) if trace is not None else None

    source = next((session for session in sessions if session.id == moving_session_id), None)
    if trace is not None:
        trace(
            "reposition.start",
            {
                "session_id": moving_session_id,
                "mode": "move" if source is not None else "insert",
                "from_weekday": source.weekday if source is not None else None,
                "weekday": target_weekday,
                "time": f"{starts_at}-{ends_at}",
                "lane": target_lane,
            },
        )

    index = WeekdayLaneIndex.build(sessions, target_weekday)
    resolver = CascadeResolver(
        index,
        max_rounds=max_rounds,
        trace=trace,
        describe=lookup.describe if lookup is not None else None,
    )
    placement = {"weekday": target_weekday, "startsAt": starts_at, "endsAt": ends_at, "lane": target_lane}
    if source is not None:
        moved = source.model_copy(update=placement)
        result = resolver.resolve(moved, target_lane)
    else:
        template = new_session or SessionPayload(id=moving_session_id, **placement)
        moved = template.model_copy(update=placement)
        result = resolver.insert(moved, target_lane)
    if result.final_lane != moved.lane:
        moved = moved.model_copy(update={"lane": result.final_lane})

    lanes = index.placements()
    target_day = [
        _with_lane(session, lanes[session.id])
        for session in sessions
        if session.weekday == target_weekday and session.id != moving_session_id
    ]
    target_day.append(moved)
    updated = {session.id: session for session in compact_lanes(target_day)}
    affected_weekdays = {target_weekday}

    if source is not None and source.weekday != target_weekday:
        source_day = [
            session for session in sessions if session.weekday == source.weekday and session.id != moving_session_id
        ]
        updated.update((session.id, session) for session in compact_lanes(source_day))
        affected_weekdays.add(source.weekday)

    final_sessions: list[SessionPayload] = []
    placed_moving = False
    for session in sessions:
        if session.id == moving_session_id:
            if not placed_moving:
                final_sessions.append(updated[moving_session_id])
                placed_moving = True
        elif session.weekday in affected_weekdays:
            final_sessions.append(updated[session.id])
        else:
            final_sessions.append(session)
    if not placed_moving:
        final_sessions.append(updated[moving_session_id])

    if trace is not None:
        trace(
            "reposition.done",
            {
                "session_id": moving_session_id,
                "lane": updated[moving_session_id].lane,
                "rounds": result.rounds,
                "displaced": ",".join(result.displaced),
                "round_limit": result.hit_round_limit,
            },
        )
    return final_sessions


def _with_lane(session: SessionPayload, lane: int) -> SessionPayload:
    return session if session.lane == lane else session.model_copy(update={"lane": lane})
