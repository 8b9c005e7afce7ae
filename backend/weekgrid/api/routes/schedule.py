import logging
from collections import Counter
from typing import List

from fastapi import APIRouter, Depends

from weekgrid.core.config import Settings, get_settings
from weekgrid.core.exceptions import ResourceNotFoundError, ScheduleValidationError
from weekgrid.core.logging_config import logging_trace_hook
from weekgrid.schemas.conflict import ConflictReport
from weekgrid.schemas.resolution import ResolveConflictRequest
from weekgrid.schemas.schedule import CollisionQuery, RepositionRequest, RepositionResponse, ScheduleSnapshot
from weekgrid.schemas.session import SessionPayload
from weekgrid.services.compaction import compact_weekday
from weekgrid.services.conflict_service import LaneConflictService, find_colliding_sessions
from weekgrid.services.intervals import Interval
from weekgrid.services.reposition import reposition

logger = logging.getLogger(__name__)

router = APIRouter()


def ensure_unique_session_ids(sessions: List[SessionPayload]) -> None:
    counts = Counter(session.id for session in sessions)
    duplicates = sorted(session_id for session_id, count in counts.items() if count > 1)
    if duplicates:
        raise ScheduleValidationError(
            f"Duplicate session id(s): {', '.join(duplicates)}",
            details={"duplicate_ids": duplicates},
        )


@router.post("/reposition", response_model=RepositionResponse)
def reposition_session(
    request: RepositionRequest,
    settings: Settings = Depends(get_settings),
):
    ensure_unique_session_ids(request.sessions)
    if not request.insert_if_absent and all(s.id != request.moving_session_id for s in request.sessions):
        raise ResourceNotFoundError("Session", request.moving_session_id)

    interval = request.target_interval
    sessions = reposition(
        request.sessions,
        request.enrollments,
        request.subjects,
        request.target_weekday,
        interval.start,
        interval.end,
        request.target_lane,
        request.moving_session_id,
        new_session=request.session,
        max_rounds=settings.cascade_max_rounds,
        trace=logging_trace_hook,
    )
    logger.info(
        "Repositioned session %s to weekday %s %s-%s (%s sessions)",
        request.moving_session_id,
        request.target_weekday,
        request.target_start,
        request.target_end,
        len(sessions),
    )
    return RepositionResponse(sessions=sessions)


@router.post("/collisions", response_model=List[SessionPayload])
def list_collisions(query: CollisionQuery):
    return find_colliding_sessions(query.sessions, query.weekday, query.interval, query.exclude_session_id)


@router.post("/conflicts", response_model=ConflictReport)
def detect_conflicts(snapshot: ScheduleSnapshot):
    ensure_unique_session_ids(snapshot.sessions)
    service = LaneConflictService(snapshot.sessions, snapshot.enrollments, snapshot.subjects)
    report = service.detect_conflicts()

    # Generate resolutions for each conflict
    for conflict in report.conflicts:
        resolutions = service.generate_resolutions(conflict)
        report.suggested_resolutions.extend(resolutions)

    return report


@router.post("/resolve", response_model=RepositionResponse)
def apply_resolution(
    request: ResolveConflictRequest,
    settings: Settings = Depends(get_settings),
):
    snapshot = request.snapshot
    action = request.action
    ensure_unique_session_ids(snapshot.sessions)

    if action.action_type == "compact_lanes":
        weekday = action.parameters.get("weekday")
        if not isinstance(weekday, int) or not 0 <= weekday <= 6:
            raise ScheduleValidationError("compact_lanes needs a weekday between 0 and 6", details={"weekday": weekday})
        return RepositionResponse(sessions=compact_weekday(snapshot.sessions, weekday))

    # reposition_session: parameters override the target's current placement
    target = next((s for s in snapshot.sessions if s.id == action.target_session_id), None)
    if target is None:
        raise ResourceNotFoundError("Session", str(action.target_session_id))

    params = action.parameters
    weekday = params.get("weekday", target.weekday)
    lane = params.get("lane", target.lane)
    try:
        interval = Interval.from_times(params.get("startsAt", target.startsAt), params.get("endsAt", target.endsAt))
    except (TypeError, ValueError) as exc:
        raise ScheduleValidationError("Resolution times must be in HH:MM 24-hour format") from exc
    if not isinstance(weekday, int) or not 0 <= weekday <= 6 or not isinstance(lane, int) or lane < 1:
        raise ScheduleValidationError(
            "Resolution needs a weekday between 0 and 6 and a lane of at least 1",
            details={"weekday": weekday, "lane": lane},
        )
    if interval.end <= interval.start:
        raise ScheduleValidationError("Resolution end time must be after start time")

    sessions = reposition(
        snapshot.sessions,
        snapshot.enrollments,
        snapshot.subjects,
        weekday,
        interval.start,
        interval.end,
        lane,
        target.id,
        max_rounds=settings.cascade_max_rounds,
        trace=logging_trace_hook,
    )
    logger.info("Applied %s to session %s", action.action_type, target.id)
    return RepositionResponse(sessions=sessions)
