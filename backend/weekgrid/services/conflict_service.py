from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from weekgrid.schemas.conflict import ConflictDetail, ConflictReport, ResolutionAction
from weekgrid.schemas.session import EnrollmentPayload, SessionPayload, SubjectPayload
from weekgrid.services.intervals import Interval, overlaps
from weekgrid.services.session_lookup import SubjectLookup


def find_colliding_sessions(
    sessions: Iterable[SessionPayload],
    weekday: int,
    interval: Interval,
    exclude_session_id: Optional[str] = None,
) -> List[SessionPayload]:
    """Sessions on ``weekday`` overlapping ``interval`` in any lane."""
    return [
        session
        for session in sessions
        if session.weekday == weekday
        and session.id != exclude_session_id
        and overlaps(interval, session.interval)
    ]


class LaneConflictService:
    def __init__(
        self,
        sessions: Sequence[SessionPayload],
        enrollments: Sequence[EnrollmentPayload] = (),
        subjects: Sequence[SubjectPayload] = (),
    ):
        self.sessions = list(sessions)
        self.lookup = SubjectLookup(enrollments, subjects)
        self.session_map: Dict[str, SessionPayload] = {session.id: session for session in self.sessions}

    def detect_conflicts(self) -> ConflictReport:
        conflicts: List[ConflictDetail] = []

        # Bucket by (weekday, lane); only lane-mates can conflict
        sessions_by_lane: Dict[Tuple[int, int], List[SessionPayload]] = defaultdict(list)
        for session in self.sessions:
            sessions_by_lane[(session.weekday, session.lane)].append(session)

        for (weekday, lane), lane_sessions in sorted(sessions_by_lane.items()):
            n = len(lane_sessions)
            for i in range(n):
                s1 = lane_sessions[i]
                for j in range(i + 1, n):
                    s2 = lane_sessions[j]
                    if overlaps(s1.interval, s2.interval):
                        conflicts.append(ConflictDetail(
                            id=f"lane-{s1.id}-{s2.id}",
                            conflict_type="lane_overlap",
                            description=(
                                f"Lane {lane} overlap on {s1.weekday_label}: "
                                f"{self.lookup.describe(s1)} ({s1.startsAt}-{s1.endsAt}) and "
                                f"{self.lookup.describe(s2)} ({s2.startsAt}-{s2.endsAt})"
                            ),
                            severity="hard",
                            weekday=weekday,
                            affected_sessions=[s1.id, s2.id],
                        ))

        lanes_by_weekday: Dict[int, set] = defaultdict(set)
        for weekday, lane in sessions_by_lane:
            lanes_by_weekday[weekday].add(lane)

        for weekday, lanes in sorted(lanes_by_weekday.items()):
            used = sorted(lanes)
            if used != list(range(1, len(used) + 1)):
                conflicts.append(ConflictDetail(
                    id=f"gap-{weekday}",
                    conflict_type="lane_gap",
                    description=f"Lanes on weekday {weekday} are not contiguous: {used}",
                    severity="soft",
                    weekday=weekday,
                    affected_sessions=[s.id for s in self.sessions if s.weekday == weekday],
                ))

        return ConflictReport(conflicts=conflicts, suggested_resolutions=[])

    def generate_resolutions(self, conflict: ConflictDetail) -> List[ResolutionAction]:
        resolutions = []
        if conflict.conflict_type == "lane_overlap":
            # Re-anchoring the later session in place pushes its lane-mate down
            session = self.session_map.get(conflict.affected_sessions[-1])
            if session is not None:
                resolutions.append(ResolutionAction(
                    action_type="reposition_session",
                    description="Keep this session in its lane and push overlapping lane-mates down",
                    target_session_id=session.id,
                    parameters={
                        "weekday": session.weekday,
                        "startsAt": session.startsAt,
                        "endsAt": session.endsAt,
                        "lane": session.lane,
                    },
                ))

        if conflict.conflict_type == "lane_gap":
            resolutions.append(ResolutionAction(
                action_type="compact_lanes",
                description="Renumber lanes to remove unused gaps",
                parameters={"weekday": conflict.weekday},
            ))

        return resolutions
