from pydantic import BaseModel
from typing import Literal, List

class ConflictDetail(BaseModel):
    id: str
    conflict_type: Literal["lane_overlap", "lane_gap"]
    description: str
    severity: Literal["hard", "soft"]
    weekday: int
    affected_sessions: List[str]  # Session IDs involved

class ResolutionAction(BaseModel):
    action_type: Literal["reposition_session", "compact_lanes"]
    description: str
    target_session_id: str | None = None
    parameters: dict  # e.g. {"weekday": 0, "lane": 2}

class ConflictReport(BaseModel):
    conflicts: List[ConflictDetail]
    suggested_resolutions: List[ResolutionAction]
