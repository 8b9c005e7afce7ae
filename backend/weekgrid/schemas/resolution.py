from weekgrid.schemas.conflict import ResolutionAction
from weekgrid.schemas.schedule import ScheduleSnapshot
from pydantic import BaseModel

class ResolveConflictRequest(BaseModel):
    snapshot: ScheduleSnapshot
    action: ResolutionAction
