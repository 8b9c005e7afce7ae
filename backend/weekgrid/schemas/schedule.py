from __future__ import annotations

from pydantic import BaseModel, Field, field_validator, model_validator

from weekgrid.schemas.session import EnrollmentPayload, SessionPayload, SubjectPayload, validate_time_value
from weekgrid.services.intervals import Interval, parse_time_to_minutes


class ScheduleSnapshot(BaseModel):
    sessions: list[SessionPayload] = Field(default_factory=list)
    enrollments: list[EnrollmentPayload] = Field(default_factory=list)
    subjects: list[SubjectPayload] = Field(default_factory=list)


class RepositionRequest(ScheduleSnapshot):
    target_weekday: int = Field(alias="targetWeekday", ge=0, le=6)
    target_start: str = Field(alias="targetStart")
    target_end: str = Field(alias="targetEnd")
    target_lane: int = Field(default=1, alias="targetLane", ge=1)
    moving_session_id: str = Field(alias="movingSessionId", min_length=1, max_length=64)
    # Full record for a session that is not in the snapshot yet.
    session: SessionPayload | None = None
    insert_if_absent: bool = Field(default=True, alias="insertIfAbsent")

    model_config = {
        "populate_by_name": True,
    }

    @field_validator("target_start", "target_end")
    @classmethod
    def validate_time_format(cls, value: str) -> str:
        return validate_time_value(value)

    @model_validator(mode="after")
    def validate_request(self) -> "RepositionRequest":
        if parse_time_to_minutes(self.target_end) <= parse_time_to_minutes(self.target_start):
            raise ValueError("targetEnd must be after targetStart")
        if self.session is not None and self.session.id != self.moving_session_id:
            raise ValueError("session.id must match movingSessionId")
        return self

    @property
    def target_interval(self) -> Interval:
        return Interval.from_times(self.target_start, self.target_end)


class RepositionResponse(BaseModel):
    sessions: list[SessionPayload]


class CollisionQuery(BaseModel):
    sessions: list[SessionPayload] = Field(default_factory=list)
    weekday: int = Field(ge=0, le=6)
    startsAt: str
    endsAt: str
    exclude_session_id: str | None = Field(default=None, alias="excludeSessionId")

    model_config = {
        "populate_by_name": True,
    }

    @field_validator("startsAt", "endsAt")
    @classmethod
    def validate_time_format(cls, value: str) -> str:
        return validate_time_value(value)

    @model_validator(mode="after")
    def validate_time_order(self) -> "CollisionQuery":
        if parse_time_to_minutes(self.endsAt) <= parse_time_to_minutes(self.startsAt):
            raise ValueError("End time must be after start time")
        return self

    @property
    def interval(self) -> Interval:
        return Interval.from_times(self.startsAt, self.endsAt)
