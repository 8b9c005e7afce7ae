from __future__ import annotations

from pydantic import BaseModel, Field, field_validator, model_validator

from weekgrid.services.intervals import TIME_PATTERN, Interval, parse_time_to_minutes

WEEKDAY_LABELS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


def validate_time_value(value: str) -> str:
    value = value.strip()
    if not TIME_PATTERN.match(value):
        raise ValueError("Time must be in HH:MM 24-hour format")
    return value


class SubjectPayload(BaseModel):
    id: str = Field(min_length=1, max_length=64)
    name: str = Field(min_length=1, max_length=200)
    color: str | None = Field(default=None, max_length=32)


class EnrollmentPayload(BaseModel):
    id: str = Field(min_length=1, max_length=64)
    studentId: str = Field(min_length=1, max_length=64)
    subjectId: str = Field(min_length=1, max_length=64)


class SessionPayload(BaseModel):
    """One recurring weekly class session placed on the grid.

    ``weekday`` counts from Monday (0) to Sunday (6). ``lane`` is the 1-based
    vertical slot within the weekday and travels on the wire as ``yPosition``.
    ``enrollmentIds`` and ``room`` are carried through the engine untouched.
    """

    id: str = Field(min_length=1, max_length=64)
    weekday: int = Field(ge=0, le=6)
    startsAt: str
    endsAt: str
    lane: int = Field(default=1, alias="yPosition", ge=1)
    enrollmentIds: list[str] = Field(default_factory=list)
    room: str | None = Field(default=None, max_length=100)

    model_config = {
        "populate_by_name": True,
        "frozen": True,
    }

    @field_validator("lane", mode="before")
    @classmethod
    def default_missing_lane(cls, value: int | None) -> int:
        # Unset or zero lanes render in the first lane.
        return value or 1

    @field_validator("startsAt", "endsAt")
    @classmethod
    def validate_time_format(cls, value: str) -> str:
        return validate_time_value(value)

    @model_validator(mode="after")
    def validate_time_order(self) -> "SessionPayload":
        start = parse_time_to_minutes(self.startsAt)
        end = parse_time_to_minutes(self.endsAt)
        if end <= start:
            raise ValueError("End time must be after start time")
        return self

    @property
    def interval(self) -> Interval:
        return Interval.from_times(self.startsAt, self.endsAt)

    @property
    def weekday_label(self) -> str:
        return WEEKDAY_LABELS[self.weekday]
