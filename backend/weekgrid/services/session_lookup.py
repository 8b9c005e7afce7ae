from __future__ import annotations

from typing import Iterable

from weekgrid.schemas.session import EnrollmentPayload, SessionPayload, SubjectPayload

UNKNOWN_SUBJECT = "unknown"


class SubjectLookup:
    """Resolves a session's subject names for diagnostics only."""

    def __init__(self, enrollments: Iterable[EnrollmentPayload], subjects: Iterable[SubjectPayload]) -> None:
        self.enrollment_map = {enrollment.id: enrollment for enrollment in enrollments}
        self.subject_map = {subject.id: subject for subject in subjects}

    def subject_names(self, session: SessionPayload) -> list[str]:
        names: list[str] = []
        for enrollment_id in session.enrollmentIds:
            enrollment = self.enrollment_map.get(enrollment_id)
            if enrollment is None:
                continue
            subject = self.subject_map.get(enrollment.subjectId)
            if subject is not None and subject.name not in names:
                names.append(subject.name)
        return names

    def describe(self, session: SessionPayload) -> str:
        return ", ".join(self.subject_names(session)) or UNKNOWN_SUBJECT
