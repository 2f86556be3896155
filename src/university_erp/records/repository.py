from __future__ import annotations

from decimal import Decimal
from typing import Optional, Protocol, Sequence, Tuple

from ..core.enums import AcademicStanding
from .model import RecordStatistics, StudentAcademicRecord


class AcademicRecordRepository(Protocol):
    def get_by_id(self, record_id: int) -> Optional[StudentAcademicRecord]:
        raise NotImplementedError

    def list_for_student(self, student_id: int) -> Sequence[StudentAcademicRecord]:
        """Newest first."""

        raise NotImplementedError

    def get_current_for_student(self, student_id: int) -> Optional[StudentAcademicRecord]:
        raise NotImplementedError

    def find(self, *, student_id: int, program_id: int, semester_id: int) -> Optional[StudentAcademicRecord]:
        raise NotImplementedError

    def create(self, record: StudentAcademicRecord) -> int:
        """Insert; record.record_id is ignored."""

        raise NotImplementedError

    def save(self, record: StudentAcademicRecord) -> bool:
        raise NotImplementedError

    def list_by_standing(
        self, standing: AcademicStanding, *, offset: int, limit: int
    ) -> Tuple[Sequence[StudentAcademicRecord], int]:
        raise NotImplementedError

    def list_by_program_and_semester(
        self, *, program_id: int, semester_id: int, offset: int, limit: int
    ) -> Tuple[Sequence[StudentAcademicRecord], int]:
        raise NotImplementedError

    def list_eligible_for_graduation(self) -> Sequence[StudentAcademicRecord]:
        raise NotImplementedError

    def statistics(self, program_id: int) -> RecordStatistics:
        raise NotImplementedError

    def standing_distribution(self) -> dict[AcademicStanding, int]:
        """Counts over each student's current record."""

        raise NotImplementedError

    def average_cumulative_gpa(self) -> Optional[Decimal]:
        """Mean cumulative GPA over each student's current record, None when there are no records."""

        raise NotImplementedError
