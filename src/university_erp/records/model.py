from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from ..core.enums import AcademicStanding, ClassLevel, EnrollmentStatus


@dataclass(frozen=True)
class StudentAcademicRecord:
    record_id: int
    student_id: int
    program_id: int
    semester_id: int
    enrollment_status: EnrollmentStatus
    class_level: ClassLevel
    academic_standing: AcademicStanding
    cumulative_gpa: Decimal
    semester_gpa: Decimal
    total_credits_attempted: int
    total_credits_earned: int
    record_date: datetime
    expected_graduation_date: Optional[date] = None
    graduation_date: Optional[date] = None
    graduation_eligibility_verified: bool = False
    notes: Optional[str] = None

    student_name: str = ""
    program_name: str = ""
    semester_name: str = ""


@dataclass(frozen=True)
class RecordStatistics:
    program_id: int
    total_students: int
    average_gpa: Decimal
    graduated_count: int


@dataclass(frozen=True)
class GraduationCheck:
    record_id: int
    gpa_met: bool
    credits_met: bool
    standing_met: bool
    credits_required: int
    credits_earned: int
    cumulative_gpa: Decimal

    @property
    def eligible(self) -> bool:
        return self.gpa_met and self.credits_met and self.standing_met
