from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time
from decimal import Decimal
from typing import Optional

from ..core.enums import FeePaymentStatus, RegistrationStatus


@dataclass(frozen=True)
class Registration:
    """A student's enrollment in one course.

    The course_* and student_name fields are joined in by the repository so
    GPA and schedule checks never need a second lookup.
    """

    registration_id: int
    user_id: int
    course_id: int
    status: RegistrationStatus
    course_fee: Decimal
    payment_status: FeePaymentStatus
    registered_at: datetime
    semester_id: Optional[int] = None
    grade: Optional[str] = None
    grade_points: Optional[Decimal] = None
    completed_at: Optional[datetime] = None

    course_code: str = ""
    course_title: str = ""
    credits: int = 0
    student_name: str = ""
    instructor_name: Optional[str] = None
    semester_name: Optional[str] = None
    days_of_week: Optional[str] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None

    @property
    def is_active(self) -> bool:
        return self.status in (RegistrationStatus.ENROLLED, RegistrationStatus.PENDING)
