from __future__ import annotations

from dataclasses import dataclass
from datetime import date, time
from decimal import Decimal
from typing import Optional

from ..core.enums import CourseStatus


@dataclass(frozen=True)
class CourseData:
    """Editable course fields, as accepted by create/update."""

    code: str
    title: str
    description: Optional[str]
    department: Optional[str]
    course_level: Optional[str]
    instructor_id: Optional[int]
    credits: int
    max_students: int
    course_fee: Decimal
    days_of_week: Optional[str]
    start_time: Optional[time]
    end_time: Optional[time]
    start_date: Optional[date]
    end_date: Optional[date]
    classroom: Optional[str]
    passing_grade: str


@dataclass(frozen=True)
class Course:
    course_id: int
    code: str
    title: str
    credits: int
    max_students: int
    course_fee: Decimal
    status: CourseStatus
    passing_grade: str = "D"
    description: Optional[str] = None
    department: Optional[str] = None
    course_level: Optional[str] = None
    instructor_id: Optional[int] = None
    instructor_name: Optional[str] = None
    days_of_week: Optional[str] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    classroom: Optional[str] = None
    enrolled_count: int = 0

    @property
    def is_full(self) -> bool:
        return self.enrolled_count >= self.max_students

    @property
    def is_open(self) -> bool:
        return self.status in (CourseStatus.PUBLISHED, CourseStatus.ACTIVE)


@dataclass(frozen=True)
class Prerequisite:
    course_id: int
    prerequisite_course_id: int
    prerequisite_code: str
    minimum_grade: Optional[str] = None


@dataclass(frozen=True)
class CourseFilter:
    title: Optional[str] = None
    code: Optional[str] = None
    department: Optional[str] = None
    course_level: Optional[str] = None
    status: Optional[CourseStatus] = None
    credits_min: Optional[int] = None
    credits_max: Optional[int] = None
    instructor_id: Optional[int] = None
    instructor_name: Optional[str] = None
