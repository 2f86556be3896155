from __future__ import annotations

import logging
from dataclasses import asdict
from datetime import date, time
from typing import Any, Mapping, Optional

from ..common.datetime_utils import parse_hhmm, parse_optional_date
from ..common.pagination import Page, PageRequest
from ..common.validators import (
    optional_text,
    require_decimal,
    require_enum,
    require_int_range,
    require_non_empty,
)
from ..core.constants import DEFAULT_COURSE_FEE, DEFAULT_PASSING_GRADE, MAX_COURSE_CREDITS, MIN_COURSE_CREDITS
from ..core.enums import CourseStatus, Role
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..registrations.grading import GradeScale, LetterGradeScale
from ..users.repository import UserRepository
from .model import Course, CourseData, CourseFilter, Prerequisite
from .repository import CourseRepository
from .schedule import normalize_days

logger = logging.getLogger(__name__)

COURSE_FIELDS = tuple(CourseData.__dataclass_fields__)


def _as_time(value: Any, field_name: str) -> Optional[time]:
    if value is None or isinstance(value, time):
        return value
    return parse_hhmm(str(value), field_name)


def _as_date(value: Any, field_name: str) -> Optional[date]:
    if value is None or isinstance(value, date):
        return value
    return parse_optional_date(str(value), field_name)


class CourseService:
    """Use case: course catalog management."""

    def __init__(
        self,
        courses: CourseRepository,
        users: UserRepository,
        *,
        grade_scale: Optional[GradeScale] = None,
    ):
        self._courses = courses
        self._users = users
        self._grades = grade_scale or LetterGradeScale()

    def get_course(self, course_id: int) -> Course:
        course = self._courses.get_by_id(int(course_id))
        if not course:
            raise NotFoundError("Course not found")
        return course

    def get_by_code(self, code: str) -> Course:
        course = self._courses.get_by_code(require_non_empty(code, "Course code").upper())
        if not course:
            raise NotFoundError("Course not found")
        return course

    def _build_data(self, values: Mapping[str, Any]) -> CourseData:
        credits = require_int_range(values.get("credits"), "Credits", minimum=MIN_COURSE_CREDITS, maximum=MAX_COURSE_CREDITS)
        max_students = require_int_range(values.get("max_students"), "Max students", minimum=1)

        fee = values.get("course_fee")
        course_fee = DEFAULT_COURSE_FEE if fee in (None, "") else require_decimal(fee, "Course fee")
        if course_fee < 0:
            raise ValidationError("Course fee cannot be negative")

        instructor_id = values.get("instructor_id")
        if instructor_id not in (None, ""):
            instructor = self._users.get_by_id(int(instructor_id))
            if not instructor:
                raise NotFoundError("Instructor not found")
            if instructor.role != Role.INSTRUCTOR:
                raise ValidationError("Assigned user is not an instructor")
            instructor_id = instructor.user_id
        else:
            instructor_id = None

        start_time = _as_time(values.get("start_time"), "Start time")
        end_time = _as_time(values.get("end_time"), "End time")
        if (start_time is None) != (end_time is None):
            raise ValidationError("Start time and end time must be given together")
        if start_time and end_time and end_time <= start_time:
            raise ValidationError("End time must be after start time")

        days = normalize_days(values.get("days_of_week"))
        if days and not start_time:
            raise ValidationError("Meeting days require start and end times")

        start_date = _as_date(values.get("start_date"), "Start date")
        end_date = _as_date(values.get("end_date"), "End date")
        if start_date and end_date and end_date < start_date:
            raise ValidationError("End date must not be before start date")

        passing_grade = self._grades.normalize(values.get("passing_grade") or DEFAULT_PASSING_GRADE)
        if self._grades.points(passing_grade) is None or not self._grades.is_passing(passing_grade):
            raise ValidationError("Passing grade must be a passing letter grade")

        return CourseData(
            code=require_non_empty(values.get("code"), "Course code").upper(),
            title=require_non_empty(values.get("title"), "Course title"),
            description=optional_text(values.get("description")),
            department=optional_text(values.get("department")),
            course_level=optional_text(values.get("course_level")),
            instructor_id=instructor_id,
            credits=credits,
            max_students=max_students,
            course_fee=course_fee,
            days_of_week=days,
            start_time=start_time,
            end_time=end_time,
            start_date=start_date,
            end_date=end_date,
            classroom=optional_text(values.get("classroom")),
            passing_grade=passing_grade,
        )

    def create_course(self, values: Mapping[str, Any]) -> Course:
        data = self._build_data(values)
        if self._courses.get_by_code(data.code):
            raise ConflictError(f"Course code {data.code} already exists")

        status = CourseStatus.DRAFT
        if values.get("status"):
            status = require_enum(CourseStatus, values["status"], "Status")

        course_id = self._courses.create(data, status=status)
        logger.info("Created course %s (id=%s)", data.code, course_id)
        return self.get_course(course_id)

    def update_course(self, course_id: int, changes: Mapping[str, Any]) -> Course:
        course = self.get_course(course_id)
        current = {name: getattr(course, name) for name in COURSE_FIELDS}
        current.update({k: v for k, v in changes.items() if k in COURSE_FIELDS})
        data = self._build_data(current)

        if data.code != course.code:
            other = self._courses.get_by_code(data.code)
            if other and other.course_id != course.course_id:
                raise ConflictError(f"Course code {data.code} already exists")
        if data.max_students < course.enrolled_count:
            raise ValidationError("Max students cannot be below the current enrollment")

        self._courses.update(course.course_id, data)
        if changes.get("status"):
            self._courses.update_status(course.course_id, require_enum(CourseStatus, changes["status"], "Status"))
        logger.info("Updated course %s", data.code)
        return self.get_course(course.course_id)

    def change_status(self, course_id: int, status: CourseStatus) -> Course:
        course = self.get_course(course_id)
        self._courses.update_status(course.course_id, status)
        logger.info("Course %s status %s -> %s", course.code, course.status.value, status.value)
        return self.get_course(course.course_id)

    def delete_course(self, course_id: int) -> None:
        course = self.get_course(course_id)
        if self._courses.count_enrolled(course.course_id) > 0:
            raise ConflictError("Cannot delete a course with enrolled students")
        self._courses.delete_by_id(course.course_id)
        logger.info("Deleted course %s", course.code)

    def list_courses(self, criteria: CourseFilter, page_request: PageRequest) -> Page[Course]:
        if (
            criteria.credits_min is not None
            and criteria.credits_max is not None
            and criteria.credits_min > criteria.credits_max
        ):
            raise ValidationError("credits_min must not exceed credits_max")
        items, total = self._courses.search(criteria, offset=page_request.offset, limit=page_request.limit)
        return Page(items=list(items), page=page_request.page, size=page_request.size, total=total)

    def list_available(self) -> list[Course]:
        return [c for c in self._courses.list_open() if not c.is_full]

    def list_by_instructor(self, instructor_id: int) -> list[Course]:
        return list(self._courses.list_by_instructor(int(instructor_id)))

    def list_prerequisites(self, course_id: int) -> list[Prerequisite]:
        course = self.get_course(course_id)
        return list(self._courses.list_prerequisites(course.course_id))

    def add_prerequisite(
        self,
        course_id: int,
        prerequisite_course_id: int,
        *,
        minimum_grade: Optional[str] = None,
    ) -> list[Prerequisite]:
        course = self.get_course(course_id)
        prereq = self.get_course(prerequisite_course_id)
        if course.course_id == prereq.course_id:
            raise ValidationError("A course cannot be its own prerequisite")
        existing = self._courses.list_prerequisites(course.course_id)
        if any(p.prerequisite_course_id == prereq.course_id for p in existing):
            raise ConflictError(f"{prereq.code} is already a prerequisite of {course.code}")
        if any(p.prerequisite_course_id == course.course_id for p in self._courses.list_prerequisites(prereq.course_id)):
            raise ValidationError("Prerequisites cannot be circular")

        grade = None
        if minimum_grade:
            grade = self._grades.normalize(minimum_grade)
            if self._grades.points(grade) is None:
                raise ValidationError("Minimum grade must be a letter grade")

        self._courses.add_prerequisite(
            course_id=course.course_id,
            prerequisite_course_id=prereq.course_id,
            minimum_grade=grade,
        )
        logger.info("Added prerequisite %s -> %s", prereq.code, course.code)
        return list(self._courses.list_prerequisites(course.course_id))

    def remove_prerequisite(self, course_id: int, prerequisite_course_id: int) -> None:
        course = self.get_course(course_id)
        if not self._courses.remove_prerequisite(
            course_id=course.course_id, prerequisite_course_id=int(prerequisite_course_id)
        ):
            raise NotFoundError("Prerequisite not found")


def course_snapshot(course: Course) -> dict:
    """Course dict plus derived availability flags, for API responses."""
    out = asdict(course)
    out["is_full"] = course.is_full
    out["available_seats"] = max(course.max_students - course.enrolled_count, 0)
    return out
