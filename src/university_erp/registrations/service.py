from __future__ import annotations

import logging
from decimal import Decimal
from typing import Optional

from ..common.datetime_utils import now_local
from ..common.pagination import Page, PageRequest
from ..core.constants import MAX_CREDITS_PER_SEMESTER
from ..core.enums import FeePaymentStatus, RegistrationStatus, Role
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..courses.model import Course
from ..courses.repository import CourseRepository
from ..courses.schedule import schedules_overlap
from ..programs.repository import ProgramRepository
from ..records.progress import ProgressCalculator
from ..users.repository import UserRepository
from .grading import GradeScale, LetterGradeScale
from .model import Registration
from .repository import RegistrationRepository

logger = logging.getLogger(__name__)


class RegistrationService:
    """Use case: course enrollment, drops and grading."""

    def __init__(
        self,
        registrations: RegistrationRepository,
        courses: CourseRepository,
        users: UserRepository,
        programs: ProgramRepository,
        *,
        grade_scale: Optional[GradeScale] = None,
        max_credits_per_semester: int = MAX_CREDITS_PER_SEMESTER,
    ):
        self._registrations = registrations
        self._courses = courses
        self._users = users
        self._programs = programs
        self._grades = grade_scale or LetterGradeScale()
        self._max_credits = max_credits_per_semester

    @property
    def grade_scale(self) -> GradeScale:
        return self._grades

    def get_registration(self, registration_id: int) -> Registration:
        reg = self._registrations.get_by_id(int(registration_id))
        if not reg:
            raise NotFoundError("Registration not found")
        return reg

    def _require_student(self, user_id: int):
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("Student not found")
        if user.role != Role.STUDENT:
            raise ValidationError("Only students can register for courses")
        if not user.is_active:
            raise ValidationError("Student account is inactive")
        return user

    def _require_course(self, course_id: int) -> Course:
        course = self._courses.get_by_id(int(course_id))
        if not course:
            raise NotFoundError("Course not found")
        return course

    def _check_prerequisites(self, course: Course, history: list[Registration]) -> None:
        for prereq in self._courses.list_prerequisites(course.course_id):
            passed = any(
                r.course_id == prereq.prerequisite_course_id
                and self._grades.meets_minimum(r.grade, prereq.minimum_grade)
                for r in history
            )
            if not passed:
                minimum = f" with at least {prereq.minimum_grade}" if prereq.minimum_grade else ""
                raise ValidationError(f"Prerequisite {prereq.prerequisite_code}{minimum} not met for {course.code}")

    def _check_schedule_and_load(
        self, course: Course, history: list[Registration], semester_id: Optional[int]
    ) -> None:
        current = [
            r
            for r in history
            if r.status == RegistrationStatus.ENROLLED
            and r.semester_id == semester_id
            and r.course_id != course.course_id
        ]
        for reg in current:
            if schedules_overlap(course, reg):
                raise ConflictError(f"Schedule conflict between {course.code} and {reg.course_code}")

        load = sum(r.credits for r in current) + course.credits
        if load > self._max_credits:
            raise ValidationError(
                f"Enrolling in {course.code} would exceed the {self._max_credits} credit limit ({load} credits)"
            )

    def enroll(self, user_id: int, course_id: int, *, semester_id: Optional[int] = None) -> Registration:
        student = self._require_student(user_id)
        course = self._require_course(course_id)
        if not course.is_open:
            raise ValidationError(f"Course {course.code} is not open for enrollment")

        if semester_id is None:
            current = self._programs.get_current_semester()
            semester_id = current.semester_id if current else None
        elif not self._programs.get_semester(int(semester_id)):
            raise NotFoundError("Semester not found")

        existing = list(self._registrations.list_for_user_and_course(user_id=student.user_id, course_id=course.course_id))
        if any(r.is_active for r in existing):
            raise ConflictError(f"Student is already registered for {course.code}")
        if any(r.status == RegistrationStatus.COMPLETED and self._grades.is_passing(r.grade) for r in existing):
            raise ConflictError(f"Student has already completed {course.code}")

        if self._courses.count_enrolled(course.course_id) >= course.max_students:
            raise ConflictError(f"Course {course.code} is full")

        history = list(self._registrations.list_for_user(student.user_id))
        self._check_prerequisites(course, history)
        self._check_schedule_and_load(course, history, semester_id)

        now = now_local()
        reusable = next(
            (r for r in existing if r.status in (RegistrationStatus.DROPPED, RegistrationStatus.WITHDRAWN)),
            None,
        )
        if reusable:
            self._registrations.reactivate(
                reusable.registration_id, semester_id=semester_id, course_fee=course.course_fee, registered_at=now
            )
            registration_id = reusable.registration_id
        else:
            registration_id = self._registrations.create(
                user_id=student.user_id,
                course_id=course.course_id,
                semester_id=semester_id,
                course_fee=course.course_fee,
                registered_at=now,
            )

        logger.info("Enrolled user %s in %s (registration %s)", student.user_id, course.code, registration_id)
        return self.get_registration(registration_id)

    def drop(self, user_id: int, course_id: int) -> Registration:
        active = [
            r
            for r in self._registrations.list_for_user_and_course(user_id=int(user_id), course_id=int(course_id))
            if r.is_active
        ]
        if not active:
            raise NotFoundError("No active registration for this course")
        reg = active[0]
        self._registrations.update_status(reg.registration_id, RegistrationStatus.DROPPED)
        if reg.payment_status == FeePaymentStatus.PENDING:
            self._registrations.update_payment_status([reg.registration_id], FeePaymentStatus.CANCELLED)
        logger.info("User %s dropped %s", user_id, reg.course_code)
        return self.get_registration(reg.registration_id)

    def update_grade(
        self,
        registration_id: int,
        grade: str,
        *,
        current_role: Optional[Role] = None,
        current_user_id: Optional[int] = None,
    ) -> Registration:
        reg = self.get_registration(registration_id)
        if current_role == Role.INSTRUCTOR:
            course = self._require_course(reg.course_id)
            if course.instructor_id != current_user_id:
                raise AuthorizationError("Instructors can only grade their own courses")
        if not grade or not grade.strip():
            raise ValidationError("Grade is required")
        normalized = self._grades.normalize(grade)
        if not self._grades.is_valid(normalized):
            raise ValidationError(f"Invalid grade: {grade}")
        if reg.status in (RegistrationStatus.DROPPED, RegistrationStatus.TRANSFERRED):
            raise ValidationError("Cannot grade a dropped or transferred registration")

        if normalized == "WITHDRAW":
            status = RegistrationStatus.WITHDRAWN
        elif normalized == "INCOMPLETE":
            status = RegistrationStatus.ENROLLED
        elif self._grades.is_failing(normalized):
            status = RegistrationStatus.FAILED
        else:
            status = RegistrationStatus.COMPLETED

        self._registrations.update_grade(
            reg.registration_id,
            grade=normalized,
            grade_points=self._grades.points(normalized),
            status=status,
            completed_at=now_local() if status != RegistrationStatus.ENROLLED else None,
        )
        logger.info("Graded registration %s (%s): %s", reg.registration_id, reg.course_code, normalized)
        return self.get_registration(reg.registration_id)

    def update_status(self, registration_id: int, status: RegistrationStatus) -> Registration:
        reg = self.get_registration(registration_id)
        completed_at = now_local() if status == RegistrationStatus.COMPLETED else None
        self._registrations.update_status(reg.registration_id, status, completed_at=completed_at)
        logger.info("Registration %s status %s -> %s", reg.registration_id, reg.status.value, status.value)
        return self.get_registration(reg.registration_id)

    def mark_paid(self, registration_ids: list[int]) -> int:
        return self._registrations.update_payment_status(registration_ids, FeePaymentStatus.PAID)

    def delete_registration(self, registration_id: int) -> None:
        reg = self.get_registration(registration_id)
        self._registrations.delete_by_id(reg.registration_id)
        logger.info("Deleted registration %s", reg.registration_id)

    def list_for_user(self, user_id: int) -> list[Registration]:
        return list(self._registrations.list_for_user(int(user_id)))

    def list_for_course(self, course_id: int, *, current_role: Role, current_user_id: int) -> list[Registration]:
        course = self._require_course(course_id)
        if current_role == Role.INSTRUCTOR and course.instructor_id != int(current_user_id):
            raise AuthorizationError("Instructors can only view rosters of their own courses")
        return list(self._registrations.list_for_course(course.course_id))

    def list_by_status(self, status: RegistrationStatus, page_request: PageRequest) -> Page[Registration]:
        items, total = self._registrations.list_by_status(
            status, offset=page_request.offset, limit=page_request.limit
        )
        return Page(items=list(items), page=page_request.page, size=page_request.size, total=total)

    def calculate_gpa(self, user_id: int) -> Decimal:
        return ProgressCalculator(self._grades).calculate_gpa(self._registrations.list_for_user(int(user_id)))
