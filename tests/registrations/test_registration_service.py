from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, time
from decimal import Decimal

import pytest

from university_erp.core.enums import CourseStatus, FeePaymentStatus, RegistrationStatus, Role
from university_erp.core.exceptions import AuthorizationError, ConflictError, ValidationError
from university_erp.courses.model import Course, Prerequisite
from university_erp.programs.model import AcademicSemester
from university_erp.registrations.model import Registration
from university_erp.registrations.service import RegistrationService
from university_erp.users.model import User


class FakeUsersRepo:
    def __init__(self, users):
        self._users = {u.user_id: u for u in users}

    def get_by_id(self, user_id):
        return self._users.get(int(user_id))


class FakeCoursesRepo:
    def __init__(self, courses, prerequisites=None):
        self.courses = {c.course_id: c for c in courses}
        self._prereqs = prerequisites or {}

    def get_by_id(self, course_id):
        return self.courses.get(int(course_id))

    def list_prerequisites(self, course_id):
        return self._prereqs.get(int(course_id), [])

    def count_enrolled(self, course_id):
        return self.courses[int(course_id)].enrolled_count


class FakeProgramsRepo:
    def __init__(self, current=None):
        self._current = current

    def get_current_semester(self):
        return self._current

    def get_semester(self, semester_id):
        if self._current and self._current.semester_id == int(semester_id):
            return self._current
        return None


class FakeRegistrationsRepo:
    def __init__(self, courses: FakeCoursesRepo):
        self._courses = courses
        self._next_id = 1
        self.rows: dict[int, Registration] = {}
        self.payment_updates = []

    def add(self, user_id, course_id, status, grade=None):
        rid = self._new(user_id, course_id, None, Decimal("500.00"), datetime(2025, 9, 1))
        self.rows[rid] = replace(self.rows[rid], status=status, grade=grade)
        return rid

    def _new(self, user_id, course_id, semester_id, course_fee, registered_at):
        course = self._courses.get_by_id(course_id)
        rid = self._next_id
        self._next_id += 1
        self.rows[rid] = Registration(
            registration_id=rid,
            user_id=int(user_id),
            course_id=int(course_id),
            status=RegistrationStatus.ENROLLED,
            course_fee=course_fee,
            payment_status=FeePaymentStatus.PENDING,
            registered_at=registered_at,
            semester_id=semester_id,
            course_code=course.code,
            course_title=course.title,
            credits=course.credits,
            days_of_week=course.days_of_week,
            start_time=course.start_time,
            end_time=course.end_time,
        )
        return rid

    def get_by_id(self, registration_id):
        return self.rows.get(int(registration_id))

    def list_for_user_and_course(self, *, user_id, course_id):
        return [r for r in self.rows.values() if r.user_id == user_id and r.course_id == course_id]

    def list_for_user(self, user_id):
        return [r for r in self.rows.values() if r.user_id == int(user_id)]

    def create(self, *, user_id, course_id, semester_id, course_fee, registered_at):
        return self._new(user_id, course_id, semester_id, course_fee, registered_at)

    def reactivate(self, registration_id, *, semester_id, course_fee, registered_at):
        reg = self.rows[registration_id]
        self.rows[registration_id] = replace(
            reg,
            status=RegistrationStatus.ENROLLED,
            semester_id=semester_id,
            course_fee=course_fee,
            registered_at=registered_at,
            grade=None,
            payment_status=FeePaymentStatus.PENDING,
        )
        return True

    def update_status(self, registration_id, status, *, completed_at=None):
        self.rows[registration_id] = replace(self.rows[registration_id], status=status, completed_at=completed_at)
        return True

    def update_grade(self, registration_id, *, grade, grade_points, status, completed_at):
        self.rows[registration_id] = replace(
            self.rows[registration_id], grade=grade, grade_points=grade_points, status=status, completed_at=completed_at
        )
        return True

    def update_payment_status(self, registration_ids, status):
        self.payment_updates.append((list(registration_ids), status))
        for rid in registration_ids:
            self.rows[rid] = replace(self.rows[rid], payment_status=status)
        return len(registration_ids)


STUDENT = User(7, "ada", "ada@uni.edu", "Ada", "Lovelace", "x", Role.STUDENT)
INSTRUCTOR = User(3, "turing", "turing@uni.edu", "Alan", "Turing", "x", Role.INSTRUCTOR)
SEMESTER = AcademicSemester(5, "2026FA", "Fall 2026", date(2026, 8, 31), date(2026, 12, 18), is_current=True)


def _course(course_id, code, *, credits=3, days="MON,WED", start=time(9, 0), end=time(10, 30), **kwargs):
    values = dict(
        course_id=course_id,
        code=code,
        title=f"{code} title",
        credits=credits,
        max_students=30,
        course_fee=Decimal("550.00"),
        status=CourseStatus.PUBLISHED,
        instructor_id=INSTRUCTOR.user_id,
        days_of_week=days,
        start_time=start,
        end_time=end,
    )
    values.update(kwargs)
    return Course(**values)


def _service(courses, prerequisites=None, *, max_credits=21):
    courses_repo = FakeCoursesRepo(courses, prerequisites)
    regs = FakeRegistrationsRepo(courses_repo)
    svc = RegistrationService(
        regs,
        courses_repo,
        FakeUsersRepo([STUDENT, INSTRUCTOR]),
        FakeProgramsRepo(SEMESTER),
        max_credits_per_semester=max_credits,
    )
    return svc, regs


def test_enroll_uses_current_semester_and_course_fee():
    svc, _ = _service([_course(1, "CS101")])

    reg = svc.enroll(STUDENT.user_id, 1)

    assert reg.status == RegistrationStatus.ENROLLED
    assert reg.semester_id == SEMESTER.semester_id
    assert reg.course_fee == Decimal("550.00")


def test_only_students_can_enroll():
    svc, _ = _service([_course(1, "CS101")])
    with pytest.raises(ValidationError):
        svc.enroll(INSTRUCTOR.user_id, 1)


def test_cannot_enroll_in_unpublished_course():
    svc, _ = _service([_course(1, "CS101", status=CourseStatus.DRAFT)])
    with pytest.raises(ValidationError):
        svc.enroll(STUDENT.user_id, 1)


def test_duplicate_enrollment_is_rejected():
    svc, _ = _service([_course(1, "CS101")])
    svc.enroll(STUDENT.user_id, 1)
    with pytest.raises(ConflictError):
        svc.enroll(STUDENT.user_id, 1)


def test_full_course_is_rejected():
    svc, _ = _service([_course(1, "CS101", max_students=10, enrolled_count=10)])
    with pytest.raises(ConflictError, match="full"):
        svc.enroll(STUDENT.user_id, 1)


def test_missing_prerequisite_blocks_enrollment():
    prereq = Prerequisite(course_id=2, prerequisite_course_id=1, prerequisite_code="CS101", minimum_grade="C")
    svc, regs = _service([_course(1, "CS101"), _course(2, "CS201", days="TUE")], {2: [prereq]})

    with pytest.raises(ValidationError, match="CS101"):
        svc.enroll(STUDENT.user_id, 2)

    regs.add(STUDENT.user_id, 1, RegistrationStatus.COMPLETED, "C-")
    with pytest.raises(ValidationError):
        svc.enroll(STUDENT.user_id, 2)


def test_prerequisite_met_with_minimum_grade():
    prereq = Prerequisite(course_id=2, prerequisite_course_id=1, prerequisite_code="CS101", minimum_grade="C")
    svc, regs = _service([_course(1, "CS101"), _course(2, "CS201", days="TUE")], {2: [prereq]})
    regs.add(STUDENT.user_id, 1, RegistrationStatus.COMPLETED, "B")

    assert svc.enroll(STUDENT.user_id, 2).course_code == "CS201"


def test_schedule_conflict_is_rejected():
    svc, _ = _service([_course(1, "CS101"), _course(2, "MATH101", days="WED", start=time(10, 0), end=time(11, 0))])
    svc.enroll(STUDENT.user_id, 1)
    with pytest.raises(ConflictError, match="Schedule conflict"):
        svc.enroll(STUDENT.user_id, 2)


def test_back_to_back_meetings_do_not_conflict():
    svc, _ = _service([_course(1, "CS101"), _course(2, "MATH101", start=time(10, 30), end=time(12, 0))])
    svc.enroll(STUDENT.user_id, 1)
    assert svc.enroll(STUDENT.user_id, 2).status == RegistrationStatus.ENROLLED


def test_credit_limit_is_enforced():
    svc, _ = _service([_course(1, "CS101", credits=4), _course(2, "CS102", credits=3, days="FRI")], max_credits=6)
    svc.enroll(STUDENT.user_id, 1)
    with pytest.raises(ValidationError, match="credit limit"):
        svc.enroll(STUDENT.user_id, 2)


def test_incomplete_from_earlier_semester_does_not_block_new_term():
    svc, regs = _service(
        [_course(1, "CS101", credits=4), _course(2, "CS201", credits=3)],
        max_credits=6,
    )
    reg = svc.enroll(STUDENT.user_id, 1)
    svc.update_grade(reg.registration_id, "INCOMPLETE")
    regs.rows[reg.registration_id] = replace(regs.rows[reg.registration_id], semester_id=1)

    enrolled = svc.enroll(STUDENT.user_id, 2)

    assert enrolled.status == RegistrationStatus.ENROLLED
    assert enrolled.semester_id == SEMESTER.semester_id


def test_drop_cancels_pending_fee_and_reenroll_reuses_row():
    svc, regs = _service([_course(1, "CS101")])
    first = svc.enroll(STUDENT.user_id, 1)

    dropped = svc.drop(STUDENT.user_id, 1)
    assert dropped.status == RegistrationStatus.DROPPED
    assert dropped.payment_status == FeePaymentStatus.CANCELLED

    again = svc.enroll(STUDENT.user_id, 1)
    assert again.registration_id == first.registration_id
    assert again.status == RegistrationStatus.ENROLLED
    assert len(regs.rows) == 1


@pytest.mark.parametrize(
    "grade, status",
    [
        ("a-", RegistrationStatus.COMPLETED),
        ("F", RegistrationStatus.FAILED),
        ("WITHDRAW", RegistrationStatus.WITHDRAWN),
        ("INCOMPLETE", RegistrationStatus.ENROLLED),
    ],
)
def test_grading_sets_status(grade, status):
    svc, _ = _service([_course(1, "CS101")])
    reg = svc.enroll(STUDENT.user_id, 1)

    graded = svc.update_grade(reg.registration_id, grade)

    assert graded.status == status
    assert graded.grade == grade.upper()


def test_invalid_grade_is_rejected():
    svc, _ = _service([_course(1, "CS101")])
    reg = svc.enroll(STUDENT.user_id, 1)
    with pytest.raises(ValidationError):
        svc.update_grade(reg.registration_id, "E")


def test_instructor_can_only_grade_own_course():
    svc, _ = _service([_course(1, "CS101", instructor_id=99)])
    reg = svc.enroll(STUDENT.user_id, 1)
    with pytest.raises(AuthorizationError):
        svc.update_grade(reg.registration_id, "A", current_role=Role.INSTRUCTOR, current_user_id=INSTRUCTOR.user_id)


def test_calculate_gpa_from_history():
    svc, regs = _service([_course(1, "CS101"), _course(2, "MATH101", credits=4)])
    regs.add(STUDENT.user_id, 1, RegistrationStatus.COMPLETED, "A")
    regs.add(STUDENT.user_id, 2, RegistrationStatus.COMPLETED, "B")

    assert svc.calculate_gpa(STUDENT.user_id) == Decimal("3.429")
