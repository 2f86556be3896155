from __future__ import annotations

from dataclasses import asdict, replace
from datetime import time
from decimal import Decimal

import pytest

from university_erp.common.pagination import PageRequest
from university_erp.core.enums import CourseStatus, Role
from university_erp.core.exceptions import ConflictError, NotFoundError, ValidationError
from university_erp.courses.model import Course, CourseFilter, Prerequisite
from university_erp.courses.service import CourseService, course_snapshot
from university_erp.users.model import User


class FakeUsersRepo:
    def __init__(self, users):
        self._users = {u.user_id: u for u in users}

    def get_by_id(self, user_id):
        return self._users.get(int(user_id))


class FakeCoursesRepo:
    def __init__(self):
        self.rows: dict[int, Course] = {}
        self.prereqs: dict[int, list[Prerequisite]] = {}
        self._next_id = 1

    def get_by_id(self, course_id):
        return self.rows.get(int(course_id))

    def get_by_code(self, code):
        return next((c for c in self.rows.values() if c.code == code), None)

    def create(self, data, *, status):
        course_id = self._next_id
        self._next_id += 1
        self.rows[course_id] = Course(course_id=course_id, status=status, **asdict(data))
        return course_id

    def update(self, course_id, data):
        self.rows[course_id] = replace(self.rows[course_id], **asdict(data))
        return True

    def update_status(self, course_id, status):
        self.rows[course_id] = replace(self.rows[course_id], status=status)
        return True

    def count_enrolled(self, course_id):
        return self.rows[int(course_id)].enrolled_count

    def delete_by_id(self, course_id):
        return self.rows.pop(int(course_id), None) is not None

    def search(self, criteria, *, offset, limit):
        items = [c for c in self.rows.values() if criteria.status is None or c.status == criteria.status]
        return items[offset : offset + limit], len(items)

    def list_open(self):
        return [c for c in self.rows.values() if c.is_open]

    def list_by_instructor(self, instructor_id):
        return [c for c in self.rows.values() if c.instructor_id == instructor_id]

    def list_prerequisites(self, course_id):
        return list(self.prereqs.get(int(course_id), []))

    def add_prerequisite(self, *, course_id, prerequisite_course_id, minimum_grade):
        code = self.rows[prerequisite_course_id].code
        self.prereqs.setdefault(course_id, []).append(
            Prerequisite(course_id, prerequisite_course_id, code, minimum_grade)
        )
        return True

    def remove_prerequisite(self, *, course_id, prerequisite_course_id):
        before = self.prereqs.get(course_id, [])
        after = [p for p in before if p.prerequisite_course_id != prerequisite_course_id]
        self.prereqs[course_id] = after
        return len(after) != len(before)


INSTRUCTOR = User(3, "turing", "t@uni.edu", "Alan", "Turing", "x", Role.INSTRUCTOR)
STUDENT = User(7, "ada", "a@uni.edu", "Ada", "Lovelace", "x", Role.STUDENT)


@pytest.fixture
def repo():
    return FakeCoursesRepo()


@pytest.fixture
def service(repo):
    return CourseService(repo, FakeUsersRepo([INSTRUCTOR, STUDENT]))


def _values(**overrides):
    values = {
        "code": "cs101",
        "title": "Intro to Programming",
        "credits": 3,
        "max_students": 30,
        "course_fee": "550.00",
        "instructor_id": INSTRUCTOR.user_id,
        "days_of_week": "wed,mon",
        "start_time": "09:00",
        "end_time": "10:30",
    }
    values.update(overrides)
    return values


def test_create_course_normalizes_fields(service):
    course = service.create_course(_values())

    assert course.code == "CS101"
    assert course.status == CourseStatus.DRAFT
    assert course.days_of_week == "MON,WED"
    assert course.start_time == time(9, 0)
    assert course.course_fee == Decimal("550.00")
    assert course.passing_grade == "D"


def test_create_course_uses_default_fee(service):
    course = service.create_course(_values(course_fee=None))
    assert course.course_fee == Decimal("500.00")


def test_duplicate_code_is_rejected(service):
    service.create_course(_values())
    with pytest.raises(ConflictError):
        service.create_course(_values(code="CS101"))


@pytest.mark.parametrize(
    "overrides",
    [
        {"credits": 31},
        {"max_students": 0},
        {"course_fee": "-1"},
        {"end_time": "08:00"},
        {"end_time": None},
        {"passing_grade": "F"},
        {"title": " "},
    ],
)
def test_invalid_course_values(service, overrides):
    with pytest.raises(ValidationError):
        service.create_course(_values(**overrides))


def test_instructor_must_have_instructor_role(service):
    with pytest.raises(ValidationError):
        service.create_course(_values(instructor_id=STUDENT.user_id))
    with pytest.raises(NotFoundError):
        service.create_course(_values(instructor_id=999))


def test_update_keeps_unchanged_fields(service):
    course = service.create_course(_values())

    updated = service.update_course(course.course_id, {"title": "Programming I", "status": "published"})

    assert updated.title == "Programming I"
    assert updated.credits == 3
    assert updated.status == CourseStatus.PUBLISHED


def test_capacity_cannot_drop_below_enrollment(service, repo):
    course = service.create_course(_values())
    repo.rows[course.course_id] = replace(repo.rows[course.course_id], enrolled_count=12)

    with pytest.raises(ValidationError):
        service.update_course(course.course_id, {"max_students": 10})


def test_cannot_delete_course_with_enrollments(service, repo):
    course = service.create_course(_values())
    repo.rows[course.course_id] = replace(repo.rows[course.course_id], enrolled_count=1)

    with pytest.raises(ConflictError):
        service.delete_course(course.course_id)


def test_available_courses_exclude_full_and_unpublished(service, repo):
    open_course = service.create_course(_values(status="PUBLISHED"))
    full = service.create_course(_values(code="CS102", status="PUBLISHED"))
    service.create_course(_values(code="CS103"))
    repo.rows[full.course_id] = replace(repo.rows[full.course_id], enrolled_count=30)

    assert [c.course_id for c in service.list_available()] == [open_course.course_id]


def test_prerequisites_reject_self_duplicates_and_cycles(service):
    intro = service.create_course(_values())
    advanced = service.create_course(_values(code="CS201"))

    prereqs = service.add_prerequisite(advanced.course_id, intro.course_id, minimum_grade="c")
    assert prereqs[0].minimum_grade == "C"

    with pytest.raises(ValidationError):
        service.add_prerequisite(intro.course_id, intro.course_id)
    with pytest.raises(ConflictError):
        service.add_prerequisite(advanced.course_id, intro.course_id)
    with pytest.raises(ValidationError):
        service.add_prerequisite(intro.course_id, advanced.course_id)


def test_remove_missing_prerequisite(service):
    course = service.create_course(_values())
    with pytest.raises(NotFoundError):
        service.remove_prerequisite(course.course_id, 42)


def test_list_courses_rejects_inverted_credit_range(service):
    with pytest.raises(ValidationError):
        service.list_courses(CourseFilter(credits_min=4, credits_max=3), PageRequest())


def test_snapshot_reports_available_seats(service):
    course = service.create_course(_values(max_students=5))
    snap = course_snapshot(course)
    assert snap["available_seats"] == 5
    assert snap["is_full"] is False
