from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal

import pytest

from university_erp.core.enums import (
    AcademicStanding,
    ClassLevel,
    EnrollmentStatus,
    FeePaymentStatus,
    RegistrationStatus,
    Role,
)
from university_erp.core.exceptions import ConflictError, ValidationError
from university_erp.programs.model import AcademicProgram, AcademicSemester
from university_erp.records.model import StudentAcademicRecord
from university_erp.records.service import StudentAcademicRecordService
from university_erp.registrations.model import Registration
from university_erp.users.model import User


class InMemoryRecords:
    def __init__(self):
        self.rows: dict[int, StudentAcademicRecord] = {}

    def get_by_id(self, record_id):
        return self.rows.get(record_id)

    def list_for_student(self, student_id):
        return [r for r in self.rows.values() if r.student_id == student_id]

    def get_current_for_student(self, student_id):
        mine = self.list_for_student(student_id)
        return max(mine, key=lambda r: r.record_id) if mine else None

    def find(self, *, student_id, program_id, semester_id):
        return next(
            (
                r
                for r in self.rows.values()
                if (r.student_id, r.program_id, r.semester_id) == (student_id, program_id, semester_id)
            ),
            None,
        )

    def create(self, record):
        record_id = len(self.rows) + 1
        self.rows[record_id] = replace(record, record_id=record_id)
        return record_id

    def save(self, record):
        self.rows[record.record_id] = record
        return True


class InMemoryRegistrations:
    def __init__(self, registrations=()):
        self.rows = list(registrations)

    def list_for_user(self, user_id):
        return [r for r in self.rows if r.user_id == user_id]


class InMemoryUsers:
    def __init__(self, users):
        self._users = {u.user_id: u for u in users}

    def get_by_id(self, user_id):
        return self._users.get(user_id)


class InMemoryPrograms:
    def get_program(self, program_id):
        if program_id == BSCS.program_id:
            return BSCS
        return None

    def get_semester(self, semester_id):
        return SEMESTERS.get(semester_id)


STUDENT = User(7, "ada", "a@uni.edu", "Ada", "Lovelace", "x", Role.STUDENT)
INSTRUCTOR = User(3, "turing", "t@uni.edu", "Alan", "Turing", "x", Role.INSTRUCTOR)
BSCS = AcademicProgram(1, "BSCS", "BS Computer Science", "BS", 12, 8)
SEMESTERS = {
    1: AcademicSemester(1, "2026SP", "Spring 2026", date(2026, 1, 12), date(2026, 5, 8)),
    2: AcademicSemester(2, "2026FA", "Fall 2026", date(2026, 8, 31), date(2026, 12, 18), is_current=True),
}


def _reg(reg_id, credits, grade, status, semester_id):
    return Registration(
        registration_id=reg_id,
        user_id=STUDENT.user_id,
        course_id=reg_id,
        status=status,
        course_fee=Decimal("500.00"),
        payment_status=FeePaymentStatus.PAID,
        registered_at=datetime(2026, 1, 5),
        semester_id=semester_id,
        grade=grade,
        credits=credits,
    )


def _service(registrations=()):
    records = InMemoryRecords()
    svc = StudentAcademicRecordService(
        records, InMemoryRegistrations(registrations), InMemoryUsers([STUDENT, INSTRUCTOR]), InMemoryPrograms()
    )
    return svc, records


def test_new_record_starts_in_good_standing():
    svc, _ = _service()

    record = svc.create_record(student_id=STUDENT.user_id, program_id=1, semester_id=1)

    assert record.class_level == ClassLevel.FRESHMAN
    assert record.academic_standing == AcademicStanding.GOOD_STANDING
    assert record.cumulative_gpa == Decimal("0.000")


def test_next_semester_record_carries_progress_forward():
    svc, _ = _service()
    first = svc.create_record(student_id=STUDENT.user_id, program_id=1, semester_id=1)
    svc.update_progress(first.record_id, gpa="3.2", credits_earned=6)

    second = svc.create_record(student_id=STUDENT.user_id, program_id=1, semester_id=2)

    assert second.cumulative_gpa == Decimal("3.200")
    assert second.total_credits_earned == 6


def test_duplicate_record_and_non_student_rejected():
    svc, _ = _service()
    svc.create_record(student_id=STUDENT.user_id, program_id=1, semester_id=1)

    with pytest.raises(ConflictError):
        svc.create_record(student_id=STUDENT.user_id, program_id=1, semester_id=1)
    with pytest.raises(ValidationError):
        svc.create_record(student_id=INSTRUCTOR.user_id, program_id=1, semester_id=1)


def test_gpa_bounds_on_update():
    svc, _ = _service()
    record = svc.create_record(student_id=STUDENT.user_id, program_id=1, semester_id=1)

    with pytest.raises(ValidationError):
        svc.update_record(record.record_id, {"cumulative_gpa": "4.5"})
    with pytest.raises(ValidationError):
        svc.update_progress(record.record_id, gpa="-0.1", credits_earned=3)


def test_recalculate_from_registrations():
    svc, _ = _service(
        [
            _reg(1, 3, "A", RegistrationStatus.COMPLETED, 1),
            _reg(2, 4, "B", RegistrationStatus.COMPLETED, 2),
            _reg(3, 3, None, RegistrationStatus.ENROLLED, 2),
        ]
    )
    svc.create_record(student_id=STUDENT.user_id, program_id=1, semester_id=2)

    record = svc.recalculate_from_registrations(STUDENT.user_id)

    assert record.cumulative_gpa == Decimal("3.429")
    assert record.semester_gpa == Decimal("3.000")
    assert record.total_credits_attempted == 7
    assert record.total_credits_earned == 7
    assert record.academic_standing == AcademicStanding.GOOD_STANDING


def test_update_standing_follows_gpa():
    svc, _ = _service()
    record = svc.create_record(student_id=STUDENT.user_id, program_id=1, semester_id=1)
    svc.update_record(record.record_id, {"cumulative_gpa": "1.6"})

    assert svc.update_standing(record.record_id).academic_standing == AcademicStanding.ACADEMIC_PROBATION


def test_graduation_requires_gpa_credits_and_standing():
    svc, records = _service()
    record = svc.create_record(student_id=STUDENT.user_id, program_id=1, semester_id=1)

    assert not svc.check_graduation_requirements(record.record_id)
    with pytest.raises(ValidationError):
        svc.mark_graduated(record.record_id)

    svc.update_progress(record.record_id, gpa="3.1", credits_earned=12)
    assert svc.validate_credit_requirements(record.record_id)
    assert svc.check_graduation_requirements(record.record_id)
    assert records.rows[record.record_id].graduation_eligibility_verified

    graduated = svc.mark_graduated(record.record_id, graduation_date=date(2026, 12, 18))
    assert graduated.enrollment_status == EnrollmentStatus.GRADUATED
    assert graduated.graduation_date == date(2026, 12, 18)
    with pytest.raises(ConflictError):
        svc.mark_graduated(record.record_id)
