from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from types import SimpleNamespace

import pytest

from university_erp.audits.model import DegreeAudit
from university_erp.audits.service import ALL_REQUIREMENTS_MET, DegreeAuditService, audit_view
from university_erp.core.enums import AuditType, FeePaymentStatus, RegistrationStatus, Role
from university_erp.core.exceptions import NotFoundError, ValidationError
from university_erp.programs.model import AcademicProgram
from university_erp.registrations.model import Registration
from university_erp.users.model import User


class InMemoryAudits:
    def __init__(self):
        self.rows: dict[int, DegreeAudit] = {}

    def get_by_id(self, audit_id):
        return self.rows.get(audit_id)

    def create(self, audit):
        audit_id = len(self.rows) + 1
        self.rows[audit_id] = replace(audit, audit_id=audit_id)
        return audit_id

    def save(self, audit):
        self.rows[audit.audit_id] = audit
        return True

    def list_for_student(self, student_id):
        return [a for a in self.rows.values() if a.student_id == student_id]

    def get_latest_for_student(self, student_id):
        mine = self.list_for_student(student_id)
        return mine[-1] if mine else None

    def delete_by_id(self, audit_id):
        return self.rows.pop(audit_id, None) is not None


class InMemoryRegistrations:
    def __init__(self, rows):
        self.rows = rows

    def list_for_user(self, user_id):
        return [r for r in self.rows if r.user_id == user_id]


class InMemoryRecords:
    def __init__(self, program_id=None):
        self._program_id = program_id

    def get_current_for_student(self, student_id):
        if self._program_id is None:
            return None
        return SimpleNamespace(student_id=student_id, program_id=self._program_id)


class InMemoryPrograms:
    def get_program(self, program_id):
        return PROGRAM if program_id == PROGRAM.program_id else None


class InMemoryUsers:
    def get_by_id(self, user_id):
        return STUDENT if user_id == STUDENT.user_id else None


STUDENT = User(7, "ada", "a@uni.edu", "Ada", "Lovelace", "x", Role.STUDENT)
PROGRAM = AcademicProgram(1, "BSCS", "BS Computer Science", "BS", 12, 8)


def _reg(reg_id, credits, grade, status=RegistrationStatus.COMPLETED):
    return Registration(
        registration_id=reg_id,
        user_id=STUDENT.user_id,
        course_id=reg_id,
        status=status,
        course_fee=Decimal("500.00"),
        payment_status=FeePaymentStatus.PAID,
        registered_at=datetime(2026, 1, 5),
        grade=grade,
        credits=credits,
    )


def _service(registrations, *, program_id=1):
    audits = InMemoryAudits()
    svc = DegreeAuditService(
        audits,
        InMemoryRegistrations(registrations),
        InMemoryRecords(program_id),
        InMemoryPrograms(),
        InMemoryUsers(),
    )
    return svc, audits


def test_partial_progress_audit():
    svc, _ = _service([_reg(1, 3, "A"), _reg(2, 3, "F", RegistrationStatus.FAILED), _reg(3, 4, None, RegistrationStatus.ENROLLED)])

    audit = svc.generate_audit(STUDENT.user_id, PROGRAM.program_id, audit_type=AuditType.PROGRESS, notes=" mid-year ")

    assert audit.credits_completed == 3
    assert audit.credits_in_progress == 4
    assert audit.credits_remaining == 5
    assert audit.current_gpa == Decimal("2.000")
    assert audit.gpa_requirement_met
    assert not audit.eligible_for_graduation
    assert audit.completion_percentage == Decimal("25.00")
    assert audit.notes == "mid-year"
    assert audit.program_name == PROGRAM.name


def test_eligible_when_credits_and_gpa_met():
    svc, _ = _service([_reg(1, 6, "B"), _reg(2, 6, "A-")])

    assert svc.check_graduation_eligibility(STUDENT.user_id)
    assert svc.get_missing_requirements(STUDENT.user_id) == [ALL_REQUIREMENTS_MET]


def test_low_gpa_blocks_graduation():
    svc, _ = _service([_reg(1, 12, "D")])

    assert not svc.check_graduation_eligibility(STUDENT.user_id)
    missing = svc.get_missing_requirements(STUDENT.user_id)
    assert len(missing) == 1
    assert missing[0].startswith("GPA of 1.000")


def test_missing_credits_mentions_in_progress():
    svc, _ = _service([_reg(1, 3, "A"), _reg(2, 3, None, RegistrationStatus.ENROLLED)])

    assert svc.get_missing_requirements(STUDENT.user_id) == [
        "Missing 9 credits to meet degree requirements (3 in progress)"
    ]


def test_no_record_means_not_eligible():
    svc, _ = _service([_reg(1, 12, "A")], program_id=None)

    assert not svc.check_graduation_eligibility(STUDENT.user_id)
    assert svc.get_missing_requirements(STUDENT.user_id) == ["No academic record found"]
    with pytest.raises(NotFoundError):
        svc.get_degree_progress(STUDENT.user_id)


def test_degree_progress_generates_once():
    svc, audits = _service([_reg(1, 3, "A")])

    first = svc.get_degree_progress(STUDENT.user_id)
    second = svc.get_degree_progress(STUDENT.user_id)

    assert first.audit_type == AuditType.PROGRESS
    assert first.audit_id == second.audit_id
    assert len(audits.rows) == 1


def test_update_audit_validates_percentage():
    svc, _ = _service([_reg(1, 3, "A")])
    audit = svc.generate_audit(STUDENT.user_id, PROGRAM.program_id)

    with pytest.raises(ValidationError):
        svc.update_audit(audit.audit_id, completion_percentage="120")

    updated = svc.update_audit(audit.audit_id, completion_percentage="40", notes="advisor reviewed")
    assert updated.completion_percentage == Decimal("40.00")
    assert updated.notes == "advisor reviewed"


def test_audit_view_flags():
    svc, _ = _service([_reg(1, 6, "A"), _reg(2, 6, "A")])
    view = audit_view(svc.generate_audit(STUDENT.user_id, PROGRAM.program_id))

    assert view["is_on_track"] is True
    assert view["has_outstanding_requirements"] is False
    assert view["eligibility_notes"] == "Student meets all graduation requirements"


def test_unknown_student_or_program():
    svc, _ = _service([])
    with pytest.raises(NotFoundError):
        svc.generate_audit(99, PROGRAM.program_id)
    with pytest.raises(NotFoundError):
        svc.generate_audit(STUDENT.user_id, 99)
