"""Degree audits: compare a student's coursework against their program's requirements.

An audit snapshots credits completed (passing grades), credits still in
progress, the credit-weighted GPA and the resulting graduation eligibility.
Eligibility needs both the program's credit requirement and the minimum GPA;
credits in progress reduce what remains but never count as completed.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, replace
from decimal import Decimal
from typing import Any, Optional

from ..common.datetime_utils import now_local
from ..common.pagination import Page, PageRequest
from ..common.validators import optional_text, require_decimal
from ..core.constants import MINIMUM_GRADUATION_GPA, ON_TRACK_COMPLETION_PERCENT
from ..core.enums import AuditType
from ..core.exceptions import NotFoundError, ValidationError
from ..programs.model import AcademicProgram
from ..programs.repository import ProgramRepository
from ..records.progress import (
    PERCENT_PLACES,
    ProgressCalculator,
    completion_percentage,
    credits_remaining,
    projected_graduation_date,
)
from ..records.repository import AcademicRecordRepository
from ..registrations.repository import RegistrationRepository
from ..users.repository import UserRepository
from .model import DegreeAudit
from .repository import DegreeAuditRepository

logger = logging.getLogger(__name__)

ALL_REQUIREMENTS_MET = "All requirements met"


class DegreeAuditService:
    def __init__(
        self,
        audits: DegreeAuditRepository,
        registrations: RegistrationRepository,
        records: AcademicRecordRepository,
        programs: ProgramRepository,
        users: UserRepository,
        *,
        calculator: Optional[ProgressCalculator] = None,
        minimum_gpa: Decimal = MINIMUM_GRADUATION_GPA,
    ):
        self._audits = audits
        self._registrations = registrations
        self._records = records
        self._programs = programs
        self._users = users
        self._calculator = calculator or ProgressCalculator()
        self._minimum_gpa = minimum_gpa

    def _program(self, program_id: int) -> AcademicProgram:
        program = self._programs.get_program(int(program_id))
        if not program:
            raise NotFoundError("Academic program not found")
        return program

    def evaluate(self, student_id: int, program: AcademicProgram, *, audit_type: AuditType) -> DegreeAudit:
        """Build an unsaved audit from the student's current registrations."""
        summary = self._calculator.summarize(list(self._registrations.list_for_user(int(student_id))))
        required = program.credit_requirements
        remaining = credits_remaining(required, summary.credits_completed, summary.credits_in_progress)
        gpa_met = summary.gpa >= self._minimum_gpa
        today = now_local()

        return DegreeAudit(
            audit_id=0,
            student_id=int(student_id),
            program_id=program.program_id,
            audit_type=audit_type,
            audit_date=today,
            total_credits_required=required,
            credits_completed=summary.credits_completed,
            credits_in_progress=summary.credits_in_progress,
            credits_remaining=remaining,
            minimum_gpa_required=self._minimum_gpa,
            current_gpa=summary.gpa,
            gpa_requirement_met=gpa_met,
            eligible_for_graduation=summary.credits_completed >= required and gpa_met,
            completion_percentage=completion_percentage(summary.credits_completed, required),
            projected_graduation_date=projected_graduation_date(remaining, today.date()),
            program_name=program.name,
        )

    def generate_audit(
        self,
        student_id: int,
        program_id: int,
        *,
        audit_type: AuditType = AuditType.GRADUATION,
        notes: Optional[str] = None,
    ) -> DegreeAudit:
        if not self._users.get_by_id(int(student_id)):
            raise NotFoundError("Student not found")
        program = self._program(program_id)

        audit = replace(self.evaluate(student_id, program, audit_type=audit_type), notes=optional_text(notes))
        audit_id = self._audits.create(audit)
        logger.info(
            "Generated %s audit %s for student %s: completed=%s/%s gpa=%s eligible=%s",
            audit_type.value,
            audit_id,
            student_id,
            audit.credits_completed,
            audit.total_credits_required,
            audit.current_gpa,
            audit.eligible_for_graduation,
        )
        return self.get_audit(audit_id)

    def get_audit(self, audit_id: int) -> DegreeAudit:
        audit = self._audits.get_by_id(int(audit_id))
        if not audit:
            raise NotFoundError("Degree audit not found")
        return audit

    def list_for_student(self, student_id: int) -> list[DegreeAudit]:
        return list(self._audits.list_for_student(int(student_id)))

    def get_latest_for_student(self, student_id: int) -> DegreeAudit:
        audit = self._audits.get_latest_for_student(int(student_id))
        if not audit:
            raise NotFoundError("No degree audit found for student")
        return audit

    def update_audit(
        self,
        audit_id: int,
        *,
        notes: Optional[str] = None,
        completion_percentage: Any = None,
        eligible_for_graduation: Optional[bool] = None,
    ) -> DegreeAudit:
        audit = self.get_audit(audit_id)
        updates: dict[str, Any] = {}
        if notes is not None:
            updates["notes"] = optional_text(notes)
        if completion_percentage is not None:
            pct = require_decimal(completion_percentage, "Completion percentage")
            if pct < 0 or pct > 100:
                raise ValidationError("Completion percentage must be between 0 and 100")
            updates["completion_percentage"] = pct.quantize(PERCENT_PLACES)
        if eligible_for_graduation is not None:
            updates["eligible_for_graduation"] = bool(eligible_for_graduation)
        if updates:
            self._audits.save(replace(audit, **updates))
        return self.get_audit(audit.audit_id)

    def list_for_program(self, program_id: int, page_request: PageRequest) -> Page[DegreeAudit]:
        program = self._program(program_id)
        items, total = self._audits.list_for_program(
            program.program_id, offset=page_request.offset, limit=page_request.limit
        )
        return Page(items=list(items), page=page_request.page, size=page_request.size, total=total)

    def list_eligible(self) -> list[DegreeAudit]:
        return list(self._audits.list_eligible())

    def delete_audit(self, audit_id: int) -> None:
        audit = self.get_audit(audit_id)
        self._audits.delete_by_id(audit.audit_id)
        logger.info("Deleted degree audit %s", audit.audit_id)

    def _current_program(self, student_id: int) -> Optional[AcademicProgram]:
        record = self._records.get_current_for_student(int(student_id))
        if not record:
            return None
        return self._programs.get_program(record.program_id)

    def check_graduation_eligibility(self, student_id: int) -> bool:
        program = self._current_program(student_id)
        if not program:
            return False
        return self.evaluate(student_id, program, audit_type=AuditType.GRADUATION).eligible_for_graduation

    def get_degree_progress(self, student_id: int) -> DegreeAudit:
        latest = self._audits.get_latest_for_student(int(student_id))
        if latest:
            return latest
        program = self._current_program(student_id)
        if not program:
            raise NotFoundError("No academic program assigned")
        return self.generate_audit(student_id, program.program_id, audit_type=AuditType.PROGRESS)

    def get_missing_requirements(self, student_id: int) -> list[str]:
        record = self._records.get_current_for_student(int(student_id))
        if not record:
            return ["No academic record found"]
        program = self._programs.get_program(record.program_id)
        if not program:
            return ["No academic program assigned"]

        audit = self.evaluate(student_id, program, audit_type=AuditType.GRADUATION)
        missing: list[str] = []
        credits_short = audit.total_credits_required - audit.credits_completed
        if credits_short > 0:
            message = f"Missing {credits_short} credits to meet degree requirements"
            if audit.credits_in_progress:
                message += f" ({audit.credits_in_progress} in progress)"
            missing.append(message)
        if not audit.gpa_requirement_met:
            missing.append(f"GPA of {audit.current_gpa} is below minimum requirement of {self._minimum_gpa}")
        return missing or [ALL_REQUIREMENTS_MET]


def audit_view(audit: DegreeAudit) -> dict:
    """Audit dict plus the derived flags shown to students and advisors."""
    out = asdict(audit)
    out["is_on_track"] = audit.completion_percentage >= ON_TRACK_COMPLETION_PERCENT
    out["has_outstanding_requirements"] = not audit.eligible_for_graduation
    out["eligibility_notes"] = (
        "Student meets all graduation requirements"
        if audit.eligible_for_graduation
        else "Student does not meet all graduation requirements"
    )
    return out
