from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date
from decimal import Decimal
from typing import Any, Mapping, Optional

from ..common.datetime_utils import now_local, parse_optional_date
from ..common.pagination import Page, PageRequest
from ..common.validators import optional_text, require_decimal, require_enum, require_int_range
from ..core.constants import MINIMUM_GRADUATION_GPA
from ..core.enums import AcademicStanding, ClassLevel, EnrollmentStatus, Role
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..programs.model import AcademicProgram
from ..programs.repository import ProgramRepository
from ..registrations.repository import RegistrationRepository
from ..users.repository import UserRepository
from .model import GraduationCheck, RecordStatistics, StudentAcademicRecord
from .progress import (
    ZERO_GPA,
    ProgressCalculator,
    determine_academic_standing,
    determine_class_level,
    round_gpa,
)
from .repository import AcademicRecordRepository

logger = logging.getLogger(__name__)

GRADUATION_STANDINGS = (AcademicStanding.GOOD_STANDING, AcademicStanding.DEANS_LIST)
ADVANCED_LEVELS = (ClassLevel.GRADUATE, ClassLevel.DOCTORAL)


class StudentAcademicRecordService:
    """Use case: per-semester academic records and their progress figures."""

    def __init__(
        self,
        records: AcademicRecordRepository,
        registrations: RegistrationRepository,
        users: UserRepository,
        programs: ProgramRepository,
        *,
        calculator: Optional[ProgressCalculator] = None,
        minimum_gpa: Decimal = MINIMUM_GRADUATION_GPA,
    ):
        self._records = records
        self._registrations = registrations
        self._users = users
        self._programs = programs
        self._calculator = calculator or ProgressCalculator()
        self._minimum_gpa = minimum_gpa

    def get_record(self, record_id: int) -> StudentAcademicRecord:
        record = self._records.get_by_id(int(record_id))
        if not record:
            raise NotFoundError("Academic record not found")
        return record

    def list_for_student(self, student_id: int) -> list[StudentAcademicRecord]:
        return list(self._records.list_for_student(int(student_id)))

    def find_current_for_student(self, student_id: int) -> Optional[StudentAcademicRecord]:
        return self._records.get_current_for_student(int(student_id))

    def get_current_for_student(self, student_id: int) -> StudentAcademicRecord:
        record = self.find_current_for_student(student_id)
        if not record:
            raise NotFoundError("No academic record found")
        return record

    def _program(self, program_id: int) -> AcademicProgram:
        program = self._programs.get_program(int(program_id))
        if not program:
            raise NotFoundError("Academic program not found")
        return program

    def create_record(
        self,
        *,
        student_id: int,
        program_id: int,
        semester_id: int,
        enrollment_status: EnrollmentStatus = EnrollmentStatus.ACTIVE,
        class_level: Optional[ClassLevel] = None,
        expected_graduation_date: Optional[date] = None,
        notes: Optional[str] = None,
    ) -> StudentAcademicRecord:
        student = self._users.get_by_id(int(student_id))
        if not student:
            raise NotFoundError("Student not found")
        if student.role != Role.STUDENT:
            raise ValidationError("Academic records can only be created for students")
        program = self._program(program_id)
        if not self._programs.get_semester(int(semester_id)):
            raise NotFoundError("Semester not found")
        if self._records.find(student_id=student.user_id, program_id=program.program_id, semester_id=int(semester_id)):
            raise ConflictError("An academic record already exists for this student, program and semester")

        previous = self._records.get_current_for_student(student.user_id)
        record = StudentAcademicRecord(
            record_id=0,
            student_id=student.user_id,
            program_id=program.program_id,
            semester_id=int(semester_id),
            enrollment_status=enrollment_status,
            class_level=class_level or (previous.class_level if previous else ClassLevel.FRESHMAN),
            academic_standing=previous.academic_standing if previous else AcademicStanding.GOOD_STANDING,
            cumulative_gpa=previous.cumulative_gpa if previous else ZERO_GPA,
            semester_gpa=ZERO_GPA,
            total_credits_attempted=previous.total_credits_attempted if previous else 0,
            total_credits_earned=previous.total_credits_earned if previous else 0,
            expected_graduation_date=expected_graduation_date,
            record_date=now_local(),
            notes=optional_text(notes),
        )
        record_id = self._records.create(record)
        logger.info("Created academic record %s for student %s in %s", record_id, student.user_id, program.code)
        return self.get_record(record_id)

    def update_record(self, record_id: int, changes: Mapping[str, Any]) -> StudentAcademicRecord:
        record = self.get_record(record_id)
        updates: dict[str, Any] = {}
        if "enrollment_status" in changes:
            updates["enrollment_status"] = require_enum(EnrollmentStatus, changes["enrollment_status"], "Enrollment status")
        if "class_level" in changes:
            updates["class_level"] = require_enum(ClassLevel, changes["class_level"], "Class level")
        if "academic_standing" in changes:
            updates["academic_standing"] = require_enum(AcademicStanding, changes["academic_standing"], "Standing")
        if "expected_graduation_date" in changes:
            updates["expected_graduation_date"] = parse_optional_date(
                changes["expected_graduation_date"], "Expected graduation date"
            )
        if "cumulative_gpa" in changes:
            updates["cumulative_gpa"] = self._validated_gpa(changes["cumulative_gpa"])
        if "notes" in changes:
            updates["notes"] = optional_text(changes["notes"])
        if not updates:
            return record

        updated = replace(record, **updates)
        self._records.save(updated)
        return self.get_record(record.record_id)

    @staticmethod
    def _validated_gpa(value: Any) -> Decimal:
        gpa = require_decimal(value, "GPA")
        if gpa < 0 or gpa > Decimal("4.0"):
            raise ValidationError("GPA must be between 0.0 and 4.0")
        return round_gpa(gpa)

    def list_by_standing(self, standing: AcademicStanding, page_request: PageRequest) -> Page[StudentAcademicRecord]:
        items, total = self._records.list_by_standing(standing, offset=page_request.offset, limit=page_request.limit)
        return Page(items=list(items), page=page_request.page, size=page_request.size, total=total)

    def list_by_program_and_semester(
        self, program_id: int, semester_id: int, page_request: PageRequest
    ) -> Page[StudentAcademicRecord]:
        items, total = self._records.list_by_program_and_semester(
            program_id=int(program_id),
            semester_id=int(semester_id),
            offset=page_request.offset,
            limit=page_request.limit,
        )
        return Page(items=list(items), page=page_request.page, size=page_request.size, total=total)

    def list_eligible_for_graduation(self) -> list[StudentAcademicRecord]:
        return list(self._records.list_eligible_for_graduation())

    def statistics(self, program_id: int) -> RecordStatistics:
        program = self._program(program_id)
        stats = self._records.statistics(program.program_id)
        return replace(stats, average_gpa=round_gpa(stats.average_gpa))

    def _standing_for(self, gpa: Decimal, graded_credits: int) -> AcademicStanding:
        # A student with nothing graded yet has not earned a standing below good.
        if graded_credits == 0:
            return AcademicStanding.GOOD_STANDING
        return determine_academic_standing(gpa)

    def _class_level_for(self, record: StudentAcademicRecord, credits_earned: int) -> ClassLevel:
        if record.class_level in ADVANCED_LEVELS:
            return record.class_level
        return determine_class_level(credits_earned)

    def update_progress(self, record_id: int, *, gpa: Any, credits_earned: int) -> StudentAcademicRecord:
        """Apply a GPA and newly earned credits reported from outside the registration history."""
        record = self.get_record(record_id)
        new_gpa = self._validated_gpa(gpa)
        credits = require_int_range(credits_earned, "Credits earned", minimum=0)
        earned = record.total_credits_earned + credits
        updated = replace(
            record,
            cumulative_gpa=new_gpa,
            total_credits_earned=earned,
            total_credits_attempted=record.total_credits_attempted + credits,
            academic_standing=determine_academic_standing(new_gpa),
            class_level=self._class_level_for(record, earned),
        )
        self._records.save(updated)
        logger.info("Progress update on record %s: gpa=%s earned=%s", record.record_id, new_gpa, earned)
        return self.get_record(record.record_id)

    def recalculate_from_registrations(self, student_id: int) -> StudentAcademicRecord:
        """Recompute the current record's GPA, credits, standing and class level from real registrations."""
        record = self.get_current_for_student(student_id)
        registrations = list(self._registrations.list_for_user(record.student_id))
        summary = self._calculator.summarize(registrations)
        semester_regs = [r for r in registrations if r.semester_id == record.semester_id]

        updated = replace(
            record,
            cumulative_gpa=summary.gpa,
            semester_gpa=self._calculator.calculate_gpa(semester_regs),
            total_credits_attempted=summary.credits_attempted,
            total_credits_earned=summary.credits_completed,
            academic_standing=self._standing_for(summary.gpa, summary.gpa_credits),
            class_level=self._class_level_for(record, summary.credits_completed),
        )
        self._records.save(updated)
        logger.info(
            "Recalculated record %s for student %s: gpa=%s earned=%s",
            record.record_id,
            record.student_id,
            summary.gpa,
            summary.credits_completed,
        )
        return self.get_record(record.record_id)

    def update_standing(self, record_id: int) -> StudentAcademicRecord:
        record = self.get_record(record_id)
        standing = determine_academic_standing(record.cumulative_gpa)
        if standing != record.academic_standing:
            self._records.save(replace(record, academic_standing=standing))
            logger.info(
                "Record %s standing %s -> %s", record.record_id, record.academic_standing.value, standing.value
            )
        return self.get_record(record.record_id)

    def validate_credit_requirements(self, record_id: int) -> bool:
        record = self.get_record(record_id)
        return record.total_credits_earned >= self._program(record.program_id).credit_requirements

    def graduation_check(self, record_id: int) -> GraduationCheck:
        record = self.get_record(record_id)
        program = self._program(record.program_id)
        return GraduationCheck(
            record_id=record.record_id,
            gpa_met=record.cumulative_gpa >= self._minimum_gpa,
            credits_met=record.total_credits_earned >= program.credit_requirements,
            standing_met=record.academic_standing in GRADUATION_STANDINGS,
            credits_required=program.credit_requirements,
            credits_earned=record.total_credits_earned,
            cumulative_gpa=record.cumulative_gpa,
        )

    def check_graduation_requirements(self, record_id: int) -> bool:
        check = self.graduation_check(record_id)
        record = self.get_record(record_id)
        if check.eligible != record.graduation_eligibility_verified:
            self._records.save(replace(record, graduation_eligibility_verified=check.eligible))
        return check.eligible

    def mark_graduated(self, record_id: int, *, graduation_date: Optional[date] = None) -> StudentAcademicRecord:
        record = self.get_record(record_id)
        if record.enrollment_status == EnrollmentStatus.GRADUATED:
            raise ConflictError("Student is already marked as graduated")
        if not self.graduation_check(record.record_id).eligible:
            raise ValidationError("Graduation requirements are not met")

        self._records.save(
            replace(
                record,
                enrollment_status=EnrollmentStatus.GRADUATED,
                graduation_date=graduation_date or now_local().date(),
                graduation_eligibility_verified=True,
            )
        )
        logger.info("Student %s graduated (record %s)", record.student_id, record.record_id)
        return self.get_record(record.record_id)
