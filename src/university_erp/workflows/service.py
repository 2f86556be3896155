"""Business flows that span registrations, billing, records and audits.

Each flow calls the owning services in order. The primary step (enrolling,
grading) must succeed; follow-up bookkeeping that fails is logged and left
for a later recalculation instead of undoing the primary step.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, Optional

from ..audits.service import DegreeAuditService
from ..billing.model import BillingStatement
from ..billing.service import BillingService
from ..core.enums import AuditType, RegistrationStatus, Role
from ..core.exceptions import DomainError, ValidationError
from ..records.model import StudentAcademicRecord
from ..records.service import StudentAcademicRecordService
from ..registrations.model import Registration
from ..registrations.service import RegistrationService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EnrollmentOutcome:
    registration: Registration
    statement: Optional[BillingStatement] = None
    record: Optional[StudentAcademicRecord] = None
    warnings: tuple[str, ...] = ()


@dataclass(frozen=True)
class CourseCompletion:
    registration: Registration
    cumulative_gpa: Decimal
    eligible_for_graduation: bool
    record: Optional[StudentAcademicRecord] = None


@dataclass(frozen=True)
class SemesterEnrollment:
    student_id: int
    registrations: tuple[Registration, ...]
    failures: dict = field(default_factory=dict)
    statement: Optional[BillingStatement] = None

    @property
    def success_count(self) -> int:
        return len(self.registrations)

    @property
    def failure_count(self) -> int:
        return len(self.failures)


@dataclass(frozen=True)
class BatchResult:
    succeeded: tuple[int, ...]
    failures: dict = field(default_factory=dict)

    @property
    def success_count(self) -> int:
        return len(self.succeeded)


@dataclass(frozen=True)
class GraduationEligibility:
    student_id: int
    academic_requirements_met: bool
    degree_requirements_met: bool
    financial_obligations_met: bool

    @property
    def eligible(self) -> bool:
        return self.academic_requirements_met and self.degree_requirements_met and self.financial_obligations_met


class AcademicWorkflowService:
    def __init__(
        self,
        registrations: RegistrationService,
        records: StudentAcademicRecordService,
        audits: DegreeAuditService,
        billing: BillingService,
    ):
        self._registrations = registrations
        self._records = records
        self._audits = audits
        self._billing = billing

    def _refresh_progress(self, student_id: int, warnings: list[str]) -> Optional[StudentAcademicRecord]:
        if not self._records.find_current_for_student(student_id):
            return None
        try:
            record = self._records.recalculate_from_registrations(student_id)
        except DomainError as exc:
            logger.warning("Could not recalculate record for student %s: %s", student_id, exc)
            warnings.append(f"Academic record not updated: {exc}")
            return None
        try:
            self._audits.generate_audit(student_id, record.program_id, audit_type=AuditType.PROGRESS)
        except DomainError as exc:
            logger.warning("Could not refresh degree audit for student %s: %s", student_id, exc)
            warnings.append(f"Degree audit not updated: {exc}")
        return record

    def complete_enrollment(self, student_id: int, course_id: int) -> EnrollmentOutcome:
        registration = self._registrations.enroll(student_id, course_id)
        warnings: list[str] = []

        statement = None
        try:
            statement = self._billing.generate_from_registrations(student_id, [registration.registration_id])
        except DomainError as exc:
            logger.warning("Could not bill registration %s: %s", registration.registration_id, exc)
            warnings.append(f"Billing not generated: {exc}")

        record = self._refresh_progress(student_id, warnings)
        logger.info("Completed enrollment of student %s in %s", student_id, registration.course_code)
        return EnrollmentOutcome(
            registration=registration, statement=statement, record=record, warnings=tuple(warnings)
        )

    def complete_course_with_grade(
        self,
        registration_id: int,
        grade: str,
        *,
        current_role: Optional[Role] = None,
        current_user_id: Optional[int] = None,
    ) -> CourseCompletion:
        registration = self._registrations.update_grade(
            registration_id, grade, current_role=current_role, current_user_id=current_user_id
        )
        student_id = registration.user_id
        record = self._refresh_progress(student_id, [])
        eligible = self._audits.check_graduation_eligibility(student_id)
        gpa = self._registrations.calculate_gpa(student_id)
        if eligible:
            logger.info("Student %s is now eligible for graduation", student_id)
        logger.info("Completed %s for student %s with %s (gpa %s)", registration.course_code, student_id, grade, gpa)
        return CourseCompletion(
            registration=registration, cumulative_gpa=gpa, eligible_for_graduation=eligible, record=record
        )

    def process_semester_enrollment(self, student_id: int, course_ids: Iterable[int]) -> SemesterEnrollment:
        course_ids = list(course_ids)
        if not course_ids:
            raise ValidationError("At least one course is required")

        enrolled: list[Registration] = []
        failures: dict[int, str] = {}
        for course_id in course_ids:
            try:
                enrolled.append(self._registrations.enroll(student_id, course_id))
            except DomainError as exc:
                logger.warning("Could not enroll student %s in course %s: %s", student_id, course_id, exc)
                failures[int(course_id)] = str(exc)

        statement = None
        if enrolled:
            try:
                statement = self._billing.generate_from_registrations(
                    student_id, [r.registration_id for r in enrolled]
                )
            except DomainError as exc:
                logger.warning("Could not bill semester enrollment for student %s: %s", student_id, exc)
            self._refresh_progress(student_id, [])

        logger.info(
            "Semester enrollment for student %s: %s enrolled, %s failed", student_id, len(enrolled), len(failures)
        )
        return SemesterEnrollment(
            student_id=int(student_id), registrations=tuple(enrolled), failures=failures, statement=statement
        )

    def batch_complete(self, registration_ids: Iterable[int]) -> BatchResult:
        succeeded: list[int] = []
        failures: dict[int, str] = {}
        for registration_id in registration_ids:
            try:
                self._registrations.update_status(registration_id, RegistrationStatus.COMPLETED)
                succeeded.append(int(registration_id))
            except DomainError as exc:
                logger.warning("Could not complete registration %s: %s", registration_id, exc)
                failures[int(registration_id)] = str(exc)
        logger.info("Batch completion: %s succeeded, %s failed", len(succeeded), len(failures))
        return BatchResult(succeeded=tuple(succeeded), failures=failures)

    def validate_graduation_eligibility(self, student_id: int) -> GraduationEligibility:
        record = self._records.find_current_for_student(student_id)
        academic = self._records.check_graduation_requirements(record.record_id) if record else False
        result = GraduationEligibility(
            student_id=int(student_id),
            academic_requirements_met=academic,
            degree_requirements_met=self._audits.check_graduation_eligibility(student_id),
            financial_obligations_met=not self._billing.has_outstanding_balance(student_id),
        )
        logger.info(
            "Graduation eligibility for student %s: academic=%s degree=%s financial=%s overall=%s",
            student_id,
            result.academic_requirements_met,
            result.degree_requirements_met,
            result.financial_obligations_met,
            result.eligible,
        )
        return result
