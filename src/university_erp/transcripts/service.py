from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from decimal import Decimal
from typing import Any, Mapping, Optional

from ..common.datetime_utils import dated_number, now_local
from ..common.pagination import Page, PageRequest
from ..common.validators import optional_enum, optional_text, require_email, require_enum, require_non_empty
from ..core.constants import (
    EXPEDITED_FEE,
    OFFICIAL_TRANSCRIPT_FEE,
    RUSH_FEE,
    TRANSCRIPT_FEE,
    TRANSCRIPT_VERIFY_URL,
)
from ..core.enums import (
    DeliveryMethod,
    RequestPaymentStatus,
    Role,
    TranscriptRequestStatus,
    TranscriptStatus,
    TranscriptType,
    UrgencyLevel,
)
from ..core.exceptions import NotFoundError, ValidationError
from ..programs.repository import ProgramRepository
from ..records.progress import ProgressCalculator
from ..records.repository import AcademicRecordRepository
from ..registrations.model import Registration
from ..registrations.repository import RegistrationRepository
from ..users.repository import UserRepository
from .model import Transcript, TranscriptCourse, TranscriptRequest
from .repository import TranscriptRepository

logger = logging.getLogger(__name__)

ELECTRONIC_METHODS = (DeliveryMethod.EMAIL, DeliveryMethod.ELECTRONIC_DELIVERY)
FINAL_REQUEST_STATUSES = (
    TranscriptRequestStatus.SHIPPED,
    TranscriptRequestStatus.DELIVERED,
    TranscriptRequestStatus.CANCELLED,
)
VERIFIABLE_STATUSES = (TranscriptStatus.APPROVED, TranscriptStatus.RELEASED)


def calculate_fees(transcript_type: TranscriptType, urgency: UrgencyLevel) -> tuple[Decimal, Decimal, Decimal]:
    """(processing fee, expedite fee, total)."""
    processing = OFFICIAL_TRANSCRIPT_FEE if transcript_type == TranscriptType.OFFICIAL else TRANSCRIPT_FEE
    expedite = {UrgencyLevel.EXPEDITED: EXPEDITED_FEE, UrgencyLevel.RUSH: RUSH_FEE}.get(urgency, Decimal("0.00"))
    return processing, expedite, processing + expedite


class TranscriptService:
    """Use case: transcript generation, verification and the request/fulfilment workflow."""

    def __init__(
        self,
        transcripts: TranscriptRepository,
        registrations: RegistrationRepository,
        records: AcademicRecordRepository,
        programs: ProgramRepository,
        users: UserRepository,
        *,
        calculator: Optional[ProgressCalculator] = None,
    ):
        self._transcripts = transcripts
        self._registrations = registrations
        self._records = records
        self._programs = programs
        self._users = users
        self._calculator = calculator or ProgressCalculator()

    # Transcripts

    def _course_lines(self, registrations: list[Registration]) -> tuple[TranscriptCourse, ...]:
        grades = self._calculator.grade_scale
        lines = []
        for number, reg in enumerate(registrations, start=1):
            points = grades.points(reg.grade)
            lines.append(
                TranscriptCourse(
                    line_number=number,
                    course_code=reg.course_code,
                    course_title=reg.course_title,
                    credit_hours=reg.credits,
                    grade=reg.grade,
                    quality_points=(points * reg.credits) if points is not None else None,
                    counts_toward_gpa=points is not None,
                    semester_name=reg.semester_name,
                    instructor_name=reg.instructor_name,
                )
            )
        return tuple(lines)

    def generate_transcript(self, student_id: int, transcript_type: TranscriptType) -> Transcript:
        student = self._users.get_by_id(int(student_id))
        if not student:
            raise NotFoundError("Student not found")
        if student.role != Role.STUDENT:
            raise ValidationError("Transcripts can only be generated for students")

        registrations = list(self._registrations.list_for_user(student.user_id))
        if transcript_type == TranscriptType.ENROLLMENT_VERIFICATION:
            listed = [r for r in registrations if r.grade or r.is_active]
        else:
            listed = [r for r in registrations if r.grade]
        listed.sort(key=lambda r: (r.completed_at or r.registered_at, r.course_code))
        summary = self._calculator.summarize(registrations)

        program_name = degree_type = None
        record = self._records.get_current_for_student(student.user_id)
        if record:
            program = self._programs.get_program(record.program_id)
            if program:
                program_name, degree_type = program.name, program.degree_type

        now = now_local()
        number = dated_number("TR", now)
        official = transcript_type == TranscriptType.OFFICIAL
        transcript = Transcript(
            transcript_id=0,
            transcript_number=number,
            student_id=student.user_id,
            transcript_type=transcript_type,
            status=TranscriptStatus.PENDING_APPROVAL if official else TranscriptStatus.APPROVED,
            issue_date=now.date(),
            student_name=student.full_name,
            student_number=student.student_number,
            program_name=program_name,
            degree_type=degree_type,
            cumulative_gpa=summary.gpa,
            total_credits_attempted=summary.credits_attempted,
            total_credits_earned=summary.credits_completed,
            security_code=uuid.uuid4().hex if official else None,
            verification_url=TRANSCRIPT_VERIFY_URL.format(number=number) if official else None,
            courses=self._course_lines(listed),
        )
        transcript_id = self._transcripts.create_transcript(transcript)
        logger.info("Generated %s transcript %s for student %s", transcript_type.value, number, student.user_id)
        return self.get_transcript(transcript_id)

    def get_transcript(self, transcript_id: int) -> Transcript:
        transcript = self._transcripts.get_transcript(int(transcript_id))
        if not transcript:
            raise NotFoundError("Transcript not found")
        return transcript

    def list_for_student(self, student_id: int) -> list[Transcript]:
        return list(self._transcripts.list_for_student(int(student_id)))

    def verify(self, transcript_number: str, security_code: str) -> Transcript:
        number = require_non_empty(transcript_number, "Transcript number")
        code = require_non_empty(security_code, "Security code")
        transcript = self._transcripts.get_by_number(number)
        if (
            not transcript
            or transcript.transcript_type != TranscriptType.OFFICIAL
            or transcript.security_code != code
            or transcript.status not in VERIFIABLE_STATUSES
        ):
            raise ValidationError("Transcript could not be verified")
        return transcript

    def _move_transcript(
        self, transcript_id: int, *, expected: TranscriptStatus, target: TranscriptStatus
    ) -> Transcript:
        transcript = self.get_transcript(transcript_id)
        if transcript.status != expected:
            raise ValidationError(
                f"Transcript must be {expected.value} to become {target.value} (is {transcript.status.value})"
            )
        self._transcripts.update_transcript_status(transcript.transcript_id, target)
        logger.info("Transcript %s -> %s", transcript.transcript_number, target.value)
        return self.get_transcript(transcript.transcript_id)

    def approve_transcript(self, transcript_id: int) -> Transcript:
        return self._move_transcript(
            transcript_id, expected=TranscriptStatus.PENDING_APPROVAL, target=TranscriptStatus.APPROVED
        )

    def release_transcript(self, transcript_id: int) -> Transcript:
        return self._move_transcript(transcript_id, expected=TranscriptStatus.APPROVED, target=TranscriptStatus.RELEASED)

    # Requests

    def create_request(self, student_id: int, values: Mapping[str, Any]) -> TranscriptRequest:
        student = self._users.get_by_id(int(student_id))
        if not student:
            raise NotFoundError("Student not found")

        transcript_type = require_enum(TranscriptType, values.get("transcript_type"), "Transcript type")
        delivery = require_enum(DeliveryMethod, values.get("delivery_method"), "Delivery method")
        urgency = optional_enum(UrgencyLevel, values.get("urgency"), "Urgency") or UrgencyLevel.STANDARD
        recipient = require_non_empty(values.get("recipient_name"), "Recipient name")
        purpose = require_non_empty(values.get("purpose"), "Purpose")

        address = optional_text(values.get("delivery_address"))
        email = optional_text(values.get("delivery_email"))
        if delivery == DeliveryMethod.MAIL and not address:
            raise ValidationError("Delivery address is required for mail delivery")
        if delivery in ELECTRONIC_METHODS:
            email = require_email(email, "Delivery email")

        processing, expedite, total = calculate_fees(transcript_type, urgency)
        now = now_local()
        request = TranscriptRequest(
            request_id=0,
            request_number=dated_number("REQ", now),
            student_id=student.user_id,
            transcript_type=transcript_type,
            urgency=urgency,
            delivery_method=delivery,
            recipient_name=recipient,
            recipient_organization=optional_text(values.get("recipient_organization")),
            delivery_address=address,
            delivery_email=email,
            purpose=purpose,
            status=TranscriptRequestStatus.SUBMITTED,
            processing_fee=processing,
            expedite_fee=expedite,
            total_fee=total,
            payment_status=RequestPaymentStatus.PENDING,
            requested_at=now,
        )
        request_id = self._transcripts.create_request(request)
        logger.info("Transcript request %s submitted by student %s", request.request_number, student.user_id)
        return self.get_request(request_id)

    def get_request(self, request_id: int) -> TranscriptRequest:
        request = self._transcripts.get_request(int(request_id))
        if not request:
            raise NotFoundError("Transcript request not found")
        return request

    def _set_payment(self, request_id: int, status: RequestPaymentStatus) -> TranscriptRequest:
        request = self.get_request(request_id)
        if request.payment_status != RequestPaymentStatus.PENDING:
            raise ValidationError(f"Request payment is already {request.payment_status.value}")
        if request.status == TranscriptRequestStatus.CANCELLED:
            raise ValidationError("Request has been cancelled")
        self._transcripts.save_request(replace(request, payment_status=status))
        logger.info("Transcript request %s payment -> %s", request.request_number, status.value)
        return self.get_request(request.request_id)

    def record_request_payment(self, request_id: int) -> TranscriptRequest:
        return self._set_payment(request_id, RequestPaymentStatus.PAID)

    def waive_request_fee(self, request_id: int) -> TranscriptRequest:
        return self._set_payment(request_id, RequestPaymentStatus.WAIVED)

    def process_request(self, request_id: int) -> TranscriptRequest:
        request = self.get_request(request_id)
        if request.status != TranscriptRequestStatus.SUBMITTED:
            raise ValidationError("Only submitted requests can be processed")
        if request.payment_status not in (RequestPaymentStatus.PAID, RequestPaymentStatus.WAIVED):
            raise ValidationError("Request fee has not been paid")

        transcript = self.generate_transcript(request.student_id, request.transcript_type)
        status = (
            TranscriptRequestStatus.READY
            if request.delivery_method in ELECTRONIC_METHODS
            else TranscriptRequestStatus.PROCESSING
        )
        self._transcripts.save_request(
            replace(request, status=status, transcript_id=transcript.transcript_id, processed_at=now_local())
        )
        logger.info("Processed transcript request %s -> %s", request.request_number, status.value)
        return self.get_request(request.request_id)

    def cancel_request(self, request_id: int) -> TranscriptRequest:
        request = self.get_request(request_id)
        if request.status in FINAL_REQUEST_STATUSES:
            raise ValidationError(f"Cannot cancel a request that is {request.status.value}")
        payment = request.payment_status
        if payment == RequestPaymentStatus.PAID:
            payment = RequestPaymentStatus.REFUNDED
        self._transcripts.save_request(
            replace(request, status=TranscriptRequestStatus.CANCELLED, payment_status=payment)
        )
        logger.info("Cancelled transcript request %s (payment %s)", request.request_number, payment.value)
        return self.get_request(request.request_id)

    def update_request_status(self, request_id: int, status: TranscriptRequestStatus) -> TranscriptRequest:
        request = self.get_request(request_id)
        if request.status in (TranscriptRequestStatus.CANCELLED, TranscriptRequestStatus.DELIVERED):
            raise ValidationError(f"Request is already {request.status.value}")
        if status == TranscriptRequestStatus.CANCELLED:
            return self.cancel_request(request_id)

        now = now_local()
        updates: dict[str, Any] = {"status": status}
        if status == TranscriptRequestStatus.PROCESSING and not request.processed_at:
            updates["processed_at"] = now
        elif status == TranscriptRequestStatus.SHIPPED and not request.shipped_at:
            updates["shipped_at"] = now
            updates["tracking_number"] = request.tracking_number or f"TRK-{uuid.uuid4().hex[:12].upper()}"
        elif status == TranscriptRequestStatus.DELIVERED and not request.delivered_at:
            updates["delivered_at"] = now

        self._transcripts.save_request(replace(request, **updates))
        logger.info("Transcript request %s %s -> %s", request.request_number, request.status.value, status.value)
        return self.get_request(request.request_id)

    def list_requests_for_student(self, student_id: int) -> list[TranscriptRequest]:
        return list(self._transcripts.list_requests_for_student(int(student_id)))

    def list_pending_requests(self, page_request: PageRequest) -> Page[TranscriptRequest]:
        items, total = self._transcripts.list_requests_by_status(
            TranscriptRequestStatus.SUBMITTED, offset=page_request.offset, limit=page_request.limit
        )
        return Page(items=list(items), page=page_request.page, size=page_request.size, total=total)
