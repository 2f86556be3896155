from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from ..core.enums import (
    DeliveryMethod,
    RequestPaymentStatus,
    TranscriptRequestStatus,
    TranscriptStatus,
    TranscriptType,
    UrgencyLevel,
)


@dataclass(frozen=True)
class TranscriptCourse:
    line_number: int
    course_code: str
    course_title: str
    credit_hours: int
    grade: Optional[str]
    quality_points: Optional[Decimal]
    counts_toward_gpa: bool
    semester_name: Optional[str] = None
    instructor_name: Optional[str] = None


@dataclass(frozen=True)
class Transcript:
    transcript_id: int
    transcript_number: str
    student_id: int
    transcript_type: TranscriptType
    status: TranscriptStatus
    issue_date: date
    student_name: str
    cumulative_gpa: Decimal
    total_credits_attempted: int
    total_credits_earned: int
    student_number: Optional[str] = None
    program_name: Optional[str] = None
    degree_type: Optional[str] = None
    security_code: Optional[str] = None
    verification_url: Optional[str] = None
    courses: tuple[TranscriptCourse, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class TranscriptRequest:
    request_id: int
    request_number: str
    student_id: int
    transcript_type: TranscriptType
    urgency: UrgencyLevel
    delivery_method: DeliveryMethod
    recipient_name: str
    purpose: str
    status: TranscriptRequestStatus
    processing_fee: Decimal
    expedite_fee: Decimal
    total_fee: Decimal
    payment_status: RequestPaymentStatus
    requested_at: datetime
    recipient_organization: Optional[str] = None
    delivery_address: Optional[str] = None
    delivery_email: Optional[str] = None
    processed_at: Optional[datetime] = None
    shipped_at: Optional[datetime] = None
    tracking_number: Optional[str] = None
    delivered_at: Optional[datetime] = None
    transcript_id: Optional[int] = None
