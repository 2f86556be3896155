from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User role used for authorization."""

    ADMIN = "ADMIN"
    STAFF = "STAFF"
    INSTRUCTOR = "INSTRUCTOR"
    STUDENT = "STUDENT"


class CourseStatus(str, Enum):
    """Lifecycle of a course offering. Only PUBLISHED and ACTIVE accept enrollments."""

    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class ProgramStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class RegistrationStatus(str, Enum):
    ENROLLED = "ENROLLED"
    COMPLETED = "COMPLETED"
    DROPPED = "DROPPED"
    PENDING = "PENDING"
    WITHDRAWN = "WITHDRAWN"
    FAILED = "FAILED"
    TRANSFERRED = "TRANSFERRED"


class FeePaymentStatus(str, Enum):
    """Payment state of the course fee attached to a registration."""

    PENDING = "PENDING"
    PAID = "PAID"
    PARTIALLY_PAID = "PARTIALLY_PAID"
    OVERDUE = "OVERDUE"
    REFUNDED = "REFUNDED"
    CANCELLED = "CANCELLED"


class EnrollmentStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    GRADUATED = "GRADUATED"
    WITHDRAWN = "WITHDRAWN"
    SUSPENDED = "SUSPENDED"
    LEAVE_OF_ABSENCE = "LEAVE_OF_ABSENCE"


class ClassLevel(str, Enum):
    FRESHMAN = "FRESHMAN"
    SOPHOMORE = "SOPHOMORE"
    JUNIOR = "JUNIOR"
    SENIOR = "SENIOR"
    GRADUATE = "GRADUATE"
    DOCTORAL = "DOCTORAL"


class AcademicStanding(str, Enum):
    GOOD_STANDING = "GOOD_STANDING"
    ACADEMIC_PROBATION = "ACADEMIC_PROBATION"
    ACADEMIC_SUSPENSION = "ACADEMIC_SUSPENSION"
    ACADEMIC_DISMISSAL = "ACADEMIC_DISMISSAL"
    DEANS_LIST = "DEANS_LIST"


class AuditType(str, Enum):
    PROGRESS = "PROGRESS"
    GRADUATION = "GRADUATION"
    TRANSFER_CREDIT = "TRANSFER_CREDIT"
    DEGREE_CHANGE = "DEGREE_CHANGE"


class TranscriptType(str, Enum):
    OFFICIAL = "OFFICIAL"
    UNOFFICIAL = "UNOFFICIAL"
    ENROLLMENT_VERIFICATION = "ENROLLMENT_VERIFICATION"
    DEGREE_VERIFICATION = "DEGREE_VERIFICATION"


class TranscriptStatus(str, Enum):
    DRAFT = "DRAFT"
    PENDING_APPROVAL = "PENDING_APPROVAL"
    APPROVED = "APPROVED"
    RELEASED = "RELEASED"
    CANCELLED = "CANCELLED"


class UrgencyLevel(str, Enum):
    STANDARD = "STANDARD"
    EXPEDITED = "EXPEDITED"
    RUSH = "RUSH"


class DeliveryMethod(str, Enum):
    EMAIL = "EMAIL"
    MAIL = "MAIL"
    PICKUP = "PICKUP"
    ELECTRONIC_DELIVERY = "ELECTRONIC_DELIVERY"


class TranscriptRequestStatus(str, Enum):
    SUBMITTED = "SUBMITTED"
    PROCESSING = "PROCESSING"
    READY = "READY"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


class RequestPaymentStatus(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    WAIVED = "WAIVED"
    REFUNDED = "REFUNDED"


class BillingStatus(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    PARTIAL = "PARTIAL"
    OVERDUE = "OVERDUE"
    CANCELLED = "CANCELLED"
    REFUNDED = "REFUNDED"


class LineItemType(str, Enum):
    TUITION = "TUITION"
    FEE = "FEE"
    LATE_FEE = "LATE_FEE"
    ADJUSTMENT = "ADJUSTMENT"
    OTHER = "OTHER"


class AccountStatus(str, Enum):
    ACTIVE = "ACTIVE"
    HOLD = "HOLD"
    CLOSED = "CLOSED"


class PaymentMethod(str, Enum):
    CARD = "CARD"
    BANK_TRANSFER = "BANK_TRANSFER"
    CASH = "CASH"
    CHECK = "CHECK"
    FINANCIAL_AID = "FINANCIAL_AID"


class LeaveRequestStatus(str, Enum):
    """Approval flow of an HR leave request."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"


class LeaveTypeStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
