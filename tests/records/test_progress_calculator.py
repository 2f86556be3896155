from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from university_erp.core.enums import AcademicStanding, ClassLevel, FeePaymentStatus, RegistrationStatus
from university_erp.records.progress import (
    ProgressCalculator,
    completion_percentage,
    credits_remaining,
    determine_academic_standing,
    determine_class_level,
    projected_graduation_date,
)
from university_erp.registrations.model import Registration


def _reg(rid: int, credits: int, status: RegistrationStatus, grade=None) -> Registration:
    return Registration(
        registration_id=rid,
        user_id=7,
        course_id=100 + rid,
        status=status,
        course_fee=Decimal("500.00"),
        payment_status=FeePaymentStatus.PENDING,
        registered_at=datetime(2026, 1, 10, 9, 0),
        grade=grade,
        course_code=f"C{rid}",
        credits=credits,
    )


HISTORY = [
    _reg(1, 3, RegistrationStatus.COMPLETED, "A"),
    _reg(2, 4, RegistrationStatus.COMPLETED, "B"),
    _reg(3, 3, RegistrationStatus.FAILED, "F"),
    _reg(4, 2, RegistrationStatus.COMPLETED, "PASS"),
    _reg(5, 3, RegistrationStatus.WITHDRAWN, "WITHDRAW"),
    _reg(6, 3, RegistrationStatus.ENROLLED),
    _reg(7, 3, RegistrationStatus.DROPPED),
]


def test_summary_over_mixed_history():
    summary = ProgressCalculator().summarize(HISTORY)

    assert summary.credits_attempted == 12
    assert summary.credits_completed == 9
    assert summary.credits_in_progress == 3
    assert summary.gpa_credits == 10
    assert summary.quality_points == Decimal("24.0")
    assert summary.gpa == Decimal("2.400")


def test_gpa_is_rounded_half_up_to_three_places():
    regs = [_reg(1, 3, RegistrationStatus.COMPLETED, "A"), _reg(2, 4, RegistrationStatus.COMPLETED, "B")]
    assert ProgressCalculator().calculate_gpa(regs) == Decimal("3.429")


def test_gpa_without_graded_credits_is_zero():
    regs = [_reg(1, 3, RegistrationStatus.ENROLLED), _reg(2, 2, RegistrationStatus.COMPLETED, "P")]
    assert ProgressCalculator().calculate_gpa(regs) == Decimal("0.000")


def test_completion_percentage_is_capped():
    assert completion_percentage(45, 120) == Decimal("37.50")
    assert completion_percentage(130, 120) == Decimal("100.00")
    assert completion_percentage(10, 0) == Decimal("0.00")


def test_credits_remaining_never_negative():
    assert credits_remaining(120, 100, 12) == 8
    assert credits_remaining(120, 115, 12) == 0


def test_projected_graduation_date():
    today = date(2026, 1, 15)
    assert projected_graduation_date(0, today) == today
    assert projected_graduation_date(31, today) == date(2027, 1, 15)


def test_academic_standing_thresholds():
    assert determine_academic_standing(Decimal("3.5")) == AcademicStanding.DEANS_LIST
    assert determine_academic_standing(Decimal("2.0")) == AcademicStanding.GOOD_STANDING
    assert determine_academic_standing(Decimal("1.5")) == AcademicStanding.ACADEMIC_PROBATION
    assert determine_academic_standing(Decimal("1.499")) == AcademicStanding.ACADEMIC_DISMISSAL


def test_class_level_thresholds():
    assert determine_class_level(29) == ClassLevel.FRESHMAN
    assert determine_class_level(30) == ClassLevel.SOPHOMORE
    assert determine_class_level(60) == ClassLevel.JUNIOR
    assert determine_class_level(90) == ClassLevel.SENIOR
