"""Academic progress arithmetic shared by records, degree audits and transcripts.

All inputs are registrations carrying their course credits; nothing here
touches the database.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional, Sequence

from ..common.datetime_utils import add_months
from ..core.constants import (
    CREDITS_PER_SEMESTER,
    DEANS_LIST_GPA,
    GOOD_STANDING_GPA,
    JUNIOR_CREDITS,
    MONTHS_PER_SEMESTER,
    PROBATION_GPA,
    SENIOR_CREDITS,
    SOPHOMORE_CREDITS,
)
from ..core.enums import AcademicStanding, ClassLevel, RegistrationStatus
from ..registrations.grading import GradeScale, LetterGradeScale
from ..registrations.model import Registration

GPA_PLACES = Decimal("0.001")
PERCENT_PLACES = Decimal("0.01")
ZERO_GPA = Decimal("0.000")

IN_PROGRESS_STATUSES = (RegistrationStatus.ENROLLED, RegistrationStatus.PENDING)
NOT_ATTEMPTED_GRADES = {"WITHDRAW"}


@dataclass(frozen=True)
class ProgressSummary:
    credits_attempted: int
    credits_completed: int
    credits_in_progress: int
    gpa_credits: int
    quality_points: Decimal
    gpa: Decimal


def round_gpa(value: Decimal) -> Decimal:
    return value.quantize(GPA_PLACES, rounding=ROUND_HALF_UP)


class ProgressCalculator:
    def __init__(self, grade_scale: Optional[GradeScale] = None):
        self._grades = grade_scale or LetterGradeScale()

    @property
    def grade_scale(self) -> GradeScale:
        return self._grades

    def _graded(self, registrations: Iterable[Registration]) -> list[Registration]:
        return [r for r in registrations if r.grade and r.grade.strip()]

    def credits_attempted(self, registrations: Iterable[Registration]) -> int:
        return sum(
            r.credits
            for r in self._graded(registrations)
            if self._grades.normalize(r.grade) not in NOT_ATTEMPTED_GRADES
        )

    def credits_completed(self, registrations: Iterable[Registration]) -> int:
        return sum(r.credits for r in self._graded(registrations) if self._grades.is_passing(r.grade))

    def credits_in_progress(self, registrations: Iterable[Registration]) -> int:
        return sum(
            r.credits
            for r in registrations
            if r.status in IN_PROGRESS_STATUSES and not (r.grade and r.grade.strip())
        )

    def quality_points(self, registrations: Iterable[Registration]) -> tuple[Decimal, int]:
        """(sum of points x credits, credits that carry grade points)."""
        points_total = Decimal("0")
        credits_total = 0
        for r in self._graded(registrations):
            points = self._grades.points(r.grade)
            if points is None:
                continue
            points_total += points * r.credits
            credits_total += r.credits
        return points_total, credits_total

    def calculate_gpa(self, registrations: Iterable[Registration]) -> Decimal:
        points_total, credits_total = self.quality_points(registrations)
        if credits_total == 0:
            return ZERO_GPA
        return round_gpa(points_total / Decimal(credits_total))

    def summarize(self, registrations: Sequence[Registration]) -> ProgressSummary:
        points_total, credits_total = self.quality_points(registrations)
        gpa = ZERO_GPA if credits_total == 0 else round_gpa(points_total / Decimal(credits_total))
        return ProgressSummary(
            credits_attempted=self.credits_attempted(registrations),
            credits_completed=self.credits_completed(registrations),
            credits_in_progress=self.credits_in_progress(registrations),
            gpa_credits=credits_total,
            quality_points=points_total,
            gpa=gpa,
        )


def completion_percentage(credits_completed: int, credits_required: int) -> Decimal:
    if credits_required <= 0:
        return Decimal("0.00")
    pct = Decimal(credits_completed) * Decimal(100) / Decimal(credits_required)
    return min(pct, Decimal(100)).quantize(PERCENT_PLACES, rounding=ROUND_HALF_UP)


def credits_remaining(required: int, completed: int, in_progress: int) -> int:
    return max(0, required - completed - in_progress)


def projected_graduation_date(remaining_credits: int, today: date) -> date:
    if remaining_credits <= 0:
        return today
    semesters = math.ceil(remaining_credits / CREDITS_PER_SEMESTER)
    return add_months(today, semesters * MONTHS_PER_SEMESTER)


def determine_academic_standing(gpa: Decimal) -> AcademicStanding:
    if gpa >= DEANS_LIST_GPA:
        return AcademicStanding.DEANS_LIST
    if gpa >= GOOD_STANDING_GPA:
        return AcademicStanding.GOOD_STANDING
    if gpa >= PROBATION_GPA:
        return AcademicStanding.ACADEMIC_PROBATION
    return AcademicStanding.ACADEMIC_DISMISSAL


def determine_class_level(credits_earned: int) -> ClassLevel:
    if credits_earned < SOPHOMORE_CREDITS:
        return ClassLevel.FRESHMAN
    if credits_earned < JUNIOR_CREDITS:
        return ClassLevel.SOPHOMORE
    if credits_earned < SENIOR_CREDITS:
        return ClassLevel.JUNIOR
    return ClassLevel.SENIOR
