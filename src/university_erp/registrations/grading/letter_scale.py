from __future__ import annotations

import re
from decimal import Decimal
from typing import Optional

from .base import GradeScale

LETTER_POINTS = {
    "A+": Decimal("4.0"),
    "A": Decimal("4.0"),
    "A-": Decimal("3.7"),
    "B+": Decimal("3.3"),
    "B": Decimal("3.0"),
    "B-": Decimal("2.7"),
    "C+": Decimal("2.3"),
    "C": Decimal("2.0"),
    "C-": Decimal("1.7"),
    "D+": Decimal("1.3"),
    "D": Decimal("1.0"),
    "D-": Decimal("0.7"),
    "F": Decimal("0.0"),
}

PASS_GRADES = {"P", "PASS"}
FAIL_GRADES = {"F", "FAIL"}
NON_GPA_GRADES = PASS_GRADES | {"FAIL", "INCOMPLETE", "WITHDRAW"}

# PASS/FAIL courses compare against explicit minimum grades as a C.
PASS_EQUIVALENT_POINTS = Decimal("2.0")

_PASSING_RE = re.compile(r"^[A-D][+-]?$")


class LetterGradeScale(GradeScale):
    """Standard US letter scale: A+/A 4.0 down to D- 0.7, F 0.0."""

    def normalize(self, grade: str) -> str:
        return (grade or "").strip().upper()

    def is_valid(self, grade: str) -> bool:
        g = self.normalize(grade)
        return g in LETTER_POINTS or g in NON_GPA_GRADES

    def points(self, grade: Optional[str]) -> Optional[Decimal]:
        if grade is None:
            return None
        return LETTER_POINTS.get(self.normalize(grade))

    def is_passing(self, grade: Optional[str]) -> bool:
        if not grade:
            return False
        g = self.normalize(grade)
        return bool(_PASSING_RE.match(g)) or g in PASS_GRADES

    def is_failing(self, grade: Optional[str]) -> bool:
        return bool(grade) and self.normalize(grade) in FAIL_GRADES

    def meets_minimum(self, grade: Optional[str], minimum: Optional[str]) -> bool:
        if not self.is_passing(grade):
            return False
        if not minimum:
            return True
        required = self.points(minimum)
        if required is None:
            return True
        earned = self.points(grade)
        if earned is None:
            earned = PASS_EQUIVALENT_POINTS
        return earned >= required
