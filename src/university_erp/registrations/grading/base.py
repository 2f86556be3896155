from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Optional


class GradeScale(ABC):
    """Grade scale interface (Strategy Pattern for grading)."""

    @abstractmethod
    def normalize(self, grade: str) -> str:
        raise NotImplementedError

    @abstractmethod
    def is_valid(self, grade: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    def points(self, grade: Optional[str]) -> Optional[Decimal]:
        """Grade points on a 4.0 scale, or None when the grade does not count toward GPA."""
        raise NotImplementedError

    @abstractmethod
    def is_passing(self, grade: Optional[str]) -> bool:
        raise NotImplementedError

    @abstractmethod
    def is_failing(self, grade: Optional[str]) -> bool:
        raise NotImplementedError

    @abstractmethod
    def meets_minimum(self, grade: Optional[str], minimum: Optional[str]) -> bool:
        raise NotImplementedError
