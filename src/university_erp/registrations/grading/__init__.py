from .base import GradeScale
from .letter_scale import LetterGradeScale

__all__ = ["GradeScale", "LetterGradeScale"]
