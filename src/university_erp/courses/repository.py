from __future__ import annotations

from typing import Optional, Protocol, Sequence, Tuple

from ..core.enums import CourseStatus
from .model import Course, CourseData, CourseFilter, Prerequisite


class CourseRepository(Protocol):
    def get_by_id(self, course_id: int) -> Optional[Course]:
        raise NotImplementedError

    def get_by_code(self, code: str) -> Optional[Course]:
        raise NotImplementedError

    def create(self, data: CourseData, *, status: CourseStatus) -> int:
        raise NotImplementedError

    def update(self, course_id: int, data: CourseData) -> bool:
        raise NotImplementedError

    def update_status(self, course_id: int, status: CourseStatus) -> bool:
        raise NotImplementedError

    def delete_by_id(self, course_id: int) -> bool:
        raise NotImplementedError

    def search(self, criteria: CourseFilter, *, offset: int, limit: int) -> Tuple[Sequence[Course], int]:
        raise NotImplementedError

    def list_open(self) -> Sequence[Course]:
        """Courses in PUBLISHED or ACTIVE status, with enrolled counts."""

        raise NotImplementedError

    def list_by_instructor(self, instructor_id: int) -> Sequence[Course]:
        raise NotImplementedError

    def count_enrolled(self, course_id: int) -> int:
        raise NotImplementedError

    def count_all(self) -> int:
        raise NotImplementedError

    # Prerequisites
    def list_prerequisites(self, course_id: int) -> Sequence[Prerequisite]:
        raise NotImplementedError

    def add_prerequisite(self, *, course_id: int, prerequisite_course_id: int, minimum_grade: Optional[str]) -> None:
        raise NotImplementedError

    def remove_prerequisite(self, *, course_id: int, prerequisite_course_id: int) -> bool:
        raise NotImplementedError
