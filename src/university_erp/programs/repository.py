from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..core.enums import ProgramStatus
from .model import AcademicProgram, AcademicSemester


class ProgramRepository(Protocol):
    # Programs
    def get_program(self, program_id: int) -> Optional[AcademicProgram]:
        raise NotImplementedError

    def get_program_by_code(self, code: str) -> Optional[AcademicProgram]:
        raise NotImplementedError

    def create_program(
        self,
        *,
        code: str,
        name: str,
        department_id: Optional[int],
        degree_type: str,
        credit_requirements: int,
        duration_semesters: int,
        description: Optional[str],
    ) -> int:
        raise NotImplementedError

    def update_program(
        self,
        program_id: int,
        *,
        name: str,
        department_id: Optional[int],
        degree_type: str,
        credit_requirements: int,
        duration_semesters: int,
        status: ProgramStatus,
        description: Optional[str],
    ) -> bool:
        raise NotImplementedError

    def list_programs(self, *, status: Optional[ProgramStatus] = None) -> Sequence[AcademicProgram]:
        raise NotImplementedError

    # Semesters
    def get_semester(self, semester_id: int) -> Optional[AcademicSemester]:
        raise NotImplementedError

    def get_semester_by_code(self, code: str) -> Optional[AcademicSemester]:
        raise NotImplementedError

    def get_current_semester(self) -> Optional[AcademicSemester]:
        raise NotImplementedError

    def create_semester(
        self,
        *,
        code: str,
        name: str,
        start_date: date,
        end_date: date,
        registration_start: Optional[date],
        registration_end: Optional[date],
        add_drop_deadline: Optional[date],
    ) -> int:
        raise NotImplementedError

    def list_semesters(self) -> Sequence[AcademicSemester]:
        raise NotImplementedError

    def set_current_semester(self, semester_id: int) -> None:
        """Mark one semester current and clear the flag on all others."""

        raise NotImplementedError
