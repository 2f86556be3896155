from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from ..core.enums import ProgramStatus


@dataclass(frozen=True)
class AcademicProgram:
    program_id: int
    code: str
    name: str
    degree_type: str
    credit_requirements: int
    duration_semesters: int
    status: ProgramStatus = ProgramStatus.ACTIVE
    department_id: Optional[int] = None
    description: Optional[str] = None


@dataclass(frozen=True)
class AcademicSemester:
    semester_id: int
    code: str
    name: str
    start_date: date
    end_date: date
    registration_start: Optional[date] = None
    registration_end: Optional[date] = None
    add_drop_deadline: Optional[date] = None
    is_current: bool = False

    def registration_open(self, on: date) -> bool:
        if self.registration_start and on < self.registration_start:
            return False
        if self.registration_end and on > self.registration_end:
            return False
        return True
