from __future__ import annotations

import logging
from datetime import date
from typing import Any, Mapping, Optional

from ..common.datetime_utils import parse_optional_date
from ..common.validators import optional_text, require_enum, require_int_range, require_non_empty
from ..core.enums import ProgramStatus
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..users.department_repository import DepartmentRepository
from .model import AcademicProgram, AcademicSemester
from .repository import ProgramRepository

logger = logging.getLogger(__name__)


def _as_date(value: Any, field_name: str) -> Optional[date]:
    if value is None or isinstance(value, date):
        return value
    return parse_optional_date(str(value), field_name)


class ProgramService:
    """Use case: academic programs and the semester calendar."""

    def __init__(self, programs: ProgramRepository, departments: DepartmentRepository):
        self._programs = programs
        self._departments = departments

    def get_program(self, program_id: int) -> AcademicProgram:
        program = self._programs.get_program(int(program_id))
        if not program:
            raise NotFoundError("Academic program not found")
        return program

    def list_programs(self, *, status: Optional[ProgramStatus] = None) -> list[AcademicProgram]:
        return list(self._programs.list_programs(status=status))

    def _department_id(self, value: Any) -> Optional[int]:
        if value in (None, ""):
            return None
        dept = self._departments.get_by_id(int(value))
        if not dept:
            raise NotFoundError("Department not found")
        return dept.department_id

    def create_program(self, values: Mapping[str, Any]) -> AcademicProgram:
        code = require_non_empty(values.get("code"), "Program code").upper()
        if self._programs.get_program_by_code(code):
            raise ConflictError(f"Program code {code} already exists")

        program_id = self._programs.create_program(
            code=code,
            name=require_non_empty(values.get("name"), "Program name"),
            department_id=self._department_id(values.get("department_id")),
            degree_type=require_non_empty(values.get("degree_type"), "Degree type"),
            credit_requirements=require_int_range(values.get("credit_requirements"), "Credit requirements", minimum=1),
            duration_semesters=require_int_range(values.get("duration_semesters", 8), "Duration", minimum=1),
            description=optional_text(values.get("description")),
        )
        logger.info("Created program %s", code)
        return self.get_program(program_id)

    def update_program(self, program_id: int, changes: Mapping[str, Any]) -> AcademicProgram:
        program = self.get_program(program_id)
        self._programs.update_program(
            program.program_id,
            name=require_non_empty(changes.get("name", program.name), "Program name"),
            department_id=(
                self._department_id(changes["department_id"]) if "department_id" in changes else program.department_id
            ),
            degree_type=require_non_empty(changes.get("degree_type", program.degree_type), "Degree type"),
            credit_requirements=require_int_range(
                changes.get("credit_requirements", program.credit_requirements), "Credit requirements", minimum=1
            ),
            duration_semesters=require_int_range(
                changes.get("duration_semesters", program.duration_semesters), "Duration", minimum=1
            ),
            status=require_enum(ProgramStatus, changes.get("status", program.status), "Status"),
            description=optional_text(changes.get("description", program.description)),
        )
        return self.get_program(program.program_id)

    def get_semester(self, semester_id: int) -> AcademicSemester:
        semester = self._programs.get_semester(int(semester_id))
        if not semester:
            raise NotFoundError("Semester not found")
        return semester

    def list_semesters(self) -> list[AcademicSemester]:
        return list(self._programs.list_semesters())

    def get_current_semester(self) -> Optional[AcademicSemester]:
        return self._programs.get_current_semester()

    def create_semester(self, values: Mapping[str, Any]) -> AcademicSemester:
        code = require_non_empty(values.get("code"), "Semester code").upper()
        if self._programs.get_semester_by_code(code):
            raise ConflictError(f"Semester {code} already exists")

        start = _as_date(values.get("start_date"), "Start date")
        end = _as_date(values.get("end_date"), "End date")
        if not start or not end:
            raise ValidationError("Start date and end date are required")
        if end <= start:
            raise ValidationError("Semester must end after it starts")

        reg_start = _as_date(values.get("registration_start"), "Registration start")
        reg_end = _as_date(values.get("registration_end"), "Registration end")
        if reg_start and reg_end and reg_end < reg_start:
            raise ValidationError("Registration window ends before it starts")
        add_drop = _as_date(values.get("add_drop_deadline"), "Add/drop deadline")
        if add_drop and not (start <= add_drop <= end):
            raise ValidationError("Add/drop deadline must fall inside the semester")

        semester_id = self._programs.create_semester(
            code=code,
            name=require_non_empty(values.get("name"), "Semester name"),
            start_date=start,
            end_date=end,
            registration_start=reg_start,
            registration_end=reg_end,
            add_drop_deadline=add_drop,
        )
        if values.get("is_current"):
            self._programs.set_current_semester(semester_id)
        logger.info("Created semester %s", code)
        return self.get_semester(semester_id)

    def set_current_semester(self, semester_id: int) -> AcademicSemester:
        semester = self.get_semester(semester_id)
        self._programs.set_current_semester(semester.semester_id)
        logger.info("Current semester is now %s", semester.code)
        return self.get_semester(semester.semester_id)
