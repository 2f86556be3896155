from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..core.enums import ProgramStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import AcademicProgram, AcademicSemester
from .repository import ProgramRepository

_PROGRAM_COLUMNS = """
    program_id, code, name, department_id, degree_type, credit_requirements,
    duration_semesters, status, description
"""

_SEMESTER_COLUMNS = """
    semester_id, code, name, start_date, end_date, registration_start, registration_end,
    add_drop_deadline, is_current
"""


def _row_to_program(row: dict) -> AcademicProgram:
    return AcademicProgram(
        program_id=int(row["program_id"]),
        code=row["code"],
        name=row["name"],
        department_id=row.get("department_id"),
        degree_type=row["degree_type"],
        credit_requirements=int(row["credit_requirements"]),
        duration_semesters=int(row["duration_semesters"]),
        status=ProgramStatus(row["status"]),
        description=row.get("description"),
    )


def _row_to_semester(row: dict) -> AcademicSemester:
    return AcademicSemester(
        semester_id=int(row["semester_id"]),
        code=row["code"],
        name=row["name"],
        start_date=row["start_date"],
        end_date=row["end_date"],
        registration_start=row.get("registration_start"),
        registration_end=row.get("registration_end"),
        add_drop_deadline=row.get("add_drop_deadline"),
        is_current=bool(row.get("is_current")),
    )


class MySQLProgramRepository(ProgramRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_program(self, program_id: int) -> Optional[AcademicProgram]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_PROGRAM_COLUMNS} FROM academic_programs WHERE program_id=%s", (int(program_id),))
            row = fetchone(cur)
            return _row_to_program(row) if row else None

    def get_program_by_code(self, code: str) -> Optional[AcademicProgram]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_PROGRAM_COLUMNS} FROM academic_programs WHERE code=%s", (code,))
            row = fetchone(cur)
            return _row_to_program(row) if row else None

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO academic_programs(code, name, department_id, degree_type, credit_requirements,
                                              duration_semesters, status, description)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    code,
                    name,
                    department_id,
                    degree_type,
                    credit_requirements,
                    duration_semesters,
                    ProgramStatus.ACTIVE.value,
                    description,
                ),
            )
            return int(cur.lastrowid)

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE academic_programs
                SET name=%s, department_id=%s, degree_type=%s, credit_requirements=%s,
                    duration_semesters=%s, status=%s, description=%s
                WHERE program_id=%s
                """,
                (
                    name,
                    department_id,
                    degree_type,
                    credit_requirements,
                    duration_semesters,
                    status.value,
                    description,
                    int(program_id),
                ),
            )
            return cur.rowcount > 0

    def list_programs(self, *, status: Optional[ProgramStatus] = None) -> Sequence[AcademicProgram]:
        with db_cursor(self._conn_factory) as (_, cur):
            if status:
                cur.execute(
                    f"SELECT {_PROGRAM_COLUMNS} FROM academic_programs WHERE status=%s ORDER BY name",
                    (status.value,),
                )
            else:
                cur.execute(f"SELECT {_PROGRAM_COLUMNS} FROM academic_programs ORDER BY name")
            return [_row_to_program(r) for r in fetchall(cur)]

    def get_semester(self, semester_id: int) -> Optional[AcademicSemester]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_SEMESTER_COLUMNS} FROM academic_semesters WHERE semester_id=%s", (int(semester_id),))
            row = fetchone(cur)
            return _row_to_semester(row) if row else None

    def get_semester_by_code(self, code: str) -> Optional[AcademicSemester]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_SEMESTER_COLUMNS} FROM academic_semesters WHERE code=%s", (code,))
            row = fetchone(cur)
            return _row_to_semester(row) if row else None

    def get_current_semester(self) -> Optional[AcademicSemester]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_SEMESTER_COLUMNS} FROM academic_semesters WHERE is_current=1 LIMIT 1")
            row = fetchone(cur)
            return _row_to_semester(row) if row else None

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO academic_semesters(code, name, start_date, end_date, registration_start,
                                               registration_end, add_drop_deadline, is_current)
                VALUES(%s,%s,%s,%s,%s,%s,%s,0)
                """,
                (code, name, start_date, end_date, registration_start, registration_end, add_drop_deadline),
            )
            return int(cur.lastrowid)

    def list_semesters(self) -> Sequence[AcademicSemester]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_SEMESTER_COLUMNS} FROM academic_semesters ORDER BY start_date DESC")
            return [_row_to_semester(r) for r in fetchall(cur)]

    def set_current_semester(self, semester_id: int) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE academic_semesters SET is_current=0 WHERE is_current=1")
            cur.execute("UPDATE academic_semesters SET is_current=1 WHERE semester_id=%s", (int(semester_id),))
