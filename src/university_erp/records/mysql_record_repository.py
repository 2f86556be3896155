from __future__ import annotations

from decimal import Decimal
from typing import Optional, Sequence, Tuple

from ..core.enums import AcademicStanding, ClassLevel, EnrollmentStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_decimal, db_cursor, fetch_count, fetchall, fetchone, optional_decimal
from .model import RecordStatistics, StudentAcademicRecord
from .repository import AcademicRecordRepository

_SELECT = """
    SELECT ar.record_id, ar.student_id, ar.program_id, ar.semester_id, ar.enrollment_status, ar.class_level,
           ar.academic_standing, ar.cumulative_gpa, ar.semester_gpa, ar.total_credits_attempted,
           ar.total_credits_earned, ar.expected_graduation_date, ar.graduation_date,
           ar.graduation_eligibility_verified, ar.record_date, ar.notes,
           CONCAT_WS(' ', u.first_name, u.last_name) AS student_name,
           p.name AS program_name, s.name AS semester_name
    FROM student_academic_records ar
    JOIN users u ON u.user_id = ar.student_id
    JOIN academic_programs p ON p.program_id = ar.program_id
    JOIN academic_semesters s ON s.semester_id = ar.semester_id
"""

_LATEST_PER_STUDENT = """
    ar.record_id = (SELECT MAX(x.record_id) FROM student_academic_records x WHERE x.student_id = ar.student_id)
"""


def _row_to_record(row: dict) -> StudentAcademicRecord:
    return StudentAcademicRecord(
        record_id=int(row["record_id"]),
        student_id=int(row["student_id"]),
        program_id=int(row["program_id"]),
        semester_id=int(row["semester_id"]),
        enrollment_status=EnrollmentStatus(row["enrollment_status"]),
        class_level=ClassLevel(row["class_level"]),
        academic_standing=AcademicStanding(row["academic_standing"]),
        cumulative_gpa=as_decimal(row.get("cumulative_gpa")),
        semester_gpa=as_decimal(row.get("semester_gpa")),
        total_credits_attempted=int(row.get("total_credits_attempted") or 0),
        total_credits_earned=int(row.get("total_credits_earned") or 0),
        expected_graduation_date=row.get("expected_graduation_date"),
        graduation_date=row.get("graduation_date"),
        graduation_eligibility_verified=bool(row.get("graduation_eligibility_verified")),
        record_date=row["record_date"],
        notes=row.get("notes"),
        student_name=row.get("student_name") or "",
        program_name=row.get("program_name") or "",
        semester_name=row.get("semester_name") or "",
    )


def _record_params(record: StudentAcademicRecord) -> tuple:
    return (
        record.student_id,
        record.program_id,
        record.semester_id,
        record.enrollment_status.value,
        record.class_level.value,
        record.academic_standing.value,
        record.cumulative_gpa,
        record.semester_gpa,
        record.total_credits_attempted,
        record.total_credits_earned,
        record.expected_graduation_date,
        record.graduation_date,
        1 if record.graduation_eligibility_verified else 0,
        record.record_date,
        record.notes,
    )


class MySQLAcademicRecordRepository(AcademicRecordRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, record_id: int) -> Optional[StudentAcademicRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE ar.record_id=%s", (int(record_id),))
            row = fetchone(cur)
            return _row_to_record(row) if row else None

    def list_for_student(self, student_id: int) -> Sequence[StudentAcademicRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"{_SELECT} WHERE ar.student_id=%s ORDER BY ar.record_date DESC, ar.record_id DESC",
                (int(student_id),),
            )
            return [_row_to_record(r) for r in fetchall(cur)]

    def get_current_for_student(self, student_id: int) -> Optional[StudentAcademicRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"{_SELECT} WHERE ar.student_id=%s ORDER BY ar.record_id DESC LIMIT 1",
                (int(student_id),),
            )
            row = fetchone(cur)
            return _row_to_record(row) if row else None

    def find(self, *, student_id: int, program_id: int, semester_id: int) -> Optional[StudentAcademicRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"{_SELECT} WHERE ar.student_id=%s AND ar.program_id=%s AND ar.semester_id=%s",
                (int(student_id), int(program_id), int(semester_id)),
            )
            row = fetchone(cur)
            return _row_to_record(row) if row else None

    def create(self, record: StudentAcademicRecord) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO student_academic_records(
                    student_id, program_id, semester_id, enrollment_status, class_level, academic_standing,
                    cumulative_gpa, semester_gpa, total_credits_attempted, total_credits_earned,
                    expected_graduation_date, graduation_date, graduation_eligibility_verified, record_date, notes)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                _record_params(record),
            )
            return int(cur.lastrowid)

    def save(self, record: StudentAcademicRecord) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE student_academic_records
                SET student_id=%s, program_id=%s, semester_id=%s, enrollment_status=%s, class_level=%s,
                    academic_standing=%s, cumulative_gpa=%s, semester_gpa=%s, total_credits_attempted=%s,
                    total_credits_earned=%s, expected_graduation_date=%s, graduation_date=%s,
                    graduation_eligibility_verified=%s, record_date=%s, notes=%s
                WHERE record_id=%s
                """,
                (*_record_params(record), record.record_id),
            )
            return cur.rowcount > 0

    def list_by_standing(
        self, standing: AcademicStanding, *, offset: int, limit: int
    ) -> Tuple[Sequence[StudentAcademicRecord], int]:
        with db_cursor(self._conn_factory) as (_, cur):
            total = fetch_count(
                cur,
                "SELECT COUNT(*) AS total FROM student_academic_records WHERE academic_standing=%s",
                (standing.value,),
            )
            cur.execute(
                f"{_SELECT} WHERE ar.academic_standing=%s ORDER BY ar.cumulative_gpa DESC LIMIT %s OFFSET %s",
                (standing.value, int(limit), int(offset)),
            )
            return [_row_to_record(r) for r in fetchall(cur)], total

    def list_by_program_and_semester(
        self, *, program_id: int, semester_id: int, offset: int, limit: int
    ) -> Tuple[Sequence[StudentAcademicRecord], int]:
        params = (int(program_id), int(semester_id))
        with db_cursor(self._conn_factory) as (_, cur):
            total = fetch_count(
                cur,
                "SELECT COUNT(*) AS total FROM student_academic_records WHERE program_id=%s AND semester_id=%s",
                params,
            )
            cur.execute(
                f"""{_SELECT} WHERE ar.program_id=%s AND ar.semester_id=%s
                ORDER BY u.last_name, u.first_name LIMIT %s OFFSET %s""",
                (*params, int(limit), int(offset)),
            )
            return [_row_to_record(r) for r in fetchall(cur)], total

    def list_eligible_for_graduation(self) -> Sequence[StudentAcademicRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""{_SELECT}
                WHERE ar.graduation_eligibility_verified=1 AND ar.enrollment_status<>%s AND {_LATEST_PER_STUDENT}
                ORDER BY u.last_name, u.first_name""",
                (EnrollmentStatus.GRADUATED.value,),
            )
            return [_row_to_record(r) for r in fetchall(cur)]

    def statistics(self, program_id: int) -> RecordStatistics:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT COUNT(*) AS total_students,
                       COALESCE(AVG(ar.cumulative_gpa), 0) AS average_gpa,
                       COALESCE(SUM(ar.enrollment_status=%s), 0) AS graduated_count
                FROM student_academic_records ar
                WHERE ar.program_id=%s AND {_LATEST_PER_STUDENT}
                """,
                (EnrollmentStatus.GRADUATED.value, int(program_id)),
            )
            row = fetchone(cur) or {}
            return RecordStatistics(
                program_id=int(program_id),
                total_students=int(row.get("total_students") or 0),
                average_gpa=as_decimal(row.get("average_gpa")),
                graduated_count=int(row.get("graduated_count") or 0),
            )

    def standing_distribution(self) -> dict[AcademicStanding, int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT ar.academic_standing, COUNT(*) AS total
                FROM student_academic_records ar
                WHERE {_LATEST_PER_STUDENT}
                GROUP BY ar.academic_standing
                """
            )
            return {AcademicStanding(r["academic_standing"]): int(r["total"]) for r in fetchall(cur)}

    def average_cumulative_gpa(self) -> Optional[Decimal]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT AVG(ar.cumulative_gpa) AS average_gpa
                FROM student_academic_records ar
                WHERE {_LATEST_PER_STUDENT}
                """
            )
            row = fetchone(cur)
            return optional_decimal(row["average_gpa"]) if row else None
