from __future__ import annotations

from typing import Optional, Sequence, Tuple

from ..core.enums import AuditType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_decimal, db_cursor, fetch_count, fetchall, fetchone
from .model import DegreeAudit
from .repository import DegreeAuditRepository

_SELECT = """
    SELECT a.audit_id, a.student_id, a.program_id, a.audit_type, a.audit_date, a.total_credits_required,
           a.credits_completed, a.credits_in_progress, a.credits_remaining, a.minimum_gpa_required,
           a.current_gpa, a.gpa_requirement_met, a.eligible_for_graduation, a.completion_percentage,
           a.projected_graduation_date, a.notes,
           CONCAT_WS(' ', u.first_name, u.last_name) AS student_name, p.name AS program_name
    FROM degree_audits a
    JOIN users u ON u.user_id = a.student_id
    JOIN academic_programs p ON p.program_id = a.program_id
"""

_NEWEST_FIRST = "ORDER BY a.audit_date DESC, a.audit_id DESC"


def _row_to_audit(row: dict) -> DegreeAudit:
    return DegreeAudit(
        audit_id=int(row["audit_id"]),
        student_id=int(row["student_id"]),
        program_id=int(row["program_id"]),
        audit_type=AuditType(row["audit_type"]),
        audit_date=row["audit_date"],
        total_credits_required=int(row["total_credits_required"]),
        credits_completed=int(row["credits_completed"]),
        credits_in_progress=int(row["credits_in_progress"]),
        credits_remaining=int(row["credits_remaining"]),
        minimum_gpa_required=as_decimal(row.get("minimum_gpa_required")),
        current_gpa=as_decimal(row.get("current_gpa")),
        gpa_requirement_met=bool(row.get("gpa_requirement_met")),
        eligible_for_graduation=bool(row.get("eligible_for_graduation")),
        completion_percentage=as_decimal(row.get("completion_percentage")),
        projected_graduation_date=row.get("projected_graduation_date"),
        notes=row.get("notes"),
        student_name=row.get("student_name") or "",
        program_name=row.get("program_name") or "",
    )


def _audit_params(audit: DegreeAudit) -> tuple:
    return (
        audit.student_id,
        audit.program_id,
        audit.audit_type.value,
        audit.audit_date,
        audit.total_credits_required,
        audit.credits_completed,
        audit.credits_in_progress,
        audit.credits_remaining,
        audit.minimum_gpa_required,
        audit.current_gpa,
        1 if audit.gpa_requirement_met else 0,
        1 if audit.eligible_for_graduation else 0,
        audit.completion_percentage,
        audit.projected_graduation_date,
        audit.notes,
    )


class MySQLDegreeAuditRepository(DegreeAuditRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, audit_id: int) -> Optional[DegreeAudit]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE a.audit_id=%s", (int(audit_id),))
            row = fetchone(cur)
            return _row_to_audit(row) if row else None

    def create(self, audit: DegreeAudit) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO degree_audits(
                    student_id, program_id, audit_type, audit_date, total_credits_required, credits_completed,
                    credits_in_progress, credits_remaining, minimum_gpa_required, current_gpa,
                    gpa_requirement_met, eligible_for_graduation, completion_percentage,
                    projected_graduation_date, notes)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                _audit_params(audit),
            )
            return int(cur.lastrowid)

    def save(self, audit: DegreeAudit) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE degree_audits
                SET student_id=%s, program_id=%s, audit_type=%s, audit_date=%s, total_credits_required=%s,
                    credits_completed=%s, credits_in_progress=%s, credits_remaining=%s,
                    minimum_gpa_required=%s, current_gpa=%s, gpa_requirement_met=%s,
                    eligible_for_graduation=%s, completion_percentage=%s, projected_graduation_date=%s, notes=%s
                WHERE audit_id=%s
                """,
                (*_audit_params(audit), audit.audit_id),
            )
            return cur.rowcount > 0

    def list_for_student(self, student_id: int) -> Sequence[DegreeAudit]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE a.student_id=%s {_NEWEST_FIRST}", (int(student_id),))
            return [_row_to_audit(r) for r in fetchall(cur)]

    def get_latest_for_student(self, student_id: int) -> Optional[DegreeAudit]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE a.student_id=%s {_NEWEST_FIRST} LIMIT 1", (int(student_id),))
            row = fetchone(cur)
            return _row_to_audit(row) if row else None

    def list_for_program(self, program_id: int, *, offset: int, limit: int) -> Tuple[Sequence[DegreeAudit], int]:
        with db_cursor(self._conn_factory) as (_, cur):
            total = fetch_count(
                cur, "SELECT COUNT(*) AS total FROM degree_audits WHERE program_id=%s", (int(program_id),)
            )
            cur.execute(
                f"{_SELECT} WHERE a.program_id=%s {_NEWEST_FIRST} LIMIT %s OFFSET %s",
                (int(program_id), int(limit), int(offset)),
            )
            return [_row_to_audit(r) for r in fetchall(cur)], total

    def list_eligible(self) -> Sequence[DegreeAudit]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE a.eligible_for_graduation=1 {_NEWEST_FIRST}")
            return [_row_to_audit(r) for r in fetchall(cur)]

    def delete_by_id(self, audit_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM degree_audits WHERE audit_id=%s", (int(audit_id),))
            return cur.rowcount > 0
