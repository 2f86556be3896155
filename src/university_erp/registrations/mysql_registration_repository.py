from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional, Sequence, Tuple

from ..core.enums import FeePaymentStatus, RegistrationStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import (
    as_decimal,
    db_cursor,
    fetch_count,
    fetchall,
    fetchone,
    normalize_mysql_time,
    optional_decimal,
)
from .model import Registration
from .repository import RegistrationRepository

_SELECT = """
    SELECT r.registration_id, r.user_id, r.course_id, r.semester_id, r.status, r.grade, r.grade_points,
           r.course_fee, r.payment_status, r.registered_at, r.completed_at,
           c.code AS course_code, c.title AS course_title, c.credits,
           c.days_of_week, c.start_time, c.end_time,
           CONCAT_WS(' ', u.first_name, u.last_name) AS student_name,
           CONCAT_WS(' ', i.first_name, i.last_name) AS instructor_name,
           s.name AS semester_name
    FROM registrations r
    JOIN courses c ON c.course_id = r.course_id
    JOIN users u ON u.user_id = r.user_id
    LEFT JOIN users i ON i.user_id = c.instructor_id
    LEFT JOIN academic_semesters s ON s.semester_id = r.semester_id
"""


def _row_to_registration(row: dict) -> Registration:
    return Registration(
        registration_id=int(row["registration_id"]),
        user_id=int(row["user_id"]),
        course_id=int(row["course_id"]),
        semester_id=row.get("semester_id"),
        status=RegistrationStatus(row["status"]),
        grade=row.get("grade"),
        grade_points=optional_decimal(row.get("grade_points")),
        course_fee=as_decimal(row.get("course_fee")),
        payment_status=FeePaymentStatus(row["payment_status"]),
        registered_at=row["registered_at"],
        completed_at=row.get("completed_at"),
        course_code=row["course_code"],
        course_title=row["course_title"],
        credits=int(row["credits"]),
        student_name=row.get("student_name") or "",
        instructor_name=row.get("instructor_name") or None,
        semester_name=row.get("semester_name"),
        days_of_week=row.get("days_of_week"),
        start_time=normalize_mysql_time(row.get("start_time")),
        end_time=normalize_mysql_time(row.get("end_time")),
    )


class MySQLRegistrationRepository(RegistrationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _select(self, where: str, params: tuple, *, order: str = "r.registered_at DESC") -> list[Registration]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE {where} ORDER BY {order}", params)
            return [_row_to_registration(r) for r in fetchall(cur)]

    def get_by_id(self, registration_id: int) -> Optional[Registration]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE r.registration_id=%s", (int(registration_id),))
            row = fetchone(cur)
            return _row_to_registration(row) if row else None

    def list_for_user_and_course(self, *, user_id: int, course_id: int) -> Sequence[Registration]:
        return self._select("r.user_id=%s AND r.course_id=%s", (int(user_id), int(course_id)))

    def create(
        self,
        *,
        user_id: int,
        course_id: int,
        semester_id: Optional[int],
        course_fee: Decimal,
        registered_at: datetime,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO registrations(user_id, course_id, semester_id, status, course_fee,
                                          payment_status, registered_at)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(user_id),
                    int(course_id),
                    semester_id,
                    RegistrationStatus.ENROLLED.value,
                    course_fee,
                    FeePaymentStatus.PENDING.value,
                    registered_at,
                ),
            )
            return int(cur.lastrowid)

    def reactivate(
        self,
        registration_id: int,
        *,
        semester_id: Optional[int],
        course_fee: Decimal,
        registered_at: datetime,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE registrations
                SET status=%s, semester_id=%s, course_fee=%s, payment_status=%s, registered_at=%s,
                    grade=NULL, grade_points=NULL, completed_at=NULL
                WHERE registration_id=%s
                """,
                (
                    RegistrationStatus.ENROLLED.value,
                    semester_id,
                    course_fee,
                    FeePaymentStatus.PENDING.value,
                    registered_at,
                    int(registration_id),
                ),
            )
            return cur.rowcount > 0

    def update_status(
        self,
        registration_id: int,
        status: RegistrationStatus,
        *,
        completed_at: Optional[datetime] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE registrations SET status=%s, completed_at=COALESCE(%s, completed_at) WHERE registration_id=%s",
                (status.value, completed_at, int(registration_id)),
            )
            return cur.rowcount > 0

    def update_grade(
        self,
        registration_id: int,
        *,
        grade: str,
        grade_points: Optional[Decimal],
        status: RegistrationStatus,
        completed_at: Optional[datetime],
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE registrations
                SET grade=%s, grade_points=%s, status=%s, completed_at=%s
                WHERE registration_id=%s
                """,
                (grade, grade_points, status.value, completed_at, int(registration_id)),
            )
            return cur.rowcount > 0

    def update_payment_status(self, registration_ids: Sequence[int], status: FeePaymentStatus) -> int:
        ids = [int(i) for i in registration_ids]
        if not ids:
            return 0
        placeholders = ",".join(["%s"] * len(ids))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE registrations SET payment_status=%s WHERE registration_id IN ({placeholders})",
                (status.value, *ids),
            )
            return int(cur.rowcount)

    def delete_by_id(self, registration_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM registrations WHERE registration_id=%s", (int(registration_id),))
            return cur.rowcount > 0

    def list_for_user(self, user_id: int) -> Sequence[Registration]:
        return self._select("r.user_id=%s", (int(user_id),))

    def list_for_course(self, course_id: int) -> Sequence[Registration]:
        return self._select("r.course_id=%s", (int(course_id),), order="u.last_name, u.first_name")

    def list_by_status(
        self,
        status: RegistrationStatus,
        *,
        offset: int,
        limit: int,
    ) -> Tuple[Sequence[Registration], int]:
        with db_cursor(self._conn_factory) as (_, cur):
            total = fetch_count(cur, "SELECT COUNT(*) AS total FROM registrations WHERE status=%s", (status.value,))
            cur.execute(
                f"{_SELECT} WHERE r.status=%s ORDER BY r.registered_at DESC LIMIT %s OFFSET %s",
                (status.value, int(limit), int(offset)),
            )
            return [_row_to_registration(r) for r in fetchall(cur)], total

    def count_by_status(self) -> dict[RegistrationStatus, int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT status, COUNT(*) AS total FROM registrations GROUP BY status")
            return {RegistrationStatus(r["status"]): int(r["total"]) for r in fetchall(cur)}
