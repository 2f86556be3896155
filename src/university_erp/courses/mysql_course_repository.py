from __future__ import annotations

from typing import Optional, Sequence, Tuple

from ..core.enums import CourseStatus, RegistrationStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import (
    as_decimal,
    build_where,
    db_cursor,
    fetch_count,
    fetchall,
    fetchone,
    normalize_mysql_time,
)
from .model import Course, CourseData, CourseFilter, Prerequisite
from .repository import CourseRepository

_SELECT = f"""
    SELECT c.course_id, c.code, c.title, c.description, c.department, c.course_level,
           c.instructor_id, CONCAT_WS(' ', i.first_name, i.last_name) AS instructor_name,
           c.credits, c.max_students, c.course_fee, c.days_of_week, c.start_time, c.end_time,
           c.start_date, c.end_date, c.classroom, c.status, c.passing_grade,
           (SELECT COUNT(*) FROM registrations r
             WHERE r.course_id = c.course_id AND r.status = '{RegistrationStatus.ENROLLED.value}') AS enrolled_count
    FROM courses c
    LEFT JOIN users i ON i.user_id = c.instructor_id
"""


def _row_to_course(row: dict) -> Course:
    return Course(
        course_id=int(row["course_id"]),
        code=row["code"],
        title=row["title"],
        description=row.get("description"),
        department=row.get("department"),
        course_level=row.get("course_level"),
        instructor_id=row.get("instructor_id"),
        instructor_name=(row.get("instructor_name") or None),
        credits=int(row["credits"]),
        max_students=int(row["max_students"]),
        course_fee=as_decimal(row.get("course_fee")),
        days_of_week=row.get("days_of_week"),
        start_time=normalize_mysql_time(row.get("start_time")),
        end_time=normalize_mysql_time(row.get("end_time")),
        start_date=row.get("start_date"),
        end_date=row.get("end_date"),
        classroom=row.get("classroom"),
        status=CourseStatus(row["status"]),
        passing_grade=row.get("passing_grade") or "D",
        enrolled_count=int(row.get("enrolled_count") or 0),
    )


def _data_params(data: CourseData) -> tuple:
    return (
        data.code,
        data.title,
        data.description,
        data.department,
        data.course_level,
        data.instructor_id,
        data.credits,
        data.max_students,
        data.course_fee,
        data.days_of_week,
        data.start_time,
        data.end_time,
        data.start_date,
        data.end_date,
        data.classroom,
        data.passing_grade,
    )


class MySQLCourseRepository(CourseRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _get_one(self, column: str, value) -> Optional[Course]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE c.{column}=%s", (value,))
            row = fetchone(cur)
            return _row_to_course(row) if row else None

    def get_by_id(self, course_id: int) -> Optional[Course]:
        return self._get_one("course_id", int(course_id))

    def get_by_code(self, code: str) -> Optional[Course]:
        return self._get_one("code", code)

    def create(self, data: CourseData, *, status: CourseStatus) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO courses(code, title, description, department, course_level, instructor_id,
                                    credits, max_students, course_fee, days_of_week, start_time, end_time,
                                    start_date, end_date, classroom, passing_grade, status)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (*_data_params(data), status.value),
            )
            return int(cur.lastrowid)

    def update(self, course_id: int, data: CourseData) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE courses
                SET code=%s, title=%s, description=%s, department=%s, course_level=%s, instructor_id=%s,
                    credits=%s, max_students=%s, course_fee=%s, days_of_week=%s, start_time=%s, end_time=%s,
                    start_date=%s, end_date=%s, classroom=%s, passing_grade=%s
                WHERE course_id=%s
                """,
                (*_data_params(data), int(course_id)),
            )
            return cur.rowcount > 0

    def update_status(self, course_id: int, status: CourseStatus) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE courses SET status=%s WHERE course_id=%s", (status.value, int(course_id)))
            return cur.rowcount > 0

    def delete_by_id(self, course_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM course_prerequisites WHERE course_id=%s OR prerequisite_course_id=%s",
                        (int(course_id), int(course_id)))
            cur.execute("DELETE FROM courses WHERE course_id=%s", (int(course_id),))
            return cur.rowcount > 0

    def search(self, criteria: CourseFilter, *, offset: int, limit: int) -> Tuple[Sequence[Course], int]:
        def like(v: Optional[str]) -> Optional[str]:
            return f"%{v}%" if v else None

        where, params = build_where(
            [
                ("c.title LIKE %s", like(criteria.title)),
                ("c.code LIKE %s", like(criteria.code)),
                ("c.department=%s", criteria.department),
                ("c.course_level=%s", criteria.course_level),
                ("c.status=%s", criteria.status.value if criteria.status else None),
                ("c.credits>=%s", criteria.credits_min),
                ("c.credits<=%s", criteria.credits_max),
                ("c.instructor_id=%s", criteria.instructor_id),
                ("CONCAT_WS(' ', i.first_name, i.last_name) LIKE %s", like(criteria.instructor_name)),
            ]
        )
        with db_cursor(self._conn_factory) as (_, cur):
            total = fetch_count(
                cur,
                f"SELECT COUNT(*) AS total FROM courses c LEFT JOIN users i ON i.user_id = c.instructor_id {where}",
                params,
            )
            cur.execute(f"{_SELECT} {where} ORDER BY c.code LIMIT %s OFFSET %s", (*params, int(limit), int(offset)))
            return [_row_to_course(r) for r in fetchall(cur)], total

    def list_open(self) -> Sequence[Course]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"{_SELECT} WHERE c.status IN (%s, %s) ORDER BY c.code",
                (CourseStatus.PUBLISHED.value, CourseStatus.ACTIVE.value),
            )
            return [_row_to_course(r) for r in fetchall(cur)]

    def list_by_instructor(self, instructor_id: int) -> Sequence[Course]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE c.instructor_id=%s ORDER BY c.code", (int(instructor_id),))
            return [_row_to_course(r) for r in fetchall(cur)]

    def count_enrolled(self, course_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            return fetch_count(
                cur,
                "SELECT COUNT(*) AS total FROM registrations WHERE course_id=%s AND status=%s",
                (int(course_id), RegistrationStatus.ENROLLED.value),
            )

    def count_all(self) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            return fetch_count(cur, "SELECT COUNT(*) AS total FROM courses")

    def list_prerequisites(self, course_id: int) -> Sequence[Prerequisite]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT p.course_id, p.prerequisite_course_id, c.code AS prerequisite_code,
                       COALESCE(p.minimum_grade, c.passing_grade) AS minimum_grade
                FROM course_prerequisites p
                JOIN courses c ON c.course_id = p.prerequisite_course_id
                WHERE p.course_id=%s
                ORDER BY c.code
                """,
                (int(course_id),),
            )
            return [
                Prerequisite(
                    course_id=int(r["course_id"]),
                    prerequisite_course_id=int(r["prerequisite_course_id"]),
                    prerequisite_code=r["prerequisite_code"],
                    minimum_grade=r.get("minimum_grade"),
                )
                for r in fetchall(cur)
            ]

    def add_prerequisite(self, *, course_id: int, prerequisite_course_id: int, minimum_grade: Optional[str]) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO course_prerequisites(course_id, prerequisite_course_id, minimum_grade) VALUES(%s,%s,%s)",
                (int(course_id), int(prerequisite_course_id), minimum_grade),
            )

    def remove_prerequisite(self, *, course_id: int, prerequisite_course_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM course_prerequisites WHERE course_id=%s AND prerequisite_course_id=%s",
                (int(course_id), int(prerequisite_course_id)),
            )
            return cur.rowcount > 0
