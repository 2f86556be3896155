from __future__ import annotations

from datetime import date
from typing import Optional, Sequence, Tuple

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import build_where, db_cursor, fetch_count, fetchall, fetchone
from .model import User
from .repository import UserRepository

_COLUMNS = """
    user_id, username, email, first_name, last_name, password_hash, role,
    department_id, student_number, date_of_birth, is_active, created_at
"""


def _row_to_user(row: dict) -> User:
    return User(
        user_id=int(row["user_id"]),
        username=row["username"],
        email=row["email"],
        first_name=row["first_name"],
        last_name=row["last_name"],
        password_hash=row["password_hash"],
        role=Role(row["role"]),
        department_id=row.get("department_id"),
        student_number=row.get("student_number"),
        date_of_birth=row.get("date_of_birth"),
        is_active=bool(row.get("is_active", True)),
        created_at=row.get("created_at"),
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _get_one(self, column: str, value) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE {column}=%s", (value,))
            row = fetchone(cur)
            return _row_to_user(row) if row else None

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self._get_one("user_id", int(user_id))

    def get_by_username(self, username: str) -> Optional[User]:
        return self._get_one("username", username)

    def get_by_email(self, email: str) -> Optional[User]:
        return self._get_one("email", email)

    def create_user(
        self,
        *,
        username: str,
        email: str,
        first_name: str,
        last_name: str,
        password_hash: str,
        role: Role,
        department_id: Optional[int],
        student_number: Optional[str],
        date_of_birth: Optional[date],
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO users(username, email, first_name, last_name, password_hash, role,
                                  department_id, student_number, date_of_birth, is_active)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,1)
                """,
                (
                    username,
                    email,
                    first_name,
                    last_name,
                    password_hash,
                    role.value,
                    department_id,
                    student_number,
                    date_of_birth,
                ),
            )
            return int(cur.lastrowid)

    def update_profile(
        self,
        user_id: int,
        *,
        email: str,
        first_name: str,
        last_name: str,
        department_id: Optional[int],
        date_of_birth: Optional[date],
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE users
                SET email=%s, first_name=%s, last_name=%s, department_id=%s, date_of_birth=%s
                WHERE user_id=%s
                """,
                (email, first_name, last_name, department_id, date_of_birth, int(user_id)),
            )
            return cur.rowcount > 0

    def set_student_number(self, user_id: int, student_number: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE users SET student_number=%s WHERE user_id=%s", (student_number, int(user_id)))
            return cur.rowcount > 0

    def update_password(self, user_id: int, password_hash: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE users SET password_hash=%s WHERE user_id=%s", (password_hash, int(user_id)))
            return cur.rowcount > 0

    def set_active(self, user_id: int, *, is_active: bool) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE users SET is_active=%s WHERE user_id=%s", (1 if is_active else 0, int(user_id)))
            return cur.rowcount > 0

    def delete_by_id(self, user_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM users WHERE user_id=%s", (int(user_id),))
            return cur.rowcount > 0

    def list_users(
        self,
        *,
        role: Optional[Role] = None,
        search: Optional[str] = None,
        offset: int = 0,
        limit: int = 20,
    ) -> Tuple[Sequence[User], int]:
        like = f"%{search}%" if search else None
        where, params = build_where(
            [
                ("role=%s", role.value if role else None),
                ("CONCAT_WS(' ', username, email, first_name, last_name, student_number) LIKE %s", like),
            ]
        )
        with db_cursor(self._conn_factory) as (_, cur):
            total = fetch_count(cur, f"SELECT COUNT(*) AS total FROM users {where}", params)
            cur.execute(
                f"SELECT {_COLUMNS} FROM users {where} ORDER BY last_name, first_name LIMIT %s OFFSET %s",
                (*params, int(limit), int(offset)),
            )
            return [_row_to_user(r) for r in fetchall(cur)], total

    def count_by_role(self) -> dict[Role, int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT role, COUNT(*) AS total FROM users GROUP BY role")
            return {Role(r["role"]): int(r["total"]) for r in fetchall(cur)}

    def count_in_department(self, department_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            return fetch_count(
                cur, "SELECT COUNT(*) AS total FROM users WHERE department_id=%s", (int(department_id),)
            )
