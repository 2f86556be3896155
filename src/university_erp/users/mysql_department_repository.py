from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .department_model import Department
from .department_repository import DepartmentRepository


def _row_to_department(row: dict) -> Department:
    return Department(
        department_id=int(row["department_id"]),
        code=row["code"],
        name=row["name"],
        description=row.get("description"),
    )


class MySQLDepartmentRepository(DepartmentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_all(self) -> Sequence[Department]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT department_id, code, name, description FROM departments ORDER BY name")
            return [_row_to_department(r) for r in fetchall(cur)]

    def _get_one(self, column: str, value) -> Optional[Department]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT department_id, code, name, description FROM departments WHERE {column}=%s", (value,))
            row = fetchone(cur)
            return _row_to_department(row) if row else None

    def get_by_id(self, department_id: int) -> Optional[Department]:
        return self._get_one("department_id", int(department_id))

    def get_by_code(self, code: str) -> Optional[Department]:
        return self._get_one("code", code)

    def get_by_name(self, name: str) -> Optional[Department]:
        return self._get_one("name", name)

    def create(self, *, code: str, name: str, description: Optional[str]) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO departments(code, name, description) VALUES(%s,%s,%s)",
                (code, name, description),
            )
            return int(cur.lastrowid)

    def update(self, department_id: int, *, code: str, name: str, description: Optional[str]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE departments SET code=%s, name=%s, description=%s WHERE department_id=%s",
                (code, name, description, int(department_id)),
            )
            return cur.rowcount > 0

    def delete_by_id(self, department_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM departments WHERE department_id=%s", (int(department_id),))
            return cur.rowcount > 0
