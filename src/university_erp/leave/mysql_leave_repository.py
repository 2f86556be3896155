from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence, Tuple

from ..core.enums import LeaveRequestStatus, LeaveTypeStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import build_where, db_cursor, fetch_count, fetchall, fetchone
from .model import LeaveRequest, LeaveType
from .repository import LeaveRepository

_TYPE_COLUMNS = """
    leave_type_id, code, name, description, is_paid, requires_approval, max_days_per_year,
    max_consecutive_days, advance_notice_days, status
"""

_REQUEST_SELECT = """
    SELECT r.request_id, r.request_number, r.employee_id, r.leave_type_id, r.start_date, r.end_date,
           r.total_days, r.reason, r.status, r.created_at, r.approved_by, r.decided_at,
           r.rejection_reason, r.hr_notes,
           CONCAT(u.first_name, ' ', u.last_name) AS employee_name, t.name AS leave_type_name
    FROM leave_requests r
    JOIN users u ON u.user_id = r.employee_id
    JOIN leave_types t ON t.leave_type_id = r.leave_type_id
"""


def _row_to_type(row: dict) -> LeaveType:
    return LeaveType(
        leave_type_id=int(row["leave_type_id"]),
        code=row["code"],
        name=row["name"],
        description=row.get("description"),
        is_paid=bool(row["is_paid"]),
        requires_approval=bool(row["requires_approval"]),
        max_days_per_year=row.get("max_days_per_year"),
        max_consecutive_days=row.get("max_consecutive_days"),
        advance_notice_days=int(row.get("advance_notice_days") or 0),
        status=LeaveTypeStatus(row["status"]),
    )


def _row_to_request(row: dict) -> LeaveRequest:
    return LeaveRequest(
        request_id=int(row["request_id"]),
        request_number=row["request_number"],
        employee_id=int(row["employee_id"]),
        leave_type_id=int(row["leave_type_id"]),
        start_date=row["start_date"],
        end_date=row["end_date"],
        total_days=int(row["total_days"]),
        reason=row["reason"],
        status=LeaveRequestStatus(row["status"]),
        created_at=row["created_at"],
        approved_by=row.get("approved_by"),
        decided_at=row.get("decided_at"),
        rejection_reason=row.get("rejection_reason"),
        hr_notes=row.get("hr_notes"),
        employee_name=row.get("employee_name") or "",
        leave_type_name=row.get("leave_type_name") or "",
    )


def _in_clause(values: Sequence) -> str:
    return ", ".join(["%s"] * len(values))


class MySQLLeaveRepository(LeaveRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_types(self, *, include_inactive: bool = False) -> Sequence[LeaveType]:
        with db_cursor(self._conn_factory) as (_, cur):
            if include_inactive:
                cur.execute(f"SELECT {_TYPE_COLUMNS} FROM leave_types ORDER BY name")
            else:
                cur.execute(
                    f"SELECT {_TYPE_COLUMNS} FROM leave_types WHERE status=%s ORDER BY name",
                    (LeaveTypeStatus.ACTIVE.value,),
                )
            return [_row_to_type(r) for r in fetchall(cur)]

    def get_type(self, leave_type_id: int) -> Optional[LeaveType]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_TYPE_COLUMNS} FROM leave_types WHERE leave_type_id=%s", (int(leave_type_id),))
            row = fetchone(cur)
            return _row_to_type(row) if row else None

    def get_type_by_code(self, code: str) -> Optional[LeaveType]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_TYPE_COLUMNS} FROM leave_types WHERE code=%s", (code,))
            row = fetchone(cur)
            return _row_to_type(row) if row else None

    def create_type(self, leave_type: LeaveType) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO leave_types(code, name, description, is_paid, requires_approval, max_days_per_year,
                                        max_consecutive_days, advance_notice_days, status)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    leave_type.code,
                    leave_type.name,
                    leave_type.description,
                    int(leave_type.is_paid),
                    int(leave_type.requires_approval),
                    leave_type.max_days_per_year,
                    leave_type.max_consecutive_days,
                    leave_type.advance_notice_days,
                    leave_type.status.value,
                ),
            )
            return int(cur.lastrowid)

    def update_type(self, leave_type: LeaveType) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leave_types
                SET code=%s, name=%s, description=%s, is_paid=%s, requires_approval=%s, max_days_per_year=%s,
                    max_consecutive_days=%s, advance_notice_days=%s, status=%s
                WHERE leave_type_id=%s
                """,
                (
                    leave_type.code,
                    leave_type.name,
                    leave_type.description,
                    int(leave_type.is_paid),
                    int(leave_type.requires_approval),
                    leave_type.max_days_per_year,
                    leave_type.max_consecutive_days,
                    leave_type.advance_notice_days,
                    leave_type.status.value,
                    leave_type.leave_type_id,
                ),
            )
            return cur.rowcount > 0

    def set_type_status(self, leave_type_id: int, status: LeaveTypeStatus) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE leave_types SET status=%s WHERE leave_type_id=%s", (status.value, int(leave_type_id)))
            return cur.rowcount > 0

    def create_request(self, request: LeaveRequest) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO leave_requests(request_number, employee_id, leave_type_id, start_date, end_date,
                                           total_days, reason, status, created_at, approved_by, decided_at)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    request.request_number,
                    request.employee_id,
                    request.leave_type_id,
                    request.start_date,
                    request.end_date,
                    request.total_days,
                    request.reason,
                    request.status.value,
                    request.created_at,
                    request.approved_by,
                    request.decided_at,
                ),
            )
            return int(cur.lastrowid)

    def get_request(self, request_id: int) -> Optional[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_REQUEST_SELECT} WHERE r.request_id=%s", (int(request_id),))
            row = fetchone(cur)
            return _row_to_request(row) if row else None

    def decide_request(
        self,
        *,
        request_id: int,
        status: LeaveRequestStatus,
        decided_by: Optional[int] = None,
        decided_at: Optional[datetime] = None,
        rejection_reason: Optional[str] = None,
        hr_notes: Optional[str] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leave_requests
                SET status=%s,
                    approved_by=COALESCE(%s, approved_by),
                    decided_at=COALESCE(%s, decided_at),
                    rejection_reason=COALESCE(%s, rejection_reason),
                    hr_notes=COALESCE(%s, hr_notes)
                WHERE request_id=%s
                """,
                (status.value, decided_by, decided_at, rejection_reason, hr_notes, int(request_id)),
            )
            return cur.rowcount > 0

    def list_for_employee(self, employee_id: int) -> Sequence[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"{_REQUEST_SELECT} WHERE r.employee_id=%s ORDER BY r.start_date DESC, r.request_id DESC",
                (int(employee_id),),
            )
            return [_row_to_request(r) for r in fetchall(cur)]

    def list_requests(
        self,
        *,
        status: Optional[LeaveRequestStatus] = None,
        offset: int,
        limit: int,
    ) -> Tuple[Sequence[LeaveRequest], int]:
        where, params = build_where([("r.status=%s", status.value if status else None)])
        with db_cursor(self._conn_factory) as (_, cur):
            total = fetch_count(cur, f"SELECT COUNT(*) AS total FROM leave_requests r {where}", params)
            cur.execute(
                f"{_REQUEST_SELECT} {where} ORDER BY r.created_at, r.request_id LIMIT %s OFFSET %s",
                (*params, int(limit), int(offset)),
            )
            return [_row_to_request(r) for r in fetchall(cur)], total

    def list_overlapping(
        self,
        *,
        employee_id: int,
        start_date: date,
        end_date: date,
        statuses: Sequence[LeaveRequestStatus],
    ) -> Sequence[LeaveRequest]:
        if not statuses:
            return []
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                {_REQUEST_SELECT}
                WHERE r.employee_id=%s AND r.start_date <= %s AND r.end_date >= %s
                  AND r.status IN ({_in_clause(statuses)})
                ORDER BY r.start_date
                """,
                (int(employee_id), end_date, start_date, *[s.value for s in statuses]),
            )
            return [_row_to_request(r) for r in fetchall(cur)]

    def sum_days(
        self,
        *,
        employee_id: int,
        leave_type_id: int,
        year: int,
        statuses: Sequence[LeaveRequestStatus],
    ) -> int:
        if not statuses:
            return 0
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT COALESCE(SUM(total_days), 0) AS total
                FROM leave_requests
                WHERE employee_id=%s AND leave_type_id=%s AND YEAR(start_date)=%s
                  AND status IN ({_in_clause(statuses)})
                """,
                (int(employee_id), int(leave_type_id), int(year), *[s.value for s in statuses]),
            )
            row = fetchone(cur)
            return int(row["total"]) if row else 0

    def count_by_status(self) -> dict[LeaveRequestStatus, int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT status, COUNT(*) AS total FROM leave_requests GROUP BY status")
            return {LeaveRequestStatus(r["status"]): int(r["total"]) for r in fetchall(cur)}
