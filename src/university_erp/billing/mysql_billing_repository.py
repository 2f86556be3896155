from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional, Sequence, Tuple

from ..core.enums import AccountStatus, BillingStatus, LineItemType, PaymentMethod
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_decimal, build_where, db_cursor, fetch_count, fetchall, fetchone
from .model import BillingLineItem, BillingStatement, BillingTotals, Payment, StudentAccount
from .repository import BillingRepository

_STATEMENT_SELECT = """
    SELECT s.statement_id, s.statement_number, s.account_id, a.student_id, s.billing_date, s.due_date,
           s.semester_id, s.subtotal, s.tax_amount, s.discount_amount, s.total_amount, s.paid_amount,
           s.balance_due, s.status, s.notes
    FROM billing_statements s
    JOIN student_accounts a ON a.account_id = s.account_id
"""


def _row_to_account(row: dict) -> StudentAccount:
    return StudentAccount(
        account_id=int(row["account_id"]),
        student_id=int(row["student_id"]),
        account_number=row["account_number"],
        current_balance=as_decimal(row.get("current_balance")),
        credit_limit=as_decimal(row.get("credit_limit")),
        hold_amount=as_decimal(row.get("hold_amount")),
        status=AccountStatus(row["status"]),
        created_at=row.get("created_at"),
    )


def _row_to_line(row: dict) -> BillingLineItem:
    return BillingLineItem(
        line_id=int(row["line_id"]),
        statement_id=int(row["statement_id"]),
        line_number=int(row["line_number"]),
        description=row["description"],
        item_type=LineItemType(row["item_type"]),
        quantity=int(row["quantity"]),
        unit_price=as_decimal(row.get("unit_price")),
        amount=as_decimal(row.get("amount")),
        course_id=row.get("course_id"),
        registration_id=row.get("registration_id"),
    )


def _row_to_statement(row: dict, lines: tuple[BillingLineItem, ...] = ()) -> BillingStatement:
    return BillingStatement(
        statement_id=int(row["statement_id"]),
        statement_number=row["statement_number"],
        account_id=int(row["account_id"]),
        student_id=int(row["student_id"]),
        billing_date=row["billing_date"],
        due_date=row["due_date"],
        semester_id=row.get("semester_id"),
        subtotal=as_decimal(row.get("subtotal")),
        tax_amount=as_decimal(row.get("tax_amount")),
        discount_amount=as_decimal(row.get("discount_amount")),
        total_amount=as_decimal(row.get("total_amount")),
        paid_amount=as_decimal(row.get("paid_amount")),
        balance_due=as_decimal(row.get("balance_due")),
        status=BillingStatus(row["status"]),
        notes=row.get("notes"),
        line_items=lines,
    )


class MySQLBillingRepository(BillingRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_account_by_student(self, student_id: int) -> Optional[StudentAccount]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT account_id, student_id, account_number, current_balance, credit_limit, hold_amount,
                       status, created_at
                FROM student_accounts WHERE student_id=%s
                """,
                (int(student_id),),
            )
            row = fetchone(cur)
            return _row_to_account(row) if row else None

    def create_account(self, account: StudentAccount) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO student_accounts(student_id, account_number, current_balance, credit_limit,
                                             hold_amount, status, created_at)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    account.student_id,
                    account.account_number,
                    account.current_balance,
                    account.credit_limit,
                    account.hold_amount,
                    account.status.value,
                    account.created_at,
                ),
            )
            return int(cur.lastrowid)

    def adjust_account_balance(self, account_id: int, delta: Decimal) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE student_accounts SET current_balance = current_balance + %s WHERE account_id=%s",
                (delta, int(account_id)),
            )
            return cur.rowcount > 0

    def create_statement(self, statement: BillingStatement) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO billing_statements(statement_number, account_id, billing_date, due_date, semester_id,
                                               subtotal, tax_amount, discount_amount, total_amount, paid_amount,
                                               balance_due, status, notes)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    statement.statement_number,
                    statement.account_id,
                    statement.billing_date,
                    statement.due_date,
                    statement.semester_id,
                    statement.subtotal,
                    statement.tax_amount,
                    statement.discount_amount,
                    statement.total_amount,
                    statement.paid_amount,
                    statement.balance_due,
                    statement.status.value,
                    statement.notes,
                ),
            )
            return int(cur.lastrowid)

    def get_statement(self, statement_id: int) -> Optional[BillingStatement]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_STATEMENT_SELECT} WHERE s.statement_id=%s", (int(statement_id),))
            row = fetchone(cur)
            if not row:
                return None
            cur.execute(
                """
                SELECT line_id, statement_id, line_number, description, item_type, quantity, unit_price, amount,
                       course_id, registration_id
                FROM billing_line_items WHERE statement_id=%s ORDER BY line_number
                """,
                (int(statement_id),),
            )
            return _row_to_statement(row, tuple(_row_to_line(r) for r in fetchall(cur)))

    def save_statement(self, statement: BillingStatement) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE billing_statements
                SET subtotal=%s, tax_amount=%s, discount_amount=%s, total_amount=%s, paid_amount=%s,
                    balance_due=%s, status=%s, notes=%s
                WHERE statement_id=%s
                """,
                (
                    statement.subtotal,
                    statement.tax_amount,
                    statement.discount_amount,
                    statement.total_amount,
                    statement.paid_amount,
                    statement.balance_due,
                    statement.status.value,
                    statement.notes,
                    statement.statement_id,
                ),
            )
            return cur.rowcount > 0

    def add_line_item(self, item: BillingLineItem) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO billing_line_items(statement_id, line_number, description, item_type, quantity,
                                               unit_price, amount, course_id, registration_id)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    item.statement_id,
                    item.line_number,
                    item.description,
                    item.item_type.value,
                    item.quantity,
                    item.unit_price,
                    item.amount,
                    item.course_id,
                    item.registration_id,
                ),
            )
            return int(cur.lastrowid)

    def list_statements_for_student(self, student_id: int) -> Sequence[BillingStatement]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"{_STATEMENT_SELECT} WHERE a.student_id=%s ORDER BY s.billing_date DESC, s.statement_id DESC",
                (int(student_id),),
            )
            return [_row_to_statement(r) for r in fetchall(cur)]

    def list_statements(
        self, *, status: Optional[BillingStatus], offset: int, limit: int
    ) -> Tuple[Sequence[BillingStatement], int]:
        where, params = build_where([("s.status=%s", status.value if status else None)])
        with db_cursor(self._conn_factory) as (_, cur):
            total = fetch_count(cur, f"SELECT COUNT(*) AS total FROM billing_statements s {where}", params)
            cur.execute(
                f"{_STATEMENT_SELECT} {where} ORDER BY s.due_date, s.statement_id LIMIT %s OFFSET %s",
                (*params, int(limit), int(offset)),
            )
            return [_row_to_statement(r) for r in fetchall(cur)], total

    def list_past_due(self, today: date) -> Sequence[BillingStatement]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"{_STATEMENT_SELECT} WHERE s.status IN (%s, %s) AND s.due_date < %s ORDER BY s.due_date",
                (BillingStatus.PENDING.value, BillingStatus.PARTIAL.value, today),
            )
            return [_row_to_statement(r) for r in fetchall(cur)]

    def add_payment(self, payment: Payment) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO payments(statement_id, amount, method, reference, paid_at) VALUES(%s,%s,%s,%s,%s)",
                (payment.statement_id, payment.amount, payment.method.value, payment.reference, payment.paid_at),
            )
            return int(cur.lastrowid)

    def list_payments(self, statement_id: int) -> Sequence[Payment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT payment_id, statement_id, amount, method, reference, paid_at
                FROM payments WHERE statement_id=%s ORDER BY paid_at, payment_id
                """,
                (int(statement_id),),
            )
            return [
                Payment(
                    payment_id=int(r["payment_id"]),
                    statement_id=int(r["statement_id"]),
                    amount=as_decimal(r.get("amount")),
                    method=PaymentMethod(r["method"]),
                    reference=r.get("reference"),
                    paid_at=r["paid_at"],
                )
                for r in fetchall(cur)
            ]

    def totals(self) -> BillingTotals:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COALESCE(SUM(total_amount), 0) AS billed,
                       COALESCE(SUM(paid_amount), 0) AS paid,
                       COALESCE(SUM(balance_due), 0) AS outstanding
                FROM billing_statements WHERE status<>%s
                """,
                (BillingStatus.CANCELLED.value,),
            )
            row = fetchone(cur) or {}
            cur.execute("SELECT status, COUNT(*) AS total FROM billing_statements GROUP BY status")
            by_status = {BillingStatus(r["status"]): int(r["total"]) for r in fetchall(cur)}
            return BillingTotals(
                total_billed=as_decimal(row.get("billed")),
                total_paid=as_decimal(row.get("paid")),
                outstanding=as_decimal(row.get("outstanding")),
                statements_by_status=by_status,
            )
