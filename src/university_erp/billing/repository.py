from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional, Protocol, Sequence, Tuple

from ..core.enums import BillingStatus
from .model import BillingLineItem, BillingStatement, BillingTotals, Payment, StudentAccount


class BillingRepository(Protocol):
    # Accounts
    def get_account_by_student(self, student_id: int) -> Optional[StudentAccount]:
        raise NotImplementedError

    def create_account(self, account: StudentAccount) -> int:
        raise NotImplementedError

    def adjust_account_balance(self, account_id: int, delta: Decimal) -> bool:
        raise NotImplementedError

    # Statements
    def create_statement(self, statement: BillingStatement) -> int:
        raise NotImplementedError

    def get_statement(self, statement_id: int) -> Optional[BillingStatement]:
        """Statement with its line items."""

        raise NotImplementedError

    def save_statement(self, statement: BillingStatement) -> bool:
        """Persist totals, status and notes (line items are added separately)."""

        raise NotImplementedError

    def add_line_item(self, item: BillingLineItem) -> int:
        raise NotImplementedError

    def list_statements_for_student(self, student_id: int) -> Sequence[BillingStatement]:
        raise NotImplementedError

    def list_statements(
        self, *, status: Optional[BillingStatus], offset: int, limit: int
    ) -> Tuple[Sequence[BillingStatement], int]:
        raise NotImplementedError

    def list_past_due(self, today: date) -> Sequence[BillingStatement]:
        """PENDING or PARTIAL statements whose due date is before today."""

        raise NotImplementedError

    # Payments
    def add_payment(self, payment: Payment) -> int:
        raise NotImplementedError

    def list_payments(self, statement_id: int) -> Sequence[Payment]:
        raise NotImplementedError

    def totals(self) -> BillingTotals:
        raise NotImplementedError
