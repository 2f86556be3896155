from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

from ..common.datetime_utils import now_local, today
from ..common.pagination import Page, PageRequest
from ..common.validators import optional_text, require_non_empty, require_positive_amount
from ..core.constants import (
    DEFAULT_CREDIT_LIMIT,
    LATE_FEE_RATE,
    SEMESTER_FEES,
    SEMESTER_TUITION,
    STATEMENT_DUE_DAYS,
)
from ..core.enums import AccountStatus, BillingStatus, FeePaymentStatus, LineItemType, PaymentMethod, Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..registrations.repository import RegistrationRepository
from ..users.repository import UserRepository
from .model import BillingLineItem, BillingStatement, Payment, StudentAccount
from .repository import BillingRepository

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
CLOSED_STATUSES = (BillingStatus.CANCELLED, BillingStatus.PAID, BillingStatus.REFUNDED)


def _money(value: Decimal) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def recompute_totals(statement: BillingStatement, lines: Iterable[BillingLineItem]) -> BillingStatement:
    subtotal = _money(sum((line.amount for line in lines), ZERO))
    total = _money(subtotal + statement.tax_amount - statement.discount_amount)
    return replace(
        statement,
        subtotal=subtotal,
        total_amount=total,
        balance_due=_money(total - statement.paid_amount),
    )


class BillingService:
    """Use case: student accounts, statements, payments and late fees."""

    def __init__(
        self,
        billing: BillingRepository,
        users: UserRepository,
        registrations: RegistrationRepository,
        *,
        due_days: int = STATEMENT_DUE_DAYS,
    ):
        self._billing = billing
        self._users = users
        self._registrations = registrations
        self._due_days = due_days

    # Accounts

    def get_or_create_account(self, student_id: int) -> StudentAccount:
        account = self._billing.get_account_by_student(int(student_id))
        if account:
            return account

        student = self._users.get_by_id(int(student_id))
        if not student:
            raise NotFoundError("Student not found")
        if student.role != Role.STUDENT:
            raise ValidationError("Billing accounts can only be opened for students")

        now = now_local()
        self._billing.create_account(
            StudentAccount(
                account_id=0,
                student_id=student.user_id,
                account_number=f"SA-{now.year}-{student.user_id:06d}",
                current_balance=ZERO,
                credit_limit=DEFAULT_CREDIT_LIMIT,
                hold_amount=ZERO,
                status=AccountStatus.ACTIVE,
                created_at=now,
            )
        )
        logger.info("Opened billing account for student %s", student.user_id)
        account = self._billing.get_account_by_student(student.user_id)
        if not account:
            raise NotFoundError("Billing account not found")
        return account

    def has_outstanding_balance(self, student_id: int) -> bool:
        account = self._billing.get_account_by_student(int(student_id))
        return bool(account and account.current_balance > 0)

    # Statements

    def get_statement(self, statement_id: int) -> BillingStatement:
        statement = self._billing.get_statement(int(statement_id))
        if not statement:
            raise NotFoundError("Billing statement not found")
        return statement

    def get_statement_for_student(self, student_id: int, statement_id: int) -> BillingStatement:
        statement = self.get_statement(statement_id)
        if statement.student_id != int(student_id):
            raise AuthorizationError("This statement belongs to another student")
        return statement

    def list_statements_for_student(self, student_id: int) -> list[BillingStatement]:
        return list(self._billing.list_statements_for_student(int(student_id)))

    def list_statements(self, page_request: PageRequest, *, status: Optional[BillingStatus] = None) -> Page[BillingStatement]:
        items, total = self._billing.list_statements(status=status, offset=page_request.offset, limit=page_request.limit)
        return Page(items=list(items), page=page_request.page, size=page_request.size, total=total)

    def list_payments(self, statement_id: int) -> list[Payment]:
        statement = self.get_statement(statement_id)
        return list(self._billing.list_payments(statement.statement_id))

    def _open_statement(
        self, student_id: int, *, semester_id: Optional[int] = None, notes: Optional[str] = None
    ) -> BillingStatement:
        account = self.get_or_create_account(student_id)
        if account.status == AccountStatus.CLOSED:
            raise ValidationError("Billing account is closed")
        billed_on = today()
        now = now_local()
        statement_id = self._billing.create_statement(
            BillingStatement(
                statement_id=0,
                statement_number=f"STMT-{now.year}-{int(now.timestamp() * 1000)}-{uuid.uuid4().hex[:4].upper()}",
                account_id=account.account_id,
                student_id=account.student_id,
                billing_date=billed_on,
                due_date=billed_on + timedelta(days=self._due_days),
                subtotal=ZERO,
                tax_amount=ZERO,
                discount_amount=ZERO,
                total_amount=ZERO,
                paid_amount=ZERO,
                balance_due=ZERO,
                status=BillingStatus.PENDING,
                semester_id=semester_id,
                notes=optional_text(notes),
            )
        )
        return self.get_statement(statement_id)

    def add_line_item(
        self,
        statement_id: int,
        *,
        description: str,
        unit_price: Decimal,
        item_type: LineItemType = LineItemType.OTHER,
        quantity: int = 1,
        course_id: Optional[int] = None,
        registration_id: Optional[int] = None,
    ) -> BillingStatement:
        statement = self.get_statement(statement_id)
        if statement.status in CLOSED_STATUSES:
            raise ValidationError(f"Cannot add charges to a {statement.status.value} statement")
        description = require_non_empty(description, "Description")
        if quantity < 1:
            raise ValidationError("Quantity must be at least 1")
        price = _money(unit_price)
        if price < 0 and item_type != LineItemType.ADJUSTMENT:
            raise ValidationError("Only adjustments may carry a negative amount")

        line = BillingLineItem(
            line_id=0,
            statement_id=statement.statement_id,
            line_number=len(statement.line_items) + 1,
            description=description,
            item_type=item_type,
            quantity=quantity,
            unit_price=price,
            amount=_money(price * quantity),
            course_id=course_id,
            registration_id=registration_id,
        )
        self._billing.add_line_item(line)
        updated = recompute_totals(statement, (*statement.line_items, line))
        self._billing.save_statement(updated)
        self._billing.adjust_account_balance(statement.account_id, updated.balance_due - statement.balance_due)
        return self.get_statement(statement.statement_id)

    def generate_statement(
        self,
        student_id: int,
        amount: Decimal,
        *,
        description: str = "Tuition and fees",
        semester_id: Optional[int] = None,
        notes: Optional[str] = None,
    ) -> BillingStatement:
        amount = require_positive_amount(amount)
        statement = self._open_statement(student_id, semester_id=semester_id, notes=notes)
        statement = self.add_line_item(
            statement.statement_id, description=description, unit_price=amount, item_type=LineItemType.TUITION
        )
        logger.info("Generated statement %s for student %s: %s", statement.statement_number, student_id, amount)
        return statement

    def generate_from_registrations(
        self, student_id: int, registration_ids: Iterable[int], *, semester_id: Optional[int] = None
    ) -> BillingStatement:
        registrations = []
        for registration_id in registration_ids:
            reg = self._registrations.get_by_id(int(registration_id))
            if not reg:
                raise NotFoundError(f"Registration {registration_id} not found")
            if reg.user_id != int(student_id):
                raise ValidationError(f"Registration {registration_id} belongs to another student")
            if not reg.is_active:
                raise ValidationError(f"Registration {registration_id} is not active")
            registrations.append(reg)
        if not registrations:
            raise ValidationError("At least one registration is required")

        statement = self._open_statement(
            student_id,
            semester_id=semester_id if semester_id is not None else registrations[0].semester_id,
            notes="Course registration charges",
        )
        for reg in registrations:
            statement = self.add_line_item(
                statement.statement_id,
                description=f"Tuition - {reg.course_code} {reg.course_title}".strip(),
                unit_price=reg.course_fee,
                item_type=LineItemType.TUITION,
                course_id=reg.course_id,
                registration_id=reg.registration_id,
            )
        logger.info(
            "Billed %s registrations for student %s on %s", len(registrations), student_id, statement.statement_number
        )
        return statement

    def generate_semester_billing(self, student_id: int, semester_id: Optional[int] = None) -> BillingStatement:
        statement = self._open_statement(student_id, semester_id=semester_id, notes="Semester tuition and fees")
        statement = self.add_line_item(
            statement.statement_id,
            description="Semester tuition",
            unit_price=SEMESTER_TUITION,
            item_type=LineItemType.TUITION,
        )
        for name, fee in SEMESTER_FEES:
            statement = self.add_line_item(
                statement.statement_id, description=name, unit_price=fee, item_type=LineItemType.FEE
            )
        logger.info("Generated semester billing %s for student %s", statement.statement_number, student_id)
        return statement

    def update_status(self, statement_id: int, status: BillingStatus) -> BillingStatement:
        statement = self.get_statement(statement_id)
        if statement.status == status:
            return statement
        if statement.status in (BillingStatus.CANCELLED, BillingStatus.REFUNDED):
            raise ValidationError(f"Statement is already {statement.status.value}")
        if status == BillingStatus.PAID and statement.balance_due > 0:
            raise ValidationError(
                f"Statement {statement.statement_number} still owes {statement.balance_due}; record a payment instead"
            )
        self._billing.save_statement(replace(statement, status=status))
        if status == BillingStatus.CANCELLED and statement.balance_due:
            self._billing.adjust_account_balance(statement.account_id, -statement.balance_due)
        logger.info("Statement %s status %s -> %s", statement.statement_number, statement.status.value, status.value)
        return self.get_statement(statement.statement_id)

    # Payments

    def process_payment(
        self,
        statement_id: int,
        amount: Decimal,
        *,
        method: PaymentMethod = PaymentMethod.CARD,
        reference: Optional[str] = None,
        student_id: Optional[int] = None,
    ) -> BillingStatement:
        amount = _money(require_positive_amount(amount))
        statement = (
            self.get_statement_for_student(student_id, statement_id)
            if student_id is not None
            else self.get_statement(statement_id)
        )
        if statement.status in CLOSED_STATUSES:
            raise ValidationError(f"Cannot pay a {statement.status.value} statement")
        if amount > statement.balance_due:
            raise ValidationError(f"Payment of {amount} exceeds the balance due of {statement.balance_due}")

        paid = _money(statement.paid_amount + amount)
        balance = _money(statement.total_amount - paid)
        if balance <= 0:
            status = BillingStatus.PAID
        elif statement.status == BillingStatus.OVERDUE:
            status = BillingStatus.OVERDUE
        else:
            status = BillingStatus.PARTIAL
        self._billing.save_statement(replace(statement, paid_amount=paid, balance_due=balance, status=status))
        self._billing.add_payment(
            Payment(
                payment_id=0,
                statement_id=statement.statement_id,
                amount=amount,
                method=method,
                paid_at=now_local(),
                reference=optional_text(reference),
            )
        )
        self._billing.adjust_account_balance(statement.account_id, -amount)

        if status == BillingStatus.PAID:
            linked = [line.registration_id for line in statement.line_items if line.registration_id]
            if linked:
                self._registrations.update_payment_status(linked, FeePaymentStatus.PAID)
        logger.info("Payment of %s on statement %s (%s)", amount, statement.statement_number, status.value)
        return self.get_statement(statement.statement_id)

    def mark_overdue(self, on: Optional[date] = None) -> list[BillingStatement]:
        """Flag open statements past their due date and charge the late fee."""
        on = on or today()
        flagged = []
        for past_due in self._billing.list_past_due(on):
            statement = self.get_statement(past_due.statement_id)
            charged = any(line.item_type == LineItemType.LATE_FEE for line in statement.line_items)
            fee = ZERO if charged else _money(statement.balance_due * LATE_FEE_RATE)
            if fee > 0:
                statement = self.add_line_item(
                    statement.statement_id,
                    description=f"Late fee ({LATE_FEE_RATE * 100:.1f}% of {statement.balance_due})",
                    unit_price=fee,
                    item_type=LineItemType.LATE_FEE,
                )
            self._billing.save_statement(replace(statement, status=BillingStatus.OVERDUE))
            logger.info("Statement %s is overdue; late fee %s", statement.statement_number, fee)
            flagged.append(self.get_statement(statement.statement_id))
        return flagged
