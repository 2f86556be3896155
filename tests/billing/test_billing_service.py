from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest

from university_erp.billing.model import BillingTotals
from university_erp.billing.service import BillingService
from university_erp.core.enums import (
    BillingStatus,
    FeePaymentStatus,
    LineItemType,
    PaymentMethod,
    RegistrationStatus,
    Role,
)
from university_erp.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from university_erp.registrations.model import Registration
from university_erp.users.model import User


class InMemoryBilling:
    def __init__(self):
        self.accounts = {}
        self.statements = {}
        self.lines = []
        self.payments = []

    def get_account_by_student(self, student_id):
        return next((a for a in self.accounts.values() if a.student_id == student_id), None)

    def create_account(self, account):
        account_id = len(self.accounts) + 1
        self.accounts[account_id] = replace(account, account_id=account_id)
        return account_id

    def adjust_account_balance(self, account_id, delta):
        account = self.accounts[account_id]
        self.accounts[account_id] = replace(account, current_balance=account.current_balance + delta)
        return True

    def create_statement(self, statement):
        statement_id = len(self.statements) + 1
        self.statements[statement_id] = replace(statement, statement_id=statement_id)
        return statement_id

    def get_statement(self, statement_id):
        statement = self.statements.get(statement_id)
        if not statement:
            return None
        lines = tuple(line for line in self.lines if line.statement_id == statement_id)
        return replace(statement, line_items=lines)

    def save_statement(self, statement):
        self.statements[statement.statement_id] = replace(statement, line_items=())
        return True

    def add_line_item(self, item):
        self.lines.append(replace(item, line_id=len(self.lines) + 1))
        return len(self.lines)

    def list_statements_for_student(self, student_id):
        return [self.get_statement(sid) for sid, s in self.statements.items() if s.student_id == student_id]

    def list_past_due(self, today):
        return [
            self.get_statement(sid)
            for sid, s in self.statements.items()
            if s.status in (BillingStatus.PENDING, BillingStatus.PARTIAL) and s.due_date < today
        ]

    def add_payment(self, payment):
        self.payments.append(payment)
        return len(self.payments)

    def list_payments(self, statement_id):
        return [p for p in self.payments if p.statement_id == statement_id]

    def totals(self):
        return BillingTotals(Decimal("0.00"), Decimal("0.00"), Decimal("0.00"), {})


class InMemoryRegistrations:
    def __init__(self, rows):
        self.rows = {r.registration_id: r for r in rows}
        self.paid = []

    def get_by_id(self, registration_id):
        return self.rows.get(registration_id)

    def update_payment_status(self, registration_ids, status):
        self.paid.append((list(registration_ids), status))
        return len(registration_ids)


class InMemoryUsers:
    def get_by_id(self, user_id):
        return {STUDENT.user_id: STUDENT, OTHER.user_id: OTHER, STAFF.user_id: STAFF}.get(user_id)


STUDENT = User(7, "ada", "a@uni.edu", "Ada", "Lovelace", "x", Role.STUDENT)
OTHER = User(8, "bob", "b@uni.edu", "Bob", "Babbage", "x", Role.STUDENT)
STAFF = User(2, "bursar", "s@uni.edu", "Bur", "Sar", "x", Role.STAFF)


def _reg(reg_id, user_id, fee, status=RegistrationStatus.ENROLLED):
    return Registration(
        registration_id=reg_id,
        user_id=user_id,
        course_id=reg_id * 10,
        status=status,
        course_fee=Decimal(fee),
        payment_status=FeePaymentStatus.PENDING,
        registered_at=datetime(2026, 8, 20),
        semester_id=5,
        course_code=f"CS{reg_id}01",
        course_title="Course",
        credits=3,
    )


@pytest.fixture
def regs():
    return InMemoryRegistrations(
        [
            _reg(1, STUDENT.user_id, "550.00"),
            _reg(2, STUDENT.user_id, "450.00"),
            _reg(3, OTHER.user_id, "500.00"),
            _reg(4, STUDENT.user_id, "500.00", RegistrationStatus.DROPPED),
        ]
    )


@pytest.fixture
def billing():
    return InMemoryBilling()


@pytest.fixture
def service(billing, regs):
    return BillingService(billing, InMemoryUsers(), regs)


def _balance(billing, student_id=STUDENT.user_id):
    return billing.get_account_by_student(student_id).current_balance


def test_account_is_opened_once(service):
    first = service.get_or_create_account(STUDENT.user_id)
    second = service.get_or_create_account(STUDENT.user_id)

    assert first.account_id == second.account_id
    assert first.account_number.endswith("-000007")
    assert first.credit_limit == Decimal("1000.00")


def test_accounts_only_for_students(service):
    with pytest.raises(ValidationError):
        service.get_or_create_account(STAFF.user_id)
    with pytest.raises(NotFoundError):
        service.get_or_create_account(404)


def test_generate_statement(service, billing):
    statement = service.generate_statement(STUDENT.user_id, "1200", notes="Fall tuition")

    assert statement.statement_number.startswith("STMT-")
    assert statement.status == BillingStatus.PENDING
    assert statement.total_amount == Decimal("1200.00")
    assert statement.balance_due == Decimal("1200.00")
    assert statement.due_date - statement.billing_date == timedelta(days=30)
    assert [line.item_type for line in statement.line_items] == [LineItemType.TUITION]
    assert _balance(billing) == Decimal("1200.00")
    assert service.has_outstanding_balance(STUDENT.user_id)


def test_generate_statement_rejects_non_positive(service):
    with pytest.raises(ValidationError):
        service.generate_statement(STUDENT.user_id, "0")


def test_semester_billing_adds_standard_fees(service):
    statement = service.generate_semester_billing(STUDENT.user_id, 5)

    assert len(statement.line_items) == 5
    assert statement.total_amount == Decimal("2750.00")
    assert statement.semester_id == 5


def test_bill_registrations(service):
    statement = service.generate_from_registrations(STUDENT.user_id, [1, 2])

    assert statement.total_amount == Decimal("1000.00")
    assert [line.registration_id for line in statement.line_items] == [1, 2]
    assert statement.semester_id == 5


@pytest.mark.parametrize("ids, error", [([3], ValidationError), ([4], ValidationError), ([99], NotFoundError), ([], ValidationError)])
def test_bill_registrations_rejects_bad_ids(service, ids, error):
    with pytest.raises(error):
        service.generate_from_registrations(STUDENT.user_id, ids)


def test_line_item_rules(service):
    statement = service.generate_statement(STUDENT.user_id, "100")

    with pytest.raises(ValidationError):
        service.add_line_item(statement.statement_id, description="Refund", unit_price=Decimal("-10"))
    with pytest.raises(ValidationError):
        service.add_line_item(statement.statement_id, description="Books", unit_price=Decimal("10"), quantity=0)

    updated = service.add_line_item(
        statement.statement_id,
        description="Scholarship",
        unit_price=Decimal("-25"),
        item_type=LineItemType.ADJUSTMENT,
    )
    assert updated.total_amount == Decimal("75.00")
    assert updated.line_items[-1].line_number == 2


def test_partial_then_full_payment_marks_registrations_paid(service, billing, regs):
    statement = service.generate_from_registrations(STUDENT.user_id, [1, 2])

    partial = service.process_payment(statement.statement_id, "400", student_id=STUDENT.user_id)
    assert partial.status == BillingStatus.PARTIAL
    assert partial.balance_due == Decimal("600.00")
    assert regs.paid == []

    paid = service.process_payment(statement.statement_id, "600", method=PaymentMethod.FINANCIAL_AID)
    assert paid.status == BillingStatus.PAID
    assert paid.balance_due == Decimal("0.00")
    assert regs.paid == [([1, 2], FeePaymentStatus.PAID)]
    assert _balance(billing) == Decimal("0.00")
    assert len(service.list_payments(statement.statement_id)) == 2
    assert not service.has_outstanding_balance(STUDENT.user_id)


def test_payment_rules(service):
    statement = service.generate_statement(STUDENT.user_id, "100")

    with pytest.raises(ValidationError):
        service.process_payment(statement.statement_id, "150")
    with pytest.raises(ValidationError):
        service.process_payment(statement.statement_id, "-5")
    with pytest.raises(AuthorizationError):
        service.process_payment(statement.statement_id, "50", student_id=OTHER.user_id)

    service.process_payment(statement.statement_id, "100")
    with pytest.raises(ValidationError):
        service.process_payment(statement.statement_id, "1")
    with pytest.raises(ValidationError):
        service.add_line_item(statement.statement_id, description="Late add", unit_price=Decimal("5"))


def test_cancel_releases_balance(service, billing):
    statement = service.generate_statement(STUDENT.user_id, "300")

    cancelled = service.update_status(statement.statement_id, BillingStatus.CANCELLED)

    assert cancelled.status == BillingStatus.CANCELLED
    assert _balance(billing) == Decimal("0.00")
    with pytest.raises(ValidationError):
        service.update_status(statement.statement_id, BillingStatus.PENDING)


def test_mark_overdue_charges_late_fee_once(service, billing):
    statement = service.generate_statement(STUDENT.user_id, "1000")
    later = statement.due_date + timedelta(days=1)

    flagged = service.mark_overdue(later)

    assert len(flagged) == 1
    overdue = flagged[0]
    assert overdue.status == BillingStatus.OVERDUE
    assert overdue.line_items[-1].item_type == LineItemType.LATE_FEE
    assert overdue.line_items[-1].amount == Decimal("15.00")
    assert overdue.balance_due == Decimal("1015.00")
    assert _balance(billing) == Decimal("1015.00")

    assert service.mark_overdue(later + timedelta(days=30)) == []


def test_partial_payment_keeps_overdue_statement_to_a_single_late_fee(service):
    statement = service.generate_statement(STUDENT.user_id, "1000")
    later = statement.due_date + timedelta(days=1)
    service.mark_overdue(later)

    partial = service.process_payment(statement.statement_id, "100")
    assert partial.status == BillingStatus.OVERDUE
    assert partial.balance_due == Decimal("915.00")

    service.mark_overdue(later + timedelta(days=30))
    current = service.get_statement(statement.statement_id)
    late_fees = [line for line in current.line_items if line.item_type == LineItemType.LATE_FEE]
    assert len(late_fees) == 1
    assert current.balance_due == Decimal("915.00")


def test_late_fee_not_charged_again_after_manual_reopen(service):
    statement = service.generate_statement(STUDENT.user_id, "1000")
    later = statement.due_date + timedelta(days=1)
    service.mark_overdue(later)
    service.update_status(statement.statement_id, BillingStatus.PARTIAL)

    flagged = service.mark_overdue(later + timedelta(days=1))

    assert flagged[0].status == BillingStatus.OVERDUE
    assert flagged[0].balance_due == Decimal("1015.00")


def test_manual_paid_requires_settled_balance(service, billing):
    statement = service.generate_statement(STUDENT.user_id, "300")

    with pytest.raises(ValidationError, match="record a payment"):
        service.update_status(statement.statement_id, BillingStatus.PAID)

    assert service.get_statement(statement.statement_id).status == BillingStatus.PENDING
    assert service.has_outstanding_balance(STUDENT.user_id)

    paid = service.process_payment(statement.statement_id, "300")
    assert paid.status == BillingStatus.PAID
    assert not service.has_outstanding_balance(STUDENT.user_id)


def test_nothing_overdue_before_due_date(service):
    statement = service.generate_statement(STUDENT.user_id, "1000")
    assert service.mark_overdue(statement.due_date) == []
    assert service.mark_overdue(date(2000, 1, 1)) == []
