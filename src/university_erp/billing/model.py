from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from ..core.enums import AccountStatus, BillingStatus, LineItemType, PaymentMethod


@dataclass(frozen=True)
class StudentAccount:
    account_id: int
    student_id: int
    account_number: str
    current_balance: Decimal
    credit_limit: Decimal
    hold_amount: Decimal
    status: AccountStatus
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class BillingLineItem:
    line_id: int
    statement_id: int
    line_number: int
    description: str
    item_type: LineItemType
    quantity: int
    unit_price: Decimal
    amount: Decimal
    course_id: Optional[int] = None
    registration_id: Optional[int] = None


@dataclass(frozen=True)
class BillingStatement:
    statement_id: int
    statement_number: str
    account_id: int
    student_id: int
    billing_date: date
    due_date: date
    subtotal: Decimal
    tax_amount: Decimal
    discount_amount: Decimal
    total_amount: Decimal
    paid_amount: Decimal
    balance_due: Decimal
    status: BillingStatus
    semester_id: Optional[int] = None
    notes: Optional[str] = None
    line_items: tuple[BillingLineItem, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class Payment:
    payment_id: int
    statement_id: int
    amount: Decimal
    method: PaymentMethod
    paid_at: datetime
    reference: Optional[str] = None


@dataclass(frozen=True)
class BillingTotals:
    total_billed: Decimal
    total_paid: Decimal
    outstanding: Decimal
    statements_by_status: dict
