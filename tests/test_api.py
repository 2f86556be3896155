from __future__ import annotations

from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import pytest
from flask import Flask
from werkzeug.security import generate_password_hash

from university_erp.billing.controller import register as register_billing
from university_erp.billing.model import BillingStatement, StudentAccount
from university_erp.core.enums import AccountStatus, BillingStatus, Role
from university_erp.core.exceptions import AuthorizationError, ValidationError
from university_erp.main import register_error_handlers
from university_erp.users.controller import register as register_users
from university_erp.users.model import User
from university_erp.users.service import AuthService


class InMemoryUsers:
    def __init__(self, users):
        self._users = {u.username: u for u in users}

    def get_by_username(self, username):
        return self._users.get(username)

    def get_by_email(self, email):
        return None


STATEMENT = BillingStatement(
    statement_id=1,
    statement_number="STMT-2026-1",
    account_id=1,
    student_id=7,
    billing_date=date(2026, 9, 1),
    due_date=date(2026, 10, 1),
    subtotal=Decimal("100.00"),
    tax_amount=Decimal("0.00"),
    discount_amount=Decimal("0.00"),
    total_amount=Decimal("100.00"),
    paid_amount=Decimal("0.00"),
    balance_due=Decimal("100.00"),
    status=BillingStatus.PENDING,
)


class StubBillingService:
    def __init__(self):
        self.payments = []

    def get_or_create_account(self, student_id):
        return StudentAccount(
            1, student_id, "SA-2026-000007", Decimal("100.00"), Decimal("1000.00"), Decimal("0.00"), AccountStatus.ACTIVE
        )

    def get_statement_for_student(self, student_id, statement_id):
        if student_id != STATEMENT.student_id:
            raise AuthorizationError("This statement belongs to another student")
        return STATEMENT

    def process_payment(self, statement_id, amount, *, method, reference, student_id):
        if amount > STATEMENT.balance_due:
            raise ValidationError("Payment exceeds the balance due")
        self.payments.append((statement_id, amount, method, student_id))
        return STATEMENT


@pytest.fixture
def billing():
    return StubBillingService()


@pytest.fixture
def client(billing):
    users = InMemoryUsers(
        [User(7, "ada", "a@uni.edu", "Ada", "Lovelace", generate_password_hash("secret1"), Role.STUDENT)]
    )
    container = SimpleNamespace(auth_service=AuthService(users), billing_service=billing)

    app = Flask(__name__)
    app.secret_key = "test-secret"
    register_error_handlers(app)
    register_users(app, container)
    register_billing(app, container)
    return app.test_client()


def _login_as(client, user_id, role):
    with client.session_transaction() as sess:
        sess["user_id"] = user_id
        sess["role"] = role.value


def test_login_sets_session_role(client):
    resp = client.post("/api/auth/login", json={"username": "ada", "password": "secret1"})

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["success"] is True
    assert body["data"]["role"] == "STUDENT"

    account = client.get("/api/billing/account").get_json()
    assert account["data"]["account"]["current_balance"] == "100.00"
    assert account["data"]["has_outstanding_balance"] is True


def test_bad_login_is_401(client):
    resp = client.post("/api/auth/login", json={"username": "ada", "password": "nope"})

    assert resp.status_code == 401
    assert resp.get_json() == {"success": False, "error": "Invalid username or password"}


def test_anonymous_request_is_401(client):
    assert client.get("/api/billing/statements/1").status_code == 401


def test_wrong_role_is_403(client):
    _login_as(client, 2, Role.STAFF)
    assert client.get("/api/billing/account").status_code == 403


def test_student_cannot_read_other_statement(client):
    _login_as(client, 8, Role.STUDENT)
    resp = client.get("/api/billing/statements/1")

    assert resp.status_code == 403
    assert "another student" in resp.get_json()["error"]


def test_payment_passes_student_and_amount(client, billing):
    _login_as(client, 7, Role.STUDENT)

    resp = client.post("/api/billing/statements/1/payments", json={"amount": "40.00", "method": "cash"})

    assert resp.status_code == 200
    assert resp.get_json()["data"]["statement_number"] == "STMT-2026-1"
    statement_id, amount, method, student_id = billing.payments[0]
    assert (statement_id, amount, method.value, student_id) == (1, Decimal("40.00"), "CASH", 7)


def test_validation_errors_are_400(client):
    _login_as(client, 7, Role.STUDENT)

    assert client.post("/api/billing/statements/1/payments", json={"amount": "abc"}).status_code == 400
    assert client.post("/api/billing/statements/1/payments", json={"amount": "500"}).status_code == 400
    assert client.post("/api/billing/statements/1/payments", json=[1, 2]).status_code == 400


def test_unknown_route_is_json_404(client):
    resp = client.get("/api/nowhere")

    assert resp.status_code == 404
    assert resp.get_json()["success"] is False
