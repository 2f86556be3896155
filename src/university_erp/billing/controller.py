from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import parse_optional_date
from ..common.pagination import PageRequest
from ..common.validators import (
    optional_enum,
    optional_int,
    require_decimal,
    require_enum,
    require_int_range,
)
from ..common.web import current_user_id, json_body, ok, roles_required
from ..core.enums import BillingStatus, LineItemType, PaymentMethod, Role
from ..container import Container

BURSAR_ROLES = (Role.ADMIN, Role.STAFF)


def register(app: Flask, container: Container) -> None:
    service = container.billing_service

    # Student self-service

    @app.route("/api/billing/account", methods=["GET"], endpoint="billing_my_account")
    @roles_required(Role.STUDENT)
    def my_account():
        account = service.get_or_create_account(current_user_id())
        return ok({"account": account, "has_outstanding_balance": account.current_balance > 0})

    @app.route("/api/billing/statements", methods=["GET"], endpoint="billing_my_statements")
    @roles_required(Role.STUDENT)
    def my_statements():
        return ok(service.list_statements_for_student(current_user_id()))

    @app.route("/api/billing/statements/<int:statement_id>", methods=["GET"], endpoint="billing_my_statement")
    @roles_required(Role.STUDENT)
    def my_statement(statement_id: int):
        return ok(service.get_statement_for_student(current_user_id(), statement_id))

    @app.route("/api/billing/statements/<int:statement_id>/payments", methods=["POST"], endpoint="billing_pay")
    @roles_required(Role.STUDENT)
    def pay_statement(statement_id: int):
        data = json_body()
        statement = service.process_payment(
            statement_id,
            require_decimal(data.get("amount"), "Amount"),
            method=require_enum(PaymentMethod, data.get("method", "CARD"), "Payment method"),
            reference=data.get("reference"),
            student_id=current_user_id(),
        )
        return ok(statement)

    @app.route("/api/billing/statements/<int:statement_id>/payments", methods=["GET"], endpoint="billing_my_payments")
    @roles_required(Role.STUDENT)
    def statement_payments(statement_id: int):
        service.get_statement_for_student(current_user_id(), statement_id)
        return ok(service.list_payments(statement_id))

    # Bursar

    @app.route("/api/admin/billing/statements", methods=["GET"], endpoint="billing_admin_statements")
    @roles_required(*BURSAR_ROLES)
    def list_statements():
        status = optional_enum(BillingStatus, request.args.get("status"), "Status")
        return ok(service.list_statements(PageRequest.from_args(request.args), status=status))

    @app.route("/api/admin/billing/statements", methods=["POST"], endpoint="billing_admin_generate")
    @roles_required(*BURSAR_ROLES)
    def generate_statement():
        data = json_body()
        statement = service.generate_statement(
            require_int_range(data.get("student_id"), "student_id", minimum=1),
            require_decimal(data.get("amount"), "Amount"),
            description=data.get("description") or "Tuition and fees",
            semester_id=optional_int(data.get("semester_id"), "semester_id"),
            notes=data.get("notes"),
        )
        return ok(statement, 201)

    @app.route("/api/admin/billing/statements/<int:statement_id>", methods=["GET"], endpoint="billing_admin_statement")
    @roles_required(*BURSAR_ROLES)
    def get_statement(statement_id: int):
        return ok({"statement": service.get_statement(statement_id), "payments": service.list_payments(statement_id)})

    @app.route(
        "/api/admin/billing/statements/<int:statement_id>/line-items",
        methods=["POST"],
        endpoint="billing_admin_line_item",
    )
    @roles_required(*BURSAR_ROLES)
    def add_line_item(statement_id: int):
        data = json_body()
        statement = service.add_line_item(
            statement_id,
            description=data.get("description", ""),
            unit_price=require_decimal(data.get("unit_price"), "Unit price"),
            item_type=require_enum(LineItemType, data.get("item_type", "OTHER"), "Item type"),
            quantity=require_int_range(data.get("quantity", 1), "Quantity", minimum=1),
            course_id=optional_int(data.get("course_id"), "course_id"),
        )
        return ok(statement, 201)

    @app.route(
        "/api/admin/billing/statements/<int:statement_id>/status", methods=["PUT"], endpoint="billing_admin_status"
    )
    @roles_required(*BURSAR_ROLES)
    def update_status(statement_id: int):
        status = require_enum(BillingStatus, json_body().get("status"), "Status")
        return ok(service.update_status(statement_id, status))

    @app.route(
        "/api/admin/billing/statements/<int:statement_id>/payments",
        methods=["POST"],
        endpoint="billing_admin_payment",
    )
    @roles_required(*BURSAR_ROLES)
    def record_payment(statement_id: int):
        data = json_body()
        statement = service.process_payment(
            statement_id,
            require_decimal(data.get("amount"), "Amount"),
            method=require_enum(PaymentMethod, data.get("method", "CASH"), "Payment method"),
            reference=data.get("reference"),
        )
        return ok(statement)

    @app.route("/api/admin/billing/students/<int:student_id>/account", methods=["GET"], endpoint="billing_admin_account")
    @roles_required(*BURSAR_ROLES)
    def student_account(student_id: int):
        return ok(
            {
                "account": service.get_or_create_account(student_id),
                "statements": service.list_statements_for_student(student_id),
            }
        )

    @app.route(
        "/api/admin/billing/students/<int:student_id>/semester", methods=["POST"], endpoint="billing_admin_semester"
    )
    @roles_required(*BURSAR_ROLES)
    def semester_billing(student_id: int):
        semester_id = optional_int(json_body().get("semester_id"), "semester_id")
        return ok(service.generate_semester_billing(student_id, semester_id), 201)

    @app.route(
        "/api/admin/billing/students/<int:student_id>/registrations",
        methods=["POST"],
        endpoint="billing_admin_registrations",
    )
    @roles_required(*BURSAR_ROLES)
    def bill_registrations(student_id: int):
        data = json_body()
        ids = data.get("registration_ids") or []
        if not isinstance(ids, list):
            ids = [ids]
        statement = service.generate_from_registrations(
            student_id,
            [require_int_range(i, "registration_ids", minimum=1) for i in ids],
            semester_id=optional_int(data.get("semester_id"), "semester_id"),
        )
        return ok(statement, 201)

    @app.route("/api/admin/billing/overdue", methods=["POST"], endpoint="billing_admin_overdue")
    @roles_required(*BURSAR_ROLES)
    def mark_overdue():
        on = parse_optional_date(json_body().get("as_of"), "as_of")
        flagged = service.mark_overdue(on)
        return ok({"count": len(flagged), "statements": flagged})
