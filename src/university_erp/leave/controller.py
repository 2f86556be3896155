from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import parse_optional_date, today
from ..common.pagination import PageRequest
from ..common.validators import optional_enum, optional_int, require_int_range
from ..common.web import (
    acting_user_id,
    current_role,
    current_user_id,
    json_body,
    login_required,
    ok,
    require_self_or_roles,
    roles_required,
)
from ..core.enums import LeaveRequestStatus, Role
from ..core.exceptions import ValidationError
from ..container import Container

HR_ROLES = (Role.ADMIN, Role.STAFF)
EMPLOYEE_ROLES = (Role.ADMIN, Role.STAFF, Role.INSTRUCTOR)


def _year(value) -> int:
    if value is None or value == "":
        return today().year
    return require_int_range(value, "year", minimum=1900, maximum=2100)


def register(app: Flask, container: Container) -> None:
    types = container.leave_type_service
    requests = container.leave_request_service

    @app.route("/api/leave-types", methods=["GET"], endpoint="leave_types_list")
    @login_required
    def list_types():
        include_inactive = request.args.get("include_inactive", "").lower() in ("1", "true", "yes")
        return ok(types.list_types(include_inactive=include_inactive))

    @app.route("/api/leave-types/<int:leave_type_id>", methods=["GET"], endpoint="leave_types_get")
    @login_required
    def get_type(leave_type_id: int):
        return ok(types.get_type(leave_type_id))

    @app.route("/api/leave-types", methods=["POST"], endpoint="leave_types_create")
    @roles_required(*HR_ROLES)
    def create_type():
        return ok(types.create_type(json_body()), 201)

    @app.route("/api/leave-types/<int:leave_type_id>", methods=["PUT"], endpoint="leave_types_update")
    @roles_required(*HR_ROLES)
    def update_type(leave_type_id: int):
        return ok(types.update_type(leave_type_id, json_body()))

    @app.route("/api/leave-types/<int:leave_type_id>", methods=["DELETE"], endpoint="leave_types_deactivate")
    @roles_required(*HR_ROLES)
    def deactivate_type(leave_type_id: int):
        return ok(types.deactivate_type(leave_type_id))

    @app.route("/api/leave-requests", methods=["POST"], endpoint="leave_requests_create")
    @roles_required(*EMPLOYEE_ROLES)
    def create_request():
        data = json_body()
        start_date = parse_optional_date(data.get("start_date"), "start_date")
        end_date = parse_optional_date(data.get("end_date"), "end_date")
        if start_date is None or end_date is None:
            raise ValidationError("Start date and end date are required")
        req = requests.create_request(
            current_role=current_role(),
            employee_id=acting_user_id(optional_int(data.get("employee_id"), "employee_id"), *HR_ROLES),
            leave_type_id=require_int_range(data.get("leave_type_id"), "leave_type_id", minimum=1),
            start_date=start_date,
            end_date=end_date,
            reason=data.get("reason", ""),
        )
        return ok(req, 201)

    @app.route("/api/leave-requests/me", methods=["GET"], endpoint="leave_requests_mine")
    @roles_required(*EMPLOYEE_ROLES)
    def my_requests():
        return ok(requests.list_for_employee(current_user_id()))

    @app.route("/api/leave-requests", methods=["GET"], endpoint="leave_requests_list")
    @roles_required(*HR_ROLES)
    def list_requests():
        status = optional_enum(LeaveRequestStatus, request.args.get("status"), "Status")
        return ok(requests.list_all(PageRequest.from_args(request.args), status=status))

    @app.route("/api/leave-requests/pending", methods=["GET"], endpoint="leave_requests_pending")
    @roles_required(*HR_ROLES)
    def pending_requests():
        return ok(requests.list_pending(PageRequest.from_args(request.args)))

    @app.route("/api/leave-requests/counts", methods=["GET"], endpoint="leave_requests_counts")
    @roles_required(*HR_ROLES)
    def request_counts():
        return ok({status.value: count for status, count in requests.count_by_status().items()})

    @app.route("/api/employees/<int:employee_id>/leave-requests", methods=["GET"], endpoint="leave_requests_employee")
    @roles_required(*EMPLOYEE_ROLES)
    def employee_requests(employee_id: int):
        require_self_or_roles(employee_id, *HR_ROLES)
        return ok(requests.list_for_employee(employee_id))

    @app.route(
        "/api/employees/<int:employee_id>/leave-usage/<int:leave_type_id>",
        methods=["GET"],
        endpoint="leave_requests_usage",
    )
    @roles_required(*EMPLOYEE_ROLES)
    def leave_usage(employee_id: int, leave_type_id: int):
        require_self_or_roles(employee_id, *HR_ROLES)
        year = _year(request.args.get("year"))
        return ok(
            {
                "employee_id": employee_id,
                "leave_type_id": leave_type_id,
                "year": year,
                "days_used": requests.days_used(employee_id, leave_type_id, year),
            }
        )

    @app.route("/api/leave-requests/<int:request_id>", methods=["GET"], endpoint="leave_requests_get")
    @login_required
    def get_request(request_id: int):
        req = requests.get_request(request_id)
        require_self_or_roles(req.employee_id, *HR_ROLES)
        return ok(req)

    @app.route("/api/leave-requests/<int:request_id>/approve", methods=["POST"], endpoint="leave_requests_approve")
    @roles_required(*HR_ROLES)
    def approve_request(request_id: int):
        req = requests.approve(
            current_role=current_role(),
            approver_id=current_user_id(),
            request_id=request_id,
            hr_notes=json_body().get("hr_notes", ""),
        )
        return ok(req)

    @app.route("/api/leave-requests/<int:request_id>/reject", methods=["POST"], endpoint="leave_requests_reject")
    @roles_required(*HR_ROLES)
    def reject_request(request_id: int):
        data = json_body()
        req = requests.reject(
            current_role=current_role(),
            approver_id=current_user_id(),
            request_id=request_id,
            rejection_reason=data.get("rejection_reason", ""),
            hr_notes=data.get("hr_notes", ""),
        )
        return ok(req)

    @app.route("/api/leave-requests/<int:request_id>/cancel", methods=["POST"], endpoint="leave_requests_cancel")
    @login_required
    def cancel_request(request_id: int):
        req = requests.cancel(
            current_role=current_role(),
            current_user_id=current_user_id(),
            request_id=request_id,
            reason=json_body().get("reason", ""),
        )
        return ok(req)
