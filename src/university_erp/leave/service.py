from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date
from typing import Any, Mapping, Optional

from ..common.datetime_utils import dated_number, now_local, today
from ..common.pagination import Page, PageRequest
from ..common.validators import optional_int, optional_text, require_non_empty
from ..core.enums import LeaveRequestStatus, LeaveTypeStatus, Role
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..users.repository import UserRepository
from .model import LeaveRequest, LeaveType, leave_days
from .repository import LeaveRepository

logger = logging.getLogger(__name__)

APPROVER_ROLES = (Role.ADMIN, Role.STAFF)
BLOCKING_STATUSES = (LeaveRequestStatus.PENDING, LeaveRequestStatus.APPROVED, LeaveRequestStatus.COMPLETED)
USED_STATUSES = (LeaveRequestStatus.APPROVED, LeaveRequestStatus.COMPLETED)
CANCELLABLE_STATUSES = (LeaveRequestStatus.PENDING, LeaveRequestStatus.APPROVED)


def _flag(value: Any, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def _optional_limit(value: Any, field_name: str) -> Optional[int]:
    number = optional_int(value, field_name)
    if number is not None and number < 0:
        raise ValidationError(f"{field_name} cannot be negative")
    return number


class LeaveTypeService:
    def __init__(self, leave: LeaveRepository):
        self._leave = leave

    def list_types(self, *, include_inactive: bool = False) -> list[LeaveType]:
        return list(self._leave.list_types(include_inactive=include_inactive))

    def get_type(self, leave_type_id: int) -> LeaveType:
        leave_type = self._leave.get_type(int(leave_type_id))
        if not leave_type:
            raise NotFoundError("Leave type not found")
        return leave_type

    def _check_code(self, code: str, *, exclude_id: Optional[int] = None) -> None:
        existing = self._leave.get_type_by_code(code)
        if existing and existing.leave_type_id != exclude_id:
            raise ConflictError(f"Leave type code {code} already exists")

    def create_type(self, values: Mapping[str, Any]) -> LeaveType:
        code = require_non_empty(values.get("code"), "Leave type code").upper()
        self._check_code(code)
        leave_type = LeaveType(
            leave_type_id=0,
            code=code,
            name=require_non_empty(values.get("name"), "Leave type name"),
            description=optional_text(values.get("description")),
            is_paid=_flag(values.get("is_paid"), True),
            requires_approval=_flag(values.get("requires_approval"), True),
            max_days_per_year=_optional_limit(values.get("max_days_per_year"), "max_days_per_year"),
            max_consecutive_days=_optional_limit(values.get("max_consecutive_days"), "max_consecutive_days"),
            advance_notice_days=_optional_limit(values.get("advance_notice_days"), "advance_notice_days") or 0,
            status=LeaveTypeStatus.ACTIVE,
        )
        leave_type_id = self._leave.create_type(leave_type)
        logger.info("Created leave type %s", code)
        return self.get_type(leave_type_id)

    def update_type(self, leave_type_id: int, changes: Mapping[str, Any]) -> LeaveType:
        current = self.get_type(leave_type_id)
        updated = current
        if "code" in changes:
            code = require_non_empty(changes["code"], "Leave type code").upper()
            self._check_code(code, exclude_id=current.leave_type_id)
            updated = replace(updated, code=code)
        if "name" in changes:
            updated = replace(updated, name=require_non_empty(changes["name"], "Leave type name"))
        if "description" in changes:
            updated = replace(updated, description=optional_text(changes["description"]))
        if "is_paid" in changes:
            updated = replace(updated, is_paid=_flag(changes["is_paid"], current.is_paid))
        if "requires_approval" in changes:
            updated = replace(updated, requires_approval=_flag(changes["requires_approval"], current.requires_approval))
        for field_name in ("max_days_per_year", "max_consecutive_days"):
            if field_name in changes:
                updated = replace(updated, **{field_name: _optional_limit(changes[field_name], field_name)})
        if "advance_notice_days" in changes:
            updated = replace(
                updated, advance_notice_days=_optional_limit(changes["advance_notice_days"], "advance_notice_days") or 0
            )
        self._leave.update_type(updated)
        return self.get_type(current.leave_type_id)

    def deactivate_type(self, leave_type_id: int) -> LeaveType:
        leave_type = self.get_type(leave_type_id)
        self._leave.set_type_status(leave_type.leave_type_id, LeaveTypeStatus.INACTIVE)
        logger.info("Deactivated leave type %s", leave_type.code)
        return self.get_type(leave_type.leave_type_id)


class LeaveRequestService:
    """Use case: employees request leave, HR approves or rejects it."""

    def __init__(self, leave: LeaveRepository, users: UserRepository):
        self._leave = leave
        self._users = users

    def get_request(self, request_id: int) -> LeaveRequest:
        req = self._leave.get_request(int(request_id))
        if not req:
            raise NotFoundError("Leave request not found")
        return req

    def days_used(self, employee_id: int, leave_type_id: int, year: int) -> int:
        return self._leave.sum_days(
            employee_id=int(employee_id), leave_type_id=int(leave_type_id), year=int(year), statuses=USED_STATUSES
        )

    def create_request(
        self,
        *,
        current_role: Role,
        employee_id: int,
        leave_type_id: int,
        start_date: date,
        end_date: date,
        reason: str,
    ) -> LeaveRequest:
        if current_role == Role.STUDENT:
            raise AuthorizationError("Students cannot request leave")
        employee = self._users.get_by_id(int(employee_id))
        if not employee:
            raise NotFoundError("Employee not found")
        if employee.role == Role.STUDENT:
            raise ValidationError("Leave can only be requested for employees")
        if start_date is None or end_date is None:
            raise ValidationError("Start date and end date are required")
        if end_date < start_date:
            raise ValidationError("Start date cannot be after end date")
        reason = require_non_empty(reason, "Reason")

        leave_type = self._leave.get_type(int(leave_type_id))
        if not leave_type:
            raise NotFoundError("Leave type not found")
        if not leave_type.is_active:
            raise ValidationError(f"Leave type {leave_type.code} is not active")

        total_days = leave_days(start_date, end_date)
        notice = (start_date - today()).days
        if notice < leave_type.advance_notice_days:
            raise ValidationError(
                f"{leave_type.name} requires {leave_type.advance_notice_days} days of advance notice"
            )
        if leave_type.max_consecutive_days is not None and total_days > leave_type.max_consecutive_days:
            raise ValidationError(
                f"{leave_type.name} allows at most {leave_type.max_consecutive_days} consecutive days"
            )
        if leave_type.max_days_per_year is not None:
            used = self.days_used(employee.user_id, leave_type.leave_type_id, start_date.year)
            if used + total_days > leave_type.max_days_per_year:
                remaining = max(leave_type.max_days_per_year - used, 0)
                raise ValidationError(
                    f"Only {remaining} days of {leave_type.name} remain for {start_date.year}"
                )

        overlapping = self._leave.list_overlapping(
            employee_id=employee.user_id, start_date=start_date, end_date=end_date, statuses=BLOCKING_STATUSES
        )
        if overlapping:
            raise ConflictError(f"Leave overlaps with request {overlapping[0].request_number}")

        now = now_local()
        auto_approved = not leave_type.requires_approval
        request_id = self._leave.create_request(
            LeaveRequest(
                request_id=0,
                request_number=dated_number("LR", now),
                employee_id=employee.user_id,
                leave_type_id=leave_type.leave_type_id,
                start_date=start_date,
                end_date=end_date,
                total_days=total_days,
                reason=reason,
                status=LeaveRequestStatus.APPROVED if auto_approved else LeaveRequestStatus.PENDING,
                created_at=now,
                decided_at=now if auto_approved else None,
            )
        )
        logger.info(
            "Leave request %s for employee %s (%s, %s days)%s",
            request_id,
            employee.user_id,
            leave_type.code,
            total_days,
            " auto-approved" if auto_approved else "",
        )
        return self.get_request(request_id)

    def _pending(self, request_id: int, current_role: Role, approver_id: int) -> LeaveRequest:
        if current_role not in APPROVER_ROLES:
            raise AuthorizationError("You do not have permission for this action")
        req = self.get_request(request_id)
        if req.status != LeaveRequestStatus.PENDING:
            raise ValidationError(f"Leave request is already {req.status.value}")
        if req.employee_id == int(approver_id):
            raise AuthorizationError("You cannot decide your own leave request")
        return req

    def approve(self, *, current_role: Role, approver_id: int, request_id: int, hr_notes: str = "") -> LeaveRequest:
        req = self._pending(request_id, current_role, approver_id)
        self._leave.decide_request(
            request_id=req.request_id,
            status=LeaveRequestStatus.APPROVED,
            decided_by=int(approver_id),
            decided_at=now_local(),
            hr_notes=optional_text(hr_notes),
        )
        logger.info("Leave request %s approved by %s", req.request_number, approver_id)
        return self.get_request(req.request_id)

    def reject(
        self,
        *,
        current_role: Role,
        approver_id: int,
        request_id: int,
        rejection_reason: str,
        hr_notes: str = "",
    ) -> LeaveRequest:
        req = self._pending(request_id, current_role, approver_id)
        reason = require_non_empty(rejection_reason, "Rejection reason")
        self._leave.decide_request(
            request_id=req.request_id,
            status=LeaveRequestStatus.REJECTED,
            decided_by=int(approver_id),
            decided_at=now_local(),
            rejection_reason=reason,
            hr_notes=optional_text(hr_notes),
        )
        logger.info("Leave request %s rejected by %s", req.request_number, approver_id)
        return self.get_request(req.request_id)

    def cancel(self, *, current_role: Role, current_user_id: int, request_id: int, reason: str = "") -> LeaveRequest:
        req = self.get_request(request_id)
        if req.employee_id != int(current_user_id) and current_role != Role.ADMIN:
            raise AuthorizationError("Only the requester or an administrator can cancel this request")
        if req.status not in CANCELLABLE_STATUSES:
            raise ValidationError(f"Cannot cancel a leave request in status {req.status.value}")
        self._leave.decide_request(
            request_id=req.request_id,
            status=LeaveRequestStatus.CANCELLED,
            rejection_reason=optional_text(reason),
        )
        logger.info("Leave request %s cancelled by %s", req.request_number, current_user_id)
        return self.get_request(req.request_id)

    def list_pending(self, page_request: PageRequest) -> Page[LeaveRequest]:
        return self.list_all(page_request, status=LeaveRequestStatus.PENDING)

    def list_for_employee(self, employee_id: int) -> list[LeaveRequest]:
        return list(self._leave.list_for_employee(int(employee_id)))

    def list_all(self, page_request: PageRequest, *, status: Optional[LeaveRequestStatus] = None) -> Page[LeaveRequest]:
        items, total = self._leave.list_requests(status=status, offset=page_request.offset, limit=page_request.limit)
        return Page(items=list(items), page=page_request.page, size=page_request.size, total=total)

    def count_by_status(self) -> dict[LeaveRequestStatus, int]:
        counts = self._leave.count_by_status()
        return {status: int(counts.get(status, 0)) for status in LeaveRequestStatus}

