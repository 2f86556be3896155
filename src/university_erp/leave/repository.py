from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence, Tuple

from ..core.enums import LeaveRequestStatus, LeaveTypeStatus
from .model import LeaveRequest, LeaveType


class LeaveRepository(Protocol):
    # Leave types
    def list_types(self, *, include_inactive: bool = False) -> Sequence[LeaveType]:
        raise NotImplementedError

    def get_type(self, leave_type_id: int) -> Optional[LeaveType]:
        raise NotImplementedError

    def get_type_by_code(self, code: str) -> Optional[LeaveType]:
        raise NotImplementedError

    def create_type(self, leave_type: LeaveType) -> int:
        raise NotImplementedError

    def update_type(self, leave_type: LeaveType) -> bool:
        raise NotImplementedError

    def set_type_status(self, leave_type_id: int, status: LeaveTypeStatus) -> bool:
        raise NotImplementedError

    # Leave requests
    def create_request(self, request: LeaveRequest) -> int:
        raise NotImplementedError

    def get_request(self, request_id: int) -> Optional[LeaveRequest]:
        raise NotImplementedError

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
        raise NotImplementedError

    def list_for_employee(self, employee_id: int) -> Sequence[LeaveRequest]:
        raise NotImplementedError

    def list_requests(
        self,
        *,
        status: Optional[LeaveRequestStatus] = None,
        offset: int,
        limit: int,
    ) -> Tuple[Sequence[LeaveRequest], int]:
        raise NotImplementedError

    def list_overlapping(
        self,
        *,
        employee_id: int,
        start_date: date,
        end_date: date,
        statuses: Sequence[LeaveRequestStatus],
    ) -> Sequence[LeaveRequest]:
        raise NotImplementedError

    def sum_days(
        self,
        *,
        employee_id: int,
        leave_type_id: int,
        year: int,
        statuses: Sequence[LeaveRequestStatus],
    ) -> int:
        raise NotImplementedError

    def count_by_status(self) -> dict[LeaveRequestStatus, int]:
        raise NotImplementedError
