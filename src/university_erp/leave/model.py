from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import LeaveRequestStatus, LeaveTypeStatus


@dataclass(frozen=True)
class LeaveType:
    leave_type_id: int
    code: str
    name: str
    is_paid: bool
    requires_approval: bool
    status: LeaveTypeStatus
    description: Optional[str] = None
    max_days_per_year: Optional[int] = None
    max_consecutive_days: Optional[int] = None
    advance_notice_days: int = 0

    @property
    def is_active(self) -> bool:
        return self.status == LeaveTypeStatus.ACTIVE


@dataclass(frozen=True)
class LeaveRequest:
    request_id: int
    request_number: str
    employee_id: int
    leave_type_id: int
    start_date: date
    end_date: date
    total_days: int
    reason: str
    status: LeaveRequestStatus
    created_at: datetime
    approved_by: Optional[int] = None
    decided_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    hr_notes: Optional[str] = None

    employee_name: str = ""
    leave_type_name: str = ""


def leave_days(start_date: date, end_date: date) -> int:
    """Calendar days covered by a leave, both ends included."""
    return (end_date - start_date).days + 1
