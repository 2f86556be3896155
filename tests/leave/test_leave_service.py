from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime

import pytest

from university_erp.common.pagination import PageRequest
from university_erp.core.enums import LeaveRequestStatus, LeaveTypeStatus, Role
from university_erp.core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from university_erp.leave import service as leave_service
from university_erp.leave.model import LeaveType, leave_days
from university_erp.leave.service import LeaveRequestService, LeaveTypeService
from university_erp.users.model import User


class InMemoryLeave:
    def __init__(self, types=()):
        self.types = {t.leave_type_id: t for t in types}
        self.requests = {}

    def list_types(self, *, include_inactive=False):
        return [t for t in self.types.values() if include_inactive or t.is_active]

    def get_type(self, leave_type_id):
        return self.types.get(leave_type_id)

    def get_type_by_code(self, code):
        return next((t for t in self.types.values() if t.code == code), None)

    def create_type(self, leave_type):
        leave_type_id = max(self.types, default=0) + 1
        self.types[leave_type_id] = replace(leave_type, leave_type_id=leave_type_id)
        return leave_type_id

    def update_type(self, leave_type):
        self.types[leave_type.leave_type_id] = leave_type
        return True

    def set_type_status(self, leave_type_id, status):
        self.types[leave_type_id] = replace(self.types[leave_type_id], status=status)
        return True

    def create_request(self, request):
        request_id = len(self.requests) + 1
        self.requests[request_id] = replace(request, request_id=request_id)
        return request_id

    def get_request(self, request_id):
        return self.requests.get(request_id)

    def decide_request(self, *, request_id, status, decided_by=None, decided_at=None, rejection_reason=None, hr_notes=None):
        req = self.requests[request_id]
        self.requests[request_id] = replace(
            req,
            status=status,
            approved_by=decided_by if decided_by is not None else req.approved_by,
            decided_at=decided_at or req.decided_at,
            rejection_reason=rejection_reason or req.rejection_reason,
            hr_notes=hr_notes or req.hr_notes,
        )
        return True

    def list_for_employee(self, employee_id):
        return [r for r in self.requests.values() if r.employee_id == employee_id]

    def list_requests(self, *, status=None, offset=0, limit=20):
        items = [r for r in self.requests.values() if status is None or r.status == status]
        return items[offset : offset + limit], len(items)

    def list_overlapping(self, *, employee_id, start_date, end_date, statuses):
        return [
            r
            for r in self.requests.values()
            if r.employee_id == employee_id
            and r.status in statuses
            and r.start_date <= end_date
            and start_date <= r.end_date
        ]

    def sum_days(self, *, employee_id, leave_type_id, year, statuses):
        return sum(
            r.total_days
            for r in self.requests.values()
            if r.employee_id == employee_id
            and r.leave_type_id == leave_type_id
            and r.start_date.year == year
            and r.status in statuses
        )

    def count_by_status(self):
        counts = {}
        for r in self.requests.values():
            counts[r.status] = counts.get(r.status, 0) + 1
        return counts


class InMemoryUsers:
    def get_by_id(self, user_id):
        return {u.user_id: u for u in (INSTRUCTOR, STAFF, ADMIN, STUDENT)}.get(user_id)


INSTRUCTOR = User(3, "turing", "t@uni.edu", "Alan", "Turing", "x", Role.INSTRUCTOR)
STAFF = User(2, "hr", "h@uni.edu", "Hanna", "Ress", "x", Role.STAFF)
ADMIN = User(1, "root", "r@uni.edu", "Root", "Admin", "x", Role.ADMIN)
STUDENT = User(7, "ada", "a@uni.edu", "Ada", "Lovelace", "x", Role.STUDENT)

ANNUAL = LeaveType(1, "ANNUAL", "Annual Leave", True, True, LeaveTypeStatus.ACTIVE, max_days_per_year=10, advance_notice_days=7)
SICK = LeaveType(2, "SICK", "Sick Leave", True, False, LeaveTypeStatus.ACTIVE, max_consecutive_days=5)
OLD = LeaveType(3, "OLD", "Retired Leave", False, True, LeaveTypeStatus.INACTIVE)

TODAY = date(2026, 3, 2)


@pytest.fixture(autouse=True)
def fixed_today(monkeypatch):
    monkeypatch.setattr(leave_service, "today", lambda: TODAY)


@pytest.fixture
def repo():
    return InMemoryLeave([ANNUAL, SICK, OLD])


@pytest.fixture
def service(repo):
    return LeaveRequestService(repo, InMemoryUsers())


def _request(service, start, end, *, leave_type_id=ANNUAL.leave_type_id, employee=INSTRUCTOR, role=Role.INSTRUCTOR):
    return service.create_request(
        current_role=role,
        employee_id=employee.user_id,
        leave_type_id=leave_type_id,
        start_date=start,
        end_date=end,
        reason="Family trip",
    )


def test_leave_days_include_both_ends():
    assert leave_days(date(2026, 4, 6), date(2026, 4, 10)) == 5
    assert leave_days(date(2026, 4, 6), date(2026, 4, 6)) == 1


def test_create_request_is_pending(service):
    req = _request(service, date(2026, 4, 6), date(2026, 4, 10))

    assert req.status == LeaveRequestStatus.PENDING
    assert req.total_days == 5
    assert req.decided_at is None


def test_requests_created_in_the_same_instant_get_distinct_numbers(service, monkeypatch):
    monkeypatch.setattr(leave_service, "now_local", lambda: datetime(2026, 3, 2, 9, 0, 0, 123000))

    first = _request(service, date(2026, 4, 6), date(2026, 4, 7))
    second = _request(service, date(2026, 4, 13), date(2026, 4, 14))

    assert first.request_number.startswith("LR-20260302-")
    assert second.request_number.startswith("LR-20260302-")
    assert first.request_number != second.request_number


def test_leave_type_without_approval_is_auto_approved(service):
    req = _request(service, TODAY, TODAY, leave_type_id=SICK.leave_type_id)

    assert req.status == LeaveRequestStatus.APPROVED
    assert req.decided_at is not None


@pytest.mark.parametrize(
    "start, end, leave_type_id, error",
    [
        (date(2026, 4, 10), date(2026, 4, 6), 1, ValidationError),
        (date(2026, 3, 4), date(2026, 3, 5), 1, ValidationError),
        (date(2026, 4, 1), date(2026, 4, 6), 2, ValidationError),
        (date(2026, 4, 1), date(2026, 4, 15), 1, ValidationError),
        (date(2026, 4, 1), date(2026, 4, 2), 3, ValidationError),
        (date(2026, 4, 1), date(2026, 4, 2), 9, NotFoundError),
    ],
)
def test_request_rules(service, start, end, leave_type_id, error):
    with pytest.raises(error):
        _request(service, start, end, leave_type_id=leave_type_id)


def test_students_cannot_request_leave(service):
    with pytest.raises(AuthorizationError):
        _request(service, date(2026, 4, 6), date(2026, 4, 7), role=Role.STUDENT)
    with pytest.raises(ValidationError):
        _request(service, date(2026, 4, 6), date(2026, 4, 7), employee=STUDENT, role=Role.STAFF)


def test_overlapping_request_conflicts(service):
    _request(service, date(2026, 4, 6), date(2026, 4, 8))
    with pytest.raises(ConflictError):
        _request(service, date(2026, 4, 8), date(2026, 4, 9))


def test_yearly_allowance_counts_approved_days(service):
    first = _request(service, date(2026, 4, 6), date(2026, 4, 12))
    service.approve(current_role=Role.STAFF, approver_id=STAFF.user_id, request_id=first.request_id)

    assert service.days_used(INSTRUCTOR.user_id, ANNUAL.leave_type_id, 2026) == 7
    with pytest.raises(ValidationError, match="Only 3 days"):
        _request(service, date(2026, 5, 4), date(2026, 5, 7))
    assert _request(service, date(2026, 5, 4), date(2026, 5, 6)).total_days == 3


def test_approve_and_reject_rules(service):
    req = _request(service, date(2026, 4, 6), date(2026, 4, 7))

    with pytest.raises(AuthorizationError):
        service.approve(current_role=Role.INSTRUCTOR, approver_id=INSTRUCTOR.user_id, request_id=req.request_id)
    with pytest.raises(ValidationError):
        service.reject(current_role=Role.STAFF, approver_id=STAFF.user_id, request_id=req.request_id, rejection_reason=" ")

    rejected = service.reject(
        current_role=Role.STAFF, approver_id=STAFF.user_id, request_id=req.request_id, rejection_reason="Exam week"
    )
    assert rejected.status == LeaveRequestStatus.REJECTED
    assert rejected.approved_by == STAFF.user_id
    assert rejected.rejection_reason == "Exam week"

    with pytest.raises(ValidationError):
        service.approve(current_role=Role.ADMIN, approver_id=ADMIN.user_id, request_id=req.request_id)


def test_approver_cannot_decide_own_request(service):
    req = _request(service, date(2026, 4, 6), date(2026, 4, 7), employee=STAFF, role=Role.STAFF)
    with pytest.raises(AuthorizationError):
        service.approve(current_role=Role.STAFF, approver_id=STAFF.user_id, request_id=req.request_id)


def test_cancel_by_owner_or_admin(service):
    req = _request(service, date(2026, 4, 6), date(2026, 4, 7))

    with pytest.raises(AuthorizationError):
        service.cancel(current_role=Role.STAFF, current_user_id=STAFF.user_id, request_id=req.request_id)

    cancelled = service.cancel(
        current_role=Role.INSTRUCTOR, current_user_id=INSTRUCTOR.user_id, request_id=req.request_id, reason="Plans changed"
    )
    assert cancelled.status == LeaveRequestStatus.CANCELLED
    with pytest.raises(ValidationError):
        service.cancel(current_role=Role.ADMIN, current_user_id=ADMIN.user_id, request_id=req.request_id)

    # cancelled leave frees the dates again
    assert _request(service, date(2026, 4, 6), date(2026, 4, 7)).status == LeaveRequestStatus.PENDING


def test_pending_list_and_counts(service):
    _request(service, date(2026, 4, 6), date(2026, 4, 7))
    _request(service, TODAY, TODAY, leave_type_id=SICK.leave_type_id)

    pending = service.list_pending(PageRequest())
    counts = service.count_by_status()

    assert pending.total == 1
    assert counts[LeaveRequestStatus.PENDING] == 1
    assert counts[LeaveRequestStatus.APPROVED] == 1
    assert counts[LeaveRequestStatus.REJECTED] == 0


def test_leave_type_admin(repo):
    types = LeaveTypeService(repo)

    created = types.create_type({"code": "study", "name": "Study Leave", "is_paid": "false", "max_days_per_year": "5"})
    assert created.code == "STUDY"
    assert created.is_paid is False
    assert created.requires_approval is True
    assert created.max_days_per_year == 5

    with pytest.raises(ConflictError):
        types.create_type({"code": "annual", "name": "Dup"})
    with pytest.raises(ValidationError):
        types.create_type({"code": "NEG", "name": "Negative", "max_consecutive_days": -1})

    updated = types.update_type(created.leave_type_id, {"advance_notice_days": 14, "name": "Study"})
    assert updated.advance_notice_days == 14
    assert updated.name == "Study"

    types.deactivate_type(created.leave_type_id)
    assert created.leave_type_id not in [t.leave_type_id for t in types.list_types()]
    assert created.leave_type_id in [t.leave_type_id for t in types.list_types(include_inactive=True)]
