from __future__ import annotations

from decimal import Decimal

from university_erp.billing.model import BillingTotals
from university_erp.core.enums import AcademicStanding, BillingStatus, RegistrationStatus, Role
from university_erp.reports.service import ReportService


class FakeUsersRepo:
    def count_by_role(self):
        return {Role.STUDENT: 120, Role.INSTRUCTOR: 9, Role.ADMIN: 1}


class FakeCoursesRepo:
    def count_all(self):
        return 14


class FakeRegistrationsRepo:
    def count_by_status(self):
        return {RegistrationStatus.ENROLLED: 300, RegistrationStatus.COMPLETED: 80}


class FakeRecordsRepo:
    def __init__(self, average):
        self._average = average

    def standing_distribution(self):
        return {AcademicStanding.GOOD_STANDING: 100, AcademicStanding.DEANS_LIST: 15}

    def average_cumulative_gpa(self):
        return self._average


class FakeBillingRepo:
    def __init__(self, totals):
        self._totals = totals

    def totals(self):
        return self._totals


def _service(*, average=Decimal("3.12345"), totals=None):
    totals = totals or BillingTotals(
        total_billed=Decimal("8000.00"),
        total_paid=Decimal("6000.00"),
        outstanding=Decimal("2000.00"),
        statements_by_status={BillingStatus.PAID: 5, BillingStatus.OVERDUE: 2},
    )
    return ReportService(
        FakeUsersRepo(), FakeCoursesRepo(), FakeRegistrationsRepo(), FakeRecordsRepo(average), FakeBillingRepo(totals)
    )


def test_academic_report_fills_every_status():
    report = _service().build_academic_report()

    assert report.total_students == 120
    assert report.total_instructors == 9
    assert report.total_courses == 14
    assert report.registrations_by_status[RegistrationStatus.ENROLLED] == 300
    assert report.registrations_by_status[RegistrationStatus.DROPPED] == 0
    assert set(report.registrations_by_status) == set(RegistrationStatus)
    assert report.standing_distribution[AcademicStanding.ACADEMIC_PROBATION] == 0
    assert report.average_cumulative_gpa == Decimal("3.123")


def test_academic_report_without_records():
    assert _service(average=None).build_academic_report().average_cumulative_gpa == Decimal("0.000")


def test_financial_report_collection_rate():
    report = _service().build_financial_report()

    assert report.collection_rate == Decimal("75.00")
    assert report.overdue_count == 2
    assert report.statements_by_status[BillingStatus.PENDING] == 0
    assert report.outstanding == Decimal("2000.00")


def test_financial_report_with_nothing_billed():
    empty = BillingTotals(Decimal("0.00"), Decimal("0.00"), Decimal("0.00"), {})
    report = _service(totals=empty).build_financial_report()

    assert report.collection_rate == Decimal("0.00")
    assert report.overdue_count == 0
