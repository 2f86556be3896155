from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from ..billing.repository import BillingRepository
from ..common.datetime_utils import now_local
from ..core.enums import AcademicStanding, BillingStatus, RegistrationStatus, Role
from ..courses.repository import CourseRepository
from ..records.progress import ZERO_GPA, round_gpa
from ..records.repository import AcademicRecordRepository
from ..registrations.repository import RegistrationRepository
from ..users.repository import UserRepository


@dataclass(frozen=True)
class AcademicReport:
    generated_at: datetime
    total_students: int
    total_instructors: int
    total_courses: int
    registrations_by_status: dict
    average_cumulative_gpa: Decimal
    standing_distribution: dict


@dataclass(frozen=True)
class FinancialReport:
    generated_at: datetime
    total_billed: Decimal
    total_paid: Decimal
    outstanding: Decimal
    collection_rate: Decimal
    overdue_count: int
    statements_by_status: dict


class ReportService:
    def __init__(
        self,
        users: UserRepository,
        courses: CourseRepository,
        registrations: RegistrationRepository,
        records: AcademicRecordRepository,
        billing: BillingRepository,
    ):
        self._users = users
        self._courses = courses
        self._registrations = registrations
        self._records = records
        self._billing = billing

    def build_academic_report(self) -> AcademicReport:
        roles = self._users.count_by_role()
        registrations = self._registrations.count_by_status()
        standings = self._records.standing_distribution()
        average: Optional[Decimal] = self._records.average_cumulative_gpa()

        return AcademicReport(
            generated_at=now_local(),
            total_students=int(roles.get(Role.STUDENT, 0)),
            total_instructors=int(roles.get(Role.INSTRUCTOR, 0)),
            total_courses=self._courses.count_all(),
            registrations_by_status={s: int(registrations.get(s, 0)) for s in RegistrationStatus},
            average_cumulative_gpa=round_gpa(average) if average is not None else ZERO_GPA,
            standing_distribution={s: int(standings.get(s, 0)) for s in AcademicStanding},
        )

    def build_financial_report(self) -> FinancialReport:
        totals = self._billing.totals()
        by_status = {s: int(totals.statements_by_status.get(s, 0)) for s in BillingStatus}
        rate = Decimal("0.00")
        if totals.total_billed > 0:
            rate = (totals.total_paid * 100 / totals.total_billed).quantize(Decimal("0.01"))

        return FinancialReport(
            generated_at=now_local(),
            total_billed=totals.total_billed,
            total_paid=totals.total_paid,
            outstanding=totals.outstanding,
            collection_rate=rate,
            overdue_count=by_status[BillingStatus.OVERDUE],
            statements_by_status=by_status,
        )
