from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional, Protocol, Sequence, Tuple

from ..core.enums import FeePaymentStatus, RegistrationStatus
from .model import Registration


class RegistrationRepository(Protocol):
    def get_by_id(self, registration_id: int) -> Optional[Registration]:
        raise NotImplementedError

    def list_for_user_and_course(self, *, user_id: int, course_id: int) -> Sequence[Registration]:
        raise NotImplementedError

    def create(
        self,
        *,
        user_id: int,
        course_id: int,
        semester_id: Optional[int],
        course_fee: Decimal,
        registered_at: datetime,
    ) -> int:
        raise NotImplementedError

    def reactivate(
        self,
        registration_id: int,
        *,
        semester_id: Optional[int],
        course_fee: Decimal,
        registered_at: datetime,
    ) -> bool:
        """Bring a dropped/withdrawn registration back to ENROLLED with a fresh fee."""

        raise NotImplementedError

    def update_status(
        self,
        registration_id: int,
        status: RegistrationStatus,
        *,
        completed_at: Optional[datetime] = None,
    ) -> bool:
        raise NotImplementedError

    def update_grade(
        self,
        registration_id: int,
        *,
        grade: str,
        grade_points: Optional[Decimal],
        status: RegistrationStatus,
        completed_at: Optional[datetime],
    ) -> bool:
        raise NotImplementedError

    def update_payment_status(self, registration_ids: Sequence[int], status: FeePaymentStatus) -> int:
        raise NotImplementedError

    def delete_by_id(self, registration_id: int) -> bool:
        raise NotImplementedError

    def list_for_user(self, user_id: int) -> Sequence[Registration]:
        raise NotImplementedError

    def list_for_course(self, course_id: int) -> Sequence[Registration]:
        raise NotImplementedError

    def list_by_status(
        self,
        status: RegistrationStatus,
        *,
        offset: int,
        limit: int,
    ) -> Tuple[Sequence[Registration], int]:
        raise NotImplementedError

    def count_by_status(self) -> dict[RegistrationStatus, int]:
        raise NotImplementedError
