from __future__ import annotations

from typing import Optional, Protocol, Sequence, Tuple

from .model import DegreeAudit


class DegreeAuditRepository(Protocol):
    def get_by_id(self, audit_id: int) -> Optional[DegreeAudit]:
        raise NotImplementedError

    def create(self, audit: DegreeAudit) -> int:
        raise NotImplementedError

    def save(self, audit: DegreeAudit) -> bool:
        raise NotImplementedError

    def list_for_student(self, student_id: int) -> Sequence[DegreeAudit]:
        """Newest first."""

        raise NotImplementedError

    def get_latest_for_student(self, student_id: int) -> Optional[DegreeAudit]:
        raise NotImplementedError

    def list_for_program(self, program_id: int, *, offset: int, limit: int) -> Tuple[Sequence[DegreeAudit], int]:
        raise NotImplementedError

    def list_eligible(self) -> Sequence[DegreeAudit]:
        raise NotImplementedError

    def delete_by_id(self, audit_id: int) -> bool:
        raise NotImplementedError
