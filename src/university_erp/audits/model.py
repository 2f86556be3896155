from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from ..core.enums import AuditType


@dataclass(frozen=True)
class DegreeAudit:
    audit_id: int
    student_id: int
    program_id: int
    audit_type: AuditType
    audit_date: datetime
    total_credits_required: int
    credits_completed: int
    credits_in_progress: int
    credits_remaining: int
    minimum_gpa_required: Decimal
    current_gpa: Decimal
    gpa_requirement_met: bool
    eligible_for_graduation: bool
    completion_percentage: Decimal
    projected_graduation_date: Optional[date] = None
    notes: Optional[str] = None

    student_name: str = ""
    program_name: str = ""
