from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Domain entity: User (students, instructors, staff and admins share one table).

    Note: plain data object, no DB access here.
    """

    user_id: int
    username: str
    email: str
    first_name: str
    last_name: str
    password_hash: str
    role: Role
    department_id: Optional[int] = None
    student_number: Optional[str] = None
    date_of_birth: Optional[date] = None
    is_active: bool = True
    created_at: Optional[datetime] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
