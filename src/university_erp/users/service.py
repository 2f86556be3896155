from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.datetime_utils import now_local
from ..common.pagination import Page, PageRequest
from ..common.validators import optional_text, require_email, require_min_length, require_non_empty
from ..core.enums import Role
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from .department_model import Department
from .department_repository import DepartmentRepository
from .model import User
from .repository import UserRepository

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


@dataclass(frozen=True)
class SessionUser:
    """What we store into Flask session after login."""

    user_id: int
    full_name: str
    role: Role
    department_id: Optional[int]


class AuthService:
    """Use case: authenticate user (login)."""

    def __init__(self, users: UserRepository):
        self._users = users

    def authenticate(self, login: str, password: str) -> SessionUser:
        login = (login or "").strip()
        user = self._users.get_by_username(login)
        if not user and "@" in login:
            user = self._users.get_by_email(login.lower())
        if not user or not user.is_active:
            raise AuthenticationError("Invalid username or password")

        try:
            valid = check_password_hash(user.password_hash, password or "")
        except ValueError:
            # placeholder hashes like 'CHANGE_ME' in seed data
            valid = False

        if not valid:
            raise AuthenticationError("Invalid username or password")

        logger.info("User %s logged in", user.username)
        return SessionUser(
            user_id=user.user_id,
            full_name=user.full_name,
            role=user.role,
            department_id=user.department_id,
        )


class UserService:
    """Use case: manage user accounts."""

    def __init__(self, users: UserRepository, departments: DepartmentRepository):
        self._users = users
        self._departments = departments

    def _require_department(self, department_id: Optional[int]) -> Optional[int]:
        if department_id in (None, ""):
            return None
        if not self._departments.get_by_id(int(department_id)):
            raise NotFoundError("Department not found")
        return int(department_id)

    def get_user(self, user_id: int) -> User:
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("User not found")
        return user

    def create_user(
        self,
        *,
        username: str,
        email: str,
        first_name: str,
        last_name: str,
        password: str,
        role: Role,
        department_id: Optional[int] = None,
        student_number: Optional[str] = None,
        date_of_birth: Optional[date] = None,
    ) -> User:
        username = require_non_empty(username, "Username")
        email = require_email(email)
        first_name = require_non_empty(first_name, "First name")
        last_name = require_non_empty(last_name, "Last name")
        require_min_length(password, "Password", MIN_PASSWORD_LENGTH)

        if self._users.get_by_username(username):
            raise ConflictError("Username already exists")
        if self._users.get_by_email(email):
            raise ConflictError("Email already exists")

        user_id = self._users.create_user(
            username=username,
            email=email,
            first_name=first_name,
            last_name=last_name,
            password_hash=generate_password_hash(password),
            role=role,
            department_id=self._require_department(department_id),
            student_number=optional_text(student_number),
            date_of_birth=date_of_birth,
        )

        if role == Role.STUDENT and not optional_text(student_number):
            self._users.set_student_number(user_id, f"S{now_local().year}{user_id:06d}")

        logger.info("Created %s account %s (id=%s)", role.value, username, user_id)
        return self.get_user(user_id)

    def update_user(
        self,
        user_id: int,
        *,
        email: Optional[str] = None,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        department_id: Optional[int] = None,
        date_of_birth: Optional[date] = None,
    ) -> User:
        user = self.get_user(user_id)

        new_email = require_email(email) if email is not None else user.email
        if new_email != user.email:
            other = self._users.get_by_email(new_email)
            if other and other.user_id != user.user_id:
                raise ConflictError("Email already exists")

        self._users.update_profile(
            user.user_id,
            email=new_email,
            first_name=require_non_empty(first_name, "First name") if first_name is not None else user.first_name,
            last_name=require_non_empty(last_name, "Last name") if last_name is not None else user.last_name,
            department_id=(
                self._require_department(department_id) if department_id is not None else user.department_id
            ),
            date_of_birth=date_of_birth if date_of_birth is not None else user.date_of_birth,
        )
        return self.get_user(user.user_id)

    def change_password(self, user_id: int, *, current_password: str, new_password: str) -> None:
        user = self.get_user(user_id)
        if not check_password_hash(user.password_hash, current_password or ""):
            raise AuthenticationError("Current password is incorrect")
        require_min_length(new_password, "New password", MIN_PASSWORD_LENGTH)
        self._users.update_password(user.user_id, generate_password_hash(new_password))
        logger.info("Password changed for user %s", user.username)

    def set_active(self, *, current_role: Role, user_id: int, is_active: bool) -> User:
        if current_role != Role.ADMIN:
            raise AuthorizationError("You do not have permission for this action")
        user = self.get_user(user_id)
        if user.role == Role.ADMIN and not is_active:
            raise ValidationError("Admin accounts cannot be deactivated")
        self._users.set_active(user.user_id, is_active=is_active)
        return self.get_user(user.user_id)

    def delete_user(self, *, current_role: Role, user_id: int) -> None:
        if current_role != Role.ADMIN:
            raise AuthorizationError("You do not have permission for this action")

        user = self.get_user(user_id)
        if user.role == Role.ADMIN:
            raise ValidationError("Admin accounts cannot be deleted")

        if not self._users.delete_by_id(user.user_id):
            raise ValidationError("Failed to delete user")
        logger.info("Deleted user %s", user.username)

    def list_users(
        self,
        page_request: PageRequest,
        *,
        role: Optional[Role] = None,
        search: Optional[str] = None,
    ) -> Page[User]:
        items, total = self._users.list_users(
            role=role,
            search=optional_text(search),
            offset=page_request.offset,
            limit=page_request.limit,
        )
        return Page(items=list(items), page=page_request.page, size=page_request.size, total=total)


class DepartmentService:
    def __init__(self, departments: DepartmentRepository, users: UserRepository):
        self._departments = departments
        self._users = users

    def list_departments(self) -> list[Department]:
        return list(self._departments.list_all())

    def get_department(self, department_id: int) -> Department:
        dept = self._departments.get_by_id(int(department_id))
        if not dept:
            raise NotFoundError("Department not found")
        return dept

    def _check_unique(self, code: str, name: str, *, exclude_id: Optional[int] = None) -> None:
        by_code = self._departments.get_by_code(code)
        if by_code and by_code.department_id != exclude_id:
            raise ConflictError("Department code already exists")
        by_name = self._departments.get_by_name(name)
        if by_name and by_name.department_id != exclude_id:
            raise ConflictError("Department name already exists")

    def create_department(self, *, code: str, name: str, description: Optional[str] = None) -> Department:
        code = require_non_empty(code, "Department code").upper()
        name = require_non_empty(name, "Department name")
        self._check_unique(code, name)
        dept_id = self._departments.create(code=code, name=name, description=optional_text(description))
        logger.info("Created department %s", code)
        return self.get_department(dept_id)

    def update_department(
        self,
        department_id: int,
        *,
        code: Optional[str] = None,
        name: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Department:
        dept = self.get_department(department_id)
        new_code = require_non_empty(code, "Department code").upper() if code is not None else dept.code
        new_name = require_non_empty(name, "Department name") if name is not None else dept.name
        self._check_unique(new_code, new_name, exclude_id=dept.department_id)
        self._departments.update(
            dept.department_id,
            code=new_code,
            name=new_name,
            description=optional_text(description) if description is not None else dept.description,
        )
        return self.get_department(dept.department_id)

    def delete_department(self, department_id: int) -> None:
        dept = self.get_department(department_id)
        if self._users.count_in_department(dept.department_id) > 0:
            raise ConflictError("Department still has users assigned")
        self._departments.delete_by_id(dept.department_id)
        logger.info("Deleted department %s", dept.code)
