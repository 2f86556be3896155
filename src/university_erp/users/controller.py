from __future__ import annotations

from flask import Flask, request, session

from ..common.datetime_utils import parse_optional_date
from ..common.pagination import PageRequest
from ..common.validators import optional_enum, optional_int, require_enum
from ..common.web import (
    current_role,
    current_user_id,
    json_body,
    login_required,
    ok,
    require_self_or_roles,
    roles_required,
)
from ..core.enums import Role
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/auth/login", methods=["POST"], endpoint="auth_login")
    def login():
        data = json_body()
        s_user = container.auth_service.authenticate(data.get("username", ""), data.get("password", ""))

        session.clear()
        session.permanent = bool(data.get("remember_me"))
        session["user_id"] = s_user.user_id
        session["name"] = s_user.full_name
        session["role"] = s_user.role.value
        session["department_id"] = s_user.department_id
        return ok(s_user)

    @app.route("/api/auth/logout", methods=["POST"], endpoint="auth_logout")
    def logout():
        session.clear()
        return ok({"logged_out": True})

    @app.route("/api/auth/me", methods=["GET"], endpoint="auth_me")
    @login_required
    def me():
        return ok(container.user_service.get_user(current_user_id()))

    @app.route("/api/auth/password", methods=["POST"], endpoint="auth_change_password")
    @login_required
    def change_password():
        data = json_body()
        container.user_service.change_password(
            current_user_id(),
            current_password=data.get("current_password", ""),
            new_password=data.get("new_password", ""),
        )
        return ok({"changed": True})

    @app.route("/api/users", methods=["GET"], endpoint="users_list")
    @roles_required(Role.ADMIN, Role.STAFF)
    def list_users():
        page = container.user_service.list_users(
            PageRequest.from_args(request.args),
            role=optional_enum(Role, request.args.get("role"), "Role"),
            search=request.args.get("search"),
        )
        return ok(page)

    @app.route("/api/users", methods=["POST"], endpoint="users_create")
    @roles_required(Role.ADMIN)
    def create_user():
        data = json_body()
        user = container.user_service.create_user(
            username=data.get("username", ""),
            email=data.get("email", ""),
            first_name=data.get("first_name", ""),
            last_name=data.get("last_name", ""),
            password=data.get("password", ""),
            role=require_enum(Role, data.get("role"), "Role"),
            department_id=optional_int(data.get("department_id"), "Department"),
            student_number=data.get("student_number"),
            date_of_birth=parse_optional_date(data.get("date_of_birth"), "Date of birth"),
        )
        return ok(user, 201)

    @app.route("/api/users/<int:user_id>", methods=["GET"], endpoint="users_get")
    @login_required
    def get_user(user_id: int):
        require_self_or_roles(user_id, Role.ADMIN, Role.STAFF, Role.INSTRUCTOR)
        return ok(container.user_service.get_user(user_id))

    @app.route("/api/users/<int:user_id>", methods=["PUT"], endpoint="users_update")
    @login_required
    def update_user(user_id: int):
        require_self_or_roles(user_id, Role.ADMIN)
        data = json_body()
        user = container.user_service.update_user(
            user_id,
            email=data.get("email"),
            first_name=data.get("first_name"),
            last_name=data.get("last_name"),
            department_id=optional_int(data.get("department_id"), "Department"),
            date_of_birth=parse_optional_date(data.get("date_of_birth"), "Date of birth"),
        )
        return ok(user)

    @app.route("/api/users/<int:user_id>/activate", methods=["POST"], endpoint="users_activate")
    @roles_required(Role.ADMIN)
    def activate_user(user_id: int):
        return ok(container.user_service.set_active(current_role=current_role(), user_id=user_id, is_active=True))

    @app.route("/api/users/<int:user_id>/deactivate", methods=["POST"], endpoint="users_deactivate")
    @roles_required(Role.ADMIN)
    def deactivate_user(user_id: int):
        return ok(container.user_service.set_active(current_role=current_role(), user_id=user_id, is_active=False))

    @app.route("/api/users/<int:user_id>", methods=["DELETE"], endpoint="users_delete")
    @roles_required(Role.ADMIN)
    def delete_user(user_id: int):
        container.user_service.delete_user(current_role=current_role(), user_id=user_id)
        return ok({"deleted": user_id})

    @app.route("/api/departments", methods=["GET"], endpoint="departments_list")
    @login_required
    def list_departments():
        return ok(container.department_service.list_departments())

    @app.route("/api/departments/<int:department_id>", methods=["GET"], endpoint="departments_get")
    @login_required
    def get_department(department_id: int):
        return ok(container.department_service.get_department(department_id))

    @app.route("/api/departments", methods=["POST"], endpoint="departments_create")
    @roles_required(Role.ADMIN)
    def create_department():
        data = json_body()
        dept = container.department_service.create_department(
            code=data.get("code", ""),
            name=data.get("name", ""),
            description=data.get("description"),
        )
        return ok(dept, 201)

    @app.route("/api/departments/<int:department_id>", methods=["PUT"], endpoint="departments_update")
    @roles_required(Role.ADMIN)
    def update_department(department_id: int):
        data = json_body()
        dept = container.department_service.update_department(
            department_id,
            code=data.get("code"),
            name=data.get("name"),
            description=data.get("description"),
        )
        return ok(dept)

    @app.route("/api/departments/<int:department_id>", methods=["DELETE"], endpoint="departments_delete")
    @roles_required(Role.ADMIN)
    def delete_department(department_id: int):
        container.department_service.delete_department(department_id)
        return ok({"deleted": department_id})
