from __future__ import annotations

from flask import Flask, request

from ..common.pagination import PageRequest
from ..common.validators import optional_int, require_enum, require_int_range
from ..common.web import (
    acting_user_id,
    current_role,
    current_user_id,
    json_body,
    login_required,
    ok,
    require_self_or_roles,
    roles_required,
)
from ..core.enums import RegistrationStatus, Role
from ..container import Container


def _target_user(data: dict) -> int:
    return acting_user_id(optional_int(data.get("user_id"), "user_id"), Role.ADMIN, Role.STAFF)


def register(app: Flask, container: Container) -> None:
    service = container.registration_service

    @app.route("/api/registrations", methods=["POST"], endpoint="registrations_enroll")
    @login_required
    def enroll():
        data = json_body()
        reg = service.enroll(
            _target_user(data),
            require_int_range(data.get("course_id"), "course_id", minimum=1),
            semester_id=optional_int(data.get("semester_id"), "semester_id"),
        )
        return ok(reg, 201)

    @app.route("/api/registrations/drop", methods=["POST"], endpoint="registrations_drop")
    @login_required
    def drop():
        data = json_body()
        reg = service.drop(_target_user(data), require_int_range(data.get("course_id"), "course_id", minimum=1))
        return ok(reg)

    @app.route("/api/registrations/me", methods=["GET"], endpoint="registrations_mine")
    @login_required
    def my_registrations():
        return ok(service.list_for_user(current_user_id()))

    @app.route("/api/registrations/me/gpa", methods=["GET"], endpoint="registrations_my_gpa")
    @login_required
    def my_gpa():
        return ok({"user_id": current_user_id(), "gpa": service.calculate_gpa(current_user_id())})

    @app.route("/api/students/<int:user_id>/registrations", methods=["GET"], endpoint="registrations_for_student")
    @login_required
    def student_registrations(user_id: int):
        require_self_or_roles(user_id, Role.ADMIN, Role.STAFF, Role.INSTRUCTOR)
        return ok(service.list_for_user(user_id))

    @app.route("/api/registrations", methods=["GET"], endpoint="registrations_by_status")
    @roles_required(Role.ADMIN, Role.STAFF)
    def registrations_by_status():
        status = require_enum(RegistrationStatus, request.args.get("status", "ENROLLED"), "Status")
        return ok(service.list_by_status(status, PageRequest.from_args(request.args)))

    @app.route("/api/registrations/<int:registration_id>", methods=["GET"], endpoint="registrations_get")
    @login_required
    def get_registration(registration_id: int):
        reg = service.get_registration(registration_id)
        require_self_or_roles(reg.user_id, Role.ADMIN, Role.STAFF, Role.INSTRUCTOR)
        return ok(reg)

    @app.route("/api/registrations/<int:registration_id>/grade", methods=["PUT"], endpoint="registrations_grade")
    @roles_required(Role.ADMIN, Role.INSTRUCTOR)
    def update_grade(registration_id: int):
        reg = service.update_grade(
            registration_id,
            json_body().get("grade", ""),
            current_role=current_role(),
            current_user_id=current_user_id(),
        )
        return ok(reg)

    @app.route("/api/registrations/<int:registration_id>/status", methods=["PUT"], endpoint="registrations_status")
    @roles_required(Role.ADMIN)
    def update_status(registration_id: int):
        status = require_enum(RegistrationStatus, json_body().get("status"), "Status")
        return ok(service.update_status(registration_id, status))

    @app.route("/api/registrations/<int:registration_id>", methods=["DELETE"], endpoint="registrations_delete")
    @roles_required(Role.ADMIN)
    def delete_registration(registration_id: int):
        service.delete_registration(registration_id)
        return ok({"deleted": registration_id})

    @app.route("/api/courses/<int:course_id>/registrations", methods=["GET"], endpoint="registrations_for_course")
    @roles_required(Role.ADMIN, Role.STAFF, Role.INSTRUCTOR)
    def course_roster(course_id: int):
        return ok(
            service.list_for_course(course_id, current_role=current_role(), current_user_id=current_user_id())
        )
