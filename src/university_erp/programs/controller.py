from __future__ import annotations

from flask import Flask, request

from ..common.validators import optional_enum
from ..common.web import json_body, login_required, ok, roles_required
from ..core.enums import ProgramStatus, Role
from ..container import Container


def register(app: Flask, container: Container) -> None:
    service = container.program_service

    @app.route("/api/programs", methods=["GET"], endpoint="programs_list")
    @login_required
    def list_programs():
        status = optional_enum(ProgramStatus, request.args.get("status"), "Status")
        return ok(service.list_programs(status=status))

    @app.route("/api/programs/<int:program_id>", methods=["GET"], endpoint="programs_get")
    @login_required
    def get_program(program_id: int):
        return ok(service.get_program(program_id))

    @app.route("/api/programs", methods=["POST"], endpoint="programs_create")
    @roles_required(Role.ADMIN)
    def create_program():
        return ok(service.create_program(json_body()), 201)

    @app.route("/api/programs/<int:program_id>", methods=["PUT"], endpoint="programs_update")
    @roles_required(Role.ADMIN)
    def update_program(program_id: int):
        return ok(service.update_program(program_id, json_body()))

    @app.route("/api/semesters", methods=["GET"], endpoint="semesters_list")
    @login_required
    def list_semesters():
        return ok(service.list_semesters())

    @app.route("/api/semesters/current", methods=["GET"], endpoint="semesters_current")
    @login_required
    def current_semester():
        return ok(service.get_current_semester())

    @app.route("/api/semesters/<int:semester_id>", methods=["GET"], endpoint="semesters_get")
    @login_required
    def get_semester(semester_id: int):
        return ok(service.get_semester(semester_id))

    @app.route("/api/semesters", methods=["POST"], endpoint="semesters_create")
    @roles_required(Role.ADMIN)
    def create_semester():
        return ok(service.create_semester(json_body()), 201)

    @app.route("/api/semesters/<int:semester_id>/current", methods=["POST"], endpoint="semesters_set_current")
    @roles_required(Role.ADMIN)
    def set_current(semester_id: int):
        return ok(service.set_current_semester(semester_id))
