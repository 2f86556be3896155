from __future__ import annotations

from flask import Flask, request

from ..common.pagination import PageRequest
from ..common.validators import optional_enum, require_int_range
from ..common.web import json_body, login_required, ok, require_self_or_roles, roles_required
from ..core.enums import AuditType, Role
from ..container import Container
from .service import audit_view

ADVISOR_ROLES = (Role.ADMIN, Role.STAFF, Role.INSTRUCTOR)


def register(app: Flask, container: Container) -> None:
    service = container.audit_service

    @app.route("/api/audits", methods=["POST"], endpoint="audits_generate")
    @roles_required(Role.ADMIN, Role.STAFF)
    def generate_audit():
        data = json_body()
        audit = service.generate_audit(
            require_int_range(data.get("student_id"), "student_id", minimum=1),
            require_int_range(data.get("program_id"), "program_id", minimum=1),
            audit_type=optional_enum(AuditType, data.get("audit_type"), "Audit type") or AuditType.GRADUATION,
            notes=data.get("notes"),
        )
        return ok(audit_view(audit), 201)

    @app.route("/api/audits/<int:audit_id>", methods=["GET"], endpoint="audits_get")
    @login_required
    def get_audit(audit_id: int):
        audit = service.get_audit(audit_id)
        require_self_or_roles(audit.student_id, *ADVISOR_ROLES)
        return ok(audit_view(audit))

    @app.route("/api/audits/<int:audit_id>", methods=["PUT"], endpoint="audits_update")
    @roles_required(Role.ADMIN, Role.STAFF)
    def update_audit(audit_id: int):
        data = json_body()
        audit = service.update_audit(
            audit_id,
            notes=data.get("notes"),
            completion_percentage=data.get("completion_percentage"),
            eligible_for_graduation=data.get("eligible_for_graduation"),
        )
        return ok(audit_view(audit))

    @app.route("/api/audits/<int:audit_id>", methods=["DELETE"], endpoint="audits_delete")
    @roles_required(Role.ADMIN)
    def delete_audit(audit_id: int):
        service.delete_audit(audit_id)
        return ok({"deleted": audit_id})

    @app.route("/api/audits/eligible", methods=["GET"], endpoint="audits_eligible")
    @roles_required(Role.ADMIN, Role.STAFF)
    def eligible_audits():
        return ok([audit_view(a) for a in service.list_eligible()])

    @app.route("/api/programs/<int:program_id>/audits", methods=["GET"], endpoint="audits_for_program")
    @roles_required(Role.ADMIN, Role.STAFF)
    def program_audits(program_id: int):
        return ok(service.list_for_program(program_id, PageRequest.from_args(request.args)).map(audit_view))

    @app.route("/api/students/<int:student_id>/audits", methods=["GET"], endpoint="audits_for_student")
    @login_required
    def student_audits(student_id: int):
        require_self_or_roles(student_id, *ADVISOR_ROLES)
        return ok([audit_view(a) for a in service.list_for_student(student_id)])

    @app.route("/api/students/<int:student_id>/audits/latest", methods=["GET"], endpoint="audits_latest")
    @login_required
    def latest_audit(student_id: int):
        require_self_or_roles(student_id, *ADVISOR_ROLES)
        return ok(audit_view(service.get_latest_for_student(student_id)))

    @app.route("/api/students/<int:student_id>/degree-progress", methods=["GET"], endpoint="audits_progress")
    @login_required
    def degree_progress(student_id: int):
        require_self_or_roles(student_id, *ADVISOR_ROLES)
        return ok(audit_view(service.get_degree_progress(student_id)))

    @app.route(
        "/api/students/<int:student_id>/graduation-eligibility", methods=["GET"], endpoint="audits_eligibility"
    )
    @login_required
    def graduation_eligibility(student_id: int):
        require_self_or_roles(student_id, *ADVISOR_ROLES)
        return ok({"student_id": student_id, "eligible": service.check_graduation_eligibility(student_id)})

    @app.route(
        "/api/students/<int:student_id>/missing-requirements", methods=["GET"], endpoint="audits_missing"
    )
    @login_required
    def missing_requirements(student_id: int):
        require_self_or_roles(student_id, *ADVISOR_ROLES)
        return ok({"student_id": student_id, "missing": service.get_missing_requirements(student_id)})
