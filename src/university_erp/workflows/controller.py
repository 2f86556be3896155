from __future__ import annotations

from flask import Flask

from ..common.serialization import to_json
from ..common.validators import optional_int, require_int_range
from ..common.web import (
    acting_user_id,
    current_role,
    current_user_id,
    json_body,
    ok,
    require_self_or_roles,
    roles_required,
)
from ..core.enums import Role
from ..core.exceptions import ValidationError
from ..container import Container

REGISTRAR_ROLES = (Role.ADMIN, Role.STAFF)


def _id_list(data: dict, key: str) -> list[int]:
    values = data.get(key)
    if not isinstance(values, list) or not values:
        raise ValidationError(f"{key} must be a non-empty list")
    return [require_int_range(v, key, minimum=1) for v in values]


def register(app: Flask, container: Container) -> None:
    service = container.workflow_service

    @app.route("/api/workflows/enrollment", methods=["POST"], endpoint="workflows_enrollment")
    @roles_required(Role.STUDENT, *REGISTRAR_ROLES)
    def complete_enrollment():
        data = json_body()
        student_id = acting_user_id(optional_int(data.get("student_id"), "student_id"), *REGISTRAR_ROLES)
        outcome = service.complete_enrollment(
            student_id, require_int_range(data.get("course_id"), "course_id", minimum=1)
        )
        return ok(outcome, 201)

    @app.route("/api/workflows/semester-enrollment", methods=["POST"], endpoint="workflows_semester_enrollment")
    @roles_required(Role.STUDENT, *REGISTRAR_ROLES)
    def semester_enrollment():
        data = json_body()
        student_id = acting_user_id(optional_int(data.get("student_id"), "student_id"), *REGISTRAR_ROLES)
        result = service.process_semester_enrollment(student_id, _id_list(data, "course_ids"))
        payload = to_json(result)
        payload.update(success_count=result.success_count, failure_count=result.failure_count)
        return ok(payload, 201 if result.registrations else 200)

    @app.route(
        "/api/workflows/registrations/<int:registration_id>/complete",
        methods=["POST"],
        endpoint="workflows_complete_course",
    )
    @roles_required(Role.ADMIN, Role.INSTRUCTOR)
    def complete_course(registration_id: int):
        completion = service.complete_course_with_grade(
            registration_id,
            json_body().get("grade", ""),
            current_role=current_role(),
            current_user_id=current_user_id(),
        )
        return ok(completion)

    @app.route("/api/workflows/batch-complete", methods=["POST"], endpoint="workflows_batch_complete")
    @roles_required(Role.ADMIN)
    def batch_complete():
        result = service.batch_complete(_id_list(json_body(), "registration_ids"))
        payload = to_json(result)
        payload["success_count"] = result.success_count
        return ok(payload)

    @app.route(
        "/api/workflows/students/<int:student_id>/graduation-eligibility",
        methods=["GET"],
        endpoint="workflows_graduation_eligibility",
    )
    @roles_required(Role.STUDENT, *REGISTRAR_ROLES)
    def graduation_eligibility(student_id: int):
        require_self_or_roles(student_id, *REGISTRAR_ROLES)
        result = service.validate_graduation_eligibility(student_id)
        payload = to_json(result)
        payload["eligible"] = result.eligible
        return ok(payload)
