from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import parse_optional_date
from ..common.pagination import PageRequest
from ..common.validators import optional_enum, optional_text, require_enum, require_int_range
from ..common.web import json_body, login_required, ok, require_self_or_roles, roles_required
from ..core.enums import AcademicStanding, ClassLevel, EnrollmentStatus, Role
from ..container import Container

STAFF_ROLES = (Role.ADMIN, Role.STAFF)


def register(app: Flask, container: Container) -> None:
    service = container.record_service

    @app.route("/api/records", methods=["GET"], endpoint="records_by_standing")
    @roles_required(*STAFF_ROLES)
    def records_by_standing():
        standing = require_enum(AcademicStanding, request.args.get("standing", "GOOD_STANDING"), "Standing")
        return ok(service.list_by_standing(standing, PageRequest.from_args(request.args)))

    @app.route(
        "/api/programs/<int:program_id>/semesters/<int:semester_id>/records",
        methods=["GET"],
        endpoint="records_by_program_semester",
    )
    @roles_required(*STAFF_ROLES)
    def records_by_program_and_semester(program_id: int, semester_id: int):
        return ok(service.list_by_program_and_semester(program_id, semester_id, PageRequest.from_args(request.args)))

    @app.route("/api/records/eligible", methods=["GET"], endpoint="records_eligible")
    @roles_required(*STAFF_ROLES)
    def eligible_records():
        return ok(service.list_eligible_for_graduation())

    @app.route("/api/programs/<int:program_id>/statistics", methods=["GET"], endpoint="records_statistics")
    @roles_required(*STAFF_ROLES)
    def program_statistics(program_id: int):
        return ok(service.statistics(program_id))

    @app.route("/api/records", methods=["POST"], endpoint="records_create")
    @roles_required(*STAFF_ROLES)
    def create_record():
        data = json_body()
        record = service.create_record(
            student_id=require_int_range(data.get("student_id"), "student_id", minimum=1),
            program_id=require_int_range(data.get("program_id"), "program_id", minimum=1),
            semester_id=require_int_range(data.get("semester_id"), "semester_id", minimum=1),
            enrollment_status=optional_enum(EnrollmentStatus, data.get("enrollment_status"), "Enrollment status")
            or EnrollmentStatus.ACTIVE,
            class_level=optional_enum(ClassLevel, data.get("class_level"), "Class level"),
            expected_graduation_date=parse_optional_date(
                data.get("expected_graduation_date"), "Expected graduation date"
            ),
            notes=optional_text(data.get("notes")),
        )
        return ok(record, 201)

    @app.route("/api/records/<int:record_id>", methods=["GET"], endpoint="records_get")
    @login_required
    def get_record(record_id: int):
        record = service.get_record(record_id)
        require_self_or_roles(record.student_id, Role.ADMIN, Role.STAFF, Role.INSTRUCTOR)
        return ok(record)

    @app.route("/api/records/<int:record_id>", methods=["PUT"], endpoint="records_update")
    @roles_required(*STAFF_ROLES)
    def update_record(record_id: int):
        return ok(service.update_record(record_id, json_body()))

    @app.route("/api/records/<int:record_id>/progress", methods=["POST"], endpoint="records_progress")
    @roles_required(*STAFF_ROLES)
    def update_progress(record_id: int):
        data = json_body()
        return ok(service.update_progress(record_id, gpa=data.get("gpa"), credits_earned=data.get("credits_earned", 0)))

    @app.route("/api/records/<int:record_id>/standing", methods=["POST"], endpoint="records_standing")
    @roles_required(*STAFF_ROLES)
    def update_standing(record_id: int):
        return ok(service.update_standing(record_id))

    @app.route("/api/records/<int:record_id>/graduate", methods=["POST"], endpoint="records_graduate")
    @roles_required(Role.ADMIN)
    def mark_graduated(record_id: int):
        graduation_date = parse_optional_date(json_body().get("graduation_date"), "Graduation date")
        return ok(service.mark_graduated(record_id, graduation_date=graduation_date))

    @app.route("/api/records/<int:record_id>/graduation-check", methods=["GET"], endpoint="records_graduation_check")
    @login_required
    def graduation_check(record_id: int):
        record = service.get_record(record_id)
        require_self_or_roles(record.student_id, *STAFF_ROLES)
        check = service.graduation_check(record_id)
        return ok({"check": check, "eligible": service.check_graduation_requirements(record_id)})

    @app.route("/api/records/<int:record_id>/credit-check", methods=["GET"], endpoint="records_credit_check")
    @login_required
    def credit_check(record_id: int):
        record = service.get_record(record_id)
        require_self_or_roles(record.student_id, *STAFF_ROLES)
        return ok({"record_id": record_id, "credits_met": service.validate_credit_requirements(record_id)})

    @app.route("/api/students/<int:student_id>/records", methods=["GET"], endpoint="records_for_student")
    @login_required
    def student_records(student_id: int):
        require_self_or_roles(student_id, Role.ADMIN, Role.STAFF, Role.INSTRUCTOR)
        return ok(service.list_for_student(student_id))

    @app.route("/api/students/<int:student_id>/records/current", methods=["GET"], endpoint="records_current")
    @login_required
    def current_record(student_id: int):
        require_self_or_roles(student_id, Role.ADMIN, Role.STAFF, Role.INSTRUCTOR)
        return ok(service.get_current_for_student(student_id))

    @app.route(
        "/api/students/<int:student_id>/records/recalculate", methods=["POST"], endpoint="records_recalculate"
    )
    @roles_required(*STAFF_ROLES)
    def recalculate(student_id: int):
        return ok(service.recalculate_from_registrations(student_id))
