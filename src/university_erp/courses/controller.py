from __future__ import annotations

from flask import Flask, request

from ..common.pagination import PageRequest
from ..common.validators import optional_enum, optional_int, optional_text, require_enum, require_int_range
from ..common.web import json_body, login_required, ok, roles_required
from ..core.enums import CourseStatus, Role
from ..container import Container
from .model import CourseFilter
from .service import course_snapshot


def register(app: Flask, container: Container) -> None:
    service = container.course_service

    @app.route("/api/courses", methods=["GET"], endpoint="courses_list")
    @login_required
    def list_courses():
        args = request.args
        criteria = CourseFilter(
            title=optional_text(args.get("title")),
            code=optional_text(args.get("code")),
            department=optional_text(args.get("department")),
            course_level=optional_text(args.get("course_level")),
            status=optional_enum(CourseStatus, args.get("status"), "Status"),
            credits_min=optional_int(args.get("credits_min"), "credits_min"),
            credits_max=optional_int(args.get("credits_max"), "credits_max"),
            instructor_id=optional_int(args.get("instructor_id"), "instructor_id"),
            instructor_name=optional_text(args.get("instructor_name")),
        )
        page = service.list_courses(criteria, PageRequest.from_args(args))
        return ok(page.map(course_snapshot))

    @app.route("/api/courses/available", methods=["GET"], endpoint="courses_available")
    @login_required
    def available_courses():
        return ok([course_snapshot(c) for c in service.list_available()])

    @app.route("/api/courses/<int:course_id>", methods=["GET"], endpoint="courses_get")
    @login_required
    def get_course(course_id: int):
        return ok(course_snapshot(service.get_course(course_id)))

    @app.route("/api/courses/code/<code>", methods=["GET"], endpoint="courses_get_by_code")
    @login_required
    def get_course_by_code(code: str):
        return ok(course_snapshot(service.get_by_code(code)))

    @app.route("/api/courses", methods=["POST"], endpoint="courses_create")
    @roles_required(Role.ADMIN)
    def create_course():
        return ok(course_snapshot(service.create_course(json_body())), 201)

    @app.route("/api/courses/<int:course_id>", methods=["PUT"], endpoint="courses_update")
    @roles_required(Role.ADMIN)
    def update_course(course_id: int):
        return ok(course_snapshot(service.update_course(course_id, json_body())))

    @app.route("/api/courses/<int:course_id>/status", methods=["POST"], endpoint="courses_status")
    @roles_required(Role.ADMIN)
    def change_status(course_id: int):
        status = require_enum(CourseStatus, json_body().get("status"), "Status")
        return ok(course_snapshot(service.change_status(course_id, status)))

    @app.route("/api/courses/<int:course_id>", methods=["DELETE"], endpoint="courses_delete")
    @roles_required(Role.ADMIN)
    def delete_course(course_id: int):
        service.delete_course(course_id)
        return ok({"deleted": course_id})

    @app.route("/api/instructors/<int:instructor_id>/courses", methods=["GET"], endpoint="courses_by_instructor")
    @login_required
    def instructor_courses(instructor_id: int):
        return ok([course_snapshot(c) for c in service.list_by_instructor(instructor_id)])

    @app.route("/api/courses/<int:course_id>/prerequisites", methods=["GET"], endpoint="prerequisites_list")
    @login_required
    def list_prerequisites(course_id: int):
        return ok(service.list_prerequisites(course_id))

    @app.route("/api/courses/<int:course_id>/prerequisites", methods=["POST"], endpoint="prerequisites_add")
    @roles_required(Role.ADMIN)
    def add_prerequisite(course_id: int):
        data = json_body()
        prereqs = service.add_prerequisite(
            course_id,
            require_int_range(data.get("prerequisite_course_id"), "prerequisite_course_id", minimum=1),
            minimum_grade=data.get("minimum_grade"),
        )
        return ok(prereqs, 201)

    @app.route(
        "/api/courses/<int:course_id>/prerequisites/<int:prerequisite_id>",
        methods=["DELETE"],
        endpoint="prerequisites_remove",
    )
    @roles_required(Role.ADMIN)
    def remove_prerequisite(course_id: int, prerequisite_id: int):
        service.remove_prerequisite(course_id, prerequisite_id)
        return ok({"deleted": prerequisite_id})
