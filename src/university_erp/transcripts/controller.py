from __future__ import annotations

from flask import Flask, request

from ..common.pagination import PageRequest
from ..common.validators import optional_int, require_enum
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
from ..core.enums import Role, TranscriptRequestStatus, TranscriptType
from ..core.exceptions import AuthorizationError
from ..container import Container

REGISTRAR_ROLES = (Role.ADMIN, Role.STAFF)


def register(app: Flask, container: Container) -> None:
    service = container.transcript_service

    @app.route("/api/transcripts", methods=["POST"], endpoint="transcripts_generate")
    @login_required
    def generate_transcript():
        data = json_body()
        transcript_type = require_enum(TranscriptType, data.get("transcript_type", "UNOFFICIAL"), "Transcript type")
        student_id = acting_user_id(optional_int(data.get("student_id"), "student_id"), *REGISTRAR_ROLES)
        if transcript_type == TranscriptType.OFFICIAL and current_role() not in REGISTRAR_ROLES:
            raise AuthorizationError("Official transcripts are issued through a transcript request")
        return ok(service.generate_transcript(student_id, transcript_type), 201)

    @app.route("/api/transcripts/<int:transcript_id>", methods=["GET"], endpoint="transcripts_get")
    @login_required
    def get_transcript(transcript_id: int):
        transcript = service.get_transcript(transcript_id)
        require_self_or_roles(transcript.student_id, *REGISTRAR_ROLES)
        return ok(transcript)

    @app.route("/api/students/<int:student_id>/transcripts", methods=["GET"], endpoint="transcripts_for_student")
    @login_required
    def student_transcripts(student_id: int):
        require_self_or_roles(student_id, *REGISTRAR_ROLES)
        return ok(service.list_for_student(student_id))

    @app.route("/api/transcripts/verify", methods=["POST"], endpoint="transcripts_verify")
    def verify_transcript():
        data = json_body()
        transcript = service.verify(data.get("transcript_number", ""), data.get("security_code", ""))
        return ok(
            {
                "valid": True,
                "transcript_number": transcript.transcript_number,
                "student_name": transcript.student_name,
                "issue_date": transcript.issue_date,
                "program_name": transcript.program_name,
                "degree_type": transcript.degree_type,
            }
        )

    @app.route("/api/transcripts/<int:transcript_id>/approve", methods=["POST"], endpoint="transcripts_approve")
    @roles_required(*REGISTRAR_ROLES)
    def approve_transcript(transcript_id: int):
        return ok(service.approve_transcript(transcript_id))

    @app.route("/api/transcripts/<int:transcript_id>/release", methods=["POST"], endpoint="transcripts_release")
    @roles_required(*REGISTRAR_ROLES)
    def release_transcript(transcript_id: int):
        return ok(service.release_transcript(transcript_id))

    @app.route("/api/transcript-requests", methods=["POST"], endpoint="transcript_requests_create")
    @login_required
    def create_request():
        data = json_body()
        student_id = acting_user_id(optional_int(data.get("student_id"), "student_id"), *REGISTRAR_ROLES)
        return ok(service.create_request(student_id, data), 201)

    @app.route("/api/transcript-requests/me", methods=["GET"], endpoint="transcript_requests_mine")
    @login_required
    def my_requests():
        return ok(service.list_requests_for_student(current_user_id()))

    @app.route("/api/transcript-requests/pending", methods=["GET"], endpoint="transcript_requests_pending")
    @roles_required(*REGISTRAR_ROLES)
    def pending_requests():
        return ok(service.list_pending_requests(PageRequest.from_args(request.args)))

    @app.route("/api/transcript-requests/<int:request_id>", methods=["GET"], endpoint="transcript_requests_get")
    @login_required
    def get_request(request_id: int):
        req = service.get_request(request_id)
        require_self_or_roles(req.student_id, *REGISTRAR_ROLES)
        return ok(req)

    @app.route("/api/transcript-requests/<int:request_id>/pay", methods=["POST"], endpoint="transcript_requests_pay")
    @login_required
    def pay_request(request_id: int):
        req = service.get_request(request_id)
        require_self_or_roles(req.student_id, *REGISTRAR_ROLES)
        return ok(service.record_request_payment(request_id))

    @app.route(
        "/api/transcript-requests/<int:request_id>/waive", methods=["POST"], endpoint="transcript_requests_waive"
    )
    @roles_required(Role.ADMIN)
    def waive_fee(request_id: int):
        return ok(service.waive_request_fee(request_id))

    @app.route(
        "/api/transcript-requests/<int:request_id>/process", methods=["POST"], endpoint="transcript_requests_process"
    )
    @roles_required(*REGISTRAR_ROLES)
    def process_request(request_id: int):
        return ok(service.process_request(request_id))

    @app.route(
        "/api/transcript-requests/<int:request_id>/cancel", methods=["POST"], endpoint="transcript_requests_cancel"
    )
    @login_required
    def cancel_request(request_id: int):
        req = service.get_request(request_id)
        require_self_or_roles(req.student_id, *REGISTRAR_ROLES)
        return ok(service.cancel_request(request_id))

    @app.route(
        "/api/transcript-requests/<int:request_id>/status", methods=["PUT"], endpoint="transcript_requests_status"
    )
    @roles_required(*REGISTRAR_ROLES)
    def update_status(request_id: int):
        status = require_enum(TranscriptRequestStatus, json_body().get("status"), "Status")
        return ok(service.update_request_status(request_id, status))
