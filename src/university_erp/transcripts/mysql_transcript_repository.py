from __future__ import annotations

from typing import Optional, Sequence, Tuple

from ..core.enums import (
    DeliveryMethod,
    RequestPaymentStatus,
    TranscriptRequestStatus,
    TranscriptStatus,
    TranscriptType,
    UrgencyLevel,
)
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_decimal, db_cursor, fetch_count, fetchall, fetchone, optional_decimal
from .model import Transcript, TranscriptCourse, TranscriptRequest
from .repository import TranscriptRepository

_TRANSCRIPT_COLUMNS = """
    transcript_id, transcript_number, student_id, transcript_type, status, issue_date, student_name,
    student_number, program_name, degree_type, cumulative_gpa, total_credits_attempted,
    total_credits_earned, security_code, verification_url
"""

_REQUEST_COLUMNS = """
    request_id, request_number, student_id, transcript_type, urgency, delivery_method, recipient_name,
    recipient_organization, delivery_address, delivery_email, purpose, status, processing_fee,
    expedite_fee, total_fee, payment_status, requested_at, processed_at, shipped_at, tracking_number,
    delivered_at, transcript_id
"""


def _row_to_transcript(row: dict, courses: tuple[TranscriptCourse, ...] = ()) -> Transcript:
    return Transcript(
        transcript_id=int(row["transcript_id"]),
        transcript_number=row["transcript_number"],
        student_id=int(row["student_id"]),
        transcript_type=TranscriptType(row["transcript_type"]),
        status=TranscriptStatus(row["status"]),
        issue_date=row["issue_date"],
        student_name=row["student_name"],
        student_number=row.get("student_number"),
        program_name=row.get("program_name"),
        degree_type=row.get("degree_type"),
        cumulative_gpa=as_decimal(row.get("cumulative_gpa")),
        total_credits_attempted=int(row.get("total_credits_attempted") or 0),
        total_credits_earned=int(row.get("total_credits_earned") or 0),
        security_code=row.get("security_code"),
        verification_url=row.get("verification_url"),
        courses=courses,
    )


def _row_to_course(row: dict) -> TranscriptCourse:
    return TranscriptCourse(
        line_number=int(row["line_number"]),
        course_code=row["course_code"],
        course_title=row["course_title"],
        credit_hours=int(row["credit_hours"]),
        grade=row.get("grade"),
        quality_points=optional_decimal(row.get("quality_points")),
        counts_toward_gpa=bool(row.get("counts_toward_gpa")),
        semester_name=row.get("semester_name"),
        instructor_name=row.get("instructor_name"),
    )


def _row_to_request(row: dict) -> TranscriptRequest:
    return TranscriptRequest(
        request_id=int(row["request_id"]),
        request_number=row["request_number"],
        student_id=int(row["student_id"]),
        transcript_type=TranscriptType(row["transcript_type"]),
        urgency=UrgencyLevel(row["urgency"]),
        delivery_method=DeliveryMethod(row["delivery_method"]),
        recipient_name=row["recipient_name"],
        recipient_organization=row.get("recipient_organization"),
        delivery_address=row.get("delivery_address"),
        delivery_email=row.get("delivery_email"),
        purpose=row["purpose"],
        status=TranscriptRequestStatus(row["status"]),
        processing_fee=as_decimal(row.get("processing_fee")),
        expedite_fee=as_decimal(row.get("expedite_fee")),
        total_fee=as_decimal(row.get("total_fee")),
        payment_status=RequestPaymentStatus(row["payment_status"]),
        requested_at=row["requested_at"],
        processed_at=row.get("processed_at"),
        shipped_at=row.get("shipped_at"),
        tracking_number=row.get("tracking_number"),
        delivered_at=row.get("delivered_at"),
        transcript_id=row.get("transcript_id"),
    )


def _request_params(req: TranscriptRequest) -> tuple:
    return (
        req.request_number,
        req.student_id,
        req.transcript_type.value,
        req.urgency.value,
        req.delivery_method.value,
        req.recipient_name,
        req.recipient_organization,
        req.delivery_address,
        req.delivery_email,
        req.purpose,
        req.status.value,
        req.processing_fee,
        req.expedite_fee,
        req.total_fee,
        req.payment_status.value,
        req.requested_at,
        req.processed_at,
        req.shipped_at,
        req.tracking_number,
        req.delivered_at,
        req.transcript_id,
    )


class MySQLTranscriptRepository(TranscriptRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create_transcript(self, transcript: Transcript) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO transcripts(transcript_number, student_id, transcript_type, status, issue_date,
                                        student_name, student_number, program_name, degree_type, cumulative_gpa,
                                        total_credits_attempted, total_credits_earned, security_code,
                                        verification_url)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    transcript.transcript_number,
                    transcript.student_id,
                    transcript.transcript_type.value,
                    transcript.status.value,
                    transcript.issue_date,
                    transcript.student_name,
                    transcript.student_number,
                    transcript.program_name,
                    transcript.degree_type,
                    transcript.cumulative_gpa,
                    transcript.total_credits_attempted,
                    transcript.total_credits_earned,
                    transcript.security_code,
                    transcript.verification_url,
                ),
            )
            transcript_id = int(cur.lastrowid)
            for line in transcript.courses:
                cur.execute(
                    """
                    INSERT INTO transcript_courses(transcript_id, line_number, course_code, course_title,
                                                   credit_hours, grade, quality_points, counts_toward_gpa,
                                                   semester_name, instructor_name)
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        transcript_id,
                        line.line_number,
                        line.course_code,
                        line.course_title,
                        line.credit_hours,
                        line.grade,
                        line.quality_points,
                        1 if line.counts_toward_gpa else 0,
                        line.semester_name,
                        line.instructor_name,
                    ),
                )
            return transcript_id

    def _load(self, column: str, value) -> Optional[Transcript]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_TRANSCRIPT_COLUMNS} FROM transcripts WHERE {column}=%s", (value,))
            row = fetchone(cur)
            if not row:
                return None
            cur.execute(
                """
                SELECT line_number, course_code, course_title, credit_hours, grade, quality_points,
                       counts_toward_gpa, semester_name, instructor_name
                FROM transcript_courses WHERE transcript_id=%s ORDER BY line_number
                """,
                (int(row["transcript_id"]),),
            )
            courses = tuple(_row_to_course(r) for r in fetchall(cur))
            return _row_to_transcript(row, courses)

    def get_transcript(self, transcript_id: int) -> Optional[Transcript]:
        return self._load("transcript_id", int(transcript_id))

    def get_by_number(self, transcript_number: str) -> Optional[Transcript]:
        return self._load("transcript_number", transcript_number)

    def list_for_student(self, student_id: int) -> Sequence[Transcript]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""SELECT {_TRANSCRIPT_COLUMNS} FROM transcripts WHERE student_id=%s
                ORDER BY issue_date DESC, transcript_id DESC""",
                (int(student_id),),
            )
            return [_row_to_transcript(r) for r in fetchall(cur)]

    def update_transcript_status(self, transcript_id: int, status: TranscriptStatus) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE transcripts SET status=%s WHERE transcript_id=%s", (status.value, int(transcript_id)))
            return cur.rowcount > 0

    def create_request(self, request: TranscriptRequest) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO transcript_requests(
                    request_number, student_id, transcript_type, urgency, delivery_method, recipient_name,
                    recipient_organization, delivery_address, delivery_email, purpose, status, processing_fee,
                    expedite_fee, total_fee, payment_status, requested_at, processed_at, shipped_at,
                    tracking_number, delivered_at, transcript_id)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                _request_params(request),
            )
            return int(cur.lastrowid)

    def get_request(self, request_id: int) -> Optional[TranscriptRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_REQUEST_COLUMNS} FROM transcript_requests WHERE request_id=%s", (int(request_id),))
            row = fetchone(cur)
            return _row_to_request(row) if row else None

    def save_request(self, request: TranscriptRequest) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE transcript_requests
                SET request_number=%s, student_id=%s, transcript_type=%s, urgency=%s, delivery_method=%s,
                    recipient_name=%s, recipient_organization=%s, delivery_address=%s, delivery_email=%s,
                    purpose=%s, status=%s, processing_fee=%s, expedite_fee=%s, total_fee=%s, payment_status=%s,
                    requested_at=%s, processed_at=%s, shipped_at=%s, tracking_number=%s, delivered_at=%s,
                    transcript_id=%s
                WHERE request_id=%s
                """,
                (*_request_params(request), request.request_id),
            )
            return cur.rowcount > 0

    def list_requests_for_student(self, student_id: int) -> Sequence[TranscriptRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""SELECT {_REQUEST_COLUMNS} FROM transcript_requests WHERE student_id=%s
                ORDER BY requested_at DESC, request_id DESC""",
                (int(student_id),),
            )
            return [_row_to_request(r) for r in fetchall(cur)]

    def list_requests_by_status(
        self, status: TranscriptRequestStatus, *, offset: int, limit: int
    ) -> Tuple[Sequence[TranscriptRequest], int]:
        with db_cursor(self._conn_factory) as (_, cur):
            total = fetch_count(
                cur, "SELECT COUNT(*) AS total FROM transcript_requests WHERE status=%s", (status.value,)
            )
            cur.execute(
                f"""SELECT {_REQUEST_COLUMNS} FROM transcript_requests WHERE status=%s
                ORDER BY requested_at LIMIT %s OFFSET %s""",
                (status.value, int(limit), int(offset)),
            )
            return [_row_to_request(r) for r in fetchall(cur)], total
