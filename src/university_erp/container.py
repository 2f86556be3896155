from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from types import ModuleType

from .audits.mysql_audit_repository import MySQLDegreeAuditRepository
from .audits.service import DegreeAuditService
from .billing.mysql_billing_repository import MySQLBillingRepository
from .billing.service import BillingService
from .courses.mysql_course_repository import MySQLCourseRepository
from .core.constants import MAX_CREDITS_PER_SEMESTER, MINIMUM_GRADUATION_GPA, STATEMENT_DUE_DAYS
from .courses.service import CourseService
from .database.connection import DBConfig, DatabaseConnection
from .leave.mysql_leave_repository import MySQLLeaveRepository
from .leave.service import LeaveRequestService, LeaveTypeService
from .programs.mysql_program_repository import MySQLProgramRepository
from .programs.service import ProgramService
from .records.mysql_record_repository import MySQLAcademicRecordRepository
from .records.progress import ProgressCalculator
from .records.service import StudentAcademicRecordService
from .registrations.grading import LetterGradeScale
from .registrations.mysql_registration_repository import MySQLRegistrationRepository
from .registrations.service import RegistrationService
from .reports.service import ReportService
from .transcripts.mysql_transcript_repository import MySQLTranscriptRepository
from .transcripts.service import TranscriptService
from .users.mysql_department_repository import MySQLDepartmentRepository
from .users.mysql_user_repository import MySQLUserRepository
from .users.service import AuthService, DepartmentService, UserService
from .workflows.service import AcademicWorkflowService


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection

    users_repo: MySQLUserRepository
    departments_repo: MySQLDepartmentRepository
    courses_repo: MySQLCourseRepository
    programs_repo: MySQLProgramRepository
    registrations_repo: MySQLRegistrationRepository
    records_repo: MySQLAcademicRecordRepository
    audits_repo: MySQLDegreeAuditRepository
    transcripts_repo: MySQLTranscriptRepository
    billing_repo: MySQLBillingRepository
    leave_repo: MySQLLeaveRepository

    auth_service: AuthService
    user_service: UserService
    department_service: DepartmentService
    course_service: CourseService
    program_service: ProgramService
    registration_service: RegistrationService
    record_service: StudentAcademicRecordService
    audit_service: DegreeAuditService
    transcript_service: TranscriptService
    billing_service: BillingService
    leave_type_service: LeaveTypeService
    leave_request_service: LeaveRequestService
    workflow_service: AcademicWorkflowService
    report_service: ReportService


def build_container(
    *,
    db_config: dict,
    max_credits_per_semester: int = MAX_CREDITS_PER_SEMESTER,
    minimum_graduation_gpa: Decimal = MINIMUM_GRADUATION_GPA,
    statement_due_days: int = STATEMENT_DUE_DAYS,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    users_repo = MySQLUserRepository(conn)
    departments_repo = MySQLDepartmentRepository(conn)
    courses_repo = MySQLCourseRepository(conn)
    programs_repo = MySQLProgramRepository(conn)
    registrations_repo = MySQLRegistrationRepository(conn)
    records_repo = MySQLAcademicRecordRepository(conn)
    audits_repo = MySQLDegreeAuditRepository(conn)
    transcripts_repo = MySQLTranscriptRepository(conn)
    billing_repo = MySQLBillingRepository(conn)
    leave_repo = MySQLLeaveRepository(conn)

    grade_scale = LetterGradeScale()
    calculator = ProgressCalculator(grade_scale)

    registration_service = RegistrationService(
        registrations_repo,
        courses_repo,
        users_repo,
        programs_repo,
        grade_scale=grade_scale,
        max_credits_per_semester=max_credits_per_semester,
    )
    record_service = StudentAcademicRecordService(
        records_repo,
        registrations_repo,
        users_repo,
        programs_repo,
        calculator=calculator,
        minimum_gpa=minimum_graduation_gpa,
    )
    audit_service = DegreeAuditService(
        audits_repo,
        registrations_repo,
        records_repo,
        programs_repo,
        users_repo,
        calculator=calculator,
        minimum_gpa=minimum_graduation_gpa,
    )
    billing_service = BillingService(billing_repo, users_repo, registrations_repo, due_days=statement_due_days)

    return Container(
        conn=conn,
        users_repo=users_repo,
        departments_repo=departments_repo,
        courses_repo=courses_repo,
        programs_repo=programs_repo,
        registrations_repo=registrations_repo,
        records_repo=records_repo,
        audits_repo=audits_repo,
        transcripts_repo=transcripts_repo,
        billing_repo=billing_repo,
        leave_repo=leave_repo,
        auth_service=AuthService(users_repo),
        user_service=UserService(users_repo, departments_repo),
        department_service=DepartmentService(departments_repo, users_repo),
        course_service=CourseService(courses_repo, users_repo, grade_scale=grade_scale),
        program_service=ProgramService(programs_repo, departments_repo),
        registration_service=registration_service,
        record_service=record_service,
        audit_service=audit_service,
        transcript_service=TranscriptService(
            transcripts_repo, registrations_repo, records_repo, programs_repo, users_repo, calculator=calculator
        ),
        billing_service=billing_service,
        leave_type_service=LeaveTypeService(leave_repo),
        leave_request_service=LeaveRequestService(leave_repo, users_repo),
        workflow_service=AcademicWorkflowService(registration_service, record_service, audit_service, billing_service),
        report_service=ReportService(users_repo, courses_repo, registrations_repo, records_repo, billing_repo),
    )


def build_container_from_settings(settings: ModuleType) -> Container:
    """Wire a container from a settings module (see university_erp.config)."""
    return build_container(
        db_config=settings.DB_CONFIG,
        max_credits_per_semester=int(getattr(settings, "MAX_CREDITS_PER_SEMESTER", MAX_CREDITS_PER_SEMESTER)),
        minimum_graduation_gpa=Decimal(str(getattr(settings, "MINIMUM_GRADUATION_GPA", MINIMUM_GRADUATION_GPA))),
        statement_due_days=int(getattr(settings, "STATEMENT_DUE_DAYS", STATEMENT_DUE_DAYS)),
    )
