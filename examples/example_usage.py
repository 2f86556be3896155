"""Using the service layer directly, without Flask.

Controllers stay thin; every rule lives in the services, so scripts and
jobs can call them the same way the HTTP layer does.
"""

import importlib

from university_erp.config import get_settings_module
from university_erp.container import build_container_from_settings
from university_erp.audits.service import audit_view


def main():
    settings = importlib.import_module(get_settings_module())
    container = build_container_from_settings(settings)

    student = container.users_repo.get_by_username("student.lovelace")
    if not student:
        print("Run scripts/seed_db.py first")
        return

    print("GPA:", container.registration_service.calculate_gpa(student.user_id))
    print("Available courses:", [c.code for c in container.course_service.list_available()])
    if container.record_service.find_current_for_student(student.user_id):
        print(audit_view(container.audit_service.get_degree_progress(student.user_id)))
    print("Outstanding balance:", container.billing_service.has_outstanding_balance(student.user_id))


if __name__ == "__main__":
    main()
