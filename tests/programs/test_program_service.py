from __future__ import annotations

from dataclasses import replace
from datetime import date

import pytest

from university_erp.core.enums import ProgramStatus
from university_erp.core.exceptions import ConflictError, NotFoundError, ValidationError
from university_erp.programs.model import AcademicProgram, AcademicSemester
from university_erp.programs.service import ProgramService
from university_erp.users.department_model import Department


class InMemoryDepartments:
    def __init__(self, departments):
        self.rows = {d.department_id: d for d in departments}

    def get_by_id(self, department_id):
        return self.rows.get(department_id)


class InMemoryPrograms:
    def __init__(self):
        self.programs: dict[int, AcademicProgram] = {}
        self.semesters: dict[int, AcademicSemester] = {}

    def get_program(self, program_id):
        return self.programs.get(program_id)

    def get_program_by_code(self, code):
        return next((p for p in self.programs.values() if p.code == code), None)

    def create_program(self, **fields):
        program_id = len(self.programs) + 1
        self.programs[program_id] = AcademicProgram(program_id=program_id, **fields)
        return program_id

    def update_program(self, program_id, **fields):
        self.programs[program_id] = replace(self.programs[program_id], **fields)
        return True

    def list_programs(self, *, status=None):
        return [p for p in self.programs.values() if status is None or p.status == status]

    def get_semester(self, semester_id):
        return self.semesters.get(semester_id)

    def get_semester_by_code(self, code):
        return next((s for s in self.semesters.values() if s.code == code), None)

    def get_current_semester(self):
        return next((s for s in self.semesters.values() if s.is_current), None)

    def create_semester(self, **fields):
        semester_id = len(self.semesters) + 1
        self.semesters[semester_id] = AcademicSemester(semester_id=semester_id, **fields)
        return semester_id

    def list_semesters(self):
        return list(self.semesters.values())

    def set_current_semester(self, semester_id):
        for sid, sem in self.semesters.items():
            self.semesters[sid] = replace(sem, is_current=sid == semester_id)


@pytest.fixture
def service():
    return ProgramService(InMemoryPrograms(), InMemoryDepartments([Department(1, "CS", "Computer Science")]))


def _fall(**overrides):
    values = {"code": "2026fa", "name": "Fall 2026", "start_date": "2026-08-31", "end_date": "2026-12-18"}
    values.update(overrides)
    return values


def test_create_and_update_program(service):
    program = service.create_program(
        {"code": "bscs", "name": "BS Computer Science", "degree_type": "BS", "credit_requirements": 120, "department_id": 1}
    )
    assert program.code == "BSCS"
    assert program.duration_semesters == 8

    updated = service.update_program(program.program_id, {"status": "inactive", "credit_requirements": 124})
    assert updated.status == ProgramStatus.INACTIVE
    assert updated.credit_requirements == 124
    assert updated.name == "BS Computer Science"
    assert service.list_programs(status=ProgramStatus.ACTIVE) == []


def test_program_validation(service):
    base = {"code": "BSCS", "name": "CS", "degree_type": "BS", "credit_requirements": 120}
    service.create_program(base)

    with pytest.raises(ConflictError):
        service.create_program(base)
    with pytest.raises(ValidationError):
        service.create_program({**base, "code": "X", "credit_requirements": 0})
    with pytest.raises(NotFoundError):
        service.create_program({**base, "code": "Y", "department_id": 5})


def test_create_semester_and_mark_current(service):
    first = service.create_semester(_fall(is_current=True))
    second = service.create_semester(_fall(code="2027SP", name="Spring 2027", start_date="2027-01-11", end_date="2027-05-07"))

    assert first.code == "2026FA"
    assert service.get_current_semester().semester_id == first.semester_id

    service.set_current_semester(second.semester_id)
    assert service.get_current_semester().semester_id == second.semester_id
    assert not service.get_semester(first.semester_id).is_current


@pytest.mark.parametrize(
    "overrides",
    [
        {"end_date": "2026-08-01"},
        {"start_date": None},
        {"registration_start": "2026-08-20", "registration_end": "2026-08-01"},
        {"add_drop_deadline": "2027-01-05"},
        {"start_date": "31/08/2026"},
    ],
)
def test_semester_validation(service, overrides):
    with pytest.raises(ValidationError):
        service.create_semester(_fall(**overrides))


def test_registration_window():
    sem = AcademicSemester(
        1, "2026FA", "Fall", date(2026, 8, 31), date(2026, 12, 18),
        registration_start=date(2026, 7, 1), registration_end=date(2026, 9, 7),
    )
    assert sem.registration_open(date(2026, 8, 1))
    assert not sem.registration_open(date(2026, 6, 30))
    assert not sem.registration_open(date(2026, 9, 8))
