from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal

from university_erp.common.pagination import Page, PageRequest, paginate
from university_erp.common.serialization import to_json
from university_erp.core.enums import Role
from university_erp.users.model import User


def test_page_request_from_args_clamps():
    assert PageRequest.from_args({"page": "3", "size": "10"}) == PageRequest(page=3, size=10)
    assert PageRequest.from_args({"page": "-1", "size": "5000"}) == PageRequest(page=1, size=100)
    assert PageRequest.from_args({"page": "abc"}) == PageRequest(page=1, size=20)


def test_paginate_slices_and_counts():
    page = paginate(list(range(45)), PageRequest(page=3, size=20))

    assert page.items == list(range(40, 45))
    assert page.total == 45
    assert page.total_pages == 3
    assert not page.has_next


def test_page_map_keeps_paging():
    page = Page(items=[1, 2], page=1, size=2, total=5).map(lambda n: n * 10)
    assert page.items == [10, 20]
    assert page.has_next


@dataclass(frozen=True)
class _Sample:
    when: datetime
    day: date
    at: time
    amount: Decimal
    role: Role


def test_to_json_converts_domain_values():
    out = to_json(_Sample(datetime(2026, 9, 1, 8, 30), date(2026, 9, 1), time(9, 0), Decimal("12.50"), Role.STAFF))

    assert out == {
        "when": "2026-09-01T08:30:00",
        "day": "2026-09-01",
        "at": "09:00:00",
        "amount": "12.50",
        "role": "STAFF",
    }


def test_to_json_uses_enum_values_for_keys():
    assert to_json({Role.STUDENT: 3, 7: (Decimal("1.5"),)}) == {"STUDENT": 3, "7": ["1.5"]}


def test_to_json_never_emits_password_hash():
    user = User(1, "ada", "a@uni.edu", "Ada", "Lovelace", "pbkdf2:secret", Role.STUDENT)
    payload = to_json(Page(items=[user], page=1, size=20, total=1))

    assert "password_hash" not in payload["items"][0]
    assert payload["total_pages"] == 1
