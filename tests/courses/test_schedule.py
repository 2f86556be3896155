from datetime import time
from types import SimpleNamespace

import pytest

from university_erp.core.exceptions import ValidationError
from university_erp.courses.schedule import normalize_days, parse_days, schedules_overlap


def _meeting(days, start, end):
    return SimpleNamespace(days_of_week=days, start_time=start, end_time=end)


def test_normalize_days_orders_and_dedupes():
    assert normalize_days("wed, Monday ,mon") == "MON,WED"
    assert normalize_days("  ") is None
    assert normalize_days(None) is None


def test_normalize_days_rejects_unknown():
    with pytest.raises(ValidationError):
        normalize_days("MON,XYZ")


def test_parse_days():
    assert parse_days("MON,FRI") == {"MON", "FRI"}
    assert parse_days(None) == set()


def test_overlap_needs_shared_day_and_intersecting_window():
    a = _meeting("MON,WED", time(9), time(10, 30))
    assert schedules_overlap(a, _meeting("WED", time(10), time(11)))
    assert not schedules_overlap(a, _meeting("TUE", time(10), time(11)))
    assert not schedules_overlap(a, _meeting("MON", time(10, 30), time(12)))


def test_unscheduled_meetings_never_overlap():
    assert not schedules_overlap(_meeting("MON", None, None), _meeting("MON", time(9), time(10)))
