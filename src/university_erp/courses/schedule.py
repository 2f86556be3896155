from __future__ import annotations

from datetime import time
from typing import Optional, Protocol

from ..core.exceptions import ValidationError

WEEKDAYS = ("MON", "TUE", "WED", "THU", "FRI", "SAT", "SUN")


class Scheduled(Protocol):
    days_of_week: Optional[str]
    start_time: Optional[time]
    end_time: Optional[time]


def normalize_days(value: Optional[str]) -> Optional[str]:
    """Turn 'wed, mon' into 'MON,WED'. Unknown day names are rejected."""
    if value is None or not value.strip():
        return None
    days = {d.strip().upper()[:3] for d in value.split(",") if d.strip()}
    unknown = days.difference(WEEKDAYS)
    if unknown:
        raise ValidationError(f"Unknown weekday(s): {', '.join(sorted(unknown))}")
    return ",".join(d for d in WEEKDAYS if d in days)


def parse_days(value: Optional[str]) -> set[str]:
    if not value:
        return set()
    return {d.strip().upper() for d in value.split(",") if d.strip()}


def schedules_overlap(a: Scheduled, b: Scheduled) -> bool:
    """Two meetings clash when they share a weekday and their [start, end) windows intersect."""
    if not (a.start_time and a.end_time and b.start_time and b.end_time):
        return False
    if not parse_days(a.days_of_week) & parse_days(b.days_of_week):
        return False
    return a.start_time < b.end_time and b.start_time < a.end_time
