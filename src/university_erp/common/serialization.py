from __future__ import annotations

from dataclasses import fields, is_dataclass
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any

from .pagination import Page


def to_json(obj: Any) -> Any:
    """Convert domain objects into JSON-ready structures.

    Dataclasses become dicts, enums their value, Decimals strings and
    temporal values ISO 8601 strings. Password hashes are never emitted.
    """
    if obj is None or isinstance(obj, (bool, int, float, str)):
        return obj
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, (datetime, date, time)):
        return obj.isoformat()
    if isinstance(obj, Page):
        return to_json(obj.to_dict())
    if is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: to_json(getattr(obj, f.name)) for f in fields(obj) if f.name != "password_hash"}
    if isinstance(obj, dict):
        return {(k.value if isinstance(k, Enum) else str(k)): to_json(v) for k, v in obj.items() if k != "password_hash"}
    if isinstance(obj, (list, tuple, set)):
        return [to_json(v) for v in obj]
    return str(obj)
