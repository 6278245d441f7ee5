import json
import math
import secrets
import time
from datetime import date, datetime
from typing import Any, Iterable, List, Optional

from jsondb.domain.models import Record

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"

# Largest absolute epoch-millisecond value a JavaScript Date accepts.
_MAX_EPOCH_MS = 8.64e15


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def generate_id() -> str:
    """
    Build a record identifier: ``item-`` + base-36 milliseconds + 6 random chars.

    There is no collision check. Two ids generated in the same millisecond
    only differ by the random suffix.
    """
    millis = _to_base36(int(time.time() * 1000))
    suffix = "".join(secrets.choice(_BASE36) for _ in range(6))
    return f"item-{millis}{suffix}"


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (set, frozenset)):
        return list(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def dump_record(record: Record) -> str:
    """Serialize a record the way it is written to disk."""
    return json.dumps(record, indent=2, ensure_ascii=False, default=_json_default)


def to_stored_form(record: Record) -> Record:
    """
    Return ``record`` exactly as it reads back from disk (dates become ISO
    strings, tuples become lists...).
    """
    return json.loads(dump_record(record))


def json_kind(value: Any) -> str:
    """Name of the JSON kind of ``value``, used in validation messages."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, dict):
        return "object"
    if isinstance(value, (datetime, date)):
        return "date"
    return type(value).__name__


def is_valid_date(value: Any) -> bool:
    """
    True if ``value`` denotes a point in time: a date/datetime, an ISO-8601
    string, or a finite number of epoch milliseconds.
    """
    if isinstance(value, (datetime, date)):
        return True
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return math.isfinite(value) and abs(value) <= _MAX_EPOCH_MS
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return False
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            datetime.fromisoformat(text)
        except ValueError:
            return False
        return True
    return False


def stringify_value(value: Any) -> str:
    """Render a single field value as text for matching and table output."""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=_json_default)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def _is_blank(value: Any) -> bool:
    # "", 0, False and None never match a field-scoped search.
    if value is None or value is False or value == "":
        return True
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value == 0 or (isinstance(value, float) and math.isnan(value))
    return False


def match_record(record: Record, query: str, field: Optional[str] = None) -> bool:
    """
    Case-insensitive substring match.

    With ``field`` only that field's value is considered; otherwise the whole
    compact JSON serialization of the record is searched, keys included.
    """
    needle = query.lower()
    if field:
        value = record.get(field)
        if _is_blank(value):
            return False
        return needle in stringify_value(value).lower()

    haystack = json.dumps(record, separators=(",", ":"), ensure_ascii=False, default=_json_default)
    return needle in haystack.lower()


def format_as_table(records: Iterable[Record]) -> str:
    """
    Tab-separated table: header row is the union of all keys (first seen
    order), one row per record, missing values left empty.
    """
    items: List[Record] = list(records)
    if not items:
        return "No data"

    keys: List[str] = []
    for item in items:
        for key in item:
            if key not in keys:
                keys.append(key)

    lines = ["\t".join(keys)]
    for item in items:
        row = []
        for key in keys:
            value = item.get(key)
            row.append("" if value is None else stringify_value(value))
        lines.append("\t".join(row))
    return "\n".join(lines) + "\n"
