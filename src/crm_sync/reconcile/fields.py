"""Field extraction helpers for raw remote CRM records.

Remote records are loosely typed: e-mail and phone arrive as a string, a
``{"value": ...}`` object or a list of labelled entries; references arrive
as a bare id or an embedded object; timestamps are UTC strings. Everything
here is total: malformed input yields None (or 0 for counts), never raises.
"""

from __future__ import annotations

from datetime import date, datetime, time, timezone
from decimal import Decimal, InvalidOperation
from typing import Any

REMOTE_TIME_FORMATS = ("%Y-%m-%d %H:%M:%S", "%Y-%m-%d %H:%M", "%Y-%m-%d")
DUE_TIME_FORMATS = ("%H:%M:%S", "%H:%M")


def is_blank(value: Any) -> bool:
    """None, whitespace-only strings and empty containers are blank."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict, set)):
        return not value
    return False


def present(value: Any) -> Any:
    """Return value unless it is blank, in which case None."""
    return None if is_blank(value) else value


# ── Multi-valued fields ─────────────────────────────────────────────────────


def extract_primary_value(data: Any) -> str | None:
    """Pick the primary entry from a remote e-mail/phone field.

    Lists prefer the entry flagged ``primary: true`` and fall back to the
    first entry.
    """
    if is_blank(data):
        return None
    if isinstance(data, str):
        return data.strip()
    if isinstance(data, dict):
        return present(data.get("value"))
    if isinstance(data, list):
        entries = [entry for entry in data if isinstance(entry, dict)]
        primary = next((entry for entry in entries if entry.get("primary") is True), None)
        chosen = primary or (entries[0] if entries else None)
        return present(chosen.get("value")) if chosen else None
    return None


def split_name(name: Any) -> tuple[str | None, str | None]:
    """Split a display name on its first whitespace.

    A one-word name is used for both parts so last_name is never empty.
    """
    if not isinstance(name, str) or not name.strip():
        return None, None
    parts = name.strip().split(None, 1)
    first = parts[0]
    last = parts[1].strip() if len(parts) > 1 else first
    return first, last


# ── References ──────────────────────────────────────────────────────────────


def to_int(value: Any, default: int | None = 0) -> int | None:
    """Lenient integer conversion; default for anything non-numeric."""
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        value = value.strip()
        if value.lstrip("-").isdigit():
            return int(value)
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return default


def ref_id(value: Any) -> int | None:
    """Remote id of a reference given as an int or an embedded object."""
    if isinstance(value, dict):
        value = value.get("value", value.get("id"))
    return to_int(value, default=None)


def ref_literal(value: Any, key: str) -> str | None:
    """A literal (e.g. "name", "email") carried by an embedded reference."""
    if isinstance(value, dict):
        literal = value.get(key)
        if isinstance(literal, str):
            return present(literal.strip())
    return None


# ── Scalars ─────────────────────────────────────────────────────────────────


def to_decimal(value: Any) -> Decimal | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return None


def to_bool(value: Any) -> bool | None:
    if value is None:
        return None
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes")
    return bool(value)


# ── Dates and times ─────────────────────────────────────────────────────────


def parse_remote_time(value: Any) -> datetime | None:
    """Parse a remote timestamp into a naive UTC datetime."""
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()

    for fmt in REMOTE_TIME_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue

    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def parse_date(value: Any) -> date | None:
    """Calendar date from a date or timestamp string."""
    parsed = parse_remote_time(value)
    return parsed.date() if parsed else None


def parse_due_date(due_date: Any, due_time: Any = None) -> datetime | None:
    """Combine an activity's due_date and optional due_time."""
    day = parse_date(due_date)
    if day is None:
        return None
    if isinstance(due_time, str) and due_time.strip():
        for fmt in DUE_TIME_FORMATS:
            try:
                return datetime.combine(day, datetime.strptime(due_time.strip(), fmt).time())
            except ValueError:
                continue
    return datetime.combine(day, time.min)
