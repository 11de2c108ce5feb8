"""Minute-granular cron evaluation for bee schedules.

Only the classic 5-field form is supported: minute, hour, day-of-month,
month and day-of-week (0=Sunday). Each field is one of ``*``, ``*/N``,
``A-B``, ``a,b,c`` or a bare integer. Instants are evaluated on their own
wall-clock components, so naive datetimes are treated as local time.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta

# Minutes in a year; bounds the next_run search
MAX_SEARCH_MINUTES = 525_600

_INT_RE = re.compile(r"[+-]?[0-9]+")

_DAY_ABBREVIATIONS = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]
_DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]


def _to_int(text: str) -> int | None:
    """Parse a plain integer, None for anything else."""
    if _INT_RE.fullmatch(text):
        return int(text)
    return None


def _split_fields(expr: str) -> list[str] | None:
    parts = expr.split()
    if len(parts) != 5:
        return None
    return parts


def is_valid(expr: str) -> bool:
    """Check that an expression has exactly five fields."""
    return _split_fields(expr) is not None


def field_matches(field: str, value: int) -> bool:
    """Check a single cron field against a time component.

    A field containing both ``-`` and ``,`` is neither a range nor a list
    and is compared as an exact integer, which fails for any such field.
    """
    if field == "*":
        return True

    if field.startswith("*/"):
        step = _to_int(field[2:])
        if step is None or step <= 0:
            return False
        return value % step == 0

    if "-" in field and "," not in field:
        bounds = [b for b in (_to_int(p) for p in field.split("-") if p) if b is not None]
        if len(bounds) == 2:
            return bounds[0] <= value <= bounds[1]

    if "," in field and "-" not in field:
        values = [v for v in (_to_int(p) for p in field.split(",") if p) if v is not None]
        return value in values

    exact = _to_int(field)
    if exact is not None:
        return value == exact

    return False


def _components(instant: datetime) -> tuple[int, int, int, int, int]:
    # isoweekday: Monday=1 .. Sunday=7, cron wants Sunday=0
    return (
        instant.minute,
        instant.hour,
        instant.day,
        instant.month,
        instant.isoweekday() % 7,
    )


def _parts_match(parts: list[str], instant: datetime) -> bool:
    return all(
        field_matches(field, value)
        for field, value in zip(parts, _components(instant), strict=True)
    )


def matches(expr: str, instant: datetime) -> bool:
    """Check whether a cron expression fires at the given instant.

    Args:
        expr: 5-field cron expression.
        instant: The moment to test; only minute resolution matters.

    Returns:
        True if all five fields match, False otherwise or if malformed.
    """
    parts = _split_fields(expr)
    if parts is None:
        return False
    return _parts_match(parts, instant)


def next_run(expr: str, after: datetime | None = None) -> datetime | None:
    """Find the next minute after ``after`` at which ``expr`` fires.

    Args:
        expr: 5-field cron expression.
        after: Starting instant (defaults to now). The result is always
            strictly later than this.

    Returns:
        The first matching minute within one year, or None.
    """
    parts = _split_fields(expr)
    if parts is None:
        return None

    start = after if after is not None else datetime.now()
    candidate = start.replace(second=0, microsecond=0) + timedelta(minutes=1)

    for _ in range(MAX_SEARCH_MINUTES):
        if _parts_match(parts, candidate):
            return candidate
        candidate += timedelta(minutes=1)

    return None


def _format_time(hour: str, minute: str) -> str:
    h = _to_int(hour)
    m = _to_int(minute)
    if h is None or m is None:
        return f"{hour}:{minute}"
    period = "PM" if h >= 12 else "AM"
    display_hour = 12 if h == 0 else (h - 12 if h > 12 else h)
    return f"{display_hour}:{m:02d} {period}"


def _describe_days(value: str) -> str | None:
    if value == "1-5":
        return "Weekdays"
    if value in ("0,6", "6,0"):
        return "Weekends"

    indices = [i for i in (_to_int(p) for p in value.split(",") if p) if i is not None]
    indices = [i for i in indices if 0 <= i < 7]
    if not indices:
        return None
    if len(indices) == 1:
        return _DAY_NAMES[indices[0]]
    return ", ".join(_DAY_ABBREVIATIONS[i] for i in indices)


def _is_fixed(field: str) -> bool:
    return "*" not in field and "/" not in field


def to_english(expr: str) -> str:
    """Describe common cron shapes in plain English.

    Unrecognized expressions are returned unchanged.
    """
    parts = _split_fields(expr)
    if parts is None:
        return expr

    minute, hour, day_of_month, month, day_of_week = parts
    rest_any = day_of_month == "*" and month == "*" and day_of_week == "*"

    if minute.startswith("*/") and hour == "*" and rest_any:
        interval = minute[2:]
        if interval == "1":
            return "Every minute"
        return f"Every {interval} minutes"

    if _is_fixed(minute) and hour == "*" and rest_any:
        at = _to_int(minute) or 0
        if at == 0:
            return "Every hour"
        return f"Every hour at :{at:02d}"

    if _is_fixed(minute) and _is_fixed(hour) and rest_any:
        return f"Daily at {_format_time(hour, minute)}"

    if day_of_week != "*" and day_of_month == "*" and month == "*":
        days = _describe_days(day_of_week)
        if days is None:
            return expr
        return f"{days} at {_format_time(hour, minute)}"

    if minute == "0" and hour.startswith("*/") and rest_any:
        interval = hour[2:]
        if interval == "1":
            return "Every hour"
        return f"Every {interval} hours"

    return expr


def format_next_run(instant: datetime, now: datetime | None = None) -> str:
    """Format a next-run instant relative to today.

    Returns ``"9:00 AM"`` for today, ``"tomorrow 9:00 AM"`` for tomorrow,
    and ``"Mar 4, 9:00 AM"`` otherwise.
    """
    reference = now if now is not None else datetime.now()
    hour = instant.hour % 12 or 12
    clock = f"{hour}:{instant.minute:02d} {'PM' if instant.hour >= 12 else 'AM'}"

    if instant.date() == reference.date():
        return clock
    if instant.date() == reference.date() + timedelta(days=1):
        return f"tomorrow {clock}"
    return f"{instant.strftime('%b')} {instant.day}, {clock}"
