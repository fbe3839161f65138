"""Scalar normalizers for pb output: RFC 3339 timestamps and priority labels.

All functions are pure; the module only holds precompiled patterns.
"""

import re
from datetime import UTC, datetime

from pbview.models.priority import Priority

_DATE_FORMATS = (
    "%Y-%m-%dT%H:%M:%S.%f%z",
    "%Y-%m-%dT%H:%M:%S%z",
)
# pb (Go) writes up to nanoseconds; strptime takes at most microseconds
_EXTRA_FRACTION_RE = re.compile(r"(\.\d{6})\d+")
_PRIORITY_RE = re.compile(r"P([0-4])", re.IGNORECASE)


def parse_date(value: str) -> datetime:
    """Parse an RFC 3339 timestamp, with fractional seconds first, then without.

    Args:
        value: Timestamp such as "2025-01-18T16:00:00Z" or
            "2025-01-18T16:00:00.123456789+02:00".

    Returns:
        Timezone-aware datetime.

    Raises:
        ValueError: If neither form matches.
    """
    text = _EXTRA_FRACTION_RE.sub(r"\1", value.strip())
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    raise ValueError(f"Cannot parse date: {value!r}")


def parse_optional_date(value: str | None) -> datetime | None:
    """None or empty string means absent; anything else must parse."""
    if not value:
        return None
    return parse_date(value)


def format_date(value: datetime, fractional: bool = False) -> str:
    """Format as RFC 3339 in UTC ("Z" suffix), optionally with microseconds."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    value = value.astimezone(UTC)
    timespec = "microseconds" if fractional else "seconds"
    return value.isoformat(timespec=timespec).replace("+00:00", "Z")


def parse_priority(label: str) -> Priority | None:
    """Map "P0".."P4" (any case) to Priority; None for anything else."""
    m = _PRIORITY_RE.fullmatch(label)
    if not m:
        return None
    return Priority(int(m.group(1)))


def priority_label(priority: Priority) -> str:
    """Canonical uppercase label for a priority."""
    return priority.label
