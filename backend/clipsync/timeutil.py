"""UTC helpers and RFC 3339 parsing for query parameters."""

import re
from datetime import datetime, timezone
from typing import Optional

from clipsync.errors import FormatError

# date, time, optional fraction, mandatory offset (Z or +hh:mm)
_RFC3339_PATTERN = re.compile(
    r"^(\d{4}-\d{2}-\d{2})[Tt ](\d{2}:\d{2}:\d{2})(?:\.(\d+))?([Zz]|[+-]\d{2}:\d{2})$"
)


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Convert to aware UTC. Naive values are taken to be UTC already."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def is_zero_time(value: Optional[datetime]) -> bool:
    """True for None or the year-1 'zero' timestamp some clients send for 'never'."""
    return value is None or value.year <= 1


def parse_rfc3339(value: Optional[str]) -> datetime:
    """
    Parse an RFC 3339 timestamp such as 2024-05-01T12:00:00Z or
    2024-05-01T14:00:00.5+02:00. Returns aware UTC. Raises FormatError.
    """
    m = _RFC3339_PATTERN.match((value or "").strip())
    if not m:
        raise FormatError(f"Invalid RFC 3339 timestamp: {value!r}")
    date, clock, fraction, offset = m.groups()
    # fromisoformat on older interpreters wants exactly 6 fractional digits
    micros = (fraction or "0")[:6].ljust(6, "0")
    if offset in ("Z", "z"):
        offset = "+00:00"
    try:
        parsed = datetime.fromisoformat(f"{date}T{clock}.{micros}{offset}")
    except ValueError as e:
        raise FormatError(f"Invalid RFC 3339 timestamp: {value!r}") from e
    return parsed.astimezone(timezone.utc)
