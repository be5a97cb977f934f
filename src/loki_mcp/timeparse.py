"""
Time expression parsing for Loki query bounds.

Accepted expressions, tried in order:

- ``now``
- a negative duration relative to now, e.g. ``-1h``, ``-30m``, ``-1h30m``, ``-1.5h``
- an RFC 3339 timestamp, e.g. ``2024-01-15T10:30:45Z``
- ``YYYY-MM-DDTHH:MM:SS``, ``YYYY-MM-DD HH:MM:SS`` or ``YYYY-MM-DD``, read as UTC
"""

import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Optional

from loki_mcp.errors import InvalidTimeExpression

logger = logging.getLogger(__name__)

_UNIT_SECONDS = {
    "h": 3600.0,
    "m": 60.0,
    "s": 1.0,
    "ms": 1e-3,
    "us": 1e-6,
    "µs": 1e-6,
    "ns": 1e-9,
}

_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ms|us|µs|ns|h|m|s)")
_RFC3339 = re.compile(
    r"^(\d{4}-\d{2}-\d{2})[Tt](\d{2}:\d{2}:\d{2})(?:\.(\d+))?([Zz]|[+-]\d{2}:\d{2})$"
)
_NAIVE_FORMATS = (
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d",
)


def parse_duration(text: str) -> Optional[timedelta]:
    """Parse ``1h30m``-style durations; returns None when text is not one."""
    if not text:
        return None
    if text == "0":
        return timedelta(0)
    seconds = 0.0
    pos = 0
    for match in _DURATION_PART.finditer(text):
        if match.start() != pos:
            return None
        seconds += float(match.group(1)) * _UNIT_SECONDS[match.group(2)]
        pos = match.end()
    if pos != len(text):
        return None
    try:
        return timedelta(seconds=seconds)
    except OverflowError:
        return None


def _parse_rfc3339(text: str) -> Optional[datetime]:
    match = _RFC3339.match(text)
    if not match:
        return None
    date, clock, fraction, offset = match.groups()
    iso = f"{date}T{clock}"
    if fraction:
        # datetime resolution stops at microseconds
        iso += "." + fraction[:6].ljust(6, "0")
    iso += "+00:00" if offset in ("Z", "z") else offset
    try:
        return datetime.fromisoformat(iso)
    except ValueError:
        return None


def resolve_time(text: str, now: Optional[datetime] = None) -> datetime:
    """
    Resolve a time expression into a timezone-aware instant.

    Args:
        text: Time expression (see module docstring)
        now: Reference instant for ``now`` and relative expressions

    Returns:
        The resolved instant

    Raises:
        InvalidTimeExpression: If no supported format matches
    """
    if now is None:
        now = datetime.now(timezone.utc)

    if text == "now":
        return now

    if text.startswith("-"):
        duration = parse_duration(text[1:])
        if duration is not None:
            try:
                return now - duration
            except OverflowError:
                raise InvalidTimeExpression(text) from None
        logger.debug(f"{text!r} is not a relative duration, trying absolute formats")

    parsed = _parse_rfc3339(text)
    if parsed is not None:
        return parsed

    for fmt in _NAIVE_FORMATS:
        try:
            return datetime.strptime(text, fmt).replace(tzinfo=timezone.utc)
        except ValueError:
            continue

    raise InvalidTimeExpression(text)


def to_epoch_seconds(instant: datetime) -> int:
    """Integer Unix seconds, the unit sent to Loki for start and end."""
    return int(instant.timestamp())
