"""Rendering of Loki query results as a plain-text report."""

import math
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from loki_mcp.models import LokiResult

NO_LOGS_MESSAGE = "No logs found matching the query"

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def nanos_to_rfc3339(raw: Any) -> Optional[str]:
    """
    Convert a Loki timestamp to RFC 3339 UTC.

    Loki timestamps are already nanoseconds since the epoch and are not
    rescaled. Returns None when raw is not a finite, representable number.
    """
    text = str(raw)
    # int() and float() also take digit separators, padding and non-ASCII digits
    if "_" in text or text != text.strip() or not text.isascii():
        return None
    try:
        nanos = int(text)
    except ValueError:
        try:
            value = float(text)
        except ValueError:
            return None
        if not math.isfinite(value):
            return None
        nanos = int(value)
    try:
        instant = _EPOCH + timedelta(microseconds=nanos // 1000)
    except OverflowError:
        return None
    return instant.strftime("%Y-%m-%dT%H:%M:%SZ")


def format_labels(labels: Dict[str, str]) -> str:
    return ", ".join(f"{key}={value}" for key, value in labels.items())


def format_entry(value: List[Any]) -> Optional[str]:
    """Format one [timestamp, line] pair; None for entries to skip."""
    if len(value) < 2:
        return None
    timestamp = nanos_to_rfc3339(value[0])
    if timestamp is None:
        timestamp = str(value[0])
    return f"[{timestamp}] {value[1]}"


def format_results(result: LokiResult) -> str:
    """
    Format Loki results as a report grouped by stream.

    Args:
        result: Successful Loki result

    Returns:
        The report text
    """
    streams = result.data.result
    if not streams:
        return NO_LOGS_MESSAGE

    lines = [f"Found {len(streams)} streams:", ""]
    for index, stream in enumerate(streams, start=1):
        if stream.stream:
            lines.append(f"Stream ({format_labels(stream.stream)}) {index}:")
        else:
            lines.append(f"Stream {index}:")

        for value in stream.values:
            entry = format_entry(value)
            if entry is not None:
                lines.append(entry)
        lines.append("")

    return "\n".join(lines) + "\n"
