"""Wire timestamp handling.

Outbound timestamps are always rendered as ISO 8601 in UTC with millisecond
fractional seconds (``2025-11-18T09:30:00.000Z``). The API is less
consistent on the way back, so inbound strings are accepted in three shapes,
tried in order:

1. ISO 8601 with fractional seconds and a ``Z`` or numeric offset
2. ISO 8601 without fractional seconds
3. A bare ``YYYY-MM-DDTHH:MM:SS(.ffffff)`` with no zone, read as UTC
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone

_BASE = r"(\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2})"
_OFFSET = r"(Z|z|[+-]\d{2}:?\d{2})"

_ISO_FRACTIONAL = re.compile(rf"^{_BASE}\.(\d+){_OFFSET}$")
_ISO_PLAIN = re.compile(rf"^{_BASE}{_OFFSET}$")
_BARE_UTC = re.compile(rf"^{_BASE}(?:\.(\d{{1,6}}))?$")


def to_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime. Naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_datetime(value: datetime) -> str:
    """Render a datetime in the outbound wire format."""
    utc = to_utc(value)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"


def parse_datetime(text: str) -> datetime | None:
    """Parse an inbound timestamp; ``None`` if no accepted format matches."""
    if not isinstance(text, str):
        return None
    text = text.strip()

    match = _ISO_FRACTIONAL.match(text)
    if match:
        return _build(match.group(1), match.group(2), match.group(3))

    match = _ISO_PLAIN.match(text)
    if match:
        return _build(match.group(1), None, match.group(2))

    match = _BARE_UTC.match(text)
    if match:
        return _build(match.group(1), match.group(2), None)

    return None


def _build(base: str, fraction: str | None, offset: str | None) -> datetime | None:
    try:
        parsed = datetime.strptime(base, "%Y-%m-%dT%H:%M:%S")
    except ValueError:
        return None

    if fraction:
        # Sub-microsecond digits are dropped
        parsed = parsed.replace(microsecond=int(fraction[:6].ljust(6, "0")))

    tz = _parse_offset(offset) if offset else timezone.utc
    if tz is None:
        return None
    return parsed.replace(tzinfo=tz).astimezone(timezone.utc)


def _parse_offset(offset: str) -> timezone | None:
    if offset in ("Z", "z"):
        return timezone.utc
    sign = -1 if offset[0] == "-" else 1
    digits = offset[1:].replace(":", "")
    hours, minutes = int(digits[:2]), int(digits[2:])
    if hours > 23 or minutes > 59:
        return None
    return timezone(sign * timedelta(hours=hours, minutes=minutes))
