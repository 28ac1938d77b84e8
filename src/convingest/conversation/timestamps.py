from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping, Optional, Sequence

from convingest.core.errors import InvalidTimestampError, MissingFieldError


# RFC 3339 date-time; the offset is mandatory.
_RFC3339 = re.compile(
    r"^([0-9]{4})-([0-9]{2})-([0-9]{2})[Tt ]([0-9]{2}):([0-9]{2}):([0-9]{2})(\.[0-9]+)?"
    r"(?:([Zz])|([+-])([0-9]{2}):([0-9]{2}))$"
)

# Legacy exports: "2024-01-15 09:30:00.123 +0100"
_LEGACY = re.compile(
    r"^([0-9]{4})-([0-9]{2})-([0-9]{2}) ([0-9]{2}):([0-9]{2}):([0-9]{2})(\.[0-9]+)? ([+-])([0-9]{2}):?([0-9]{2})$"
)


def _micros(fraction: Optional[str]) -> int:
    if not fraction:
        return 0
    digits = fraction[1:7]
    return int(digits.ljust(6, "0"))


def _build(groups: Sequence[Optional[str]], sign: Optional[str], hh: Optional[str], mm: Optional[str]) -> datetime:
    year, month, day, hour, minute, second, fraction = groups
    offset = timedelta(0)
    if sign:
        offset = timedelta(hours=int(hh or 0), minutes=int(mm or 0))
        if sign == "-":
            offset = -offset
    dt = datetime(
        int(year or 0),
        int(month or 0),
        int(day or 0),
        int(hour or 0),
        int(minute or 0),
        int(second or 0),
        _micros(fraction),
        tzinfo=timezone(offset),
    )
    return dt.astimezone(timezone.utc)


def parse_timestamp(raw: str) -> datetime:
    """
    Parse an RFC 3339 timestamp, falling back to ``YYYY-MM-DD HH:MM:SS[.f] +HHMM``.

    The result is always timezone-aware UTC. Sub-microsecond digits are dropped.
    """
    text = raw.strip()
    try:
        m = _RFC3339.match(text)
        if m:
            g = m.groups()
            return _build(g[:7], g[8], g[9], g[10])
        m = _LEGACY.match(text)
        if m:
            g = m.groups()
            return _build(g[:7], g[7], g[8], g[9])
    except (ValueError, OverflowError) as exc:
        raise InvalidTimestampError(value=raw, reason=str(exc)) from exc
    raise InvalidTimestampError(value=raw, reason="expected RFC 3339 or 'YYYY-MM-DD HH:MM:SS[.f] +HHMM'")


def format_timestamp(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat()


def resolve_timestamp(raw: Mapping[str, Any], keys: Sequence[str], *, field_name: str, where: str) -> datetime:
    """
    Read the first present key of ``keys`` and parse it.

    A key holding ``null`` counts as absent. No key present raises
    MissingFieldError; a present key that is not a parseable string raises
    InvalidTimestampError without trying the remaining keys.
    """
    for key in keys:
        value = raw.get(key)
        if value is None:
            continue
        if not isinstance(value, str):
            raise InvalidTimestampError(value=repr(value), reason=f"'{key}' is not a string")
        return parse_timestamp(value)
    raise MissingFieldError(field_name=field_name, where=where)
