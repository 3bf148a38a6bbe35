"""Timestamp parsing for RSS and Atom date fields.

Feeds use a small family of grammars in practice: RFC 3339 for Atom and
RFC 822 (with plenty of variation) for RSS. Each grammar below is tried in
order and the first one that accepts the string wins. Nothing here raises;
callers get ``(ZERO_TIME, False)`` when no grammar matches.
"""

from __future__ import annotations

import datetime
import re
from email.utils import parsedate_to_datetime
from functools import lru_cache
from typing import Callable, Optional

from dateutil import parser as dateutil_parser

from .models import ZERO_TIME

_UTC = datetime.timezone.utc

_RE_WHITESPACE = re.compile(r"\s+")
_RE_ISO_TZ_NO_COLON = re.compile(r"([+-]\d{2})(\d{2})$")
_RE_ISO_TZ_HOUR_ONLY = re.compile(r"([+-]\d{2})$")
_RE_ISO_FRACTION = re.compile(r"\.(\d{7,})(?=(?:[+-]\d{2}:?\d{2}|Z|$))", re.IGNORECASE)
_RE_RFC822 = re.compile(
    r"(?:[A-Za-z]{3,9},?\s+)?(\d{1,2})\s+([A-Za-z]{3,9})\.?\s+(\d{4}|\d{2})\s+"
    r"(\d{1,2}):(\d{2})(?::(\d{2}))?(?:\s*([+-]\d{4}|[A-Za-z]{1,5}))?$"
)
_MONTHS_RFC822: dict[str, int] = {
    "jan": 1,
    "feb": 2,
    "mar": 3,
    "apr": 4,
    "may": 5,
    "jun": 6,
    "jul": 7,
    "aug": 8,
    "sep": 9,
    "oct": 10,
    "nov": 11,
    "dec": 12,
}

_custom_tzinfos: dict[str, int] = {
    "UTC": 0,
    "UT": 0,
    "GMT": 0,
    "Z": 0,
    "WET": 0,
    "WEST": 3600,
    "BST": 3600,
    "CET": 3600,
    "CEST": 7200,
    "EET": 7200,
    "EEST": 10800,
    "MSK": 10800,
    "IST": 19800,
    "PST": -28800,
    "PDT": -25200,
    "MST": -25200,
    "MDT": -21600,
    "CST": -21600,
    "CDT": -18000,
    "EST": -18000,
    "EDT": -14400,
    "AKST": -32400,
    "AKDT": -28800,
    "HST": -36000,
    "AEST": 36000,
    "AEDT": 39600,
    "ACST": 34200,
    "ACDT": 37800,
    "AWST": 28800,
    "NZST": 43200,
    "NZDT": 46800,
    "JST": 32400,
    "KST": 32400,
    "SGT": 28800,
}

# Missing time fields in loosely formatted dates are filled from here, never
# from the current clock. A date part that differs between the two parses was
# not in the string.
_DATEUTIL_DEFAULTS = (
    datetime.datetime(1970, 1, 1),
    datetime.datetime(1971, 2, 2),
)


def _ensure_utc(dt: datetime.datetime) -> Optional[datetime.datetime]:
    """Return a timezone-aware datetime normalized to UTC."""
    try:
        return dt.replace(tzinfo=_UTC) if dt.tzinfo is None else dt.astimezone(_UTC)
    except (ValueError, OverflowError):
        return None


def _normalize_iso_datetime_string(value: str) -> str:
    """Coerce flexible ISO-8601 inputs into a form datetime.fromisoformat can parse."""
    cleaned = value
    if cleaned[-1] in ("Z", "z"):
        cleaned = cleaned[:-1] + "+00:00"

    if (
        " " in cleaned
        and "T" not in cleaned[:11]
        and len(cleaned) >= 10
        and cleaned[4] == "-"
    ):
        date_part, rest = cleaned.split(" ", 1)
        if rest and rest[0].isdigit():
            cleaned = f"{date_part}T{rest}"

    match = _RE_ISO_TZ_NO_COLON.search(cleaned)
    if match and "T" in cleaned:
        cleaned = cleaned[:-5] + f"{match.group(1)}:{match.group(2)}"
    else:
        match = _RE_ISO_TZ_HOUR_ONLY.search(cleaned)
        if match and "T" in cleaned:
            cleaned = cleaned[:-3] + f"{match.group(1)}:00"

    return _RE_ISO_FRACTION.sub(lambda m: "." + m.group(1)[:6], cleaned, count=1)


def _parse_iso8601(value: str) -> Optional[datetime.datetime]:
    """RFC 3339 / ISO 8601, with fractional seconds and Z or numeric offsets."""
    if len(value) < 10 or value[4] != "-" or not value[0:4].isdigit():
        return None
    try:
        return datetime.datetime.fromisoformat(_normalize_iso_datetime_string(value))
    except ValueError:
        return None


def _parse_rfc822(value: str) -> Optional[datetime.datetime]:
    """RFC 822 and its common relatives, with or without seconds and weekday."""
    m = _RE_RFC822.match(value)
    if not m:
        return None
    day, mon_str, year, hour, minute, second, tz = m.groups()
    month = _MONTHS_RFC822.get(mon_str[:3].lower())
    if month is None:
        return None

    y = int(year)
    if len(year) == 2:
        y += 1900 if y >= 69 else 2000

    if not tz:
        tz_offset_seconds = 0
    elif tz[0] in "+-":
        tz_offset_seconds = (int(tz[1:3]) * 3600 + int(tz[3:5]) * 60) * (
            1 if tz[0] == "+" else -1
        )
    else:
        tz_offset_seconds = _custom_tzinfos.get(tz.upper())
        if tz_offset_seconds is None:
            return None
    if not (-86400 < tz_offset_seconds < 86400):
        return None

    try:
        return datetime.datetime(
            y,
            month,
            int(day),
            int(hour),
            int(minute),
            int(second or 0),
            tzinfo=datetime.timezone(datetime.timedelta(seconds=tz_offset_seconds)),
        )
    except ValueError:
        return None


def _parse_rfc2822(value: str) -> Optional[datetime.datetime]:
    try:
        return parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return None


def _parse_loose(value: str) -> Optional[datetime.datetime]:
    """Last resort for free-form dates; year, month and day must all be present."""
    try:
        first, second = (
            dateutil_parser.parse(value, default=default, tzinfos=_custom_tzinfos)
            for default in _DATEUTIL_DEFAULTS
        )
    except (ValueError, TypeError, OverflowError):
        return None
    if first != second:
        return None
    return first


DATE_GRAMMARS: tuple[Callable[[str], Optional[datetime.datetime]], ...] = (
    _parse_iso8601,
    _parse_rfc822,
    _parse_rfc2822,
    _parse_loose,
)


@lru_cache(maxsize=4096)
def parse_date(date_str: str) -> tuple[datetime.datetime, bool]:
    """Parse a feed timestamp.

    Args:
        date_str: Raw text of an RSS or Atom date element

    Returns:
        ``(timestamp, True)`` with the timestamp in UTC, or
        ``(ZERO_TIME, False)`` when no known grammar accepts the string
    """
    if not date_str:
        return ZERO_TIME, False

    candidate = _RE_WHITESPACE.sub(" ", date_str).strip()
    if not candidate:
        return ZERO_TIME, False

    for grammar in DATE_GRAMMARS:
        dt = grammar(candidate)
        if dt is None:
            continue
        utc_dt = _ensure_utc(dt)
        if utc_dt is not None:
            return utc_dt, True

    return ZERO_TIME, False


def first_valid_date(*candidates: str) -> tuple[datetime.datetime, bool]:
    """Parse the first of ``candidates`` that any grammar accepts.

    Empty candidates are skipped. ``(ZERO_TIME, False)`` when none parse.
    """
    for candidate in candidates:
        if not candidate or not candidate.strip():
            continue
        date, valid = parse_date(candidate)
        if valid:
            return date, True
    return ZERO_TIME, False
