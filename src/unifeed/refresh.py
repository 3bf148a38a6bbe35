"""When to fetch a feed again.

RSS channels may carry a ``ttl`` in minutes plus ``skipHours`` and
``skipDays`` hints. The hour hint is applied in a single pass over the sorted
hour list and is not re-checked afterwards. The day hint is applied until the
refresh lands on an allowed day.
"""

from __future__ import annotations

import datetime
import logging
from typing import Iterable, Optional

logger = logging.getLogger(__name__)

DEFAULT_REFRESH_INTERVAL = datetime.timedelta(minutes=10)

_WEEKDAYS = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)


def weekday_name(moment: datetime.datetime) -> str:
    # Locale independent, unlike strftime("%A").
    return _WEEKDAYS[moment.weekday()]


def _capitalize(day: str) -> str:
    # Only the first letter changes, so "THURSDAY" names no weekday.
    day = day.strip()
    return day[:1].upper() + day[1:]


def next_refresh(
    now: datetime.datetime,
    ttl: Optional[int] = None,
    skip_hours: Iterable[int] = (),
    skip_days: Iterable[str] = (),
    default_interval: datetime.timedelta = DEFAULT_REFRESH_INTERVAL,
) -> datetime.datetime:
    """Compute the instant a feed should next be refetched.

    Args:
        now: Reference time, normally the time of the parse
        ttl: Channel time-to-live in minutes; ``None`` or 0 means unset
        skip_hours: Hours (0-23) during which the feed should not be polled
        skip_days: Weekday names during which the feed should not be polled
        default_interval: Used when no ttl is given

    Returns:
        The next refresh instant

    Raises:
        OverflowError: If the ttl pushes the refresh past the datetime range
    """
    if not ttl:
        return now + default_interval

    hours = sorted(skip_hours)
    days = [_capitalize(day) for day in skip_days]
    if set(_WEEKDAYS).issubset(days):
        # Every day is skipped; there is no allowed day to roll forward to.
        logger.debug("skipDays covers the whole week, ignoring it")
        days = []

    candidate = now + datetime.timedelta(minutes=ttl)
    for hour in hours:
        if hour == candidate.hour:
            candidate += datetime.timedelta(minutes=60 - candidate.minute)

    trying = True
    while trying:
        trying = False
        for day in days:
            if day == weekday_name(candidate):
                candidate += datetime.timedelta(hours=24 - candidate.hour)
                trying = True
                break

    logger.debug("next refresh at %s (ttl=%s)", candidate.isoformat(), ttl)
    return candidate
