"""
Time bucketing for hit counters.

All windows are computed in UTC:
  • minute — floor to the start of the minute (storage granularity)
  • day / month / year — calendar starts used for aggregate ranges

Naive datetimes are treated as UTC. Every function here is pure.
"""

from __future__ import annotations

import datetime

UTC = datetime.timezone.utc

# Lower bound for "all-time" ranges.
EPOCH = datetime.datetime(1970, 1, 1, tzinfo=UTC)

MINUTE = datetime.timedelta(minutes=1)


def utc_now() -> datetime.datetime:
    return datetime.datetime.now(UTC)


def as_utc(moment: datetime.datetime) -> datetime.datetime:
    """Return `moment` as an aware UTC datetime."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC)


def minute_bucket(moment: datetime.datetime | None = None) -> datetime.datetime:
    """Floor a timestamp to the start of its minute (UTC). Defaults to now."""
    moment = utc_now() if moment is None else as_utc(moment)
    return moment.replace(second=0, microsecond=0)


def start_of_day(moment: datetime.datetime) -> datetime.datetime:
    """Floor a timestamp to midnight UTC of its day."""
    return as_utc(moment).replace(hour=0, minute=0, second=0, microsecond=0)


def start_of_month(moment: datetime.datetime) -> datetime.datetime:
    """Midnight UTC on the first day of the month."""
    return start_of_day(moment).replace(day=1)


def start_of_year(moment: datetime.datetime) -> datetime.datetime:
    """Midnight UTC on January 1st."""
    return start_of_month(moment).replace(month=1)
