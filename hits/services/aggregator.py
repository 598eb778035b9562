"""
Aggregate hit statistics for badges.

Each statistic is a named half-open range [start(now), now) summed by the
counter store. Ranges are queried independently and never derived from one
another, so adding or removing a range cannot double-count.
"""

from __future__ import annotations

import datetime
import logging
from collections.abc import Callable, Mapping
from types import MappingProxyType

from sqlalchemy.ext.asyncio import AsyncSession

from hits.schemas.stats import HitStats
from hits.services.buckets import (
    EPOCH,
    start_of_day,
    start_of_month,
    start_of_year,
    utc_now,
)
from hits.services.counter_store import sum_range, validate_key

logger = logging.getLogger(__name__)

RangeStart = Callable[[datetime.datetime], datetime.datetime]

DEFAULT_RANGES: Mapping[str, RangeStart] = MappingProxyType({
    "total": lambda _now: EPOCH,
    "today": start_of_day,
    "this_month": start_of_month,
    "this_year": start_of_year,
})


async def aggregate_ranges(
    session: AsyncSession,
    key: str,
    now: datetime.datetime | None = None,
    ranges: Mapping[str, RangeStart] = DEFAULT_RANGES,
) -> dict[str, int]:
    """
    Sum hits for `key` over every named range ending at `now`.

    Args:
        session: Async DB session (caller manages lifecycle).
        key:     Counter key.
        now:     Upper bound (exclusive) shared by all ranges; defaults to now.
        ranges:  Range name -> function returning the range start for `now`.
    """
    key = validate_key(key)
    now = utc_now() if now is None else now

    results: dict[str, int] = {}
    for name, start_for in ranges.items():
        results[name] = await sum_range(session, key, start_for(now), now)

    logger.debug("Aggregated key=%r at %s: %s", key, now, results)
    return results


async def aggregate(
    session: AsyncSession,
    key: str,
    now: datetime.datetime | None = None,
) -> HitStats:
    """Badge-facing statistics: total, today, this month, this year."""
    stats = await aggregate_ranges(session, key, now, DEFAULT_RANGES)
    return HitStats(key=key, **stats)
