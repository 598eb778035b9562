"""Tests for aggregate badge statistics."""

import datetime

import pytest

from hits.services.aggregator import DEFAULT_RANGES, aggregate, aggregate_ranges
from hits.services.buckets import EPOCH, start_of_day
from hits.services.counter_store import increment, sum_range
from hits.services.errors import InvalidKey

UTC = datetime.timezone.utc


def at(*args: int) -> datetime.datetime:
    return datetime.datetime(*args, tzinfo=UTC)


async def test_hits_in_earlier_months_count_toward_year_not_month(db_session):
    await increment(db_session, "demo", at(2025, 1, 15, 9, 0))
    await increment(db_session, "demo", at(2025, 2, 10, 18, 30))

    stats = await aggregate(db_session, "demo", now=at(2025, 3, 1))

    assert stats.key == "demo"
    assert stats.total == 2
    assert stats.this_year == 2
    assert stats.this_month == 0
    assert stats.today == 0


async def test_all_ranges_populated(db_session):
    now = at(2025, 3, 17, 12, 0)
    await increment(db_session, "demo", at(2023, 6, 1))        # earlier year
    await increment(db_session, "demo", at(2025, 1, 2))        # this year
    await increment(db_session, "demo", at(2025, 3, 3))        # this month
    await increment(db_session, "demo", at(2025, 3, 17, 0, 0))  # today, boundary
    await increment(db_session, "demo", at(2025, 3, 17, 11, 59, 59))

    stats = await aggregate(db_session, "demo", now=now)

    assert (stats.total, stats.this_year, stats.this_month, stats.today) == (5, 4, 3, 2)


async def test_hits_at_or_after_now_are_excluded(db_session):
    now = at(2025, 3, 17, 12, 0)
    await increment(db_session, "demo", at(2025, 3, 17, 12, 0, 30))  # window == now
    await increment(db_session, "demo", at(2025, 3, 18))

    stats = await aggregate(db_session, "demo", now=now)
    assert stats.total == 0


async def test_total_matches_primitive_range_sum(db_session):
    now = at(2025, 7, 4, 8, 0)
    for moment in (at(2020, 1, 1), at(2025, 7, 1), at(2025, 7, 4, 7, 59)):
        await increment(db_session, "demo", moment)

    stats = await aggregate(db_session, "demo", now=now)
    assert stats.total == await sum_range(db_session, "demo", EPOCH, now) == 3


async def test_unknown_key_aggregates_to_zero(db_session):
    stats = await aggregate(db_session, "nobody", now=at(2025, 1, 1))
    assert stats.model_dump() == {
        "key": "nobody",
        "total": 0,
        "today": 0,
        "this_month": 0,
        "this_year": 0,
    }


async def test_reads_are_idempotent(db_session):
    now = at(2025, 3, 1)
    await increment(db_session, "demo", at(2025, 2, 1))

    first = await aggregate(db_session, "demo", now=now)
    second = await aggregate(db_session, "demo", now=now)
    assert first == second


async def test_custom_ranges(db_session):
    now = at(2025, 3, 17, 12, 0)
    await increment(db_session, "demo", at(2025, 3, 17, 11, 30))
    await increment(db_session, "demo", at(2025, 3, 17, 9, 0))

    last_hour = {"last_hour": lambda n: n - datetime.timedelta(hours=1)}
    assert await aggregate_ranges(db_session, "demo", now, last_hour) == {"last_hour": 1}


def test_default_ranges():
    assert list(DEFAULT_RANGES) == ["total", "today", "this_month", "this_year"]
    now = at(2025, 3, 17, 12, 0)
    assert DEFAULT_RANGES["total"](now) == EPOCH
    assert DEFAULT_RANGES["today"](now) == start_of_day(now)


def test_default_ranges_are_read_only():
    with pytest.raises(TypeError):
        DEFAULT_RANGES["yesterday"] = start_of_day  # type: ignore[index]
    assert "yesterday" not in DEFAULT_RANGES


async def test_aggregate_rejects_empty_key(db_session):
    with pytest.raises(InvalidKey):
        await aggregate(db_session, "", now=at(2025, 1, 1))
