"""Tests for minute bucketing and calendar range starts."""

import datetime

from hypothesis import given, strategies as st

from hits.services.buckets import (
    EPOCH,
    MINUTE,
    minute_bucket,
    start_of_day,
    start_of_month,
    start_of_year,
)

UTC = datetime.timezone.utc

moments = st.datetimes(
    min_value=datetime.datetime(1971, 1, 1),
    max_value=datetime.datetime(2100, 1, 1),
    timezones=st.just(UTC),
)


@given(moments)
def test_minute_bucket_contains_the_moment(moment):
    bucket = minute_bucket(moment)
    assert bucket <= moment < bucket + MINUTE
    assert bucket.second == 0 and bucket.microsecond == 0


@given(moments)
def test_minute_bucket_is_idempotent(moment):
    assert minute_bucket(minute_bucket(moment)) == minute_bucket(moment)


def test_same_minute_shares_a_bucket():
    a = datetime.datetime(2025, 1, 1, 0, 0, 30, tzinfo=UTC)
    b = datetime.datetime(2025, 1, 1, 0, 0, 45, tzinfo=UTC)
    assert minute_bucket(a) == minute_bucket(b) == datetime.datetime(2025, 1, 1, tzinfo=UTC)


def test_naive_timestamps_are_treated_as_utc():
    naive = datetime.datetime(2025, 6, 1, 12, 34, 56)
    assert minute_bucket(naive) == datetime.datetime(2025, 6, 1, 12, 34, tzinfo=UTC)


def test_aware_timestamps_are_converted_to_utc():
    plus_two = datetime.timezone(datetime.timedelta(hours=2))
    moment = datetime.datetime(2025, 1, 1, 1, 30, 10, tzinfo=plus_two)
    assert minute_bucket(moment) == datetime.datetime(2024, 12, 31, 23, 30, tzinfo=UTC)


def test_default_bucket_is_current_minute():
    before = minute_bucket(datetime.datetime.now(UTC))
    bucket = minute_bucket()
    assert bucket.tzinfo is not None
    assert before <= bucket <= before + MINUTE


def test_calendar_starts():
    moment = datetime.datetime(2025, 3, 17, 15, 42, 9, 123, tzinfo=UTC)
    assert start_of_day(moment) == datetime.datetime(2025, 3, 17, tzinfo=UTC)
    assert start_of_month(moment) == datetime.datetime(2025, 3, 1, tzinfo=UTC)
    assert start_of_year(moment) == datetime.datetime(2025, 1, 1, tzinfo=UTC)


@given(moments)
def test_calendar_starts_are_ordered(moment):
    assert EPOCH <= start_of_year(moment) <= start_of_month(moment) <= start_of_day(moment) <= moment
