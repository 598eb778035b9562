"""
Postgres-backed hit counter store.

Records one increment per (key, minute window) using atomic
INSERT … ON CONFLICT counters in the partitioned `counters` table,
and answers range sums over those buckets.

Design decisions:
  • Atomic upsert — INSERT ON CONFLICT DO UPDATE guarantees no lost
    increments under concurrent requests, without a read-then-write.
  • Time bucketing — minute = floor to current minute (UTC).
  • Stateless — every call takes the caller's AsyncSession; no counter
    lives in process memory.
  • At-least-once — a retried increment may add an extra count. Storage
    failures are surfaced as StoreUnavailable and never retried here.

SQLite (aiosqlite) is accepted for local development and tests; it has the
same ON CONFLICT … RETURNING syntax, so only the insert construct differs.
"""

from __future__ import annotations

import datetime
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import (
    DBAPIError,
    InterfaceError,
    OperationalError,
    TimeoutError as PoolTimeoutError,
)
from sqlalchemy.ext.asyncio import AsyncSession

from hits.core.config import settings
from hits.models.counter import Counter
from hits.services.buckets import EPOCH, MINUTE, as_utc, minute_bucket, utc_now
from hits.services.errors import InvalidKey, StoreUnavailable

logger = logging.getLogger(__name__)

_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


def validate_key(key: object) -> str:
    """
    Reject keys that must never reach storage.

    Raises InvalidKey for:
      - a missing key (None) or a non-string
      - an empty or whitespace-only key
      - a key whose UTF-8 encoding exceeds MAX_KEY_LENGTH bytes
      - a key containing NUL (not storable in a Postgres TEXT column)
    """
    if key is None:
        raise InvalidKey("Key is required.")
    if not isinstance(key, str):
        raise InvalidKey(f"Key must be a string, got {type(key).__name__}.")
    if not key.strip():
        raise InvalidKey("Key must not be empty.")
    if len(key.encode("utf-8", "surrogatepass")) > settings.MAX_KEY_LENGTH:
        raise InvalidKey(
            f"Key is longer than {settings.MAX_KEY_LENGTH} bytes (UTF-8)."
        )
    if "\x00" in key:
        raise InvalidKey("Key must not contain NUL characters.")
    return key


def _is_transient(exc: BaseException) -> bool:
    """True for failures that mean 'store unreachable', not 'bad statement'."""
    if isinstance(exc, DBAPIError):
        return exc.connection_invalidated or isinstance(
            exc, (OperationalError, InterfaceError)
        )
    return isinstance(exc, (PoolTimeoutError, TimeoutError, OSError))


async def _rollback_after_failure(session: AsyncSession) -> None:
    try:
        await session.rollback()
    except Exception as exc:
        if not _is_transient(exc):
            raise
        logger.debug("Rollback after store failure also failed", exc_info=True)


@asynccontextmanager
async def _store_call(session: AsyncSession, operation: str) -> AsyncIterator[None]:
    """Roll back on any failure; translate transient ones to StoreUnavailable."""
    try:
        yield
    except Exception as exc:
        await _rollback_after_failure(session)
        if _is_transient(exc):
            logger.warning("Counter store unavailable during %s: %s", operation, exc)
            raise StoreUnavailable(
                f"Counter store unavailable during {operation}."
            ) from exc
        raise


def _upsert_for(session: AsyncSession):  # type: ignore[no-untyped-def]
    dialect = session.get_bind().dialect.name
    try:
        return _INSERTS[dialect]
    except KeyError:
        raise NotImplementedError(
            f"Counter upserts are not supported on {dialect!r}"
        ) from None


async def increment(
    session: AsyncSession,
    key: str,
    timestamp: datetime.datetime | None = None,
) -> int:
    """
    Record one hit for `key` in the minute containing `timestamp`.

    Creates the (key, window) row with count=1 on first hit, otherwise
    increments it in place: a single atomic statement, then commit.

    Returns the post-increment count of that minute bucket.

    Raises InvalidKey before touching storage, StoreUnavailable on
    transient storage failure (nothing is applied in that case).
    """
    key = validate_key(key)
    window = minute_bucket(timestamp)

    insert = _upsert_for(session)
    stmt = (
        insert(Counter)
        .values(key=key, minute_window=window, count=1)
        .on_conflict_do_update(
            index_elements=["key", "minute_window"],
            set_={"count": Counter.count + 1},
        )
        .returning(Counter.count)
    )

    async with _store_call(session, "increment"):
        result = await session.execute(stmt)
        count = result.scalar_one()
        await session.commit()

    logger.debug("Hit recorded key=%r window=%s count=%d", key, window, count)
    return count


async def sum_range(
    session: AsyncSession,
    key: str,
    start: datetime.datetime,
    end: datetime.datetime,
) -> int:
    """
    Sum counts for `key` over buckets with start <= minute_window < end.

    Returns 0 when no bucket matches, and for zero-width or inverted
    ranges (no query is issued for those).
    """
    key = validate_key(key)
    start, end = as_utc(start), as_utc(end)
    if start >= end:
        return 0

    stmt = select(func.coalesce(func.sum(Counter.count), 0)).where(
        Counter.key == key,
        Counter.minute_window >= start,
        Counter.minute_window < end,
    )

    async with _store_call(session, "sum_range"):
        total = (await session.execute(stmt)).scalar_one()

    return int(total)


async def total_hits(
    session: AsyncSession,
    key: str,
    now: datetime.datetime | None = None,
) -> int:
    """
    All-time total for `key` up to `now`.

    The upper bound is the end of the current minute, so a hit recorded
    a moment ago is always included.
    """
    now = utc_now() if now is None else now
    return await sum_range(session, key, EPOCH, minute_bucket(now) + MINUTE)
