"""
Hit counter router — record hits and read aggregate statistics.

Endpoints:
  GET /hits/{key}   — record a hit, return the all-time total
  GET /badge/{key}  — record a hit, return shields.io endpoint JSON
  GET /stats/{key}  — read-only aggregate statistics (no increment)

Every response carries no-cache headers: badge images are embedded in
third-party pages and must be refetched on every view to count.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Path, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from hits.core.config import settings
from hits.core.database import get_db_session
from hits.schemas.stats import HitStats, ShieldsBadge
from hits.services.aggregator import aggregate
from hits.services.broadcaster import broadcaster
from hits.services.counter_store import increment, total_hits
from hits.services.errors import InvalidKey, StoreUnavailable

logger = logging.getLogger(__name__)

router = APIRouter()

DbSession = Annotated[AsyncSession, Depends(get_db_session)]
CounterKey = Annotated[
    str,
    Path(description="The unique key for the counter.", examples=["your-key"]),
]

NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}

# Generic 503 — the store error detail stays in the logs
_STORE_UNAVAILABLE = HTTPException(
    status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
    detail="The counter store is temporarily unavailable. Please try again.",
    headers=NO_CACHE_HEADERS,
)


def _invalid_key(exc: InvalidKey) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=str(exc),
        headers=NO_CACHE_HEADERS,
    )


async def _record_hit(session: AsyncSession, key: str) -> int:
    """Increment, announce on the live feed, and return the all-time total."""
    try:
        await increment(session, key)
        total = await total_hits(session, key)
    except InvalidKey as exc:
        raise _invalid_key(exc) from exc
    except StoreUnavailable as exc:
        raise _STORE_UNAVAILABLE from exc

    broadcaster.publish(key)
    return total


@router.get(
    "/hits/{key}",
    response_model=int,
    tags=["Main"],
    summary="Increment and get total hits",
    description=(
        "Increments the counter for the given key and returns the all-time "
        "total. Broadcasts the key on the /ws feed."
    ),
)
async def count_increment(
    key: CounterKey,
    session: DbSession,
    response: Response,
) -> int:
    total = await _record_hit(session, key)
    response.headers.update(NO_CACHE_HEADERS)
    return total


@router.get(
    "/badge/{key}",
    response_model=ShieldsBadge,
    response_model_by_alias=True,
    tags=["Badge"],
    summary="Shields.io endpoint badge",
    description=(
        "Increments the counter for the given key and returns the total "
        "formatted for https://img.shields.io/endpoint."
    ),
)
async def shields_badge(
    key: CounterKey,
    session: DbSession,
    response: Response,
) -> ShieldsBadge:
    total = await _record_hit(session, key)
    response.headers.update(NO_CACHE_HEADERS)
    return ShieldsBadge.for_count(
        total,
        label=settings.BADGE_LABEL,
        color=settings.BADGE_COLOR,
    )


@router.get(
    "/stats/{key}",
    response_model=HitStats,
    tags=["Main"],
    summary="Aggregate hit statistics",
    description=(
        "Returns total, today, this-month and this-year counts (UTC). "
        "Does NOT increment the counter. Unknown keys return zeros."
    ),
)
async def hit_stats(
    key: CounterKey,
    session: DbSession,
    response: Response,
) -> HitStats:
    try:
        stats = await aggregate(session, key)
    except InvalidKey as exc:
        raise _invalid_key(exc) from exc
    except StoreUnavailable as exc:
        raise _STORE_UNAVAILABLE from exc

    response.headers.update(NO_CACHE_HEADERS)
    return stats
