"""
Rankings Service

Read-only batch computations over the whole review and reading-list
tables:

- get_top_reviewers: users with the most reviews
- get_fastest_readers: users by mean time from start_date to finish_date

Both run inside a single read and never lock, so they are safe to call
while writers are active; they see the last committed state. Results are
cached in Redis (see app.services.cache) and dropped whenever a review or
reading-list change commits. The generation is read before the query, so
a result computed across a concurrent write is filed under a stale key.
"""

import logging
from collections import defaultdict

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.config import get_settings
from app.exceptions import InvalidInputError
from app.models import ReadingListEntry, Review, User
from app.services.cache import (
    FASTEST_READERS_GENERATION,
    FASTEST_READERS_PREFIX,
    TOP_REVIEWERS_GENERATION,
    TOP_REVIEWERS_PREFIX,
    cache_get,
    cache_set,
    get_generation,
    make_cache_key,
)
from app.utils import as_utc

logger = logging.getLogger(__name__)

UNKNOWN_USER = "Unknown"
MAX_TOP_REVIEWERS = 100
SECONDS_PER_DAY = 86400


def _users_by_id(db: Session, user_ids: list[int]) -> dict[int, User]:
    if not user_ids:
        return {}
    users = db.execute(select(User).where(User.id.in_(user_ids))).scalars().all()
    return {user.id: user for user in users}


def get_top_reviewers(db: Session, limit: int | None = None) -> list[dict]:
    """
    Users ranked by number of reviews written.

    Ordered by review count descending, ties broken by ascending user id.
    Users without reviews never appear. A review whose author row is gone
    is reported under the "Unknown" placeholder instead of failing.

    Args:
        db: Database session
        limit: Maximum number of users (1-100, default from settings)

    Returns:
        List of dicts with user_id, username, email, picture, review_count

    Raises:
        InvalidInputError: If limit is out of range
    """
    if limit is None:
        limit = get_settings().top_reviewers_default_limit
    if not 1 <= limit <= MAX_TOP_REVIEWERS:
        raise InvalidInputError(f"limit must be between 1 and {MAX_TOP_REVIEWERS}")

    generation = get_generation(TOP_REVIEWERS_GENERATION)
    cache_key = make_cache_key(TOP_REVIEWERS_PREFIX, gen=generation, limit=limit)
    if generation is not None:
        cached = cache_get(cache_key)
        if cached is not None:
            return cached

    review_count = func.count(Review.id).label("review_count")
    stmt = (
        select(Review.user_id, review_count)
        .group_by(Review.user_id)
        .order_by(review_count.desc(), Review.user_id.asc())
        .limit(limit)
    )
    rows = db.execute(stmt).all()
    users = _users_by_id(db, [row.user_id for row in rows])

    result = []
    for row in rows:
        user = users.get(row.user_id)
        if user is None:
            logger.warning(f"Reviews reference missing user {row.user_id}")
        result.append({
            "user_id": row.user_id,
            "username": user.username if user else UNKNOWN_USER,
            "email": user.email if user else UNKNOWN_USER,
            "picture": user.picture if user else None,
            "review_count": row.review_count,
        })

    if generation is not None:
        cache_set(cache_key, result, ttl=get_settings().cache_ttl_rankings)
    return result


def get_fastest_readers(db: Session) -> list[dict]:
    """
    Users ranked by mean reading time, fastest first.

    Only entries with a finish_date count. Entries without a start_date, or
    finishing before they started, are skipped and logged.

    Returns:
        List of dicts with user_id, username, average_duration (seconds),
        average_duration_days, completed_count
    """
    generation = get_generation(FASTEST_READERS_GENERATION)
    cache_key = make_cache_key(FASTEST_READERS_PREFIX, gen=generation)
    if generation is not None:
        cached = cache_get(cache_key)
        if cached is not None:
            return cached

    stmt = (
        select(
            ReadingListEntry.user_id,
            ReadingListEntry.book_id,
            ReadingListEntry.start_date,
            ReadingListEntry.finish_date,
        )
        .where(ReadingListEntry.finish_date.is_not(None))
    )

    totals: dict[int, float] = defaultdict(float)
    counts: dict[int, int] = defaultdict(int)
    for row in db.execute(stmt):
        if row.start_date is None:
            logger.warning(
                f"Skipping entry {row.user_id}/{row.book_id}: finished without start_date"
            )
            continue
        duration = (as_utc(row.finish_date) - as_utc(row.start_date)).total_seconds()
        if duration < 0:
            logger.warning(
                f"Skipping entry {row.user_id}/{row.book_id}: finish_date before start_date"
            )
            continue
        totals[row.user_id] += duration
        counts[row.user_id] += 1

    users = _users_by_id(db, list(totals))

    result = []
    for user_id, total in totals.items():
        average = total / counts[user_id]
        user = users.get(user_id)
        result.append({
            "user_id": user_id,
            "username": user.username if user else UNKNOWN_USER,
            "average_duration": average,
            "average_duration_days": average / SECONDS_PER_DAY,
            "completed_count": counts[user_id],
        })
    result.sort(key=lambda item: (item["average_duration"], item["user_id"]))

    if generation is not None:
        cache_set(cache_key, result, ttl=get_settings().cache_ttl_rankings)
    return result
