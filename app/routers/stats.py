"""
Statistics Router

Endpoints:
- GET /stats/top-reviewers - Users with the most reviews
- GET /stats/fastest-readers - Users with the shortest mean reading time
"""

from typing import List

from fastapi import APIRouter, Query, Request

from app.config import get_settings
from app.dependencies import DbSession
from app.schemas import FastestReader, TopReviewer
from app.services.rankings import MAX_TOP_REVIEWERS, get_fastest_readers, get_top_reviewers
from app.services.rate_limiter import limiter

settings = get_settings()

router = APIRouter(
    prefix="/stats",
    tags=["Statistics"],
)


@router.get(
    "/top-reviewers",
    response_model=List[TopReviewer],
    summary="Top reviewers",
    description="Users ordered by number of reviews, ties broken by user id.",
)
@limiter.limit(settings.rate_limit_default)
def top_reviewers(
    request: Request,
    db: DbSession,
    limit: int = Query(
        default=settings.top_reviewers_default_limit,
        ge=1,
        le=MAX_TOP_REVIEWERS,
        description="Number of users to return",
    ),
) -> List[TopReviewer]:
    return [TopReviewer(**row) for row in get_top_reviewers(db, limit)]


@router.get(
    "/fastest-readers",
    response_model=List[FastestReader],
    summary="Fastest readers",
    description=(
        "Users ordered by mean time from start to finish over their "
        "completed entries, fastest first."
    ),
)
@limiter.limit(settings.rate_limit_default)
def fastest_readers(
    request: Request,
    db: DbSession,
) -> List[FastestReader]:
    return [FastestReader(**row) for row in get_fastest_readers(db)]
