"""
Reviews Router

Endpoints:
- GET /books/{book_id}/reviews - List reviews for a book
- POST /books/{book_id}/reviews - Create or replace a user's review
- DELETE /books/{book_id}/reviews - Delete all reviews of a book
- GET /books/{book_id}/rating - Rating aggregates and distribution
- GET /reviews/{review_id} - Get a specific review
- PUT /reviews/{review_id} - Update a review
- DELETE /reviews/{review_id} - Delete a review
- GET /users/{user_id}/reviews - Get reviews by a user

Business Rules:
- One review per user per book (enforced by database constraint); posting
  again updates the existing review and answers 200 instead of 201
- Every write refreshes the book's review_count and average_rating in the
  same transaction
"""

import logging
import math

from fastapi import APIRouter, Request, Response, status
from sqlalchemy import func, select
from sqlalchemy.orm import selectinload

from app.config import get_settings
from app.dependencies import (
    DbSession,
    Pagination,
    get_book_or_404,
    get_user_or_404,
)
from app.exceptions import NotFoundError
from app.models import Review
from app.schemas import (
    BookRatingStats,
    ReviewCreate,
    ReviewListResponse,
    ReviewResponse,
    ReviewUpdate,
)
from app.services import reviews as review_service
from app.services.rate_limiter import limiter
from app.services.ratings import get_rating_distribution

logger = logging.getLogger(__name__)

settings = get_settings()

# =============================================================================
# Router Configuration
# =============================================================================

router = APIRouter(
    tags=["Reviews"],
    responses={
        404: {"description": "Review or book not found"},
    },
)


# =============================================================================
# Helper Functions
# =============================================================================

def get_review_or_404(db: DbSession, review_id: int) -> Review:
    """Get a review by ID with user and book loaded."""
    stmt = (
        select(Review)
        .options(selectinload(Review.user), selectinload(Review.book))
        .where(Review.id == review_id)
    )
    review = db.execute(stmt).scalar_one_or_none()
    if review is None:
        raise NotFoundError("Review", review_id)
    return review


def paginated_reviews(db: DbSession, pagination: Pagination, *criteria) -> ReviewListResponse:
    """Newest reviews first."""
    count_stmt = select(func.count(Review.id)).where(*criteria)
    total = db.execute(count_stmt).scalar() or 0

    pages = math.ceil(total / pagination.per_page) if total > 0 else 0

    stmt = (
        select(Review)
        .options(selectinload(Review.user), selectinload(Review.book))
        .where(*criteria)
        .order_by(Review.review_date.desc(), Review.id.desc())
        .offset(pagination.skip)
        .limit(pagination.per_page)
    )
    reviews = db.execute(stmt).scalars().all()

    return ReviewListResponse(
        items=[ReviewResponse.model_validate(r) for r in reviews],
        total=total,
        page=pagination.page,
        per_page=pagination.per_page,
        pages=pages,
    )


# =============================================================================
# Book Review Endpoints
# =============================================================================

@router.get(
    "/books/{book_id}/reviews",
    response_model=ReviewListResponse,
    summary="List reviews for a book",
)
@limiter.limit(settings.rate_limit_default)
def list_book_reviews(
    request: Request,
    book_id: int,
    db: DbSession,
    pagination: Pagination,
) -> ReviewListResponse:
    get_book_or_404(db, book_id)
    return paginated_reviews(db, pagination, Review.book_id == book_id)


@router.post(
    "/books/{book_id}/reviews",
    response_model=ReviewResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a review",
    description=(
        "Create a review for a book. If the user already reviewed the book, "
        "the existing review is updated and 200 is returned."
    ),
    responses={200: {"description": "Existing review updated"}},
)
@limiter.limit(settings.rate_limit_write)
def create_review(
    request: Request,
    response: Response,
    book_id: int,
    review_data: ReviewCreate,
    db: DbSession,
) -> ReviewResponse:
    """
    Raises:
        NotFoundError: If the book or user does not exist
    """
    review, created = review_service.upsert_review(
        db,
        book_id=book_id,
        user_id=review_data.user_id,
        rating=review_data.rating,
        comment=review_data.comment,
    )
    if not created:
        response.status_code = status.HTTP_200_OK

    return ReviewResponse.model_validate(get_review_or_404(db, review.id))


@router.delete(
    "/books/{book_id}/reviews",
    summary="Delete all reviews of a book",
    description="Removes every review; the book's rating aggregates are reset.",
)
@limiter.limit(settings.rate_limit_write)
def delete_book_reviews(
    request: Request,
    book_id: int,
    db: DbSession,
) -> dict:
    deleted = review_service.delete_book_reviews(db, book_id)
    return {"book_id": book_id, "deleted": deleted}


@router.get(
    "/books/{book_id}/rating",
    response_model=BookRatingStats,
    summary="Get book rating statistics",
)
@limiter.limit(settings.rate_limit_default)
def get_book_rating_stats(
    request: Request,
    book_id: int,
    db: DbSession,
) -> BookRatingStats:
    """
    Stored aggregates (review_count, average_rating) plus the count of
    reviews for each star value.
    """
    book = get_book_or_404(db, book_id)
    return BookRatingStats(
        book_id=book.id,
        review_count=book.review_count,
        average_rating=book.average_rating,
        rating_distribution=get_rating_distribution(db, book_id),
    )


# =============================================================================
# Individual Review Endpoints
# =============================================================================

@router.get(
    "/reviews/{review_id}",
    response_model=ReviewResponse,
    summary="Get a review by ID",
)
@limiter.limit(settings.rate_limit_default)
def get_review(
    request: Request,
    review_id: int,
    db: DbSession,
) -> ReviewResponse:
    return ReviewResponse.model_validate(get_review_or_404(db, review_id))


@router.put(
    "/reviews/{review_id}",
    response_model=ReviewResponse,
    summary="Update a review",
)
@limiter.limit(settings.rate_limit_write)
def update_review(
    request: Request,
    review_id: int,
    review_data: ReviewUpdate,
    db: DbSession,
) -> ReviewResponse:
    """Only provided fields are changed; the book's average follows a rating change."""
    changes = review_data.model_dump(exclude_unset=True)
    review_service.update_review(db, review_id, changes)
    return ReviewResponse.model_validate(get_review_or_404(db, review_id))


@router.delete(
    "/reviews/{review_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a review",
)
@limiter.limit(settings.rate_limit_write)
def delete_review(
    request: Request,
    review_id: int,
    db: DbSession,
) -> None:
    review_service.delete_review(db, review_id)


# =============================================================================
# User Review Endpoints
# =============================================================================

@router.get(
    "/users/{user_id}/reviews",
    response_model=ReviewListResponse,
    summary="Get reviews by a user",
)
@limiter.limit(settings.rate_limit_default)
def list_user_reviews(
    request: Request,
    user_id: int,
    db: DbSession,
    pagination: Pagination,
) -> ReviewListResponse:
    get_user_or_404(db, user_id)
    return paginated_reviews(db, pagination, Review.user_id == user_id)
