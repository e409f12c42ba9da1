"""
Review Mutations

Every change to a book's review set goes through this module. Each change
runs as one unit of work:

    with book_lock(book_id):            # in-process serialization
        BEGIN
        SELECT book ... FOR UPDATE      # cross-process serialization
        insert / update / delete review rows
        refresh_book_rating(book_id)    # full recount, same transaction
        COMMIT

A failure at any step rolls back the review change together with the
counter update, so review_count and average_rating always describe the
committed review set.
"""

import logging
from collections.abc import Callable
from typing import Any, TypeVar

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from app.exceptions import InvalidInputError, NotFoundError
from app.models import Review, User
from app.services.cache import invalidate_reviewer_rankings
from app.services.locking import book_lock
from app.services.ratings import lock_book, refresh_book_rating
from app.services.transactions import run_in_transaction
from app.utils import utcnow

logger = logging.getLogger(__name__)

T = TypeVar("T")

MIN_RATING = 0
MAX_RATING = 5

UPDATABLE_FIELDS = {"rating", "comment"}


def validate_rating(rating: Any) -> int:
    """Return the rating if it is an integer in [0, 5], else raise InvalidInputError."""
    if isinstance(rating, bool) or not isinstance(rating, int):
        raise InvalidInputError("rating must be an integer")
    if not MIN_RATING <= rating <= MAX_RATING:
        raise InvalidInputError(
            f"rating must be between {MIN_RATING} and {MAX_RATING}"
        )
    return rating


def mutate_book_reviews(db: Session, book_id: int, work: Callable[[Session], T]) -> T:
    """
    Apply `work` to a book's reviews and refresh the book's aggregates.

    Holds the book's write lock for the whole unit of work and commits once.

    Raises:
        NotFoundError: If the book does not exist
    """
    def unit(session: Session) -> T:
        lock_book(session, book_id)
        result = work(session)
        refresh_book_rating(session, book_id)
        return result

    with book_lock(book_id):
        result = run_in_transaction(db, unit)

    invalidate_reviewer_rankings()
    return result


def _get_review(db: Session, review_id: int) -> Review:
    review = db.get(Review, review_id, populate_existing=True)
    if review is None:
        raise NotFoundError("Review", review_id)
    return review


def upsert_review(
    db: Session,
    book_id: int,
    user_id: int,
    rating: int,
    comment: str | None = None,
) -> tuple[Review, bool]:
    """
    Create the user's review of a book, or update it if one exists.

    Returns:
        (review, created) where created is False for an in-place update

    Raises:
        NotFoundError: If the book or user does not exist
        InvalidInputError: If the rating is out of range
    """
    validate_rating(rating)

    def work(session: Session) -> tuple[Review, bool]:
        if session.get(User, user_id) is None:
            raise NotFoundError("User", user_id)

        stmt = select(Review).where(
            Review.book_id == book_id,
            Review.user_id == user_id,
        )
        review = session.execute(stmt).scalar_one_or_none()

        if review is not None:
            review.rating = rating
            review.comment = comment
            review.review_date = utcnow()
            return review, False

        review = Review(
            book_id=book_id,
            user_id=user_id,
            rating=rating,
            comment=comment,
        )
        session.add(review)
        return review, True

    review, created = mutate_book_reviews(db, book_id, work)

    action = "created" if created else "updated"
    logger.info(f"Review {review.id} {action}: user={user_id} book={book_id} rating={rating}")
    return review, created


def update_review(db: Session, review_id: int, changes: dict[str, Any]) -> Review:
    """
    Change the rating and/or comment of an existing review.

    Raises:
        NotFoundError: If the review does not exist
        InvalidInputError: If the rating is out of range or a field is not updatable
    """
    unknown = set(changes) - UPDATABLE_FIELDS
    if unknown:
        raise InvalidInputError(f"Cannot update fields: {', '.join(sorted(unknown))}")
    if "rating" in changes:
        validate_rating(changes["rating"])

    book_id = _get_review(db, review_id).book_id

    def work(session: Session) -> Review:
        review = _get_review(session, review_id)
        for field, value in changes.items():
            setattr(review, field, value)
        if changes:
            review.review_date = utcnow()
        return review

    review = mutate_book_reviews(db, book_id, work)
    logger.info(f"Review {review_id} updated: {sorted(changes)}")
    return review


def delete_review(db: Session, review_id: int) -> None:
    """
    Delete a review and refresh its book's aggregates.

    Raises:
        NotFoundError: If the review does not exist
    """
    book_id = _get_review(db, review_id).book_id

    def work(session: Session) -> None:
        session.delete(_get_review(session, review_id))

    mutate_book_reviews(db, book_id, work)
    logger.info(f"Review {review_id} deleted from book {book_id}")


def delete_book_reviews(db: Session, book_id: int) -> int:
    """
    Delete every review of a book. The book ends with review_count 0 and
    average_rating NULL.

    Returns:
        Number of reviews deleted

    Raises:
        NotFoundError: If the book does not exist
    """
    def work(session: Session) -> int:
        result = session.execute(delete(Review).where(Review.book_id == book_id))
        return result.rowcount

    deleted = mutate_book_reviews(db, book_id, work)
    logger.info(f"Deleted {deleted} reviews of book {book_id}")
    return deleted
