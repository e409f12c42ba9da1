"""
Ratings Service

Maintains the denormalized rating fields on the Book model:
- review_count: Number of Review rows referencing the book
- average_rating: Mean of their ratings, NULL while there are none

The fields are always recomputed from the full review set rather than
patched incrementally, so they cannot drift even if an earlier update was
lost. The cost is one aggregate query over a single book's reviews.

refresh_book_rating() never commits. It is called inside the transaction
that changed the reviews (see app.services.reviews), so the review change
and the counters become visible together or not at all.
"""

import logging
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.exceptions import NotFoundError
from app.models import Book
from app.models.review import Review
from app.services.locking import book_lock
from app.services.transactions import run_in_transaction

logger = logging.getLogger(__name__)

RATING_QUANTUM = Decimal("0.01")


def lock_book(db: Session, book_id: int) -> Book:
    """
    Load a book with a row lock held until the transaction ends.

    Taking this lock before touching a book's reviews serializes aggregate
    writers across processes. SQLite ignores FOR UPDATE; there the
    in-process lock from app.services.locking does the work.

    Raises:
        NotFoundError: If the book does not exist
    """
    stmt = select(Book).where(Book.id == book_id).with_for_update()
    book = db.execute(stmt).scalar_one_or_none()
    if book is None:
        raise NotFoundError("Book", book_id)
    return book


def compute_average(rating_sum: int, count: int) -> Decimal | None:
    """Mean rating rounded half-up to two places; None when there are no ratings."""
    if count == 0:
        return None
    return (Decimal(rating_sum) / Decimal(count)).quantize(
        RATING_QUANTUM, rounding=ROUND_HALF_UP
    )


def refresh_book_rating(db: Session, book_id: int) -> Book:
    """
    Recalculate a book's review_count and average_rating.

    Pending changes in the session are flushed first so the recount sees
    them.

    Args:
        db: Session holding the caller's open transaction
        book_id: ID of the book to refresh

    Returns:
        The refreshed Book

    Raises:
        NotFoundError: If the book does not exist
    """
    db.flush()
    book = lock_book(db, book_id)

    stmt = select(
        func.count(Review.id),
        func.coalesce(func.sum(Review.rating), 0),
    ).where(Review.book_id == book_id)
    review_count, rating_sum = db.execute(stmt).one()

    book.review_count = review_count
    book.average_rating = compute_average(int(rating_sum), review_count)
    db.flush()

    logger.debug(
        f"Refreshed book {book_id}: review_count={book.review_count}, "
        f"average_rating={book.average_rating}"
    )
    return book


def get_rating_distribution(db: Session, book_id: int) -> dict[int, int]:
    """Count of reviews per star value (0-5) for one book."""
    distribution = {rating: 0 for rating in range(0, 6)}
    stmt = (
        select(Review.rating, func.count(Review.id))
        .where(Review.book_id == book_id)
        .group_by(Review.rating)
    )
    for rating, count in db.execute(stmt).all():
        distribution[rating] = count
    return distribution


def recalculate_all_book_ratings(db: Session) -> int:
    """
    Recalculate rating aggregations for every book.

    Each book is refreshed in its own transaction under its write lock, so
    the repair can run while the API is serving traffic. Used by
    scripts/recalculate_aggregates.py to fix data written outside the
    service layer.

    Returns:
        Number of books refreshed
    """
    book_ids = db.execute(select(Book.id).order_by(Book.id)).scalars().all()
    db.commit()

    for book_id in book_ids:
        with book_lock(book_id):
            run_in_transaction(db, lambda session, bid=book_id: refresh_book_rating(session, bid))

    logger.info(f"Recalculated rating aggregates for {len(book_ids)} books")
    return len(book_ids)
