#!/usr/bin/env python3
"""
Aggregate Repair Script

Recomputes review_count and average_rating of every book from its reviews.
Needed only when reviews were written around the service layer (manual SQL,
bulk imports). Safe to run while the API is serving requests: each book is
refreshed in its own transaction under its write lock.

Usage:
    # From project root with venv activated:
    python scripts/recalculate_aggregates.py

    # Only report books whose stored values differ, change nothing:
    python scripts/recalculate_aggregates.py --check

added_to_list_count is a lifetime counter with no source rows to rebuild
it from, so it is not touched.
"""

import argparse
import logging
import sys
from pathlib import Path

# Add project root to path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from sqlalchemy import func, select

from app.database import SessionLocal
from app.models import Book, Review
from app.services.ratings import compute_average, recalculate_all_book_ratings

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def find_drift(db) -> list[tuple[int, int, object, int, object]]:
    """
    Books whose stored aggregates disagree with their reviews.

    Returns:
        (book_id, stored_count, stored_average, actual_count, actual_average)
    """
    stats = (
        select(
            Review.book_id,
            func.count(Review.id).label("review_count"),
            func.sum(Review.rating).label("rating_sum"),
        )
        .group_by(Review.book_id)
        .subquery()
    )
    stmt = (
        select(Book.id, Book.review_count, Book.average_rating, stats.c.review_count, stats.c.rating_sum)
        .outerjoin(stats, stats.c.book_id == Book.id)
        .order_by(Book.id)
    )

    drift = []
    for book_id, stored_count, stored_avg, count, rating_sum in db.execute(stmt):
        count = count or 0
        actual_avg = compute_average(int(rating_sum or 0), count)
        if stored_count != count or stored_avg != actual_avg:
            drift.append((book_id, stored_count, stored_avg, count, actual_avg))
    return drift


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Recompute book rating aggregates from their reviews"
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Report drifted books and exit non-zero if any, without writing",
    )
    args = parser.parse_args()

    db = SessionLocal()
    try:
        drift = find_drift(db)
        for book_id, stored_count, stored_avg, count, actual_avg in drift:
            logger.warning(
                f"Book {book_id}: stored ({stored_count}, {stored_avg}) "
                f"actual ({count}, {actual_avg})"
            )
        logger.info(f"{len(drift)} books with drifted aggregates")

        if args.check:
            return 1 if drift else 0

        refreshed = recalculate_all_book_ratings(db)
        logger.info(f"Refreshed {refreshed} books")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
