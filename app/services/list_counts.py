"""
List Count Service

Maintains Book.added_to_list_count, the lifetime number of times a book was
added to a reading list.

The counter only goes up. Removing a reading-list entry does not decrement
it: it counts "times added", not current membership.

Unlike the rating aggregates there is no source set to recompute it from,
so it is bumped with a single UPDATE ... SET n = n + 1 evaluated by the
database. Concurrent increments are applied one after the other by the
store and none of them is lost.
"""

import logging

from sqlalchemy import update
from sqlalchemy.orm import Session

from app.exceptions import NotFoundError
from app.models import Book
from app.services.transactions import run_in_transaction

logger = logging.getLogger(__name__)


def _bump(db: Session, book_id: int) -> None:
    stmt = (
        update(Book)
        .where(Book.id == book_id)
        .values(added_to_list_count=Book.added_to_list_count + 1)
        .execution_options(synchronize_session=False)
    )
    result = db.execute(stmt)
    if result.rowcount == 0:
        raise NotFoundError("Book", book_id)


def on_entry_added(db: Session, book_id: int) -> None:
    """
    Count one new reading-list entry for a book.

    Must be called inside the transaction that inserts the entry, exactly
    once per successful insert. Updates and rejected duplicates never call
    it. Does not commit.

    Raises:
        NotFoundError: If the book does not exist
    """
    _bump(db, book_id)
    logger.debug(f"Book {book_id}: added_to_list_count incremented by new entry")


def increment_added_to_list_count(db: Session, book_id: int) -> Book:
    """
    Explicit "add to list" action: add one to the counter and commit.

    Every call adds one; repeated calls are intentional repeated increments.

    Returns:
        The book with its updated counter

    Raises:
        NotFoundError: If the book does not exist
    """
    run_in_transaction(db, lambda session: _bump(session, book_id))

    book = db.get(Book, book_id, populate_existing=True)
    if book is None:
        raise NotFoundError("Book", book_id)
    logger.info(f"Book {book_id}: added_to_list_count is now {book.added_to_list_count}")
    return book
