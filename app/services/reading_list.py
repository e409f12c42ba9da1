"""
Reading List Service

Create, progress and remove reading-list entries.

A new entry and the +1 on its book's added_to_list_count are committed in
one transaction. Updates, start/finish transitions and deletions never
touch the counter.

Date rules checked on every write:
- finish_date must not be earlier than start_date
- a completed entry must have a finish_date
"""

import logging
from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session

from app.exceptions import DuplicateError, InvalidInputError, NotFoundError
from app.models import Book, ReadingListEntry, ReadingStatus, User
from app.services.cache import invalidate_reader_rankings
from app.services.list_counts import on_entry_added
from app.services.transactions import run_in_transaction
from app.utils import as_utc, utcnow

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = {"status", "start_date", "finish_date"}


def validate_entry_dates(
    status: str,
    start_date: datetime | None,
    finish_date: datetime | None,
) -> None:
    """
    Raise InvalidInputError if the status/date combination is inconsistent.
    """
    try:
        status = ReadingStatus(status)
    except ValueError:
        allowed = ", ".join(s.value for s in ReadingStatus)
        raise InvalidInputError(f"status must be one of: {allowed}") from None

    if status is ReadingStatus.COMPLETED and finish_date is None:
        raise InvalidInputError("A completed entry requires a finish_date")

    if start_date is not None and finish_date is not None:
        if as_utc(finish_date) < as_utc(start_date):
            raise InvalidInputError("finish_date must not be earlier than start_date")


def get_entry(db: Session, user_id: int, book_id: int) -> ReadingListEntry:
    """
    Raises:
        NotFoundError: If the user has no entry for the book
    """
    entry = db.get(ReadingListEntry, (user_id, book_id), populate_existing=True)
    if entry is None:
        raise NotFoundError("Reading list entry", f"{user_id}/{book_id}")
    return entry


def add_entry(
    db: Session,
    user_id: int,
    book_id: int,
    status: str = ReadingStatus.WANT_TO_READ.value,
    start_date: datetime | None = None,
    finish_date: datetime | None = None,
) -> ReadingListEntry:
    """
    Put a book on a user's reading list and count the addition.

    Returns:
        The created entry

    Raises:
        NotFoundError: If the user or book does not exist
        DuplicateError: If the user already has an entry for the book
        InvalidInputError: If the status/dates are inconsistent
    """
    validate_entry_dates(status, start_date, finish_date)

    def work(session: Session) -> ReadingListEntry:
        if session.get(User, user_id) is None:
            raise NotFoundError("User", user_id)
        if session.get(Book, book_id) is None:
            raise NotFoundError("Book", book_id)
        if session.get(ReadingListEntry, (user_id, book_id)) is not None:
            raise DuplicateError(
                f"Book {book_id} is already on the reading list of user {user_id}"
            )

        entry = ReadingListEntry(
            user_id=user_id,
            book_id=book_id,
            status=ReadingStatus(status).value,
            start_date=start_date,
            finish_date=finish_date,
        )
        session.add(entry)
        session.flush()
        on_entry_added(session, book_id)
        return entry

    entry = run_in_transaction(db, work)
    invalidate_reader_rankings()

    logger.info(f"User {user_id} added book {book_id} to reading list ({entry.status})")
    return entry


def _apply(db: Session, user_id: int, book_id: int, changes: dict[str, Any]) -> ReadingListEntry:
    def work(session: Session) -> ReadingListEntry:
        entry = get_entry(session, user_id, book_id)
        status = changes.get("status", entry.status)
        start_date = changes.get("start_date", entry.start_date)
        finish_date = changes.get("finish_date", entry.finish_date)
        validate_entry_dates(status, start_date, finish_date)

        entry.status = ReadingStatus(status).value
        entry.start_date = start_date
        entry.finish_date = finish_date
        return entry

    entry = run_in_transaction(db, work)
    invalidate_reader_rankings()
    return entry


def update_entry(
    db: Session,
    user_id: int,
    book_id: int,
    changes: dict[str, Any],
) -> ReadingListEntry:
    """
    Change status and/or dates of an entry. Omitted fields keep their value.

    Raises:
        NotFoundError: If the entry does not exist
        InvalidInputError: If the resulting status/dates are inconsistent
    """
    unknown = set(changes) - UPDATABLE_FIELDS
    if unknown:
        raise InvalidInputError(f"Cannot update fields: {', '.join(sorted(unknown))}")

    entry = _apply(db, user_id, book_id, changes)
    logger.info(f"Reading list entry {user_id}/{book_id} updated: {sorted(changes)}")
    return entry


def start_reading(db: Session, user_id: int, book_id: int) -> ReadingListEntry:
    """Mark an entry as being read from now on. Any earlier finish_date is cleared."""
    entry = _apply(
        db,
        user_id,
        book_id,
        {
            "status": ReadingStatus.READING.value,
            "start_date": utcnow(),
            "finish_date": None,
        },
    )
    logger.info(f"User {user_id} started reading book {book_id}")
    return entry


def finish_reading(db: Session, user_id: int, book_id: int) -> ReadingListEntry:
    """Mark an entry as completed now."""
    entry = _apply(
        db,
        user_id,
        book_id,
        {"status": ReadingStatus.COMPLETED.value, "finish_date": utcnow()},
    )
    logger.info(f"User {user_id} finished reading book {book_id}")
    return entry


def delete_entry(db: Session, user_id: int, book_id: int) -> None:
    """
    Remove an entry. The book's added_to_list_count is left unchanged.

    Raises:
        NotFoundError: If the entry does not exist
    """
    run_in_transaction(db, lambda session: session.delete(get_entry(session, user_id, book_id)))
    invalidate_reader_rankings()
    logger.info(f"Reading list entry {user_id}/{book_id} deleted")
