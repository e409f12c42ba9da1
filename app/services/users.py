"""
User Service

Registration, profile updates and account deletion.

Deleting a user removes their reviews and reading-list entries. Every book
they reviewed gets its rating aggregates refreshed in the same transaction;
the books' added_to_list_count is left as it was.
"""

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.exceptions import DuplicateError, NotFoundError
from app.models import Review, User
from app.services.cache import invalidate_reader_rankings, invalidate_reviewer_rankings
from app.services.locking import book_locks
from app.services.ratings import lock_book, refresh_book_rating
from app.services.security import hash_password
from app.services.transactions import run_in_transaction

logger = logging.getLogger(__name__)


def get_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError("User", user_id)
    return user


def _check_unique(db: Session, username: str | None, email: str | None, exclude_id: int | None = None) -> None:
    if username is not None:
        stmt = select(User.id).where(User.username == username)
        existing = db.execute(stmt).scalar_one_or_none()
        if existing is not None and existing != exclude_id:
            raise DuplicateError(f"Username '{username}' is already taken")
    if email is not None:
        stmt = select(User.id).where(User.email == email)
        existing = db.execute(stmt).scalar_one_or_none()
        if existing is not None and existing != exclude_id:
            raise DuplicateError(f"Email '{email}' is already registered")


def create_user(
    db: Session,
    username: str,
    email: str,
    password: str | None = None,
    picture: str | None = None,
) -> User:
    """
    Register a user. The password is stored as a bcrypt hash.

    Raises:
        DuplicateError: If the username or email is taken
    """
    def work(session: Session) -> User:
        _check_unique(session, username, email)
        user = User(
            username=username,
            email=email,
            hashed_password=hash_password(password) if password else None,
            picture=picture,
        )
        session.add(user)
        session.flush()
        return user

    user = run_in_transaction(db, work)
    logger.info(f"User registered: {user.username} (id={user.id})")
    return user


def update_user(db: Session, user_id: int, changes: dict[str, Any]) -> User:
    """
    Update profile fields. A "password" change is hashed before storing.

    Raises:
        NotFoundError: If the user does not exist
        DuplicateError: If the new username or email is taken
    """
    def work(session: Session) -> User:
        user = get_user(session, user_id)
        _check_unique(session, changes.get("username"), changes.get("email"), exclude_id=user_id)
        for field, value in changes.items():
            if field == "password":
                user.hashed_password = hash_password(value) if value else None
            else:
                setattr(user, field, value)
        return user

    user = run_in_transaction(db, work)
    invalidate_reviewer_rankings()
    invalidate_reader_rankings()
    logger.info(f"User {user_id} updated: {sorted(changes)}")
    return user


def _reviewed_book_ids(db: Session, user_id: int) -> set[int]:
    stmt = select(Review.book_id).where(Review.user_id == user_id)
    return set(db.execute(stmt).scalars().all())


def delete_user(db: Session, user_id: int) -> None:
    """
    Delete a user with their reviews and reading-list entries.

    The per-book locks are taken for the books reviewed at call time. If the
    user reviewed another book before the transaction started, nothing is
    deleted and the attempt is repeated with the wider lock set.

    Raises:
        NotFoundError: If the user does not exist
    """
    get_user(db, user_id)
    book_ids = _reviewed_book_ids(db, user_id)

    def work(session: Session) -> tuple[set[int], bool]:
        user = get_user(session, user_id)
        affected = _reviewed_book_ids(session, user_id)
        if not affected <= book_ids:
            return affected, False
        for book_id in sorted(affected):
            lock_book(session, book_id)
        session.delete(user)
        session.flush()
        for book_id in sorted(affected):
            refresh_book_rating(session, book_id)
        return affected, True

    while True:
        with book_locks(book_ids):
            affected, deleted = run_in_transaction(db, work)
        if deleted:
            break
        logger.info(f"User {user_id} reviewed more books meanwhile; widening locks")
        book_ids = book_ids | affected

    invalidate_reviewer_rankings()
    invalidate_reader_rankings()
    logger.info(f"User {user_id} deleted; refreshed {len(affected)} books")
