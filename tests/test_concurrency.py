"""
Concurrency Tests

Many writers hit the same book at once, each thread with its own session,
and the aggregates must come out exactly right.

These use a file-backed SQLite database: an in-memory StaticPool database
shares one connection between threads, which would hide the races being
tested.
"""

from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal

import pytest
from sqlalchemy import create_engine, func, select
from sqlalchemy.orm import sessionmaker

from app.database import Base
from app.models import Book, ReadingListEntry, Review, User
from app.services.list_counts import increment_added_to_list_count
from app.services.reading_list import add_entry
from app.services.reviews import delete_review, upsert_review

WRITERS = 12


@pytest.fixture
def file_session_factory(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'concurrency.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=engine)

    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)

    engine.dispose()


@pytest.fixture
def seeded(file_session_factory):
    """One book and WRITERS users. Returns (book_id, [user_ids])."""
    with file_session_factory() as db:
        book = Book(title="Contended")
        users = [User(email=f"w{i}@example.com", username=f"w{i}") for i in range(WRITERS)]
        db.add(book)
        db.add_all(users)
        db.commit()
        return book.id, [u.id for u in users]


def run_concurrently(session_factory, fn, args_list):
    """Call fn(session, *args) for each args tuple, one thread and session each."""
    def call(args):
        with session_factory() as db:
            return fn(db, *args)

    with ThreadPoolExecutor(max_workers=len(args_list)) as pool:
        return list(pool.map(call, args_list))


class TestConcurrentReviews:
    """Simultaneous review writers on one book."""

    def test_concurrent_creates_count_every_review(self, file_session_factory, seeded):
        book_id, user_ids = seeded
        ratings = [i % 6 for i in range(WRITERS)]

        run_concurrently(
            file_session_factory,
            lambda db, user_id, rating: upsert_review(db, book_id, user_id, rating),
            list(zip(user_ids, ratings)),
        )

        with file_session_factory() as db:
            book = db.get(Book, book_id)
            assert book.review_count == WRITERS
            expected = (Decimal(sum(ratings)) / WRITERS).quantize(Decimal("0.01"))
            assert book.average_rating == expected

    def test_concurrent_deletes_reach_zero(self, file_session_factory, seeded):
        book_id, user_ids = seeded
        with file_session_factory() as db:
            review_ids = [upsert_review(db, book_id, uid, 3)[0].id for uid in user_ids]

        run_concurrently(
            file_session_factory,
            lambda db, review_id: delete_review(db, review_id),
            [(rid,) for rid in review_ids],
        )

        with file_session_factory() as db:
            book = db.get(Book, book_id)
            assert book.review_count == 0
            assert book.average_rating is None
            assert db.execute(select(func.count(Review.id))).scalar() == 0


class TestConcurrentListCounts:
    """Simultaneous increments of added_to_list_count."""

    def test_no_increment_is_lost(self, file_session_factory, seeded):
        book_id, _ = seeded

        run_concurrently(
            file_session_factory,
            lambda db, _: increment_added_to_list_count(db, book_id),
            [(i,) for i in range(WRITERS)],
        )

        with file_session_factory() as db:
            assert db.get(Book, book_id).added_to_list_count == WRITERS

    def test_concurrent_entries_each_counted(self, file_session_factory, seeded):
        book_id, user_ids = seeded

        run_concurrently(
            file_session_factory,
            lambda db, user_id: add_entry(db, user_id, book_id),
            [(uid,) for uid in user_ids],
        )

        with file_session_factory() as db:
            assert db.get(Book, book_id).added_to_list_count == WRITERS
            entries = db.execute(select(func.count()).select_from(ReadingListEntry)).scalar()
            assert entries == WRITERS
