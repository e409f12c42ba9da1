"""
pytest Fixtures for Reading Tracker API Tests

Shared fixtures used across all test files.

FIXTURE SCOPES:
- function (default): New instance per test function
- session: Single instance for entire test session

Every test gets its own SQLite in-memory database. The service layer
commits and rolls back on its own, so tests cannot be isolated by wrapping
them in an outer transaction; a fresh database per test is simplest.
"""

# =============================================================================
# TEST ENVIRONMENT SETUP
# =============================================================================
# IMPORTANT: Set environment variables BEFORE importing the app.
# Settings are cached on first use.
import os

os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["CACHE_ENABLED"] = "false"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENVIRONMENT"] = "testing"
os.environ["CONFLICT_RETRY_BACKOFF"] = "0"

from collections.abc import Generator
from datetime import UTC, datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import Base, get_db
from app.main import app
from app.models import Book, Category, ReadingListEntry, ReadingStatus, Review, User
from app.services.reviews import upsert_review
from app.services.security import hash_password

# =============================================================================
# DATABASE FIXTURES
# =============================================================================
# SQLite in-memory: fast and needs no external database.
# SQLite ignores SELECT ... FOR UPDATE and does not enforce foreign keys by
# default; the tests that need real locking use a file database instead
# (see test_concurrency.py).


@pytest.fixture
def engine():
    """
    Create a SQLite in-memory database engine with all tables.

    StaticPool keeps the single connection alive; without it the in-memory
    database would disappear between connections.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)

    yield engine

    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory) -> Generator[Session, None, None]:
    """Database session for one test."""
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """
    Test client whose requests use the test database.

    The get_db dependency is overridden to hand out the test session.
    """

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# =============================================================================
# SAMPLE DATA FIXTURES
# =============================================================================


@pytest.fixture
def sample_category(db_session: Session) -> Category:
    category = Category(name="Dystopian")
    db_session.add(category)
    db_session.commit()
    db_session.refresh(category)
    return category


@pytest.fixture
def sample_book(db_session: Session, sample_category: Category) -> Book:
    """A book with one category and no reviews."""
    book = Book(
        title="1984",
        author="George Orwell",
        publish_year=1949,
        description="A dystopian novel set in a totalitarian society.",
        categories=[sample_category],
    )
    db_session.add(book)
    db_session.commit()
    db_session.refresh(book)
    return book


@pytest.fixture
def second_book(db_session: Session) -> Book:
    book = Book(title="Animal Farm", author="George Orwell", publish_year=1945)
    db_session.add(book)
    db_session.commit()
    db_session.refresh(book)
    return book


@pytest.fixture
def multiple_books(db_session: Session) -> list[Book]:
    """Fifteen books, more than one default page."""
    books = []
    for i in range(15):
        book = Book(
            title=f"Test Book {i + 1}",
            author="Jane Austen" if i % 2 == 0 else "Isaac Asimov",
            publish_year=1900 + i,
        )
        books.append(book)
        db_session.add(book)

    db_session.commit()
    for book in books:
        db_session.refresh(book)
    return books


@pytest.fixture
def sample_user(db_session: Session) -> User:
    user = User(
        email="testuser@example.com",
        username="testuser",
        hashed_password=hash_password("SecurePass123"),
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def second_user(db_session: Session) -> User:
    user = User(email="seconduser@example.com", username="seconduser")
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def make_users(db_session: Session):
    """Factory creating `n` users named reader1..readerN."""

    def _make(n: int) -> list[User]:
        users = [
            User(email=f"reader{i}@example.com", username=f"reader{i}")
            for i in range(1, n + 1)
        ]
        db_session.add_all(users)
        db_session.commit()
        for user in users:
            db_session.refresh(user)
        return users

    return _make


@pytest.fixture
def sample_review(
    db_session: Session,
    sample_book: Book,
    sample_user: User,
) -> Review:
    """A 4-star review written through the service, so aggregates are set."""
    review, _ = upsert_review(
        db_session,
        book_id=sample_book.id,
        user_id=sample_user.id,
        rating=4,
        comment="I really enjoyed reading this book.",
    )
    return review


@pytest.fixture
def completed_entry(
    db_session: Session,
    sample_book: Book,
    sample_user: User,
) -> ReadingListEntry:
    """A finished entry read in 3 days, inserted directly (counter untouched)."""
    start = datetime(2024, 1, 1, tzinfo=UTC)
    entry = ReadingListEntry(
        user_id=sample_user.id,
        book_id=sample_book.id,
        status=ReadingStatus.COMPLETED.value,
        start_date=start,
        finish_date=start + timedelta(days=3),
    )
    db_session.add(entry)
    db_session.commit()
    return entry
