#!/usr/bin/env python3
"""
Database Seed Script

Populates the database with sample data for development.

USAGE:
    # From the project root with the virtualenv active
    python scripts/seed_data.py

This script:
1. Creates tables if needed and clears existing data
2. Creates categories, books and users
3. Writes reviews and reading-list entries through the service layer, so
   every aggregate counter is maintained exactly as the API would
"""

import sys
from datetime import UTC, datetime, timedelta
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from sqlalchemy import delete
from sqlalchemy.orm import Session

from app.database import SessionLocal, create_tables
from app.models import Book, Category, ReadingListEntry, ReadingStatus, Review, User, book_categories
from app.services.reading_list import add_entry
from app.services.reviews import upsert_review
from app.services.users import create_user


def clear_data(db: Session) -> None:
    """Clear all existing data from the database."""
    print("Clearing existing data...")
    for table in (ReadingListEntry, Review, book_categories, Book, Category, User):
        db.execute(delete(table))
    db.commit()
    print("Data cleared.")


def create_categories(db: Session) -> dict[str, Category]:
    print("Creating categories...")
    names = ["Classic", "Dystopian", "Fantasy", "Science Fiction", "Romance"]
    categories = {name: Category(name=name) for name in names}
    db.add_all(categories.values())
    db.commit()
    print(f"Created {len(categories)} categories.")
    return categories


def create_books(db: Session, categories: dict[str, Category]) -> dict[str, Book]:
    print("Creating books...")
    books_data = [
        {
            "title": "1984",
            "author": "George Orwell",
            "publish_year": 1949,
            "description": "A dystopian novel set in a totalitarian society.",
            "categories": ["Classic", "Dystopian"],
        },
        {
            "title": "Animal Farm",
            "author": "George Orwell",
            "publish_year": 1945,
            "description": "An allegorical novella about a farm run by animals.",
            "categories": ["Classic"],
        },
        {
            "title": "Pride and Prejudice",
            "author": "Jane Austen",
            "publish_year": 1813,
            "description": "The story of Elizabeth Bennet and Mr. Darcy.",
            "categories": ["Classic", "Romance"],
        },
        {
            "title": "Foundation",
            "author": "Isaac Asimov",
            "publish_year": 1951,
            "description": "The fall of the Galactic Empire and the plan to shorten the dark age.",
            "categories": ["Science Fiction"],
        },
        {
            "title": "The Hobbit",
            "author": "J.R.R. Tolkien",
            "publish_year": 1937,
            "description": "Bilbo Baggins embarks on a quest to reclaim the Lonely Mountain.",
            "categories": ["Fantasy", "Classic"],
        },
    ]

    books = {}
    for data in books_data:
        category_names = data.pop("categories")
        book = Book(**data)
        book.categories = [categories[name] for name in category_names]
        db.add(book)
        books[book.title] = book

    db.commit()
    print(f"Created {len(books)} books.")
    return books


def create_users(db: Session) -> dict[str, User]:
    print("Creating users...")
    users = {}
    for username in ["alice", "bob", "carol", "dave"]:
        users[username] = create_user(
            db,
            username=username,
            email=f"{username}@example.com",
            password="ReadMore123",
        )
    print(f"Created {len(users)} users.")
    return users


def create_reviews(db: Session, users: dict[str, User], books: dict[str, Book]) -> int:
    print("Creating reviews...")
    reviews = [
        ("alice", "1984", 5, "Chilling and still relevant."),
        ("alice", "Animal Farm", 4, None),
        ("alice", "Foundation", 4, "Big ideas, thin characters."),
        ("bob", "1984", 4, None),
        ("bob", "The Hobbit", 5, "A perfect adventure."),
        ("carol", "Pride and Prejudice", 5, "Witty from the first line."),
        ("carol", "1984", 3, None),
        ("dave", "The Hobbit", 4, None),
    ]
    for username, title, rating, comment in reviews:
        upsert_review(db, books[title].id, users[username].id, rating, comment)
    print(f"Created {len(reviews)} reviews.")
    return len(reviews)


def create_reading_list(db: Session, users: dict[str, User], books: dict[str, Book]) -> int:
    print("Creating reading-list entries...")
    now = datetime.now(UTC)
    entries = [
        ("alice", "1984", ReadingStatus.COMPLETED, 12, 3),
        ("alice", "Animal Farm", ReadingStatus.COMPLETED, 6, 1),
        ("bob", "The Hobbit", ReadingStatus.COMPLETED, 30, 10),
        ("carol", "Pride and Prejudice", ReadingStatus.READING, 4, None),
        ("dave", "Foundation", ReadingStatus.WANT_TO_READ, None, None),
    ]
    for username, title, status, started_days_ago, days_to_finish in entries:
        start_date = now - timedelta(days=started_days_ago) if started_days_ago else None
        finish_date = start_date + timedelta(days=days_to_finish) if days_to_finish else None
        add_entry(
            db,
            user_id=users[username].id,
            book_id=books[title].id,
            status=status.value,
            start_date=start_date,
            finish_date=finish_date,
        )
    print(f"Created {len(entries)} reading-list entries.")
    return len(entries)


def seed_database(clear_existing: bool = True) -> None:
    """
    Main function to seed the database.

    Args:
        clear_existing: If True, clears existing data before seeding.
    """
    print("=" * 60)
    print("Starting database seed...")
    print("=" * 60)

    create_tables()
    db = SessionLocal()

    try:
        if clear_existing:
            clear_data(db)

        categories = create_categories(db)
        books = create_books(db, categories)
        users = create_users(db)
        review_count = create_reviews(db, users, books)
        entry_count = create_reading_list(db, users, books)

        print("=" * 60)
        print("Database seeding completed successfully!")
        print("=" * 60)
        print("\nSummary:")
        print(f"  - Categories: {len(categories)}")
        print(f"  - Books: {len(books)}")
        print(f"  - Users: {len(users)}")
        print(f"  - Reviews: {review_count}")
        print(f"  - Reading-list entries: {entry_count}")
        print("\nYou can now access the API at http://localhost:8001")
        print("API documentation at http://localhost:8001/docs")

    except Exception as e:
        print(f"Error seeding database: {e}")
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    seed_database()
