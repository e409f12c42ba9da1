"""
SQLAlchemy Models Package

Model Relationships:
- Category <-> Book: Many-to-Many through book_categories
- Book -> Review <- User: one review per (user, book)
- Book -> ReadingListEntry <- User: keyed by (user, book)

Importing every model here registers it with Base.metadata, which Alembic
and create_tables() rely on.
"""

from app.models.category import Category
from app.models.book import Book, book_categories
from app.models.user import User
from app.models.review import Review
from app.models.reading_list import ReadingListEntry, ReadingStatus

__all__ = [
    "Category",
    "Book",
    "book_categories",
    "User",
    "Review",
    "ReadingListEntry",
    "ReadingStatus",
]
