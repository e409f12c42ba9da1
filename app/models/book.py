"""
Book Model

The central model of the catalog.

Besides its catalog fields a Book carries three aggregate counters that are
derived from other tables:

- review_count / average_rating: derived from the book's Review rows and
  rewritten only by app.services.ratings.refresh_book_rating
- added_to_list_count: lifetime number of times the book was added to a
  reading list, incremented only by app.services.list_counts

No other code path writes these columns; the create/update schemas do not
expose them.

This file also contains the book_categories association table.
"""

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Table,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base

if TYPE_CHECKING:
    from app.models.category import Category
    from app.models.reading_list import ReadingListEntry
    from app.models.review import Review


# =============================================================================
# Association Tables
# =============================================================================
book_categories = Table(
    "book_categories",
    Base.metadata,
    Column(
        "book_id",
        Integer,
        ForeignKey("books.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "category_id",
        Integer,
        ForeignKey("categories.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    comment="Association table linking books to their categories",
)


class Book(Base):
    """
    Book model representing books in the catalog.

    Table: books

    Fields:
    - title: Book title (required)
    - author: Author name as printed on the cover
    - publish_year: Year of publication
    - description / summary: Free text
    - book_photo / html_content: Stored file names for the cover image and
      the readable HTML edition

    Aggregates:
    - review_count: Number of reviews (>= 0)
    - average_rating: Mean review rating, NULL while there are no reviews
    - added_to_list_count: Times the book was added to a reading list (>= 0)

    Example:
        book = Book(title="1984", author="George Orwell", publish_year=1949)
    """

    __tablename__ = "books"

    # -------------------------------------------------------------------------
    # Primary Key
    # -------------------------------------------------------------------------
    id: Mapped[int] = mapped_column(primary_key=True)

    # -------------------------------------------------------------------------
    # Catalog Fields
    # -------------------------------------------------------------------------
    title: Mapped[str] = mapped_column(
        String(500),
        index=True,
        nullable=False,
        comment="Book title"
    )

    author: Mapped[str | None] = mapped_column(
        String(255),
        index=True,
        nullable=True,
        comment="Author name"
    )

    publish_year: Mapped[int | None] = mapped_column(
        Integer,
        index=True,
        nullable=True,
        comment="Year of publication"
    )

    description: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        comment="Book description"
    )

    summary: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        comment="Short summary"
    )

    book_photo: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        comment="Stored file name of the cover image"
    )

    html_content: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        comment="Stored file name of the HTML edition"
    )

    # -------------------------------------------------------------------------
    # Aggregate Counters
    # -------------------------------------------------------------------------
    review_count: Mapped[int] = mapped_column(
        Integer,
        default=0,
        server_default="0",
        index=True,
        nullable=False,
        comment="Number of reviews for this book"
    )

    # Numeric(3, 2): 0.00 - 5.00
    average_rating: Mapped[Decimal | None] = mapped_column(
        Numeric(3, 2),
        index=True,
        nullable=True,
        comment="Average review rating, null if no reviews"
    )

    added_to_list_count: Mapped[int] = mapped_column(
        Integer,
        default=0,
        server_default="0",
        index=True,
        nullable=False,
        comment="Lifetime number of times the book was added to a reading list"
    )

    # -------------------------------------------------------------------------
    # Timestamps
    # -------------------------------------------------------------------------
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    # -------------------------------------------------------------------------
    # Relationships
    # -------------------------------------------------------------------------
    categories: Mapped[list["Category"]] = relationship(
        "Category",
        secondary=book_categories,
        back_populates="books",
    )

    reviews: Mapped[list["Review"]] = relationship(
        "Review",
        back_populates="book",
        cascade="all, delete-orphan",
    )

    reading_list_entries: Mapped[list["ReadingListEntry"]] = relationship(
        "ReadingListEntry",
        back_populates="book",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        CheckConstraint("review_count >= 0", name="ck_book_review_count_non_negative"),
        CheckConstraint(
            "added_to_list_count >= 0",
            name="ck_book_added_to_list_count_non_negative",
        ),
    )

    def __repr__(self) -> str:
        return f"Book(id={self.id}, title='{self.title}')"
