"""
Category Model

Categories group books for browsing. A book can belong to several
categories (e.g., "Classic" and "Dystopian").
"""

from datetime import datetime
from typing import TYPE_CHECKING, List

from sqlalchemy import DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base

if TYPE_CHECKING:
    from app.models.book import Book


class Category(Base):
    """
    Category model.

    Table: categories

    Relationships:
    - books: Many-to-Many through the book_categories table
    """

    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(primary_key=True)

    # unique=True prevents duplicate category names
    name: Mapped[str] = mapped_column(
        String(100),
        unique=True,
        index=True,
        nullable=False,
        comment="Category name"
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    books: Mapped[List["Book"]] = relationship(
        "Book",
        secondary="book_categories",
        back_populates="categories",
    )

    def __repr__(self) -> str:
        return f"Category(id={self.id}, name='{self.name}')"
