"""
FastAPI Dependencies Module

Reusable components injected into route handlers with Depends():
- Database session per request
- Pagination parameters
- Book list filters
- Lookup helpers that raise NotFoundError (rendered as 404 by app.main)
"""

from typing import Annotated

from fastapi import Depends, Query
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from app.database import get_db
from app.exceptions import NotFoundError
from app.models import Book, Category, User

# =============================================================================
# Type Aliases with Annotated
# =============================================================================
# Lets routes declare `db: DbSession` instead of
# `db: Session = Depends(get_db)`.

DbSession = Annotated[Session, Depends(get_db)]


# =============================================================================
# Pagination Parameters
# =============================================================================
class PaginationParams:
    """
    Common pagination parameters for list endpoints.

    - page: Which page to return (1-indexed)
    - per_page: How many items per page
    - skip: Calculated offset for database query

    Usage in route:
        @router.get("/books/")
        def list_books(db: DbSession, pagination: Pagination):
            stmt = select(Book).offset(pagination.skip).limit(pagination.per_page)
    """

    def __init__(
        self,
        page: int = Query(
            default=1,
            ge=1,
            description="Page number (1-indexed)",
            examples=[1, 2, 3],
        ),
        per_page: int = Query(
            default=10,
            ge=1,
            le=100,
            description="Number of items per page (max 100)",
            examples=[10, 25, 50],
        ),
    ) -> None:
        self.page = page
        self.per_page = per_page

    @property
    def skip(self) -> int:
        """Page 1 -> 0, page 2 -> per_page, ..."""
        return (self.page - 1) * self.per_page


Pagination = Annotated[PaginationParams, Depends()]


# =============================================================================
# Book Filters
# =============================================================================
class BookSearchParams:
    """
    Filter parameters for the book list.

    - title / author: case-insensitive prefix match
    - publish_year: exact year

    All parameters are optional and can be combined.

    Usage:
        GET /api/v1/books/?title=nine&author=geo&publish_year=1949
    """

    def __init__(
        self,
        title: str | None = Query(
            default=None,
            min_length=1,
            max_length=100,
            description="Title starts with (case-insensitive)",
            examples=["198", "pride"],
        ),
        author: str | None = Query(
            default=None,
            min_length=1,
            max_length=100,
            description="Author name starts with (case-insensitive)",
            examples=["orwell", "austen"],
        ),
        publish_year: int | None = Query(
            default=None,
            ge=0,
            le=2100,
            description="Year of publication",
            examples=[1949],
        ),
    ) -> None:
        self.title = title
        self.author = author
        self.publish_year = publish_year

    @property
    def has_filters(self) -> bool:
        return any([self.title, self.author, self.publish_year is not None])


BookFilters = Annotated[BookSearchParams, Depends()]


# =============================================================================
# Lookup Helpers
# =============================================================================
def get_book_or_404(db: Session, book_id: int) -> Book:
    """
    Get a book by ID with its categories loaded.

    Raises:
        NotFoundError: If the book does not exist
    """
    stmt = (
        select(Book)
        .options(selectinload(Book.categories))
        .where(Book.id == book_id)
    )
    book = db.execute(stmt).scalar_one_or_none()
    if book is None:
        raise NotFoundError("Book", book_id)
    return book


def get_user_or_404(db: Session, user_id: int) -> User:
    """
    Raises:
        NotFoundError: If the user does not exist
    """
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError("User", user_id)
    return user


def get_category_or_404(db: Session, category_id: int) -> Category:
    """
    Raises:
        NotFoundError: If the category does not exist
    """
    category = db.get(Category, category_id)
    if category is None:
        raise NotFoundError("Category", category_id)
    return category
