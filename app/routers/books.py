"""
Books Router

CRUD endpoints for the catalog plus the book-level aggregate endpoints.

Endpoints:
- GET /books/ - List books (title/author prefix and publish_year filters)
- GET /books/top - Most often added to reading lists
- GET /books/top-rated - Highest average rating
- GET /books/{book_id} - Get a book
- POST /books/ - Create a book
- PUT /books/{book_id} - Update a book
- DELETE /books/{book_id} - Delete a book with its reviews and list entries
- POST /books/{book_id}/added-to-list - Count one "add to list" action

The aggregate counters are read-only here; they change only through the
review and reading-list services.
"""

import logging
import math

from fastapi import APIRouter, Query, Request, status
from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from app.config import get_settings
from app.dependencies import BookFilters, DbSession, Pagination, get_book_or_404
from app.exceptions import InvalidInputError
from app.models import Book, Category
from app.schemas import (
    BookCreate,
    BookListResponse,
    BookResponse,
    BookUpdate,
)
from app.services.cache import invalidate_reader_rankings, invalidate_reviewer_rankings
from app.services.list_counts import increment_added_to_list_count
from app.services.locking import book_lock
from app.services.rate_limiter import limiter
from app.services.ratings import lock_book
from app.services.transactions import run_in_transaction

logger = logging.getLogger(__name__)

settings = get_settings()

# =============================================================================
# Router Configuration
# =============================================================================

router = APIRouter(
    prefix="/books",
    tags=["Books"],
    responses={
        404: {"description": "Book not found"},
    },
)


# =============================================================================
# Helper Functions
# =============================================================================

def apply_book_filters(stmt, filters: BookFilters):
    """
    Apply the list filters to a book query.

    - title / author: case-insensitive prefix match
    - publish_year: exact match
    """
    if filters.title:
        stmt = stmt.where(
            func.lower(Book.title).startswith(filters.title.lower(), autoescape=True)
        )
    if filters.author:
        stmt = stmt.where(
            func.lower(Book.author).startswith(filters.author.lower(), autoescape=True)
        )
    if filters.publish_year is not None:
        stmt = stmt.where(Book.publish_year == filters.publish_year)
    return stmt


def load_categories(db: Session, category_ids: list[int]) -> list[Category]:
    """
    Fetch categories by id.

    Raises:
        InvalidInputError: If any id does not exist
    """
    wanted = set(category_ids)
    categories = db.execute(
        select(Category).where(Category.id.in_(wanted))
    ).scalars().all()

    if len(categories) != len(wanted):
        missing = wanted - {c.id for c in categories}
        raise InvalidInputError(f"Category IDs not found: {sorted(missing)}")
    return list(categories)


def ranked_books(db: Session, limit: int, *order_by) -> list[BookResponse]:
    stmt = (
        select(Book)
        .options(selectinload(Book.categories))
        .order_by(*order_by, Book.id.asc())
        .limit(limit)
    )
    return [BookResponse.model_validate(b) for b in db.execute(stmt).scalars().all()]


# =============================================================================
# List Endpoints
# =============================================================================

@router.get(
    "/",
    response_model=BookListResponse,
    summary="List all books",
    description="Get a paginated list of books with optional prefix filters.",
)
@limiter.limit(settings.rate_limit_default)
def list_books(
    request: Request,
    db: DbSession,
    pagination: Pagination,
    filters: BookFilters,
) -> BookListResponse:
    """
    List books, newest first.

    Examples:
        GET /api/v1/books/?title=the
        GET /api/v1/books/?author=orw&publish_year=1949
    """
    base_stmt = select(Book)
    if filters.has_filters:
        base_stmt = apply_book_filters(base_stmt, filters)

    count_stmt = select(func.count()).select_from(base_stmt.subquery())
    total = db.execute(count_stmt).scalar() or 0

    pages = math.ceil(total / pagination.per_page) if total > 0 else 0

    stmt = (
        base_stmt
        .options(selectinload(Book.categories))
        .order_by(Book.created_at.desc(), Book.id.desc())
        .offset(pagination.skip)
        .limit(pagination.per_page)
    )
    books = db.execute(stmt).scalars().all()

    return BookListResponse(
        items=[BookResponse.model_validate(book) for book in books],
        total=total,
        page=pagination.page,
        per_page=pagination.per_page,
        pages=pages,
    )


@router.get(
    "/top",
    response_model=list[BookResponse],
    summary="Most listed books",
    description="Books ordered by how often they were added to a reading list.",
)
@limiter.limit(settings.rate_limit_default)
def top_books(
    request: Request,
    db: DbSession,
    limit: int = Query(default=10, ge=1, le=100),
) -> list[BookResponse]:
    """Ordered by added_to_list_count, then review_count, both descending."""
    return ranked_books(
        db,
        limit,
        Book.added_to_list_count.desc(),
        Book.review_count.desc(),
    )


@router.get(
    "/top-rated",
    response_model=list[BookResponse],
    summary="Top rated books",
    description="Books ordered by average rating. Unrated books come last.",
)
@limiter.limit(settings.rate_limit_default)
def top_rated_books(
    request: Request,
    db: DbSession,
    limit: int = Query(default=10, ge=1, le=100),
) -> list[BookResponse]:
    """Ordered by average_rating (NULL last), then review_count."""
    return ranked_books(
        db,
        limit,
        Book.average_rating.is_(None),
        Book.average_rating.desc(),
        Book.review_count.desc(),
    )


# =============================================================================
# CRUD Endpoints
# =============================================================================

@router.get(
    "/{book_id}",
    response_model=BookResponse,
    summary="Get a book by ID",
)
@limiter.limit(settings.rate_limit_default)
def get_book(
    request: Request,
    book_id: int,
    db: DbSession,
) -> BookResponse:
    """Get a single book with its categories and aggregate counters."""
    return BookResponse.model_validate(get_book_or_404(db, book_id))


@router.post(
    "/",
    response_model=BookResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new book",
)
@limiter.limit(settings.rate_limit_write)
def create_book(
    request: Request,
    book_data: BookCreate,
    db: DbSession,
) -> BookResponse:
    """
    Create a new book. Counters start at zero with no average rating.

    Raises:
        InvalidInputError: If a category id does not exist
    """
    def work(session: Session) -> int:
        book = Book(**book_data.model_dump(exclude={"category_ids"}))
        if book_data.category_ids:
            book.categories = load_categories(session, book_data.category_ids)
        session.add(book)
        session.flush()
        return book.id

    book_id = run_in_transaction(db, work)
    logger.info(f"Book created: {book_data.title} (id={book_id})")

    return BookResponse.model_validate(get_book_or_404(db, book_id))


@router.put(
    "/{book_id}",
    response_model=BookResponse,
    summary="Update a book",
    description="Update catalog fields. Only provided fields are changed.",
)
@limiter.limit(settings.rate_limit_write)
def update_book(
    request: Request,
    book_id: int,
    book_data: BookUpdate,
    db: DbSession,
) -> BookResponse:
    """
    Update a book's catalog fields and optionally replace its categories.

    Raises:
        NotFoundError: If the book does not exist
        InvalidInputError: If a category id does not exist
    """
    update_data = book_data.model_dump(exclude_unset=True)
    category_ids = update_data.pop("category_ids", None)

    def work(session: Session) -> None:
        book = get_book_or_404(session, book_id)
        if category_ids is not None:
            book.categories = load_categories(session, category_ids)
        for field, value in update_data.items():
            setattr(book, field, value)

    run_in_transaction(db, work)
    return BookResponse.model_validate(get_book_or_404(db, book_id))


@router.delete(
    "/{book_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a book",
    description="Delete a book together with its reviews and reading-list entries.",
)
@limiter.limit(settings.rate_limit_write)
def delete_book(
    request: Request,
    book_id: int,
    db: DbSession,
) -> None:
    """
    Returns 204 No Content on success.

    Raises:
        NotFoundError: If the book does not exist
    """
    with book_lock(book_id):
        run_in_transaction(db, lambda session: session.delete(lock_book(session, book_id)))

    invalidate_reviewer_rankings()
    invalidate_reader_rankings()
    logger.info(f"Book {book_id} deleted")


# =============================================================================
# Counter Endpoints
# =============================================================================

@router.post(
    "/{book_id}/added-to-list",
    response_model=BookResponse,
    summary="Count an add-to-list action",
    description="Increase added_to_list_count by one. Every call counts.",
)
@limiter.limit(settings.rate_limit_write)
def add_to_list_count(
    request: Request,
    book_id: int,
    db: DbSession,
) -> BookResponse:
    increment_added_to_list_count(db, book_id)
    return BookResponse.model_validate(get_book_or_404(db, book_id))
