"""
Categories Router

CRUD endpoints for categories and the book <-> category links.

Endpoints:
- GET /categories/ - List categories
- GET /categories/{category_id} - Get a category
- GET /categories/{category_id}/books - Books in a category
- POST /categories/ - Create a category
- PUT /categories/{category_id} - Rename a category
- DELETE /categories/{category_id} - Delete a category (books are kept)
- POST /books/{book_id}/categories/{category_id} - Attach a category
- DELETE /books/{book_id}/categories/{category_id} - Detach a category
"""

import math
from typing import List

from fastapi import APIRouter, Request, status
from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from app.config import get_settings
from app.dependencies import (
    DbSession,
    Pagination,
    get_book_or_404,
    get_category_or_404,
)
from app.exceptions import DuplicateError, NotFoundError
from app.models import Book, Category, book_categories
from app.schemas import (
    BookListResponse,
    BookResponse,
    CategoryCreate,
    CategoryResponse,
    CategoryUpdate,
)
from app.services.rate_limiter import limiter
from app.services.transactions import run_in_transaction

settings = get_settings()

router = APIRouter(
    tags=["Categories"],
    responses={
        404: {"description": "Category or book not found"},
    },
)


def _check_name_free(db: Session, name: str, exclude_id: int | None = None) -> None:
    existing = db.execute(
        select(Category.id).where(func.lower(Category.name) == name.lower())
    ).scalar_one_or_none()
    if existing is not None and existing != exclude_id:
        raise DuplicateError(f"Category '{name}' already exists")


@router.get(
    "/categories/",
    response_model=List[CategoryResponse],
    summary="List all categories",
)
@limiter.limit(settings.rate_limit_default)
def list_categories(request: Request, db: DbSession) -> List[CategoryResponse]:
    """List all categories, alphabetically."""
    categories = db.execute(select(Category).order_by(Category.name)).scalars().all()
    return [CategoryResponse.model_validate(c) for c in categories]


@router.get(
    "/categories/{category_id}",
    response_model=CategoryResponse,
    summary="Get a category by ID",
)
@limiter.limit(settings.rate_limit_default)
def get_category(
    request: Request,
    category_id: int,
    db: DbSession,
) -> CategoryResponse:
    return CategoryResponse.model_validate(get_category_or_404(db, category_id))


@router.get(
    "/categories/{category_id}/books",
    response_model=BookListResponse,
    summary="Get books in category",
)
@limiter.limit(settings.rate_limit_default)
def get_category_books(
    request: Request,
    category_id: int,
    db: DbSession,
    pagination: Pagination,
) -> BookListResponse:
    """Paginated books of one category, by title."""
    get_category_or_404(db, category_id)

    book_ids = select(book_categories.c.book_id).where(
        book_categories.c.category_id == category_id
    )

    count_stmt = select(func.count(Book.id)).where(Book.id.in_(book_ids))
    total = db.execute(count_stmt).scalar() or 0

    pages = math.ceil(total / pagination.per_page) if total > 0 else 0

    stmt = (
        select(Book)
        .options(selectinload(Book.categories))
        .where(Book.id.in_(book_ids))
        .order_by(Book.title, Book.id)
        .offset(pagination.skip)
        .limit(pagination.per_page)
    )
    books = db.execute(stmt).scalars().all()

    return BookListResponse(
        items=[BookResponse.model_validate(b) for b in books],
        total=total,
        page=pagination.page,
        per_page=pagination.per_page,
        pages=pages,
    )


@router.post(
    "/categories/",
    response_model=CategoryResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new category",
)
@limiter.limit(settings.rate_limit_write)
def create_category(
    request: Request,
    category_data: CategoryCreate,
    db: DbSession,
) -> CategoryResponse:
    """
    Raises:
        DuplicateError: If a category with the same name exists
    """
    def work(session: Session) -> Category:
        _check_name_free(session, category_data.name)
        category = Category(name=category_data.name)
        session.add(category)
        session.flush()
        return category

    category = run_in_transaction(db, work)
    return CategoryResponse.model_validate(category)


@router.put(
    "/categories/{category_id}",
    response_model=CategoryResponse,
    summary="Update a category",
)
@limiter.limit(settings.rate_limit_write)
def update_category(
    request: Request,
    category_id: int,
    category_data: CategoryUpdate,
    db: DbSession,
) -> CategoryResponse:
    update_data = category_data.model_dump(exclude_unset=True)

    def work(session: Session) -> Category:
        category = get_category_or_404(session, category_id)
        if update_data.get("name"):
            _check_name_free(session, update_data["name"], exclude_id=category_id)
            category.name = update_data["name"]
        return category

    category = run_in_transaction(db, work)
    return CategoryResponse.model_validate(category)


@router.delete(
    "/categories/{category_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a category",
)
@limiter.limit(settings.rate_limit_write)
def delete_category(
    request: Request,
    category_id: int,
    db: DbSession,
) -> None:
    """Books in the category are kept; only the links are removed."""
    run_in_transaction(
        db, lambda session: session.delete(get_category_or_404(session, category_id))
    )


# =============================================================================
# Book <-> Category Links
# =============================================================================

@router.post(
    "/books/{book_id}/categories/{category_id}",
    response_model=BookResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Attach a category to a book",
)
@limiter.limit(settings.rate_limit_write)
def add_book_category(
    request: Request,
    book_id: int,
    category_id: int,
    db: DbSession,
) -> BookResponse:
    """
    Raises:
        DuplicateError: If the book already has the category
    """
    def work(session: Session) -> None:
        book = get_book_or_404(session, book_id)
        category = get_category_or_404(session, category_id)
        if category in book.categories:
            raise DuplicateError(f"Book {book_id} already has category {category_id}")
        book.categories.append(category)

    run_in_transaction(db, work)
    return BookResponse.model_validate(get_book_or_404(db, book_id))


@router.delete(
    "/books/{book_id}/categories/{category_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Detach a category from a book",
)
@limiter.limit(settings.rate_limit_write)
def remove_book_category(
    request: Request,
    book_id: int,
    category_id: int,
    db: DbSession,
) -> None:
    def work(session: Session) -> None:
        book = get_book_or_404(session, book_id)
        category = get_category_or_404(session, category_id)
        if category not in book.categories:
            raise NotFoundError("Book category link", f"{book_id}/{category_id}")
        book.categories.remove(category)

    run_in_transaction(db, work)
