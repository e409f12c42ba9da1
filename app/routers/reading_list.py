"""
Reading List Router

Endpoints:
- GET /reading-list/ - All entries
- GET /users/{user_id}/reading-list - Entries of one user
- POST /reading-list/ - Add a book to a reading list
- PUT /reading-list/{user_id}/{book_id} - Update status/dates
- DELETE /reading-list/{user_id}/{book_id} - Remove an entry
- POST /reading-list/{user_id}/{book_id}/start - Start reading now
- POST /reading-list/{user_id}/{book_id}/finish - Finish reading now

Adding an entry bumps the book's added_to_list_count in the same
transaction. Removing it does not decrement the counter.
"""

from typing import List

from fastapi import APIRouter, Query, Request, status
from sqlalchemy import select
from sqlalchemy.orm import selectinload

from app.config import get_settings
from app.dependencies import DbSession, Pagination, get_user_or_404
from app.models import ReadingListEntry, ReadingStatus
from app.schemas import ReadingListCreate, ReadingListResponse, ReadingListUpdate
from app.services import reading_list as reading_list_service
from app.services.rate_limiter import limiter

settings = get_settings()

router = APIRouter(
    tags=["Reading List"],
    responses={
        404: {"description": "Entry, user or book not found"},
    },
)


def _entry_response(db: DbSession, user_id: int, book_id: int) -> ReadingListResponse:
    stmt = (
        select(ReadingListEntry)
        .options(selectinload(ReadingListEntry.book))
        .where(
            ReadingListEntry.user_id == user_id,
            ReadingListEntry.book_id == book_id,
        )
    )
    entry = db.execute(stmt).scalar_one()
    return ReadingListResponse.model_validate(entry)


def _list_entries(db: DbSession, pagination: Pagination, *criteria) -> List[ReadingListResponse]:
    stmt = (
        select(ReadingListEntry)
        .options(selectinload(ReadingListEntry.book))
        .where(*criteria)
        .order_by(ReadingListEntry.created_at.desc(), ReadingListEntry.book_id)
        .offset(pagination.skip)
        .limit(pagination.per_page)
    )
    entries = db.execute(stmt).scalars().all()
    return [ReadingListResponse.model_validate(e) for e in entries]


@router.get(
    "/reading-list/",
    response_model=List[ReadingListResponse],
    summary="List reading-list entries",
)
@limiter.limit(settings.rate_limit_default)
def list_entries(
    request: Request,
    db: DbSession,
    pagination: Pagination,
    status_filter: ReadingStatus | None = Query(default=None, alias="status"),
) -> List[ReadingListResponse]:
    criteria = []
    if status_filter is not None:
        criteria.append(ReadingListEntry.status == status_filter.value)
    return _list_entries(db, pagination, *criteria)


@router.get(
    "/users/{user_id}/reading-list",
    response_model=List[ReadingListResponse],
    summary="Get a user's reading list",
)
@limiter.limit(settings.rate_limit_default)
def list_user_entries(
    request: Request,
    user_id: int,
    db: DbSession,
    pagination: Pagination,
) -> List[ReadingListResponse]:
    get_user_or_404(db, user_id)
    return _list_entries(db, pagination, ReadingListEntry.user_id == user_id)


@router.post(
    "/reading-list/",
    response_model=ReadingListResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a book to a reading list",
    responses={409: {"description": "Book already on the user's list"}},
)
@limiter.limit(settings.rate_limit_write)
def add_entry(
    request: Request,
    entry_data: ReadingListCreate,
    db: DbSession,
) -> ReadingListResponse:
    reading_list_service.add_entry(
        db,
        user_id=entry_data.user_id,
        book_id=entry_data.book_id,
        status=entry_data.status.value,
        start_date=entry_data.start_date,
        finish_date=entry_data.finish_date,
    )
    return _entry_response(db, entry_data.user_id, entry_data.book_id)


@router.put(
    "/reading-list/{user_id}/{book_id}",
    response_model=ReadingListResponse,
    summary="Update a reading-list entry",
)
@limiter.limit(settings.rate_limit_write)
def update_entry(
    request: Request,
    user_id: int,
    book_id: int,
    entry_data: ReadingListUpdate,
    db: DbSession,
) -> ReadingListResponse:
    changes = entry_data.model_dump(exclude_unset=True)
    if changes.get("status") is not None:
        changes["status"] = changes["status"].value
    reading_list_service.update_entry(db, user_id, book_id, changes)
    return _entry_response(db, user_id, book_id)


@router.delete(
    "/reading-list/{user_id}/{book_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove a reading-list entry",
)
@limiter.limit(settings.rate_limit_write)
def delete_entry(
    request: Request,
    user_id: int,
    book_id: int,
    db: DbSession,
) -> None:
    reading_list_service.delete_entry(db, user_id, book_id)


@router.post(
    "/reading-list/{user_id}/{book_id}/start",
    response_model=ReadingListResponse,
    summary="Start reading",
)
@limiter.limit(settings.rate_limit_write)
def start_reading(
    request: Request,
    user_id: int,
    book_id: int,
    db: DbSession,
) -> ReadingListResponse:
    reading_list_service.start_reading(db, user_id, book_id)
    return _entry_response(db, user_id, book_id)


@router.post(
    "/reading-list/{user_id}/{book_id}/finish",
    response_model=ReadingListResponse,
    summary="Finish reading",
)
@limiter.limit(settings.rate_limit_write)
def finish_reading(
    request: Request,
    user_id: int,
    book_id: int,
    db: DbSession,
) -> ReadingListResponse:
    reading_list_service.finish_reading(db, user_id, book_id)
    return _entry_response(db, user_id, book_id)
