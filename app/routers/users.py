"""
Users Router

Endpoints:
- GET /users/ - List users
- GET /users/{user_id} - Get a user
- POST /users/ - Register a user
- PUT /users/{user_id} - Update a user
- DELETE /users/{user_id} - Delete a user with their reviews and entries

Deleting a user refreshes the rating aggregates of every book they
reviewed.
"""

import math

from fastapi import APIRouter, Request, status
from sqlalchemy import func, select

from app.config import get_settings
from app.dependencies import DbSession, Pagination, get_user_or_404
from app.models import User
from app.schemas import UserCreate, UserListResponse, UserResponse, UserUpdate
from app.services import users as user_service
from app.services.rate_limiter import limiter

settings = get_settings()

router = APIRouter(
    prefix="/users",
    tags=["Users"],
    responses={
        404: {"description": "User not found"},
    },
)


@router.get(
    "/",
    response_model=UserListResponse,
    summary="List users",
)
@limiter.limit(settings.rate_limit_default)
def list_users(
    request: Request,
    db: DbSession,
    pagination: Pagination,
) -> UserListResponse:
    total = db.execute(select(func.count(User.id))).scalar() or 0
    pages = math.ceil(total / pagination.per_page) if total > 0 else 0

    stmt = (
        select(User)
        .order_by(User.id)
        .offset(pagination.skip)
        .limit(pagination.per_page)
    )
    users = db.execute(stmt).scalars().all()

    return UserListResponse(
        items=[UserResponse.model_validate(u) for u in users],
        total=total,
        page=pagination.page,
        per_page=pagination.per_page,
        pages=pages,
    )


@router.get(
    "/{user_id}",
    response_model=UserResponse,
    summary="Get a user by ID",
)
@limiter.limit(settings.rate_limit_default)
def get_user(
    request: Request,
    user_id: int,
    db: DbSession,
) -> UserResponse:
    return UserResponse.model_validate(get_user_or_404(db, user_id))


@router.post(
    "/",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a user",
    responses={409: {"description": "Username or email already taken"}},
)
@limiter.limit(settings.rate_limit_write)
def create_user(
    request: Request,
    user_data: UserCreate,
    db: DbSession,
) -> UserResponse:
    user = user_service.create_user(
        db,
        username=user_data.username,
        email=user_data.email,
        password=user_data.password,
        picture=user_data.picture,
    )
    return UserResponse.model_validate(user)


@router.put(
    "/{user_id}",
    response_model=UserResponse,
    summary="Update a user",
)
@limiter.limit(settings.rate_limit_write)
def update_user(
    request: Request,
    user_id: int,
    user_data: UserUpdate,
    db: DbSession,
) -> UserResponse:
    changes = user_data.model_dump(exclude_unset=True)
    user = user_service.update_user(db, user_id, changes)
    return UserResponse.model_validate(user)


@router.delete(
    "/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a user",
)
@limiter.limit(settings.rate_limit_write)
def delete_user(
    request: Request,
    user_id: int,
    db: DbSession,
) -> None:
    user_service.delete_user(db, user_id)
