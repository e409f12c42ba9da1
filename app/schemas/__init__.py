"""
Pydantic Schemas Package

Request/response validation for the API.

Schema Naming Convention:
- XxxBase: Shared fields between create/update
- XxxCreate: Fields required when creating a new record
- XxxUpdate: Fields allowed when updating (all optional)
- XxxResponse: Fields returned in API responses
"""

from app.schemas.book import (
    BookBase,
    BookCreate,
    BookListResponse,
    BookRatingStats,
    BookResponse,
    BookUpdate,
)
from app.schemas.category import (
    CategoryBase,
    CategoryCreate,
    CategoryResponse,
    CategoryUpdate,
)
from app.schemas.reading_list import (
    ReadingListCreate,
    ReadingListResponse,
    ReadingListUpdate,
)
from app.schemas.review import (
    ReviewBase,
    ReviewCreate,
    ReviewListResponse,
    ReviewResponse,
    ReviewUpdate,
)
from app.schemas.stats import FastestReader, TopReviewer
from app.schemas.user import (
    UserCreate,
    UserListResponse,
    UserResponse,
    UserUpdate,
)

__all__ = [
    # Book
    "BookBase",
    "BookCreate",
    "BookUpdate",
    "BookResponse",
    "BookListResponse",
    "BookRatingStats",
    # Category
    "CategoryBase",
    "CategoryCreate",
    "CategoryUpdate",
    "CategoryResponse",
    # Reading list
    "ReadingListCreate",
    "ReadingListUpdate",
    "ReadingListResponse",
    # Review
    "ReviewBase",
    "ReviewCreate",
    "ReviewUpdate",
    "ReviewResponse",
    "ReviewListResponse",
    # Stats
    "TopReviewer",
    "FastestReader",
    # User
    "UserCreate",
    "UserUpdate",
    "UserResponse",
    "UserListResponse",
]
