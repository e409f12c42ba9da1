"""
Review Pydantic Schemas

Schemas:
- ReviewCreate: Create (or replace) the user's review of a book
- ReviewUpdate: Update an existing review
- ReviewResponse: Full review data for API responses
- ReviewListResponse: Paginated list of reviews

Business Rules:
- Rating must be 0-5 (validated here and again in app.services.reviews)
- One review per user per book (enforced at database level)
"""
# ruff: noqa: I001
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


# =============================================================================
# Embedded Schemas (Minimal data for nested responses)
# =============================================================================


class BookMinimal(BaseModel):
    """Just enough book data to identify the reviewed book."""

    id: int = Field(..., description="Book ID")
    title: str = Field(..., description="Book title")
    author: str | None = Field(default=None, description="Author name")

    model_config = ConfigDict(from_attributes=True)


class ReviewerMinimal(BaseModel):
    """Public profile of the review author."""

    id: int = Field(..., description="User ID")
    username: str = Field(..., description="Username")
    picture: str | None = Field(default=None, description="Profile picture file name")

    model_config = ConfigDict(from_attributes=True)


# =============================================================================
# Review Schemas
# =============================================================================


class ReviewBase(BaseModel):
    """Base schema with shared review fields."""

    rating: int = Field(
        ...,
        ge=0,
        le=5,
        description="Rating from 0 to 5 stars",
        examples=[4, 5],
    )

    comment: str | None = Field(
        default=None,
        max_length=5000,
        description="Review text",
        examples=["This book changed my perspective on..."],
    )

    @field_validator("comment")
    @classmethod
    def comment_must_not_be_empty_if_provided(cls, v: str | None) -> str | None:
        """Whitespace-only comments are stored as null."""
        if v is not None:
            v = v.strip()
            if not v:
                return None
        return v


class ReviewCreate(ReviewBase):
    """
    Schema for creating a review.

    Posting again for the same user and book replaces the earlier rating
    and comment.

    Example request body:
    {
        "user_id": 7,
        "rating": 5,
        "comment": "One of the best books I've ever read..."
    }
    """

    user_id: int = Field(..., description="ID of the user writing the review")


class ReviewUpdate(BaseModel):
    """Schema for updating an existing review. All fields optional."""

    rating: int | None = Field(
        default=None,
        ge=0,
        le=5,
        description="Rating from 0 to 5 stars",
    )

    comment: str | None = Field(
        default=None,
        max_length=5000,
        description="Review text",
    )


class ReviewResponse(ReviewBase):
    """Schema for review responses."""

    id: int = Field(..., description="Unique review identifier")
    book_id: int = Field(..., description="ID of the reviewed book")
    user_id: int = Field(..., description="ID of the user who wrote the review")
    review_date: datetime = Field(..., description="When the review was last written")

    user: ReviewerMinimal | None = Field(default=None, description="Review author")
    book: BookMinimal | None = Field(default=None, description="Reviewed book")

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": 1,
                "book_id": 42,
                "user_id": 7,
                "rating": 5,
                "comment": "A must-read classic!",
                "review_date": "2024-01-15T10:30:00Z",
                "user": {"id": 7, "username": "booklover", "picture": None},
                "book": {"id": 42, "title": "1984", "author": "George Orwell"},
            }
        },
    )


class ReviewListResponse(BaseModel):
    """Paginated review list."""

    items: list[ReviewResponse] = Field(..., description="Reviews on this page")
    total: int = Field(..., ge=0, description="Total number of reviews")
    page: int = Field(..., ge=1, description="Current page number")
    per_page: int = Field(..., ge=1, le=100, description="Number of items per page")
    pages: int = Field(..., ge=0, description="Total number of pages")
