"""
Book Pydantic Schemas

Request schemas cover catalog fields only. The aggregate counters
(review_count, average_rating, added_to_list_count) appear in responses
but can never be written by a client.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.schemas.category import CategoryResponse

MIN_PUBLISH_YEAR = 0
MAX_PUBLISH_YEAR = 2100


class BookBase(BaseModel):
    """Base schema with shared catalog fields."""

    title: str = Field(
        ...,
        min_length=1,
        max_length=500,
        description="Book title",
        examples=["1984", "Pride and Prejudice"],
    )

    author: str | None = Field(
        default=None,
        max_length=255,
        description="Author name",
        examples=["George Orwell"],
    )

    publish_year: int | None = Field(
        default=None,
        ge=MIN_PUBLISH_YEAR,
        le=MAX_PUBLISH_YEAR,
        description="Year of publication",
        examples=[1949],
    )

    description: str | None = Field(
        default=None,
        max_length=5000,
        description="Book description",
    )

    summary: str | None = Field(
        default=None,
        max_length=5000,
        description="Short summary",
    )

    book_photo: str | None = Field(
        default=None,
        max_length=255,
        description="Stored file name of the cover image",
        examples=["1984-cover.jpg"],
    )

    html_content: str | None = Field(
        default=None,
        max_length=255,
        description="Stored file name of the HTML edition",
    )

    @field_validator("title")
    @classmethod
    def title_must_not_be_empty(cls, v: str) -> str:
        """Validate and normalize title."""
        if not v.strip():
            raise ValueError("Title cannot be empty or whitespace")
        return v.strip()


class BookCreate(BookBase):
    """
    Schema for creating a new book.

    Example request body:
    {
        "title": "1984",
        "author": "George Orwell",
        "publish_year": 1949,
        "category_ids": [1, 3]
    }
    """

    category_ids: list[int] | None = Field(
        default=None,
        description="Category IDs to attach to this book",
        examples=[[1, 3]],
    )


class BookUpdate(BaseModel):
    """Schema for updating a book. All fields optional; omitted fields are kept."""

    title: str | None = Field(default=None, min_length=1, max_length=500)
    author: str | None = Field(default=None, max_length=255)
    publish_year: int | None = Field(default=None, ge=MIN_PUBLISH_YEAR, le=MAX_PUBLISH_YEAR)
    description: str | None = Field(default=None, max_length=5000)
    summary: str | None = Field(default=None, max_length=5000)
    book_photo: str | None = Field(default=None, max_length=255)
    html_content: str | None = Field(default=None, max_length=255)

    category_ids: list[int] | None = Field(
        default=None,
        description="Category IDs (replaces existing)",
    )

    @field_validator("title")
    @classmethod
    def title_must_not_be_empty(cls, v: str | None) -> str | None:
        # Omitted fields are not validated, so None here is an explicit null
        if v is None:
            raise ValueError("Title cannot be null")
        if not v.strip():
            raise ValueError("Title cannot be empty or whitespace")
        return v.strip()


class BookResponse(BookBase):
    """
    Schema for book responses, including the aggregate counters.
    """

    id: int = Field(..., description="Unique identifier")
    created_at: datetime = Field(..., description="When the book was created")
    updated_at: datetime = Field(..., description="When the book was last updated")

    review_count: int = Field(
        default=0,
        description="Number of reviews for this book",
    )
    average_rating: Decimal | None = Field(
        default=None,
        description=(
            "Mean review rating (0.00-5.00) rounded half-up to 2 decimal "
            "places, null if no reviews"
        ),
    )
    added_to_list_count: int = Field(
        default=0,
        description="Times this book was added to a reading list",
    )

    categories: list[CategoryResponse] = Field(
        default=[],
        description="Categories of this book",
    )

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": 1,
                "title": "1984",
                "author": "George Orwell",
                "publish_year": 1949,
                "description": "A dystopian novel about totalitarianism",
                "summary": None,
                "book_photo": "1984-cover.jpg",
                "html_content": None,
                "review_count": 42,
                "average_rating": "4.25",
                "added_to_list_count": 120,
                "created_at": "2024-01-15T10:30:00Z",
                "updated_at": "2024-01-15T10:30:00Z",
                "categories": [
                    {"id": 1, "name": "Fiction", "created_at": "2024-01-15T10:30:00Z"}
                ],
            }
        },
    )


class BookListResponse(BaseModel):
    """
    Paginated book list.

    - total: Total number of books matching the query
    - pages: Total number of pages
    """

    items: list[BookResponse] = Field(..., description="Books on this page")
    total: int = Field(..., ge=0, description="Total number of books")
    page: int = Field(..., ge=1, description="Current page number")
    per_page: int = Field(..., ge=1, le=100, description="Number of items per page")
    pages: int = Field(..., ge=0, description="Total number of pages")


class BookRatingStats(BaseModel):
    """Stored rating aggregates of a book plus the live rating distribution."""

    book_id: int
    review_count: int
    average_rating: Decimal | None = Field(
        default=None,
        description="Mean rating rounded half-up to 2 decimal places; null while the book has no reviews",
    )
    rating_distribution: dict[int, int] = Field(
        ...,
        description="Number of reviews per star value (0-5)",
        examples=[{0: 0, 1: 0, 2: 1, 3: 4, 4: 10, 5: 7}],
    )
