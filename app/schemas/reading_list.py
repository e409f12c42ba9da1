"""
Reading List Pydantic Schemas

An entry is addressed by (user_id, book_id); there is no separate id.
Date consistency (finish after start, completed implies finished) is
checked by app.services.reading_list so it also covers partial updates.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from app.models.reading_list import ReadingStatus
from app.schemas.review import BookMinimal


class ReadingListCreate(BaseModel):
    """
    Schema for adding a book to a reading list.

    Example request body:
    {
        "user_id": 7,
        "book_id": 42,
        "status": "want_to_read"
    }
    """

    user_id: int = Field(..., description="Owner of the reading list")
    book_id: int = Field(..., description="Book to add")
    status: ReadingStatus = Field(
        default=ReadingStatus.WANT_TO_READ,
        description="Reading progress",
    )
    start_date: datetime | None = Field(default=None, description="When reading started")
    finish_date: datetime | None = Field(default=None, description="When reading finished")


class ReadingListUpdate(BaseModel):
    """Schema for updating an entry. Omitted fields keep their value."""

    status: ReadingStatus | None = Field(default=None)
    start_date: datetime | None = Field(default=None)
    finish_date: datetime | None = Field(default=None)


class ReadingListResponse(BaseModel):
    """Schema for reading-list entry responses."""

    user_id: int
    book_id: int
    status: ReadingStatus
    start_date: datetime | None = None
    finish_date: datetime | None = None
    created_at: datetime
    updated_at: datetime

    book: BookMinimal | None = Field(default=None, description="The listed book")

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "user_id": 7,
                "book_id": 42,
                "status": "reading",
                "start_date": "2024-01-15T10:30:00Z",
                "finish_date": None,
                "created_at": "2024-01-10T09:00:00Z",
                "updated_at": "2024-01-15T10:30:00Z",
                "book": {"id": 42, "title": "1984", "author": "George Orwell"},
            }
        },
    )
