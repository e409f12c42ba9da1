"""
Category Pydantic Schemas

Categories are plain labels; a book can carry any number of them.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CategoryBase(BaseModel):
    """Base schema with shared category fields."""

    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Category name",
        examples=["Fiction", "History", "Poetry"],
    )

    @field_validator("name")
    @classmethod
    def name_must_not_be_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Category name cannot be empty or whitespace")
        return v.strip()


class CategoryCreate(CategoryBase):
    """Schema for creating a new category."""
    pass


class CategoryUpdate(BaseModel):
    """Schema for renaming a category."""

    name: Optional[str] = Field(
        default=None,
        min_length=1,
        max_length=100,
        description="Category name",
    )

    @field_validator("name")
    @classmethod
    def name_must_not_be_empty(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("Category name cannot be empty or whitespace")
        return v.strip() if v else v


class CategoryResponse(CategoryBase):
    """Schema for category responses."""

    id: int = Field(..., description="Unique identifier")
    created_at: datetime = Field(..., description="When the category was created")

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": 1,
                "name": "Fiction",
                "created_at": "2024-01-15T10:30:00Z",
            }
        },
    )
