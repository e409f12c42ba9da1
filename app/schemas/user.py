"""
User Pydantic Schemas

Schemas:
- UserCreate: Registration data (email, username, password)
- UserUpdate: Profile update fields
- UserResponse: Public user data (never exposes the password hash)
"""

import re
from datetime import datetime

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    ValidationInfo,
    field_validator,
)


def _check_username(v: str) -> str:
    if not re.match(r"^[a-zA-Z][a-zA-Z0-9_]*$", v):
        raise ValueError(
            "Username must start with a letter and contain only "
            "letters, numbers, and underscores"
        )
    return v.lower()


def _check_password(v: str) -> str:
    """
    Requirements:
    - At least 8 characters (enforced by min_length)
    - At least 1 uppercase letter, 1 lowercase letter and 1 number
    """
    if not re.search(r"[A-Z]", v):
        raise ValueError("Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", v):
        raise ValueError("Password must contain at least one lowercase letter")
    if not re.search(r"\d", v):
        raise ValueError("Password must contain at least one number")
    return v


class UserBase(BaseModel):
    """Base schema with shared user fields."""

    email: EmailStr = Field(
        ...,
        description="User's email address",
        examples=["john@example.com"],
    )

    username: str = Field(
        ...,
        min_length=3,
        max_length=50,
        description="Unique username (3-50 characters, alphanumeric and underscores)",
        examples=["johndoe", "jane_doe123"],
    )

    picture: str | None = Field(
        default=None,
        max_length=255,
        description="Stored file name of the profile picture",
    )

    @field_validator("username")
    @classmethod
    def username_must_be_valid(cls, v: str) -> str:
        """Usernames are stored lowercase."""
        return _check_username(v)


class UserCreate(UserBase):
    """Schema for user registration."""

    password: str = Field(
        ...,
        min_length=8,
        max_length=128,
        description="Password (min 8 chars, must include uppercase and number)",
        examples=["SecurePass123"],
    )

    @field_validator("password")
    @classmethod
    def password_must_be_strong(cls, v: str) -> str:
        return _check_password(v)


class UserUpdate(BaseModel):
    """Schema for updating a user. All fields optional."""

    email: EmailStr | None = Field(default=None)
    username: str | None = Field(default=None, min_length=3, max_length=50)
    picture: str | None = Field(default=None, max_length=255)
    password: str | None = Field(default=None, min_length=8, max_length=128)

    @field_validator("email", "username")
    @classmethod
    def must_not_be_null(cls, v: str | None, info: ValidationInfo) -> str | None:
        # Omitted fields are not validated, so None here is an explicit null
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v

    @field_validator("username")
    @classmethod
    def username_must_be_valid(cls, v: str) -> str:
        return _check_username(v)

    @field_validator("password")
    @classmethod
    def password_must_be_strong(cls, v: str | None) -> str | None:
        return _check_password(v) if v is not None else v


class UserResponse(BaseModel):
    """
    Schema for user responses.

    SECURITY: Never includes the password hash.
    """

    id: int = Field(..., description="Unique user identifier", examples=[1, 42])
    email: str = Field(..., description="User's email address")
    username: str = Field(..., description="Unique username")
    picture: str | None = Field(default=None, description="Profile picture file name")
    created_at: datetime = Field(..., description="When the user registered")

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": 1,
                "email": "john@example.com",
                "username": "johndoe",
                "picture": None,
                "created_at": "2024-01-15T10:30:00Z",
            }
        },
    )


class UserListResponse(BaseModel):
    """Paginated user list."""

    items: list[UserResponse]
    total: int = Field(..., ge=0)
    page: int = Field(..., ge=1)
    per_page: int = Field(..., ge=1, le=100)
    pages: int = Field(..., ge=0)
