"""
User Model

Represents a registered reader. The aggregate services only read users,
to decorate ranking results with display data (username, email, picture).
"""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base

if TYPE_CHECKING:
    from app.models.reading_list import ReadingListEntry
    from app.models.review import Review


class User(Base):
    """
    User model.

    Table: users

    Relationships:
    - reviews: One-to-Many with Review
    - reading_list_entries: One-to-Many with ReadingListEntry

    Example:
        user = User(
            username="booklover",
            email="booklover@example.com",
            hashed_password=hash_password("secret123"),
        )
    """

    __tablename__ = "users"

    # -------------------------------------------------------------------------
    # Primary Key
    # -------------------------------------------------------------------------
    id: Mapped[int] = mapped_column(primary_key=True)

    # -------------------------------------------------------------------------
    # Account Fields
    # -------------------------------------------------------------------------
    username: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        index=True,
        nullable=False,
        comment="Unique display name"
    )

    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
        comment="User's email address"
    )

    hashed_password: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        comment="Bcrypt hashed password"
    )

    picture: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        comment="Stored file name of the profile picture"
    )

    # -------------------------------------------------------------------------
    # Timestamps
    # -------------------------------------------------------------------------
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        comment="When the user registered"
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    # -------------------------------------------------------------------------
    # Relationships
    # -------------------------------------------------------------------------
    reviews: Mapped[list["Review"]] = relationship(
        "Review",
        back_populates="user",
        cascade="all, delete-orphan",
    )

    reading_list_entries: Mapped[list["ReadingListEntry"]] = relationship(
        "ReadingListEntry",
        back_populates="user",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"User(id={self.id}, username='{self.username}')"
