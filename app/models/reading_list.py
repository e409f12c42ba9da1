"""
Reading List Model

One row per (user, book): the user's progress through that book.

Invariants (enforced by app.services.reading_list):
- status == completed implies finish_date is set
- finish_date >= start_date when both are set
"""

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base

if TYPE_CHECKING:
    from app.models.book import Book
    from app.models.user import User


class ReadingStatus(str, Enum):
    """
    Progress states of a reading-list entry.

    - WANT_TO_READ: Added to the list, not started
    - READING: start_date recorded
    - COMPLETED: finish_date recorded
    """
    WANT_TO_READ = "want_to_read"
    READING = "reading"
    COMPLETED = "completed"


class ReadingListEntry(Base):
    """
    Reading list entry keyed by (user_id, book_id).

    Table: reading_list
    """

    __tablename__ = "reading_list"

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )
    book_id: Mapped[int] = mapped_column(
        ForeignKey("books.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    )

    status: Mapped[str] = mapped_column(
        String(20),
        default=ReadingStatus.WANT_TO_READ.value,
        nullable=False,
        comment="want_to_read, reading or completed"
    )

    start_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        comment="When the user started reading"
    )

    # Indexed: the reading-speed ranking scans rows with a finish date
    finish_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        index=True,
        nullable=True,
        comment="When the user finished reading"
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    user: Mapped["User"] = relationship("User", back_populates="reading_list_entries")
    book: Mapped["Book"] = relationship("Book", back_populates="reading_list_entries")

    def __repr__(self) -> str:
        return (
            f"ReadingListEntry(user_id={self.user_id}, book_id={self.book_id}, "
            f"status='{self.status}')"
        )
