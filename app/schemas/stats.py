"""
Statistics Pydantic Schemas

Response shapes of the ranking endpoints.
"""

from pydantic import BaseModel, Field


class TopReviewer(BaseModel):
    """
    One row of the reviewer ranking.

    username and email read "Unknown" when the user row no longer exists.
    """

    user_id: int
    username: str
    email: str
    picture: str | None = None
    review_count: int = Field(..., ge=1)


class FastestReader(BaseModel):
    """One row of the reading-speed ranking."""

    user_id: int
    username: str
    average_duration: float = Field(..., ge=0, description="Mean reading time in seconds")
    average_duration_days: float = Field(..., ge=0, description="Mean reading time in days")
    completed_count: int = Field(..., ge=1, description="Entries that went into the mean")
