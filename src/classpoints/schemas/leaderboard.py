"""Leaderboard response schemas."""

from uuid import UUID

from pydantic import BaseModel, Field


class LeaderboardStudent(BaseModel):
    """Aggregated leaderboard entry."""

    student_id: UUID
    student_no: str
    display_name: str
    points: int
    points_earned: int = Field(..., ge=0)
    records_count: int = Field(..., ge=0)
