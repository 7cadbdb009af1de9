"""Pydantic schemas for random call endpoints."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from ..models import CallMode
from .student import StudentSummary


class RandomCallRequest(BaseModel):
    avoid_hours: Optional[float] = Field(
        None,
        ge=0,
        le=24 * 30,
        description="Skip students called within this many hours; defaults to the service setting.",
    )
    exclude_ids: List[UUID] = Field(default_factory=list)


class RandomCallResult(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    student: StudentSummary
    avoid_reset_used: bool
    total_available: int
    total_excluded: int
    message: Optional[str] = None


class CallHistoryRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    call_id: UUID
    student: Optional[StudentSummary]
    mode: CallMode
    called_at: datetime
