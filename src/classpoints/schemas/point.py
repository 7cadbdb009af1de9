"""Pydantic schemas for point ledger endpoints."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from ..models import PointType
from .student import StudentSummary


class PointApply(BaseModel):
    """Signed change for a single student."""

    student_id: UUID
    points: int = Field(..., ge=-1000, le=1000, description="Non-zero signed delta.")
    reason: str = Field(..., min_length=1, max_length=200)
    rule_id: Optional[UUID] = None


class PointBatchApply(BaseModel):
    """Same change for many students; ``type`` decides the sign, RESET sets the value."""

    student_ids: List[UUID] = Field(..., min_length=1)
    points: int = Field(..., ge=-1000, le=1000)
    reason: str = Field(..., min_length=1, max_length=200)
    type: PointType
    rule_id: Optional[UUID] = None


class RuleApply(BaseModel):
    student_ids: List[UUID] = Field(..., min_length=1)


class PointRecordRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    record_id: int
    student: StudentSummary
    rule_id: Optional[UUID]
    redemption_id: Optional[UUID]
    type: PointType
    points: int
    reason: str
    created_at: datetime


class PointApplyResult(BaseModel):
    student: StudentSummary
    record: PointRecordRead


class PointBatchResult(BaseModel):
    count: int
    records: List[PointRecordRead]


class PointRuleCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    points: int = Field(..., ge=-1000, le=1000)
    type: PointType
    category: Optional[str] = Field(None, max_length=50)
    is_active: bool = True


class PointRuleRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    rule_id: UUID
    name: str
    description: Optional[str]
    points: int
    type: PointType
    category: Optional[str]
    is_active: bool
    created_at: datetime
