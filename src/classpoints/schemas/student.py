"""Pydantic schemas for roster endpoints."""

from datetime import datetime
from typing import List
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class StudentSummary(BaseModel):
    """Lightweight projection of student details."""

    model_config = ConfigDict(from_attributes=True)

    student_id: UUID
    student_no: str
    display_name: str
    points: int


class StudentRead(StudentSummary):
    is_archived: bool
    created_at: datetime


class StudentCreate(BaseModel):
    student_no: str = Field(..., min_length=1, max_length=50)
    display_name: str = Field(..., min_length=1, max_length=100)


class StudentIds(BaseModel):
    student_ids: List[UUID] = Field(..., min_length=1)


class LedgerCheck(BaseModel):
    """Materialized balance next to the sum of the student's records."""

    student_id: UUID
    points: int
    ledger_balance: int
    consistent: bool
