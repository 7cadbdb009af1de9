"""Pydantic schemas for cohort resets.

The cohort is a discriminated union on ``mode`` so each mode carries exactly
the selector it needs.
"""

from typing import Annotated, List, Literal, Optional, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class ResetAll(BaseModel):
    mode: Literal["all"]


class ResetGroup(BaseModel):
    mode: Literal["group"]
    group_id: UUID


class ResetTag(BaseModel):
    mode: Literal["tag"]
    tag_id: UUID


class ResetSelected(BaseModel):
    mode: Literal["selected"]
    student_ids: List[UUID] = Field(..., min_length=1)


CohortSelector = Annotated[
    Union[ResetAll, ResetGroup, ResetTag, ResetSelected],
    Field(discriminator="mode"),
]


class ResetRequest(BaseModel):
    cohort: CohortSelector
    target_value: int = Field(..., ge=-1000, le=1000)
    reason: Optional[str] = Field(None, max_length=150)


class ResetEntryRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    student_id: UUID
    student_no: str
    display_name: str
    old_points: int
    new_points: int


class ResetSummaryRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    mode: str
    target_value: int
    count: int
    affected: List[ResetEntryRead]
