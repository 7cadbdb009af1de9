"""Pydantic schemas for groups and tags."""

from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class GroupCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    description: Optional[str] = Field(None, max_length=200)


class TagCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=30)


class GroupRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    group_id: UUID
    name: str
    description: Optional[str]
    member_ids: List[UUID] = Field(default_factory=list)


class TagRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    tag_id: UUID
    name: str
    student_ids: List[UUID] = Field(default_factory=list)
