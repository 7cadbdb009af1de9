"""Pydantic schemas for store and redemption workflows."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from ..models import RedemptionStatus
from .student import StudentSummary


class StoreItemCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    cost: int = Field(..., ge=1, description="Price in points.")
    stock: Optional[int] = Field(None, ge=0, description="Units left; null means unlimited.")
    sort_order: int = 0
    is_active: bool = True


class StoreItemUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    cost: Optional[int] = Field(None, ge=1)
    stock: Optional[int] = Field(None, ge=0)
    sort_order: Optional[int] = None
    is_active: Optional[bool] = None


class ItemSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    item_id: UUID
    name: str
    cost: int


class StoreItemRead(ItemSummary):
    description: Optional[str]
    stock: Optional[int]
    sort_order: int
    is_active: bool
    created_at: datetime


class RedemptionCreate(BaseModel):
    """Incoming payload for redeeming an item."""

    student_id: UUID
    item_id: UUID
    notes: Optional[str] = Field(None, max_length=500)


class RedemptionBatchCreate(BaseModel):
    student_ids: List[UUID] = Field(..., min_length=1)
    item_id: UUID
    notes: Optional[str] = Field(None, max_length=500)


class RedemptionStatusUpdate(BaseModel):
    status: RedemptionStatus
    notes: Optional[str] = Field(None, max_length=500)


class RedemptionRead(BaseModel):
    """Redemption with the cost fixed at redemption time."""

    model_config = ConfigDict(from_attributes=True)

    redemption_id: UUID
    student: StudentSummary
    item: ItemSummary
    cost: int
    status: RedemptionStatus
    notes: Optional[str]
    redeemed_at: datetime
    fulfilled_at: Optional[datetime]


class PopularItem(BaseModel):
    item_id: UUID
    name: str
    cost: int
    redemption_count: int


class StoreStatsRead(BaseModel):
    period_days: int
    total_items: int
    active_items: int
    total_redemptions: int
    pending_redemptions: int
    fulfilled_redemptions: int
    cancelled_redemptions: int
    total_points_spent: int
    period_redemptions: int
    period_points_spent: int
    popular_items: List[PopularItem]
