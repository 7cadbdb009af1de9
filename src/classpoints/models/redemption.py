"""Redemption domain model."""

import enum
import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, Column, DateTime, Enum as SAEnum, ForeignKey, Integer, String, Uuid
from sqlalchemy.orm import relationship

from ..core.database import Base


class RedemptionStatus(str, enum.Enum):
    """Possible redemption states."""

    PENDING = "PENDING"
    FULFILLED = "FULFILLED"
    CANCELLED = "CANCELLED"


class Redemption(Base):
    """A student's purchase of a store item, priced at the moment of redemption."""

    __tablename__ = "redemptions"
    __table_args__ = (
        CheckConstraint("cost > 0", name="redemptions_cost_positive"),
    )

    redemption_id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    owner_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    student_id = Column(Uuid(as_uuid=True), ForeignKey("students.student_id", ondelete="RESTRICT"), nullable=False)
    item_id = Column(Uuid(as_uuid=True), ForeignKey("store_items.item_id", ondelete="RESTRICT"), nullable=False)
    cost = Column(Integer, nullable=False)
    status = Column(SAEnum(RedemptionStatus, name="redemption_status"), nullable=False, default=RedemptionStatus.PENDING)
    notes = Column(String(500))
    redeemed_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    fulfilled_at = Column(DateTime)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    student = relationship("Student", back_populates="redemptions")
    item = relationship("StoreItem", back_populates="redemptions")
    point_records = relationship("PointRecord", back_populates="redemption")
