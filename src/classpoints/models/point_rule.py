"""Point rule templates and the point type enum."""

import enum
import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Enum as SAEnum, Integer, String, Uuid
from sqlalchemy.orm import relationship

from ..core.database import Base


class PointType(str, enum.Enum):
    """Ledger entry classification."""

    ADD = "ADD"
    SUBTRACT = "SUBTRACT"
    RESET = "RESET"


class PointRule(Base):
    """Named template mapping to a fixed points value and type."""

    __tablename__ = "point_rules"

    rule_id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    owner_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    description = Column(String(500))
    points = Column(Integer, nullable=False)
    type = Column(SAEnum(PointType, name="point_type"), nullable=False)
    category = Column(String(50))
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    point_records = relationship("PointRecord", back_populates="rule")
