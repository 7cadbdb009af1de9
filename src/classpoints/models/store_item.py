"""Store catalogue model."""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Integer, String, Uuid
from sqlalchemy.orm import relationship

from ..core.database import Base


class StoreItem(Base):
    """Reward that students can buy with points. ``stock`` of ``None`` means unlimited."""

    __tablename__ = "store_items"
    __table_args__ = (
        CheckConstraint("cost > 0", name="store_items_cost_positive"),
        CheckConstraint("stock IS NULL OR stock >= 0", name="store_items_stock_non_negative"),
    )

    item_id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    owner_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    description = Column(String(500))
    cost = Column(Integer, nullable=False)
    stock = Column(Integer)
    is_active = Column(Boolean, nullable=False, default=True)
    sort_order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    redemptions = relationship("Redemption", back_populates="item")
