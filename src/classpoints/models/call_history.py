"""Random call audit trail."""

import enum
import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, Enum as SAEnum, ForeignKey, Index, Uuid
from sqlalchemy.orm import relationship

from ..core.database import Base


class CallMode(str, enum.Enum):
    RANDOM = "RANDOM"


class CallHistory(Base):
    """Append-only record of a student being called on."""

    __tablename__ = "call_history"
    __table_args__ = (
        Index("ix_call_history_owner_called", "owner_id", "called_at"),
    )

    call_id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    owner_id = Column(Uuid(as_uuid=True), nullable=False)
    # Kept nullable so the audit row survives student deletion
    student_id = Column(Uuid(as_uuid=True), ForeignKey("students.student_id", ondelete="SET NULL"))
    mode = Column(SAEnum(CallMode, name="call_mode"), nullable=False, default=CallMode.RANDOM)
    called_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    student = relationship("Student", back_populates="call_history")
