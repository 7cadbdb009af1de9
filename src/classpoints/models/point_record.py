"""Point record model capturing balance movements."""

from datetime import datetime

from sqlalchemy import CheckConstraint, Column, DateTime, Enum as SAEnum, ForeignKey, Index, Integer, String, Uuid
from sqlalchemy.orm import relationship

from ..core.database import Base
from .point_rule import PointType


class PointRecord(Base):
    """Immutable ledger of point deltas for each student.

    ``points`` is always the signed delta applied to the balance, RESET
    entries included, so a student's balance equals the sum of their records.
    """

    __tablename__ = "point_records"
    __table_args__ = (
        CheckConstraint("type = 'RESET' OR points <> 0", name="point_records_delta_nonzero"),
        Index("ix_point_records_owner_created", "owner_id", "created_at"),
    )

    record_id = Column(Integer, primary_key=True, autoincrement=True)
    owner_id = Column(Uuid(as_uuid=True), nullable=False)
    student_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("students.student_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    rule_id = Column(Uuid(as_uuid=True), ForeignKey("point_rules.rule_id", ondelete="SET NULL"))
    redemption_id = Column(Uuid(as_uuid=True), ForeignKey("redemptions.redemption_id", ondelete="SET NULL"))
    type = Column(SAEnum(PointType, name="point_type"), nullable=False)
    points = Column(Integer, nullable=False)
    reason = Column(String(200), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    student = relationship("Student", back_populates="point_records")
    rule = relationship("PointRule", back_populates="point_records")
    redemption = relationship("Redemption", back_populates="point_records")
