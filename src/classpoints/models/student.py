"""Student domain model."""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Integer, String, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from ..core.database import Base


class Student(Base):
    """A student on a teacher's roster with a materialized points balance."""

    __tablename__ = "students"
    __table_args__ = (
        UniqueConstraint("owner_id", "student_no", name="students_owner_student_no_unique"),
    )

    student_id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    owner_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    student_no = Column(String(50), nullable=False)
    display_name = Column(String(100), nullable=False)
    points = Column(Integer, nullable=False, default=0)
    is_archived = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    point_records = relationship(
        "PointRecord",
        back_populates="student",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    redemptions = relationship("Redemption", back_populates="student")
    call_history = relationship("CallHistory", back_populates="student", passive_deletes=True)
    groups = relationship("StudentGroup", secondary="student_group_members", back_populates="members")
    tags = relationship("StudentTag", secondary="student_tag_relations", back_populates="students")
