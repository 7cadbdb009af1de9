"""Student groups and tags used to target batch operations."""

import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, String, Table, Uuid
from sqlalchemy.orm import relationship

from ..core.database import Base

student_group_members = Table(
    "student_group_members",
    Base.metadata,
    Column("group_id", Uuid(as_uuid=True), ForeignKey("student_groups.group_id", ondelete="CASCADE"), primary_key=True),
    Column("student_id", Uuid(as_uuid=True), ForeignKey("students.student_id", ondelete="CASCADE"), primary_key=True),
)

student_tag_relations = Table(
    "student_tag_relations",
    Base.metadata,
    Column("tag_id", Uuid(as_uuid=True), ForeignKey("student_tags.tag_id", ondelete="CASCADE"), primary_key=True),
    Column("student_id", Uuid(as_uuid=True), ForeignKey("students.student_id", ondelete="CASCADE"), primary_key=True),
)


class StudentGroup(Base):
    __tablename__ = "student_groups"

    group_id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    owner_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    name = Column(String(50), nullable=False)
    description = Column(String(200))
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    members = relationship("Student", secondary=student_group_members, back_populates="groups")

    @property
    def member_ids(self) -> list:
        return [student.student_id for student in self.members]


class StudentTag(Base):
    __tablename__ = "student_tags"

    tag_id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    owner_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    name = Column(String(30), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    students = relationship("Student", secondary=student_tag_relations, back_populates="tags")

    @property
    def student_ids(self) -> list:
        return [student.student_id for student in self.students]
