"""Cohort point resets."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence, Union
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..models import PointRecord, PointType, Student, StudentGroup, StudentTag
from ..models.cohort import student_group_members, student_tag_relations
from ..utils.datetime import utcnow
from .errors import ForbiddenError, LedgerValidationError, NotFoundError
from .point_service import MAX_POINT_DELTA

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AllStudents:
    mode = "all"


@dataclass(frozen=True)
class GroupCohort:
    group_id: UUID
    mode = "group"


@dataclass(frozen=True)
class TagCohort:
    tag_id: UUID
    mode = "tag"


@dataclass(frozen=True)
class SelectedStudents:
    student_ids: tuple[UUID, ...]
    mode = "selected"


Cohort = Union[AllStudents, GroupCohort, TagCohort, SelectedStudents]

_MODE_LABELS = {
    "all": "all students",
    "group": "group",
    "tag": "tag",
    "selected": "selected students",
}


@dataclass
class ResetEntry:
    student_id: UUID
    student_no: str
    display_name: str
    old_points: int
    new_points: int


@dataclass
class ResetSummary:
    mode: str
    target_value: int
    affected: list[ResetEntry] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.affected)


def _group_member_ids(session: Session, owner_id: UUID, group_id: UUID) -> Sequence[UUID]:
    group = session.get(StudentGroup, group_id)
    if group is None:
        raise NotFoundError(f"Group {group_id} not found")
    if group.owner_id != owner_id:
        raise ForbiddenError(f"Group {group_id} belongs to another owner")
    stmt = select(student_group_members.c.student_id).where(student_group_members.c.group_id == group_id)
    return session.execute(stmt).scalars().all()


def _tag_member_ids(session: Session, owner_id: UUID, tag_id: UUID) -> Sequence[UUID]:
    tag = session.get(StudentTag, tag_id)
    if tag is None:
        raise NotFoundError(f"Tag {tag_id} not found")
    if tag.owner_id != owner_id:
        raise ForbiddenError(f"Tag {tag_id} belongs to another owner")
    stmt = select(student_tag_relations.c.student_id).where(student_tag_relations.c.tag_id == tag_id)
    return session.execute(stmt).scalars().all()


def _selected_ids(session: Session, owner_id: UUID, student_ids: Sequence[UUID]) -> Sequence[UUID]:
    unique_ids = list(dict.fromkeys(student_ids))
    if not unique_ids:
        raise LedgerValidationError("No students selected.")
    stmt = select(Student.student_id).where(Student.student_id.in_(unique_ids), Student.owner_id == owner_id)
    owned = session.execute(stmt).scalars().all()
    if len(owned) != len(unique_ids):
        raise LedgerValidationError("Some students do not exist or are not accessible.")
    return unique_ids


def resolve_cohort(session: Session, owner_id: UUID, cohort: Cohort) -> list[Student]:
    """Return the owner's non-archived students addressed by ``cohort``, locked for update."""

    stmt = (
        select(Student)
        .where(Student.owner_id == owner_id, Student.is_archived.is_(False))
        .order_by(Student.student_no)
        .with_for_update()
    )

    if isinstance(cohort, AllStudents):
        pass
    elif isinstance(cohort, GroupCohort):
        stmt = stmt.where(Student.student_id.in_(_group_member_ids(session, owner_id, cohort.group_id)))
    elif isinstance(cohort, TagCohort):
        stmt = stmt.where(Student.student_id.in_(_tag_member_ids(session, owner_id, cohort.tag_id)))
    elif isinstance(cohort, SelectedStudents):
        stmt = stmt.where(Student.student_id.in_(_selected_ids(session, owner_id, cohort.student_ids)))
    else:
        raise LedgerValidationError(f"Unsupported reset cohort: {cohort!r}")

    return list(session.execute(stmt).scalars())


def reset_points(
    session: Session,
    *,
    owner_id: UUID,
    cohort: Cohort,
    target_value: int,
    reason: Optional[str] = None,
) -> ResetSummary:
    """Set every cohort balance to ``target_value``, recording one RESET delta per student."""

    if isinstance(target_value, bool) or not isinstance(target_value, int):
        raise LedgerValidationError("Target value must be an integer.")
    if abs(target_value) > MAX_POINT_DELTA:
        raise LedgerValidationError(f"Target value must be within ±{MAX_POINT_DELTA}.")

    students = resolve_cohort(session, owner_id, cohort)
    if not students:
        raise LedgerValidationError("No students match the reset criteria.")

    label = _MODE_LABELS[cohort.mode]
    base_reason = (reason or "").strip() or "Points reset"
    record_reason = f"{base_reason} ({label})"

    now = utcnow()
    summary = ResetSummary(mode=cohort.mode, target_value=target_value)
    for student in students:
        old_points = student.points
        session.add(
            PointRecord(
                owner_id=owner_id,
                student_id=student.student_id,
                type=PointType.RESET,
                points=target_value - old_points,
                reason=record_reason,
                created_at=now,
            )
        )
        student.points = target_value
        student.updated_at = now
        summary.affected.append(
            ResetEntry(
                student_id=student.student_id,
                student_no=student.student_no,
                display_name=student.display_name,
                old_points=old_points,
                new_points=target_value,
            )
        )
    session.flush()

    logger.info("reset %d students to %d (%s)", summary.count, target_value, cohort.mode)
    return summary
