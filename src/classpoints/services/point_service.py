"""Point ledger: balance changes paired with their history records."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Sequence
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session, joinedload

from ..models import PointRecord, PointRule, PointType, Student
from ..utils.datetime import utcnow
from .errors import InactiveError, LedgerValidationError, NotFoundError

logger = logging.getLogger(__name__)

MAX_POINT_DELTA = 1000


@dataclass
class BatchResult:
    """Students touched by a batch ledger operation and the records written for them."""

    students: list[Student] = field(default_factory=list)
    records: list[PointRecord] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.records)


def _check_reason(reason: str) -> str:
    cleaned = (reason or "").strip()
    if not cleaned:
        raise LedgerValidationError("Reason must not be empty.")
    return cleaned


def _check_points(points: int, *, allow_zero: bool = False) -> None:
    if isinstance(points, bool) or not isinstance(points, int):
        raise LedgerValidationError("Points must be an integer.")
    if not allow_zero and points == 0:
        raise LedgerValidationError("Points must not be zero.")
    if abs(points) > MAX_POINT_DELTA:
        raise LedgerValidationError(f"Points must be within ±{MAX_POINT_DELTA}.")


def _ensure_student(session: Session, owner_id: UUID, student_id: UUID) -> Student:
    stmt = (
        select(Student)
        .where(Student.student_id == student_id, Student.owner_id == owner_id)
        .with_for_update()
    )
    student = session.execute(stmt).scalar_one_or_none()
    if student is None:
        raise NotFoundError(f"Student {student_id} not found")
    return student


def _ensure_rule(session: Session, owner_id: UUID, rule_id: UUID) -> PointRule:
    stmt = select(PointRule).where(PointRule.rule_id == rule_id, PointRule.owner_id == owner_id)
    rule = session.execute(stmt).scalar_one_or_none()
    if rule is None:
        raise NotFoundError(f"Point rule {rule_id} not found")
    return rule


def _lock_students(session: Session, owner_id: UUID, student_ids: Sequence[UUID]) -> list[Student]:
    """Load every requested student or fail without touching any of them."""

    unique_ids = list(dict.fromkeys(student_ids))
    if not unique_ids:
        raise LedgerValidationError("At least one student is required.")

    stmt = (
        select(Student)
        .where(Student.student_id.in_(unique_ids), Student.owner_id == owner_id)
        .with_for_update()
    )
    found = {student.student_id: student for student in session.execute(stmt).scalars()}
    if len(found) != len(unique_ids):
        raise LedgerValidationError("Some students do not exist or are not accessible.")
    return [found[student_id] for student_id in unique_ids]


def apply_points(
    session: Session,
    *,
    owner_id: UUID,
    student_id: UUID,
    points: int,
    reason: str,
    rule_id: Optional[UUID] = None,
) -> tuple[Student, PointRecord]:
    """Add a signed delta to one student's balance and record it."""

    reason = _check_reason(reason)
    _check_points(points)

    student = _ensure_student(session, owner_id, student_id)
    if student.is_archived:
        raise LedgerValidationError(f"Student {student_id} is archived.")
    if rule_id is not None:
        _ensure_rule(session, owner_id, rule_id)

    now = utcnow()
    student.points += points
    student.updated_at = now
    record = PointRecord(
        owner_id=owner_id,
        student_id=student.student_id,
        rule_id=rule_id,
        type=PointType.ADD if points >= 0 else PointType.SUBTRACT,
        points=points,
        reason=reason,
        created_at=now,
    )
    session.add(record)
    session.flush()

    logger.info("applied %+d points to student %s (balance %d)", points, student.student_id, student.points)
    return student, record


def apply_points_to_many(
    session: Session,
    *,
    owner_id: UUID,
    student_ids: Sequence[UUID],
    points: int,
    reason: str,
    point_type: PointType,
    rule_id: Optional[UUID] = None,
) -> BatchResult:
    """Apply the same change to several students, all or nothing.

    ADD and SUBTRACT take their sign from ``point_type``. RESET sets every
    balance to ``points`` and records the delta needed to get there.
    """

    reason = _check_reason(reason)
    point_type = PointType(point_type)
    _check_points(points, allow_zero=point_type is PointType.RESET)

    if point_type is PointType.ADD:
        delta = abs(points)
    elif point_type is PointType.SUBTRACT:
        delta = -abs(points)
    else:
        delta = None

    students = _lock_students(session, owner_id, student_ids)
    archived = [str(student.student_id) for student in students if student.is_archived]
    if archived:
        raise LedgerValidationError(f"Archived students cannot receive points: {', '.join(archived)}")
    if rule_id is not None:
        _ensure_rule(session, owner_id, rule_id)

    now = utcnow()
    result = BatchResult()
    for student in students:
        change = points - student.points if delta is None else delta
        student.points += change
        student.updated_at = now
        record = PointRecord(
            owner_id=owner_id,
            student_id=student.student_id,
            rule_id=rule_id,
            type=point_type,
            points=change,
            reason=reason,
            created_at=now,
        )
        session.add(record)
        result.students.append(student)
        result.records.append(record)
    session.flush()

    logger.info("applied %s %d to %d students", point_type.value, points, result.count)
    return result


def apply_rule(
    session: Session,
    *,
    owner_id: UUID,
    student_ids: Sequence[UUID],
    rule_id: UUID,
) -> BatchResult:
    """Apply an active rule's fixed points to the given students."""

    rule = _ensure_rule(session, owner_id, rule_id)
    if not rule.is_active:
        raise InactiveError(f"Point rule {rule_id} is inactive.")

    return apply_points_to_many(
        session,
        owner_id=owner_id,
        student_ids=student_ids,
        points=rule.points,
        reason=rule.name,
        point_type=rule.type,
        rule_id=rule.rule_id,
    )


def ledger_balance(session: Session, *, owner_id: UUID, student_id: UUID) -> int:
    """Sum of every record for the student; equals ``Student.points`` when consistent."""

    stmt = select(func.coalesce(func.sum(PointRecord.points), 0)).where(
        PointRecord.student_id == student_id,
        PointRecord.owner_id == owner_id,
    )
    return int(session.execute(stmt).scalar_one())


def list_point_records(
    session: Session,
    *,
    owner_id: UUID,
    student_id: Optional[UUID] = None,
    point_type: Optional[PointType] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    search: Optional[str] = None,
    limit: int = 20,
    offset: int = 0,
) -> tuple[Sequence[PointRecord], int]:
    """Return a page of records for active students plus the total match count."""

    conditions = [PointRecord.owner_id == owner_id, Student.is_archived.is_(False)]
    if student_id:
        conditions.append(PointRecord.student_id == student_id)
    if point_type:
        conditions.append(PointRecord.type == point_type)
    if start:
        conditions.append(PointRecord.created_at >= start)
    if end:
        conditions.append(PointRecord.created_at <= end)
    if search:
        pattern = f"%{search}%"
        conditions.append(or_(PointRecord.reason.ilike(pattern), Student.display_name.ilike(pattern)))

    total_stmt = select(func.count(PointRecord.record_id)).join(PointRecord.student).where(*conditions)
    total = session.execute(total_stmt).scalar_one()

    stmt = (
        select(PointRecord)
        .join(PointRecord.student)
        .options(joinedload(PointRecord.student), joinedload(PointRecord.rule))
        .where(*conditions)
        .order_by(PointRecord.created_at.desc(), PointRecord.record_id.desc())
        .offset(offset)
        .limit(limit)
    )
    records = session.execute(stmt).scalars().all()
    return records, total
