"""Setup of the entities the ledger engines read: students, rules, items and cohorts.

Nothing here changes a balance; point movements go through the ledger,
reset and redemption services.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..models import PointRule, PointType, StoreItem, Student, StudentGroup, StudentTag
from ..utils.datetime import utcnow
from .errors import LedgerValidationError, NotFoundError
from .point_service import MAX_POINT_DELTA

logger = logging.getLogger(__name__)


def _owned(session: Session, model, pk_column, owner_id: UUID, entity_id: UUID, label: str):
    stmt = select(model).where(pk_column == entity_id, model.owner_id == owner_id)
    entity = session.execute(stmt).scalar_one_or_none()
    if entity is None:
        raise NotFoundError(f"{label} {entity_id} not found")
    return entity


def _owned_students(session: Session, owner_id: UUID, student_ids: Sequence[UUID]) -> list[Student]:
    unique_ids = list(dict.fromkeys(student_ids))
    if not unique_ids:
        raise LedgerValidationError("At least one student is required.")
    stmt = select(Student).where(Student.student_id.in_(unique_ids), Student.owner_id == owner_id)
    students = list(session.execute(stmt).scalars())
    if len(students) != len(unique_ids):
        raise LedgerValidationError("Some students do not exist or are not accessible.")
    return students


def create_student(
    session: Session,
    *,
    owner_id: UUID,
    student_no: str,
    display_name: str,
) -> Student:
    """Add a student with an empty balance."""

    student = Student(owner_id=owner_id, student_no=student_no, display_name=display_name, points=0)
    session.add(student)
    try:
        session.flush()
    except IntegrityError as exc:
        raise LedgerValidationError(f"Student number {student_no} is already in use.") from exc
    return student


def get_student(session: Session, *, owner_id: UUID, student_id: UUID) -> Student:
    return _owned(session, Student, Student.student_id, owner_id, student_id, "Student")


def list_students(
    session: Session,
    *,
    owner_id: UUID,
    archived: bool = False,
    search: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
) -> tuple[Sequence[Student], int]:
    conditions = [Student.owner_id == owner_id, Student.is_archived.is_(archived)]
    if search:
        pattern = f"%{search}%"
        conditions.append(or_(Student.display_name.ilike(pattern), Student.student_no.ilike(pattern)))

    total = session.execute(select(func.count(Student.student_id)).where(*conditions)).scalar_one()
    stmt = select(Student).where(*conditions).order_by(Student.student_no).offset(offset).limit(limit)
    return session.execute(stmt).scalars().all(), total


def set_archived(session: Session, *, owner_id: UUID, student_ids: Sequence[UUID], archived: bool) -> int:
    """Archive or restore students. Balances and history are kept as they are."""

    students = _owned_students(session, owner_id, student_ids)
    now = utcnow()
    for student in students:
        student.is_archived = archived
        student.updated_at = now
    session.flush()
    logger.info("%s %d students", "archived" if archived else "restored", len(students))
    return len(students)


def create_rule(
    session: Session,
    *,
    owner_id: UUID,
    name: str,
    points: int,
    point_type: PointType,
    description: Optional[str] = None,
    category: Optional[str] = None,
    is_active: bool = True,
) -> PointRule:
    point_type = PointType(point_type)
    if point_type is not PointType.RESET and points == 0:
        raise LedgerValidationError("Rule points must not be zero.")
    if abs(points) > MAX_POINT_DELTA:
        raise LedgerValidationError(f"Rule points must be within ±{MAX_POINT_DELTA}.")

    rule = PointRule(
        owner_id=owner_id,
        name=name,
        points=points,
        type=point_type,
        description=description,
        category=category,
        is_active=is_active,
    )
    session.add(rule)
    session.flush()
    return rule


def list_rules(session: Session, *, owner_id: UUID, is_active: Optional[bool] = None) -> Sequence[PointRule]:
    stmt = select(PointRule).where(PointRule.owner_id == owner_id).order_by(PointRule.created_at.desc())
    if is_active is not None:
        stmt = stmt.where(PointRule.is_active.is_(is_active))
    return session.execute(stmt).scalars().all()


def _check_item_values(cost: Optional[int], stock: Optional[int]) -> None:
    if cost is not None and cost < 1:
        raise LedgerValidationError("Item cost must be at least 1.")
    if stock is not None and stock < 0:
        raise LedgerValidationError("Item stock must not be negative.")


def create_item(
    session: Session,
    *,
    owner_id: UUID,
    name: str,
    cost: int,
    stock: Optional[int] = None,
    description: Optional[str] = None,
    sort_order: int = 0,
    is_active: bool = True,
) -> StoreItem:
    _check_item_values(cost, stock)
    item = StoreItem(
        owner_id=owner_id,
        name=name,
        cost=cost,
        stock=stock,
        description=description,
        sort_order=sort_order,
        is_active=is_active,
    )
    session.add(item)
    session.flush()
    return item


def update_item(session: Session, *, owner_id: UUID, item_id: UUID, **changes) -> StoreItem:
    """Apply a partial update; ``stock=None`` switches the item to unlimited stock.

    Price changes never touch existing redemptions, which keep their own cost.
    """

    item = _owned(session, StoreItem, StoreItem.item_id, owner_id, item_id, "Store item")
    _check_item_values(changes.get("cost"), changes.get("stock"))

    allowed = {"name", "description", "cost", "stock", "sort_order", "is_active"}
    unknown = set(changes) - allowed
    if unknown:
        raise LedgerValidationError(f"Unknown item fields: {', '.join(sorted(unknown))}")
    nulled = [key for key in ("name", "cost", "sort_order", "is_active") if key in changes and changes[key] is None]
    if nulled:
        raise LedgerValidationError(f"Item fields cannot be null: {', '.join(nulled)}")

    for key, value in changes.items():
        setattr(item, key, value)
    item.updated_at = utcnow()
    session.flush()
    return item


def list_items(session: Session, *, owner_id: UUID, is_active: Optional[bool] = None) -> Sequence[StoreItem]:
    stmt = (
        select(StoreItem)
        .where(StoreItem.owner_id == owner_id)
        .order_by(StoreItem.sort_order, StoreItem.name)
    )
    if is_active is not None:
        stmt = stmt.where(StoreItem.is_active.is_(is_active))
    return session.execute(stmt).scalars().all()


def create_group(session: Session, *, owner_id: UUID, name: str, description: Optional[str] = None) -> StudentGroup:
    group = StudentGroup(owner_id=owner_id, name=name, description=description)
    session.add(group)
    session.flush()
    return group


def add_group_members(
    session: Session,
    *,
    owner_id: UUID,
    group_id: UUID,
    student_ids: Sequence[UUID],
) -> StudentGroup:
    group = _owned(session, StudentGroup, StudentGroup.group_id, owner_id, group_id, "Group")
    for student in _owned_students(session, owner_id, student_ids):
        if student not in group.members:
            group.members.append(student)
    session.flush()
    return group


def create_tag(session: Session, *, owner_id: UUID, name: str) -> StudentTag:
    tag = StudentTag(owner_id=owner_id, name=name)
    session.add(tag)
    session.flush()
    return tag


def add_tag_students(
    session: Session,
    *,
    owner_id: UUID,
    tag_id: UUID,
    student_ids: Sequence[UUID],
) -> StudentTag:
    tag = _owned(session, StudentTag, StudentTag.tag_id, owner_id, tag_id, "Tag")
    for student in _owned_students(session, owner_id, student_ids):
        if student not in tag.students:
            tag.students.append(student)
    session.flush()
    return tag
