"""Domain logic for store redemptions."""

from __future__ import annotations

import logging
from typing import Any, Optional, Sequence
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session, joinedload

from ..models import PointRecord, PointType, Redemption, RedemptionStatus, StoreItem, Student
from ..utils.datetime import period_start, utcnow
from .errors import (
    ArchivedError,
    InactiveError,
    InsufficientPointsError,
    LedgerValidationError,
    NotFoundError,
    OutOfStockError,
)

logger = logging.getLogger(__name__)

_SPENT_STATUSES = (RedemptionStatus.PENDING, RedemptionStatus.FULFILLED)


def _ensure_item(session: Session, owner_id: UUID, item_id: UUID) -> StoreItem:
    stmt = (
        select(StoreItem)
        .where(StoreItem.item_id == item_id, StoreItem.owner_id == owner_id)
        .with_for_update()
    )
    item = session.execute(stmt).scalar_one_or_none()
    if item is None:
        raise NotFoundError(f"Store item {item_id} not found")
    if not item.is_active:
        raise InactiveError(f"Store item {item.name} is no longer available.")
    return item


def _ensure_student(session: Session, owner_id: UUID, student_id: UUID) -> Student:
    stmt = (
        select(Student)
        .where(Student.student_id == student_id, Student.owner_id == owner_id)
        .with_for_update()
    )
    student = session.execute(stmt).scalar_one_or_none()
    if student is None:
        raise NotFoundError(f"Student {student_id} not found")
    if student.is_archived:
        raise ArchivedError(f"Student {student.display_name} is archived and cannot redeem.")
    return student


def _debit(session: Session, owner_id: UUID, student: Student, item: StoreItem, notes: Optional[str]) -> Redemption:
    now = utcnow()
    if item.stock is not None:
        item.stock -= 1
        item.updated_at = now
    student.points -= item.cost
    student.updated_at = now

    redemption = Redemption(
        owner_id=owner_id,
        student=student,
        item=item,
        cost=item.cost,
        status=RedemptionStatus.PENDING,
        notes=notes,
        redeemed_at=now,
        updated_at=now,
    )
    session.add(redemption)
    session.flush()  # Assign redemption_id before linking the ledger entry

    session.add(
        PointRecord(
            owner_id=owner_id,
            student_id=student.student_id,
            redemption_id=redemption.redemption_id,
            type=PointType.SUBTRACT,
            points=-item.cost,
            reason=f"Redeemed {item.name}",
            created_at=now,
        )
    )
    return redemption


def redeem(
    session: Session,
    *,
    owner_id: UUID,
    student_id: UUID,
    item_id: UUID,
    notes: Optional[str] = None,
) -> Redemption:
    """Debit a student's points for one unit of an item.

    Every check runs before the first write, so a failure leaves the
    balance, the stock and the redemption table untouched.
    """

    item = _ensure_item(session, owner_id, item_id)
    student = _ensure_student(session, owner_id, student_id)

    if student.points < item.cost:
        raise InsufficientPointsError(
            f"Insufficient points. {item.cost} required, {student.points} available."
        )
    if item.stock is not None and item.stock < 1:
        raise OutOfStockError(f"{item.name} is out of stock.")

    redemption = _debit(session, owner_id, student, item, notes)
    session.flush()

    logger.info(
        "student %s redeemed %s for %d points (balance %d)",
        student.student_id,
        item.item_id,
        redemption.cost,
        student.points,
    )
    return redemption


def redeem_many(
    session: Session,
    *,
    owner_id: UUID,
    student_ids: Sequence[UUID],
    item_id: UUID,
    notes: Optional[str] = None,
) -> list[Redemption]:
    """Redeem one unit of an item for each student, all or nothing."""

    unique_ids = list(dict.fromkeys(student_ids))
    if not unique_ids:
        raise LedgerValidationError("At least one student is required.")

    item = _ensure_item(session, owner_id, item_id)

    stmt = (
        select(Student)
        .where(Student.student_id.in_(unique_ids), Student.owner_id == owner_id)
        .with_for_update()
    )
    found = {student.student_id: student for student in session.execute(stmt).scalars()}
    if len(found) != len(unique_ids):
        raise NotFoundError("Some students do not exist or are not accessible.")
    students = [found[student_id] for student_id in unique_ids]

    archived = [student.display_name for student in students if student.is_archived]
    if archived:
        raise ArchivedError(f"Archived students cannot redeem: {', '.join(archived)}")
    short = [student.display_name for student in students if student.points < item.cost]
    if short:
        raise InsufficientPointsError(f"Insufficient points ({item.cost} required): {', '.join(short)}")
    if item.stock is not None and item.stock < len(students):
        raise OutOfStockError(f"{item.name} has {item.stock} left, {len(students)} requested.")

    redemptions = [_debit(session, owner_id, student, item, notes) for student in students]
    session.flush()

    logger.info("%d students redeemed %s", len(redemptions), item.item_id)
    return redemptions


def get_redemption(session: Session, *, owner_id: UUID, redemption_id: UUID) -> Redemption:
    stmt = (
        select(Redemption)
        .options(joinedload(Redemption.student), joinedload(Redemption.item))
        .where(Redemption.redemption_id == redemption_id, Redemption.owner_id == owner_id)
    )
    redemption = session.execute(stmt).scalar_one_or_none()
    if redemption is None:
        raise NotFoundError(f"Redemption {redemption_id} not found")
    return redemption


def update_status(
    session: Session,
    *,
    owner_id: UUID,
    redemption_id: UUID,
    status: RedemptionStatus,
    notes: Optional[str] = None,
) -> Redemption:
    """Move a redemption along its lifecycle.

    PENDING may become FULFILLED or CANCELLED; both are terminal, so a
    fulfilled redemption can no longer be cancelled and refunded (the
    classroom app this replaces allowed that). Cancelling refunds the
    snapshot cost and restores tracked stock. Repeating the current status
    only updates the notes.
    """

    status = RedemptionStatus(status)
    stmt = (
        select(Redemption)
        .where(Redemption.redemption_id == redemption_id, Redemption.owner_id == owner_id)
        .with_for_update()
    )
    redemption = session.execute(stmt).scalar_one_or_none()
    if redemption is None:
        raise NotFoundError(f"Redemption {redemption_id} not found")

    current = redemption.status
    now = utcnow()

    if status == current:
        pass
    elif current != RedemptionStatus.PENDING:
        raise LedgerValidationError(
            f"Redemption is already {current.value} and cannot become {status.value}."
        )
    elif status == RedemptionStatus.CANCELLED:
        # Same lock order as redeem: item, then student
        item = session.get(StoreItem, redemption.item_id, with_for_update=True)
        student = session.get(Student, redemption.student_id, with_for_update=True)
        student.points += redemption.cost
        student.updated_at = now
        # Stock comes back even when the item has since been deactivated
        if item.stock is not None:
            item.stock += 1
            item.updated_at = now
        session.add(
            PointRecord(
                owner_id=owner_id,
                student_id=student.student_id,
                redemption_id=redemption.redemption_id,
                type=PointType.ADD,
                points=redemption.cost,
                reason=f"Refund for cancelled {item.name}",
                created_at=now,
            )
        )
        logger.info("cancelled redemption %s, refunded %d points", redemption.redemption_id, redemption.cost)
    elif status == RedemptionStatus.FULFILLED:
        redemption.fulfilled_at = now
        logger.info("fulfilled redemption %s", redemption.redemption_id)

    redemption.status = status
    if notes is not None:
        redemption.notes = notes
    redemption.updated_at = now
    session.flush()
    return redemption


def list_redemptions(
    session: Session,
    *,
    owner_id: UUID,
    student_id: Optional[UUID] = None,
    item_id: Optional[UUID] = None,
    status: Optional[RedemptionStatus] = None,
    limit: int = 20,
    offset: int = 0,
) -> tuple[Sequence[Redemption], int]:
    """Return a page of redemptions for active students plus the total match count."""

    conditions = [Redemption.owner_id == owner_id, Student.is_archived.is_(False)]
    if student_id:
        conditions.append(Redemption.student_id == student_id)
    if item_id:
        conditions.append(Redemption.item_id == item_id)
    if status:
        conditions.append(Redemption.status == status)

    total_stmt = select(func.count(Redemption.redemption_id)).join(Redemption.student).where(*conditions)
    total = session.execute(total_stmt).scalar_one()

    stmt = (
        select(Redemption)
        .join(Redemption.student)
        .options(joinedload(Redemption.student), joinedload(Redemption.item))
        .where(*conditions)
        .order_by(Redemption.redeemed_at.desc())
        .offset(offset)
        .limit(limit)
    )
    return session.execute(stmt).scalars().all(), total


def store_stats(session: Session, *, owner_id: UUID, period_days: int = 30) -> dict[str, Any]:
    """Aggregate store activity for the dashboard."""

    since = period_start(period_days)

    def _count(model, *conditions) -> int:
        return session.execute(select(func.count()).select_from(model).where(*conditions)).scalar_one()

    def _spent(*conditions) -> int:
        stmt = select(func.coalesce(func.sum(Redemption.cost), 0)).where(
            Redemption.owner_id == owner_id,
            Redemption.status.in_(_SPENT_STATUSES),
            *conditions,
        )
        return int(session.execute(stmt).scalar_one())

    redemption_count = func.count(Redemption.redemption_id).label("redemption_count")
    popular_stmt = (
        select(StoreItem.item_id, StoreItem.name, StoreItem.cost, redemption_count)
        .join(Redemption, Redemption.item_id == StoreItem.item_id)
        .where(StoreItem.owner_id == owner_id, Redemption.status.in_(_SPENT_STATUSES))
        .group_by(StoreItem.item_id, StoreItem.name, StoreItem.cost)
        .order_by(redemption_count.desc(), StoreItem.name.asc())
        .limit(5)
    )

    return {
        "period_days": period_days,
        "total_items": _count(StoreItem, StoreItem.owner_id == owner_id),
        "active_items": _count(StoreItem, StoreItem.owner_id == owner_id, StoreItem.is_active.is_(True)),
        "total_redemptions": _count(Redemption, Redemption.owner_id == owner_id),
        "pending_redemptions": _count(
            Redemption, Redemption.owner_id == owner_id, Redemption.status == RedemptionStatus.PENDING
        ),
        "fulfilled_redemptions": _count(
            Redemption, Redemption.owner_id == owner_id, Redemption.status == RedemptionStatus.FULFILLED
        ),
        "cancelled_redemptions": _count(
            Redemption, Redemption.owner_id == owner_id, Redemption.status == RedemptionStatus.CANCELLED
        ),
        "total_points_spent": _spent(),
        "period_redemptions": _count(
            Redemption, Redemption.owner_id == owner_id, Redemption.redeemed_at >= since
        ),
        "period_points_spent": _spent(Redemption.redeemed_at >= since),
        "popular_items": [
            {"item_id": row.item_id, "name": row.name, "cost": row.cost, "redemption_count": row.redemption_count}
            for row in session.execute(popular_stmt)
        ],
    }
