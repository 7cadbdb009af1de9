"""Leaderboard aggregation services."""

from __future__ import annotations

from typing import Sequence
from uuid import UUID

from sqlalchemy import and_, case, func, select
from sqlalchemy.orm import Session

from ..models import PointRecord, PointType, Student


def top_students(session: Session, *, owner_id: UUID, limit: int = 10) -> Sequence[tuple]:
    """Return the owner's active students ordered by balance, then student number.

    Each row is ``(student, points_earned, records_count)`` where
    ``points_earned`` counts awarded points only, not redemption refunds.
    """

    limit = max(1, min(limit, 100))

    earned_case = case(
        (
            and_(PointRecord.type == PointType.ADD, PointRecord.redemption_id.is_(None)),
            PointRecord.points,
        ),
        else_=0,
    )
    points_earned = func.coalesce(func.sum(earned_case), 0).label("points_earned")
    records_count = func.count(PointRecord.record_id).label("records_count")

    stmt = (
        select(Student, points_earned, records_count)
        .outerjoin(PointRecord, PointRecord.student_id == Student.student_id)
        .where(Student.owner_id == owner_id, Student.is_archived.is_(False))
        .group_by(Student.student_id)
        .order_by(Student.points.desc(), Student.student_no.asc())
        .limit(limit)
    )

    return session.execute(stmt).all()
