"""Random student call-outs with a trailing avoid window."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional, Sequence
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session, joinedload

from ..models import CallHistory, CallMode, Student
from ..utils.datetime import utcnow, window_start
from .errors import NoStudentsAvailableError

logger = logging.getLogger(__name__)


@dataclass
class CallResult:
    student: Student
    avoid_reset_used: bool
    total_available: int
    total_excluded: int
    message: Optional[str] = None


def _recently_called_ids(session: Session, owner_id: UUID, cutoff: datetime) -> set[UUID]:
    stmt = select(CallHistory.student_id).where(
        CallHistory.owner_id == owner_id,
        CallHistory.called_at >= cutoff,
        CallHistory.student_id.is_not(None),
    )
    return set(session.execute(stmt).scalars())


def _candidates(session: Session, owner_id: UUID, excluded: set[UUID]) -> list[Student]:
    stmt = (
        select(Student)
        .where(Student.owner_id == owner_id, Student.is_archived.is_(False))
        .order_by(Student.student_no)
    )
    if excluded:
        stmt = stmt.where(Student.student_id.not_in(excluded))
    return list(session.execute(stmt).scalars())


def pick_random(
    session: Session,
    *,
    owner_id: UUID,
    avoid_hours: float = 24,
    exclude_ids: Iterable[UUID] = (),
    rng: Optional[random.Random] = None,
    now: Optional[datetime] = None,
) -> CallResult:
    """Pick one eligible student uniformly at random and record the call.

    Students called within the last ``avoid_hours`` are skipped. When that
    leaves nobody, the window is dropped so the class never runs dry; the
    manual exclusions always apply.
    """

    chooser = rng or random
    now = now or utcnow()
    manual = set(exclude_ids)

    excluded = set(manual)
    if avoid_hours > 0:
        excluded |= _recently_called_ids(session, owner_id, window_start(avoid_hours, now))

    pool = _candidates(session, owner_id, excluded)
    avoid_reset_used = False
    message = None

    if not pool:
        if avoid_hours <= 0:
            raise NoStudentsAvailableError("No students available to call.")
        pool = _candidates(session, owner_id, manual)
        if not pool:
            raise NoStudentsAvailableError("No students available to call.")
        avoid_reset_used = True
        excluded = manual
        message = f"Every student was called within the last {avoid_hours:g} hours; the avoid window was reset."
        logger.warning("avoid window exhausted for owner %s, falling back to full roster", owner_id)

    student = chooser.choice(pool)
    session.add(
        CallHistory(
            owner_id=owner_id,
            student_id=student.student_id,
            mode=CallMode.RANDOM,
            called_at=now,
        )
    )
    session.flush()

    logger.info("called student %s (%d candidates)", student.student_id, len(pool))
    return CallResult(
        student=student,
        avoid_reset_used=avoid_reset_used,
        total_available=len(pool),
        total_excluded=len(excluded),
        message=message,
    )


def list_call_history(
    session: Session,
    *,
    owner_id: UUID,
    limit: int = 50,
    offset: int = 0,
) -> tuple[Sequence[CallHistory], int]:
    """Return a page of calls, newest first, plus the total count."""

    total_stmt = select(func.count(CallHistory.call_id)).where(CallHistory.owner_id == owner_id)
    total = session.execute(total_stmt).scalar_one()

    stmt = (
        select(CallHistory)
        .options(joinedload(CallHistory.student))
        .where(CallHistory.owner_id == owner_id)
        .order_by(CallHistory.called_at.desc())
        .offset(offset)
        .limit(limit)
    )
    return session.execute(stmt).scalars().all(), total
