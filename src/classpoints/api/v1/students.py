"""Roster endpoints."""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...schemas import LedgerCheck, Page, StudentCreate, StudentIds, StudentRead
from ...services import point_service, roster_service
from ...services.errors import LedgerError
from ..deps import get_owner_id

router = APIRouter(prefix="/students", tags=["students"])


@router.post(
    "",
    response_model=StudentRead,
    status_code=status.HTTP_201_CREATED,
    summary="Add a student",
    responses={400: {"description": "Student number already in use"}},
)
def create_student(
    payload: StudentCreate,
    owner_id: UUID = Depends(get_owner_id),
    db: Session = Depends(get_db),
) -> StudentRead:
    """Add a student to the roster with a zero balance.

    Example request body::

        {
            "student_no": "2024001",
            "display_name": "Alex Rao"
        }
    """

    try:
        student = roster_service.create_student(
            db,
            owner_id=owner_id,
            student_no=payload.student_no,
            display_name=payload.display_name,
        )
        db.commit()
        db.refresh(student)
        return student
    except LedgerError as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.as_dict()) from exc


@router.get("", response_model=Page[StudentRead], summary="List students")
def list_students(
    *,
    archived: bool = Query(False, description="List archived students instead of active ones"),
    search: Optional[str] = Query(None, description="Match on name or student number"),
    limit: int = Query(50, ge=1, le=100, description="Maximum items to return"),
    offset: int = Query(0, ge=0, description="Items to skip for pagination"),
    owner_id: UUID = Depends(get_owner_id),
    db: Session = Depends(get_db),
) -> Page[StudentRead]:
    students, total = roster_service.list_students(
        db,
        owner_id=owner_id,
        archived=archived,
        search=search,
        limit=limit,
        offset=offset,
    )
    return Page[StudentRead](
        items=[StudentRead.model_validate(student) for student in students],
        total=total,
        limit=limit,
        offset=offset,
    )


def _set_archived(payload: StudentIds, owner_id: UUID, db: Session, archived: bool) -> dict[str, int]:
    try:
        count = roster_service.set_archived(db, owner_id=owner_id, student_ids=payload.student_ids, archived=archived)
        db.commit()
        return {"count": count}
    except LedgerError as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.as_dict()) from exc


@router.post("/archive", summary="Archive students")
def archive_students(
    payload: StudentIds,
    owner_id: UUID = Depends(get_owner_id),
    db: Session = Depends(get_db),
) -> dict[str, int]:
    """Archived students keep their balance but drop out of every ledger operation."""

    return _set_archived(payload, owner_id, db, archived=True)


@router.post("/unarchive", summary="Restore archived students")
def unarchive_students(
    payload: StudentIds,
    owner_id: UUID = Depends(get_owner_id),
    db: Session = Depends(get_db),
) -> dict[str, int]:
    return _set_archived(payload, owner_id, db, archived=False)


@router.get("/{student_id}/ledger", response_model=LedgerCheck, summary="Verify a student's balance")
def check_ledger(
    student_id: UUID,
    owner_id: UUID = Depends(get_owner_id),
    db: Session = Depends(get_db),
) -> LedgerCheck:
    """Compare the stored balance with the sum of the student's point records."""

    try:
        student = roster_service.get_student(db, owner_id=owner_id, student_id=student_id)
    except LedgerError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.as_dict()) from exc
    balance = point_service.ledger_balance(db, owner_id=owner_id, student_id=student_id)
    return LedgerCheck(
        student_id=student.student_id,
        points=student.points,
        ledger_balance=balance,
        consistent=balance == student.points,
    )
