"""Minimal group and tag setup used to target resets."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...schemas import GroupCreate, GroupRead, StudentIds, TagCreate, TagRead
from ...services import roster_service
from ...services.errors import LedgerError
from ..deps import get_owner_id

router = APIRouter(tags=["cohorts"])


@router.post("/groups", response_model=GroupRead, status_code=status.HTTP_201_CREATED, summary="Create a group")
def create_group(
    payload: GroupCreate,
    owner_id: UUID = Depends(get_owner_id),
    db: Session = Depends(get_db),
) -> GroupRead:
    group = roster_service.create_group(db, owner_id=owner_id, name=payload.name, description=payload.description)
    db.commit()
    db.refresh(group)
    return GroupRead.model_validate(group)


@router.post("/groups/{group_id}/members", response_model=GroupRead, summary="Add students to a group")
def add_group_members(
    group_id: UUID,
    payload: StudentIds,
    owner_id: UUID = Depends(get_owner_id),
    db: Session = Depends(get_db),
) -> GroupRead:
    try:
        group = roster_service.add_group_members(
            db, owner_id=owner_id, group_id=group_id, student_ids=payload.student_ids
        )
        db.commit()
        db.refresh(group)
        return GroupRead.model_validate(group)
    except LedgerError as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.as_dict()) from exc


@router.post("/tags", response_model=TagRead, status_code=status.HTTP_201_CREATED, summary="Create a tag")
def create_tag(
    payload: TagCreate,
    owner_id: UUID = Depends(get_owner_id),
    db: Session = Depends(get_db),
) -> TagRead:
    tag = roster_service.create_tag(db, owner_id=owner_id, name=payload.name)
    db.commit()
    db.refresh(tag)
    return TagRead.model_validate(tag)


@router.post("/tags/{tag_id}/students", response_model=TagRead, summary="Tag students")
def add_tag_students(
    tag_id: UUID,
    payload: StudentIds,
    owner_id: UUID = Depends(get_owner_id),
    db: Session = Depends(get_db),
) -> TagRead:
    try:
        tag = roster_service.add_tag_students(db, owner_id=owner_id, tag_id=tag_id, student_ids=payload.student_ids)
        db.commit()
        db.refresh(tag)
        return TagRead.model_validate(tag)
    except LedgerError as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.as_dict()) from exc
