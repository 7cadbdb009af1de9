"""Point ledger endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...models import PointType
from ...schemas import (
    Page,
    PointApply,
    PointApplyResult,
    PointBatchApply,
    PointBatchResult,
    PointRecordRead,
    PointRuleCreate,
    PointRuleRead,
    ResetRequest,
    ResetSummaryRead,
    RuleApply,
    StudentSummary,
)
from ...schemas.reset import ResetAll, ResetGroup, ResetSelected, ResetTag
from ...services import point_service, reset_service, roster_service
from ...services.errors import LedgerError
from ..deps import get_owner_id

router = APIRouter(prefix="/points", tags=["points"])


@router.post(
    "/apply",
    response_model=PointApplyResult,
    status_code=status.HTTP_201_CREATED,
    summary="Award or deduct points for one student",
    responses={
        400: {"description": "Invalid delta or archived student"},
        404: {"description": "Student or rule not found"},
    },
)
def apply_points(
    payload: PointApply,
    owner_id: UUID = Depends(get_owner_id),
    db: Session = Depends(get_db),
) -> PointApplyResult:
    """Apply a signed delta and append the matching record.

    Example request body::

        {
            "student_id": "bbbbbbbb-bbbb-bbbb-bbbb-bbbbbbbbbbbb",
            "points": -20,
            "reason": "Talking during the test"
        }
    """

    try:
        student, record = point_service.apply_points(
            db,
            owner_id=owner_id,
            student_id=payload.student_id,
            points=payload.points,
            reason=payload.reason,
            rule_id=payload.rule_id,
        )
        db.commit()
        db.refresh(student)
        db.refresh(record)
        return PointApplyResult(
            student=StudentSummary.model_validate(student),
            record=PointRecordRead.model_validate(record),
        )
    except LedgerError as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.as_dict()) from exc


@router.post(
    "/batch",
    response_model=PointBatchResult,
    status_code=status.HTTP_201_CREATED,
    summary="Apply the same change to several students",
    responses={400: {"description": "Some students missing, foreign or archived"}},
)
def apply_points_to_many(
    payload: PointBatchApply,
    owner_id: UUID = Depends(get_owner_id),
    db: Session = Depends(get_db),
) -> PointBatchResult:
    """All listed students are updated or none are."""

    try:
        result = point_service.apply_points_to_many(
            db,
            owner_id=owner_id,
            student_ids=payload.student_ids,
            points=payload.points,
            reason=payload.reason,
            point_type=payload.type,
            rule_id=payload.rule_id,
        )
        db.commit()
        return PointBatchResult(
            count=result.count,
            records=[PointRecordRead.model_validate(record) for record in result.records],
        )
    except LedgerError as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.as_dict()) from exc


@router.post(
    "/rules",
    response_model=PointRuleRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create a point rule",
)
def create_rule(
    payload: PointRuleCreate,
    owner_id: UUID = Depends(get_owner_id),
    db: Session = Depends(get_db),
) -> PointRuleRead:
    try:
        rule = roster_service.create_rule(
            db,
            owner_id=owner_id,
            name=payload.name,
            points=payload.points,
            point_type=payload.type,
            description=payload.description,
            category=payload.category,
            is_active=payload.is_active,
        )
        db.commit()
        db.refresh(rule)
        return rule
    except LedgerError as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.as_dict()) from exc


@router.get("/rules", response_model=List[PointRuleRead], summary="List point rules")
def list_rules(
    is_active: Optional[bool] = Query(None, description="Filter by active flag"),
    owner_id: UUID = Depends(get_owner_id),
    db: Session = Depends(get_db),
) -> List[PointRuleRead]:
    return list(roster_service.list_rules(db, owner_id=owner_id, is_active=is_active))


@router.post(
    "/rules/{rule_id}/apply",
    response_model=PointBatchResult,
    status_code=status.HTTP_201_CREATED,
    summary="Apply a rule to students",
    responses={
        400: {"description": "Rule inactive or students invalid"},
        404: {"description": "Rule not found"},
    },
)
def apply_rule(
    rule_id: UUID,
    payload: RuleApply,
    owner_id: UUID = Depends(get_owner_id),
    db: Session = Depends(get_db),
) -> PointBatchResult:
    try:
        result = point_service.apply_rule(db, owner_id=owner_id, student_ids=payload.student_ids, rule_id=rule_id)
        db.commit()
        return PointBatchResult(
            count=result.count,
            records=[PointRecordRead.model_validate(record) for record in result.records],
        )
    except LedgerError as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.as_dict()) from exc


@router.get("/records", response_model=Page[PointRecordRead], summary="List point records")
def list_records(
    *,
    student_id: Optional[UUID] = Query(None, description="Filter by student"),
    type: Optional[PointType] = Query(None, description="Filter by record type"),
    start: Optional[datetime] = Query(None, description="Earliest creation time (UTC)"),
    end: Optional[datetime] = Query(None, description="Latest creation time (UTC)"),
    search: Optional[str] = Query(None, description="Match on reason or student name"),
    limit: int = Query(20, ge=1, le=100, description="Maximum items to return"),
    offset: int = Query(0, ge=0, description="Items to skip for pagination"),
    owner_id: UUID = Depends(get_owner_id),
    db: Session = Depends(get_db),
) -> Page[PointRecordRead]:
    """Records of archived students are never listed."""

    records, total = point_service.list_point_records(
        db,
        owner_id=owner_id,
        student_id=student_id,
        point_type=type,
        start=start,
        end=end,
        search=search,
        limit=limit,
        offset=offset,
    )
    return Page[PointRecordRead](
        items=[PointRecordRead.model_validate(record) for record in records],
        total=total,
        limit=limit,
        offset=offset,
    )


def _to_cohort(selector) -> reset_service.Cohort:
    if isinstance(selector, ResetAll):
        return reset_service.AllStudents()
    if isinstance(selector, ResetGroup):
        return reset_service.GroupCohort(group_id=selector.group_id)
    if isinstance(selector, ResetTag):
        return reset_service.TagCohort(tag_id=selector.tag_id)
    if isinstance(selector, ResetSelected):
        return reset_service.SelectedStudents(student_ids=tuple(selector.student_ids))
    raise TypeError(f"Unhandled cohort selector {selector!r}")


@router.post(
    "/reset",
    response_model=ResetSummaryRead,
    summary="Reset balances for a cohort",
    responses={
        400: {"description": "Empty cohort or foreign students selected"},
        403: {"description": "Group or tag belongs to another owner"},
        404: {"description": "Group or tag not found"},
    },
)
def reset_points(
    payload: ResetRequest,
    owner_id: UUID = Depends(get_owner_id),
    db: Session = Depends(get_db),
) -> ResetSummaryRead:
    """Set every selected balance to ``target_value``.

    Example request body::

        {
            "cohort": {"mode": "group", "group_id": "dddddddd-dddd-dddd-dddd-dddddddddddd"},
            "target_value": 0
        }
    """

    try:
        summary = reset_service.reset_points(
            db,
            owner_id=owner_id,
            cohort=_to_cohort(payload.cohort),
            target_value=payload.target_value,
            reason=payload.reason,
        )
        db.commit()
        return ResetSummaryRead.model_validate(summary)
    except LedgerError as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.as_dict()) from exc
