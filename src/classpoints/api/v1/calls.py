"""Random call endpoints."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ...core.config import Settings
from ...core.database import get_db
from ...schemas import CallHistoryRead, Page, RandomCallRequest, RandomCallResult
from ...services import call_service
from ...services.errors import LedgerError
from ..deps import get_app_settings, get_owner_id

router = APIRouter(prefix="/call", tags=["call"])


@router.post(
    "/random",
    response_model=RandomCallResult,
    summary="Call on a random student",
    responses={404: {"description": "No students available"}},
)
def call_random(
    payload: RandomCallRequest,
    owner_id: UUID = Depends(get_owner_id),
    settings: Settings = Depends(get_app_settings),
    db: Session = Depends(get_db),
) -> RandomCallResult:
    """Pick a student who has not been called recently.

    Example request body::

        {"avoid_hours": 24, "exclude_ids": []}
    """

    avoid_hours = settings.default_avoid_hours if payload.avoid_hours is None else payload.avoid_hours
    try:
        result = call_service.pick_random(
            db,
            owner_id=owner_id,
            avoid_hours=avoid_hours,
            exclude_ids=payload.exclude_ids,
        )
        db.commit()
        return RandomCallResult.model_validate(result)
    except LedgerError as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.as_dict()) from exc


@router.get("/history", response_model=Page[CallHistoryRead], summary="Call history")
def call_history(
    *,
    limit: int = Query(50, ge=1, le=100, description="Maximum items to return"),
    offset: int = Query(0, ge=0, description="Items to skip for pagination"),
    owner_id: UUID = Depends(get_owner_id),
    db: Session = Depends(get_db),
) -> Page[CallHistoryRead]:
    calls, total = call_service.list_call_history(db, owner_id=owner_id, limit=limit, offset=offset)
    return Page[CallHistoryRead](
        items=[CallHistoryRead.model_validate(call) for call in calls],
        total=total,
        limit=limit,
        offset=offset,
    )
