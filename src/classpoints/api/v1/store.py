"""Store catalogue and redemption endpoints."""

from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...models import RedemptionStatus
from ...schemas import (
    Page,
    RedemptionBatchCreate,
    RedemptionCreate,
    RedemptionRead,
    RedemptionStatusUpdate,
    StoreItemCreate,
    StoreItemRead,
    StoreItemUpdate,
    StoreStatsRead,
)
from ...services import redemption_service, roster_service
from ...services.errors import LedgerError
from ..deps import get_owner_id

router = APIRouter(prefix="/store", tags=["store"])


@router.post(
    "/items",
    response_model=StoreItemRead,
    status_code=status.HTTP_201_CREATED,
    summary="Add a store item",
)
def create_item(
    payload: StoreItemCreate,
    owner_id: UUID = Depends(get_owner_id),
    db: Session = Depends(get_db),
) -> StoreItemRead:
    try:
        item = roster_service.create_item(db, owner_id=owner_id, **payload.model_dump())
        db.commit()
        db.refresh(item)
        return item
    except LedgerError as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.as_dict()) from exc


@router.get("/items", response_model=List[StoreItemRead], summary="List store items")
def list_items(
    is_active: Optional[bool] = Query(None, description="Filter by active flag"),
    owner_id: UUID = Depends(get_owner_id),
    db: Session = Depends(get_db),
) -> List[StoreItemRead]:
    return list(roster_service.list_items(db, owner_id=owner_id, is_active=is_active))


@router.patch(
    "/items/{item_id}",
    response_model=StoreItemRead,
    summary="Update a store item",
    responses={404: {"description": "Item not found"}},
)
def update_item(
    item_id: UUID,
    payload: StoreItemUpdate,
    owner_id: UUID = Depends(get_owner_id),
    db: Session = Depends(get_db),
) -> StoreItemRead:
    """Only the fields present in the body change; ``"stock": null`` means unlimited."""

    try:
        item = roster_service.update_item(db, owner_id=owner_id, item_id=item_id, **payload.model_dump(exclude_unset=True))
        db.commit()
        db.refresh(item)
        return item
    except LedgerError as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.as_dict()) from exc


@router.post(
    "/redemptions",
    response_model=RedemptionRead,
    status_code=status.HTTP_201_CREATED,
    summary="Redeem an item",
    responses={
        201: {
            "description": "Redemption created",
            "content": {
                "application/json": {
                    "example": {
                        "redemption_id": "88888888-8888-8888-8888-888888888888",
                        "student": {
                            "student_id": "bbbbbbbb-bbbb-bbbb-bbbb-bbbbbbbbbbbb",
                            "student_no": "2024002",
                            "display_name": "Bianca Liu",
                            "points": 5
                        },
                        "item": {
                            "item_id": "99999999-9999-9999-9999-999999999999",
                            "name": "Homework pass",
                            "cost": 25
                        },
                        "cost": 25,
                        "status": "PENDING",
                        "notes": None,
                        "redeemed_at": "2025-11-12T14:30:00",
                        "fulfilled_at": None
                    }
                }
            },
        },
        400: {"description": "Inactive item, archived student, insufficient points or out of stock"},
        404: {"description": "Student or item not found"},
    },
)
def redeem(
    payload: RedemptionCreate,
    owner_id: UUID = Depends(get_owner_id),
    db: Session = Depends(get_db),
) -> RedemptionRead:
    """Spend a student's points on one unit of an item.

    Example request body::

        {
            "student_id": "bbbbbbbb-bbbb-bbbb-bbbb-bbbbbbbbbbbb",
            "item_id": "99999999-9999-9999-9999-999999999999"
        }
    """

    try:
        redemption = redemption_service.redeem(
            db,
            owner_id=owner_id,
            student_id=payload.student_id,
            item_id=payload.item_id,
            notes=payload.notes,
        )
        db.commit()
        db.refresh(redemption)
        return redemption
    except LedgerError as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.as_dict()) from exc


@router.post(
    "/redemptions/batch",
    response_model=List[RedemptionRead],
    status_code=status.HTTP_201_CREATED,
    summary="Redeem an item for several students",
)
def redeem_many(
    payload: RedemptionBatchCreate,
    owner_id: UUID = Depends(get_owner_id),
    db: Session = Depends(get_db),
) -> List[RedemptionRead]:
    """Either every student gets the item or nobody is charged."""

    try:
        redemptions = redemption_service.redeem_many(
            db,
            owner_id=owner_id,
            student_ids=payload.student_ids,
            item_id=payload.item_id,
            notes=payload.notes,
        )
        db.commit()
        return [RedemptionRead.model_validate(redemption) for redemption in redemptions]
    except LedgerError as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.as_dict()) from exc


@router.get("/redemptions", response_model=Page[RedemptionRead], summary="List redemptions")
def list_redemptions(
    *,
    student_id: Optional[UUID] = Query(None, description="Filter by student"),
    item_id: Optional[UUID] = Query(None, description="Filter by item"),
    status: Optional[RedemptionStatus] = Query(None, description="Filter by status"),
    limit: int = Query(20, ge=1, le=100, description="Maximum items to return"),
    offset: int = Query(0, ge=0, description="Items to skip for pagination"),
    owner_id: UUID = Depends(get_owner_id),
    db: Session = Depends(get_db),
) -> Page[RedemptionRead]:
    redemptions, total = redemption_service.list_redemptions(
        db,
        owner_id=owner_id,
        student_id=student_id,
        item_id=item_id,
        status=status,
        limit=limit,
        offset=offset,
    )
    return Page[RedemptionRead](
        items=[RedemptionRead.model_validate(redemption) for redemption in redemptions],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.get(
    "/redemptions/{redemption_id}",
    response_model=RedemptionRead,
    summary="Fetch a redemption",
    responses={404: {"description": "Redemption not found"}},
)
def get_redemption(
    redemption_id: UUID,
    owner_id: UUID = Depends(get_owner_id),
    db: Session = Depends(get_db),
) -> RedemptionRead:
    try:
        return redemption_service.get_redemption(db, owner_id=owner_id, redemption_id=redemption_id)
    except LedgerError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.as_dict()) from exc


@router.patch(
    "/redemptions/{redemption_id}",
    response_model=RedemptionRead,
    summary="Fulfil or cancel a redemption",
    responses={
        400: {"description": "Redemption already in a terminal state"},
        404: {"description": "Redemption not found"},
    },
)
def update_redemption_status(
    redemption_id: UUID,
    payload: RedemptionStatusUpdate,
    owner_id: UUID = Depends(get_owner_id),
    db: Session = Depends(get_db),
) -> RedemptionRead:
    """Cancelling refunds the recorded cost and puts tracked stock back.

    Example request body::

        {"status": "CANCELLED", "notes": "Student changed their mind"}
    """

    try:
        redemption = redemption_service.update_status(
            db,
            owner_id=owner_id,
            redemption_id=redemption_id,
            status=payload.status,
            notes=payload.notes,
        )
        db.commit()
        db.refresh(redemption)
        return redemption
    except LedgerError as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.as_dict()) from exc


@router.get("/stats", response_model=StoreStatsRead, summary="Store statistics")
def store_stats(
    period: int = Query(30, ge=1, le=365, description="Trailing period in days"),
    owner_id: UUID = Depends(get_owner_id),
    db: Session = Depends(get_db),
) -> StoreStatsRead:
    return StoreStatsRead(**redemption_service.store_stats(db, owner_id=owner_id, period_days=period))
