"""Leaderboard endpoint."""

from __future__ import annotations

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...schemas import LeaderboardStudent
from ...services import leaderboard_service
from ..deps import get_owner_id

router = APIRouter(prefix="/leaderboard", tags=["leaderboard"])


@router.get(
    "",
    response_model=List[LeaderboardStudent],
    summary="Top students by balance",
    responses={
        200: {
            "description": "Leaderboard entries ordered by current points",
            "content": {
                "application/json": {
                    "example": [
                        {
                            "student_id": "bbbbbbbb-bbbb-bbbb-bbbb-bbbbbbbbbbbb",
                            "student_no": "2024002",
                            "display_name": "Bianca Liu",
                            "points": 80,
                            "points_earned": 95,
                            "records_count": 7
                        }
                    ]
                }
            },
        }
    },
)
def get_leaderboard(
    limit: int = Query(10, ge=1, le=100, description="Number of top students to return"),
    owner_id: UUID = Depends(get_owner_id),
    db: Session = Depends(get_db),
) -> List[LeaderboardStudent]:
    """Return the owner's active students ranked by balance."""

    entries = leaderboard_service.top_students(db, owner_id=owner_id, limit=limit)
    response: List[LeaderboardStudent] = []
    for student, points_earned, records_count in entries:
        response.append(
            LeaderboardStudent(
                student_id=student.student_id,
                student_no=student.student_no,
                display_name=student.display_name,
                points=student.points,
                points_earned=max(int(points_earned or 0), 0),
                records_count=int(records_count or 0),
            )
        )
    return response
