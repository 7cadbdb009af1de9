"""Primary API router definition."""

from fastapi import APIRouter

from . import calls, cohorts, leaderboard, points, store, students

api_router = APIRouter()

api_router.include_router(students.router)
api_router.include_router(points.router)
api_router.include_router(store.router)
api_router.include_router(calls.router)
api_router.include_router(cohorts.router)
api_router.include_router(leaderboard.router)


@api_router.get("/health", tags=["health"])
async def healthcheck() -> dict[str, str]:
    """Basic health probe endpoint."""
    return {"status": "ok"}
