"""Service layer exports."""

from . import (
	call_service,
	leaderboard_service,
	point_service,
	redemption_service,
	reset_service,
	roster_service,
)

__all__ = [
	"call_service",
	"leaderboard_service",
	"point_service",
	"redemption_service",
	"reset_service",
	"roster_service",
]
