"""Public schema exports."""

from .call import CallHistoryRead, RandomCallRequest, RandomCallResult
from .cohort import GroupCreate, GroupRead, TagCreate, TagRead
from .common import Page
from .leaderboard import LeaderboardStudent
from .point import (
	PointApply,
	PointApplyResult,
	PointBatchApply,
	PointBatchResult,
	PointRecordRead,
	PointRuleCreate,
	PointRuleRead,
	RuleApply,
)
from .reset import ResetRequest, ResetSummaryRead
from .store import (
	RedemptionBatchCreate,
	RedemptionCreate,
	RedemptionRead,
	RedemptionStatusUpdate,
	StoreItemCreate,
	StoreItemRead,
	StoreItemUpdate,
	StoreStatsRead,
)
from .student import LedgerCheck, StudentCreate, StudentIds, StudentRead, StudentSummary

__all__ = [
	"CallHistoryRead",
	"GroupCreate",
	"GroupRead",
	"LeaderboardStudent",
	"LedgerCheck",
	"Page",
	"PointApply",
	"PointApplyResult",
	"PointBatchApply",
	"PointBatchResult",
	"PointRecordRead",
	"PointRuleCreate",
	"PointRuleRead",
	"RandomCallRequest",
	"RandomCallResult",
	"RedemptionBatchCreate",
	"RedemptionCreate",
	"RedemptionRead",
	"RedemptionStatusUpdate",
	"ResetRequest",
	"ResetSummaryRead",
	"RuleApply",
	"StoreItemCreate",
	"StoreItemRead",
	"StoreItemUpdate",
	"StoreStatsRead",
	"StudentCreate",
	"StudentIds",
	"StudentRead",
	"StudentSummary",
	"TagCreate",
	"TagRead",
]
