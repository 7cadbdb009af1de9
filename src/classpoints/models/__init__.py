"""SQLAlchemy models for Classpoints."""

from .call_history import CallHistory, CallMode
from .cohort import StudentGroup, StudentTag, student_group_members, student_tag_relations
from .point_record import PointRecord
from .point_rule import PointRule, PointType
from .redemption import Redemption, RedemptionStatus
from .store_item import StoreItem
from .student import Student

__all__ = [
    "CallHistory",
    "CallMode",
    "PointRecord",
    "PointRule",
    "PointType",
    "Redemption",
    "RedemptionStatus",
    "StoreItem",
    "Student",
    "StudentGroup",
    "StudentTag",
    "student_group_members",
    "student_tag_relations",
]
