"""Application services for the groups bounded context."""

from groups.application.services.consistency_guard import ConsistencyGuard
from groups.application.services.group_registry import GroupRegistry
from groups.application.services.membership_coordinator import MembershipCoordinator
from groups.application.services.membership_records import MembershipRecords

__all__ = [
    "ConsistencyGuard",
    "GroupRegistry",
    "MembershipCoordinator",
    "MembershipRecords",
]
