"""Application services for the groups bounded context.

Application services orchestrate the team provider and the membership
store to fulfill group use cases. They are the "front door" to the groups
context.
"""

from groups.application.services.consistency_guard import ConsistencyGuard
from groups.application.services.group_registry import GroupRegistry
from groups.application.services.membership_coordinator import MembershipCoordinator
from groups.application.services.membership_records import MembershipRecords
from groups.application.value_objects import (
    GroupDetails,
    GroupSummary,
    JoinResult,
    MemberView,
    RecoveryResult,
    SweepResult,
)

__all__ = [
    "ConsistencyGuard",
    "GroupRegistry",
    "MembershipCoordinator",
    "MembershipRecords",
    "GroupDetails",
    "GroupSummary",
    "JoinResult",
    "MemberView",
    "RecoveryResult",
    "SweepResult",
]
