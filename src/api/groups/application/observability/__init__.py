"""Domain-Oriented Observability for the groups application layer.

Probes for application service operations following Domain-Oriented Observability patterns.
"""

from groups.application.observability.consistency_guard_probe import (
    ConsistencyGuardProbe,
    DefaultConsistencyGuardProbe,
)
from groups.application.observability.group_registry_probe import (
    DefaultGroupRegistryProbe,
    GroupRegistryProbe,
)
from groups.application.observability.membership_coordinator_probe import (
    DefaultMembershipCoordinatorProbe,
    MembershipCoordinatorProbe,
)

__all__ = [
    "ConsistencyGuardProbe",
    "DefaultConsistencyGuardProbe",
    "GroupRegistryProbe",
    "DefaultGroupRegistryProbe",
    "MembershipCoordinatorProbe",
    "DefaultMembershipCoordinatorProbe",
]
