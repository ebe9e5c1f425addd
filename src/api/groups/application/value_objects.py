"""Application-layer value objects for the groups bounded context.

Read-only views returned by application services. Degraded outcomes are
represented here as data rather than as errors.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from groups.domain import Group, JoinMethod, Membership, MembershipRole


@dataclass(frozen=True)
class JoinResult:
    """Outcome of joining a group.

    ``join_method`` is DATABASE_ONLY when the team grant failed but the
    membership record was still written.
    """

    group: Group
    membership: Membership
    join_method: JoinMethod
    permission_tier: str

    @property
    def team_membership_succeeded(self) -> bool:
        return self.join_method == JoinMethod.TEAM_AND_DATABASE


@dataclass(frozen=True)
class GroupSummary:
    """A group as seen by one of its members."""

    group: Group
    member_count: int
    user_role: MembershipRole | None


@dataclass(frozen=True)
class GroupDetails:
    """A group together with its current member count."""

    group: Group
    member_count: int


@dataclass(frozen=True)
class MemberView:
    """A membership enriched with account details."""

    user_id: str
    name: str
    email: str
    role: MembershipRole
    joined_at: datetime
    membership_id: str


@dataclass(frozen=True)
class RecoveryResult:
    """Outcome of re-anchoring a broken group to a fresh team."""

    group: Group
    team_id: str
    reinvited: list[str] = field(default_factory=list)
    failed_invites: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class SweepResult:
    """Outcome of a best-effort membership deletion sweep."""

    deleted: int = 0
    failed: int = 0
