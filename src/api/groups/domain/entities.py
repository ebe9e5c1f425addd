"""Group and Membership entities."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime

from groups.domain.value_objects import MembershipRole


@dataclass(frozen=True)
class Group:
    """A named group users join with a short code.

    Each group is anchored to an external team via ``team_id``. A group
    whose ``team_id`` is missing, or points at a team that no longer
    exists, is broken and must be recovered before membership changes.

    Invariant: exactly one group per ``short_code``.
    """

    id: str
    name: str
    short_code: str
    team_id: str | None
    created_by: str
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def has_team(self) -> bool:
        """Whether the group records a team reference at all."""
        return bool(self.team_id)


@dataclass(frozen=True)
class Membership:
    """A user's membership record in a group.

    Invariant: at most one membership per (group_id, user_id).

    ``team_membership_succeeded`` is None when the record predates that
    flag; both None and False mean a database-only membership.
    """

    id: str
    group_id: str
    user_id: str
    role: MembershipRole
    joined_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    team_membership_succeeded: bool | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == MembershipRole.ADMIN

    @property
    def is_database_only(self) -> bool:
        return not self.team_membership_succeeded
