"""Permission strategies for membership documents.

A membership record matters more than a tight ACL. When the team grant
behind a join failed, the membership document is written under an ordered
list of progressively narrower permission tiers until one is accepted.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from groups.domain import TeamRole
from groups.ports.exceptions import PermissionDeniedError
from groups.ports.providers import MembershipStore
from groups.ports.types import (
    Document,
    PermissionGrant,
    format_team_role,
    format_user_role,
)

PermissionBuilder = Callable[[str | None, str], list[PermissionGrant] | None]


class PermissionTierName(StrEnum):
    TEAM_SCOPED = "team_scoped"
    COLLECTION_DEFAULT = "collection_default"
    SELF_READ_ONLY = "self_read_only"


def group_permissions(team_id: str) -> list[PermissionGrant]:
    """Any team member reads the group; only team owners update or delete it."""
    return [
        PermissionGrant.read(format_team_role(team_id)),
        PermissionGrant.update(format_team_role(team_id, TeamRole.OWNER)),
        PermissionGrant.delete(format_team_role(team_id, TeamRole.OWNER)),
    ]


def admin_membership_permissions(team_id: str) -> list[PermissionGrant]:
    """Permissions for the creator's own admin membership."""
    return [
        PermissionGrant.read(format_team_role(team_id)),
        PermissionGrant.delete(format_team_role(team_id, TeamRole.OWNER)),
    ]


def _team_scoped(team_id: str | None, user_id: str) -> list[PermissionGrant] | None:
    if not team_id:
        raise ValueError("team_scoped permissions require a team id")
    return [
        PermissionGrant.read(format_team_role(team_id)),
        PermissionGrant.delete(format_user_role(user_id)),
        PermissionGrant.delete(format_team_role(team_id, TeamRole.OWNER)),
    ]


def _collection_default(team_id: str | None, user_id: str) -> list[PermissionGrant] | None:
    return None


def _self_read_only(team_id: str | None, user_id: str) -> list[PermissionGrant] | None:
    return [PermissionGrant.read(format_user_role(user_id))]


@dataclass(frozen=True)
class PermissionTier:
    """A named way of building a membership document's permissions.

    ``build`` returns None to defer to the collection's default permissions.
    """

    name: PermissionTierName
    build: PermissionBuilder


TEAM_SCOPED = PermissionTier(PermissionTierName.TEAM_SCOPED, _team_scoped)
COLLECTION_DEFAULT = PermissionTier(
    PermissionTierName.COLLECTION_DEFAULT, _collection_default
)
SELF_READ_ONLY = PermissionTier(PermissionTierName.SELF_READ_ONLY, _self_read_only)

# The member is in the team, so team-scoped permissions are grantable.
TEAM_MEMBER_TIERS: tuple[PermissionTier, ...] = (TEAM_SCOPED,)
# No team grant: fall back from collection defaults to self-read only.
DATABASE_ONLY_TIERS: tuple[PermissionTier, ...] = (COLLECTION_DEFAULT, SELF_READ_ONLY)


def tiers_for(team_membership_succeeded: bool) -> tuple[PermissionTier, ...]:
    return TEAM_MEMBER_TIERS if team_membership_succeeded else DATABASE_ONLY_TIERS


@dataclass(frozen=True)
class TierOutcome:
    """Result of attempting one permission tier."""

    tier: PermissionTierName
    succeeded: bool
    error: str | None = None


@dataclass(frozen=True)
class FallbackResult:
    """The created document and the outcome of every tier attempted."""

    document: Document
    outcomes: tuple[TierOutcome, ...]

    @property
    def tier(self) -> PermissionTierName:
        """The tier that was finally accepted."""
        return self.outcomes[-1].tier


class PermissionFallbackError(PermissionDeniedError):
    """Every permission tier was rejected."""

    def __init__(self, outcomes: Sequence[TierOutcome]):
        self.outcomes = tuple(outcomes)
        tried = ", ".join(outcome.tier for outcome in self.outcomes)
        super().__init__(f"Membership creation denied under every tier ({tried})")


async def create_with_fallback(
    store: MembershipStore,
    collection: str,
    document_id: str,
    data: Mapping[str, Any],
    tiers: Sequence[PermissionTier],
    team_id: str | None,
    user_id: str,
    on_tier_failed: Callable[[TierOutcome], None] | None = None,
) -> FallbackResult:
    """Create a document, trying each tier in order.

    Only PermissionDeniedError advances to the next tier. Any other error,
    including ConflictError, propagates immediately.

    Raises:
        PermissionFallbackError: If every tier was denied
    """
    if not tiers:
        raise ValueError("at least one permission tier is required")

    outcomes: list[TierOutcome] = []
    for tier in tiers:
        try:
            document = await store.create_document(
                collection,
                document_id,
                data,
                tier.build(team_id, user_id),
            )
        except PermissionDeniedError as e:
            outcome = TierOutcome(tier=tier.name, succeeded=False, error=str(e))
            outcomes.append(outcome)
            if on_tier_failed is not None:
                on_tier_failed(outcome)
            continue

        outcomes.append(TierOutcome(tier=tier.name, succeeded=True))
        return FallbackResult(document=document, outcomes=tuple(outcomes))

    raise PermissionFallbackError(outcomes)
