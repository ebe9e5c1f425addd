"""Queries and writes over the memberships collection.

Shared by the membership coordinator and the consistency guard so both
read membership state the same way.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence

from groups.application.documents import (
    membership_from_document,
    membership_to_fields,
)
from groups.application.permission_strategies import (
    FallbackResult,
    PermissionTier,
    TierOutcome,
    create_with_fallback,
)
from groups.application.value_objects import SweepResult
from groups.domain import Membership, MembershipRole
from groups.ports.exceptions import GroupMembershipError, NotFoundError
from groups.ports.providers import MembershipStore
from groups.ports.types import Collections, PermissionGrant, QueryFilter

SweepFailureHandler = Callable[[str | None, Exception], None]


class MembershipRecords:
    """Membership document access for the groups context."""

    def __init__(self, store: MembershipStore, collections: Collections | None = None):
        self._store = store
        self._collections = collections or Collections()

    @property
    def collection(self) -> str:
        return self._collections.memberships

    async def _list(self, filters: Sequence[QueryFilter]) -> list[Membership]:
        result = await self._store.list_documents(self.collection, filters)
        return [membership_from_document(doc) for doc in result.documents]

    async def create(
        self,
        membership: Membership,
        permissions: Sequence[PermissionGrant] | None = None,
    ) -> Membership:
        document = await self._store.create_document(
            self.collection,
            membership.id,
            membership_to_fields(membership),
            permissions,
        )
        return membership_from_document(document)

    async def create_with_fallback(
        self,
        membership: Membership,
        tiers: Sequence[PermissionTier],
        team_id: str | None,
        on_tier_failed: Callable[[TierOutcome], None] | None = None,
    ) -> tuple[Membership, FallbackResult]:
        """Create a membership, trying each permission tier in order."""
        result = await create_with_fallback(
            self._store,
            self.collection,
            membership.id,
            membership_to_fields(membership),
            tiers,
            team_id=team_id,
            user_id=membership.user_id,
            on_tier_failed=on_tier_failed,
        )
        return membership_from_document(result.document), result

    async def find(self, group_id: str, user_id: str) -> Membership | None:
        """Return the membership for (group_id, user_id), if any."""
        memberships = await self._list(
            [
                QueryFilter.equal("groupId", group_id),
                QueryFilter.equal("userId", user_id),
                QueryFilter.limit(1),
            ]
        )
        return memberships[0] if memberships else None

    async def list_for_group(self, group_id: str) -> list[Membership]:
        return await self._list([QueryFilter.equal("groupId", group_id)])

    async def list_for_user(self, user_id: str) -> list[Membership]:
        return await self._list([QueryFilter.equal("userId", user_id)])

    async def count_for_group(self, group_id: str) -> int:
        result = await self._store.list_documents(
            self.collection, [QueryFilter.equal("groupId", group_id)]
        )
        return result.total

    async def is_admin(self, group_id: str, user_id: str) -> bool:
        """Local admin check against the stored memberships."""
        memberships = await self._list(
            [
                QueryFilter.equal("groupId", group_id),
                QueryFilter.equal("userId", user_id),
                QueryFilter.equal("role", MembershipRole.ADMIN.value),
            ]
        )
        return len(memberships) > 0

    async def delete(self, membership_id: str) -> bool:
        """Delete a membership document.

        Returns:
            True if deleted, False if it was already absent
        """
        try:
            await self._store.delete_document(self.collection, membership_id)
        except NotFoundError:
            return False
        return True

    async def sweep_group(
        self,
        group_id: str,
        on_failure: SweepFailureHandler | None = None,
    ) -> SweepResult:
        """Best-effort deletion of every membership referencing ``group_id``.

        Individual failures are reported through ``on_failure`` and never
        abort the sweep.
        """
        try:
            memberships = await self.list_for_group(group_id)
        except GroupMembershipError as e:
            if on_failure is not None:
                on_failure(None, e)
            return SweepResult(deleted=0, failed=1)

        deleted = 0
        failed = 0
        for membership in memberships:
            try:
                await self.delete(membership.id)
            except GroupMembershipError as e:
                failed += 1
                if on_failure is not None:
                    on_failure(membership.id, e)
                continue
            deleted += 1
        return SweepResult(deleted=deleted, failed=failed)
