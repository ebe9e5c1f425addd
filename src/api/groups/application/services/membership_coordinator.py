"""Membership coordinator application service.

Orchestrates the two-system write sequence behind group creation, joining,
leaving, removal, deletion and renaming. Each group lives both as a team in
the team provider and as documents in the membership store; no transaction
spans the two, so every multi-step operation is a saga with explicit
compensation.
"""

from __future__ import annotations

import asyncio

from groups.application.observability import (
    DefaultMembershipCoordinatorProbe,
    MembershipCoordinatorProbe,
)
from groups.application.permission_strategies import (
    TierOutcome,
    admin_membership_permissions,
    tiers_for,
)
from groups.application.saga import SagaLog
from groups.application.services.group_registry import GroupRegistry
from groups.application.services.membership_records import MembershipRecords
from groups.application.services.requester import require_text, resolve_requester
from groups.application.value_objects import (
    GroupDetails,
    GroupSummary,
    JoinResult,
    MemberView,
)
from groups.domain import (
    Group,
    JoinMethod,
    Membership,
    MembershipRole,
    TeamRole,
    generate_id,
)
from groups.ports.exceptions import (
    AlreadyMemberError,
    BrokenGroupError,
    ConflictError,
    GroupMembershipError,
    NotFoundError,
    PermissionDeniedError,
)
from groups.ports.providers import AccountProvider, TeamAccessProvider
from groups.ports.types import QueryFilter

DEFAULT_BEST_EFFORT_TIMEOUT = 5.0
UNKNOWN_USER_NAME = "Unknown User"


class MembershipCoordinator:
    """Application service for cross-store membership operations.

    Stateless: every call reads what it needs from the collaborators it
    was constructed with. The team provider is the authoritative
    authorization check; this service keeps only its own admin bookkeeping
    in the membership documents.
    """

    def __init__(
        self,
        registry: GroupRegistry,
        records: MembershipRecords,
        teams: TeamAccessProvider,
        account: AccountProvider | None = None,
        probe: MembershipCoordinatorProbe | None = None,
        best_effort_timeout: float | None = DEFAULT_BEST_EFFORT_TIMEOUT,
    ):
        """Initialize MembershipCoordinator with dependencies.

        Args:
            registry: Group record service
            records: Membership document access
            teams: Team access provider
            account: Account provider used when no requester is passed
            probe: Optional domain probe for observability
            best_effort_timeout: Bound in seconds on non-critical steps
        """
        self._registry = registry
        self._records = records
        self._teams = teams
        self._account = account
        self._probe = probe or DefaultMembershipCoordinatorProbe()
        self._best_effort_timeout = best_effort_timeout

    async def _compensate(self, saga: SagaLog, primary: Exception) -> None:
        partial = await saga.compensate(primary)
        if partial is not None:
            self._probe.compensation_failed(
                operation=saga.operation,
                steps=partial.failed_steps,
                error=str(partial),
            )

    async def create_group(self, name: str, requester: str | None = None) -> Group:
        """Create a group, its team and the creator's admin membership.

        Steps: create the team with the requester as owner, create the
        group record scoped to that team, then the admin membership. If a
        later step fails, earlier steps are undone best-effort and the
        original error is re-raised.

        Args:
            name: Group name
            requester: Creating user; resolved from the session when None

        Returns:
            The created Group

        Raises:
            ValidationError: If name is blank
            ExhaustedRetriesError: If no unique short code was found
        """
        name = require_text(name, "name")
        creator_id = await resolve_requester(self._account, requester)

        saga = SagaLog("create_group", timeout=self._best_effort_timeout)
        try:
            team_id = await self._teams.create_team(name, [TeamRole.OWNER])
            saga.on_failure("delete_team", lambda: self._teams.delete_team(team_id))

            group = await self._registry.create_group_record(
                name=name, created_by=creator_id, team_id=team_id
            )
            saga.on_failure(
                "delete_group_record",
                lambda: self._registry.delete_group_record(group.id),
            )

            # The creator already owns the team from the first step.
            await self._records.create(
                Membership(
                    id=generate_id(),
                    group_id=group.id,
                    user_id=creator_id,
                    role=MembershipRole.ADMIN,
                    team_membership_succeeded=True,
                ),
                admin_membership_permissions(team_id),
            )
        except Exception as e:
            await self._compensate(saga, e)
            self._probe.group_creation_failed(
                name=name, creator_id=creator_id, error=str(e)
            )
            raise

        self._probe.group_created(
            group_id=group.id,
            team_id=team_id,
            short_code=group.short_code,
            creator_id=creator_id,
        )
        return group

    async def _grant_team_membership(self, group: Group, user_id: str) -> bool:
        """Try to add ``user_id`` to the group's team.

        Failures degrade the join rather than abort it.
        """
        assert group.team_id is not None
        try:
            await self._teams.create_membership(group.team_id, [TeamRole.MEMBER], user_id)
        except ConflictError:
            # Already in the team, e.g. a retried join.
            return True
        except NotFoundError as e:
            self._probe.team_grant_failed(
                group_id=group.id,
                team_id=group.team_id,
                user_id=user_id,
                team_missing=True,
                error=str(e),
            )
            return False
        except GroupMembershipError as e:
            self._probe.team_grant_failed(
                group_id=group.id,
                team_id=group.team_id,
                user_id=user_id,
                team_missing=False,
                error=str(e),
            )
            return False
        return True

    async def _revoke_team_membership(self, team_id: str, user_id: str) -> bool:
        """Revoke ``user_id``'s team membership, tolerating its absence.

        Raises:
            NotFoundError: If the team itself does not exist
        """
        memberships = await self._teams.list_memberships(
            team_id, [QueryFilter.equal("userId", user_id)]
        )
        revoked = False
        for membership in memberships:
            try:
                await self._teams.delete_membership(team_id, membership.id)
            except NotFoundError:
                continue
            revoked = True
        return revoked

    async def _require_team_owner(self, team_id: str, user_id: str) -> None:
        """Raise PermissionDeniedError unless ``user_id`` owns the team."""
        memberships = await self._teams.list_memberships(
            team_id, [QueryFilter.equal("userId", user_id)]
        )
        if not any(TeamRole.OWNER in membership.roles for membership in memberships):
            raise PermissionDeniedError(
                f"User {user_id} is not an owner of team {team_id}"
            )

    async def join_group(self, short_code: str, requester: str | None = None) -> JoinResult:
        """Join a group by its short code.

        The membership record matters more than perfect access-control
        sync: if the team grant fails for any reason the membership is
        still written, under a fallback permission tier, and the result
        reports ``JoinMethod.DATABASE_ONLY``.

        Args:
            short_code: The group's join code (case-insensitive)
            requester: Joining user; resolved from the session when None

        Returns:
            JoinResult with the group, membership and join method

        Raises:
            ValidationError: If short_code is blank
            NotFoundError: If no group has this code
            BrokenGroupError: If the group has no team
            AlreadyMemberError: If the user is already a member, including
                when a concurrent join wins the uniqueness constraint
        """
        short_code = require_text(short_code, "short_code")
        user_id = await resolve_requester(self._account, requester)

        group = await self._registry.find_by_short_code(short_code)
        if group is None:
            raise NotFoundError(f"No group with short code {short_code}")
        if not group.team_id:
            raise BrokenGroupError(group.id)
        team_id = group.team_id

        if await self._records.find(group.id, user_id) is not None:
            raise AlreadyMemberError(group.id, user_id)

        team_granted = await self._grant_team_membership(group, user_id)

        saga = SagaLog("join_group", timeout=self._best_effort_timeout)
        if team_granted:
            saga.on_failure(
                "revoke_team_membership",
                lambda: self._revoke_team_membership(team_id, user_id),
            )

        def tier_failed(outcome: TierOutcome) -> None:
            self._probe.permission_tier_failed(
                group_id=group.id,
                user_id=user_id,
                tier=outcome.tier,
                error=outcome.error or "",
            )

        try:
            membership, fallback = await self._records.create_with_fallback(
                Membership(
                    id=generate_id(),
                    group_id=group.id,
                    user_id=user_id,
                    role=MembershipRole.MEMBER,
                    team_membership_succeeded=team_granted,
                ),
                tiers_for(team_granted),
                team_id=team_id,
                on_tier_failed=tier_failed,
            )
        except ConflictError as e:
            # A concurrent join won; its team grant is the same one, so keep it.
            raise AlreadyMemberError(group.id, user_id) from e
        except Exception as e:
            await self._compensate(saga, e)
            raise

        join_method = JoinMethod.from_team_grant(team_granted)
        self._probe.member_joined(
            group_id=group.id,
            user_id=user_id,
            join_method=join_method,
            permission_tier=fallback.tier,
        )
        return JoinResult(
            group=group,
            membership=membership,
            join_method=join_method,
            permission_tier=fallback.tier,
        )

    async def remove_member(
        self,
        group_id: str,
        target_user_id: str,
        requester: str | None = None,
    ) -> None:
        """Remove a member from a group.

        The team provider authorizes the action: a requester who is not a
        team owner is rejected there, before any document is touched. A
        database-only member has no team grant to revoke, so removing one
        on someone else's behalf requires the requester to own the team.

        Raises:
            NotFoundError: If the group does not exist
            BrokenGroupError: If the group has no reachable team
            PermissionDeniedError: If the requester may not remove the target
        """
        group_id = require_text(group_id, "group_id")
        target_user_id = require_text(target_user_id, "target_user_id")
        acting_user_id = await resolve_requester(self._account, requester)

        group = await self._registry.get_group(group_id)
        if not group.team_id:
            raise BrokenGroupError(
                group.id, hint="Recover the group before removing members."
            )

        try:
            try:
                revoked = await self._revoke_team_membership(group.team_id, target_user_id)
            except NotFoundError as e:
                raise BrokenGroupError(
                    group.id, hint="The group's team no longer exists. Recover the group first."
                ) from e
            if not revoked and target_user_id != acting_user_id:
                await self._require_team_owner(group.team_id, acting_user_id)

            membership = await self._records.find(group.id, target_user_id)
            if membership is not None:
                await self._records.delete(membership.id)
        except GroupMembershipError as e:
            self._probe.member_removal_failed(
                group_id=group.id, user_id=target_user_id, error=str(e)
            )
            raise

        self._probe.member_removed(
            group_id=group.id, user_id=target_user_id, removed_by=acting_user_id
        )

    async def leave_group(self, group_id: str, requester: str | None = None) -> None:
        """Remove the requester from a group.

        Raises:
            NotFoundError: If the group does not exist
            BrokenGroupError: If the group has no reachable team
        """
        user_id = await resolve_requester(self._account, requester)
        await self.remove_member(group_id, user_id, requester=user_id)

    async def delete_group(self, group_id: str, requester: str | None = None) -> None:
        """Delete a group's team, record and memberships.

        A missing team is tolerated. The membership sweep is best-effort:
        individual failures are logged and do not abort the delete; any
        leftovers are picked up by orphan cleanup.

        Raises:
            NotFoundError: If the group does not exist
            PermissionDeniedError: If the team provider rejects the requester
        """
        group_id = require_text(group_id, "group_id")
        acting_user_id = await resolve_requester(self._account, requester)

        group = await self._registry.get_group(group_id)
        if group.team_id:
            try:
                await self._teams.delete_team(group.team_id)
            except NotFoundError:
                pass

        await self._registry.delete_group_record(group.id)

        sweep = await self._records.sweep_group(
            group.id,
            on_failure=lambda membership_id, e: self._probe.membership_sweep_failed(
                group_id=group.id, membership_id=membership_id, error=str(e)
            ),
        )
        self._probe.group_deleted(
            group_id=group.id,
            deleted_by=acting_user_id,
            memberships_deleted=sweep.deleted,
        )

    async def rename_group(
        self,
        group_id: str,
        new_name: str,
        requester: str | None = None,
    ) -> Group:
        """Rename a group.

        The group record is the source of truth for display and is updated
        first. The team rename that follows is best-effort and bounded by
        the best-effort timeout; its failure never reaches the caller.

        Raises:
            ValidationError: If the new name is blank
            NotFoundError: If the group does not exist
        """
        group_id = require_text(group_id, "group_id")
        new_name = require_text(new_name, "name")
        await resolve_requester(self._account, requester)

        group = await self._registry.rename_group_record(group_id, new_name)

        if group.team_id:
            try:
                async with asyncio.timeout(self._best_effort_timeout):
                    await self._teams.update_name(group.team_id, new_name)
            except Exception as e:
                self._probe.team_rename_failed(
                    group_id=group.id,
                    team_id=group.team_id,
                    error=str(e) or type(e).__name__,
                )

        self._probe.group_renamed(group_id=group.id, name=new_name)
        return group

    async def is_group_admin(self, group_id: str | None, user_id: str | None) -> bool:
        """Whether ``user_id`` holds the admin role in the stored memberships."""
        if not group_id or not user_id:
            return False
        return await self._records.is_admin(group_id, user_id)

    async def member_count(self, group_id: str) -> int:
        group_id = require_text(group_id, "group_id")
        return await self._records.count_for_group(group_id)

    async def get_group(self, group_id: str) -> GroupDetails:
        """Load a group with its member count.

        Raises:
            NotFoundError: If the group does not exist
        """
        group = await self._registry.get_group(group_id)
        return GroupDetails(group=group, member_count=await self.member_count(group.id))

    async def list_user_groups(self, requester: str | None = None) -> list[GroupSummary]:
        """List the groups the requester belongs to, with counts and role."""
        user_id = await resolve_requester(self._account, requester)

        memberships = await self._records.list_for_user(user_id)
        if not memberships:
            return []

        roles = {membership.group_id: membership.role for membership in memberships}
        groups = await self._registry.list_groups(list(roles))
        counts = await asyncio.gather(
            *(self._records.count_for_group(group.id) for group in groups)
        )
        return [
            GroupSummary(group=group, member_count=count, user_role=roles.get(group.id))
            for group, count in zip(groups, counts, strict=True)
        ]

    async def _member_view(self, membership: Membership) -> MemberView:
        name = UNKNOWN_USER_NAME
        email = ""
        if self._account is not None:
            try:
                user = await self._account.get_user(membership.user_id)
            except GroupMembershipError:
                pass
            else:
                name = user.name or UNKNOWN_USER_NAME
                email = user.email
        return MemberView(
            user_id=membership.user_id,
            name=name,
            email=email,
            role=membership.role,
            joined_at=membership.joined_at,
            membership_id=membership.id,
        )

    async def list_members(self, group_id: str) -> list[MemberView]:
        """List a group's members with account details.

        Members whose account lookup fails are still listed, as
        ``Unknown User`` with an empty email.
        """
        group_id = require_text(group_id, "group_id")
        memberships = await self._records.list_for_group(group_id)
        return list(
            await asyncio.gather(*(self._member_view(m) for m in memberships))
        )
