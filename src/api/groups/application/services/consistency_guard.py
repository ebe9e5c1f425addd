"""Consistency guard application service.

Detects and repairs drift between the team provider and the membership
store: broken groups whose team is gone, and orphaned memberships whose
group is gone. Every operation runs on demand.
"""

from __future__ import annotations

import asyncio

from groups.application.observability import (
    ConsistencyGuardProbe,
    DefaultConsistencyGuardProbe,
)
from groups.application.saga import SagaLog
from groups.application.services.group_registry import GroupRegistry
from groups.application.services.membership_records import MembershipRecords
from groups.application.services.requester import require_text, resolve_requester
from groups.application.value_objects import RecoveryResult, SweepResult
from groups.domain import Group, Membership, TeamRole
from groups.ports.exceptions import (
    AlreadyHealthyError,
    ConflictError,
    GroupMembershipError,
    NotFoundError,
    PermissionDeniedError,
)
from groups.ports.providers import AccountProvider, TeamAccessProvider

DEFAULT_BEST_EFFORT_TIMEOUT = 5.0


class ConsistencyGuard:
    """Application service for drift detection and repair.

    Only a NotFoundError ever counts as evidence that something is gone.
    Transient or permission failures during a probe never trigger a
    repair, so valid data is not destroyed on a flaky network.
    """

    def __init__(
        self,
        registry: GroupRegistry,
        records: MembershipRecords,
        teams: TeamAccessProvider,
        account: AccountProvider | None = None,
        probe: ConsistencyGuardProbe | None = None,
        best_effort_timeout: float | None = DEFAULT_BEST_EFFORT_TIMEOUT,
    ):
        self._registry = registry
        self._records = records
        self._teams = teams
        self._account = account
        self._probe = probe or DefaultConsistencyGuardProbe()
        self._best_effort_timeout = best_effort_timeout

    async def _team_exists(self, group: Group) -> bool:
        """Probe the group's team.

        Raises:
            GroupMembershipError: Any probe failure other than absence
        """
        if not group.team_id:
            return False
        try:
            await self._teams.get_team(group.team_id)
        except NotFoundError:
            return False
        except GroupMembershipError as e:
            self._probe.team_probe_failed(
                group_id=group.id, team_id=group.team_id, error=str(e)
            )
            raise
        return True

    async def recover_group(self, group_id: str, requester: str | None = None) -> RecoveryResult:
        """Anchor a broken group to a fresh team owned by the requester.

        Steps: confirm the team is gone, check the requester is a local
        admin, create the team and point the group at it, then re-invite
        every other member. Re-invites are best-effort.

        Args:
            group_id: The broken group
            requester: Acting user; resolved from the session when None

        Returns:
            RecoveryResult with the new team id and re-invite outcomes

        Raises:
            NotFoundError: If the group does not exist
            AlreadyHealthyError: If the group's team is reachable
            PermissionDeniedError: If the requester is not a group admin
        """
        group_id = require_text(group_id, "group_id")
        user_id = await resolve_requester(self._account, requester)

        group = await self._registry.get_group(group_id)
        if await self._team_exists(group):
            assert group.team_id is not None
            self._probe.recovery_rejected(
                group_id=group.id, user_id=user_id, reason="already_healthy"
            )
            raise AlreadyHealthyError(group.id, group.team_id)

        # The team-based authorization check is unavailable, so check locally.
        memberships = await self._records.list_for_group(group.id)
        if not any(m.user_id == user_id and m.is_admin for m in memberships):
            self._probe.recovery_rejected(
                group_id=group.id, user_id=user_id, reason="not_admin"
            )
            raise PermissionDeniedError(
                f"Only admins of group {group.id} can recover it"
            )

        saga = SagaLog("recover_group", timeout=self._best_effort_timeout)
        try:
            team_id = await self._teams.create_team(group.name, [TeamRole.OWNER])
            saga.on_failure("delete_team", lambda: self._teams.delete_team(team_id))
            group = await self._registry.set_team(group.id, team_id)
        except Exception as e:
            partial = await saga.compensate(e)
            self._probe.recovery_failed(
                group_id=group.id,
                error=str(e),
                failed_steps=partial.failed_steps if partial else [],
            )
            raise

        reinvited: list[str] = []
        failed: list[str] = []
        for membership in memberships:
            if membership.user_id == user_id:
                continue
            if await self._reinvite(group, team_id, membership):
                reinvited.append(membership.user_id)
            else:
                failed.append(membership.user_id)

        self._probe.group_recovered(
            group_id=group.id,
            team_id=team_id,
            recovered_by=user_id,
            reinvited=len(reinvited),
            failed=len(failed),
        )
        return RecoveryResult(
            group=group, team_id=team_id, reinvited=reinvited, failed_invites=failed
        )

    async def _reinvite(self, group: Group, team_id: str, membership: Membership) -> bool:
        try:
            async with asyncio.timeout(self._best_effort_timeout):
                await self._teams.create_membership(
                    team_id, [TeamRole.MEMBER], membership.user_id
                )
        except ConflictError:
            return True
        except Exception as e:
            self._probe.reinvite_failed(
                group_id=group.id,
                team_id=team_id,
                user_id=membership.user_id,
                error=str(e) or type(e).__name__,
            )
            return False
        return True

    async def find_broken_groups(self, user_id: str | None = None) -> list[Group]:
        """Return the user's groups that have no live team.

        A group is broken when its ``teamId`` is empty or its team lookup
        answers not-found. Groups whose probe fails for another reason are
        logged and left out. Read-only.
        """
        user_id = await resolve_requester(self._account, user_id)

        memberships = await self._records.list_for_user(user_id)
        groups = await self._registry.list_groups([m.group_id for m in memberships])

        broken: list[Group] = []
        for group in groups:
            try:
                exists = await self._team_exists(group)
            except GroupMembershipError:
                continue
            if not exists:
                broken.append(group)

        self._probe.broken_groups_found(
            user_id=user_id, group_ids=[group.id for group in broken]
        )
        return broken

    async def cleanup_broken_group(self, group_id: str) -> SweepResult:
        """Irreversibly delete a broken group's record and memberships.

        No team operation is attempted.

        Raises:
            NotFoundError: If the group does not exist
            AlreadyHealthyError: If the group's team is reachable
        """
        group_id = require_text(group_id, "group_id")
        group = await self._registry.get_group(group_id)
        if await self._team_exists(group):
            assert group.team_id is not None
            raise AlreadyHealthyError(group.id, group.team_id)

        await self._registry.delete_group_record(group.id)
        sweep = await self._records.sweep_group(
            group.id,
            on_failure=lambda membership_id, e: self._probe.membership_sweep_failed(
                group_id=group.id, membership_id=membership_id, error=str(e)
            ),
        )
        self._probe.broken_group_cleaned(
            group_id=group.id, memberships_deleted=sweep.deleted
        )
        return sweep

    async def cleanup_orphaned_memberships(self, user_id: str | None = None) -> int:
        """Delete the user's memberships whose group no longer exists.

        Only a not-found on the group lookup qualifies a membership for
        deletion.

        Returns:
            Number of orphaned memberships removed
        """
        user_id = await resolve_requester(self._account, user_id)

        orphaned: list[Membership] = []
        for membership in await self._records.list_for_user(user_id):
            try:
                await self._registry.get_group(membership.group_id)
            except NotFoundError:
                self._probe.orphaned_membership_found(
                    membership_id=membership.id, group_id=membership.group_id
                )
                orphaned.append(membership)
            except GroupMembershipError as e:
                self._probe.orphan_check_failed(
                    membership_id=membership.id,
                    group_id=membership.group_id,
                    error=str(e),
                )

        removed = 0
        for membership in orphaned:
            try:
                await self._records.delete(membership.id)
            except GroupMembershipError as e:
                self._probe.orphaned_membership_delete_failed(
                    membership_id=membership.id, error=str(e)
                )
                continue
            removed += 1

        self._probe.orphaned_memberships_cleaned(user_id=user_id, count=removed)
        return removed
