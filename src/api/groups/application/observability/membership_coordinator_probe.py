"""Protocol for membership coordinator observability.

Defines the interface for domain probes that capture the outcome of each
cross-store membership operation, including degraded joins and failed
compensations.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class MembershipCoordinatorProbe(Protocol):
    """Domain probe for membership coordinator operations."""

    def group_created(
        self,
        group_id: str,
        team_id: str,
        short_code: str,
        creator_id: str,
    ) -> None:
        """Record that a group was created with its team and admin membership."""
        ...

    def group_creation_failed(self, name: str, creator_id: str, error: str) -> None:
        """Record that group creation failed and was compensated."""
        ...

    def compensation_failed(self, operation: str, steps: list[str], error: str) -> None:
        """Record that compensating actions failed after a saga error."""
        ...

    def team_grant_failed(
        self,
        group_id: str,
        team_id: str,
        user_id: str,
        team_missing: bool,
        error: str,
    ) -> None:
        """Record that granting team membership failed during a join."""
        ...

    def permission_tier_failed(
        self,
        group_id: str,
        user_id: str,
        tier: str,
        error: str,
    ) -> None:
        """Record that creating a membership under a permission tier failed."""
        ...

    def member_joined(
        self,
        group_id: str,
        user_id: str,
        join_method: str,
        permission_tier: str,
    ) -> None:
        """Record that a user joined a group."""
        ...

    def member_removed(self, group_id: str, user_id: str, removed_by: str) -> None:
        """Record that a member was removed or left."""
        ...

    def member_removal_failed(self, group_id: str, user_id: str, error: str) -> None:
        """Record that removing a member failed."""
        ...

    def group_deleted(self, group_id: str, deleted_by: str, memberships_deleted: int) -> None:
        """Record that a group and its memberships were deleted."""
        ...

    def membership_sweep_failed(self, group_id: str, membership_id: str | None, error: str) -> None:
        """Record that a membership could not be deleted during a sweep."""
        ...

    def group_renamed(self, group_id: str, name: str) -> None:
        """Record that a group was renamed."""
        ...

    def team_rename_failed(self, group_id: str, team_id: str, error: str) -> None:
        """Record that the best-effort team rename failed."""
        ...

    def with_context(self, context: ObservationContext) -> MembershipCoordinatorProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultMembershipCoordinatorProbe:
    """Default implementation of MembershipCoordinatorProbe using structlog."""

    def __init__(
        self,
        logger: structlog.stdlib.BoundLogger | None = None,
        context: ObservationContext | None = None,
    ):
        self._logger = logger or structlog.get_logger()
        self._context = context

    def _get_context_kwargs(self) -> dict[str, Any]:
        """Get context metadata as kwargs for logging."""
        if self._context is None:
            return {}
        return self._context.as_dict()

    def with_context(
        self, context: ObservationContext
    ) -> DefaultMembershipCoordinatorProbe:
        """Create a new probe with observation context bound."""
        return DefaultMembershipCoordinatorProbe(logger=self._logger, context=context)

    def group_created(
        self,
        group_id: str,
        team_id: str,
        short_code: str,
        creator_id: str,
    ) -> None:
        self._logger.info(
            "group_created",
            group_id=group_id,
            team_id=team_id,
            short_code=short_code,
            creator_id=creator_id,
            **self._get_context_kwargs(),
        )

    def group_creation_failed(self, name: str, creator_id: str, error: str) -> None:
        self._logger.error(
            "group_creation_failed",
            name=name,
            creator_id=creator_id,
            error=error,
            **self._get_context_kwargs(),
        )

    def compensation_failed(self, operation: str, steps: list[str], error: str) -> None:
        self._logger.error(
            "compensation_failed",
            operation=operation,
            steps=steps,
            error=error,
            **self._get_context_kwargs(),
        )

    def team_grant_failed(
        self,
        group_id: str,
        team_id: str,
        user_id: str,
        team_missing: bool,
        error: str,
    ) -> None:
        self._logger.warning(
            "team_grant_failed",
            group_id=group_id,
            team_id=team_id,
            user_id=user_id,
            team_missing=team_missing,
            error=error,
            **self._get_context_kwargs(),
        )

    def permission_tier_failed(
        self,
        group_id: str,
        user_id: str,
        tier: str,
        error: str,
    ) -> None:
        self._logger.warning(
            "permission_tier_failed",
            group_id=group_id,
            user_id=user_id,
            tier=tier,
            error=error,
            **self._get_context_kwargs(),
        )

    def member_joined(
        self,
        group_id: str,
        user_id: str,
        join_method: str,
        permission_tier: str,
    ) -> None:
        self._logger.info(
            "member_joined",
            group_id=group_id,
            user_id=user_id,
            join_method=join_method,
            permission_tier=permission_tier,
            **self._get_context_kwargs(),
        )

    def member_removed(self, group_id: str, user_id: str, removed_by: str) -> None:
        self._logger.info(
            "member_removed",
            group_id=group_id,
            user_id=user_id,
            removed_by=removed_by,
            **self._get_context_kwargs(),
        )

    def member_removal_failed(self, group_id: str, user_id: str, error: str) -> None:
        self._logger.error(
            "member_removal_failed",
            group_id=group_id,
            user_id=user_id,
            error=error,
            **self._get_context_kwargs(),
        )

    def group_deleted(self, group_id: str, deleted_by: str, memberships_deleted: int) -> None:
        self._logger.info(
            "group_deleted",
            group_id=group_id,
            deleted_by=deleted_by,
            memberships_deleted=memberships_deleted,
            **self._get_context_kwargs(),
        )

    def membership_sweep_failed(self, group_id: str, membership_id: str | None, error: str) -> None:
        self._logger.warning(
            "membership_sweep_failed",
            group_id=group_id,
            membership_id=membership_id,
            error=error,
            **self._get_context_kwargs(),
        )

    def group_renamed(self, group_id: str, name: str) -> None:
        self._logger.info(
            "group_renamed",
            group_id=group_id,
            name=name,
            **self._get_context_kwargs(),
        )

    def team_rename_failed(self, group_id: str, team_id: str, error: str) -> None:
        self._logger.warning(
            "team_rename_failed",
            group_id=group_id,
            team_id=team_id,
            error=error,
            **self._get_context_kwargs(),
        )
