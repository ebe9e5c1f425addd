"""Protocol for consistency guard observability."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class ConsistencyGuardProbe(Protocol):
    """Domain probe for drift detection and repair."""

    def group_recovered(
        self,
        group_id: str,
        team_id: str,
        recovered_by: str,
        reinvited: int,
        failed: int,
    ) -> None:
        """Record that a broken group was anchored to a fresh team."""
        ...

    def recovery_rejected(self, group_id: str, user_id: str, reason: str) -> None:
        """Record that a recovery request was refused."""
        ...

    def recovery_failed(self, group_id: str, error: str, failed_steps: list[str]) -> None:
        """Record that recovery failed and was compensated."""
        ...

    def reinvite_failed(self, group_id: str, team_id: str, user_id: str, error: str) -> None:
        """Record that re-inviting a member to a recovered team failed."""
        ...

    def team_probe_failed(self, group_id: str, team_id: str, error: str) -> None:
        """Record that a team existence probe failed for a reason other than absence."""
        ...

    def broken_groups_found(self, user_id: str, group_ids: list[str]) -> None:
        """Record the result of a broken group scan."""
        ...

    def broken_group_cleaned(self, group_id: str, memberships_deleted: int) -> None:
        """Record that a broken group and its memberships were deleted."""
        ...

    def membership_sweep_failed(self, group_id: str, membership_id: str | None, error: str) -> None:
        """Record that a membership could not be deleted during cleanup."""
        ...

    def orphan_check_failed(self, membership_id: str, group_id: str, error: str) -> None:
        """Record that a group lookup failed with an error other than absence."""
        ...

    def orphaned_membership_found(self, membership_id: str, group_id: str) -> None:
        """Record that a membership references a missing group."""
        ...

    def orphaned_membership_delete_failed(self, membership_id: str, error: str) -> None:
        """Record that an orphaned membership could not be deleted."""
        ...

    def orphaned_memberships_cleaned(self, user_id: str, count: int) -> None:
        """Record how many orphaned memberships were removed."""
        ...

    def with_context(self, context: ObservationContext) -> ConsistencyGuardProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultConsistencyGuardProbe:
    """Default implementation of ConsistencyGuardProbe using structlog."""

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

    def with_context(self, context: ObservationContext) -> DefaultConsistencyGuardProbe:
        """Create a new probe with observation context bound."""
        return DefaultConsistencyGuardProbe(logger=self._logger, context=context)

    def group_recovered(
        self,
        group_id: str,
        team_id: str,
        recovered_by: str,
        reinvited: int,
        failed: int,
    ) -> None:
        self._logger.info(
            "group_recovered",
            group_id=group_id,
            team_id=team_id,
            recovered_by=recovered_by,
            reinvited=reinvited,
            failed=failed,
            **self._get_context_kwargs(),
        )

    def recovery_rejected(self, group_id: str, user_id: str, reason: str) -> None:
        self._logger.warning(
            "recovery_rejected",
            group_id=group_id,
            user_id=user_id,
            reason=reason,
            **self._get_context_kwargs(),
        )

    def recovery_failed(self, group_id: str, error: str, failed_steps: list[str]) -> None:
        self._logger.error(
            "recovery_failed",
            group_id=group_id,
            error=error,
            failed_steps=failed_steps,
            **self._get_context_kwargs(),
        )

    def reinvite_failed(self, group_id: str, team_id: str, user_id: str, error: str) -> None:
        self._logger.warning(
            "reinvite_failed",
            group_id=group_id,
            team_id=team_id,
            user_id=user_id,
            error=error,
            **self._get_context_kwargs(),
        )

    def team_probe_failed(self, group_id: str, team_id: str, error: str) -> None:
        self._logger.warning(
            "team_probe_failed",
            group_id=group_id,
            team_id=team_id,
            error=error,
            **self._get_context_kwargs(),
        )

    def broken_groups_found(self, user_id: str, group_ids: list[str]) -> None:
        self._logger.info(
            "broken_groups_found",
            user_id=user_id,
            group_ids=group_ids,
            count=len(group_ids),
            **self._get_context_kwargs(),
        )

    def broken_group_cleaned(self, group_id: str, memberships_deleted: int) -> None:
        self._logger.info(
            "broken_group_cleaned",
            group_id=group_id,
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

    def orphan_check_failed(self, membership_id: str, group_id: str, error: str) -> None:
        self._logger.warning(
            "orphan_check_failed",
            membership_id=membership_id,
            group_id=group_id,
            error=error,
            **self._get_context_kwargs(),
        )

    def orphaned_membership_found(self, membership_id: str, group_id: str) -> None:
        self._logger.info(
            "orphaned_membership_found",
            membership_id=membership_id,
            group_id=group_id,
            **self._get_context_kwargs(),
        )

    def orphaned_membership_delete_failed(self, membership_id: str, error: str) -> None:
        self._logger.error(
            "orphaned_membership_delete_failed",
            membership_id=membership_id,
            error=error,
            **self._get_context_kwargs(),
        )

    def orphaned_memberships_cleaned(self, user_id: str, count: int) -> None:
        self._logger.info(
            "orphaned_memberships_cleaned",
            user_id=user_id,
            count=count,
            **self._get_context_kwargs(),
        )
