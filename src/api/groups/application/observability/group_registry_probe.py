"""Protocol for group registry observability.

Defines the interface for domain probes that capture group record
lifecycle events and short-code allocation.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class GroupRegistryProbe(Protocol):
    """Domain probe for group registry operations."""

    def group_record_created(
        self,
        group_id: str,
        short_code: str,
        team_id: str | None,
        created_by: str,
    ) -> None:
        """Record that a group record was persisted."""
        ...

    def short_code_collision(self, short_code: str, attempt: int) -> None:
        """Record that a generated short code was already taken."""
        ...

    def short_code_exhausted(self, attempts: int) -> None:
        """Record that no unique short code could be allocated."""
        ...

    def group_record_renamed(self, group_id: str, name: str) -> None:
        """Record that a group record was renamed."""
        ...

    def group_record_deleted(self, group_id: str) -> None:
        """Record that a group record was deleted."""
        ...

    def with_context(self, context: ObservationContext) -> GroupRegistryProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultGroupRegistryProbe:
    """Default implementation of GroupRegistryProbe using structlog."""

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

    def with_context(self, context: ObservationContext) -> DefaultGroupRegistryProbe:
        """Create a new probe with observation context bound."""
        return DefaultGroupRegistryProbe(logger=self._logger, context=context)

    def group_record_created(
        self,
        group_id: str,
        short_code: str,
        team_id: str | None,
        created_by: str,
    ) -> None:
        self._logger.info(
            "group_record_created",
            group_id=group_id,
            short_code=short_code,
            team_id=team_id,
            created_by=created_by,
            **self._get_context_kwargs(),
        )

    def short_code_collision(self, short_code: str, attempt: int) -> None:
        self._logger.debug(
            "short_code_collision",
            short_code=short_code,
            attempt=attempt,
            **self._get_context_kwargs(),
        )

    def short_code_exhausted(self, attempts: int) -> None:
        self._logger.error(
            "short_code_exhausted",
            attempts=attempts,
            **self._get_context_kwargs(),
        )

    def group_record_renamed(self, group_id: str, name: str) -> None:
        self._logger.info(
            "group_record_renamed",
            group_id=group_id,
            name=name,
            **self._get_context_kwargs(),
        )

    def group_record_deleted(self, group_id: str) -> None:
        self._logger.info(
            "group_record_deleted",
            group_id=group_id,
            **self._get_context_kwargs(),
        )
