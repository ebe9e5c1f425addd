"""Domain probe for Appwrite REST calls.

Following Domain-Oriented Observability patterns, this probe captures
failures at the backend boundary before they are translated into typed
errors.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class AppwriteProbe(Protocol):
    """Domain probe for Appwrite backend requests."""

    def request_failed(
        self,
        method: str,
        path: str,
        error_type: str,
        status_code: int | None = None,
        reason: str | None = None,
    ) -> None:
        """Record that a backend request failed."""
        ...

    def with_context(self, context: ObservationContext) -> AppwriteProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultAppwriteProbe:
    """Default implementation of AppwriteProbe using structlog."""

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

    def with_context(self, context: ObservationContext) -> DefaultAppwriteProbe:
        """Create a new probe with observation context bound."""
        return DefaultAppwriteProbe(logger=self._logger, context=context)

    def request_failed(
        self,
        method: str,
        path: str,
        error_type: str,
        status_code: int | None = None,
        reason: str | None = None,
    ) -> None:
        """Record that a backend request failed."""
        self._logger.warning(
            "appwrite_request_failed",
            method=method,
            path=path,
            error_type=error_type,
            status_code=status_code,
            reason=reason,
            **self._get_context_kwargs(),
        )
