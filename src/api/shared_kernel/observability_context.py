"""Observation context for domain-oriented observability.

Observation contexts collect and manage contextual metadata for instrumentation,
following the Domain Oriented Observability pattern.

See: https://martinfowler.com/articles/domain-oriented-observability.html
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ObservationContext:
    """Immutable context containing metadata for observability.

    Captures request-scoped metadata that should be included with all
    instrumentation events. Keys must not clash with probe event fields
    such as ``group_id`` or ``user_id``.

    Attributes:
        request_id: Unique identifier for the current request/operation.
        actor_id: Identifier of the user driving the request (if known).
        extra: Additional contextual metadata.

    Example:
        context = ObservationContext(request_id="req-123", actor_id="user-456")
        probe = DefaultMembershipCoordinatorProbe().with_context(context)
    """

    request_id: str | None = None
    actor_id: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        """Convert context to a dictionary for logging.

        Only includes non-None values to keep logs clean.
        """
        result: dict[str, Any] = {}
        if self.request_id is not None:
            result["request_id"] = self.request_id
        if self.actor_id is not None:
            result["actor_id"] = self.actor_id
        result.update(self.extra)
        return result

    def with_extra(self, **kwargs: Any) -> ObservationContext:
        """Create a new context with additional metadata."""
        return ObservationContext(
            request_id=self.request_id,
            actor_id=self.actor_id,
            extra={**self.extra, **kwargs},
        )
