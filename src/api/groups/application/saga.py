"""Saga compensation log.

No transaction spans the team provider and the document store. Multi-step
operations register a compensating action after each committed step; when
a later step fails, the compensations run best-effort in reverse order.

Contract: the primary error always takes precedence. Compensation failures
are collected into a PartialFailureError for logging and are never raised.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from groups.ports.exceptions import PartialFailureError

Compensation = Callable[[], Awaitable[object]]


@dataclass(frozen=True)
class CompensationResult:
    """Outcome of one compensating action."""

    name: str
    succeeded: bool
    error: str | None = None


class SagaLog:
    """Records compensations for one saga run.

    Example:
        saga = SagaLog("create_group", timeout=5.0)
        team_id = await teams.create_team(name, ["owner"])
        saga.on_failure("delete_team", lambda: teams.delete_team(team_id))
        ...
        except Exception as e:
            partial = await saga.compensate(e)
            raise
    """

    def __init__(self, operation: str, timeout: float | None = None):
        self.operation = operation
        self._timeout = timeout
        self._compensations: list[tuple[str, Compensation]] = []
        self.results: list[CompensationResult] = []

    @property
    def pending(self) -> list[str]:
        """Names of registered compensations, in the order they would run."""
        return [name for name, _ in reversed(self._compensations)]

    def on_failure(self, name: str, action: Compensation) -> None:
        """Register a compensating action for the step that just committed."""
        self._compensations.append((name, action))

    async def _run(self, name: str, action: Compensation) -> CompensationResult:
        try:
            async with asyncio.timeout(self._timeout):
                await action()
        except Exception as e:
            return CompensationResult(name=name, succeeded=False, error=str(e) or type(e).__name__)
        return CompensationResult(name=name, succeeded=True)

    async def compensate(self, primary: BaseException) -> PartialFailureError | None:
        """Run every registered compensation in reverse order.

        Returns:
            A PartialFailureError describing failed compensations, or None
            when all of them succeeded. The caller re-raises ``primary``.
        """
        while self._compensations:
            name, action = self._compensations.pop()
            self.results.append(await self._run(name, action))

        failed = [result.name for result in self.results if not result.succeeded]
        if not failed:
            return None
        return PartialFailureError(primary=primary, failed_steps=failed)
