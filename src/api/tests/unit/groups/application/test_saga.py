"""Unit tests for the saga compensation log."""

import asyncio

import pytest

from groups.application.saga import SagaLog
from groups.ports.exceptions import PartialFailureError


class TestSagaLog:
    """Tests for SagaLog."""

    @pytest.mark.asyncio
    async def test_compensations_run_in_reverse_order(self):
        ran: list[str] = []

        async def record(name: str) -> None:
            ran.append(name)

        saga = SagaLog("create_group")
        saga.on_failure("delete_team", lambda: record("delete_team"))
        saga.on_failure("delete_group_record", lambda: record("delete_group_record"))

        result = await saga.compensate(RuntimeError("boom"))

        assert result is None
        assert ran == ["delete_group_record", "delete_team"]
        assert all(r.succeeded for r in saga.results)

    def test_pending_lists_compensations_in_run_order(self):
        async def noop() -> None:
            return None

        saga = SagaLog("create_group")
        saga.on_failure("first", noop)
        saga.on_failure("second", noop)

        assert saga.pending == ["second", "first"]

    @pytest.mark.asyncio
    async def test_failed_compensation_is_reported_not_raised(self):
        ran: list[str] = []

        async def fails() -> None:
            raise RuntimeError("team service down")

        async def succeeds() -> None:
            ran.append("delete_team")

        primary = ValueError("group record write failed")
        saga = SagaLog("create_group")
        saga.on_failure("delete_team", succeeds)
        saga.on_failure("delete_group_record", fails)

        result = await saga.compensate(primary)

        assert isinstance(result, PartialFailureError)
        assert result.primary is primary
        assert result.failed_steps == ["delete_group_record"]
        assert ran == ["delete_team"]

    @pytest.mark.asyncio
    async def test_compensation_is_bounded_by_timeout(self):
        async def hangs() -> None:
            await asyncio.sleep(10)

        saga = SagaLog("create_group", timeout=0.01)
        saga.on_failure("delete_team", hangs)

        result = await saga.compensate(RuntimeError("boom"))

        assert result is not None
        assert result.failed_steps == ["delete_team"]
        assert saga.results[0].error == "TimeoutError"

    @pytest.mark.asyncio
    async def test_compensations_run_only_once(self):
        calls: list[int] = []

        async def once() -> None:
            calls.append(1)

        saga = SagaLog("join_group")
        saga.on_failure("revoke", once)

        await saga.compensate(RuntimeError("a"))
        await saga.compensate(RuntimeError("b"))

        assert calls == [1]
        assert saga.pending == []
