"""Unit tests for GroupRegistry."""

import pytest
from unittest.mock import MagicMock

from groups.application.services import GroupRegistry
from groups.domain import ShortCodeGenerator
from groups.ports.exceptions import (
    ConflictError,
    ExhaustedRetriesError,
    NotFoundError,
    ValidationError,
)


def _fixed_codes(*codes: str) -> ShortCodeGenerator:
    generator = MagicMock(spec=ShortCodeGenerator)
    generator.generate.side_effect = list(codes)
    generator.normalize.side_effect = lambda code: code.strip().upper()
    return generator


class TestGroupRegistryInit:
    def test_rejects_non_positive_attempts(self, store):
        with pytest.raises(ValueError):
            GroupRegistry(store=store, max_attempts=0)

    def test_uses_default_probe_when_not_provided(self, store):
        registry = GroupRegistry(store=store)
        assert registry._probe is not None


class TestCreateGroupRecord:
    """Tests for create_group_record."""

    @pytest.mark.asyncio
    async def test_persists_group_with_team_scoped_permissions(
        self, registry, store, collections, registry_probe
    ):
        group = await registry.create_group_record(
            name="Family", created_by="alice", team_id="team-1"
        )

        stored = store.documents(collections.groups)
        assert len(stored) == 1
        assert stored[0].id == group.id
        assert stored[0]["shortCode"] == group.short_code
        assert stored[0]["teamId"] == "team-1"
        assert set(stored[0].permissions) == {
            'read("team:team-1")',
            'update("team:team-1/owner")',
            'delete("team:team-1/owner")',
        }
        registry_probe.group_record_created.assert_called_once_with(
            group_id=group.id,
            short_code=group.short_code,
            team_id="team-1",
            created_by="alice",
        )

    @pytest.mark.asyncio
    async def test_retries_on_short_code_collision(self, store, collections, registry_probe):
        store.put(collections.groups, "existing", {"shortCode": "AAAAAA", "name": "x"})
        registry = GroupRegistry(
            store=store,
            collections=collections,
            short_codes=_fixed_codes("AAAAAA", "BBBBBB"),
            probe=registry_probe,
        )

        group = await registry.create_group_record("Family", "alice", "team-1")

        assert group.short_code == "BBBBBB"
        registry_probe.short_code_collision.assert_called_once_with(
            short_code="AAAAAA", attempt=1
        )

    @pytest.mark.asyncio
    async def test_store_conflict_counts_as_collision(self, store, collections, registry_probe):
        store.fail_next("create_document", ConflictError("duplicate shortCode"))
        registry = GroupRegistry(
            store=store,
            collections=collections,
            short_codes=_fixed_codes("AAAAAA", "BBBBBB"),
            probe=registry_probe,
        )

        group = await registry.create_group_record("Family", "alice", "team-1")

        assert group.short_code == "BBBBBB"
        assert registry_probe.short_code_collision.call_count == 1

    @pytest.mark.asyncio
    async def test_exhausted_retries(self, store, collections, registry_probe):
        store.put(collections.groups, "existing", {"shortCode": "AAAAAA", "name": "x"})
        registry = GroupRegistry(
            store=store,
            collections=collections,
            short_codes=_fixed_codes("AAAAAA", "AAAAAA", "AAAAAA"),
            max_attempts=3,
            probe=registry_probe,
        )

        with pytest.raises(ExhaustedRetriesError) as exc_info:
            await registry.create_group_record("Family", "alice", "team-1")

        assert exc_info.value.attempts == 3
        registry_probe.short_code_exhausted.assert_called_once_with(attempts=3)
        assert len(store.documents(collections.groups)) == 1

    @pytest.mark.asyncio
    async def test_blank_name_rejected_before_store_call(self, registry, store):
        with pytest.raises(ValidationError):
            await registry.create_group_record("   ", "alice", "team-1")
        assert store.calls == []

    @pytest.mark.asyncio
    async def test_without_team_uses_collection_permissions(self, registry, store, collections):
        await registry.create_group_record("Family", "alice", None)
        assert store.documents(collections.groups)[0].permissions == ()

    @pytest.mark.asyncio
    async def test_codes_unique_across_many_groups(self, registry, store, collections):
        for i in range(50):
            await registry.create_group_record(f"Group {i}", "alice", f"team-{i}")

        codes = [d["shortCode"] for d in store.documents(collections.groups)]
        assert len(codes) == len(set(codes)) == 50


class TestLookups:
    """Tests for get_group, find_by_short_code and list_groups."""

    @pytest.mark.asyncio
    async def test_get_group_missing_raises_not_found(self, registry):
        with pytest.raises(NotFoundError):
            await registry.get_group("missing")

    @pytest.mark.asyncio
    async def test_find_by_short_code_normalizes_input(self, registry):
        group = await registry.create_group_record("Family", "alice", "team-1")

        found = await registry.find_by_short_code(f"  {group.short_code.lower()} ")

        assert found is not None
        assert found.id == group.id

    @pytest.mark.asyncio
    async def test_find_by_short_code_returns_none(self, registry):
        assert await registry.find_by_short_code("ZZZZZZ") is None

    @pytest.mark.asyncio
    async def test_find_by_short_code_blank_rejected(self, registry):
        with pytest.raises(ValidationError):
            await registry.find_by_short_code("")

    @pytest.mark.asyncio
    async def test_list_groups_by_ids(self, registry):
        first = await registry.create_group_record("One", "alice", "t1")
        await registry.create_group_record("Two", "alice", "t2")
        third = await registry.create_group_record("Three", "alice", "t3")

        groups = await registry.list_groups([first.id, third.id])

        assert {g.id for g in groups} == {first.id, third.id}

    @pytest.mark.asyncio
    async def test_list_groups_empty_input_skips_store(self, registry, store):
        assert await registry.list_groups([]) == []
        assert store.called("list_documents") == []


class TestMutations:
    """Tests for rename, set_team and delete."""

    @pytest.mark.asyncio
    async def test_rename(self, registry, registry_probe):
        group = await registry.create_group_record("Family", "alice", "t1")

        renamed = await registry.rename_group_record(group.id, " Friends ")

        assert renamed.name == "Friends"
        assert (await registry.get_group(group.id)).name == "Friends"
        registry_probe.group_record_renamed.assert_called_once_with(
            group_id=group.id, name="Friends"
        )

    @pytest.mark.asyncio
    async def test_rename_missing_raises_not_found(self, registry):
        with pytest.raises(NotFoundError):
            await registry.rename_group_record("missing", "Friends")

    @pytest.mark.asyncio
    async def test_set_team(self, registry):
        group = await registry.create_group_record("Family", "alice", None)

        updated = await registry.set_team(group.id, "t9")

        assert updated.team_id == "t9"

    @pytest.mark.asyncio
    async def test_delete(self, registry, registry_probe):
        group = await registry.create_group_record("Family", "alice", "t1")

        await registry.delete_group_record(group.id)

        with pytest.raises(NotFoundError):
            await registry.get_group(group.id)
        registry_probe.group_record_deleted.assert_called_once_with(group_id=group.id)

    @pytest.mark.asyncio
    async def test_delete_missing_raises_not_found(self, registry):
        with pytest.raises(NotFoundError):
            await registry.delete_group_record("missing")
