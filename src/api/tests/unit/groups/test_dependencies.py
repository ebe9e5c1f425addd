"""Unit tests for the groups composition root."""

import logging

import httpx
import pytest
import structlog

from groups.dependencies import (
    build_appwrite_group_services,
    build_group_services,
    collections_from_settings,
    get_appwrite_client,
)
from groups.infrastructure.appwrite import AppwriteClient
from groups.ports.types import Collections
from infrastructure.settings import (
    AppwriteSettings,
    GroupSettings,
    get_appwrite_settings,
    get_settings,
)
from shared_kernel.observability_context import ObservationContext


class TestBuildGroupServices:
    """Tests for build_group_services."""

    def test_services_share_registry(self, store, teams, account):
        services = build_group_services(
            store=store, teams=teams, account=account, group_settings=GroupSettings()
        )

        assert services.coordinator._registry is services.registry
        assert services.guard._registry is services.registry

    def test_applies_group_settings(self, store, teams):
        settings = GroupSettings(
            short_code_length=8, short_code_max_attempts=3, best_effort_timeout_seconds=1.5
        )

        services = build_group_services(store=store, teams=teams, group_settings=settings)

        assert services.registry._short_code_length == 8
        assert services.registry._max_attempts == 3
        assert services.coordinator._best_effort_timeout == 1.5
        assert services.guard._best_effort_timeout == 1.5

    def test_binds_observation_context(self, store, teams):
        context = ObservationContext(request_id="req-1")

        services = build_group_services(
            store=store, teams=teams, group_settings=GroupSettings(), context=context
        )

        assert services.coordinator._probe._context is context
        assert services.guard._probe._context is context

    @pytest.mark.asyncio
    async def test_wired_services_create_groups(self, store, teams):
        services = build_group_services(
            store=store, teams=teams, group_settings=GroupSettings(short_code_length=8)
        )

        group = await services.coordinator.create_group("Family", requester="alice")

        assert len(group.short_code) == 8


class TestAppwriteWiring:
    def test_collections_from_settings(self):
        settings = AppwriteSettings(
            groups_collection_id="g", memberships_collection_id="m"
        )
        assert collections_from_settings(settings) == Collections(groups="g", memberships="m")

    @pytest.mark.asyncio
    async def test_build_appwrite_group_services(self):
        settings = AppwriteSettings(
            project_id="proj", api_key="secret", database_id="db"
        )
        client = AppwriteClient.from_settings(
            settings, transport=httpx.MockTransport(lambda request: httpx.Response(204))
        )

        services = build_appwrite_group_services(
            client, appwrite_settings=settings, group_settings=GroupSettings()
        )

        assert services.registry.collection == "groups"
        await client.aclose()


class TestGetAppwriteClient:
    @pytest.fixture(autouse=True)
    def fresh_caches(self):
        get_settings.cache_clear()
        get_appwrite_settings.cache_clear()
        get_appwrite_client.cache_clear()
        yield
        get_settings.cache_clear()
        get_appwrite_settings.cache_clear()
        get_appwrite_client.cache_clear()
        structlog.reset_defaults()

    @pytest.mark.asyncio
    async def test_startup_configures_logging_from_settings(self, monkeypatch):
        monkeypatch.setenv("FORCE_COLOR", "1")
        monkeypatch.setenv("MURAI_LOG_LEVEL", "WARNING")
        monkeypatch.delenv("MURAI_DEBUG", raising=False)
        monkeypatch.delenv("MURAI_APPWRITE_PROJECT_ID", raising=False)

        client = get_appwrite_client()

        wrapper = structlog.get_config()["wrapper_class"]
        assert wrapper is structlog.make_filtering_bound_logger(logging.WARNING)
        assert get_appwrite_client() is client
        await client.aclose()
