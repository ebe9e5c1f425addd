"""Composition root for the groups bounded context.

Builds the application services from settings and the Appwrite adapters.
Callers that already hold collaborators (tests, other backends) can use
``build_group_services`` directly.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from groups.application.observability import (
    DefaultConsistencyGuardProbe,
    DefaultGroupRegistryProbe,
    DefaultMembershipCoordinatorProbe,
)
from groups.application.services import (
    ConsistencyGuard,
    GroupRegistry,
    MembershipCoordinator,
    MembershipRecords,
)
from groups.domain import ShortCodeGenerator
from groups.infrastructure.appwrite import (
    AppwriteAccountProvider,
    AppwriteClient,
    AppwriteMembershipStore,
    AppwriteTeamAccessProvider,
)
from groups.ports.providers import AccountProvider, MembershipStore, TeamAccessProvider
from groups.ports.types import Collections
from infrastructure.logging import configure_logging_from_settings
from infrastructure.settings import (
    AppwriteSettings,
    GroupSettings,
    get_appwrite_settings,
    get_group_settings,
)
from shared_kernel.observability_context import ObservationContext


@dataclass(frozen=True)
class GroupServices:
    """The three application services sharing one set of collaborators."""

    registry: GroupRegistry
    coordinator: MembershipCoordinator
    guard: ConsistencyGuard


def build_group_services(
    store: MembershipStore,
    teams: TeamAccessProvider,
    account: AccountProvider | None = None,
    collections: Collections | None = None,
    group_settings: GroupSettings | None = None,
    context: ObservationContext | None = None,
) -> GroupServices:
    """Wire the group services around the given collaborators.

    Args:
        store: Membership document store
        teams: Team access provider
        account: Account provider for session lookups
        collections: Collection names (defaults to ``groups``/``group_members``)
        group_settings: Short code and timeout settings
        context: Observation context bound into every probe
    """
    group_settings = group_settings or get_group_settings()

    registry_probe = DefaultGroupRegistryProbe()
    coordinator_probe = DefaultMembershipCoordinatorProbe()
    guard_probe = DefaultConsistencyGuardProbe()
    if context is not None:
        registry_probe = registry_probe.with_context(context)
        coordinator_probe = coordinator_probe.with_context(context)
        guard_probe = guard_probe.with_context(context)

    registry = GroupRegistry(
        store=store,
        collections=collections,
        short_codes=ShortCodeGenerator(),
        short_code_length=group_settings.short_code_length,
        max_attempts=group_settings.short_code_max_attempts,
        probe=registry_probe,
    )
    records = MembershipRecords(store=store, collections=collections)
    timeout = group_settings.best_effort_timeout_seconds

    return GroupServices(
        registry=registry,
        coordinator=MembershipCoordinator(
            registry=registry,
            records=records,
            teams=teams,
            account=account,
            probe=coordinator_probe,
            best_effort_timeout=timeout,
        ),
        guard=ConsistencyGuard(
            registry=registry,
            records=records,
            teams=teams,
            account=account,
            probe=guard_probe,
            best_effort_timeout=timeout,
        ),
    )


def collections_from_settings(settings: AppwriteSettings) -> Collections:
    return Collections(
        groups=settings.groups_collection_id,
        memberships=settings.memberships_collection_id,
    )


def build_appwrite_group_services(
    client: AppwriteClient,
    appwrite_settings: AppwriteSettings | None = None,
    group_settings: GroupSettings | None = None,
    context: ObservationContext | None = None,
) -> GroupServices:
    """Wire the group services against an Appwrite backend."""
    appwrite_settings = appwrite_settings or get_appwrite_settings()
    return build_group_services(
        store=AppwriteMembershipStore(client, appwrite_settings.database_id),
        teams=AppwriteTeamAccessProvider(
            client, invite_redirect_url=appwrite_settings.invite_redirect_url
        ),
        account=AppwriteAccountProvider(client),
        collections=collections_from_settings(appwrite_settings),
        group_settings=group_settings,
        context=context,
    )


@lru_cache
def get_appwrite_client() -> AppwriteClient:
    """Get the application-scoped Appwrite client (singleton).

    The first call is application startup and configures logging from
    settings. Close it with ``await get_appwrite_client().aclose()`` on
    shutdown.
    """
    configure_logging_from_settings()
    return AppwriteClient.from_settings(get_appwrite_settings())


def get_group_services(context: ObservationContext | None = None) -> GroupServices:
    """Get group services bound to the shared Appwrite client."""
    return build_appwrite_group_services(get_appwrite_client(), context=context)
