"""Fixtures for groups unit tests.

Provides in-memory fakes of the three collaborators with failure
injection, plus services wired around them.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from typing import Any
from unittest.mock import create_autospec

import pytest

from groups.application.observability import (
    ConsistencyGuardProbe,
    GroupRegistryProbe,
    MembershipCoordinatorProbe,
)
from groups.application.services import (
    ConsistencyGuard,
    GroupRegistry,
    MembershipCoordinator,
    MembershipRecords,
)
from groups.domain import TeamRole, generate_id
from groups.ports.exceptions import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    UnauthenticatedError,
)
from groups.ports.types import (
    DOCUMENT_ID,
    AccountInfo,
    Collections,
    Document,
    DocumentList,
    FilterMethod,
    PermissionGrant,
    QueryFilter,
    TeamInfo,
    TeamMembership,
)


class _FailureInjection:
    """Queue errors to be raised by the next calls of a method."""

    def __init__(self) -> None:
        self._failures: dict[str, list[Exception]] = {}
        self.calls: list[tuple[str, tuple[Any, ...]]] = []

    def fail_next(self, method: str, error: Exception, times: int = 1) -> None:
        self._failures.setdefault(method, []).extend([error] * times)

    def fail_always(self, method: str, error: Exception) -> None:
        self.fail_next(method, error, times=10_000)

    def _enter(self, method: str, *args: Any) -> None:
        self.calls.append((method, args))
        queued = self._failures.get(method)
        if queued:
            raise queued.pop(0)

    def called(self, method: str) -> list[tuple[Any, ...]]:
        return [args for name, args in self.calls if name == method]


class FakeTeamAccessProvider(_FailureInjection):
    """In-memory team provider.

    With ``caller`` set, team mutations require the caller to be a team
    owner, except that members may delete their own membership. With
    ``caller`` None every call is allowed, like a server key.
    """

    def __init__(self) -> None:
        super().__init__()
        self.teams: dict[str, str] = {}
        self.memberships: dict[str, dict[str, TeamMembership]] = {}
        self.caller: str | None = None

    def _require_team(self, team_id: str) -> None:
        if team_id not in self.teams:
            raise NotFoundError(f"Team {team_id} not found")

    def _is_owner(self, team_id: str, user_id: str) -> bool:
        return any(
            m.user_id == user_id and TeamRole.OWNER in m.roles
            for m in self.memberships[team_id].values()
        )

    def _require_owner(self, team_id: str) -> None:
        if self.caller is not None and not self._is_owner(team_id, self.caller):
            raise PermissionDeniedError(f"{self.caller} is not an owner of {team_id}")

    def add_member(self, team_id: str, user_id: str, roles: Sequence[str]) -> TeamMembership:
        membership = TeamMembership(
            id=generate_id(), team_id=team_id, user_id=user_id, roles=tuple(roles)
        )
        self.memberships[team_id][membership.id] = membership
        return membership

    def members_of(self, team_id: str) -> set[str]:
        return {m.user_id for m in self.memberships.get(team_id, {}).values()}

    async def create_team(self, name: str, owner_roles: Sequence[str]) -> str:
        self._enter("create_team", name, tuple(owner_roles))
        team_id = generate_id()
        self.teams[team_id] = name
        self.memberships[team_id] = {}
        if self.caller is not None:
            self.add_member(team_id, self.caller, [str(r) for r in owner_roles])
        return team_id

    async def get_team(self, team_id: str) -> TeamInfo:
        self._enter("get_team", team_id)
        self._require_team(team_id)
        return TeamInfo(
            id=team_id, name=self.teams[team_id], total=len(self.memberships[team_id])
        )

    async def create_membership(self, team_id: str, roles: Sequence[str], user_id: str) -> None:
        self._enter("create_membership", team_id, tuple(roles), user_id)
        self._require_team(team_id)
        if user_id in self.members_of(team_id):
            raise ConflictError(f"{user_id} is already in team {team_id}")
        self.add_member(team_id, user_id, [str(r) for r in roles])

    async def list_memberships(
        self, team_id: str, filters: Sequence[QueryFilter] = ()
    ) -> list[TeamMembership]:
        self._enter("list_memberships", team_id, tuple(filters))
        self._require_team(team_id)
        memberships = list(self.memberships[team_id].values())
        for query in filters:
            if query.method == FilterMethod.EQUAL and query.attribute == "userId":
                memberships = [m for m in memberships if m.user_id in query.values]
        return memberships

    async def delete_membership(self, team_id: str, membership_id: str) -> None:
        self._enter("delete_membership", team_id, membership_id)
        self._require_team(team_id)
        membership = self.memberships[team_id].get(membership_id)
        if membership is None:
            raise NotFoundError(f"Membership {membership_id} not found")
        if self.caller != membership.user_id:
            self._require_owner(team_id)
        del self.memberships[team_id][membership_id]

    async def update_name(self, team_id: str, name: str) -> None:
        self._enter("update_name", team_id, name)
        self._require_team(team_id)
        self._require_owner(team_id)
        self.teams[team_id] = name

    async def delete_team(self, team_id: str) -> None:
        self._enter("delete_team", team_id)
        self._require_team(team_id)
        self._require_owner(team_id)
        del self.teams[team_id]
        del self.memberships[team_id]


PermissionPolicy = Callable[[str, Sequence[PermissionGrant] | None], bool]


class FakeMembershipStore(_FailureInjection):
    """In-memory document store.

    Enforces unique ``shortCode`` on groups and unique
    ``(groupId, userId)`` on memberships. ``permission_policy`` may
    reject a create based on the requested permissions.
    """

    def __init__(self, collections: Collections | None = None) -> None:
        super().__init__()
        names = collections or Collections()
        self.collections: dict[str, dict[str, Document]] = {
            names.groups: {},
            names.memberships: {},
        }
        self.unique: dict[str, tuple[str, ...]] = {
            names.groups: ("shortCode",),
            names.memberships: ("groupId", "userId"),
        }
        self.permission_policy: PermissionPolicy | None = None

    def _collection(self, collection: str) -> dict[str, Document]:
        return self.collections.setdefault(collection, {})

    def documents(self, collection: str) -> list[Document]:
        return list(self._collection(collection).values())

    def put(self, collection: str, document_id: str, data: Mapping[str, Any]) -> Document:
        document = Document(id=document_id, data=dict(data))
        self._collection(collection)[document_id] = document
        return document

    async def create_document(
        self,
        collection: str,
        document_id: str,
        data: Mapping[str, Any],
        permissions: Sequence[PermissionGrant] | None = None,
    ) -> Document:
        self._enter("create_document", collection, document_id, dict(data), permissions)
        if self.permission_policy is not None and not self.permission_policy(
            collection, permissions
        ):
            raise PermissionDeniedError("Permissions rejected")
        documents = self._collection(collection)
        if document_id in documents:
            raise ConflictError(f"Document {document_id} already exists")
        keys = self.unique.get(collection, ())
        if keys:
            for existing in documents.values():
                if all(existing.get(k) == data.get(k) for k in keys):
                    raise ConflictError(f"Duplicate {keys} in {collection}")
        document = Document(
            id=document_id,
            data=dict(data),
            permissions=tuple(str(p) for p in permissions or ()),
        )
        documents[document_id] = document
        return document

    async def get_document(self, collection: str, document_id: str) -> Document:
        self._enter("get_document", collection, document_id)
        try:
            return self._collection(collection)[document_id]
        except KeyError:
            raise NotFoundError(f"Document {document_id} not found") from None

    async def update_document(
        self, collection: str, document_id: str, patch: Mapping[str, Any]
    ) -> Document:
        self._enter("update_document", collection, document_id, dict(patch))
        current = await self.get_document(collection, document_id)
        updated = Document(
            id=current.id,
            data={**current.data, **patch},
            permissions=current.permissions,
        )
        self._collection(collection)[document_id] = updated
        return updated

    async def delete_document(self, collection: str, document_id: str) -> None:
        self._enter("delete_document", collection, document_id)
        if self._collection(collection).pop(document_id, None) is None:
            raise NotFoundError(f"Document {document_id} not found")

    async def list_documents(
        self, collection: str, filters: Sequence[QueryFilter] = ()
    ) -> DocumentList:
        self._enter("list_documents", collection, tuple(filters))
        documents = self.documents(collection)
        limit: int | None = None
        offset = 0
        for query in filters:
            if query.method == FilterMethod.LIMIT:
                limit = int(query.values[0])
            elif query.method == FilterMethod.OFFSET:
                offset = int(query.values[0])
            elif query.attribute == DOCUMENT_ID:
                documents = [d for d in documents if d.id in query.values]
            else:
                documents = [d for d in documents if d.get(query.attribute) in query.values]
        total = len(documents)
        documents = documents[offset:]
        if limit is not None:
            documents = documents[:limit]
        return DocumentList(documents=documents, total=total)


class FakeAccountProvider:
    """In-memory account provider with an optional current session."""

    def __init__(self) -> None:
        self.users: dict[str, AccountInfo] = {}
        self.current_user_id: str | None = None

    def add_user(self, user_id: str, name: str = "", email: str = "") -> AccountInfo:
        account = AccountInfo(id=user_id, name=name, email=email)
        self.users[user_id] = account
        return account

    async def get_current_user(self) -> AccountInfo:
        if self.current_user_id is None:
            raise UnauthenticatedError("No active session")
        return self.users.get(
            self.current_user_id, AccountInfo(id=self.current_user_id, name="", email="")
        )

    async def get_user(self, user_id: str) -> AccountInfo:
        try:
            return self.users[user_id]
        except KeyError:
            raise NotFoundError(f"User {user_id} not found") from None


@pytest.fixture
def collections() -> Collections:
    return Collections()


@pytest.fixture
def store(collections) -> FakeMembershipStore:
    return FakeMembershipStore(collections)


@pytest.fixture
def teams() -> FakeTeamAccessProvider:
    return FakeTeamAccessProvider()


@pytest.fixture
def account() -> FakeAccountProvider:
    return FakeAccountProvider()


@pytest.fixture
def registry_probe():
    return create_autospec(GroupRegistryProbe, instance=True)


@pytest.fixture
def coordinator_probe():
    return create_autospec(MembershipCoordinatorProbe, instance=True)


@pytest.fixture
def guard_probe():
    return create_autospec(ConsistencyGuardProbe, instance=True)


@pytest.fixture
def registry(store, collections, registry_probe) -> GroupRegistry:
    return GroupRegistry(store=store, collections=collections, probe=registry_probe)


@pytest.fixture
def records(store, collections) -> MembershipRecords:
    return MembershipRecords(store=store, collections=collections)


@pytest.fixture
def coordinator(registry, records, teams, account, coordinator_probe) -> MembershipCoordinator:
    return MembershipCoordinator(
        registry=registry,
        records=records,
        teams=teams,
        account=account,
        probe=coordinator_probe,
        best_effort_timeout=0.5,
    )


@pytest.fixture
def guard(registry, records, teams, account, guard_probe) -> ConsistencyGuard:
    return ConsistencyGuard(
        registry=registry,
        records=records,
        teams=teams,
        account=account,
        probe=guard_probe,
        best_effort_timeout=0.5,
    )


@pytest.fixture
def memberships_of(store, collections):
    """Return the membership documents of one group."""

    def _memberships_of(group_id: str) -> list[Document]:
        return [
            d for d in store.documents(collections.memberships) if d["groupId"] == group_id
        ]

    return _memberships_of
