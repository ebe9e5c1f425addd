"""Collaborator protocols (ports) for the groups bounded context.

The groups context depends on three external systems: an account provider
for user identity, a team provider that owns access control, and a
permissioned document store. Implementations must raise the typed errors
from ``groups.ports.exceptions`` and never leak transport-level codes.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Protocol, runtime_checkable

from groups.ports.types import (
    AccountInfo,
    Document,
    DocumentList,
    PermissionGrant,
    QueryFilter,
    TeamInfo,
    TeamMembership,
)


@runtime_checkable
class AccountProvider(Protocol):
    """Resolves user accounts."""

    async def get_current_user(self) -> AccountInfo:
        """Return the account behind the current session.

        Raises:
            UnauthenticatedError: If there is no session
        """
        ...

    async def get_user(self, user_id: str) -> AccountInfo:
        """Return the account for ``user_id``.

        Raises:
            NotFoundError: If the user does not exist
        """
        ...


@runtime_checkable
class TeamAccessProvider(Protocol):
    """Owns group-level access control.

    Every method raises NotFoundError when the team or membership is absent,
    PermissionDeniedError when the caller lacks the required team role, and
    TransientError on network failures.
    """

    async def create_team(self, name: str, owner_roles: Sequence[str]) -> str:
        """Create a team owned by the caller and return its id."""
        ...

    async def get_team(self, team_id: str) -> TeamInfo:
        """Look up a team. Used as the existence probe for recovery."""
        ...

    async def create_membership(
        self,
        team_id: str,
        roles: Sequence[str],
        user_id: str,
    ) -> None:
        """Grant ``user_id`` the given roles in the team."""
        ...

    async def list_memberships(
        self,
        team_id: str,
        filters: Sequence[QueryFilter] = (),
    ) -> list[TeamMembership]:
        """List team memberships matching ``filters``."""
        ...

    async def delete_membership(self, team_id: str, membership_id: str) -> None:
        """Revoke a team membership."""
        ...

    async def update_name(self, team_id: str, name: str) -> None:
        """Rename the team."""
        ...

    async def delete_team(self, team_id: str) -> None:
        """Delete the team and all of its memberships."""
        ...


@runtime_checkable
class MembershipStore(Protocol):
    """Permissioned document store holding groups and memberships."""

    async def create_document(
        self,
        collection: str,
        document_id: str,
        data: Mapping[str, Any],
        permissions: Sequence[PermissionGrant] | None = None,
    ) -> Document:
        """Create a document.

        ``permissions=None`` leaves access to the collection defaults.

        Raises:
            ConflictError: If a uniqueness constraint is violated
        """
        ...

    async def get_document(self, collection: str, document_id: str) -> Document:
        """Fetch a document.

        Raises:
            NotFoundError: If the document does not exist
        """
        ...

    async def update_document(
        self,
        collection: str,
        document_id: str,
        patch: Mapping[str, Any],
    ) -> Document:
        """Apply a partial update and return the updated document."""
        ...

    async def delete_document(self, collection: str, document_id: str) -> None:
        """Delete a document."""
        ...

    async def list_documents(
        self,
        collection: str,
        filters: Sequence[QueryFilter] = (),
    ) -> DocumentList:
        """Query a collection.

        Without a ``limit`` filter every matching document is returned;
        ``total`` counts all matches regardless of any limit.
        """
        ...
