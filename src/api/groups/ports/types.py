"""Data types exchanged with the collaborator ports.

These types are store-agnostic. Adapters map them to and from their
backend's wire format.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


@dataclass(frozen=True)
class AccountInfo:
    """A user account as reported by the account provider."""

    id: str
    name: str
    email: str


@dataclass(frozen=True)
class TeamInfo:
    """An access-control team in the team provider."""

    id: str
    name: str
    total: int = 0


@dataclass(frozen=True)
class TeamMembership:
    """A user's grant within a team."""

    id: str
    team_id: str
    user_id: str
    roles: tuple[str, ...] = ()


@dataclass(frozen=True)
class Collections:
    """Names of the two document collections used by the groups context."""

    groups: str = "groups"
    memberships: str = "group_members"


# Attribute name filters use to match a document's own id.
DOCUMENT_ID = "id"


@dataclass(frozen=True)
class Document:
    """A stored document: its id, field data and permission grants."""

    id: str
    data: Mapping[str, Any] = field(default_factory=dict)
    permissions: tuple[str, ...] = ()

    def __getitem__(self, key: str) -> Any:
        return self.data[key]

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)


@dataclass(frozen=True)
class DocumentList:
    """Result of a document query."""

    documents: list[Document]
    total: int

    @classmethod
    def empty(cls) -> DocumentList:
        return cls(documents=[], total=0)


class FilterMethod(StrEnum):
    """Query operations supported by the document store."""

    EQUAL = "equal"
    LIMIT = "limit"
    OFFSET = "offset"


@dataclass(frozen=True)
class QueryFilter:
    """A single query clause.

    ``EQUAL`` with several values matches any of them ("id in set").
    """

    method: FilterMethod
    attribute: str | None = None
    values: tuple[Any, ...] = ()

    @classmethod
    def equal(cls, attribute: str, value: Any) -> QueryFilter:
        return cls(method=FilterMethod.EQUAL, attribute=attribute, values=(value,))

    @classmethod
    def any_of(cls, attribute: str, values: list[Any] | tuple[Any, ...]) -> QueryFilter:
        return cls(method=FilterMethod.EQUAL, attribute=attribute, values=tuple(values))

    @classmethod
    def limit(cls, count: int) -> QueryFilter:
        return cls(method=FilterMethod.LIMIT, values=(count,))

    @classmethod
    def offset(cls, count: int) -> QueryFilter:
        return cls(method=FilterMethod.OFFSET, values=(count,))


class PermissionAction(StrEnum):
    """Actions a document permission grant can allow."""

    READ = "read"
    UPDATE = "update"
    DELETE = "delete"


def format_team_role(team_id: str, role: str | None = None) -> str:
    """Format a team role reference.

    Example:
        >>> format_team_role("abc", "owner")
        "team:abc/owner"
    """
    if role:
        return f"team:{team_id}/{role}"
    return f"team:{team_id}"


def format_user_role(user_id: str) -> str:
    """Format a single-user role reference.

    Example:
        >>> format_user_role("alice")
        "user:alice"
    """
    return f"user:{user_id}"


@dataclass(frozen=True)
class PermissionGrant:
    """Grants ``action`` on a document to everyone holding ``role``."""

    action: PermissionAction
    role: str

    def __str__(self) -> str:
        return f'{self.action}("{self.role}")'

    @classmethod
    def read(cls, role: str) -> PermissionGrant:
        return cls(action=PermissionAction.READ, role=role)

    @classmethod
    def update(cls, role: str) -> PermissionGrant:
        return cls(action=PermissionAction.UPDATE, role=role)

    @classmethod
    def delete(cls, role: str) -> PermissionGrant:
        return cls(action=PermissionAction.DELETE, role=role)
