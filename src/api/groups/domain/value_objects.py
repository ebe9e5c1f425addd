"""Value objects for the groups domain.

Value objects are immutable descriptors that provide type safety and
domain semantics for roles, join outcomes and identifiers.
"""

from __future__ import annotations

from enum import StrEnum

from ulid import ULID


class MembershipRole(StrEnum):
    """Role a user holds in a group's membership records."""

    ADMIN = "admin"
    MEMBER = "member"


class TeamRole(StrEnum):
    """Role a user holds in the external access-control team."""

    OWNER = "owner"
    MEMBER = "member"


class JoinMethod(StrEnum):
    """How a join was recorded.

    DATABASE_ONLY is a degraded but valid outcome: the membership record
    exists, but the team grant did not succeed.
    """

    TEAM_AND_DATABASE = "team_and_database"
    DATABASE_ONLY = "database_only"

    @classmethod
    def from_team_grant(cls, succeeded: bool) -> JoinMethod:
        return cls.TEAM_AND_DATABASE if succeeded else cls.DATABASE_ONLY


def generate_id() -> str:
    """Generate a document or team identifier using ULID.

    ULIDs are 26 uppercase alphanumeric characters, which fits the id
    constraints of the backing stores and sorts by creation time.
    """
    return str(ULID())
