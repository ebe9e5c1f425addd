"""Mapping between domain entities and stored documents.

Field names follow the document schema shared with the mobile client
(camelCase attributes on both collections).
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from groups.domain import Group, Membership, MembershipRole
from groups.ports.types import Document


def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if not value:
        return datetime.now(UTC)
    parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def group_to_fields(group: Group) -> dict[str, Any]:
    return {
        "name": group.name,
        "shortCode": group.short_code,
        "teamId": group.team_id,
        "createdBy": group.created_by,
        "createdAt": group.created_at.isoformat(),
    }


def group_from_document(document: Document) -> Group:
    return Group(
        id=document.id,
        name=document.get("name", ""),
        short_code=document.get("shortCode", ""),
        team_id=document.get("teamId") or None,
        created_by=document.get("createdBy", ""),
        created_at=_parse_timestamp(document.get("createdAt")),
    )


def membership_to_fields(membership: Membership) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "groupId": membership.group_id,
        "userId": membership.user_id,
        "role": membership.role.value,
        "joinedAt": membership.joined_at.isoformat(),
    }
    if membership.team_membership_succeeded is not None:
        fields["teamMembershipSucceeded"] = membership.team_membership_succeeded
    return fields


def membership_from_document(document: Document) -> Membership:
    return Membership(
        id=document.id,
        group_id=document.get("groupId", ""),
        user_id=document.get("userId", ""),
        role=MembershipRole(document.get("role", MembershipRole.MEMBER)),
        joined_at=_parse_timestamp(document.get("joinedAt")),
        team_membership_succeeded=document.get("teamMembershipSucceeded"),
    )
