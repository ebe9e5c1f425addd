"""Appwrite Teams adapter implementing TeamAccessProvider."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from groups.domain import generate_id
from groups.infrastructure.appwrite.client import AppwriteClient, query_params
from groups.ports.types import QueryFilter, TeamInfo, TeamMembership

DEFAULT_INVITE_REDIRECT_URL = "http://localhost:8082"


def _team_from_payload(payload: dict[str, Any]) -> TeamInfo:
    return TeamInfo(
        id=payload["$id"],
        name=payload.get("name", ""),
        total=int(payload.get("total", 0)),
    )


def _membership_from_payload(payload: dict[str, Any]) -> TeamMembership:
    return TeamMembership(
        id=payload["$id"],
        team_id=payload.get("teamId", ""),
        user_id=payload.get("userId", ""),
        roles=tuple(payload.get("roles", ())),
    )


class AppwriteTeamAccessProvider:
    """Team access control backed by Appwrite Teams.

    Team ids are generated client-side so a failed create can still be
    compensated by id.
    """

    def __init__(
        self,
        client: AppwriteClient,
        invite_redirect_url: str = DEFAULT_INVITE_REDIRECT_URL,
    ):
        self._client = client
        self._invite_redirect_url = invite_redirect_url

    async def create_team(self, name: str, owner_roles: Sequence[str]) -> str:
        payload = await self._client.request(
            "POST",
            "/teams",
            json_body={
                "teamId": generate_id(),
                "name": name,
                "roles": [str(role) for role in owner_roles],
            },
        )
        return payload["$id"]

    async def get_team(self, team_id: str) -> TeamInfo:
        return _team_from_payload(await self._client.request("GET", f"/teams/{team_id}"))

    async def create_membership(
        self,
        team_id: str,
        roles: Sequence[str],
        user_id: str,
    ) -> None:
        # The endpoint requires a redirect url even when adding by user id.
        await self._client.request(
            "POST",
            f"/teams/{team_id}/memberships",
            json_body={
                "roles": [str(role) for role in roles],
                "userId": user_id,
                "url": self._invite_redirect_url,
            },
        )

    async def list_memberships(
        self,
        team_id: str,
        filters: Sequence[QueryFilter] = (),
    ) -> list[TeamMembership]:
        payload = await self._client.request(
            "GET",
            f"/teams/{team_id}/memberships",
            params=query_params(filters),
        )
        return [_membership_from_payload(m) for m in payload.get("memberships", [])]

    async def delete_membership(self, team_id: str, membership_id: str) -> None:
        await self._client.request(
            "DELETE", f"/teams/{team_id}/memberships/{membership_id}"
        )

    async def update_name(self, team_id: str, name: str) -> None:
        await self._client.request("PUT", f"/teams/{team_id}", json_body={"name": name})

    async def delete_team(self, team_id: str) -> None:
        await self._client.request("DELETE", f"/teams/{team_id}")
