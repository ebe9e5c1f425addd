"""Appwrite Account and Users adapter implementing AccountProvider."""

from __future__ import annotations

from typing import Any

from groups.infrastructure.appwrite.client import AppwriteClient
from groups.ports.exceptions import UnauthenticatedError
from groups.ports.types import AccountInfo


def _account_from_payload(payload: dict[str, Any]) -> AccountInfo:
    return AccountInfo(
        id=payload["$id"],
        name=payload.get("name", ""),
        email=payload.get("email", ""),
    )


class AppwriteAccountProvider:
    """Resolves the session user via ``/account`` and others via ``/users``."""

    def __init__(self, client: AppwriteClient):
        self._client = client

    async def get_current_user(self) -> AccountInfo:
        """Return the session's account.

        Raises:
            UnauthenticatedError: If there is no session
        """
        payload = await self._client.request("GET", "/account")
        if not payload.get("$id"):
            raise UnauthenticatedError("No active session")
        return _account_from_payload(payload)

    async def get_user(self, user_id: str) -> AccountInfo:
        return _account_from_payload(
            await self._client.request("GET", f"/users/{user_id}")
        )
