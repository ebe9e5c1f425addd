"""Async HTTP client for the Appwrite REST API.

All transport-level failures are translated into the typed errors of
``groups.ports.exceptions`` here, and nowhere else.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from types import TracebackType
from typing import Any

import httpx

from groups.infrastructure.observability import AppwriteProbe, DefaultAppwriteProbe
from groups.ports.exceptions import (
    ConflictError,
    GroupMembershipError,
    NotFoundError,
    PermissionDeniedError,
    TransientError,
    UnauthenticatedError,
    ValidationError,
)
from groups.ports.types import DOCUMENT_ID, FilterMethod, QueryFilter
from infrastructure.settings import AppwriteSettings

_STATUS_ERRORS: dict[int, type[GroupMembershipError]] = {
    400: ValidationError,
    401: UnauthenticatedError,
    403: PermissionDeniedError,
    404: NotFoundError,
    409: ConflictError,
}

# Appwrite exposes system attributes with a "$" prefix.
_SYSTEM_ATTRIBUTES = {DOCUMENT_ID: "$id"}
_PAGING_METHODS = (FilterMethod.LIMIT, FilterMethod.OFFSET)


def error_for_status(status_code: int, message: str) -> GroupMembershipError:
    """Map an HTTP status code to a typed error.

    429 and 5xx are transient. Any other unexpected code is treated as
    transient as well, since the caller cannot act on it.
    """
    error_class = _STATUS_ERRORS.get(status_code, TransientError)
    return error_class(message)


def serialize_query(query: QueryFilter) -> str:
    """Serialize a filter into Appwrite's JSON query syntax.

    Example:
        >>> serialize_query(QueryFilter.equal("groupId", "g1"))
        '{"method": "equal", "attribute": "groupId", "values": ["g1"]}'
    """
    payload: dict[str, Any] = {"method": str(query.method)}
    if query.method not in _PAGING_METHODS and query.attribute is not None:
        payload["attribute"] = _SYSTEM_ATTRIBUTES.get(query.attribute, query.attribute)
    payload["values"] = list(query.values)
    return json.dumps(payload)


def query_params(filters: Sequence[QueryFilter]) -> dict[str, list[str]]:
    if not filters:
        return {}
    return {"queries[]": [serialize_query(query) for query in filters]}


class AppwriteClient:
    """Thin async wrapper over ``httpx.AsyncClient`` for Appwrite.

    Example:
        async with AppwriteClient.from_settings(get_appwrite_settings()) as client:
            team = await client.request("GET", f"/teams/{team_id}")
    """

    def __init__(
        self,
        endpoint: str,
        project_id: str,
        api_key: str | None = None,
        jwt: str | None = None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
        probe: AppwriteProbe | None = None,
    ):
        headers = {
            "X-Appwrite-Project": project_id,
            "Content-Type": "application/json",
        }
        if api_key:
            headers["X-Appwrite-Key"] = api_key
        if jwt:
            headers["X-Appwrite-JWT"] = jwt

        self._http = httpx.AsyncClient(
            base_url=endpoint.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )
        self._probe = probe or DefaultAppwriteProbe()

    @classmethod
    def from_settings(
        cls,
        settings: AppwriteSettings,
        transport: httpx.AsyncBaseTransport | None = None,
        probe: AppwriteProbe | None = None,
    ) -> AppwriteClient:
        return cls(
            endpoint=settings.base_url,
            project_id=settings.project_id,
            api_key=settings.api_key.get_secret_value() or None,
            jwt=settings.jwt.get_secret_value() if settings.jwt else None,
            timeout=settings.request_timeout_seconds,
            transport=transport,
            probe=probe,
        )

    async def __aenter__(self) -> AppwriteClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json_body: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Send a request and return the decoded JSON body.

        Returns an empty dict for bodiless responses (204).

        Raises:
            GroupMembershipError: A typed subclass for every failure
        """
        try:
            response = await self._http.request(
                method, path, params=params, json=json_body
            )
        except httpx.TimeoutException as e:
            self._probe.request_failed(
                method=method, path=path, error_type="timeout", reason=repr(e)
            )
            raise TransientError(f"{method} {path} timed out") from e
        except httpx.TransportError as e:
            self._probe.request_failed(
                method=method, path=path, error_type="transport", reason=repr(e)
            )
            raise TransientError(f"{method} {path} failed: {e}") from e

        if response.is_success:
            if response.status_code == 204 or not response.content:
                return {}
            return response.json()

        message = self._error_message(response)
        error = error_for_status(response.status_code, message)
        self._probe.request_failed(
            method=method,
            path=path,
            error_type=type(error).__name__,
            status_code=response.status_code,
            reason=message,
        )
        raise error

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return f"HTTP {response.status_code}: {response.text}"
        if isinstance(body, dict) and body.get("message"):
            return str(body["message"])
        return f"HTTP {response.status_code}"
