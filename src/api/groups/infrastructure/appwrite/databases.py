"""Appwrite Databases adapter implementing MembershipStore."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from groups.infrastructure.appwrite.client import AppwriteClient, query_params
from groups.ports.types import (
    Document,
    DocumentList,
    FilterMethod,
    PermissionGrant,
    QueryFilter,
)

# Documents requested per page when reading a full listing; Appwrite defaults to 25.
PAGE_SIZE = 100


def document_from_payload(payload: Mapping[str, Any]) -> Document:
    """Split an Appwrite document into id, user fields and permissions.

    System attributes (``$id``, ``$createdAt``, ...) are dropped from the
    field data.
    """
    return Document(
        id=payload["$id"],
        data={k: v for k, v in payload.items() if not k.startswith("$")},
        permissions=tuple(payload.get("$permissions", ())),
    )


class AppwriteMembershipStore:
    """Document store backed by one Appwrite database."""

    def __init__(self, client: AppwriteClient, database_id: str):
        self._client = client
        self._database_id = database_id

    def _documents_path(self, collection: str) -> str:
        return f"/databases/{self._database_id}/collections/{collection}/documents"

    async def create_document(
        self,
        collection: str,
        document_id: str,
        data: Mapping[str, Any],
        permissions: Sequence[PermissionGrant] | None = None,
    ) -> Document:
        body: dict[str, Any] = {"documentId": document_id, "data": dict(data)}
        # Omitting permissions defers to the collection defaults.
        if permissions is not None:
            body["permissions"] = [str(grant) for grant in permissions]
        payload = await self._client.request(
            "POST", self._documents_path(collection), json_body=body
        )
        return document_from_payload(payload)

    async def get_document(self, collection: str, document_id: str) -> Document:
        payload = await self._client.request(
            "GET", f"{self._documents_path(collection)}/{document_id}"
        )
        return document_from_payload(payload)

    async def update_document(
        self,
        collection: str,
        document_id: str,
        patch: Mapping[str, Any],
    ) -> Document:
        payload = await self._client.request(
            "PATCH",
            f"{self._documents_path(collection)}/{document_id}",
            json_body={"data": dict(patch)},
        )
        return document_from_payload(payload)

    async def delete_document(self, collection: str, document_id: str) -> None:
        await self._client.request(
            "DELETE", f"{self._documents_path(collection)}/{document_id}"
        )

    async def _list_page(
        self, collection: str, filters: Sequence[QueryFilter]
    ) -> DocumentList:
        payload = await self._client.request(
            "GET", self._documents_path(collection), params=query_params(filters)
        )
        documents = [document_from_payload(d) for d in payload.get("documents", [])]
        return DocumentList(
            documents=documents,
            total=int(payload.get("total", len(documents))),
        )

    async def list_documents(
        self,
        collection: str,
        filters: Sequence[QueryFilter] = (),
    ) -> DocumentList:
        """Query a collection, following pages until every match is read.

        A caller-supplied ``limit`` is sent as-is and only one page is read.
        """
        if any(f.method == FilterMethod.LIMIT for f in filters):
            return await self._list_page(collection, filters)

        documents: list[Document] = []
        while True:
            page = await self._list_page(
                collection,
                [*filters, QueryFilter.limit(PAGE_SIZE), QueryFilter.offset(len(documents))],
            )
            documents.extend(page.documents)
            if not page.documents or len(documents) >= page.total:
                return DocumentList(documents=documents, total=page.total)
