"""Group registry application service.

CRUD over group records in the document store, including allocation of
globally unique short codes.
"""

from __future__ import annotations

from groups.application.documents import group_from_document, group_to_fields
from groups.application.observability import (
    DefaultGroupRegistryProbe,
    GroupRegistryProbe,
)
from groups.application.permission_strategies import group_permissions
from groups.application.services.requester import require_text
from groups.domain import (
    DEFAULT_SHORT_CODE_LENGTH,
    Group,
    ShortCodeGenerator,
    generate_id,
)
from groups.ports.exceptions import ConflictError, ExhaustedRetriesError
from groups.ports.providers import MembershipStore
from groups.ports.types import DOCUMENT_ID, Collections, QueryFilter

DEFAULT_SHORT_CODE_ATTEMPTS = 10


class GroupRegistry:
    """Application service for group records.

    Short codes are made unique by generate-and-check rather than locking.
    A create that still races another group onto the same code fails with
    ConflictError at the store and is retried with a fresh code.
    """

    def __init__(
        self,
        store: MembershipStore,
        collections: Collections | None = None,
        short_codes: ShortCodeGenerator | None = None,
        short_code_length: int = DEFAULT_SHORT_CODE_LENGTH,
        max_attempts: int = DEFAULT_SHORT_CODE_ATTEMPTS,
        probe: GroupRegistryProbe | None = None,
    ):
        """Initialize GroupRegistry with dependencies.

        Args:
            store: Document store holding the groups collection
            collections: Collection names (defaults to ``groups``/``group_members``)
            short_codes: Short code generator
            short_code_length: Length of generated short codes
            max_attempts: Bound on short-code allocation attempts
            probe: Optional domain probe for observability
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._store = store
        self._collections = collections or Collections()
        self._short_codes = short_codes or ShortCodeGenerator()
        self._short_code_length = short_code_length
        self._max_attempts = max_attempts
        self._probe = probe or DefaultGroupRegistryProbe()

    @property
    def collection(self) -> str:
        return self._collections.groups

    async def create_group_record(
        self,
        name: str,
        created_by: str,
        team_id: str | None,
    ) -> Group:
        """Persist a new group under a freshly allocated short code.

        The record is readable by any team member and writable only by team
        owners. Without a team it falls back to collection permissions.

        Raises:
            ValidationError: If name or created_by is blank
            ExhaustedRetriesError: If no unique short code was found
        """
        name = require_text(name, "name")
        created_by = require_text(created_by, "created_by")
        permissions = group_permissions(team_id) if team_id else None

        for attempt in range(1, self._max_attempts + 1):
            short_code = self._short_codes.generate(self._short_code_length)
            if await self.find_by_short_code(short_code) is not None:
                self._probe.short_code_collision(short_code=short_code, attempt=attempt)
                continue

            group = Group(
                id=generate_id(),
                name=name,
                short_code=short_code,
                team_id=team_id,
                created_by=created_by,
            )
            try:
                document = await self._store.create_document(
                    self.collection,
                    group.id,
                    group_to_fields(group),
                    permissions,
                )
            except ConflictError:
                self._probe.short_code_collision(short_code=short_code, attempt=attempt)
                continue

            created = group_from_document(document)
            self._probe.group_record_created(
                group_id=created.id,
                short_code=created.short_code,
                team_id=created.team_id,
                created_by=created.created_by,
            )
            return created

        self._probe.short_code_exhausted(attempts=self._max_attempts)
        raise ExhaustedRetriesError(self._max_attempts)

    async def get_group(self, group_id: str) -> Group:
        """Load a group record.

        Raises:
            NotFoundError: If the group does not exist
        """
        group_id = require_text(group_id, "group_id")
        document = await self._store.get_document(self.collection, group_id)
        return group_from_document(document)

    async def find_by_short_code(self, code: str) -> Group | None:
        """Find a group by its short code, or None.

        Input is trimmed and upper-cased before lookup.
        """
        code = self._short_codes.normalize(require_text(code, "short_code"))
        result = await self._store.list_documents(
            self.collection,
            [QueryFilter.equal("shortCode", code), QueryFilter.limit(1)],
        )
        if not result.documents:
            return None
        return group_from_document(result.documents[0])

    async def list_groups(self, group_ids: list[str]) -> list[Group]:
        """Load every group whose id is in ``group_ids``."""
        if not group_ids:
            return []
        result = await self._store.list_documents(
            self.collection,
            [QueryFilter.any_of(DOCUMENT_ID, sorted(set(group_ids)))],
        )
        return [group_from_document(doc) for doc in result.documents]

    async def rename_group_record(self, group_id: str, name: str) -> Group:
        """Rename a group record.

        Raises:
            ValidationError: If name is blank
            NotFoundError: If the group does not exist
        """
        group_id = require_text(group_id, "group_id")
        name = require_text(name, "name")
        document = await self._store.update_document(
            self.collection, group_id, {"name": name}
        )
        self._probe.group_record_renamed(group_id=group_id, name=name)
        return group_from_document(document)

    async def set_team(self, group_id: str, team_id: str) -> Group:
        """Point a group record at a team.

        Raises:
            NotFoundError: If the group does not exist
        """
        group_id = require_text(group_id, "group_id")
        team_id = require_text(team_id, "team_id")
        document = await self._store.update_document(
            self.collection, group_id, {"teamId": team_id}
        )
        return group_from_document(document)

    async def delete_group_record(self, group_id: str) -> None:
        """Delete a group record.

        Raises:
            NotFoundError: If the group does not exist
        """
        group_id = require_text(group_id, "group_id")
        await self._store.delete_document(self.collection, group_id)
        self._probe.group_record_deleted(group_id=group_id)
