"""Unit tests for mapping entities to stored documents."""

from datetime import UTC, datetime

from groups.application.documents import (
    group_from_document,
    group_to_fields,
    membership_from_document,
    membership_to_fields,
)
from groups.domain import Group, Membership, MembershipRole
from groups.ports.types import Document


class TestGroupDocuments:
    def test_fields_use_stored_attribute_names(self):
        created_at = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)
        group = Group(
            id="g1",
            name="Family",
            short_code="ABC123",
            team_id="t1",
            created_by="alice",
            created_at=created_at,
        )

        assert group_to_fields(group) == {
            "name": "Family",
            "shortCode": "ABC123",
            "teamId": "t1",
            "createdBy": "alice",
            "createdAt": "2024-05-01T12:00:00+00:00",
        }

    def test_reads_zulu_timestamps_and_empty_team(self):
        group = group_from_document(
            Document(
                id="g1",
                data={
                    "name": "Family",
                    "shortCode": "ABC123",
                    "teamId": "",
                    "createdBy": "alice",
                    "createdAt": "2024-05-01T12:00:00.000Z",
                },
            )
        )

        assert group.team_id is None
        assert group.created_at == datetime(2024, 5, 1, 12, 0, tzinfo=UTC)


class TestMembershipDocuments:
    def test_flag_omitted_when_unknown(self):
        membership = Membership(id="m1", group_id="g1", user_id="bob", role=MembershipRole.MEMBER)

        fields = membership_to_fields(membership)

        assert "teamMembershipSucceeded" not in fields
        assert fields["role"] == "member"

    def test_reads_legacy_document_without_flag(self):
        membership = membership_from_document(
            Document(
                id="m1",
                data={"groupId": "g1", "userId": "bob", "role": "admin", "joinedAt": None},
            )
        )

        assert membership.role == MembershipRole.ADMIN
        assert membership.team_membership_succeeded is None
        assert membership.is_database_only
