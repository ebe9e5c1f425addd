"""Typed errors for the groups bounded context.

Collaborator adapters translate transport-level failures into these types
once, at the edge. Application services only ever inspect these classes,
never status codes.
"""

from __future__ import annotations

from collections.abc import Sequence


class GroupMembershipError(Exception):
    """Base exception for all group membership errors."""

    pass


class NotFoundError(GroupMembershipError):
    """Raised when a referenced group, team, membership or document is absent."""

    pass


class ConflictError(GroupMembershipError):
    """Raised by the document store when a uniqueness constraint is violated."""

    pass


class PermissionDeniedError(GroupMembershipError):
    """Raised when a provider rejects an action for insufficient role.

    Never retried locally.
    """

    pass


class UnauthenticatedError(PermissionDeniedError):
    """Raised when no authenticated session is available."""

    pass


class TransientError(GroupMembershipError):
    """Raised on network failures, timeouts, throttling or server errors."""

    pass


class ValidationError(GroupMembershipError):
    """Raised for malformed input before any network call is made."""

    pass


class AlreadyMemberError(GroupMembershipError):
    """Raised when a user tries to join a group they already belong to.

    This outcome is terminal. Callers must not retry it.
    """

    def __init__(self, group_id: str, user_id: str):
        self.group_id = group_id
        self.user_id = user_id
        super().__init__(f"User {user_id} is already a member of group {group_id}")


class BrokenGroupError(GroupMembershipError):
    """Raised when an operation needs a healthy team but the group has none."""

    def __init__(self, group_id: str, hint: str | None = None):
        self.group_id = group_id
        self.hint = hint or (
            "The group is missing its team. Ask a group admin to run recovery, "
            "or clean up the group."
        )
        super().__init__(f"Group {group_id} is broken: {self.hint}")


class AlreadyHealthyError(GroupMembershipError):
    """Raised when recovery is requested for a group whose team is reachable."""

    def __init__(self, group_id: str, team_id: str):
        self.group_id = group_id
        self.team_id = team_id
        super().__init__(
            f"Group {group_id} already has a valid team {team_id} and does not "
            "need recovery"
        )


class ExhaustedRetriesError(GroupMembershipError):
    """Raised when no unique short code could be allocated."""

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(f"No unique short code found after {attempts} attempts")


class PartialFailureError(GroupMembershipError):
    """A saga's compensating actions failed after its primary error.

    Logged internally. Callers only ever see the primary error.
    """

    def __init__(
        self,
        primary: BaseException,
        failed_steps: Sequence[str],
    ):
        self.primary = primary
        self.failed_steps = list(failed_steps)
        names = ", ".join(self.failed_steps)
        super().__init__(f"Compensation failed ({names}) after: {primary}")
