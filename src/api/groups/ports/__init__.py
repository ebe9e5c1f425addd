"""Ports (interfaces) for the groups bounded context.

Ports define the contracts for the external collaborators without
specifying implementation details. This allows for dependency inversion
and substitution with fakes in tests.
"""

from groups.ports.exceptions import (
    AlreadyHealthyError,
    AlreadyMemberError,
    BrokenGroupError,
    ConflictError,
    ExhaustedRetriesError,
    GroupMembershipError,
    NotFoundError,
    PartialFailureError,
    PermissionDeniedError,
    TransientError,
    UnauthenticatedError,
    ValidationError,
)
from groups.ports.providers import (
    AccountProvider,
    MembershipStore,
    TeamAccessProvider,
)

__all__ = [
    "AccountProvider",
    "AlreadyHealthyError",
    "AlreadyMemberError",
    "BrokenGroupError",
    "ConflictError",
    "ExhaustedRetriesError",
    "GroupMembershipError",
    "MembershipStore",
    "NotFoundError",
    "PartialFailureError",
    "PermissionDeniedError",
    "TeamAccessProvider",
    "TransientError",
    "UnauthenticatedError",
    "ValidationError",
]
