"""Requester resolution shared by the group services."""

from __future__ import annotations

from groups.ports.exceptions import UnauthenticatedError, ValidationError
from groups.ports.providers import AccountProvider


def require_text(value: str | None, field: str) -> str:
    """Return ``value`` stripped, rejecting blanks before any network call.

    Raises:
        ValidationError: If the value is missing or whitespace-only
    """
    if value is None or not value.strip():
        raise ValidationError(f"{field} must not be empty")
    return value.strip()


async def resolve_requester(
    account: AccountProvider | None,
    requester: str | None,
) -> str:
    """Return the acting user's id.

    An explicit ``requester`` wins. Otherwise the current session's user is
    looked up through the account provider.

    Raises:
        ValidationError: If an explicit requester is blank
        UnauthenticatedError: If no requester is given and there is no session
    """
    if requester is not None:
        return require_text(requester, "requester")
    if account is None:
        raise UnauthenticatedError("No requester given and no account provider configured")
    user = await account.get_current_user()
    return user.id
