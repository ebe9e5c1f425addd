"""Appwrite adapters for the groups context ports."""

from groups.infrastructure.appwrite.account import AppwriteAccountProvider
from groups.infrastructure.appwrite.client import AppwriteClient
from groups.infrastructure.appwrite.databases import AppwriteMembershipStore
from groups.infrastructure.appwrite.teams import AppwriteTeamAccessProvider

__all__ = [
    "AppwriteAccountProvider",
    "AppwriteClient",
    "AppwriteMembershipStore",
    "AppwriteTeamAccessProvider",
]
