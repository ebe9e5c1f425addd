"""Domain layer for the groups context.

Entities and value objects here are free of infrastructure concerns.
"""

from groups.domain.entities import Group, Membership
from groups.domain.short_code import (
    DEFAULT_SHORT_CODE_LENGTH,
    SHORT_CODE_ALPHABET,
    ShortCodeGenerator,
)
from groups.domain.value_objects import (
    JoinMethod,
    MembershipRole,
    TeamRole,
    generate_id,
)

__all__ = [
    "DEFAULT_SHORT_CODE_LENGTH",
    "Group",
    "JoinMethod",
    "Membership",
    "MembershipRole",
    "SHORT_CODE_ALPHABET",
    "ShortCodeGenerator",
    "TeamRole",
    "generate_id",
]
