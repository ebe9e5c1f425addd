"""Short join code generation.

Short codes are the human-shareable tokens users type to join a group.
"""

from __future__ import annotations

import secrets

# Uppercase letters and digits without the visually ambiguous O and 0.
SHORT_CODE_ALPHABET = "ABCDEFGHIJKLMNPQRSTUVWXYZ123456789"
DEFAULT_SHORT_CODE_LENGTH = 6


class ShortCodeGenerator:
    """Draws short codes uniformly from a fixed alphabet.

    Codes are not unique by themselves. The group registry enforces
    uniqueness by checking the store and regenerating on collision.
    """

    def __init__(self, alphabet: str = SHORT_CODE_ALPHABET):
        if not alphabet:
            raise ValueError("alphabet must not be empty")
        self._alphabet = alphabet

    @property
    def alphabet(self) -> str:
        return self._alphabet

    def generate(self, length: int = DEFAULT_SHORT_CODE_LENGTH) -> str:
        """Generate a code of ``length`` characters.

        Raises:
            ValueError: If length is not positive
        """
        if length < 1:
            raise ValueError(f"length must be positive, got {length}")
        return "".join(secrets.choice(self._alphabet) for _ in range(length))

    def normalize(self, code: str) -> str:
        """Normalize user input to the stored code format."""
        return code.strip().upper()
