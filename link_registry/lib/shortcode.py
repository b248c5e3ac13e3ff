"""Link id derivation utilities."""

import hashlib
import string
from typing import Optional


class ShortCodeGenerator:
    """Derive ids for URLs registered without one."""

    # Characters accepted in ids besides letters
    EXTRA_CHARS = string.digits + "_-"

    def __init__(self, default_length: int = 6):
        """Initialize id generator.

        Args:
            default_length: Default length for derived ids
        """
        self.default_length = default_length

    def generate_from_url(self, url: str, length: Optional[int] = None) -> str:
        """Derive an id from the URL hash.

        The id is the tail of the hex md5 digest, so the same URL always maps
        to the same id, but distinct URLs may collide.

        Args:
            url: The URL to hash
            length: Length of the id (uses default if not specified)

        Returns:
            Lowercase hex id
        """
        length = length or self.default_length
        digest = hashlib.md5(url.encode()).hexdigest()
        return digest[-length:]

    @staticmethod
    def is_valid_format(code: str) -> bool:
        """Check that every character is a letter, digit, underscore or dash."""
        return all(c.isalpha() or c in ShortCodeGenerator.EXTRA_CHARS for c in code)
