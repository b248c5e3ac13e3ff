"""Validation utilities for link registration."""

from urllib.parse import urlparse
from typing import Tuple

from ..shortcode import ShortCodeGenerator


def is_valid_url(url: str) -> Tuple[bool, str]:
    """Validate a URL.

    Args:
        url: The URL to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not url or not isinstance(url, str):
        return False, "URL is required"

    if len(url) > 2048:
        return False, "URL is too long (max 2048 characters)"

    try:
        result = urlparse(url)
    except ValueError as e:
        return False, f"Invalid URL format: {str(e)}"

    if result.scheme not in ["http", "https"]:
        return False, "URL must use http or https protocol"

    if not result.netloc:
        return False, "URL must have a valid domain"

    return True, ""


def is_valid_id(link_id: str, length: int = 6) -> Tuple[bool, str]:
    """Validate a caller supplied id.

    An empty id is valid: one is derived from the URL instead.

    Args:
        link_id: The id to validate
        length: Required id length

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not link_id:
        return True, ""

    if len(link_id) != length:
        return False, (
            f"Invalid ID length: {link_id} is {len(link_id)} character long. "
            f"It should be exactly {length} characters long"
        )

    if not ShortCodeGenerator.is_valid_format(link_id):
        return False, (
            f"ID contains forbidden characters: {link_id}. "
            "Allowed characters: alphanumeric characters, underscore and dash"
        )

    return True, ""
