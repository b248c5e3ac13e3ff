"""Common utilities for the link registry."""

from .validators import is_valid_url, is_valid_id
from .logging_config import setup_logging, get_logger

__all__ = [
    "is_valid_url",
    "is_valid_id",
    "setup_logging",
    "get_logger",
]
