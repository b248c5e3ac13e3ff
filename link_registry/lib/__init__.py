"""Core registry logic for link registration and expiry."""

from .registry import Registry
from .sweeper import ExpirySweeper, SweeperState
from .shortcode import ShortCodeGenerator
from .database.models import Direction, Entry

__all__ = [
    "Registry",
    "ExpirySweeper",
    "SweeperState",
    "ShortCodeGenerator",
    "Direction",
    "Entry",
]
