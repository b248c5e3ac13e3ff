"""Data model of the link store."""

from .models import Direction, Entry

__all__ = ["Direction", "Entry"]
