"""Data models for the link registry."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping

from ..exceptions import DecodeError


class Direction(Enum):
    """Column a lookup is keyed on."""

    ID_TO_URL = "id_to_url"
    URL_TO_ID = "url_to_id"


@dataclass(frozen=True)
class Entry:
    """Represents one id <-> url mapping in the store.

    Timestamps are Unix seconds.
    """

    id: str
    url: str
    created_at: int
    expires_at: int

    def is_expired(self, now: float) -> bool:
        """Check whether the entry is past its expiration at ``now``."""
        return now >= self.expires_at

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Entry":
        """Create from a store row.

        Args:
            record: Row with id, original_url, creation_time and expiration_time

        Returns:
            Decoded entry

        Raises:
            DecodeError: If a column is missing or has the wrong type
        """
        try:
            entry_id = record["id"]
            url = record["original_url"]
            created_at = record["creation_time"]
            expires_at = record["expiration_time"]
        except (KeyError, TypeError) as e:
            raise DecodeError(f"Malformed url row: {e}") from e

        if not isinstance(entry_id, str) or not isinstance(url, str):
            raise DecodeError(f"Malformed url row: non-text id or url in {dict(record)}")
        if isinstance(created_at, bool) or not isinstance(created_at, int):
            raise DecodeError(f"Malformed url row: bad creation_time for id {entry_id}")
        if isinstance(expires_at, bool) or not isinstance(expires_at, int):
            raise DecodeError(f"Malformed url row: bad expiration_time for id {entry_id}")

        return cls(id=entry_id, url=url, created_at=created_at, expires_at=expires_at)
