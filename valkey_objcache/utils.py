"""
Cache utilities for TTL handling.

The store answers ``TTL`` with two sentinel values besides a positive
count of seconds. They are kept as plain integers at the store boundary and
mapped to ``TTLStatus`` for callers that prefer to branch on a state.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Union

# TTL reply for a key that does not exist
TTL_KEY_MISSING = -2
# TTL reply for a key that exists without an expiration
TTL_NO_EXPIRY = -1


class TTLPreset(int, Enum):
    """Standard TTL presets in seconds."""

    MINUTE = 60
    FIVE_MINUTES = 300
    FIFTEEN_MINUTES = 900
    HOUR = 3600
    SIX_HOURS = 21600
    DAY = 86400
    WEEK = 604800


class TTLState(str, Enum):
    """State of a key's expiration."""

    MISSING = "missing"
    NO_EXPIRY = "no_expiry"
    EXPIRING = "expiring"


@dataclass(frozen=True)
class TTLStatus:
    """Tri-state view of a ``TTL`` reply, keeping the raw value."""

    state: TTLState
    raw: int

    @classmethod
    def from_sentinel(cls, raw: int) -> "TTLStatus":
        """Map a raw ``TTL`` reply to its state."""
        if raw == TTL_KEY_MISSING:
            return cls(TTLState.MISSING, raw)
        if raw == TTL_NO_EXPIRY:
            return cls(TTLState.NO_EXPIRY, raw)
        if raw < 0:
            raise ValueError(f"Unexpected TTL reply: {raw}")
        return cls(TTLState.EXPIRING, raw)

    @property
    def remaining(self) -> int:
        """Seconds left before expiration, 0 unless the key is expiring."""
        return self.raw if self.state is TTLState.EXPIRING else 0

    @property
    def exists(self) -> bool:
        return self.state is not TTLState.MISSING


def normalize_ttl(ttl: Union[int, TTLPreset, None]) -> Union[int, None]:
    """
    Validate a TTL argument for ``set`` / ``expire``.

    A falsy TTL means "no expiration" and returns None.

    Raises:
        ValueError: If the TTL is negative
    """
    if not ttl:
        return None
    seconds = int(ttl)
    if seconds < 0:
        raise ValueError(f"TTL must be a positive number of seconds, got {seconds}")
    return seconds

