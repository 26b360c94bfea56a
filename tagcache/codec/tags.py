"""
Value Tags

Every value written through the client carries one of these tags in the
memcached item flags. The numbers are persisted with the data and must
not change.
"""

from dataclasses import dataclass
from enum import IntEnum


class Tag(IntEnum):
    """How the payload of a stored item is to be interpreted."""
    NONE = 0
    BOOLEAN = 1
    NUMBER = 2
    STRUCTURED = 7


@dataclass(frozen=True)
class StoredValue:
    """
    A tagged payload as it travels to and from the cache.

    Attributes:
        tag: The value tag, sent as item flags
        payload: The raw bytes
    """
    tag: Tag
    payload: bytes

    @property
    def flags(self) -> int:
        return int(self.tag)
