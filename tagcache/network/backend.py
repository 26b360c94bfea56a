"""
Backend Interface

The narrow boundary between the client and the library that actually
talks to the cache servers. Every call reports a ReturnCode; the client
maps it to a value, a soft None or a raised CacheError.
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import List, Optional, Protocol, Union

Key = Union[str, bytes]


class ReturnCode(Enum):
    """Outcome of a backend call."""
    SUCCESS = auto()
    NOTFOUND = auto()
    DATA_EXISTS = auto()
    NOTSTORED = auto()
    ERRNO = auto()
    FAILURE = auto()
    CONNECTION_FAILURE = auto()
    TIMEOUT = auto()
    PROTOCOL_ERROR = auto()
    CLIENT_ERROR = auto()
    SERVER_ERROR = auto()
    BAD_KEY_PROVIDED = auto()
    INVALID_ARGUMENTS = auto()
    NOT_SUPPORTED = auto()


@dataclass
class FetchResult:
    """
    A single item read from the cache.

    Attributes:
        rc: Outcome of the read
        key: The key as reported by the backend
        payload: Raw bytes, None when the item has no data
        flags: The flags stored with the item
    """
    rc: ReturnCode
    key: Optional[Key] = None
    payload: Optional[bytes] = None
    flags: int = 0


@dataclass
class CounterResult:
    """Result of incr/decr."""
    rc: ReturnCode
    value: Optional[int] = None


class Backend(Protocol):
    """
    Operations a backend must provide.

    mget() starts a batched read and fetch() drains it; the cursor lives
    in the backend and is shared by everything using the same instance.
    """

    def close(self) -> None: ...

    def last_error_message(self) -> str: ...

    def get(self, key: Key) -> FetchResult: ...

    def mget(self, keys: List[Key]) -> ReturnCode: ...

    def fetch(self) -> Optional[FetchResult]: ...

    def set(self, key: Key, payload: bytes, flags: int, ttl: int) -> ReturnCode: ...

    def add(self, key: Key, payload: bytes, flags: int, ttl: int) -> ReturnCode: ...

    def replace(self, key: Key, payload: bytes, flags: int, ttl: int) -> ReturnCode: ...

    def append(self, key: Key, payload: bytes, flags: int, ttl: int) -> ReturnCode: ...

    def prepend(self, key: Key, payload: bytes, flags: int, ttl: int) -> ReturnCode: ...

    def delete(self, key: Key, ttl: int) -> ReturnCode: ...

    def touch(self, key: Key, ttl: int) -> ReturnCode: ...

    def incr(self, key: Key, delta: int) -> CounterResult: ...

    def decr(self, key: Key, delta: int) -> CounterResult: ...

    def exists(self, key: Key) -> ReturnCode: ...

    def flush(self, ttl: int) -> ReturnCode: ...

    def behavior_get(self, flag: int) -> int: ...

    def behavior_set(self, flag: int, value: int) -> ReturnCode: ...
