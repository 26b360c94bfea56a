"""
In-Memory Backend

A process-local backend with the same interface as PymemcacheBackend.
Items keep their flags, expire after their TTL and are evicted in least
recently used order once max_size is reached. Useful for tests and for
running the shell without a memcached server.

Internal Storage:
    OrderedDict of key bytes -> (payload, flags, expiration_timestamp)
    expiration_timestamp = 0 means no expiration
"""

import logging
import time
from collections import OrderedDict
from typing import Dict, Iterator, List, Optional, Tuple

from ..config.settings import settings
from ..network.backend import CounterResult, FetchResult, Key, ReturnCode
from ..network.behaviors import Behavior

logger = logging.getLogger(__name__)

# Protocol limits of a memcached server
MAX_KEY_BYTES = 250
MAX_COUNTER = 2 ** 64
RELATIVE_TTL_LIMIT = 60 * 60 * 24 * 30  # larger TTLs are unix timestamps

Item = Tuple[bytes, int, float]


class MemoryBackend:
    """
    In-memory backend with TTL and LRU eviction.

    Attributes:
        max_size: Maximum number of items before the LRU item is evicted
    """

    def __init__(self, config=None, max_size: Optional[int] = None):
        self.max_size = max_size if max_size is not None else settings.MAX_ITEMS
        if self.max_size <= 0:
            raise ValueError("max_size must be positive")

        self._store: "OrderedDict[bytes, Item]" = OrderedDict()
        self._behaviors: Dict[int, int] = dict(config.behaviors) if config is not None else {}
        self._cursor: Optional[Iterator[Tuple[Key, Item]]] = None
        self._flush_at = 0.0
        self._last_error = ""

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _key_bytes(self, key: Key) -> Optional[bytes]:
        raw = key.encode("utf-8") if isinstance(key, str) else bytes(key)
        if not raw or len(raw) > MAX_KEY_BYTES:
            return None
        if any(byte <= 32 or byte == 127 for byte in raw):
            return None
        return raw

    def _bad_key(self, key: Key) -> ReturnCode:
        self._last_error = f"invalid key {key!r}"
        return ReturnCode.BAD_KEY_PROVIDED

    @staticmethod
    def _expires_at(ttl: int) -> float:
        if not ttl or ttl <= 0:
            return 0
        if ttl > RELATIVE_TTL_LIMIT:
            return float(ttl)
        return time.time() + ttl

    def _apply_flush(self) -> None:
        if self._flush_at and self._flush_at <= time.time():
            self._store.clear()
            self._flush_at = 0.0

    def _lookup(self, raw: bytes) -> Optional[Item]:
        """Return a live item and mark it as most recently used."""
        self._apply_flush()
        item = self._store.get(raw)
        if item is None:
            return None

        expires_at = item[2]
        if expires_at and expires_at <= time.time():
            # Lazy expiration
            self._store.pop(raw, None)
            return None

        self._store.move_to_end(raw)
        return item

    def _put(self, raw: bytes, payload: bytes, flags: int, expires_at: float) -> None:
        if raw in self._store:
            self._store[raw] = (payload, flags, expires_at)
            self._store.move_to_end(raw)
            return

        if len(self._store) >= self.max_size:
            evicted, _ = self._store.popitem(last=False)
            logger.debug(f"Evicted {evicted!r}")

        self._store[raw] = (payload, flags, expires_at)

    def size(self) -> int:
        """Number of items held, expired ones included until they are touched."""
        return len(self._store)

    # ------------------------------------------------------------------
    # Backend interface
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Drop every item and any pending batch."""
        self._store.clear()
        self._cursor = None

    def last_error_message(self) -> str:
        """Message of the last failed call."""
        return self._last_error

    def get(self, key: Key) -> FetchResult:
        """Fetch one item; payload is None for a zero-length item."""
        raw = self._key_bytes(key)
        if raw is None:
            return FetchResult(rc=self._bad_key(key), key=key)

        item = self._lookup(raw)
        if item is None:
            return FetchResult(rc=ReturnCode.NOTFOUND, key=key)

        payload, flags, _ = item
        return FetchResult(rc=ReturnCode.SUCCESS, key=key, payload=payload or None, flags=flags)

    def mget(self, keys: List[Key]) -> ReturnCode:
        """
        Start a batch. Found items are handed out by fetch().

        Args:
            keys: Keys to look up, sent as given

        Returns:
            SUCCESS, or BAD_KEY_PROVIDED when any key is invalid
            (nothing is fetched then)
        """
        self._cursor = None
        found = []
        for key in keys:
            raw = self._key_bytes(key)
            if raw is None:
                return self._bad_key(key)
            item = self._lookup(raw)
            if item is not None:
                found.append((key, item))

        self._cursor = iter(found)
        return ReturnCode.SUCCESS

    def fetch(self) -> Optional[FetchResult]:
        """Next item of the current batch, None once it is exhausted."""
        if self._cursor is None:
            return None

        entry = next(self._cursor, None)
        if entry is None:
            self._cursor = None
            return None

        key, (payload, flags, _) = entry
        return FetchResult(rc=ReturnCode.SUCCESS, key=key, payload=payload or None, flags=flags)

    def exists(self, key: Key) -> ReturnCode:
        """SUCCESS if the key holds a live item."""
        raw = self._key_bytes(key)
        if raw is None:
            return self._bad_key(key)
        return ReturnCode.SUCCESS if self._lookup(raw) is not None else ReturnCode.NOTFOUND

    def set(self, key: Key, payload: bytes, flags: int, ttl: int) -> ReturnCode:
        """Store an item unconditionally."""
        raw = self._key_bytes(key)
        if raw is None:
            return self._bad_key(key)
        self._apply_flush()
        self._put(raw, payload, flags, self._expires_at(ttl))
        return ReturnCode.SUCCESS

    def add(self, key: Key, payload: bytes, flags: int, ttl: int) -> ReturnCode:
        """Store an item only if the key is free."""
        raw = self._key_bytes(key)
        if raw is None:
            return self._bad_key(key)
        if self._lookup(raw) is not None:
            return ReturnCode.DATA_EXISTS
        self._put(raw, payload, flags, self._expires_at(ttl))
        return ReturnCode.SUCCESS

    def replace(self, key: Key, payload: bytes, flags: int, ttl: int) -> ReturnCode:
        """Store an item only if the key is taken."""
        raw = self._key_bytes(key)
        if raw is None:
            return self._bad_key(key)
        if self._lookup(raw) is None:
            return ReturnCode.NOTFOUND
        self._put(raw, payload, flags, self._expires_at(ttl))
        return ReturnCode.SUCCESS

    def _concat(self, key: Key, payload: bytes, prepend: bool) -> ReturnCode:
        raw = self._key_bytes(key)
        if raw is None:
            return self._bad_key(key)

        item = self._lookup(raw)
        if item is None:
            return ReturnCode.NOTSTORED

        # The stored flags and expiration are kept
        current, flags, expires_at = item
        joined = payload + current if prepend else current + payload
        self._put(raw, joined, flags, expires_at)
        return ReturnCode.SUCCESS

    def append(self, key: Key, payload: bytes, flags: int, ttl: int) -> ReturnCode:
        """Append to an item; flags and ttl are ignored."""
        return self._concat(key, payload, prepend=False)

    def prepend(self, key: Key, payload: bytes, flags: int, ttl: int) -> ReturnCode:
        """Prepend to an item; flags and ttl are ignored."""
        return self._concat(key, payload, prepend=True)

    def delete(self, key: Key, ttl: int) -> ReturnCode:
        """Remove an item. A non-zero ttl (delayed delete) is refused."""
        if ttl:
            self._last_error = "delete with expiration is not supported"
            return ReturnCode.NOT_SUPPORTED

        raw = self._key_bytes(key)
        if raw is None:
            return self._bad_key(key)
        if self._lookup(raw) is None:
            return ReturnCode.NOTFOUND
        self._store.pop(raw, None)
        return ReturnCode.SUCCESS

    def touch(self, key: Key, ttl: int) -> ReturnCode:
        """Give an item a new expiration."""
        raw = self._key_bytes(key)
        if raw is None:
            return self._bad_key(key)

        item = self._lookup(raw)
        if item is None:
            return ReturnCode.NOTFOUND

        payload, flags, _ = item
        self._store[raw] = (payload, flags, self._expires_at(ttl))
        return ReturnCode.SUCCESS

    def _counter(self, key: Key, delta: int) -> CounterResult:
        raw = self._key_bytes(key)
        if raw is None:
            return CounterResult(rc=self._bad_key(key))

        item = self._lookup(raw)
        if item is None:
            return CounterResult(rc=ReturnCode.NOTFOUND)

        payload, flags, expires_at = item
        text = payload.strip()
        if not text.isdigit():
            self._last_error = "cannot increment or decrement non-numeric value"
            return CounterResult(rc=ReturnCode.CLIENT_ERROR)

        # Counters wrap on overflow and stop at zero on underflow
        value = max(int(text) + delta, 0) % MAX_COUNTER
        self._put(raw, str(value).encode("ascii"), flags, expires_at)
        return CounterResult(rc=ReturnCode.SUCCESS, value=value)

    def incr(self, key: Key, delta: int) -> CounterResult:
        """Add delta to a numeric item."""
        return self._counter(key, delta)

    def decr(self, key: Key, delta: int) -> CounterResult:
        """Subtract delta from a numeric item, stopping at zero."""
        return self._counter(key, -delta)

    def flush(self, ttl: int) -> ReturnCode:
        """Invalidate all items now, or once ttl seconds have passed."""
        if ttl and ttl > 0:
            self._flush_at = self._expires_at(ttl)
        else:
            self._store.clear()
            self._flush_at = 0.0
        return ReturnCode.SUCCESS

    def behavior_get(self, flag: int) -> int:
        """Stored value of a behavior, 0 when unset."""
        return self._behaviors.get(flag, 0)

    def behavior_set(self, flag: int, value: int) -> ReturnCode:
        """Record a behavior; unknown flags are refused."""
        try:
            behavior = Behavior(flag)
        except ValueError:
            self._last_error = f"invalid behavior {flag}"
            return ReturnCode.INVALID_ARGUMENTS
        self._behaviors[behavior] = value
        return ReturnCode.SUCCESS
