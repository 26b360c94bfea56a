"""
Cache Client

The handle callers work with. A Client owns one backend context and the
encode/decode/key_encode callables bound at construction, and turns
backend return codes into results:

    success        -> the value (or True)
    expected miss  -> None   (not found, already exists, not stored)
    hard failure   -> CacheError

A Client is not safe for concurrent use; give each worker its own.
"""

import logging
import weakref
from typing import Any, Callable, Dict, Iterable, Optional

from ..codec.keys import Key, KeyAdapter
from ..codec.values import ValueCodec
from ..config.parser import ConfigParser
from ..errors import CacheError, InvalidHandleError
from ..network.backend import Backend, ReturnCode
from ..network.pymemcache_backend import PymemcacheBackend

logger = logging.getLogger(__name__)


def _release_backend(backend: Backend) -> None:
    logger.debug("Releasing backend")
    backend.close()


def _check_ttl(ttl: int) -> int:
    if isinstance(ttl, bool) or not isinstance(ttl, int):
        raise TypeError(f"ttl must be an int, not {type(ttl).__name__}")
    if ttl < 0:
        raise ValueError("ttl must not be negative")
    return ttl


def _check_delta(delta: int) -> int:
    if isinstance(delta, bool) or not isinstance(delta, int):
        raise TypeError(f"delta must be an int, not {type(delta).__name__}")
    if delta < 0:
        raise ValueError("delta must not be negative")
    return delta


class Client:
    """
    Handle to a memcached cluster.

    Usage:
        mc = Client("--SERVER=localhost:11211", encode=json.dumps, decode=json.loads)
        mc.set("user:1", {"name": "Alice"})
        mc.get("user:1")          # {'name': 'Alice'}
        mc.get("missing")         # None
        mc.close()

    Args:
        config: libmemcached-style configuration string
        encode: Callable serializing structured values (dict, list, ...)
        decode: Callable reversing encode
        key_encode: Optional callable rewriting keys that are too long
        backend_factory: Callable building the backend from the parsed
            configuration (default PymemcacheBackend)

    Raises:
        ConfigError: The configuration string is invalid
        TypeError: encode/decode missing or key_encode not callable
    """

    def __init__(
        self,
        config: str,
        encode: Callable[[Any], Any],
        decode: Callable[[bytes], Any],
        key_encode: Optional[Callable[[Key], Key]] = None,
        backend_factory: Optional[Callable[..., Backend]] = None,
    ):
        if not callable(encode):
            raise TypeError("bad argument 'encode' (function is missing)")
        if not callable(decode):
            raise TypeError("bad argument 'decode' (function is missing)")
        if key_encode is not None and not callable(key_encode):
            raise TypeError("bad argument 'key_encode' (must be a function)")

        parsed = ConfigParser().parse(config)

        if backend_factory is None:
            backend_factory = PymemcacheBackend

        self._backend: Optional[Backend] = backend_factory(parsed)
        self._codec: Optional[ValueCodec] = ValueCodec(encode, decode)
        self._keys: Optional[KeyAdapter] = KeyAdapter(key_encode)
        self._finalizer = weakref.finalize(self, _release_backend, self._backend)

        logger.debug(f"Client opened for {', '.join(str(s) for s in parsed.servers)}")

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def closed(self) -> bool:
        return self._backend is None

    def close(self) -> bool:
        """
        Release the backend and the bound callables.

        Returns:
            True if the client was open, False if it was already closed
        """
        if self._backend is None:
            return False

        try:
            self._finalizer()
        finally:
            self._backend = None
            self._codec = None
            self._keys = None
        return True

    def __enter__(self) -> "Client":
        self._active()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def _active(self) -> Backend:
        if self._backend is None:
            raise InvalidHandleError()
        return self._backend

    def _error(self, rc: ReturnCode) -> CacheError:
        message = self._backend.last_error_message() or rc.name
        return CacheError(message, return_code=rc)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, key: Key) -> Any:
        """
        Fetch and decode a value.

        Returns:
            The value, "" for an item without data, None if not found
        """
        backend = self._active()
        result = backend.get(self._keys.adapt(key))

        if result.rc is ReturnCode.SUCCESS:
            return self._codec.decode(result.flags, result.payload)
        if result.rc is ReturnCode.NOTFOUND:
            return None
        raise self._error(result.rc)

    def get_multi(self, keys: Iterable[Key]) -> Dict[Key, Any]:
        """
        Fetch several keys in one batch.

        Keys are sent as given; they are not rewritten. The mapping is
        returned once the whole batch has been read and only holds the
        keys that were found.
        """
        backend = self._active()
        keys = list(keys)
        if not keys:
            return {}

        rc = backend.mget(keys)
        if rc is not ReturnCode.SUCCESS:
            raise self._error(rc)

        logger.debug(f"Batch of {len(keys)} keys issued")

        # Drain the cursor completely before decoding anything
        entries = []
        while True:
            entry = backend.fetch()
            if entry is None:
                break
            entries.append(entry)

        return {
            entry.key: self._codec.decode(entry.flags, entry.payload)
            for entry in entries
        }

    def exists(self, key: Key) -> Optional[bool]:
        backend = self._active()
        rc = backend.exists(self._keys.adapt(key))
        return self._outcome(rc, ReturnCode.NOTFOUND)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def _outcome(self, rc: ReturnCode, soft: Optional[ReturnCode] = None) -> Optional[bool]:
        if rc is ReturnCode.SUCCESS:
            return True
        if soft is not None and rc is soft:
            return None
        raise self._error(rc)

    def _store(self, command: str, key: Key, value: Any, ttl: int,
               soft: Optional[ReturnCode]) -> Optional[bool]:
        backend = self._active()
        ttl = _check_ttl(ttl)
        transport_key = self._keys.adapt(key)
        stored = self._codec.encode(value)

        rc = getattr(backend, command)(transport_key, stored.payload, stored.flags, ttl)
        return self._outcome(rc, soft)

    def set(self, key: Key, value: Any, ttl: int = 0) -> bool:
        """Store a value unconditionally."""
        return self._store("set", key, value, ttl, None)

    def add(self, key: Key, value: Any, ttl: int = 0) -> Optional[bool]:
        """Store a value only if the key is new; None if it already exists."""
        return self._store("add", key, value, ttl, ReturnCode.DATA_EXISTS)

    def replace(self, key: Key, value: Any, ttl: int = 0) -> Optional[bool]:
        """Store a value only if the key exists; None if it does not."""
        return self._store("replace", key, value, ttl, ReturnCode.NOTFOUND)

    def append(self, key: Key, value: Any, ttl: int = 0) -> Optional[bool]:
        """
        Append to a stored value; None if nothing is stored.

        The item keeps its original tag, so appending makes sense for text.
        """
        return self._store("append", key, value, ttl, ReturnCode.NOTSTORED)

    def prepend(self, key: Key, value: Any, ttl: int = 0) -> Optional[bool]:
        """Prepend to a stored value; None if nothing is stored."""
        return self._store("prepend", key, value, ttl, ReturnCode.NOTSTORED)

    def delete(self, key: Key, ttl: int = 0) -> Optional[bool]:
        backend = self._active()
        ttl = _check_ttl(ttl)
        rc = backend.delete(self._keys.adapt(key), ttl)
        return self._outcome(rc, ReturnCode.NOTFOUND)

    def touch(self, key: Key, ttl: int) -> Optional[bool]:
        """Set a new expiration time; None if the key does not exist."""
        backend = self._active()
        ttl = _check_ttl(ttl)
        rc = backend.touch(self._keys.adapt(key), ttl)
        return self._outcome(rc, ReturnCode.NOTFOUND)

    def _counter(self, command: str, key: Key, delta: int) -> Optional[int]:
        backend = self._active()
        delta = _check_delta(delta)
        result = getattr(backend, command)(self._keys.adapt(key), delta)

        if result.rc is ReturnCode.SUCCESS:
            return result.value
        if result.rc is ReturnCode.NOTFOUND:
            return None
        raise self._error(result.rc)

    def incr(self, key: Key, delta: int = 1) -> Optional[int]:
        """Increment a numeric item; returns the new value, None if absent."""
        return self._counter("incr", key, delta)

    def decr(self, key: Key, delta: int = 1) -> Optional[int]:
        """Decrement a numeric item (stops at zero); None if absent."""
        return self._counter("decr", key, delta)

    def flush(self, ttl: int = 0) -> bool:
        """Invalidate all items, now or after ttl seconds."""
        backend = self._active()
        rc = backend.flush(_check_ttl(ttl))
        return self._outcome(rc)

    # ------------------------------------------------------------------
    # Behaviors
    # ------------------------------------------------------------------

    def get_behavior(self, flag: int) -> int:
        backend = self._active()
        return backend.behavior_get(int(flag))

    def set_behavior(self, flag: int, value: int) -> bool:
        backend = self._active()
        rc = backend.behavior_set(int(flag), int(value))
        return self._outcome(rc)
