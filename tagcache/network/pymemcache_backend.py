"""
pymemcache Backend

Backend implementation on top of pymemcache. A single configured server
uses pymemcache.client.base.Client, several servers use HashClient.
Item flags travel through a pass-through serde so the client's own tags
reach the wire untouched.

pymemcache exceptions and socket errors never leave this module; they are
turned into ReturnCodes and the text is kept for last_error_message().
"""

import errno as errno_codes
import logging
import os
from typing import Dict, Iterator, List, Optional, Tuple

from pymemcache.client.base import Client as PymemcacheClient
from pymemcache.client.hash import HashClient
from pymemcache.exceptions import (
    MemcacheClientError,
    MemcacheError,
    MemcacheIllegalInputError,
    MemcacheServerError,
    MemcacheUnexpectedCloseError,
    MemcacheUnknownError,
)

from ..config.settings import settings
from .backend import CounterResult, FetchResult, Key, ReturnCode
from .behaviors import Behavior

logger = logging.getLogger(__name__)

# Behaviors that are pymemcache constructor arguments; changing one
# means the client has to be rebuilt.
CLIENT_BEHAVIORS = frozenset({
    Behavior.CONNECT_TIMEOUT,
    Behavior.POLL_TIMEOUT,
    Behavior.RCV_TIMEOUT,
    Behavior.SND_TIMEOUT,
    Behavior.TCP_NODELAY,
    Behavior.RETRY_TIMEOUT,
    Behavior.DEAD_TIMEOUT,
    Behavior.SERVER_FAILURE_LIMIT,
})

DEFAULT_BEHAVIORS = {
    Behavior.CONNECT_TIMEOUT: settings.CONNECT_TIMEOUT_MS,
    Behavior.POLL_TIMEOUT: settings.IO_TIMEOUT_MS,
    Behavior.RETRY_TIMEOUT: 1,
    Behavior.DEAD_TIMEOUT: 60,
    Behavior.SERVER_FAILURE_LIMIT: 2,
}


class PassthroughSerde:
    """Serde that hands (payload, flags) pairs to and from pymemcache as-is."""

    def serialize(self, key, value: Tuple[bytes, int]) -> Tuple[bytes, int]:
        payload, flags = value
        return payload, flags

    def deserialize(self, key, value: bytes, flags: int) -> Tuple[bytes, int]:
        return value, flags


class PymemcacheBackend:
    """
    Backend talking to memcached servers through pymemcache.

    The pymemcache client is created lazily on first use and recreated
    after a behavior that maps onto one of its constructor arguments
    changes.

    Args:
        config: ClientConfig with servers and behavior overrides
    """

    def __init__(self, config):
        self.servers = list(config.servers)
        self._behaviors: Dict[int, int] = dict(DEFAULT_BEHAVIORS)
        self._behaviors.update(config.behaviors)
        self._client = None
        self._cursor: Optional[Iterator] = None
        self._last_error = ""

        if any(server.weight != 1 for server in self.servers):
            logger.debug("Server weights are ignored by the pymemcache hash client")

    # ------------------------------------------------------------------
    # Client lifecycle
    # ------------------------------------------------------------------

    def _get_client(self):
        if self._client is None:
            self._client = self._build_client()
        return self._client

    def _build_client(self):
        options = {
            "serde": PassthroughSerde(),
            "connect_timeout": self._seconds(Behavior.CONNECT_TIMEOUT, 1000),
            "timeout": self._io_timeout(),
            "no_delay": bool(self._behaviors.get(Behavior.TCP_NODELAY, 0)),
            # Replies are needed to tell "not stored" from "stored".
            "default_noreply": False,
            "allow_unicode_keys": True,
        }

        if len(self.servers) == 1:
            logger.debug(f"Creating pymemcache client for {self.servers[0]}")
            return PymemcacheClient(self.servers[0].target, **options)

        logger.debug(f"Creating pymemcache hash client for {len(self.servers)} servers")
        return HashClient(
            [server.target for server in self.servers],
            retry_attempts=self._behaviors[Behavior.SERVER_FAILURE_LIMIT],
            retry_timeout=self._behaviors[Behavior.RETRY_TIMEOUT],
            dead_timeout=self._behaviors[Behavior.DEAD_TIMEOUT],
            **options,
        )

    def _seconds(self, flag: Behavior, per_second: int) -> Optional[float]:
        value = self._behaviors.get(flag, 0)
        return value / per_second if value > 0 else None

    def _io_timeout(self) -> Optional[float]:
        # RCV/SND timeouts are microseconds, POLL_TIMEOUT milliseconds
        for flag, per_second in (
            (Behavior.RCV_TIMEOUT, 1_000_000),
            (Behavior.SND_TIMEOUT, 1_000_000),
            (Behavior.POLL_TIMEOUT, 1000),
        ):
            timeout = self._seconds(flag, per_second)
            if timeout is not None:
                return timeout
        return None

    def _drop_client(self) -> None:
        client, self._client = self._client, None
        self._cursor = None
        if client is not None:
            client.close()

    def close(self) -> None:
        """Close all server connections."""
        self._drop_client()

    # ------------------------------------------------------------------
    # Error mapping
    # ------------------------------------------------------------------

    def last_error_message(self) -> str:
        return self._last_error

    def _fail(self, operation: str, exc: Exception) -> ReturnCode:
        if isinstance(exc, MemcacheIllegalInputError):
            rc = ReturnCode.BAD_KEY_PROVIDED
        elif isinstance(exc, MemcacheClientError):
            rc = ReturnCode.CLIENT_ERROR
        elif isinstance(exc, MemcacheUnexpectedCloseError):
            rc = ReturnCode.CONNECTION_FAILURE
        elif isinstance(exc, MemcacheServerError):
            rc = ReturnCode.SERVER_ERROR
        elif isinstance(exc, MemcacheUnknownError):
            rc = ReturnCode.PROTOCOL_ERROR
        elif isinstance(exc, TimeoutError):
            rc = ReturnCode.TIMEOUT
        elif isinstance(exc, OSError):
            rc = ReturnCode.ERRNO
        else:
            rc = ReturnCode.FAILURE

        if rc is ReturnCode.ERRNO and exc.errno:
            self._last_error = os.strerror(exc.errno)
        elif rc is ReturnCode.TIMEOUT:
            self._last_error = os.strerror(errno_codes.ETIMEDOUT)
        else:
            self._last_error = str(exc) or type(exc).__name__

        logger.warning(f"{operation} failed: {rc.name} ({self._last_error})")

        if rc in (ReturnCode.ERRNO, ReturnCode.TIMEOUT, ReturnCode.CONNECTION_FAILURE):
            # Broken sockets are not reused
            self._drop_client()
        return rc

    def _refuse(self, rc: ReturnCode, message: str) -> ReturnCode:
        self._last_error = message
        return rc

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, key: Key) -> FetchResult:
        try:
            item = self._get_client().get(key)
        except (MemcacheError, OSError) as exc:
            return FetchResult(rc=self._fail("get", exc), key=key)

        if item is None:
            return FetchResult(rc=ReturnCode.NOTFOUND, key=key)
        return self._to_result(key, item)

    def mget(self, keys: List[Key]) -> ReturnCode:
        self._cursor = None
        try:
            items = self._get_client().get_many(keys)
        except (MemcacheError, OSError) as exc:
            return self._fail("get_many", exc)

        self._cursor = iter(items.items())
        return ReturnCode.SUCCESS

    def fetch(self) -> Optional[FetchResult]:
        if self._cursor is None:
            return None

        entry = next(self._cursor, None)
        if entry is None:
            self._cursor = None
            return None

        key, item = entry
        return self._to_result(key, item)

    @staticmethod
    def _to_result(key: Key, item: Tuple[bytes, int]) -> FetchResult:
        payload, flags = item
        return FetchResult(
            rc=ReturnCode.SUCCESS,
            key=key,
            payload=payload or None,
            flags=flags,
        )

    def exists(self, key: Key) -> ReturnCode:
        result = self.get(key)
        return result.rc

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def _store(self, command: str, key: Key, payload: bytes, flags: int,
               ttl: int, rejected: ReturnCode) -> ReturnCode:
        try:
            stored = getattr(self._get_client(), command)(
                key, (payload, flags), expire=ttl, noreply=False
            )
        except (MemcacheError, OSError) as exc:
            return self._fail(command, exc)

        if stored:
            return ReturnCode.SUCCESS
        return self._refuse(rejected, f"{command}: item not stored")

    def set(self, key: Key, payload: bytes, flags: int, ttl: int) -> ReturnCode:
        return self._store("set", key, payload, flags, ttl, ReturnCode.NOTSTORED)

    def add(self, key: Key, payload: bytes, flags: int, ttl: int) -> ReturnCode:
        return self._store("add", key, payload, flags, ttl, ReturnCode.DATA_EXISTS)

    def replace(self, key: Key, payload: bytes, flags: int, ttl: int) -> ReturnCode:
        return self._store("replace", key, payload, flags, ttl, ReturnCode.NOTFOUND)

    def append(self, key: Key, payload: bytes, flags: int, ttl: int) -> ReturnCode:
        return self._store("append", key, payload, flags, ttl, ReturnCode.NOTSTORED)

    def prepend(self, key: Key, payload: bytes, flags: int, ttl: int) -> ReturnCode:
        return self._store("prepend", key, payload, flags, ttl, ReturnCode.NOTSTORED)

    def delete(self, key: Key, ttl: int) -> ReturnCode:
        if ttl:
            # memcached dropped delayed deletes
            return self._refuse(ReturnCode.NOT_SUPPORTED, "delete with expiration is not supported")
        try:
            deleted = self._get_client().delete(key, noreply=False)
        except (MemcacheError, OSError) as exc:
            return self._fail("delete", exc)
        return ReturnCode.SUCCESS if deleted else ReturnCode.NOTFOUND

    def touch(self, key: Key, ttl: int) -> ReturnCode:
        try:
            touched = self._get_client().touch(key, expire=ttl, noreply=False)
        except (MemcacheError, OSError) as exc:
            return self._fail("touch", exc)
        return ReturnCode.SUCCESS if touched else ReturnCode.NOTFOUND

    def _counter(self, command: str, key: Key, delta: int) -> CounterResult:
        try:
            value = getattr(self._get_client(), command)(key, delta, noreply=False)
        except (MemcacheError, OSError) as exc:
            return CounterResult(rc=self._fail(command, exc))
        if value is None:
            return CounterResult(rc=ReturnCode.NOTFOUND)
        return CounterResult(rc=ReturnCode.SUCCESS, value=int(value))

    def incr(self, key: Key, delta: int) -> CounterResult:
        return self._counter("incr", key, delta)

    def decr(self, key: Key, delta: int) -> CounterResult:
        return self._counter("decr", key, delta)

    def flush(self, ttl: int) -> ReturnCode:
        try:
            self._get_client().flush_all(delay=ttl, noreply=False)
        except (MemcacheError, OSError) as exc:
            return self._fail("flush_all", exc)
        return ReturnCode.SUCCESS

    # ------------------------------------------------------------------
    # Behaviors
    # ------------------------------------------------------------------

    def behavior_get(self, flag: int) -> int:
        return self._behaviors.get(flag, 0)

    def behavior_set(self, flag: int, value: int) -> ReturnCode:
        try:
            behavior = Behavior(flag)
        except ValueError:
            return self._refuse(ReturnCode.INVALID_ARGUMENTS, f"invalid behavior {flag}")

        if value < 0:
            return self._refuse(ReturnCode.INVALID_ARGUMENTS, f"invalid value {value} for {behavior.name}")

        self._behaviors[behavior] = value
        if behavior in CLIENT_BEHAVIORS:
            logger.debug(f"{behavior.name} changed to {value}, rebuilding client")
            self._drop_client()
        return ReturnCode.SUCCESS
