"""
Pytest Configuration and Fixtures

This module provides shared fixtures and configuration for all tests.
"""

import hashlib
import json

import pytest

from tagcache.cache.client import Client
from tagcache.cache.memory import MemoryBackend
from tagcache.codec.values import ValueCodec
from tagcache.network.backend import CounterResult, FetchResult, ReturnCode
from tagcache.protocol.parser import CommandParser

CONFIG = "--SERVER=127.0.0.1:11211"

BACKEND_METHODS = frozenset({
    "close", "get", "mget", "fetch", "set", "add", "replace", "append",
    "prepend", "delete", "touch", "incr", "decr", "exists", "flush",
    "behavior_get", "behavior_set",
})


class RecordingBackend(MemoryBackend):
    """MemoryBackend that records the name of every interface call."""

    def __init__(self, config=None, max_size=None):
        self.calls = []
        super().__init__(config, max_size=max_size)

    def __getattribute__(self, name):
        attr = super().__getattribute__(name)
        if name in BACKEND_METHODS:
            super().__getattribute__("calls").append(name)
        return attr


class BrokenBackend:
    """Backend whose every call fails with a server error."""

    def __init__(self, config=None, rc=ReturnCode.SERVER_ERROR, message="out of memory storing object"):
        self.rc = rc
        self.message = message
        self.closed = 0

    def close(self):
        self.closed += 1

    def last_error_message(self):
        return self.message

    def get(self, key):
        return FetchResult(rc=self.rc, key=key)

    def mget(self, keys):
        return self.rc

    def fetch(self):
        raise AssertionError("fetch after a failed mget")

    def _fail(self, *args):
        return self.rc

    set = add = replace = append = prepend = delete = touch = exists = flush = _fail
    behavior_set = _fail

    def incr(self, key, delta):
        return CounterResult(rc=self.rc)

    decr = incr

    def behavior_get(self, flag):
        return 0


# ============================================================================
# Codec Fixtures
# ============================================================================

@pytest.fixture
def codec() -> ValueCodec:
    """Codec storing structured values as JSON."""
    return ValueCodec(json.dumps, json.loads)


@pytest.fixture
def identity_codec() -> ValueCodec:
    """Codec whose structured encode/decode pass bytes through a lookup table."""
    table = {}

    def encode(value):
        token = str(len(table)).encode("ascii")
        table[token] = value
        return token

    return ValueCodec(encode, lambda payload: table[payload])


# ============================================================================
# Client Fixtures
# ============================================================================

@pytest.fixture
def backend() -> RecordingBackend:
    """A fresh recording in-memory backend."""
    return RecordingBackend(max_size=100)


@pytest.fixture
def client(backend: RecordingBackend) -> Client:
    """Client on top of the recording backend, JSON for structured values."""
    mc = Client(CONFIG, json.dumps, json.loads, backend_factory=lambda config: backend)
    yield mc
    mc.close()


@pytest.fixture
def hashing_client(backend: RecordingBackend) -> Client:
    """Client that rewrites long keys to a short digest."""
    def key_encode(key):
        return hashlib.sha1(key.encode("utf-8")).hexdigest()

    mc = Client(CONFIG, json.dumps, json.loads, key_encode=key_encode,
                backend_factory=lambda config: backend)
    yield mc
    mc.close()


@pytest.fixture
def broken_client() -> Client:
    """Client whose backend reports a hard error for everything."""
    mc = Client(CONFIG, json.dumps, json.loads, backend_factory=BrokenBackend)
    yield mc
    mc.close()


@pytest.fixture
def parser() -> CommandParser:
    """Create a CommandParser instance."""
    return CommandParser()


# ============================================================================
# Pytest Configuration
# ============================================================================

def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
