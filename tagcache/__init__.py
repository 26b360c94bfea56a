"""
tagcache: Typed Values for memcached

A client-side access layer for memcached clusters that stores text,
numbers, booleans and structured values by tagging every payload with
its type, and rewrites keys that exceed the protocol's length limit.
"""

from .cache.client import Client
from .cache.memory import MemoryBackend
from .codec.tags import Tag
from .errors import (
    CacheError,
    ConfigError,
    DecodeError,
    InvalidHandleError,
    KeyTooLongError,
    TagCacheError,
    UnsupportedValueTypeError,
)
from .network.behaviors import Behavior
from .network.pymemcache_backend import PymemcacheBackend

__version__ = "1.0.0"

__all__ = [
    "Behavior",
    "CacheError",
    "Client",
    "ConfigError",
    "DecodeError",
    "InvalidHandleError",
    "KeyTooLongError",
    "MemoryBackend",
    "PymemcacheBackend",
    "Tag",
    "TagCacheError",
    "UnsupportedValueTypeError",
]
