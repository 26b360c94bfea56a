"""Backend boundary for tagcache: return codes, behaviors and the pymemcache backend."""

from .backend import Backend, CounterResult, FetchResult, ReturnCode
from .behaviors import Behavior
from .pymemcache_backend import PymemcacheBackend

__all__ = [
    "Backend",
    "Behavior",
    "CounterResult",
    "FetchResult",
    "PymemcacheBackend",
    "ReturnCode",
]
