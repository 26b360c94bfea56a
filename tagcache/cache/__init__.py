"""Client and in-memory backend for tagcache."""

from .client import Client
from .memory import MemoryBackend

__all__ = ["Client", "MemoryBackend"]
