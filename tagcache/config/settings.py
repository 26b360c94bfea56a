"""
tagcache Configuration Settings

Constants and environment overrides shared by the client, the backends
and the interactive shell.
"""

import os
from dataclasses import dataclass


@dataclass
class Settings:
    """Client configuration settings."""

    # Server settings
    SERVERS: str = os.environ.get("TAGCACHE_SERVERS", "localhost:11211")
    DEFAULT_PORT: int = 11211

    # Protocol limits
    MAX_KEY_LENGTH: int = 251  # keys of this byte length or more must be rewritten

    # Storage settings
    MAX_ITEMS: int = int(os.environ.get("TAGCACHE_MAX_ITEMS", "10000"))  # MemoryBackend capacity

    # Connection settings (milliseconds, libmemcached units)
    CONNECT_TIMEOUT_MS: int = 4000
    IO_TIMEOUT_MS: int = 0  # 0 means block until the server answers

    # Logging settings
    DEBUG: bool = os.environ.get("TAGCACHE_DEBUG", "false").lower() == "true"
    LOG_LEVEL: str = os.environ.get("TAGCACHE_LOG_LEVEL", "INFO")


# Global settings instance
settings = Settings()
