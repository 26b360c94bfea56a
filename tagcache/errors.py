"""
Exception Types

Precondition violations are raised before anything reaches the backend.
Hard backend failures are raised as CacheError. Expected absences
(not found, already exists, not stored) are never exceptions; operations
return None for them.
"""

from typing import Optional


class TagCacheError(Exception):
    """Base class for all tagcache errors."""


class ConfigError(TagCacheError, ValueError):
    """The configuration string could not be turned into a client context."""


class InvalidHandleError(TagCacheError):
    """An operation was attempted on a client that has been closed."""

    def __init__(self, message: str = "client is closed"):
        super().__init__(message)


class KeyTooLongError(TagCacheError, ValueError):
    """A key reached the maximum length and no key_encode callable is bound."""

    def __init__(self, length: int, max_length: int):
        self.length = length
        self.max_length = max_length
        super().__init__(f"key is too long ({length} >= {max_length} bytes)")


class UnsupportedValueTypeError(TagCacheError, TypeError):
    """A value of a type the codec cannot tag."""


class DecodeError(TagCacheError, ValueError):
    """A stored payload does not match its tag (data corruption)."""


class CacheError(TagCacheError):
    """
    Hard error reported by the backend.

    Attributes:
        return_code: The backend ReturnCode that caused the error
        message: Human readable description (strerror or backend text)
    """

    def __init__(self, message: str, return_code: Optional[object] = None):
        super().__init__(message)
        self.message = message
        self.return_code = return_code
