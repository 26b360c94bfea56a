"""
Key Adapter

memcached refuses keys of MAX_KEY_LENGTH bytes or more. Such keys are
passed to the key_encode callable, if one is bound, and the result is
sent instead. Rewritten keys are never mapped back.
"""

import logging
from typing import Callable, Optional, Union

from ..config.settings import settings
from ..errors import KeyTooLongError

logger = logging.getLogger(__name__)

Key = Union[str, bytes]


def key_length(key: Key) -> int:
    """Length of a key in bytes as it goes on the wire."""
    if isinstance(key, str):
        return len(key.encode("utf-8"))
    if isinstance(key, (bytes, bytearray)):
        return len(key)
    raise TypeError(f"key must be str or bytes, not {type(key).__name__}")


class KeyAdapter:
    """
    Rewrites overlong keys with a caller supplied callable.

    Args:
        key_encode: Optional callable producing a replacement key
        max_length: Byte length from which keys must be rewritten
    """

    def __init__(self, key_encode: Optional[Callable[[Key], Key]] = None,
                 max_length: int = settings.MAX_KEY_LENGTH):
        self.key_encode = key_encode
        self.max_length = max_length

    def adapt(self, key: Key) -> Key:
        length = key_length(key)
        if length < self.max_length:
            return key

        if self.key_encode is None:
            raise KeyTooLongError(length, self.max_length)

        rewritten = self.key_encode(key)
        logger.debug(f"Rewrote {length} byte key")
        return rewritten
