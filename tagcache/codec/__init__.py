"""Value and key codecs for tagcache."""

from .keys import KeyAdapter, key_length
from .tags import StoredValue, Tag
from .values import ValueCodec

__all__ = ["KeyAdapter", "StoredValue", "Tag", "ValueCodec", "key_length"]
