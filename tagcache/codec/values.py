"""
Value Codec

Maps Python values to tagged payloads and back.

    bool               -> BOOLEAN     b"1" / b"0"
    int, float         -> NUMBER      decimal text
    str, bytes         -> NONE        UTF-8 / raw bytes
    dict, list, ...    -> STRUCTURED  bytes from the encode callable

Decoding an unknown tag yields text, so items written by newer clients
remain readable.
"""

import re
from collections.abc import Mapping
from typing import Any, Callable, Optional, Union

from ..errors import DecodeError, UnsupportedValueTypeError
from .tags import StoredValue, Tag

STRUCTURED_TYPES = (Mapping, list, tuple, set, frozenset)

_INTEGER = re.compile(r"[+-]?\d+")
_DECIMAL = re.compile(r"[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?|[+-]?(inf|nan)")

Text = Union[str, bytes]


class ValueCodec:
    """
    Tag-based codec for cache values.

    Args:
        encode: Callable turning a structured value into bytes (or str)
        decode: Callable turning those bytes back into a structured value
    """

    def __init__(self, encode: Callable[[Any], Text], decode: Callable[[bytes], Any]):
        self.encode_structured = encode
        self.decode_structured = decode

    def encode(self, value: Any) -> StoredValue:
        """
        Tag and serialize a value.

        Raises:
            UnsupportedValueTypeError: The value has no tag, or the encode
                callable returned something other than bytes or str
        """
        # bool first, it is an int subclass
        if isinstance(value, bool):
            return StoredValue(Tag.BOOLEAN, b"1" if value else b"0")

        if isinstance(value, int):
            return StoredValue(Tag.NUMBER, str(value).encode("ascii"))

        if isinstance(value, float):
            return StoredValue(Tag.NUMBER, repr(value).encode("ascii"))

        if isinstance(value, str):
            return StoredValue(Tag.NONE, value.encode("utf-8"))

        if isinstance(value, (bytes, bytearray, memoryview)):
            return StoredValue(Tag.NONE, bytes(value))

        if isinstance(value, STRUCTURED_TYPES):
            encoded = self.encode_structured(value)
            if isinstance(encoded, str):
                encoded = encoded.encode("utf-8")
            elif not isinstance(encoded, bytes):
                raise UnsupportedValueTypeError(
                    f"encode must return bytes or str, not {type(encoded).__name__}"
                )
            return StoredValue(Tag.STRUCTURED, encoded)

        raise UnsupportedValueTypeError(f"unsupported value type {type(value).__name__}")

    def decode(self, flags: int, payload: Optional[bytes]) -> Any:
        """
        Turn a payload back into a value according to its tag.

        An empty payload is the empty string whatever the tag says.

        Raises:
            DecodeError: A NUMBER payload is not a number
        """
        if not payload:
            return ""

        if flags == Tag.STRUCTURED:
            return self.decode_structured(payload)

        if flags == Tag.NUMBER:
            return decode_number(payload)

        if flags == Tag.BOOLEAN:
            return payload[:1] == b"1"

        return decode_text(payload)


def decode_number(payload: bytes) -> Union[int, float]:
    text = payload.decode("ascii", errors="replace").strip()
    if _INTEGER.fullmatch(text):
        return int(text)
    # decimal or exponent text, or the inf/nan that repr(float) writes
    if _DECIMAL.fullmatch(text):
        return float(text)
    raise DecodeError(f"corrupted number payload {payload[:32]!r}")


def decode_text(payload: bytes) -> Text:
    """UTF-8 text, or the raw bytes when the payload is not UTF-8."""
    try:
        return payload.decode("utf-8")
    except UnicodeDecodeError:
        return payload
