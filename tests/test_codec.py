"""
Tests for the value codec

These tests verify tagging and tag reversal:
- encode(): value -> (tag, payload)
- decode(): (flags, payload) -> value

Run with: python -m pytest tests/test_codec.py -v
"""

import json
import math
from collections import OrderedDict

import pytest

from tagcache.codec.tags import StoredValue, Tag
from tagcache.codec.values import ValueCodec
from tagcache.errors import DecodeError, UnsupportedValueTypeError


class TestTagValues:
    """Tag numbers are persisted with the data."""

    def test_tag_numbers_are_stable(self):
        """Test that each tag keeps its persisted number."""
        assert int(Tag.NONE) == 0
        assert int(Tag.BOOLEAN) == 1
        assert int(Tag.NUMBER) == 2
        assert int(Tag.STRUCTURED) == 7

    def test_stored_value_flags(self):
        """Test that flags is the integer tag."""
        assert StoredValue(Tag.NUMBER, b"1").flags == 2


class TestEncode:
    """Test encode() for every supported type."""

    def test_text(self, codec: ValueCodec):
        """Test that text is stored untagged."""
        assert codec.encode("hello") == StoredValue(Tag.NONE, b"hello")

    def test_text_is_utf8(self, codec: ValueCodec):
        """Test that text is encoded as UTF-8."""
        assert codec.encode("héllo").payload == "héllo".encode("utf-8")

    def test_bytes_unchanged(self, codec: ValueCodec):
        """Test that bytes are stored as they are."""
        assert codec.encode(b"\x00\xff") == StoredValue(Tag.NONE, b"\x00\xff")

    def test_integer(self, codec: ValueCodec):
        """Test that an int becomes decimal text."""
        assert codec.encode(42) == StoredValue(Tag.NUMBER, b"42")

    def test_negative_integer(self, codec: ValueCodec):
        """Test that the sign is kept."""
        assert codec.encode(-7) == StoredValue(Tag.NUMBER, b"-7")

    def test_float(self, codec: ValueCodec):
        """Test that a float uses its repr."""
        assert codec.encode(1.5) == StoredValue(Tag.NUMBER, b"1.5")

    @pytest.mark.parametrize("value, payload", [(True, b"1"), (False, b"0")])
    def test_boolean_single_byte(self, codec: ValueCodec, value, payload):
        """Test that booleans are a single 0/1 byte."""
        stored = codec.encode(value)
        assert stored.tag == Tag.BOOLEAN
        assert stored.payload == payload

    def test_dict_uses_encode_callable(self, codec: ValueCodec):
        """Test that a dict goes through the encode callable."""
        stored = codec.encode({"a": 1})
        assert stored.tag == Tag.STRUCTURED
        assert json.loads(stored.payload) == {"a": 1}

    @pytest.mark.parametrize("value", [[1, 2], (1, 2), OrderedDict(a=1)])
    def test_structured_types(self, value):
        """Test that lists, tuples and mappings are structured."""
        seen = []
        codec = ValueCodec(lambda v: seen.append(v) or b"x", lambda b: b)
        assert codec.encode(value).tag == Tag.STRUCTURED
        assert seen == [value]

    def test_encode_result_adopted_as_is(self):
        """Test that bytes from encode are not altered."""
        codec = ValueCodec(lambda v: b"\x01raw", lambda b: b)
        assert codec.encode({}).payload == b"\x01raw"

    def test_encode_must_return_bytes(self):
        """Test that encode returning a non-string is rejected."""
        codec = ValueCodec(lambda v: 123, lambda b: b)
        with pytest.raises(UnsupportedValueTypeError):
            codec.encode({"a": 1})

    @pytest.mark.parametrize("value", [None, object(), 1j])
    def test_unsupported_types(self, codec: ValueCodec, value):
        """Test that values without a tag are rejected."""
        with pytest.raises(UnsupportedValueTypeError):
            codec.encode(value)


class TestDecode:
    """Test decode() for every tag."""

    def test_text(self, codec: ValueCodec):
        """Test decoding untagged text."""
        assert codec.decode(Tag.NONE, b"hello") == "hello"

    def test_non_utf8_text_stays_bytes(self, codec: ValueCodec):
        """Test that invalid UTF-8 comes back as bytes."""
        assert codec.decode(Tag.NONE, b"\xff\xfe") == b"\xff\xfe"

    def test_integer(self, codec: ValueCodec):
        """Test that integer text decodes to an int."""
        value = codec.decode(Tag.NUMBER, b"42")
        assert value == 42
        assert isinstance(value, int)

    def test_float(self, codec: ValueCodec):
        """Test that decimal text decodes to a float."""
        assert codec.decode(Tag.NUMBER, b"2.25") == 2.25

    def test_corrupted_number_raises(self, codec: ValueCodec):
        """Test that a non-numeric NUMBER payload raises."""
        with pytest.raises(DecodeError):
            codec.decode(Tag.NUMBER, b"forty-two")

    @pytest.mark.parametrize("payload", [b"1_000", b"infinity", b"0x10", b"1.5j", b"\xff1"])
    def test_non_decimal_number_raises(self, codec: ValueCodec, payload):
        """Test that Python-only float spellings are rejected."""
        with pytest.raises(DecodeError):
            codec.decode(Tag.NUMBER, payload)

    @pytest.mark.parametrize("value", [float("inf"), float("-inf"), 1e100, -0.5])
    def test_float_repr_forms(self, codec: ValueCodec, value):
        """Test infinities and exponents written by repr()."""
        stored = codec.encode(value)
        assert codec.decode(stored.flags, stored.payload) == value

    def test_float_nan(self, codec: ValueCodec):
        """Test that nan survives a round trip."""
        stored = codec.encode(float("nan"))
        assert math.isnan(codec.decode(stored.flags, stored.payload))

    def test_boolean_true(self, codec: ValueCodec):
        """Test that b"1" is True."""
        assert codec.decode(Tag.BOOLEAN, b"1") is True

    def test_boolean_false(self, codec: ValueCodec):
        """Test that b"0" is False."""
        assert codec.decode(Tag.BOOLEAN, b"0") is False

    @pytest.mark.parametrize("payload", [b"x", b"2", b"true", b"01"])
    def test_boolean_garbage_is_false(self, codec: ValueCodec, payload):
        """Test that anything but a leading 1 is False."""
        assert codec.decode(Tag.BOOLEAN, payload) is False

    def test_structured_uses_decode_callable(self):
        """Test that STRUCTURED goes through the decode callable."""
        received = []
        codec = ValueCodec(lambda v: b"", lambda b: received.append(b) or "decoded")
        assert codec.decode(Tag.STRUCTURED, b"payload") == "decoded"
        assert received == [b"payload"]

    @pytest.mark.parametrize("flags", [3, 4, 99, 2 ** 31])
    def test_unknown_tag_is_text(self, codec: ValueCodec, flags):
        """Test that unknown flags decode as text."""
        assert codec.decode(flags, b"opaque") == "opaque"

    @pytest.mark.parametrize("tag", list(Tag))
    def test_empty_payload_is_empty_text(self, codec: ValueCodec, tag):
        """Test that an empty payload is "" for every tag."""
        assert codec.decode(tag, b"") == ""
        assert codec.decode(tag, None) == ""


class TestRoundTrip:
    """decode(encode(v)) == v."""

    @pytest.mark.parametrize("value", [
        "text",
        "unicodé",
        0,
        12345678901234567890,
        -3.75,
        True,
        False,
        {"nested": {"list": [1, 2, 3]}},
        [1, "two", None],
    ])
    def test_round_trip(self, codec: ValueCodec, value):
        """Test that supported values come back equal."""
        stored = codec.encode(value)
        assert codec.decode(stored.flags, stored.payload) == value

    def test_round_trip_identity_pair(self, identity_codec: ValueCodec):
        """Test that the structured callables are used verbatim."""
        value = {"any": object()}
        stored = identity_codec.encode(value)
        assert identity_codec.decode(stored.flags, stored.payload) is value
