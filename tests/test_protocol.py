"""
Tests for the shell command parser

These tests verify the CommandParser class:
- parse_request(): Parse input lines into Command objects
- format_response(): Format Response objects into output lines

Run with: python -m pytest tests/test_protocol.py -v
"""

import pytest

from tagcache.network.behaviors import Behavior
from tagcache.protocol.commands import CommandType, Response
from tagcache.protocol.parser import CommandParser, parse_value, render_value


class TestParseValue:

    @pytest.mark.parametrize("text, expected", [
        ("true", True),
        ("FALSE", False),
        ("42", 42),
        ("-7", -7),
        ("1.5", 1.5),
        ("1e3", 1000.0),
        ('{"a": 1}', {"a": 1}),
        ("[1, 2]", [1, 2]),
        ("{not json", "{not json"),
        ("hello", "hello"),
        ("nan", "nan"),
    ])
    def test_typed_values(self, text, expected):
        """Test how value text is typed."""
        assert parse_value(text) == expected

    def test_integer_stays_int(self):
        """Test that integer text becomes an int."""
        assert isinstance(parse_value("10"), int)


class TestParseStore:

    def test_set_basic(self, parser: CommandParser):
        """Test parsing SET without a ttl."""
        cmd = parser.parse_request("SET key value")
        assert cmd.type == CommandType.SET
        assert cmd.key == "key"
        assert cmd.value == "value"
        assert cmd.ttl == 0

    def test_set_with_ttl(self, parser: CommandParser):
        """Test parsing SET with a ttl."""
        cmd = parser.parse_request("SET key 42 60")
        assert cmd.value == 42
        assert cmd.ttl == 60

    def test_quoted_json_value(self, parser: CommandParser):
        """Test a quoted JSON value."""
        cmd = parser.parse_request("""SET user '{"name": "Alice"}'""")
        assert cmd.value == {"name": "Alice"}

    @pytest.mark.parametrize("name", ["ADD", "REPLACE", "APPEND", "PREPEND"])
    def test_store_variants(self, parser: CommandParser, name):
        """Test the other store commands."""
        assert parser.parse_request(f"{name} k v").type == CommandType[name]

    def test_case_insensitive(self, parser: CommandParser):
        """Test that command names are case insensitive."""
        for variant in ["set", "SET", "Set"]:
            assert parser.parse_request(f"{variant} k v").type == CommandType.SET

    @pytest.mark.parametrize("line", [
        "SET",
        "SET key",
        "SET key value abc",
        "SET key value -1",
        "SET key value 1 extra",
    ])
    def test_invalid_store(self, parser: CommandParser, line):
        """Test malformed store commands."""
        assert parser.parse_request(line).type == CommandType.UNKNOWN


class TestParseOther:

    @pytest.mark.parametrize("name", ["GET", "DELETE", "EXISTS"])
    def test_single_key(self, parser: CommandParser, name):
        """Test commands taking a single key."""
        cmd = parser.parse_request(f"{name} mykey")
        assert cmd.type == CommandType[name]
        assert cmd.key == "mykey"

    def test_single_key_requires_one_key(self, parser: CommandParser):
        """Test that extra keys are rejected."""
        assert parser.parse_request("GET a b").type == CommandType.UNKNOWN

    def test_mget(self, parser: CommandParser):
        """Test parsing MGET."""
        cmd = parser.parse_request("MGET a b c")
        assert cmd.type == CommandType.MGET
        assert cmd.keys == ["a", "b", "c"]

    def test_mget_without_keys(self, parser: CommandParser):
        """Test MGET without keys."""
        assert parser.parse_request("MGET").type == CommandType.UNKNOWN

    def test_touch(self, parser: CommandParser):
        """Test parsing TOUCH."""
        cmd = parser.parse_request("TOUCH k 30")
        assert (cmd.type, cmd.key, cmd.ttl) == (CommandType.TOUCH, "k", 30)

    def test_touch_requires_ttl(self, parser: CommandParser):
        """Test TOUCH without a ttl."""
        assert parser.parse_request("TOUCH k").type == CommandType.UNKNOWN

    def test_incr_default_delta(self, parser: CommandParser):
        """Test that INCR defaults to a delta of 1."""
        assert parser.parse_request("INCR k").delta == 1

    def test_decr_with_delta(self, parser: CommandParser):
        """Test DECR with a delta."""
        cmd = parser.parse_request("DECR k 5")
        assert (cmd.type, cmd.delta) == (CommandType.DECR, 5)

    def test_flush(self, parser: CommandParser):
        """Test FLUSH with and without a delay."""
        assert parser.parse_request("FLUSH").ttl == 0
        assert parser.parse_request("FLUSH 10").ttl == 10

    def test_behavior_read(self, parser: CommandParser):
        """Test reading a behavior by option name."""
        cmd = parser.parse_request("BEHAVIOR connect-timeout")
        assert cmd.behavior == Behavior.CONNECT_TIMEOUT
        assert cmd.behavior_value is None

    def test_behavior_write(self, parser: CommandParser):
        """Test setting a behavior by enum name."""
        cmd = parser.parse_request("BEHAVIOR TCP_NODELAY 1")
        assert (cmd.behavior, cmd.behavior_value) == (Behavior.TCP_NODELAY, 1)

    def test_unknown_behavior(self, parser: CommandParser):
        """Test an unknown behavior name."""
        assert parser.parse_request("BEHAVIOR WARP_SPEED").type == CommandType.UNKNOWN

    def test_quit(self, parser: CommandParser):
        """Test parsing QUIT."""
        assert parser.parse_request("QUIT").type == CommandType.QUIT
        assert parser.parse_request("QUIT now").type == CommandType.UNKNOWN

    @pytest.mark.parametrize("line", ["", "   ", "FOO bar", "SET 'unterminated"])
    def test_unknown(self, parser: CommandParser, line):
        """Test lines that are not commands."""
        assert parser.parse_request(line).type == CommandType.UNKNOWN

    def test_raw_kept(self, parser: CommandParser):
        """Test that the raw line is kept."""
        assert parser.parse_request("GET k\n").raw == "GET k"


class TestFormatResponse:

    def test_ok(self, parser: CommandParser):
        """Test formatting a success."""
        assert parser.format_response(Response.ok("true")) == "OK true\n"

    def test_ok_without_message(self, parser: CommandParser):
        """Test formatting a bare success."""
        assert parser.format_response(Response.ok()) == "OK\n"

    def test_error(self, parser: CommandParser):
        """Test formatting an error."""
        assert parser.format_response(Response.error("boom")) == "ERROR boom\n"

    def test_invalid(self, parser: CommandParser):
        """Test formatting an invalid command."""
        assert parser.format_response(Response.invalid("FOO")) == "ERROR invalid command 'FOO'\n"


class TestRenderValue:

    @pytest.mark.parametrize("value, text", [
        (None, "nil"),
        (True, "true"),
        (42, "42"),
        ("hello", "hello"),
        ("", '""'),
        ({"a": 1}, '{"a": 1}'),
        (b"\xff", "b'\\xff'"),
    ])
    def test_render(self, value, text):
        """Test rendering result values."""
        assert render_value(value) == text
