"""
Shell Command Parser

Parses the text commands typed into the interactive shell and formats
responses.

Command Format:
    GET <key>
    MGET <key> [<key> ...]
    SET|ADD|REPLACE|APPEND|PREPEND <key> <value> [ttl]
    DELETE <key>
    TOUCH <key> <ttl>
    INCR|DECR <key> [delta]
    EXISTS <key>
    FLUSH [ttl]
    BEHAVIOR <name> [value]
    QUIT

Arguments are split shell-style, so values containing spaces can be
quoted: SET user '{"name": "Alice"}' 60
"""

import json
import re
import shlex
from typing import Any, List, Optional

from ..network.behaviors import Behavior
from .commands import STORE_COMMANDS, Command, CommandType, Response

_NUMBER = re.compile(r"[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")

SINGLE_KEY_COMMANDS = {
    "GET": CommandType.GET,
    "DELETE": CommandType.DELETE,
    "EXISTS": CommandType.EXISTS,
}


def parse_value(text: str) -> Any:
    """
    Give a command argument its natural type.

    Examples:
        >>> parse_value("true"), parse_value("42"), parse_value("1.5")
        (True, 42, 1.5)
        >>> parse_value('{"a": 1}')
        {'a': 1}
        >>> parse_value("hello")
        'hello'
    """
    lowered = text.lower()
    if lowered in ("true", "false"):
        return lowered == "true"

    if _NUMBER.fullmatch(text):
        try:
            return int(text)
        except ValueError:
            return float(text)

    if text[:1] in ("{", "["):
        try:
            return json.loads(text)
        except ValueError:
            return text

    return text


class CommandParser:
    """Parser for shell commands."""

    def parse_request(self, data: str) -> Command:
        """
        Parse an input line into a Command.

        Returns:
            Command object; type UNKNOWN for invalid or malformed input
        """
        raw = data.strip()
        unknown = Command(type=CommandType.UNKNOWN, raw=raw)
        if not raw:
            return unknown

        try:
            parts = shlex.split(raw)
        except ValueError:
            return unknown

        name = parts[0].upper()
        args = parts[1:]

        try:
            command = self._dispatch(name, args)
        except ValueError:
            return unknown

        if command is None:
            return unknown
        command.raw = raw
        return command

    def _dispatch(self, name: str, args: List[str]) -> Optional[Command]:
        if name in SINGLE_KEY_COMMANDS:
            if len(args) != 1:
                return None
            return Command(type=SINGLE_KEY_COMMANDS[name], key=args[0])

        if name == "MGET":
            if not args:
                return None
            return Command(type=CommandType.MGET, keys=args)

        command_type = CommandType.__members__.get(name)
        if command_type in STORE_COMMANDS:
            return self._parse_store(command_type, args)

        if name == "TOUCH":
            if len(args) != 2:
                return None
            return Command(type=CommandType.TOUCH, key=args[0], ttl=self._non_negative(args[1]))

        if name in ("INCR", "DECR"):
            if len(args) not in (1, 2):
                return None
            delta = self._non_negative(args[1]) if len(args) == 2 else 1
            return Command(type=CommandType[name], key=args[0], delta=delta)

        if name == "FLUSH":
            if len(args) > 1:
                return None
            ttl = self._non_negative(args[0]) if args else 0
            return Command(type=CommandType.FLUSH, ttl=ttl)

        if name == "BEHAVIOR":
            return self._parse_behavior(args)

        if name == "QUIT" and not args:
            return Command(type=CommandType.QUIT)

        return None

    def _parse_store(self, command_type: CommandType, args: List[str]) -> Optional[Command]:
        """
        Parse a store command.

        Format: <COMMAND> <key> <value> [ttl]
        """
        if len(args) not in (2, 3):
            return None

        ttl = self._non_negative(args[2]) if len(args) == 3 else 0
        return Command(
            type=command_type,
            key=args[0],
            value=parse_value(args[1]),
            ttl=ttl,
        )

    def _parse_behavior(self, args: List[str]) -> Optional[Command]:
        if len(args) not in (1, 2):
            return None
        try:
            flag = Behavior.from_option(args[0])
        except KeyError:
            return None

        value = self._non_negative(args[1]) if len(args) == 2 else None
        return Command(type=CommandType.BEHAVIOR, behavior=flag, behavior_value=value)

    @staticmethod
    def _non_negative(text: str) -> int:
        number = int(text)
        if number < 0:
            raise ValueError(f"negative number {number}")
        return number

    def format_response(self, response: Response) -> str:
        """
        Format a Response as a newline-terminated line.

        Examples:
            >>> CommandParser().format_response(Response.ok("true"))
            'OK true\\n'
        """
        prefix = response.status.value
        if response.message:
            return f"{prefix} {response.message}\n"
        return f"{prefix}\n"


def render_value(value: Any) -> str:
    """Render a client result for display."""
    if value is None:
        return "nil"
    if isinstance(value, bytes):
        return repr(value)
    if isinstance(value, str):
        return value if value else '""'
    return json.dumps(value, default=str)
