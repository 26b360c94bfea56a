"""
Shell Command and Response Definitions

Data structures for the text commands understood by the interactive
shell and the responses it prints.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, List, Optional


class CommandType(Enum):
    """Enumeration of supported command types."""
    GET = auto()
    MGET = auto()
    SET = auto()
    ADD = auto()
    REPLACE = auto()
    APPEND = auto()
    PREPEND = auto()
    DELETE = auto()
    TOUCH = auto()
    INCR = auto()
    DECR = auto()
    EXISTS = auto()
    FLUSH = auto()
    BEHAVIOR = auto()
    QUIT = auto()
    UNKNOWN = auto()


STORE_COMMANDS = frozenset({
    CommandType.SET,
    CommandType.ADD,
    CommandType.REPLACE,
    CommandType.APPEND,
    CommandType.PREPEND,
})


class ResponseStatus(Enum):
    """Enumeration of response statuses."""
    OK = "OK"
    ERROR = "ERROR"


@dataclass
class Command:
    """
    Represents a parsed shell command.

    Attributes:
        type: The command type
        key: The key for single-key commands
        keys: The keys of an MGET
        value: Typed value for store commands
        ttl: Expiration in seconds (store, TOUCH, FLUSH)
        delta: Amount for INCR/DECR
        behavior: Behavior flag for BEHAVIOR
        behavior_value: New behavior value, None to read it
        raw: The original input line
    """
    type: CommandType
    key: str = ""
    keys: List[str] = field(default_factory=list)
    value: Any = None
    ttl: int = 0
    delta: int = 1
    behavior: Optional[int] = None
    behavior_value: Optional[int] = None
    raw: str = ""


@dataclass
class Response:
    """
    Represents a shell response.

    Attributes:
        status: OK or ERROR
        message: Rendered result or error description
    """
    status: ResponseStatus
    message: str = ""

    @classmethod
    def ok(cls, message: str = "") -> "Response":
        return cls(status=ResponseStatus.OK, message=message)

    @classmethod
    def error(cls, message: str) -> "Response":
        return cls(status=ResponseStatus.ERROR, message=message)

    @classmethod
    def invalid(cls, raw: str) -> "Response":
        return cls.error(message=f"invalid command '{raw}'")
