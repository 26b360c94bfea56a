"""Shell protocol module for tagcache."""

from .commands import Command, CommandType, Response, ResponseStatus
from .parser import CommandParser, parse_value, render_value

__all__ = [
    "Command",
    "CommandParser",
    "CommandType",
    "Response",
    "ResponseStatus",
    "parse_value",
    "render_value",
]
