#!/usr/bin/env python3
"""
tagcache Interactive Shell

A small command-line client for trying out a cache cluster by hand.
Structured values are stored as JSON.

Usage:
    tagcache                                   # localhost:11211 (TAGCACHE_SERVERS)
    tagcache --config="--SERVER=10.0.0.1:11211 --TCP-NODELAY"
    tagcache --memory                          # in-process backend, no server
    tagcache --debug                           # debug logging

Type 'help' at the prompt for the list of commands.
"""

import argparse
import json
import logging
import sys

# Enable command history with arrow keys (works on Unix systems)
try:
    import readline  # noqa: F401
except ImportError:
    pass  # readline not available on Windows by default

from .cache.client import Client
from .cache.memory import MemoryBackend
from .config.parser import servers_to_config
from .config.settings import settings
from .errors import TagCacheError
from .protocol.commands import Command, CommandType, Response
from .protocol.parser import CommandParser, render_value

logger = logging.getLogger(__name__)

HELP = """
Cache Commands:
---------------
  GET <key>                         Fetch a value
  MGET <key> [<key> ...]            Fetch several values in one batch
  SET <key> <value> [ttl]           Store a value
  ADD <key> <value> [ttl]           Store only if the key is new
  REPLACE <key> <value> [ttl]       Store only if the key exists
  APPEND <key> <value> [ttl]        Append to a stored value
  PREPEND <key> <value> [ttl]       Prepend to a stored value
  DELETE <key>                      Delete a key
  TOUCH <key> <ttl>                 Set a new expiration
  INCR <key> [delta]                Increment a counter
  DECR <key> [delta]                Decrement a counter
  EXISTS <key>                      Check whether a key exists
  FLUSH [ttl]                       Invalidate all items
  BEHAVIOR <name> [value]           Read or change a behavior
  QUIT                              Close the client and exit

Values: true/false are booleans, numeric text is a number, text starting
with { or [ is JSON, anything else is text. Quote values with spaces.
"""


def setup_logging(debug: bool = False) -> None:
    """Configure logging based on debug flag."""
    level = logging.DEBUG if debug else getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stderr),
        ]
    )


def execute(client: Client, command: Command) -> Response:
    """Run a parsed command against a client."""
    kind = command.type
    try:
        if kind is CommandType.GET:
            result = client.get(command.key)
        elif kind is CommandType.MGET:
            result = client.get_multi(command.keys)
        elif kind is CommandType.SET:
            result = client.set(command.key, command.value, command.ttl)
        elif kind is CommandType.ADD:
            result = client.add(command.key, command.value, command.ttl)
        elif kind is CommandType.REPLACE:
            result = client.replace(command.key, command.value, command.ttl)
        elif kind is CommandType.APPEND:
            result = client.append(command.key, command.value, command.ttl)
        elif kind is CommandType.PREPEND:
            result = client.prepend(command.key, command.value, command.ttl)
        elif kind is CommandType.DELETE:
            result = client.delete(command.key)
        elif kind is CommandType.TOUCH:
            result = client.touch(command.key, command.ttl)
        elif kind is CommandType.INCR:
            result = client.incr(command.key, command.delta)
        elif kind is CommandType.DECR:
            result = client.decr(command.key, command.delta)
        elif kind is CommandType.EXISTS:
            result = client.exists(command.key)
        elif kind is CommandType.FLUSH:
            result = client.flush(command.ttl)
        elif kind is CommandType.BEHAVIOR:
            if command.behavior_value is None:
                result = client.get_behavior(command.behavior)
            else:
                result = client.set_behavior(command.behavior, command.behavior_value)
        elif kind is CommandType.QUIT:
            result = client.close()
        else:
            return Response.invalid(command.raw)
    except (TagCacheError, ValueError) as exc:
        return Response.error(str(exc))

    return Response.ok(render_value(result))


def open_client(config: str, memory: bool = False) -> Client:
    """Create a Client storing structured values as JSON."""
    return Client(
        config,
        encode=json.dumps,
        decode=json.loads,
        backend_factory=MemoryBackend if memory else None,
    )


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Interactive shell for a memcached cluster",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "--config",
        type=str,
        default=servers_to_config(settings.SERVERS),
        help="libmemcached-style configuration string",
    )
    parser.add_argument(
        "--memory",
        action="store_true",
        help="Use the in-process backend instead of a server",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        default=settings.DEBUG,
        help="Enable debug logging",
    )
    return parser.parse_args(argv)


def main(argv=None) -> None:
    """Main entry point for the shell."""
    args = parse_args(argv)
    setup_logging(debug=args.debug)

    try:
        client = open_client(args.config, memory=args.memory)
    except (TagCacheError, TypeError) as exc:
        print(f"Cannot open client: {exc}")
        sys.exit(1)

    parser = CommandParser()
    print("tagcache shell. Type 'help' for commands.\n")

    try:
        while True:
            try:
                line = input(">>> ").strip()
            except EOFError:
                print()
                break

            if not line:
                continue

            lower = line.lower()
            if lower == "help":
                print(HELP)
                continue
            if lower == "exit":
                break

            command = parser.parse_request(line)
            response = execute(client, command)
            print(parser.format_response(response), end="")

            if command.type is CommandType.QUIT:
                break
    except KeyboardInterrupt:
        print("\nInterrupted.")
    finally:
        client.close()
        logger.debug("Shell closed")


if __name__ == "__main__":
    main()
