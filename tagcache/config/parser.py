"""
Configuration String Parser

Turns a libmemcached-style option string into a ClientConfig.

Format:
    --SERVER=<host>[:<port>][/?<weight>]   One entry per server
    --SOCKET="<path>[/?<weight>]"          Unix domain socket server
    --<SWITCH>                             Boolean behavior, e.g. --TCP-NODELAY
    --<OPTION>=<int>                       Valued behavior, e.g. --CONNECT-TIMEOUT=500

Examples:
    >>> cfg = ConfigParser().parse("--SERVER=10.0.0.1:11211 --TCP-NODELAY")
    >>> cfg.servers[0].port
    11211
    >>> cfg.behaviors[Behavior.TCP_NODELAY]
    1
"""

import shlex
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..errors import ConfigError
from ..network.behaviors import Behavior
from .settings import settings

SWITCH_OPTIONS = frozenset({
    "BINARY-PROTOCOL",
    "BUFFER-REQUESTS",
    "HASH-WITH-PREFIX-KEY",
    "NOREPLY",
    "RANDOMIZE-REPLICA-READ",
    "SORT-HOSTS",
    "SUPPORT-CAS",
    "TCP-KEEPALIVE",
    "TCP-NODELAY",
    "USE-UDP",
    "VERIFY-KEY",
    "AUTO-EJECT-HOSTS",
    "KETAMA-WEIGHTED",
})

VALUED_OPTIONS = frozenset({
    "CONNECT-TIMEOUT",
    "DEAD-TIMEOUT",
    "IO-BYTES-WATERMARK",
    "IO-KEY-PREFETCH",
    "IO-MSG-WATERMARK",
    "NUMBER-OF-REPLICAS",
    "POLL-TIMEOUT",
    "RCV-TIMEOUT",
    "REMOVE-FAILED-SERVERS",
    "RETRY-TIMEOUT",
    "SERVER-FAILURE-LIMIT",
    "SND-TIMEOUT",
    "SOCKET-RECV-SIZE",
    "SOCKET-SEND-SIZE",
    "TCP-KEEPIDLE",
})


@dataclass(frozen=True)
class ServerAddress:
    """
    One cache server.

    Attributes:
        host: Hostname or address, or the socket path when is_socket is set
        port: TCP port (ignored for unix sockets)
        weight: Relative weight used by the hashing client
        is_socket: True for a unix domain socket
    """
    host: str
    port: int = settings.DEFAULT_PORT
    weight: int = 1
    is_socket: bool = False

    @property
    def target(self):
        """Address in the form pymemcache accepts."""
        if self.is_socket:
            return self.host
        return (self.host, self.port)

    def __str__(self) -> str:
        if self.is_socket:
            return self.host
        return f"{self.host}:{self.port}"


@dataclass
class ClientConfig:
    """Parsed configuration: servers plus behavior overrides."""
    servers: List[ServerAddress] = field(default_factory=list)
    behaviors: Dict[Behavior, int] = field(default_factory=dict)
    raw: str = ""


class ConfigParser:
    """Parser for libmemcached-style configuration strings."""

    def parse(self, data: str) -> ClientConfig:
        """
        Parse a configuration string.

        Args:
            data: The option string

        Returns:
            ClientConfig with at least one server

        Raises:
            ConfigError: Unknown option, malformed value or no server given
        """
        if not isinstance(data, str):
            raise ConfigError(f"configuration must be a string, not {type(data).__name__}")

        try:
            tokens = shlex.split(data)
        except ValueError as exc:
            raise ConfigError(f"malformed configuration string: {exc}") from exc

        config = ClientConfig(raw=data)
        for token in tokens:
            if not token.startswith("--"):
                raise ConfigError(f"unexpected token '{token}'")

            name, sep, value = token[2:].partition("=")
            name = name.upper()

            if name == "SERVER":
                config.servers.append(self._parse_server(value))
            elif name == "SOCKET":
                config.servers.append(self._parse_socket(value))
            elif name in SWITCH_OPTIONS:
                if sep:
                    raise ConfigError(f"option --{name} takes no value")
                config.behaviors[Behavior.from_option(name)] = 1
            elif name in VALUED_OPTIONS:
                config.behaviors[Behavior.from_option(name)] = self._parse_int(name, value)
            else:
                raise ConfigError(f"unknown option --{name}")

        if not config.servers:
            raise ConfigError("no servers configured")

        return config

    def _parse_server(self, value: str) -> ServerAddress:
        """
        Parse a --SERVER value.

        Format: host[:port][/?weight], IPv6 hosts in brackets.
        """
        if not value:
            raise ConfigError("--SERVER requires a value")

        address, weight = self._split_weight(value)

        port: Optional[str] = None
        if address.startswith("["):
            host, bracket, rest = address[1:].partition("]")
            if not bracket:
                raise ConfigError(f"unterminated IPv6 address in '{value}'")
            if rest:
                if not rest.startswith(":"):
                    raise ConfigError(f"malformed server '{value}'")
                port = rest[1:]
        else:
            host, colon, port_text = address.partition(":")
            if colon:
                port = port_text

        if not host:
            raise ConfigError(f"missing host in '{value}'")

        if port is None:
            return ServerAddress(host=host, weight=weight)

        port_number = self._parse_int("SERVER", port)
        if not 0 < port_number < 65536:
            raise ConfigError(f"port out of range in '{value}'")

        return ServerAddress(host=host, port=port_number, weight=weight)

    def _parse_socket(self, value: str) -> ServerAddress:
        """Parse a --SOCKET value (a filesystem path)."""
        path, weight = self._split_weight(value)
        if not path:
            raise ConfigError("--SOCKET requires a path")
        return ServerAddress(host=path, port=0, weight=weight, is_socket=True)

    def _split_weight(self, value: str):
        address, sep, weight = value.partition("/?")
        if not sep:
            return address, 1
        weight_number = self._parse_int("weight", weight)
        if weight_number <= 0:
            raise ConfigError(f"weight must be positive in '{value}'")
        return address, weight_number

    @staticmethod
    def _parse_int(name: str, value: str) -> int:
        try:
            number = int(value)
        except ValueError:
            raise ConfigError(f"option --{name} expects an integer, got '{value}'") from None
        if number < 0:
            raise ConfigError(f"option --{name} must not be negative")
        return number


def servers_to_config(servers: str) -> str:
    """Build a configuration string from a comma separated host:port list."""
    entries = [entry.strip() for entry in servers.split(",") if entry.strip()]
    return " ".join(f"--SERVER={entry}" for entry in entries)
