"""
Behavior identifiers

Integer flag identifiers understood by get_behavior()/set_behavior().
The numbering follows libmemcached's memcached_behavior_t so values saved
by other memcached tooling keep their meaning.
"""

from enum import IntEnum


class Behavior(IntEnum):
    NO_BLOCK = 0
    TCP_NODELAY = 1
    HASH = 2
    KETAMA = 3
    SOCKET_SEND_SIZE = 4
    SOCKET_RECV_SIZE = 5
    SUPPORT_CAS = 7
    POLL_TIMEOUT = 8
    DISTRIBUTION = 9
    BUFFER_REQUESTS = 10
    SORT_HOSTS = 12
    VERIFY_KEY = 13
    CONNECT_TIMEOUT = 14
    RETRY_TIMEOUT = 15
    KETAMA_WEIGHTED = 16
    KETAMA_HASH = 17
    BINARY_PROTOCOL = 18
    SND_TIMEOUT = 19
    RCV_TIMEOUT = 20
    SERVER_FAILURE_LIMIT = 21
    IO_MSG_WATERMARK = 22
    IO_BYTES_WATERMARK = 23
    IO_KEY_PREFETCH = 24
    HASH_WITH_PREFIX_KEY = 25
    NOREPLY = 26
    USE_UDP = 27
    AUTO_EJECT_HOSTS = 28
    NUMBER_OF_REPLICAS = 29
    RANDOMIZE_REPLICA_READ = 30
    TCP_KEEPALIVE = 32
    TCP_KEEPIDLE = 33
    REMOVE_FAILED_SERVERS = 35
    DEAD_TIMEOUT = 36

    @classmethod
    def from_option(cls, name: str) -> "Behavior":
        """Map a config string option name (e.g. 'CONNECT-TIMEOUT') to a Behavior."""
        return cls[name.upper().replace("-", "_")]
