"""
Server Set Module

Validates and normalizes the configured list of cache servers.

Accepted entry formats:
    host:port           -> weight defaults to 1
    host:port:weight    -> explicit positive integer weight
    [v6addr]:port       -> bracketed IPv6 literal
    [v6addr]:port:weight

Each server is identified by its normalized "host:port" string. Two entries
with the same identity are a configuration error regardless of weight.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, Iterator, Optional, Sequence, Tuple, Union

from ..config.settings import settings
from ..errors import ConfigError


class WeightSource(Enum):
    """Where a server's weight came from."""
    EXPLICIT = "explicit"
    DEFAULT = "default"


@dataclass(frozen=True)
class Server:
    """
    One cache server on the ring.

    Attributes:
        host: Normalized host name or address (lowercase, IPv6 in brackets)
        port: TCP port, 1-65535
        weight: Relative capacity, positive integer
    """
    host: str
    port: int
    weight: int = field(default_factory=lambda: settings.DEFAULT_WEIGHT)

    def __post_init__(self):
        if not isinstance(self.host, str):
            raise ConfigError(f"server host must be a string, got {type(self.host).__name__}")
        host = self.host.strip().lower()
        if not host:
            raise ConfigError("server host must not be empty")
        if any(c.isspace() for c in host):
            raise ConfigError(f"host contains whitespace: {self.host!r}")
        object.__setattr__(self, "host", host)

        for name in ("port", "weight"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigError(f"server {name} must be an integer, got {value!r}",
                                  entry=f"{host}:{self.port}")
        if not settings.MIN_PORT <= self.port <= settings.MAX_PORT:
            raise ConfigError(f"port {self.port} out of range {settings.MIN_PORT}-{settings.MAX_PORT}",
                              entry=f"{self.host}:{self.port}")
        if self.weight <= 0:
            raise ConfigError(f"weight must be positive, got {self.weight}",
                              entry=f"{self.host}:{self.port}")

    @property
    def identity(self) -> str:
        """The "host:port" string that names this server on the ring."""
        return f"{self.host}:{self.port}"

    def __str__(self) -> str:
        return self.identity


@dataclass(frozen=True)
class ServerSpec:
    """
    Parse result for a single server entry.

    weight is None exactly when weight_source is DEFAULT; the default is
    applied once, by resolve().
    """
    host: str
    port: int
    weight: Optional[int]
    weight_source: WeightSource
    raw: str = ""

    @classmethod
    def parse(cls, entry: str) -> "ServerSpec":
        """
        Parse a "host:port" or "host:port:weight" string.

        Args:
            entry: The raw server entry

        Returns:
            ServerSpec with host normalized and port/weight validated

        Raises:
            ConfigError: If the entry is malformed or out of range
        """
        if not isinstance(entry, str):
            raise ConfigError(f"server entry must be a string, got {type(entry).__name__}", entry=repr(entry))

        text = entry.strip()
        host, rest = _split_host(text, entry)
        parts = rest.split(":")

        if len(parts) == 1:
            port_text, weight_text = parts[0], None
        elif len(parts) == 2:
            port_text, weight_text = parts
        else:
            raise ConfigError(f"malformed server entry: {entry!r}", entry=entry)

        port = _parse_port(port_text, entry)

        if weight_text is None:
            return cls(host=host, port=port, weight=None,
                       weight_source=WeightSource.DEFAULT, raw=entry)

        weight = _parse_weight(weight_text, entry)
        return cls(host=host, port=port, weight=weight,
                   weight_source=WeightSource.EXPLICIT, raw=entry)

    @property
    def identity(self) -> str:
        return f"{self.host}:{self.port}"

    def resolve(self) -> Server:
        """Turn this spec into a Server, applying the default weight if needed."""
        if self.weight_source is WeightSource.DEFAULT:
            return Server(host=self.host, port=self.port)
        return Server(host=self.host, port=self.port, weight=self.weight)


def _split_host(text: str, entry: str) -> Tuple[str, str]:
    """Split off the host part, returning (host, "port[:weight]")."""
    if text.startswith("["):
        end = text.find("]")
        if end == -1 or text[end + 1:end + 2] != ":":
            raise ConfigError(f"malformed IPv6 server entry: {entry!r}", entry=entry)
        address = text[1:end].strip()
        if not address:
            raise ConfigError(f"missing host in server entry: {entry!r}", entry=entry)
        return f"[{address.lower()}]", text[end + 2:]

    host, sep, rest = text.partition(":")
    if not sep:
        raise ConfigError(f"server entry has no port: {entry!r}", entry=entry)

    host = host.strip().lower()
    if not host:
        raise ConfigError(f"missing host in server entry: {entry!r}", entry=entry)
    if any(c.isspace() for c in host):
        raise ConfigError(f"host contains whitespace: {entry!r}", entry=entry)
    return host, rest


def _is_ascii_number(text: str) -> bool:
    # str.isdigit() alone accepts characters like "²" that int() rejects
    return text.isascii() and text.isdigit()


def _parse_port(text: str, entry: str) -> int:
    text = text.strip()
    if not _is_ascii_number(text):
        raise ConfigError(f"invalid port {text!r} in server entry {entry!r}", entry=entry)

    port = int(text)
    if not settings.MIN_PORT <= port <= settings.MAX_PORT:
        raise ConfigError(
            f"port {port} out of range {settings.MIN_PORT}-{settings.MAX_PORT} "
            f"in server entry {entry!r}",
            entry=entry,
        )
    return port


def _parse_weight(text: str, entry: str) -> int:
    text = text.strip()
    digits = text[1:] if text.startswith("-") else text
    if not _is_ascii_number(digits):
        raise ConfigError(f"invalid weight {text!r} in server entry {entry!r}", entry=entry)

    weight = int(text)

    if weight <= 0:
        raise ConfigError(f"weight must be positive, got {weight} in server entry {entry!r}", entry=entry)
    return weight


class ServerSet:
    """
    Ordered, non-empty collection of unique servers.

    Order is the order the caller supplied and only affects the order in
    which continuum points are produced. Instances are immutable; build a
    new ServerSet to change the server list.

    Usage:
        servers = ServerSet.build(["cache1:11211", "cache2:11211:3"])
        len(servers)               # 2
        "cache1:11211" in servers  # True
    """

    __slots__ = ("_servers", "_by_identity")

    def __init__(self, servers: Sequence[Server]):
        """
        Initialize from already-resolved servers.

        Args:
            servers: Server instances in ring order

        Raises:
            ConfigError: If servers is empty or contains duplicate identities
        """
        try:
            servers = tuple(servers)
        except TypeError:
            raise ConfigError(f"servers must be a sequence, got {type(servers).__name__}") from None
        if not servers:
            raise ConfigError("no servers configured")

        by_identity: Dict[str, Server] = {}
        for server in servers:
            if not isinstance(server, Server):
                raise ConfigError(f"expected a Server, got {type(server).__name__}", entry=repr(server))
            if server.identity in by_identity:
                raise ConfigError(f"duplicate server: {server.identity}", entry=server.identity)
            by_identity[server.identity] = server

        self._servers = servers
        self._by_identity = by_identity

    @classmethod
    def build(cls, entries: Iterable[str]) -> "ServerSet":
        """
        Parse and validate a list of server entries.

        Args:
            entries: Strings in "host:port" or "host:port:weight" form

        Returns:
            A validated ServerSet

        Raises:
            ConfigError: On an empty list, a malformed entry, an invalid
                port or weight, or a duplicate host:port
        """
        if isinstance(entries, (str, bytes)):
            raise ConfigError("server entries must be a list, not a single string", entry=repr(entries))
        try:
            entries = list(entries)
        except TypeError:
            raise ConfigError(f"server entries must be a list, got {type(entries).__name__}") from None

        specs = [ServerSpec.parse(entry) for entry in entries]
        return cls(spec.resolve() for spec in specs)

    @property
    def servers(self) -> Tuple[Server, ...]:
        return self._servers

    @property
    def identities(self) -> Tuple[str, ...]:
        return tuple(server.identity for server in self._servers)

    @property
    def total_weight(self) -> int:
        return sum(server.weight for server in self._servers)

    def get(self, identity: str) -> Optional[Server]:
        """Look up a server by its "host:port" identity."""
        return self._by_identity.get(identity)

    def __len__(self) -> int:
        return len(self._servers)

    def __iter__(self) -> Iterator[Server]:
        return iter(self._servers)

    def __contains__(self, item: Union[Server, str]) -> bool:
        if isinstance(item, Server):
            return self._by_identity.get(item.identity) == item
        return item in self._by_identity

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ServerSet):
            return NotImplemented
        return self._servers == other._servers

    def __hash__(self) -> int:
        return hash(self._servers)

    def __repr__(self) -> str:
        entries = ", ".join(f"{s.identity}:{s.weight}" for s in self._servers)
        return f"ServerSet([{entries}])"
