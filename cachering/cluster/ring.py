"""
Consistent Hashing Ring Module

Builds the continuum for a ServerSet and resolves keys to servers.

Continuum construction:
    - Each server contributes points_per_server * weight points
    - Points are produced server by server, in ServerSet order
    - All points are stable-sorted by hash, so equal hashes keep the
      order they were produced in

Lookup:
    - Hash the key with the same strategy used for the points
    - Find the first point whose hash is >= the key hash
    - Past the last point, wrap around to the first one

A Ring is immutable once built. To change the server list, build a new
ServerSet and a new Ring and swap the reference held by callers.
"""

import logging
from bisect import bisect_left
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Sequence, Tuple, Union

from ..config.settings import settings
from ..errors import ConfigError, EmptyRingError
from .hashing import HashStrategy, KetamaHasher, get_hash_strategy
from .server_set import Server, ServerSet

logger = logging.getLogger(__name__)

Key = Union[str, bytes]


@dataclass(frozen=True)
class ContinuumPoint:
    """One hash point on the continuum and the server that owns it."""
    hash: int
    server: Server


class Ring:
    """
    Weighted consistent hashing ring.

    Lookups only read immutable tuples, so a single Ring can be shared by
    any number of threads or tasks without locking.

    Usage:
        ring = Ring.build(ServerSet.build(["cache1:11211", "cache2:11211:2"]))
        server = ring.server_for("session:abc")
    """

    __slots__ = ("_servers", "_points", "_hashes", "_hash_strategy",
                 "_points_per_server", "_sole_server")

    def __init__(
        self,
        points: Sequence[ContinuumPoint],
        servers: Optional[ServerSet] = None,
        hash_strategy: Optional[HashStrategy] = None,
        points_per_server: Optional[int] = None,
    ):
        """
        Wrap an already-built continuum.

        Most callers want Ring.build(). points must already be sorted by
        hash; an empty sequence yields a ring that raises EmptyRingError on
        every lookup.

        Args:
            points: Sorted continuum points
            servers: The ServerSet the points were generated from
            hash_strategy: Strategy used to hash lookup keys
            points_per_server: Point multiplier the continuum was built with
        """
        self._points: Tuple[ContinuumPoint, ...] = tuple(points)
        self._hashes: Tuple[int, ...] = tuple(point.hash for point in self._points)
        self._servers = servers
        self._hash_strategy = hash_strategy if hash_strategy is not None else KetamaHasher()
        self._points_per_server = points_per_server

        owners = {point.server for point in self._points}
        self._sole_server = owners.pop() if len(owners) == 1 else None

    @classmethod
    def build(
        cls,
        servers: ServerSet,
        hash_strategy: Optional[HashStrategy] = None,
        points_per_server: Optional[int] = None,
    ) -> "Ring":
        """
        Build the continuum for a server set.

        Args:
            servers: Validated servers, in ring order
            hash_strategy: Hash function for points and keys
                (defaults to settings.HASH_STRATEGY)
            points_per_server: Points per unit of weight
                (defaults to settings.POINTS_PER_SERVER)

        Returns:
            A new, immutable Ring

        Raises:
            ConfigError: If points_per_server is not a positive integer
        """
        if hash_strategy is None:
            hash_strategy = get_hash_strategy(settings.HASH_STRATEGY)
        if points_per_server is None:
            points_per_server = settings.POINTS_PER_SERVER

        if isinstance(points_per_server, bool) or not isinstance(points_per_server, int) \
                or points_per_server <= 0:
            raise ConfigError(f"points_per_server must be a positive integer, got {points_per_server!r}")

        points = []
        for server in servers:
            count = points_per_server * server.weight
            for point_hash in hash_strategy.point_hashes(server.identity, count):
                points.append(ContinuumPoint(hash=point_hash, server=server))

        # list.sort is stable: equal hashes stay in production order
        points.sort(key=lambda point: point.hash)

        logger.debug(
            f"Built continuum: {len(servers)} servers, {len(points)} points, "
            f"strategy={hash_strategy.name}"
        )

        return cls(points, servers=servers, hash_strategy=hash_strategy,
                   points_per_server=points_per_server)

    @property
    def servers(self) -> Optional[ServerSet]:
        return self._servers

    @property
    def points(self) -> Tuple[ContinuumPoint, ...]:
        return self._points

    @property
    def hash_strategy(self) -> HashStrategy:
        return self._hash_strategy

    @property
    def points_per_server(self) -> Optional[int]:
        return self._points_per_server

    def __len__(self) -> int:
        return len(self._points)

    def key_hash(self, key: Key) -> int:
        """Hash a lookup key with this ring's strategy."""
        if isinstance(key, str):
            key = key.encode("utf-8")
        return self._hash_strategy.key_hash(key)

    def point_for(self, key: Key) -> ContinuumPoint:
        """
        Find the continuum point that owns a key.

        Args:
            key: Cache key, str (UTF-8 encoded) or bytes

        Returns:
            The first point with hash >= the key's hash, wrapping to the
            first point of the continuum

        Raises:
            EmptyRingError: If the ring has no points
        """
        if not self._points:
            raise EmptyRingError("no servers configured or available")

        index = bisect_left(self._hashes, self.key_hash(key))
        if index == len(self._hashes):
            index = 0
        return self._points[index]

    def server_for(self, key: Key) -> Server:
        """
        Find the server responsible for a key.

        Args:
            key: Cache key, str (UTF-8 encoded) or bytes

        Returns:
            The owning Server

        Raises:
            EmptyRingError: If the ring has no points
        """
        if self._sole_server is not None:
            return self._sole_server
        return self.point_for(key).server

    def servers_for(self, keys: Iterable[Key]) -> Dict[Key, Server]:
        """Resolve many keys at once, preserving the order they were given."""
        return {key: self.server_for(key) for key in keys}

    def point_counts(self) -> Dict[str, int]:
        """Return the number of continuum points per server identity."""
        counts: Dict[str, int] = {}
        if self._servers is not None:
            counts = {identity: 0 for identity in self._servers.identities}
        for point in self._points:
            counts[point.server.identity] = counts.get(point.server.identity, 0) + 1
        return counts

    def __repr__(self) -> str:
        return (
            f"Ring(servers={len(self._servers) if self._servers is not None else 0}, "
            f"points={len(self._points)}, strategy={self._hash_strategy.name})"
        )
