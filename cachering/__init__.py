"""
cachering: Consistent Hashing Ring for Distributed Cache Clients

Maps cache keys onto a weighted set of cache servers using a ketama-style
continuum, so that assignments are deterministic and move as little as
possible when the server list changes.

Usage:
    servers = ServerSet.build(["cache1:11211:2", "cache2:11211"])
    ring = Ring.build(servers)
    ring.server_for("user:42").identity
"""

from .cluster import (
    ContinuumPoint,
    HashStrategy,
    KetamaHasher,
    Ring,
    Server,
    ServerSet,
    ServerSpec,
    Sha1Crc32Hasher,
    WeightSource,
    get_hash_strategy,
)
from .errors import ConfigError, EmptyRingError, RingError

__version__ = "1.0.0"

__all__ = [
    "ConfigError",
    "ContinuumPoint",
    "EmptyRingError",
    "HashStrategy",
    "KetamaHasher",
    "Ring",
    "RingError",
    "Server",
    "ServerSet",
    "ServerSpec",
    "Sha1Crc32Hasher",
    "WeightSource",
    "get_hash_strategy",
]
