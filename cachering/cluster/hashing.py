"""
Hash Strategy Module

The ring never hashes anything itself. It asks a hash strategy for two
things: the 32-bit hash of a lookup key, and the 32-bit point hashes for
one server label. Swapping strategies changes where keys land without
touching continuum construction or lookup.

Shipped strategies:
    ketama      MD5 based. Each digest of "<identity>-<j>" is sliced into
                four little-endian uint32 points; keys use the first four
                digest bytes, also little-endian.
    sha1-crc32  One SHA-1 digest per point over "<identity>:<i>", first four
                bytes big-endian; keys use CRC-32 (IEEE).
"""

import hashlib
import struct
import zlib
from typing import Dict, List, Protocol, Type, runtime_checkable

from ..errors import ConfigError

_UINT32_LE_X4 = struct.Struct("<4I")
_UINT32_LE = struct.Struct("<I")
_UINT32_BE = struct.Struct(">I")


@runtime_checkable
class HashStrategy(Protocol):
    """Interface every ring hash function implements."""

    name: str

    def key_hash(self, data: bytes) -> int:
        """Return the unsigned 32-bit hash of a lookup key."""
        ...

    def point_hashes(self, label: str, count: int) -> List[int]:
        """Return count unsigned 32-bit continuum points for a server label."""
        ...


class KetamaHasher:
    """
    MD5 ketama hashing, the default strategy.

    One MD5 digest yields four points, so a server needing N points costs
    ceil(N / 4) digest computations. Digest j hashes "<label>-<j>" and its
    bytes [0:4], [4:8], [8:12], [12:16] become points 4j .. 4j+3.
    """

    name = "ketama"
    points_per_digest = 4

    def key_hash(self, data: bytes) -> int:
        return _UINT32_LE.unpack_from(hashlib.md5(data).digest())[0]

    def point_hashes(self, label: str, count: int) -> List[int]:
        points: List[int] = []
        digests = -(-count // self.points_per_digest)

        for index in range(digests):
            digest = hashlib.md5(f"{label}-{index}".encode("utf-8")).digest()
            points.extend(_UINT32_LE_X4.unpack(digest))

        return points[:count]

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class Sha1Crc32Hasher:
    """SHA-1 point hashing with CRC-32 key hashing, one digest per point."""

    name = "sha1-crc32"

    def key_hash(self, data: bytes) -> int:
        return zlib.crc32(data) & 0xFFFFFFFF

    def point_hashes(self, label: str, count: int) -> List[int]:
        return [
            _UINT32_BE.unpack_from(hashlib.sha1(f"{label}:{index}".encode("utf-8")).digest())[0]
            for index in range(count)
        ]

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


HASH_STRATEGIES: Dict[str, Type] = {
    KetamaHasher.name: KetamaHasher,
    Sha1Crc32Hasher.name: Sha1Crc32Hasher,
}


def get_hash_strategy(name: str) -> HashStrategy:
    """
    Instantiate a hash strategy by name.

    Args:
        name: One of the keys of HASH_STRATEGIES

    Returns:
        A fresh strategy instance

    Raises:
        ConfigError: If no strategy has that name
    """
    try:
        return HASH_STRATEGIES[name.lower()]()
    except (KeyError, AttributeError):
        known = ", ".join(sorted(HASH_STRATEGIES))
        raise ConfigError(f"unknown hash strategy {name!r} (known: {known})") from None
