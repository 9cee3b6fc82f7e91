"""
Cluster module for cachering.

This module provides the key-to-server assignment core:
- Server list parsing and validation
- Pluggable 32-bit hash strategies
- Continuum construction and key lookup
"""

from .hashing import HASH_STRATEGIES, HashStrategy, KetamaHasher, Sha1Crc32Hasher, get_hash_strategy
from .ring import ContinuumPoint, Ring
from .server_set import Server, ServerSet, ServerSpec, WeightSource

__all__ = [
    'HASH_STRATEGIES',
    'ContinuumPoint',
    'HashStrategy',
    'KetamaHasher',
    'Ring',
    'Server',
    'ServerSet',
    'ServerSpec',
    'Sha1Crc32Hasher',
    'WeightSource',
    'get_hash_strategy',
]
