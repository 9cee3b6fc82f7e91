"""
Pytest Configuration and Fixtures

This module provides shared fixtures and configuration for all tests.
"""

import random
import string
from typing import Dict, List

import pytest

from cachering.cluster.ring import Ring
from cachering.cluster.server_set import ServerSet


# Servers and keys from the cross-implementation fixture scenario
FIXTURE_SERVERS = [
    "cache1.lvh.me:11210:20",
    "cache2.lvh.me:11211:25",
    "cache3.lvh.me:11212:10",
]

FIXTURE_KEYS = [
    "api:foo",
    "api:foo:bar",
    "api:bar",
    "api:bar:foo",
    "foo:info",
    "foo:info/bar",
    "foo:info/baz",
]


class StubHasher:
    """
    Hash strategy with hand-picked values.

    Points come from a {identity: [hash, ...]} table (repeated if more are
    requested); keys hash to their own integer value, e.g. b"25" -> 25.
    """

    name = "stub"

    def __init__(self, points: Dict[str, List[int]]):
        self.points = points

    def key_hash(self, data: bytes) -> int:
        return int(data.decode())

    def point_hashes(self, label: str, count: int) -> List[int]:
        values = self.points[label]
        return [values[i % len(values)] for i in range(count)]


@pytest.fixture
def stub_hasher():
    """The StubHasher class, for building rings with hand-picked hashes."""
    return StubHasher


# ============================================================================
# ServerSet Fixtures
# ============================================================================

@pytest.fixture
def fixture_servers() -> ServerSet:
    """The three weighted lvh.me servers."""
    return ServerSet.build(FIXTURE_SERVERS)


@pytest.fixture
def equal_servers() -> ServerSet:
    """Five unweighted servers."""
    return ServerSet.build([f"cache{i}.example.com:11211" for i in range(1, 6)])


# ============================================================================
# Ring Fixtures
# ============================================================================

@pytest.fixture
def fixture_ring(fixture_servers: ServerSet) -> Ring:
    """Ketama ring over the weighted fixture servers."""
    return Ring.build(fixture_servers, points_per_server=40)


@pytest.fixture
def equal_ring(equal_servers: ServerSet) -> Ring:
    """Ketama ring over five equally weighted servers."""
    return Ring.build(equal_servers, points_per_server=40)


# ============================================================================
# Key Fixtures
# ============================================================================

@pytest.fixture(scope="session")
def sample_keys() -> List[str]:
    """A reproducible sample of 5000 random keys."""
    rng = random.Random(1234)
    alphabet = string.ascii_letters + string.digits + ":/_-"
    return [
        "".join(rng.choices(alphabet, k=rng.randint(1, 40)))
        for _ in range(5000)
    ]


# ============================================================================
# Pytest Configuration
# ============================================================================

def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
