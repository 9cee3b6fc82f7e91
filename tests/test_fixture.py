"""
Tests for the fixture report

These tests verify the {key, server, weight} table other implementations are
compared against:
- The lvh.me scenario agrees with a from-scratch linear-scan computation
- Reports round-trip through JSON files
- verify_report() flags drift
- The cachering-fixture command line

Run with: python -m pytest tests/test_fixture.py -v
"""

import hashlib
import json
from pathlib import Path
from typing import List, Tuple

import pytest

from cachering.cluster.hashing import Sha1Crc32Hasher
from cachering.errors import ConfigError
from cachering.fixture import build_report, load_report, main, verify_report, write_report

from conftest import FIXTURE_KEYS, FIXTURE_SERVERS


def linear_scan_owner(servers: List[Tuple[str, int]], key: str, points_per_server: int = 40) -> str:
    """
    Resolve a key without the Ring class: build every MD5 point, then take
    the lowest point >= the key hash, or the lowest point overall.
    """
    points = []
    for identity, weight in servers:
        for j in range(points_per_server * weight // 4):
            digest = hashlib.md5(f"{identity}-{j}".encode()).digest()
            for k in range(4):
                points.append((int.from_bytes(digest[4 * k:4 * k + 4], "little"), identity))

    key_hash = int.from_bytes(hashlib.md5(key.encode()).digest()[:4], "little")
    above = [point for point in points if point[0] >= key_hash]
    # min() keeps the first of equal hashes, like a stable sort
    return min(above or points, key=lambda point: point[0])[1]


class TestBuildReport:
    """Test build_report() on the lvh.me scenario."""

    @pytest.fixture
    def report(self) -> dict:
        return build_report(FIXTURE_SERVERS, FIXTURE_KEYS)

    def test_report_shape(self, report: dict):
        """Test that the report lists servers, keys and one row per key."""
        assert report["servers"] == FIXTURE_SERVERS
        assert report["keys"] == FIXTURE_KEYS
        assert [row["key"] for row in report["results"]] == FIXTURE_KEYS
        assert all(set(row) == {"key", "server", "weight"} for row in report["results"])

    def test_matches_linear_scan(self, report: dict):
        """Test every assignment against an independent MD5 computation."""
        servers = [("cache1.lvh.me:11210", 20), ("cache2.lvh.me:11211", 25), ("cache3.lvh.me:11212", 10)]

        for row in report["results"]:
            assert row["server"] == linear_scan_owner(servers, row["key"])

    def test_weights_match_servers(self, report: dict):
        """Test that each row carries its server's declared weight."""
        weights = {"cache1.lvh.me:11210": 20, "cache2.lvh.me:11211": 25, "cache3.lvh.me:11212": 10}
        for row in report["results"]:
            assert row["weight"] == weights[row["server"]]

    def test_stable_across_builds(self, report: dict):
        """Test that rebuilding yields the identical table."""
        assert build_report(FIXTURE_SERVERS, FIXTURE_KEYS) == report

    def test_unweighted_matches_linear_scan(self):
        """Test the unweighted scenario the same way."""
        servers = ["cache1.lvh.me:11210", "cache2.lvh.me:11211", "cache3.lvh.me:11212"]
        report = build_report(servers, FIXTURE_KEYS)

        for row in report["results"]:
            assert row["weight"] == 1
            assert row["server"] == linear_scan_owner([(s, 1) for s in servers], row["key"])

    def test_bad_servers(self):
        """Test that an invalid server list raises ConfigError."""
        with pytest.raises(ConfigError):
            build_report(["bad-host-no-port"], FIXTURE_KEYS)


class TestReportFiles:
    """Test writing, loading and verifying reports."""

    def test_write_and_load(self, tmp_path: Path):
        """Test that a written report loads back unchanged."""
        report = build_report(FIXTURE_SERVERS, FIXTURE_KEYS)
        path = tmp_path / "keys.json"

        write_report(report, path)

        assert load_report(path) == report
        assert path.read_text(encoding="utf-8").endswith("}\n")

    def test_verify_clean_report(self):
        """Test that a fresh report verifies with no mismatches."""
        report = build_report(FIXTURE_SERVERS, FIXTURE_KEYS)
        assert verify_report(report) == []

    def test_verify_detects_drift(self):
        """Test that a tampered row is reported with expected and actual."""
        report = build_report(FIXTURE_SERVERS, FIXTURE_KEYS)
        actual = report["results"][0]["server"]
        report["results"][0]["server"] = "elsewhere.lvh.me:11299"

        assert verify_report(report) == [
            {"key": FIXTURE_KEYS[0], "expected": "elsewhere.lvh.me:11299", "actual": actual},
        ]

    def test_verify_with_other_strategy(self):
        """Test that verification uses the strategy it is given."""
        report = build_report(FIXTURE_SERVERS, FIXTURE_KEYS, hash_strategy=Sha1Crc32Hasher())
        assert verify_report(report, hash_strategy=Sha1Crc32Hasher()) == []

    def test_load_missing_file(self, tmp_path: Path):
        """Test that an unreadable report path raises ConfigError."""
        with pytest.raises(ConfigError):
            load_report(tmp_path / "missing.json")

    def test_load_invalid_json(self, tmp_path: Path):
        """Test that a file that isn't JSON raises ConfigError."""
        path = tmp_path / "keys.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(ConfigError):
            load_report(path)

    @pytest.mark.parametrize("report", [
        [],
        {"results": []},
        {"servers": FIXTURE_SERVERS},
        {"servers": "cache1:11211", "results": []},
        {"servers": FIXTURE_SERVERS, "results": [{"key": "api:foo"}]},
        {"servers": FIXTURE_SERVERS, "results": [{"key": 1, "server": "cache1.lvh.me:11210"}]},
        {"servers": FIXTURE_SERVERS, "results": ["api:foo"]},
        {"servers": None, "results": []},
    ])
    def test_verify_malformed_report(self, report):
        """Test that a report not in build_report() shape raises ConfigError."""
        with pytest.raises(ConfigError):
            verify_report(report)


class TestCommandLine:
    """Test the cachering-fixture entry point."""

    @staticmethod
    def argv(*extra: str) -> List[str]:
        args = []
        for server in FIXTURE_SERVERS:
            args += ["--server", server]
        for key in FIXTURE_KEYS:
            args += ["--key", key]
        return args + list(extra)

    def test_prints_report(self, capsys):
        """Test that the report goes to stdout as JSON."""
        assert main(self.argv()) == 0

        printed = json.loads(capsys.readouterr().out)
        assert printed == build_report(FIXTURE_SERVERS, FIXTURE_KEYS)

    def test_writes_output_file(self, tmp_path: Path):
        """Test --output."""
        path = tmp_path / "keys.json"

        assert main(self.argv("--output", str(path))) == 0
        assert load_report(path) == build_report(FIXTURE_SERVERS, FIXTURE_KEYS)

    def test_hash_option(self, capsys):
        """Test --hash selects the strategy."""
        assert main(self.argv("--hash", "sha1-crc32")) == 0

        printed = json.loads(capsys.readouterr().out)
        assert printed == build_report(FIXTURE_SERVERS, FIXTURE_KEYS, hash_strategy=Sha1Crc32Hasher())

    def test_verify_ok(self, tmp_path: Path):
        """Test --verify on a matching report."""
        path = tmp_path / "keys.json"
        write_report(build_report(FIXTURE_SERVERS, FIXTURE_KEYS), path)

        assert main(["--verify", str(path)]) == 0

    def test_verify_mismatch(self, tmp_path: Path):
        """Test --verify exits 1 when a row has drifted."""
        report = build_report(FIXTURE_SERVERS, FIXTURE_KEYS)
        report["results"][-1]["server"] = "elsewhere.lvh.me:11299"
        path = tmp_path / "keys.json"
        write_report(report, path)

        assert main(["--verify", str(path)]) == 1

    def test_config_error_exit_code(self, capsys):
        """Test that a bad server list exits 2 and prints nothing on stdout."""
        assert main(["--server", "cache1:70000", "--key", "api:foo"]) == 2
        assert capsys.readouterr().out == ""

    def test_no_servers(self):
        """Test that running without servers is a configuration error."""
        assert main(["--key", "api:foo"]) == 2

    @pytest.mark.parametrize("content", [
        None,
        "{not json",
        '["cache1:11211"]',
        '{"servers": ["cache1:11211"]}',
        '{"servers": ["cache1:11211"], "results": [{"key": "api:foo"}]}',
    ])
    def test_verify_bad_report_exit_code(self, tmp_path: Path, capsys, content):
        """Test that a missing, unparsable or misshapen report exits 2."""
        path = tmp_path / "keys.json"
        if content is not None:
            path.write_text(content, encoding="utf-8")

        assert main(["--verify", str(path)]) == 2
        assert capsys.readouterr().out == ""
