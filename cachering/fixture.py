#!/usr/bin/env python3
"""
cachering Fixture Report

Builds a ring from a list of servers, resolves a list of keys against it and
records which server owns each key. The resulting JSON table is what other
ring implementations are checked against.

Report format:
    {
      "servers": ["cache1.lvh.me:11210:20", ...],
      "keys": ["api:foo", ...],
      "results": [{"key": "api:foo", "server": "cache2.lvh.me:11211", "weight": 25}, ...]
    }

Usage:
    cachering-fixture --server cache1:11210 --server cache2:11211 --key api:foo
    cachering-fixture --server cache1:11210:20 --key api:foo --output keys.json
    cachering-fixture --verify keys.json        # Exit 1 on any mismatch
    cachering-fixture --hash sha1-crc32 ...     # Alternate hash strategy

Environment Variables:
    CACHERING_POINTS_PER_SERVER - Continuum points per unit of weight
    CACHERING_HASH_STRATEGY     - Default hash strategy name
    CACHERING_DEBUG             - Enable debug logging (true/false)
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from .cluster.hashing import HASH_STRATEGIES, HashStrategy, get_hash_strategy
from .cluster.ring import Ring
from .cluster.server_set import ServerSet
from .config.settings import settings
from .errors import ConfigError

logger = logging.getLogger(__name__)


def build_report(
    servers: Sequence[str],
    keys: Sequence[str],
    hash_strategy: Optional[HashStrategy] = None,
) -> Dict[str, Any]:
    """
    Resolve every key and collect the assignment table.

    Args:
        servers: Server entries in "host:port[:weight]" form
        keys: Cache keys to resolve
        hash_strategy: Strategy to build the ring with (settings default if None)

    Returns:
        Report dict with servers, keys and one result row per key

    Raises:
        ConfigError: If the server list is invalid
    """
    ring = Ring.build(ServerSet.build(servers), hash_strategy=hash_strategy)

    results = []
    for key in keys:
        server = ring.server_for(key)
        results.append({"key": key, "server": server.identity, "weight": server.weight})

    return {"servers": list(servers), "keys": list(keys), "results": results}


def verify_report(
    report: Dict[str, Any],
    hash_strategy: Optional[HashStrategy] = None,
) -> List[Dict[str, Any]]:
    """
    Check a stored report against a freshly built ring.

    Args:
        report: A dict in the shape produced by build_report()
        hash_strategy: Strategy to rebuild the ring with

    Returns:
        The mismatching rows as {"key", "expected", "actual"} dicts;
        empty when every key still resolves to the recorded server

    Raises:
        ConfigError: If the report is not in build_report() shape or its
            server list is invalid
    """
    _check_report_shape(report)
    ring = Ring.build(ServerSet.build(report["servers"]), hash_strategy=hash_strategy)

    mismatches = []
    for row in report["results"]:
        actual = ring.server_for(row["key"]).identity
        if actual != row["server"]:
            mismatches.append({"key": row["key"], "expected": row["server"], "actual": actual})

    logger.debug(f"Verified {len(report['results'])} rows, {len(mismatches)} mismatches")
    return mismatches


def _check_report_shape(report: Any) -> None:
    if not isinstance(report, dict):
        raise ConfigError(f"report must be a JSON object, got {type(report).__name__}")
    for field in ("servers", "results"):
        if not isinstance(report.get(field), list):
            raise ConfigError(f"report is missing a {field!r} list")
    for row in report["results"]:
        if not isinstance(row, dict) or not isinstance(row.get("key"), str) \
                or not isinstance(row.get("server"), str):
            raise ConfigError(f"malformed report row: {row!r}")


def write_report(report: Dict[str, Any], path: Path) -> None:
    """Write a report as pretty-printed JSON."""
    Path(path).write_text(json.dumps(report, indent=2) + "\n", encoding="utf-8")


def load_report(path: Path) -> Dict[str, Any]:
    """
    Read a report written by write_report().

    Raises:
        ConfigError: If the file can't be read or isn't valid JSON
    """
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except OSError as e:
        raise ConfigError(f"cannot read report {path}: {e.strerror or e}") from e
    except ValueError as e:
        raise ConfigError(f"report {path} is not valid JSON: {e}") from e


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="cachering: build or verify a key-to-server fixture table",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument(
        "--server", "-s",
        dest="servers",
        action="append",
        default=[],
        help="Server entry host:port[:weight], repeatable",
    )

    parser.add_argument(
        "--key", "-k",
        dest="keys",
        action="append",
        default=[],
        help="Cache key to resolve, repeatable",
    )

    parser.add_argument(
        "--output", "-o",
        type=Path,
        default=None,
        help="Write the report here instead of stdout",
    )

    parser.add_argument(
        "--verify",
        type=Path,
        default=None,
        help="Check an existing report instead of building one",
    )

    parser.add_argument(
        "--hash",
        dest="hash_strategy",
        choices=sorted(HASH_STRATEGIES),
        default=settings.HASH_STRATEGY,
        help="Hash strategy for points and keys",
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        default=settings.DEBUG,
        help="Enable debug logging",
    )

    return parser.parse_args(argv)


def setup_logging(debug: bool = False) -> None:
    """Configure logging based on debug flag. Logs go to stderr."""
    level = logging.DEBUG if debug else getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stderr),
        ]
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the fixture tool."""
    args = parse_args(argv)
    setup_logging(debug=args.debug)

    try:
        strategy = get_hash_strategy(args.hash_strategy)

        if args.verify is not None:
            report = load_report(args.verify)
            mismatches = verify_report(report, hash_strategy=strategy)
            for row in mismatches:
                logger.error(f"Key {row['key']!r}: expected {row['expected']}, got {row['actual']}")
            if mismatches:
                return 1
            logger.info(f"All {len(report['results'])} keys match {args.verify}")
            return 0

        report = build_report(args.servers, args.keys, hash_strategy=strategy)
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        return 2

    if args.output is not None:
        write_report(report, args.output)
        logger.info(f"Wrote {len(report['results'])} results to {args.output}")
    else:
        sys.stdout.write(json.dumps(report, indent=2) + "\n")

    return 0


if __name__ == "__main__":
    sys.exit(main())
