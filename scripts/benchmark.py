#!/usr/bin/env python3
"""
Benchmark Script for cachering

Measures continuum build time, lookup throughput and how evenly keys spread
across servers for each hash strategy.

Usage:
    python scripts/benchmark.py                    # Run all benchmarks
    python scripts/benchmark.py --operations 10000 # Custom lookup count
    python scripts/benchmark.py --servers 50       # Custom cluster size
    python scripts/benchmark.py --profile          # Enable cProfile
"""

import argparse
import time
import random
import string
import statistics
from typing import List, Callable, Dict, Any
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from cachering.cluster.hashing import HASH_STRATEGIES, get_hash_strategy
from cachering.cluster.ring import Ring
from cachering.cluster.server_set import ServerSet


def random_string(length: int) -> str:
    """Generate a random alphanumeric string."""
    return ''.join(random.choices(string.ascii_letters + string.digits, k=length))


def measure_time(func: Callable, iterations: int = 1) -> Dict[str, float]:
    """Measure execution time statistics."""
    times = []

    for _ in range(iterations):
        start = time.perf_counter()
        func()
        elapsed = (time.perf_counter() - start) * 1000  # Convert to ms
        times.append(elapsed)

    return {
        "min_ms": min(times),
        "max_ms": max(times),
        "mean_ms": statistics.mean(times),
        "median_ms": statistics.median(times),
        "total_ms": sum(times),
    }


class Benchmark:
    """Collection of benchmarks for one hash strategy."""

    def __init__(self, strategy: str, operations: int = 10000, servers: int = 10, key_size: int = 16):
        self.strategy = strategy
        self.operations = operations
        self.key_size = key_size

        # Pre-generate test data
        self.entries = [f"cache{i}.local:{11211 + i}" for i in range(servers)]
        self.server_set = ServerSet.build(self.entries)
        self.keys = [random_string(key_size) for _ in range(operations)]

    def benchmark_build(self) -> Dict[str, Any]:
        """Benchmark continuum construction."""
        hasher = get_hash_strategy(self.strategy)

        def run():
            Ring.build(self.server_set, hash_strategy=hasher)

        stats = measure_time(run, iterations=10)
        stats["ops_per_second"] = 10 / (stats["total_ms"] / 1000)
        stats["operation"] = f"{self.strategy} build"
        stats["count"] = 10
        return stats

    def benchmark_lookup(self) -> Dict[str, Any]:
        """Benchmark server_for() on random keys."""
        ring = Ring.build(self.server_set, hash_strategy=get_hash_strategy(self.strategy))

        def run():
            for key in self.keys:
                ring.server_for(key)

        stats = measure_time(run)
        stats["ops_per_second"] = self.operations / (stats["total_ms"] / 1000)
        stats["operation"] = f"{self.strategy} lookup"
        stats["count"] = self.operations
        return stats

    def distribution(self) -> Dict[str, Any]:
        """Share of keys per server, as a coefficient of variation."""
        ring = Ring.build(self.server_set, hash_strategy=get_hash_strategy(self.strategy))
        counts = {identity: 0 for identity in self.server_set.identities}
        for key in self.keys:
            counts[ring.server_for(key).identity] += 1

        values = list(counts.values())
        mean = statistics.mean(values)
        return {
            "strategy": self.strategy,
            "min": min(values),
            "max": max(values),
            "cv": statistics.pstdev(values) / mean if mean else 0.0,
        }

    def run_all(self) -> List[Dict[str, Any]]:
        """Run all benchmarks."""
        benchmarks = [
            ("Build", self.benchmark_build),
            ("Lookup", self.benchmark_lookup),
        ]

        results = []
        for name, func in benchmarks:
            print(f"Running: {self.strategy} {name}...", end=" ", flush=True)
            result = func()
            print(f"{result['ops_per_second']:,.0f} ops/sec")
            results.append(result)

        return results


def print_results(results: List[Dict[str, Any]], spreads: List[Dict[str, Any]]):
    """Print benchmark results in a table."""
    print()
    print("=" * 70)
    print("                        BENCHMARK RESULTS")
    print("=" * 70)
    print(f"{'Operation':<30} {'Ops/sec':>12} {'Mean (ms)':>12} {'Total (ms)':>12}")
    print("-" * 70)

    for r in results:
        print(f"{r['operation']:<30} {r['ops_per_second']:>12,.0f} "
              f"{r['mean_ms']:>12.3f} {r['total_ms']:>12.1f}")

    print("=" * 70)
    print(f"{'Strategy':<30} {'Min keys':>12} {'Max keys':>12} {'CV':>12}")
    print("-" * 70)

    for s in spreads:
        print(f"{s['strategy']:<30} {s['min']:>12,} {s['max']:>12,} {s['cv']:>12.3f}")

    print("=" * 70)


def main():
    parser = argparse.ArgumentParser(
        description="Benchmark cachering ring construction and lookup",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument(
        "--operations", "-n",
        type=int,
        default=10000,
        help="Number of lookups per benchmark"
    )
    parser.add_argument(
        "--servers",
        type=int,
        default=10,
        help="Number of servers on the ring"
    )
    parser.add_argument(
        "--key-size",
        type=int,
        default=16,
        help="Size of keys"
    )
    parser.add_argument(
        "--profile",
        action="store_true",
        help="Enable cProfile profiling"
    )

    args = parser.parse_args()

    print(f"cachering Benchmark")
    print(f"===================")
    print(f"Lookups per test: {args.operations:,}")
    print(f"Servers: {args.servers}")
    print(f"Key size: {args.key_size}")
    print()

    benchmarks = [
        Benchmark(name, operations=args.operations, servers=args.servers, key_size=args.key_size)
        for name in sorted(HASH_STRATEGIES)
    ]

    def run():
        results = []
        for benchmark in benchmarks:
            results.extend(benchmark.run_all())
        return results, [benchmark.distribution() for benchmark in benchmarks]

    if args.profile:
        import cProfile
        import pstats

        profiler = cProfile.Profile()
        profiler.enable()
        results, spreads = run()
        profiler.disable()

        print_results(results, spreads)

        print()
        print("Profiling Results (top 20):")
        print("-" * 70)
        stats = pstats.Stats(profiler)
        stats.sort_stats('cumulative')
        stats.print_stats(20)
    else:
        results, spreads = run()
        print_results(results, spreads)


if __name__ == "__main__":
    main()
