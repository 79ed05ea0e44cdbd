#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
TrackObjects Demo Script - Leaked Connections and Listeners

Creates connection, listener and cache objects, "forgets" to release some
of them and shows what TrackObjects reports.

Usage:
    python examples/demo_leaks.py              # compact report
    python examples/demo_leaks.py --verbose    # one line per leaked object
    python examples/demo_leaks.py --count 20   # leak more objects
"""

import argparse
import gc
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import trackobjects


def print_banner(title: str):
    print(f"\n{'='*60}")
    print(f"  {title}")
    print(f"{'='*60}")


def run_demo(count: int, verbose: bool):
    # Arm before the classes below exist
    tokens = ["/Connection$|Listener$/", "-noend"]
    if verbose:
        tokens.append("-verbose")
    trackobjects.track(*tokens)

    class Connection:
        def __init__(self, host, port):
            self.host, self.port = host, port

        def __repr__(self):
            return f"<Connection {self.host}:{self.port}>"

    class Listener:
        def __init__(self, callback):
            self.callback = callback

    class CacheEntry:  # not matched by any condition
        def __init__(self, key):
            self.key = key

    registry = []

    print_banner("🔌 OPENING CONNECTIONS")
    pool = [Connection("db.internal", 5432 + i) for i in range(count)]
    # each listener keeps its connection alive through the callback
    registry.extend(Listener(lambda c=c: c.host) for c in pool[: count // 2])
    cache = {i: CacheEntry(i) for i in range(count)}
    print(f"Opened {count} connections, added {len(registry)} listeners")

    trackobjects.show_tracked(" before close")

    print_banner("🧹 CLOSING POOL (listeners still registered)")
    del pool
    cache.clear()
    gc.collect()
    trackobjects.show_tracked(" after close")

    status = trackobjects.get_status()
    perf = status['performance_stats']
    print(f"\n⚙️  Constructions seen: {perf['total_constructions']} | "
          f"tracked: {perf['tracked_constructions']} | "
          f"avg overhead: {perf['avg_overhead_us']}µs")


def main():
    parser = argparse.ArgumentParser(description="TrackObjects leak demo")
    parser.add_argument('--count', type=int, default=6,
                        help='Number of connections to open (default: 6)')
    parser.add_argument('--verbose', action='store_true',
                        help='Detailed report with construction sites')
    args = parser.parse_args()
    run_demo(args.count, args.verbose)


if __name__ == '__main__':
    main()
