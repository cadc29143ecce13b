#!/usr/bin/env python3
"""
Headless Tracking CLI

Run the cluster tracker over a synthetic event stream without GUI.

Usage:
    python headless.py                                  # One blob, default tracker
    python headless.py --blobs 3 --noise 5000           # Custom stream
    python headless.py --config configs/example_scenario.yaml

Examples:
    # Quick test
    python headless.py --duration 100 --seed 1

    # Larger clusters, nearest-cluster assignment
    python headless.py --cluster-size 0.2 --nearest
"""

import argparse
import json
import logging
import os
import sys

from blobtrack.io.scenario_loader import ScenarioLoader
from blobtrack.simulation import BlobSpec, HeadlessRunner, RunConfig, StreamConfig
from blobtrack.tracking import TrackerConfig


def default_blobs(n: int, size_x: int, size_y: int):
    """n blobs starting on the left edge, evenly spaced in y, moving right."""
    spacing = size_y / (n + 1)
    return [
        BlobSpec(x=size_x * 0.2, y=spacing * (i + 1), vx_pps=200.0 + 100.0 * i)
        for i in range(n)
    ]


def main():
    parser = argparse.ArgumentParser(description="Run headless cluster tracking")

    # Config file
    parser.add_argument("--config", type=str, default=None, help="YAML scenario file")

    # Sensor
    parser.add_argument("--size-x", type=int, default=128, help="Sensor width in pixels (default: 128)")
    parser.add_argument("--size-y", type=int, default=128, help="Sensor height in pixels (default: 128)")

    # Stream
    parser.add_argument("--blobs", type=int, default=1, help="Number of moving blobs (default: 1)")
    parser.add_argument(
        "--duration", type=float, default=200.0, help="Stream duration in ms (default: 200)"
    )
    parser.add_argument(
        "--noise", type=float, default=2000.0, help="Background noise rate in Hz (default: 2000)"
    )
    parser.add_argument("--seed", type=int, default=None, help="Random seed")

    # Tracker
    parser.add_argument(
        "--cluster-size", type=float, default=0.1, help="Cluster size as fraction of sensor (default: 0.1)"
    )
    parser.add_argument(
        "--mixing", type=float, default=0.05, help="Location mixing factor (default: 0.05)"
    )
    parser.add_argument(
        "--max-clusters", type=int, default=10, help="Maximum number of clusters (default: 10)"
    )
    parser.add_argument("--nearest", action="store_true", help="Assign events to nearest cluster")

    # Options
    parser.add_argument("--json", action="store_true", help="Print result as JSON")
    parser.add_argument("--quiet", action="store_true", help="Suppress output")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Load config
    if args.config:
        if not os.path.exists(args.config):
            print(f"Error: Config file not found: {args.config}")
            return 1
        try:
            config = ScenarioLoader(args.config).create_run_config()
        except ValueError as e:
            print(f"Error: {e}")
            return 1
    else:
        config = RunConfig(
            size_x=args.size_x,
            size_y=args.size_y,
            tracker=TrackerConfig(
                cluster_size=args.cluster_size,
                mixing_factor=args.mixing,
                max_num_clusters=args.max_clusters,
                use_nearest_cluster=args.nearest,
            ),
            stream=StreamConfig(
                duration_us=int(args.duration * 1000),
                noise_rate_hz=args.noise,
                seed=args.seed,
            ),
            blobs=default_blobs(args.blobs, args.size_x, args.size_y),
        )

    if not args.quiet and not args.json:
        print("=" * 60)
        print("Blobtrack Headless Mode")
        print("=" * 60)
        print(f"Sensor: {config.size_x} x {config.size_y} px")
        print(f"Blobs: {len(config.blobs)}")
        print(f"Duration: {config.stream.duration_us / 1000:.1f} ms")
        print(f"Noise: {config.stream.noise_rate_hz:.0f} Hz")
        print(f"Cluster size: {config.tracker.cluster_size:.2f}")
        print("=" * 60)

    # Run tracker
    runner = HeadlessRunner(config)
    result = runner.run()

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    elif not args.quiet:
        print("\n--- RESULTS ---")
        print(f"Events processed: {result.n_events:,}")
        print(f"Packets: {result.n_packets:,}")
        print(f"Clusters pruned: {result.n_pruned:,}")
        print(f"Max visible clusters: {result.max_visible}")
        print(f"Visible at end: {result.n_visible}")
        for c in result.final_clusters:
            if c.visible:
                print(
                    f"  #{c.id}: ({c.location[0]:.1f}, {c.location[1]:.1f}) "
                    f"speed={c.speed_pps:.0f} px/s events={c.num_events}"
                )
        print(f"Mean location error: {result.mean_location_error_px:.2f} px")
        print(f"Throughput: {result.events_per_second:,.0f} events/s")
        print("=" * 60)
    else:
        # Machine-readable output
        print(f"{result.n_visible}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
