#!/usr/bin/env python3
"""
Generate a batch of simulated detection records.

Usage:
    python scripts/simulate_detections.py --targets 12345679 25155310 --sector 1
    python scripts/simulate_detections.py --count 50 --seed 42 --output results/detections.csv
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

from exominer_demo.data.types import GeneratorConfig
from exominer_demo.errors import InvalidInputError
from exominer_demo.generation.generator import SyntheticDetectionGenerator
from exominer_demo.store.accumulator import ResultAccumulator

logger = logging.getLogger(__name__)


def build_requests(args):
    """Expand CLI arguments into (target_id, sector, overrides) tuples."""
    overrides = {'status': args.status, 'planet_type': args.planet_type}

    if args.targets:
        targets = args.targets
    else:
        targets = [str(10000000 + i * 12345) for i in range(args.count)]

    return [(target, args.sector, overrides) for target in targets]


def write_output(accumulator: ResultAccumulator, output_path: Path):
    """Write accumulated records as JSON (full records) or CSV (summary table)."""
    output_path.parent.mkdir(parents=True, exist_ok=True)

    if output_path.suffix == '.csv':
        accumulator.to_dataframe().to_csv(output_path, index=False)
    else:
        with open(output_path, 'w') as f:
            json.dump([record.to_dict() for record in accumulator.list()], f, indent=2)

    logger.info(f"Wrote {len(accumulator)} records to {output_path}")


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description='Generate simulated exoplanet detection records')
    parser.add_argument('--targets', nargs='+', help='Target ids (TIC/KIC/EPIC, prefix optional)')
    parser.add_argument('--count', type=int, default=10, help='Number of generated targets when --targets is omitted')
    parser.add_argument('--sector', type=int, default=1, help='Sector or campaign number')
    parser.add_argument('--status', choices=['exoplanet', 'candidate', 'false-positive'], help='Force a classification')
    parser.add_argument('--planet-type', help='Force a planet type (implies exoplanet)')
    parser.add_argument('--mission', choices=['TIC', 'KIC', 'EPIC'], default='TIC', help='Prefix for unprefixed target ids')
    parser.add_argument('--seed', type=int, default=None, help='Random seed')
    parser.add_argument('--latency', type=float, default=0.0, help='Simulated inference delay in seconds')
    parser.add_argument('--policy', choices=['append', 'upsert'], default='append', help='Duplicate key policy')
    parser.add_argument('--output', type=str, default='results/detections.json', help='Output file (.json or .csv)')
    parser.add_argument('--verbose', '-v', action='store_true', help='Enable debug logging')

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    config = GeneratorConfig(
        latency_seconds=args.latency,
        seed=args.seed,
        default_mission_prefix=args.mission
    )
    generator = SyntheticDetectionGenerator(config)
    accumulator = ResultAccumulator(
        duplicate_policy=args.policy,
        default_mission_prefix=config.default_mission_prefix
    )

    try:
        records = asyncio.run(generator.generate_batch(build_requests(args)))
    except InvalidInputError as e:
        logger.error(f"Invalid request: {e}")
        sys.exit(2)

    for record in records:
        accumulator.insert(record)

    counts = accumulator.status_counts()
    print("\n" + "=" * 60)
    print("SIMULATED DETECTION SUMMARY")
    print("=" * 60)
    for status, count in counts.items():
        print(f"{status.value:>16}: {count}")
    print(f"{'total':>16}: {len(accumulator)}")

    write_output(accumulator, Path(args.output))


if __name__ == '__main__':
    main()
