# main.py

import argparse
import json
import logging
import random
import sys

from ftree.analyzer import save_stats_to_csv, sweep
from ftree.config import (ConfigError, DebugLevel, InvalidParameterError, TopologyConfig,
                          coerce_width, config_from_dict, load_config)
from ftree.session import TopologySession

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Build and analyze a k-ary fat-tree with optical shortcuts")
    parser.add_argument("--config", help="YAML configuration file")
    parser.add_argument("--width", help="Radix k (rounded up to even, minimum 2)")
    parser.add_argument("--depth", help="Number of tiers (accepted, the model is fixed at 3)")
    parser.add_argument("--ocs", help="Number of optical shortcut links to attempt")
    parser.add_argument("--seed", help="Seed for the optical link draw")
    parser.add_argument("--sweep", type=int, nargs='+', metavar='K',
                        help="Analyze several radix values instead of a single build")
    parser.add_argument("--csv", help="Write the stats table to this CSV file")
    parser.add_argument("--json", action='store_true', help="Print topology and stats as JSON")
    parser.add_argument("--log-level", default=None, choices=[level.name for level in DebugLevel])
    return parser.parse_args(argv)


def resolve_config(args):
    """
    Merge the YAML file (if any) with command-line overrides.

    Raises:
        ConfigError: If the file cannot be loaded or the values are invalid.
    """
    file_config = {}
    config = TopologyConfig()
    if args.config:
        file_config = load_config(args.config)
        config = config_from_dict(file_config)

    overrides = {
        'width': args.width,
        'depth': args.depth,
        'optical_links': args.ocs,
        'seed': args.seed,
    }
    overrides = {key: value for key, value in overrides.items() if value is not None}
    try:
        config = config.replace(**overrides)
    except InvalidParameterError as e:
        raise ConfigError(str(e)) from e

    log_level = args.log_level or file_config.get('log_level', 'INFO')
    return config, DebugLevel[str(log_level).upper()]


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)

    try:
        config, log_level = resolve_config(args)
    except ConfigError as e:
        logging.error(f"Configuration Error: {e}")
        sys.exit(1)

    logging.addLevelName(DebugLevel.TRACE.value, "TRACE")
    logging.getLogger().setLevel(log_level.value)

    if args.sweep:
        k_values = [coerce_width(k) for k in args.sweep]
        results = sweep(k_values, config.optical_links, rng=random.Random(config.seed))
        for stats in results:
            print(stats)
    else:
        session = TopologySession(config)
        results = [session.stats]
        if args.json:
            print(json.dumps(session.to_dict(), indent=2))
        else:
            print(session.stats)

    if args.csv:
        save_stats_to_csv(results, args.csv)
    return results


if __name__ == '__main__':
    main()
