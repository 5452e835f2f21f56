"""Merger entry point — merges all archives into one deduplicated, sorted file."""

import argparse
import logging
import sys

import yaml

from shared.config_loader import load_yaml
from shared.oplog import configure_logging, shutdown_logging
from merger.src.config import MergerConfig
from merger.src.merger import LogMerger

logger = logging.getLogger("merger")


def build_cli_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Merge archived logs into one sorted file")
    parser.add_argument("--config", default=None,
                        help="Path to YAML config file (default: $CONFIG_PATH or ./config.yml)")
    parser.add_argument("--source-dir", default=None, help="Override merger.source_dir")
    parser.add_argument("--output", default=None, help="Override merger.output_file")
    return parser


def main(argv=None) -> int:
    args = build_cli_parser().parse_args(argv)
    try:
        section = dict(load_yaml(args.config).get("merger") or {})
    except (ValueError, yaml.YAMLError) as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 1
    if args.source_dir:
        section["source_dir"] = args.source_dir
    if args.output:
        section["output_file"] = args.output
    config = MergerConfig.from_dict(section)

    configure_logging("merger")
    try:
        report = LogMerger(config).merge()
    except OSError as e:
        logger.error("Merge failed: %s", e)
        return 1
    finally:
        shutdown_logging("merger")

    if report.failed:
        print(f"Skipped {len(report.failed)} archive(s): {', '.join(report.failed)}")
    print(f"Logs merged and saved to {report.output_file}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
