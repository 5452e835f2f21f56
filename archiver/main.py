"""Archiver entry point — one scheduled run with --cron, otherwise an interactive menu."""

import argparse
import logging
import os
import shlex
import shutil
import subprocess
import sys

import yaml

from shared.config_loader import load_yaml, resolve_config_path
from shared.oplog import configure_logging, shutdown_logging
from archiver.src.config import ArchiverConfig
from archiver.src.runner import ArchiveRun
from archiver.src.schedule import CronSchedule

logger = logging.getLogger("archiver")

MENU = """
=== Hourly Log Archiver ===
1. Archive now
2. Install schedule (every {interval} minutes, archive at minute {minute:02d})
3. Remove schedule
4. Show schedule status
0. Exit
"""


def build_cli_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Hourly log archiver")
    parser.add_argument("--cron", action="store_true",
                        help="Run one archiving pass and exit (scheduled mode)")
    parser.add_argument("--config", default=None,
                        help="Path to YAML config file (default: $CONFIG_PATH or ./config.yml)")
    return parser


def cron_command(config_path: str | None) -> str:
    """Command line the crontab entry should invoke."""
    executable = shutil.which("log-archiver")
    argv = [executable] if executable else [sys.executable, "-m", "archiver.main"]
    path = resolve_config_path(config_path)
    if os.path.exists(path):
        argv += ["--config", os.path.abspath(path)]
    return shlex.join(argv)


def run_archiving(config: ArchiverConfig) -> int:
    try:
        configure_logging("archiver", [config.ops_log_file], config.perf_log_file)
    except OSError as e:
        print(f"Cannot open archiver logs in {config.archive_dir}: {e}", file=sys.stderr)
        return 1
    try:
        report = ArchiveRun(config).run()
    except (OSError, ValueError) as e:
        logger.error("Archiving failed: %s", e)
        return 1
    finally:
        shutdown_logging("archiver")
    print(f"Archiving finished in {report.duration_seconds:.3f}s "
          f"({report.extract.bytes_copied} new bytes, rollover: {report.rollover.outcome.value})")
    return 0


def show_status(schedule: CronSchedule, config: ArchiverConfig) -> None:
    entry = schedule.status()
    if entry:
        print("Schedule is active")
        print(f"  {entry}")
    else:
        print("Schedule is not installed")
    for label, path in (("Archive directory", config.archive_dir),
                        ("Position file", config.position_file),
                        ("Buffer file", config.buffer_file)):
        state = "exists" if os.path.exists(path) else "missing"
        print(f"{label}: {path} ({state})")


def run_menu(config: ArchiverConfig, schedule: CronSchedule) -> int:
    while True:
        print(MENU.format(interval=config.interval_minutes, minute=config.rollover_minute))
        try:
            choice = input("Choose an action (0-4): ").strip()
        except EOFError:
            return 0

        try:
            if choice == "1":
                run_archiving(config)
            elif choice == "2":
                if schedule.install():
                    print(f"Schedule installed: {schedule.entry}")
                    print(f"Archives are stored in {config.archive_dir}")
                else:
                    print("Schedule is already installed")
            elif choice == "3":
                if schedule.remove():
                    print("Schedule removed")
                else:
                    print("Schedule not found in crontab")
            elif choice == "4":
                show_status(schedule, config)
            elif choice == "0":
                print("Bye!")
                return 0
            else:
                print("Invalid choice, try again.")
        except (OSError, ValueError, subprocess.CalledProcessError) as e:
            print(f"Error: {e}")


def main(argv=None) -> int:
    args = build_cli_parser().parse_args(argv)
    try:
        config = ArchiverConfig.from_dict(load_yaml(args.config).get("archiver"))
    except (ValueError, yaml.YAMLError) as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 1

    if args.cron:
        return run_archiving(config)

    schedule = CronSchedule(config, cron_command(args.config))
    return run_menu(config, schedule)


if __name__ == "__main__":
    sys.exit(main())
