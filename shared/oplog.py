"""Operational logging for the command-line entry points.

Every component logs through ``logging.getLogger(__name__)``. The entry
points call :func:`configure_logging` once to attach the durable log files
and stdout to the component's root logger. Timings go to a separate
``<component>.perf`` logger that only writes to the PERF file.
"""

import logging
import os
import sys

LOG_FORMAT = "%(asctime)s [%(levelname)s]: %(message)s"
PERF_FORMAT = "%(asctime)s [PERF] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _reset(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def _file_handler(path: str, fmt: str) -> logging.FileHandler:
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    handler = logging.FileHandler(path, mode="a", encoding="utf-8")
    handler.setFormatter(logging.Formatter(fmt, datefmt=DATE_FORMAT))
    return handler


def configure_logging(name: str, log_files: list[str] | None = None,
                      perf_log_file: str | None = None, stream=None,
                      level: int = logging.INFO) -> logging.Logger:
    """Attach file and stream handlers to the *name* logger.

    Calling it again replaces the handlers from the previous call.
    *perf_log_file* also receives the regular operational messages, so a
    single local file holds the full narrative of a run.
    """
    logger = logging.getLogger(name)
    perf_logger = get_perf_logger(name)
    _reset(logger)
    _reset(perf_logger)

    logger.setLevel(level)
    logger.propagate = False

    console = logging.StreamHandler(stream or sys.stdout)
    console.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(console)

    for path in log_files or []:
        logger.addHandler(_file_handler(path, LOG_FORMAT))

    perf_logger.setLevel(logging.INFO)
    perf_logger.propagate = False
    if perf_log_file:
        perf_path = os.path.expanduser(perf_log_file)
        logger.addHandler(_file_handler(perf_path, LOG_FORMAT))
        perf_logger.addHandler(_file_handler(perf_path, PERF_FORMAT))
    else:
        perf_logger.addHandler(logging.NullHandler())
    return logger


def shutdown_logging(name: str) -> None:
    """Close every handler installed by :func:`configure_logging`."""
    _reset(logging.getLogger(name))
    _reset(get_perf_logger(name))


def get_perf_logger(name: str) -> logging.Logger:
    return logging.getLogger(f"{name}.perf")


def log_perf(name: str, operation: str, seconds: float, details: str) -> None:
    get_perf_logger(name).info("%s: %.3fs - %s", operation, seconds, details)
