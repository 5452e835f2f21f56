"""Hourly rollover of the accumulator buffer into a timestamped archive.

The archiver sits in IDLE until an invocation lands on the rollover minute,
moves to ROLLING while it renames and compresses the buffer, and returns to
IDLE. The rename happens before compression, so once it succeeds the data
is durable in the archive directory and the buffer is always reset.
"""

import enum
import logging
import os
import subprocess
import time
from dataclasses import dataclass
from datetime import datetime

from shared.archive_names import archive_name
from shared.oplog import log_perf

logger = logging.getLogger(__name__)


class RolloverState(enum.Enum):
    IDLE = "idle"
    ROLLING = "rolling"


class RolloverOutcome(enum.Enum):
    NOT_DUE = "not_due"
    EMPTY = "empty"
    ARCHIVED = "archived"
    COLLISION = "collision"


@dataclass(frozen=True)
class RolloverResult:
    outcome: RolloverOutcome
    archive_path: str | None = None
    compressed: bool = False
    bytes_archived: int = 0
    minutes_remaining: int = 0


class HourlyArchiver:
    def __init__(self, archive_dir: str, buffer_file: str, compressor,
                 rollover_minute: int = 0, perf_name: str = "archiver"):
        self._archive_dir = archive_dir
        self._buffer = buffer_file
        self._compressor = compressor
        self._rollover_minute = rollover_minute
        self._perf_name = perf_name
        self.state = RolloverState.IDLE

    def minutes_until_rollover(self, now: datetime) -> int:
        return (self._rollover_minute - now.minute) % 60

    def evaluate(self, now: datetime) -> RolloverResult:
        """Run one tick of the state machine for the invocation time *now*."""
        remaining = self.minutes_until_rollover(now)
        if remaining != 0:
            logger.info("Hourly archive will be created in %d minute(s) (at minute %02d)",
                        remaining, self._rollover_minute)
            return RolloverResult(RolloverOutcome.NOT_DUE, minutes_remaining=remaining)

        self.state = RolloverState.ROLLING
        try:
            return self._roll(now)
        finally:
            self.state = RolloverState.IDLE

    def _roll(self, now: datetime) -> RolloverResult:
        try:
            size = os.stat(self._buffer).st_size
        except FileNotFoundError:
            size = 0

        if size == 0:
            logger.info("Buffer is empty, no hourly archive created")
            self._reset_buffer()
            return RolloverResult(RolloverOutcome.EMPTY)

        archive_path = os.path.join(self._archive_dir, archive_name(now))
        if os.path.exists(archive_path) or os.path.exists(archive_path + ".gz"):
            logger.error("Archive %s already exists, keeping the buffer for the next cycle",
                         archive_path)
            return RolloverResult(RolloverOutcome.COLLISION, archive_path=archive_path)

        move_start = time.perf_counter()
        os.rename(self._buffer, archive_path)
        log_perf(self._perf_name, "MOVE_TEMP_FILE", time.perf_counter() - move_start,
                 f"moved {size} bytes")

        compressed = False
        final_path = archive_path
        compress_start = time.perf_counter()
        try:
            final_path = self._compressor.compress(archive_path)
            compressed = True
        except (OSError, subprocess.CalledProcessError) as e:
            logger.error("Failed to compress archive %s: %s", archive_path, e)
        else:
            logger.info("Archived hourly log to %s", final_path)
            log_perf(self._perf_name, "COMPRESS_ARCHIVE", time.perf_counter() - compress_start,
                     f"compressed {size} bytes")

        self._reset_buffer()
        return RolloverResult(RolloverOutcome.ARCHIVED, archive_path=final_path,
                              compressed=compressed, bytes_archived=size)

    def _reset_buffer(self) -> None:
        with open(self._buffer, "wb"):
            pass
