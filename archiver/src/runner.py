"""One scheduled invocation: extract new bytes, then evaluate the rollover."""

import logging
import os
import time
from dataclasses import dataclass
from datetime import datetime

from shared.oplog import log_perf
from archiver.src.config import ArchiverConfig
from archiver.src.compressor import build_compressor
from archiver.src.extractor import ExtractResult, Extractor
from archiver.src.position_store import PositionStore
from archiver.src.rollover import HourlyArchiver, RolloverOutcome, RolloverResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RunReport:
    started_at: datetime
    extract: ExtractResult
    rollover: RolloverResult
    duration_seconds: float


class ArchiveRun:
    def __init__(self, config: ArchiverConfig, store=None, compressor=None,
                 time_func=None, perf_name: str = "archiver"):
        self._config = config
        self._time_func = time_func or datetime.now
        self._perf_name = perf_name
        self._store = store if store is not None else PositionStore(config.position_file)
        self._extractor = Extractor(config.source_file, config.buffer_file, self._store)
        self._archiver = HourlyArchiver(
            config.archive_dir,
            config.buffer_file,
            compressor if compressor is not None else build_compressor(config),
            rollover_minute=config.rollover_minute,
            perf_name=perf_name,
        )

    def prepare_dirs(self) -> None:
        os.makedirs(self._config.archive_dir, exist_ok=True)
        for path in (self._config.position_file, self._config.buffer_file):
            directory = os.path.dirname(path)
            if directory:
                os.makedirs(directory, exist_ok=True)

    def run(self) -> RunReport:
        """Execute one run. OSError from any fatal step propagates."""
        now = self._time_func()
        start = time.perf_counter()
        logger.info("Starting archiving run")

        self.prepare_dirs()

        extract_start = time.perf_counter()
        extract = self._extractor.extract()
        if extract.bytes_copied:
            log_perf(self._perf_name, "EXTRACT_LINES", time.perf_counter() - extract_start,
                     f"extracted {extract.lines} lines from {extract.bytes_copied} bytes")

        rollover_start = time.perf_counter()
        rollover = self._archiver.evaluate(now)
        if rollover.outcome is RolloverOutcome.ARCHIVED:
            log_perf(self._perf_name, "ARCHIVE_HOURLY", time.perf_counter() - rollover_start,
                     f"created hourly archive {os.path.basename(rollover.archive_path)}")

        duration = time.perf_counter() - start
        logger.info("Archiving run finished in %.3fs. Source size: %d bytes, new bytes: %d",
                    duration, extract.offset, extract.bytes_copied)
        log_perf(self._perf_name, "TOTAL_RUN", duration,
                 f"processed {extract.offset} bytes, {extract.bytes_copied} new")
        return RunReport(started_at=now, extract=extract, rollover=rollover,
                         duration_seconds=duration)
