"""Archiver configuration loaded from the YAML archiver section."""

import os
import shlex
from dataclasses import dataclass

COMPRESSION_METHODS = ("command", "builtin")


@dataclass(frozen=True)
class ArchiverConfig:
    source_file: str = "/usr/local/x-ui/access.log"
    archive_dir: str = "/usr/local/x-ui/archives"
    position_file: str = "/usr/local/x-ui/last_archived_position.txt"
    buffer_file: str = "/usr/local/x-ui/temp_hourly_archive.log"
    rollover_minute: int = 0
    interval_minutes: int = 10
    compression: str = "command"
    compress_command: str = "gzip"
    ops_log_name: str = "archive.log"
    perf_log_file: str | None = "~/archiver.log"

    def __post_init__(self):
        if not 0 <= self.rollover_minute <= 59:
            raise ValueError(f"rollover_minute must be in 0..59, got {self.rollover_minute}")
        if not 1 <= self.interval_minutes <= 59:
            raise ValueError(f"interval_minutes must be in 1..59, got {self.interval_minutes}")
        if self.compression not in COMPRESSION_METHODS:
            raise ValueError(
                f"compression must be one of {', '.join(COMPRESSION_METHODS)}, got {self.compression!r}"
            )
        try:
            argv = shlex.split(self.compress_command)
        except ValueError as e:
            raise ValueError(f"compress_command {self.compress_command!r} cannot be parsed: {e}") from e
        if not argv:
            raise ValueError("compress_command must not be empty")

    @property
    def ops_log_file(self) -> str:
        return os.path.join(self.archive_dir, self.ops_log_name)

    @classmethod
    def from_dict(cls, d: dict | None) -> "ArchiverConfig":
        d = d or {}
        return cls(
            source_file=d.get("source_file", cls.source_file),
            archive_dir=d.get("archive_dir", cls.archive_dir),
            position_file=d.get("position_file", cls.position_file),
            buffer_file=d.get("buffer_file", cls.buffer_file),
            rollover_minute=int(d.get("rollover_minute", cls.rollover_minute)),
            interval_minutes=int(d.get("interval_minutes", cls.interval_minutes)),
            compression=d.get("compression", cls.compression),
            compress_command=d.get("compress_command", cls.compress_command),
            ops_log_name=d.get("ops_log_name", cls.ops_log_name),
            perf_log_file=d.get("perf_log_file", cls.perf_log_file),
        )
