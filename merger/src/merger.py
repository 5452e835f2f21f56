"""Merges archived logs into one deduplicated, sorted file.

Lines are handled as bytes end to end, so the output order is plain byte
order and non-UTF-8 content passes through untouched. The output is fully
regenerated on every run from whatever archives are present.
"""

import gzip
import logging
import os
import shutil
import tempfile
import zlib
from dataclasses import dataclass, field

from shared.archive_names import parse_archive_timestamp
from merger.src.config import MergerConfig

logger = logging.getLogger(__name__)

READ_ERRORS = (OSError, EOFError, zlib.error)


@dataclass
class MergeReport:
    output_file: str
    archives_found: int = 0
    archives_merged: int = 0
    failed: list[str] = field(default_factory=list)
    unique_lines: int = 0


def list_archives(source_dir: str, include_plain: bool = False) -> list[str]:
    """Return archive filenames in *source_dir*, sorted by name.

    Plain ``access_*.log`` archives are only included with *include_plain*
    and only when no compressed sibling exists.
    """
    names = set(os.listdir(source_dir))
    archives = []
    for name in names:
        if not os.path.isfile(os.path.join(source_dir, name)):
            continue
        if name.endswith(".gz"):
            archives.append(name)
        elif (include_plain and parse_archive_timestamp(name) is not None
              and name + ".gz" not in names):
            archives.append(name)
    archives.sort()
    return archives


def read_lines(path: str) -> set[bytes]:
    """Return the non-blank lines of *path* with trailing whitespace removed."""
    lines = set()
    with open(path, "rb") as f:
        for raw in f:
            line = raw.rstrip()
            if line:
                lines.add(line)
    return lines


def decompress(gz_path: str, dest_path: str) -> None:
    """Decompress *gz_path* into *dest_path*, removing a partial file on error."""
    try:
        with gzip.open(gz_path, "rb") as f_in, open(dest_path, "wb") as f_out:
            shutil.copyfileobj(f_in, f_out)
    except Exception:
        if os.path.exists(dest_path):
            os.remove(dest_path)
        raise


def write_merged(output_file: str, lines) -> None:
    directory = os.path.dirname(output_file) or "."
    os.makedirs(directory, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=directory)
    try:
        with os.fdopen(fd, "wb") as f:
            for line in lines:
                f.write(line + b"\n")
        os.replace(tmp, output_file)
    except Exception:
        if os.path.exists(tmp):
            os.unlink(tmp)
        raise


class LogMerger:
    def __init__(self, config: MergerConfig):
        self._config = config

    def merge(self) -> MergeReport:
        """Merge every archive into the output file.

        Listing the source directory, creating the work directory and
        writing the output are fatal. A bad archive is skipped.
        """
        cfg = self._config
        archives = list_archives(cfg.source_dir, cfg.include_plain)
        os.makedirs(cfg.work_dir, exist_ok=True)
        report = MergeReport(output_file=cfg.output_file, archives_found=len(archives))

        merged: set[bytes] = set()
        scratch: list[str] = []
        try:
            for name in archives:
                lines = self._read_archive(name, scratch)
                if lines is None:
                    report.failed.append(name)
                    continue
                merged |= lines
                report.archives_merged += 1
        finally:
            self._cleanup(scratch)

        ordered = sorted(merged)
        write_merged(cfg.output_file, ordered)
        report.unique_lines = len(ordered)
        logger.info("Merged %d of %d archive(s) into %s (%d unique lines)",
                    report.archives_merged, report.archives_found, cfg.output_file,
                    report.unique_lines)
        return report

    def _read_archive(self, name: str, scratch: list[str]) -> set[bytes] | None:
        source = os.path.join(self._config.source_dir, name)
        if not name.endswith(".gz"):
            try:
                return read_lines(source)
            except READ_ERRORS as e:
                logger.warning("Failed to read %s: %s", source, e)
                return None

        extracted = os.path.join(self._config.work_dir, name[:-3])
        try:
            decompress(source, extracted)
        except READ_ERRORS as e:
            logger.warning("Failed to decompress %s: %s", source, e)
            return None
        scratch.append(extracted)
        try:
            return read_lines(extracted)
        except READ_ERRORS as e:
            logger.warning("Failed to read %s: %s", extracted, e)
            return None

    def _cleanup(self, paths: list[str]) -> None:
        for path in paths:
            try:
                os.remove(path)
            except FileNotFoundError:
                pass
            except OSError as e:
                logger.warning("Failed to remove %s: %s", path, e)
