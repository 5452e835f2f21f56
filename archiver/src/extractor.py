"""Copies newly appended source bytes into the hourly buffer.

Tracking is byte-exact: each run copies exactly the bytes between the
persisted offset and the size observed at stat time, so bytes appended
while the copy runs are picked up by the next run. An unterminated last
line is copied as-is and completed by the next run. A copy that fails
partway is cut back out of the buffer before the error propagates.
"""

import logging
import os
from dataclasses import dataclass

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True)
class ExtractResult:
    lines: int
    bytes_copied: int
    offset: int
    truncated: bool = False


class Extractor:
    def __init__(self, source_file: str, buffer_file: str, store):
        self._source = source_file
        self._buffer = buffer_file
        self._store = store

    def extract(self) -> ExtractResult:
        """Append new source bytes to the buffer and persist the new offset.

        Raises OSError when the source cannot be stat'ed or the copy fails;
        the offset is only persisted after a successful copy.
        """
        size = os.stat(self._source).st_size
        offset = self._store.load()

        truncated = False
        if size < offset:
            logger.info("Source %s was truncated (was %d bytes, now %d), starting over",
                        self._source, offset, size)
            offset = 0
            truncated = True

        delta = size - offset
        if delta <= 0:
            logger.info("No new records to add to the buffer")
            self._store.save(size)
            return ExtractResult(lines=0, bytes_copied=0, offset=size, truncated=truncated)

        lines = self._copy_range(offset, delta)
        self._store.save(size)
        logger.info("Added %d new line(s) (%d bytes) to the buffer", lines, delta)
        return ExtractResult(lines=lines, bytes_copied=delta, offset=size, truncated=truncated)

    def _copy_range(self, start: int, length: int) -> int:
        newlines = 0
        last_byte = b""
        remaining = length
        with open(self._source, "rb") as src, open(self._buffer, "ab") as dst:
            buffer_len = dst.seek(0, os.SEEK_END)
            src.seek(start)
            try:
                while remaining > 0:
                    chunk = src.read(min(CHUNK_SIZE, remaining))
                    if not chunk:
                        raise OSError(
                            f"{self._source} ended at offset {start + length - remaining}, "
                            f"expected {start + length}"
                        )
                    dst.write(chunk)
                    newlines += chunk.count(b"\n")
                    last_byte = chunk[-1:]
                    remaining -= len(chunk)
            except OSError:
                # Drop the partial copy; the offset was not advanced.
                dst.truncate(buffer_len)
                raise
        if last_byte != b"\n":
            newlines += 1
        return newlines
