"""Persists the byte offset into the source log between runs.

The state file holds one plain-text integer. Writes go through a tmp file
and ``os.replace`` so a crash leaves either the old or the new value.
Missing or corrupt state never fails the caller: it reads as offset 0.
"""

import logging
import os
import tempfile

logger = logging.getLogger(__name__)


class PositionStore:
    def __init__(self, position_file: str):
        self._path = position_file

    @property
    def path(self) -> str:
        return self._path

    def load(self) -> int:
        try:
            with open(self._path, "r", encoding="utf-8") as f:
                raw = f.read().strip()
        except FileNotFoundError:
            logger.warning("Position file %s not found, starting from offset 0", self._path)
            return 0
        except OSError as e:
            logger.warning("Failed to read position file %s: %s, starting from offset 0", self._path, e)
            return 0

        try:
            offset = int(raw)
        except ValueError:
            logger.warning("Position file %s is corrupt (%r), starting from offset 0", self._path, raw)
            return 0
        if offset < 0:
            logger.warning("Position file %s holds a negative offset (%d), starting from offset 0",
                           self._path, offset)
            return 0
        return offset

    def save(self, offset: int) -> None:
        directory = os.path.dirname(self._path) or "."
        os.makedirs(directory, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=directory)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(str(offset))
            os.replace(tmp, self._path)
        except Exception:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise


class MemoryPositionStore:
    """In-memory stand-in with the same load/save interface."""

    def __init__(self, offset: int = 0):
        self.offset = offset
        self.saves = 0

    def load(self) -> int:
        return self.offset

    def save(self, offset: int) -> None:
        self.offset = offset
        self.saves += 1
