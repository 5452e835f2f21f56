"""Compression providers used by the hourly rollover.

Both expose ``compress(path) -> str`` returning the ``.gz`` path and raise
on failure. The caller decides whether a failure is fatal.
"""

import gzip
import os
import shlex
import shutil
import subprocess

from archiver.src.config import ArchiverConfig


class GzipCompressor:
    """Gzip-compresses a file in place with the ``gzip`` module."""

    def compress(self, filepath: str) -> str:
        gz_path = filepath + ".gz"
        try:
            with open(filepath, "rb") as f_in, gzip.open(gz_path, "wb") as f_out:
                shutil.copyfileobj(f_in, f_out)
        except Exception:
            if os.path.exists(gz_path):
                os.remove(gz_path)
            raise
        os.remove(filepath)
        return gz_path


class CommandCompressor:
    """Runs an external gzip-compatible binary that replaces FILE with FILE.gz."""

    def __init__(self, command: str = "gzip", runner=subprocess.run):
        self._argv = shlex.split(command)
        self._run = runner

    def compress(self, filepath: str) -> str:
        self._run(self._argv + [filepath], check=True, capture_output=True)
        gz_path = filepath + ".gz"
        if not os.path.exists(gz_path):
            raise FileNotFoundError(f"{self._argv[0]} did not produce {gz_path}")
        return gz_path


def build_compressor(config: ArchiverConfig):
    if config.compression == "builtin":
        return GzipCompressor()
    return CommandCompressor(config.compress_command)
