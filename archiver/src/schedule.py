"""Installs, removes and inspects the crontab entry that drives the archiver.

Entries are recognised by a trailing marker comment, so the command path
can change between installs without leaving stale lines behind.
"""

import logging
import os
import subprocess
import tempfile

from archiver.src.config import ArchiverConfig

logger = logging.getLogger(__name__)

CRON_MARKER = "# hourly-log-archiver"


class CronSchedule:
    def __init__(self, config: ArchiverConfig, command: str, runner=subprocess.run):
        self._config = config
        self._command = command
        self._run = runner

    @property
    def entry(self) -> str:
        return f"*/{self._config.interval_minutes} * * * * {self._command} --cron {CRON_MARKER}"

    def _read_crontab(self) -> str:
        result = self._run(["crontab", "-l"], capture_output=True, text=True)
        if result.returncode != 0:
            if "no crontab" in (result.stderr or "").lower():
                return ""
            raise subprocess.CalledProcessError(
                result.returncode, ["crontab", "-l"], result.stdout, result.stderr
            )
        return result.stdout or ""

    def _write_crontab(self, content: str) -> None:
        fd, tmp = tempfile.mkstemp(prefix="crontab_")
        try:
            with os.fdopen(fd, "w") as f:
                f.write(content)
            self._run(["crontab", tmp], check=True, capture_output=True, text=True)
        finally:
            os.unlink(tmp)

    def prepare_state(self) -> None:
        """Create the archive directory, position file and buffer if missing."""
        os.makedirs(self._config.archive_dir, exist_ok=True)
        if not os.path.exists(self._config.position_file):
            os.makedirs(os.path.dirname(self._config.position_file) or ".", exist_ok=True)
            with open(self._config.position_file, "w", encoding="utf-8") as f:
                f.write("0")
            logger.info("Created position file %s", self._config.position_file)
        if not os.path.exists(self._config.buffer_file):
            os.makedirs(os.path.dirname(self._config.buffer_file) or ".", exist_ok=True)
            open(self._config.buffer_file, "wb").close()
            logger.info("Created buffer file %s", self._config.buffer_file)

    def install(self) -> bool:
        """Add the cron entry. Returns False if one was already installed."""
        self.prepare_state()
        current = self._read_crontab()
        if any(CRON_MARKER in line for line in current.splitlines()):
            logger.warning("Cron entry already installed")
            return False
        if current and not current.endswith("\n"):
            current += "\n"
        self._write_crontab(current + self.entry + "\n")
        logger.info("Installed cron entry: %s", self.entry)
        return True

    def remove(self) -> bool:
        """Drop every marked cron entry. Returns False if none was found."""
        current = self._read_crontab()
        lines = current.splitlines()
        kept = [line for line in lines if CRON_MARKER not in line]
        if len(kept) == len(lines):
            logger.info("No cron entry found")
            return False
        self._write_crontab("\n".join(kept) + "\n" if kept else "")
        logger.info("Removed cron entry")
        return True

    def status(self) -> str | None:
        """Return the installed cron line, or None."""
        for line in self._read_crontab().splitlines():
            if CRON_MARKER in line:
                return line
        return None
