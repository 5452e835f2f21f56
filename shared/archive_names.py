"""Archive filename format shared by the archiver and the merger."""

from datetime import datetime

ARCHIVE_PREFIX = "access_"
ARCHIVE_SUFFIX = ".log"
TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"


def archive_name(now: datetime) -> str:
    return f"{ARCHIVE_PREFIX}{now.strftime(TIMESTAMP_FORMAT)}{ARCHIVE_SUFFIX}"


def parse_archive_timestamp(filename: str) -> datetime | None:
    """Extract the timestamp from an archive filename. Returns None on failure."""
    if not filename.startswith(ARCHIVE_PREFIX):
        return None
    stem = filename[len(ARCHIVE_PREFIX):]
    if stem.endswith(".gz"):
        stem = stem[:-3]
    if not stem.endswith(ARCHIVE_SUFFIX):
        return None
    try:
        return datetime.strptime(stem[:-len(ARCHIVE_SUFFIX)], TIMESTAMP_FORMAT)
    except ValueError:
        return None
