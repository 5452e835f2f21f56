"""Merger configuration loaded from the YAML merger section."""

from dataclasses import dataclass


def _parse_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("true", "1", "yes")


@dataclass(frozen=True)
class MergerConfig:
    source_dir: str = "/usr/local/x-ui/archives"
    work_dir: str = "/usr/local/x-ui/mergelog/logs"
    output_file: str = "/usr/local/x-ui/mergelog/merged_access.log"
    include_plain: bool = False

    @classmethod
    def from_dict(cls, d: dict | None) -> "MergerConfig":
        d = d or {}
        return cls(
            source_dir=d.get("source_dir", cls.source_dir),
            work_dir=d.get("work_dir", cls.work_dir),
            output_file=d.get("output_file", cls.output_file),
            include_plain=_parse_bool(d.get("include_plain", cls.include_plain)),
        )
