"""Loads the YAML config file shared by the archiver and the merger."""

import logging
import os

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config.yml"


def resolve_config_path(path: str | None = None) -> str:
    """Pick the config path: explicit argument, then ``CONFIG_PATH``, then the default."""
    if path:
        return path
    return os.environ.get("CONFIG_PATH", DEFAULT_CONFIG_PATH)


def load_yaml(path: str | None = None) -> dict:
    """Load YAML config from *path* and return it as a dict.

    A missing file yields an empty dict so every component falls back to
    its defaults. Malformed YAML is not swallowed.
    """
    path = resolve_config_path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.debug("Config file %s not found, using defaults", path)
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping, got {type(data).__name__}")
    return data
