"""YAML/dict config loader for tw-prefixer.

Supports loading from a YAML file or a plain dict (for embedding in a
larger build config).

Example YAML:

    tailwind_prefixer:
      prefix: tw-
      source_dir: ./src
      log_level: info
      backup: true
      backup_dir: .tailwind-prefix-backups
      dry_run: false
      ignore_classes:
        - swiper
        - swiper-slide
        - choices__inner
      file_patterns:
        - "**/*.html"
        - "**/*.vue"
      exclude_patterns:
        - "node_modules/**"
      tailwind_config: tailwind.config.js
"""

from __future__ import annotations
import logging
from pathlib import Path
from typing import Any

from .backup import BackupStore
from .prefixer import DEFAULT_IGNORE, LOG_LEVELS, Prefixer, PrefixerConfig
from .runner import DEFAULT_EXCLUDE_PATTERNS, DEFAULT_FILE_PATTERNS, PrefixRunner
from .types import ConfigError

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(message)s"


def configure_logging(level: str = "info") -> None:
    """Point the package logger at stderr with the given level name."""
    if level not in LOG_LEVELS:
        raise ConfigError(f"log level must be one of: {', '.join(LOG_LEVELS)}")
    logging.basicConfig(format=LOG_FORMAT)
    logging.getLogger("tw_prefixer").setLevel(LOG_LEVELS[level])


def load_config(data: dict[str, Any], *, prefix: str = "tw-") -> dict[str, Any]:
    """Normalize a config dict (from YAML or inline).

    ``prefix`` is the fallback when the data does not name one.
    """
    # Support nested under "tailwind_prefixer" key or flat
    if "tailwind_prefixer" in data:
        data = data["tailwind_prefixer"] or {}

    return {
        "prefix": data.get("prefix", prefix),
        "source_dir": data.get("source_dir", "."),
        "file_patterns": list(data.get("file_patterns") or DEFAULT_FILE_PATTERNS),
        "exclude_patterns": list(data.get("exclude_patterns") or DEFAULT_EXCLUDE_PATTERNS),
        "ignore_classes": set(data.get("ignore_classes") or DEFAULT_IGNORE),
        "backup": data.get("backup", True),
        "backup_dir": data.get("backup_dir"),
        "dry_run": data.get("dry_run", False),
        "log_level": data.get("log_level", "info"),
        "tailwind_config": data.get("tailwind_config"),
    }


def load_from_yaml(path: str | Path, *, prefix: str = "tw-") -> dict[str, Any]:
    """Load config from a YAML file."""
    import yaml
    with open(path) as f:
        return load_config(yaml.safe_load(f) or {}, prefix=prefix)


def create_runner(config: dict[str, Any]) -> PrefixRunner:
    """Create a fully configured runner from a config dict."""
    cfg = load_config(config)

    prefixer = Prefixer(PrefixerConfig(
        prefix=cfg["prefix"],
        ignore_classes=cfg["ignore_classes"],
        log_level=cfg["log_level"],
    ))
    backups = BackupStore(
        cfg["source_dir"],
        cfg["backup_dir"],
        enabled=cfg["backup"] and not cfg["dry_run"],
    )
    return PrefixRunner(
        prefixer=prefixer,
        backups=backups,
        source_dir=cfg["source_dir"],
        file_patterns=cfg["file_patterns"],
        exclude_patterns=cfg["exclude_patterns"],
        dry_run=cfg["dry_run"],
    )
