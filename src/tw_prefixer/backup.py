"""Backups — plain copies of files taken before they are rewritten.

Layout:

    <source_dir>/.tailwind-prefix-backups/
        2026-10-19T11-07-00-123456Z/        one directory per run
            templates/index.html.backup
            css/app.css.backup

Restoring applies runs newest first, so every file ends up with the
oldest copy taken of it.
"""

from __future__ import annotations
import logging
import shutil
from datetime import datetime, timezone
from pathlib import Path

logger = logging.getLogger(__name__)

BACKUP_DIRNAME = ".tailwind-prefix-backups"
BACKUP_SUFFIX = ".backup"


def _run_id() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H-%M-%S-%fZ")


class BackupStore:
    """Per-run backup copies for a source tree."""

    __slots__ = ("source_dir", "backup_dir", "enabled", "run_id")

    def __init__(
        self,
        source_dir: str | Path,
        backup_dir: str | Path | None = None,
        *,
        enabled: bool = True,
    ) -> None:
        self.source_dir = Path(source_dir).expanduser().resolve()
        # Relative backup dirs live under the source tree
        self.backup_dir = (self.source_dir / Path(backup_dir or BACKUP_DIRNAME).expanduser()).resolve()
        self.enabled = enabled
        self.run_id = _run_id()

    # ------------------------------------------------------------------
    # Core API
    # ------------------------------------------------------------------

    def create(self, path: str | Path) -> Path | None:
        """Copy ``path`` into this run's backup directory."""
        if not self.enabled:
            return None
        relative = Path(path).resolve().relative_to(self.source_dir)  # ValueError if outside
        target = self.backup_dir / self.run_id / f"{relative}{BACKUP_SUFFIX}"
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(path, target)
        logger.debug("Backup created: %s", target)
        return target

    def restore(self, timestamp: str | None = None) -> int:
        """Copy backups back over the originals. Returns files restored."""
        runs = [r for r in self.runs() if timestamp is None or timestamp in r]
        restored = 0
        for run in reversed(runs):
            run_dir = self.backup_dir / run
            for backup in sorted(run_dir.rglob(f"*{BACKUP_SUFFIX}")):
                relative = backup.relative_to(run_dir)
                original = self.source_dir / str(relative)[: -len(BACKUP_SUFFIX)]
                try:
                    original.parent.mkdir(parents=True, exist_ok=True)
                    shutil.copyfile(backup, original)
                except OSError as e:
                    logger.error("Failed to restore %s: %s", original, e)
                    continue
                logger.info("Restored: %s", original)
                restored += 1
        logger.info("Restored %d file(s) from backup", restored)
        return restored

    def cleanup(self, remove_dir: bool = False) -> int:
        """Delete backup files. Returns files deleted."""
        found = set(self.source_dir.rglob(f"*{BACKUP_SUFFIX}"))
        if self.backup_dir.is_dir():
            found.update(self.backup_dir.rglob(f"*{BACKUP_SUFFIX}"))

        deleted = 0
        for path in sorted(found):
            try:
                path.unlink()
            except OSError as e:
                logger.error("Failed to delete %s: %s", path, e)
                continue
            logger.debug("Deleted backup: %s", path)
            deleted += 1

        if self.backup_dir.is_dir():
            # Deepest directories first so parents are empty by the time we get there
            for d in sorted(self.backup_dir.rglob("*"), key=lambda p: len(p.parts), reverse=True):
                if d.is_dir() and not any(d.iterdir()):
                    try:
                        d.rmdir()
                    except OSError as e:
                        logger.error("Failed to remove %s: %s", d, e)
            if remove_dir:
                try:
                    self.backup_dir.rmdir()
                    logger.info("Removed backup directory: %s", self.backup_dir)
                except OSError as e:
                    logger.warning("Could not remove backup directory: %s", e)

        logger.info("Deleted %d backup file(s)", deleted)
        return deleted

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def runs(self) -> list[str]:
        """Run ids with backups, oldest first."""
        if not self.backup_dir.is_dir():
            return []
        return sorted(p.name for p in self.backup_dir.iterdir() if p.is_dir())
