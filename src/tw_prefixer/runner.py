"""Runner — walks a source tree and rewrites matching files in place.

Usage:

    prefixer = Prefixer(PrefixerConfig(prefix="tw-"))
    runner = PrefixRunner(prefixer, BackupStore("./src"), source_dir="./src")

    stats = runner.run()
    runner.update_tailwind_config()

A file is only written (and only backed up) when its rewritten text
differs from what was read.  Failures on one file are logged and
counted; the batch carries on.
"""

from __future__ import annotations
import logging
import os
import shutil
import tempfile
import time
from dataclasses import dataclass, field
from fnmatch import fnmatch
from pathlib import Path

from .backup import BackupStore
from .prefixer import Prefixer, PrefixerConfig

logger = logging.getLogger(__name__)

DEFAULT_FILE_PATTERNS = [
    "**/*.html", "**/*.php", "**/*.css", "**/*.scss", "**/*.sass",
    "**/*.js", "**/*.jsx", "**/*.ts", "**/*.tsx", "**/*.vue", "**/*.svelte",
]
DEFAULT_EXCLUDE_PATTERNS = [
    "node_modules/**", "vendor/**", ".git/**", "dist/**", "build/**",
    "**/*.min.*", "**/*.backup",
]

_CONFIG_ANCHOR = "module.exports = {"


def _match_any(rel: str, patterns: list[str]) -> bool:
    """fnmatch against a posix relative path, at any depth."""
    for pattern in patterns:
        bare = pattern[3:] if pattern.startswith("**/") else pattern
        if fnmatch(rel, bare) or fnmatch(rel, "*/" + bare):
            return True
    return False


def _read(path: Path) -> str:
    with open(path, encoding="utf-8", newline="") as f:
        return f.read()


def _write_atomic(path: Path, text: str) -> None:
    """Write via a temp file in the same directory, then rename over."""
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(text)
        shutil.copymode(path, tmp)
        os.replace(tmp, path)
    except BaseException:
        if os.path.exists(tmp):
            os.unlink(tmp)
        raise


@dataclass
class RunStats:
    files_processed: int = 0
    files_changed: int = 0
    classes_changed: int = 0
    errors: int = 0
    started_at: float | None = None
    finished_at: float | None = None

    @property
    def duration(self) -> float:
        if self.started_at is None or self.finished_at is None:
            return 0.0
        return self.finished_at - self.started_at

    def as_dict(self) -> dict:
        return {
            "files_processed": self.files_processed,
            "files_changed": self.files_changed,
            "classes_changed": self.classes_changed,
            "errors": self.errors,
            "duration": round(self.duration, 3),
        }


@dataclass
class PrefixRunner:
    """Applies a Prefixer to every matching file under ``source_dir``."""

    prefixer: Prefixer
    backups: BackupStore
    source_dir: Path = Path(".")
    file_patterns: list[str] = field(default_factory=lambda: list(DEFAULT_FILE_PATTERNS))
    exclude_patterns: list[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDE_PATTERNS))
    dry_run: bool = False
    stats: RunStats = field(default_factory=RunStats)

    def __post_init__(self) -> None:
        self.source_dir = Path(self.source_dir).expanduser().resolve()

    @classmethod
    def create(
        cls,
        source_dir: str | Path = ".",
        *,
        config: PrefixerConfig | None = None,
        backup: bool = True,
        dry_run: bool = False,
    ) -> "PrefixRunner":
        """Factory — a runner with default patterns and a backup store."""
        return cls(
            prefixer=Prefixer(config),
            backups=BackupStore(source_dir, enabled=backup and not dry_run),
            source_dir=source_dir,
            dry_run=dry_run,
        )

    # ------------------------------------------------------------------
    # Discovery
    # ------------------------------------------------------------------

    def _excluded(self, rel: str) -> bool:
        if any(part.startswith(".") for part in rel.split("/") if part):
            return True
        return _match_any(rel, self.exclude_patterns)

    def find_files(self) -> list[Path]:
        """All files matching the include patterns, minus exclusions."""
        if not self.source_dir.is_dir():
            raise FileNotFoundError(f"Source directory not accessible: {self.source_dir}")

        logger.debug("Scanning patterns: %s", ", ".join(self.file_patterns))
        logger.debug("Excluding patterns: %s", ", ".join(self.exclude_patterns))

        found: list[Path] = []
        for root, dirs, files in os.walk(self.source_dir):
            rel_root = Path(root).relative_to(self.source_dir)
            # Prune excluded directories before descending into them
            dirs[:] = sorted(
                d for d in dirs if not self._excluded((rel_root / d).as_posix() + "/")
            )
            for name in files:
                rel = (rel_root / name).as_posix()
                if _match_any(rel, self.file_patterns) and not self._excluded(rel):
                    found.append(Path(root) / name)

        found.sort()
        logger.info("Found %d file(s) to process", len(found))
        return found

    # ------------------------------------------------------------------
    # Processing
    # ------------------------------------------------------------------

    def process_file(self, path: str | Path) -> bool:
        """Rewrite one file. Returns True if it changed (or would change)."""
        path = Path(path)
        self.stats.files_processed += 1
        try:
            original = _read(path)
            result = self.prefixer.rewrite(original, path)
            if result.text == original:
                logger.debug("No changes: %s", path)
                return False

            if self.dry_run:
                logger.info("Would update: %s (%d class(es))", path, result.count)
            else:
                self.backups.create(path)
                _write_atomic(path, result.text)
                logger.info("Updated: %s (%d class(es))", path, result.count)
        except (OSError, UnicodeDecodeError, ValueError) as e:
            self.stats.errors += 1
            logger.error("Error processing %s: %s", path, e)
            return False

        self.stats.files_changed += 1
        self.stats.classes_changed += result.count
        return True

    def run(self) -> RunStats:
        """Process every file under the source directory."""
        self.stats = RunStats(started_at=time.monotonic())
        logger.info("Starting with prefix %r in %s", self.prefixer.prefix, self.source_dir)

        for path in self.find_files():
            self.process_file(path)

        self.stats.finished_at = time.monotonic()
        logger.info(
            "Processed %d file(s), updated %d, rewrote %d class(es), %d error(s) in %.2fs",
            self.stats.files_processed, self.stats.files_changed,
            self.stats.classes_changed, self.stats.errors, self.stats.duration,
        )
        return self.stats

    def update_tailwind_config(self, path: str | Path | None = None) -> bool:
        """Add ``prefix: '<prefix>'`` to a tailwind.config.js that lacks one."""
        path = Path(path) if path else self.source_dir / "tailwind.config.js"
        if not path.is_file():
            logger.debug("No Tailwind config at %s", path)
            return False

        try:
            content = _read(path)
            if "prefix:" in content:
                logger.info("Tailwind config already has a prefix setting: %s", path)
                return False
            if _CONFIG_ANCHOR not in content:
                logger.warning("Could not find %r in %s; add the prefix by hand", _CONFIG_ANCHOR, path)
                return False

            updated = content.replace(
                _CONFIG_ANCHOR, f"{_CONFIG_ANCHOR}\n  prefix: '{self.prefixer.prefix}',", 1,
            )
            if self.dry_run:
                logger.info("Would update Tailwind config: %s", path)
                return True
            self.backups.create(path)
            _write_atomic(path, updated)
        except (OSError, UnicodeDecodeError, ValueError) as e:
            logger.error("Error updating Tailwind config %s: %s", path, e)
            return False

        logger.info("Updated Tailwind config with prefix: %s", path)
        return True
