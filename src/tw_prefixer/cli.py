"""CLI interface for tw-prefixer.

Usage:
    # Prefix every utility class under ./src, backing files up first
    tw-prefixer --prefix tw- --dir ./src run

    # Preview only
    tw-prefixer --prefix tw- run --dry-run

    # Rewrite stdin as if it were a given file type
    echo '<div class="flex p-4">' | tw-prefixer --prefix tw- rewrite --path x.html

    # Show how sample tokens are rewritten
    tw-prefixer test

    # Undo / tidy up
    tw-prefixer --dir ./src restore
    tw-prefixer --dir ./src clean-backups --remove-dir

Settings can also come from a YAML file (--config); flags given on the
command line win over the file.
"""

from __future__ import annotations
import argparse
import json
import os
import sys
from typing import Any

from .backup import BackupStore
from .config import configure_logging, create_runner, load_config, load_from_yaml
from .prefixer import LOG_LEVELS, Prefixer, PrefixerConfig
from .types import ConfigError


DEFAULT_PREFIX = os.environ.get("TW_PREFIXER_PREFIX", "two-")


def _settings(args: argparse.Namespace) -> dict[str, Any]:
    """Merge the optional YAML file with command-line overrides."""
    if args.config:
        cfg = load_from_yaml(args.config, prefix=DEFAULT_PREFIX)
    else:
        cfg = load_config({}, prefix=DEFAULT_PREFIX)
    if args.prefix is not None:
        cfg["prefix"] = args.prefix
    if args.dir is not None:
        cfg["source_dir"] = args.dir
    if args.log_level is not None:
        cfg["log_level"] = args.log_level
    if args.ignore:
        cfg["ignore_classes"] = cfg["ignore_classes"] | set(args.ignore.split(","))
    return cfg


def _build_prefixer(cfg: dict[str, Any]) -> Prefixer:
    return Prefixer(PrefixerConfig(
        prefix=cfg["prefix"],
        ignore_classes=cfg["ignore_classes"],
        log_level=cfg["log_level"],
    ))


def cmd_run(args: argparse.Namespace, cfg: dict[str, Any]) -> int:
    """Rewrite every matching file in the source directory."""
    if args.no_backup:
        cfg["backup"] = False
    if args.dry_run:
        cfg["dry_run"] = True
    if args.backup_dir:
        cfg["backup_dir"] = args.backup_dir
    if args.tailwind_config:
        cfg["tailwind_config"] = args.tailwind_config

    runner = create_runner(cfg)
    try:
        stats = runner.run()
    except FileNotFoundError as e:
        sys.stderr.write(f"error: {e}\n")
        return 1

    if not args.no_config_update:
        runner.update_tailwind_config(cfg["tailwind_config"])

    if args.json:
        json.dump(stats.as_dict(), sys.stdout)
        sys.stdout.write("\n")
        return 1 if stats.errors else 0

    print("--- Summary ---")
    print(f"Files processed: {stats.files_processed}")
    print(f"Files {'to update' if runner.dry_run else 'updated'}: {stats.files_changed}")
    print(f"Classes rewritten: {stats.classes_changed}")
    print(f"Errors: {stats.errors}")
    print(f"Prefix used: {runner.prefixer.prefix!r}")
    if runner.backups.enabled and stats.files_changed:
        print(f"Backups written to {runner.backups.backup_dir / runner.backups.run_id}")
    return 1 if stats.errors else 0


def cmd_rewrite(args: argparse.Namespace, cfg: dict[str, Any]) -> int:
    """Rewrite text from stdin, dialect chosen by --path."""
    prefixer = _build_prefixer(cfg)
    result = prefixer.rewrite(sys.stdin.read(), args.path)
    sys.stdout.write(result.text)

    if args.stats:
        output = {
            "count": result.count,
            "changes": [
                {"dialect": c.dialect, "original": c.original, "rewritten": c.rewritten}
                for c in result.changes
            ],
        }
        json.dump(output, sys.stderr, ensure_ascii=False)
        sys.stderr.write("\n")
    return 0


def cmd_test(args: argparse.Namespace, cfg: dict[str, Any]) -> int:
    """Print how sample tokens are rewritten."""
    prefixer = _build_prefixer(cfg)
    print("--- Class processing ---")
    for token, rewritten in prefixer.sample(args.tokens or None):
        print(f"{token:<25} -> {rewritten}")
    return 0


def cmd_restore(args: argparse.Namespace, cfg: dict[str, Any]) -> int:
    """Restore files from their backups."""
    store = BackupStore(cfg["source_dir"], cfg["backup_dir"])
    restored = store.restore(args.timestamp)
    print(f"Restored {restored} file(s)")
    return 0


def cmd_clean_backups(args: argparse.Namespace, cfg: dict[str, Any]) -> int:
    """Delete backup files."""
    store = BackupStore(cfg["source_dir"], cfg["backup_dir"])
    deleted = store.cleanup(remove_dir=args.remove_dir)
    print(f"Total backup files deleted: {deleted}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tw-prefixer",
        description="Prefix Tailwind-style utility classes across a project",
    )
    parser.add_argument("--prefix", default=None, help=f"Prefix to add (default: {DEFAULT_PREFIX!r})")
    parser.add_argument("--dir", default=None, help="Source directory (default: .)")
    parser.add_argument("--config", default=None, help="YAML config file")
    parser.add_argument("--log-level", default=None, choices=list(LOG_LEVELS), help="Log level")
    parser.add_argument("--ignore", default="", help="Comma-separated classes to never prefix")

    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="Rewrite files in place")
    run.add_argument("--no-backup", action="store_true", help="Don't create backup files")
    run.add_argument("--dry-run", action="store_true", help="Report changes without writing")
    run.add_argument("--backup-dir", default=None, help="Backup directory")
    run.add_argument("--no-config-update", action="store_true", help="Leave tailwind.config.js alone")
    run.add_argument("--tailwind-config", default=None, help="Path to tailwind.config.js")
    run.add_argument("--json", action="store_true", help="Print the summary as JSON")

    rewrite = sub.add_parser("rewrite", help="Rewrite stdin to stdout")
    rewrite.add_argument("--path", required=True, help="File name used to pick the dialect")
    rewrite.add_argument("--stats", action="store_true", help="Write change details as JSON to stderr")

    test = sub.add_parser("test", help="Show how sample classes are rewritten")
    test.add_argument("tokens", nargs="*", help="Tokens to try (default: built-in examples)")

    restore = sub.add_parser("restore", help="Restore files from backups")
    restore.add_argument("--timestamp", default=None, help="Only restore runs whose id contains this")

    clean = sub.add_parser("clean-backups", help="Delete backup files")
    clean.add_argument("--remove-dir", action="store_true", help="Also remove the backup directory")

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    cmds = {
        "run": cmd_run,
        "rewrite": cmd_rewrite,
        "test": cmd_test,
        "restore": cmd_restore,
        "clean-backups": cmd_clean_backups,
    }
    try:
        cfg = _settings(args)
        configure_logging(cfg["log_level"])
        return cmds[args.command](args, cfg)
    except ConfigError as e:
        sys.stderr.write(f"configuration error: {e}\n")
        return 2


if __name__ == "__main__":
    sys.exit(main())
