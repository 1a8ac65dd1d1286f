"""Tests for the batch runner, backups, config loading and CLI."""

import io
import json
import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

import pytest

from tw_prefixer import BackupStore, ConfigError, PrefixRunner, PrefixerConfig
from tw_prefixer.cli import main
from tw_prefixer.config import create_runner, load_config, load_from_yaml
from tw_prefixer.runner import DEFAULT_EXCLUDE_PATTERNS

HTML = '<div class="flex p-4 myWidget">\n  <span class="hover:underline">x</span>\n</div>\n'
CSS = ".card {\n  @apply rounded shadow;\n}\n"


def _tree(root):
    (root / "css").mkdir()
    (root / "node_modules" / "lib").mkdir(parents=True)
    (root / ".cache").mkdir()
    (root / "index.html").write_text(HTML, encoding="utf-8")
    (root / "css" / "app.css").write_text(CSS, encoding="utf-8")
    (root / "node_modules" / "lib" / "x.html").write_text(HTML, encoding="utf-8")
    (root / ".cache" / "y.html").write_text(HTML, encoding="utf-8")
    (root / "vendor.min.js").write_text('e.className="flex";', encoding="utf-8")
    (root / "README.md").write_text('class="flex"', encoding="utf-8")
    (root / "plain.html").write_text("<p>no classes</p>\n", encoding="utf-8")


def _runner(root, **kw):
    return PrefixRunner.create(root, config=PrefixerConfig(prefix="tw-"), **kw)


# ── Discovery ────────────────────────────────────────────────────────

def test_find_files_applies_patterns_and_exclusions(tmp_path):
    _tree(tmp_path)
    files = _runner(tmp_path).find_files()
    rel = sorted(p.relative_to(tmp_path.resolve()).as_posix() for p in files)
    assert rel == ["css/app.css", "index.html", "plain.html"]


def test_missing_source_dir(tmp_path):
    with pytest.raises(FileNotFoundError):
        _runner(tmp_path / "nope").find_files()


# ── Run ──────────────────────────────────────────────────────────────

def test_run_rewrites_and_backs_up(tmp_path):
    _tree(tmp_path)
    runner = _runner(tmp_path)
    stats = runner.run()

    assert stats.files_processed == 3
    assert stats.files_changed == 2
    assert stats.classes_changed == 6
    assert stats.errors == 0
    assert (tmp_path / "index.html").read_text(encoding="utf-8") == (
        '<div class="tw-flex tw-p-4 myWidget">\n  <span class="hover:tw-underline">x</span>\n</div>\n'
    )
    assert (tmp_path / "css" / "app.css").read_text(encoding="utf-8") == (
        ".tw-card {\n  @apply tw-rounded tw-shadow;\n}\n"
    )
    # Excluded files are left alone
    assert (tmp_path / "node_modules" / "lib" / "x.html").read_text(encoding="utf-8") == HTML

    run_dir = runner.backups.backup_dir / runner.backups.run_id
    assert (run_dir / "index.html.backup").read_text(encoding="utf-8") == HTML
    assert (run_dir / "css" / "app.css.backup").read_text(encoding="utf-8") == CSS
    # Unchanged files get no backup
    assert not (run_dir / "plain.html.backup").exists()


def test_second_run_is_noop(tmp_path):
    _tree(tmp_path)
    _runner(tmp_path).run()
    before = (tmp_path / "index.html").read_text(encoding="utf-8")

    runner = _runner(tmp_path)
    stats = runner.run()
    assert stats.files_changed == 0
    assert stats.classes_changed == 0
    assert (tmp_path / "index.html").read_text(encoding="utf-8") == before
    assert len(runner.backups.runs()) == 1


def test_dry_run_writes_nothing(tmp_path):
    _tree(tmp_path)
    runner = _runner(tmp_path, dry_run=True)
    stats = runner.run()
    assert stats.files_changed == 2
    assert (tmp_path / "index.html").read_text(encoding="utf-8") == HTML
    assert not runner.backups.backup_dir.exists()


def test_no_backup(tmp_path):
    _tree(tmp_path)
    runner = _runner(tmp_path, backup=False)
    runner.run()
    assert not runner.backups.backup_dir.exists()


def test_bad_file_does_not_abort_batch(tmp_path):
    (tmp_path / "bad.html").write_bytes(b'<div class="flex">\xff\xfe</div>')
    (tmp_path / "good.html").write_text('<div class="flex">', encoding="utf-8")
    stats = _runner(tmp_path).run()
    assert stats.errors == 1
    assert stats.files_changed == 1
    assert (tmp_path / "good.html").read_text(encoding="utf-8") == '<div class="tw-flex">'


def test_line_endings_preserved(tmp_path):
    (tmp_path / "a.html").write_bytes(b'<div class="flex">\r\n</div>\r\n')
    _runner(tmp_path).run()
    assert (tmp_path / "a.html").read_bytes() == b'<div class="tw-flex">\r\n</div>\r\n'


# ── Backups ──────────────────────────────────────────────────────────

def test_restore_returns_original_content(tmp_path):
    _tree(tmp_path)
    runner = _runner(tmp_path)
    runner.run()

    restored = BackupStore(tmp_path).restore()
    assert restored == 2
    assert (tmp_path / "index.html").read_text(encoding="utf-8") == HTML
    assert (tmp_path / "css" / "app.css").read_text(encoding="utf-8") == CSS


def test_restore_with_unknown_timestamp(tmp_path):
    _tree(tmp_path)
    _runner(tmp_path).run()
    assert BackupStore(tmp_path).restore("1999-01-01") == 0


def test_cleanup_survives_undeletable_run_dir(tmp_path, monkeypatch):
    _tree(tmp_path)
    _runner(tmp_path).run()
    store = BackupStore(tmp_path)

    def _refuse(self):
        raise PermissionError("read-only")

    monkeypatch.setattr(type(tmp_path), "rmdir", _refuse)
    assert store.cleanup() == 2
    assert store.backup_dir.exists()


def test_cleanup_removes_backups(tmp_path):
    _tree(tmp_path)
    (tmp_path / "old.html.backup").write_text("stale", encoding="utf-8")
    runner = _runner(tmp_path)
    runner.run()

    store = BackupStore(tmp_path)
    assert store.cleanup(remove_dir=True) == 3
    assert not store.backup_dir.exists()
    assert not (tmp_path / "old.html.backup").exists()


def test_backup_disabled_returns_none(tmp_path):
    (tmp_path / "a.html").write_text("x", encoding="utf-8")
    assert BackupStore(tmp_path, enabled=False).create(tmp_path / "a.html") is None


# ── Tailwind config ──────────────────────────────────────────────────

def test_update_tailwind_config(tmp_path):
    cfg = tmp_path / "tailwind.config.js"
    cfg.write_text("module.exports = {\n  content: [],\n}\n", encoding="utf-8")
    runner = _runner(tmp_path)

    assert runner.update_tailwind_config() is True
    assert cfg.read_text(encoding="utf-8") == "module.exports = {\n  prefix: 'tw-',\n  content: [],\n}\n"
    # Already configured
    assert runner.update_tailwind_config() is False


def test_update_tailwind_config_missing(tmp_path):
    assert _runner(tmp_path).update_tailwind_config() is False


# ── Config ───────────────────────────────────────────────────────────

def test_load_config_nested_and_defaults():
    cfg = load_config({"tailwind_prefixer": {"prefix": "x-", "ignore_classes": ["btn"]}})
    assert cfg["prefix"] == "x-"
    assert cfg["ignore_classes"] == {"btn"}
    assert cfg["backup"] is True
    assert "**/*.html" in cfg["file_patterns"]


def test_load_from_yaml(tmp_path):
    path = tmp_path / "prefixer.yaml"
    path.write_text(
        "tailwind_prefixer:\n  prefix: app-\n  dry_run: true\n  log_level: debug\n",
        encoding="utf-8",
    )
    cfg = load_from_yaml(path)
    assert cfg["prefix"] == "app-"
    assert cfg["dry_run"] is True
    assert cfg["log_level"] == "debug"


def test_create_runner(tmp_path):
    runner = create_runner({"prefix": "app-", "source_dir": str(tmp_path), "dry_run": True})
    assert runner.prefixer.prefix == "app-"
    assert runner.dry_run is True
    assert runner.backups.enabled is False


def test_create_runner_partial_flat_config(tmp_path):
    runner = create_runner({"prefix": "tw-", "source_dir": str(tmp_path), "file_patterns": ["**/*.html"]})
    assert runner.file_patterns == ["**/*.html"]
    assert runner.exclude_patterns == DEFAULT_EXCLUDE_PATTERNS
    assert "swiper" in runner.prefixer.config.ignore_classes
    assert runner.backups.enabled is True


def test_create_runner_rejects_bad_prefix(tmp_path):
    with pytest.raises(ConfigError):
        create_runner({"prefix": "a.b", "source_dir": str(tmp_path)})


# ── CLI ──────────────────────────────────────────────────────────────

def test_cli_test_table(capsys):
    assert main(["--prefix", "tw-", "--log-level", "silent", "test"]) == 0
    out = capsys.readouterr().out
    assert "tw-bg-red-500" in out
    assert "hover:!tw--translate-x-2" in out


def test_cli_bad_prefix(capsys):
    assert main(["--prefix", "tw.", "test"]) == 2
    assert "configuration error" in capsys.readouterr().err


def test_cli_rewrite_stdin(monkeypatch, capsys):
    monkeypatch.setattr(sys, "stdin", io.StringIO("@apply flex items-center;"))
    assert main(["--prefix", "tw-", "--log-level", "silent", "rewrite", "--path", "a.css"]) == 0
    assert capsys.readouterr().out == "@apply tw-flex tw-items-center;"


def test_cli_run(tmp_path, capsys):
    _tree(tmp_path)
    code = main(["--prefix", "tw-", "--dir", str(tmp_path), "--log-level", "silent", "run"])
    assert code == 0
    assert "Files updated: 2" in capsys.readouterr().out
    assert "tw-flex" in (tmp_path / "index.html").read_text(encoding="utf-8")


def test_cli_run_json(tmp_path, capsys):
    _tree(tmp_path)
    code = main(["--prefix", "tw-", "--dir", str(tmp_path), "--log-level", "silent", "run", "--dry-run", "--json"])
    assert code == 0
    stats = json.loads(capsys.readouterr().out)
    assert stats["files_changed"] == 2
    assert stats["classes_changed"] == 6
    assert (tmp_path / "index.html").read_text(encoding="utf-8") == HTML


def test_cli_run_missing_dir(tmp_path, capsys):
    code = main(["--dir", str(tmp_path / "nope"), "--log-level", "silent", "run"])
    assert code == 1
    assert "not accessible" in capsys.readouterr().err


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
