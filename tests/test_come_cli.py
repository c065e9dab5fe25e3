from __future__ import annotations

import os
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

from coalesce_memory.core import links
from coalesce_memory.scripts.come import main


def _installed_version() -> str:
    try:
        return version("coalesce-memory")
    except PackageNotFoundError:
        return "0.0.0+unknown"


def test_help_exits_zero_without_touching_disk(tmp_path: Path, monkeypatch, capsys) -> None:
    monkeypatch.chdir(tmp_path)
    assert main(["--help", "CLAUDE.md"]) == 0
    out = capsys.readouterr().out
    assert "Usage: come [options]" in out
    assert "--dry-run" in out
    assert list(tmp_path.iterdir()) == []


def test_version(tmp_path: Path, monkeypatch, capsys) -> None:
    monkeypatch.chdir(tmp_path)
    assert main(["--version"]) == 0
    assert capsys.readouterr().out.strip() == _installed_version()


def test_no_files_prints_usage(tmp_path: Path, monkeypatch, capsys) -> None:
    monkeypatch.chdir(tmp_path)
    assert main([]) == 0
    out = capsys.readouterr().out
    assert "No input files specified." in out
    assert "Usage: come" in out
    assert list(tmp_path.iterdir()) == []


def test_unknown_option_exits_one(tmp_path: Path, monkeypatch, capsys) -> None:
    monkeypatch.chdir(tmp_path)
    assert main(["--nope", "CLAUDE.md"]) == 1
    assert "Unknown option: --nope" in capsys.readouterr().err
    assert list(tmp_path.iterdir()) == []


def test_missing_output_value_exits_one(tmp_path: Path, monkeypatch, capsys) -> None:
    monkeypatch.chdir(tmp_path)
    assert main(["CLAUDE.md", "-o"]) == 1
    assert "Error:" in capsys.readouterr().err


def test_run_converts_files(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    (tmp_path / "CLAUDE.md").write_text("rules")
    assert main(["CLAUDE.md", "GEMINI.md"]) == 0
    assert os.readlink(tmp_path / "CLAUDE.md") == "AGENTS.md"
    assert os.readlink(tmp_path / "GEMINI.md") == "AGENTS.md"
    assert "`>>> CLAUDE.md`\nrules\n`<<< CLAUDE.md`" in (tmp_path / "AGENTS.md").read_text()
    assert main(["CLAUDE.md", "GEMINI.md"]) == 0


def test_verbose_run_logs_details(tmp_path: Path, monkeypatch, caplog) -> None:
    monkeypatch.chdir(tmp_path)
    with caplog.at_level("DEBUG"):
        assert main(["-v", "CLAUDE.md"]) == 0
    assert "Processing 1 files with unified output: AGENTS.md" in caplog.text
    assert "Symlink target: AGENTS.md" in caplog.text


def test_io_error_exits_one(tmp_path: Path, monkeypatch, capsys) -> None:
    monkeypatch.chdir(tmp_path)
    assert main(["missing-dir/CLAUDE.md"]) == 1
    assert "Error:" in capsys.readouterr().err


def test_rollback_failure_reports_backup(tmp_path: Path, monkeypatch, capsys) -> None:
    monkeypatch.chdir(tmp_path)
    (tmp_path / "CLAUDE.md").write_text("precious")
    real_rename = os.rename
    calls = {"n": 0}

    def flaky_rename(src, dst):
        calls["n"] += 1
        if calls["n"] > 1:
            raise OSError("rename blocked")
        return real_rename(src, dst)

    def boom(*_a, **_k):
        raise OSError("cannot link")

    monkeypatch.setattr(links.os, "symlink", boom)
    monkeypatch.setattr(links.os, "rename", flaky_rename)
    assert main(["CLAUDE.md"]) == 1
    err = capsys.readouterr().err
    backups = list(tmp_path.glob("CLAUDE.md.backup-*"))
    assert len(backups) == 1
    assert "Critical error: Failed to rollback CLAUDE.md" in err
    assert str(backups[0]) in err


def test_non_utf8_memory_file_is_merged_with_replacement(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    (tmp_path / "CLAUDE.md").write_bytes(b"caf\xe9 rules\n")
    assert main(["CLAUDE.md"]) == 0
    assert (tmp_path / "CLAUDE.md").is_symlink()
    assert "caf\ufffd rules" in (tmp_path / "AGENTS.md").read_text(encoding="utf-8")
