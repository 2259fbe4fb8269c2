"""CLI behaviour tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from metabot.cli import _build_parser, main, split_keywords
from metabot.orchestrator import RunCancelled, accept_all


def test_cli_accepts_verbose_before_and_after_command() -> None:
    parser = _build_parser()

    assert parser.parse_args(["--verbose", "run", "org.example.App"]).verbose is True
    assert parser.parse_args(["run", "org.example.App", "--verbose"]).verbose is True


def test_cli_run_defaults() -> None:
    args = _build_parser().parse_args(["run", "org.example.App"])

    assert args.command == "run"
    assert args.mode == "all"
    assert args.yes is False
    assert args.dry_run is False


def test_cli_rejects_unknown_mode() -> None:
    with pytest.raises(SystemExit):
        _build_parser().parse_args(["run", "org.example.App", "--mode", "icons"])


def test_split_keywords_accepts_commas_and_semicolons() -> None:
    assert split_keywords("a, b;c;;") == ["a", " b", "c"]


def test_patch_command_updates_files(tmp_path: Path, capsys) -> None:
    desktop = tmp_path / "org.example.App.desktop"
    desktop.write_text("[Desktop Entry]\nName=App\n", encoding="utf-8")

    main(["patch", str(desktop), "--keywords", "Draw;paint", "--config", str(tmp_path)])

    assert desktop.read_text(encoding="utf-8") == "[Desktop Entry]\nKeywords=draw;paint;\nName=App\n"
    assert "keywords applied" in capsys.readouterr().out


def test_patch_command_reads_description_file(tmp_path: Path) -> None:
    metainfo = tmp_path / "app.metainfo.xml"
    metainfo.write_text("<component>\n  <name>App</name>\n</component>\n", encoding="utf-8")
    description = tmp_path / "description.xml"
    description.write_text("<p>Paint things.</p>\n", encoding="utf-8")

    main(["patch", str(metainfo), "--description-file", str(description), "--config", str(tmp_path)])

    assert "<p>Paint things.</p>" in metainfo.read_text(encoding="utf-8")


def test_patch_command_requires_a_value(tmp_path: Path) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["patch", str(tmp_path / "app.desktop"), "--config", str(tmp_path)])

    assert excinfo.value.code == 2


def test_patch_command_rejects_unknown_file_type(tmp_path: Path) -> None:
    other = tmp_path / "notes.txt"
    other.write_text("x", encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        main(["patch", str(other), "--summary", "Do things", "--config", str(tmp_path)])

    assert excinfo.value.code == 1


def test_run_command_uses_auto_approval_with_yes(tmp_path: Path, capsys) -> None:
    captured = {}

    class StubOrchestrator:
        def __init__(self, config, *, approve):
            captured["approve"] = approve
            captured["root"] = config.root

        def run(self, app_id, mode, *, dry_run=False):
            captured["run"] = (app_id, mode, dry_run)
            return None

    main(
        ["run", "org.example.App", "--yes", "--mode", "summary", "--dry-run", "--config", str(tmp_path)],
        orchestrator_factory=StubOrchestrator,
    )

    assert captured["approve"] is accept_all
    assert captured["root"] == tmp_path.resolve()
    assert captured["run"] == ("org.example.App", "summary", True)
    assert "No changes accepted" in capsys.readouterr().out


def test_run_command_exits_when_cancelled(tmp_path: Path) -> None:
    class CancellingOrchestrator:
        def __init__(self, config, *, approve):
            pass

        def run(self, app_id, mode, *, dry_run=False):
            raise RunCancelled("Cancelled by user")

    with pytest.raises(SystemExit) as excinfo:
        main(["run", "org.example.App", "--config", str(tmp_path)], orchestrator_factory=CancellingOrchestrator)

    assert excinfo.value.code == 1


def test_cli_accepts_log_file_before_or_after_command() -> None:
    parser = _build_parser()

    assert parser.parse_args(["--log-file", "a.log", "patch", "x.desktop"]).log_file == "a.log"
    assert parser.parse_args(["patch", "x.desktop", "--log-file", "b.log"]).log_file == "b.log"
    assert parser.parse_args(["serve"]).log_file is None
