"""CLI parser and entrypoint behaviour tests."""

from __future__ import annotations

import json

import pytest

from inspecta.cli import _build_parser, main
from tests._fixtures.project_builder import ProjectBuilder


def test_cli_accepts_verbose_before_command() -> None:
    args = _build_parser().parse_args(["--verbose", "inspect"])
    assert args.verbose is True
    assert args.command == "inspect"
    assert args.path == "."


def test_cli_accepts_verbose_after_command() -> None:
    args = _build_parser().parse_args(["cleanup", "--verbose", "--type", "png"])
    assert args.verbose is True
    assert args.resource_type == "png"
    assert args.confirm is False


def test_cli_inspect_flags() -> None:
    args = _build_parser().parse_args(["inspect", "proj", "--format", "json", "--output", "out.json"])
    assert args.path == "proj"
    assert args.format == "json"
    assert str(args.output) == "out.json"


def test_cli_rejects_unknown_format() -> None:
    with pytest.raises(SystemExit):
        _build_parser().parse_args(["inspect", "--format", "html"])


def test_cli_serve_defaults() -> None:
    args = _build_parser().parse_args(["serve"])
    assert (args.host, args.port) == ("127.0.0.1", 8000)


def test_inspect_prints_report(project_builder: ProjectBuilder, capsys) -> None:
    project_builder.android_app()

    main(["inspect", str(project_builder.path())])

    out = capsys.readouterr().out
    assert out.startswith("INSPECTA - App Size Audit")
    assert "App module: app (android-application)" in out


def test_inspect_writes_json_to_file(project_builder: ProjectBuilder, tmp_path, capsys) -> None:
    project_builder.android_app()
    target = tmp_path / "report.json"

    main(["inspect", str(project_builder.path()), "--format", "json", "--output", str(target)])

    payload = json.loads(target.read_text(encoding="utf-8"))
    assert payload["app_module"] == {"name": ":app", "rule": "android-application"}
    assert "Report written to" in capsys.readouterr().out


def test_missing_path_exits_with_status_one(tmp_path, capsys) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["inspect", str(tmp_path / "missing")])

    assert excinfo.value.code == 1
    assert "Project path not found" in capsys.readouterr().err


def test_invalid_cleanup_type_is_not_a_failure(project_builder: ProjectBuilder, capsys) -> None:
    project_builder.android_app()

    main(["cleanup", str(project_builder.path()), "--type", "gif"])

    assert "Valid types:" in capsys.readouterr().out


def test_cleanup_confirm_deletes(project_builder: ProjectBuilder, capsys) -> None:
    project_builder.android_app()
    stale = project_builder.write_bytes("app/src/main/res/drawable/stale.png", 12)

    main(["cleanup", str(project_builder.path()), "--type", "png", "--confirm"])

    assert not stale.exists()
    assert "Cleanup complete." in capsys.readouterr().out


def test_cli_accepts_quiet_flag_after_command() -> None:
    args = _build_parser().parse_args(["inspect", "-q"])
    assert args.quiet is True
    assert args.verbose is False


def test_unwritable_output_is_reported_without_traceback(project_builder: ProjectBuilder, tmp_path, capsys) -> None:
    project_builder.android_app()
    target = tmp_path / "reports"
    target.mkdir()

    with pytest.raises(SystemExit) as excinfo:
        main(["inspect", str(project_builder.path()), "--output", str(target)])

    assert excinfo.value.code == 1
    err = capsys.readouterr().err
    assert "inspecta: error:" in err
    assert "Traceback" not in err
