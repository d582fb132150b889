from __future__ import annotations

import json
from pathlib import Path

import pytest

from snipctl.cli import build_parser, main
from snipctl.cli.output import render_error, resolve_output_format
from snipctl.contracts import validate


def test_resolve_output_format() -> None:
    assert resolve_output_format(cli_format=None, ci_present=False) == "text"
    assert resolve_output_format(cli_format=None, ci_present=True) == "json"
    assert resolve_output_format(cli_format="jsonl", ci_present=True) == "jsonl"


def test_json_error_payload_matches_schema() -> None:
    payload = json.loads(render_error(as_json=True, message="bad", code=2, kind="config_error", run_id="r"))
    validate("snipctl.error.v1", payload)
    assert payload["errors"] == [{"code": 2, "kind": "config_error", "message": "bad"}]


def test_text_error() -> None:
    assert render_error(as_json=False, message="bad", code=2) == "snipctl: error: bad"


def test_parser_accepts_parallel_alias() -> None:
    ns = build_parser().parse_args(["verify", "a.swift", "--parallel", "3", "--strict-whitespace"])
    assert ns.jobs == 3
    assert ns.strict_whitespace


def test_main_in_process(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    (tmp_path / "intro.py").write_text("value = 6 * 7\nprint(value)  # 42\n", encoding="utf-8")
    rc = main(["--quiet", "--cwd", str(tmp_path), "verify", "intro.py", "--format", "json"])
    out = capsys.readouterr().out
    assert rc == 0
    assert json.loads(out)["summary"]["passed"] == 2


def test_main_reports_config_errors(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    rc = main(["--cwd", str(tmp_path), "verify", "missing.swift"])
    assert rc == 2
    assert "cannot read path" in capsys.readouterr().err


def test_usage_error_exits_two() -> None:
    with pytest.raises(SystemExit) as err:
        main(["verify"])
    assert err.value.code == 2
