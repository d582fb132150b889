from __future__ import annotations

import json
import shlex
import sys
import xml.etree.ElementTree as ET
from pathlib import Path

import pytest
from helpers import run_snipctl

PASSING = "#: Intro\ntotal = 1 + 1\nprint(total)  # 2\n"
FAILING = "#: Broken\nprint(3)  # 4\n\nraise ValueError('x')\n"
PYTHON_STDIN = shlex.quote(sys.executable) + " -"


def _write(root: Path, name: str, text: str) -> Path:
    path = root / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


@pytest.mark.integration
def test_verify_passing_document_exits_zero(workspace: Path) -> None:
    _write(workspace, "intro.py", PASSING)
    proc = run_snipctl("verify", "intro.py", cwd=workspace)
    assert proc.returncode == 0, proc.stderr
    assert "PASS intro.py#3 (lines 3)" in proc.stdout
    assert proc.stdout.strip().splitlines()[-1].startswith("summary: documents=1 passed=2 failed=0")


@pytest.mark.integration
def test_verify_failures_exit_one_and_keep_going(workspace: Path) -> None:
    _write(workspace, "broken.py", FAILING)
    _write(workspace, "intro.py", PASSING)
    proc = run_snipctl("verify", "broken.py", "intro.py", cwd=workspace)
    assert proc.returncode == 1
    assert "FAIL broken.py#2 (lines 2)" in proc.stdout
    assert "  -4" in proc.stdout
    assert "  +3" in proc.stdout
    assert "FAULT broken.py#3 (lines 4) exception: ValueError: x" in proc.stdout
    assert "PASS intro.py#3" in proc.stdout


@pytest.mark.integration
def test_missing_path_is_config_error(workspace: Path) -> None:
    proc = run_snipctl("verify", "missing.py", cwd=workspace)
    assert proc.returncode == 2
    assert "snipctl: error: cannot read path: missing.py" in proc.stderr
    assert proc.stdout == ""


@pytest.mark.integration
def test_invalid_timeout_is_config_error(workspace: Path) -> None:
    _write(workspace, "intro.py", PASSING)
    proc = run_snipctl("verify", "intro.py", "--timeout", "0", cwd=workspace)
    assert proc.returncode == 2


@pytest.mark.integration
def test_command_dialect_without_runtime_is_config_error(workspace: Path) -> None:
    _write(workspace, "intro.swift", "let a = 1\n")
    proc = run_snipctl("verify", "intro.swift", cwd=workspace)
    assert proc.returncode == 2
    assert "--command" in proc.stderr


@pytest.mark.integration
def test_json_report_and_artifacts(workspace: Path) -> None:
    _write(workspace, "broken.py", FAILING)
    proc = run_snipctl(
        "--run-id",
        "ci-1",
        "verify",
        "broken.py",
        "--format",
        "json",
        "--out",
        "out/report.json",
        "--junit",
        "out/junit.xml",
        cwd=workspace,
    )
    assert proc.returncode == 1
    payload = json.loads(proc.stdout)
    assert payload["schema_name"] == "snipctl.report.v1"
    assert payload["run_id"] == "ci-1"
    assert payload["status"] == "fail"
    assert [row["block_id"] for row in payload["failures"]] == [2, 3]
    assert json.loads((workspace / "out/report.json").read_text(encoding="utf-8")) == payload
    junit = ET.fromstring((workspace / "out/junit.xml").read_text(encoding="utf-8"))
    assert junit.attrib["failures"] == "1"
    check = run_snipctl("validate-output", "--schema", "snipctl.report.v1", "--file", "out/report.json", cwd=workspace)
    assert check.returncode == 0, check.stderr


@pytest.mark.integration
def test_json_report_is_idempotent(workspace: Path) -> None:
    _write(workspace, "broken.py", FAILING)
    first = run_snipctl("verify", "broken.py", "--format", "json", cwd=workspace)
    second = run_snipctl("verify", "broken.py", "--format", "json", cwd=workspace)
    assert first.stdout == second.stdout


@pytest.mark.integration
def test_ci_environment_defaults_to_json(workspace: Path) -> None:
    _write(workspace, "intro.py", PASSING)
    proc = run_snipctl("verify", "intro.py", cwd=workspace, env_extra={"CI": "1"})
    assert proc.returncode == 0
    assert json.loads(proc.stdout)["status"] == "pass"


@pytest.mark.integration
def test_jsonl_report(workspace: Path) -> None:
    _write(workspace, "intro.py", PASSING)
    proc = run_snipctl("verify", "intro.py", "--format", "jsonl", cwd=workspace)
    kinds = [json.loads(line)["kind"] for line in proc.stdout.splitlines()]
    assert kinds == ["result", "result", "summary"]


@pytest.mark.integration
def test_directory_input_uses_globs(workspace: Path) -> None:
    _write(workspace, "guide/one.py", PASSING)
    _write(workspace, "guide/nested/two.py", PASSING)
    _write(workspace, "guide/notes.txt", "not a document\n")
    proc = run_snipctl("verify", "guide", "--glob", "*.py", "--jobs", "2", "--format", "json", cwd=workspace)
    assert proc.returncode == 0, proc.stderr
    paths = [doc["path"] for doc in json.loads(proc.stdout)["documents"]]
    assert paths == ["guide/nested/two.py", "guide/one.py"]


@pytest.mark.integration
def test_playground_pages_through_command_runtime(workspace: Path) -> None:
    _write(workspace, "Demo.playground/Contents.swift", "//: Page one\nprint(1 + 1) // 2\n")
    _write(workspace, "Demo.playground/Pages/Second.xcplaygroundpage/Contents.swift", "//: Page two\nprint('a' * 2) // aa\n")
    proc = run_snipctl("verify", "Demo.playground", "--command", PYTHON_STDIN, "--timeout", "20", "--format", "json", cwd=workspace)
    assert proc.returncode == 0, proc.stderr
    payload = json.loads(proc.stdout)
    assert payload["summary"]["documents"] == 2
    assert payload["summary"]["passed"] == 2


@pytest.mark.integration
def test_config_file_supplies_defaults(workspace: Path) -> None:
    _write(workspace, "snipctl.toml", f'command = "{PYTHON_STDIN}"\ntimeout = 20\n')
    _write(workspace, "sample.swift", "//: Prose\nprint(40 + 2) // 42\n")
    proc = run_snipctl("verify", "sample.swift", cwd=workspace)
    assert proc.returncode == 0, proc.stderr


@pytest.mark.integration
def test_extract_prints_blocks(workspace: Path) -> None:
    _write(workspace, "intro.py", PASSING)
    proc = run_snipctl("extract", "intro.py", cwd=workspace)
    assert proc.returncode == 0, proc.stderr
    payload = json.loads(proc.stdout)
    assert payload["schema_name"] == "snipctl.document.v1"
    assert [block["kind"] for block in payload["blocks"]] == ["prose", "code", "code"]


@pytest.mark.integration
def test_version() -> None:
    proc = run_snipctl("version", "--json")
    assert proc.returncode == 0
    assert json.loads(proc.stdout)["tool"] == "snipctl"


@pytest.mark.integration
def test_log_json_goes_to_stderr(workspace: Path) -> None:
    _write(workspace, "intro.py", PASSING)
    proc = run_snipctl("--log-json", "verify", "intro.py", cwd=workspace)
    assert proc.returncode == 0
    events = [json.loads(line) for line in proc.stderr.splitlines()]
    assert {"verify-start", "document-start", "document-finish", "verify-finish"} <= {e["action"] for e in events}


@pytest.mark.integration
def test_validate_output_rejects_invalid_payload(workspace: Path) -> None:
    _write(workspace, "bad.json", json.dumps({"schema_name": "snipctl.report.v1"}))
    proc = run_snipctl("validate-output", "--schema", "snipctl.report.v1", "--file", "bad.json", cwd=workspace)
    assert proc.returncode == 1
    assert "schema validation failed" in proc.stderr


@pytest.mark.integration
@pytest.mark.parametrize("value", ["inf", "nan"])
def test_non_finite_timeout_is_config_error(workspace: Path, value: str) -> None:
    _write(workspace, "intro.py", PASSING)
    proc = run_snipctl("verify", "intro.py", "--timeout", value, cwd=workspace)
    assert proc.returncode == 2
    assert "timeout must be a positive number of seconds" in proc.stderr
