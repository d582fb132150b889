from __future__ import annotations

import json
import xml.etree.ElementTree as ET
from pathlib import Path

from helpers import ScriptedEvaluator

from snipctl.contracts import validate
from snipctl.engine import Status, verify_documents
from snipctl.extract import extract
from snipctl.reporting import (
    aggregate,
    build_document_payload,
    build_report_payload,
    render_jsonl,
    render_junit,
    render_text,
    write_report_file,
)


def _report():
    docs = [
        extract("let a = 1\nlet b = a + 1 // 3\n\nfail\n", path="b.swift"),
        extract("//let x = 1\nlet y = 2 // 2\n", path="a.swift"),
    ]
    return aggregate(verify_documents(docs, lambda _doc: ScriptedEvaluator()))


def test_aggregate_keeps_document_order_and_counts() -> None:
    report = _report()
    assert [doc.path for doc in report.documents] == ["b.swift", "a.swift"]
    assert report.summary.as_dict() == {"total": 5, "passed": 2, "failed": 1, "skipped": 1, "evaluation_fault": 1}
    assert report.status == "fail"
    assert not report.cancelled


def test_failures_are_ordered_by_document_then_block() -> None:
    report = _report()
    assert [(row.document, row.block_id, row.status) for row in report.failures] == [
        ("b.swift", 2, Status.FAILED),
        ("b.swift", 3, Status.EVALUATION_FAULT),
    ]


def test_pass_rate_ignores_skipped_blocks() -> None:
    first, second = _report().documents
    assert first.pass_rate == round(1 / 3, 4)
    assert second.pass_rate == 1.0
    assert second.status == "pass"


def test_aggregate_of_nothing_passes() -> None:
    report = aggregate(())
    assert report.status == "pass"
    assert report.summary.total == 0


def test_report_payload_is_schema_valid() -> None:
    payload = build_report_payload(_report(), run_id="r1")
    validate("snipctl.report.v1", payload)
    assert payload["summary"]["documents"] == 2
    assert payload["failures"][0]["detail"].startswith("--- expected")
    assert payload["failures"][1]["detail"] == "exception: scripted failure"
    assert json.loads(json.dumps(payload)) == payload


def test_document_payload_is_schema_valid() -> None:
    payload = build_document_payload(extract("//: hi\nlet a = 1 // 1\n/* open", path="x.swift"))
    assert [block["kind"] for block in payload["blocks"]] == ["prose", "code", "prose"]
    assert payload["anomalies"][0]["kind"] == "unterminated_comment"


def test_jsonl_has_one_record_per_result_and_a_summary() -> None:
    lines = render_jsonl(build_report_payload(_report())).splitlines()
    records = [json.loads(line) for line in lines]
    assert [rec["kind"] for rec in records] == ["result"] * 5 + ["summary"]
    assert records[-1]["status"] == "fail"


def test_text_report_locates_problems() -> None:
    text = render_text(build_report_payload(_report()))
    assert "FAIL b.swift#2 (lines 2)" in text
    assert "FAULT b.swift#3 (lines 4) exception: scripted failure" in text
    assert "SKIP a.swift#1 (lines 1)" in text
    assert text.splitlines()[-1] == "summary: documents=2 passed=2 failed=1 evaluation_fault=1 skipped=1 total=5"


def test_quiet_text_report_only_lists_problems() -> None:
    text = render_text(build_report_payload(_report()), quiet=True)
    assert "PASS" not in text
    assert "SKIP" not in text
    assert "FAIL b.swift#2" in text


def test_junit_report(tmp_path: Path) -> None:
    out = write_report_file(tmp_path / "out" / "junit.xml", render_junit(build_report_payload(_report())))
    root = ET.fromstring(out.read_text(encoding="utf-8"))
    assert root.tag == "testsuites"
    assert root.attrib["failures"] == "1"
    assert root.attrib["errors"] == "1"
    suites = root.findall("testsuite")
    assert [suite.attrib["name"] for suite in suites] == ["b.swift", "a.swift"]
    assert suites[0].find("testcase[@name='block-2']/failure") is not None
    assert suites[1].find("testcase[@name='block-1']/skipped") is not None
