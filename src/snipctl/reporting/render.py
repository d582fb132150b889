from __future__ import annotations

from pathlib import Path
from typing import Any
from xml.etree.ElementTree import Element, SubElement, tostring

from ..contracts.ids import DOCUMENT, REPORT
from ..contracts.validate import validate
from ..core.serialize import dumps_json
from ..engine.model import Status, VerificationResult
from ..extract.model import Document, anomaly_payload, block_payload
from .aggregate import Report

_TEXT_LABELS = {
    Status.PASSED: "PASS",
    Status.FAILED: "FAIL",
    Status.SKIPPED: "SKIP",
    Status.EVALUATION_FAULT: "FAULT",
}


def result_row(result: VerificationResult) -> dict[str, Any]:
    return {
        "document": result.document,
        "block_id": result.block_id,
        "line_start": result.line_range.start,
        "line_end": result.line_range.end,
        "status": result.status.value,
        "expected_output": None if result.expected_output is None else list(result.expected_output),
        "actual_output": list(result.actual_output),
        "diff": list(result.diff),
        "fault": None if result.fault is None else {"kind": result.fault.kind.value, "message": result.fault.message},
    }


def build_report_payload(report: Report, *, run_id: str = "") -> dict[str, Any]:
    summary = {**report.summary.as_dict(), "documents": len(report.documents)}
    payload: dict[str, Any] = {
        "schema_name": REPORT,
        "schema_version": 1,
        "tool": "snipctl",
        "kind": "verify-run",
        "run_id": run_id,
        "status": report.status,
        "cancelled": report.cancelled,
        "summary": summary,
        "documents": [
            {
                "path": doc.path,
                "status": doc.status,
                "cancelled": doc.cancelled,
                "pass_rate": doc.pass_rate,
                "summary": doc.summary.as_dict(),
                "anomalies": [anomaly_payload(item) for item in doc.anomalies],
                "results": [result_row(row) for row in doc.results],
            }
            for doc in report.documents
        ],
        "failures": [
            {
                "document": row.document,
                "block_id": row.block_id,
                "line_start": row.line_range.start,
                "line_end": row.line_range.end,
                "status": row.status.value,
                "detail": row.detail,
            }
            for row in report.failures
        ],
    }
    validate(REPORT, payload)
    return payload


def build_document_payload(document: Document) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "schema_name": DOCUMENT,
        "schema_version": 1,
        "tool": "snipctl",
        "path": document.path,
        "dialect": document.dialect,
        "blocks": [block_payload(block) for block in document.blocks],
        "anomalies": [anomaly_payload(item) for item in document.anomalies],
    }
    validate(DOCUMENT, payload)
    return payload


def render_json(payload: dict[str, Any]) -> str:
    return dumps_json(payload)


def render_jsonl(payload: dict[str, Any]) -> str:
    lines = [
        dumps_json({"kind": "result", **row})
        for doc in payload.get("documents", [])
        for row in doc.get("results", [])
    ]
    lines.append(
        dumps_json(
            {
                "kind": "summary",
                "status": payload.get("status", ""),
                "cancelled": payload.get("cancelled", False),
                "summary": payload.get("summary", {}),
            }
        )
    )
    return "\n".join(lines)


def _location(row: dict[str, Any]) -> str:
    start, end = int(row["line_start"]), int(row["line_end"])
    lines = f"{start}" if start == end else f"{start}-{end}"
    return f"{row['document']}#{row['block_id']} (lines {lines})"


def render_text(payload: dict[str, Any], *, quiet: bool = False, verbose: bool = False) -> str:
    out: list[str] = []
    for doc in payload.get("documents", []):
        for anomaly in doc.get("anomalies", []):
            if not quiet:
                out.append(f"WARN {doc['path']}:{anomaly['line']} {anomaly['kind']}: {anomaly['message']}")
        for row in doc.get("results", []):
            status = Status(row["status"])
            if quiet and status not in {Status.FAILED, Status.EVALUATION_FAULT}:
                continue
            label = _TEXT_LABELS[status]
            if status is Status.EVALUATION_FAULT:
                fault = row.get("fault") or {}
                out.append(f"{label} {_location(row)} {fault.get('kind', '')}: {fault.get('message', '')}")
                continue
            out.append(f"{label} {_location(row)}")
            if status is Status.FAILED:
                out.extend(f"  {line}" for line in row.get("diff", []))
            elif verbose and row.get("actual_output"):
                out.extend(f"  | {line}" for line in row["actual_output"])
        if doc.get("cancelled"):
            out.append(f"CANCELLED {doc['path']}: remaining blocks were not evaluated")
    summary = payload.get("summary", {})
    out.append(
        f"summary: documents={int(summary.get('documents', 0))} passed={int(summary.get('passed', 0))} "
        f"failed={int(summary.get('failed', 0))} evaluation_fault={int(summary.get('evaluation_fault', 0))} "
        f"skipped={int(summary.get('skipped', 0))} total={int(summary.get('total', 0))}"
    )
    return "\n".join(out)


def render_junit(payload: dict[str, Any]) -> str:
    summary = payload.get("summary", {})
    root = Element(
        "testsuites",
        name="snipctl-verify",
        tests=str(int(summary.get("total", 0))),
        failures=str(int(summary.get("failed", 0))),
        errors=str(int(summary.get("evaluation_fault", 0))),
        skipped=str(int(summary.get("skipped", 0))),
    )
    for doc in payload.get("documents", []):
        rows = doc.get("results", [])
        doc_summary = doc.get("summary", {})
        suite = SubElement(
            root,
            "testsuite",
            name=str(doc["path"]),
            tests=str(len(rows)),
            failures=str(int(doc_summary.get("failed", 0))),
            errors=str(int(doc_summary.get("evaluation_fault", 0))),
            skipped=str(int(doc_summary.get("skipped", 0))),
        )
        for row in rows:
            case = SubElement(suite, "testcase", classname=f"snipctl.{doc['path']}", name=f"block-{row['block_id']}")
            status = Status(row["status"])
            if status is Status.FAILED:
                failure = SubElement(case, "failure", message=f"output mismatch at {_location(row)}")
                failure.text = "\n".join(row.get("diff", []))
            elif status is Status.EVALUATION_FAULT:
                fault = row.get("fault") or {}
                error = SubElement(case, "error", type=str(fault.get("kind", "")), message=str(fault.get("message", "")))
                error.text = str(fault.get("message", ""))
            elif status is Status.SKIPPED:
                SubElement(case, "skipped", message="disabled example")
    return tostring(root, encoding="unicode")


def write_report_file(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text + "\n", encoding="utf-8")
    return path
