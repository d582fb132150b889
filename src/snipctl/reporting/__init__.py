"""Report aggregation and rendering (json, jsonl, text, junit)."""

from .aggregate import DocumentReport, Report, Summary, aggregate
from .render import (
    build_document_payload,
    build_report_payload,
    render_json,
    render_jsonl,
    render_junit,
    render_text,
    result_row,
    write_report_file,
)

__all__ = [
    "DocumentReport",
    "Report",
    "Summary",
    "aggregate",
    "build_document_payload",
    "build_report_payload",
    "render_json",
    "render_jsonl",
    "render_junit",
    "render_text",
    "result_row",
    "write_report_file",
]
