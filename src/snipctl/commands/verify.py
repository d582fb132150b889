from __future__ import annotations

import argparse
import signal
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

from ..config.loader import load_config
from ..config.model import VerifyConfig
from ..core.context import RunContext
from ..core.exit_codes import ERR_VERIFY, OK
from ..core.logging import log_event
from ..engine.run import verify_documents
from ..evaluators.base import Evaluator
from ..evaluators.registry import EvaluatorFactory, evaluator_factory
from ..extract.model import Document
from ..reporting.aggregate import aggregate
from ..reporting.render import build_report_payload, render_json, render_jsonl, render_junit, render_text, write_report_file
from .inputs import discover_documents, load_document


def configure_verify_parser(sub: argparse._SubParsersAction) -> None:
    p = sub.add_parser("verify", help="run annotated snippets and compare their output with the annotations")
    p.add_argument("paths", nargs="+", help="documents, directories, *.playground bundles or glob expressions")
    p.add_argument("--timeout", type=float, help="per-snippet timeout in seconds (default 2)")
    p.add_argument("--jobs", "--parallel", dest="jobs", type=int, help="documents verified in parallel")
    p.add_argument("--strict-whitespace", action="store_true", help="do not trim trailing whitespace before comparing")
    p.add_argument("--dialect", help="annotation dialect (c, python); default: by file suffix")
    p.add_argument("--evaluator", help="snippet runtime adapter (python, command)")
    p.add_argument("--command", help="runtime command for the command evaluator, e.g. 'swift -'")
    p.add_argument("--glob", action="append", help="file pattern used when a path is a directory (repeatable)")
    p.add_argument("--prose-marker", help="override the prose line prefix")
    p.add_argument("--result-marker", help="override the result annotation prefix")
    p.add_argument("--disable-marker", help="override the disabled-example prefix")
    p.add_argument("--config", help="explicit config file (toml or yaml)")
    p.add_argument("--format", choices=["text", "json", "jsonl"], default=None, help="report format on stdout")
    p.add_argument("--out", help="also write the JSON report to this path")
    p.add_argument("--junit", help="also write a JUnit XML report to this path")


def config_from_args(ctx: RunContext, ns: argparse.Namespace) -> VerifyConfig:
    overrides: dict[str, Any] = {
        "timeout": ns.timeout,
        "jobs": ns.jobs,
        "normalize_whitespace": False if ns.strict_whitespace else None,
        "dialect": ns.dialect,
        "evaluator": ns.evaluator,
        "command": ns.command,
        "globs": ns.glob,
        "prose_marker": ns.prose_marker,
        "result_marker": ns.result_marker,
        "disable_marker": ns.disable_marker,
    }
    return load_config(ctx.cwd, ns.config, overrides)


@contextmanager
def cancel_on_interrupt(ctx: RunContext) -> Iterator[threading.Event]:
    """Turn SIGINT into a run-level cancellation signal while verifying."""
    cancel = threading.Event()
    if threading.current_thread() is not threading.main_thread():
        yield cancel
        return

    def _handler(_signum: int, _frame: object) -> None:
        log_event(ctx, "warn", "cli", "interrupt")
        cancel.set()

    previous = signal.signal(signal.SIGINT, _handler)
    try:
        yield cancel
    finally:
        signal.signal(signal.SIGINT, previous)


def _evaluator_provider(ctx: RunContext, config: VerifyConfig, documents: list[tuple[Path, Document]]):
    factories: dict[str, EvaluatorFactory] = {}
    by_path: dict[str, str] = {}
    for path, document in documents:
        dialect = config.dialect_for(path)
        if dialect.name not in factories:
            factories[dialect.name] = evaluator_factory(config, dialect, ctx.cwd)
        by_path[document.path] = dialect.name

    def _provider(document: Document) -> Evaluator:
        return factories[by_path[document.path]]()

    return _provider


def run_verify(ctx: RunContext, ns: argparse.Namespace) -> int:
    config = config_from_args(ctx, ns)
    paths = discover_documents(ns.paths, config.globs, ctx.cwd)
    loaded = [(path, load_document(ctx, path, config)) for path in paths]
    provider = _evaluator_provider(ctx, config, loaded)
    documents = [document for _, document in loaded]
    log_event(ctx, "info", "cli", "verify-start", documents=len(documents), jobs=config.jobs, timeout=config.timeout)
    with cancel_on_interrupt(ctx) as cancel:
        runs = verify_documents(
            documents,
            provider,
            jobs=config.jobs,
            timeout=config.timeout,
            normalize_whitespace=config.normalize_whitespace,
            cancel=cancel,
            ctx=ctx,
        )
    report = aggregate(runs)
    payload = build_report_payload(report, run_id=ns.run_id or "")
    fmt = ns.format or ctx.output_format
    if fmt == "json":
        print(render_json(payload))
    elif fmt == "jsonl":
        print(render_jsonl(payload))
    else:
        print(render_text(payload, quiet=ctx.quiet, verbose=ctx.verbose))
    if ns.out:
        write_report_file(ctx.cwd / ns.out, render_json(payload))
    if ns.junit:
        write_report_file(ctx.cwd / ns.junit, render_junit(payload))
    log_event(ctx, "info", "cli", "verify-finish", status=report.status, cancelled=report.cancelled, **report.summary.as_dict())
    if report.status == "pass" and not report.cancelled:
        return OK
    return ERR_VERIFY
