from __future__ import annotations

import argparse
import json
import os
import sys

from .. import __version__
from ..commands.extract import configure_extract_parser, run_extract
from ..commands.verify import configure_verify_parser, run_verify
from ..contracts.catalog import list_catalog_entries
from ..contracts.validate import validate
from ..core.context import RunContext
from ..core.errors import ConfigError, ScriptError
from ..core.exit_codes import ERR_INTERNAL, ERR_VERIFY, OK
from ..core.logging import log_event
from .output import emit, render_error, resolve_output_format


def _version_string() -> str:
    return f"snipctl {__version__}"


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="snipctl", description="verify annotated code snippets in literate documents")
    p.add_argument("--version", action="version", version=_version_string())
    p.add_argument("--run-id", help="run identifier recorded in logs and reports")
    p.add_argument("--cwd", help="resolve paths and config from this directory")
    p.add_argument("--log-json", action="store_true", help="emit structured JSON log lines on stderr")
    vg = p.add_mutually_exclusive_group()
    vg.add_argument("--verbose", action="store_true", help="enable verbose diagnostics")
    vg.add_argument("--quiet", action="store_true", help="only report problems")
    sub = p.add_subparsers(dest="cmd", required=True)

    configure_verify_parser(sub)
    configure_extract_parser(sub)

    version_p = sub.add_parser("version", help="print the snipctl version")
    version_p.add_argument("--json", action="store_true", help="emit JSON output")

    val_p = sub.add_parser("validate-output", help="validate a JSON file against a snipctl schema")
    val_p.add_argument("--schema", required=True, choices=[entry.name for entry in list_catalog_entries()])
    val_p.add_argument("--file", required=True)
    return p


def _run_validate_output(ctx: RunContext, ns: argparse.Namespace) -> int:
    try:
        payload = json.loads((ctx.cwd / ns.file).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigError(f"cannot load {ns.file}: {exc}", kind="path_error") from exc
    try:
        validate(ns.schema, payload)
    except ScriptError as exc:
        raise ScriptError(exc.message, ERR_VERIFY, exc.kind) from exc
    print(f"{ns.file}: valid {ns.schema}")
    return OK


def dispatch_command(ctx: RunContext, ns: argparse.Namespace) -> int:
    if ns.cmd == "verify":
        return run_verify(ctx, ns)
    if ns.cmd == "extract":
        return run_extract(ctx, ns)
    if ns.cmd == "validate-output":
        return _run_validate_output(ctx, ns)
    if ns.cmd == "version":
        if ns.json:
            emit({"schema_version": 1, "tool": "snipctl", "status": "ok", "snipctl_version": __version__}, as_json=True)
        else:
            print(_version_string())
        return OK
    raise ScriptError(f"unknown command `{ns.cmd}`", kind="usage_error")


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    ns = parser.parse_args(argv)
    fmt = resolve_output_format(cli_format=getattr(ns, "format", None), ci_present=bool(os.environ.get("CI")))
    ctx = None
    try:
        ctx = RunContext.from_args(ns.run_id, fmt, ns.verbose, ns.quiet, ns.log_json, ns.cwd)  # type: ignore[arg-type]
        if not ctx.cwd.is_dir():
            raise ConfigError(f"--cwd is not a directory: {ns.cwd}", kind="path_error")
        log_event(ctx, "debug", "cli", "start", cmd=ns.cmd, fmt=ctx.output_format)
        rc = dispatch_command(ctx, ns)
        log_event(ctx, "debug", "cli", "finish", cmd=ns.cmd, rc=rc)
        return rc
    except ScriptError as exc:
        print(
            render_error(
                as_json=fmt == "json",
                message=str(exc),
                code=exc.code,
                kind=exc.kind,
                run_id=ctx.run_id if ctx is not None else "",
            ),
            file=sys.stderr,
        )
        return exc.code
    except Exception as exc:  # pragma: no cover
        print(
            render_error(
                as_json=fmt == "json",
                message=f"internal error: {exc}",
                code=ERR_INTERNAL,
                kind="internal_error",
                run_id=ctx.run_id if ctx is not None else "",
            ),
            file=sys.stderr,
        )
        return ERR_INTERNAL
