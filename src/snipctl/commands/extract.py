from __future__ import annotations

import argparse

from ..config.loader import load_config
from ..core.context import RunContext
from ..core.exit_codes import OK
from ..core.serialize import dumps_json
from ..reporting.render import build_document_payload
from .inputs import discover_documents, load_document


def configure_extract_parser(sub: argparse._SubParsersAction) -> None:
    p = sub.add_parser("extract", help="print the blocks extracted from documents as JSON")
    p.add_argument("paths", nargs="+")
    p.add_argument("--dialect", help="annotation dialect (c, python); default: by file suffix")
    p.add_argument("--glob", action="append", help="file pattern used when a path is a directory (repeatable)")
    p.add_argument("--config", help="explicit config file (toml or yaml)")
    p.add_argument("--pretty", action="store_true", help="indent the JSON output")


def run_extract(ctx: RunContext, ns: argparse.Namespace) -> int:
    config = load_config(ctx.cwd, ns.config, {"dialect": ns.dialect, "globs": ns.glob})
    for path in discover_documents(ns.paths, config.globs, ctx.cwd):
        document = load_document(ctx, path, config)
        print(dumps_json(build_document_payload(document), pretty=ns.pretty))
    return OK
