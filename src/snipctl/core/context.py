from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from .clock import build_run_id

OutputFormat = Literal["text", "json", "jsonl"]


@dataclass(frozen=True)
class RunContext:
    run_id: str
    cwd: Path
    output_format: OutputFormat
    verbose: bool
    quiet: bool
    log_json: bool

    @classmethod
    def from_args(
        cls,
        run_id: str | None,
        output_format: OutputFormat = "text",
        verbose: bool = False,
        quiet: bool = False,
        log_json: bool = False,
        cwd: str | None = None,
    ) -> "RunContext":
        resolved_run_id = run_id or os.environ.get("SNIPCTL_RUN_ID") or build_run_id()
        return cls(
            run_id=resolved_run_id,
            cwd=Path(cwd or os.getcwd()).resolve(),
            output_format=output_format,
            verbose=verbose,
            quiet=quiet,
            log_json=log_json or os.environ.get("SNIPCTL_LOG_JSON", "") == "1",
        )
