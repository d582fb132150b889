from __future__ import annotations

import subprocess
import time
from dataclasses import dataclass
from pathlib import Path

TIMEOUT_EXIT_CODE = 124


@dataclass(frozen=True)
class CommandResult:
    code: int
    stdout: str
    stderr: str
    duration_ms: int

    @property
    def timed_out(self) -> bool:
        return self.code == TIMEOUT_EXIT_CODE


def _text(value: str | bytes | None) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value


def run_command(
    cmd: list[str],
    cwd: Path | None = None,
    input_text: str | None = None,
    timeout_seconds: float = 0,
    env: dict[str, str] | None = None,
) -> CommandResult:
    started = time.monotonic()
    try:
        proc = subprocess.run(
            cmd,
            cwd=cwd,
            input=input_text,
            text=True,
            capture_output=True,
            check=False,
            env=env,
            timeout=(timeout_seconds if timeout_seconds > 0 else None),
        )
    except subprocess.TimeoutExpired as exc:
        return CommandResult(
            code=TIMEOUT_EXIT_CODE,
            stdout=_text(exc.stdout),
            stderr=(_text(exc.stderr) + f"\ncommand timed out after {timeout_seconds}s").strip(),
            duration_ms=int((time.monotonic() - started) * 1000),
        )
    return CommandResult(
        code=proc.returncode,
        stdout=proc.stdout or "",
        stderr=proc.stderr or "",
        duration_ms=int((time.monotonic() - started) * 1000),
    )
