from __future__ import annotations

from pathlib import Path
from typing import Sequence

from ..config.model import DEFAULT_TIMEOUT_SECONDS
from ..core.errors import ConfigError
from ..core.process import run_command
from .base import Environment, EvalFault, Evaluation, FaultKind

_STDERR_TAIL_LINES = 5


class CommandEvaluator:
    """Pipes snippets to an external runtime, e.g. `swift -` or `node -`.

    Each call starts a fresh process, so the committed transcript of the
    document is replayed first and its output lines are dropped.
    """

    def __init__(self, command: Sequence[str], timeout: float = DEFAULT_TIMEOUT_SECONDS, cwd: Path | None = None) -> None:
        if not command:
            raise ConfigError("the command evaluator needs a runtime command (set --command or `command` in config)")
        self.command = tuple(command)
        self.timeout = float(timeout)
        self.cwd = cwd

    def program(self, source: str, environment: Environment) -> str:
        parts = [entry.source for entry in environment.transcript]
        parts.append(source)
        return "\n".join(parts) + "\n"

    def evaluate(self, source: str, environment: Environment) -> Evaluation:
        try:
            result = run_command(
                list(self.command),
                cwd=self.cwd,
                input_text=self.program(source, environment),
                timeout_seconds=self.timeout,
            )
        except OSError as exc:
            return Evaluation((), environment, EvalFault(FaultKind.CRASH, f"cannot start `{self.command[0]}`: {exc}"))
        replayed = sum(entry.output_lines for entry in environment.transcript)
        output = tuple(result.stdout.splitlines()[replayed:])
        if result.timed_out:
            return Evaluation(output, environment, EvalFault(FaultKind.TIMEOUT, f"snippet exceeded {self.timeout:g}s"))
        if result.code != 0:
            tail = "\n".join(result.stderr.strip().splitlines()[-_STDERR_TAIL_LINES:])
            message = f"exit status {result.code}" + (f": {tail}" if tail else "")
            kind = FaultKind.CRASH if result.code < 0 else FaultKind.EXCEPTION
            return Evaluation(output, environment, EvalFault(kind, message))
        return Evaluation(output, environment.record(source, len(output)))
