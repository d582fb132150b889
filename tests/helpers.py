from __future__ import annotations

import os
import subprocess
import sys
from pathlib import Path

from snipctl.evaluators.base import Environment, EvalFault, Evaluation, FaultKind

ROOT = Path(__file__).resolve().parents[1]

SAMPLE_PLAYGROUND = '''//: # Basics
//: Constants are declared with `let`.
let greeting = "hello"
print(greeting) // Prints "hello"

//languageName = "Swift"

/* A block comment
   /* with a nested one */
   still inside the outer comment
*/
let cat = "cat"; print(cat)
// cat
'''


def run_snipctl(*args: str, cwd: Path | None = None, env_extra: dict[str, str] | None = None) -> subprocess.CompletedProcess[str]:
    env = os.environ.copy()
    env["PYTHONPATH"] = str(ROOT / "src")
    for key in ("CI", "SNIPCTL_TIMEOUT", "SNIPCTL_JOBS", "SNIPCTL_RUN_ID", "SNIPCTL_LOG_JSON"):
        env.pop(key, None)
    env.update(env_extra or {})
    return subprocess.run(
        [sys.executable, "-m", "snipctl.cli", *args],
        cwd=(cwd or ROOT),
        env=env,
        text=True,
        capture_output=True,
        check=False,
    )


class ScriptedEvaluator:
    """Playground-style test double.

    `let name = expr` binds and reports the value, `print expr` reports the
    value, `fail` returns an exception fault.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, tuple[str, ...]]] = []

    def evaluate(self, source: str, environment: Environment) -> Evaluation:
        self.calls.append((source, environment.names()))
        output: list[str] = []
        bindings: dict[str, object] = {}
        for raw in source.splitlines():
            line = raw.strip()
            if line == "fail":
                return Evaluation(tuple(output), environment, EvalFault(FaultKind.EXCEPTION, "scripted failure"))
            if line.startswith("let "):
                name, _, expr = line[4:].partition("=")
                value = self._value(expr.strip(), environment, bindings)
                bindings[name.strip()] = value
                output.append(str(value))
            elif line.startswith("print "):
                output.append(str(self._value(line[6:].strip(), environment, bindings)))
        return Evaluation(tuple(output), environment.extend(bindings))

    @staticmethod
    def _value(expr: str, environment: Environment, local: dict[str, object]) -> object:
        total = 0
        for term in expr.split("+"):
            term = term.strip()
            if term.lstrip("-").isdigit():
                total += int(term)
            elif term in local:
                total += int(local[term])  # type: ignore[call-overload]
            else:
                total += int(environment.lookup(term))  # type: ignore[call-overload]
        return total
