from __future__ import annotations

import builtins
import copy
import io
import sys
import time
import traceback
from types import FrameType
from typing import Any, Callable, Mapping

from ..config.model import DEFAULT_TIMEOUT_SECONDS
from .base import Environment, EvalFault, Evaluation, FaultKind


class _SnippetTimeout(BaseException):
    pass


def _deadline_tracer(deadline: float) -> Callable[[FrameType, str, Any], Any]:
    def tracer(frame: FrameType, event: str, arg: Any) -> Any:
        if time.monotonic() > deadline:
            raise _SnippetTimeout()
        return tracer

    return tracer


def _fault_message(exc: BaseException, filename: str) -> str:
    frames = [frame for frame in traceback.extract_tb(exc.__traceback__) if frame.filename == filename]
    where = f" (line {frames[-1].lineno})" if frames else ""
    return f"{exc.__class__.__name__}: {exc}{where}"


def _snapshot(bindings: Mapping[str, object]) -> dict[str, object]:
    """Deep-copy committed bindings; values that refuse to copy (modules) are shared."""
    try:
        return copy.deepcopy(dict(bindings))
    except Exception:
        return _snapshot_each(bindings)


def _snapshot_each(bindings: Mapping[str, object]) -> dict[str, object]:
    memo: dict[int, Any] = {}
    copied: dict[str, object] = {}
    for name, value in bindings.items():
        try:
            copied[name] = copy.deepcopy(value, memo)
        except Exception:
            copied[name] = value
    return copied


class PythonEvaluator:
    """Runs snippets in-process with `exec`, one globals dict per document.

    Functions defined by earlier snippets keep that dict as `__globals__`, so
    they see later rebindings. Each snippet runs on deep copies of the
    committed bindings: a faulting snippet cannot mutate the environment it
    was given.
    """

    def __init__(self, timeout: float = DEFAULT_TIMEOUT_SECONDS, filename: str = "<snippet>") -> None:
        self.timeout = float(timeout)
        self.filename = filename
        self._sink = io.StringIO()
        scoped = dict(vars(builtins))
        scoped["print"] = self._print
        self._globals: dict[str, Any] = {"__name__": "__snippet__", "__builtins__": scoped}

    def _print(self, *args: Any, **kwargs: Any) -> None:
        kwargs.setdefault("file", self._sink)
        print(*args, **kwargs)

    def _load(self, environment: Environment) -> dict[str, Any]:
        bindings = _snapshot(environment.bindings)
        for name in [name for name in self._globals if not name.startswith("__")]:
            if name not in bindings:
                del self._globals[name]
        self._globals.update(bindings)
        return self._globals

    def evaluate(self, source: str, environment: Environment) -> Evaluation:
        try:
            code = compile(source, self.filename, "exec")
        except SyntaxError as exc:
            return Evaluation((), environment, EvalFault(FaultKind.EXCEPTION, f"SyntaxError: {exc.msg} (line {exc.lineno})"))
        buffer = self._sink = io.StringIO()
        namespace = self._load(environment)
        previous = sys.gettrace()
        fault: EvalFault | None = None
        sys.settrace(_deadline_tracer(time.monotonic() + self.timeout))
        try:
            exec(code, namespace)
        except _SnippetTimeout:
            fault = EvalFault(FaultKind.TIMEOUT, f"snippet exceeded {self.timeout:g}s")
        except (Exception, SystemExit) as exc:
            fault = EvalFault(FaultKind.EXCEPTION, _fault_message(exc, self.filename))
        finally:
            sys.settrace(previous)
        output = tuple(buffer.getvalue().splitlines())
        if fault is not None:
            return Evaluation(output, environment, fault)
        bindings = {name: value for name, value in namespace.items() if not name.startswith("__")}
        return Evaluation(output, Environment(bindings, environment.transcript).record(source, len(output)))
