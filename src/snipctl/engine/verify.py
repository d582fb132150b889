from __future__ import annotations

import difflib
import threading
from typing import Sequence

from ..config.model import DEFAULT_TIMEOUT_SECONDS
from ..core.context import RunContext
from ..core.logging import log_event
from ..evaluators.base import Environment, EvalFault, Evaluation, Evaluator, FaultKind
from ..extract.model import CodeBlock, Document, ProseBlock
from .model import DocumentRun, Status, VerificationResult


def normalize_lines(lines: Sequence[str], normalize_whitespace: bool = True) -> tuple[str, ...]:
    if not normalize_whitespace:
        return tuple(lines)
    return tuple(line.rstrip() for line in lines)


def line_diff(expected: Sequence[str], actual: Sequence[str]) -> tuple[str, ...]:
    return tuple(difflib.unified_diff(list(expected), list(actual), fromfile="expected", tofile="actual", lineterm=""))


def evaluate_with_timeout(evaluator: Evaluator, source: str, environment: Environment, timeout: float) -> Evaluation:
    """Run one evaluation on a daemon worker; give up after `timeout` seconds.

    A worker that overruns is abandoned, never joined, so a stuck runtime
    cannot block the rest of the document or interpreter shutdown.
    """
    outcome: list[Evaluation] = []
    errors: list[BaseException] = []

    def _target() -> None:
        try:
            outcome.append(evaluator.evaluate(source, environment))
        except Exception as exc:
            errors.append(exc)

    worker = threading.Thread(target=_target, name="snipctl-eval", daemon=True)
    worker.start()
    worker.join(max(0.001, float(timeout)))
    if worker.is_alive():
        return Evaluation((), environment, EvalFault(FaultKind.TIMEOUT, f"no result within {float(timeout):g}s"))
    if errors:
        exc = errors[0]
        return Evaluation((), environment, EvalFault(FaultKind.CRASH, f"evaluator error: {exc.__class__.__name__}: {exc}"))
    return outcome[0]


def _check_block(
    run: DocumentRun,
    block: CodeBlock,
    evaluator: Evaluator,
    timeout: float,
    normalize_whitespace: bool,
    ctx: RunContext | None,
) -> VerificationResult:
    evaluation = evaluate_with_timeout(evaluator, block.source, run.environment, timeout)
    common = {
        "document": run.path,
        "block_id": block.id,
        "line_range": block.line_range,
        "expected_output": block.expected_output,
    }
    if evaluation.fault is not None:
        if ctx is not None:
            log_event(
                ctx,
                "debug",
                "engine",
                "evaluation-fault",
                document=run.path,
                block_id=block.id,
                lines=str(block.line_range),
                kind=evaluation.fault.kind.value,
            )
        return VerificationResult(
            status=Status.EVALUATION_FAULT,
            actual_output=evaluation.output,
            fault=evaluation.fault,
            **common,
        )
    run.commit(evaluation.environment)
    actual = normalize_lines(evaluation.output, normalize_whitespace)
    if block.expected_output is None:
        return VerificationResult(status=Status.PASSED, actual_output=actual, **common)
    expected = normalize_lines(block.expected_output, normalize_whitespace)
    if actual == expected:
        return VerificationResult(status=Status.PASSED, actual_output=actual, **common)
    return VerificationResult(status=Status.FAILED, actual_output=actual, diff=line_diff(expected, actual), **common)


def verify_document(
    document: Document,
    evaluator: Evaluator,
    *,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    normalize_whitespace: bool = True,
    cancel: threading.Event | None = None,
    ctx: RunContext | None = None,
) -> DocumentRun:
    run = DocumentRun(document)
    run.start()
    if ctx is not None:
        log_event(ctx, "info", "engine", "document-start", document=document.path, blocks=len(document.blocks))
    for block in document.blocks:
        if cancel is not None and cancel.is_set():
            if ctx is not None:
                log_event(ctx, "warn", "engine", "cancelled", document=document.path, next_block=block.id)
            run.finish(cancelled=True)
            return run
        if isinstance(block, ProseBlock):
            if block.disabled:
                run.emit(
                    VerificationResult(document=document.path, block_id=block.id, line_range=block.line_range, status=Status.SKIPPED)
                )
            continue
        run.emit(_check_block(run, block, evaluator, timeout, normalize_whitespace, ctx))
    run.finish()
    if ctx is not None:
        log_event(
            ctx,
            "info",
            "engine",
            "document-finish",
            document=document.path,
            results=len(run.results),
            problems=sum(1 for row in run.results if row.is_problem),
        )
    return run


def verify(
    document: Document,
    adapter: Evaluator,
    *,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    normalize_whitespace: bool = True,
    cancel: threading.Event | None = None,
) -> tuple[VerificationResult, ...]:
    """Verify every block of `document` in source order with `adapter`."""
    run = verify_document(document, adapter, timeout=timeout, normalize_whitespace=normalize_whitespace, cancel=cancel)
    return tuple(run.results)
