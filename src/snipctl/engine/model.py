from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from ..evaluators.base import Environment, EvalFault
from ..extract.model import Document, LineRange


class Status(str, Enum):
    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"
    EVALUATION_FAULT = "evaluation_fault"


PROBLEM_STATUSES = frozenset({Status.FAILED, Status.EVALUATION_FAULT})


@dataclass(frozen=True)
class VerificationResult:
    document: str
    block_id: int
    line_range: LineRange
    status: Status
    actual_output: tuple[str, ...] = ()
    expected_output: tuple[str, ...] | None = None
    diff: tuple[str, ...] = ()
    fault: EvalFault | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "status", Status(self.status))
        object.__setattr__(self, "actual_output", tuple(self.actual_output))
        if self.expected_output is not None:
            object.__setattr__(self, "expected_output", tuple(self.expected_output))
        object.__setattr__(self, "diff", tuple(self.diff))

    @property
    def is_problem(self) -> bool:
        return self.status in PROBLEM_STATUSES

    @property
    def detail(self) -> str:
        if self.fault is not None:
            return str(self.fault)
        return "\n".join(self.diff)


class RunState(str, Enum):
    READY = "ready"
    RUNNING = "running"
    DONE = "done"


@dataclass
class DocumentRun:
    """Verification state of one document: ready -> running -> done."""

    document: Document
    state: RunState = RunState.READY
    environment: Environment = field(default_factory=Environment)
    results: list[VerificationResult] = field(default_factory=list)
    cancelled: bool = False

    def start(self) -> None:
        if self.state is not RunState.READY:
            raise RuntimeError(f"cannot start a document run in state `{self.state.value}`")
        self.state = RunState.RUNNING

    def emit(self, result: VerificationResult) -> None:
        if self.state is not RunState.RUNNING:
            raise RuntimeError(f"cannot record results in state `{self.state.value}`")
        if self.results and result.block_id <= self.results[-1].block_id:
            raise RuntimeError(f"result for block {result.block_id} emitted out of source order")
        self.results.append(result)

    def commit(self, environment: Environment) -> None:
        self.environment = environment

    def finish(self, cancelled: bool = False) -> None:
        self.cancelled = cancelled
        self.state = RunState.DONE

    @property
    def path(self) -> str:
        return self.document.path
