from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Protocol, runtime_checkable


class FaultKind(str, Enum):
    EXCEPTION = "exception"
    TIMEOUT = "timeout"
    CRASH = "crash"


@dataclass(frozen=True)
class EvalFault:
    kind: FaultKind
    message: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", FaultKind(self.kind))
        object.__setattr__(self, "message", str(self.message).strip())

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"


@dataclass(frozen=True)
class TranscriptEntry:
    source: str
    output_lines: int


@dataclass(frozen=True, eq=False)
class Environment:
    """Ordered bindings accumulated across the snippets of one document.

    Values are never mutated in place: `extend` and `record` return a new
    environment, so a faulting snippet leaves the previous one intact.
    """

    bindings: Mapping[str, object] = field(default_factory=dict)
    transcript: tuple[TranscriptEntry, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "bindings", MappingProxyType(dict(self.bindings)))
        object.__setattr__(self, "transcript", tuple(self.transcript))

    def lookup(self, name: str) -> object:
        if name not in self.bindings:
            raise LookupError(name)
        return self.bindings[name]

    def names(self) -> tuple[str, ...]:
        return tuple(self.bindings)

    def extend(self, bindings: Mapping[str, object]) -> "Environment":
        merged = dict(self.bindings)
        merged.update(bindings)
        return Environment(merged, self.transcript)

    def record(self, source: str, output_lines: int) -> "Environment":
        return Environment(self.bindings, (*self.transcript, TranscriptEntry(source, int(output_lines))))

    def __len__(self) -> int:
        return len(self.bindings)

    def __repr__(self) -> str:
        names = ", ".join(self.bindings)
        return f"Environment([{names}], transcript={len(self.transcript)})"


@dataclass(frozen=True)
class Evaluation:
    output: tuple[str, ...]
    environment: Environment
    fault: EvalFault | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "output", tuple(str(line) for line in self.output))

    @property
    def ok(self) -> bool:
        return self.fault is None


@runtime_checkable
class Evaluator(Protocol):
    def evaluate(self, source: str, environment: Environment) -> Evaluation: ...
