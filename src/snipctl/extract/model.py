from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union


@dataclass(frozen=True, order=True)
class LineRange:
    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start < 1 or self.end < self.start:
            raise ValueError(f"invalid line range {self.start}-{self.end}")

    def __str__(self) -> str:
        return f"{self.start}" if self.start == self.end else f"{self.start}-{self.end}"


@dataclass(frozen=True)
class ProseBlock:
    id: int
    text: str
    line_range: LineRange
    disabled: bool = False

    @property
    def kind(self) -> str:
        return "disabled" if self.disabled else "prose"


@dataclass(frozen=True)
class CodeBlock:
    id: int
    source: str
    line_range: LineRange
    declared_bindings: frozenset[str] = frozenset()
    expected_output: tuple[str, ...] | None = None

    @property
    def kind(self) -> str:
        return "code"


Block = Union[ProseBlock, CodeBlock]


@dataclass(frozen=True)
class ExtractionAnomaly:
    kind: str
    line: int
    message: str


@dataclass(frozen=True)
class Document:
    path: str
    blocks: tuple[Block, ...] = ()
    anomalies: tuple[ExtractionAnomaly, ...] = ()
    dialect: str = ""

    @property
    def code_blocks(self) -> tuple[CodeBlock, ...]:
        return tuple(block for block in self.blocks if isinstance(block, CodeBlock))

    def block(self, block_id: int) -> Block:
        for block in self.blocks:
            if block.id == block_id:
                return block
        raise KeyError(block_id)


def block_payload(block: Block) -> dict[str, Any]:
    row: dict[str, Any] = {
        "id": block.id,
        "kind": block.kind,
        "line_start": block.line_range.start,
        "line_end": block.line_range.end,
    }
    if isinstance(block, CodeBlock):
        row["source"] = block.source
        row["declared_bindings"] = sorted(block.declared_bindings)
        row["expected_output"] = None if block.expected_output is None else list(block.expected_output)
    else:
        row["text"] = block.text
    return row


def anomaly_payload(anomaly: ExtractionAnomaly) -> dict[str, Any]:
    return {"kind": anomaly.kind, "line": anomaly.line, "message": anomaly.message}
