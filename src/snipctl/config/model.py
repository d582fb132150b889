from __future__ import annotations

import math
import re
from dataclasses import dataclass, field, replace
from functools import cached_property
from pathlib import Path

from ..core.errors import ConfigError

EVALUATORS = ("python", "command")
DEFAULT_TIMEOUT_SECONDS = 2.0
DEFAULT_GLOBS = ("*.swift",)


@dataclass(frozen=True)
class Dialect:
    """Line-prefix conventions of one family of literate documents."""

    name: str
    suffixes: tuple[str, ...]
    prose_marker: str
    comment_marker: str
    result_marker: str
    disable_marker: str
    block_open: str | None = None
    block_close: str | None = None
    quotes: tuple[str, ...] = ('"',)
    multiline_quotes: tuple[str, ...] = ()
    binding_pattern: str = ""
    default_evaluator: str = "command"

    @cached_property
    def binding_regex(self) -> re.Pattern[str] | None:
        return re.compile(self.binding_pattern, re.MULTILINE) if self.binding_pattern else None

    def with_markers(
        self,
        prose_marker: str | None = None,
        result_marker: str | None = None,
        disable_marker: str | None = None,
    ) -> "Dialect":
        return replace(
            self,
            prose_marker=prose_marker or self.prose_marker,
            result_marker=result_marker or self.result_marker,
            disable_marker=disable_marker or self.disable_marker,
        )


C_DIALECT = Dialect(
    name="c",
    suffixes=(".swift", ".c", ".h", ".js", ".ts", ".kt", ".go", ".rs"),
    prose_marker="//:",
    comment_marker="//",
    result_marker="//",
    disable_marker="//",
    block_open="/*",
    block_close="*/",
    multiline_quotes=('"""',),
    binding_pattern=r"(?:^|;)[ \t]*(?:let|var|const)[ \t]+([^\s:=;,()]+)",
)

PYTHON_DIALECT = Dialect(
    name="python",
    suffixes=(".py",),
    prose_marker="#:",
    comment_marker="#",
    result_marker="#",
    disable_marker="#",
    quotes=('"', "'"),
    multiline_quotes=('"""', "'''"),
    binding_pattern=r"(?:^|;)[ \t]*(?:(?:def|class)[ \t]+([A-Za-z_]\w*)|([A-Za-z_]\w*)[ \t]*(?::[^=\n]*)?=(?!=))",
    default_evaluator="python",
)

DIALECTS: dict[str, Dialect] = {d.name: d for d in (C_DIALECT, PYTHON_DIALECT)}


def dialect_named(name: str) -> Dialect:
    dialect = DIALECTS.get(name)
    if dialect is None:
        raise ConfigError(f"unknown dialect `{name}`: expected one of {sorted(DIALECTS)}")
    return dialect


def dialect_for_suffix(path: Path | str) -> Dialect:
    suffix = Path(path).suffix.lower()
    for dialect in DIALECTS.values():
        if suffix in dialect.suffixes:
            return dialect
    return C_DIALECT


@dataclass(frozen=True)
class VerifyConfig:
    dialect: str | None = None
    prose_marker: str | None = None
    result_marker: str | None = None
    disable_marker: str | None = None
    normalize_whitespace: bool = True
    timeout: float = DEFAULT_TIMEOUT_SECONDS
    jobs: int = 1
    evaluator: str | None = None
    command: tuple[str, ...] = ()
    globs: tuple[str, ...] = field(default=DEFAULT_GLOBS)

    def __post_init__(self) -> None:
        if self.dialect is not None:
            dialect_named(self.dialect)
        if self.evaluator is not None and self.evaluator not in EVALUATORS:
            raise ConfigError(f"unknown evaluator `{self.evaluator}`: expected one of {list(EVALUATORS)}")
        if not (math.isfinite(self.timeout) and self.timeout > 0):
            raise ConfigError(f"timeout must be a positive number of seconds, got {self.timeout}")
        if int(self.jobs) < 1:
            raise ConfigError(f"jobs must be at least 1, got {self.jobs}")
        if not self.globs:
            raise ConfigError("at least one glob pattern is required")

    def dialect_for(self, path: Path | str) -> Dialect:
        base = dialect_named(self.dialect) if self.dialect else dialect_for_suffix(path)
        return base.with_markers(self.prose_marker, self.result_marker, self.disable_marker)

    def evaluator_for(self, dialect: Dialect) -> str:
        return self.evaluator or dialect.default_evaluator
