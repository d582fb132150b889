from __future__ import annotations

import shutil
from pathlib import Path
from typing import Callable

from ..config.model import Dialect, VerifyConfig
from ..core.errors import ConfigError
from .base import Evaluator
from .command import CommandEvaluator
from .python import PythonEvaluator

EvaluatorFactory = Callable[[], Evaluator]


def build_evaluator(name: str, config: VerifyConfig, cwd: Path | None = None) -> Evaluator:
    if name == "python":
        return PythonEvaluator(timeout=config.timeout)
    if name == "command":
        return CommandEvaluator(config.command, timeout=config.timeout, cwd=cwd)
    raise ConfigError(f"unknown evaluator `{name}`")


def evaluator_factory(config: VerifyConfig, dialect: Dialect, cwd: Path | None = None) -> EvaluatorFactory:
    """Validate the evaluator choice up front and return a per-document factory."""
    name = config.evaluator_for(dialect)
    if name == "command":
        if not config.command:
            raise ConfigError(
                f"dialect `{dialect.name}` runs snippets through an external command; pass --command or --evaluator python"
            )
        if shutil.which(config.command[0]) is None:
            raise ConfigError(f"runtime command not found on PATH: {config.command[0]}")
    build_evaluator(name, config, cwd)
    return lambda: build_evaluator(name, config, cwd)
