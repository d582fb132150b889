"""Evaluator adapters: the only boundary to the runtime that executes snippets."""

from .base import Environment, EvalFault, Evaluation, Evaluator, FaultKind, TranscriptEntry
from .command import CommandEvaluator
from .python import PythonEvaluator
from .registry import EvaluatorFactory, build_evaluator, evaluator_factory

__all__ = [
    "CommandEvaluator",
    "Environment",
    "EvalFault",
    "Evaluation",
    "Evaluator",
    "EvaluatorFactory",
    "FaultKind",
    "PythonEvaluator",
    "TranscriptEntry",
    "build_evaluator",
    "evaluator_factory",
]
