"""Verification engine: runs extracted snippets and compares their output."""

from .model import PROBLEM_STATUSES, DocumentRun, RunState, Status, VerificationResult
from .run import EvaluatorProvider, verify_documents
from .verify import evaluate_with_timeout, line_diff, normalize_lines, verify, verify_document

__all__ = [
    "PROBLEM_STATUSES",
    "DocumentRun",
    "EvaluatorProvider",
    "RunState",
    "Status",
    "VerificationResult",
    "evaluate_with_timeout",
    "line_diff",
    "normalize_lines",
    "verify",
    "verify_document",
    "verify_documents",
]
