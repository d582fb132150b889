from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Sequence

from ..config.model import DEFAULT_TIMEOUT_SECONDS
from ..core.context import RunContext
from ..evaluators.base import Evaluator
from ..extract.model import Document
from .model import DocumentRun
from .verify import verify_document

EvaluatorProvider = Callable[[Document], Evaluator]


def verify_documents(
    documents: Sequence[Document],
    evaluator_for: EvaluatorProvider,
    *,
    jobs: int = 1,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    normalize_whitespace: bool = True,
    cancel: threading.Event | None = None,
    ctx: RunContext | None = None,
) -> tuple[DocumentRun, ...]:
    """Verify independent documents, in parallel when `jobs > 1`.

    Every document gets its own evaluator and environment; runs come back in
    input order whatever the completion order.
    """

    def _run_one(document: Document) -> DocumentRun:
        return verify_document(
            document,
            evaluator_for(document),
            timeout=timeout,
            normalize_whitespace=normalize_whitespace,
            cancel=cancel,
            ctx=ctx,
        )

    if jobs > 1 and len(documents) > 1:
        with ThreadPoolExecutor(max_workers=jobs, thread_name_prefix="snipctl-doc") as ex:
            return tuple(ex.map(_run_one, documents))
    return tuple(_run_one(document) for document in documents)
