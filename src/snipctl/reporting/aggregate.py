from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

from ..engine.model import DocumentRun, Status, VerificationResult
from ..extract.model import ExtractionAnomaly


@dataclass(frozen=True)
class Summary:
    total: int = 0
    passed: int = 0
    failed: int = 0
    skipped: int = 0
    evaluation_fault: int = 0

    @classmethod
    def from_results(cls, results: Iterable[VerificationResult]) -> "Summary":
        counts = {status: 0 for status in Status}
        for row in results:
            counts[row.status] += 1
        return cls(
            total=sum(counts.values()),
            passed=counts[Status.PASSED],
            failed=counts[Status.FAILED],
            skipped=counts[Status.SKIPPED],
            evaluation_fault=counts[Status.EVALUATION_FAULT],
        )

    @property
    def problems(self) -> int:
        return self.failed + self.evaluation_fault

    @property
    def checked(self) -> int:
        return self.total - self.skipped

    def as_dict(self) -> dict[str, int]:
        return {
            "total": self.total,
            "passed": self.passed,
            "failed": self.failed,
            "skipped": self.skipped,
            "evaluation_fault": self.evaluation_fault,
        }


@dataclass(frozen=True)
class DocumentReport:
    path: str
    results: tuple[VerificationResult, ...]
    summary: Summary
    anomalies: tuple[ExtractionAnomaly, ...] = ()
    cancelled: bool = False

    @property
    def pass_rate(self) -> float:
        if self.summary.checked == 0:
            return 1.0
        return round(self.summary.passed / self.summary.checked, 4)

    @property
    def status(self) -> str:
        return "fail" if self.summary.problems else "pass"


@dataclass(frozen=True)
class Report:
    documents: tuple[DocumentReport, ...]
    summary: Summary
    failures: tuple[VerificationResult, ...]
    cancelled: bool = False

    @property
    def status(self) -> str:
        return "fail" if self.summary.problems else "pass"

    @property
    def results(self) -> tuple[VerificationResult, ...]:
        return tuple(row for doc in self.documents for row in doc.results)


def aggregate(per_document_results: Sequence[DocumentRun]) -> Report:
    """Fold finished (or cancelled) document runs into one report.

    Pure: document order is the order given, failures are ordered by
    document position then block id.
    """
    documents: list[DocumentReport] = []
    failures: list[tuple[int, int, VerificationResult]] = []
    for position, run in enumerate(per_document_results):
        rows = tuple(sorted(run.results, key=lambda row: row.block_id))
        documents.append(
            DocumentReport(
                path=run.document.path,
                results=rows,
                summary=Summary.from_results(rows),
                anomalies=tuple(run.document.anomalies),
                cancelled=run.cancelled,
            )
        )
        failures.extend((position, row.block_id, row) for row in rows if row.is_problem)
    failures.sort(key=lambda item: (item[0], item[1]))
    return Report(
        documents=tuple(documents),
        summary=Summary.from_results(row for doc in documents for row in doc.results),
        failures=tuple(row for _, _, row in failures),
        cancelled=any(doc.cancelled for doc in documents),
    )
