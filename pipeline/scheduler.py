"""
AnalysisScheduler: bounded worker pool for many documents.

Each submitted document runs on its own worker drawn from a
``ThreadPoolExecutor``.  Its deadline starts when a worker picks it up,
not when it is queued.  Every failure mode becomes a :class:`JobOutcome`
status, so a batch never raises because of one bad document:

=========== ==================================================
status      cause
=========== ==================================================
completed   analysis finished (verdict may still be pending)
rejected    bytes not decodable, or zero-extent image
cancelled   job cancelled before or during analysis
timeout     deadline passed between extractor passes
failed      unexpected error outside the analyzer boundary
=========== ==================================================
"""

from __future__ import annotations

import logging
import os
import time
import uuid
from collections import Counter
from concurrent.futures import CancelledError, Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, Optional, Tuple

from docforensics.errors import AnalysisCancelled, AnalysisTimeout, DecodeError, EmptyImageError
from scoring.engine import GENUINE, PENDING, SUSPECTED_FORGERY
from scoring.synthesis import AnalysisResult, pending_result

from .analyzer import CancelToken, DocumentAnalyzer

logger = logging.getLogger(__name__)

COMPLETED = "completed"
REJECTED = "rejected"
CANCELLED = "cancelled"
TIMEOUT = "timeout"
FAILED = "failed"

STATUSES = (COMPLETED, REJECTED, CANCELLED, TIMEOUT, FAILED)


@dataclass
class JobOutcome:
    """What happened to one submitted document."""

    request_id: str
    status: str
    result: Optional[AnalysisResult] = None
    error: Optional[str] = None
    elapsed: float = 0.0

    @property
    def ok(self) -> bool:
        return self.status == COMPLETED

    def record(self) -> AnalysisResult:
        """The analysis record, or a ``pending`` one if the job did not complete."""
        if self.result is not None:
            return self.result
        return pending_result(reason=self.error or self.status, request_id=self.request_id)

    def to_dict(self) -> dict:
        return {
            "request_id": self.request_id,
            "status": self.status,
            "error": self.error,
            "elapsed": round(self.elapsed, 4),
            "result": self.record().to_dict(),
        }


class AnalysisJob:
    """Handle for one submitted document."""

    def __init__(self, request_id: str, future: Future, token: CancelToken):
        self.request_id = request_id
        self._future = future
        self._token = token

    def cancel(self) -> None:
        """Cancel this job only; a running analysis stops at its next checkpoint."""
        self._token.cancel()
        self._future.cancel()

    def done(self) -> bool:
        return self._future.done()

    @property
    def future(self) -> Future:
        return self._future

    def result(self, timeout: Optional[float] = None) -> JobOutcome:
        """Block until the job finishes and return its outcome."""
        try:
            return self._future.result(timeout=timeout)
        except CancelledError:
            return JobOutcome(self.request_id, CANCELLED, error="cancelled before start")


class AnalysisScheduler:
    """
    Dispatches documents to a bounded pool of analysis workers.

    Args:
        analyzer: the DocumentAnalyzer every worker uses (stateless, shared).
        max_workers: pool size; defaults to the number of CPU cores.
        timeout_seconds: per-document deadline, ``None`` for no limit.

    Usage:
        with AnalysisScheduler(DocumentAnalyzer("indian"), timeout_seconds=10) as sched:
            for outcome in sched.run_batch([("a.jpg", data_a), ("b.png", data_b)]):
                print(outcome.request_id, outcome.record().result)
    """

    def __init__(
        self,
        analyzer: Optional[DocumentAnalyzer] = None,
        max_workers: Optional[int] = None,
        timeout_seconds: Optional[float] = None,
    ):
        if max_workers is not None and max_workers <= 0:
            raise ValueError(f"max_workers must be positive, got {max_workers}")
        if timeout_seconds is not None and timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be positive, got {timeout_seconds}")
        self.analyzer = analyzer or DocumentAnalyzer()
        self.max_workers = max_workers or os.cpu_count() or 1
        self.timeout_seconds = timeout_seconds
        self._pool = ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="analysis")

    def __enter__(self) -> "AnalysisScheduler":
        return self

    def __exit__(self, *exc) -> None:
        self.shutdown()

    def shutdown(self, wait: bool = True) -> None:
        self._pool.shutdown(wait=wait, cancel_futures=True)

    def submit(self, data: bytes, request_id: Optional[str] = None) -> AnalysisJob:
        request_id = request_id or uuid.uuid4().hex
        token = CancelToken()
        future = self._pool.submit(self._run, request_id, data, token)
        return AnalysisJob(request_id, future, token)

    def run_batch(self, items: Iterable[Tuple[str, bytes]]) -> Iterator[JobOutcome]:
        """Submit every ``(request_id, data)`` pair and yield outcomes as they finish."""
        jobs: Dict[Future, AnalysisJob] = {}
        for request_id, data in items:
            job = self.submit(data, request_id)
            jobs[job.future] = job
        for fut in as_completed(jobs):
            yield jobs[fut].result()

    def _run(self, request_id: str, data: bytes, token: CancelToken) -> JobOutcome:
        if self.timeout_seconds is not None:
            token.start_timer(self.timeout_seconds)
        t0 = time.perf_counter()

        def outcome(status: str, result=None, error=None) -> JobOutcome:
            return JobOutcome(request_id, status, result=result, error=error, elapsed=time.perf_counter() - t0)

        try:
            result = self.analyzer.analyze(data, request_id=request_id, token=token)
        except AnalysisTimeout as exc:
            logger.warning("Analysis of %s timed out: %s", request_id, exc)
            return outcome(TIMEOUT, error=str(exc))
        except AnalysisCancelled as exc:
            logger.info("Analysis of %s cancelled", request_id)
            return outcome(CANCELLED, error=str(exc))
        except (DecodeError, EmptyImageError) as exc:
            logger.warning("Rejected %s: %s", request_id, exc)
            return outcome(REJECTED, error=str(exc))
        except Exception as exc:
            logger.error("Analysis of %s failed: %s", request_id, exc)
            return outcome(FAILED, error=f"{type(exc).__name__}: {exc}")
        return outcome(COMPLETED, result=result)


def summarize(outcomes: Iterable[JobOutcome]) -> dict:
    """Count statuses and verdicts over a batch and average completed confidence."""
    outcomes = list(outcomes)
    statuses = Counter({s: 0 for s in STATUSES})
    verdicts = Counter({v: 0 for v in (GENUINE, SUSPECTED_FORGERY, PENDING)})
    confidences = []

    for o in outcomes:
        statuses[o.status] += 1
        record = o.record()
        verdicts[record.result] += 1
        if o.ok and not record.is_pending:
            confidences.append(record.confidence_score)

    return {
        "total": len(outcomes),
        "statuses": dict(statuses),
        "verdicts": dict(verdicts),
        "avg_confidence": round(sum(confidences) / len(confidences), 4) if confidences else None,
    }
