"""
DocumentAnalyzer: runs one document through the full analysis chain.

Flow
----
  1. load_raster        : decode, flatten alpha, bound size, luminance
  2. run_extractors     : profile's feature extractors (optionally threaded)
  3. classify_document  : document-type guess (document-aware profiles only)
  4. ScoringEngine      : weighted sum, critical gate, warning discount
  5. synthesize         : AnalysisResult record with placeholder text

Usage
-----
    from pipeline.analyzer import DocumentAnalyzer
    analyzer = DocumentAnalyzer(profile="generic")
    result = analyzer.analyze(Path("scan.jpg").read_bytes(), request_id="doc-1")
    print(result.to_dict())

Decode and empty-image errors propagate to the caller.  Any other
failure past decoding is logged and turned into a ``pending`` record.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Dict, Optional, Union

from docforensics import extractors
from docforensics.doctype import DocumentTypeGuess, classify_document
from docforensics.errors import AnalysisCancelled, AnalysisTimeout
from docforensics.raster import RasterImage, load_raster
from docforensics.utils import FeatureScore
from scoring.engine import ScoringEngine
from scoring.profiles import CONSISTENCY, DOCUMENT_TYPE, AnalysisProfile, get_profile
from scoring.synthesis import AnalysisResult, pending_result, synthesize

logger = logging.getLogger(__name__)


class CancelToken:
    """Cooperative cancellation flag with an optional deadline.

    The analyzer calls :meth:`check` between extractor passes; a pass
    that is already running is allowed to finish.
    """

    def __init__(self, timeout: Optional[float] = None):
        self._event = threading.Event()
        self._deadline: Optional[float] = None
        if timeout is not None:
            self.start_timer(timeout)

    def start_timer(self, timeout: float) -> None:
        """Set the deadline to *timeout* seconds from now."""
        self._deadline = time.monotonic() + timeout

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def expired(self) -> bool:
        return self._deadline is not None and time.monotonic() >= self._deadline

    def check(self) -> None:
        if self._event.is_set():
            raise AnalysisCancelled("analysis cancelled")
        if self.expired:
            raise AnalysisTimeout("analysis deadline exceeded")


class DocumentAnalyzer:
    """
    Stateless analysis front-end bound to one profile.

    Args:
        profile: profile name or instance (default ``"generic"``).
        parallel_extractors: run the extractors of one document on a
            thread pool instead of sequentially.
        max_dimension: override the profile's working resolution.
    """

    def __init__(
        self,
        profile: Union[str, AnalysisProfile] = "generic",
        parallel_extractors: bool = False,
        max_dimension: Optional[int] = None,
    ):
        self.profile = get_profile(profile) if isinstance(profile, str) else profile
        self.parallel_extractors = parallel_extractors
        self.max_dimension = self.profile.max_dimension if max_dimension is None else max_dimension
        if self.max_dimension <= 0:
            raise ValueError(f"max_dimension must be positive, got {self.max_dimension}")
        self.engine = ScoringEngine(self.profile)

    def analyze(
        self,
        data: bytes,
        request_id: Optional[str] = None,
        token: Optional[CancelToken] = None,
    ) -> AnalysisResult:
        """Analyse encoded image bytes.

        Raises
        ------
        DecodeError, EmptyImageError
            The bytes are not a usable image.
        AnalysisCancelled, AnalysisTimeout
            *token* was cancelled or its deadline passed.
        """
        if token is not None:
            token.check()
        raster = load_raster(data, self.max_dimension)
        return self.analyze_raster(raster, request_id=request_id, token=token)

    def analyze_file(self, path: Union[str, Path], token: Optional[CancelToken] = None) -> AnalysisResult:
        path = Path(path)
        return self.analyze(path.read_bytes(), request_id=path.name, token=token)

    def analyze_raster(
        self,
        raster: RasterImage,
        request_id: Optional[str] = None,
        token: Optional[CancelToken] = None,
    ) -> AnalysisResult:
        """Analyse an already decoded raster."""
        t0 = time.perf_counter()
        try:
            result = self._evaluate(raster, request_id, token)
        except AnalysisCancelled:
            raise
        except Exception as exc:
            logger.warning("Analysis of %s failed: %s", request_id or "document", exc)
            return pending_result(
                reason=f"{type(exc).__name__}: {exc}",
                request_id=request_id,
                profile=self.profile.name,
            )
        logger.debug(
            "Analysed %s in %.3fs: %s (%.2f)",
            request_id or "document", time.perf_counter() - t0, result.result, result.confidence_score,
        )
        return result

    # ------------------------------------------------------------------

    def _evaluate(
        self,
        raster: RasterImage,
        request_id: Optional[str],
        token: Optional[CancelToken],
    ) -> AnalysisResult:
        checkpoint = token.check if token is not None else None
        features = self._extract(raster, checkpoint)

        guess: Optional[DocumentTypeGuess] = None
        if self.profile.classify_document_type:
            if checkpoint is not None:
                checkpoint()
            guess = classify_document(raster)

        inputs = self._scoring_inputs(features, guess)
        verdict = self.engine.score(inputs, category=guess.category if guess else None)
        return synthesize(verdict, features, self.profile, raster, guess=guess, request_id=request_id)

    def _extract(self, raster: RasterImage, checkpoint) -> Dict[str, FeatureScore]:
        p = self.profile
        if not self.parallel_extractors:
            return extractors.run_extractors(raster, p.features, p.params, checkpoint=checkpoint)

        pool = ThreadPoolExecutor(max_workers=len(p.features), thread_name_prefix="extract")
        try:
            return extractors.run_extractors(raster, p.features, p.params, executor=pool, checkpoint=checkpoint)
        finally:
            pool.shutdown(wait=False, cancel_futures=True)

    def _scoring_inputs(
        self,
        features: Dict[str, FeatureScore],
        guess: Optional[DocumentTypeGuess],
    ) -> Dict[str, float]:
        inputs = {name: fs.score for name, fs in features.items()}
        if guess is not None:
            inputs[DOCUMENT_TYPE] = guess.confidence
        if CONSISTENCY in self.profile.weights:
            inputs[CONSISTENCY] = self.profile.consistency_baseline
        return inputs
