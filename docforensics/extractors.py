"""
docforensics.extractors: Feature extractor registry.

Maps feature names to their extractor functions.  Every extractor has
the signature ``(RasterImage, ExtractorParams) -> FeatureScore`` and is
independent of the others, so they can run in any order or in parallel.
"""

from __future__ import annotations

import logging
from concurrent.futures import Executor
from typing import Callable, Dict, Iterable, Optional

from . import alignment, color, compression, edges, noise_residual, security_marks, texture
from .params import ExtractorParams
from .raster import RasterImage
from .utils import FeatureScore

logger = logging.getLogger(__name__)

Extractor = Callable[[RasterImage, ExtractorParams], FeatureScore]

EXTRACTORS: Dict[str, Extractor] = {
    edges.NAME: edges.edge_consistency,
    texture.NAME: texture.texture_uniformity,
    compression.NAME: compression.compression_artifacts,
    color.NAME: color.color_consistency,
    noise_residual.NAME: noise_residual.noise_uniformity,
    alignment.NAME: alignment.alignment_regularity,
    security_marks.NAME: security_marks.security_marks,
}


def get_extractor(name: str) -> Extractor:
    """Look up an extractor by feature name (``KeyError`` if unknown)."""
    try:
        return EXTRACTORS[name]
    except KeyError:
        raise KeyError(f"unknown feature extractor: {name!r}") from None


def run_extractors(
    raster: RasterImage,
    names: Iterable[str],
    params: ExtractorParams,
    executor: Optional[Executor] = None,
    checkpoint: Optional[Callable[[], None]] = None,
) -> Dict[str, FeatureScore]:
    """Run the named extractors over *raster*.

    Parameters
    ----------
    raster : RasterImage
        Shared, read-only input.
    names : iterable of str
        Feature names to compute, in result order.
    params : ExtractorParams
        Calibration preset.
    executor : Executor, optional
        When given, all extractors are submitted at once and joined in
        order; otherwise they run sequentially on the calling thread.
    checkpoint : callable, optional
        Called before each pass (sequential) or each join (parallel).
        It may raise to abandon the analysis.

    Returns
    -------
    dict
        ``{name: FeatureScore}`` in the order of *names*.
    """
    names = list(names)
    fns = {name: get_extractor(name) for name in names}
    scores: Dict[str, FeatureScore] = {}

    if executor is None:
        for name in names:
            if checkpoint is not None:
                checkpoint()
            scores[name] = fns[name](raster, params)
            logger.debug("%s: %.4f", name, scores[name].score)
        return scores

    futures = {name: executor.submit(fns[name], raster, params) for name in names}
    try:
        for name in names:
            if checkpoint is not None:
                checkpoint()
            scores[name] = futures[name].result()
            logger.debug("%s: %.4f", name, scores[name].score)
    finally:
        for fut in futures.values():
            fut.cancel()
    return scores
