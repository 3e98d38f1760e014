"""
docforensics.color: Inter-channel correlation consistency.

A single capture has a stable relation between its color channels.
Regions spliced in from another source break it.  For each sampled
block the Pearson correlation between red and green is computed;
blocks where either channel is constant are skipped.  The score is
``1 - 3 * std(correlations)`` clipped to ``[0, 1]``.
"""

from __future__ import annotations

import numpy as np

from .params import ExtractorParams
from .raster import RasterImage
from .utils import FeatureScore, clamp01, sampled_tiles

NAME = "color"


def block_rg_correlations(rgb: np.ndarray, block: int) -> np.ndarray:
    """Pearson r(R, G) for every sampled block with non-constant channels."""
    tiles, nh, nw = sampled_tiles(rgb, block)
    if nh == 0 or nw == 0:
        return np.empty(0, dtype=np.float64)

    px = tiles.reshape(nh * nw, block * block, 3).astype(np.float64)
    r = px[..., 0]
    g = px[..., 1]
    rc = r - r.mean(axis=1, keepdims=True)
    gc = g - g.mean(axis=1, keepdims=True)
    cov = (rc * gc).mean(axis=1)
    std_r = np.sqrt((rc * rc).mean(axis=1))
    std_g = np.sqrt((gc * gc).mean(axis=1))

    usable = (std_r > 0) & (std_g > 0)
    return cov[usable] / (std_r[usable] * std_g[usable])


def color_consistency(raster: RasterImage, params: ExtractorParams) -> FeatureScore:
    """Score the stability of the red/green correlation across blocks."""
    corr = block_rg_correlations(raster.rgb, params.color_block)
    if corr.size == 0:
        return FeatureScore(NAME, params.neutral_score, {"reason": "no textured blocks", "blocks": 0})

    std = float(corr.std())
    return FeatureScore(
        NAME,
        clamp01(1.0 - std * params.color_spread_weight),
        {"blocks": int(corr.size), "mean_correlation": float(corr.mean()), "std_correlation": std},
    )
