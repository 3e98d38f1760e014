"""
docforensics.noise_residual: Noise-residual stationarity.

Sensor and print noise is statistically stationary across a genuine
capture; local edits disturb it.  This is the 8-neighbour variant of the
residual-noise tile analysis:

1. Residual = pixel minus the mean of its 8 neighbours, over the
   interior of the luminance plane (one-pixel border dropped).
2. Per-block standard deviation of the residual.
3. Score ``1 - std(block_stds) / (mean(block_stds) + 1)``, clipped to
   ``[0, 1]``; lower variation across blocks scores higher.
"""

from __future__ import annotations

import cv2
import numpy as np

from .params import ExtractorParams
from .raster import RasterImage
from .utils import FeatureScore, clamp01, sampled_tiles, spread_ratio

NAME = "noise"

_NEIGHBOUR_MEAN = np.array(
    [[1.0, 1.0, 1.0],
     [1.0, 0.0, 1.0],
     [1.0, 1.0, 1.0]],
    dtype=np.float64,
) / 8.0


def noise_residual(luma: np.ndarray) -> np.ndarray:
    """Return the ``(H-2, W-2)`` residual field of *luma*."""
    h, w = luma.shape
    if h < 3 or w < 3:
        return np.empty((0, 0), dtype=np.float64)
    local_mean = cv2.filter2D(luma, cv2.CV_64F, _NEIGHBOUR_MEAN)
    return luma[1:h - 1, 1:w - 1] - local_mean[1:h - 1, 1:w - 1]


def noise_uniformity(raster: RasterImage, params: ExtractorParams) -> FeatureScore:
    """Score the coefficient of variation of per-block residual deviation."""
    resid = noise_residual(raster.luma)
    tiles, nh, nw = sampled_tiles(resid, params.noise_block)
    if nh == 0 or nw == 0:
        return FeatureScore(NAME, params.neutral_score, {"reason": "no complete blocks", "blocks": 0})

    block_stds = tiles.reshape(nh * nw, -1).std(axis=1)
    coef, mean, std = spread_ratio(block_stds)
    return FeatureScore(
        NAME,
        clamp01(1.0 - coef),
        {
            "blocks": int(block_stds.size),
            "mean_residual_std": mean,
            "std_residual_std": std,
            "max_residual_std": float(block_stds.max()),
        },
    )
