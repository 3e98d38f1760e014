"""
docforensics.texture: Block texture uniformity.

Tampered regions usually carry a local noise/texture signature that
differs from the surrounding authentic material.  The luminance plane
is split into square blocks; the spread of per-block variances is
scored, with uniform texture scoring high.
"""

from __future__ import annotations

import numpy as np

from .params import ExtractorParams
from .raster import RasterImage
from .utils import FeatureScore, clamp01, sampled_tiles, spread_ratio

NAME = "texture"


def block_variances(luma: np.ndarray, block: int) -> np.ndarray:
    """Population variance of every sampled ``block x block`` tile."""
    tiles, nh, nw = sampled_tiles(luma, block)
    if nh == 0 or nw == 0:
        return np.empty(0, dtype=np.float64)
    return tiles.reshape(nh * nw, -1).var(axis=1)


def texture_uniformity(raster: RasterImage, params: ExtractorParams) -> FeatureScore:
    """Score ``1 - weight * std(v) / (mean(v) + offset)`` over block variances."""
    variances = block_variances(raster.luma, params.texture_block)
    if variances.size == 0:
        return FeatureScore(NAME, params.neutral_score, {"reason": "no complete blocks", "blocks": 0})

    coef, mean, std = spread_ratio(variances, offset=params.texture_offset)
    return FeatureScore(
        NAME,
        clamp01(1.0 - coef * params.texture_spread_weight),
        {
            "block": params.texture_block,
            "blocks": int(variances.size),
            "mean_variance": mean,
            "std_variance": std,
        },
    )
