"""
docforensics.edges: Edge-strength consistency.

Cut-and-paste edits leave spatially localised outliers in gradient
magnitude; an authentic scan or photograph has statistically
homogeneous edge strength.  This module measures that homogeneity.

Algorithm
---------
1. Apply the 3x3 Sobel operator in x and y over the luminance plane.
2. Keep interior magnitudes ``sqrt(gx^2 + gy^2)`` (the outer *margin*
   rows/columns are dropped) and, when a floor is configured, only
   magnitudes above it.
3. Score ``1 - weight * std / (mean + 1)``, clipped to ``[0, 1]``.

A perfectly flat image has all-zero magnitudes and scores ``1.0``.  An
image too small to have interior pixels, or one with no magnitude
above the floor, gets the neutral score.
"""

from __future__ import annotations

import cv2
import numpy as np

from .params import ExtractorParams
from .raster import RasterImage
from .utils import FeatureScore, clamp01, spread_ratio

NAME = "edge"


def sobel_magnitude(luma: np.ndarray) -> np.ndarray:
    """Return the Sobel gradient magnitude of a float luminance plane."""
    gx = cv2.Sobel(luma, cv2.CV_64F, 1, 0, ksize=3)
    gy = cv2.Sobel(luma, cv2.CV_64F, 0, 1, ksize=3)
    return np.sqrt(gx * gx + gy * gy)


def edge_consistency(raster: RasterImage, params: ExtractorParams) -> FeatureScore:
    """Score the homogeneity of edge strength across the document."""
    m = params.edge_margin
    h, w = raster.height, raster.width
    if h <= 2 * m or w <= 2 * m:
        return FeatureScore(NAME, params.neutral_score, {"reason": "image too small"})

    mags = sobel_magnitude(raster.luma)[m:h - m, m:w - m].ravel()
    if params.edge_min_magnitude is not None:
        mags = mags[mags > params.edge_min_magnitude]
    if mags.size == 0:
        return FeatureScore(NAME, params.neutral_score, {"reason": "no edges above floor", "count": 0})

    coef, mean, std = spread_ratio(mags)
    return FeatureScore(
        NAME,
        clamp01(1.0 - coef * params.edge_spread_weight),
        {"mean": mean, "std": std, "count": int(mags.size)},
    )
