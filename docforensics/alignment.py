"""
docforensics.alignment: Text-line pitch regularity.

Printed official documents have a regular line pitch; inserted or
retyped text tends to disturb it.  The luminance plane is projected onto
a horizontal brightness profile (mean of each row).  Consecutive rows
darker than ``0.9 * global mean`` form a candidate text band; a band is
counted once it closes, so a band still open at the bottom edge is
ignored.

With fewer than three bands the pitch is unmeasurable and the neutral
score is returned.  Otherwise the score is
``1 - std(heights) / (mean(heights) + 1)`` clipped to ``[0, 1]``.
"""

from __future__ import annotations

import numpy as np

from .params import ExtractorParams
from .raster import RasterImage
from .utils import FeatureScore, clamp01, spread_ratio

NAME = "alignment"


def text_band_heights(luma: np.ndarray, fraction: float = 0.9) -> np.ndarray:
    """Heights (in rows) of the closed dark bands of the row profile."""
    profile = luma.mean(axis=1)
    dark = profile < profile.mean() * fraction

    edges = np.diff(np.concatenate(([0], dark.astype(np.int8), [0])))
    starts = np.flatnonzero(edges == 1)
    ends = np.flatnonzero(edges == -1)
    # A band reaching the last row closes on the padding, not on a bright row
    closed = ends < dark.size
    return (ends[closed] - starts[closed]).astype(np.float64)


def alignment_regularity(raster: RasterImage, params: ExtractorParams) -> FeatureScore:
    """Score the regularity of text-band heights."""
    heights = text_band_heights(raster.luma, params.text_band_fraction)
    if heights.size < params.min_text_bands:
        return FeatureScore(NAME, params.neutral_score, {"bands": int(heights.size)})

    coef, mean, std = spread_ratio(heights)
    return FeatureScore(
        NAME,
        clamp01(1.0 - coef),
        {"bands": int(heights.size), "mean_height": mean, "std_height": std},
    )
