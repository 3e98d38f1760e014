"""
docforensics.compression: JPEG block-boundary artifact ratio.

JPEG encodes 8x8 blocks independently, so re-encoding or compositing
from several JPEG sources leaves discontinuities on the block grid.
This module compares the mean absolute horizontal pixel-to-pixel
difference sampled on grid columns (``x % 8 == 0``) with the mean over
all other interior columns.

A ratio near 1 means boundaries look like the interior; the score is
``1 - 2 * |ratio - 1|`` clipped to ``[0, 1]``.  When the interior is
perfectly flat the ratio is taken as 1.
"""

from __future__ import annotations

import numpy as np

from .params import ExtractorParams
from .raster import RasterImage
from .utils import FeatureScore, clamp01

NAME = "compression"


def boundary_interior_means(luma: np.ndarray, period: int):
    """Return ``(boundary_mean, interior_mean, n_boundary, n_interior)``.

    Only interior rows and columns are sampled: row ``y`` in ``[1, H-1)``
    and column ``x`` in ``[1, W-1)``, each compared to column ``x - 1``.
    """
    h, w = luma.shape
    if h < 3 or w < 3:
        return 0.0, 0.0, 0, 0
    rows = luma[1:h - 1]
    diffs = np.abs(rows[:, 1:w - 1] - rows[:, 0:w - 2])
    on_grid = (np.arange(1, w - 1) % period) == 0

    boundary = diffs[:, on_grid]
    interior = diffs[:, ~on_grid]
    b_mean = float(boundary.mean()) if boundary.size else 0.0
    i_mean = float(interior.mean()) if interior.size else 0.0
    return b_mean, i_mean, int(boundary.size), int(interior.size)


def compression_artifacts(raster: RasterImage, params: ExtractorParams) -> FeatureScore:
    """Score block-boundary discontinuities on the JPEG grid."""
    b_mean, i_mean, n_b, n_i = boundary_interior_means(raster.luma, params.jpeg_period)
    if n_b == 0 or n_i == 0:
        return FeatureScore(NAME, params.neutral_score, {"reason": "no block boundary sampled"})

    ratio = b_mean / i_mean if i_mean > 0 else 1.0
    return FeatureScore(
        NAME,
        clamp01(1.0 - abs(ratio - 1.0) * params.compression_deviation_weight),
        {
            "boundary_mean": b_mean,
            "interior_mean": i_mean,
            "ratio": ratio,
        },
    )
