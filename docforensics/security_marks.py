"""
docforensics.security_marks: Hologram and watermark density.

Government IDs and credentials carry optically distinctive security
marks.  Two pixel classes are counted on a strided sample (every 2nd
pixel in both axes):

* **hologram-like**: saturation ``(max - min) / max`` above 0.8 with
  a bright dominant channel (``max > 200``);
* **watermark-like**: a narrow mid-bright band (``180 < max < 220``)
  with low channel spread (``max - min < 30``).

Each count is normalised by the nominal sample size ``W * H / 4`` and
amplified (x10 hologram, x5 watermark), then capped at 1.  Microprint
detection is not implemented and contributes a fixed placeholder.
"""

from __future__ import annotations

import numpy as np

from .params import ExtractorParams
from .raster import RasterImage
from .utils import FeatureScore, clamp01

NAME = "security"

HOLOGRAM_WEIGHT = 0.4
WATERMARK_WEIGHT = 0.4
MICROPRINT_WEIGHT = 0.2


def security_marks(raster: RasterImage, params: ExtractorParams) -> FeatureScore:
    """Score the density of hologram- and watermark-like pixels."""
    s = params.security_stride
    px = raster.rgb[::s, ::s].astype(np.int16)
    mx = px.max(axis=2)
    mn = px.min(axis=2)
    spread = mx - mn

    saturation = np.where(mx > 0, spread / np.maximum(mx, 1), 0.0)

    holo = int(np.count_nonzero((saturation > 0.8) & (mx > 200)))
    wm = int(np.count_nonzero((mx > 180) & (mx < 220) & (spread < 30)))

    nominal = raster.width * raster.height / float(s * s)
    hologram_score = min(1.0, holo / nominal * 10.0)
    watermark_score = min(1.0, wm / nominal * 5.0)
    microprint_score = params.microprint_placeholder

    combined = (
        hologram_score * HOLOGRAM_WEIGHT
        + watermark_score * WATERMARK_WEIGHT
        + microprint_score * MICROPRINT_WEIGHT
    )
    return FeatureScore(
        NAME,
        clamp01(combined),
        {
            "hologram_score": hologram_score,
            "watermark_score": watermark_score,
            "microprint_score": microprint_score,
            "hologram_pixels": holo,
            "watermark_pixels": wm,
        },
    )
