"""
docforensics.params: Extractor calibration presets.

The extractors are implemented once and parameterised by an
:class:`ExtractorParams` instance.  Two presets exist: the general
document calibration and the calibration used for Indian government IDs
and credentials, which samples at higher resolution with coarser blocks.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ExtractorParams:
    """Calibration shared by every feature extractor."""

    # Score returned when an extractor has nothing measurable to work on
    neutral_score: float = 0.85

    # Edge consistency
    edge_margin: int = 1
    edge_min_magnitude: Optional[float] = None
    edge_spread_weight: float = 1.0 / 3.0

    # Texture uniformity
    texture_block: int = 16
    texture_offset: float = 1.0
    texture_spread_weight: float = 0.2

    # Compression boundary
    jpeg_period: int = 8
    compression_deviation_weight: float = 2.0

    # Color correlation
    color_block: int = 32
    color_spread_weight: float = 3.0

    # Noise residual
    noise_block: int = 32

    # Text-line alignment
    text_band_fraction: float = 0.9
    min_text_bands: int = 3

    # Security marks
    security_stride: int = 2
    microprint_placeholder: float = 0.5


GENERIC_PARAMS = ExtractorParams()

INDIAN_PARAMS = ExtractorParams(
    neutral_score=0.5,
    edge_margin=2,
    edge_min_magnitude=30.0,
    edge_spread_weight=0.5,
    texture_block=32,
    texture_offset=100.0,
    texture_spread_weight=1.0,
)
