"""
docforensics.doctype: Coarse document-type classifier.

Guesses which kind of Indian government ID or credential an image shows
from its aspect ratio and regional color statistics.  The guess is
advisory: it only selects the category-specific weight vector used by
the scoring engine and never gates a verdict.

Buckets are tried in order; each is accepted only when its color
heuristic clears a gate.  Anything unmatched falls back to
``other_govt_id`` with a fixed low confidence.

=================== ============ ============================================
category            aspect       heuristic (gate)
=================== ============ ============================================
aadhaar_card        1.60 - 1.70  orange/blue share of header x2 (> 0.6)
pan_card            1.60 - 1.75  0.3 * blue + 0.7 * white share (> 0.5)
voter_id            1.40 - 1.60  color variety x1.5 (> 0.5)
nursing_certificate 0.70 - 0.85  0.4 * border + 0.6 * text density (> 0.6)
=================== ============ ============================================
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, Tuple

import numpy as np

from .raster import RasterImage

AADHAAR_CARD = "aadhaar_card"
PAN_CARD = "pan_card"
VOTER_ID = "voter_id"
DRIVING_LICENSE = "driving_license"
NURSING_CERTIFICATE = "nursing_certificate"
MEDICAL_DEGREE = "medical_degree"
OTHER_GOVT_ID = "other_govt_id"

DOCUMENT_TYPE_NAMES: Dict[str, str] = {
    AADHAAR_CARD: "Aadhaar Card (UIDAI)",
    PAN_CARD: "PAN Card (Income Tax)",
    VOTER_ID: "Voter ID (Election Commission)",
    DRIVING_LICENSE: "Driving License (RTO)",
    NURSING_CERTIFICATE: "Nursing Certificate",
    MEDICAL_DEGREE: "Medical Degree",
    OTHER_GOVT_ID: "Government ID",
}

FALLBACK_CONFIDENCE = 0.3
SAMPLE_STRIDE = 4


@dataclass(frozen=True)
class DocumentTypeGuess:
    """Best-guess document category."""

    category: str
    confidence: float
    cues: Tuple[str, ...] = ()
    heuristics: Dict[str, float] = field(default_factory=dict)

    @property
    def display_name(self) -> str:
        return document_type_name(self.category)


def document_type_name(category: str) -> str:
    """Human-readable name for a category tag."""
    return DOCUMENT_TYPE_NAMES.get(category, DOCUMENT_TYPE_NAMES[OTHER_GOVT_ID])


# ---------------------------------------------------------------------------
# Color heuristics
# ---------------------------------------------------------------------------

def _channels(px: np.ndarray):
    px = px.astype(np.int16)
    return px[..., 0], px[..., 1], px[..., 2]


def _is_dark(px: np.ndarray) -> np.ndarray:
    return px.astype(np.float64).mean(axis=-1) < 100


def aadhaar_header_score(rgb: np.ndarray) -> float:
    """Orange/blue gradient share of the top 30 % (every 4th column)."""
    header_h = int(math.floor(rgb.shape[0] * 0.3))
    sample = rgb[:header_h, ::SAMPLE_STRIDE]
    if sample.size == 0:
        return 0.0
    r, g, b = _channels(sample)
    orange = (r > 200) & (g > 100) & (g < 180) & (b < 100)
    blue = (r < 100) & (g > 100) & (b > 180)
    total = r.size
    return min(1.0, (np.count_nonzero(orange) + np.count_nonzero(blue)) / total * 2.0)


def pan_color_score(rgb: np.ndarray) -> float:
    """Blue header on mostly white card stock."""
    sample = rgb[::SAMPLE_STRIDE, ::SAMPLE_STRIDE]
    if sample.size == 0:
        return 0.0
    r, g, b = _channels(sample)
    blue = (b > 150) & (r < 100) & (g < 150)
    white = ~blue & (r > 200) & (g > 200) & (b > 200)
    total = r.size
    return np.count_nonzero(blue) / total * 0.3 + np.count_nonzero(white) / total * 0.7


def color_variety(rgb: np.ndarray) -> float:
    """Distinct 8x8x8 color buckets over every 4th pixel, per 50 buckets."""
    flat = rgb.reshape(-1, 3)[::SAMPLE_STRIDE].astype(np.int32) // 32
    if flat.size == 0:
        return 0.0
    codes = flat[:, 0] * 64 + flat[:, 1] * 8 + flat[:, 2]
    return min(1.0, np.unique(codes).size / 50.0)


def border_score(rgb: np.ndarray) -> float:
    """Darkness of the top and bottom 5 % bands, as printed frames have."""
    h, w = rgb.shape[:2]
    k = int(math.ceil(min(w, h) * 0.05))
    if k == 0:
        return 0.0
    bands = np.concatenate(
        (rgb[:k, ::SAMPLE_STRIDE], rgb[h - k:, ::SAMPLE_STRIDE]), axis=0,
    )
    dark = np.count_nonzero(_is_dark(bands))
    return min(1.0, dark / (bands.shape[0] * bands.shape[1]) * 3.0)


def text_density_score(rgb: np.ndarray) -> float:
    """Closeness of the central dark-pixel share to 15 %."""
    h, w = rgb.shape[:2]
    my = int(math.ceil(h * 0.1))
    mx = int(math.ceil(w * 0.1))
    sample = rgb[my:h - my:SAMPLE_STRIDE, mx:w - mx:SAMPLE_STRIDE]
    if sample.shape[0] == 0 or sample.shape[1] == 0:
        return 0.0
    density = np.count_nonzero(_is_dark(sample)) / (sample.shape[0] * sample.shape[1])
    return 1.0 - abs(density - 0.15) / 0.15


def certificate_score(rgb: np.ndarray) -> float:
    return border_score(rgb) * 0.4 + text_density_score(rgb) * 0.6


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def classify_document(raster: RasterImage) -> DocumentTypeGuess:
    """Return the best-guess category for *raster*.

    Only the heuristics whose aspect bucket matches are evaluated; their
    values are kept in ``heuristics`` for diagnostics.
    """
    rgb = raster.rgb
    aspect = raster.aspect_ratio
    seen: Dict[str, float] = {}

    if 1.6 <= aspect <= 1.7:
        seen[AADHAAR_CARD] = aadhaar_header_score(rgb)
        if seen[AADHAAR_CARD] > 0.6:
            return _guess(AADHAAR_CARD, seen[AADHAAR_CARD], seen, (
                "Orange-blue gradient header", "12-digit UID pattern", "QR code region",
            ))

    if 1.6 <= aspect <= 1.75:
        seen[PAN_CARD] = pan_color_score(rgb)
        if seen[PAN_CARD] > 0.5:
            return _guess(PAN_CARD, seen[PAN_CARD], seen, (
                "Blue header pattern", "White background", "Alphanumeric PAN format",
            ))

    if 1.4 <= aspect <= 1.6:
        seen[VOTER_ID] = min(1.0, color_variety(rgb) * 1.5)
        if seen[VOTER_ID] > 0.5:
            return _guess(VOTER_ID, seen[VOTER_ID], seen, (
                "Election Commission logo region", "Photo placeholder", "EPIC number format",
            ))

    if 0.7 <= aspect <= 0.85:
        seen[NURSING_CERTIFICATE] = certificate_score(rgb)
        if seen[NURSING_CERTIFICATE] > 0.6:
            return _guess(NURSING_CERTIFICATE, seen[NURSING_CERTIFICATE], seen, (
                "Certificate border pattern", "Seal/Stamp region", "Official letterhead",
            ))

    return _guess(OTHER_GOVT_ID, FALLBACK_CONFIDENCE, seen, ("Generic document format",))


def _guess(category: str, confidence: float, seen: Dict[str, float], cues) -> DocumentTypeGuess:
    return DocumentTypeGuess(
        category=category,
        confidence=min(1.0, max(0.0, float(confidence))),
        cues=tuple(cues),
        heuristics={k: float(v) for k, v in seen.items()},
    )
