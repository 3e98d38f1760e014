"""
scoring.profiles: Weight and threshold tables for the scoring engine.

Every number the decision logic depends on lives here, grouped into named
:class:`AnalysisProfile` instances:

* ``generic``: six pixel-statistic features, critical-anomaly gate and
  warning discounts, 512 px working resolution.
* ``indian``: document-type aware calibration for Indian government IDs
  and credentials: edge and texture at coarser scale, security-mark
  density, classifier confidence and a fixed consistency baseline, with
  per-category weight overrides and 1024 px working resolution.  Warnings
  never discount confidence; they only limit a ``genuine`` verdict.

Each weight vector must sum to 1 so the weighted confidence stays in
``[0, 1]``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional, Tuple

from docforensics.doctype import AADHAAR_CARD, NURSING_CERTIFICATE, OTHER_GOVT_ID, PAN_CARD
from docforensics.params import GENERIC_PARAMS, INDIAN_PARAMS, ExtractorParams

# Scoring inputs that are not pixel extractors
DOCUMENT_TYPE = "document_type"
CONSISTENCY = "consistency"

LAYOUT_GENERIC = "generic"
LAYOUT_INDIAN = "indian"


@dataclass(frozen=True)
class FeatureRule:
    """Anomaly thresholds for one scoring input.

    A score below ``critical`` raises a critical anomaly; a score below
    ``warning`` (and not critical) raises a warning.  ``{document}`` in a
    description is replaced by the detected document type.
    """

    feature: str
    warning: float
    warning_text: str
    critical: Optional[float] = None
    critical_text: str = ""
    skip_categories: Tuple[str, ...] = ()


@dataclass(frozen=True)
class AnalysisProfile:
    """A complete calibration: extractors, weights, thresholds, decision constants."""

    name: str
    features: Tuple[str, ...]
    weights: Mapping[str, float]
    rules: Tuple[FeatureRule, ...]
    params: ExtractorParams
    max_dimension: int
    category_weights: Mapping[str, Mapping[str, float]] = field(default_factory=dict)
    classify_document_type: bool = False
    consistency_baseline: float = 0.8
    layout: str = LAYOUT_GENERIC

    genuine_threshold: float = 0.75
    critical_gate: int = 2
    gate_base: float = 0.10
    gate_fraction: float = 0.25
    many_warnings: int = 3
    few_warnings_discount: float = 0.95
    many_warnings_discount: float = 0.85
    max_warnings_for_genuine: Optional[int] = None

    def __post_init__(self):
        _check_weights(self.name, self.weights)
        for category, weights in self.category_weights.items():
            if set(weights) != set(self.weights):
                raise ValueError(
                    f"profile {self.name!r}: weights for {category!r} must cover {sorted(self.weights)}"
                )
            _check_weights(f"{self.name}/{category}", weights)
        for rule in self.rules:
            if rule.feature not in self.weights:
                raise ValueError(f"profile {self.name!r}: rule for unweighted input {rule.feature!r}")
        if self.max_dimension <= 0:
            raise ValueError(f"profile {self.name!r}: max_dimension must be positive")

    def weights_for(self, category: Optional[str] = None) -> Dict[str, float]:
        """Weight vector for *category*, falling back to the baseline."""
        if category is not None and category in self.category_weights:
            return dict(self.category_weights[category])
        return dict(self.weights)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "features": list(self.features),
            "weights": dict(self.weights),
            "category_weights": {k: dict(v) for k, v in self.category_weights.items()},
            "thresholds": {
                r.feature: {"critical": r.critical, "warning": r.warning} for r in self.rules
            },
            "genuine_threshold": self.genuine_threshold,
            "critical_gate": self.critical_gate,
            "warning_discounts": {"few": self.few_warnings_discount, "many": self.many_warnings_discount},
            "max_warnings_for_genuine": self.max_warnings_for_genuine,
            "max_dimension": self.max_dimension,
        }


def _check_weights(label: str, weights: Mapping[str, float]) -> None:
    if any(w < 0 for w in weights.values()):
        raise ValueError(f"profile {label!r}: weights must be non-negative")
    total = sum(weights.values())
    if not math.isclose(total, 1.0, abs_tol=1e-9):
        raise ValueError(f"profile {label!r}: weights sum to {total:.6f}, expected 1")


GENERIC = AnalysisProfile(
    name="generic",
    features=("edge", "texture", "compression", "color", "noise", "alignment"),
    weights={
        "edge": 0.25,
        "texture": 0.22,
        "compression": 0.15,
        "color": 0.15,
        "noise": 0.12,
        "alignment": 0.11,
    },
    rules=(
        FeatureRule(
            "edge", 0.60, "Edge patterns show minor inconsistencies",
            critical=0.45,
            critical_text="Severe edge pattern inconsistency, high probability of cut-and-paste forgery",
        ),
        FeatureRule(
            "texture", 0.65, "Texture shows some irregularities",
            critical=0.50,
            critical_text="Major texture inconsistency across document regions",
        ),
        FeatureRule(
            "compression", 0.55, "Some compression artifacts present",
            critical=0.40,
            critical_text="Multiple compression artifacts, document may be re-composed",
        ),
        FeatureRule("color", 0.60, "Color channel inconsistency, possible image splicing"),
        FeatureRule(
            "noise", 0.55, "Non-uniform noise patterns detected",
            critical=0.40,
            critical_text="Noise residual differs sharply between regions, possible pasted content",
        ),
        FeatureRule("alignment", 0.55, "Irregular text line alignment or spacing"),
    ),
    params=GENERIC_PARAMS,
    max_dimension=512,
)

INDIAN = AnalysisProfile(
    name="indian",
    features=("edge", "texture", "security"),
    weights={
        "edge": 0.20,
        "texture": 0.20,
        "security": 0.25,
        DOCUMENT_TYPE: 0.20,
        CONSISTENCY: 0.15,
    },
    category_weights={
        AADHAAR_CARD: {"edge": 0.15, "texture": 0.15, "security": 0.30, DOCUMENT_TYPE: 0.25, CONSISTENCY: 0.15},
        PAN_CARD: {"edge": 0.20, "texture": 0.20, "security": 0.20, DOCUMENT_TYPE: 0.25, CONSISTENCY: 0.15},
        NURSING_CERTIFICATE: {"edge": 0.25, "texture": 0.25, "security": 0.15, DOCUMENT_TYPE: 0.20, CONSISTENCY: 0.15},
    },
    rules=(
        FeatureRule(
            "edge", 0.50, "Edge patterns inconsistent with authentic Indian government documents",
            critical=0.35,
            critical_text="Edge patterns strongly inconsistent with authentic Indian government documents",
        ),
        FeatureRule(
            "texture", 0.50, "Texture analysis suggests digital manipulation or low-quality scan",
            critical=0.35,
            critical_text="Texture strongly suggests digital manipulation",
        ),
        FeatureRule(
            "security", 0.30, "Security features (hologram/watermark) not detected as expected",
            skip_categories=(OTHER_GOVT_ID,),
        ),
        FeatureRule(
            DOCUMENT_TYPE, 0.40, "Document format does not strongly match typical {document} patterns",
        ),
    ),
    params=INDIAN_PARAMS,
    max_dimension=1024,
    classify_document_type=True,
    layout=LAYOUT_INDIAN,
    few_warnings_discount=1.0,
    many_warnings_discount=1.0,
    max_warnings_for_genuine=1,
)

PROFILES: Dict[str, AnalysisProfile] = {p.name: p for p in (GENERIC, INDIAN)}


def get_profile(name: str) -> AnalysisProfile:
    """Return the profile called *name* (``ValueError`` if unknown)."""
    try:
        return PROFILES[name]
    except KeyError:
        raise ValueError(f"unknown profile {name!r}; choose from {sorted(PROFILES)}") from None
