"""
ScoringEngine: Combines feature scores into a single Verdict.

=== Two-stage decision ===

1. Weighted sum of all scoring inputs under the profile's weight vector
   (or the override for the detected document category).

2. Anomaly detection: each rule compares one input against its critical
   and warning thresholds.  Criticals are listed before warnings; within
   a severity, rule order is kept.

3. Stage 1 (hard gate): ``critical_gate`` or more criticals force
   ``suspected_forgery`` with the low confidence
   ``gate_base + gate_fraction * raw``.

4. Stage 2 (warning discount): ``many_warnings`` or more warnings scale
   the confidence by ``many_warnings_discount``; fewer, but at least one,
   by ``few_warnings_discount``.  A discount of 1 leaves it unchanged.

5. Stage 3 (threshold): ``genuine`` only when the adjusted confidence
   reaches ``genuine_threshold`` with no critical anomaly and no more
   warnings than the profile tolerates.  Everything else is
   ``suspected_forgery``; there is no middle verdict.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional

from docforensics.utils import clamp01

from .profiles import AnalysisProfile, FeatureRule

GENUINE = "genuine"
SUSPECTED_FORGERY = "suspected_forgery"
PENDING = "pending"

CRITICAL = "critical"
WARNING = "warning"

STAGE_GATE = "critical_gate"
STAGE_THRESHOLD = "threshold"


@dataclass(frozen=True)
class Anomaly:
    """One threshold breach."""

    severity: str                       # "critical" | "warning"
    description: str
    feature: str

    @property
    def message(self) -> str:
        if self.severity == CRITICAL:
            return f"CRITICAL: {self.description}"
        return self.description

    def to_dict(self) -> dict:
        return {"severity": self.severity, "description": self.description, "feature": self.feature}


@dataclass
class Verdict:
    """The scoring engine's decision for one document."""

    label: str                          # "genuine" | "suspected_forgery"
    confidence: float                   # after gate / discount
    raw_confidence: float               # plain weighted sum
    anomalies: List[Anomaly]
    stage: str                          # "critical_gate" | "threshold"
    weights: Dict[str, float] = field(default_factory=dict)
    category: Optional[str] = None

    @property
    def criticals(self) -> List[Anomaly]:
        return [a for a in self.anomalies if a.severity == CRITICAL]

    @property
    def warnings(self) -> List[Anomaly]:
        return [a for a in self.anomalies if a.severity == WARNING]

    def messages(self) -> List[str]:
        return [a.message for a in self.anomalies]

    def to_dict(self) -> dict:
        return {
            "label": self.label,
            "confidence": round(self.confidence, 4),
            "raw_confidence": round(self.raw_confidence, 4),
            "stage": self.stage,
            "category": self.category,
            "weights": self.weights,
            "anomalies": [a.to_dict() for a in self.anomalies],
        }


def detect_anomalies(
    scores: Mapping[str, float],
    rules: Iterable[FeatureRule],
    category: Optional[str] = None,
) -> List[Anomaly]:
    """Apply *rules* to *scores*; criticals first, then warnings."""
    criticals: List[Anomaly] = []
    warnings: List[Anomaly] = []
    document = (category or "document").replace("_", " ")

    for rule in rules:
        if category is not None and category in rule.skip_categories:
            continue
        value = scores[rule.feature]
        if rule.critical is not None and value < rule.critical:
            criticals.append(Anomaly(CRITICAL, _describe(rule.critical_text, document), rule.feature))
        elif value < rule.warning:
            warnings.append(Anomaly(WARNING, _describe(rule.warning_text, document), rule.feature))
    return criticals + warnings


def _describe(text: str, document: str) -> str:
    return text.replace("{document}", document)


class ScoringEngine:
    """
    Turns per-feature scores into a Verdict under one AnalysisProfile.

    Args:
        profile: the calibration supplying weights, thresholds and the
            gate / discount constants.
    """

    def __init__(self, profile: AnalysisProfile):
        self.profile = profile

    def score(self, scores: Mapping[str, float], category: Optional[str] = None) -> Verdict:
        p = self.profile
        weights = p.weights_for(category)
        missing = [k for k in weights if k not in scores]
        if missing:
            raise ValueError(f"missing scores for {missing} under profile {p.name!r}")

        values = {k: clamp01(scores[k]) for k in weights}
        raw = clamp01(sum(weights[k] * values[k] for k in weights))
        anomalies = detect_anomalies(values, p.rules, category)
        n_crit = sum(1 for a in anomalies if a.severity == CRITICAL)
        n_warn = len(anomalies) - n_crit

        # Stage 1
        if n_crit >= p.critical_gate:
            return Verdict(
                label=SUSPECTED_FORGERY,
                confidence=clamp01(p.gate_base + p.gate_fraction * raw),
                raw_confidence=raw,
                anomalies=anomalies,
                stage=STAGE_GATE,
                weights=weights,
                category=category,
            )

        # Stage 2
        adjusted = raw
        if n_warn >= p.many_warnings:
            adjusted = raw * p.many_warnings_discount
        elif n_warn >= 1:
            adjusted = raw * p.few_warnings_discount

        # Stage 3
        tolerated = p.max_warnings_for_genuine is None or n_warn <= p.max_warnings_for_genuine
        label = GENUINE if adjusted >= p.genuine_threshold and n_crit == 0 and tolerated else SUSPECTED_FORGERY

        return Verdict(
            label=label,
            confidence=clamp01(adjusted),
            raw_confidence=raw,
            anomalies=anomalies,
            stage=STAGE_THRESHOLD,
            weights=weights,
            category=category,
        )
