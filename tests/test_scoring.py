"""Tests for the ScoringEngine, profiles and result synthesis."""

from dataclasses import replace
from datetime import datetime, timezone

import pytest

from scoring.engine import CRITICAL, GENUINE, STAGE_GATE, SUSPECTED_FORGERY, WARNING, ScoringEngine
from scoring.profiles import CONSISTENCY, DOCUMENT_TYPE, GENERIC, INDIAN, PROFILES, get_profile
from scoring.synthesis import (
    PENDING_ANOMALY,
    RESULT_FIELDS,
    confidence_band,
    document_placeholder_text,
    generic_placeholder_text,
    pending_result,
    utc_timestamp,
)


def generic_scores(**overrides) -> dict:
    scores = {f: 1.0 for f in GENERIC.features}
    scores.update(overrides)
    return scores


def indian_scores(**overrides) -> dict:
    scores = {"edge": 1.0, "texture": 1.0, "security": 1.0, DOCUMENT_TYPE: 1.0, CONSISTENCY: 0.8}
    scores.update(overrides)
    return scores


# ---------------------------------------------------------------------------
# Generic profile
# ---------------------------------------------------------------------------

def test_perfect_scores_are_genuine():
    verdict = ScoringEngine(GENERIC).score(generic_scores())
    assert verdict.label == GENUINE
    assert verdict.confidence == pytest.approx(1.0)
    assert verdict.anomalies == []


def test_two_criticals_trigger_gate():
    verdict = ScoringEngine(GENERIC).score(generic_scores(edge=0.3, noise=0.2))
    raw = 0.25 * 0.3 + 0.22 + 0.15 + 0.15 + 0.12 * 0.2 + 0.11
    assert verdict.label == SUSPECTED_FORGERY
    assert verdict.stage == STAGE_GATE
    assert verdict.raw_confidence == pytest.approx(raw)
    assert verdict.confidence == pytest.approx(0.10 + 0.25 * raw)
    assert [a.feature for a in verdict.criticals] == ["edge", "noise"]
    assert all(m.startswith("CRITICAL: ") for m in verdict.messages())


def test_gated_confidence_never_exceeds_gate_ceiling():
    engine = ScoringEngine(GENERIC)
    for other in (0.0, 0.5, 1.0):
        scores = generic_scores(edge=0.44, texture=0.49, color=other, alignment=other)
        verdict = engine.score(scores)
        assert verdict.stage == STAGE_GATE
        assert verdict.confidence <= 0.35


def test_single_critical_blocks_genuine_even_with_high_confidence():
    verdict = ScoringEngine(GENERIC).score(generic_scores(edge=0.44))
    assert verdict.raw_confidence == pytest.approx(0.86)
    assert verdict.confidence >= 0.75
    assert verdict.label == SUSPECTED_FORGERY


def test_single_warning_discount():
    verdict = ScoringEngine(GENERIC).score(generic_scores(color=0.55))
    assert verdict.confidence == pytest.approx((1 - 0.15 * 0.45) * 0.95)
    assert verdict.label == GENUINE
    assert [a.severity for a in verdict.anomalies] == [WARNING]


def test_three_warnings_discount():
    verdict = ScoringEngine(GENERIC).score(generic_scores(edge=0.55, texture=0.6, compression=0.5))
    raw = 0.25 * 0.55 + 0.22 * 0.6 + 0.15 * 0.5 + 0.15 + 0.12 + 0.11
    assert len(verdict.warnings) == 3
    assert verdict.confidence == pytest.approx(raw * 0.85)
    assert verdict.label == SUSPECTED_FORGERY


def test_criticals_listed_before_warnings():
    verdict = ScoringEngine(GENERIC).score(generic_scores(color=0.5, noise=0.3))
    assert [a.feature for a in verdict.anomalies] == ["noise", "color"]
    assert [a.severity for a in verdict.anomalies] == [CRITICAL, WARNING]


def test_warning_band_is_exclusive_of_critical():
    verdict = ScoringEngine(GENERIC).score(generic_scores(edge=0.45))
    assert [(a.feature, a.severity) for a in verdict.anomalies] == [("edge", WARNING)]


def test_missing_score_raises():
    scores = generic_scores()
    del scores["noise"]
    with pytest.raises(ValueError):
        ScoringEngine(GENERIC).score(scores)


# ---------------------------------------------------------------------------
# Indian profile
# ---------------------------------------------------------------------------

def test_indian_category_weights_selected():
    verdict = ScoringEngine(INDIAN).score(indian_scores(), category="aadhaar_card")
    assert verdict.weights["security"] == 0.30
    assert verdict.category == "aadhaar_card"


def test_indian_two_warnings_not_genuine():
    verdict = ScoringEngine(INDIAN).score(indian_scores(edge=0.45, texture=0.45), category="aadhaar_card")
    assert verdict.confidence == pytest.approx(0.805)
    assert verdict.label == SUSPECTED_FORGERY


def test_indian_single_warning_keeps_confidence_and_is_genuine():
    scores = indian_scores(security=0.8, **{DOCUMENT_TYPE: 0.3})
    verdict = ScoringEngine(INDIAN).score(scores, category="other_govt_id")
    assert verdict.raw_confidence == pytest.approx(0.78)
    assert verdict.confidence == pytest.approx(0.78)
    assert [a.feature for a in verdict.warnings] == [DOCUMENT_TYPE]
    assert verdict.label == GENUINE


def test_indian_security_warning_skipped_for_generic_id():
    engine = ScoringEngine(INDIAN)
    assert engine.score(indian_scores(security=0.1), category="other_govt_id").anomalies == []
    flagged = engine.score(indian_scores(security=0.1), category="pan_card")
    assert [a.feature for a in flagged.anomalies] == ["security"]


def test_indian_document_type_warning_names_category():
    verdict = ScoringEngine(INDIAN).score(indian_scores(**{DOCUMENT_TYPE: 0.3}), category="other_govt_id")
    assert verdict.messages() == ["Document format does not strongly match typical other govt id patterns"]


# ---------------------------------------------------------------------------
# Profiles
# ---------------------------------------------------------------------------

def test_indian_profile_has_no_warning_discount():
    assert INDIAN.to_dict()["warning_discounts"] == {"few": 1.0, "many": 1.0}
    assert GENERIC.to_dict()["warning_discounts"] == {"few": 0.95, "many": 0.85}


def test_profile_weights_sum_to_one():
    for profile in PROFILES.values():
        assert sum(profile.weights.values()) == pytest.approx(1.0)
        for weights in profile.category_weights.values():
            assert sum(weights.values()) == pytest.approx(1.0)


def test_profile_rejects_bad_weights():
    with pytest.raises(ValueError):
        replace(GENERIC, weights={**GENERIC.weights, "edge": 0.5})


def test_profile_rejects_rule_for_unweighted_input():
    with pytest.raises(ValueError):
        replace(GENERIC, rules=GENERIC.rules + INDIAN.rules[2:3])


def test_unknown_profile():
    with pytest.raises(ValueError):
        get_profile("passport")


# ---------------------------------------------------------------------------
# Synthesis
# ---------------------------------------------------------------------------

def test_pending_result_shape():
    rec = pending_result(reason="boom", request_id="r1").to_dict()
    assert tuple(rec) == RESULT_FIELDS
    assert rec["result"] == "pending"
    assert rec["confidenceScore"] == 0.0
    assert rec["anomalies"] == [PENDING_ANOMALY]
    assert rec["extractedText"] == ""


def test_timestamp_format():
    ts = utc_timestamp(datetime(2024, 1, 2, 3, 4, 5, 678000, tzinfo=timezone.utc))
    assert ts == "2024-01-02T03:04:05.678Z"
    assert utc_timestamp().endswith("Z")


def test_confidence_band():
    assert confidence_band(0.8) == "high"
    assert confidence_band(0.5) == "medium"
    assert confidence_band(0.49) == "low"


def test_placeholder_text_by_orientation():
    assert "landscape" in generic_placeholder_text(400, 200)
    assert "portrait" in generic_placeholder_text(200, 400)
    assert "Standard document" in generic_placeholder_text(200, 200)


def test_document_placeholder_lists_cues():
    text = document_placeholder_text("voter_id", ("a", "b"))
    assert text.startswith("[OCR] VOTER ID CARD DETECTED")
    assert "Detected Features: a, b" in text
    assert document_placeholder_text("unknown", ()).startswith("[OCR] GOVERNMENT ID DOCUMENT")
