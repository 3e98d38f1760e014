"""
scoring.synthesis: Assemble the final AnalysisResult record.

Rounds scores to two decimals, maps features onto the historical field
names consumed by document storage, attaches a descriptive placeholder
in place of real text extraction, and stamps the completion time.

Field mapping
-------------
=================== ======================== =============================
field               generic layout           indian layout
=================== ======================== =============================
edgeConsistency     edge                     edge
textureAnalysis     texture                  texture
compressionArtifacts compression             watermark sub-score
ocrConsistency      (edge + alignment) / 2   document-type confidence
fontConsistency     alignment                security score
alignmentScore      alignment                edge
=================== ======================== =============================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

from docforensics.doctype import DOCUMENT_TYPE_NAMES, OTHER_GOVT_ID, DocumentTypeGuess
from docforensics.raster import RasterImage
from docforensics.utils import FeatureScore, json_sanitize

from .engine import PENDING, Verdict
from .profiles import LAYOUT_INDIAN, AnalysisProfile

PENDING_ANOMALY = "Analysis failed: manual review required"

RESULT_FIELDS = (
    "result",
    "confidenceScore",
    "edgeConsistency",
    "textureAnalysis",
    "compressionArtifacts",
    "ocrConsistency",
    "fontConsistency",
    "alignmentScore",
    "extractedText",
    "anomalies",
    "analyzedAt",
)

_DOCUMENT_TEMPLATES: Dict[str, str] = {
    "aadhaar_card": (
        "[OCR] AADHAAR CARD DETECTED\n"
        "Government of India\n"
        "Unique Identification Authority of India (UIDAI)\n"
        "Detected Features: {features}\n"
        "Expected Fields: Name, Date of Birth, Gender, 12-digit Aadhaar Number, Address, QR Code\n"
        "Security Features: Hologram, Guilloche pattern, Microprinting"
    ),
    "pan_card": (
        "[OCR] PAN CARD DETECTED\n"
        "Income Tax Department - Government of India\n"
        "Detected Features: {features}\n"
        "Expected Fields: Name, Father's Name, Date of Birth, 10-character PAN, Signature\n"
        "Security Features: Hologram, Rainbow printing"
    ),
    "voter_id": (
        "[OCR] VOTER ID CARD DETECTED\n"
        "Election Commission of India\n"
        "Detected Features: {features}\n"
        "Expected Fields: Name, Father's/Husband's Name, EPIC Number, Date of Birth, Photo\n"
        "Security Features: Watermark, Security thread"
    ),
    "driving_license": (
        "[OCR] DRIVING LICENSE DETECTED\n"
        "Regional Transport Office (RTO)\n"
        "Detected Features: {features}\n"
        "Expected Fields: Name, License Number, Validity, Vehicle Class, Address\n"
        "Security Features: Hologram, Smart chip (if applicable)"
    ),
    "nursing_certificate": (
        "[OCR] NURSING CERTIFICATE DETECTED\n"
        "Indian Nursing Council / State Nursing Council\n"
        "Detected Features: {features}\n"
        "Expected Fields: Nurse Name, Registration Number, Qualification, Institution, Validity\n"
        "Security Features: Official seal, Signature, Watermark paper"
    ),
    "medical_degree": (
        "[OCR] MEDICAL DEGREE DETECTED\n"
        "Medical Council of India / National Medical Commission\n"
        "Detected Features: {features}\n"
        "Expected Fields: Doctor Name, Degree (MBBS/MD/MS), University, Year, Registration Number\n"
        "Security Features: Official seal, Hologram, Security thread"
    ),
    OTHER_GOVT_ID: (
        "[OCR] GOVERNMENT ID DOCUMENT\n"
        "Detected Features: {features}\n"
        "General Analysis: Document shows government ID characteristics\n"
        "Recommendation: Manual verification advised for document type confirmation"
    ),
}


@dataclass(frozen=True)
class AnalysisResult:
    """The record emitted once per analysed document."""

    result: str                         # "genuine" | "suspected_forgery" | "pending"
    confidence_score: float
    edge_consistency: float
    texture_analysis: float
    compression_artifacts: float
    ocr_consistency: float
    font_consistency: float
    alignment_score: float
    extracted_text: str
    anomalies: Tuple[str, ...]
    analyzed_at: str

    # Report-only context, not part of the stored schema
    request_id: Optional[str] = None
    profile: Optional[str] = None
    document_type: Optional[str] = None
    stage: Optional[str] = None
    raw_confidence: Optional[float] = None
    diagnostics: Dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def is_pending(self) -> bool:
        return self.result == PENDING

    def to_dict(self) -> dict:
        return {
            "result": self.result,
            "confidenceScore": self.confidence_score,
            "edgeConsistency": self.edge_consistency,
            "textureAnalysis": self.texture_analysis,
            "compressionArtifacts": self.compression_artifacts,
            "ocrConsistency": self.ocr_consistency,
            "fontConsistency": self.font_consistency,
            "alignmentScore": self.alignment_score,
            "extractedText": self.extracted_text,
            "anomalies": list(self.anomalies),
            "analyzedAt": self.analyzed_at,
        }

    def to_report(self) -> dict:
        """Stored schema plus request id, profile, document type and diagnostics."""
        report = self.to_dict()
        report.update({
            "requestId": self.request_id,
            "profile": self.profile,
            "documentType": self.document_type,
            "documentTypeName": DOCUMENT_TYPE_NAMES.get(self.document_type) if self.document_type else None,
            "confidenceBand": confidence_band(self.confidence_score),
            "decisionStage": self.stage,
            "rawConfidence": None if self.raw_confidence is None else round(self.raw_confidence, 4),
            "diagnostics": json_sanitize(self.diagnostics),
        })
        return report


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def utc_timestamp(now: Optional[datetime] = None) -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a ``Z`` suffix."""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def confidence_band(confidence: float) -> str:
    if confidence >= 0.8:
        return "high"
    if confidence >= 0.5:
        return "medium"
    return "low"


def generic_placeholder_text(width: int, height: int) -> str:
    """Text-extraction stand-in chosen by orientation."""
    aspect = width / height
    if aspect > 1.3:
        return (
            "[OCR] Document appears to be landscape format. Detected fields: Name, "
            "Registration Number, Date of Issue, Issuing Authority. Text extraction "
            "requires an OCR backend."
        )
    if aspect < 0.8:
        return (
            "[OCR] Document appears to be portrait/ID format. Detected fields: Photo, "
            "Name, ID Number, Date of Birth, Address. Text extraction requires an OCR backend."
        )
    return (
        "[OCR] Standard document format detected. Multiple text regions identified. "
        "Full text extraction requires an OCR backend."
    )


def document_placeholder_text(category: str, cues: Sequence[str]) -> str:
    """Text-extraction stand-in for a detected document category."""
    template = _DOCUMENT_TEMPLATES.get(category, _DOCUMENT_TEMPLATES[OTHER_GOVT_ID])
    return template.format(features=", ".join(cues))


def _r2(x: float) -> float:
    return round(float(x), 2)


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------

def synthesize(
    verdict: Verdict,
    features: Mapping[str, FeatureScore],
    profile: AnalysisProfile,
    raster: RasterImage,
    guess: Optional[DocumentTypeGuess] = None,
    request_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> AnalysisResult:
    """Build the AnalysisResult for one scored document."""
    edge = features["edge"].score
    texture = features["texture"].score

    if profile.layout == LAYOUT_INDIAN:
        if guess is None:
            raise ValueError(f"profile {profile.name!r} needs a document type guess")
        security = features["security"]
        compression = security.raw["watermark_score"]
        ocr = guess.confidence
        font = security.score
        alignment = edge
        text = document_placeholder_text(guess.category, guess.cues)
    else:
        compression = features["compression"].score
        alignment = features["alignment"].score
        ocr = (edge + alignment) / 2.0
        font = alignment
        text = generic_placeholder_text(raster.width, raster.height)

    diagnostics: Dict[str, Any] = {
        "features": {name: {"score": fs.score, "raw": fs.raw} for name, fs in features.items()},
        "weights": verdict.weights,
        "image": {"width": raster.width, "height": raster.height, "source_size": list(raster.source_size)},
    }
    if guess is not None:
        diagnostics["document_type"] = {
            "category": guess.category,
            "confidence": guess.confidence,
            "cues": list(guess.cues),
            "heuristics": guess.heuristics,
        }

    return AnalysisResult(
        result=verdict.label,
        confidence_score=_r2(verdict.confidence),
        edge_consistency=_r2(edge),
        texture_analysis=_r2(texture),
        compression_artifacts=_r2(compression),
        ocr_consistency=_r2(ocr),
        font_consistency=_r2(font),
        alignment_score=_r2(alignment),
        extracted_text=text,
        anomalies=tuple(verdict.messages()),
        analyzed_at=utc_timestamp(now),
        request_id=request_id,
        profile=profile.name,
        document_type=guess.category if guess is not None else None,
        stage=verdict.stage,
        raw_confidence=verdict.raw_confidence,
        diagnostics=diagnostics,
    )


def pending_result(
    reason: Optional[str] = None,
    request_id: Optional[str] = None,
    profile: Optional[str] = None,
    now: Optional[datetime] = None,
) -> AnalysisResult:
    """Well-formed ``pending`` record for a document that could not be scored."""
    return AnalysisResult(
        result=PENDING,
        confidence_score=0.0,
        edge_consistency=0.0,
        texture_analysis=0.0,
        compression_artifacts=0.0,
        ocr_consistency=0.0,
        font_consistency=0.0,
        alignment_score=0.0,
        extracted_text="",
        anomalies=(PENDING_ANOMALY,),
        analyzed_at=utc_timestamp(now),
        request_id=request_id,
        profile=profile,
        diagnostics={"error": reason} if reason else {},
    )
