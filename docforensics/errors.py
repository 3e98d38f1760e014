"""
docforensics.errors: Exception hierarchy for the analysis engine.

Only input problems and cooperative cancellation are raised to callers.
Numeric degeneracies inside extractors never raise; they resolve to a
neutral score instead.
"""

from __future__ import annotations


class DocumentAnalysisError(Exception):
    """Base class for errors surfaced by the document analysis engine."""


class DecodeError(DocumentAnalysisError):
    """The input bytes could not be decoded as a raster image."""


class EmptyImageError(DocumentAnalysisError):
    """The decoded (and possibly downscaled) image has zero extent."""


class AnalysisCancelled(DocumentAnalysisError):
    """The analysis was cancelled between extractor passes."""


class AnalysisTimeout(AnalysisCancelled):
    """The analysis ran past its deadline and was abandoned."""
