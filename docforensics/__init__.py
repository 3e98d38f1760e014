"""
Pixel-statistics toolkit for document authenticity analysis.

Each feature extractor lives in its own module and shares common helpers
from ``docforensics.utils``.  The ``pipeline.analyzer`` module runs them
over one decoded raster and hands the scores to ``scoring``.

Modules
-------
raster          Decode, flatten alpha, downscale, luminance plane
params          Extractor calibration presets (generic / indian)
edges           Sobel edge-strength consistency
texture         Block variance uniformity
compression     JPEG 8x8 boundary artifact ratio
color           Red/green correlation stability across blocks
noise_residual  8-neighbour noise residual stationarity
alignment       Text-band height regularity
security_marks  Hologram / watermark pixel density
doctype         Aspect-ratio and color document-type classifier
extractors      Name -> extractor registry
"""

from .errors import AnalysisCancelled, AnalysisTimeout, DecodeError, DocumentAnalysisError, EmptyImageError
from .raster import RasterImage, load_raster
from .params import ExtractorParams, GENERIC_PARAMS, INDIAN_PARAMS
from .utils import FeatureScore
from .doctype import DocumentTypeGuess, classify_document, document_type_name
from .extractors import EXTRACTORS, run_extractors

__all__ = [
    "DocumentAnalysisError", "DecodeError", "EmptyImageError",
    "AnalysisCancelled", "AnalysisTimeout",
    "RasterImage", "load_raster",
    "ExtractorParams", "GENERIC_PARAMS", "INDIAN_PARAMS",
    "FeatureScore",
    "DocumentTypeGuess", "classify_document", "document_type_name",
    "EXTRACTORS", "run_extractors",
]
