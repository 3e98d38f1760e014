from .analyzer import CancelToken, DocumentAnalyzer
from .scheduler import AnalysisJob, AnalysisScheduler, JobOutcome, summarize
from .settings import EngineSettings, load_settings

__all__ = [
    "CancelToken", "DocumentAnalyzer",
    "AnalysisJob", "AnalysisScheduler", "JobOutcome", "summarize",
    "EngineSettings", "load_settings",
]
