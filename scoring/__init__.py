from .profiles import PROFILES, AnalysisProfile, FeatureRule, get_profile
from .engine import GENUINE, PENDING, SUSPECTED_FORGERY, Anomaly, ScoringEngine, Verdict, detect_anomalies
from .synthesis import AnalysisResult, pending_result, synthesize

__all__ = [
    "PROFILES", "AnalysisProfile", "FeatureRule", "get_profile",
    "GENUINE", "PENDING", "SUSPECTED_FORGERY",
    "Anomaly", "ScoringEngine", "Verdict", "detect_anomalies",
    "AnalysisResult", "pending_result", "synthesize",
]
