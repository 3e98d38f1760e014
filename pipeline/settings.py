"""
Engine settings loaded from ``configs/engine.yaml``.

Only operational knobs live in the YAML file (profile choice, threading,
pool size, deadlines, logging, working resolution).  Weights and
thresholds stay in :mod:`scoring.profiles`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Union

import yaml

from scoring.profiles import PROFILES, get_profile

from .analyzer import DocumentAnalyzer
from .scheduler import AnalysisScheduler

CONFIG_PATH = Path(__file__).parent.parent / "configs" / "engine.yaml"

logger = logging.getLogger(__name__)


@dataclass
class EngineSettings:
    profile: str = "generic"
    parallel_extractors: bool = False
    max_workers: Optional[int] = None
    timeout_seconds: Optional[float] = 30.0
    log_level: str = "INFO"
    max_dimensions: Dict[str, int] = field(default_factory=dict)

    def __post_init__(self):
        get_profile(self.profile)
        if self.max_workers is not None and self.max_workers <= 0:
            raise ValueError(f"scheduler.max_workers must be positive, got {self.max_workers}")
        if self.timeout_seconds is not None and self.timeout_seconds <= 0:
            raise ValueError(f"scheduler.timeout_seconds must be positive, got {self.timeout_seconds}")
        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise ValueError(f"unknown logging level {self.log_level!r}")
        for name, dim in self.max_dimensions.items():
            if name not in PROFILES:
                raise ValueError(f"max_dimension given for unknown profile {name!r}")
            if dim <= 0:
                raise ValueError(f"profiles.{name}.max_dimension must be positive, got {dim}")

    def max_dimension_for(self, profile: str) -> int:
        return self.max_dimensions.get(profile, get_profile(profile).max_dimension)

    def build_analyzer(self, profile: Optional[str] = None) -> DocumentAnalyzer:
        profile = profile or self.profile
        return DocumentAnalyzer(
            profile=profile,
            parallel_extractors=self.parallel_extractors,
            max_dimension=self.max_dimension_for(profile),
        )

    def build_scheduler(self, profile: Optional[str] = None) -> AnalysisScheduler:
        return AnalysisScheduler(
            self.build_analyzer(profile),
            max_workers=self.max_workers,
            timeout_seconds=self.timeout_seconds,
        )


def load_settings(config_path: Union[str, Path] = CONFIG_PATH) -> EngineSettings:
    """Read *config_path*; a missing file yields the defaults."""
    config_path = Path(config_path)
    if not config_path.exists():
        logger.debug("No settings file at %s, using defaults", config_path)
        return EngineSettings()

    with open(config_path, encoding="utf-8") as f:
        cfg = yaml.safe_load(f) or {}

    engine_cfg = cfg.get("engine", {}) or {}
    sched_cfg = cfg.get("scheduler", {}) or {}
    log_cfg = cfg.get("logging", {}) or {}
    profiles_cfg = cfg.get("profiles", {}) or {}

    defaults = EngineSettings()
    return EngineSettings(
        profile=engine_cfg.get("profile", defaults.profile),
        parallel_extractors=bool(engine_cfg.get("parallel_extractors", defaults.parallel_extractors)),
        max_workers=sched_cfg.get("max_workers", defaults.max_workers),
        timeout_seconds=sched_cfg.get("timeout_seconds", defaults.timeout_seconds),
        log_level=str(log_cfg.get("level", defaults.log_level)),
        max_dimensions={
            name: int(p["max_dimension"])
            for name, p in profiles_cfg.items()
            if isinstance(p, dict) and "max_dimension" in p
        },
    )
