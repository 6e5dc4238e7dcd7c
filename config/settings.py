"""
Settings Management
Centralized configuration management for the cross-market correlation engine
"""

import os
import json
import logging
from typing import Dict, Any, Optional, List
from dataclasses import dataclass, field, asdict
from pathlib import Path

from common import (
    VolumeGateMode,
    CorrelationConstants,
    EngineConstants,
    AutoDetectConstants
)

logger = logging.getLogger(__name__)


@dataclass
class SeverityThresholds:
    """Ascending score cut points; anything below medium is LOW"""
    medium: float = CorrelationConstants.DEFAULT_MEDIUM_SEVERITY
    high: float = CorrelationConstants.DEFAULT_HIGH_SEVERITY
    critical: float = CorrelationConstants.DEFAULT_CRITICAL_SEVERITY

    def validate(self) -> List[str]:
        issues = []
        if not 0 <= self.medium <= 100:
            issues.append(f"Medium severity threshold must be within 0-100 (got {self.medium})")
        if self.high <= self.medium:
            issues.append(f"High severity threshold ({self.high}) must be greater than medium ({self.medium})")
        if self.critical <= self.high:
            issues.append(f"Critical severity threshold ({self.critical}) must be greater than high ({self.high})")
        if self.critical > 100:
            issues.append(f"Critical severity threshold must be <= 100 (got {self.critical})")
        return issues


@dataclass
class ScoreWeights:
    """Relative weight of each score factor"""
    wallet_overlap: float = CorrelationConstants.WALLET_OVERLAP_WEIGHT
    trade_pairs: float = CorrelationConstants.TRADE_PAIRS_WEIGHT
    volume: float = CorrelationConstants.VOLUME_WEIGHT
    timing: float = CorrelationConstants.TIMING_WEIGHT
    direction_alignment: float = CorrelationConstants.DIRECTION_ALIGNMENT_WEIGHT

    @property
    def total(self) -> float:
        return self.wallet_overlap + self.trade_pairs + self.volume + self.timing + self.direction_alignment

    def validate(self) -> List[str]:
        issues = []
        for name, value in asdict(self).items():
            if value < 0:
                issues.append(f"Score weight '{name}' must be non-negative (got {value})")
        if self.total <= 0:
            issues.append("At least one score weight must be positive")
        return issues


@dataclass
class CorrelationThresholds:
    """Thresholds for correlation analysis"""
    min_overlapping_wallets: int = CorrelationConstants.DEFAULT_MIN_OVERLAPPING_WALLETS
    min_trade_pairs: int = CorrelationConstants.DEFAULT_MIN_TRADE_PAIRS
    min_volume_usd: float = CorrelationConstants.DEFAULT_MIN_VOLUME_USD
    min_correlation_score: float = CorrelationConstants.DEFAULT_MIN_CORRELATION_SCORE
    simultaneous_window_ms: int = CorrelationConstants.DEFAULT_SIMULTANEOUS_WINDOW_MS
    sequential_window_ms: int = CorrelationConstants.DEFAULT_SEQUENTIAL_WINDOW_MS
    direction_majority_ratio: float = CorrelationConstants.DEFAULT_DIRECTION_MAJORITY_RATIO
    volume_saturation_usd: float = CorrelationConstants.DEFAULT_VOLUME_SATURATION_USD
    volume_gate_mode: VolumeGateMode = VolumeGateMode.COMBINED
    severity_thresholds: SeverityThresholds = field(default_factory=SeverityThresholds)
    score_weights: ScoreWeights = field(default_factory=ScoreWeights)

    def __post_init__(self):
        if isinstance(self.volume_gate_mode, str):
            self.volume_gate_mode = VolumeGateMode(self.volume_gate_mode.upper())
        if isinstance(self.severity_thresholds, dict):
            self.severity_thresholds = SeverityThresholds(**self.severity_thresholds)
        if isinstance(self.score_weights, dict):
            self.score_weights = ScoreWeights(**self.score_weights)

        issues = self.validate()
        if issues:
            raise ValueError(f"Invalid correlation thresholds: {'; '.join(issues)}")

    def validate(self) -> List[str]:
        """Validate thresholds and return list of issues"""
        issues = []

        if self.min_overlapping_wallets < 1:
            issues.append("min_overlapping_wallets must be at least 1")
        if self.min_trade_pairs < 0:
            issues.append("min_trade_pairs must be non-negative")
        if self.min_volume_usd < 0:
            issues.append("min_volume_usd must be non-negative")
        if not 0 <= self.min_correlation_score <= 100:
            issues.append("min_correlation_score must be within 0-100")
        if self.simultaneous_window_ms < 0:
            issues.append("simultaneous_window_ms must be non-negative")
        if self.sequential_window_ms < self.simultaneous_window_ms:
            issues.append("sequential_window_ms must not be shorter than simultaneous_window_ms")
        if self.sequential_window_ms <= 0:
            issues.append("sequential_window_ms must be positive")
        if not 0.5 < self.direction_majority_ratio <= 1:
            issues.append("direction_majority_ratio must be within (0.5, 1]")
        if self.volume_saturation_usd <= 0:
            issues.append("volume_saturation_usd must be positive")

        issues.extend(self.severity_thresholds.validate())
        issues.extend(self.score_weights.validate())
        return issues

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'CorrelationThresholds':
        """Build thresholds from a (possibly partial) config dict"""
        data = dict(data or {})
        known = set(cls.__dataclass_fields__)
        unknown = [key for key in data if key not in known]
        if unknown:
            logger.warning(f"⚠️ Ignoring unknown threshold keys: {', '.join(sorted(unknown))}")
        return cls(**{key: value for key, value in data.items() if key in known})

    def merged(self, overrides: Optional[Dict[str, Any]]) -> 'CorrelationThresholds':
        """Return a new instance with overrides applied (nested sections merge key by key)"""
        if not overrides:
            return self

        base = self.to_dict()
        for key, value in overrides.items():
            if key in ('severity_thresholds', 'score_weights') and isinstance(value, dict):
                base[key] = {**base[key], **value}
            else:
                base[key] = value
        return CorrelationThresholds.from_dict(base)

    def to_dict(self) -> Dict[str, Any]:
        result = asdict(self)
        result['volume_gate_mode'] = self.volume_gate_mode.value
        return result


@dataclass
class EngineSettings:
    """Settings for the engine facade, ledger and event hub"""
    enable_events: bool = True
    alert_cooldown_ms: int = EngineConstants.DEFAULT_ALERT_COOLDOWN_MS
    max_recent_correlations: int = EngineConstants.DEFAULT_MAX_RECENT_CORRELATIONS
    analysis_window_ms: int = EngineConstants.DEFAULT_ANALYSIS_WINDOW_MS

    def validate(self) -> List[str]:
        issues = []
        if self.alert_cooldown_ms < 0:
            issues.append("alert_cooldown_ms must be non-negative")
        if self.max_recent_correlations < 1:
            issues.append("max_recent_correlations must be at least 1")
        if self.analysis_window_ms <= 0:
            issues.append("analysis_window_ms must be positive")
        return issues


@dataclass
class AutoDetectSettings:
    """Settings for keyword based relation detection"""
    min_shared_keywords: int = AutoDetectConstants.DEFAULT_MIN_SHARED_KEYWORDS
    min_token_length: int = AutoDetectConstants.MIN_TOKEN_LENGTH
    extra_stop_words: List[str] = field(default_factory=list)

    def validate(self) -> List[str]:
        issues = []
        if self.min_shared_keywords < 1:
            issues.append("min_shared_keywords must be at least 1")
        if self.min_token_length < 1:
            issues.append("min_token_length must be at least 1")
        return issues


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value == '':
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be an integer (got {value!r})")


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value == '':
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


class Settings:
    """Main settings manager"""

    def __init__(self, config: Dict = None):
        self.config = config or {}

        # Initialize setting groups
        self.engine = self._init_engine_settings()
        self.thresholds = self._init_threshold_settings()
        self.auto_detect = self._init_auto_detect_settings()

        issues = self.validate_settings()
        if issues:
            raise ValueError(f"Invalid configuration: {'; '.join(issues)}")

        logger.debug("⚙️ Settings initialized")

    def _init_engine_settings(self) -> EngineSettings:
        """Initialize engine settings, environment variables take precedence"""
        engine_config = self.config.get('engine', {})

        return EngineSettings(
            enable_events=_env_bool('CORRELATION_ENABLE_EVENTS', engine_config.get('enable_events', True)),
            alert_cooldown_ms=_env_int(
                'CORRELATION_ALERT_COOLDOWN_MS',
                engine_config.get('alert_cooldown_ms', EngineConstants.DEFAULT_ALERT_COOLDOWN_MS)
            ),
            max_recent_correlations=_env_int(
                'CORRELATION_MAX_RECENT',
                engine_config.get('max_recent_correlations', EngineConstants.DEFAULT_MAX_RECENT_CORRELATIONS)
            ),
            analysis_window_ms=_env_int(
                'CORRELATION_ANALYSIS_WINDOW_MS',
                engine_config.get('analysis_window_ms', EngineConstants.DEFAULT_ANALYSIS_WINDOW_MS)
            )
        )

    def _init_threshold_settings(self) -> CorrelationThresholds:
        """Initialize correlation thresholds"""
        detection_config = self.config.get('detection', {})
        return CorrelationThresholds.from_dict(detection_config.get('correlation_thresholds', {}))

    def _init_auto_detect_settings(self) -> AutoDetectSettings:
        """Initialize keyword relation detection settings"""
        auto_config = self.config.get('detection', {}).get('auto_detect', {})

        return AutoDetectSettings(
            min_shared_keywords=auto_config.get('min_shared_keywords', AutoDetectConstants.DEFAULT_MIN_SHARED_KEYWORDS),
            min_token_length=auto_config.get('min_token_length', AutoDetectConstants.MIN_TOKEN_LENGTH),
            extra_stop_words=list(auto_config.get('extra_stop_words', []))
        )

    def validate_settings(self) -> List[str]:
        """Validate settings and return list of issues"""
        issues = []
        issues.extend(self.engine.validate())
        issues.extend(self.thresholds.validate())
        issues.extend(self.auto_detect.validate())
        return issues

    def get_config_summary(self) -> Dict[str, Any]:
        """Get a summary of current settings"""
        return {
            'engine': asdict(self.engine),
            'thresholds': self.thresholds.to_dict(),
            'auto_detect': asdict(self.auto_detect)
        }

    def log_settings(self):
        """Log current settings"""
        logger.info("⚙️ Current Settings:")
        logger.info(
            f"  🔍 Thresholds: {self.thresholds.min_overlapping_wallets} wallets, "
            f"{self.thresholds.min_trade_pairs} pairs, ${self.thresholds.min_volume_usd:,.0f} "
            f"({self.thresholds.volume_gate_mode}), score >= {self.thresholds.min_correlation_score}"
        )
        logger.info(
            f"  ⏱️ Windows: analysis {self.engine.analysis_window_ms}ms, "
            f"cooldown {self.engine.alert_cooldown_ms}ms"
        )
        logger.info(f"  🔔 Events: {'✅' if self.engine.enable_events else '❌'}")


def load_config(config_path: str) -> Dict:
    """Load configuration from a JSON file"""
    config_file = Path(config_path)
    if not config_file.exists():
        logger.error(f"Config file not found: {config_path}")
        raise RuntimeError(f"Cannot load configuration file: {config_path} not found")

    try:
        with open(config_file) as f:
            config = json.load(f)
    except json.JSONDecodeError as e:
        logger.error(f"Failed to parse config from {config_path}: {e}")
        raise RuntimeError(f"Cannot load configuration file: {e}")

    logger.info(f"Loaded configuration from {config_path}")
    return config
