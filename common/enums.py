"""
Common enums and constants for the cross-market correlation engine.
Provides type safety and consistency across the codebase.
"""

from enum import Enum


class MarketRelationType(Enum):
    """How two markets are considered related"""
    SAME_CATEGORY = "SAME_CATEGORY"
    KEYWORD_OVERLAP = "KEYWORD_OVERLAP"
    OPPOSING = "OPPOSING"
    SAME_TOPIC = "SAME_TOPIC"
    COMPLEMENTARY = "COMPLEMENTARY"
    CUSTOM = "CUSTOM"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def get_label(cls, relation_type) -> str:
        """Get human readable label for a relation type"""
        labels = {
            cls.SAME_CATEGORY: "same category",
            cls.KEYWORD_OVERLAP: "shared keywords",
            cls.OPPOSING: "opposing outcomes",
            cls.SAME_TOPIC: "same topic",
            cls.COMPLEMENTARY: "complementary outcomes",
            cls.CUSTOM: "custom link",
        }
        if isinstance(relation_type, str):
            relation_type = cls(relation_type)
        return labels[relation_type]


class CorrelationType(Enum):
    """Type of correlation pattern detected"""
    POSITIVE = "POSITIVE"
    NEGATIVE = "NEGATIVE"
    SEQUENTIAL = "SEQUENTIAL"
    SIMULTANEOUS = "SIMULTANEOUS"
    MIXED = "MIXED"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def get_description(cls, correlation_type) -> str:
        """Get the flag reason text for a correlation type"""
        descriptions = {
            cls.SIMULTANEOUS: "Simultaneous trading pattern - same direction trades within the simultaneous window",
            cls.SEQUENTIAL: "Sequential pattern - consistent order of trades across markets",
            cls.POSITIVE: "Positive correlation - same direction trades in related markets",
            cls.NEGATIVE: "Negative correlation - hedging or arbitrage pattern",
            cls.MIXED: "Mixed pattern - no dominant trade direction",
        }
        return descriptions[correlation_type]


class CorrelationSeverity(Enum):
    """Correlation severity levels in ascending order"""
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"

    def __str__(self) -> str:
        return self.value


class CorrelationStatus(Enum):
    """Triage status of a correlation finding"""
    DETECTED = "DETECTED"
    FLAGGED = "FLAGGED"
    DISMISSED = "DISMISSED"

    def __str__(self) -> str:
        return self.value


class CorrelationEvent(Enum):
    """Events delivered by the EventHub"""
    RELATION_ADDED = "relationAdded"
    CORRELATION_DETECTED = "correlationDetected"
    CRITICAL_CORRELATION = "criticalCorrelation"

    def __str__(self) -> str:
        return self.value


class VolumeGateMode(Enum):
    """How the minimum volume threshold is applied to a market pair"""
    COMBINED = "COMBINED"    # volume A + volume B
    EACH_SIDE = "EACH_SIDE"  # min(volume A, volume B)

    def __str__(self) -> str:
        return self.value


class CorrelationConstants:
    """Default correlation thresholds"""
    DEFAULT_MIN_OVERLAPPING_WALLETS = 2
    DEFAULT_MIN_TRADE_PAIRS = 3
    DEFAULT_MIN_VOLUME_USD = 5000
    DEFAULT_MIN_CORRELATION_SCORE = 50
    DEFAULT_SIMULTANEOUS_WINDOW_MS = 5 * 60 * 1000
    DEFAULT_SEQUENTIAL_WINDOW_MS = 30 * 60 * 1000
    DEFAULT_DIRECTION_MAJORITY_RATIO = 0.7
    DEFAULT_VOLUME_SATURATION_USD = 1_000_000

    # Severity cut points (0-100)
    DEFAULT_MEDIUM_SEVERITY = 50
    DEFAULT_HIGH_SEVERITY = 70
    DEFAULT_CRITICAL_SEVERITY = 85

    # Scoring weights
    WALLET_OVERLAP_WEIGHT = 0.25
    TRADE_PAIRS_WEIGHT = 0.20
    VOLUME_WEIGHT = 0.20
    TIMING_WEIGHT = 0.20
    DIRECTION_ALIGNMENT_WEIGHT = 0.15

    # Score factor saturation points
    WALLET_COUNT_SATURATION = 5
    TRADE_PAIR_SATURATION = 10


class EngineConstants:
    """Engine-level defaults"""
    DEFAULT_ALERT_COOLDOWN_MS = 5 * 60 * 1000
    DEFAULT_MAX_RECENT_CORRELATIONS = 100
    DEFAULT_ANALYSIS_WINDOW_MS = 60 * 60 * 1000
    SUMMARY_RECENT_LIMIT = 20
    SUMMARY_TOP_LIMIT = 10


class FlagReasonThresholds:
    """Cut points for optional flag reasons"""
    CLOSE_TIMING_MS = 60_000
    LARGE_VOLUME_USD = 50_000
    STRONG_PEARSON = 0.7


class AutoDetectConstants:
    """Keyword relation detection defaults"""
    DEFAULT_MIN_SHARED_KEYWORDS = 2
    MIN_TOKEN_LENGTH = 3
    STOP_WORDS = frozenset({
        "the", "will", "be", "by", "in", "on", "at", "to", "an", "of", "for",
        "and", "or", "is", "are", "was", "this", "that", "with", "from",
        "before", "after", "end", "than", "more", "less", "any", "its",
        "has", "have", "does", "did", "not", "yes", "who", "what", "which",
        "when", "how", "there", "their", "into", "over", "under", "between",
        "market", "resolve", "resolves", "happen",
    })
