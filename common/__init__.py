"""
Common enums, constants, and data structures for the cross-market correlation engine.
"""

from .enums import (
    MarketRelationType,
    CorrelationType,
    CorrelationSeverity,
    CorrelationStatus,
    CorrelationEvent,
    VolumeGateMode,
    CorrelationConstants,
    EngineConstants,
    FlagReasonThresholds,
    AutoDetectConstants
)
from .models import (
    MarketRelation,
    CorrelationTrade,
    TradePair,
    Correlation,
    CorrelationAnalysisResult,
    BatchCorrelationResult
)

__all__ = [
    'MarketRelationType',
    'CorrelationType',
    'CorrelationSeverity',
    'CorrelationStatus',
    'CorrelationEvent',
    'VolumeGateMode',
    'CorrelationConstants',
    'EngineConstants',
    'FlagReasonThresholds',
    'AutoDetectConstants',
    'MarketRelation',
    'CorrelationTrade',
    'TradePair',
    'Correlation',
    'CorrelationAnalysisResult',
    'BatchCorrelationResult'
]
