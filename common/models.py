"""
Data structures shared by the correlation engine components.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Dict, Any, Optional, List

from .enums import (
    MarketRelationType,
    CorrelationType,
    CorrelationSeverity,
    CorrelationStatus,
)


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


@dataclass
class MarketRelation:
    """Undirected edge between two markets"""
    market_id_a: str
    market_id_b: str
    relation_type: MarketRelationType
    strength: float
    shared_keywords: Optional[List[str]] = None
    category: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    notes: Optional[str] = None

    def copy(self) -> 'MarketRelation':
        return replace(
            self,
            shared_keywords=list(self.shared_keywords) if self.shared_keywords is not None else None
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization"""
        return {
            'market_id_a': self.market_id_a,
            'market_id_b': self.market_id_b,
            'relation_type': self.relation_type.value,
            'strength': self.strength,
            'shared_keywords': self.shared_keywords,
            'category': self.category,
            'created_at': _isoformat(self.created_at),
            'notes': self.notes
        }


@dataclass(frozen=True)
class CorrelationTrade:
    """Minimal trade projection consumed by the analyzer"""
    trade_id: str
    market_id: str
    wallet_address: str
    side: str  # BUY or SELL
    size_usd: float
    timestamp: int  # epoch milliseconds
    category: Optional[str] = None
    market_question: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization"""
        return {
            'trade_id': self.trade_id,
            'market_id': self.market_id,
            'wallet_address': self.wallet_address,
            'side': self.side,
            'size_usd': self.size_usd,
            'timestamp': self.timestamp,
            'category': self.category,
            'market_question': self.market_question
        }


@dataclass(frozen=True)
class TradePair:
    """One trade in market A matched with one trade in market B by the same wallet"""
    trade_a: CorrelationTrade
    trade_b: CorrelationTrade
    time_difference_ms: int
    same_direction: bool
    volume_ratio: float
    simultaneous: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            'trade_a': self.trade_a.to_dict(),
            'trade_b': self.trade_b.to_dict(),
            'time_difference_ms': self.time_difference_ms,
            'same_direction': self.same_direction,
            'volume_ratio': self.volume_ratio,
            'simultaneous': self.simultaneous
        }


@dataclass
class Correlation:
    """A scored, classified cross-market correlation finding"""
    correlation_id: str
    market_id_a: str
    market_id_b: str
    wallet_addresses: List[str]
    wallet_count: int
    trade_pair_count: int
    volume_market_a: float
    volume_market_b: float
    correlation_score: float
    correlation_type: CorrelationType
    severity: CorrelationSeverity
    flag_reasons: List[str]
    detected_at: datetime
    status: CorrelationStatus = CorrelationStatus.DETECTED
    relation_type: Optional[MarketRelationType] = None
    trade_pairs: List[TradePair] = field(default_factory=list)
    simultaneous_pair_count: int = 0
    trades_in_market_a: int = 0
    trades_in_market_b: int = 0
    pearson_coefficient: float = 0.0
    avg_time_between_trades_ms: float = 0.0
    analysis_window_ms: int = 0
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None

    @property
    def total_volume(self) -> float:
        return self.volume_market_a + self.volume_market_b

    def copy(self) -> 'Correlation':
        """Copy that does not share mutable lists with the original"""
        return replace(
            self,
            wallet_addresses=list(self.wallet_addresses),
            flag_reasons=list(self.flag_reasons),
            trade_pairs=list(self.trade_pairs)
        )

    def to_dict(self, include_pairs: bool = False) -> Dict[str, Any]:
        """Convert to dictionary for serialization"""
        result = {
            'correlation_id': self.correlation_id,
            'market_id_a': self.market_id_a,
            'market_id_b': self.market_id_b,
            'relation_type': self.relation_type.value if self.relation_type else None,
            'correlation_type': self.correlation_type.value,
            'severity': self.severity.value,
            'status': self.status.value,
            'wallet_addresses': list(self.wallet_addresses),
            'wallet_count': self.wallet_count,
            'trade_pair_count': self.trade_pair_count,
            'simultaneous_pair_count': self.simultaneous_pair_count,
            'trades_in_market_a': self.trades_in_market_a,
            'trades_in_market_b': self.trades_in_market_b,
            'volume_market_a': self.volume_market_a,
            'volume_market_b': self.volume_market_b,
            'correlation_score': self.correlation_score,
            'pearson_coefficient': self.pearson_coefficient,
            'avg_time_between_trades_ms': self.avg_time_between_trades_ms,
            'analysis_window_ms': self.analysis_window_ms,
            'start_time': _isoformat(self.start_time),
            'end_time': _isoformat(self.end_time),
            'detected_at': _isoformat(self.detected_at),
            'flag_reasons': list(self.flag_reasons)
        }
        if include_pairs:
            result['trade_pairs'] = [pair.to_dict() for pair in self.trade_pairs]
        return result


@dataclass
class CorrelationAnalysisResult:
    """Outcome of analyzing one market pair"""
    market_id_a: str
    market_id_b: str
    has_correlation: bool
    overlapping_wallets: List[str]
    correlation: Optional[Correlation]
    total_trades_a: int
    total_trades_b: int
    analyzed_at: datetime
    recorded: bool = False
    reason: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            'market_id_a': self.market_id_a,
            'market_id_b': self.market_id_b,
            'has_correlation': self.has_correlation,
            'overlapping_wallets': list(self.overlapping_wallets),
            'correlation': self.correlation.to_dict() if self.correlation else None,
            'total_trades_a': self.total_trades_a,
            'total_trades_b': self.total_trades_b,
            'analyzed_at': _isoformat(self.analyzed_at),
            'recorded': self.recorded,
            'reason': self.reason
        }


@dataclass
class BatchCorrelationResult:
    """Aggregated outcome of a multi-market batch"""
    results: Dict[str, CorrelationAnalysisResult]
    correlations: List[Correlation]
    total_pairs_analyzed: int
    total_correlations_found: int
    by_severity: Dict[CorrelationSeverity, int]
    by_correlation_type: Dict[CorrelationType, int]
    processing_time_ms: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            'results': {key: result.to_dict() for key, result in self.results.items()},
            'correlations': [c.to_dict() for c in self.correlations],
            'total_pairs_analyzed': self.total_pairs_analyzed,
            'total_correlations_found': self.total_correlations_found,
            'by_severity': {k.value: v for k, v in self.by_severity.items()},
            'by_correlation_type': {k.value: v for k, v in self.by_correlation_type.items()},
            'processing_time_ms': self.processing_time_ms
        }
