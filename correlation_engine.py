"""
Cross-Market Correlation Engine
Composes the relation graph, analyzer, ledger, batch coordinator and event hub
into one injectable engine.
"""

import logging
import threading
from collections import defaultdict
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Union

from alerts.event_hub import EventHub
from common import (
    BatchCorrelationResult,
    Correlation,
    CorrelationAnalysisResult,
    CorrelationEvent,
    CorrelationSeverity,
    CorrelationStatus,
    CorrelationType,
    EngineConstants,
    MarketRelation
)
from config.settings import CorrelationThresholds, Settings
from detection import AutoRelationDetector, BatchCoordinator, CorrelationAnalyzer, MarketRelationGraph
from detection.utils import get_market_pair_key
from persistence.correlation_ledger import CorrelationLedger

logger = logging.getLogger(__name__)


class CorrelationEngine:
    """Single logical instance of the cross-market correlation engine.

    Construct one and pass it to consumers. All components share one
    re-entrant lock so relation, history and cooldown state change together.
    A lazily built process default is available through get_instance();
    reset_instance() exists for tests.
    """

    _instance: Optional["CorrelationEngine"] = None
    _instance_lock = threading.Lock()

    def __init__(self, settings_or_config: Union[Settings, Dict, None] = None, clock: Optional[Callable[[], int]] = None):
        if isinstance(settings_or_config, Settings):
            self.settings = settings_or_config
        else:
            self.settings = Settings(settings_or_config or {})

        engine_settings = self.settings.engine
        self._lock = threading.RLock()

        self.event_hub = EventHub(enabled=engine_settings.enable_events)
        self.relation_graph = MarketRelationGraph(event_hub=self.event_hub, lock=self._lock)
        self.ledger = CorrelationLedger(
            event_hub=self.event_hub,
            alert_cooldown_ms=engine_settings.alert_cooldown_ms,
            max_recent_correlations=engine_settings.max_recent_correlations,
            lock=self._lock
        )
        self.analyzer = CorrelationAnalyzer(
            relation_graph=self.relation_graph,
            ledger=self.ledger,
            settings_or_config=self.settings,
            clock=clock,
            lock=self._lock
        )
        self.auto_relation_detector = AutoRelationDetector(self.relation_graph, self.settings)
        self.batch_coordinator = BatchCoordinator(self.analyzer, self.relation_graph)

        logger.info(
            f"🔧 CorrelationEngine initialized (cooldown {engine_settings.alert_cooldown_ms}ms, "
            f"window {engine_settings.analysis_window_ms}ms, events {'on' if engine_settings.enable_events else 'off'})"
        )

    # ------------------------------------------------------------------
    # Process default
    # ------------------------------------------------------------------

    @classmethod
    def get_instance(cls, settings_or_config: Union[Settings, Dict, None] = None) -> "CorrelationEngine":
        """
        Get the process default engine, building it on first use.

        Args:
            settings_or_config: Only used on first call
        """
        with cls._instance_lock:
            if cls._instance is None:
                cls._instance = cls(settings_or_config)
            return cls._instance

    @classmethod
    def reset_instance(cls):
        """Drop the process default engine (tests only)"""
        with cls._instance_lock:
            if cls._instance is not None:
                cls._instance.clear_all()
                cls._instance.event_hub.remove_all_listeners()
            cls._instance = None

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    @property
    def thresholds(self) -> CorrelationThresholds:
        return self.analyzer.thresholds

    @property
    def enable_events(self) -> bool:
        return self.event_hub.enabled

    @property
    def alert_cooldown_ms(self) -> int:
        return self.ledger.alert_cooldown_ms

    @property
    def analysis_window_ms(self) -> int:
        return self.analyzer.analysis_window_ms

    def get_thresholds(self) -> CorrelationThresholds:
        """Copy of the configured thresholds"""
        return CorrelationThresholds.from_dict(self.thresholds.to_dict())

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def on(self, event: Union[CorrelationEvent, str], handler: Callable[[Any], Any]):
        return self.event_hub.subscribe(event, handler)

    def off(self, event: Union[CorrelationEvent, str], handler: Callable[[Any], Any]) -> bool:
        return self.event_hub.unsubscribe(event, handler)

    # ------------------------------------------------------------------
    # Relations
    # ------------------------------------------------------------------

    def add_relation(self, relation: Union[MarketRelation, Dict[str, Any], None] = None, **fields) -> MarketRelation:
        return self.relation_graph.add_relation(relation, **fields)

    def remove_relation(self, market_id_a: str, market_id_b: str) -> bool:
        return self.relation_graph.remove_relation(market_id_a, market_id_b)

    def get_relation(self, market_id_a: str, market_id_b: str) -> Optional[MarketRelation]:
        return self.relation_graph.get_relation(market_id_a, market_id_b)

    def are_markets_related(self, market_id_a: str, market_id_b: str) -> bool:
        return self.relation_graph.are_related(market_id_a, market_id_b)

    def get_relations_for_market(self, market_id: str) -> List[MarketRelation]:
        return self.relation_graph.relations_for(market_id)

    def get_all_relations(self) -> List[MarketRelation]:
        return self.relation_graph.all_relations()

    def auto_detect_relations(self, markets: List[Dict[str, Any]], min_shared_keywords: Optional[int] = None) -> List[MarketRelation]:
        return self.auto_relation_detector.auto_detect_relations(markets, min_shared_keywords)

    # ------------------------------------------------------------------
    # Analysis
    # ------------------------------------------------------------------

    def analyze_correlation(self, trades_a: Iterable[Any], trades_b: Iterable[Any], **options) -> CorrelationAnalysisResult:
        return self.analyzer.analyze_correlation(trades_a, trades_b, **options)

    def analyze_multiple_pairs(self, trades_by_market: Mapping[str, Iterable[Any]], **options) -> BatchCorrelationResult:
        return self.batch_coordinator.analyze_multiple_pairs(trades_by_market, **options)

    # ------------------------------------------------------------------
    # Ledger queries and status
    # ------------------------------------------------------------------

    def get_recent_correlations(self, limit: Optional[int] = 20) -> List[Correlation]:
        return self.ledger.get_recent_correlations(limit)

    def get_market_correlations(self, market_id: str, limit: Optional[int] = 10) -> List[Correlation]:
        return self.ledger.get_market_correlations(market_id, limit)

    def get_wallet_correlations(self, wallet_address: str, limit: Optional[int] = 10) -> List[Correlation]:
        return self.ledger.get_wallet_correlations(wallet_address, limit)

    def get_correlations_by_severity(self, severity: Union[CorrelationSeverity, str], limit: Optional[int] = 10) -> List[Correlation]:
        return self.ledger.get_correlations_by_severity(severity, limit)

    def get_correlations_by_type(self, correlation_type: Union[CorrelationType, str], limit: Optional[int] = 10) -> List[Correlation]:
        return self.ledger.get_correlations_by_type(correlation_type, limit)

    def get_flagged_correlations(self, limit: Optional[int] = 20) -> List[Correlation]:
        return self.ledger.get_flagged_correlations(limit)

    def update_correlation_status(self, correlation_id: str, status: Union[CorrelationStatus, str]) -> bool:
        return self.ledger.update_correlation_status(correlation_id, status)

    def flag_correlation(self, correlation_id: str) -> bool:
        return self.ledger.flag_correlation(correlation_id)

    def dismiss_correlation(self, correlation_id: str) -> bool:
        return self.ledger.dismiss_correlation(correlation_id)

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------

    def get_stats(self) -> Dict[str, Any]:
        """Read-only engine counters"""
        with self._lock:
            return {
                'total_correlations_detected': self.ledger.total_correlations_detected,
                'recent_correlation_count': len(self.ledger),
                'total_relations_tracked': len(self.relation_graph),
                'enable_events': self.enable_events,
                'alert_cooldown_ms': self.alert_cooldown_ms,
                'analysis_window_ms': self.analysis_window_ms
            }

    def get_summary(self) -> Dict[str, Any]:
        """Summary statistics over recorded correlations"""
        with self._lock:
            recent = self.ledger.get_recent_correlations(limit=None)
            by_severity = dict(self.ledger.correlations_by_severity)
            by_type = dict(self.ledger.correlations_by_type)
            total_detected = self.ledger.total_correlations_detected
            relation_count = len(self.relation_graph)
            analysis_count = self.analyzer.analysis_count
            total_analysis_time_ms = self.analyzer.total_analysis_time_ms
            total_pairs_analyzed = self.batch_coordinator.total_pairs_analyzed
            last_batch_ms = self.batch_coordinator.last_processing_time_ms

        pair_stats: Dict[str, Dict[str, Any]] = {}
        wallet_stats: Dict[str, Dict[str, float]] = defaultdict(lambda: {'count': 0, 'volume': 0.0})
        status_counts = {status: 0 for status in CorrelationStatus}

        for correlation in recent:
            status_counts[correlation.status] += 1

            key = get_market_pair_key(correlation.market_id_a, correlation.market_id_b)
            entry = pair_stats.setdefault(key, {
                'market_id_a': correlation.market_id_a,
                'market_id_b': correlation.market_id_b,
                'correlation_count': 0,
                'total_volume': 0.0
            })
            entry['correlation_count'] += 1
            entry['total_volume'] += correlation.total_volume

            # Volume is split evenly across the wallets of a finding
            share = correlation.total_volume / max(correlation.wallet_count, 1)
            for wallet in correlation.wallet_addresses:
                wallet_stats[wallet]['count'] += 1
                wallet_stats[wallet]['volume'] += share

        top_pairs = sorted(pair_stats.values(), key=lambda p: p['correlation_count'], reverse=True)
        top_wallets = sorted(
            (
                {'wallet_address': wallet, 'correlation_count': data['count'], 'total_volume': data['volume']}
                for wallet, data in wallet_stats.items()
            ),
            key=lambda w: w['correlation_count'],
            reverse=True
        )

        return {
            'total_correlations_detected': total_detected,
            'recent_correlations': recent[:EngineConstants.SUMMARY_RECENT_LIMIT],
            'by_severity': by_severity,
            'by_correlation_type': by_type,
            'top_correlated_pairs': top_pairs[:EngineConstants.SUMMARY_TOP_LIMIT],
            'top_correlated_wallets': top_wallets[:EngineConstants.SUMMARY_TOP_LIMIT],
            'total_relations_tracked': relation_count,
            'analysis_stats': {
                'market_pairs_monitored': relation_count,
                'active_correlations': status_counts[CorrelationStatus.DETECTED],
                'flagged_correlations': status_counts[CorrelationStatus.FLAGGED],
                'dismissed_correlations': status_counts[CorrelationStatus.DISMISSED]
            },
            'analysis_timing': {
                'total_analyses': analysis_count,
                'total_analysis_time_ms': total_analysis_time_ms,
                'avg_analysis_time_ms': total_analysis_time_ms / analysis_count if analysis_count else 0.0,
                'total_pairs_analyzed': total_pairs_analyzed,
                'last_batch_processing_time_ms': last_batch_ms
            }
        }

    # ------------------------------------------------------------------
    # Clearing
    # ------------------------------------------------------------------

    def clear_correlations(self):
        """Clear history and cooldowns, keep relations"""
        with self._lock:
            self.ledger.clear_correlations()
        logger.debug("🧹 Cleared correlation history")

    def clear_all(self):
        """Clear relations, history, cooldowns and counters"""
        with self._lock:
            self.ledger.clear_correlations()
            self.ledger.reset_counters()
            self.relation_graph.clear()
            self.analyzer.analysis_count = 0
            self.analyzer.total_analysis_time_ms = 0.0
            self.batch_coordinator.total_pairs_analyzed = 0
            self.batch_coordinator.last_processing_time_ms = 0.0
        logger.debug("🧹 Cleared all correlation engine state")


# ----------------------------------------------------------------------
# Convenience functions (use the process default unless an engine is given)
# ----------------------------------------------------------------------

def _resolve_engine(engine: Optional[CorrelationEngine]) -> CorrelationEngine:
    return engine if engine is not None else CorrelationEngine.get_instance()


def add_market_relation(relation=None, engine: Optional[CorrelationEngine] = None, **fields) -> MarketRelation:
    return _resolve_engine(engine).add_relation(relation, **fields)


def are_markets_related(market_id_a: str, market_id_b: str, engine: Optional[CorrelationEngine] = None) -> bool:
    return _resolve_engine(engine).are_markets_related(market_id_a, market_id_b)


def auto_detect_market_relations(markets, min_shared_keywords: Optional[int] = None, engine: Optional[CorrelationEngine] = None) -> List[MarketRelation]:
    return _resolve_engine(engine).auto_detect_relations(markets, min_shared_keywords)


def analyze_cross_market_correlation(trades_a, trades_b, engine: Optional[CorrelationEngine] = None, **options) -> CorrelationAnalysisResult:
    return _resolve_engine(engine).analyze_correlation(trades_a, trades_b, **options)


def analyze_multiple_market_pairs(trades_by_market, engine: Optional[CorrelationEngine] = None, **options) -> BatchCorrelationResult:
    return _resolve_engine(engine).analyze_multiple_pairs(trades_by_market, **options)


def get_recent_correlations(limit: Optional[int] = 20, engine: Optional[CorrelationEngine] = None) -> List[Correlation]:
    return _resolve_engine(engine).get_recent_correlations(limit)


def get_market_correlations(market_id: str, limit: Optional[int] = 10, engine: Optional[CorrelationEngine] = None) -> List[Correlation]:
    return _resolve_engine(engine).get_market_correlations(market_id, limit)


def get_wallet_correlations(wallet_address: str, limit: Optional[int] = 10, engine: Optional[CorrelationEngine] = None) -> List[Correlation]:
    return _resolve_engine(engine).get_wallet_correlations(wallet_address, limit)


def get_correlation_summary(engine: Optional[CorrelationEngine] = None) -> Dict[str, Any]:
    return _resolve_engine(engine).get_summary()
