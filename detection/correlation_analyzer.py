"""
Cross-Market Correlation Detection Module
Identifies wallets trading two related markets in a coordinated way
"""

import math
import time
import logging
import threading
from typing import Any, Callable, Dict, Iterable, List, Optional

import numpy as np
import pandas as pd

from common import (
    Correlation,
    CorrelationAnalysisResult,
    CorrelationSeverity,
    CorrelationTrade,
    CorrelationType,
    FlagReasonThresholds,
    MarketRelation,
    MarketRelationType,
    TradePair,
    VolumeGateMode,
    CorrelationConstants
)
from config.settings import CorrelationThresholds, ScoreWeights, SeverityThresholds
from .base_detector import DetectorBase
from .utils import (
    ThresholdValidator,
    TradeNormalizer,
    generate_correlation_id,
    ms_to_datetime,
    now_ms
)

logger = logging.getLogger(__name__)

PAIR_COLUMNS = ['wallet', 'pos', 'side', 'size_usd', 'timestamp']


def calculate_correlation_score(
    wallet_count: int,
    union_wallet_count: int,
    pair_count: int,
    total_trades: int,
    volume_usd: float,
    simultaneous_ratio: float,
    avg_time_between_ms: float,
    direction_alignment: float,
    thresholds: CorrelationThresholds
) -> float:
    """
    Calculate the composite correlation score (0-100).

    Factors (each 0-1, non-decreasing in its input):
    - Wallet overlap: overlapping wallet count and overlap / union ratio
    - Trade pairs: pair count and pair density (pairs / total trades)
    - Volume: log-scaled so single whale trades do not dominate
    - Timing: share of simultaneous pairs and average gap tightness
    - Direction alignment: share of pairs in the dominant direction

    Args:
        wallet_count: Wallets present in both markets
        union_wallet_count: Wallets present in either market
        pair_count: Qualifying trade pairs
        total_trades: Trades in both markets inside the analysis window
        volume_usd: Overlapping-wallet volume across both markets
        simultaneous_ratio: Share of pairs inside the simultaneous window
        avg_time_between_ms: Average gap between paired trades
        direction_alignment: Share of pairs in the dominant direction
        thresholds: Weights and saturation points

    Returns:
        Score rounded to one decimal, clamped to 0-100
    """
    weights: ScoreWeights = thresholds.score_weights

    wallet_factor = (
        0.5 * min(1.0, max(0, wallet_count - 1) / CorrelationConstants.WALLET_COUNT_SATURATION) +
        0.5 * min(1.0, wallet_count / max(union_wallet_count, 1))
    )

    pair_factor = (
        0.5 * min(1.0, max(0, pair_count - 2) / CorrelationConstants.TRADE_PAIR_SATURATION) +
        0.5 * min(1.0, pair_count / max(total_trades, 1))
    )

    volume_factor = min(
        1.0,
        math.log10(1 + max(volume_usd, 0.0)) / math.log10(1 + thresholds.volume_saturation_usd)
    )

    timing_factor = (
        0.5 * min(1.0, max(0.0, simultaneous_ratio)) +
        0.5 * max(0.0, 1 - avg_time_between_ms / thresholds.sequential_window_ms)
    )

    direction_factor = min(1.0, max(0.0, direction_alignment))

    weighted = (
        wallet_factor * weights.wallet_overlap +
        pair_factor * weights.trade_pairs +
        volume_factor * weights.volume +
        timing_factor * weights.timing +
        direction_factor * weights.direction_alignment
    )
    score = 100 * weighted / weights.total

    return round(min(100.0, max(0.0, score)), 1)


def determine_correlation_type(pairs: pd.DataFrame, thresholds: CorrelationThresholds) -> CorrelationType:
    """Classify a correlation from directional agreement and timing of its trade pairs"""
    if pairs.empty:
        return CorrelationType.MIXED

    majority = thresholds.direction_majority_ratio
    same_ratio = float(pairs['same_direction'].mean())

    if ThresholdValidator.meets_threshold(same_ratio, majority):
        if ThresholdValidator.meets_threshold(float(pairs['simultaneous'].mean()), 0.5):
            return CorrelationType.SIMULTANEOUS

        # Sequential pairs that keep one market ahead of the other
        sequential = pairs[~pairs['simultaneous']]
        a_first_ratio = float(sequential['a_first'].mean())
        if ThresholdValidator.meets_threshold(max(a_first_ratio, 1 - a_first_ratio), majority):
            return CorrelationType.SEQUENTIAL

        return CorrelationType.POSITIVE

    if ThresholdValidator.meets_threshold(1 - same_ratio, majority):
        return CorrelationType.NEGATIVE

    return CorrelationType.MIXED


def determine_severity(score: float, severity_thresholds: SeverityThresholds) -> CorrelationSeverity:
    """Map a correlation score onto the severity ladder"""
    if score >= severity_thresholds.critical:
        return CorrelationSeverity.CRITICAL
    if score >= severity_thresholds.high:
        return CorrelationSeverity.HIGH
    if score >= severity_thresholds.medium:
        return CorrelationSeverity.MEDIUM
    return CorrelationSeverity.LOW


def calculate_pearson_coefficient(values_a: Iterable[float], values_b: Iterable[float]) -> float:
    """Pearson coefficient of paired trade sizes, 0 when undefined"""
    a = np.asarray(list(values_a), dtype=float)
    b = np.asarray(list(values_b), dtype=float)
    if len(a) != len(b) or len(a) < 2:
        return 0.0
    if np.std(a) == 0 or np.std(b) == 0:
        return 0.0

    coefficient = float(np.corrcoef(a, b)[0, 1])
    return coefficient if math.isfinite(coefficient) else 0.0


def generate_flag_reasons(correlation: Correlation, relation: Optional[MarketRelation] = None) -> List[str]:
    """Human readable justifications, wallet overlap first"""
    reasons = [
        f"{correlation.wallet_count} overlapping wallets traded both markets "
        f"with {correlation.trade_pair_count} correlated trade pairs"
    ]

    if correlation.avg_time_between_trades_ms < FlagReasonThresholds.CLOSE_TIMING_MS:
        reasons.append(
            f"Very close timing: avg {round(correlation.avg_time_between_trades_ms / 1000)}s between paired trades"
        )
    elif correlation.simultaneous_pair_count > 0:
        reasons.append(
            f"{correlation.simultaneous_pair_count} of {correlation.trade_pair_count} "
            f"trade pairs inside the simultaneous window"
        )

    if correlation.total_volume > FlagReasonThresholds.LARGE_VOLUME_USD:
        reasons.append(f"Large total volume: ${correlation.total_volume:,.0f}")

    if abs(correlation.pearson_coefficient) > FlagReasonThresholds.STRONG_PEARSON:
        direction = "positive" if correlation.pearson_coefficient > 0 else "negative"
        reasons.append(f"Strong {direction} size correlation (r={correlation.pearson_coefficient:.2f})")

    if relation is not None:
        relation_reason = (
            f"Markets linked by {MarketRelationType.get_label(relation.relation_type)} relation "
            f"(strength {relation.strength:.2f})"
        )
        if relation.category:
            relation_reason += f" in category {relation.category}"
        if relation.shared_keywords:
            relation_reason += f", shared keywords: {', '.join(relation.shared_keywords)}"
        reasons.append(relation_reason)

    reasons.append(CorrelationType.get_description(correlation.correlation_type))
    return reasons


class CorrelationAnalyzer(DetectorBase):
    """Scores wallet overlap between two markets' trades and records qualifying findings"""

    def __init__(
        self,
        relation_graph=None,
        ledger=None,
        settings_or_config=None,
        clock: Optional[Callable[[], int]] = None,
        lock: Optional[threading.RLock] = None
    ):
        self.relation_graph = relation_graph
        self.ledger = ledger
        self.clock = clock or now_ms
        self._lock = lock or threading.RLock()

        # Timing statistics
        self.analysis_count = 0
        self.total_analysis_time_ms = 0.0

        super().__init__(settings_or_config, 'correlation')

    def _load_detector_config(self):
        """Load correlation thresholds and analysis window from settings"""
        self.thresholds = self.settings.thresholds
        self.analysis_window_ms = self.settings.engine.analysis_window_ms

    def analyze_correlation(
        self,
        trades_a: Optional[Iterable[Any]],
        trades_b: Optional[Iterable[Any]],
        bypass_cooldown: bool = False,
        time_window_ms: Optional[int] = None,
        thresholds: Optional[Dict[str, Any]] = None,
        market_id_a: Optional[str] = None,
        market_id_b: Optional[str] = None
    ) -> CorrelationAnalysisResult:
        """
        Analyze two markets' trades for cross-market correlation.

        Args:
            trades_a: Trades in market A (CorrelationTrade objects or dicts)
            trades_b: Trades in market B
            bypass_cooldown: Record even if the pair is cooling down
            time_window_ms: Override of the analysis window
            thresholds: Partial threshold overrides for this call
            market_id_a: Market A id (default: first trade's market id)
            market_id_b: Market B id (default: first trade's market id)

        Returns:
            CorrelationAnalysisResult; has_correlation is False for every non-finding
        """
        started = time.perf_counter()
        try:
            return self._analyze(
                trades_a, trades_b, bypass_cooldown, time_window_ms, thresholds, market_id_a, market_id_b
            )
        finally:
            elapsed_ms = (time.perf_counter() - started) * 1000
            with self._lock:
                self.analysis_count += 1
                self.total_analysis_time_ms += elapsed_ms

    def _analyze(self, trades_a, trades_b, bypass_cooldown, time_window_ms, thresholds, market_id_a, market_id_b):
        now = self.clock()
        effective = self.thresholds.merged(thresholds) if thresholds else self.thresholds
        window_ms = time_window_ms if time_window_ms is not None else self.analysis_window_ms

        normalized_a = TradeNormalizer.normalize_trades(trades_a, default_market_id=market_id_a)
        normalized_b = TradeNormalizer.normalize_trades(trades_b, default_market_id=market_id_b)
        market_id_a = market_id_a or (normalized_a[0].market_id if normalized_a else '')
        market_id_b = market_id_b or (normalized_b[0].market_id if normalized_b else '')

        # Only trades inside the analysis window contribute
        cutoff = now - window_ms
        window_a = [t for t in normalized_a if t.timestamp >= cutoff]
        window_b = [t for t in normalized_b if t.timestamp >= cutoff]

        def no_correlation(reason: str, overlapping: Optional[List[str]] = None) -> CorrelationAnalysisResult:
            logger.debug(f"No correlation {market_id_a} <-> {market_id_b}: {reason}")
            return CorrelationAnalysisResult(
                market_id_a=market_id_a,
                market_id_b=market_id_b,
                has_correlation=False,
                overlapping_wallets=overlapping or [],
                correlation=None,
                total_trades_a=len(window_a),
                total_trades_b=len(window_b),
                analyzed_at=ms_to_datetime(now),
                reason=reason
            )

        if not window_a or not window_b:
            return no_correlation("No trades inside the analysis window")

        wallets_a = {t.wallet_address for t in window_a}
        wallets_b = {t.wallet_address for t in window_b}
        overlap = wallets_a & wallets_b
        if not overlap:
            return no_correlation("No overlapping wallets")

        overlapping_wallets = sorted(overlap)
        if len(overlapping_wallets) < effective.min_overlapping_wallets:
            return no_correlation(
                f"Only {len(overlapping_wallets)} overlapping wallets (need {effective.min_overlapping_wallets})",
                overlapping_wallets
            )

        overlap_trades_a = [t for t in window_a if t.wallet_address in overlap]
        overlap_trades_b = [t for t in window_b if t.wallet_address in overlap]
        pairs = self._build_trade_pairs(overlap_trades_a, overlap_trades_b, effective)

        if pairs.empty:
            return no_correlation("No trade pairs within the sequential window", overlapping_wallets)

        if len(pairs) < effective.min_trade_pairs:
            return no_correlation(
                f"Only {len(pairs)} trade pairs (need {effective.min_trade_pairs})",
                overlapping_wallets
            )

        volume_a = float(sum(t.size_usd for t in overlap_trades_a))
        volume_b = float(sum(t.size_usd for t in overlap_trades_b))
        if effective.volume_gate_mode == VolumeGateMode.EACH_SIDE:
            gated_volume = min(volume_a, volume_b)
        else:
            gated_volume = volume_a + volume_b
        if not ThresholdValidator.meets_threshold(gated_volume, effective.min_volume_usd):
            return no_correlation(
                f"Volume ${gated_volume:,.0f} below ${effective.min_volume_usd:,.0f} ({effective.volume_gate_mode})",
                overlapping_wallets
            )

        pair_count = len(pairs)
        simultaneous_count = int(pairs['simultaneous'].sum())
        same_direction_count = int(pairs['same_direction'].sum())
        avg_time_between = float(pairs['time_diff'].mean())

        correlation_score = calculate_correlation_score(
            wallet_count=len(overlapping_wallets),
            union_wallet_count=len(wallets_a | wallets_b),
            pair_count=pair_count,
            total_trades=len(window_a) + len(window_b),
            volume_usd=volume_a + volume_b,
            simultaneous_ratio=simultaneous_count / pair_count,
            avg_time_between_ms=avg_time_between,
            direction_alignment=max(same_direction_count, pair_count - same_direction_count) / pair_count,
            thresholds=effective
        )

        if not ThresholdValidator.meets_threshold(correlation_score, effective.min_correlation_score):
            return no_correlation(
                f"Score {correlation_score} below {effective.min_correlation_score}",
                overlapping_wallets
            )

        relation = self.relation_graph.get_relation(market_id_a, market_id_b) if self.relation_graph is not None else None
        trade_pairs = self._to_trade_pairs(pairs, overlap_trades_a, overlap_trades_b)
        pair_timestamps = pd.concat([pairs['timestamp_a'], pairs['timestamp_b']])

        correlation = Correlation(
            correlation_id=generate_correlation_id(),
            market_id_a=market_id_a,
            market_id_b=market_id_b,
            wallet_addresses=overlapping_wallets,
            wallet_count=len(overlapping_wallets),
            trade_pair_count=pair_count,
            volume_market_a=volume_a,
            volume_market_b=volume_b,
            correlation_score=correlation_score,
            correlation_type=determine_correlation_type(pairs, effective),
            severity=determine_severity(correlation_score, effective.severity_thresholds),
            flag_reasons=[],
            detected_at=ms_to_datetime(now),
            relation_type=relation.relation_type if relation else None,
            trade_pairs=trade_pairs,
            simultaneous_pair_count=simultaneous_count,
            trades_in_market_a=len(window_a),
            trades_in_market_b=len(window_b),
            pearson_coefficient=calculate_pearson_coefficient(pairs['size_usd_a'], pairs['size_usd_b']),
            avg_time_between_trades_ms=avg_time_between,
            analysis_window_ms=window_ms,
            start_time=ms_to_datetime(int(pair_timestamps.min())),
            end_time=ms_to_datetime(int(pair_timestamps.max()))
        )
        correlation.flag_reasons = generate_flag_reasons(correlation, relation)

        recorded = False
        if self.ledger is not None:
            recorded = self.ledger.record(correlation, bypass_cooldown=bypass_cooldown, now=now)

        return CorrelationAnalysisResult(
            market_id_a=market_id_a,
            market_id_b=market_id_b,
            has_correlation=True,
            overlapping_wallets=overlapping_wallets,
            correlation=correlation,
            total_trades_a=len(window_a),
            total_trades_b=len(window_b),
            analyzed_at=ms_to_datetime(now),
            recorded=recorded,
            reason="" if recorded or self.ledger is None else "Suppressed by alert cooldown"
        )

    @staticmethod
    def _to_frame(trades: List[CorrelationTrade]) -> pd.DataFrame:
        return pd.DataFrame(
            [
                {
                    'wallet': t.wallet_address,
                    'pos': pos,
                    'side': t.side,
                    'size_usd': t.size_usd,
                    'timestamp': t.timestamp
                }
                for pos, t in enumerate(trades)
            ],
            columns=PAIR_COLUMNS
        )

    def _build_trade_pairs(
        self,
        trades_a: List[CorrelationTrade],
        trades_b: List[CorrelationTrade],
        thresholds: CorrelationThresholds
    ) -> pd.DataFrame:
        """Match every A trade with every B trade of the same wallet inside the sequential window"""
        df_a = self._to_frame(trades_a)
        df_b = self._to_frame(trades_b)

        pairs = df_a.merge(df_b, on='wallet', suffixes=('_a', '_b'))
        pairs['time_diff'] = (pairs['timestamp_a'] - pairs['timestamp_b']).abs()
        pairs = pairs.loc[pairs['time_diff'] <= thresholds.sequential_window_ms].copy()

        pairs['same_direction'] = pairs['side_a'] == pairs['side_b']
        pairs['simultaneous'] = pairs['time_diff'] <= thresholds.simultaneous_window_ms
        pairs['a_first'] = pairs['timestamp_a'] <= pairs['timestamp_b']

        larger = pairs[['size_usd_a', 'size_usd_b']].max(axis=1)
        smaller = pairs[['size_usd_a', 'size_usd_b']].min(axis=1)
        pairs['volume_ratio'] = smaller.div(larger.where(larger > 0)).fillna(1.0)

        return pairs.reset_index(drop=True)

    @staticmethod
    def _to_trade_pairs(
        pairs: pd.DataFrame,
        trades_a: List[CorrelationTrade],
        trades_b: List[CorrelationTrade]
    ) -> List[TradePair]:
        return [
            TradePair(
                trade_a=trades_a[int(row.pos_a)],
                trade_b=trades_b[int(row.pos_b)],
                time_difference_ms=int(row.time_diff),
                same_direction=bool(row.same_direction),
                volume_ratio=float(row.volume_ratio),
                simultaneous=bool(row.simultaneous)
            )
            for row in pairs.itertuples(index=False)
        ]
