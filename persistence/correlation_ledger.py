"""
Correlation Ledger
Bounded in-memory history of correlation findings with cooldown suppression
and a triage status lifecycle.
"""

import logging
import threading
from collections import deque
from typing import Dict, List, Optional, Union

from common import (
    Correlation,
    CorrelationEvent,
    CorrelationSeverity,
    CorrelationStatus,
    CorrelationType,
    EngineConstants
)
from detection.utils import get_market_pair_key, now_ms

logger = logging.getLogger(__name__)


def _empty_severity_counts() -> Dict[CorrelationSeverity, int]:
    return {severity: 0 for severity in CorrelationSeverity}


def _empty_type_counts() -> Dict[CorrelationType, int]:
    return {correlation_type: 0 for correlation_type in CorrelationType}


class CorrelationLedger:
    """Owns the canonical copy of every recorded correlation.

    History is newest first and capped at max_recent_correlations; recording
    into a full ledger evicts the oldest entry. Query methods hand out copies.
    """

    def __init__(
        self,
        event_hub=None,
        alert_cooldown_ms: int = EngineConstants.DEFAULT_ALERT_COOLDOWN_MS,
        max_recent_correlations: int = EngineConstants.DEFAULT_MAX_RECENT_CORRELATIONS,
        lock: Optional[threading.RLock] = None
    ):
        self.event_hub = event_hub
        self.alert_cooldown_ms = alert_cooldown_ms
        self.max_recent_correlations = max_recent_correlations
        self._lock = lock or threading.RLock()

        self._history: deque = deque(maxlen=max_recent_correlations)
        self._last_alert_time: Dict[str, int] = {}

        # Lifetime counters, kept across eviction and clear_correlations()
        self.total_correlations_detected = 0
        self.correlations_by_severity = _empty_severity_counts()
        self.correlations_by_type = _empty_type_counts()

    def can_record(self, market_id_a: str, market_id_b: str, bypass_cooldown: bool = False, now: Optional[int] = None) -> bool:
        """Whether a finding for this pair is outside its cooldown"""
        if bypass_cooldown:
            return True

        now = now_ms() if now is None else now
        with self._lock:
            last_alert = self._last_alert_time.get(get_market_pair_key(market_id_a, market_id_b))
        if last_alert is None:
            return True
        return now - last_alert >= self.alert_cooldown_ms

    def record(self, correlation: Correlation, bypass_cooldown: bool = False, now: Optional[int] = None) -> bool:
        """
        Record a finding unless its market pair is cooling down.

        Events are emitted after the lock is released.

        Returns:
            True if the correlation was stored (and events emitted)
        """
        now = now_ms() if now is None else now

        with self._lock:
            if not self.can_record(correlation.market_id_a, correlation.market_id_b, bypass_cooldown, now):
                logger.debug(
                    f"Cooldown active for {correlation.market_id_a} <-> {correlation.market_id_b}, "
                    f"suppressing {correlation.correlation_id}"
                )
                return False

            stored = correlation.copy()
            self._history.appendleft(stored)

            self.total_correlations_detected += 1
            self.correlations_by_severity[stored.severity] += 1
            self.correlations_by_type[stored.correlation_type] += 1
            self._prune_cooldowns(now)
            self._last_alert_time[get_market_pair_key(stored.market_id_a, stored.market_id_b)] = now

            detected = stored.copy()
            critical = stored.copy() if stored.severity == CorrelationSeverity.CRITICAL else None

        self._log_correlation(detected)

        if self.event_hub is not None:
            self.event_hub.emit(CorrelationEvent.CORRELATION_DETECTED, detected)
            if critical is not None:
                self.event_hub.emit(CorrelationEvent.CRITICAL_CORRELATION, critical)

        return True

    def _prune_cooldowns(self, now: int):
        """Drop pair timestamps whose cooldown has already expired"""
        expired = [
            key for key, last_alert in self._last_alert_time.items()
            if now - last_alert >= self.alert_cooldown_ms
        ]
        for key in expired:
            del self._last_alert_time[key]

    def _log_correlation(self, correlation: Correlation):
        log_msg = (
            f"🚨 {correlation.severity} {correlation.correlation_type} correlation: "
            f"{correlation.market_id_a} <-> {correlation.market_id_b} "
            f"(score {correlation.correlation_score:.1f}, {correlation.wallet_count} wallets)"
        )
        if correlation.severity in (CorrelationSeverity.HIGH, CorrelationSeverity.CRITICAL):
            logger.warning(log_msg)
        else:
            logger.info(log_msg)

    # ------------------------------------------------------------------
    # Status lifecycle
    # ------------------------------------------------------------------

    def update_correlation_status(self, correlation_id: str, status: Union[CorrelationStatus, str]) -> bool:
        """Overwrite the status of a recorded correlation; False if id or status is unknown"""
        if not isinstance(status, CorrelationStatus):
            try:
                status = CorrelationStatus(str(status).upper())
            except ValueError:
                logger.debug(f"Unknown correlation status: {status}")
                return False

        with self._lock:
            for correlation in self._history:
                if correlation.correlation_id == correlation_id:
                    correlation.status = status
                    logger.debug(f"Correlation {correlation_id} marked {status}")
                    return True
        return False

    def flag_correlation(self, correlation_id: str) -> bool:
        return self.update_correlation_status(correlation_id, CorrelationStatus.FLAGGED)

    def dismiss_correlation(self, correlation_id: str) -> bool:
        return self.update_correlation_status(correlation_id, CorrelationStatus.DISMISSED)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def _snapshot(self) -> List[Correlation]:
        with self._lock:
            return list(self._history)

    def _select(self, predicate, limit: Optional[int]) -> List[Correlation]:
        matches = [c.copy() for c in self._snapshot() if predicate(c)]
        return matches if limit is None else matches[:max(limit, 0)]

    def get_correlation(self, correlation_id: str) -> Optional[Correlation]:
        for correlation in self._snapshot():
            if correlation.correlation_id == correlation_id:
                return correlation.copy()
        return None

    def get_recent_correlations(self, limit: Optional[int] = 20) -> List[Correlation]:
        return self._select(lambda c: True, limit)

    def get_market_correlations(self, market_id: str, limit: Optional[int] = 10) -> List[Correlation]:
        return self._select(lambda c: market_id in (c.market_id_a, c.market_id_b), limit)

    def get_wallet_correlations(self, wallet_address: str, limit: Optional[int] = 10) -> List[Correlation]:
        wallet = (wallet_address or '').lower()
        return self._select(lambda c: wallet in c.wallet_addresses, limit)

    def get_correlations_by_severity(self, severity: Union[CorrelationSeverity, str], limit: Optional[int] = 10) -> List[Correlation]:
        if not isinstance(severity, CorrelationSeverity):
            severity = CorrelationSeverity(str(severity).upper())
        return self._select(lambda c: c.severity == severity, limit)

    def get_correlations_by_type(self, correlation_type: Union[CorrelationType, str], limit: Optional[int] = 10) -> List[Correlation]:
        if not isinstance(correlation_type, CorrelationType):
            correlation_type = CorrelationType(str(correlation_type).upper())
        return self._select(lambda c: c.correlation_type == correlation_type, limit)

    def get_flagged_correlations(self, limit: Optional[int] = 20) -> List[Correlation]:
        return self._select(lambda c: c.status == CorrelationStatus.FLAGGED, limit)

    def count_by_status(self) -> Dict[CorrelationStatus, int]:
        counts = {status: 0 for status in CorrelationStatus}
        for correlation in self._snapshot():
            counts[correlation.status] += 1
        return counts

    def __len__(self) -> int:
        with self._lock:
            return len(self._history)

    # ------------------------------------------------------------------
    # Clearing
    # ------------------------------------------------------------------

    def clear_correlations(self):
        """Empty history and cooldown state"""
        with self._lock:
            self._history.clear()
            self._last_alert_time.clear()

    def reset_counters(self):
        with self._lock:
            self.total_correlations_detected = 0
            self.correlations_by_severity = _empty_severity_counts()
            self.correlations_by_type = _empty_type_counts()
