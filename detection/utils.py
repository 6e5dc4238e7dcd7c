"""
Utility functions for detection modules.
Provides common functionality to avoid code duplication.
"""

import math
import numbers
import uuid
import pandas as pd
from typing import Dict, Any, Optional, List, Iterable, Union
from datetime import datetime, timezone
import logging

from common import CorrelationTrade

logger = logging.getLogger(__name__)

PAIR_KEY_SEPARATOR = "::"
VALID_SIDES = ('BUY', 'SELL')


def now_ms() -> int:
    """Current UTC time as epoch milliseconds"""
    return int(datetime.now(timezone.utc).timestamp() * 1000)


def ms_to_datetime(timestamp_ms: float) -> datetime:
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc)


def get_market_pair_key(market_id_a: str, market_id_b: str) -> str:
    """Order-independent key for a market pair"""
    first, second = sorted((market_id_a, market_id_b))
    return f"{first}{PAIR_KEY_SEPARATOR}{second}"


def generate_correlation_id() -> str:
    return f"corr_{now_ms()}_{uuid.uuid4().hex[:8]}"


def _first_present(trade: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        value = trade.get(key)
        if value is not None:
            return value
    return None


class TradeNormalizer:
    """Handles normalization of trade data from different sources."""

    @staticmethod
    def normalize_timestamp(timestamp: Any) -> Optional[int]:
        """
        Normalize timestamp to epoch milliseconds.

        Numbers are taken as epoch milliseconds. Strings and datetimes are
        parsed with pandas and treated as UTC when naive.

        Returns:
            Epoch milliseconds, or None if invalid
        """
        if timestamp is None or isinstance(timestamp, bool):
            return None

        try:
            if isinstance(timestamp, numbers.Real):
                if not math.isfinite(timestamp):
                    return None
                return int(timestamp)

            if isinstance(timestamp, str) and timestamp.strip().lstrip('-').isdigit():
                return int(timestamp.strip())

            parsed = pd.to_datetime(timestamp, utc=True)
            if pd.isna(parsed):
                return None
            return int(parsed.value // 1_000_000)
        except (ValueError, TypeError, OverflowError):
            logger.debug(f"Failed to normalize timestamp: {timestamp}")
            return None

    @staticmethod
    def normalize_size(trade: Dict[str, Any]) -> Optional[float]:
        """
        Extract USD size from trade data.

        Returns:
            Size as a finite non-negative float, or None if invalid
        """
        size_value = _first_present(trade, 'size_usd', 'sizeUsd', 'size', 'amount')
        try:
            size = float(size_value)
        except (ValueError, TypeError):
            return None
        if not math.isfinite(size) or size < 0:
            return None
        return size

    @staticmethod
    def normalize_side(trade: Dict[str, Any]) -> Optional[str]:
        """
        Extract trading side.

        Returns:
            'BUY' or 'SELL', or None if the side is missing or unknown
        """
        side_value = _first_present(trade, 'side', 'type')
        if isinstance(side_value, str) and side_value.strip().upper() in VALID_SIDES:
            return side_value.strip().upper()
        return None

    @staticmethod
    def normalize_wallet(trade: Dict[str, Any]) -> Optional[str]:
        """
        Extract wallet address, lowercased for case-insensitive matching.
        """
        wallet = _first_present(trade, 'wallet_address', 'walletAddress', 'maker', 'trader', 'user')
        if not isinstance(wallet, str) or not wallet.strip():
            return None
        return wallet.strip().lower()

    @classmethod
    def normalize_trade(
        cls,
        trade: Union[CorrelationTrade, Dict[str, Any]],
        default_market_id: Optional[str] = None
    ) -> Optional[CorrelationTrade]:
        """
        Normalize a trade record into a canonical CorrelationTrade copy.

        Args:
            trade: CorrelationTrade or raw trade dictionary (snake_case or camelCase keys)
            default_market_id: Market id to use when the record carries none

        Returns:
            New CorrelationTrade with a lowercased wallet, or None if invalid
        """
        if isinstance(trade, CorrelationTrade):
            trade = trade.to_dict()
        if not isinstance(trade, dict):
            return None

        wallet = cls.normalize_wallet(trade)
        side = cls.normalize_side(trade)
        size = cls.normalize_size(trade)
        timestamp = cls.normalize_timestamp(_first_present(trade, 'timestamp', 'createdAt', 'created_at'))
        market_id = _first_present(trade, 'market_id', 'marketId', 'market') or default_market_id

        if wallet is None or side is None or size is None or timestamp is None or not market_id:
            logger.debug(f"Dropping malformed trade: {trade}")
            return None

        trade_id = _first_present(trade, 'trade_id', 'tradeId', 'id')
        return CorrelationTrade(
            trade_id=str(trade_id) if trade_id is not None else f"{market_id}:{wallet}:{timestamp}",
            market_id=str(market_id),
            wallet_address=wallet,
            side=side,
            size_usd=size,
            timestamp=timestamp,
            category=trade.get('category'),
            market_question=_first_present(trade, 'market_question', 'marketQuestion')
        )

    @classmethod
    def normalize_trades(
        cls,
        trades: Optional[Iterable[Any]],
        default_market_id: Optional[str] = None
    ) -> List[CorrelationTrade]:
        """
        Normalize a list of trades, filtering out invalid ones.
        """
        if not trades:
            return []

        normalized = []
        try:
            for trade in trades:
                normalized_trade = cls.normalize_trade(trade, default_market_id=default_market_id)
                if normalized_trade is not None:
                    normalized.append(normalized_trade)
        except TypeError:
            logger.debug(f"Trade input is not iterable: {type(trades).__name__}")
            return []
        return normalized


class ThresholdValidator:
    """Handles threshold validation and comparison with floating point tolerance."""

    FLOAT_TOLERANCE = 1e-6

    @classmethod
    def meets_threshold(cls, value: float, threshold: float, inclusive: bool = True) -> bool:
        """
        Check if value meets threshold with floating point tolerance.

        Args:
            value: Value to check
            threshold: Threshold to compare against
            inclusive: Whether to include exact threshold value

        Returns:
            True if value meets threshold
        """
        if inclusive:
            return value >= (threshold - cls.FLOAT_TOLERANCE)
        else:
            return value > (threshold + cls.FLOAT_TOLERANCE)
