"""
Mock data generators for testing cross-market correlation detection.
"""
import random
from typing import List, Dict, Any, Optional, Tuple
import numpy as np

# Fixed reference time (epoch ms) used as "now" by tests
NOW_MS = 1_700_000_000_000
MINUTE_MS = 60_000


class MockDataGenerator:
    """Generates reproducible trade batches for the correlation analyzer."""

    def __init__(self, seed: int = 42, reference_ms: int = NOW_MS):
        """Initialize generator with random seed for reproducible tests."""
        random.seed(seed)
        np.random.seed(seed)
        self.reference_ms = reference_ms
        self._trade_counter = 0

    def generate_wallet_address(self, prefix: str = "0x") -> str:
        """Generate a mock wallet address."""
        return prefix + ''.join(random.choices('0123456789abcdef', k=40))

    def generate_wallets(self, count: int) -> List[str]:
        return [self.generate_wallet_address() for _ in range(count)]

    def generate_trade_id(self) -> str:
        """Generate a unique mock trade ID."""
        self._trade_counter += 1
        return f"trade_{self._trade_counter:07d}"

    def generate_trade(
        self,
        market_id: str,
        wallet_address: str,
        side: str = "BUY",
        size_usd: float = 2000.0,
        timestamp: Optional[int] = None,
        minutes_ago: float = 10
    ) -> Dict[str, Any]:
        """Generate a single trade dict; timestamp defaults to minutes_ago before the reference time."""
        if timestamp is None:
            timestamp = int(self.reference_ms - minutes_ago * MINUTE_MS)

        return {
            "trade_id": self.generate_trade_id(),
            "market_id": market_id,
            "wallet_address": wallet_address,
            "side": side,
            "size_usd": size_usd,
            "timestamp": timestamp
        }

    def generate_correlated_trades(
        self,
        market_id_a: str,
        market_id_b: str,
        wallets: Optional[List[str]] = None,
        wallet_count: int = 3,
        trades_per_wallet: int = 2,
        size_usd: float = 2000.0,
        side_a: str = "BUY",
        side_b: str = "BUY",
        gap_ms: int = 30_000,
        spacing_ms: int = 2 * MINUTE_MS,
        start_minutes_ago: float = 20,
        b_first: bool = False
    ) -> Tuple[List[Dict[str, Any]], List[Dict[str, Any]]]:
        """
        Generate trades where the same wallets trade both markets.

        Each wallet places trades_per_wallet trades in market A spaced by
        spacing_ms, each mirrored in market B gap_ms later (earlier if b_first).
        Time differences between a wallet's paired trades are identical across
        wallets.
        """
        if wallets is None:
            wallets = self.generate_wallets(wallet_count)

        start = int(self.reference_ms - start_minutes_ago * MINUTE_MS)
        trades_a, trades_b = [], []

        for w, wallet in enumerate(wallets):
            for k in range(trades_per_wallet):
                timestamp_a = start + k * spacing_ms + w * 1000
                timestamp_b = timestamp_a - gap_ms if b_first else timestamp_a + gap_ms
                trades_a.append(self.generate_trade(market_id_a, wallet, side_a, size_usd, timestamp=timestamp_a))
                trades_b.append(self.generate_trade(market_id_b, wallet, side_b, size_usd, timestamp=timestamp_b))

        return trades_a, trades_b

    def generate_noise_trades(
        self,
        market_id: str,
        count: int = 20,
        time_span_minutes: float = 50
    ) -> List[Dict[str, Any]]:
        """Trades from fresh random wallets that overlap with nothing."""
        trades = []
        for _ in range(count):
            trades.append(self.generate_trade(
                market_id,
                self.generate_wallet_address(),
                side=random.choice(["BUY", "SELL"]),
                size_usd=round(random.uniform(10, 1000), 2),
                minutes_ago=random.uniform(1, time_span_minutes)
            ))
        return sorted(trades, key=lambda t: t["timestamp"])

    def generate_market_catalog(self) -> List[Dict[str, Any]]:
        """Small catalog of market questions with known keyword overlap."""
        return [
            {"market_id": "btc-100k", "question": "Will Bitcoin reach $100k by end of 2024?", "category": "crypto"},
            {"market_id": "btc-150k", "question": "Will Bitcoin reach $150k before March?", "category": "crypto"},
            {"market_id": "lakers-title", "question": "Will the Lakers win the NBA championship?", "category": "sports"},
            {"market_id": "eth-10k", "question": "Will Ethereum reach $10k?", "category": "crypto"},
        ]


def create_correlated_batch(generator: MockDataGenerator, market_ids: List[str], **kwargs) -> Dict[str, List[Dict[str, Any]]]:
    """Trades for several markets traded by one shared group of wallets."""
    wallets = generator.generate_wallets(kwargs.pop("wallet_count", 3))
    batch = {}
    for market_id in market_ids:
        trades_a, _ = generator.generate_correlated_trades(market_id, market_id, wallets=wallets, **kwargs)
        batch[market_id] = trades_a
    return batch
