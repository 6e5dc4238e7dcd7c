"""
Persistence layer for correlation findings.

Provides the bounded in-memory ledger that owns recorded correlations,
their cooldown state and triage status.
"""

from .correlation_ledger import CorrelationLedger

__all__ = [
    "CorrelationLedger",
]
