"""
Detection Module
Contains the cross-market correlation detection algorithms
"""

from .relation_graph import MarketRelationGraph
from .auto_relation_detector import AutoRelationDetector
from .correlation_analyzer import CorrelationAnalyzer
from .batch_coordinator import BatchCoordinator

__all__ = [
    'MarketRelationGraph',
    'AutoRelationDetector',
    'CorrelationAnalyzer',
    'BatchCoordinator'
]
