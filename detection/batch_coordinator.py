"""
Batch Coordinator
Fans a multi-market trade batch out into pairwise correlation analyses
"""

import time
import logging
from typing import Any, Dict, Iterable, Mapping

from common import BatchCorrelationResult, CorrelationSeverity, CorrelationType
from .correlation_analyzer import CorrelationAnalyzer
from .relation_graph import MarketRelationGraph
from .utils import get_market_pair_key

logger = logging.getLogger(__name__)


class BatchCoordinator:
    """Runs the analyzer over every market pair of a batch.

    When the relation graph holds any relation, only related pairs are
    analyzed; with an empty graph every pair is analyzed.
    """

    def __init__(self, analyzer: CorrelationAnalyzer, relation_graph: MarketRelationGraph):
        self.analyzer = analyzer
        self.relation_graph = relation_graph
        self.last_processing_time_ms = 0.0
        self.total_pairs_analyzed = 0

    def analyze_multiple_pairs(
        self,
        trades_by_market: Mapping[str, Iterable[Any]],
        **analysis_options
    ) -> BatchCorrelationResult:
        """
        Analyze all (related) market pairs of a batch

        Args:
            trades_by_market: Market id -> trades in that market
            **analysis_options: Passed through to CorrelationAnalyzer.analyze_correlation

        Returns:
            BatchCorrelationResult with per-pair results and aggregate counts
        """
        started = time.perf_counter()
        results = {}
        correlations = []
        by_severity = {severity: 0 for severity in CorrelationSeverity}
        by_correlation_type = {correlation_type: 0 for correlation_type in CorrelationType}

        market_ids = list((trades_by_market or {}).keys())
        restrict_to_related = len(self.relation_graph) > 0
        skipped = 0

        for i in range(len(market_ids)):
            for j in range(i + 1, len(market_ids)):
                market_id_a = market_ids[i]
                market_id_b = market_ids[j]

                # Skip unrelated markets if we have relations defined
                if restrict_to_related and not self.relation_graph.are_related(market_id_a, market_id_b):
                    skipped += 1
                    continue

                result = self.analyzer.analyze_correlation(
                    trades_by_market.get(market_id_a) or [],
                    trades_by_market.get(market_id_b) or [],
                    market_id_a=market_id_a,
                    market_id_b=market_id_b,
                    **analysis_options
                )
                results[get_market_pair_key(market_id_a, market_id_b)] = result

                if result.has_correlation and result.correlation is not None:
                    correlations.append(result.correlation)
                    by_severity[result.correlation.severity] += 1
                    by_correlation_type[result.correlation.correlation_type] += 1

        processing_time_ms = (time.perf_counter() - started) * 1000
        self.last_processing_time_ms = processing_time_ms
        self.total_pairs_analyzed += len(results)

        logger.info(
            f"📊 Batch analyzed {len(results)} market pairs ({skipped} unrelated skipped), "
            f"{len(correlations)} correlations in {processing_time_ms:.1f}ms"
        )

        return BatchCorrelationResult(
            results=results,
            correlations=correlations,
            total_pairs_analyzed=len(results),
            total_correlations_found=len(correlations),
            by_severity=by_severity,
            by_correlation_type=by_correlation_type,
            processing_time_ms=processing_time_ms
        )
