"""
Auto Relation Detection Module
Proposes market relations from keyword overlap between market questions
"""

import re
import logging
from typing import Dict, List, Optional, Any, Set

from common import MarketRelation, MarketRelationType, AutoDetectConstants
from .base_detector import DetectorBase
from .relation_graph import MarketRelationGraph

logger = logging.getLogger(__name__)

TOKEN_PATTERN = re.compile(r'[a-z]+')


class AutoRelationDetector(DetectorBase):
    """Adds KEYWORD_OVERLAP relations for market pairs whose questions share keywords.

    Pairs that already have a relation of any type are skipped, so running the
    detector repeatedly over the same catalog never creates duplicate edges.
    Comparison is quadratic in the number of markets; run it periodically,
    not per trade.
    """

    def __init__(self, relation_graph: MarketRelationGraph, settings_or_config=None):
        self.relation_graph = relation_graph
        super().__init__(settings_or_config, 'relation')

    def _load_detector_config(self):
        auto_detect = self.settings.auto_detect
        self.min_shared_keywords = auto_detect.min_shared_keywords
        self.min_token_length = auto_detect.min_token_length
        self.stop_words = AutoDetectConstants.STOP_WORDS | {w.lower() for w in auto_detect.extra_stop_words}

    def extract_keywords(self, question: str) -> Set[str]:
        """Lowercase alphabetic tokens minus stop words and short tokens"""
        if not isinstance(question, str):
            return set()
        return {
            token for token in TOKEN_PATTERN.findall(question.lower())
            if len(token) >= self.min_token_length and token not in self.stop_words
        }

    def auto_detect_relations(
        self,
        markets: List[Dict[str, Any]],
        min_shared_keywords: Optional[int] = None
    ) -> List[MarketRelation]:
        """
        Detect and add keyword overlap relations

        Args:
            markets: Dicts with market_id (or marketId), question and optional category
            min_shared_keywords: Minimum shared keywords for a relation (default from settings)

        Returns:
            Relations created by this call
        """
        threshold = self.min_shared_keywords if min_shared_keywords is None else min_shared_keywords
        if threshold < 1:
            raise ValueError(f"min_shared_keywords must be at least 1 (got {threshold})")

        catalog = []
        for market in markets or []:
            market_id = market.get('market_id', market.get('marketId'))
            question = market.get('question')
            if not market_id or not isinstance(question, str):
                logger.debug(f"Skipping market without id or question: {market}")
                continue
            catalog.append((market_id, self.extract_keywords(question), market.get('category')))

        new_relations = []
        for i in range(len(catalog)):
            market_id_a, keywords_a, category_a = catalog[i]
            for j in range(i + 1, len(catalog)):
                market_id_b, keywords_b, category_b = catalog[j]

                if market_id_a == market_id_b:
                    continue

                # Skip if already related
                if self.relation_graph.are_related(market_id_a, market_id_b):
                    continue

                shared = keywords_a & keywords_b
                if len(shared) < threshold:
                    continue

                strength = len(shared) / max(min(len(keywords_a), len(keywords_b)), 1)
                relation = self.relation_graph.add_relation_if_absent(
                    market_id_a=market_id_a,
                    market_id_b=market_id_b,
                    relation_type=MarketRelationType.KEYWORD_OVERLAP,
                    strength=min(1.0, strength),
                    shared_keywords=sorted(shared),
                    category=category_a if category_a and category_a == category_b else None
                )
                if relation is not None:
                    new_relations.append(relation)

        if new_relations:
            logger.info(f"🔗 Auto-detected {len(new_relations)} keyword relations across {len(catalog)} markets")
        return new_relations
