"""
Market Relation Graph
Undirected graph of declared relationships between markets
"""

import logging
import threading
from datetime import datetime, timezone
from typing import Dict, List, Optional, Any, Union

from common import MarketRelation, MarketRelationType, CorrelationEvent
from .utils import get_market_pair_key

logger = logging.getLogger(__name__)


class MarketRelationGraph:
    """Keyed store of market-to-market relations.

    Each unordered pair of market ids holds at most one relation. Lookups are
    order independent and report "not found" as None/False, never by raising.
    """

    def __init__(self, event_hub=None, lock: Optional[threading.RLock] = None):
        self.event_hub = event_hub
        self._lock = lock or threading.RLock()
        self._relations: Dict[str, MarketRelation] = {}

    def add_relation(self, relation: Union[MarketRelation, Dict[str, Any], None] = None, **fields) -> MarketRelation:
        """
        Add or overwrite the relation for a market pair.

        Args:
            relation: MarketRelation or dict of relation fields; keyword arguments are accepted instead

        Returns:
            Stored relation with a fresh created_at timestamp
        """
        stored = self._build_relation(relation, fields)
        key = get_market_pair_key(stored.market_id_a, stored.market_id_b)

        with self._lock:
            replaced = key in self._relations
            self._relations[key] = stored
            added = stored.copy()

        self._announce(added, replaced)
        return stored.copy()

    def add_relation_if_absent(
        self,
        relation: Union[MarketRelation, Dict[str, Any], None] = None,
        **fields
    ) -> Optional[MarketRelation]:
        """
        Add a relation only when the pair has none yet.

        Returns:
            Stored relation, or None if the pair was already related
        """
        stored = self._build_relation(relation, fields)
        key = get_market_pair_key(stored.market_id_a, stored.market_id_b)

        with self._lock:
            if key in self._relations:
                return None
            self._relations[key] = stored
            added = stored.copy()

        self._announce(added, replaced=False)
        return stored.copy()

    @staticmethod
    def _build_relation(relation, fields: Dict[str, Any]) -> MarketRelation:
        if isinstance(relation, MarketRelation):
            spec = relation.to_dict()
        else:
            spec = dict(relation or {})
        spec.update(fields)

        market_id_a = spec.get('market_id_a')
        market_id_b = spec.get('market_id_b')
        if not market_id_a or not market_id_b:
            raise ValueError("Relation requires market_id_a and market_id_b")

        relation_type = spec.get('relation_type', MarketRelationType.CUSTOM)
        if isinstance(relation_type, str):
            relation_type = MarketRelationType(relation_type.upper())

        shared_keywords = spec.get('shared_keywords')
        return MarketRelation(
            market_id_a=market_id_a,
            market_id_b=market_id_b,
            relation_type=relation_type,
            strength=min(1.0, max(0.0, float(spec.get('strength', 1.0)))),
            shared_keywords=list(shared_keywords) if shared_keywords is not None else None,
            category=spec.get('category'),
            created_at=datetime.now(timezone.utc),
            notes=spec.get('notes')
        )

    def _announce(self, relation: MarketRelation, replaced: bool):
        """Log and emit outside the lock"""
        logger.debug(
            f"🔗 {'Updated' if replaced else 'Added'} {relation.relation_type} relation "
            f"{relation.market_id_a} <-> {relation.market_id_b} (strength {relation.strength:.2f})"
        )
        if self.event_hub is not None:
            self.event_hub.emit(CorrelationEvent.RELATION_ADDED, relation)

    def are_related(self, market_id_a: str, market_id_b: str) -> bool:
        with self._lock:
            return get_market_pair_key(market_id_a, market_id_b) in self._relations

    def get_relation(self, market_id_a: str, market_id_b: str) -> Optional[MarketRelation]:
        with self._lock:
            relation = self._relations.get(get_market_pair_key(market_id_a, market_id_b))
            return relation.copy() if relation else None

    def remove_relation(self, market_id_a: str, market_id_b: str) -> bool:
        """Remove a relation; True if one existed"""
        with self._lock:
            removed = self._relations.pop(get_market_pair_key(market_id_a, market_id_b), None)
        if removed:
            logger.debug(f"🔗 Removed relation {market_id_a} <-> {market_id_b}")
        return removed is not None

    def relations_for(self, market_id: str) -> List[MarketRelation]:
        """All relations touching a market"""
        with self._lock:
            return [
                relation.copy() for relation in self._relations.values()
                if market_id in (relation.market_id_a, relation.market_id_b)
            ]

    def all_relations(self) -> List[MarketRelation]:
        with self._lock:
            return [relation.copy() for relation in self._relations.values()]

    def clear(self):
        with self._lock:
            self._relations.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._relations)

    def __contains__(self, pair) -> bool:
        try:
            market_id_a, market_id_b = pair
        except (TypeError, ValueError):
            return False
        return self.are_related(market_id_a, market_id_b)
