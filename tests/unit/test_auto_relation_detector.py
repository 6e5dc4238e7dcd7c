"""
Unit tests for AutoRelationDetector
"""
import pytest

from alerts.event_hub import EventHub
from common import CorrelationEvent, MarketRelationType
from detection.auto_relation_detector import AutoRelationDetector
from detection.relation_graph import MarketRelationGraph
from tests.fixtures.data_generators import MockDataGenerator
from tests.test_utils import create_test_config


class TestAutoRelationDetector:
    """Test suite for keyword overlap relation detection"""

    @pytest.fixture
    def hub(self):
        return EventHub()

    @pytest.fixture
    def graph(self, hub):
        return MarketRelationGraph(event_hub=hub)

    @pytest.fixture
    def detector(self, graph):
        return AutoRelationDetector(graph, create_test_config())

    @pytest.fixture
    def markets(self):
        return MockDataGenerator(seed=42).generate_market_catalog()

    def test_extract_keywords_filters_stop_words_and_short_tokens(self, detector):
        keywords = detector.extract_keywords("The Fed will cut rates in March?")
        assert keywords == {'fed', 'cut', 'rates', 'march'}

    def test_extract_keywords_non_string(self, detector):
        assert detector.extract_keywords(None) == set()

    def test_detects_keyword_overlap(self, detector, graph, markets):
        relations = detector.auto_detect_relations(markets)

        assert len(relations) == 1
        relation = relations[0]
        assert {relation.market_id_a, relation.market_id_b} == {'btc-100k', 'btc-150k'}
        assert relation.relation_type == MarketRelationType.KEYWORD_OVERLAP
        assert relation.shared_keywords == ['bitcoin', 'reach']
        assert relation.strength == pytest.approx(1.0)
        assert relation.category == 'crypto'
        assert graph.are_related('btc-150k', 'btc-100k')

    def test_rerun_creates_nothing(self, detector, markets):
        first = detector.auto_detect_relations(markets)
        second = detector.auto_detect_relations(markets)

        assert len(first) == 1
        assert second == []

    def test_lower_threshold_finds_more_relations(self, detector, graph, markets):
        relations = detector.auto_detect_relations(markets, min_shared_keywords=1)

        pairs = {frozenset((r.market_id_a, r.market_id_b)) for r in relations}
        assert pairs == {
            frozenset(('btc-100k', 'btc-150k')),
            frozenset(('btc-100k', 'eth-10k')),
            frozenset(('btc-150k', 'eth-10k')),
        }
        assert not graph.are_related('btc-100k', 'lakers-title')

    def test_strength_uses_smaller_keyword_set(self, detector):
        relations = detector.auto_detect_relations([
            {'market_id': 'a', 'question': 'Bitcoin price rally continues'},
            {'market_id': 'b', 'question': 'Bitcoin price crash imminent tomorrow'},
        ], min_shared_keywords=2)

        # {bitcoin, price, rally, continues} vs {bitcoin, price, crash, imminent, tomorrow}
        assert relations[0].strength == pytest.approx(2 / 4)

    def test_existing_relation_is_not_replaced(self, detector, graph, markets):
        graph.add_relation(
            market_id_a='btc-100k', market_id_b='btc-150k',
            relation_type=MarketRelationType.OPPOSING, strength=0.4
        )

        relations = detector.auto_detect_relations(markets)

        assert relations == []
        assert graph.get_relation('btc-100k', 'btc-150k').relation_type == MarketRelationType.OPPOSING

    def test_category_only_when_shared(self, detector):
        relations = detector.auto_detect_relations([
            {'market_id': 'a', 'question': 'Bitcoin reach record', 'category': 'crypto'},
            {'market_id': 'b', 'question': 'Bitcoin reach record', 'category': 'finance'},
        ])
        assert relations[0].category is None

    def test_skips_markets_without_id_or_question(self, detector):
        relations = detector.auto_detect_relations([
            {'market_id': 'a', 'question': 'Bitcoin reach record'},
            {'question': 'Bitcoin reach record'},
            {'market_id': 'c'},
            {'marketId': 'd', 'question': 'Bitcoin reach record'},
        ])

        assert len(relations) == 1
        assert {relations[0].market_id_a, relations[0].market_id_b} == {'a', 'd'}

    def test_invalid_threshold_raises(self, detector, markets):
        with pytest.raises(ValueError):
            detector.auto_detect_relations(markets, min_shared_keywords=0)

    def test_relation_added_events(self, detector, hub, markets):
        received = []
        hub.subscribe(CorrelationEvent.RELATION_ADDED, received.append)

        detector.auto_detect_relations(markets, min_shared_keywords=1)

        assert len(received) == 3

    def test_empty_input(self, detector):
        assert detector.auto_detect_relations([]) == []
        assert detector.auto_detect_relations(None) == []
