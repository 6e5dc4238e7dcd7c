"""
Unit tests for EventHub
"""
import logging

import pytest

from alerts.event_hub import EventHub
from common import CorrelationEvent


class TestEventHub:
    """Test suite for synchronous event delivery"""

    @pytest.fixture
    def hub(self):
        return EventHub()

    def test_handlers_run_in_subscription_order(self, hub):
        calls = []
        hub.subscribe(CorrelationEvent.CORRELATION_DETECTED, lambda p: calls.append(('first', p)))
        hub.subscribe(CorrelationEvent.CORRELATION_DETECTED, lambda p: calls.append(('second', p)))

        delivered = hub.emit(CorrelationEvent.CORRELATION_DETECTED, 'payload')

        assert delivered == 2
        assert calls == [('first', 'payload'), ('second', 'payload')]

    def test_failing_handler_is_isolated(self, hub, caplog):
        calls = []

        def broken(payload):
            raise RuntimeError("boom")

        hub.subscribe(CorrelationEvent.CRITICAL_CORRELATION, broken)
        hub.subscribe(CorrelationEvent.CRITICAL_CORRELATION, calls.append)

        with caplog.at_level(logging.ERROR, logger='alerts.event_hub'):
            delivered = hub.emit(CorrelationEvent.CRITICAL_CORRELATION, 'payload')

        assert delivered == 1
        assert calls == ['payload']
        assert 'boom' in caplog.text

    def test_event_names_accept_values_and_names(self, hub):
        calls = []
        hub.subscribe('relationAdded', calls.append)
        hub.subscribe('RELATION_ADDED', calls.append)

        hub.emit(CorrelationEvent.RELATION_ADDED, 1)

        assert calls == [1, 1]
        assert hub.listener_count('relationAdded') == 2

    def test_unknown_event_raises(self, hub):
        with pytest.raises(ValueError):
            hub.subscribe('somethingElse', print)

    def test_non_callable_handler_raises(self, hub):
        with pytest.raises(TypeError):
            hub.subscribe(CorrelationEvent.RELATION_ADDED, 'not callable')

    def test_unsubscribe(self, hub):
        calls = []
        hub.on(CorrelationEvent.RELATION_ADDED, calls.append)

        assert hub.unsubscribe(CorrelationEvent.RELATION_ADDED, calls.append)
        assert not hub.unsubscribe(CorrelationEvent.RELATION_ADDED, calls.append)
        assert hub.emit(CorrelationEvent.RELATION_ADDED, 1) == 0
        assert calls == []

    def test_disabled_hub_drops_events(self):
        hub = EventHub(enabled=False)
        calls = []
        hub.subscribe(CorrelationEvent.RELATION_ADDED, calls.append)

        assert hub.emit(CorrelationEvent.RELATION_ADDED, 1) == 0
        assert calls == []

    def test_remove_all_listeners(self, hub):
        hub.subscribe(CorrelationEvent.RELATION_ADDED, print)
        hub.subscribe(CorrelationEvent.CORRELATION_DETECTED, print)

        hub.remove_all_listeners()

        assert hub.listener_count(CorrelationEvent.RELATION_ADDED) == 0
        assert hub.listener_count(CorrelationEvent.CORRELATION_DETECTED) == 0

    def test_handler_receives_payload(self, hub, mocker):
        handler = mocker.Mock()
        hub.subscribe(CorrelationEvent.CORRELATION_DETECTED, handler)

        hub.emit(CorrelationEvent.CORRELATION_DETECTED, {'id': 'c1'})

        handler.assert_called_once_with({'id': 'c1'})
