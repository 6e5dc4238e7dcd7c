"""
Unit tests for configuration settings
"""
import json
import logging

import pytest

from common import VolumeGateMode
from config.settings import CorrelationThresholds, Settings, load_config
from tests.test_utils import create_test_config


class TestCorrelationThresholds:
    """Tests for threshold validation"""

    def test_defaults(self):
        thresholds = CorrelationThresholds()

        assert thresholds.min_overlapping_wallets == 2
        assert thresholds.min_trade_pairs == 3
        assert thresholds.min_volume_usd == 5000
        assert thresholds.min_correlation_score == 50
        assert thresholds.simultaneous_window_ms == 300000
        assert thresholds.severity_thresholds.medium == 50
        assert thresholds.severity_thresholds.high == 70
        assert thresholds.severity_thresholds.critical == 85
        assert thresholds.volume_gate_mode == VolumeGateMode.COMBINED
        assert thresholds.score_weights.total == pytest.approx(1.0)

    def test_inverted_severity_ladder_rejected(self):
        with pytest.raises(ValueError, match="severity"):
            CorrelationThresholds(severity_thresholds={'medium': 80, 'high': 70, 'critical': 90})

    def test_negative_weight_rejected(self):
        with pytest.raises(ValueError):
            CorrelationThresholds(score_weights={'volume': -0.1})

    def test_windows_must_be_ordered(self):
        with pytest.raises(ValueError):
            CorrelationThresholds(simultaneous_window_ms=600000, sequential_window_ms=300000)

    def test_from_dict_ignores_unknown_keys(self):
        thresholds = CorrelationThresholds.from_dict({'min_trade_pairs': 5, 'bogus': 1})
        assert thresholds.min_trade_pairs == 5

    def test_merged_is_nested_and_non_destructive(self):
        base = CorrelationThresholds()

        merged = base.merged({'severity_thresholds': {'critical': 95}, 'volume_gate_mode': 'each_side'})

        assert merged.severity_thresholds.critical == 95
        assert merged.severity_thresholds.high == 70
        assert merged.volume_gate_mode == VolumeGateMode.EACH_SIDE
        assert base.severity_thresholds.critical == 85


class TestSettings:
    """Tests for the settings manager"""

    def test_defaults_from_empty_config(self):
        settings = Settings({})

        assert settings.engine.enable_events is True
        assert settings.engine.alert_cooldown_ms == 300000
        assert settings.engine.max_recent_correlations == 100
        assert settings.engine.analysis_window_ms == 3600000
        assert settings.auto_detect.min_shared_keywords == 2

    def test_config_values(self):
        config = create_test_config()
        config['engine']['alert_cooldown_ms'] = 1000
        config['detection']['correlation_thresholds']['min_trade_pairs'] = 7

        settings = Settings(config)

        assert settings.engine.alert_cooldown_ms == 1000
        assert settings.thresholds.min_trade_pairs == 7

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv('CORRELATION_ALERT_COOLDOWN_MS', '60000')
        monkeypatch.setenv('CORRELATION_ANALYSIS_WINDOW_MS', '7200000')
        monkeypatch.setenv('CORRELATION_ENABLE_EVENTS', 'false')
        monkeypatch.setenv('CORRELATION_MAX_RECENT', '10')

        settings = Settings(create_test_config())

        assert settings.engine.alert_cooldown_ms == 60000
        assert settings.engine.analysis_window_ms == 7200000
        assert settings.engine.enable_events is False
        assert settings.engine.max_recent_correlations == 10

    def test_invalid_environment_value(self, monkeypatch):
        monkeypatch.setenv('CORRELATION_MAX_RECENT', 'many')
        with pytest.raises(ValueError):
            Settings({})

    def test_invalid_config_raises(self):
        with pytest.raises(ValueError):
            Settings({'engine': {'max_recent_correlations': 0}})

    def test_config_summary(self):
        summary = Settings({}).get_config_summary()

        assert set(summary) == {'engine', 'thresholds', 'auto_detect'}
        assert summary['thresholds']['volume_gate_mode'] == 'COMBINED'

    def test_log_settings(self, caplog):
        with caplog.at_level(logging.INFO, logger='config.settings'):
            Settings(create_test_config()).log_settings()

        assert '2 wallets, 3 pairs' in caplog.text
        assert 'cooldown 300000ms' in caplog.text


class TestLoadConfig:
    """Tests for JSON config loading"""

    def test_load_config(self, tmp_path):
        path = tmp_path / 'config.json'
        path.write_text(json.dumps(create_test_config()))

        assert load_config(str(path))['engine']['alert_cooldown_ms'] == 300000

    def test_missing_file(self, tmp_path):
        with pytest.raises(RuntimeError):
            load_config(str(tmp_path / 'missing.json'))

    def test_invalid_json(self, tmp_path):
        path = tmp_path / 'config.json'
        path.write_text('{not json')

        with pytest.raises(RuntimeError):
            load_config(str(path))
