"""
Integration tests for the command line interface
"""
import json

import pytest
from click.testing import CliRunner

from cli.main import cli
from config.settings import Settings
from tests.fixtures.data_generators import MockDataGenerator, NOW_MS
from tests.test_utils import create_test_config


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def trades_file(tmp_path):
    generator = MockDataGenerator(seed=42)
    trades_a, trades_b = generator.generate_correlated_trades('A', 'B')
    path = tmp_path / 'trades.json'
    path.write_text(json.dumps({'A': trades_a, 'B': trades_b, 'C': generator.generate_noise_trades('C', count=5)}))
    return str(path)


@pytest.fixture
def markets_file(tmp_path):
    path = tmp_path / 'markets.json'
    path.write_text(json.dumps(MockDataGenerator(seed=42).generate_market_catalog()))
    return str(path)


class TestAnalyzeCommand:
    """Tests for correlation-engine analyze"""

    def test_analyze_finds_correlation(self, runner, trades_file):
        result = runner.invoke(cli, ['analyze', trades_file, '--as-of', str(NOW_MS)])

        assert result.exit_code == 0, result.output
        assert 'Cross-Market Correlations' in result.output
        assert 'Analyzed 3 market pair(s), found 1 correlation(s)' in result.output

    def test_analyze_defaults_to_latest_trade_time(self, runner, trades_file):
        result = runner.invoke(cli, ['analyze', trades_file])

        assert result.exit_code == 0, result.output
        assert 'found 1 correlation(s)' in result.output

    def test_analyze_with_relations_file(self, runner, trades_file, tmp_path):
        relations_path = tmp_path / 'relations.json'
        relations_path.write_text(json.dumps([
            {'market_id_a': 'A', 'market_id_b': 'C', 'relation_type': 'SAME_TOPIC', 'strength': 0.8}
        ]))

        result = runner.invoke(cli, ['analyze', trades_file, '--relations', str(relations_path)])

        assert result.exit_code == 0, result.output
        assert 'No correlations found across 1 market pair(s)' in result.output

    def test_analyze_prints_reasons(self, runner, trades_file):
        result = runner.invoke(cli, ['analyze', trades_file, '--reasons'])

        assert result.exit_code == 0, result.output
        assert 'overlapping' in result.output

    def test_analyze_invalid_json(self, runner, tmp_path):
        path = tmp_path / 'broken.json'
        path.write_text('{not json')

        result = runner.invoke(cli, ['analyze', str(path)])

        assert result.exit_code != 0
        assert 'Invalid JSON' in result.output

    def test_analyze_wrong_shape(self, runner, tmp_path):
        path = tmp_path / 'list.json'
        path.write_text('[]')

        result = runner.invoke(cli, ['analyze', str(path)])

        assert result.exit_code != 0
        assert 'must contain a JSON dict' in result.output

    def test_analyze_without_valid_trades(self, runner, tmp_path):
        path = tmp_path / 'empty.json'
        path.write_text(json.dumps({'A': [], 'B': [{'side': 'BUY'}]}))

        result = runner.invoke(cli, ['analyze', str(path)])

        assert result.exit_code == 0
        assert 'No valid trades' in result.output


class TestRelationCommands:
    """Tests for correlation-engine relations"""

    def test_detect(self, runner, markets_file):
        result = runner.invoke(cli, ['relations', 'detect', markets_file])

        assert result.exit_code == 0, result.output
        assert 'btc-100k' in result.output
        assert 'Detected 1 relation(s) among 4 market(s)' in result.output

    def test_detect_min_shared(self, runner, markets_file):
        result = runner.invoke(cli, ['relations', 'detect', markets_file, '--min-shared', '1'])

        assert result.exit_code == 0, result.output
        assert 'Detected 3 relation(s)' in result.output

    def test_detect_invalid_threshold(self, runner, markets_file):
        result = runner.invoke(cli, ['relations', 'detect', markets_file, '--min-shared', '0'])

        assert result.exit_code != 0
        assert 'min_shared_keywords' in result.output


class TestConfigCommands:
    """Tests for correlation-engine config"""

    def test_show_defaults(self, runner):
        result = runner.invoke(cli, ['config', 'show'])

        assert result.exit_code == 0, result.output
        assert 'alert_cooldown_ms' in result.output
        assert '300000' in result.output

    def test_show_with_config_file_and_env(self, runner, tmp_path, monkeypatch):
        config = create_test_config()
        config['detection']['correlation_thresholds']['min_trade_pairs'] = 7
        path = tmp_path / 'config.json'
        path.write_text(json.dumps(config))
        monkeypatch.setenv('CORRELATION_ALERT_COOLDOWN_MS', '12345')

        result = runner.invoke(cli, ['--config', str(path), 'config', 'show'])

        assert result.exit_code == 0, result.output
        assert '12345' in result.output

    def test_verbose_logs_settings(self, runner, mocker):
        spy = mocker.spy(Settings, 'log_settings')

        quiet = runner.invoke(cli, ['config', 'show'])
        assert quiet.exit_code == 0, quiet.output
        assert spy.call_count == 0

        verbose = runner.invoke(cli, ['--verbose', 'config', 'show'])
        assert verbose.exit_code == 0, verbose.output
        assert spy.call_count == 1

    def test_invalid_config_file(self, runner, tmp_path):
        path = tmp_path / 'config.json'
        path.write_text(json.dumps({'engine': {'max_recent_correlations': 0}}))

        result = runner.invoke(cli, ['--config', str(path), 'config', 'show'])

        assert result.exit_code != 0
        assert 'max_recent_correlations' in result.output
