"""
Pytest configuration and shared fixtures
"""

import pytest
import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from tests.fixtures.data_generators import MockDataGenerator, NOW_MS  # noqa: E402

# Test configuration
pytest_plugins = []

CORRELATION_ENV_VARS = (
    'CORRELATION_ALERT_COOLDOWN_MS',
    'CORRELATION_ANALYSIS_WINDOW_MS',
    'CORRELATION_ENABLE_EVENTS',
    'CORRELATION_MAX_RECENT',
)


def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line(
        "markers", "integration: mark test as integration test"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow (may take several seconds)"
    )


def pytest_collection_modifyitems(config, items):
    """Modify test collection to add markers automatically"""
    for item in items:
        # Add integration marker to integration tests
        if "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Ensure engine environment overrides from the host do not leak into tests"""
    for name in CORRELATION_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    yield


@pytest.fixture(autouse=True)
def reset_engine_instance():
    """Drop the process default engine between tests"""
    from correlation_engine import CorrelationEngine

    CorrelationEngine.reset_instance()
    yield
    CorrelationEngine.reset_instance()


@pytest.fixture(autouse=True)
def setup_test_logging():
    """Setup logging for tests"""
    import logging

    # Reduce log level for external libraries during tests
    logging.getLogger('urllib3').setLevel(logging.WARNING)


@pytest.fixture
def generator():
    """Seeded mock data generator anchored at NOW_MS"""
    return MockDataGenerator(seed=42)


@pytest.fixture
def fixed_clock():
    """Clock returning NOW_MS"""
    return lambda: NOW_MS
