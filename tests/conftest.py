"""
Pytest configuration and shared fixtures for the ExoMiner demo tests.
"""

import pytest
import numpy as np
from pathlib import Path
import sys

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

from exominer_demo.data.types import GeneratorConfig
from exominer_demo.generation.generator import SyntheticDetectionGenerator


@pytest.fixture
def fast_config():
    """Generator configuration without the simulated inference delay."""
    return GeneratorConfig(latency_seconds=0.0)


@pytest.fixture
def rng():
    """Seeded random source."""
    return np.random.default_rng(42)


@pytest.fixture
def generator(fast_config, rng):
    """Seeded generator with zero latency."""
    return SyntheticDetectionGenerator(fast_config, rng=rng)


@pytest.fixture
def sample_records(generator):
    """One record of each classification."""
    return {
        'exoplanet': generator.build_record('12345679', 1, {'status': 'exoplanet'}),
        'candidate': generator.build_record('25155310', 2, {'status': 'candidate'}),
        'false-positive': generator.build_record('TIC 307210830', 3, {'status': 'false-positive'}),
    }


@pytest.fixture
def legacy_payload():
    """Record serialized in the legacy revision (Spanish labels, foldedPhase)."""
    return {
        'ticId': 'TIC 12345679',
        'sector': 4,
        'probability': 0.995,
        'period': 5.2,
        'transitDepth': 1.1,
        'radius': 8.4,
        'magnitude': 11.3,
        'ra': 120.5,
        'dec': -33.2,
        'status': 'exoplanet',
        'planetType': 'Gigante Gaseoso',
        'stellarParameters': {'teff': 5778, 'logg': 4.44, 'feh': 0.0, 'radius': 1.0, 'mass': 1.0},
        'gaiaRuwe': 1.05,
        'spocDvr': {'dvr': 0.93, 'dvrUncertainty': 0.02, 'dvrFlag': 'PASS'},
        'tce': {'period': 5.2, 'duration': 0.25, 'depth': 0.012},
        'lightCurve': [{'time': i, 'flux': 100.0} for i in range(10)],
        'foldedPhase': [{'phase': i / 5 - 1, 'flux': 1.0} for i in range(10)],
        'features': [
            {'name': 'Duration', 'importance': 0.3},
            {'name': 'Transit Depth', 'importance': 0.4},
        ],
        'analyzedAt': '2025-10-05T12:00:00.000Z'
    }


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )


def pytest_collection_modifyitems(config, items):
    """Modify test collection to add markers automatically."""
    for item in items:
        if "test_integration" in item.nodeid or "test_api" in item.nodeid:
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)


@pytest.fixture(autouse=True)
def set_random_seeds():
    """Set random seeds for reproducible tests."""
    np.random.seed(42)
