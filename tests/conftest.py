"""Pytest configuration and fixtures for the terrain generator tests."""
import logging
import sys
from pathlib import Path

import numpy as np
import pytest

# Ensure the repository root is importable without installing the package.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from terrain_generator.generator import TerrainGenerator  # noqa: E402
from terrain_generator.params import TerrainParameters  # noqa: E402


@pytest.fixture
def quiet_logger():
    logger = logging.getLogger("terrain_generator.tests")
    logger.setLevel(logging.WARNING)
    return logger


@pytest.fixture
def default_params():
    return TerrainParameters()


@pytest.fixture
def standard_params():
    """The reference Standard continent used by the end-to-end checks."""
    return TerrainParameters(
        seed=8888, scale=1800.0, height_scale=900.0, octaves=8,
        persistence=0.45, lacunarity=2.0, water_level=0.2,
        topology="Standard", generation_type="Infinite",
    )


@pytest.fixture
def make_generator(quiet_logger):
    def _make(params=None, **overrides):
        params = params or TerrainParameters()
        if overrides:
            params = params.with_overrides(**overrides)
        return TerrainGenerator(params, quiet_logger)
    return _make


@pytest.fixture
def sample_grid():
    """A small, irregular patch of world coordinates."""
    axis = np.linspace(-1500.0, 1500.0, 9) + 3.7
    return np.meshgrid(axis, axis * 0.8 - 11.3)
