# terrain_generator/tectonics.py

"""
================================================================================
TECTONIC FAULT CHAINS
================================================================================
This module generates mountain chains that follow warped fault lines. It is an
abstraction of plate-boundary uplift: a ridged fractal traced along a domain
warped coordinate gives long, meandering chains of sharp peaks.

Shared by the Alpine topology (as the whole landform) and the Standard
topology (blended in where a chain mask allows it).

Data Contract:
---------------
- Inputs:
    - x, z: NumPy arrays (or scalars) of already globally-warped coordinates.
    - params: A TerrainParameters instance.
- Outputs:
    - chain_height (np.ndarray): The age-shaped chain height, in [0, 1].
    - activity (np.ndarray): The raw ridged intensity before age shaping, in
      [0, 1]. It is comparable across calls and drives debug views and blends.
- Side Effects: None.
================================================================================
"""
import numpy as np

from . import config as DEFAULTS
from . import noise


def get_fault_coordinates(x, z, params) -> tuple[np.ndarray, np.ndarray]:
    """Bends the query coordinate along two decorrelated low-octave fields."""
    scale = params.scale
    warp_scale = scale * DEFAULTS.TECTONIC_WARP_SCALE_FACTOR
    offset = DEFAULTS.TECTONIC_WARP_Z_OFFSET

    warp_x = noise.fbm(
        x, z,
        seed=params.seed + DEFAULTS.TECTONIC_WARP_X_SEED_SALT,
        scale=warp_scale, octaves=2,
        persistence=params.persistence, lacunarity=params.lacunarity
    )
    warp_z = noise.fbm(
        np.asarray(x) + offset, np.asarray(z) + offset,
        seed=params.seed + DEFAULTS.TECTONIC_WARP_Z_SEED_SALT,
        scale=warp_scale, octaves=2,
        persistence=params.persistence, lacunarity=params.lacunarity
    )

    displacement = scale * DEFAULTS.TECTONIC_CHAIN_SCALE_FACTOR
    return x + warp_x * displacement, z + warp_z * displacement


def age_shape(chain: np.ndarray, age: float) -> np.ndarray:
    """Young terrain sharpens the peaks; older terrain rounds them off."""
    if age < 0.3:
        return np.power(chain, DEFAULTS.YOUNG_CHAIN_EXPONENT)
    return np.power(chain, DEFAULTS.OLD_CHAIN_EXPONENT)


def get_tectonic_chains(x, z, params) -> tuple[np.ndarray, np.ndarray]:
    """
    Evaluates the fault-chain field.

    Returns (chain_height, activity); activity is always the ridged value
    before the age power curve.
    """
    fault_x, fault_z = get_fault_coordinates(x, z, params)

    # 1 - |noise| gives a sharp ridge along each fault line.
    raw_chain = noise.ridged_fbm(
        fault_x, fault_z,
        seed=params.seed,
        scale=params.scale * DEFAULTS.TECTONIC_CHAIN_SCALE_FACTOR,
        octaves=DEFAULTS.TECTONIC_CHAIN_OCTAVES,
        persistence=params.persistence, lacunarity=params.lacunarity
    )
    return age_shape(raw_chain, params.terrain_age), raw_chain
