# terrain_generator/generator.py

"""
================================================================================
CORE TERRAIN GENERATOR
================================================================================
This module contains the main TerrainGenerator class, responsible for the
height synthesis pipeline (domain warp, topology, exaggeration, world mask,
rivers, terracing, detail) and the climate model built on top of it.

Both consumers, the continuous mesh preview and the grid-sampled voxel batch
writer, call into this one class, so they agree on world shape by
construction.

Data Contract:
---------------
- Inputs (on initialization):
    - config (dict or TerrainParameters): Parameters which override the
      internal defaults. See `params.TerrainParameters.from_config`.
    - logger: A configured Python logging object for runtime messages.
- Outputs (from methods):
    - SampleResult / ClimateResult records of NumPy arrays shaped like the
      input coordinates. Heights are in world units (studs).
- Side Effects: Logs messages using the provided logger.
- Invariants: Given the same parameters and coordinates, the output is
  bit-identical. No state is mutated between calls.
================================================================================
"""

import logging
from dataclasses import dataclass

import numpy as np

from . import config as DEFAULTS
from . import noise
from . import tectonics
from .params import GenerationType, TerrainParameters, Topology


@dataclass(frozen=True)
class SampleResult:
    """Per-coordinate output of the height synthesis pipeline."""
    height: np.ndarray
    is_river: np.ndarray
    # Raw fault-chain intensity; used for debug views and as a blend driver.
    tectonic_activity: np.ndarray


@dataclass(frozen=True)
class ClimateResult:
    temperature: np.ndarray
    humidity: np.ndarray


# --- Shaping helpers ---

def lerp(a, b, t):
    "Linear interpolation."
    return a + (b - a) * t


def smoothstep(edge0, edge1, value):
    """Hermite step. Reversed edges give a falling curve."""
    x = np.clip((np.asarray(value, dtype=np.float64) - edge0) / (edge1 - edge0), 0.0, 1.0)
    return x * x * (3 - 2 * x)


def round_half_up(values):
    # np.round rounds half to even, which would split ties differently.
    return np.floor(values + 0.5)


def quantize(height01, steps):
    return round_half_up(height01 * steps) / steps


def terrace(height01, steps, blend=DEFAULTS.TERRACE_BLEND):
    """Pulls the height `blend` of the way toward the nearest of `steps` levels."""
    return lerp(height01, quantize(height01, steps), blend)


def apply_exaggeration(height01, exaggeration, age):
    """
    A continuous, monotonic curve anchored near zero that amplifies upper
    relief. Old terrain (age > 0.7) uses a gentler exponent.
    """
    ex = exaggeration * 0.7 if age > 0.7 else exaggeration
    anchor = DEFAULTS.EXAGGERATION_ANCHOR
    return np.power(np.maximum(0.0, height01 + anchor), ex) - anchor ** ex


class TerrainGenerator:
    """
    Generates heights, river flags, tectonic activity and climate for any
    world coordinates. This class is backend-only and does not handle any
    visualization.
    """
    def __init__(self, config, logger: logging.Logger):
        """
        Initializes the terrain generator.

        Args:
            config (dict | TerrainParameters): User-defined parameters.
            logger (logging.Logger): The logger instance for all output.
        """
        self.logger = logger
        if isinstance(config, TerrainParameters):
            self.params = config
        else:
            self.params = TerrainParameters.from_config(config, logger=logger)

        self.seed = self.params.seed
        self.water_height = self.params.water_height

        self.logger.info(f"TerrainGenerator initialized with seed: {self.seed}")
        self.logger.info(
            f"Topology: {self.params.topology.value}, generation type: "
            f"{self.params.generation_type.value}, map size: {self.params.map_size:g} studs, "
            f"water height: {self.water_height:.1f} studs"
        )

    # --- Height synthesis ---

    def _fbm(self, x, z, scale, octaves, seed=None):
        """Standard FBM with the terrain's own persistence and lacunarity."""
        return noise.fbm(
            x, z,
            seed=self.seed if seed is None else seed,
            scale=scale, octaves=octaves,
            persistence=self.params.persistence, lacunarity=self.params.lacunarity
        )

    def _domain_warp(self, x, z):
        """Shared soft warp; eroded, old terrain gets a more chaotic silhouette."""
        p = self.params
        warp_scale = p.scale * DEFAULTS.DOMAIN_WARP_SCALE_FACTOR
        warp_factor = p.erosion_strength * DEFAULTS.DOMAIN_WARP_STRENGTH * (1 + p.terrain_age * 0.5)
        offset_x, offset_z = DEFAULTS.DOMAIN_WARP_Z_OFFSET

        qx = self._fbm(x, z, warp_scale, 2)
        qz = self._fbm(x + offset_x, z + offset_z, warp_scale, 2)
        return x + qx * warp_factor, z + qz * warp_factor

    def _synthesize_topology(self, wx, wz):
        """Returns (height01, tectonic_activity) for the configured landform."""
        p = self.params
        age = p.terrain_age
        activity = np.zeros_like(wx)

        if p.topology is Topology.DUNES:
            height01 = noise.billow_fbm(
                wx, wz, seed=self.seed, scale=p.scale * 0.6, octaves=4,
                persistence=p.persistence, lacunarity=p.lacunarity
            )
            height01 = height01 * 0.3 + 0.1

        elif p.topology is Topology.ALPINE:
            height01, activity = tectonics.get_tectonic_chains(wx, wz, p)
            if age < 0.5:
                # Young ranges keep a rough surface texture on top.
                rough = self._fbm(wx, wz, p.scale * 0.1, 3)
                height01 = height01 + rough * 0.05 * (1 - age)
            else:
                height01 = height01 * 0.8

        elif p.topology is Topology.CANYONS:
            plateau = self._fbm(wx, wz, p.scale * 2.0, 3)
            valley = noise.ridged_fbm(
                wx, wz, seed=self.seed, scale=p.scale * 0.8, octaves=4,
                persistence=p.persistence, lacunarity=p.lacunarity
            )
            base = plateau * 0.2 + 0.6
            # Older canyons are wider.
            height01 = base - valley * (1.5 + age * 0.5) * p.erosion_strength
            height01 = quantize(height01, DEFAULTS.CANYON_STEPS)
            activity = valley

        elif p.topology is Topology.STANDARD:
            base_noise = self._fbm(wx, wz, p.scale * 2.5, 4)
            height01 = (base_noise + 1) / 2

            # Mountains only rise where a second, decorrelated mask is positive.
            chain_mask = self._fbm(wx / 2, wz / 2, p.scale * 2, 2, seed=self.seed + DEFAULTS.CHAIN_MASK_SEED_SALT)
            in_chain = chain_mask > 0
            if np.any(in_chain):
                chain_height, chain_activity = tectonics.get_tectonic_chains(wx[in_chain], wz[in_chain], p)
                blend = smoothstep(0.0, 0.4, chain_mask[in_chain])
                height01[in_chain] = lerp(height01[in_chain], chain_height, blend * p.ridge_noise_strength)
                activity[in_chain] = chain_activity * blend

        else:
            raise ValueError(f"Unrecognized Topology variant {p.topology!r}")

        return height01, activity

    def _apply_world_mask(self, height01, x, z):
        """Fades the heightfield to sea floor outside the island footprint."""
        p = self.params
        if p.generation_type is GenerationType.INFINITE:
            return height01

        distance = np.sqrt(x * x + z * z)
        normalized_dist = distance / (p.map_size * 0.5)
        floor = DEFAULTS.MASK_FLOOR_HEIGHT

        if p.generation_type is GenerationType.ISLAND:
            mask = smoothstep(0.95, 0.6, normalized_dist)
            return lerp(floor, height01, mask)

        if p.generation_type is GenerationType.ARCHIPELAGO:
            global_mask = smoothstep(1.0, 0.7, normalized_dist)
            cluster_noise = self._fbm(x, z, p.scale * 4, 2)
            cluster_mask = smoothstep(0.4, 0.55, (cluster_noise + 1) / 2)
            return lerp(floor, height01, global_mask * cluster_mask)

        raise ValueError(f"Unrecognized GenerationType variant {p.generation_type!r}")

    def _carve_rivers(self, height01, wx, wz):
        """Cuts a broad valley and a narrow channel along the zero set of a noise field."""
        p = self.params
        age = p.terrain_age
        river_scale = p.scale * DEFAULTS.RIVER_SCALE_FACTOR
        river_val = np.abs(noise.noise3(wx / river_scale, self.seed + DEFAULTS.RIVER_SEED_SALT, wz / river_scale))

        valley_width = 0.3 + age * 0.1
        channel_width = 0.08 + age * 0.05
        in_valley = river_val < valley_width

        valley_profile = 1.0 - smoothstep(0.0, valley_width, river_val)
        channel_profile = 1.0 - smoothstep(0.0, channel_width, river_val)
        dig = valley_profile * p.river_depth * 0.4 + channel_profile * p.river_depth * 0.1

        carved = np.where(in_valley, height01 - dig, height01)
        is_river = in_valley & (river_val < channel_width * 0.8)
        return carved, is_river

    def _add_detail(self, final_height, x, z):
        """Adds high-frequency strands to anything above the shoreline band."""
        p = self.params
        if p.terrain_age < 0.3:
            freq_mult, amp_mult = 2.0, 1.0
        else:
            freq_mult, amp_mult = 0.5, 0.3

        detail_scale = p.detail_strand_frequency * 0.05 * freq_mult
        detail = noise.noise3(x * detail_scale, self.seed, z * detail_scale)
        return np.where(
            final_height > DEFAULTS.DETAIL_MIN_HEIGHT,
            final_height + detail * DEFAULTS.DETAIL_AMPLITUDE * amp_mult,
            final_height
        )

    def get_terrain_data(self, x_coords, z_coords) -> SampleResult:
        """
        Runs the full height synthesis pipeline.

        Args:
            x_coords, z_coords: Scalars or same-shaped arrays of world coordinates.

        Returns:
            SampleResult with arrays of the input's shape.
        """
        x, z = np.broadcast_arrays(np.asarray(x_coords, dtype=np.float64), np.asarray(z_coords, dtype=np.float64))
        shape = x.shape
        x = x.ravel()
        z = z.ravel()
        p = self.params

        # 1. Soft global domain warp.
        wx, wz = self._domain_warp(x, z)

        # 2. Topology-specific landform.
        height01, activity = self._synthesize_topology(wx, wz)

        # 3. Exaggeration; canyons are already discretised.
        if p.topology is not Topology.CANYONS:
            height01 = apply_exaggeration(height01, p.exaggeration, p.terrain_age)

        # 4. World shape mask, measured on the unwarped coordinate.
        height01 = self._apply_world_mask(height01, x, z)

        # 5. Rivers.
        if p.river_depth > 0 and p.topology not in (Topology.DUNES, Topology.CANYONS):
            height01, is_river = self._carve_rivers(height01, wx, wz)
        else:
            is_river = np.zeros(x.shape, dtype=bool)

        # 6. Terracing.
        if p.terrace_steps > 0 and p.topology is not Topology.CANYONS:
            height01 = terrace(height01, p.terrace_steps)

        # 7. Final scaling and detail.
        final_height = height01 * p.height_scale
        if p.detail_strand_frequency > 0:
            final_height = self._add_detail(final_height, x, z)

        return SampleResult(
            height=final_height.reshape(shape),
            is_river=is_river.reshape(shape),
            tectonic_activity=activity.reshape(shape),
        )

    def get_height(self, x_coords, z_coords) -> np.ndarray:
        return self.get_terrain_data(x_coords, z_coords).height

    def get_slope(self, x_coords, z_coords, height=None) -> np.ndarray:
        """
        Local slope (rise over run) by forward differences at a one-unit
        offset along x and z. Used by the continuous-colour consumer.
        """
        x = np.asarray(x_coords, dtype=np.float64)
        z = np.asarray(z_coords, dtype=np.float64)
        if height is None:
            height = self.get_height(x, z)
        step = DEFAULTS.SLOPE_SAMPLE_DISTANCE
        slope_x = (self.get_height(x + step, z) - height) / step
        slope_z = (self.get_height(x, z + step) - height) / step
        return np.sqrt(slope_x ** 2 + slope_z ** 2)

    # --- Climate ---

    def _climate_noise(self, x, z, salt, scale):
        # Climate uses fixed fractal knobs so its frequency is independent of
        # the terrain's detail settings.
        raw = noise.fbm(
            x, z,
            seed=self.seed + salt, scale=scale,
            octaves=DEFAULTS.CLIMATE_OCTAVES,
            persistence=DEFAULTS.CLIMATE_PERSISTENCE,
            lacunarity=DEFAULTS.CLIMATE_LACUNARITY
        )
        return (raw + 1) / 2

    def get_temperature(self, x_coords, z_coords, height) -> np.ndarray:
        """Normalised temperature [0, 1], cooled by altitude via the lapse rate."""
        p = self.params
        base_temp = self._climate_noise(x_coords, z_coords, DEFAULTS.TEMPERATURE_SEED_SALT, p.temperature_scale)
        altitude_cooling = np.maximum(0.0, height) * p.temperature_lapse_rate
        return np.clip(base_temp + p.temperature_offset - altitude_cooling, 0.0, 1.0)

    def get_humidity(self, x_coords, z_coords, height) -> np.ndarray:
        """
        Normalised humidity [0, 1]. Altitude slightly raises humidity; this is
        a deliberate simplification rather than a physical model.
        """
        p = self.params
        base_humid = self._climate_noise(x_coords, z_coords, DEFAULTS.HUMIDITY_SEED_SALT, p.humidity_scale)
        altitude_wetness = np.maximum(0.0, height) * DEFAULTS.ALTITUDE_HUMIDITY_GAIN
        return np.clip(base_humid + p.humidity_offset + altitude_wetness, 0.0, 1.0)

    def get_climate(self, x_coords, z_coords, height) -> ClimateResult:
        return ClimateResult(
            temperature=self.get_temperature(x_coords, z_coords, height),
            humidity=self.get_humidity(x_coords, z_coords, height),
        )

    def get_coordinate_grid(self, resolution: int = None):
        """
        Generates the preview coordinate grid: (resolution + 1)^2 points
        spanning [-map_size / 2, map_size / 2] on both axes.
        This is the single authoritative method for preview coordinates.
        """
        resolution = self.params.resolution if resolution is None else resolution
        half = self.params.map_size / 2
        axis = np.linspace(-half, half, resolution + 1)
        return np.meshgrid(axis, axis)
