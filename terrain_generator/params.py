# terrain_generator/params.py

"""
================================================================================
TERRAIN PARAMETERS
================================================================================
The immutable configuration record consumed by every stage of the pipeline.

Data Contract:
---------------
- Inputs:
    - config (dict): User-defined parameters (snake_case keys) which override
      the internal defaults in `config.py`.
- Outputs:
    - A frozen TerrainParameters instance.
- Side Effects: Logs a warning for configuration keys it does not recognise.
- Invariants: Enumerated choices (topology, generation type, view mode) are
  parsed strictly; an unknown variant raises ValueError instead of silently
  falling back to a default. Biome toggles must be JSON booleans. No range
  validation is performed.
================================================================================
"""

import dataclasses
import logging
from dataclasses import dataclass
from enum import Enum

from . import config as DEFAULTS


class _StrictEnum(str, Enum):
    """A string enum whose parse() names the bad value when it fails."""

    @classmethod
    def parse(cls, value):
        if isinstance(value, cls):
            return value
        for member in cls:
            if member.value == value:
                return member
        choices = ", ".join(member.value for member in cls)
        raise ValueError(f"Unrecognized {cls.__name__} variant {value!r} (expected one of: {choices})")


class Topology(_StrictEnum):
    STANDARD = "Standard"
    ALPINE = "Alpine"
    CANYONS = "Canyons"
    DUNES = "Dunes"


class GenerationType(_StrictEnum):
    INFINITE = "Infinite"
    ISLAND = "Island"
    ARCHIPELAGO = "Archipelago"


class ViewMode(_StrictEnum):
    STANDARD = "Standard"
    HEIGHT = "Height"
    TECTONICS = "Tectonics"
    TEMPERATURE = "Temperature"
    HUMIDITY = "Humidity"


def _parse_toggle(name: str, value) -> bool:
    """Biome toggles must be real booleans; strings like "false" are rejected."""
    if isinstance(value, bool):
        return value
    raise ValueError(f"Terrain config key {name!r} must be true or false, got {value!r}")


@dataclass(frozen=True)
class TerrainParameters:
    """Every knob that shapes a generated world.

    All derived values are pure functions of (coordinate, parameters); the
    seed only ever enters the noise as a coordinate offset.
    """

    seed: int = DEFAULTS.DEFAULT_SEED
    scale: float = DEFAULTS.DEFAULT_SCALE
    height_scale: float = DEFAULTS.DEFAULT_HEIGHT_SCALE
    octaves: int = DEFAULTS.DEFAULT_OCTAVES
    persistence: float = DEFAULTS.DEFAULT_PERSISTENCE
    lacunarity: float = DEFAULTS.DEFAULT_LACUNARITY
    water_level: float = DEFAULTS.DEFAULT_WATER_LEVEL
    map_size: float = DEFAULTS.DEFAULT_MAP_SIZE
    resolution: int = DEFAULTS.DEFAULT_RESOLUTION
    topology: Topology = Topology(DEFAULTS.DEFAULT_TOPOLOGY)
    generation_type: GenerationType = GenerationType(DEFAULTS.DEFAULT_GENERATION_TYPE)

    terrain_age: float = DEFAULTS.DEFAULT_TERRAIN_AGE
    ridge_noise_strength: float = DEFAULTS.DEFAULT_RIDGE_NOISE_STRENGTH
    peak_roughness: float = DEFAULTS.DEFAULT_PEAK_ROUGHNESS
    terrace_steps: int = DEFAULTS.DEFAULT_TERRACE_STEPS
    detail_strand_frequency: float = DEFAULTS.DEFAULT_DETAIL_STRAND_FREQUENCY
    erosion_strength: float = DEFAULTS.DEFAULT_EROSION_STRENGTH
    river_depth: float = DEFAULTS.DEFAULT_RIVER_DEPTH
    exaggeration: float = DEFAULTS.DEFAULT_EXAGGERATION

    temperature_scale: float = DEFAULTS.DEFAULT_TEMPERATURE_SCALE
    temperature_offset: float = DEFAULTS.DEFAULT_TEMPERATURE_OFFSET
    temperature_lapse_rate: float = DEFAULTS.DEFAULT_TEMPERATURE_LAPSE_RATE
    humidity_scale: float = DEFAULTS.DEFAULT_HUMIDITY_SCALE
    humidity_offset: float = DEFAULTS.DEFAULT_HUMIDITY_OFFSET

    enable_snow: bool = True
    enable_desert: bool = True
    enable_forest: bool = True
    enable_rock: bool = True
    enable_water: bool = True
    enable_mesa: bool = True
    enable_volcano: bool = True
    enable_coral: bool = True

    view_mode: ViewMode = ViewMode(DEFAULTS.DEFAULT_VIEW_MODE)
    time_of_day: float = DEFAULTS.DEFAULT_TIME_OF_DAY

    def __post_init__(self):
        # Frozen dataclasses need object.__setattr__ to normalise fields.
        object.__setattr__(self, "topology", Topology.parse(self.topology))
        object.__setattr__(self, "generation_type", GenerationType.parse(self.generation_type))
        object.__setattr__(self, "view_mode", ViewMode.parse(self.view_mode))

    @property
    def water_height(self) -> float:
        """Absolute water surface height in world units."""
        return self.water_level * self.height_scale

    @classmethod
    def from_config(cls, config: dict, logger: logging.Logger = None) -> "TerrainParameters":
        """Builds parameters from a user config dict, falling back to defaults."""
        logger = logger or logging.getLogger(__name__)
        known = {f.name for f in dataclasses.fields(cls)}
        unknown = sorted(set(config) - known)
        if unknown:
            logger.warning(f"Ignoring unrecognised terrain config keys: {', '.join(unknown)}")

        toggles = {
            name: _parse_toggle(name, config.get(name, default))
            for name, default in DEFAULTS.DEFAULT_BIOME_TOGGLES.items()
        }
        return cls(
            seed=int(config.get('seed', DEFAULTS.DEFAULT_SEED)),
            scale=float(config.get('scale', DEFAULTS.DEFAULT_SCALE)),
            height_scale=float(config.get('height_scale', DEFAULTS.DEFAULT_HEIGHT_SCALE)),
            octaves=int(config.get('octaves', DEFAULTS.DEFAULT_OCTAVES)),
            persistence=float(config.get('persistence', DEFAULTS.DEFAULT_PERSISTENCE)),
            lacunarity=float(config.get('lacunarity', DEFAULTS.DEFAULT_LACUNARITY)),
            water_level=float(config.get('water_level', DEFAULTS.DEFAULT_WATER_LEVEL)),
            map_size=float(config.get('map_size', DEFAULTS.DEFAULT_MAP_SIZE)),
            resolution=int(config.get('resolution', DEFAULTS.DEFAULT_RESOLUTION)),
            topology=config.get('topology', DEFAULTS.DEFAULT_TOPOLOGY),
            generation_type=config.get('generation_type', DEFAULTS.DEFAULT_GENERATION_TYPE),
            terrain_age=float(config.get('terrain_age', DEFAULTS.DEFAULT_TERRAIN_AGE)),
            ridge_noise_strength=float(config.get('ridge_noise_strength', DEFAULTS.DEFAULT_RIDGE_NOISE_STRENGTH)),
            peak_roughness=float(config.get('peak_roughness', DEFAULTS.DEFAULT_PEAK_ROUGHNESS)),
            terrace_steps=int(config.get('terrace_steps', DEFAULTS.DEFAULT_TERRACE_STEPS)),
            detail_strand_frequency=float(config.get('detail_strand_frequency', DEFAULTS.DEFAULT_DETAIL_STRAND_FREQUENCY)),
            erosion_strength=float(config.get('erosion_strength', DEFAULTS.DEFAULT_EROSION_STRENGTH)),
            river_depth=float(config.get('river_depth', DEFAULTS.DEFAULT_RIVER_DEPTH)),
            exaggeration=float(config.get('exaggeration', DEFAULTS.DEFAULT_EXAGGERATION)),
            temperature_scale=float(config.get('temperature_scale', DEFAULTS.DEFAULT_TEMPERATURE_SCALE)),
            temperature_offset=float(config.get('temperature_offset', DEFAULTS.DEFAULT_TEMPERATURE_OFFSET)),
            temperature_lapse_rate=float(config.get('temperature_lapse_rate', DEFAULTS.DEFAULT_TEMPERATURE_LAPSE_RATE)),
            humidity_scale=float(config.get('humidity_scale', DEFAULTS.DEFAULT_HUMIDITY_SCALE)),
            humidity_offset=float(config.get('humidity_offset', DEFAULTS.DEFAULT_HUMIDITY_OFFSET)),
            view_mode=config.get('view_mode', DEFAULTS.DEFAULT_VIEW_MODE),
            time_of_day=float(config.get('time_of_day', DEFAULTS.DEFAULT_TIME_OF_DAY)),
            **toggles,
        )

    def to_config(self) -> dict:
        """Returns a JSON-serialisable dict that from_config() reads back."""
        data = dataclasses.asdict(self)
        for key in ("topology", "generation_type", "view_mode"):
            data[key] = data[key].value
        return data

    def with_overrides(self, **overrides) -> "TerrainParameters":
        return dataclasses.replace(self, **overrides)
