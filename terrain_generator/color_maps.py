# terrain_generator/color_maps.py

"""
================================================================================
SHARED COLOR MAPPING UTILITIES
================================================================================
This module contains the color constants and functions for converting biome
IDs and raw terrain data (height, tectonic activity, temperature, humidity)
into RGB color arrays for the mesh preview.

It is designed to be a pure, stateless utility. Colors are float RGB in
[0, 1], one triple per sample, shaped (..., 3) like the input arrays.
Nothing here feeds back into the discrete biome classification.
================================================================================
"""
import colorsys

import numpy as np

from . import biomes
from . import config as DEFAULTS
from . import noise
from .generator import smoothstep

# --- Default Color Mappings ---
COLOR_MAP_TERRAIN = {
    "beach": (214, 203, 165),
    "sand": (230, 217, 179),
    "mesa_orange": (214, 127, 69),
    "mesa_red": (163, 74, 38),
    "mesa_brown": (117, 66, 40),
    "grass_dry": (141, 168, 96),
    "savannah": (186, 181, 72),
    "grass_lush": (76, 140, 62),
    "forest": (45, 94, 46),
    "taiga": (59, 77, 59),
    "jungle": (26, 51, 10),
    "swamp": (74, 84, 56),
    "rock": (90, 87, 82),
    "rock_dark": (62, 59, 56),
    "rock_light": (117, 112, 104),
    "mud": (92, 79, 61),
    "snow": (255, 255, 255),
    "ice": (170, 221, 255),
    "volcanic": (26, 26, 26),
    "lava": (255, 68, 0),
    "coral_bright": (224, 108, 117),
    "coral_green": (152, 195, 121),
}

# Tectonic activity heat map, from passive to colliding.
COLOR_MAP_TECTONICS = [
    (0.2, (17, 17, 17)),
    (0.5, (85, 0, 0)),
    (0.8, (255, 0, 0)),
    (np.inf, (255, 255, 0)),
]

# Hue ranges for the HSL debug ramps.
TEMPERATURE_HUE_RANGE = (0.7, 0.0)  # Blue (cold) to red (hot)
HUMIDITY_HUE_RANGE = (0.16, 0.6)  # Yellow (dry) to blue (wet)
CORAL_SAND_BLEND = 0.3
TUNDRA_ROCK_BLEND = 0.5
ROCK_DARKEN_BLEND = 0.2


def _rgb(name) -> np.ndarray:
    return np.array(COLOR_MAP_TERRAIN[name], dtype=np.float64) / 255.0


def _lerp_rgb(a, b, t) -> np.ndarray:
    return a + (b - a) * t


# --- Color Lookup Table (LUT) Generation ---
def create_biome_color_lut() -> np.ndarray:
    """Creates a LUT where the index is the Biome ID and the value is the RGB color."""
    palette = {
        biomes.BIOME_ID_RIVERBED: _rgb("mud"),
        biomes.BIOME_ID_CORAL_BRIGHT: _lerp_rgb(_rgb("coral_bright"), _rgb("sand"), CORAL_SAND_BLEND),
        biomes.BIOME_ID_CORAL_GREEN: _lerp_rgb(_rgb("coral_green"), _rgb("sand"), CORAL_SAND_BLEND),
        biomes.BIOME_ID_SEABED_ROCK: _rgb("rock_dark"),
        biomes.BIOME_ID_SEABED_SAND: _rgb("sand"),
        biomes.BIOME_ID_SEABED_MUD: _rgb("mud"),
        biomes.BIOME_ID_ROCK: _rgb("rock"),
        biomes.BIOME_ID_BASALT: _rgb("volcanic"),
        biomes.BIOME_ID_LAVA: _rgb("lava"),
        biomes.BIOME_ID_ALPINE_ROCK: _rgb("rock_light"),
        biomes.BIOME_ID_GLACIER: _rgb("ice"),
        biomes.BIOME_ID_SNOW: _rgb("snow"),
        biomes.BIOME_ID_TAIGA: _rgb("taiga"),
        biomes.BIOME_ID_TUNDRA: _lerp_rgb(_rgb("grass_dry"), _rgb("rock_light"), TUNDRA_ROCK_BLEND),
        biomes.BIOME_ID_DRY_GRASS: _rgb("grass_dry"),
        biomes.BIOME_ID_SWAMP: _rgb("swamp"),
        biomes.BIOME_ID_FOREST: _rgb("forest"),
        biomes.BIOME_ID_LUSH_GRASS: _rgb("grass_lush"),
        biomes.BIOME_ID_MESA_RED: _rgb("mesa_red"),
        biomes.BIOME_ID_MESA_ORANGE: _rgb("mesa_orange"),
        biomes.BIOME_ID_MESA_BROWN: _rgb("mesa_brown"),
        biomes.BIOME_ID_DESERT_SAND: _rgb("sand"),
        biomes.BIOME_ID_SCRUBLAND: _rgb("grass_dry"),
        biomes.BIOME_ID_SAVANNAH: _rgb("savannah"),
        biomes.BIOME_ID_JUNGLE: _rgb("jungle"),
        biomes.BIOME_ID_GRASS: _rgb("grass_dry"),
    }
    lut = np.zeros((len(palette), 3), dtype=np.float64)
    for biome_id, color in palette.items():
        lut[biome_id] = color
    return lut


def _create_hue_lut(hue_start: float, hue_end: float) -> np.ndarray:
    """Creates a 256-entry fully saturated HSL ramp between two hues."""
    t = np.linspace(0.0, 1.0, 256)
    hues = hue_start + (hue_end - hue_start) * t
    return np.array([colorsys.hls_to_rgb(h, 0.5, 1.0) for h in hues], dtype=np.float64)


def create_temperature_lut() -> np.ndarray:
    """Creates a 256-entry color LUT for the temperature view."""
    return _create_hue_lut(*TEMPERATURE_HUE_RANGE)


def create_humidity_lut() -> np.ndarray:
    """Creates a 256-entry color LUT for the humidity view."""
    return _create_hue_lut(*HUMIDITY_HUE_RANGE)


BIOME_COLOR_LUT = create_biome_color_lut()
TEMPERATURE_LUT = create_temperature_lut()
HUMIDITY_LUT = create_humidity_lut()


def _lut_index(values: np.ndarray) -> np.ndarray:
    return np.round(np.clip(values, 0.0, 1.0) * 255).astype(np.int64)


def texture_dither(params, x, z) -> np.ndarray:
    """Low-frequency noise used to break up flat color regions."""
    freq = DEFAULTS.TEXTURE_NOISE_FREQUENCY
    return noise.noise3(x * freq, params.seed, z * freq) * DEFAULTS.TEXTURE_NOISE_AMPLITUDE


# --- Biome & Color Array Generation Functions ---
def get_rock_factor(params, slope, temperature, biome_map) -> np.ndarray:
    """How much of the rock overlay to show, from 0 (none) to 1 (bare rock)."""
    threshold = biomes.get_rock_slope_threshold(params.terrain_age)
    if params.enable_rock:
        rock_factor = smoothstep(threshold - DEFAULTS.ROCK_BLEND_WIDTH, threshold, slope)
    else:
        rock_factor = np.zeros(np.shape(slope))

    # Snow only gives way to rock on the very steepest faces.
    if params.enable_snow:
        snow_band = temperature < DEFAULTS.BIOME_THRESHOLDS["frozen_max_temp"]
        rock_factor = np.where(snow_band, (slope > DEFAULTS.SNOW_ROCK_OVERLAY_SLOPE).astype(np.float64), rock_factor)

    if params.enable_volcano:
        volcanic = (biome_map == biomes.BIOME_ID_BASALT) | (biome_map == biomes.BIOME_ID_LAVA)
        rock_factor = np.where(volcanic, 0.0, rock_factor)

    return rock_factor


def _apply_shoreline(params, colors, height, slope, temperature, biome_map):
    """Blends beach sand (or mud without deserts) onto gentle, warm shores."""
    water_height = params.water_height
    band = DEFAULTS.SHORELINE_BAND_HEIGHT
    land = ~np.isin(biome_map, list(biomes.WATER_BIOME_IDS))
    land &= (biome_map != biomes.BIOME_ID_BASALT) & (biome_map != biomes.BIOME_ID_LAVA)
    shore = (
        land
        & (height < water_height + band)
        & (slope < DEFAULTS.SHORELINE_MAX_SLOPE)
        & (temperature > DEFAULTS.SHORELINE_MIN_TEMP)
    )
    if not np.any(shore):
        return colors

    sand_blend = np.clip(1.0 - (height - water_height) / band, 0.0, 1.0)
    if params.enable_desert:
        target, weight = _rgb("beach"), sand_blend
    else:
        target, weight = _rgb("mud"), sand_blend * 0.5
    blended = _lerp_rgb(colors, target, weight[..., np.newaxis])
    return np.where(shore[..., np.newaxis], blended, colors)


def get_terrain_color_array(params, x, z, height, slope, temperature, biome_map) -> np.ndarray:
    """
    Converts a pre-calculated biome map into continuous RGB colors with a
    slope-driven rock overlay, shoreline blending and a procedural dither.
    """
    colors = BIOME_COLOR_LUT[biome_map]
    if params.enable_water:
        colors = _apply_shoreline(params, colors, height, slope, temperature, biome_map)

    dither = texture_dither(params, x, z)[..., np.newaxis]
    rock_factor = get_rock_factor(params, slope, temperature, biome_map)[..., np.newaxis]

    rock_color = np.broadcast_to(_rgb("rock"), colors.shape)
    if params.enable_rock:
        darkened = _lerp_rgb(_rgb("rock"), _rgb("rock_dark"), ROCK_DARKEN_BLEND) + dither * 0.5
        rock_color = np.where(rock_factor > 0.1, darkened, rock_color)

    colors = _lerp_rgb(colors, rock_color, rock_factor) + dither * 0.5
    return np.clip(colors, 0.0, 1.0)


def get_height_color_array(params, height) -> np.ndarray:
    """Converts heights into a grayscale ramp over [0, height_scale]."""
    gray = np.clip(np.asarray(height) / params.height_scale, 0.0, 1.0)
    return np.stack([gray] * 3, axis=-1)


def get_tectonic_color_array(params, height, activity) -> np.ndarray:
    """Heat map of fault-chain activity, lightly shaded by height to show shape."""
    activity = np.asarray(activity)
    thresholds = [limit for limit, _ in COLOR_MAP_TECTONICS]
    palette = np.array([color for _, color in COLOR_MAP_TECTONICS], dtype=np.float64) / 255.0
    bands = np.searchsorted(thresholds, activity, side="right")
    colors = palette[np.minimum(bands, len(palette) - 1)]
    shade = np.clip(np.asarray(height) / params.height_scale, 0.0, 1.0) * 0.1
    return np.clip(colors + shade[..., np.newaxis], 0.0, 1.0)


def get_temperature_color_array(temperature) -> np.ndarray:
    """Converts normalised temperature into an RGB ramp using a pre-computed LUT."""
    return TEMPERATURE_LUT[_lut_index(np.asarray(temperature))]


def get_humidity_color_array(humidity) -> np.ndarray:
    """Converts normalised humidity into an RGB ramp using a pre-computed LUT."""
    return HUMIDITY_LUT[_lut_index(np.asarray(humidity))]


def to_uint8(colors: np.ndarray) -> np.ndarray:
    """Float [0, 1] colors to 8-bit, for image export."""
    return np.round(np.clip(colors, 0.0, 1.0) * 255).astype(np.uint8)
