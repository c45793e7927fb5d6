# terrain_generator/biomes.py

"""
================================================================================
BIOME CLASSIFICATION
================================================================================
The single biome decision tree used by every consumer. It maps height, slope,
river flag, climate and the biome toggles to an integer biome ID. The voxel
writer turns biome IDs into materials (`biome_materials`), the mesh preview
turns them into colours (`color_maps`), so the tree itself exists only here.

Rules are evaluated in a fixed priority order and the first match wins:
    1. River beds and underwater floors (coral, rock, sand, mud)
    2. Steep-slope rock
    3. Volcanic hotspots (lava, basalt)
    4. Climate bands by temperature, each split on humidity
    5. Fallback grass
A disabled toggle removes only its own branch at the point where it is
checked; the sample then falls through to the next applicable rule.
================================================================================
"""
from enum import Enum

import numpy as np

from . import config as DEFAULTS
from . import noise

# --- Biome ID Constants ---
BIOME_ID_RIVERBED = 0
BIOME_ID_CORAL_BRIGHT = 1
BIOME_ID_CORAL_GREEN = 2
BIOME_ID_SEABED_ROCK = 3
BIOME_ID_SEABED_SAND = 4
BIOME_ID_SEABED_MUD = 5
BIOME_ID_ROCK = 6
BIOME_ID_BASALT = 7
BIOME_ID_LAVA = 8
BIOME_ID_ALPINE_ROCK = 9
BIOME_ID_GLACIER = 10
BIOME_ID_SNOW = 11
BIOME_ID_TAIGA = 12
BIOME_ID_TUNDRA = 13
BIOME_ID_DRY_GRASS = 14
BIOME_ID_SWAMP = 15
BIOME_ID_FOREST = 16
BIOME_ID_LUSH_GRASS = 17
BIOME_ID_MESA_RED = 18
BIOME_ID_MESA_ORANGE = 19
BIOME_ID_MESA_BROWN = 20
BIOME_ID_DESERT_SAND = 21
BIOME_ID_SCRUBLAND = 22
BIOME_ID_SAVANNAH = 23
BIOME_ID_JUNGLE = 24
BIOME_ID_GRASS = 25

BIOME_NAMES = {
    value: name[len("BIOME_ID_"):].lower()
    for name, value in list(globals().items())
    if name.startswith("BIOME_ID_")
}

# Biomes that can only be produced by the underwater / river rule.
WATER_BIOME_IDS = frozenset({
    BIOME_ID_RIVERBED, BIOME_ID_CORAL_BRIGHT, BIOME_ID_CORAL_GREEN,
    BIOME_ID_SEABED_ROCK, BIOME_ID_SEABED_SAND, BIOME_ID_SEABED_MUD,
})


class Material(str, Enum):
    """Discrete voxel materials, named after the voxel host's material set."""
    AIR = "Air"
    WATER = "Water"
    ROCK = "Rock"
    MUD = "Mud"
    LIMESTONE = "Limestone"
    BASALT = "Basalt"
    CRACKED_LAVA = "CrackedLava"
    GLACIER = "Glacier"
    SNOW = "Snow"
    GROUND = "Ground"
    GRASS = "Grass"
    LEAFY_GRASS = "LeafyGrass"
    SANDSTONE = "Sandstone"
    SAND = "Sand"


# Stable integer codes for materials inside voxel arrays.
MATERIAL_CODES = {material: code for code, material in enumerate(Material)}
MATERIALS_BY_CODE = list(Material)

BIOME_MATERIALS = {
    BIOME_ID_RIVERBED: Material.MUD,
    BIOME_ID_CORAL_BRIGHT: Material.LIMESTONE,
    BIOME_ID_CORAL_GREEN: Material.LIMESTONE,
    BIOME_ID_SEABED_ROCK: Material.MUD,
    BIOME_ID_SEABED_SAND: Material.MUD,
    BIOME_ID_SEABED_MUD: Material.MUD,
    BIOME_ID_ROCK: Material.ROCK,
    BIOME_ID_BASALT: Material.BASALT,
    BIOME_ID_LAVA: Material.CRACKED_LAVA,
    BIOME_ID_ALPINE_ROCK: Material.ROCK,
    BIOME_ID_GLACIER: Material.GLACIER,
    BIOME_ID_SNOW: Material.SNOW,
    BIOME_ID_TAIGA: Material.GROUND,
    BIOME_ID_TUNDRA: Material.GRASS,
    BIOME_ID_DRY_GRASS: Material.GRASS,
    BIOME_ID_SWAMP: Material.MUD,
    BIOME_ID_FOREST: Material.LEAFY_GRASS,
    BIOME_ID_LUSH_GRASS: Material.GRASS,
    BIOME_ID_MESA_RED: Material.SANDSTONE,
    BIOME_ID_MESA_ORANGE: Material.SANDSTONE,
    BIOME_ID_MESA_BROWN: Material.ROCK,
    BIOME_ID_DESERT_SAND: Material.SAND,
    BIOME_ID_SCRUBLAND: Material.GROUND,
    BIOME_ID_SAVANNAH: Material.GROUND,
    BIOME_ID_JUNGLE: Material.LEAFY_GRASS,
    BIOME_ID_GRASS: Material.GRASS,
}


def create_biome_material_lut() -> np.ndarray:
    """A LUT where the index is the Biome ID and the value is a material code."""
    lut = np.zeros(len(BIOME_MATERIALS), dtype=np.uint8)
    for biome_id, material in BIOME_MATERIALS.items():
        lut[biome_id] = MATERIAL_CODES[material]
    return lut


_MATERIAL_LUT = create_biome_material_lut()


def biome_materials(biome_map: np.ndarray) -> np.ndarray:
    """Converts biome IDs into material codes (see MATERIAL_CODES)."""
    return _MATERIAL_LUT[biome_map]


class _FirstMatch:
    """Tracks which samples are still unclassified while rules are applied in order."""

    def __init__(self, shape):
        self.biome_map = np.full(shape, BIOME_ID_GRASS, dtype=np.uint8)
        self.open = np.ones(shape, dtype=bool)

    def assign(self, mask, biome):
        hit = self.open & mask
        if np.any(hit):
            self.biome_map[hit] = np.broadcast_to(biome, hit.shape)[hit]
            self.open &= ~hit


def get_rock_slope_threshold(age: float) -> float:
    thresholds = DEFAULTS.BIOME_THRESHOLDS
    return thresholds["rock_slope_base"] + age * thresholds["rock_slope_age_gain"]


def mesa_band_value(x, z, height) -> np.ndarray:
    """Horizontal strata for mesa cliffs; wobbled by unseeded noise."""
    wobble = noise.noise3(x * DEFAULTS.MESA_NOISE_FREQUENCY, 0.0, z * DEFAULTS.MESA_NOISE_FREQUENCY)
    return np.sin(height * DEFAULTS.MESA_BAND_FREQUENCY + wobble * DEFAULTS.MESA_NOISE_STRENGTH)


def classify_biomes(params, x, z, height, slope, is_river, temperature, humidity) -> np.ndarray:
    """
    Performs the biome classification and returns an integer array of biome IDs.

    All array arguments must share one shape; `params` is a TerrainParameters.
    """
    x, z, height, slope, is_river, temperature, humidity = np.broadcast_arrays(
        np.asarray(x, dtype=np.float64), np.asarray(z, dtype=np.float64),
        np.asarray(height, dtype=np.float64), np.asarray(slope, dtype=np.float64),
        np.asarray(is_river, dtype=bool), np.asarray(temperature, dtype=np.float64),
        np.asarray(humidity, dtype=np.float64)
    )
    t = DEFAULTS.BIOME_THRESHOLDS
    seed = params.seed
    water_height = params.water_height
    height_scale = params.height_scale
    tree = _FirstMatch(height.shape)

    # --- 1. River beds and underwater floors ---
    tree.assign(is_river & (height < water_height + t["river_mud_margin"]), BIOME_ID_RIVERBED)

    submerged = is_river.copy()
    if params.enable_water:
        submerged |= height < water_height
    depth = water_height - height

    if params.enable_coral:
        period = t["coral_noise_period"]
        coral_noise = noise.noise3(x / period, seed + DEFAULTS.CORAL_SEED_SALT, z / period)
        reef = submerged & (depth < t["coral_max_depth"]) & (temperature > t["coral_min_temp"]) & (coral_noise > t["coral_noise_gate"])
        tree.assign(reef, np.where(coral_noise > t["coral_bright_noise"], BIOME_ID_CORAL_BRIGHT, BIOME_ID_CORAL_GREEN))

    if params.enable_rock:
        tree.assign(submerged & (slope > t["seabed_rock_min_slope"]), BIOME_ID_SEABED_ROCK)
    tree.assign(submerged & (depth < t["seabed_sand_max_depth"]), BIOME_ID_SEABED_SAND)
    tree.assign(submerged, BIOME_ID_SEABED_MUD)

    # --- 2. Steep-slope rock ---
    if params.enable_rock:
        tree.assign(slope > get_rock_slope_threshold(params.terrain_age), BIOME_ID_ROCK)

    # --- 3. Volcanic hotspots ---
    if params.enable_volcano:
        period = t["volcano_noise_period"]
        volcano_noise = noise.noise3(x / period, seed + DEFAULTS.VOLCANO_SEED_SALT, z / period)
        hotspot = (volcano_noise > t["volcano_noise_gate"]) & (height > height_scale * t["volcano_min_height_fraction"])
        if np.any(hotspot & tree.open):
            period = t["lava_noise_period"]
            lava_noise = noise.noise3(x / period, seed + DEFAULTS.LAVA_SEED_SALT, z / period)
            crater = (
                (height > height_scale * t["lava_min_height_fraction"])
                & (slope < t["lava_max_slope"])
                & (lava_noise > t["lava_noise_gate"])
            )
            tree.assign(hotspot & crater, BIOME_ID_LAVA)
            tree.assign(hotspot, BIOME_ID_BASALT)

    # --- 4. Climate bands ---
    frozen = temperature < t["frozen_max_temp"]
    cold = ~frozen & (temperature < t["cold_max_temp"])
    temperate = ~frozen & ~cold & (temperature < t["temperate_max_temp"])
    hot = temperature >= t["temperate_max_temp"]

    # 4a. Frozen: snow and glacier, bare rock where snow cannot hold.
    if params.enable_snow:
        if params.enable_rock:
            tree.assign(frozen & (slope > t["snow_rock_min_slope"]), BIOME_ID_ALPINE_ROCK)
        tree.assign(frozen & (humidity > t["glacier_min_humidity"]), BIOME_ID_GLACIER)
        tree.assign(frozen, BIOME_ID_SNOW)
    else:
        tree.assign(frozen, BIOME_ID_ALPINE_ROCK)

    # 4b. Cold: taiga floor or tundra grass.
    if params.enable_forest:
        tree.assign(cold & (humidity > t["taiga_min_humidity"]), BIOME_ID_TAIGA)
    tree.assign(cold, BIOME_ID_TUNDRA)

    # 4c. Temperate: dry grass, swamp / forest, or lush grass.
    if params.enable_desert:
        tree.assign(temperate & (humidity < t["temperate_dry_max_humidity"]), BIOME_ID_DRY_GRASS)
    wet = temperate & (humidity > t["temperate_wet_min_humidity"])
    if params.enable_forest:
        tree.assign(wet & (height < water_height + t["swamp_max_height_above_water"]), BIOME_ID_SWAMP)
        tree.assign(wet, BIOME_ID_FOREST)
    tree.assign(temperate & (humidity >= t["temperate_dry_max_humidity"]), BIOME_ID_LUSH_GRASS)

    # 4d. Hot: mesa bands, desert or scrub, savannah, jungle.
    arid = hot & (humidity < t["hot_dry_max_humidity"])
    if params.enable_mesa:
        mesa = arid & (humidity < t["mesa_max_humidity"])
        if np.any(mesa & tree.open):
            band = mesa_band_value(x, z, height)
            tree.assign(mesa, np.select(
                [band > 0.5, band > 0.0],
                [BIOME_ID_MESA_RED, BIOME_ID_MESA_ORANGE],
                default=BIOME_ID_MESA_BROWN
            ))
    tree.assign(arid, BIOME_ID_DESERT_SAND if params.enable_desert else BIOME_ID_SCRUBLAND)
    tree.assign(hot & (humidity < t["savannah_max_humidity"]), BIOME_ID_SAVANNAH)
    tree.assign(hot, BIOME_ID_JUNGLE if params.enable_forest else BIOME_ID_LUSH_GRASS)

    # --- 5. Fallback: whatever is still open keeps the grass default. ---
    return tree.biome_map


def get_biome_material(params, x, z, height, slope, is_river, temperature, humidity) -> Material:
    """Scalar convenience wrapper returning the Material for a single sample."""
    biome = classify_biomes(params, x, z, height, slope, is_river, temperature, humidity)
    return MATERIALS_BY_CODE[int(biome_materials(biome).reshape(-1)[0])]
