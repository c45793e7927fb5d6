# terrain_generator/config.py

"""
================================================================================
INTERNAL DEFAULT CONFIGURATION
================================================================================
This module contains the default, fallback internal constants for the terrain
generator. These values are used if they are not explicitly provided by the
user's configuration.

DO NOT MODIFY THIS FILE FOR A SPECIFIC SIMULATION.
Instead, pass a configuration dictionary to the TerrainGenerator instance.
================================================================================
"""

# --- Noise Generation ---
DEFAULT_SEED = 8888
# Seeding never reshuffles the permutation table. Each layer is decorrelated by
# moving its samples along the noise-space Y axis by (seed + salt) * 100.
SEED_AXIS_MULTIPLIER = 100
RIDGED_SEED_SALT = 100
BILLOW_SEED_SALT = 200
TECTONIC_WARP_X_SEED_SALT = 300
TECTONIC_WARP_Z_SEED_SALT = 400
CHAIN_MASK_SEED_SALT = 99
TEMPERATURE_SEED_SALT = 1000
HUMIDITY_SEED_SALT = 2000
# Raw single-octave lookups take the salted seed directly as their Y coordinate.
RIVER_SEED_SALT = 999
VOLCANO_SEED_SALT = 555
LAVA_SEED_SALT = 111
CORAL_SEED_SALT = 888

# --- Base Fractal Knobs ---
DEFAULT_SCALE = 1800.0
DEFAULT_HEIGHT_SCALE = 900.0
DEFAULT_OCTAVES = 8
DEFAULT_PERSISTENCE = 0.45
DEFAULT_LACUNARITY = 2.0

# --- World Shape ---
DEFAULT_WATER_LEVEL = 0.2  # Fraction of height_scale
DEFAULT_MAP_SIZE = 4096.0  # World units (studs) along one side
DEFAULT_RESOLUTION = 512  # Mesh preview quads along one side
DEFAULT_TOPOLOGY = "Alpine"
DEFAULT_GENERATION_TYPE = "Infinite"

# --- Geology ---
DEFAULT_TERRAIN_AGE = 0.2  # 0 = young and jagged, 1 = old and rounded
DEFAULT_RIDGE_NOISE_STRENGTH = 0.8
DEFAULT_PEAK_ROUGHNESS = 0.6
DEFAULT_TERRACE_STEPS = 0
DEFAULT_DETAIL_STRAND_FREQUENCY = 50.0
DEFAULT_EROSION_STRENGTH = 1.0
DEFAULT_RIVER_DEPTH = 1.0
DEFAULT_EXAGGERATION = 1.2

# --- Climate ---
DEFAULT_TEMPERATURE_SCALE = 3000.0
DEFAULT_TEMPERATURE_OFFSET = 0.0
DEFAULT_TEMPERATURE_LAPSE_RATE = 0.0008  # Normalised temperature lost per world unit
DEFAULT_HUMIDITY_SCALE = 3000.0
DEFAULT_HUMIDITY_OFFSET = 0.0
# Climate frequency is decoupled from the terrain's own fractal knobs.
CLIMATE_OCTAVES = 3
CLIMATE_PERSISTENCE = 0.5
CLIMATE_LACUNARITY = 2.0
ALTITUDE_HUMIDITY_GAIN = 0.0002

# --- Biome Toggles ---
DEFAULT_BIOME_TOGGLES = {
    "enable_snow": True,
    "enable_desert": True,
    "enable_forest": True,
    "enable_rock": True,
    "enable_water": True,
    "enable_mesa": True,
    "enable_volcano": True,
    "enable_coral": True,
}

# --- Presentation (carried through, no effect on synthesis) ---
DEFAULT_VIEW_MODE = "Standard"
DEFAULT_TIME_OF_DAY = 14.0

# --- Height Synthesis Constants ---
DOMAIN_WARP_SCALE_FACTOR = 1.5
DOMAIN_WARP_STRENGTH = 25.0
DOMAIN_WARP_Z_OFFSET = (5.2, 1.3)
TECTONIC_WARP_SCALE_FACTOR = 2.5
TECTONIC_WARP_Z_OFFSET = 500.0
TECTONIC_CHAIN_SCALE_FACTOR = 1.2
TECTONIC_CHAIN_OCTAVES = 6
YOUNG_CHAIN_EXPONENT = 1.2
OLD_CHAIN_EXPONENT = 0.8
CANYON_STEPS = 8
MASK_FLOOR_HEIGHT = -0.2  # Normalised height of the sea floor outside island masks
EXAGGERATION_ANCHOR = 0.1
TERRACE_BLEND = 0.6
RIVER_SCALE_FACTOR = 3.5
DETAIL_MIN_HEIGHT = 5.0
DETAIL_AMPLITUDE = 0.8

# --- Biome Thresholds ---
# A dictionary to hold all parameters that define biome transitions.
# Temperature and humidity are normalised to [0, 1]; heights and depths are
# world units; slopes are rise over run.
BIOME_THRESHOLDS = {
    # Underwater
    "river_mud_margin": 5.0,
    "coral_max_depth": 25.0,
    "coral_min_temp": 0.6,
    "coral_noise_gate": 0.2,
    "coral_bright_noise": 0.5,
    "coral_noise_period": 20.0,
    "seabed_rock_min_slope": 0.8,
    "seabed_sand_max_depth": 15.0,

    # Steep slopes
    "rock_slope_base": 1.2,
    "rock_slope_age_gain": 0.4,

    # Volcanic hotspots
    "volcano_noise_period": 1000.0,
    "volcano_noise_gate": 0.6,
    "volcano_min_height_fraction": 0.25,
    "lava_min_height_fraction": 0.7,
    "lava_max_slope": 1.0,
    "lava_noise_period": 50.0,
    "lava_noise_gate": 0.4,

    # Temperature bands
    "frozen_max_temp": 0.25,
    "cold_max_temp": 0.45,
    "temperate_max_temp": 0.75,
    # hot is anything above temperate_max_temp

    # Humidity splits
    "snow_rock_min_slope": 0.9,
    "glacier_min_humidity": 0.6,
    "taiga_min_humidity": 0.5,
    "temperate_dry_max_humidity": 0.3,
    "temperate_wet_min_humidity": 0.6,
    "swamp_max_height_above_water": 20.0,
    "hot_dry_max_humidity": 0.35,
    "mesa_max_humidity": 0.25,
    "savannah_max_humidity": 0.6,
}

# --- Colour Overlay Constants ---
ROCK_BLEND_WIDTH = 0.7
SNOW_ROCK_OVERLAY_SLOPE = 1.5
SHORELINE_BAND_HEIGHT = 8.0
SHORELINE_MAX_SLOPE = 0.5
SHORELINE_MIN_TEMP = 0.3
TEXTURE_NOISE_FREQUENCY = 0.3
TEXTURE_NOISE_AMPLITUDE = 0.05
MESA_BAND_FREQUENCY = 0.1
MESA_NOISE_FREQUENCY = 0.02
MESA_NOISE_STRENGTH = 5.0
SLOPE_SAMPLE_DISTANCE = 1.0

# --- Voxel Batch Writer ---
BATCH_SIZE_VOXELS = 32
VOXEL_RESOLUTION = 4  # World units per voxel edge
GROUND_BUFFER_DEPTH = 32.0  # Solid ground kept below the lowest column of a batch
SKY_BUFFER_HEIGHT = 8.0
SURFACE_BAND = 2.0  # Voxels deeper than this below the surface are fully solid
TOPSOIL_DEPTH = 12.0  # Fully solid voxels this close to the surface take the biome material
BATCHES_PER_YIELD = 10
