# fidelity_probe.py

"""
Checks that the two consumers of the terrain core agree: the continuous
preview sampling and the voxel batch writer. A small map is baked into an
in-memory store; at the centre column of every batch the surface height is
recovered from voxel occupancy and compared with the preview height, and the
voxel material is compared with the preview's biome material.

Usage:
    python fidelity_probe.py [--config path/to/config.json] [--map-size 512]
"""
import os
import sys
import logging
import argparse

import numpy as np

sys.path.append(os.path.abspath(os.path.dirname(__file__)))

from bake_voxels import load_terrain_config
from terrain_generator import biomes
from terrain_generator import config as DEFAULTS
from terrain_generator.generator import TerrainGenerator
from terrain_generator.params import TerrainParameters
from terrain_generator.voxels import InMemoryVoxelStore, VoxelBatchWriter

HEIGHT_TOLERANCE = 1e-3


def probe_columns(writer: VoxelBatchWriter) -> list:
    """The centre voxel column of every batch."""
    centre = (writer.batch_size // 2) * writer.resolution
    return [(x + centre, z + centre) for x, z in writer.batch_origins()]


def run_probe(params: TerrainParameters, logger: logging.Logger) -> bool:
    generator = TerrainGenerator(config=params, logger=logger)
    store = InMemoryVoxelStore()
    writer = VoxelBatchWriter(generator, store, logger)
    writer.write(show_progress=False)

    columns = probe_columns(writer)
    xs = np.array([c[0] for c in columns], dtype=np.float64)
    zs = np.array([c[1] for c in columns], dtype=np.float64)

    # --- Preview side: continuous sampling, forward-difference slope ---
    sample = generator.get_terrain_data(xs, zs)
    slope = generator.get_slope(xs, zs, sample.height)
    climate = generator.get_climate(xs, zs, sample.height)
    preview_biomes = biomes.classify_biomes(
        params, xs, zs, sample.height, slope, sample.is_river, climate.temperature, climate.humidity
    )
    preview_materials = biomes.biome_materials(preview_biomes)

    submerged_below = params.water_height + DEFAULTS.VOXEL_RESOLUTION if params.enable_water else -np.inf
    height_passed = True
    material_matches = 0
    checked = 0
    for i, (x, z) in enumerate(columns):
        preview_h = float(sample.height[i])
        voxel_h, voxel_code = store.surface_height(x, z)
        preview_mat = biomes.MATERIALS_BY_CODE[int(preview_materials[i])]
        voxel_mat = biomes.MATERIALS_BY_CODE[voxel_code]

        if voxel_h is None or preview_h < submerged_below:
            logger.info(f"  - Column ({x}, {z}): submerged, preview={preview_h:.2f} -> SKIP")
            continue

        checked += 1
        height_ok = abs(voxel_h - preview_h) <= HEIGHT_TOLERANCE
        height_passed &= height_ok
        material_matches += preview_mat is voxel_mat
        logger.info(
            f"  - Column ({x}, {z}): preview={preview_h:.3f} voxel={voxel_h:.3f} "
            f"materials {preview_mat.value}/{voxel_mat.value} -> {'PASS' if height_ok else 'FAIL'}"
        )

    logger.info("--- Probe Complete ---")
    if checked:
        # The two consumers estimate slope differently, so materials may
        # disagree on slope thresholds without a geometry fault.
        logger.info(f"Material agreement: {material_matches}/{checked} columns.")
    if height_passed:
        logger.info("SUCCESS: Voxel surfaces match the preview heightfield.")
    else:
        logger.error("FAILURE: Voxel surface heights diverge from the preview.")
    return height_passed


def main():
    parser = argparse.ArgumentParser(description="Compare the preview and voxel consumers of the terrain core.")
    parser.add_argument("--config", type=str, default=None, help="Optional JSON configuration file.")
    parser.add_argument("--map-size", type=float, default=512.0, help="Map size to bake for the probe.")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
    logger = logging.getLogger("FidelityProbe")

    terrain_params = {}
    if args.config:
        terrain_params = load_terrain_config(args.config, logger)
        if terrain_params is None:
            return 1
    params = TerrainParameters.from_config(terrain_params, logger=logger).with_overrides(map_size=args.map_size)
    return 0 if run_probe(params, logger) else 1


if __name__ == '__main__':
    sys.exit(main())
