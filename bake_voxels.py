# bake_voxels.py

"""
================================================================================
OFFLINE VOXEL BAKER SCRIPT
================================================================================
This script is a command-line tool for quantising a world into voxel batches
and saving them to a directory of compressed .npz files, one per batch. Each
file holds the batch's aligned region, a material-code volume and an
occupancy volume, indexed [x, y, z].

Usage:
    python bake_voxels.py --config path/to/your/config.json [--output DIR]
================================================================================
"""
import os
import sys
import json
import logging
import argparse

# Add project root to Python path to allow importing from terrain_generator
sys.path.append(os.path.abspath(os.path.dirname(__file__)))

from terrain_generator.generator import TerrainGenerator
from terrain_generator.voxels import NpzVoxelStore, VoxelBatchWriter, VoxelWriteError
from terrain_generator import config as DEFAULTS


def load_terrain_config(config_path: str, logger: logging.Logger):
    """Reads the JSON config; returns None (after logging) when it cannot be used."""
    logger.info(f"Loading configuration from: {config_path}")
    try:
        with open(config_path, 'r') as f:
            config = json.load(f)
    except (FileNotFoundError, json.JSONDecodeError) as e:
        logger.critical(f"Failed to load or parse config file: {e}")
        return None
    return config.get('terrain_parameters', config)


def bake_voxels(config_path: str, output_dir: str = None) -> bool:
    """
    Loads a configuration and writes every voxel batch of the world to disk.
    Returns True on success.
    """
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
        stream=sys.stdout
    )
    logger = logging.getLogger("VoxelBaker")

    terrain_params = load_terrain_config(config_path, logger)
    if terrain_params is None:
        return False

    generator = TerrainGenerator(config=terrain_params, logger=logger)
    seed = generator.params.seed
    output_dir = output_dir or os.path.join("baked_voxels", f"seed_{seed}")

    store = NpzVoxelStore(output_dir)
    writer = VoxelBatchWriter(generator, store, logger)
    try:
        batch_count = writer.write()
    except VoxelWriteError as e:
        logger.critical(f"Voxel bake aborted: {e}")
        return False

    manifest = {
        "terrain_parameters": generator.params.to_config(),
        "batch_size_voxels": DEFAULTS.BATCH_SIZE_VOXELS,
        "voxel_resolution": DEFAULTS.VOXEL_RESOLUTION,
        "batch_count": batch_count,
    }
    with open(os.path.join(output_dir, "manifest.json"), 'w') as f:
        json.dump(manifest, f, indent=2)

    logger.info(f"Baked {batch_count} voxel batches and manifest.json to: {output_dir}")
    return True


# --- Command-Line Interface ---
if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Offline voxel baker for the terrain generator.")
    parser.add_argument(
        "--config",
        type=str,
        required=True,
        help="Path to the JSON configuration file for the world to be baked."
    )
    parser.add_argument("--output", type=str, default=None, help="Directory for the batch files.")
    args = parser.parse_args()

    sys.exit(0 if bake_voxels(args.config, args.output) else 1)
