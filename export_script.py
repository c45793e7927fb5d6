# export_script.py

"""
Writes the voxel host Lua script for a world configuration.

Usage:
    python export_script.py --config path/to/config.json --output terrain.lua [--noise-backend permutation]
"""
import os
import sys
import logging
import argparse

sys.path.append(os.path.abspath(os.path.dirname(__file__)))

from bake_voxels import load_terrain_config
from terrain_generator.params import TerrainParameters
from terrain_generator.script_export import NOISE_BACKENDS, generate_voxel_script


def export_script(config_path: str, output_path: str, noise_backend: str = "native") -> bool:
    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
    logger = logging.getLogger("ScriptExporter")

    terrain_params = load_terrain_config(config_path, logger)
    if terrain_params is None:
        return False

    params = TerrainParameters.from_config(terrain_params, logger=logger)
    script = generate_voxel_script(params, noise_backend=noise_backend)
    with open(output_path, 'w') as f:
        f.write(script)
    logger.info(f"Wrote {len(script.splitlines())}-line {noise_backend} script for seed {params.seed} to {output_path}")
    return True


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Export the voxel host terrain script.")
    parser.add_argument("--config", type=str, required=True, help="Path to the JSON configuration file.")
    parser.add_argument("--output", type=str, default="voxel_terrain.lua", help="Destination .lua file.")
    parser.add_argument("--noise-backend", type=str, default="native", choices=NOISE_BACKENDS)
    args = parser.parse_args()

    sys.exit(0 if export_script(args.config, args.output, args.noise_backend) else 1)
