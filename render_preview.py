# render_preview.py

"""
================================================================================
MESH PREVIEW RENDERER
================================================================================
Builds the continuous preview mesh for a world and saves it as top-down PNGs
(vertex colors and height) plus the raw mesh arrays in an .npz file.

Usage:
    python render_preview.py --config path/to/config.json [--view-mode Height] [--resolution 256]
================================================================================
"""
import os
import sys
import logging
import argparse

import numpy as np

sys.path.append(os.path.abspath(os.path.dirname(__file__)))

from bake_voxels import load_terrain_config
from terrain_generator.generator import TerrainGenerator
from terrain_generator.mesh import build_preview_mesh, save_preview_images
from terrain_generator.params import ViewMode


def render_preview(config_path: str, output_dir: str = None, view_mode: str = None, resolution: int = None) -> bool:
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
        stream=sys.stdout
    )
    logger = logging.getLogger("PreviewRenderer")

    terrain_params = load_terrain_config(config_path, logger)
    if terrain_params is None:
        return False

    generator = TerrainGenerator(config=terrain_params, logger=logger)
    mesh = build_preview_mesh(generator, resolution=resolution, view_mode=view_mode)

    output_dir = output_dir or os.path.join("previews", f"seed_{generator.params.seed}")
    paths = save_preview_images(mesh, output_dir)
    mesh_path = os.path.join(output_dir, "preview_mesh.npz")
    np.savez_compressed(
        mesh_path,
        positions=mesh.positions,
        colors=mesh.colors,
        faces=mesh.faces,
        water_height=np.array(mesh.water_height),
        show_water=np.array(mesh.show_water),
    )
    logger.info(f"Saved preview images {paths['color']}, {paths['height']} and mesh {mesh_path}")
    return True


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Render the terrain mesh preview to images.")
    parser.add_argument("--config", type=str, required=True, help="Path to the JSON configuration file.")
    parser.add_argument("--output", type=str, default=None, help="Output directory.")
    parser.add_argument(
        "--view-mode", type=str, default=None,
        choices=[mode.value for mode in ViewMode],
        help="Override the configured view mode."
    )
    parser.add_argument("--resolution", type=int, default=None, help="Override the preview grid resolution.")
    args = parser.parse_args()

    sys.exit(0 if render_preview(args.config, args.output, args.view_mode, args.resolution) else 1)
