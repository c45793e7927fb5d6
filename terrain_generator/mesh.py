# terrain_generator/mesh.py

"""
================================================================================
MESH PREVIEW BUILDER
================================================================================
Samples the terrain continuously at every vertex of a regular grid and packs
the result into renderer-agnostic arrays (positions, per-vertex colors,
triangle indices). Uploading them to a renderer is the caller's business.

Data Contract:
---------------
- Inputs: A TerrainGenerator; optionally a grid resolution and view mode.
- Outputs: A PreviewMesh. Vertex (i, j) of the grid is stored at index
  i * (resolution + 1) + j, with i along z and j along x.
- Side Effects: `save_preview_images` writes PNG files with Pillow.
================================================================================
"""
import os
from dataclasses import dataclass

import numpy as np
from PIL import Image

from . import biomes
from . import color_maps
from .params import ViewMode


@dataclass(frozen=True)
class PreviewMesh:
    positions: np.ndarray  # (N, 3) of (x, height, z)
    colors: np.ndarray  # (N, 3) float RGB in [0, 1]
    faces: np.ndarray  # (M, 3) vertex indices
    resolution: int
    water_height: float
    show_water: bool

    @property
    def heights(self) -> np.ndarray:
        side = self.resolution + 1
        return self.positions[:, 1].reshape(side, side)


def grid_faces(resolution: int) -> np.ndarray:
    """Two triangles per grid cell, wound consistently."""
    side = resolution + 1
    rows, cols = np.meshgrid(np.arange(resolution), np.arange(resolution), indexing="ij")
    a = (rows * side + cols).ravel()
    b = a + 1
    c = a + side
    d = c + 1
    return np.concatenate([np.stack([a, c, b], axis=1), np.stack([b, c, d], axis=1)]).astype(np.int64)


def get_vertex_colors(generator, x, z, sample, view_mode=None) -> np.ndarray:
    """Colors each sample for the requested view mode. Unknown modes fail fast."""
    p = generator.params
    view_mode = p.view_mode if view_mode is None else ViewMode.parse(view_mode)
    height = sample.height

    if view_mode is ViewMode.STANDARD:
        slope = generator.get_slope(x, z, height)
        climate = generator.get_climate(x, z, height)
        biome_map = biomes.classify_biomes(
            p, x, z, height, slope, sample.is_river, climate.temperature, climate.humidity
        )
        return color_maps.get_terrain_color_array(p, x, z, height, slope, climate.temperature, biome_map)
    if view_mode is ViewMode.HEIGHT:
        return color_maps.get_height_color_array(p, height)
    if view_mode is ViewMode.TECTONICS:
        return color_maps.get_tectonic_color_array(p, height, sample.tectonic_activity)
    if view_mode is ViewMode.TEMPERATURE:
        return color_maps.get_temperature_color_array(generator.get_temperature(x, z, height))
    if view_mode is ViewMode.HUMIDITY:
        return color_maps.get_humidity_color_array(generator.get_humidity(x, z, height))
    raise ValueError(f"Unrecognized ViewMode variant {view_mode!r}")


def build_preview_mesh(generator, resolution: int = None, view_mode=None) -> PreviewMesh:
    """Samples every grid vertex and returns the preview mesh."""
    p = generator.params
    resolution = p.resolution if resolution is None else resolution
    view_mode = p.view_mode if view_mode is None else ViewMode.parse(view_mode)

    x, z = generator.get_coordinate_grid(resolution)
    sample = generator.get_terrain_data(x, z)
    colors = get_vertex_colors(generator, x, z, sample, view_mode)

    positions = np.stack([x.ravel(), sample.height.ravel(), z.ravel()], axis=1)
    generator.logger.info(
        f"Built preview mesh: {positions.shape[0]} vertices, view mode {view_mode.value}, "
        f"height range {sample.height.min():.1f}..{sample.height.max():.1f}"
    )
    return PreviewMesh(
        positions=positions,
        colors=colors.reshape(-1, 3),
        faces=grid_faces(resolution),
        resolution=resolution,
        water_height=p.water_height,
        show_water=p.enable_water and view_mode is ViewMode.STANDARD,
    )


def save_preview_images(mesh: PreviewMesh, directory: str, prefix: str = "preview") -> dict:
    """
    Saves the vertex colors and a normalised height map as top-down PNGs.
    Returns the written paths keyed by image kind.
    """
    os.makedirs(directory, exist_ok=True)
    side = mesh.resolution + 1

    color_img = color_maps.to_uint8(mesh.colors.reshape(side, side, 3))
    heights = mesh.heights
    span = heights.max() - heights.min()
    normalized = (heights - heights.min()) / span if span > 0 else np.zeros_like(heights)
    height_img = np.round(normalized * 255).astype(np.uint8)

    paths = {
        "color": os.path.join(directory, f"{prefix}_color.png"),
        "height": os.path.join(directory, f"{prefix}_height.png"),
    }
    Image.fromarray(color_img, "RGB").save(paths["color"], "PNG")
    Image.fromarray(height_img, "L").save(paths["height"], "PNG")
    return paths
