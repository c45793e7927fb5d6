# terrain_generator/voxels.py

"""
================================================================================
VOXEL BATCH WRITER
================================================================================
This module quantises the terrain into grid-aligned voxel batches and commits
them, one batch at a time, to a voxel store.

The map is processed in square batches of BATCH_SIZE_VOXELS voxels per side at
a fixed voxel resolution. Per batch the writer:
    1. Samples the height pipeline at every voxel column.
    2. Computes a centred-difference slope for interior columns.
    3. Derives an aligned vertical extent from the batch's height range.
    4. Fills a 3D occupancy + material volume (ground, water, deep fill).
    5. Commits the volume to the store as a single write.

Data Contract:
---------------
- Inputs:
    - generator: A TerrainGenerator (heights, rivers, climate).
    - store: Any object implementing the VoxelStore protocol.
    - logger: A configured Python logging object.
- Outputs:
    - `iter_write` yields integer percent-complete every BATCHES_PER_YIELD batches.
- Side Effects: One `write_voxels` call per batch on the store.
- Invariants:
    - Volumes are indexed [x, y, z]; every batch region is aligned to the
      voxel resolution and batches never overlap.
    - Cancellation is only observed between batches, never mid-batch.
================================================================================
"""
import logging
import math
import os
import tempfile
import time
from dataclasses import dataclass
from typing import Protocol

import numpy as np
from tqdm import tqdm

from . import biomes
from . import config as DEFAULTS

AIR_CODE = biomes.MATERIAL_CODES[biomes.Material.AIR]
WATER_CODE = biomes.MATERIAL_CODES[biomes.Material.WATER]
ROCK_CODE = biomes.MATERIAL_CODES[biomes.Material.ROCK]


class VoxelWriteError(RuntimeError):
    """The voxel store failed to commit a batch; the regeneration is aborted."""


class GenerationCancelled(RuntimeError):
    """The regeneration was cancelled between two batches."""


@dataclass(frozen=True)
class VoxelRegion:
    """An axis-aligned box in world units, min corner inclusive."""
    min_corner: tuple
    max_corner: tuple

    def shape(self, resolution: int) -> tuple:
        """Number of voxels along (x, y, z)."""
        return tuple(
            int(round((hi - lo) / resolution))
            for lo, hi in zip(self.min_corner, self.max_corner)
        )


@dataclass(frozen=True)
class VoxelBatch:
    region: VoxelRegion
    materials: np.ndarray
    occupancy: np.ndarray


class VoxelStore(Protocol):
    """Anything that can accept one aligned voxel volume per call."""

    def write_voxels(self, region: VoxelRegion, resolution: int,
                     materials: np.ndarray, occupancy: np.ndarray) -> None:
        ...


class InMemoryVoxelStore:
    """Keeps every committed batch in a dict keyed by the batch's (x, z) origin."""

    def __init__(self):
        self.batches = {}
        self.resolution = None

    def write_voxels(self, region, resolution, materials, occupancy):
        self.resolution = resolution
        origin = (region.min_corner[0], region.min_corner[2])
        self.batches[origin] = VoxelBatch(region, np.array(materials), np.array(occupancy))

    def _find_batch(self, world_x, world_z):
        for batch in self.batches.values():
            (x0, _, z0), (x1, _, z1) = batch.region.min_corner, batch.region.max_corner
            if x0 <= world_x < x1 and z0 <= world_z < z1:
                return batch
        raise KeyError(f"No voxel batch covers column ({world_x}, {world_z})")

    def column(self, world_x, world_z):
        """Returns (world_y, materials, occupancy) for the voxel column containing the point."""
        batch = self._find_batch(world_x, world_z)
        res = self.resolution
        ix = int((world_x - batch.region.min_corner[0]) // res)
        iz = int((world_z - batch.region.min_corner[2]) // res)
        layers = batch.materials.shape[1]
        world_y = batch.region.min_corner[1] + np.arange(layers) * res
        return world_y, batch.materials[ix, :, iz], batch.occupancy[ix, :, iz]

    def surface_height(self, world_x, world_z):
        """
        Recovers the surface height from the topmost ground voxel's partial
        occupancy. Returns (height, material_code); the height is None when
        the column holds no ground voxel.
        """
        world_y, materials, occupancy = self.column(world_x, world_z)
        ground = np.flatnonzero((materials != AIR_CODE) & (materials != WATER_CODE))
        if ground.size == 0:
            return None, AIR_CODE
        top = ground[-1]
        height = world_y[top] + (occupancy[top] - 0.5) * self.resolution
        return float(height), int(materials[top])


class NpzVoxelStore:
    """Writes each batch to its own compressed .npz file inside `directory`."""

    def __init__(self, directory: str):
        self.directory = directory
        os.makedirs(directory, exist_ok=True)

    def batch_path(self, origin_x, origin_z) -> str:
        return os.path.join(self.directory, f"batch_{int(origin_x)}_{int(origin_z)}.npz")

    def write_voxels(self, region, resolution, materials, occupancy):
        path = self.batch_path(region.min_corner[0], region.min_corner[2])
        # Write to a temporary file first so a batch is either fully present or absent.
        fd, tmp_path = tempfile.mkstemp(dir=self.directory, suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as f:
                np.savez_compressed(
                    f,
                    min_corner=np.array(region.min_corner, dtype=np.float64),
                    max_corner=np.array(region.max_corner, dtype=np.float64),
                    resolution=np.array(resolution),
                    materials=materials,
                    occupancy=occupancy,
                )
            os.replace(tmp_path, path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    @staticmethod
    def load(path: str) -> VoxelBatch:
        with np.load(path) as data:
            region = VoxelRegion(tuple(data["min_corner"].tolist()), tuple(data["max_corner"].tolist()))
            return VoxelBatch(region, data["materials"], data["occupancy"])


# --- Batch geometry ---

def compute_vertical_extent(min_height, max_height, water_height=None,
                            resolution=DEFAULTS.VOXEL_RESOLUTION):
    """
    Returns (bottom_y, top_y, layers): the aligned vertical span of a batch.
    Pass water_height only when water is enabled; the span then always
    reaches the water surface.
    """
    top_height = max_height if water_height is None else max(max_height, water_height)
    bottom_y = math.floor((min_height - DEFAULTS.GROUND_BUFFER_DEPTH) / resolution) * resolution
    top_y = math.ceil((top_height + DEFAULTS.SKY_BUFFER_HEIGHT) / resolution) * resolution
    layers = max(1, int(round((top_y - bottom_y) / resolution)))
    return bottom_y, top_y, layers


def compute_batch_slopes(heights: np.ndarray, resolution=DEFAULTS.VOXEL_RESOLUTION) -> np.ndarray:
    """
    Centred-difference slope per column of an [x, z] height grid. Edge
    columns lack a neighbour on one side and get slope 0.
    """
    heights = np.asarray(heights, dtype=np.float64)
    slopes = np.zeros_like(heights)
    if heights.shape[0] < 3 or heights.shape[1] < 3:
        return slopes
    dx = np.abs(heights[2:, 1:-1] - heights[:-2, 1:-1]) / (resolution * 2)
    dz = np.abs(heights[1:-1, 2:] - heights[1:-1, :-2]) / (resolution * 2)
    slopes[1:-1, 1:-1] = np.sqrt(dx * dx + dz * dz)
    return slopes


def fill_batch_volume(surface_heights, surface_materials, bottom_y, layers,
                      water_height=None, resolution=DEFAULTS.VOXEL_RESOLUTION):
    """
    Builds the [x, y, z] material-code and occupancy volumes for one batch.

    surface_heights and surface_materials are [x, z] grids; the material is
    the column's biome material. water_height is None when water is disabled.
    """
    surf = np.asarray(surface_heights, dtype=np.float64)[:, np.newaxis, :]
    column_material = np.asarray(surface_materials, dtype=np.uint8)[:, np.newaxis, :]
    world_y = (bottom_y + np.arange(layers) * resolution).astype(np.float64)[np.newaxis, :, np.newaxis]
    band = DEFAULTS.SURFACE_BAND

    # Ground near the surface gets a partial occupancy for a smooth isosurface.
    ground = world_y <= surf + band
    occupancy = np.where(ground, np.clip(0.5 + (surf - world_y) / resolution, 0.0, 1.0), 0.0)
    materials = np.where(ground & (occupancy > 0), column_material, np.uint8(AIR_CODE))

    if water_height is not None:
        water = (world_y > surf) & (world_y <= water_height)
        water_occupancy = np.clip(0.5 + (water_height - world_y) / resolution, 0.0, 1.0)
        override = water & (water_occupancy > occupancy)
        materials = np.where(override, np.uint8(WATER_CODE), materials)
        occupancy = np.where(override, water_occupancy, occupancy)

    # Deep fill: biome material just under the surface, rock below that.
    deep = world_y < surf - band
    topsoil = world_y > surf - DEFAULTS.TOPSOIL_DEPTH
    fill_material = np.where(topsoil, column_material, np.uint8(ROCK_CODE))
    materials = np.where(deep, fill_material, materials)
    occupancy = np.where(deep, 1.0, occupancy)

    return materials.astype(np.uint8), occupancy.astype(np.float32)


class VoxelBatchWriter:
    """
    Streams the whole map into a voxel store, batch by batch.

    Batches are processed serially; `iter_write` hands control back to the
    caller every BATCHES_PER_YIELD batches so a host loop can stay responsive.
    """
    def __init__(self, generator, store: VoxelStore, logger: logging.Logger,
                 batch_size: int = DEFAULTS.BATCH_SIZE_VOXELS,
                 resolution: int = DEFAULTS.VOXEL_RESOLUTION):
        self.generator = generator
        self.params = generator.params
        self.store = store
        self.logger = logger
        self.batch_size = batch_size
        self.resolution = resolution
        self.batch_studs = batch_size * resolution

    def world_bounds(self):
        """(start, end) of the aligned square covering the map, on both axes."""
        half = self.params.map_size / 2
        start = math.floor(-half / self.resolution) * self.resolution
        end = math.ceil(half / self.resolution) * self.resolution
        return start, end

    def batch_origins(self) -> list:
        start, end = self.world_bounds()
        steps = range(start, end, self.batch_studs)
        return [(x, z) for x in steps for z in steps]

    def sample_batch(self, origin_x, origin_z) -> VoxelBatch:
        """Samples, classifies and fills one batch without writing it."""
        p = self.params
        offsets = np.arange(self.batch_size) * self.resolution
        x, z = np.meshgrid(origin_x + offsets, origin_z + offsets, indexing="ij")
        x = x.astype(np.float64)
        z = z.astype(np.float64)

        sample = self.generator.get_terrain_data(x, z)
        height = sample.height
        slope = compute_batch_slopes(height, self.resolution)
        climate = self.generator.get_climate(x, z, height)
        biome_map = biomes.classify_biomes(
            p, x, z, height, slope, sample.is_river, climate.temperature, climate.humidity
        )
        column_material = biomes.biome_materials(biome_map)

        water_height = p.water_height if p.enable_water else None
        bottom_y, top_y, layers = compute_vertical_extent(
            float(height.min()), float(height.max()), water_height, self.resolution
        )
        materials, occupancy = fill_batch_volume(
            height, column_material, bottom_y, layers, water_height, self.resolution
        )
        region = VoxelRegion(
            (origin_x, bottom_y, origin_z),
            (origin_x + self.batch_studs, top_y, origin_z + self.batch_studs),
        )
        self.logger.debug(
            f"Batch ({origin_x}, {origin_z}): heights {height.min():.1f}..{height.max():.1f}, "
            f"{layers} layers from y={bottom_y}"
        )
        return VoxelBatch(region, materials, occupancy)

    def iter_write(self, cancel_event=None):
        """
        Writes every batch, yielding integer percent-complete after every
        BATCHES_PER_YIELD batches and once more on completion.

        Raises:
            GenerationCancelled: `cancel_event` was set before a batch started.
            VoxelWriteError: the store rejected a batch.
        """
        origins = self.batch_origins()
        total = len(origins)
        start, end = self.world_bounds()
        self.logger.info(
            f"Writing {total} voxel batches ({self.batch_size}^2 columns at {self.resolution} studs) "
            f"covering [{start}, {end}) on both axes."
        )

        last_percent = None
        for done, (origin_x, origin_z) in enumerate(origins, start=1):
            if cancel_event is not None and cancel_event.is_set():
                self.logger.warning(f"Voxel generation cancelled after {done - 1}/{total} batches.")
                raise GenerationCancelled(f"Cancelled after {done - 1} of {total} batches")

            batch = self.sample_batch(origin_x, origin_z)
            try:
                self.store.write_voxels(batch.region, self.resolution, batch.materials, batch.occupancy)
            except Exception as e:
                self.logger.critical(
                    f"Voxel store failed to write batch at ({origin_x}, {origin_z}); aborting.",
                    exc_info=True,
                )
                raise VoxelWriteError(f"Failed to write batch at ({origin_x}, {origin_z}): {e}") from e

            if done % DEFAULTS.BATCHES_PER_YIELD == 0:
                last_percent = int(done * 100 // total)
                yield last_percent

        if last_percent != 100:
            yield 100

    def write(self, cancel_event=None, show_progress: bool = True) -> int:
        """Drives `iter_write` to completion with a progress bar. Returns the batch count."""
        start_time = time.perf_counter()
        reported = 0
        with tqdm(total=100, desc="Writing voxel batches", unit="%", disable=not show_progress) as bar:
            for percent in self.iter_write(cancel_event):
                bar.update(percent - reported)
                reported = percent
        total = len(self.batch_origins())
        self.logger.info(f"Voxel generation completed in {time.perf_counter() - start_time:.2f}s ({total} batches).")
        return total
