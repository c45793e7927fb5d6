"""Tests for voxel batch geometry, volume filling and the batch writer."""
import logging
import threading

import numpy as np
import pytest

from terrain_generator import biomes
from terrain_generator.biomes import Material
from terrain_generator.params import TerrainParameters
from terrain_generator.voxels import (
    AIR_CODE, ROCK_CODE, WATER_CODE,
    GenerationCancelled, InMemoryVoxelStore, NpzVoxelStore, VoxelBatchWriter,
    VoxelRegion, VoxelWriteError,
    compute_batch_slopes, compute_vertical_extent, fill_batch_volume,
)

GRASS_CODE = biomes.MATERIAL_CODES[Material.GRASS]


def test_vertical_extent_of_a_reference_batch():
    assert compute_vertical_extent(100.0, 140.0, water_height=None, resolution=4) == (68, 148, 20)
    assert compute_vertical_extent(100.0, 140.0, water_height=120.0, resolution=4) == (68, 148, 20)


def test_vertical_extent_reaches_the_water_surface():
    bottom_y, top_y, layers = compute_vertical_extent(100.0, 140.0, water_height=180.0, resolution=4)
    assert (bottom_y, top_y, layers) == (68, 188, 30)


def test_batch_slopes_use_centred_differences_and_skip_edges():
    # One unit of rise per world unit along x.
    heights = np.repeat((np.arange(6) * 4.0)[:, np.newaxis], 6, axis=1)
    slopes = compute_batch_slopes(heights, resolution=4)
    assert np.allclose(slopes[1:-1, 1:-1], 1.0)
    assert np.all(slopes[0, :] == 0.0) and np.all(slopes[-1, :] == 0.0)
    assert np.all(slopes[:, 0] == 0.0) and np.all(slopes[:, -1] == 0.0)


def _single_column(surface, water_height=None):
    bottom_y, _, layers = compute_vertical_extent(surface, surface, water_height, resolution=4)
    materials, occupancy = fill_batch_volume(
        np.array([[surface]]), np.array([[GRASS_CODE]]), bottom_y, layers, water_height, resolution=4
    )
    world_y = bottom_y + np.arange(layers) * 4
    return world_y, materials[0, :, 0], occupancy[0, :, 0]


def test_dry_column_has_partial_surface_and_solid_fill():
    world_y, materials, occupancy = _single_column(10.5)
    by_y = {int(y): (int(m), float(o)) for y, m, o in zip(world_y, materials, occupancy)}

    assert by_y[12] == (GRASS_CODE, pytest.approx(0.125))
    assert by_y[16] == (AIR_CODE, 0.0)
    # Within the topsoil depth the biome material continues underground.
    assert by_y[4] == (GRASS_CODE, 1.0)
    assert by_y[-4] == (ROCK_CODE, 1.0)
    assert by_y[int(world_y[0])] == (ROCK_CODE, 1.0)


def test_water_overrides_weaker_ground_above_the_surface():
    world_y, materials, occupancy = _single_column(10.5, water_height=20.0)
    by_y = {int(y): (int(m), float(o)) for y, m, o in zip(world_y, materials, occupancy)}

    assert by_y[12] == (WATER_CODE, 1.0)
    assert by_y[20] == (WATER_CODE, 0.5)
    assert by_y[24][0] == AIR_CODE
    assert by_y[8] == (GRASS_CODE, 1.0)


def test_region_shape_counts_voxels():
    region = VoxelRegion((0, 68, 0), (128, 148, 128))
    assert region.shape(4) == (32, 20, 32)


@pytest.fixture
def small_writer(make_generator, quiet_logger):
    def _make(store, map_size=160.0, batch_size=4, **overrides):
        generator = make_generator(TerrainParameters(map_size=map_size, **overrides))
        return VoxelBatchWriter(generator, store, quiet_logger, batch_size=batch_size)
    return _make


def test_batches_tile_the_aligned_map(small_writer):
    writer = small_writer(InMemoryVoxelStore())
    assert writer.world_bounds() == (-80, 80)
    origins = writer.batch_origins()
    assert len(origins) == 100
    assert len(set(origins)) == 100
    assert all((x + 80) % 16 == 0 and (z + 80) % 16 == 0 for x, z in origins)


def test_iter_write_reports_percent_every_ten_batches(small_writer):
    store = InMemoryVoxelStore()
    writer = small_writer(store)
    progress = list(writer.iter_write())
    assert progress == list(range(10, 101, 10))
    assert len(store.batches) == 100


def test_iter_write_always_finishes_at_one_hundred(small_writer):
    store = InMemoryVoxelStore()
    writer = small_writer(store, map_size=256.0, batch_size=32)
    assert list(writer.iter_write()) == [100]
    assert len(store.batches) == 4
    batch = next(iter(store.batches.values()))
    assert batch.materials.shape[0] == 32 and batch.materials.shape[2] == 32
    assert batch.materials.shape == batch.occupancy.shape


def test_written_regions_are_aligned_and_cover_the_surface(small_writer):
    store = InMemoryVoxelStore()
    small_writer(store, map_size=256.0, batch_size=32).write(show_progress=False)
    for batch in store.batches.values():
        assert all(v % 4 == 0 for v in batch.region.min_corner + batch.region.max_corner)
        assert batch.region.shape(4) == batch.materials.shape
        assert np.all((batch.occupancy >= 0.0) & (batch.occupancy <= 1.0))
        # The lowest layer is always solid ground.
        assert np.all(batch.occupancy[:, 0, :] == 1.0)


def test_voxel_surface_matches_the_heightfield(small_writer):
    store = InMemoryVoxelStore()
    writer = small_writer(store, map_size=256.0, batch_size=32, enable_water=False)
    writer.write(show_progress=False)
    for x, z in [(-100, -100), (20, 44), (64, -8)]:
        recovered, code = store.surface_height(x, z)
        expected = float(writer.generator.get_height(float(x), float(z)))
        assert recovered == pytest.approx(expected, abs=1e-3)
        assert code not in (AIR_CODE, WATER_CODE)


def test_cancellation_before_start_writes_nothing(small_writer):
    store = InMemoryVoxelStore()
    event = threading.Event()
    event.set()
    with pytest.raises(GenerationCancelled):
        list(small_writer(store).iter_write(cancel_event=event))
    assert store.batches == {}


def test_cancellation_is_observed_between_batches(small_writer):
    store = InMemoryVoxelStore()
    event = threading.Event()
    progress = small_writer(store).iter_write(cancel_event=event)
    assert next(progress) == 10
    event.set()
    with pytest.raises(GenerationCancelled):
        next(progress)
    assert len(store.batches) == 10


class _FailingStore:
    def __init__(self, fail_on):
        self.fail_on = fail_on
        self.calls = 0

    def write_voxels(self, region, resolution, materials, occupancy):
        self.calls += 1
        if self.calls == self.fail_on:
            raise OSError("disk full")


def test_store_failure_aborts_without_retry(small_writer, caplog):
    store = _FailingStore(fail_on=3)
    writer = small_writer(store)
    with caplog.at_level(logging.CRITICAL):
        with pytest.raises(VoxelWriteError) as excinfo:
            list(writer.iter_write())
    assert isinstance(excinfo.value.__cause__, OSError)
    assert store.calls == 3
    assert any(record.levelno == logging.CRITICAL for record in caplog.records)


def test_npz_store_writes_one_file_per_batch(tmp_path):
    store = NpzVoxelStore(str(tmp_path))
    region = VoxelRegion((-16, 0, 32), (0, 8, 48))
    materials = np.full((4, 2, 4), GRASS_CODE, dtype=np.uint8)
    occupancy = np.linspace(0.0, 1.0, 32, dtype=np.float32).reshape(4, 2, 4)
    store.write_voxels(region, 4, materials, occupancy)

    files = sorted(p.name for p in tmp_path.iterdir())
    assert files == ["batch_-16_32.npz"]
    batch = NpzVoxelStore.load(store.batch_path(-16, 32))
    assert batch.region == VoxelRegion((-16.0, 0.0, 32.0), (0.0, 8.0, 48.0))
    assert np.array_equal(batch.materials, materials)
    assert np.array_equal(batch.occupancy, occupancy)
