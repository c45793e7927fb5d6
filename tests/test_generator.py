"""Tests for the height synthesis pipeline and the climate model."""
import numpy as np
import pytest

from terrain_generator import config as DEFAULTS
from terrain_generator import generator as gen
from terrain_generator import noise
from terrain_generator.params import TerrainParameters


def test_heights_are_bit_identical_across_generators(make_generator, sample_grid):
    x, z = sample_grid
    first = make_generator().get_terrain_data(x, z)
    second = make_generator().get_terrain_data(x, z)
    assert np.array_equal(first.height, second.height)
    assert np.array_equal(first.is_river, second.is_river)
    assert np.array_equal(first.tectonic_activity, second.tectonic_activity)


def test_outputs_keep_input_shape(make_generator, sample_grid):
    x, z = sample_grid
    sample = make_generator().get_terrain_data(x, z)
    assert sample.height.shape == x.shape
    assert sample.is_river.dtype == bool
    assert sample.tectonic_activity.shape == x.shape


def test_scalar_and_array_sampling_agree(make_generator):
    generator = make_generator(topology="Standard")
    xs = np.array([12.0, -640.5, 2000.25])
    zs = np.array([-7.0, 333.3, -1500.0])
    batch = generator.get_height(xs, zs)
    singles = [float(generator.get_height(x, z)) for x, z in zip(xs, zs)]
    assert np.allclose(batch, singles, rtol=0.0, atol=1e-9)


@pytest.mark.parametrize("topology", ["Standard", "Alpine", "Canyons", "Dunes"])
def test_every_topology_produces_finite_heights(make_generator, sample_grid, topology):
    x, z = sample_grid
    sample = make_generator(topology=topology).get_terrain_data(x, z)
    assert np.all(np.isfinite(sample.height))
    assert np.all(sample.tectonic_activity >= 0.0)


def _river_gate(generator, x, z):
    """Recomputes the channel test on the domain-warped coordinate."""
    p = generator.params
    wx, wz = generator._domain_warp(np.atleast_1d(x).astype(float), np.atleast_1d(z).astype(float))
    river_scale = p.scale * DEFAULTS.RIVER_SCALE_FACTOR
    river_val = np.abs(noise.noise3(wx / river_scale, p.seed + DEFAULTS.RIVER_SEED_SALT, wz / river_scale))
    channel_width = 0.08 + p.terrain_age * 0.05
    return river_val < channel_width * 0.8


def test_seed_8888_standard_continent_at_origin(standard_params, make_generator):
    generator = make_generator(standard_params)
    sample = generator.get_terrain_data(0.0, 0.0)
    height = float(sample.height)
    assert np.isfinite(height)
    assert abs(height) <= standard_params.height_scale * standard_params.exaggeration
    assert bool(sample.is_river) == bool(_river_gate(generator, 0.0, 0.0)[0])


def test_river_flag_matches_the_channel_gate(standard_params, make_generator):
    generator = make_generator(standard_params)
    axis = np.linspace(-6000.0, 6000.0, 61)
    x, z = np.meshgrid(axis, axis)
    sample = generator.get_terrain_data(x, z)
    gate = _river_gate(generator, x.ravel(), z.ravel()).reshape(x.shape)
    assert gate.any()
    assert np.array_equal(sample.is_river, gate)


@pytest.mark.parametrize("topology", ["Dunes", "Canyons"])
@pytest.mark.parametrize("river_depth", [0.5, 1.0, 3.0])
def test_rivers_never_carve_dunes_or_canyons(make_generator, topology, river_depth):
    axis = np.linspace(-4000.0, 4000.0, 41)
    x, z = np.meshgrid(axis, axis)
    sample = make_generator(topology=topology, river_depth=river_depth).get_terrain_data(x, z)
    assert not sample.is_river.any()


def test_river_flag_is_found_somewhere_on_a_large_map(make_generator):
    axis = np.linspace(-8000.0, 8000.0, 81)
    x, z = np.meshgrid(axis, axis)
    sample = make_generator(topology="Standard", river_depth=1.0).get_terrain_data(x, z)
    assert sample.is_river.any()


def test_river_depth_zero_disables_rivers(make_generator, sample_grid):
    x, z = sample_grid
    sample = make_generator(river_depth=0.0).get_terrain_data(x, z)
    assert not sample.is_river.any()


@pytest.mark.parametrize("generation_type", ["Island", "Archipelago"])
def test_island_far_field_sinks_to_the_sea_floor(make_generator, generation_type):
    params = TerrainParameters(
        generation_type=generation_type, map_size=2048.0, river_depth=0.0, terrace_steps=0,
    )
    generator = make_generator(params)
    angles = np.linspace(0.0, 2 * np.pi, 16, endpoint=False)
    radius = params.map_size * 0.5 * 1.05
    heights = generator.get_height(radius * np.cos(angles), radius * np.sin(angles))
    assert np.allclose(heights, -0.2 * params.height_scale)


def test_infinite_worlds_are_not_masked(make_generator):
    params = TerrainParameters(map_size=1024.0, river_depth=0.0)
    heights = make_generator(params).get_height(np.array([5000.0, -7000.0]), np.array([3000.0, 100.0]))
    assert not np.allclose(heights, -0.2 * params.height_scale)


def test_terracing_is_idempotent_within_one_step():
    values = np.linspace(-0.3, 1.2, 301)
    for steps in (2, 5, 12):
        once = gen.terrace(values, steps)
        twice = gen.terrace(once, steps)
        assert np.all(np.abs(twice - once) < 1.0 / steps)


def test_quantize_rounds_half_up():
    assert gen.quantize(np.array([0.0625]), 8)[0] == 0.125
    assert gen.quantize(np.array([-0.0625]), 8)[0] == 0.0


def test_smoothstep_supports_reversed_edges():
    assert gen.smoothstep(0.95, 0.6, 1.2) == 0.0
    assert gen.smoothstep(0.95, 0.6, 0.5) == 1.0
    assert gen.smoothstep(0.0, 1.0, 0.5) == pytest.approx(0.5)


def test_exaggeration_is_anchored_and_monotonic():
    values = np.linspace(-0.1, 1.0, 50)
    curved = gen.apply_exaggeration(values, 1.2, age=0.2)
    assert gen.apply_exaggeration(np.array([0.0]), 1.2, age=0.2)[0] == pytest.approx(0.0)
    assert np.all(np.diff(curved) >= 0.0)


def test_old_terrain_uses_a_gentler_exaggeration():
    young = gen.apply_exaggeration(np.array([0.5]), 2.0, age=0.2)
    old = gen.apply_exaggeration(np.array([0.5]), 2.0, age=0.9)
    assert old[0] > young[0]


def test_climate_is_clamped_and_cooled_by_altitude(make_generator, sample_grid):
    x, z = sample_grid
    generator = make_generator(temperature_offset=0.3, humidity_offset=-0.3)
    low = generator.get_climate(x, z, np.zeros_like(x))
    high = generator.get_climate(x, z, np.full_like(x, 800.0))

    for field in (low.temperature, low.humidity, high.temperature, high.humidity):
        assert np.all((field >= 0.0) & (field <= 1.0))
    assert np.all(high.temperature <= low.temperature)
    assert np.all(high.humidity >= low.humidity)


def test_negative_heights_do_not_warm_the_climate(make_generator, sample_grid):
    x, z = sample_grid
    generator = make_generator()
    sea_level = generator.get_temperature(x, z, np.zeros_like(x))
    trench = generator.get_temperature(x, z, np.full_like(x, -300.0))
    assert np.array_equal(sea_level, trench)


def test_slope_is_zero_only_on_flat_ground(make_generator, sample_grid):
    x, z = sample_grid
    slope = make_generator(topology="Alpine").get_slope(x, z)
    assert slope.shape == x.shape
    assert np.all(slope >= 0.0)
    assert np.any(slope > 0.0)


def test_coordinate_grid_spans_the_map(make_generator):
    generator = make_generator(map_size=1000.0)
    x, z = generator.get_coordinate_grid(10)
    assert x.shape == (11, 11)
    assert x.min() == -500.0 and x.max() == 500.0
    assert z.min() == -500.0 and z.max() == 500.0


@pytest.mark.parametrize("age,freq_mult,amp_mult", [(0.2, 2.0, 1.0), (0.3, 0.5, 0.3), (0.8, 0.5, 0.3)])
def test_detail_strands_only_touch_land_above_the_shoreline_band(make_generator, sample_grid, age, freq_mult, amp_mult):
    x, z = sample_grid
    base = TerrainParameters(topology="Standard", terrain_age=age)
    bare = make_generator(base, detail_strand_frequency=0.0).get_height(x, z)
    detailed = make_generator(base).get_height(x, z)

    detail_scale = base.detail_strand_frequency * 0.05 * freq_mult
    strands = noise.noise3(x * detail_scale, base.seed, z * detail_scale) * 0.8 * amp_mult
    expected = np.where(bare > 5.0, bare + strands, bare)
    assert np.any(bare > 5.0)
    assert np.allclose(detailed, expected, rtol=0.0, atol=1e-9)


def test_without_detail_heights_are_the_bare_scaled_profile(make_generator, sample_grid):
    x, z = sample_grid
    params = TerrainParameters(topology="Alpine", detail_strand_frequency=0.0, height_scale=900.0)
    full = make_generator(params).get_height(x, z)
    half = make_generator(params, height_scale=450.0).get_height(x, z)
    assert np.allclose(full, 2.0 * half, rtol=0.0, atol=1e-9)


def test_detail_breaks_the_linear_height_scaling(make_generator, sample_grid):
    x, z = sample_grid
    params = TerrainParameters(topology="Alpine", height_scale=900.0)
    full = make_generator(params).get_height(x, z)
    half = make_generator(params, height_scale=450.0).get_height(x, z)
    assert not np.allclose(full, 2.0 * half, rtol=0.0, atol=1e-9)


def test_zero_erosion_leaves_coordinates_unwarped(make_generator, sample_grid):
    x, z = sample_grid
    wx, wz = make_generator(erosion_strength=0.0, terrain_age=0.9)._domain_warp(x, z)
    assert np.array_equal(wx, x)
    assert np.array_equal(wz, z)


@pytest.mark.parametrize("erosion,age", [(0.25, 0.2), (0.5, 0.8), (1.0, 0.0)])
def test_domain_warp_scales_with_erosion_and_age(make_generator, sample_grid, erosion, age):
    x, z = sample_grid
    generator = make_generator(erosion_strength=erosion, terrain_age=age)
    p = generator.params
    wx, wz = generator._domain_warp(x, z)

    factor = erosion * 25.0 * (1 + age * 0.5)
    kwargs = dict(seed=p.seed, scale=p.scale * 1.5, octaves=2, persistence=p.persistence, lacunarity=p.lacunarity)
    qx = noise.fbm(x, z, **kwargs)
    qz = noise.fbm(x + 5.2, z + 1.3, **kwargs)
    assert np.allclose(wx - x, qx * factor)
    assert np.allclose(wz - z, qz * factor)
    assert np.any(wx != x)


@pytest.mark.parametrize("topology", ["Standard", "Alpine"])
def test_octaves_and_peak_roughness_are_carried_but_do_not_shape_heights(make_generator, sample_grid, topology):
    x, z = sample_grid
    reference = make_generator(topology=topology).get_terrain_data(x, z)
    changed = make_generator(topology=topology, octaves=2, peak_roughness=0.9)
    assert changed.params.octaves == 2
    assert np.array_equal(changed.get_terrain_data(x, z).height, reference.height)
