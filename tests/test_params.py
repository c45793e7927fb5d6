"""Tests for the parameter record and its config parsing."""
import logging

import pytest

from terrain_generator.params import GenerationType, TerrainParameters, Topology, ViewMode


def test_defaults_follow_the_reference_world():
    params = TerrainParameters()
    assert params.seed == 8888
    assert params.topology is Topology.ALPINE
    assert params.generation_type is GenerationType.INFINITE
    assert params.view_mode is ViewMode.STANDARD
    assert params.water_height == pytest.approx(180.0)


@pytest.mark.parametrize("enum_type,bad", [
    (Topology, "Mountains"),
    (GenerationType, "Continent"),
    (ViewMode, "Wireframe"),
])
def test_unknown_variants_fail_fast(enum_type, bad):
    with pytest.raises(ValueError, match="Unrecognized"):
        enum_type.parse(bad)


def test_constructor_parses_enum_strings():
    params = TerrainParameters(topology="Canyons", generation_type="Island", view_mode="Humidity")
    assert params.topology is Topology.CANYONS
    assert params.generation_type is GenerationType.ISLAND
    assert params.view_mode is ViewMode.HUMIDITY
    with pytest.raises(ValueError):
        TerrainParameters(topology="canyons")


def test_from_config_overrides_defaults():
    params = TerrainParameters.from_config({"seed": "42", "scale": 900, "enable_snow": False, "topology": "Dunes"})
    assert params.seed == 42
    assert params.scale == 900.0
    assert params.enable_snow is False
    assert params.enable_desert is True
    assert params.topology is Topology.DUNES


def test_from_config_warns_about_unknown_keys(caplog):
    logger = logging.getLogger("terrain_generator.tests.params")
    with caplog.at_level(logging.WARNING):
        TerrainParameters.from_config({"seed": 1, "mountain_height": 3}, logger=logger)
    assert "mountain_height" in caplog.text


def test_config_round_trip():
    params = TerrainParameters(seed=7, topology="Standard", generation_type="Archipelago", enable_coral=False)
    config = params.to_config()
    assert config["topology"] == "Standard"
    assert TerrainParameters.from_config(config) == params


def test_parameters_are_immutable():
    params = TerrainParameters()
    with pytest.raises(AttributeError):
        params.seed = 1
    assert params.with_overrides(seed=1).seed == 1
    assert params.seed == 8888


@pytest.mark.parametrize("value", ["false", "true", 0, 1, None])
def test_biome_toggles_must_be_booleans(value):
    with pytest.raises(ValueError, match="enable_water"):
        TerrainParameters.from_config({"enable_water": value})


def test_biome_toggles_accept_json_booleans():
    params = TerrainParameters.from_config({"enable_water": False, "enable_coral": True})
    assert params.enable_water is False
    assert params.enable_coral is True
