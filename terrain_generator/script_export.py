# terrain_generator/script_export.py

"""
================================================================================
VOXEL HOST SCRIPT EXPORT
================================================================================
Renders a self-contained Lua program for an external voxel-terrain host. The
program re-derives heights, biome materials and voxel occupancy inside the
host from the same parameters; it is not a replay of values computed here.

Two noise backends are available:
    - "native":      the host's coordinate-only noise scaled to [-1, 1].
                     Same shape and range as this package's noise, not the
                     same values.
    - "permutation": an embedded copy of this package's permutation-table
                     noise, so the host reproduces the exact same fields.
================================================================================
"""
import os
from string import Template

from . import config as DEFAULTS
from .noise import PERMUTATION_TABLE
from .params import TerrainParameters

TEMPLATE_PATH = os.path.join(os.path.dirname(__file__), "templates", "voxel_terrain.lua")

NOISE_BACKENDS = ("native", "permutation")

_NATIVE_NOISE = """\
-- Host noise is approx [-0.5, 0.5]; scale it to [-1, 1].
local function noise(x, y, z)
    return math.noise(x, y, z) * 2
end"""

_PERMUTATION_NOISE = Template("""\
-- Improved Perlin noise on a fixed permutation table (never reshuffled).
local PERM = {$PERMUTATION}

local function fade(t) return t * t * t * (t * (t * 6 - 15) + 10) end
local function nlerp(t, a, b) return a + t * (b - a) end

local function grad(hash, x, y, z)
    local h = bit32.band(hash, 15)
    local u = h < 8 and x or y
    local v
    if h < 4 then
        v = y
    elseif h == 12 or h == 14 then
        v = x
    else
        v = z
    end
    if bit32.band(h, 1) ~= 0 then u = -u end
    if bit32.band(h, 2) ~= 0 then v = -v end
    return u + v
end

-- PERM is 1-indexed, so every lookup adds one.
local function p(i) return PERM[i + 1] end

local function noise(x, y, z)
    local fx, fy, fz = math.floor(x), math.floor(y), math.floor(z)
    local xi, yi, zi = bit32.band(fx, 255), bit32.band(fy, 255), bit32.band(fz, 255)
    local xf, yf, zf = x - fx, y - fy, z - fz
    local u, v, w = fade(xf), fade(yf), fade(zf)

    local a = p(xi) + yi
    local aa = p(a) + zi
    local ab = p(a + 1) + zi
    local b = p(xi + 1) + yi
    local ba = p(b) + zi
    local bb = p(b + 1) + zi

    return nlerp(w,
        nlerp(v,
            nlerp(u, grad(p(aa), xf, yf, zf), grad(p(ba), xf - 1, yf, zf)),
            nlerp(u, grad(p(ab), xf, yf - 1, zf), grad(p(bb), xf - 1, yf - 1, zf))),
        nlerp(v,
            nlerp(u, grad(p(aa + 1), xf, yf, zf - 1), grad(p(ba + 1), xf - 1, yf, zf - 1)),
            nlerp(u, grad(p(ab + 1), xf, yf - 1, zf - 1), grad(p(bb + 1), xf - 1, yf - 1, zf - 1))))
end""")


def _lua_value(value) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return repr(value)
    return str(value)


def _noise_function(noise_backend: str) -> str:
    if noise_backend == "native":
        return _NATIVE_NOISE
    if noise_backend == "permutation":
        return _PERMUTATION_NOISE.substitute(PERMUTATION=", ".join(str(v) for v in PERMUTATION_TABLE.tolist()))
    raise ValueError(f"Unrecognized noise backend {noise_backend!r}; expected one of {NOISE_BACKENDS}")


def generate_voxel_script(params, noise_backend: str = "native") -> str:
    """
    Returns the Lua source for the given parameters.

    Args:
        params (TerrainParameters | dict): The world to generate.
        noise_backend (str): "native" or "permutation".
    """
    if not isinstance(params, TerrainParameters):
        params = TerrainParameters.from_config(params)

    with open(TEMPLATE_PATH, "r") as f:
        template = Template(f.read())

    values = {key.upper(): _lua_value(value) for key, value in params.to_config().items()}
    values.update(
        NOISE_BACKEND=noise_backend,
        NOISE_FUNCTION=_noise_function(noise_backend),
        BATCH_SIZE_VOXELS=DEFAULTS.BATCH_SIZE_VOXELS,
        VOXEL_RESOLUTION=DEFAULTS.VOXEL_RESOLUTION,
        BATCHES_PER_YIELD=DEFAULTS.BATCHES_PER_YIELD,
    )
    return template.substitute(values)
