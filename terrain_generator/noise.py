# terrain_generator/noise.py

"""
================================================================================
NOISE GENERATION UTILITIES
================================================================================
This module provides 3D gradient (improved Perlin) noise and the fractal
compositors built on top of it. It is designed to be a pure, stateless utility.

The permutation table is the classic fixed 256-entry table, duplicated to 512
entries for overflow-free indexing. It is created once at import, is read-only,
and is NEVER reshuffled by seed: callers decorrelate layers by offsetting the
noise-space Y axis instead (see `seed_axis`). This keeps the noise
interchangeable with coordinate-only noise primitives on other platforms.

Data Contract:
---------------
- Inputs:
    - x, z: Scalars or NumPy arrays of world coordinates (same shape).
    - seed, scale, octaves, persistence, lacunarity: Fractal parameters.
- Outputs:
    - A NumPy array (or 0-d array for scalar input) of the input's shape.
      Standard and billow fractals lie in approximately [-1, 1], ridged in [0, 1].
- Side Effects: None.
- Invariants: The shape of the output array matches the shape of input x and z.
================================================================================
"""

import numpy as np
from numba import njit

from . import config as DEFAULTS

_BASE_PERMUTATION = (
    151, 160, 137, 91, 90, 15,
    131, 13, 201, 95, 96, 53, 194, 233, 7, 225, 140, 36, 103, 30, 69, 142, 8, 99, 37, 240, 21, 10, 23,
    190, 6, 148, 247, 120, 234, 75, 0, 26, 197, 62, 94, 252, 219, 203, 117, 35, 11, 32, 57, 177, 33,
    88, 237, 149, 56, 87, 174, 20, 125, 136, 171, 168, 68, 175, 74, 165, 71, 134, 139, 48, 27, 166,
    77, 146, 158, 231, 83, 111, 229, 122, 60, 211, 133, 230, 220, 105, 92, 41, 55, 46, 245, 40, 244,
    102, 143, 54, 65, 25, 63, 161, 1, 216, 80, 73, 209, 76, 132, 187, 208, 89, 18, 169, 200, 196,
    135, 130, 116, 188, 159, 86, 164, 100, 109, 198, 173, 186, 3, 64, 52, 217, 226, 250, 124, 123,
    5, 202, 38, 147, 118, 126, 255, 82, 85, 212, 207, 206, 59, 227, 47, 16, 58, 17, 182, 189, 28, 42,
    223, 183, 170, 213, 119, 248, 152, 2, 44, 154, 163, 70, 221, 153, 101, 155, 167, 43, 172, 9,
    129, 22, 39, 253, 19, 98, 108, 110, 79, 113, 224, 232, 178, 185, 112, 104, 218, 246, 97, 228,
    251, 34, 242, 193, 238, 210, 144, 12, 191, 179, 162, 241, 81, 51, 145, 235, 249, 14, 239, 107,
    49, 192, 214, 31, 181, 199, 106, 157, 184, 84, 204, 176, 115, 121, 50, 45, 127, 4, 150, 254,
    138, 236, 205, 93, 222, 114, 67, 29, 24, 72, 243, 141, 128, 195, 78, 66, 215, 61, 156, 180,
)

# To remove the need for index wrapping, double the permutation table length.
PERMUTATION_TABLE = np.array(_BASE_PERMUTATION * 2, dtype=np.int64)
PERMUTATION_TABLE.setflags(write=False)

# Fractal modes understood by the compiled compositor.
_MODE_STANDARD = 0
_MODE_RIDGED = 1
_MODE_BILLOW = 2


@njit
def _lerp(t, a, b):
    "Linear interpolation."
    return a + t * (b - a)


@njit
def _fade(t):
    "6t^5 - 15t^4 + 10t^3"
    return t * t * t * (t * (t * 6 - 15) + 10)


@njit
def _gradient(h, x, y, z):
    """Dot product with one of the 12 edge gradients (16-case selection)."""
    h = h & 15
    u = x if h < 8 else y
    if h < 4:
        v = y
    elif h == 12 or h == 14:
        v = x
    else:
        v = z
    return (u if (h & 1) == 0 else -u) + (v if (h & 2) == 0 else -v)


@njit
def perlin_noise_3d(p, x, y, z):
    """
    Improved Perlin noise at a single point using a pre-computed permutation
    table. Returns a value in approximately [-1, 1].
    """
    fx = np.floor(x)
    fy = np.floor(y)
    fz = np.floor(z)

    xi = int(fx) & 255
    yi = int(fy) & 255
    zi = int(fz) & 255

    xf = x - fx
    yf = y - fy
    zf = z - fz

    u = _fade(xf)
    v = _fade(yf)
    w = _fade(zf)

    a = p[xi] + yi
    aa = p[a] + zi
    ab = p[a + 1] + zi
    b = p[xi + 1] + yi
    ba = p[b] + zi
    bb = p[b + 1] + zi

    return _lerp(w,
                 _lerp(v,
                       _lerp(u, _gradient(p[aa], xf, yf, zf), _gradient(p[ba], xf - 1, yf, zf)),
                       _lerp(u, _gradient(p[ab], xf, yf - 1, zf), _gradient(p[bb], xf - 1, yf - 1, zf))),
                 _lerp(v,
                       _lerp(u, _gradient(p[aa + 1], xf, yf, zf - 1), _gradient(p[ba + 1], xf - 1, yf, zf - 1)),
                       _lerp(u, _gradient(p[ab + 1], xf, yf - 1, zf - 1), _gradient(p[bb + 1], xf - 1, yf - 1, zf - 1))))


@njit
def _noise_flat(p, xs, y, zs):
    out = np.empty(xs.size)
    for i in range(xs.size):
        out[i] = perlin_noise_3d(p, xs[i], y, zs[i])
    return out


@njit
def _fractal_flat(p, xs, zs, seed_y, base_frequency, octaves, persistence, lacunarity, mode):
    """
    Sums `octaves` layers of noise, normalised by the running amplitude sum so
    the result stays within the base noise's range for any octave count.
    """
    out = np.empty(xs.size)
    for i in range(xs.size):
        total = 0.0
        frequency = base_frequency
        amplitude = 1.0
        max_amplitude = 0.0
        for _ in range(octaves):
            n = perlin_noise_3d(p, xs[i] * frequency, seed_y, zs[i] * frequency)
            if mode == _MODE_RIDGED:
                n = 1.0 - abs(n)
                n = n * n
            elif mode == _MODE_BILLOW:
                n = 2.0 * abs(n) - 1.0
            total += n * amplitude
            max_amplitude += amplitude
            amplitude *= persistence
            frequency *= lacunarity
        out[i] = total / max_amplitude
    return out


def seed_axis(seed, salt: int = 0) -> float:
    """The noise-space Y coordinate that stands in for a seeded layer."""
    return float((seed + salt) * DEFAULTS.SEED_AXIS_MULTIPLIER)


def _as_pair(x, z):
    x_arr, z_arr = np.broadcast_arrays(np.asarray(x, dtype=np.float64), np.asarray(z, dtype=np.float64))
    return x_arr.shape, np.ascontiguousarray(x_arr).ravel(), np.ascontiguousarray(z_arr).ravel()


def noise3(x, y, z) -> np.ndarray:
    """
    Raw single-octave noise. `y` is a scalar (usually a seed axis value), `x`
    and `z` are scalars or arrays.
    """
    shape, xs, zs = _as_pair(x, z)
    return _noise_flat(PERMUTATION_TABLE, xs, float(y), zs).reshape(shape)


def _fractal(x, z, seed, salt, scale, octaves, persistence, lacunarity, mode):
    shape, xs, zs = _as_pair(x, z)
    values = _fractal_flat(
        PERMUTATION_TABLE, xs, zs,
        seed_axis(seed, salt), 1.0 / scale,
        int(octaves), float(persistence), float(lacunarity), mode
    )
    return values.reshape(shape)


def fbm(x, z, seed, scale, octaves, persistence=0.5, lacunarity=2.0) -> np.ndarray:
    """Standard fractal Brownian motion. Range approx [-1, 1]."""
    return _fractal(x, z, seed, 0, scale, octaves, persistence, lacunarity, _MODE_STANDARD)


def ridged_fbm(x, z, seed, scale, octaves, persistence=0.5, lacunarity=2.0) -> np.ndarray:
    """Ridged fractal, (1 - |n|)^2 per octave. Range [0, 1] with sharp ridges at 1."""
    return _fractal(x, z, seed, DEFAULTS.RIDGED_SEED_SALT, scale, octaves, persistence, lacunarity, _MODE_RIDGED)


def billow_fbm(x, z, seed, scale, octaves, persistence=0.5, lacunarity=2.0) -> np.ndarray:
    """Billow fractal, 2|n| - 1 per octave. Range approx [-1, 1], rounded relief."""
    return _fractal(x, z, seed, DEFAULTS.BILLOW_SEED_SALT, scale, octaves, persistence, lacunarity, _MODE_BILLOW)
