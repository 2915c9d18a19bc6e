"""Per-pixel random number streams and Monte Carlo sampling utilities.

Every pixel of the render target owns one xorshift32 stream stored in a Taichi
``u32`` field. The parallel render kernel hands each pixel to exactly one
worker, so a stream is never touched by two threads at once and no locking is
needed. Because the streams are indexed by pixel rather than by thread, a
seeded render produces the same bits no matter how many workers run it or in
which order they finish.

Seeding happens on the Python side with NumPy's ``default_rng``; the kernels
only advance the states.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.raytrace.core.sampler import seed_streams, random_float
    >>> seed_streams(1234)
    >>> # Inside a kernel: xi = random_float(pixel_stream(i, j))
"""

import logging

import numpy as np
import taichi as ti
import taichi.math as tm

from src.raytrace.core.config import MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH
from src.raytrace.core.ray import length_squared, normalize

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3

# One stream per pixel of the largest supported render target
MAX_STREAMS = MAX_IMAGE_WIDTH * MAX_IMAGE_HEIGHT

# Upper bound on rejection-sampling attempts; the acceptance rate is ~52%
MAX_REJECTION_ATTEMPTS = 64

# 2^-24: maps the top 24 bits of a state to [0, 1)
_INV_2_POW_24 = 1.0 / 16777216.0

_rng_states = ti.field(dtype=ti.u32, shape=MAX_STREAMS)


def seed_streams(seed: int | None = None) -> int:
    """Seed every random stream.

    Args:
        seed: Any value accepted by ``numpy.random.SeedSequence``. None draws
            fresh entropy from the operating system.

    Returns:
        The entropy actually used, so a non-deterministic render can be
        reproduced later by passing it back in.
    """
    seed_seq = np.random.SeedSequence(seed)
    rng = np.random.default_rng(seed_seq)
    # xorshift32 has a fixed point at zero, so draw from [1, 2^32)
    states = rng.integers(1, 2**32, size=MAX_STREAMS, dtype=np.uint32)
    _rng_states.from_numpy(states)
    logger.debug("Seeded %d random streams (entropy=%s)", MAX_STREAMS, seed_seq.entropy)
    return int(seed_seq.entropy)


def get_stream_state(stream: int) -> int:
    """Get the raw state of a stream (for debugging and tests)."""
    return int(_rng_states[stream])


@ti.func
def pixel_stream(pixel_i: ti.i32, pixel_j: ti.i32) -> ti.i32:
    """Map pixel coordinates to the index of the pixel's private stream."""
    return pixel_j * MAX_IMAGE_WIDTH + pixel_i


@ti.func
def random_float(stream: ti.i32) -> ti.f32:
    """Advance a stream and return a uniform float in [0, 1).

    Args:
        stream: Index of the stream to draw from.

    Returns:
        A uniformly distributed value in [0, 1).
    """
    x = _rng_states[stream]
    x ^= x << ti.u32(13)
    x ^= ti.bit_shr(x, ti.u32(17))
    x ^= x << ti.u32(5)
    _rng_states[stream] = x
    return ti.cast(ti.bit_shr(x, ti.u32(8)), ti.f32) * _INV_2_POW_24


@ti.func
def random_range(stream: ti.i32, lo: ti.f32, hi: ti.f32) -> ti.f32:
    """Return a uniform float in [lo, hi)."""
    return lo + (hi - lo) * random_float(stream)


@ti.func
def random_in_unit_sphere(stream: ti.i32) -> vec3:
    """Generate a random point inside the unit sphere.

    Uses rejection sampling from the enclosing cube, which avoids the
    clustering near the poles that polar parametrizations produce.

    Args:
        stream: Index of the stream to draw from.

    Returns:
        A random point with length < 1.
    """
    p = vec3(0.0, 0.0, 0.0)
    found = False
    # Rejection sampling loop
    for _ in range(MAX_REJECTION_ATTEMPTS):
        if not found:
            p = vec3(
                random_range(stream, -1.0, 1.0),
                random_range(stream, -1.0, 1.0),
                random_range(stream, -1.0, 1.0),
            )
            if length_squared(p) < 1.0:
                found = True
    if not found:
        # 0.48^64 odds; keep the contract rather than return a point outside
        p = vec3(0.0, 0.0, 0.5)
    return p


@ti.func
def random_unit_vector(stream: ti.i32) -> vec3:
    """Generate a random unit vector uniformly distributed on the sphere.

    This is the normalized version of random_in_unit_sphere().
    """
    p = random_in_unit_sphere(stream)
    # A point at the exact origin would not normalize
    if length_squared(p) == 0.0:
        p = vec3(0.0, 0.0, 1.0)
    return normalize(p)
