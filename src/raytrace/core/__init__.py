"""Core rendering module.

Components:
    config: Render settings and Taichi backend initialization
    ray: Ray data structure and vector algebra
    sampler: Per-pixel random streams and sphere sampling
    integrator: Radiance estimator and the parallel render kernel
    progressive: Batched sample accumulation with progress reporting
"""

from .ray import (
    Ray,
    cross,
    dot,
    length,
    length_squared,
    make_ray,
    near_zero,
    normalize,
    ray_at,
    reflect,
    refract,
    schlick_reflectance,
    vec3,
)

# Note: integrator, sampler and progressive are NOT imported here because they
# allocate Taichi fields, which requires ti.init() to have run first.

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "length",
    "length_squared",
    "normalize",
    "dot",
    "cross",
    "reflect",
    "refract",
    "schlick_reflectance",
    "near_zero",
]
