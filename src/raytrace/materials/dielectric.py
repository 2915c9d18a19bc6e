"""Dielectric (glass/water) material implementation.

This module implements transparent materials with refraction and
angle-dependent reflectance.

Key physics:
    - Snell's law for refraction: n1 * sin(theta1) = n2 * sin(theta2)
    - Schlick's approximation for Fresnel reflectance
    - Total internal reflection when sin(theta_t) > 1

Each bounce either reflects or refracts; reflection is chosen with the
Schlick reflectance as its probability, so averaging many samples per pixel
recovers the angle-dependent mix of reflected and transmitted light.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.raytrace.materials.dielectric import scatter_dielectric
    >>> # Use within a Taichi kernel:
    >>> # scattered, attenuation, did_scatter = scatter_dielectric(
    >>> #     ior, ray_in, rec, stream
    >>> # )
"""

import taichi as ti
import taichi.math as tm

from src.raytrace.core.ray import (
    Ray,
    make_ray,
    normalize,
    reflect,
    refract,
    schlick_reflectance,
)
from src.raytrace.core.sampler import random_float
from src.raytrace.geometry.sphere import HitRecord

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def refraction_ratio(ior: ti.f32, front_face: ti.i32) -> ti.f32:
    """Ratio n_incident / n_transmitted for a ray hitting the given face.

    From outside (front_face=1) the ray goes from air into the material
    (1 / ior); from inside it goes from the material into air (ior).
    """
    ratio = 1.0 / ior
    if front_face == 0:
        ratio = ior
    return ratio


@ti.func
def cannot_refract(ior: ti.f32, ray_in: Ray, rec: HitRecord) -> ti.i32:
    """Determine if total internal reflection will occur.

    Returns:
        1 if no refracted direction exists, 0 otherwise.
    """
    ratio = refraction_ratio(ior, rec.front_face)
    unit_direction = normalize(ray_in.direction)
    cos_theta = tm.min(-tm.dot(unit_direction, rec.normal), 1.0)
    sin_theta = ti.sqrt(1.0 - cos_theta * cos_theta)
    return ratio * sin_theta > 1.0


@ti.func
def scatter_dielectric(
    ior: ti.f32,
    ray_in: Ray,
    rec: HitRecord,
    stream: ti.i32,
):
    """Scatter a ray through or off a dielectric surface.

    Args:
        ior: Index of refraction of the material.
        ray_in: The incoming ray.
        rec: The hit record of the intersection being shaded.
        stream: Random stream of the pixel being rendered.

    Returns:
        A tuple of (scattered, attenuation, did_scatter) where:
        - scattered: The reflected or refracted ray from the hit point.
        - attenuation: White; clear dielectrics absorb nothing.
        - did_scatter: Always 1.
    """
    attenuation = vec3(1.0, 1.0, 1.0)
    ratio = refraction_ratio(ior, rec.front_face)

    unit_direction = normalize(ray_in.direction)
    cos_theta = tm.min(-tm.dot(unit_direction, rec.normal), 1.0)
    sin_theta = ti.sqrt(1.0 - cos_theta * cos_theta)

    # Snell's law has no solution past the critical angle
    must_reflect = ratio * sin_theta > 1.0

    # The random draw is made on every bounce to keep stream usage uniform
    xi = random_float(stream)

    direction = vec3(0.0, 0.0, 0.0)
    if must_reflect or schlick_reflectance(cos_theta, ratio) > xi:
        direction = reflect(unit_direction, rec.normal)
    else:
        direction = refract(unit_direction, rec.normal, ratio)

    scattered = make_ray(rec.point, direction)
    did_scatter = 1

    return scattered, attenuation, did_scatter


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of dielectric materials in the scene
MAX_DIELECTRIC_MATERIALS = 256

# Storage for dielectric material properties
dielectric_iors = ti.field(dtype=ti.f32, shape=MAX_DIELECTRIC_MATERIALS)
num_dielectric_materials = ti.field(dtype=ti.i32, shape=())


def clear_dielectric_materials() -> None:
    """Clear all dielectric materials.

    Resets the material count to zero. Existing data in the field will be
    overwritten when new materials are added.
    """
    num_dielectric_materials[None] = 0


def add_dielectric_material(ior: float = 1.5) -> int:
    """Add a dielectric material to the material registry.

    Args:
        ior: Index of refraction. Default is 1.5 (typical glass). Must be
            positive; values below 1.0 model a less dense medium such as an
            air bubble inside water.

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If IOR is not positive.
    """
    if not ior > 0.0:
        raise ValueError(f"Index of refraction must be positive, got {ior}")

    idx = num_dielectric_materials[None]
    if idx >= MAX_DIELECTRIC_MATERIALS:
        raise RuntimeError(
            f"Maximum number of dielectric materials ({MAX_DIELECTRIC_MATERIALS}) exceeded"
        )

    dielectric_iors[idx] = ior
    num_dielectric_materials[None] = idx + 1
    return idx


def get_dielectric_material_count() -> int:
    """Get the number of dielectric materials in the registry."""
    return int(num_dielectric_materials[None])


@ti.func
def get_dielectric_ior(material_idx: ti.i32) -> ti.f32:
    """Get the IOR for a dielectric material by index."""
    return dielectric_iors[material_idx]


@ti.func
def scatter_dielectric_by_id(
    material_idx: ti.i32,
    ray_in: Ray,
    rec: HitRecord,
    stream: ti.i32,
):
    """Scatter off a registered dielectric material.

    Returns:
        A tuple of (scattered, attenuation, did_scatter).
    """
    ior = get_dielectric_ior(material_idx)
    return scatter_dielectric(ior, ray_in, rec, stream)
