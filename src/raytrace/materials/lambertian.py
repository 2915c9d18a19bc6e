"""Lambertian (ideal diffuse) material implementation.

The scattered direction is the surface normal plus a random unit vector, which
distributes outgoing rays with a cos(theta) density about the normal and so
approximates ideal diffuse reflection without an explicit pdf weight:
the attenuation of every bounce is simply the albedo.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.raytrace.materials.lambertian import scatter_lambertian
    >>> # Use within a Taichi kernel:
    >>> # scattered, attenuation, did_scatter = scatter_lambertian(albedo, rec, stream)
"""

import taichi as ti
import taichi.math as tm

from src.raytrace.core.ray import make_ray, near_zero
from src.raytrace.core.sampler import random_unit_vector
from src.raytrace.geometry.sphere import HitRecord

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def scatter_lambertian(albedo: vec3, rec: HitRecord, stream: ti.i32):
    """Scatter a ray off a diffuse surface.

    Args:
        albedo: The diffuse reflectance color (RGB).
        rec: The hit record of the intersection being shaded.
        stream: Random stream of the pixel being rendered.

    Returns:
        A tuple of (scattered, attenuation, did_scatter) where:
        - scattered: Ray from the hit point along normal + random unit vector.
        - attenuation: The albedo, independent of the incoming direction.
        - did_scatter: Always 1; diffuse surfaces never absorb a path outright.
    """
    scatter_direction = rec.normal + random_unit_vector(stream)

    # A random vector nearly opposite the normal cancels it out
    if near_zero(scatter_direction):
        scatter_direction = rec.normal

    scattered = make_ray(rec.point, scatter_direction)
    attenuation = albedo
    did_scatter = 1

    return scattered, attenuation, did_scatter


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of Lambertian materials in the scene
MAX_LAMBERTIAN_MATERIALS = 256

# Storage for Lambertian material properties
lambertian_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LAMBERTIAN_MATERIALS)
num_lambertian_materials = ti.field(dtype=ti.i32, shape=())


def clear_lambertian_materials() -> None:
    """Clear all Lambertian materials.

    Resets the material count to zero. Existing data in the field will be
    overwritten when new materials are added.
    """
    num_lambertian_materials[None] = 0


def validate_albedo(albedo: tuple[float, float, float]) -> None:
    """Check that an albedo is an RGB triple with components in [0, 1].

    Raises:
        ValueError: If albedo does not have three components or any component
            is outside [0, 1].
    """
    if len(albedo) != 3:
        raise ValueError(f"Albedo must have 3 components, got {len(albedo)}")
    for i, component in enumerate(albedo):
        if component < 0.0 or component > 1.0:
            raise ValueError(
                f"Albedo component {i} = {component} is outside [0, 1]. "
                "This would violate energy conservation."
            )


def add_lambertian_material(albedo: tuple[float, float, float]) -> int:
    """Add a Lambertian material to the material registry.

    Args:
        albedo: The diffuse reflectance color as (R, G, B) tuple.
            Each component should be in [0, 1] for energy conservation.

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If any albedo component is outside [0, 1].
    """
    validate_albedo(albedo)

    idx = num_lambertian_materials[None]
    if idx >= MAX_LAMBERTIAN_MATERIALS:
        raise RuntimeError(
            f"Maximum number of Lambertian materials ({MAX_LAMBERTIAN_MATERIALS}) exceeded"
        )

    lambertian_albedos[idx] = vec3(albedo[0], albedo[1], albedo[2])
    num_lambertian_materials[None] = idx + 1
    return idx


def get_lambertian_material_count() -> int:
    """Get the number of Lambertian materials in the registry."""
    return int(num_lambertian_materials[None])


@ti.func
def get_lambertian_albedo(material_idx: ti.i32) -> vec3:
    """Get the albedo for a Lambertian material by index."""
    return lambertian_albedos[material_idx]


@ti.func
def scatter_lambertian_by_id(material_idx: ti.i32, rec: HitRecord, stream: ti.i32):
    """Scatter off a registered Lambertian material.

    Convenience function that looks up the albedo from the material registry
    and calls scatter_lambertian.

    Returns:
        A tuple of (scattered, attenuation, did_scatter).
    """
    albedo = get_lambertian_albedo(material_idx)
    return scatter_lambertian(albedo, rec, stream)
