"""Metal (specular reflective) material implementation.

A metal mirrors the incoming direction about the surface normal:
    R = I - 2(I . N)N

and then perturbs the mirrored direction by a random point in a sphere of
radius ``fuzz``. Perturbations that push the ray below the surface are
absorbed; this is what darkens very rough metals at grazing angles.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.raytrace.materials.metal import scatter_metal
    >>> # Use within a Taichi kernel:
    >>> # scattered, attenuation, did_scatter = scatter_metal(
    >>> #     albedo, fuzz, ray_in, rec, stream
    >>> # )
"""

import taichi as ti
import taichi.math as tm

from src.raytrace.core.ray import Ray, make_ray, normalize, reflect
from src.raytrace.core.sampler import random_in_unit_sphere
from src.raytrace.geometry.sphere import HitRecord
from src.raytrace.materials.lambertian import validate_albedo

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def scatter_metal(
    albedo: vec3,
    fuzz: ti.f32,
    ray_in: Ray,
    rec: HitRecord,
    stream: ti.i32,
):
    """Scatter a ray off a metal surface.

    A random point is drawn even when fuzz is 0, so the number of draws per
    bounce does not depend on material parameters.

    Args:
        albedo: The reflective color (RGB).
        fuzz: The reflection perturbation radius in [0, 1].
        ray_in: The incoming ray.
        rec: The hit record of the intersection being shaded.
        stream: Random stream of the pixel being rendered.

    Returns:
        A tuple of (scattered, attenuation, did_scatter) where:
        - scattered: Ray from the hit point along the (fuzzed) mirror direction.
        - attenuation: The albedo.
        - did_scatter: 1 if the ray leaves above the surface, 0 if absorbed.
    """
    reflected = reflect(normalize(ray_in.direction), rec.normal)
    scattered = make_ray(rec.point, reflected + fuzz * random_in_unit_sphere(stream))
    attenuation = albedo

    did_scatter = 1
    if tm.dot(scattered.direction, rec.normal) <= 0.0:
        did_scatter = 0

    return scattered, attenuation, did_scatter


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of metal materials in the scene
MAX_METAL_MATERIALS = 256

# Storage for metal material properties
metal_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_METAL_MATERIALS)
metal_fuzzes = ti.field(dtype=ti.f32, shape=MAX_METAL_MATERIALS)
num_metal_materials = ti.field(dtype=ti.i32, shape=())


def clear_metal_materials() -> None:
    """Clear all metal materials.

    Resets the material count to zero. Existing data in the field will be
    overwritten when new materials are added.
    """
    num_metal_materials[None] = 0


def clamp_fuzz(fuzz: float) -> float:
    """Clamp a fuzz value into [0, 1]."""
    return min(max(fuzz, 0.0), 1.0)


def add_metal_material(
    albedo: tuple[float, float, float],
    fuzz: float = 0.0,
) -> int:
    """Add a metal material to the material registry.

    Args:
        albedo: The reflective color as (R, G, B) tuple.
            Each component should be in [0, 1].
        fuzz: The reflection perturbation radius. Default is 0 (perfect
            mirror). Values are clamped to [0, 1].

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If any albedo component is outside [0, 1].
    """
    validate_albedo(albedo)

    idx = num_metal_materials[None]
    if idx >= MAX_METAL_MATERIALS:
        raise RuntimeError(
            f"Maximum number of metal materials ({MAX_METAL_MATERIALS}) exceeded"
        )

    metal_albedos[idx] = vec3(albedo[0], albedo[1], albedo[2])
    metal_fuzzes[idx] = clamp_fuzz(fuzz)
    num_metal_materials[None] = idx + 1
    return idx


def get_metal_material_count() -> int:
    """Get the number of metal materials in the registry."""
    return int(num_metal_materials[None])


@ti.func
def get_metal_albedo(material_idx: ti.i32) -> vec3:
    """Get the albedo for a metal material by index."""
    return metal_albedos[material_idx]


@ti.func
def get_metal_fuzz(material_idx: ti.i32) -> ti.f32:
    """Get the fuzz for a metal material by index."""
    return metal_fuzzes[material_idx]


@ti.func
def scatter_metal_by_id(
    material_idx: ti.i32,
    ray_in: Ray,
    rec: HitRecord,
    stream: ti.i32,
):
    """Scatter off a registered metal material.

    Convenience function that looks up the albedo and fuzz from the
    material registry and calls scatter_metal.

    Returns:
        A tuple of (scattered, attenuation, did_scatter).
    """
    albedo = get_metal_albedo(material_idx)
    fuzz = get_metal_fuzz(material_idx)
    return scatter_metal(albedo, fuzz, ray_in, rec, stream)
