"""Scene-level primitive storage and nearest-hit queries.

The scene is a flat, append-only list of spheres stored in Taichi fields. A
query visits every sphere once, shrinking the accepted interval to the nearest
hit found so far, and returns that nearest hit. There is no spatial index; the
scenes this renderer targets are small enough for a linear scan.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.raytrace.scene.intersection import add_sphere, clear_scene, hit_scene
    >>> clear_scene()
    >>> add_sphere(vec3(0, 0, -1), 0.5, material_id=0)
    >>> # Use hit_scene within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from src.raytrace.core.ray import Ray
from src.raytrace.geometry.sphere import HitRecord, Sphere, hit_sphere, make_miss_record

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Maximum number of primitives supported in the scene
MAX_SPHERES = 1024

# Sphere storage: Structure of Arrays layout for GPU efficiency
sphere_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_radii = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
sphere_material_ids = ti.field(dtype=ti.i32, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Clear all primitives from the scene.

    Resets the primitive count to zero. The actual field data is not
    cleared but will be overwritten when new primitives are added.
    """
    num_spheres[None] = 0


def add_sphere(center: vec3, radius: float, material_id: int = 0) -> int:
    """Add a sphere to the scene.

    Args:
        center: The center point of the sphere.
        radius: The radius of the sphere. Must be positive.
        material_id: The material ID to associate with this sphere.

    Returns:
        The index of the added sphere.

    Raises:
        ValueError: If radius is not positive.
        RuntimeError: If the maximum number of spheres is exceeded.
    """
    if not radius > 0.0:
        raise ValueError(f"Sphere radius must be positive, got {radius}")

    idx = num_spheres[None]
    if idx >= MAX_SPHERES:
        raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")
    sphere_centers[idx] = center
    sphere_radii[idx] = radius
    sphere_material_ids[idx] = material_id
    num_spheres[None] = idx + 1
    return idx


def get_sphere_count() -> int:
    """Get the number of spheres in the scene."""
    return int(num_spheres[None])


@ti.func
def get_sphere(index: ti.i32) -> Sphere:
    """Load the sphere at the given storage index."""
    return Sphere(
        center=sphere_centers[index],
        radius=sphere_radii[index],
        material_id=sphere_material_ids[index],
    )


@ti.func
def hit_scene(ray: Ray, t_min: ti.f32, t_max: ti.f32) -> HitRecord:
    """Find the nearest intersection of a ray with the scene.

    Every sphere is tested exactly once, in insertion order. Each accepted
    hit tightens the upper bound for the spheres after it, so the record
    left at the end belongs to the nearest surface in (t_min, t_max).

    Args:
        ray: The ray to trace.
        t_min: Exclusive lower bound on accepted t.
        t_max: Exclusive upper bound on accepted t.

    Returns:
        The nearest HitRecord, or a miss record if nothing was hit.
    """
    closest_so_far = t_max
    result = make_miss_record()

    n_spheres = num_spheres[None]
    for i in range(n_spheres):
        rec = hit_sphere(ray, get_sphere(i), t_min, closest_so_far)
        if rec.hit == 1:
            closest_so_far = rec.t
            result = rec

    return result
