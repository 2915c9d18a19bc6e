"""Sphere primitive and ray-sphere intersection.

This module provides the Sphere dataclass, the HitRecord produced by every
successful intersection test, and the intersection routine itself.

The intersection solves the half-b form of the ray-sphere quadratic, tests the
nearer root first and falls back to the farther one, and accepts a root only
strictly inside (t_min, t_max). The lower bound keeps a ray leaving a surface
from re-hitting that surface at t ~ 0.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.raytrace.geometry.sphere import Sphere, HitRecord, hit_sphere
    >>> sphere = Sphere(center=ti.math.vec3(0, 0, -1), radius=0.5, material_id=0)
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from src.raytrace.core.ray import Ray, length_squared, ray_at

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class Sphere:
    """A sphere defined by center point, radius and material.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere (positive float).
        material_id: Handle of the (shared, immutable) material.
    """

    center: vec3
    radius: ti.f32
    material_id: ti.i32


@ti.dataclass
class HitRecord:
    """Record of a ray-surface intersection.

    A record lives only for one intersection-and-shading step.

    Attributes:
        hit: Whether the ray intersected the surface (1 if hit, 0 if miss).
        t: The parameter value along the ray where intersection occurred.
            Only valid if hit == 1.
        point: The 3D point where the ray intersected the surface.
            Only valid if hit == 1.
        normal: The unit surface normal, always oriented against the incoming
            ray, so dot(ray.direction, normal) <= 0.
            Only valid if hit == 1.
        front_face: Whether the ray hit the outside (1) or the inside (0) of
            the surface. Only valid if hit == 1.
        material_id: Handle of the material at the hit point.
            Only valid if hit == 1. -1 indicates no material.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32
    material_id: ti.i32


@ti.func
def make_miss_record() -> HitRecord:
    """Create a HitRecord indicating no intersection."""
    return HitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
        material_id=-1,
    )


@ti.func
def hit_sphere(
    ray: Ray,
    sphere: Sphere,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Test for ray-sphere intersection.

    The ray-sphere intersection is found by solving:
        |origin + t * direction - center|^2 = radius^2

    which, with oc = origin - center, is the quadratic
        a*t^2 + 2*half_b*t + c = 0

    where:
        a = dot(direction, direction)
        half_b = dot(oc, direction)
        c = dot(oc, oc) - radius^2

    Args:
        ray: The ray to test. Its direction need not be normalized.
        sphere: The sphere to test intersection against.
        t_min: Exclusive lower bound on accepted t (avoids self-intersection).
        t_max: Exclusive upper bound on accepted t (closest hit so far).

    Returns:
        A HitRecord containing intersection information. Check the hit field
        to determine if intersection occurred.
    """
    oc = ray.origin - sphere.center
    a = length_squared(ray.direction)
    half_b = tm.dot(oc, ray.direction)
    c = length_squared(oc) - sphere.radius * sphere.radius

    discriminant = half_b * half_b - a * c

    # Initialize result fields (Taichi requires outer-scope declaration)
    result = make_miss_record()

    if discriminant >= 0.0:
        sqrt_d = ti.sqrt(discriminant)

        # Nearest root first, then the far one
        root = (-half_b - sqrt_d) / a
        valid = (root > t_min) and (root < t_max)

        if not valid:
            root = (-half_b + sqrt_d) / a
            valid = (root > t_min) and (root < t_max)

        if valid:
            point = ray_at(ray, root)
            outward_normal = (point - sphere.center) / sphere.radius

            # Orient the stored normal against the ray
            front_face = 1
            normal = outward_normal
            if tm.dot(ray.direction, outward_normal) >= 0.0:
                front_face = 0
                normal = -outward_normal

            result = HitRecord(
                hit=1,
                t=root,
                point=point,
                normal=normal,
                front_face=front_face,
                material_id=sphere.material_id,
            )

    return result


@ti.func
def make_sphere(center: vec3, radius: ti.f32, material_id: ti.i32) -> Sphere:
    """Create a sphere from center, radius and material inside a kernel."""
    return Sphere(center=center, radius=radius, material_id=material_id)
