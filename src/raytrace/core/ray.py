"""Ray data structure and vector utilities for the path tracer.

This module provides the fundamental Ray dataclass and the vector algebra the
renderer is built on. ``vec3`` doubles as point and linear-light color; all
operations are Taichi functions usable from any kernel.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> origin = ti.math.vec3(0.0, 0.0, 0.0)
    >>> direction = ti.math.vec3(0.0, 0.0, -1.0)
    >>> ray = Ray(origin=origin, direction=direction)
    >>> point = ray_at(ray, 5.0)  # Point 5 units along the ray
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Components below this magnitude count as zero (degenerate scatter directions)
NEAR_ZERO_EPSILON = 1e-7


@ti.dataclass
class Ray:
    """A ray with an origin point and direction vector.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction vector of the ray (vec3). Not required to be
            unit length; callers that need a unit direction normalize it.
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Compute the point along the ray at parameter t.

    Args:
        ray: The ray to evaluate.
        t: The parameter value. Positive values are in front of the origin.

    Returns:
        The point ray.origin + t * ray.direction.
    """
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray from origin and direction inside a kernel."""
    return Ray(origin=origin, direction=direction)


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def length_squared(v: vec3) -> ti.f32:
    """Compute the squared length of a vector.

    Taichi exposes no explicit fused multiply-add, so this is written as
    plain products and sums. With ``fast_math`` (Taichi's default) the LLVM
    backends are free to contract them into FMA instructions; the result
    may therefore differ from a strictly rounded sum in the last bit.

    Args:
        v: The input vector.

    Returns:
        The squared Euclidean length of the vector.
    """
    return v.x * v.x + v.y * v.y + v.z * v.z


@ti.func
def length(v: vec3) -> ti.f32:
    """Compute the length (magnitude) of a vector."""
    return ti.sqrt(length_squared(v))


@ti.func
def normalize(v: vec3) -> vec3:
    """Normalize a vector to unit length.

    The input must have non-zero length. Camera rays and scattered rays are
    constructed so that this always holds; a zero vector yields NaNs.

    Args:
        v: The input vector.

    Returns:
        A unit vector in the same direction as v.
    """
    return v / length(v)


@ti.func
def dot(a: vec3, b: vec3) -> ti.f32:
    """Compute the dot product of two vectors."""
    return tm.dot(a, b)


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    """Compute the cross product of two vectors."""
    return tm.cross(a, b)


@ti.func
def near_zero(v: vec3) -> ti.i32:
    """Check if a vector is near zero in all components.

    Used to detect a degenerate scatter direction, e.g. a diffuse sample that
    cancels the surface normal.

    Args:
        v: The vector to check.

    Returns:
        1 if all components are below NEAR_ZERO_EPSILON in magnitude, 0 otherwise.
    """
    s = NEAR_ZERO_EPSILON
    return ti.abs(v.x) < s and ti.abs(v.y) < s and ti.abs(v.z) < s


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Reflect an incident vector about a normal.

    The normal should be unit length for correct results; reflecting twice
    about the same unit normal returns the original vector.

    Args:
        incident: The incoming direction vector (pointing toward the surface).
        normal: The surface normal (should be normalized).

    Returns:
        The reflected direction vector.
    """
    return incident - 2.0 * tm.dot(incident, normal) * normal


@ti.func
def refract(unit_incident: vec3, normal: vec3, eta_ratio: ti.f32) -> vec3:
    """Refract a unit incident vector through a surface.

    Splits the refracted direction into the components perpendicular and
    parallel to the normal. The absolute value under the square root keeps the
    result finite when called past the critical angle; callers are expected to
    check for total internal reflection first.

    Args:
        unit_incident: The incoming direction (unit length).
        normal: The surface normal, facing against the incident direction.
        eta_ratio: The ratio of refractive indices (n_incident / n_transmitted).

    Returns:
        The refracted direction vector. With eta_ratio == 1 this is the
        incident direction, unchanged.
    """
    cos_theta = tm.min(tm.dot(-unit_incident, normal), 1.0)
    r_out_perp = eta_ratio * (unit_incident + cos_theta * normal)
    r_out_parallel = -ti.sqrt(ti.abs(1.0 - length_squared(r_out_perp))) * normal
    return r_out_perp + r_out_parallel


@ti.func
def schlick_reflectance(cosine: ti.f32, ref_idx: ti.f32) -> ti.f32:
    """Compute Fresnel reflectance using Schlick's approximation.

    Args:
        cosine: Cosine of the angle between incident direction and normal.
        ref_idx: Ratio of refractive indices.

    Returns:
        The approximate Fresnel reflectance coefficient.
    """
    r0 = (1.0 - ref_idx) / (1.0 + ref_idx)
    r0 = r0 * r0
    return r0 + (1.0 - r0) * ((1.0 - cosine) ** 5)
