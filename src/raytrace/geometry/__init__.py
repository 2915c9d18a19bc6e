"""Geometry module for shape primitives.

Components:
    sphere: Sphere primitive, hit records and ray-sphere intersection

Intersection routines are Taichi functions (@ti.func) returning a HitRecord
whose ``hit`` field tells whether the ray struck the surface.
"""

from .sphere import HitRecord, Sphere, hit_sphere, make_miss_record, make_sphere

__all__ = [
    "Sphere",
    "HitRecord",
    "hit_sphere",
    "make_miss_record",
    "make_sphere",
]
