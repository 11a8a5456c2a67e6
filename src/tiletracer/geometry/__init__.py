"""Geometry module for shape primitives.

This module provides geometric primitives and intersection algorithms:

Components:
    sphere: Sphere primitive with ray-sphere intersection

Intersection routines never touch shared mutable state, so they can be
called from any number of worker threads at once. Scenes are scanned
linearly; there is no acceleration structure.

Ray-object intersection follows the pattern:
    record = hit_sphere(ray, sphere, t_min, t_max)  # HitRecord or None
"""

from .sphere import HitRecord, Sphere, hit_sphere, intersect_spheres, make_hit_record

__all__ = [
    "Sphere",
    "HitRecord",
    "hit_sphere",
    "intersect_spheres",
    "make_hit_record",
]
