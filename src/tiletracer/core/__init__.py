"""Core rendering module.

This module contains the fundamental building blocks for ray tracing:

Components:
    ray: Ray data structure, vector utilities and random sampling
    integrator: Recursive path tracing (trace_color) and pixel sampling
    scheduler: Row-range jobs, the worker pool and the completion barrier
    renderer: Render configuration, tile execution and frame assembly

The core module integrates the rendering equation with Monte Carlo path
tracing, averaging jittered samples per pixel for anti-aliasing, and spreads
the work over a pool of worker threads.
"""

from .ray import (
    Ray,
    Vec3,
    cross,
    dot,
    get_thread_rng,
    length,
    length_squared,
    near_zero,
    normalize,
    random_in_unit_disk,
    random_in_unit_sphere,
    random_unit_vector,
    ray_at,
    reflect,
    refract,
    schlick_fresnel,
    vec3,
)

# Note: integrator, scheduler and renderer are NOT imported here to avoid
# circular imports (they depend on scene and materials, which import ray).
# Import them directly, e.g. `from src.tiletracer.core.renderer import render`

__all__ = [
    "Ray",
    "Vec3",
    "vec3",
    "ray_at",
    "length",
    "length_squared",
    "normalize",
    "dot",
    "cross",
    "reflect",
    "refract",
    "schlick_fresnel",
    "near_zero",
    "get_thread_rng",
    "random_in_unit_sphere",
    "random_unit_vector",
    "random_in_unit_disk",
]
