"""Ray data structure and vector utilities for CPU path tracing.

This module provides the fundamental Ray dataclass and vector utility functions
for Monte Carlo ray tracing. Vectors are plain NumPy float64 arrays of shape
(3,), so the same helpers work on points, directions and RGB colors.

Random sampling helpers take an explicit ``numpy.random.Generator``. Worker
threads must not share a generator, so each thread obtains its own through
``get_thread_rng()``.

Example:
    >>> from src.tiletracer.core.ray import Ray, ray_at, vec3
    >>> ray = Ray(origin=vec3(0.0, 0.0, 0.0), direction=vec3(0.0, 0.0, -1.0))
    >>> point = ray_at(ray, 5.0)  # Point 5 units along the ray
"""

import math
import threading
from dataclasses import dataclass

import numpy as np
import numpy.typing as npt

Vec3 = npt.NDArray[np.float64]


def vec3(x: float, y: float, z: float) -> Vec3:
    """Create a 3-component float64 vector."""
    return np.array((x, y, z), dtype=np.float64)


@dataclass
class Ray:
    """A ray with an origin point and direction vector.

    Attributes:
        origin: The starting point of the ray.
        direction: The direction vector of the ray. Not required to be
            normalized; the integrator normalizes where it matters.
    """

    origin: Vec3
    direction: Vec3


def ray_at(ray: Ray, t: float) -> Vec3:
    """Compute the point along the ray at parameter t.

    Args:
        ray: The ray to evaluate.
        t: The parameter value. Positive values are in front of the origin.

    Returns:
        The point ray.origin + t * ray.direction.
    """
    return ray.origin + t * ray.direction


# =============================================================================
# Vector Utility Functions
# =============================================================================


def length(v: Vec3) -> float:
    """Compute the Euclidean length of a vector."""
    return math.sqrt(float(np.dot(v, v)))


def length_squared(v: Vec3) -> float:
    """Compute the squared length of a vector.

    Cheaper than length() when only comparing magnitudes.
    """
    return float(np.dot(v, v))


def normalize(v: Vec3) -> Vec3:
    """Normalize a vector to unit length.

    Args:
        v: The input vector.

    Returns:
        A unit vector in the same direction as v.
        If v is zero-length, returns a zero vector.
    """
    n = length(v)
    if n == 0.0:
        return np.zeros(3, dtype=np.float64)
    return v / n


def dot(a: Vec3, b: Vec3) -> float:
    """Compute the dot product of two vectors."""
    return float(np.dot(a, b))


def cross(a: Vec3, b: Vec3) -> Vec3:
    """Compute the cross product of two vectors."""
    return np.cross(a, b)


def reflect(incident: Vec3, normal: Vec3) -> Vec3:
    """Reflect an incident vector about a normal.

    Args:
        incident: The incoming direction vector (pointing toward the surface).
        normal: The surface normal (should be normalized).

    Returns:
        The reflected direction vector.
    """
    return incident - 2.0 * dot(incident, normal) * normal


def refract(incident: Vec3, normal: Vec3, eta: float) -> Vec3 | None:
    """Refract an incident vector through a surface.

    Computes the refracted direction using Snell's law.

    Args:
        incident: The incoming direction vector (should be normalized).
        normal: The surface normal, facing against the incident direction.
        eta: The ratio of refractive indices (n_incident / n_transmitted).

    Returns:
        The refracted direction vector, or None if total internal
        reflection occurs.
    """
    cos_i = -dot(incident, normal)
    sin2_t = eta * eta * (1.0 - cos_i * cos_i)
    if sin2_t > 1.0:
        return None
    cos_t = math.sqrt(1.0 - sin2_t)
    return eta * incident + (eta * cos_i - cos_t) * normal


def schlick_fresnel(cosine: float, ref_idx: float) -> float:
    """Compute Fresnel reflectance using Schlick's approximation.

    Args:
        cosine: Cosine of the angle between incident direction and normal.
        ref_idx: Ratio of refractive indices.

    Returns:
        The approximate Fresnel reflectance coefficient.
    """
    r0 = ((1.0 - ref_idx) / (1.0 + ref_idx)) ** 2
    return r0 + (1.0 - r0) * ((1.0 - cosine) ** 5)


def near_zero(v: Vec3) -> bool:
    """Check if a vector is near zero in all components."""
    return bool(np.all(np.abs(v) < 1e-8))


# =============================================================================
# Random Sampling Utilities for Monte Carlo
# =============================================================================

_thread_state = threading.local()


def get_thread_rng() -> np.random.Generator:
    """Return the random generator owned by the calling thread.

    NumPy generators are not safe to share between threads, so every thread
    lazily creates its own, seeded from fresh OS entropy.
    """
    rng = getattr(_thread_state, "rng", None)
    if rng is None:
        rng = np.random.default_rng()
        _thread_state.rng = rng
    return rng


def random_in_unit_sphere(rng: np.random.Generator) -> Vec3:
    """Generate a random point inside the unit sphere.

    Uses rejection sampling; the acceptance rate is about 52%.

    Returns:
        A random point with length < 1.
    """
    while True:
        p = rng.uniform(-1.0, 1.0, 3)
        if np.dot(p, p) < 1.0:
            return p


def random_unit_vector(rng: np.random.Generator) -> Vec3:
    """Generate a random unit vector uniformly distributed on the sphere."""
    while True:
        p = random_in_unit_sphere(rng)
        n = length(p)
        # Reject points too close to the center to normalize reliably
        if n > 1e-12:
            return p / n


def random_in_unit_disk(rng: np.random.Generator) -> Vec3:
    """Generate a random point inside the unit disk in the xy-plane.

    Used by the thin-lens camera for depth-of-field.

    Returns:
        A random point (x, y, 0) with x^2 + y^2 < 1.
    """
    while True:
        x, y = rng.uniform(-1.0, 1.0, 2)
        if x * x + y * y < 1.0:
            return vec3(x, y, 0.0)
