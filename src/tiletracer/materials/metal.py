"""Metal (specular reflective) material implementation.

This module implements the metal BSDF, which models specular reflection with
optional roughness (fuzziness). Perfect metals (roughness=0) produce mirror-like
reflections, while rougher metals scatter reflected rays within a cone.

The reflection formula is:
    R = I - 2(I . N)N

where I is the incident direction and N is the surface normal.

For rough metals, the reflected direction is perturbed by a random offset scaled
by the roughness parameter, modeling microfacet scattering.
"""

import numpy as np

from src.tiletracer.core.ray import Vec3, dot, normalize, random_in_unit_sphere, reflect


def validate_roughness(roughness: float) -> None:
    """Raise ValueError if roughness is outside [0, 1]."""
    if roughness < 0.0 or roughness > 1.0:
        raise ValueError(f"Roughness {roughness} is outside [0, 1]")


def scatter_metal(
    albedo: Vec3,
    roughness: float,
    incident_direction: Vec3,
    normal: Vec3,
    rng: np.random.Generator,
) -> tuple[Vec3, Vec3] | None:
    """Compute scattered ray direction for metal material.

    Reflects the incident ray about the surface normal, then optionally
    perturbs the reflected direction based on roughness. The ray is absorbed
    if the scattered direction ends up below the surface.

    Args:
        albedo: The reflective color (RGB, each component in [0, 1]).
        roughness: The surface roughness in [0, 1]. 0 = perfect mirror.
        incident_direction: The incoming ray direction.
        normal: The surface normal (normalized, facing the incoming ray).
        rng: Random generator of the calling worker.

    Returns:
        A tuple of (scattered_direction, attenuation), or None if the
        perturbed reflection points into the surface (absorbed).
    """
    reflected = reflect(normalize(incident_direction), normal)

    if roughness > 0.0:
        reflected = reflected + roughness * random_in_unit_sphere(rng)

    if dot(reflected, normal) <= 0.0:
        return None

    return normalize(reflected), albedo
