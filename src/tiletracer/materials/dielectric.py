"""Dielectric (glass/water) material implementation.

This module implements the dielectric BSDF, which models transparent materials
like glass and water with refraction and Fresnel reflectance.

Key physics:
    - Snell's law for refraction: n1 * sin(theta1) = n2 * sin(theta2)
    - Schlick's approximation for Fresnel reflectance
    - Total internal reflection when sin(theta_t) > 1

The material randomly chooses between reflection and refraction based on
the Fresnel reflectance probability, which increases at grazing angles.
"""

import numpy as np

from src.tiletracer.core.ray import Vec3, dot, normalize, reflect, refract, schlick_fresnel, vec3

# Clear glass does not tint light
_WHITE = vec3(1.0, 1.0, 1.0)
_WHITE.flags.writeable = False


def validate_ior(ior: float) -> None:
    """Raise ValueError for an index of refraction below 1."""
    if not ior >= 1.0:
        raise ValueError(f"Index of refraction must be >= 1.0, got {ior}")


def refraction_ratio(ior: float, front_face: bool) -> float:
    """Ratio of refractive indices for a ray crossing the surface.

    Hitting from outside (air to glass) gives 1/ior, from inside gives ior.
    """
    return 1.0 / ior if front_face else ior


def scatter_dielectric(
    ior: float,
    incident_direction: Vec3,
    normal: Vec3,
    front_face: bool,
    rng: np.random.Generator,
) -> tuple[Vec3, Vec3]:
    """Compute scattered ray direction for dielectric material.

    Args:
        ior: Index of refraction of the material.
        incident_direction: The incoming ray direction.
        normal: The surface normal (normalized, facing the incoming ray).
        front_face: True if the ray hits the outside of the surface.
        rng: Random generator of the calling worker.

    Returns:
        A tuple of (scattered_direction, attenuation). Dielectrics never
        absorb; attenuation is white.
    """
    eta = refraction_ratio(ior, front_face)
    unit_direction = normalize(incident_direction)

    cos_theta = min(-dot(unit_direction, normal), 1.0)
    reflectance = schlick_fresnel(cos_theta, eta)

    refracted = None
    if rng.random() >= reflectance:
        refracted = refract(unit_direction, normal, eta)

    # Total internal reflection or a Fresnel reflection
    if refracted is None:
        scattered_direction = reflect(unit_direction, normal)
    else:
        scattered_direction = refracted

    return normalize(scattered_direction), _WHITE
