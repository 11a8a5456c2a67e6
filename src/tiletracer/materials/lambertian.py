"""Lambertian (ideal diffuse) material implementation.

This module implements ideal diffuse reflection, where incident light is
scattered around the surface normal with a cosine-weighted distribution.

Sampling uses the unit-sphere offset method: the scattered direction is the
surface normal plus a random unit vector. This produces directions distributed
as cos(theta) / pi over the hemisphere, so the BRDF and PDF cancel and the
attenuation is simply the albedo.

Example:
    >>> import numpy as np
    >>> from src.tiletracer.materials.lambertian import scatter_lambertian
    >>> rng = np.random.default_rng(0)
    >>> # direction, attenuation = scatter_lambertian(albedo, normal, rng)
"""

import numpy as np

from src.tiletracer.core.ray import Vec3, near_zero, normalize, random_unit_vector


def validate_albedo(albedo: tuple[float, float, float]) -> None:
    """Check that every albedo component lies in [0, 1].

    Raises:
        ValueError: If there are not three components, or any component
            is outside [0, 1].
    """
    if len(albedo) != 3:
        raise ValueError(f"Albedo must have 3 components, got {len(albedo)}")
    for i, component in enumerate(albedo):
        if component < 0.0 or component > 1.0:
            raise ValueError(
                f"Albedo component {i} = {component} is outside [0, 1]. "
                "This would violate energy conservation."
            )


def scatter_lambertian(
    albedo: Vec3,
    normal: Vec3,
    rng: np.random.Generator,
) -> tuple[Vec3, Vec3]:
    """Sample a scattered ray direction for Lambertian material.

    Args:
        albedo: The diffuse reflectance color (RGB, each component in [0, 1]).
        normal: The surface normal at the hit point (normalized, facing the
            incoming ray).
        rng: Random generator of the calling worker.

    Returns:
        A tuple of (scattered_direction, attenuation). Lambertian surfaces
        never absorb.
    """
    scattered_direction = normal + random_unit_vector(rng)

    # Normal and sample nearly cancel out
    if near_zero(scattered_direction):
        scattered_direction = normal

    return normalize(scattered_direction), albedo
