"""Materials module for surface scattering models.

This module implements the material models consumed by the path integrator:

Components:
    lambertian: Ideal diffuse (Lambertian) reflection
    metal: Specular reflection with optional roughness
    dielectric: Glass-like materials with refraction (Schlick Fresnel)
    material: The closed Material variant and scatter() dispatch

Each material answers a single question: given an incoming ray and a surface
hit, either produce a scattered ray and an attenuation color, or absorb.
"""

from .dielectric import scatter_dielectric
from .lambertian import scatter_lambertian
from .material import (
    Material,
    MaterialType,
    ScatterResult,
    dielectric,
    lambertian,
    metal,
    scatter,
)
from .metal import scatter_metal

__all__ = [
    "Material",
    "MaterialType",
    "ScatterResult",
    "lambertian",
    "metal",
    "dielectric",
    "scatter",
    "scatter_lambertian",
    "scatter_metal",
    "scatter_dielectric",
]
