"""Material variants and scatter dispatch.

Materials form a closed set of variants tagged by MaterialType. Each Material
value is immutable and freely shared between worker threads; the only
operation is scatter(), which dispatches on the tag to the per-variant
scattering function.

Example:
    >>> from src.tiletracer.materials.material import lambertian, metal, dielectric
    >>> red = lambertian((0.8, 0.1, 0.1))
    >>> gold = metal((0.8, 0.6, 0.2), roughness=0.3)
    >>> glass = dielectric(1.5)
"""

from dataclasses import dataclass
from enum import IntEnum

import numpy as np

from src.tiletracer.core.ray import Ray, Vec3, vec3
from src.tiletracer.geometry.sphere import HitRecord
from src.tiletracer.materials.dielectric import scatter_dielectric, validate_ior
from src.tiletracer.materials.lambertian import scatter_lambertian, validate_albedo
from src.tiletracer.materials.metal import scatter_metal, validate_roughness


class MaterialType(IntEnum):
    """Enumeration of supported material types.

    Used for material dispatch in the path tracer to determine which
    scattering function to call.
    """

    LAMBERTIAN = 0
    METAL = 1
    DIELECTRIC = 2


@dataclass(frozen=True)
class Material:
    """An immutable surface material.

    Only the parameters relevant to material_type are meaningful; use the
    lambertian(), metal() and dielectric() constructors, which validate them.

    Attributes:
        material_type: Which scattering model to use.
        albedo: Reflectance color for Lambertian and metal surfaces.
        roughness: Metal fuzziness in [0, 1].
        ior: Index of refraction for dielectrics.
    """

    material_type: MaterialType
    albedo: Vec3
    roughness: float = 0.0
    ior: float = 1.0


@dataclass
class ScatterResult:
    """A surface's decision to re-emit light.

    Attributes:
        scattered: The outgoing ray, starting at the hit point.
        attenuation: Componentwise color multiplier for the outgoing radiance.
    """

    scattered: Ray
    attenuation: Vec3


def _frozen_color(color: tuple[float, float, float]) -> Vec3:
    array = vec3(*color)
    array.flags.writeable = False
    return array


def lambertian(albedo: tuple[float, float, float]) -> Material:
    """Create a Lambertian (diffuse) material.

    Raises:
        ValueError: If any albedo component is outside [0, 1].
    """
    validate_albedo(albedo)
    return Material(MaterialType.LAMBERTIAN, _frozen_color(albedo))


def metal(albedo: tuple[float, float, float], roughness: float = 0.0) -> Material:
    """Create a metal (specular reflective) material.

    Raises:
        ValueError: If any albedo component or the roughness is outside [0, 1].
    """
    validate_albedo(albedo)
    validate_roughness(roughness)
    return Material(MaterialType.METAL, _frozen_color(albedo), roughness=roughness)


def dielectric(ior: float = 1.5) -> Material:
    """Create a dielectric (glass/water) material.

    Args:
        ior: Index of refraction. Common values:
            Water=1.33, Glass=1.5, Diamond=2.4

    Raises:
        ValueError: If ior is less than 1.0.
    """
    validate_ior(ior)
    return Material(MaterialType.DIELECTRIC, _frozen_color((1.0, 1.0, 1.0)), ior=ior)


def scatter(
    material: Material,
    ray: Ray,
    hit: HitRecord,
    rng: np.random.Generator,
) -> ScatterResult | None:
    """Dispatch to the appropriate material scattering function.

    Args:
        material: The material at the hit point.
        ray: The incoming ray.
        hit: The intersection record (normal faces against the ray).
        rng: Random generator of the calling worker.

    Returns:
        The scattered ray and attenuation, or None if the light is absorbed.
    """
    if material.material_type == MaterialType.LAMBERTIAN:
        sample = scatter_lambertian(material.albedo, hit.normal, rng)
    elif material.material_type == MaterialType.METAL:
        sample = scatter_metal(material.albedo, material.roughness, ray.direction, hit.normal, rng)
    elif material.material_type == MaterialType.DIELECTRIC:
        sample = scatter_dielectric(material.ior, ray.direction, hit.normal, hit.front_face, rng)
    else:
        raise ValueError(f"Unknown material type: {material.material_type}")

    if sample is None:
        return None

    direction, attenuation = sample
    return ScatterResult(scattered=Ray(hit.point, direction), attenuation=attenuation)
