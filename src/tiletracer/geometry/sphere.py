"""Sphere primitive with robust ray-sphere intersection.

This module provides a Sphere dataclass and intersection functions using the
robust quadratic formula from Ray Tracing Gems to avoid floating-point artifacts.

The robust quadratic formula avoids catastrophic cancellation when b^2 is
nearly equal to 4ac by using a reformulated calculation that maintains
numerical stability.

Two entry points share the same math:
    hit_sphere: one ray against one sphere, returns a HitRecord or None.
    intersect_spheres: one ray against every sphere of a scene at once,
        evaluated over structure-of-arrays NumPy storage.

Example:
    >>> from src.tiletracer.core.ray import Ray, vec3
    >>> from src.tiletracer.geometry.sphere import Sphere, hit_sphere
    >>> sphere = Sphere(center=vec3(0, 0, -1), radius=0.5)
    >>> rec = hit_sphere(Ray(vec3(0, 0, 0), vec3(0, 0, -1)), sphere, 0.001, 1e9)
    >>> rec.t
    0.5
"""

import math
from dataclasses import dataclass

import numpy as np
import numpy.typing as npt

from src.tiletracer.core.ray import Ray, Vec3, dot, ray_at


@dataclass(frozen=True)
class Sphere:
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere.
        radius: The radius of the sphere (strictly positive).
        material_id: Index of the sphere's material in the owning scene.
    """

    center: Vec3
    radius: float
    material_id: int = 0

    def __post_init__(self) -> None:
        if not self.radius > 0.0:
            raise ValueError(f"Sphere radius must be positive, got {self.radius}")


@dataclass
class HitRecord:
    """Record of a ray-surface intersection.

    Attributes:
        t: The parameter value along the ray where intersection occurred.
        point: The 3D point where the ray intersected the surface.
        normal: The surface normal at the intersection point (unit length).
            Always faces against the incoming ray.
        front_face: Whether the ray hit the outside of the surface.
        material_id: The material ID of the hit primitive.
    """

    t: float
    point: Vec3
    normal: Vec3
    front_face: bool
    material_id: int


def _solve_quadratic_robust(h: float, a: float, c: float, sqrt_d: float) -> tuple[float, float]:
    """Solve a*t^2 + 2*h*t + c = 0 using a numerically stable method.

    Args:
        h: Half of the linear coefficient.
        a: Quadratic coefficient.
        c: Constant term.
        sqrt_d: Square root of discriminant (h^2 - a*c).

    Returns:
        Tuple of (t0, t1) where t0 <= t1.
    """
    q = -(h + math.copysign(sqrt_d, h))

    if abs(q) < 1e-10:
        # Degenerate case (tangent ray through the origin plane)
        t0 = (-h - sqrt_d) / a
        t1 = (-h + sqrt_d) / a
    else:
        t0 = q / a
        t1 = c / q

    if t0 > t1:
        t0, t1 = t1, t0
    return t0, t1


def make_hit_record(ray: Ray, t: float, center: Vec3, radius: float, material_id: int) -> HitRecord:
    """Build the hit record for a sphere hit at parameter t.

    Orients the normal against the ray and records which face was hit.
    """
    point = ray_at(ray, t)
    outward_normal = (point - center) / radius
    front_face = dot(ray.direction, outward_normal) < 0.0
    normal = outward_normal if front_face else -outward_normal
    return HitRecord(
        t=t,
        point=point,
        normal=normal,
        front_face=front_face,
        material_id=material_id,
    )


def hit_sphere(ray: Ray, sphere: Sphere, t_min: float, t_max: float) -> HitRecord | None:
    """Test for ray-sphere intersection using the robust quadratic formula.

    The ray-sphere intersection is found by solving:
        |ray_origin + t * ray_direction - center|^2 = radius^2

    which expands to a*t^2 + 2*h*t + c = 0 with:
        a = dot(direction, direction)
        h = dot(direction, oc)  (half of traditional b)
        c = dot(oc, oc) - radius^2
        oc = origin - center

    Args:
        ray: The ray to test.
        sphere: The sphere to test intersection against.
        t_min: Exclusive lower bound of the accepted parameter range.
        t_max: Exclusive upper bound of the accepted parameter range.

    Returns:
        A HitRecord for the nearest root in (t_min, t_max), or None.
    """
    oc = ray.origin - sphere.center
    a = dot(ray.direction, ray.direction)
    h = dot(ray.direction, oc)
    c = dot(oc, oc) - sphere.radius * sphere.radius

    discriminant = h * h - a * c
    if discriminant < 0.0:
        return None

    t0, t1 = _solve_quadratic_robust(h, a, c, math.sqrt(discriminant))

    t = t0
    if not t_min < t < t_max:
        t = t1
        if not t_min < t < t_max:
            return None

    return make_hit_record(ray, t, sphere.center, sphere.radius, sphere.material_id)


def intersect_spheres(
    origin: Vec3,
    direction: Vec3,
    centers: npt.NDArray[np.float64],
    radii: npt.NDArray[np.float64],
    t_min: float,
    t_max: float,
) -> tuple[int, float]:
    """Find the nearest sphere hit among many spheres.

    Evaluates the robust quadratic for every sphere in one pass over the
    structure-of-arrays storage and keeps the smallest root in
    (t_min, t_max). Exact ties resolve to the lowest index.

    Args:
        origin: Ray origin.
        direction: Ray direction.
        centers: Sphere centers, shape (N, 3).
        radii: Sphere radii, shape (N,).
        t_min: Exclusive lower bound of the accepted parameter range.
        t_max: Exclusive upper bound of the accepted parameter range.

    Returns:
        Tuple of (index, t) of the nearest hit, or (-1, inf) on a miss.
    """
    if len(radii) == 0:
        return -1, math.inf

    oc = origin - centers
    a = float(np.dot(direction, direction))
    h = oc @ direction
    c = np.einsum("ij,ij->i", oc, oc) - radii * radii

    discriminant = h * h - a * c
    candidates = discriminant >= 0.0
    if not candidates.any():
        return -1, math.inf

    sqrt_d = np.sqrt(np.where(candidates, discriminant, 0.0))
    q = -(h + np.copysign(sqrt_d, h))
    degenerate = np.abs(q) < 1e-10
    safe_q = np.where(degenerate, 1.0, q)
    r0 = np.where(degenerate, (-h - sqrt_d) / a, q / a)
    r1 = np.where(degenerate, (-h + sqrt_d) / a, c / safe_q)
    t0 = np.minimum(r0, r1)
    t1 = np.maximum(r0, r1)

    use_t0 = candidates & (t0 > t_min) & (t0 < t_max)
    use_t1 = candidates & ~use_t0 & (t1 > t_min) & (t1 < t_max)
    t = np.where(use_t0, t0, np.where(use_t1, t1, np.inf))

    index = int(np.argmin(t))
    if not np.isfinite(t[index]):
        return -1, math.inf
    return index, float(t[index])
