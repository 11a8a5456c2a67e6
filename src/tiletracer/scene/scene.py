"""Scene container and nearest-hit queries.

The Scene owns every primitive and material used by a render. Materials live
in an arena indexed by material ID; spheres are stored in a Structure-of-Arrays
layout (centers, radii, material IDs) so a ray can be tested against all of
them in one vectorized linear scan.

A scene is built once, then frozen before rendering. A frozen scene is never
mutated, so hit() can be called concurrently from any number of worker
threads without locking.

Example:
    >>> from src.tiletracer.materials import lambertian, metal
    >>> from src.tiletracer.scene.scene import Scene
    >>> scene = Scene()
    >>> ground = scene.add_material(lambertian((0.5, 0.5, 0.5)))
    >>> scene.add_sphere((0, -100.5, -1), 100.0, ground)
    0
    >>> scene.add_sphere_with_material((0, 0, -1), 0.5, metal((0.8, 0.8, 0.8)))
    1
    >>> scene.freeze()
"""

import math
from collections.abc import Iterator, Sequence

import numpy as np
import numpy.typing as npt

from src.tiletracer.core.ray import Ray
from src.tiletracer.geometry.sphere import HitRecord, Sphere, intersect_spheres, make_hit_record
from src.tiletracer.materials.material import Material


class Scene:
    """An ordered collection of spheres with attached materials.

    Attributes:
        centers: Sphere centers, shape (N, 3).
        radii: Sphere radii, shape (N,).
        material_ids: Material ID of each sphere, shape (N,).
    """

    def __init__(self) -> None:
        """Initialize an empty, mutable scene."""
        self._materials: list[Material] = []
        self._centers: list[tuple[float, float, float]] = []
        self._radii: list[float] = []
        self._material_ids: list[int] = []
        self._frozen = False
        self.centers: npt.NDArray[np.float64] = np.zeros((0, 3), dtype=np.float64)
        self.radii: npt.NDArray[np.float64] = np.zeros(0, dtype=np.float64)
        self.material_ids: npt.NDArray[np.int64] = np.zeros(0, dtype=np.int64)

    # =========================================================================
    # Building
    # =========================================================================

    def _check_mutable(self) -> None:
        if self._frozen:
            raise RuntimeError("Scene is frozen and can no longer be modified")

    def add_material(self, material: Material) -> int:
        """Register a material and return its material ID."""
        self._check_mutable()
        self._materials.append(material)
        return len(self._materials) - 1

    def add_sphere(
        self,
        center: Sequence[float],
        radius: float,
        material_id: int,
    ) -> int:
        """Add a sphere referencing an already registered material.

        Args:
            center: The center of the sphere (x, y, z).
            radius: The radius of the sphere (must be positive).
            material_id: ID returned by add_material().

        Returns:
            The index of the added sphere.

        Raises:
            ValueError: If the radius is not positive or the material ID is
                unknown.
            RuntimeError: If the scene is frozen.
        """
        self._check_mutable()
        if not radius > 0.0:
            raise ValueError(f"Sphere radius must be positive, got {radius}")
        if not 0 <= material_id < len(self._materials):
            raise ValueError(
                f"Unknown material ID {material_id} "
                f"(scene has {len(self._materials)} materials)"
            )
        if len(center) != 3:
            raise ValueError(f"Sphere center must have 3 components, got {len(center)}")

        self._centers.append((float(center[0]), float(center[1]), float(center[2])))
        self._radii.append(float(radius))
        self._material_ids.append(int(material_id))
        self._sync_arrays()
        return len(self._radii) - 1

    def add_sphere_with_material(
        self,
        center: Sequence[float],
        radius: float,
        material: Material,
    ) -> int:
        """Register a material and add a sphere using it in one call."""
        material_id = self.add_material(material)
        return self.add_sphere(center, radius, material_id)

    def _sync_arrays(self) -> None:
        self.centers = np.array(self._centers, dtype=np.float64).reshape(-1, 3)
        self.radii = np.array(self._radii, dtype=np.float64)
        self.material_ids = np.array(self._material_ids, dtype=np.int64)

    def freeze(self) -> None:
        """Make the scene read-only.

        Safe to call more than once. After freezing, builder methods raise
        RuntimeError and the primitive arrays are flagged non-writable.
        """
        if self._frozen:
            return
        self._sync_arrays()
        for array in (self.centers, self.radii, self.material_ids):
            array.flags.writeable = False
        self._frozen = True

    @property
    def frozen(self) -> bool:
        """Whether the scene has been frozen."""
        return self._frozen

    # =========================================================================
    # Queries
    # =========================================================================

    def __len__(self) -> int:
        return len(self._radii)

    @property
    def num_materials(self) -> int:
        """Number of registered materials."""
        return len(self._materials)

    def material(self, material_id: int) -> Material:
        """Look up a material by ID."""
        return self._materials[material_id]

    def sphere(self, index: int) -> Sphere:
        """Return the sphere at the given index as a Sphere value."""
        return Sphere(
            center=self.centers[index].copy(),
            radius=float(self.radii[index]),
            material_id=int(self.material_ids[index]),
        )

    def spheres(self) -> Iterator[Sphere]:
        """Iterate over all spheres in insertion order."""
        for i in range(len(self)):
            yield self.sphere(i)

    def hit(self, ray: Ray, t_min: float, t_max: float = math.inf) -> HitRecord | None:
        """Find the nearest intersection of a ray with the scene.

        Scans every sphere and keeps the smallest hit parameter in the open
        interval (t_min, t_max).

        Args:
            ray: The ray to test.
            t_min: Exclusive lower bound (suppresses self-intersection).
            t_max: Exclusive upper bound.

        Returns:
            A HitRecord for the nearest surface, or None if nothing is hit.
        """
        index, t = intersect_spheres(
            ray.origin, ray.direction, self.centers, self.radii, t_min, t_max
        )
        if index < 0:
            return None
        return make_hit_record(
            ray,
            t,
            self.centers[index],
            float(self.radii[index]),
            int(self.material_ids[index]),
        )

    def __repr__(self) -> str:
        return (
            f"Scene(spheres={len(self)}, materials={self.num_materials}, "
            f"frozen={self._frozen})"
        )
