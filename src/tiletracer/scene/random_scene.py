"""Procedural sphere scenes.

This module provides factory functions for the scenes used by the example
renderer and the tests:

- create_random_scene: the classic "one weekend" cover image. A huge ground
  sphere, a 22x22 grid of small spheres with random materials, and three large
  feature spheres (glass, diffuse, mirror metal).
- create_two_sphere_scene: a ground sphere below the camera and one small
  sphere directly ahead, for quick renders and tests.

Scene construction is single-threaded and deterministic for a given
generator. The returned scenes are frozen.

Example:
    >>> import numpy as np
    >>> from src.tiletracer.scene.random_scene import create_random_scene
    >>> scene = create_random_scene(np.random.default_rng(7))
"""

import numpy as np

from src.tiletracer.core.ray import length, vec3
from src.tiletracer.materials.material import Material, dielectric, lambertian, metal
from src.tiletracer.scene.scene import Scene

# =============================================================================
# Random Scene Parameters
# =============================================================================

GROUND_ALBEDO = (0.5, 0.5, 0.5)
GROUND_RADIUS = 1000.0

# Small spheres are placed on a grid spanning [-GRID_EXTENT, GRID_EXTENT)
GRID_EXTENT = 11
SMALL_RADIUS = 0.2

# Material mix for the small spheres
DIFFUSE_PROBABILITY = 0.8
METAL_PROBABILITY = 0.15

GLASS_IOR = 1.5

# Small spheres must stay clear of the large metal sphere
KEEP_OUT_CENTER = (4.0, 0.2, 0.0)
KEEP_OUT_DISTANCE = 0.9


def _random_small_material(rng: np.random.Generator) -> Material:
    choose_mat = rng.random()
    if choose_mat < DIFFUSE_PROBABILITY:
        albedo = rng.random(3) * rng.random(3)
        return lambertian(tuple(float(c) for c in albedo))
    if choose_mat < DIFFUSE_PROBABILITY + METAL_PROBABILITY:
        albedo = 0.5 * (1.0 + rng.random(3))
        return metal(tuple(float(c) for c in albedo), roughness=0.5 * float(rng.random()))
    return dielectric(GLASS_IOR)


def create_random_scene(
    rng: np.random.Generator,
    grid_extent: int = GRID_EXTENT,
) -> Scene:
    """Create the random sphere field scene.

    Args:
        rng: Generator driving sphere placement and materials.
        grid_extent: Half-width of the grid of small spheres. Each grid cell
            holds at most one sphere, jittered within the cell.

    Returns:
        A frozen Scene.
    """
    scene = Scene()
    scene.add_sphere_with_material(
        (0.0, -GROUND_RADIUS, 0.0), GROUND_RADIUS, lambertian(GROUND_ALBEDO)
    )

    keep_out = vec3(*KEEP_OUT_CENTER)
    for a in range(-grid_extent, grid_extent):
        for b in range(-grid_extent, grid_extent):
            material = _random_small_material(rng)
            jitter = rng.random(2)
            center = vec3(a + 0.9 * jitter[0], SMALL_RADIUS, b + 0.9 * jitter[1])
            if length(center - keep_out) > KEEP_OUT_DISTANCE:
                scene.add_sphere_with_material(center, SMALL_RADIUS, material)

    scene.add_sphere_with_material((0.0, 1.0, 0.0), 1.0, dielectric(GLASS_IOR))
    scene.add_sphere_with_material((-4.0, 1.0, 0.0), 1.0, lambertian((0.4, 0.2, 0.1)))
    scene.add_sphere_with_material((4.0, 1.0, 0.0), 1.0, metal((0.7, 0.6, 0.5), 0.0))

    scene.freeze()
    return scene


def create_two_sphere_scene(
    ground_albedo: tuple[float, float, float] = (0.8, 0.8, 0.0),
    sphere_material: Material | None = None,
) -> Scene:
    """Create a ground sphere and one small sphere in front of the origin.

    The ground is centered at (0, -100.5, -1) with radius 100, the small
    sphere at (0, 0, -1) with radius 0.5. Pair it with two_sphere_camera().

    Args:
        ground_albedo: Diffuse color of the ground.
        sphere_material: Material of the small sphere (default reddish diffuse).

    Returns:
        A frozen Scene.
    """
    if sphere_material is None:
        sphere_material = lambertian((0.7, 0.3, 0.3))

    scene = Scene()
    scene.add_sphere_with_material((0.0, -100.5, -1.0), 100.0, lambertian(ground_albedo))
    scene.add_sphere_with_material((0.0, 0.0, -1.0), 0.5, sphere_material)
    scene.freeze()
    return scene
