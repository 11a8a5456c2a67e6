"""Path tracing integrator for Monte Carlo light transport.

This module computes the radiance carried along camera rays by recursively
following scattered rays through the scene:

    trace_color(ray) = attenuation * trace_color(scattered, depth + 1)

Rays that escape the scene pick up a sky gradient; rays absorbed by a surface
contribute black. Once a path has used its whole bounce budget it also
contributes black, whether or not the last ray would have escaped. Cutting
paths there loses a little energy and is an accepted approximation.

The integrator only reads the scene and camera, and draws random numbers from
the generator it is given, so it can run on many worker threads at once.

Example:
    >>> import numpy as np
    >>> from src.tiletracer.camera.camera import setup_camera, two_sphere_camera
    >>> from src.tiletracer.core.integrator import render_pixel
    >>> from src.tiletracer.scene.random_scene import create_two_sphere_scene
    >>>
    >>> scene = create_two_sphere_scene()
    >>> camera = setup_camera(two_sphere_camera(2.0))
    >>> rng = np.random.default_rng(0)
    >>> color = render_pixel(scene, camera, 10, 5, 20, 10, 4, 5, rng)
"""

import math

import numpy as np

from src.tiletracer.camera.camera import Camera
from src.tiletracer.core.ray import Ray, Vec3, get_thread_rng, normalize, vec3
from src.tiletracer.materials.material import scatter
from src.tiletracer.scene.scene import Scene

# =============================================================================
# Rendering Constants
# =============================================================================

# Maximum ray bounces (path length)
MAX_DEPTH = 50

# Hard cap on recursion regardless of the requested depth, well below
# Python's default recursion limit
MAX_RECURSION_DEPTH = 200

# t_min and t_max for ray intersection; T_MIN suppresses self-intersection
# at the previous bounce's exit point
T_MIN = 0.001
T_MAX = math.inf

# Background gradient endpoints
HORIZON_COLOR = vec3(1.0, 1.0, 1.0)
SKY_COLOR = vec3(0.5, 0.7, 1.0)

BLACK = vec3(0.0, 0.0, 0.0)

for _color in (HORIZON_COLOR, SKY_COLOR, BLACK):
    _color.flags.writeable = False


def background_color(direction: Vec3) -> Vec3:
    """Sky color seen along an escaping ray.

    Linear blend from HORIZON_COLOR (straight down) to SKY_COLOR (straight up),
    parameterized by the normalized vertical component of the direction.

    Args:
        direction: The ray direction (need not be normalized).

    Returns:
        The background color (RGB).
    """
    t = 0.5 * (normalize(direction)[1] + 1.0)
    return (1.0 - t) * HORIZON_COLOR + t * SKY_COLOR


# =============================================================================
# Path Tracing Core
# =============================================================================


def trace_color(
    ray: Ray,
    scene: Scene,
    depth: int = 0,
    *,
    max_depth: int = MAX_DEPTH,
    rng: np.random.Generator | None = None,
) -> Vec3:
    """Compute the radiance arriving along a ray.

    Args:
        ray: The ray to trace.
        scene: The (frozen) scene to trace against.
        depth: Number of scatter events already on this path.
        max_depth: Bounce budget. Calls at depth >= max_depth return black.
            Clamped to MAX_RECURSION_DEPTH.
        rng: Random generator for material sampling. Defaults to the
            calling thread's generator.

    Returns:
        The estimated radiance (RGB, linear).
    """
    if rng is None:
        rng = get_thread_rng()
    max_depth = min(max_depth, MAX_RECURSION_DEPTH)

    # Bounce budget exhausted, whatever the ray would have hit
    if depth >= max_depth:
        return BLACK.copy()

    hit = scene.hit(ray, T_MIN, T_MAX)
    if hit is None:
        return background_color(ray.direction)

    result = scatter(scene.material(hit.material_id), ray, hit, rng)
    if result is None:
        return BLACK.copy()

    return result.attenuation * trace_color(
        result.scattered, scene, depth + 1, max_depth=max_depth, rng=rng
    )


def gamma_correct(color: Vec3) -> Vec3:
    """Map averaged linear radiance to display values (gamma 2).

    Non-finite components are replaced by zero and the result is clamped
    to [0, 1].
    """
    color = np.nan_to_num(color, nan=0.0, posinf=0.0, neginf=0.0)
    return np.sqrt(np.clip(color, 0.0, 1.0))


def render_pixel(
    scene: Scene,
    camera: Camera,
    col: int,
    row: int,
    width: int,
    height: int,
    samples_per_pixel: int,
    max_depth: int,
    rng: np.random.Generator,
) -> Vec3:
    """Render one pixel with independent jittered samples.

    Averages samples_per_pixel path samples through random sub-pixel
    positions, then applies gamma correction.

    Args:
        scene: The scene to render.
        camera: The camera producing primary rays.
        col: Pixel column (0 = left).
        row: Pixel row (0 = top).
        width: Image width in pixels.
        height: Image height in pixels.
        samples_per_pixel: Number of samples to average.
        max_depth: Bounce budget per path.
        rng: Random generator of the calling worker.

    Returns:
        The final pixel color, each channel in [0, 1].
    """
    total = np.zeros(3, dtype=np.float64)
    for _ in range(samples_per_pixel):
        ray = camera.get_ray_jittered(col, row, width, height, rng)
        total += trace_color(ray, scene, 0, max_depth=max_depth, rng=rng)
    return gamma_correct(total / samples_per_pixel)
