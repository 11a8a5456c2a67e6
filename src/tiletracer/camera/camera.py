"""Perspective camera model for primary ray generation.

This module implements a look-at camera that generates primary rays for rendering.
The camera supports:
- Look-at positioning (lookfrom, lookat, vup)
- Vertical field of view in degrees
- Arbitrary aspect ratios
- Thin-lens depth of field (aperture, focus distance)
- Jittered sampling for anti-aliasing

The camera builds an orthonormal basis (u, v, w) from the view parameters:
- w: points from lookat toward lookfrom (opposite view direction)
- u: points right in the image plane
- v: points up in the image plane

With aperture = 0 the camera is a pinhole and get_ray() needs no randomness.

Example:
    >>> from src.tiletracer.camera.camera import CameraConfig, setup_camera
    >>>
    >>> # Create camera looking at origin from z=3
    >>> camera = setup_camera(CameraConfig(
    ...     lookfrom=(0.0, 0.0, 3.0),
    ...     lookat=(0.0, 0.0, 0.0),
    ...     vup=(0.0, 1.0, 0.0),
    ...     vfov=60.0,
    ...     aspect_ratio=16.0/9.0
    ... ))
    >>> ray = camera.get_ray(0.5, 0.5)  # Ray through image center
"""

import math
from dataclasses import dataclass

import numpy as np

from src.tiletracer.core.ray import Ray, Vec3, normalize, random_in_unit_disk

# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass
class CameraConfig:
    """Configuration for a perspective camera.

    Attributes:
        lookfrom: Camera position in world space (x, y, z).
        lookat: Point the camera is looking at in world space (x, y, z).
        vup: Up direction vector for camera orientation (typically (0, 1, 0)).
        vfov: Vertical field of view in degrees.
        aspect_ratio: Width divided by height of the output image.
        aperture: Lens diameter. 0 gives a pinhole camera with no blur.
        focus_dist: Distance from lookfrom to the plane in perfect focus.
    """

    lookfrom: tuple[float, float, float]
    lookat: tuple[float, float, float]
    vup: tuple[float, float, float]
    vfov: float
    aspect_ratio: float
    aperture: float = 0.0
    focus_dist: float = 1.0


class Camera:
    """Immutable camera state derived from a CameraConfig.

    Holds the orthonormal basis and viewport geometry. All methods are
    read-only, so one Camera can be shared by every worker thread.
    """

    def __init__(self, config: CameraConfig) -> None:
        if not 0.0 < config.vfov < 180.0:
            raise ValueError(f"Vertical field of view must be in (0, 180), got {config.vfov}")
        if config.aspect_ratio <= 0.0:
            raise ValueError(f"Aspect ratio must be positive, got {config.aspect_ratio}")
        if config.aperture < 0.0:
            raise ValueError(f"Aperture must be non-negative, got {config.aperture}")
        if config.focus_dist <= 0.0:
            raise ValueError(f"Focus distance must be positive, got {config.focus_dist}")

        self.config = config

        theta = math.radians(config.vfov)
        h = math.tan(theta / 2.0)

        # Viewport dimensions on the focus plane
        viewport_height = 2.0 * h
        viewport_width = config.aspect_ratio * viewport_height

        lookfrom = np.array(config.lookfrom, dtype=np.float64)
        lookat = np.array(config.lookat, dtype=np.float64)
        vup = np.array(config.vup, dtype=np.float64)

        # w points from lookat toward lookfrom (backward)
        w = normalize(lookfrom - lookat)
        # u points right (perpendicular to w and vup)
        u = normalize(np.cross(vup, w))
        if not u.any():
            raise ValueError("Up vector must not be parallel to the view direction")
        # v points up in the camera's frame
        v = np.cross(w, u)

        self.origin: Vec3 = lookfrom
        self.u: Vec3 = u
        self.v: Vec3 = v
        self.w: Vec3 = w
        self.horizontal: Vec3 = config.focus_dist * viewport_width * u
        self.vertical: Vec3 = config.focus_dist * viewport_height * v
        self.lower_left: Vec3 = (
            lookfrom - self.horizontal / 2.0 - self.vertical / 2.0 - config.focus_dist * w
        )
        self.lens_radius = config.aperture / 2.0

        for vector in (
            self.origin, self.u, self.v, self.w, self.horizontal, self.vertical, self.lower_left
        ):
            vector.flags.writeable = False

    # =========================================================================
    # Ray Generation
    # =========================================================================

    def get_ray(self, s: float, t: float, rng: np.random.Generator | None = None) -> Ray:
        """Generate a ray through normalized image coordinates (s, t).

        The coordinates are normalized:
        - s = 0: left edge of image, s = 1: right edge
        - t = 0: bottom edge of image, t = 1: top edge

        Args:
            s: Horizontal coordinate in [0, 1] (left to right).
            t: Vertical coordinate in [0, 1] (bottom to top).
            rng: Random generator for lens sampling. Required when the
                aperture is non-zero.

        Returns:
            A Ray from the (possibly lens-offset) camera origin toward the
            specified point on the focus plane.
        """
        origin = self.origin
        if self.lens_radius > 0.0:
            if rng is None:
                raise ValueError("A random generator is required when aperture > 0")
            rd = self.lens_radius * random_in_unit_disk(rng)
            origin = origin + self.u * rd[0] + self.v * rd[1]

        target = self.lower_left + s * self.horizontal + t * self.vertical
        return Ray(origin=origin, direction=target - origin)

    def get_ray_jittered(
        self,
        col: int,
        row: int,
        width: int,
        height: int,
        rng: np.random.Generator,
    ) -> Ray:
        """Generate a jittered ray for anti-aliasing.

        Framebuffer rows are counted from the top of the image, so row 0 maps
        to the top of the viewport. A random offset in [0, 1) is added on both
        axes.

        Args:
            col: Pixel column (0 = left).
            row: Pixel row (0 = top).
            width: Image width in pixels.
            height: Image height in pixels.
            rng: Random generator of the calling worker.

        Returns:
            A Ray with random sub-pixel offset.
        """
        jitter_s, jitter_t = rng.random(2)
        s = (col + jitter_s) / width
        t = (height - 1 - row + jitter_t) / height
        return self.get_ray(s, t, rng)

    def info(self) -> dict[str, tuple[float, float, float]]:
        """Get the camera basis and viewport vectors for debugging."""
        def as_tuple(vector: Vec3) -> tuple[float, float, float]:
            return (float(vector[0]), float(vector[1]), float(vector[2]))

        return {
            "origin": as_tuple(self.origin),
            "u": as_tuple(self.u),
            "v": as_tuple(self.v),
            "w": as_tuple(self.w),
            "horizontal": as_tuple(self.horizontal),
            "vertical": as_tuple(self.vertical),
            "lower_left": as_tuple(self.lower_left),
        }


def setup_camera(config: CameraConfig) -> Camera:
    """Compute camera state from configuration.

    Raises:
        ValueError: If the configuration describes a degenerate camera.
    """
    return Camera(config)


# =============================================================================
# Camera Presets
# =============================================================================


def random_scene_camera(aspect_ratio: float) -> CameraConfig:
    """Camera overlooking the random sphere field, with slight defocus."""
    return CameraConfig(
        lookfrom=(13.0, 2.0, 3.0),
        lookat=(0.0, 0.0, 0.0),
        vup=(0.0, 1.0, 0.0),
        vfov=20.0,
        aspect_ratio=aspect_ratio,
        aperture=0.1,
        focus_dist=10.0,
    )


def two_sphere_camera(aspect_ratio: float) -> CameraConfig:
    """Pinhole camera at the origin looking down -z with a 90 degree view."""
    return CameraConfig(
        lookfrom=(0.0, 0.0, 0.0),
        lookat=(0.0, 0.0, -1.0),
        vup=(0.0, 1.0, 0.0),
        vfov=90.0,
        aspect_ratio=aspect_ratio,
    )
