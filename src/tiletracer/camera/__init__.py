"""Camera module for view and ray generation.

This module provides the camera model for generating primary rays:

Components:
    camera: Look-at perspective camera with optional thin-lens defocus

Camera responsibilities:
    - Transform (s, t) image coordinates to world-space rays
    - Apply anti-aliasing jitter for sub-pixel sampling
    - Support look-at positioning with up vector
    - Compute the viewport from the vertical field of view

Ray generation uses normalized device coordinates:
    s in [0, 1]: left to right across image
    t in [0, 1]: bottom to top across image
"""

from .camera import (
    Camera,
    CameraConfig,
    random_scene_camera,
    setup_camera,
    two_sphere_camera,
)

__all__ = [
    "Camera",
    "CameraConfig",
    "setup_camera",
    "random_scene_camera",
    "two_sphere_camera",
]
