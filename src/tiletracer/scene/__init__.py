"""Scene module for scene management and procedural scenes.

This module handles scene representation and ray-scene queries:

Components:
    scene: Scene container holding spheres and the material arena
    random_scene: Procedural scene factories

Scene data is organized for fast linear scans:
    - Structure-of-Arrays layout for sphere centers, radii and material IDs
    - Materials stored once and referenced by index
    - Frozen (read-only) before rendering so workers can share it freely
"""

from .random_scene import create_random_scene, create_two_sphere_scene
from .scene import Scene

__all__ = [
    "Scene",
    "create_random_scene",
    "create_two_sphere_scene",
]
