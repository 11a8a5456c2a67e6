"""Pytest configuration for tiletracer tests.

This module provides shared fixtures for all test modules: a seeded random
generator, the small two-sphere scene and a matching camera.
"""

import matplotlib
import numpy as np
import pytest

# Never open windows during tests
matplotlib.use("Agg")


@pytest.fixture
def rng():
    """Deterministic random generator for a single test."""
    return np.random.default_rng(42)


@pytest.fixture
def two_sphere_scene():
    """Frozen ground-plus-sphere scene."""
    from src.tiletracer.scene.random_scene import create_two_sphere_scene

    return create_two_sphere_scene()


@pytest.fixture
def two_sphere_camera_2x1():
    """Pinhole camera for a 2:1 frame looking at the two-sphere scene."""
    from src.tiletracer.camera.camera import setup_camera, two_sphere_camera

    return setup_camera(two_sphere_camera(2.0))
