"""Tests for the path tracing integrator.

Tests cover:
- Background gradient for escaping rays
- Bounce budget cutoff (black at depth >= max_depth)
- Absorption returns black
- Recursive attenuation through mirrors
- Gamma correction and pixel sampling
"""

import numpy as np
import pytest


def _mirror_box_scene():
    """Two facing perfect mirrors, so a ray between them bounces forever."""
    from src.tiletracer.materials.material import metal
    from src.tiletracer.scene.scene import Scene

    scene = Scene()
    mirror = scene.add_material(metal((0.9, 0.9, 0.9), 0.0))
    scene.add_sphere((0.0, 0.0, -1001.0), 1000.0, mirror)
    scene.add_sphere((0.0, 0.0, 1001.0), 1000.0, mirror)
    scene.freeze()
    return scene


class TestBackground:
    """Tests for the sky gradient."""

    def test_straight_up_is_sky_color(self):
        from src.tiletracer.core.integrator import SKY_COLOR, background_color
        from src.tiletracer.core.ray import vec3

        assert np.allclose(background_color(vec3(0.0, 1.0, 0.0)), SKY_COLOR)

    def test_straight_down_is_white(self):
        from src.tiletracer.core.integrator import background_color
        from src.tiletracer.core.ray import vec3

        assert np.allclose(background_color(vec3(0.0, -5.0, 0.0)), [1.0, 1.0, 1.0])

    def test_horizontal_is_midpoint(self):
        from src.tiletracer.core.integrator import background_color
        from src.tiletracer.core.ray import vec3

        assert np.allclose(background_color(vec3(1.0, 0.0, 0.0)), [0.75, 0.85, 1.0])

    def test_miss_returns_background(self, rng):
        """Test that a ray hitting nothing returns exactly the gradient."""
        from src.tiletracer.core.integrator import background_color, trace_color
        from src.tiletracer.core.ray import Ray, vec3
        from src.tiletracer.scene.scene import Scene

        scene = Scene()
        scene.freeze()
        direction = vec3(0.3, 0.4, -1.0)
        color = trace_color(Ray(vec3(0.0, 0.0, 0.0), direction), scene, rng=rng)

        assert np.allclose(color, background_color(direction))


class TestDepthCutoff:
    """Tests for the bounce budget."""

    def test_depth_at_budget_is_black_even_for_misses(self, rng):
        """Test that an exhausted path is black regardless of the ray."""
        from src.tiletracer.core.integrator import trace_color
        from src.tiletracer.core.ray import Ray, vec3
        from src.tiletracer.scene.scene import Scene

        scene = Scene()
        scene.freeze()
        ray = Ray(vec3(0.0, 0.0, 0.0), vec3(0.0, 1.0, 0.0))

        assert np.all(trace_color(ray, scene, depth=5, max_depth=5, rng=rng) == 0.0)
        assert np.all(trace_color(ray, scene, depth=9, max_depth=5, rng=rng) == 0.0)

    def test_zero_budget_is_black(self, rng, two_sphere_scene):
        from src.tiletracer.core.integrator import trace_color
        from src.tiletracer.core.ray import Ray, vec3

        ray = Ray(vec3(0.0, 0.0, 0.0), vec3(0.0, 0.0, -1.0))
        assert np.all(trace_color(ray, two_sphere_scene, max_depth=0, rng=rng) == 0.0)

    def test_endless_mirror_terminates_black(self, rng):
        """Test that a path trapped between mirrors returns black."""
        from src.tiletracer.core.integrator import trace_color
        from src.tiletracer.core.ray import Ray, vec3

        ray = Ray(vec3(0.0, 0.0, 0.0), vec3(0.0, 0.0, -1.0))
        color = trace_color(ray, _mirror_box_scene(), max_depth=50, rng=rng)

        assert np.all(color == 0.0)

    def test_huge_budget_is_capped(self, rng):
        """Test that an absurd depth does not exhaust the Python stack."""
        from src.tiletracer.core.integrator import trace_color
        from src.tiletracer.core.ray import Ray, vec3

        ray = Ray(vec3(0.0, 0.0, 0.0), vec3(0.0, 0.0, -1.0))
        color = trace_color(ray, _mirror_box_scene(), max_depth=100_000, rng=rng)

        assert np.all(color == 0.0)


class TestScattering:
    """Tests for recursion through materials."""

    def test_absorbing_surface_is_black(self, rng):
        """Test that a metal bounce absorbed by the surface contributes black."""
        from src.tiletracer.core.integrator import trace_color
        from src.tiletracer.core.ray import Ray, vec3
        from src.tiletracer.materials.material import metal
        from src.tiletracer.scene.scene import Scene

        # Every fuzzed reflection off a grazing hit on a fully rough metal
        # either escapes or is absorbed; never brighter than the sky
        scene = Scene()
        scene.add_sphere_with_material((0.0, 0.0, -2.0), 1.0, metal((1.0, 1.0, 1.0), 1.0))
        scene.freeze()

        colors = [
            trace_color(Ray(vec3(0.0, 0.999, 0.0), vec3(0.0, 0.0, -1.0)), scene, rng=rng)
            for _ in range(200)
        ]
        assert any(np.all(c == 0.0) for c in colors)
        assert all(np.all(c <= 1.0) for c in colors)

    def test_single_mirror_bounce(self, rng):
        """Test that one mirror bounce multiplies the sky by the albedo."""
        from src.tiletracer.core.integrator import background_color, trace_color
        from src.tiletracer.core.ray import Ray, vec3
        from src.tiletracer.materials.material import metal
        from src.tiletracer.scene.scene import Scene

        scene = Scene()
        scene.add_sphere_with_material((0.0, 0.0, -2.0), 1.0, metal((0.5, 0.6, 0.7), 0.0))
        scene.freeze()

        color = trace_color(Ray(vec3(0.0, 0.0, 0.0), vec3(0.0, 0.0, -1.0)), scene, rng=rng)

        # Head-on hit reflects straight back toward +z, which escapes
        expected = np.array([0.5, 0.6, 0.7]) * background_color(vec3(0.0, 0.0, 1.0))
        assert np.allclose(color, expected)

    def test_diffuse_colors_are_bounded(self, rng, two_sphere_scene):
        """Test that every traced color lies in [0, 1] per channel."""
        from src.tiletracer.core.integrator import trace_color
        from src.tiletracer.core.ray import Ray, random_unit_vector, vec3

        for _ in range(100):
            ray = Ray(vec3(0.0, 0.0, 0.0), random_unit_vector(rng))
            color = trace_color(ray, two_sphere_scene, max_depth=10, rng=rng)
            assert np.all(color >= 0.0)
            assert np.all(color <= 1.0)


class TestPixelSampling:
    """Tests for gamma correction and render_pixel."""

    def test_gamma_correct(self):
        from src.tiletracer.core.integrator import gamma_correct
        from src.tiletracer.core.ray import vec3

        assert np.allclose(gamma_correct(vec3(0.25, 1.0, 0.0)), [0.5, 1.0, 0.0])

    def test_gamma_correct_sanitizes(self):
        """Test that NaN and out-of-range values are clamped."""
        from src.tiletracer.core.integrator import gamma_correct

        result = gamma_correct(np.array([np.nan, 4.0, -1.0]))
        assert np.allclose(result, [0.0, 1.0, 0.0])

    def test_sky_pixel_follows_gradient(self, rng, two_sphere_camera_2x1):
        """Test the top row: squared color lies on the white-to-sky segment."""
        from src.tiletracer.core.integrator import render_pixel
        from src.tiletracer.scene.scene import Scene

        scene = Scene()
        scene.freeze()
        color = render_pixel(scene, two_sphere_camera_2x1, 10, 0, 20, 10, 8, 5, rng)

        linear = color**2
        t = (1.0 - linear[1]) / 0.3
        assert 0.0 <= t <= 1.0
        assert linear[2] == pytest.approx(1.0)
        assert linear[0] == pytest.approx(1.0 - 0.5 * t)

    def test_pixel_in_unit_range(self, rng, two_sphere_scene, two_sphere_camera_2x1):
        from src.tiletracer.core.integrator import render_pixel

        color = render_pixel(two_sphere_scene, two_sphere_camera_2x1, 10, 5, 20, 10, 4, 10, rng)
        assert color.shape == (3,)
        assert np.all((color >= 0.0) & (color <= 1.0))
