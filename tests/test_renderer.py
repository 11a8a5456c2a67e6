"""Tests for frame rendering and assembly.

Tests cover:
- RenderConfig validation
- Framebuffer single-write enforcement
- Frame assembly from tiles
- End-to-end renders of the two-sphere scene
- Output naming from render statistics
"""

import threading

import numpy as np
import pytest


class TestRenderConfig:
    """Tests for render configuration."""

    def test_defaults(self):
        from src.tiletracer.core.integrator import MAX_DEPTH
        from src.tiletracer.core.renderer import DEFAULT_ROWS_PER_JOB, RenderConfig

        config = RenderConfig(width=40, height=20, samples_per_pixel=2)

        assert config.max_depth == MAX_DEPTH
        assert config.rows_per_job == DEFAULT_ROWS_PER_JOB
        assert config.num_workers is None
        assert config.aspect_ratio == 2.0
        assert config.num_pixels == 800

    @pytest.mark.parametrize(
        "overrides",
        [
            {"width": 0},
            {"height": -1},
            {"samples_per_pixel": 0},
            {"max_depth": 0},
            {"rows_per_job": 0},
            {"num_workers": 0},
            {"width": 2.5},
            {"height": True},
        ],
    )
    def test_invalid_values_rejected(self, overrides):
        from src.tiletracer.core.renderer import RenderConfig

        params = dict(width=20, height=10, samples_per_pixel=1)
        params.update(overrides)
        with pytest.raises(ValueError):
            RenderConfig(**params)


class TestFramebuffer:
    """Tests for the framebuffer."""

    def test_starts_zeroed(self):
        from src.tiletracer.core.renderer import Framebuffer

        fb = Framebuffer(4, 3)

        assert len(fb) == 12
        assert fb.pixels.shape == (12, 3)
        assert np.all(fb.pixels == 0.0)
        assert fb.num_written == 0
        assert not fb.is_complete()

    def test_write_and_read_pixel(self):
        from src.tiletracer.core.renderer import Framebuffer

        fb = Framebuffer(4, 3)
        fb.write(np.array([1 * 4 + 2]), np.array([[0.1, 0.2, 0.3]]))

        assert np.allclose(fb.pixel(2, 1), [0.1, 0.2, 0.3])
        assert fb.num_written == 1

    def test_double_write_rejected(self):
        """Test that writing a cell twice is reported as a defect."""
        from src.tiletracer.core.renderer import Framebuffer

        fb = Framebuffer(4, 3)
        fb.write(np.array([5]), np.array([[1.0, 1.0, 1.0]]))

        with pytest.raises(RuntimeError, match="more than once"):
            fb.write(np.array([5]), np.array([[0.0, 0.0, 0.0]]))
        with pytest.raises(RuntimeError, match="more than once"):
            fb.write(np.array([6, 6]), np.zeros((2, 3)))

    def test_out_of_range_rejected(self):
        from src.tiletracer.core.renderer import Framebuffer

        fb = Framebuffer(4, 3)
        with pytest.raises(RuntimeError, match="out of range"):
            fb.write(np.array([12]), np.zeros((1, 3)))

    def test_invalid_dimensions(self):
        from src.tiletracer.core.renderer import Framebuffer

        with pytest.raises(ValueError):
            Framebuffer(0, 3)

    def test_to_image_layout(self):
        """Test that row 0 of the image is the first row of the buffer."""
        from src.tiletracer.core.renderer import Framebuffer

        fb = Framebuffer(3, 2)
        fb.write(np.arange(6), np.repeat(np.arange(6, dtype=np.float64)[:, None], 3, axis=1))
        image = fb.to_image()

        assert image.shape == (2, 3, 3)
        assert image[0, 2, 0] == 2.0
        assert image[1, 0, 0] == 3.0


class TestAssembleFrame:
    """Tests for scattering tiles into the framebuffer."""

    def _results(self, height, width, rows_per_job):
        from src.tiletracer.core.scheduler import TileResult, make_jobs

        results = []
        for job in make_jobs(height, width, rows_per_job, 1):
            indices = np.arange(job.row_start * width, job.row_end * width, dtype=np.int64)
            colors = np.full((len(indices), 3), job.index / 10.0)
            results.append(TileResult(job=job, indices=indices, colors=colors))
        return results

    def test_assembles_in_any_order(self):
        from src.tiletracer.core.renderer import Framebuffer, assemble_frame

        results = self._results(10, 4, 3)
        fb = assemble_frame(list(reversed(results)), Framebuffer(4, 10))

        assert fb.is_complete()
        assert np.allclose(fb.pixel(0, 0), 0.0)
        assert np.allclose(fb.pixel(3, 9), 0.3)

    def test_missing_tile_detected(self):
        from src.tiletracer.core.renderer import Framebuffer, assemble_frame

        results = self._results(10, 4, 3)[:-1]
        with pytest.raises(RuntimeError, match="not produced"):
            assemble_frame(results, Framebuffer(4, 10))

    def test_duplicate_tile_detected(self):
        from src.tiletracer.core.renderer import Framebuffer, assemble_frame

        results = self._results(10, 4, 3)
        with pytest.raises(RuntimeError):
            assemble_frame(results + results[:1], Framebuffer(4, 10))


class TestRender:
    """End-to-end rendering tests."""

    def test_small_render(self, two_sphere_scene, two_sphere_camera_2x1):
        """Test a 20x10 frame split into four jobs on several workers."""
        from src.tiletracer.core.renderer import RenderConfig, render

        config = RenderConfig(
            width=20, height=10, samples_per_pixel=4, max_depth=5, rows_per_job=3, num_workers=4
        )
        result = render(two_sphere_scene, two_sphere_camera_2x1, config)

        assert result.num_jobs == 4
        assert result.num_workers == 4
        assert result.elapsed_seconds >= 0.0
        assert result.framebuffer.is_complete()
        assert result.framebuffer.num_written == 200
        assert np.all((result.framebuffer.pixels >= 0.0) & (result.framebuffer.pixels <= 1.0))

    def test_top_row_is_sky(self, two_sphere_scene, two_sphere_camera_2x1):
        """Test that every top-row pixel is a white-to-sky blend."""
        from src.tiletracer.core.renderer import RenderConfig, render

        config = RenderConfig(
            width=20, height=10, samples_per_pixel=4, max_depth=5, rows_per_job=3, num_workers=2
        )
        image = render(two_sphere_scene, two_sphere_camera_2x1, config).framebuffer.to_image()

        linear = image[0] ** 2
        t = (1.0 - linear[:, 1]) / 0.3
        assert np.allclose(linear[:, 2], 1.0)
        assert np.all((t >= -1e-9) & (t <= 1.0 + 1e-9))
        assert np.allclose(linear[:, 0], 1.0 - 0.5 * t)

    def test_sphere_center_is_darker_than_sky(self, two_sphere_scene, two_sphere_camera_2x1):
        from src.tiletracer.core.renderer import RenderConfig, render

        config = RenderConfig(width=20, height=10, samples_per_pixel=8, max_depth=5, rows_per_job=2)
        fb = render(two_sphere_scene, two_sphere_camera_2x1, config).framebuffer

        # The reddish sphere absorbs most blue light
        assert fb.pixel(10, 5)[2] < fb.pixel(10, 0)[2]

    @pytest.mark.parametrize("num_workers", [1, 3, 32])
    def test_structure_independent_of_pool_size(
        self, two_sphere_scene, two_sphere_camera_2x1, num_workers
    ):
        """Test that pool size changes nothing but the noise."""
        from src.tiletracer.core.renderer import RenderConfig, render

        config = RenderConfig(
            width=8, height=6, samples_per_pixel=1, max_depth=3, rows_per_job=4,
            num_workers=num_workers,
        )
        result = render(two_sphere_scene, two_sphere_camera_2x1, config)

        assert result.num_jobs == 2
        assert result.framebuffer.is_complete()
        assert result.framebuffer.to_image().shape == (6, 8, 3)

    def test_scene_is_frozen_by_render(self, two_sphere_camera_2x1):
        from src.tiletracer.core.renderer import RenderConfig, render
        from src.tiletracer.materials.material import lambertian
        from src.tiletracer.scene.scene import Scene

        scene = Scene()
        scene.add_sphere_with_material((0.0, 0.0, -1.0), 0.5, lambertian((0.5, 0.5, 0.5)))
        render(scene, two_sphere_camera_2x1, RenderConfig(width=4, height=2, samples_per_pixel=1))

        assert scene.frozen

    def test_progress_reaches_total(self, two_sphere_scene, two_sphere_camera_2x1):
        from src.tiletracer.core.renderer import RenderConfig, render

        updates = []
        lock = threading.Lock()

        def callback(current, total):
            with lock:
                updates.append((current, total))

        config = RenderConfig(
            width=6, height=6, samples_per_pixel=1, max_depth=2, rows_per_job=2, num_workers=2
        )
        render(two_sphere_scene, two_sphere_camera_2x1, config, callback=callback)

        assert max(updates) == (3, 3)
        assert len(updates) == 3

    def test_assembly_waits_for_every_tile(
        self, two_sphere_scene, two_sphere_camera_2x1, monkeypatch
    ):
        """Test that the frame is assembled only after all tiles and workers finish."""
        from src.tiletracer.core import renderer
        from src.tiletracer.core.renderer import RenderConfig

        finished = []
        lock = threading.Lock()
        release_first_tile = threading.Event()
        real_render_tile = renderer.render_tile
        real_assemble_frame = renderer.assemble_frame

        def slow_render_tile(job, *args, **kwargs):
            if job.index == 0:
                # Hold back the first tile until the other tiles are done
                release_first_tile.wait(timeout=5.0)
            result = real_render_tile(job, *args, **kwargs)
            with lock:
                finished.append(job.index)
                if len(finished) == 3:
                    release_first_tile.set()
            return result

        seen_at_assembly = {}

        def checking_assemble_frame(results, framebuffer):
            with lock:
                seen_at_assembly["finished"] = sorted(finished)
            seen_at_assembly["results"] = len(results)
            seen_at_assembly["written_before"] = framebuffer.num_written
            seen_at_assembly["workers_alive"] = [
                t.name for t in threading.enumerate() if t.name.startswith("tile-worker-")
            ]
            return real_assemble_frame(results, framebuffer)

        monkeypatch.setattr(renderer, "render_tile", slow_render_tile)
        monkeypatch.setattr(renderer, "assemble_frame", checking_assemble_frame)

        config = RenderConfig(
            width=8, height=8, samples_per_pixel=1, max_depth=2, rows_per_job=2, num_workers=3
        )
        result = renderer.render(two_sphere_scene, two_sphere_camera_2x1, config)

        assert seen_at_assembly["finished"] == [0, 1, 2, 3]
        assert seen_at_assembly["results"] == 4
        assert seen_at_assembly["written_before"] == 0
        assert seen_at_assembly["workers_alive"] == []
        assert result.framebuffer.is_complete()

    def test_failure_propagates(self, two_sphere_scene, two_sphere_camera_2x1, monkeypatch):
        """Test that a failing tile aborts the render with RuntimeError."""
        from src.tiletracer.core import renderer
        from src.tiletracer.core.renderer import RenderConfig

        def broken_pixel(*args):
            raise FloatingPointError("bad sample")

        monkeypatch.setattr(renderer, "render_pixel", broken_pixel)
        config = RenderConfig(width=4, height=4, samples_per_pixel=1, rows_per_job=1, num_workers=2)

        with pytest.raises(RuntimeError, match="bad sample"):
            renderer.render(two_sphere_scene, two_sphere_camera_2x1, config)


class TestRenderResult:
    """Tests for render metadata."""

    def test_output_name(self):
        from src.tiletracer.core.renderer import Framebuffer, RenderConfig, RenderResult

        config = RenderConfig(width=1200, height=800, samples_per_pixel=10)
        result = RenderResult(
            framebuffer=Framebuffer(1200, 800),
            config=config,
            elapsed_seconds=12.7,
            num_jobs=50,
            num_workers=8,
        )

        assert result.output_name() == "block-jobq-x1200-y800-s10-12sec.ppm"
        assert result.output_name(prefix="frame", ext="png") == "frame-x1200-y800-s10-12sec.png"
