"""Frame rendering: configuration, tile execution and frame assembly.

This module ties the pieces together:

    RenderConfig -> make_jobs -> TileScheduler(render_tile) -> assemble_frame

render() validates the configuration before any thread is started, freezes
the scene, runs the scheduler until every tile has been published and every
worker joined, and then scatters the tiles into a Framebuffer on the calling
thread. Workers never touch the framebuffer.

Example:
    >>> from src.tiletracer.camera.camera import setup_camera, two_sphere_camera
    >>> from src.tiletracer.core.renderer import RenderConfig, render
    >>> from src.tiletracer.scene.random_scene import create_two_sphere_scene
    >>>
    >>> config = RenderConfig(width=20, height=10, samples_per_pixel=4, max_depth=5,
    ...                       rows_per_job=3)
    >>> camera = setup_camera(two_sphere_camera(config.aspect_ratio))
    >>> result = render(create_two_sphere_scene(), camera, config)
    >>> result.num_jobs
    4
"""

import time
from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np
import numpy.typing as npt

from src.tiletracer.camera.camera import Camera
from src.tiletracer.core.integrator import MAX_DEPTH, render_pixel
from src.tiletracer.core.ray import get_thread_rng
from src.tiletracer.core.scheduler import (
    ProgressCallback,
    RenderJob,
    TileResult,
    TileScheduler,
    make_jobs,
)
from src.tiletracer.scene.scene import Scene

# Default tile size in rows
DEFAULT_ROWS_PER_JOB = 16


@dataclass
class RenderConfig:
    """Render settings consumed by the core.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        samples_per_pixel: Samples averaged per pixel. More samples reduce
            noise at linear cost.
        max_depth: Bounce budget per path.
        rows_per_job: Tile size in rows; trades scheduling overhead against
            load balance.
        num_workers: Worker pool size including the calling thread. None uses
            the available hardware concurrency.
    """

    width: int
    height: int
    samples_per_pixel: int
    max_depth: int = MAX_DEPTH
    rows_per_job: int = DEFAULT_ROWS_PER_JOB
    num_workers: int | None = None

    def __post_init__(self) -> None:
        for name in ("width", "height", "samples_per_pixel", "max_depth", "rows_per_job"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{name} must be an integer, got {value!r}")
            if value <= 0:
                raise ValueError(f"{name} must be positive, got {value}")
        if self.num_workers is not None and self.num_workers <= 0:
            raise ValueError(f"num_workers must be positive, got {self.num_workers}")

    @property
    def aspect_ratio(self) -> float:
        """Width divided by height."""
        return self.width / self.height

    @property
    def num_pixels(self) -> int:
        """Total number of pixels in the frame."""
        return self.width * self.height


# =============================================================================
# Framebuffer and Assembly
# =============================================================================


class Framebuffer:
    """Fixed-size array of colors, one per pixel, index = row * width + col.

    Starts zeroed. Each cell may be written once; a second write is a
    scheduling defect and raises RuntimeError.
    """

    def __init__(self, width: int, height: int) -> None:
        if width <= 0 or height <= 0:
            raise ValueError(f"Framebuffer dimensions must be positive, got {width}x{height}")
        self.width = width
        self.height = height
        self.pixels: npt.NDArray[np.float64] = np.zeros((width * height, 3), dtype=np.float64)
        self._written = np.zeros(width * height, dtype=bool)

    def __len__(self) -> int:
        return self.width * self.height

    def write(self, indices: npt.NDArray[np.int64], colors: npt.NDArray[np.float64]) -> None:
        """Write colors into the given cells.

        Raises:
            RuntimeError: If an index is out of range, repeated, or was
                already written.
        """
        indices = np.asarray(indices, dtype=np.int64)
        if len(indices) == 0:
            return
        if indices.min() < 0 or indices.max() >= len(self):
            raise RuntimeError(f"Pixel index out of range for a {self.width}x{self.height} frame")
        if len(np.unique(indices)) != len(indices) or self._written[indices].any():
            raise RuntimeError("Framebuffer cell written more than once")
        self.pixels[indices] = colors
        self._written[indices] = True

    def is_complete(self) -> bool:
        """Whether every cell has been written."""
        return bool(self._written.all())

    @property
    def num_written(self) -> int:
        """Number of cells written so far."""
        return int(self._written.sum())

    def pixel(self, col: int, row: int) -> npt.NDArray[np.float64]:
        """Color at (col, row), row 0 at the top."""
        return self.pixels[row * self.width + col]

    def to_image(self) -> npt.NDArray[np.float64]:
        """The frame as a (height, width, 3) array, top row first."""
        return self.pixels.reshape(self.height, self.width, 3).copy()


def assemble_frame(results: Sequence[TileResult], framebuffer: Framebuffer) -> Framebuffer:
    """Scatter every tile's pixels into the framebuffer.

    Must run after all workers have been joined; it is single-threaded and
    does no I/O.

    Raises:
        RuntimeError: If tiles overlap or leave cells unwritten.
    """
    for result in sorted(results, key=lambda r: r.job.row_start):
        framebuffer.write(result.indices, result.colors)

    if not framebuffer.is_complete():
        missing = len(framebuffer) - framebuffer.num_written
        raise RuntimeError(f"{missing} pixels were not produced by any tile")
    return framebuffer


# =============================================================================
# Tile Execution
# =============================================================================


def render_tile(
    job: RenderJob,
    scene: Scene,
    camera: Camera,
    height: int,
    max_depth: int,
    rng: np.random.Generator | None = None,
) -> TileResult:
    """Render every pixel of a job's row range in row-major order.

    Args:
        job: The rows to render.
        scene: The frozen scene.
        camera: The shared camera.
        height: Full image height (needed to map rows to the viewport).
        max_depth: Bounce budget per path.
        rng: Random generator; defaults to the calling thread's generator.

    Returns:
        The tile's absolute pixel indices and gamma-corrected colors.
    """
    if rng is None:
        rng = get_thread_rng()

    indices = np.empty(job.num_pixels, dtype=np.int64)
    colors = np.empty((job.num_pixels, 3), dtype=np.float64)

    k = 0
    for row in range(job.row_start, job.row_end):
        for col in range(job.width):
            indices[k] = row * job.width + col
            colors[k] = render_pixel(
                scene, camera, col, row, job.width, height, job.samples_per_pixel, max_depth, rng
            )
            k += 1

    return TileResult(job=job, indices=indices, colors=colors)


# =============================================================================
# Public Rendering API
# =============================================================================


@dataclass
class RenderResult:
    """A finished frame plus timing metadata.

    Attributes:
        framebuffer: The fully populated framebuffer.
        config: The configuration used.
        elapsed_seconds: Wall-clock time of the render.
        num_jobs: Number of tiles the frame was split into.
        num_workers: Worker pool size used.
    """

    framebuffer: Framebuffer
    config: RenderConfig
    elapsed_seconds: float
    num_jobs: int
    num_workers: int

    def output_name(self, prefix: str = "block-jobq", ext: str = "ppm") -> str:
        """File name describing the render, e.g. block-jobq-x1200-y800-s10-12sec.ppm."""
        return (
            f"{prefix}-x{self.config.width}-y{self.config.height}"
            f"-s{self.config.samples_per_pixel}-{int(self.elapsed_seconds)}sec.{ext}"
        )


def render(
    scene: Scene,
    camera: Camera,
    config: RenderConfig,
    callback: ProgressCallback | None = None,
) -> RenderResult:
    """Render a frame with the tile scheduler.

    Args:
        scene: The scene to render. Frozen by this call if it is not already.
        camera: The camera producing primary rays.
        config: Render settings.
        callback: Optional progress callback (completed_tiles, total_tiles),
            called from worker threads.

    Returns:
        The populated framebuffer and timing metadata.

    Raises:
        RuntimeError: If a worker fails or the scheduler breaks an invariant.
    """
    scene.freeze()

    jobs = make_jobs(config.height, config.width, config.rows_per_job, config.samples_per_pixel)

    def render_job(job: RenderJob) -> TileResult:
        return render_tile(job, scene, camera, config.height, config.max_depth)

    scheduler = TileScheduler(render_job, num_workers=config.num_workers, callback=callback)

    start_time = time.perf_counter()
    results = scheduler.run(jobs, height=config.height)
    framebuffer = assemble_frame(results, Framebuffer(config.width, config.height))
    elapsed = time.perf_counter() - start_time

    return RenderResult(
        framebuffer=framebuffer,
        config=config,
        elapsed_seconds=elapsed,
        num_jobs=len(jobs),
        num_workers=scheduler.num_workers,
    )
