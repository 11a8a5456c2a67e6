"""Tile scheduler distributing row-range jobs over a worker thread pool.

The image is split into RenderJobs, each a contiguous half-open range of rows.
Jobs are created once, up front, and placed in a JobQueue. A fixed pool of
worker threads (the calling thread is one of them) repeatedly claims a job,
renders it and publishes the TileResult to a CompletionSet:

    JobQueue.claim() -> render_job(job) -> CompletionSet.publish(result)

The orchestrating thread waits on the CompletionSet's condition until the
number of published results equals the number of jobs created, joins every
worker, and only then hands the results to the frame assembler.

Synchronization:
    - JobQueue: one lock guards the pending jobs. claim() returns None once
      nothing is left, so a valid job is never used as an end marker.
    - CompletionSet: one lock guards the results; a Condition on that lock is
      notified after every publication and on failure.
    - Scene, camera and materials are read-only and shared without locking.

If a worker raises, the failure is recorded, the queue is closed so the other
workers stop after their current job, and run() raises RuntimeError once all
threads are joined. No partial results are returned.

Example:
    >>> from src.tiletracer.core.scheduler import TileScheduler, make_jobs
    >>> jobs = make_jobs(height=10, width=20, rows_per_job=3, samples_per_pixel=4)
    >>> [(job.row_start, job.row_end) for job in jobs]
    [(0, 3), (3, 6), (6, 9), (9, 10)]
    >>> results = TileScheduler(render_job, num_workers=4).run(jobs)
"""

import logging
import os
import threading
from collections import deque
from collections.abc import Callable, Sequence
from dataclasses import dataclass

import numpy as np
import numpy.typing as npt

logger = logging.getLogger(__name__)

# Callback receives (completed_jobs, total_jobs)
ProgressCallback = Callable[[int, int], None]


# =============================================================================
# Jobs and Results
# =============================================================================


@dataclass(frozen=True)
class RenderJob:
    """A unit of work: rows [row_start, row_end) across the full width.

    Attributes:
        index: Position of the job in creation order.
        row_start: First row of the range (inclusive).
        row_end: End of the range (exclusive).
        width: Number of columns in the frame.
        samples_per_pixel: Samples to average per pixel.
    """

    index: int
    row_start: int
    row_end: int
    width: int
    samples_per_pixel: int

    @property
    def num_rows(self) -> int:
        """Number of rows covered by the job."""
        return self.row_end - self.row_start

    @property
    def num_pixels(self) -> int:
        """Number of pixels covered by the job."""
        return self.num_rows * self.width


@dataclass
class TileResult:
    """The rendered pixels of one RenderJob.

    Attributes:
        job: The job that produced this result.
        indices: Absolute framebuffer index (row * width + col) of each pixel.
        colors: Final color of each pixel, shape (len(indices), 3).
    """

    job: RenderJob
    indices: npt.NDArray[np.int64]
    colors: npt.NDArray[np.float64]

    def __post_init__(self) -> None:
        if self.colors.shape != (len(self.indices), 3):
            raise ValueError(
                f"Tile colors must have shape ({len(self.indices)}, 3), got {self.colors.shape}"
            )


RenderJobFn = Callable[[RenderJob], TileResult]


def make_jobs(
    height: int,
    width: int,
    rows_per_job: int,
    samples_per_pixel: int,
) -> list[RenderJob]:
    """Partition the frame's rows into contiguous jobs.

    Creates ceil(height / rows_per_job) jobs. Every job covers rows_per_job
    rows except the last, which takes whatever remains.

    Args:
        height: Image height in rows.
        width: Image width in columns.
        rows_per_job: Tile size in rows.
        samples_per_pixel: Samples per pixel for every job.

    Returns:
        The jobs in row order.

    Raises:
        ValueError: If any argument is not a positive integer.
    """
    for name, value in (
        ("height", height),
        ("width", width),
        ("rows_per_job", rows_per_job),
        ("samples_per_pixel", samples_per_pixel),
    ):
        if value <= 0:
            raise ValueError(f"{name} must be positive, got {value}")

    jobs = []
    for index, row_start in enumerate(range(0, height, rows_per_job)):
        jobs.append(
            RenderJob(
                index=index,
                row_start=row_start,
                row_end=min(row_start + rows_per_job, height),
                width=width,
                samples_per_pixel=samples_per_pixel,
            )
        )
    return jobs


def verify_partition(jobs: Sequence[RenderJob], height: int) -> None:
    """Check that the jobs' row ranges exactly tile [0, height).

    A bad partition is a programming error, so this raises RuntimeError
    rather than attempting to render.

    Raises:
        RuntimeError: On an empty job, a gap, an overlap, or rows outside
            [0, height).
    """
    if not jobs:
        raise RuntimeError("Job list is empty")

    next_row = 0
    for job in sorted(jobs, key=lambda j: j.row_start):
        if job.row_start >= job.row_end:
            raise RuntimeError(
                f"Job {job.index} has empty row range [{job.row_start}, {job.row_end})"
            )
        if job.row_start < next_row:
            raise RuntimeError(f"Job {job.index} overlaps rows before {next_row}")
        if job.row_start > next_row:
            raise RuntimeError(f"Rows [{next_row}, {job.row_start}) are not covered by any job")
        next_row = job.row_end

    if next_row != height:
        raise RuntimeError(f"Jobs cover rows [0, {next_row}) but the image has {height} rows")


# =============================================================================
# Shared Job Source and Result Collection
# =============================================================================


class JobQueue:
    """Thread-safe source of jobs; each job is handed out exactly once."""

    def __init__(self, jobs: Sequence[RenderJob]) -> None:
        self._lock = threading.Lock()
        self._pending: deque[RenderJob] = deque(jobs)

    def claim(self) -> RenderJob | None:
        """Atomically take the next job.

        Returns:
            The next unclaimed job, or None when no work remains.
        """
        with self._lock:
            if not self._pending:
                return None
            return self._pending.popleft()

    def close(self) -> int:
        """Drop all unclaimed jobs and return how many were dropped."""
        with self._lock:
            dropped = len(self._pending)
            self._pending.clear()
            return dropped

    def __len__(self) -> int:
        with self._lock:
            return len(self._pending)


class CompletionSet:
    """Thread-safe collection of published TileResults with a completion barrier."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._result_available = threading.Condition(self._lock)
        self._results: list[TileResult] = []
        self._failure: BaseException | None = None

    def publish(self, result: TileResult) -> int:
        """Append a result and wake the waiting orchestrator.

        Returns:
            The number of results published so far, including this one.
        """
        with self._lock:
            self._results.append(result)
            count = len(self._results)
            self._result_available.notify_all()
        return count

    def fail(self, exc: BaseException) -> None:
        """Record a worker failure and wake the orchestrator.

        Only the first failure is kept.
        """
        with self._lock:
            if self._failure is None:
                self._failure = exc
            self._result_available.notify_all()

    def wait(self, expected: int, timeout: float | None = None) -> bool:
        """Block until `expected` results are published or a worker failed.

        Args:
            expected: The total number of jobs created for the frame.
            timeout: Optional limit in seconds.

        Returns:
            True if the predicate was satisfied, False on timeout.
        """
        with self._lock:
            return self._result_available.wait_for(
                lambda: len(self._results) == expected or self._failure is not None,
                timeout=timeout,
            )

    @property
    def failure(self) -> BaseException | None:
        """The first recorded worker failure, if any."""
        with self._lock:
            return self._failure

    def results(self) -> list[TileResult]:
        """Snapshot of the published results in publication order."""
        with self._lock:
            return list(self._results)

    def __len__(self) -> int:
        with self._lock:
            return len(self._results)


# =============================================================================
# Workers
# =============================================================================


def worker_loop(
    queue: JobQueue,
    completed: CompletionSet,
    render_job: RenderJobFn,
    total_jobs: int,
    callback: ProgressCallback | None = None,
) -> int:
    """Claim, render and publish jobs until none remain.

    Args:
        queue: Shared job source.
        completed: Shared result collection.
        render_job: Renders one job into a TileResult.
        total_jobs: Number of jobs in the frame, passed to the callback.
        callback: Optional progress callback, invoked outside any lock.

    Returns:
        The number of jobs this worker completed.
    """
    done = 0
    name = threading.current_thread().name
    logger.debug("Worker %s started", name)

    while True:
        job = queue.claim()
        if job is None:
            break

        try:
            result = render_job(job)
            if result.job != job:
                raise RuntimeError(f"Job {job.index} produced a result for job {result.job.index}")
            count = completed.publish(result)
            done += 1
            if callback is not None:
                callback(count, total_jobs)
        except BaseException as exc:
            dropped = queue.close()
            logger.error(
                "Worker %s failed on job %d, dropping %d pending jobs", name, job.index, dropped
            )
            completed.fail(exc)
            # SystemExit and friends still end the thread, but only once the
            # orchestrator has been woken
            if not isinstance(exc, Exception):
                raise
            break

    logger.debug("Worker %s exiting after %d jobs", name, done)
    return done


def default_worker_count() -> int:
    """Pool size derived from the available hardware concurrency."""
    return os.cpu_count() or 1


class TileScheduler:
    """Runs a set of RenderJobs on a fixed pool of worker threads.

    The calling thread is one of the workers, so num_workers=1 renders
    everything on the caller without spawning threads.

    Attributes:
        num_workers: Total number of workers, including the calling thread.
    """

    def __init__(
        self,
        render_job: RenderJobFn,
        num_workers: int | None = None,
        callback: ProgressCallback | None = None,
    ) -> None:
        """Create a scheduler.

        Args:
            render_job: Renders one job into a TileResult. Called concurrently
                from several threads.
            num_workers: Pool size; defaults to default_worker_count().
            callback: Optional progress callback (completed_jobs, total_jobs).

        Raises:
            ValueError: If num_workers is not positive.
        """
        if num_workers is None:
            num_workers = default_worker_count()
        if num_workers <= 0:
            raise ValueError(f"num_workers must be positive, got {num_workers}")
        self.num_workers = num_workers
        self._render_job = render_job
        self._callback = callback

    def run(self, jobs: Sequence[RenderJob], height: int | None = None) -> list[TileResult]:
        """Render every job exactly once and return all results.

        Args:
            jobs: The jobs of one frame.
            height: Image height. When given, the jobs must exactly partition
                [0, height).

        Returns:
            One TileResult per job, in completion order.

        Raises:
            RuntimeError: If the partition is invalid or a worker failed.
        """
        if height is not None:
            verify_partition(jobs, height)
        if not jobs:
            return []

        total_jobs = len(jobs)
        queue = JobQueue(jobs)
        completed = CompletionSet()

        def run_worker() -> None:
            worker_loop(queue, completed, self._render_job, total_jobs, self._callback)

        # The calling thread is the last worker
        threads = [
            threading.Thread(target=run_worker, name=f"tile-worker-{i}", daemon=True)
            for i in range(self.num_workers - 1)
        ]
        logger.debug("Starting %d jobs on %d workers", total_jobs, self.num_workers)
        for thread in threads:
            thread.start()

        try:
            run_worker()
            completed.wait(total_jobs)
        except BaseException:
            queue.close()
            raise
        finally:
            for thread in threads:
                thread.join()

        failure = completed.failure
        if failure is not None:
            raise RuntimeError(f"Render failed in a worker thread: {failure}") from failure

        results = completed.results()
        if len(results) != total_jobs:
            raise RuntimeError(f"Expected {total_jobs} tile results, got {len(results)}")
        logger.debug("All %d jobs completed", total_jobs)
        return results
