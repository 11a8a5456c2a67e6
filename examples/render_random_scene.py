#!/usr/bin/env python3
"""Render a sphere scene with the multi-threaded tile renderer.

This script builds a scene, sets up the camera, renders it on a pool of
worker threads and writes the frame as an ASCII PPM file (and optionally a
PNG).

Usage:
    python -m examples.render_random_scene [options]

Options:
    --width WIDTH           Image width in pixels (default: 400)
    --height HEIGHT         Image height in pixels (default: 225)
    --samples SAMPLES       Number of samples per pixel (default: 10)
    --max-depth DEPTH       Maximum bounces per path (default: 50)
    --rows-per-job ROWS     Rows per tile (default: 16)
    --workers N             Worker threads including the main thread
                            (default: CPU count)
    --scene NAME            "random" or "two-spheres" (default: random)
    --seed SEED             Seed for scene generation (default: 0)
    --output OUTPUT         PPM output path (default: name from render stats)
    --png PNG               Also save a PNG to this path
    --preview               Show the result in a Matplotlib window
    --quiet                 Suppress progress output
    --verbose               Enable debug logging from the scheduler

Example:
    python -m examples.render_random_scene --width 200 --height 100 --samples 4
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path

import numpy as np


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render a sphere scene with the tile renderer.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--width", type=int, default=400, help="Image width in pixels (default: 400)")
    parser.add_argument("--height", type=int, default=225, help="Image height in pixels (default: 225)")
    parser.add_argument(
        "--samples",
        type=int,
        default=10,
        help="Number of samples per pixel (default: 10)",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        default=50,
        help="Maximum bounces per path (default: 50)",
    )
    parser.add_argument(
        "--rows-per-job",
        type=int,
        default=16,
        help="Rows per tile (default: 16)",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Worker threads including the main thread (default: CPU count)",
    )
    parser.add_argument(
        "--scene",
        choices=["random", "two-spheres"],
        default="random",
        help="Scene to render (default: random)",
    )
    parser.add_argument("--seed", type=int, default=0, help="Seed for scene generation (default: 0)")
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="PPM output path (default: name derived from render stats)",
    )
    parser.add_argument("--png", type=str, default=None, help="Also save a PNG to this path")
    parser.add_argument("--preview", action="store_true", help="Show the result in a window")
    parser.add_argument("--quiet", action="store_true", help="Suppress progress output")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def render_scene(
    width: int = 400,
    height: int = 225,
    num_samples: int = 10,
    max_depth: int = 50,
    rows_per_job: int = 16,
    num_workers: int | None = None,
    scene_name: str = "random",
    seed: int = 0,
    output_path: str | None = None,
    png_path: str | None = None,
    preview: bool = False,
    quiet: bool = False,
) -> Path:
    """Render a scene and save it to file.

    Args:
        width: Image width in pixels.
        height: Image height in pixels.
        num_samples: Number of samples per pixel.
        max_depth: Maximum bounces per path.
        rows_per_job: Rows per tile.
        num_workers: Worker pool size, None for the CPU count.
        scene_name: "random" or "two-spheres".
        seed: Seed for scene generation.
        output_path: PPM output path, None to derive it from the render.
        png_path: Optional PNG output path.
        preview: Show the frame in a Matplotlib window.
        quiet: If True, suppress progress output.

    Returns:
        Path to the saved PPM file.
    """
    from src.tiletracer.camera.camera import random_scene_camera, setup_camera, two_sphere_camera
    from src.tiletracer.core.renderer import RenderConfig, render
    from src.tiletracer.preview.export import save_png, write_ppm
    from src.tiletracer.scene.random_scene import create_random_scene, create_two_sphere_scene

    # Validate before building anything
    config = RenderConfig(
        width=width,
        height=height,
        samples_per_pixel=num_samples,
        max_depth=max_depth,
        rows_per_job=rows_per_job,
        num_workers=num_workers,
    )

    if not quiet:
        print(f"Creating {scene_name} scene ({width}x{height})...")

    if scene_name == "random":
        scene = create_random_scene(np.random.default_rng(seed))
        camera = setup_camera(random_scene_camera(config.aspect_ratio))
    else:
        scene = create_two_sphere_scene()
        camera = setup_camera(two_sphere_camera(config.aspect_ratio))

    if not quiet:
        print(f"Rendering {len(scene)} spheres at {num_samples} samples per pixel...")

    start_time = time.time()

    def progress_callback(current: int, target: int) -> None:
        if not quiet:
            elapsed = time.time() - start_time
            progress_pct = (current / target) * 100 if target > 0 else 0
            print(
                f"\r  Progress: {current}/{target} tiles ({progress_pct:.1f}%) - {elapsed:.1f}s",
                end="",
                flush=True,
            )

    result = render(scene, camera, config, callback=progress_callback)

    if not quiet:
        print()  # Newline after progress
        print(f" - time {result.elapsed_seconds * 1000:.0f} ms on {result.num_workers} workers")

    output_file = write_ppm(result.framebuffer, output_path or result.output_name())
    if not quiet:
        print(f"File saved: {output_file.absolute()}")

    if png_path is not None:
        png_file = save_png(result.framebuffer, png_path)
        if not quiet:
            print(f"PNG saved: {png_file.absolute()}")

    if preview:
        from src.tiletracer.preview.display import show_preview

        show_preview(result.framebuffer, title=output_file.name)

    return output_file


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="[%(asctime)s] [%(threadName)s] %(name)s: %(message)s",
    )

    try:
        render_scene(
            width=args.width,
            height=args.height,
            num_samples=args.samples,
            max_depth=args.max_depth,
            rows_per_job=args.rows_per_job,
            num_workers=args.workers,
            scene_name=args.scene,
            seed=args.seed,
            output_path=args.output,
            png_path=args.png,
            preview=args.preview,
            quiet=args.quiet,
        )
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
