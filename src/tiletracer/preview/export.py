"""Image export utilities for rendered frames.

This module provides functions for saving a finished Framebuffer to disk.
Framebuffer colors are already gamma corrected (gamma 2) and lie in [0, 1],
so export only quantizes to 8 bits.

Supported formats:
    - PPM (ASCII P3 pixel dump)
    - PNG (8-bit via Pillow)

Example:
    >>> from src.tiletracer.preview.export import save_png, write_ppm
    >>> write_ppm(result.framebuffer, "frame.ppm")
    >>> save_png(result.framebuffer, "frame.png")
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

if TYPE_CHECKING:
    from src.tiletracer.core.renderer import Framebuffer

# Scale used when quantizing [0, 1] floats to 8-bit channels
QUANTIZE_SCALE = 255.99


def image_to_uint8(framebuffer: Framebuffer) -> npt.NDArray[np.uint8]:
    """Convert a framebuffer to an 8-bit image array.

    Returns:
        Array of shape (height, width, 3) with dtype uint8, top row first.
    """
    image = np.clip(framebuffer.to_image(), 0.0, 1.0)
    return np.minimum(image * QUANTIZE_SCALE, 255.0).astype(np.uint8)


def write_ppm(framebuffer: Framebuffer, filepath: str | Path) -> Path:
    """Write the framebuffer as an ASCII PPM (P3) file.

    The header is "P3", then "width height", then "255". Each following line
    holds one pixel as "r g b", pixels in row-major order, top row first.

    Args:
        framebuffer: A fully populated framebuffer.
        filepath: Output file path.

    Returns:
        The path written.
    """
    path = Path(filepath)
    image = image_to_uint8(framebuffer).reshape(-1, 3)

    lines = [f"P3\n{framebuffer.width} {framebuffer.height}\n255\n"]
    lines.extend(f"{r} {g} {b}\n" for r, g, b in image.tolist())

    with path.open("w", encoding="ascii") as handle:
        handle.writelines(lines)
    return path


def save_png(framebuffer: Framebuffer, filepath: str | Path) -> Path:
    """Save the framebuffer as an 8-bit PNG file.

    Args:
        framebuffer: A fully populated framebuffer.
        filepath: Output file path (should end in .png).

    Returns:
        The path written.
    """
    path = Path(filepath)
    pil_image = PILImage.fromarray(image_to_uint8(framebuffer))
    pil_image.save(path)
    return path
