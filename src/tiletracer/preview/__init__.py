"""Preview module for output and visualization.

This module handles rendering output and static preview:

Components:
    display: Matplotlib-based preview display
    export: PPM and PNG image export utilities

Example:
    >>> from src.tiletracer.preview import save_png, show_preview, write_ppm
    >>>
    >>> write_ppm(result.framebuffer, result.output_name())
    >>> save_png(result.framebuffer, "output.png")
    >>> show_preview(result.framebuffer)
"""

from src.tiletracer.preview.display import show_preview
from src.tiletracer.preview.export import image_to_uint8, save_png, write_ppm

__all__ = [
    # Display functions
    "show_preview",
    # Export functions
    "write_ppm",
    "save_png",
    "image_to_uint8",
]
