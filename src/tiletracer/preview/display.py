"""Matplotlib-based preview display for rendered frames.

The framebuffer already holds gamma-corrected colors in [0, 1], so the
preview shows it as-is.

Example:
    >>> from src.tiletracer.preview.display import show_preview
    >>> show_preview(result.framebuffer, title="Random scene")
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from src.tiletracer.core.renderer import Framebuffer


def show_preview(
    framebuffer: Framebuffer,
    *,
    title: str | None = None,
    figsize: tuple[float, float] = (8, 6),
    block: bool = True,
) -> None:
    """Display a finished frame as a Matplotlib figure.

    Args:
        framebuffer: The populated framebuffer to show.
        title: Custom title (default shows the frame size).
        figsize: Figure size in inches (width, height).
        block: Whether to block execution until figure is closed.
    """
    import matplotlib.pyplot as plt

    image = np.clip(framebuffer.to_image(), 0.0, 1.0)

    fig, ax = plt.subplots(1, 1, figsize=figsize)
    ax.imshow(image)
    ax.axis("off")

    if title is None:
        title = f"Render Preview - {framebuffer.width}x{framebuffer.height}"
    ax.set_title(title)

    plt.tight_layout()
    plt.show(block=block)
