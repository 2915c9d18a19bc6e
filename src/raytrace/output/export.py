"""Image export utilities for rendered images.

This module converts the linear-light image produced by the integrator into
8-bit display values and writes it to disk.

Display transform:
    1. Gamma 2 encoding (square root of each channel)
    2. Clamp to [0, 0.999]
    3. Quantize with floor(256 * value)

Supported formats:
    - PPM (plain-text P3, no dependencies)
    - PNG (8-bit via Pillow)

Example:
    >>> from src.raytrace.output.export import save_ppm
    >>> from src.raytrace.core.progressive import ProgressiveRenderer
    >>>
    >>> renderer = ProgressiveRenderer(settings)
    >>> renderer.render()
    >>> save_ppm("image.ppm", renderer.get_image_numpy())
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TextIO

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

logger = logging.getLogger(__name__)

# Upper clamp of display values; keeps floor(256 * v) within a byte
DISPLAY_MAX = 0.999


def _check_image_shape(image: np.ndarray) -> None:
    if image.ndim != 3 or image.shape[2] != 3:
        raise ValueError(f"Expected an image of shape (H, W, 3), got {image.shape}")


def to_display(image: npt.NDArray[np.floating]) -> npt.NDArray[np.float32]:
    """Apply gamma 2 encoding and clamp to [0, 0.999].

    Args:
        image: Linear image array of shape (H, W, 3).

    Returns:
        Display-space image array of the same shape with dtype float32.
    """
    _check_image_shape(image)
    # Clamp negatives before the square root to avoid NaN
    encoded = np.sqrt(np.maximum(image.astype(np.float32), 0.0))
    return np.clip(encoded, 0.0, DISPLAY_MAX).astype(np.float32)


def image_to_uint8(image: npt.NDArray[np.floating]) -> npt.NDArray[np.uint8]:
    """Convert a linear float image to uint8 for display/export.

    Args:
        image: Linear image array of shape (H, W, 3).

    Returns:
        8-bit image array of shape (H, W, 3) with dtype uint8.
    """
    return np.floor(256.0 * to_display(image)).astype(np.uint8)


def write_ppm(stream: TextIO, pixels: npt.NDArray[np.uint8]) -> None:
    """Write 8-bit pixels as a plain-text (P3) PPM image.

    The header is ``P3``, ``width height`` and ``255`` on separate lines,
    followed by one ``r g b`` line per pixel in raster order: top row first,
    left to right.

    Args:
        stream: Text stream to write to.
        pixels: Array of shape (H, W, 3) with dtype uint8, top row first.
    """
    _check_image_shape(pixels)
    height, width, _ = pixels.shape

    stream.write(f"P3\n{width} {height}\n255\n")
    for row in pixels:
        stream.write("".join(f"{r} {g} {b}\n" for r, g, b in row.tolist()))


def save_ppm(filepath: str | Path, image: npt.NDArray[np.floating]) -> None:
    """Save a linear image as a plain-text PPM file.

    Raises:
        OSError: If the file cannot be written.
    """
    pixels = image_to_uint8(image)
    with open(filepath, "w", encoding="ascii", newline="\n") as f:
        write_ppm(f, pixels)
    logger.info("Wrote %dx%d PPM to %s", pixels.shape[1], pixels.shape[0], filepath)


def save_png(filepath: str | Path, image: npt.NDArray[np.floating]) -> None:
    """Save a linear image as an 8-bit PNG file.

    Raises:
        OSError: If the file cannot be written.
    """
    pixels = image_to_uint8(image)
    pil_image = PILImage.fromarray(pixels)
    pil_image.save(filepath)
    logger.info("Wrote %dx%d PNG to %s", pixels.shape[1], pixels.shape[0], filepath)


def save_image(filepath: str | Path, image: npt.NDArray[np.floating]) -> None:
    """Save a linear image, choosing the format from the file extension.

    ``.ppm`` is written as plain-text PPM; every other extension goes through
    Pillow.
    """
    if Path(filepath).suffix.lower() == ".ppm":
        save_ppm(filepath, image)
    else:
        save_png(filepath, image)


def compute_rmse(
    image_a: npt.NDArray[np.floating],
    image_b: npt.NDArray[np.floating],
) -> float:
    """Compute root mean squared error between two images.

    Args:
        image_a: First image array.
        image_b: Second image array (must have same shape as image_a).

    Returns:
        RMSE value (lower is more similar).

    Raises:
        ValueError: If image shapes don't match.
    """
    if image_a.shape != image_b.shape:
        raise ValueError(
            f"Image shapes must match: {image_a.shape} vs {image_b.shape}"
        )

    diff = image_a.astype(np.float64) - image_b.astype(np.float64)
    return float(np.sqrt(np.mean(diff**2)))
