"""Progressive renderer for iterative sample accumulation.

This module provides a convenient wrapper around the core integrator that supports:
- Rendering a RenderSettings in one call or in batches that refine over time
- Progress callbacks and a generator interface
- Reset with the same seed, so a reset render repeats bit for bit

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.raytrace.core.config import RenderSettings
    >>> from src.raytrace.core.progressive import ProgressiveRenderer
    >>> from src.raytrace.scene.presets import create_default_scene
    >>> from src.raytrace.camera.camera import setup_camera
    >>>
    >>> scene, camera = create_default_scene()
    >>> setup_camera(camera)
    >>>
    >>> settings = RenderSettings(width=400, height=225, samples_per_pixel=100, max_depth=50)
    >>> renderer = ProgressiveRenderer(settings)
    >>> renderer.render(batch_size=10)
    >>> image = renderer.get_image_numpy()
"""

import dataclasses
import logging
import time
from collections.abc import Callable, Generator
from pathlib import Path

import numpy as np
import numpy.typing as npt

from src.raytrace.core.config import RenderSettings
from src.raytrace.core.integrator import (
    get_linear_image,
    get_total_samples,
    render_image,
    setup_render_target,
)
from src.raytrace.output.export import image_to_uint8, save_image

logger = logging.getLogger(__name__)

# Type alias for progress callback
# Callback receives (current_samples, total_target_samples)
ProgressCallback = Callable[[int, int], None]


class ProgressiveRenderer:
    """A progressive renderer that accumulates samples over time.

    The renderer owns the global render target while it is alive: creating
    one sets the target up and seeds the random streams from
    ``settings.seed``.

    Attributes:
        settings: The render settings in effect.
        seed_entropy: The entropy the random streams were seeded with. Pass
            it back as ``seed`` to reproduce an unseeded render.
    """

    def __init__(self, settings: RenderSettings) -> None:
        """Initialize the progressive renderer.

        Args:
            settings: Image size, sample budget, depth and seed of the render.
        """
        self.settings = settings
        self.seed_entropy = setup_render_target(settings.width, settings.height, settings.seed)

    @property
    def width(self) -> int:
        """Get the image width."""
        return self.settings.width

    @property
    def height(self) -> int:
        """Get the image height."""
        return self.settings.height

    @property
    def sample_count(self) -> int:
        """Get the current number of accumulated samples per pixel."""
        return get_total_samples()

    @property
    def is_complete(self) -> bool:
        """Whether the configured samples per pixel have been reached."""
        return self.sample_count >= self.settings.samples_per_pixel

    def reset(self) -> None:
        """Discard accumulated samples and reseed with the same entropy."""
        self.seed_entropy = setup_render_target(self.width, self.height, self.seed_entropy)

    def resize(self, width: int, height: int) -> None:
        """Resize the render target and reset accumulator.

        Raises:
            ValueError: If dimensions are invalid.
        """
        self.settings = dataclasses.replace(self.settings, width=width, height=height)
        self.seed_entropy = setup_render_target(width, height, self.seed_entropy)

    def render_progressive(
        self,
        num_samples: int | None = None,
        batch_size: int | None = None,
    ) -> Generator[tuple[int, int], None, None]:
        """Render samples in batches, yielding progress after each batch.

        Args:
            num_samples: Samples per pixel to add. Defaults to whatever is
                left of ``settings.samples_per_pixel``.
            batch_size: Samples per pixel per kernel launch. Defaults to all
                of them in a single launch.

        Yields:
            Tuple of (current_total_samples, target_total_samples).
        """
        if num_samples is None:
            num_samples = max(self.settings.samples_per_pixel - self.sample_count, 0)
        if num_samples <= 0:
            return
        if batch_size is None:
            batch_size = num_samples
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")

        start_samples = self.sample_count
        target_samples = start_samples + num_samples

        remaining = num_samples
        while remaining > 0:
            batch = min(batch_size, remaining)
            render_image(batch, self.settings.max_depth, self.settings.jitter)
            remaining -= batch
            current = self.sample_count
            logger.info("%d/%d samples", current, target_samples)
            yield (current, target_samples)

    def render(
        self,
        num_samples: int | None = None,
        batch_size: int | None = None,
        callback: ProgressCallback | None = None,
    ) -> None:
        """Render samples with an optional progress callback.

        Accumulates into the existing buffer, so it can be called multiple
        times to continue refining the image.

        Args:
            num_samples: Samples per pixel to add. Defaults to whatever is
                left of ``settings.samples_per_pixel``.
            batch_size: Samples per pixel per kernel launch.
            callback: Called after each batch with
                (current_total_samples, target_total_samples).
        """
        logger.info(
            "Rendering %dx%d, %d samples per pixel, max depth %d",
            self.width,
            self.height,
            self.settings.samples_per_pixel,
            self.settings.max_depth,
        )
        start = time.perf_counter()

        for current, target in self.render_progressive(num_samples, batch_size):
            if callback is not None:
                callback(current, target)

        logger.info("Render finished in %.2fs", time.perf_counter() - start)

    def get_image_numpy(self) -> npt.NDArray[np.float32]:
        """Get the averaged linear image, shape (height, width, 3), top row first."""
        return get_linear_image()

    def get_image_uint8(self) -> npt.NDArray[np.uint8]:
        """Get the display-encoded 8-bit image, shape (height, width, 3)."""
        return image_to_uint8(self.get_image_numpy())

    def save_image(self, filepath: str | Path) -> None:
        """Save the rendered image; ``.ppm`` writes plain-text PPM, else Pillow."""
        save_image(filepath, self.get_image_numpy())

    def __repr__(self) -> str:
        """Return a string representation of the renderer state."""
        return (
            f"ProgressiveRenderer(width={self.width}, height={self.height}, "
            f"samples={self.sample_count})"
        )
