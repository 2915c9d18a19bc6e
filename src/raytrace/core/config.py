"""Render configuration and Taichi backend initialization.

This module holds everything a render needs to know before any Taichi field
is allocated: image dimensions, sample budget, bounce depth, the random seed
and the size of the worker pool. It imports no module that declares Taichi
fields, so it is safe to use before ``init_backend()``.

Example:
    >>> from src.raytrace.core.config import RenderSettings, init_backend
    >>> settings = RenderSettings.from_width(400, 16.0 / 9.0, samples_per_pixel=50)
    >>> init_backend(arch="cpu", num_threads=settings.num_threads)
    >>> settings.height
    225
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import taichi as ti

logger = logging.getLogger(__name__)

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

# Defaults matching the reference render
DEFAULT_ASPECT_RATIO = 16.0 / 9.0
DEFAULT_SAMPLES_PER_PIXEL = 100
DEFAULT_MAX_DEPTH = 50

_ARCHES = {
    "cpu": ti.cpu,
    "gpu": ti.gpu,
    "cuda": ti.cuda,
    "vulkan": ti.vulkan,
    "metal": ti.metal,
}


@dataclass(frozen=True)
class RenderSettings:
    """Fixed parameters of a single render.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        samples_per_pixel: Number of stochastic samples averaged per pixel.
        max_depth: Bounce budget per path. 0 renders a black image.
        seed: Seed for the per-pixel random streams. None draws fresh OS
            entropy; tests pass an integer to get byte-identical output.
        jitter: If False, every sample goes through the pixel's lower-left
            corner instead of a random point inside the pixel.
        num_threads: Size of the CPU worker pool. None uses all hardware
            threads.
    """

    width: int
    height: int
    samples_per_pixel: int = DEFAULT_SAMPLES_PER_PIXEL
    max_depth: int = DEFAULT_MAX_DEPTH
    seed: int | None = None
    jitter: bool = True
    num_threads: int | None = None

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(
                f"Image dimensions must be positive, got {self.width}x{self.height}"
            )
        if self.width > MAX_IMAGE_WIDTH or self.height > MAX_IMAGE_HEIGHT:
            raise ValueError(
                f"Image dimensions ({self.width}x{self.height}) exceed maximum supported "
                f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
            )
        if self.samples_per_pixel <= 0:
            raise ValueError(
                f"samples_per_pixel must be positive, got {self.samples_per_pixel}"
            )
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {self.max_depth}")
        if self.num_threads is not None and self.num_threads <= 0:
            raise ValueError(f"num_threads must be positive, got {self.num_threads}")

    @classmethod
    def from_width(
        cls,
        width: int,
        aspect_ratio: float = DEFAULT_ASPECT_RATIO,
        **kwargs,
    ) -> RenderSettings:
        """Build settings whose height follows from width and aspect ratio.

        The height is truncated, as in ``int(width / aspect_ratio)``.

        Raises:
            ValueError: If aspect_ratio is not positive or the derived
                dimensions are invalid.
        """
        if aspect_ratio <= 0.0:
            raise ValueError(f"aspect_ratio must be positive, got {aspect_ratio}")
        return cls(width=width, height=int(width / aspect_ratio), **kwargs)

    @property
    def aspect_ratio(self) -> float:
        """Width divided by height."""
        return self.width / self.height


def init_backend(
    arch: str = "cpu",
    num_threads: int | None = None,
    debug: bool = False,
) -> None:
    """Initialize the Taichi runtime.

    Must run before importing any module that declares Taichi fields
    (everything under core.integrator, core.sampler, scene, materials and
    camera).

    Args:
        arch: Backend name: "cpu", "gpu", "cuda", "vulkan" or "metal".
        num_threads: Maximum number of CPU worker threads. None lets Taichi
            size the pool to the hardware.
        debug: Enable Taichi's bounds checking.

    Raises:
        ValueError: If arch is not a known backend name.
    """
    try:
        ti_arch = _ARCHES[arch]
    except KeyError:
        raise ValueError(
            f"Unknown backend {arch!r}; expected one of {sorted(_ARCHES)}"
        ) from None

    kwargs = {"arch": ti_arch, "debug": debug}
    if num_threads is not None:
        kwargs["cpu_max_num_threads"] = num_threads
    ti.init(**kwargs)
    logger.debug("Taichi initialized (arch=%s, threads=%s)", arch, num_threads or "auto")
