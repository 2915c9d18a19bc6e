"""Output module for encoding and writing rendered images."""

from .export import (
    compute_rmse,
    image_to_uint8,
    save_image,
    save_png,
    save_ppm,
    to_display,
    write_ppm,
)

__all__ = [
    "to_display",
    "image_to_uint8",
    "write_ppm",
    "save_ppm",
    "save_png",
    "save_image",
    "compute_rmse",
]
