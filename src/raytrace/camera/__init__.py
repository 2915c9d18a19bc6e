"""Camera module for primary ray generation.

Ray generation uses normalized image coordinates:
    u in [0, 1]: left to right across image
    v in [0, 1]: bottom to top across image
"""

from .camera import (
    Camera,
    get_camera_info,
    get_ray,
    setup_camera,
)

__all__ = [
    "Camera",
    "setup_camera",
    "get_ray",
    "get_camera_info",
]
