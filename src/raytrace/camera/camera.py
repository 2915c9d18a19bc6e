"""Fixed-viewport perspective camera.

The camera sits at ``origin`` looking down -z with +y up. Its image plane is a
viewport ``viewport_height`` tall and ``aspect_ratio * viewport_height`` wide,
placed ``focal_length`` in front of the origin. The viewport vectors are
derived once on the Python side and uploaded to Taichi fields; kernels then
build primary rays by interpolating across the viewport.

Image coordinates are normalized:
    u in [0, 1]: left to right across the image
    v in [0, 1]: bottom to top across the image

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.raytrace.camera.camera import Camera, setup_camera, get_ray
    >>> camera = Camera(aspect_ratio=16.0 / 9.0)
    >>> setup_camera(camera)
    >>> # ray = get_ray(0.5, 0.5) inside a kernel looks straight down -z
"""

from dataclasses import dataclass, field

import numpy as np
import taichi as ti

from src.raytrace.core.ray import Ray, make_ray


@dataclass
class Camera:
    """Configuration of the fixed-viewport camera.

    Attributes:
        aspect_ratio: Width divided by height of the output image.
        viewport_height: Height of the image plane in world units.
        focal_length: Distance from the origin to the image plane.
        origin: Camera position in world space (x, y, z).
    """

    aspect_ratio: float = 16.0 / 9.0
    viewport_height: float = 2.0
    focal_length: float = 1.0
    origin: tuple[float, float, float] = (0.0, 0.0, 0.0)
    horizontal: np.ndarray = field(init=False, repr=False)
    vertical: np.ndarray = field(init=False, repr=False)
    lower_left_corner: np.ndarray = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if not self.aspect_ratio > 0.0:
            raise ValueError(f"aspect_ratio must be positive, got {self.aspect_ratio}")
        if not self.viewport_height > 0.0:
            raise ValueError(f"viewport_height must be positive, got {self.viewport_height}")
        if not self.focal_length > 0.0:
            raise ValueError(f"focal_length must be positive, got {self.focal_length}")

        origin = np.array(self.origin, dtype=np.float32)
        viewport_width = self.aspect_ratio * self.viewport_height

        self.horizontal = np.array([viewport_width, 0.0, 0.0], dtype=np.float32)
        self.vertical = np.array([0.0, self.viewport_height, 0.0], dtype=np.float32)
        self.lower_left_corner = (
            origin
            - self.horizontal / 2.0
            - self.vertical / 2.0
            - np.array([0.0, 0.0, self.focal_length], dtype=np.float32)
        )

    @classmethod
    def for_image(cls, width: int, height: int, **kwargs) -> "Camera":
        """Build a camera whose aspect ratio matches a width x height image."""
        if width <= 0 or height <= 0:
            raise ValueError(f"Image size must be positive, got {width}x{height}")
        return cls(aspect_ratio=width / height, **kwargs)


# =============================================================================
# Taichi Fields for Camera State
# =============================================================================

_camera_origin = ti.Vector.field(3, dtype=ti.f32, shape=())
_viewport_horizontal = ti.Vector.field(3, dtype=ti.f32, shape=())
_viewport_vertical = ti.Vector.field(3, dtype=ti.f32, shape=())
_lower_left_corner = ti.Vector.field(3, dtype=ti.f32, shape=())


def setup_camera(camera: Camera) -> None:
    """Upload the camera's cached viewport vectors to Taichi fields.

    Must be called before rendering, from Python scope.
    """
    _camera_origin[None] = [float(c) for c in camera.origin]
    _viewport_horizontal[None] = camera.horizontal.tolist()
    _viewport_vertical[None] = camera.vertical.tolist()
    _lower_left_corner[None] = camera.lower_left_corner.tolist()


@ti.func
def get_ray(u: ti.f32, v: ti.f32) -> Ray:
    """Generate the primary ray through normalized image coordinates (u, v).

    The direction is left unnormalized; it points from the origin to the
    matching point on the viewport.
    """
    origin = _camera_origin[None]
    direction = (
        _lower_left_corner[None]
        + u * _viewport_horizontal[None]
        + v * _viewport_vertical[None]
        - origin
    )
    return make_ray(origin, direction)


def get_camera_info() -> dict[str, tuple[float, float, float]]:
    """Get the uploaded camera state for debugging.

    Returns:
        Dictionary with origin, horizontal, vertical and lower_left.
    """

    def _triple(vec) -> tuple[float, float, float]:
        return (float(vec[0]), float(vec[1]), float(vec[2]))

    return {
        "origin": _triple(_camera_origin[None]),
        "horizontal": _triple(_viewport_horizontal[None]),
        "vertical": _triple(_viewport_vertical[None]),
        "lower_left": _triple(_lower_left_corner[None]),
    }
