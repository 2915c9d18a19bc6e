"""Path tracing integrator for Monte Carlo light transport.

This module implements the radiance estimator and the parallel render kernel.

A camera ray is traced through the scene; at each surface the material either
absorbs the path or scatters it with an attenuation, and the path ends when it
escapes to the sky, is absorbed, or runs out of bounces. The estimate for one
path is the product of the attenuations along it times the sky color it
escapes into (black for absorbed or exhausted paths).

Key features:
    - Material dispatch (Lambertian, Metal, Dielectric)
    - Vertical white-to-blue sky gradient as the only light source
    - Per-pixel seeded random streams, so seeded renders are reproducible
    - Progressive sample accumulation for convergence

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.raytrace.core.integrator import render_image, setup_render_target
    >>> from src.raytrace.scene.presets import create_default_scene
    >>> from src.raytrace.camera.camera import setup_camera
    >>>
    >>> scene, camera = create_default_scene()
    >>> setup_camera(camera)
    >>> setup_render_target(400, 225, seed=1234)
    >>> render_image(num_samples=100)
"""

import logging

import numpy as np
import taichi as ti
import taichi.math as tm

from src.raytrace.camera.camera import get_ray
from src.raytrace.core.config import (
    DEFAULT_MAX_DEPTH,
    MAX_IMAGE_HEIGHT,
    MAX_IMAGE_WIDTH,
    RenderSettings,
)
from src.raytrace.core.ray import Ray, make_ray, normalize
from src.raytrace.core.sampler import pixel_stream, random_float, seed_streams
from src.raytrace.geometry.sphere import HitRecord
from src.raytrace.materials.dielectric import scatter_dielectric_by_id
from src.raytrace.materials.lambertian import scatter_lambertian_by_id
from src.raytrace.materials.metal import scatter_metal_by_id
from src.raytrace.scene.intersection import hit_scene
from src.raytrace.scene.manager import (
    MaterialType,
    get_material_type,
    get_material_type_index,
)

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3

# =============================================================================
# Rendering Constants
# =============================================================================

# Accepted intersection interval; T_MIN skips re-hits of the surface a ray leaves
T_MIN = 0.001
T_MAX = tm.inf

# Sky gradient endpoints (bottom, top)
SKY_HORIZON_COLOR = vec3(1.0, 1.0, 1.0)
SKY_ZENITH_COLOR = vec3(0.5, 0.7, 1.0)

# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Image dimensions (actual active size)
_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Sum of all sample colors per pixel (preallocated to max size)
_color_sum = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Sample count per pixel (preallocated to max size)
_sample_count = ti.field(dtype=ti.i32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Flag to track if render target is initialized
_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int, seed: int | None = None) -> int:
    """Initialize the render target buffers and seed the random streams.

    Sets the active image dimensions and clears the buffers. The buffers are
    preallocated to MAX_IMAGE_WIDTH x MAX_IMAGE_HEIGHT to avoid Taichi kernel
    recompilation.

    Args:
        width: Image width in pixels (max MAX_IMAGE_WIDTH).
        height: Image height in pixels (max MAX_IMAGE_HEIGHT).
        seed: Seed for the per-pixel random streams. None uses OS entropy.

    Returns:
        The entropy the streams were seeded with.

    Raises:
        ValueError: If dimensions are not positive or exceed the maximum.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1

    clear_render_target()
    entropy = seed_streams(seed)
    logger.debug("Render target set to %dx%d", width, height)
    return entropy


def clear_render_target() -> None:
    """Clear the render target buffers to zero."""
    _color_sum.fill(0.0)
    _sample_count.fill(0)


def reset_render_target() -> None:
    """Mark the render target as uninitialized (used between tests)."""
    _render_target_initialized[None] = 0


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions as (width, height)."""
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    """Check if render target is initialized and raise if not."""
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


# =============================================================================
# Sky
# =============================================================================


@ti.func
def background_color(direction: vec3) -> vec3:
    """Color of the sky seen along a direction.

    Blends linearly from white at y = -1 to light blue at y = +1 of the
    normalized direction.
    """
    unit_direction = normalize(direction)
    t = 0.5 * (unit_direction.y + 1.0)
    return (1.0 - t) * SKY_HORIZON_COLOR + t * SKY_ZENITH_COLOR


# =============================================================================
# Material Dispatch
# =============================================================================


@ti.func
def scatter_material(ray_in: Ray, rec: HitRecord, stream: ti.i32):
    """Dispatch to the scattering function of the material that was hit.

    Args:
        ray_in: The incoming ray.
        rec: The hit record of the intersection being shaded.
        stream: Random stream of the pixel being rendered.

    Returns:
        A tuple of (scattered, attenuation, did_scatter) where:
        - scattered: The outgoing ray, starting at rec.point.
        - attenuation: The color attenuation for this bounce.
        - did_scatter: 1 if ray scattered, 0 if absorbed.
    """
    mat_type = get_material_type(rec.material_id)
    type_index = get_material_type_index(rec.material_id)

    # Unknown materials absorb
    scattered = make_ray(rec.point, rec.normal)
    attenuation = vec3(0.0, 0.0, 0.0)
    did_scatter = 0

    if mat_type == int(MaterialType.LAMBERTIAN):
        scattered, attenuation, did_scatter = scatter_lambertian_by_id(type_index, rec, stream)

    elif mat_type == int(MaterialType.METAL):
        scattered, attenuation, did_scatter = scatter_metal_by_id(type_index, ray_in, rec, stream)

    elif mat_type == int(MaterialType.DIELECTRIC):
        scattered, attenuation, did_scatter = scatter_dielectric_by_id(
            type_index, ray_in, rec, stream
        )

    return scattered, attenuation, did_scatter


# =============================================================================
# Path Tracing Core
# =============================================================================


@ti.func
def ray_color(ray: Ray, depth: ti.i32, stream: ti.i32) -> vec3:
    """Estimate the radiance arriving along a ray.

    Follows the path for at most ``depth`` bounces, multiplying the
    attenuation of every scatter event into a running throughput. Taichi
    functions cannot recurse, so the bounces are unrolled into a loop.

    Args:
        ray: The ray to trace.
        depth: Remaining bounce budget. 0 yields black.
        stream: Random stream of the pixel being rendered.

    Returns:
        The estimated radiance (RGB). Black if the path is absorbed or the
        budget runs out before it escapes.
    """
    color = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)
    current = ray

    # Active flag for path continuation
    active = 1

    for _ in range(depth):
        if active == 1:
            rec = hit_scene(current, T_MIN, T_MAX)

            if rec.hit == 0:
                color = throughput * background_color(current.direction)
                active = 0
            else:
                scattered, attenuation, did_scatter = scatter_material(current, rec, stream)

                if did_scatter == 0:
                    active = 0
                else:
                    throughput *= attenuation
                    current = scattered

    return color


@ti.func
def pixel_sample_ray(
    pixel_i: ti.i32,
    pixel_j: ti.i32,
    width: ti.i32,
    height: ti.i32,
    jitter: ti.i32,
    stream: ti.i32,
) -> Ray:
    """Generate the camera ray for one sample of a pixel.

    Pixel (0, 0) is the bottom-left corner. With jitter the sample lands at a
    random point of the pixel, without it at the pixel's lower-left corner.
    """
    xi_u = 0.0
    xi_v = 0.0
    if jitter == 1:
        xi_u = random_float(stream)
        xi_v = random_float(stream)

    u = (ti.cast(pixel_i, ti.f32) + xi_u) / ti.cast(ti.max(width - 1, 1), ti.f32)
    v = (ti.cast(pixel_j, ti.f32) + xi_v) / ti.cast(ti.max(height - 1, 1), ti.f32)
    return get_ray(u, v)


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_samples(
    width: ti.i32,
    height: ti.i32,
    num_samples: ti.i32,
    max_depth: ti.i32,
    jitter: ti.i32,
):
    """Render a batch of samples for every pixel and accumulate them.

    The outermost loop is distributed over Taichi's worker pool. Each pixel
    is owned by one worker, which sums its samples locally before adding
    them to the shared buffers.
    """
    for i, j in ti.ndrange(width, height):
        stream = pixel_stream(i, j)
        pixel_sum = vec3(0.0, 0.0, 0.0)

        for _ in range(num_samples):
            ray = pixel_sample_ray(i, j, width, height, jitter, stream)
            pixel_sum += ray_color(ray, max_depth, stream)

        _color_sum[i, j] += pixel_sum
        _sample_count[i, j] += num_samples


@ti.kernel
def _render_single_pixel(
    pixel_i: ti.i32,
    pixel_j: ti.i32,
    width: ti.i32,
    height: ti.i32,
    max_depth: ti.i32,
    jitter: ti.i32,
) -> vec3:
    """Render one sample for a specific pixel without accumulating it."""
    stream = pixel_stream(pixel_i, pixel_j)
    ray = pixel_sample_ray(pixel_i, pixel_j, width, height, jitter, stream)
    return ray_color(ray, max_depth, stream)


# =============================================================================
# Public Rendering API
# =============================================================================


def render_sample(
    pixel_i: int,
    pixel_j: int,
    max_depth: int = DEFAULT_MAX_DEPTH,
    jitter: bool = True,
) -> tuple[float, float, float]:
    """Render a single sample for a specific pixel.

    This is a Python-callable function for testing. For production rendering,
    use render_image() which processes all pixels in parallel.

    Args:
        pixel_i: Pixel x-coordinate (0 = left).
        pixel_j: Pixel y-coordinate (0 = bottom).
        max_depth: Bounce budget of the path.
        jitter: Whether to jitter the sample within the pixel.

    Returns:
        Tuple of (R, G, B) linear color values.

    Raises:
        RuntimeError: If render target has not been set up.
        ValueError: If the pixel lies outside the render target.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    if not (0 <= pixel_i < width and 0 <= pixel_j < height):
        raise ValueError(
            f"Pixel ({pixel_i}, {pixel_j}) is outside the {width}x{height} render target"
        )
    color = _render_single_pixel(pixel_i, pixel_j, width, height, max_depth, int(jitter))

    return (float(color[0]), float(color[1]), float(color[2]))


def render_image(
    num_samples: int = 1,
    max_depth: int = DEFAULT_MAX_DEPTH,
    jitter: bool = True,
) -> None:
    """Add samples to every pixel of the render target.

    Can be called multiple times to add more samples for convergence. The
    call returns once every pixel has received its samples.

    Args:
        num_samples: Number of samples to render per pixel.
        max_depth: Bounce budget per path.
        jitter: Whether to jitter samples within their pixel.

    Raises:
        RuntimeError: If render target has not been set up.
        ValueError: If num_samples is negative or max_depth is negative.
    """
    _check_render_target_initialized()
    if num_samples < 0:
        raise ValueError(f"num_samples must be non-negative, got {num_samples}")
    if max_depth < 0:
        raise ValueError(f"max_depth must be non-negative, got {max_depth}")
    if num_samples == 0:
        return

    width, height = get_image_dimensions()
    _render_samples(width, height, num_samples, max_depth, int(jitter))


def render_with_settings(settings: RenderSettings) -> np.ndarray:
    """Render a complete image in one launch.

    Sets up the render target from the settings, renders all samples and
    returns the linear image. The camera and scene must already be set up.

    Returns:
        NumPy array of shape (height, width, 3), top row first.
    """
    setup_render_target(settings.width, settings.height, settings.seed)
    render_image(settings.samples_per_pixel, settings.max_depth, settings.jitter)
    return get_linear_image()


def get_total_samples() -> int:
    """Get the number of samples per pixel rendered so far.

    Returns the sample count from pixel (0, 0), which is the same for all
    pixels after calling render_image().

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    return int(_sample_count[0, 0])


def get_linear_image() -> np.ndarray:
    """Get the averaged linear-light image as a NumPy array.

    The array shape is (height, width, 3) with dtype float32. Row 0 is the
    top of the image. Pixels without samples are black.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()

    color_sum = _color_sum.to_numpy()[:width, :height, :]
    counts = _sample_count.to_numpy()[:width, :height].astype(np.float32)

    image = np.zeros_like(color_sum)
    np.divide(color_sum, counts[..., None], out=image, where=counts[..., None] > 0)

    # Transpose from (width, height, 3) to (height, width, 3) for standard image format
    image = np.transpose(image, (1, 0, 2))

    # Flip vertically (pixel rows count up from the bottom, images from the top)
    image = np.flipud(image)

    return np.ascontiguousarray(image, dtype=np.float32)
