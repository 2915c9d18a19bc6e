"""Ready-made scenes.

Each factory resets the global scene, builds its spheres and materials, and
returns ``(scene, camera)``. The camera still has to be uploaded with
``setup_camera`` before rendering.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.raytrace.scene.presets import create_default_scene
    >>> from src.raytrace.camera.camera import setup_camera
    >>>
    >>> scene, camera = create_default_scene()
    >>> setup_camera(camera)
"""

import logging

from src.raytrace.camera.camera import Camera
from src.raytrace.core.config import DEFAULT_ASPECT_RATIO
from src.raytrace.scene.manager import Scene

logger = logging.getLogger(__name__)


def create_default_scene(aspect_ratio: float = DEFAULT_ASPECT_RATIO) -> tuple[Scene, Camera]:
    """Create the default render scene.

    A yellowish ground sphere under five unit-diameter spheres two units in
    front of the camera: grey diffuse spheres on the left and in the centre,
    and rough metal spheres on the right. The left and right materials are
    each shared by two spheres.

    Args:
        aspect_ratio: Aspect ratio of the camera. Default is 16:9.

    Returns:
        Tuple of (scene, camera).
    """
    scene = Scene()

    material_ground = scene.add_lambertian_material((0.8, 0.8, 0.0))
    material_center = scene.add_lambertian_material((0.2, 0.2, 0.2))
    material_left = scene.add_lambertian_material((0.2, 0.2, 0.2))
    material_right = scene.add_metal_material((0.4, 0.4, 0.2), fuzz=1.0)

    scene.add_sphere((0.0, -100.5, -1.0), 100.0, material_ground)
    scene.add_sphere((0.0, 0.0, -2.0), 0.5, material_center)
    scene.add_sphere((-1.5, 0.0, -2.0), 0.5, material_left)
    scene.add_sphere((1.5, 0.0, -2.0), 0.5, material_right)
    scene.add_sphere((-1.0, 1.0, -2.0), 0.5, material_left)
    scene.add_sphere((1.0, 1.0, -2.0), 0.5, material_right)

    logger.debug("Built default scene: %r", scene)
    return scene, Camera(aspect_ratio=aspect_ratio)


def create_material_showcase_scene(
    aspect_ratio: float = DEFAULT_ASPECT_RATIO,
) -> tuple[Scene, Camera]:
    """Create a scene with one sphere of each material kind.

    Ground, a blue diffuse sphere in the centre, a glass sphere on the left
    and a polished gold metal sphere on the right.

    Args:
        aspect_ratio: Aspect ratio of the camera. Default is 16:9.

    Returns:
        Tuple of (scene, camera).
    """
    scene = Scene()

    material_ground = scene.add_lambertian_material((0.8, 0.8, 0.0))
    material_center = scene.add_lambertian_material((0.1, 0.2, 0.5))
    material_left = scene.add_dielectric_material(1.5)
    material_right = scene.add_metal_material((0.8, 0.6, 0.2), fuzz=0.0)

    scene.add_sphere((0.0, -100.5, -1.0), 100.0, material_ground)
    scene.add_sphere((0.0, 0.0, -1.0), 0.5, material_center)
    scene.add_sphere((-1.0, 0.0, -1.0), 0.5, material_left)
    scene.add_sphere((1.0, 0.0, -1.0), 0.5, material_right)

    logger.debug("Built material showcase scene: %r", scene)
    return scene, Camera(aspect_ratio=aspect_ratio)


# Scenes selectable by name from the command line
PRESETS = {
    "default": create_default_scene,
    "showcase": create_material_showcase_scene,
}
