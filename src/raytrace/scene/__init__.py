"""Scene module for scene management and ray-scene queries.

Components:
    intersection: Sphere storage in Taichi fields and nearest-hit queries
    manager: Scene builder coordinating spheres and shared materials
    presets: Ready-made scenes

Scene data is organized for efficient parallel access:
    - Structure-of-Arrays layout for geometric data
    - Contiguous material ID arrays
"""

from .intersection import (
    MAX_SPHERES,
    add_sphere,
    clear_scene,
    get_sphere,
    get_sphere_count,
    hit_scene,
)
from .manager import (
    MAX_MATERIALS,
    MaterialInfo,
    MaterialType,
    Scene,
    SphereInfo,
    get_material_type,
    get_material_type_index,
    load_scene_file,
)
from .presets import PRESETS, create_default_scene, create_material_showcase_scene

__all__ = [
    # Intersection module
    "add_sphere",
    "clear_scene",
    "get_sphere",
    "get_sphere_count",
    "hit_scene",
    "MAX_SPHERES",
    # Manager module
    "Scene",
    "MaterialType",
    "MaterialInfo",
    "SphereInfo",
    "MAX_MATERIALS",
    "get_material_type",
    "get_material_type_index",
    "load_scene_file",
    # Presets
    "PRESETS",
    "create_default_scene",
    "create_material_showcase_scene",
]
