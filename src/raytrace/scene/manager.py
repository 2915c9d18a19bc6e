"""Scene builder coordinating spheres and their shared materials.

This module provides the high-level API used to assemble a renderable scene.
It keeps a unified material id space over the per-type material registries
(Lambertian, Metal, Dielectric) so that a sphere only stores one integer
handle, and the path tracer can recover (material type, type-local index)
from that handle to dispatch to the right scattering function.

Materials are immutable once registered, so one handle may be shared by any
number of spheres.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.raytrace.scene.manager import Scene
    >>> scene = Scene()
    >>> ground = scene.add_lambertian_material(albedo=(0.8, 0.8, 0.0))
    >>> scene.add_sphere(center=(0, -100.5, -1), radius=100, material_id=ground)
    >>> # Use get_material_type(mat_id) in the path tracer for dispatch
"""

import json
import logging
from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path
from typing import Any

import taichi as ti
import taichi.math as tm

from src.raytrace.materials.dielectric import (
    add_dielectric_material,
    clear_dielectric_materials,
)
from src.raytrace.materials.lambertian import (
    add_lambertian_material,
    clear_lambertian_materials,
)
from src.raytrace.materials.metal import (
    add_metal_material,
    clamp_fuzz,
    clear_metal_materials,
)
from src.raytrace.scene.intersection import (
    MAX_SPHERES,
    add_sphere,
    clear_scene,
    get_sphere_count,
)

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3


class MaterialType(IntEnum):
    """Enumeration of supported material types.

    Used for material dispatch in the path tracer to determine which
    scattering function to call.
    """

    LAMBERTIAN = 0
    METAL = 1
    DIELECTRIC = 2


# Maximum number of materials across all types
MAX_MATERIALS = 768  # 256 per type * 3 types

# material_types[i] stores the MaterialType for material_id i
material_types = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
# material_type_indices[i] stores the type-local index for material_id i
# (e.g., if material_id 5 is the 2nd metal material, material_type_indices[5] = 1)
material_type_indices = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def _clear_material_tracking() -> None:
    """Clear the material tracking fields."""
    num_materials[None] = 0


@ti.func
def get_material_type(material_id: ti.i32) -> ti.i32:
    """Get the material type for a given material ID.

    Returns:
        The material type as an integer (see MaterialType enum).
        Returns -1 for invalid material IDs.
    """
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_types[material_id]
    return result


@ti.func
def get_material_type_index(material_id: ti.i32) -> ti.i32:
    """Get the type-local index for a given material ID.

    This is used to look up material properties in the type-specific
    material arrays (e.g., lambertian_albedos[type_index]).

    Returns:
        The index into the type-specific material array.
        Returns -1 for invalid material IDs.
    """
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_type_indices[material_id]
    return result


@dataclass
class MaterialInfo:
    """Information about a registered material.

    Attributes:
        material_id: The unified material ID.
        material_type: The type of material.
        type_index: The index within the type-specific material array.
        params: The material parameters as stored in the registry.
    """

    material_id: int
    material_type: MaterialType
    type_index: int
    params: dict[str, Any]


@dataclass
class SphereInfo:
    """Information about a sphere in the scene."""

    sphere_index: int
    center: tuple[float, float, float]
    radius: float
    material_id: int


def _as_triple(values: Any, name: str) -> tuple[float, float, float]:
    """Convert a 3-element sequence from a scene dict into a float tuple."""
    if not isinstance(values, (list, tuple)) or len(values) != 3:
        raise ValueError(f"'{name}' must be a list of 3 numbers, got {values!r}")
    return (float(values[0]), float(values[1]), float(values[2]))


class Scene:
    """A flat, ordered collection of spheres with shared materials.

    Creating a Scene resets the global primitive and material storage, so
    only one scene is live at a time; the most recently constructed (or
    cleared) scene is the one that gets rendered.

    Attributes:
        materials: List of MaterialInfo for all registered materials.
        spheres: List of SphereInfo for all spheres, in insertion order.

    Example:
        >>> scene = Scene()
        >>> diffuse = scene.add_lambertian_material(albedo=(0.1, 0.2, 0.5))
        >>> glass = scene.add_dielectric_material(ior=1.5)
        >>> scene.add_sphere((0, 0, -1), 0.5, diffuse)
        >>> scene.add_sphere((-1, 0, -1), 0.5, glass)
    """

    def __init__(self) -> None:
        """Initialize an empty scene."""
        self.materials: list[MaterialInfo] = []
        self.spheres: list[SphereInfo] = []
        self._clear_all()

    def _clear_all(self) -> None:
        """Clear all scene data including Taichi fields."""
        clear_scene()
        clear_lambertian_materials()
        clear_metal_materials()
        clear_dielectric_materials()
        _clear_material_tracking()
        self.materials.clear()
        self.spheres.clear()

    def clear(self) -> None:
        """Clear the entire scene (primitives and materials)."""
        self._clear_all()

    # =========================================================================
    # Material Management
    # =========================================================================

    def _register(
        self,
        material_type: MaterialType,
        type_index: int,
        params: dict[str, Any],
    ) -> int:
        """Assign a unified material ID to a freshly registered material."""
        material_id = num_materials[None]
        if material_id >= MAX_MATERIALS:
            raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

        material_types[material_id] = int(material_type)
        material_type_indices[material_id] = type_index
        num_materials[None] = material_id + 1

        self.materials.append(
            MaterialInfo(
                material_id=material_id,
                material_type=material_type,
                type_index=type_index,
                params=params,
            )
        )
        logger.debug("Registered %s material %d: %s", material_type.name, material_id, params)
        return material_id

    def add_lambertian_material(self, albedo: tuple[float, float, float]) -> int:
        """Add a Lambertian (diffuse) material to the scene.

        Args:
            albedo: The diffuse reflectance color as (R, G, B) tuple.

        Returns:
            The unified material ID for this material.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If any albedo component is outside [0, 1].
        """
        type_index = add_lambertian_material(albedo)
        return self._register(MaterialType.LAMBERTIAN, type_index, {"albedo": tuple(albedo)})

    def add_metal_material(
        self,
        albedo: tuple[float, float, float],
        fuzz: float = 0.0,
    ) -> int:
        """Add a metal (specular reflective) material to the scene.

        Args:
            albedo: The reflective color as (R, G, B) tuple.
            fuzz: The reflection perturbation radius. Clamped to [0, 1].

        Returns:
            The unified material ID for this material.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If any albedo component is outside [0, 1].
        """
        type_index = add_metal_material(albedo, fuzz)
        return self._register(
            MaterialType.METAL,
            type_index,
            {"albedo": tuple(albedo), "fuzz": clamp_fuzz(fuzz)},
        )

    def add_dielectric_material(self, ior: float = 1.5) -> int:
        """Add a dielectric (glass/water) material to the scene.

        Args:
            ior: Index of refraction. Default is 1.5 (typical glass).

        Returns:
            The unified material ID for this material.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If IOR is not positive.
        """
        type_index = add_dielectric_material(ior)
        return self._register(MaterialType.DIELECTRIC, type_index, {"ior": ior})

    def get_material_count(self) -> int:
        """Get the total number of materials in the scene."""
        return int(num_materials[None])

    def get_material_info(self, material_id: int) -> MaterialInfo | None:
        """Get information about a material by ID, or None if not found."""
        if 0 <= material_id < len(self.materials):
            return self.materials[material_id]
        return None

    # =========================================================================
    # Primitive Management
    # =========================================================================

    def add_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        material_id: int,
    ) -> int:
        """Add a sphere to the scene.

        Args:
            center: The center point of the sphere as (x, y, z).
            radius: The radius of the sphere. Must be positive.
            material_id: The unified material ID to assign to the sphere.

        Returns:
            The index of the added sphere.

        Raises:
            RuntimeError: If the maximum number of spheres is exceeded.
            ValueError: If material_id is invalid or radius is not positive.
        """
        if material_id < 0 or material_id >= num_materials[None]:
            raise ValueError(f"Invalid material_id: {material_id}")

        center_vec = vec3(center[0], center[1], center[2])
        sphere_index = add_sphere(center_vec, radius, material_id)

        self.spheres.append(
            SphereInfo(
                sphere_index=sphere_index,
                center=tuple(center),
                radius=radius,
                material_id=material_id,
            )
        )
        return sphere_index

    def get_sphere_count(self) -> int:
        """Get the number of spheres in the scene."""
        return get_sphere_count()

    # =========================================================================
    # Scene Serialization
    # =========================================================================

    def to_dict(self) -> dict[str, Any]:
        """Export the scene to a dictionary (for JSON serialization).

        Returns:
            ``{"materials": [...], "spheres": [...]}`` where each sphere refers
            to its material by position in the materials list.
        """
        materials = []
        for mat in self.materials:
            entry: dict[str, Any] = {"type": mat.material_type.name.lower()}
            for key, value in mat.params.items():
                entry[key] = list(value) if isinstance(value, tuple) else value
            materials.append(entry)

        spheres = [
            {
                "center": list(sphere.center),
                "radius": sphere.radius,
                "material_id": sphere.material_id,
            }
            for sphere in self.spheres
        ]
        return {"materials": materials, "spheres": spheres}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Scene":
        """Build a scene from a dictionary produced by to_dict().

        Materials are registered first, in order, so sphere material ids keep
        their meaning.

        Raises:
            ValueError: If the dictionary contains an unknown material type,
                a malformed vector, or an invalid parameter.
        """
        scene = cls()

        for mat in data.get("materials", []):
            mat_type = str(mat.get("type", "")).lower()
            if mat_type == "lambertian":
                scene.add_lambertian_material(_as_triple(mat.get("albedo"), "albedo"))
            elif mat_type == "metal":
                scene.add_metal_material(
                    _as_triple(mat.get("albedo"), "albedo"),
                    float(mat.get("fuzz", 0.0)),
                )
            elif mat_type == "dielectric":
                scene.add_dielectric_material(float(mat.get("ior", 1.5)))
            else:
                raise ValueError(f"Unknown material type: {mat_type!r}")

        for sphere in data.get("spheres", []):
            scene.add_sphere(
                _as_triple(sphere.get("center"), "center"),
                float(sphere.get("radius", 0.0)),
                int(sphere.get("material_id", -1)),
            )

        logger.debug(
            "Loaded scene with %d materials and %d spheres",
            scene.get_material_count(),
            scene.get_sphere_count(),
        )
        return scene

    # =========================================================================
    # Capacity Information
    # =========================================================================

    @staticmethod
    def get_max_spheres() -> int:
        """Get the maximum number of spheres supported."""
        return MAX_SPHERES

    @staticmethod
    def get_max_materials() -> int:
        """Get the maximum number of materials supported."""
        return MAX_MATERIALS

    def __repr__(self) -> str:
        return (
            f"Scene(materials={self.get_material_count()}, "
            f"spheres={self.get_sphere_count()})"
        )


def load_scene_file(path: str | Path) -> Scene:
    """Read a JSON scene description and build it.

    Raises:
        OSError: If the file cannot be read.
        ValueError: If the file is not valid JSON or describes an invalid scene.
    """
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Scene file {path} must contain a JSON object")
    logger.info("Loading scene from %s", path)
    return Scene.from_dict(data)
