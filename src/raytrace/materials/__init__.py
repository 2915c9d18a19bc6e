"""Materials module for surface scattering models.

Components:
    lambertian: Ideal diffuse reflection
    metal: Specular reflection with optional fuzz
    dielectric: Glass-like materials with refraction (Schlick reflectance)

Each material provides a scatter function returning
(scattered ray, attenuation, did_scatter) plus a registry of Taichi fields
holding the parameters of every registered instance.
"""

from .dielectric import (
    add_dielectric_material,
    cannot_refract,
    clear_dielectric_materials,
    get_dielectric_ior,
    get_dielectric_material_count,
    refraction_ratio,
    scatter_dielectric,
    scatter_dielectric_by_id,
)
from .lambertian import (
    add_lambertian_material,
    clear_lambertian_materials,
    get_lambertian_albedo,
    get_lambertian_material_count,
    scatter_lambertian,
    scatter_lambertian_by_id,
    validate_albedo,
)
from .metal import (
    add_metal_material,
    clamp_fuzz,
    clear_metal_materials,
    get_metal_albedo,
    get_metal_fuzz,
    get_metal_material_count,
    scatter_metal,
    scatter_metal_by_id,
)

__all__ = [
    # Lambertian
    "scatter_lambertian",
    "scatter_lambertian_by_id",
    "add_lambertian_material",
    "clear_lambertian_materials",
    "get_lambertian_material_count",
    "get_lambertian_albedo",
    "validate_albedo",
    # Metal
    "scatter_metal",
    "scatter_metal_by_id",
    "add_metal_material",
    "clear_metal_materials",
    "clamp_fuzz",
    "get_metal_material_count",
    "get_metal_albedo",
    "get_metal_fuzz",
    # Dielectric
    "scatter_dielectric",
    "scatter_dielectric_by_id",
    "add_dielectric_material",
    "clear_dielectric_materials",
    "get_dielectric_material_count",
    "get_dielectric_ior",
    "refraction_ratio",
    "cannot_refract",
]
