"""Pytest configuration for raytracer tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls which can cause
    segmentation faults due to Taichi runtime conflicts.
    """
    ti.init(arch=ti.cpu)
    yield


@pytest.fixture(autouse=True)
def clear_all_scene_data():
    """Clear scene, material and render target data around each test.

    This ensures tests are isolated from each other.
    """
    # Import here so Taichi is initialized before fields are declared
    from src.raytrace.core.integrator import clear_render_target, reset_render_target
    from src.raytrace.materials.dielectric import clear_dielectric_materials
    from src.raytrace.materials.lambertian import clear_lambertian_materials
    from src.raytrace.materials.metal import clear_metal_materials
    from src.raytrace.scene.intersection import clear_scene
    from src.raytrace.scene.manager import _clear_material_tracking

    def _clear_all():
        clear_scene()
        clear_lambertian_materials()
        clear_metal_materials()
        clear_dielectric_materials()
        _clear_material_tracking()
        clear_render_target()
        reset_render_target()

    _clear_all()
    yield
    _clear_all()


@pytest.fixture
def seeded_streams():
    """Seed the per-pixel random streams with a fixed value."""
    from src.raytrace.core.sampler import seed_streams

    seed_streams(1234)
