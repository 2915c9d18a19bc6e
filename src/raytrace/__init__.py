"""Taichi-based Monte Carlo sphere ray tracer.

This package renders scenes of spheres lit by a sky gradient, with support for:
- Lambertian, metal and dielectric materials shared between spheres
- Parallel rendering with per-pixel seeded random streams
- Progressive rendering with accumulation
- PPM and PNG output

Subpackages:
    core: Render settings, vector algebra, sampling, integrator and render loop
    geometry: Sphere primitive and intersection
    materials: Surface scattering models
    scene: Scene storage, builder and presets
    camera: Fixed-viewport camera with ray generation
    output: Display encoding and image writers
"""

__version__ = "0.1.0"
