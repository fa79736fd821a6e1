"""Taichi implementation of a Whitted-style recursive ray tracer.

This package renders scenes built from canonical implicit primitives with
local Phong illumination, soft shadows from spherical area lights, mirror
reflection and dielectric refraction. Per-ray work runs inside Taichi
kernels; scene authoring and matrix algebra happen on the Python side.

Subpackages:
    core: Rays, transforms, sampling, shading and the render integrator
    geometry: Canonical primitives and their intersection routines
    materials: Phong material registry and texture sampling
    scene: Object and light storage, closest-hit traversal, scene manager
    camera: View setup and primary ray generation
    preview: Image export utilities
"""

__version__ = "0.1.0"
