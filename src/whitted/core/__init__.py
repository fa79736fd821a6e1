"""Core rendering module.

This module contains the fundamental building blocks of the ray tracer:

Components:
    ray: Ray data structure, vector helpers and render-side transforms
    transform: Authoring-side affine transforms and matrix inversion
    sampling: Counter-based random streams and light sampling
    shading: Local Phong illumination, shadows, reflection and refraction
    integrator: Bounded Whitted ray tree evaluation and render kernels
    renderer: RenderConfig and the Renderer facade

All per-ray work runs in Taichi kernels; matrices are built with NumPy on
the Python side and uploaded to Taichi fields.
"""

from .ray import (
    Ray,
    clamp_color,
    normalize,
    ray_at,
    reflect,
    transform_normal,
    transform_point,
    transform_ray,
    transform_vector,
    vec3,
)

# Note: shading, integrator and renderer are NOT imported here because they
# depend on the scene and materials packages, which import this package.
# Import them directly, e.g. from src.whitted.core.renderer import Renderer.

__all__ = [
    "Ray",
    "ray_at",
    "vec3",
    "normalize",
    "reflect",
    "clamp_color",
    "transform_point",
    "transform_vector",
    "transform_normal",
    "transform_ray",
]
