"""Ray data structure and vector utilities used inside Taichi kernels.

This module provides the Ray dataclass, vector helpers and the render-side
half of the transform pipeline: applying 4x4 homogeneous matrices to points
(w=1), direction vectors (w=0), normals and whole rays.

Points and directions are stored as vec3; the homogeneous coordinate is
implied by the function used to transform them, so a direction never picks
up the translation part of a matrix.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.whitted.core.ray import Ray, ray_at, transform_ray
    >>> # Within a Taichi kernel:
    >>> # local_ray = transform_ray(t_inv, Ray(origin=o, direction=d))
    >>> # p = ray_at(local_ray, 2.0)
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3
mat4 = tm.mat4


@ti.dataclass
class Ray:
    """A ray with an origin point and direction vector.

    Attributes:
        origin: The starting point of the ray (vec3, homogeneous w=1).
        direction: The direction of the ray (vec3, homogeneous w=0). It is
            not required to be normalized; shadow rays deliberately keep the
            point-to-light length so that t=1 lands on the light sample.
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Compute the point along the ray at parameter t.

    Args:
        ray: The ray to evaluate.
        t: The parameter value. Positive values are in front of the origin.

    Returns:
        The point ray.origin + t * ray.direction.
    """
    return ray.origin + t * ray.direction


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def normalize(v: vec3) -> vec3:
    """Normalize a vector to unit length.

    Args:
        v: The input vector.

    Returns:
        A unit vector in the same direction as v, or the zero vector when v
        has zero length.
    """
    result = vec3(0.0, 0.0, 0.0)
    len_sq = tm.dot(v, v)
    if len_sq > 0.0:
        result = v / ti.sqrt(len_sq)
    return result


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Reflect an incident vector about a normal.

    With b = -incident (the direction back toward the viewer) this is the
    mirror direction 2(n.b)n - b.

    Args:
        incident: The incoming direction vector (pointing toward the surface).
        normal: The surface normal (unit length).

    Returns:
        The reflected direction vector.
    """
    return incident - 2.0 * tm.dot(incident, normal) * normal


@ti.func
def clamp_color(color: vec3) -> vec3:
    """Clamp every channel of a colour to [0, 1]."""
    return tm.clamp(color, 0.0, 1.0)


# =============================================================================
# Homogeneous Transforms (render side)
# =============================================================================


@ti.func
def transform_point(m: mat4, p: vec3) -> vec3:
    """Apply a 4x4 matrix to a point (w=1), including translation."""
    h = m @ tm.vec4(p.x, p.y, p.z, 1.0)
    return vec3(h.x, h.y, h.z)


@ti.func
def transform_vector(m: mat4, d: vec3) -> vec3:
    """Apply a 4x4 matrix to a direction (w=0), ignoring translation."""
    h = m @ tm.vec4(d.x, d.y, d.z, 0.0)
    return vec3(h.x, h.y, h.z)


@ti.func
def transform_normal(m_inv: mat4, n: vec3) -> vec3:
    """Map a local-space normal to world space.

    Normals transform with the transpose of the inverse matrix so that they
    stay perpendicular to the surface under non-uniform scaling. The result
    is renormalized.

    Args:
        m_inv: The inverse of the object's local-to-world transform.
        n: The local-space normal.

    Returns:
        The unit world-space normal.
    """
    h = m_inv.transpose() @ tm.vec4(n.x, n.y, n.z, 0.0)
    return normalize(vec3(h.x, h.y, h.z))


@ti.func
def transform_ray(m: mat4, ray: Ray) -> Ray:
    """Apply a 4x4 matrix to both fields of a ray.

    The input ray is passed by value, so the caller's ray is left untouched
    and no inverse transform is needed to restore it.
    """
    return Ray(origin=transform_point(m, ray.origin), direction=transform_vector(m, ray.direction))
