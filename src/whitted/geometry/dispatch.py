"""Closed dispatch over the canonical primitive kinds.

Each object stores a PrimitiveKind tag; intersect_local() routes a
local-space ray to the matching routine and intersect_object() wraps it
with the world-to-local ray transform.
"""

from enum import IntEnum

import taichi as ti
import taichi.math as tm

from src.whitted.core.ray import Ray, transform_ray
from src.whitted.geometry.box import hit_box
from src.whitted.geometry.cone import hit_cone
from src.whitted.geometry.hit import HitRecord, make_miss
from src.whitted.geometry.paraboloid import hit_paraboloid
from src.whitted.geometry.plane import hit_plane
from src.whitted.geometry.sphere import hit_sphere

mat4 = tm.mat4
vec3 = tm.vec3


class PrimitiveKind(IntEnum):
    """Enumeration of the canonical primitive shapes.

    The integer values are stored per object in a Taichi field and compared
    inside kernels.
    """

    PLANE = 0
    SPHERE = 1
    CONE = 2
    PARABOLOID = 3
    BOX = 4


# Surfaces without an enclosed volume are lit from both sides by default
DOUBLE_SIDED_BY_DEFAULT = {
    PrimitiveKind.PLANE: True,
    PrimitiveKind.SPHERE: False,
    PrimitiveKind.CONE: True,
    PrimitiveKind.PARABOLOID: True,
    PrimitiveKind.BOX: False,
}


@ti.func
def intersect_local(kind: ti.i32, origin: vec3, direction: vec3) -> HitRecord:
    """Intersect a local-space ray with the primitive of the given kind.

    Args:
        kind: A PrimitiveKind value.
        origin: Ray origin in the primitive's local space.
        direction: Ray direction in the primitive's local space.

    Returns:
        The primitive's HitRecord; unknown kinds report a miss.
    """
    rec = make_miss()
    if kind == int(PrimitiveKind.PLANE):
        rec = hit_plane(origin, direction)
    elif kind == int(PrimitiveKind.SPHERE):
        rec = hit_sphere(origin, direction)
    elif kind == int(PrimitiveKind.CONE):
        rec = hit_cone(origin, direction)
    elif kind == int(PrimitiveKind.PARABOLOID):
        rec = hit_paraboloid(origin, direction)
    elif kind == int(PrimitiveKind.BOX):
        rec = hit_box(origin, direction)
    return rec


@ti.func
def intersect_object(kind: ti.i32, world_to_local: mat4, ray: Ray) -> HitRecord:
    """Intersect a world-space ray with one placed primitive.

    The ray is mapped into local space with the object's inverse transform.
    The world ray itself is passed by value and is never modified, so
    callers can keep using it after a hit or a miss.

    Args:
        kind: A PrimitiveKind value.
        world_to_local: The object's inverse transform Tinv.
        ray: The world-space ray.

    Returns:
        The HitRecord in local space. Its t is also the world-space ray
        parameter, since the mapping is affine.
    """
    local_ray = transform_ray(world_to_local, ray)
    return intersect_local(kind, local_ray.origin, local_ray.direction)
