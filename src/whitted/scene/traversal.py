"""Scene storage and closest-hit traversal.

Objects and lights live in Structure-of-Arrays Taichi fields. Each object
stores its primitive kind, its local-to-world matrix T, the inverse Tinv and
a material id; each light stores a world position, an RGB colour and an
emission radius used for soft-shadow sampling.

find_first_hit() scans every object linearly (no acceleration structure)
and keeps the strict minimum positive t, so among equal distances the
object added first wins. A caller-specified source object is skipped; the
shading engine passes the object it is shading so that shadow and
reflection rays cannot re-hit their own surface through rounding error.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.whitted.scene.traversal import add_object, find_first_hit
    >>> # Python side: add_object(PrimitiveKind.SPHERE, t.matrix, t.inverse, mat_id)
    >>> # Within a Taichi kernel:
    >>> # hit = find_first_hit(ray, -1)
"""

import logging

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from src.whitted.core.ray import Ray, transform_normal, transform_point
from src.whitted.geometry.dispatch import PrimitiveKind, intersect_object
from src.whitted.geometry.hit import NO_HIT, make_miss

logger = logging.getLogger(__name__)

vec3 = tm.vec3

# Source id meaning "exclude nothing"
NO_SOURCE = -1


@ti.dataclass
class SceneHit:
    """Record of a ray-scene intersection in world space.

    Attributes:
        hit: Whether any object was hit (1 if hit, 0 if miss).
        t: The ray parameter of the closest hit, or NO_HIT.
        object_id: Index of the hit object, or -1 on a miss.
        material_id: Material of the hit object, or -1 on a miss.
        point: World-space hit point.
        normal: Unit world-space normal facing the incoming ray (except on
            planes, whose normal is fixed).
        u: First surface coordinate of the hit.
        v: Second surface coordinate of the hit.
        exiting: 1 if the ray was leaving the object's solid.
    """

    hit: ti.i32
    t: ti.f32
    object_id: ti.i32
    material_id: ti.i32
    point: vec3
    normal: vec3
    u: ti.f32
    v: ti.f32
    exiting: ti.i32


# Maximum number of objects and lights in the scene
MAX_OBJECTS = 256
MAX_LIGHTS = 16

# Object storage
object_kinds = ti.field(dtype=ti.i32, shape=MAX_OBJECTS)
object_transforms = ti.Matrix.field(4, 4, dtype=ti.f32, shape=MAX_OBJECTS)
object_inverses = ti.Matrix.field(4, 4, dtype=ti.f32, shape=MAX_OBJECTS)
object_material_ids = ti.field(dtype=ti.i32, shape=MAX_OBJECTS)
num_objects = ti.field(dtype=ti.i32, shape=())

# Light storage
light_positions = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LIGHTS)
light_colors = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LIGHTS)
light_radii = ti.field(dtype=ti.f32, shape=MAX_LIGHTS)
num_lights = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Remove all objects and lights.

    Only the counts are reset; stale field data is overwritten by later
    additions.
    """
    num_objects[None] = 0
    num_lights[None] = 0


def add_object(
    kind: PrimitiveKind,
    matrix: npt.ArrayLike,
    inverse: npt.ArrayLike,
    material_id: int,
) -> int:
    """Add a placed primitive to the scene.

    Args:
        kind: The canonical primitive shape.
        matrix: The 4x4 local-to-world matrix T.
        inverse: The 4x4 inverse Tinv.
        material_id: Id of a registered Phong material.

    Returns:
        The index of the added object.

    Raises:
        RuntimeError: If the maximum number of objects is exceeded.
        ValueError: If a matrix is not 4x4.
    """
    idx = num_objects[None]
    if idx >= MAX_OBJECTS:
        raise RuntimeError(f"Maximum number of objects ({MAX_OBJECTS}) exceeded")

    t = np.asarray(matrix, dtype=np.float32)
    t_inv = np.asarray(inverse, dtype=np.float32)
    if t.shape != (4, 4) or t_inv.shape != (4, 4):
        raise ValueError(f"Transforms must be 4x4, got {t.shape} and {t_inv.shape}")

    object_kinds[idx] = int(kind)
    object_transforms[idx] = t.tolist()
    object_inverses[idx] = t_inv.tolist()
    object_material_ids[idx] = material_id
    num_objects[None] = idx + 1
    logger.debug("Added object %d: %s (material %d)", idx, PrimitiveKind(kind).name, material_id)
    return idx


def add_light(
    position: tuple[float, float, float],
    color: tuple[float, float, float],
    radius: float = 0.0,
) -> int:
    """Add a spherical area light.

    Args:
        position: World-space centre of the light.
        color: RGB light colour.
        radius: Emission radius; 0 gives a point light with hard shadows.

    Returns:
        The index of the added light.

    Raises:
        RuntimeError: If the maximum number of lights is exceeded.
        ValueError: If the radius is negative.
    """
    if radius < 0.0:
        raise ValueError(f"Light radius = {radius} must be non-negative")

    idx = num_lights[None]
    if idx >= MAX_LIGHTS:
        raise RuntimeError(f"Maximum number of lights ({MAX_LIGHTS}) exceeded")

    light_positions[idx] = [position[0], position[1], position[2]]
    light_colors[idx] = [color[0], color[1], color[2]]
    light_radii[idx] = radius
    num_lights[None] = idx + 1
    logger.debug("Added light %d at %s (radius %.3f)", idx, tuple(position), radius)
    return idx


def get_object_count() -> int:
    """Get the number of objects in the scene."""
    return int(num_objects[None])


def get_light_count() -> int:
    """Get the number of lights in the scene."""
    return int(num_lights[None])


@ti.func
def _make_scene_miss() -> SceneHit:
    """Create a SceneHit indicating no intersection."""
    return SceneHit(
        hit=0,
        t=NO_HIT,
        object_id=-1,
        material_id=-1,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        u=0.0,
        v=0.0,
        exiting=0,
    )


@ti.func
def find_first_hit(ray: Ray, source: ti.i32) -> SceneHit:
    """Find the closest object hit by a world-space ray.

    Tests every object except `source`, tracking the smallest positive t
    (strictly smaller, so the first of equal hits is kept). The winner's
    local point is mapped to world space with T and its local normal with
    transpose(Tinv), then renormalized.

    Args:
        ray: The world-space ray; it is not modified.
        source: Object index to skip, or NO_SOURCE.

    Returns:
        A SceneHit for the closest object, or a miss record.
    """
    closest_t = NO_HIT
    best = -1
    best_rec = make_miss()

    for i in range(num_objects[None]):
        if i != source:
            rec = intersect_object(object_kinds[i], object_inverses[i], ray)
            if rec.hit == 1 and (best < 0 or rec.t < closest_t):
                closest_t = rec.t
                best = i
                best_rec = rec

    result = _make_scene_miss()
    if best >= 0:
        result = SceneHit(
            hit=1,
            t=closest_t,
            object_id=best,
            material_id=object_material_ids[best],
            point=transform_point(object_transforms[best], best_rec.point),
            normal=transform_normal(object_inverses[best], best_rec.normal),
            u=best_rec.u,
            v=best_rec.v,
            exiting=best_rec.exiting,
        )
    return result
