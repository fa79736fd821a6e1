"""Geometry module for the canonical primitives.

This module provides the unit-scale implicit primitives and their
ray-intersection routines:

Components:
    hit: Local-space HitRecord and shared root selection helpers
    plane: Unit square at z=0
    sphere: Unit sphere at the origin
    cone: x^2 + z^2 = y^2 for y in [-1, 0]
    paraboloid: x^2 + z^2 = -y for y in [-1, 0]
    box: Axis-aligned cube [-1, 1]^3
    dispatch: PrimitiveKind enum and kind-based dispatch

All intersection routines are Taichi functions (@ti.func) that take a
local-space ray and return a HitRecord:
    rec = hit_<kind>(local_origin, local_direction)
"""

from .box import hit_box
from .cone import hit_cone
from .dispatch import DOUBLE_SIDED_BY_DEFAULT, PrimitiveKind, intersect_local, intersect_object
from .hit import NO_HIT, HitRecord, make_miss, orient_normal, select_root
from .paraboloid import hit_paraboloid
from .plane import hit_plane
from .sphere import hit_sphere, sphere_uv

__all__ = [
    "HitRecord",
    "NO_HIT",
    "make_miss",
    "select_root",
    "orient_normal",
    "hit_plane",
    "hit_sphere",
    "sphere_uv",
    "hit_cone",
    "hit_paraboloid",
    "hit_box",
    "PrimitiveKind",
    "DOUBLE_SIDED_BY_DEFAULT",
    "intersect_local",
    "intersect_object",
]
