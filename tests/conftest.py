"""Pytest configuration for ray tracer tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls, which would
    invalidate every field created so far.
    """
    ti.init(arch=ti.cpu, random_seed=42)
    yield


@pytest.fixture(autouse=True)
def clear_all_scene_data():
    """Clear scene, material, texture, view and render target state.

    This ensures tests are isolated from each other.
    """
    # Import here so the fields are created after ti.init()
    from src.whitted.camera.view import reset_view
    from src.whitted.core.integrator import clear_render_target, reset_render_target
    from src.whitted.materials.phong import clear_phong_materials
    from src.whitted.materials.texture import clear_textures
    from src.whitted.scene.traversal import clear_scene

    def _clear_all():
        clear_scene()
        clear_phong_materials()
        clear_textures()
        reset_view()
        clear_render_target()
        reset_render_target()

    _clear_all()
    yield
    _clear_all()


@pytest.fixture
def run_intersection():
    """Run a local-space primitive intersection inside a kernel.

    Returns a callable (hit_fn, origin, direction) -> dict holding the
    HitRecord fields as Python values.
    """
    from src.whitted.core.ray import vec3

    def _run(hit_fn, origin, direction):
        out_hit = ti.field(dtype=ti.i32, shape=())
        out_t = ti.field(dtype=ti.f32, shape=())
        out_point = ti.field(dtype=ti.math.vec3, shape=())
        out_normal = ti.field(dtype=ti.math.vec3, shape=())
        out_uv = ti.field(dtype=ti.math.vec2, shape=())
        out_exiting = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel(o: vec3, d: vec3):
            rec = hit_fn(o, d)
            out_hit[None] = rec.hit
            out_t[None] = rec.t
            out_point[None] = rec.point
            out_normal[None] = rec.normal
            out_uv[None] = ti.math.vec2(rec.u, rec.v)
            out_exiting[None] = rec.exiting

        test_kernel(vec3(*origin), vec3(*direction))
        p = out_point[None]
        n = out_normal[None]
        uv = out_uv[None]
        return {
            "hit": int(out_hit[None]),
            "t": float(out_t[None]),
            "point": (float(p[0]), float(p[1]), float(p[2])),
            "normal": (float(n[0]), float(n[1]), float(n[2])),
            "u": float(uv[0]),
            "v": float(uv[1]),
            "exiting": int(out_exiting[None]),
        }

    return _run
