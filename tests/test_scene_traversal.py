"""Unit tests for scene storage and closest-hit traversal.

Tests cover:
- Object and light registration and capacity errors
- Closest-hit selection and insertion-order tie breaking
- Source object exclusion
- World-space hit point and normal
"""

import numpy as np
import pytest
import taichi as ti


def _place(kind, transform, material_id=0):
    from src.whitted.scene.traversal import add_object

    return add_object(kind, transform.matrix, transform.inverse, material_id)


def _first_hit(origin, direction, source=-1):
    from src.whitted.core.ray import Ray, vec3
    from src.whitted.scene.traversal import find_first_hit

    out_hit = ti.field(dtype=ti.i32, shape=())
    out_id = ti.field(dtype=ti.i32, shape=())
    out_material = ti.field(dtype=ti.i32, shape=())
    out_t = ti.field(dtype=ti.f32, shape=())
    out_point = ti.field(dtype=ti.math.vec3, shape=())
    out_normal = ti.field(dtype=ti.math.vec3, shape=())

    @ti.kernel
    def test_kernel(o: vec3, d: vec3, src: ti.i32):
        rec = find_first_hit(Ray(origin=o, direction=d), src)
        out_hit[None] = rec.hit
        out_id[None] = rec.object_id
        out_material[None] = rec.material_id
        out_t[None] = rec.t
        out_point[None] = rec.point
        out_normal[None] = rec.normal

    test_kernel(vec3(*origin), vec3(*direction), source)
    return {
        "hit": int(out_hit[None]),
        "object_id": int(out_id[None]),
        "material_id": int(out_material[None]),
        "t": float(out_t[None]),
        "point": out_point[None].to_numpy(),
        "normal": out_normal[None].to_numpy(),
    }


class TestRegistration:
    """Tests for add_object and add_light."""

    def test_counts(self):
        """Test counts follow additions and clear_scene resets them."""
        from src.whitted.core.transform import Transform
        from src.whitted.geometry.dispatch import PrimitiveKind
        from src.whitted.scene.traversal import (
            add_light,
            clear_scene,
            get_light_count,
            get_object_count,
        )

        assert _place(PrimitiveKind.SPHERE, Transform()) == 0
        assert _place(PrimitiveKind.PLANE, Transform()) == 1
        add_light((0.0, 5.0, 0.0), (1.0, 1.0, 1.0), 1.0)
        assert get_object_count() == 2
        assert get_light_count() == 1

        clear_scene()
        assert get_object_count() == 0
        assert get_light_count() == 0

    def test_object_capacity(self):
        """Test exceeding MAX_OBJECTS raises RuntimeError."""
        from src.whitted.scene.traversal import MAX_OBJECTS, add_object, num_objects

        num_objects[None] = MAX_OBJECTS
        with pytest.raises(RuntimeError, match="Maximum number of objects"):
            add_object(1, np.eye(4), np.eye(4), 0)

    def test_bad_matrix_shape(self):
        """Test non-4x4 matrices raise ValueError."""
        from src.whitted.scene.traversal import add_object

        with pytest.raises(ValueError):
            add_object(1, np.eye(3), np.eye(3), 0)

    def test_negative_light_radius(self):
        """Test a negative radius raises ValueError."""
        from src.whitted.scene.traversal import add_light

        with pytest.raises(ValueError, match="radius"):
            add_light((0.0, 0.0, 0.0), (1.0, 1.0, 1.0), -1.0)

    def test_light_capacity(self):
        """Test exceeding MAX_LIGHTS raises RuntimeError."""
        from src.whitted.scene.traversal import MAX_LIGHTS, add_light

        for _ in range(MAX_LIGHTS):
            add_light((0.0, 0.0, 0.0), (1.0, 1.0, 1.0))
        with pytest.raises(RuntimeError):
            add_light((0.0, 0.0, 0.0), (1.0, 1.0, 1.0))


class TestFindFirstHit:
    """Tests for find_first_hit."""

    def test_empty_scene_misses(self):
        """Test a ray in an empty scene misses."""
        rec = _first_hit((0.0, 0.0, 0.0), (0.0, 0.0, 1.0))
        assert rec["hit"] == 0
        assert rec["object_id"] == -1

    def test_closest_object_wins(self):
        """Test the nearer of two spheres is reported regardless of order."""
        from src.whitted.core.transform import Transform
        from src.whitted.geometry.dispatch import PrimitiveKind

        _place(PrimitiveKind.SPHERE, Transform().translate(0.0, 0.0, 10.0).invert(), material_id=3)
        _place(PrimitiveKind.SPHERE, Transform().translate(0.0, 0.0, 5.0).invert(), material_id=4)

        rec = _first_hit((0.0, 0.0, 0.0), (0.0, 0.0, 1.0))
        assert rec["hit"] == 1
        assert rec["object_id"] == 1
        assert rec["material_id"] == 4
        assert abs(rec["t"] - 4.0) < 1e-4

    def test_tie_goes_to_first_added(self):
        """Test coincident objects resolve to the earlier insertion."""
        from src.whitted.core.transform import Transform
        from src.whitted.geometry.dispatch import PrimitiveKind

        _place(PrimitiveKind.SPHERE, Transform().translate(0.0, 0.0, 5.0).invert())
        _place(PrimitiveKind.SPHERE, Transform().translate(0.0, 0.0, 5.0).invert())

        rec = _first_hit((0.0, 0.0, 0.0), (0.0, 0.0, 1.0))
        assert rec["object_id"] == 0

    def test_source_is_excluded(self):
        """Test the source object is skipped so the next one is found."""
        from src.whitted.core.transform import Transform
        from src.whitted.geometry.dispatch import PrimitiveKind

        _place(PrimitiveKind.SPHERE, Transform().translate(0.0, 0.0, 5.0).invert())
        _place(PrimitiveKind.SPHERE, Transform().translate(0.0, 0.0, 10.0).invert())

        rec = _first_hit((0.0, 0.0, 0.0), (0.0, 0.0, 1.0), source=0)
        assert rec["object_id"] == 1
        assert abs(rec["t"] - 9.0) < 1e-4

    def test_world_point_and_normal(self):
        """Test the hit is reported in world space with a unit normal."""
        from src.whitted.core.transform import Transform
        from src.whitted.geometry.dispatch import PrimitiveKind

        # Ellipsoid with semi-axes (1, 1, 2) centred at z = 10
        _place(PrimitiveKind.SPHERE, Transform().scale(1.0, 1.0, 2.0).translate(0.0, 0.0, 10.0).invert())

        rec = _first_hit((0.0, 0.0, 0.0), (0.0, 0.0, 1.0))
        assert abs(rec["t"] - 8.0) < 1e-4
        assert np.allclose(rec["point"], [0.0, 0.0, 8.0], atol=1e-4)
        assert np.allclose(rec["normal"], [0.0, 0.0, -1.0], atol=1e-4)

    def test_transformed_plane(self):
        """Test a scaled, rotated plane is hit where its world square lies."""
        import math

        from src.whitted.core.transform import Transform
        from src.whitted.geometry.dispatch import PrimitiveKind

        # Square spanning [-4, 4] laid flat in the y = -2 plane
        _place(
            PrimitiveKind.PLANE,
            Transform().scale(4.0, 4.0, 1.0).rotate_x(math.pi / 2.0).translate(0.0, -2.0, 0.0).invert(),
        )

        rec = _first_hit((1.0, 5.0, 1.0), (0.0, -1.0, 0.0))
        assert rec["hit"] == 1
        assert abs(rec["t"] - 7.0) < 1e-4
        assert np.allclose(rec["point"], [1.0, -2.0, 1.0], atol=1e-4)
        assert abs(abs(rec["normal"][1]) - 1.0) < 1e-4

        # Outside the square
        assert _first_hit((5.0, 5.0, 0.0), (0.0, -1.0, 0.0))["hit"] == 0
