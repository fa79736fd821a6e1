"""Unit tests for the ray module.

Tests cover:
- Ray dataclass and ray_at function
- Vector utilities (normalize, reflect, clamp_color)
- Render-side homogeneous transforms and the ray round trip
"""

import math

import numpy as np
import taichi as ti


class TestRayBasics:
    """Tests for Ray dataclass and basic operations."""

    def test_ray_at(self):
        """Test ray_at evaluates origin + t*direction."""
        from src.whitted.core.ray import Ray, ray_at, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            ray = Ray(origin=vec3(1.0, 2.0, 3.0), direction=vec3(0.0, 0.0, -2.0))
            result[None] = ray_at(ray, 1.5)

        test_kernel()
        r = result[None]
        assert abs(r[0] - 1.0) < 1e-6
        assert abs(r[1] - 2.0) < 1e-6
        assert abs(r[2] - 0.0) < 1e-6


class TestVectorUtilities:
    """Tests for vector helpers."""

    def test_normalize(self):
        """Test normalize returns a unit vector."""
        from src.whitted.core.ray import normalize, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = normalize(vec3(3.0, 0.0, 4.0))

        test_kernel()
        r = result[None]
        assert abs(r[0] - 0.6) < 1e-6
        assert abs(r[2] - 0.8) < 1e-6

    def test_normalize_zero_vector(self):
        """Test normalize leaves the zero vector at zero instead of NaN."""
        from src.whitted.core.ray import normalize, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = normalize(vec3(0.0, 0.0, 0.0))

        test_kernel()
        r = result[None]
        assert r[0] == 0.0 and r[1] == 0.0 and r[2] == 0.0

    def test_reflect_45_degrees(self):
        """Test reflection off a horizontal surface flips the vertical part."""
        from src.whitted.core.ray import reflect, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = reflect(vec3(1.0, -1.0, 0.0), vec3(0.0, 1.0, 0.0))

        test_kernel()
        r = result[None]
        assert abs(r[0] - 1.0) < 1e-6
        assert abs(r[1] - 1.0) < 1e-6

    def test_clamp_color(self):
        """Test every channel is clamped to [0, 1]."""
        from src.whitted.core.ray import clamp_color, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = clamp_color(vec3(-0.5, 0.25, 3.0))

        test_kernel()
        r = result[None]
        assert r[0] == 0.0
        assert abs(r[1] - 0.25) < 1e-6
        assert r[2] == 1.0


class TestHomogeneousTransforms:
    """Tests for transform_point/vector/normal/ray inside kernels."""

    def test_point_and_vector(self):
        """Test points are translated and directions are not."""
        from src.whitted.core.ray import transform_point, transform_vector, vec3
        from src.whitted.core.transform import Transform

        m = ti.Matrix.field(4, 4, dtype=ti.f32, shape=())
        p_out = ti.field(dtype=ti.math.vec3, shape=())
        d_out = ti.field(dtype=ti.math.vec3, shape=())

        m[None] = Transform().translate(1.0, 2.0, 3.0).matrix.astype(np.float32).tolist()

        @ti.kernel
        def test_kernel():
            p_out[None] = transform_point(m[None], vec3(1.0, 1.0, 1.0))
            d_out[None] = transform_vector(m[None], vec3(1.0, 1.0, 1.0))

        test_kernel()
        p = p_out[None]
        d = d_out[None]
        assert abs(p[0] - 2.0) < 1e-6 and abs(p[1] - 3.0) < 1e-6 and abs(p[2] - 4.0) < 1e-6
        assert abs(d[0] - 1.0) < 1e-6 and abs(d[1] - 1.0) < 1e-6 and abs(d[2] - 1.0) < 1e-6

    def test_transform_normal_matches_numpy(self):
        """Test the kernel normal transform agrees with the authoring side."""
        from src.whitted.core.ray import transform_normal, vec3
        from src.whitted.core.transform import Transform, vector

        t = Transform().scale(2.0, 0.5, 1.0).rotate_y(0.7).invert()
        m_inv = ti.Matrix.field(4, 4, dtype=ti.f32, shape=())
        result = ti.field(dtype=ti.math.vec3, shape=())
        m_inv[None] = t.inverse.astype(np.float32).tolist()

        @ti.kernel
        def test_kernel():
            result[None] = transform_normal(m_inv[None], vec3(1.0, 1.0, 0.0))

        test_kernel()
        expected = t.apply_to_normal(vector(1.0, 1.0, 0.0))
        r = result[None]
        for k in range(3):
            assert abs(r[k] - expected[k]) < 1e-5

    def test_ray_round_trip(self):
        """Test mapping a ray to local space and back restores it."""
        from src.whitted.core.ray import Ray, transform_ray, vec3
        from src.whitted.core.transform import Transform

        t = (
            Transform()
            .scale(16.0, 16.0, 1.0)
            .rotate_z(math.pi / 1.2)
            .rotate_x(math.pi / 2.25)
            .translate(0.0, -3.0, 10.0)
            .invert()
        )
        m = ti.Matrix.field(4, 4, dtype=ti.f32, shape=())
        m_inv = ti.Matrix.field(4, 4, dtype=ti.f32, shape=())
        m[None] = t.matrix.astype(np.float32).tolist()
        m_inv[None] = t.inverse.astype(np.float32).tolist()

        origin = ti.field(dtype=ti.math.vec3, shape=())
        direction = ti.field(dtype=ti.math.vec3, shape=())
        original_origin = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            ray = Ray(origin=vec3(0.5, -1.0, 2.0), direction=vec3(0.1, 0.2, 1.0))
            local = transform_ray(m_inv[None], ray)
            back = transform_ray(m[None], local)
            origin[None] = back.origin
            direction[None] = back.direction
            # The caller's ray is passed by value and left unchanged
            original_origin[None] = ray.origin

        test_kernel()
        o = origin[None]
        d = direction[None]
        assert abs(o[0] - 0.5) < 1e-4 and abs(o[1] + 1.0) < 1e-4 and abs(o[2] - 2.0) < 1e-4
        assert abs(d[0] - 0.1) < 1e-4 and abs(d[1] - 0.2) < 1e-4 and abs(d[2] - 1.0) < 1e-4
        oo = original_origin[None]
        assert abs(oo[0] - 0.5) < 1e-6 and abs(oo[1] + 1.0) < 1e-6 and abs(oo[2] - 2.0) < 1e-6
