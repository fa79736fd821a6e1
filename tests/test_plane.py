"""Unit tests for the canonical unit-square plane.

Tests cover:
- Hits inside the square from either side
- Misses outside the square, behind the origin and parallel to the plane
- Fixed normal and surface coordinates
"""

import pytest


def _close(actual, expected, tol=1e-5):
    return all(abs(a - e) < tol for a, e in zip(actual, expected))


class TestPlaneIntersection:
    """Tests for hit_plane."""

    def test_hit_centre(self, run_intersection):
        """Test the reference case: t=5 at the origin with normal (0,0,-1)."""
        from src.whitted.geometry.plane import hit_plane

        rec = run_intersection(hit_plane, (0.0, 0.0, -5.0), (0.0, 0.0, 1.0))
        assert rec["hit"] == 1
        assert abs(rec["t"] - 5.0) < 1e-5
        assert _close(rec["point"], (0.0, 0.0, 0.0))
        assert _close(rec["normal"], (0.0, 0.0, -1.0))
        assert rec["exiting"] == 0

    def test_hit_from_back_keeps_normal(self, run_intersection):
        """Test the plane normal is never flipped toward the ray."""
        from src.whitted.geometry.plane import hit_plane

        rec = run_intersection(hit_plane, (0.0, 0.0, 5.0), (0.0, 0.0, -1.0))
        assert rec["hit"] == 1
        assert abs(rec["t"] - 5.0) < 1e-5
        assert _close(rec["normal"], (0.0, 0.0, -1.0))
        assert rec["exiting"] == 0

    @pytest.mark.parametrize(
        "origin",
        [(2.0, 0.0, -5.0), (0.0, -1.5, -5.0), (1.01, 1.01, -5.0)],
    )
    def test_miss_outside_square(self, run_intersection, origin):
        """Test hits on the infinite plane outside [-1, 1]^2 are misses."""
        from src.whitted.geometry.plane import hit_plane

        rec = run_intersection(hit_plane, origin, (0.0, 0.0, 1.0))
        assert rec["hit"] == 0

    def test_miss_behind(self, run_intersection):
        """Test a plane behind the origin is not hit."""
        from src.whitted.geometry.plane import hit_plane

        rec = run_intersection(hit_plane, (0.0, 0.0, 5.0), (0.0, 0.0, 1.0))
        assert rec["hit"] == 0

    def test_miss_parallel(self, run_intersection):
        """Test a ray parallel to the plane misses."""
        from src.whitted.geometry.plane import hit_plane

        rec = run_intersection(hit_plane, (-5.0, 0.0, 0.0), (1.0, 0.0, 0.0))
        assert rec["hit"] == 0

    def test_uv_maps_square_to_unit(self, run_intersection):
        """Test (x, y) in [-1, 1] maps to (u, v) in [0, 1]."""
        from src.whitted.geometry.plane import hit_plane

        rec = run_intersection(hit_plane, (0.5, -0.5, -5.0), (0.0, 0.0, 1.0))
        assert rec["hit"] == 1
        assert abs(rec["u"] - 0.75) < 1e-5
        assert abs(rec["v"] - 0.25) < 1e-5
