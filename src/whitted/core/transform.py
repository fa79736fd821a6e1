"""Affine transform pipeline for object placement (authoring side).

Objects are defined in a canonical unit-scale local space and placed in the
world by a 4x4 homogeneous matrix T. Each operation (scale, rotate about X,
Y or Z, translate) is left-multiplied onto the current T, so operations
compose in call order: the first one issued acts first on local coordinates.

The inverse Tinv is never updated incrementally. It is recomputed from T by
invert(), which delegates the linear 3x3 block to invert3x3() and derives the
translation term from it. A Transform whose matrix changed after the last
invert() is "stale" and is rejected when added to a scene.

Points carry w=1 and direction vectors carry w=0; the helpers below keep
that distinction so that directions are never translated.

Example:
    >>> from src.whitted.core.transform import Transform
    >>> t = Transform().scale(2.0, 1.0, 1.0).rotate_y(0.5).translate(0.0, 1.0, 5.0)
    >>> t.invert()
    >>> t.is_stale
    False
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any

import numpy as np
import numpy.typing as npt

logger = logging.getLogger(__name__)

Matrix4 = npt.NDArray[np.float64]
Vector4 = npt.NDArray[np.float64]

# Singular values below this make a matrix non-invertible
SINGULAR_VALUE_EPSILON = 1e-9


# =============================================================================
# Homogeneous Points and Vectors
# =============================================================================


def point(x: float, y: float, z: float) -> Vector4:
    """Create a homogeneous point (w=1)."""
    return np.array([x, y, z, 1.0], dtype=np.float64)


def vector(x: float, y: float, z: float) -> Vector4:
    """Create a homogeneous direction vector (w=0)."""
    return np.array([x, y, z, 0.0], dtype=np.float64)


def normalized(v: Vector4) -> Vector4:
    """Return a copy of a direction with unit xyz length and w=0.

    Raises:
        ValueError: If the vector has zero length.
    """
    v = np.asarray(v, dtype=np.float64)
    norm = float(np.linalg.norm(v[:3]))
    if norm == 0.0:
        raise ValueError("Cannot normalize a zero-length vector")
    return np.array([v[0] / norm, v[1] / norm, v[2] / norm, 0.0], dtype=np.float64)


def cross(a: Vector4, b: Vector4) -> Vector4:
    """Cross product of the xyz parts; the result is a direction (w=0)."""
    c = np.cross(np.asarray(a, dtype=np.float64)[:3], np.asarray(b, dtype=np.float64)[:3])
    return np.array([c[0], c[1], c[2], 0.0], dtype=np.float64)


def apply_to_point(m: Matrix4, p: Vector4) -> Vector4:
    """Transform a homogeneous point; the result keeps w=1."""
    result = m @ np.asarray(p, dtype=np.float64)
    result[3] = 1.0
    return result


def apply_to_vector(m: Matrix4, d: Vector4) -> Vector4:
    """Transform a homogeneous direction; translation is ignored and w stays 0."""
    d = np.asarray(d, dtype=np.float64).copy()
    d[3] = 0.0
    result = m @ d
    result[3] = 0.0
    return result


def apply_to_normal(m_inv: Matrix4, n: Vector4) -> Vector4:
    """Map a normal with transpose(m_inv) and renormalize it."""
    return normalized(apply_to_vector(m_inv.T, n))


# =============================================================================
# Operation Matrices
# =============================================================================


def identity() -> Matrix4:
    """4x4 identity matrix."""
    return np.eye(4, dtype=np.float64)


def scale_matrix(sx: float, sy: float, sz: float) -> Matrix4:
    """Non-uniform scale about the origin."""
    return np.diag([sx, sy, sz, 1.0]).astype(np.float64)


def rotate_x_matrix(theta: float) -> Matrix4:
    """Rotation about the X axis by theta radians."""
    c, s = math.cos(theta), math.sin(theta)
    m = identity()
    m[1, 1], m[1, 2] = c, -s
    m[2, 1], m[2, 2] = s, c
    return m


def rotate_y_matrix(theta: float) -> Matrix4:
    """Rotation about the Y axis by theta radians."""
    c, s = math.cos(theta), math.sin(theta)
    m = identity()
    m[0, 0], m[0, 2] = c, s
    m[2, 0], m[2, 2] = -s, c
    return m


def rotate_z_matrix(theta: float) -> Matrix4:
    """Rotation about the Z axis by theta radians."""
    c, s = math.cos(theta), math.sin(theta)
    m = identity()
    m[0, 0], m[0, 1] = c, -s
    m[1, 0], m[1, 1] = s, c
    return m


def translate_matrix(tx: float, ty: float, tz: float) -> Matrix4:
    """Translation by (tx, ty, tz)."""
    m = identity()
    m[:3, 3] = (tx, ty, tz)
    return m


_OPERATIONS = {
    "scale": scale_matrix,
    "rotate_x": rotate_x_matrix,
    "rotate_y": rotate_y_matrix,
    "rotate_z": rotate_z_matrix,
    "translate": translate_matrix,
}


# =============================================================================
# Inversion
# =============================================================================


def invert3x3(m: npt.ArrayLike) -> npt.NDArray[np.float64]:
    """Invert a 3x3 matrix through its singular value decomposition.

    Args:
        m: The matrix to invert.

    Returns:
        The inverse matrix.

    Raises:
        ValueError: If m is not 3x3.
        numpy.linalg.LinAlgError: If any singular value is below
            SINGULAR_VALUE_EPSILON.
    """
    m = np.asarray(m, dtype=np.float64)
    if m.shape != (3, 3):
        raise ValueError(f"Expected a 3x3 matrix, got shape {m.shape}")

    u, s, vt = np.linalg.svd(m)
    if np.any(s < SINGULAR_VALUE_EPSILON):
        raise np.linalg.LinAlgError(f"Matrix is singular (singular values {s})")

    return vt.T @ np.diag(1.0 / s) @ u.T


def affine_inverse(m: Matrix4) -> Matrix4:
    """Invert an affine 4x4 matrix (linear block plus translation).

    Raises:
        numpy.linalg.LinAlgError: If the linear block is singular.
    """
    linear_inv = invert3x3(m[:3, :3])
    inv = identity()
    inv[:3, :3] = linear_inv
    inv[:3, 3] = -linear_inv @ m[:3, 3]
    return inv


def format_matrix(m: Matrix4) -> str:
    """Render a 4x4 matrix as aligned text rows for debug logging."""
    return "\n".join("  ".join(f"{value:9.4f}" for value in row) for row in np.asarray(m))


# =============================================================================
# Transform
# =============================================================================


@dataclass
class Transform:
    """Local-to-world transform of one object and its inverse.

    Attributes:
        matrix: The 4x4 local-to-world matrix T.
        inverse: The 4x4 world-to-local matrix Tinv, valid after invert().
        operations: The issued operations as (name, params) pairs, kept so
            the transform can be serialized and rebuilt.
    """

    matrix: Matrix4 = field(default_factory=identity)
    inverse: Matrix4 = field(default_factory=identity)
    operations: list[tuple[str, tuple[float, ...]]] = field(default_factory=list)
    _stale: bool = field(default=False, repr=False)

    def _apply(self, name: str, *params: float) -> Transform:
        op = _OPERATIONS[name](*params)
        self.matrix = op @ self.matrix
        self.operations.append((name, tuple(float(p) for p in params)))
        self._stale = True
        return self

    def scale(self, sx: float, sy: float, sz: float) -> Transform:
        """Scale the object along its current axes."""
        return self._apply("scale", sx, sy, sz)

    def rotate_x(self, theta: float) -> Transform:
        """Rotate about the world X axis by theta radians."""
        return self._apply("rotate_x", theta)

    def rotate_y(self, theta: float) -> Transform:
        """Rotate about the world Y axis by theta radians."""
        return self._apply("rotate_y", theta)

    def rotate_z(self, theta: float) -> Transform:
        """Rotate about the world Z axis by theta radians."""
        return self._apply("rotate_z", theta)

    def translate(self, tx: float, ty: float, tz: float) -> Transform:
        """Translate the object."""
        return self._apply("translate", tx, ty, tz)

    @property
    def is_stale(self) -> bool:
        """True when the matrix changed after the last invert()."""
        return self._stale

    def invert(self) -> Transform:
        """Recompute the inverse from the current matrix.

        A singular matrix cannot be inverted. In that case the object falls
        back to the identity transform (both T and Tinv) and a warning is
        logged, so rendering continues with the canonical primitive.

        Returns:
            This transform, for chaining.
        """
        try:
            self.inverse = affine_inverse(self.matrix)
        except np.linalg.LinAlgError as exc:
            logger.warning("Singular transform, falling back to identity: %s", exc)
            self.matrix = identity()
            self.inverse = identity()
        self._stale = False
        return self

    def copy(self) -> Transform:
        """Deep copy, used to derive child objects from a parent placement."""
        return Transform(
            matrix=self.matrix.copy(),
            inverse=self.inverse.copy(),
            operations=list(self.operations),
            _stale=self._stale,
        )

    def apply_to_point(self, p: Vector4) -> Vector4:
        """Transform a local point to world space."""
        return apply_to_point(self.matrix, p)

    def apply_to_vector(self, d: Vector4) -> Vector4:
        """Transform a local direction to world space."""
        return apply_to_vector(self.matrix, d)

    def apply_to_normal(self, n: Vector4) -> Vector4:
        """Transform a local normal to world space (transpose of the inverse)."""
        return apply_to_normal(self.inverse, n)

    def to_dict(self) -> list[dict[str, Any]]:
        """Serialize the operation sequence."""
        return [{"op": name, "params": list(params)} for name, params in self.operations]

    @classmethod
    def from_dict(cls, data: list[dict[str, Any]]) -> Transform:
        """Rebuild a transform from a serialized operation sequence and invert it.

        Raises:
            ValueError: If an operation name is unknown.
        """
        transform = cls()
        for entry in data:
            name = entry["op"]
            if name not in _OPERATIONS:
                raise ValueError(f"Unknown transform operation: {name!r}")
            transform._apply(name, *entry.get("params", []))
        return transform.invert()
