"""
Plane and box geometry for oriented slicing.

Planes are ``(a, b, c, d)`` with ``a*x + b*y + c*z + d = 0`` and a unit
normal ``(a, b, c)``. Boxes span ``[0, nx] x [0, ny] x [0, nz]`` in voxel
coordinates.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, Tuple

import numpy as np

import config
from core.errors import DegeneratePlaneError

Vector3 = Tuple[float, float, float]
Plane = Tuple[float, float, float, float]
Matrix3 = Tuple[Vector3, Vector3, Vector3]


@dataclass(frozen=True)
class BBox2D:
    """Axis-aligned 2D bounding box."""

    min: Tuple[float, float]
    max: Tuple[float, float]

    @property
    def width(self) -> float:
        return self.max[0] - self.min[0]

    @property
    def height(self) -> float:
        return self.max[1] - self.min[1]


def _unit(vec: np.ndarray, what: str) -> np.ndarray:
    norm = float(np.linalg.norm(vec))
    if norm < config.GEOMETRY_EPS:
        raise DegeneratePlaneError(f"Cannot define a plane: {what} has zero length")
    return vec / norm


def plane_from_points(A: Sequence[float], B: Sequence[float], C: Sequence[float]) -> Plane:
    """
    Plane through three points.

    The normal is the normalized cross product of the normalized edges AB
    and AC; ``d = -dot(A, n)``.

    Raises:
        DegeneratePlaneError: If the points are coincident or collinear.
    """
    a_pt = np.asarray(A, dtype=np.float64)
    ab = _unit(np.asarray(B, dtype=np.float64) - a_pt, "edge AB")
    ac = _unit(np.asarray(C, dtype=np.float64) - a_pt, "edge AC")
    normal = _unit(np.cross(ab, ac), "AB x AC (points are collinear)")
    d = -float(np.dot(a_pt, normal))
    return (float(normal[0]), float(normal[1]), float(normal[2]), d)


def frame_from_points(A: Sequence[float], B: Sequence[float], normal: Sequence[float]) -> Matrix3:
    """
    World-to-local rotation whose rows are the local X, Y and Z axes.

    X follows AB, Z is the plane normal, Y = Z x X.
    """
    x_axis = _unit(np.asarray(B, dtype=np.float64) - np.asarray(A, dtype=np.float64), "edge AB")
    z_axis = np.asarray(normal, dtype=np.float64)
    y_axis = np.cross(z_axis, x_axis)
    return (
        (float(x_axis[0]), float(x_axis[1]), float(x_axis[2])),
        (float(y_axis[0]), float(y_axis[1]), float(y_axis[2])),
        (float(z_axis[0]), float(z_axis[1]), float(z_axis[2])),
    )


def transpose(matrix: Matrix3) -> Matrix3:
    return tuple(zip(*matrix))  # type: ignore[return-value]


def rotate_vector(matrix: Matrix3, vector):
    """
    Dense 3x3 matrix-vector product written out term by term.

    The components of ``vector`` may be scalars or equally shaped numpy
    arrays, in which case every element is transformed at once.
    """
    m = matrix
    x, y, z = vector
    return (
        m[0][0] * x + m[0][1] * y + m[0][2] * z,
        m[1][0] * x + m[1][1] * y + m[1][2] * z,
        m[2][0] * x + m[2][1] * y + m[2][2] * z,
    )


def rotate_points(matrix: Matrix3, xs, ys, zs):
    """Rotate coordinate arrays elementwise; returns (xs, ys, zs)."""
    return rotate_vector(matrix, (np.asarray(xs), np.asarray(ys), np.asarray(zs)))


def _append_unique(points: List[Vector3], point: Vector3) -> None:
    eps = config.INTERSECTION_MERGE_EPS
    for p in points:
        if abs(p[0] - point[0]) <= eps and abs(p[1] - point[1]) <= eps and abs(p[2] - point[2]) <= eps:
            return
    points.append(point)


def box_plane_intersections(dims: Sequence[int], plane: Sequence[float]) -> List[Vector3]:
    """
    Intersection polygon vertices of a plane with the box ``[0, dims]``.

    Each family of axis-parallel edges is solved for its free coordinate,
    gated on that coordinate's own plane coefficient being non-zero.
    Corner hits shared by several edges are reported once.
    """
    nx, ny, nz = (float(v) for v in dims)
    a, b, c, d = (float(v) for v in plane)
    eps = config.GEOMETRY_EPS
    points: List[Vector3] = []

    # x-parallel edges
    if abs(a) > eps:
        for y in (0.0, ny):
            for z in (0.0, nz):
                x = -(b * y + c * z + d) / a
                if 0.0 <= x <= nx:
                    _append_unique(points, (x, y, z))

    # y-parallel edges
    if abs(b) > eps:
        for x in (0.0, nx):
            for z in (0.0, nz):
                y = -(a * x + c * z + d) / b
                if 0.0 <= y <= ny:
                    _append_unique(points, (x, y, z))

    # z-parallel edges
    if abs(c) > eps:
        for x in (0.0, nx):
            for y in (0.0, ny):
                z = -(a * x + b * y + d) / c
                if 0.0 <= z <= nz:
                    _append_unique(points, (x, y, z))

    return points


def bbox_2d(points: Sequence[Sequence[float]]) -> BBox2D:
    """Bounding box of a non-empty set of 2D points."""
    if len(points) == 0:
        raise ValueError("Cannot compute the bounding box of an empty point set.")
    xs = [float(p[0]) for p in points]
    ys = [float(p[1]) for p in points]
    return BBox2D(min=(min(xs), min(ys)), max=(max(xs), max(ys)))


__all__ = [
    "BBox2D",
    "plane_from_points",
    "frame_from_points",
    "transpose",
    "rotate_vector",
    "rotate_points",
    "box_plane_intersections",
    "bbox_2d",
]
