"""
Coordinate conversion helpers between voxel space and world space.

Convention:
- Voxel ("pixel") coordinates use axis order (x, y, z), voxel i spanning [i, i + 1]
- World coordinates come from the header: the sform affine when
  ``sform_code > 0``, otherwise a per-axis scale by ``pixdim[1:4]``
"""

from __future__ import annotations

from typing import Sequence, Tuple

import numpy as np

import config
from core.volume import NiftiHeader


def plane_axis(plane: str) -> int:
    """Index of the axis a plane slices through: yz -> 0, xz -> 1, xy -> 2."""
    try:
        return config.PLANES.index(plane)
    except ValueError:
        allowed = ", ".join(config.PLANES)
        raise ValueError(f"Unknown plane '{plane}'. Expected one of: {allowed}.") from None


def voxel_to_world_matrix(header: NiftiHeader) -> np.ndarray:
    """
    4x4 transform taking voxel coordinates to world coordinates.
    """
    if header.has_sform:
        return header.affine_matrix()
    sx, sy, sz = (float(v) for v in header.pixdim[1:4])
    return np.diag([sx, sy, sz, 1.0])


def world_to_voxel_points(points: Sequence[Sequence[float]], voxel_to_world: np.ndarray) -> np.ndarray:
    """
    Map world points (N, 3) into voxel coordinates through the inverse transform.
    """
    pts = np.asarray(points, dtype=np.float64)
    if pts.ndim != 2 or pts.shape[1] != 3:
        raise ValueError(f"Expected points of shape (N, 3), got {pts.shape}")
    inverse = np.linalg.inv(np.asarray(voxel_to_world, dtype=np.float64))
    homogeneous = np.hstack([pts, np.ones((pts.shape[0], 1))])
    return (homogeneous @ inverse.T)[:, :3]


def voxel_to_world_points(points: Sequence[Sequence[float]], voxel_to_world: np.ndarray) -> np.ndarray:
    """
    Map voxel points (N, 3) into world coordinates.
    """
    pts = np.asarray(points, dtype=np.float64)
    if pts.ndim != 2 or pts.shape[1] != 3:
        raise ValueError(f"Expected points of shape (N, 3), got {pts.shape}")
    homogeneous = np.hstack([pts, np.ones((pts.shape[0], 1))])
    return (homogeneous @ np.asarray(voxel_to_world, dtype=np.float64).T)[:, :3]


def axis_quad_vertices(plane: str, dims: Tuple[int, int, int], index: int) -> np.ndarray:
    """
    Corners (4, 3) of the display quad for an axis-aligned slice.

    The quad lies at ``index + 0.5`` along the sliced axis (voxel centre);
    corner order is (top-left, top-right, bottom-left, bottom-right) of
    the slice image.
    """
    axis = plane_axis(plane)
    nx, ny, nz = (float(v) for v in dims)
    if plane == "xy":
        quad = [(0, ny, 0), (nx, ny, 0), (0, 0, 0), (nx, 0, 0)]
    elif plane == "xz":
        quad = [(0, 0, nz), (nx, 0, nz), (0, 0, 0), (nx, 0, 0)]
    else:
        quad = [(0, 0, nz), (0, ny, nz), (0, 0, 0), (0, ny, 0)]
    vertices = np.asarray(quad, dtype=np.float64)
    vertices[:, axis] = float(index) + 0.5
    return vertices


__all__ = [
    "plane_axis",
    "voxel_to_world_matrix",
    "world_to_voxel_points",
    "voxel_to_world_points",
    "axis_quad_vertices",
]
