"""
Slicing engine: axis-aligned and oriented-plane extraction from a Volume.

Both paths read the normalized uint8 buffer and return freshly allocated
arrays that the caller owns.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Sequence

import numpy as np

from core.coordinates import plane_axis
from core.geometry import (
    bbox_2d,
    box_plane_intersections,
    frame_from_points,
    plane_from_points,
    rotate_points,
    rotate_vector,
    transpose,
)
from core.volume import Volume

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class OrientedSlice:
    """
    Result of an oriented-plane slice.

    Attributes:
        texture: Flat uint8 samples, ``width * width``, row-major.
        alpha: Flat uint8 visibility (255 inside the volume, 0 outside).
        vertices: (4, 3) corners of the sampled rectangle in voxel space,
            ordered (min x, max y), (max x, max y), (min x, min y), (max x, min y)
            in the plane's local frame.
        width: Side of the square raster.
    """

    texture: np.ndarray
    alpha: np.ndarray
    vertices: np.ndarray
    width: int

    @property
    def is_empty(self) -> bool:
        return not self.alpha.any()

    def image(self) -> np.ndarray:
        return self.texture.reshape(self.width, self.width)

    def alpha_image(self) -> np.ndarray:
        return self.alpha.reshape(self.width, self.width)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "vertices": self.vertices.ravel().tolist(),
            "alpha": self.alpha,
            "texture": self.texture,
            "width": self.width,
        }

    @staticmethod
    def transparent(width: int) -> "OrientedSlice":
        size = int(width) * int(width)
        return OrientedSlice(
            texture=np.zeros(size, dtype=np.uint8),
            alpha=np.zeros(size, dtype=np.uint8),
            vertices=np.zeros((4, 3), dtype=np.float64),
            width=int(width),
        )


def slice_axis(volume: Volume, plane: str, index: int) -> np.ndarray:
    """
    Extract the axis-aligned slice ``plane`` at ``index``.

    Returns a (rows, cols) uint8 array: yz -> (nz, ny), xz -> (nz, nx),
    xy -> (ny, nx). ``index`` is not range-checked.
    """
    axis = plane_axis(plane)
    grid = volume.normalized_grid  # (z, y, x)
    index = int(index)
    if axis == 0:
        image = grid[:, :, index]
    elif axis == 1:
        image = grid[:, index, :]
    else:
        image = grid[index, :, :]
    return image.copy()


def _nearest_index(coords: np.ndarray, size: int) -> np.ndarray:
    """Round half up to the nearest voxel, clamped to the last voxel."""
    idx = np.floor(coords + 0.5).astype(np.intp)
    return np.minimum(idx, size - 1)


def slice_oriented(volume: Volume, points: Sequence[Sequence[float]], distance: float = 0.0) -> OrientedSlice:
    """
    Resample the volume on the plane through three voxel-space points.

    The plane is shifted by ``distance`` along its normal. The output is a
    square raster of side ``max(dims)`` covering the bounding rectangle of
    the plane clipped to the volume, sampled by nearest voxel.

    Raises:
        DegeneratePlaneError: If the points are collinear.
        UnsupportedDatatypeError: If the volume has no samples.
    """
    volume.require_samples()
    pts = np.asarray(points, dtype=np.float64)
    if pts.shape != (3, 3):
        raise ValueError(f"Expected three 3D points, got shape={pts.shape}")
    A, B, C = pts

    a, b, c, d = plane_from_points(A, B, C)
    d += float(distance)
    plane = (a, b, c, d)

    rotation = frame_from_points(A, B, (a, b, c))
    depth = -d  # local Z of every point on the plane

    nx, ny, nz = volume.dims
    width = max(nx, ny, nz)

    inter_points = box_plane_intersections(volume.dims, plane)
    if not inter_points:
        logger.warning("Plane %s misses the volume %s; returning a transparent slice", plane, volume.dims)
        return OrientedSlice.transparent(width)

    bbox = bbox_2d([rotate_vector(rotation, p)[:2] for p in inter_points])
    inverse = transpose(rotation)

    corners = (
        (bbox.min[0], bbox.max[1]),
        (bbox.max[0], bbox.max[1]),
        (bbox.min[0], bbox.min[1]),
        (bbox.max[0], bbox.min[1]),
    )
    vertices = np.array([rotate_vector(inverse, (u, v, depth)) for u, v in corners], dtype=np.float64)

    # Pixel centres in the local frame; rows follow local Y, columns local X
    steps = (np.arange(width, dtype=np.float64) + 0.5) / width
    us = steps * bbox.width + bbox.min[0]
    vs = steps * bbox.height + bbox.min[1]
    uu, vv = np.meshgrid(us, vs)
    px, py, pz = rotate_points(inverse, uu, vv, np.full_like(uu, depth))

    inside = (
        (px >= 0) & (px < nx)
        & (py >= 0) & (py < ny)
        & (pz >= 0) & (pz < nz)
    )

    texture = np.zeros((width, width), dtype=np.uint8)
    alpha = np.zeros((width, width), dtype=np.uint8)
    alpha[inside] = 255

    offsets = volume.linear_index(
        _nearest_index(px[inside], nx),
        _nearest_index(py[inside], ny),
        _nearest_index(pz[inside], nz),
    )
    texture[inside] = volume.normalized_samples[offsets]

    return OrientedSlice(texture=texture.ravel(), alpha=alpha.ravel(), vertices=vertices, width=width)


class VolumeSlicer:
    """Slicing engine bound to one volume."""

    def __init__(self, volume: Volume):
        volume.require_samples()
        self.volume = volume

    @property
    def dims(self):
        return self.volume.dims

    def slice(self, plane: str, index: int) -> np.ndarray:
        return slice_axis(self.volume, plane, index)

    def slice_oriented(self, points: Sequence[Sequence[float]], distance: float = 0.0) -> OrientedSlice:
        return slice_oriented(self.volume, points, distance)


__all__ = ["OrientedSlice", "slice_axis", "slice_oriented", "VolumeSlicer"]
