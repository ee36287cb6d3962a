"""
Core module containing the volume store, geometry and the slicing protocol.
"""

from core.errors import (
    SlicerError,
    DecodeError,
    UnsupportedDatatypeError,
    DegenerateVolumeError,
    DegeneratePlaneError,
)
from core.volume import DATATYPE_CODES, NiftiHeader, Volume, normalize_samples
from core.base import BaseLoader
from core.dto import OrientedPlaneDTO, SliceExportDTO
from core.geometry import (
    BBox2D,
    plane_from_points,
    frame_from_points,
    rotate_vector,
    rotate_points,
    box_plane_intersections,
    bbox_2d,
)
from core.coordinates import (
    plane_axis,
    voxel_to_world_matrix,
    world_to_voxel_points,
    voxel_to_world_points,
    axis_quad_vertices,
)
from core.protocol import (
    RequestKind,
    ResponseKind,
    Request,
    Response,
    init_request,
    slice_request,
    slice_plane_request,
)
from core.compute_unit import SliceComputeUnit

__all__ = [
    'SlicerError', 'DecodeError', 'UnsupportedDatatypeError',
    'DegenerateVolumeError', 'DegeneratePlaneError',
    'DATATYPE_CODES', 'NiftiHeader', 'Volume', 'normalize_samples',
    'BaseLoader',
    'OrientedPlaneDTO', 'SliceExportDTO',
    'BBox2D', 'plane_from_points', 'frame_from_points', 'rotate_vector', 'rotate_points',
    'box_plane_intersections', 'bbox_2d',
    'plane_axis', 'voxel_to_world_matrix', 'world_to_voxel_points',
    'voxel_to_world_points', 'axis_quad_vertices',
    'RequestKind', 'ResponseKind', 'Request', 'Response',
    'init_request', 'slice_request', 'slice_plane_request',
    'SliceComputeUnit',
]
