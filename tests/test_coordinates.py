import unittest

import numpy as np

from core import NiftiHeader
from core.coordinates import (
    axis_quad_vertices,
    plane_axis,
    voxel_to_world_matrix,
    voxel_to_world_points,
    world_to_voxel_points,
)


class TestCoordinateConversions(unittest.TestCase):
    def test_plane_axis(self):
        self.assertEqual([plane_axis(p) for p in ("yz", "xz", "xy")], [0, 1, 2])
        with self.assertRaises(ValueError):
            plane_axis("zx")

    def test_sform_used_when_present(self):
        affine = ((0.0, -1.5, 0.0, 10.0), (2.0, 0.0, 0.0, -4.0), (0.0, 0.0, 3.0, 1.0), (0.0, 0.0, 0.0, 1.0))
        header = NiftiHeader(dims=(4, 4, 4), affine=affine, sform_code=1)
        np.testing.assert_allclose(voxel_to_world_matrix(header), np.asarray(affine))

    def test_pixdim_scaling_without_sform(self):
        affine = ((9.0, 0.0, 0.0, 9.0), (0.0, 9.0, 0.0, 9.0), (0.0, 0.0, 9.0, 9.0), (0.0, 0.0, 0.0, 1.0))
        header = NiftiHeader(dims=(4, 4, 4), affine=affine, pixdim=(1.0, 0.5, 2.0, 3.0, 1.0, 1.0, 1.0, 1.0))
        np.testing.assert_allclose(voxel_to_world_matrix(header), np.diag([0.5, 2.0, 3.0, 1.0]))

    def test_world_voxel_round_trip(self):
        affine = ((0.0, -1.5, 0.0, 10.0), (2.0, 0.0, 0.0, -4.0), (0.0, 0.0, 3.0, 1.0), (0.0, 0.0, 0.0, 1.0))
        matrix = voxel_to_world_matrix(NiftiHeader(dims=(4, 4, 4), affine=affine, sform_code=2))
        voxels = np.array([[0.0, 0.0, 0.0], [1.0, 2.0, 3.0], [3.5, 0.25, 1.0]])

        world = voxel_to_world_points(voxels, matrix)
        np.testing.assert_allclose(world[1], (-3.0 + 10.0, 2.0 - 4.0, 9.0 + 1.0))
        np.testing.assert_allclose(world_to_voxel_points(world, matrix), voxels, atol=1e-12)

    def test_points_must_be_n_by_3(self):
        with self.assertRaises(ValueError):
            world_to_voxel_points([1.0, 2.0, 3.0], np.eye(4))
        with self.assertRaises(ValueError):
            voxel_to_world_points([[1.0, 2.0]], np.eye(4))


class TestAxisQuads(unittest.TestCase):
    def test_quad_sits_at_voxel_centre(self):
        dims = (3, 4, 5)
        for plane, axis in (("yz", 0), ("xz", 1), ("xy", 2)):
            quad = axis_quad_vertices(plane, dims, 1)
            self.assertEqual(quad.shape, (4, 3))
            np.testing.assert_allclose(quad[:, axis], [1.5] * 4)

    def test_xy_quad_corners(self):
        quad = axis_quad_vertices("xy", (3, 4, 5), 0)
        np.testing.assert_allclose(quad, [(0, 4, 0.5), (3, 4, 0.5), (0, 0, 0.5), (3, 0, 0.5)])

    def test_yz_quad_spans_y_and_z(self):
        quad = axis_quad_vertices("yz", (3, 4, 5), 2)
        np.testing.assert_allclose(quad, [(2.5, 0, 5), (2.5, 4, 5), (2.5, 0, 0), (2.5, 4, 0)])
