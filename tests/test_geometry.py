import unittest

import numpy as np
import pytest

from core.errors import DegeneratePlaneError
from core.geometry import (
    bbox_2d,
    box_plane_intersections,
    frame_from_points,
    plane_from_points,
    rotate_points,
    rotate_vector,
    transpose,
)


class TestPlaneFromPoints(unittest.TestCase):
    def test_axial_plane_through_origin(self):
        a, b, c, d = plane_from_points((0, 0, 0), (1, 0, 0), (0, 1, 0))
        self.assertEqual((a, b, c), (0.0, 0.0, 1.0))
        self.assertEqual(d, 0.0)

    def test_offset_plane_has_unit_normal(self):
        a, b, c, d = plane_from_points((0, 0, 3), (5, 0, 3), (0, 2, 3))
        self.assertAlmostEqual(float(np.linalg.norm((a, b, c))), 1.0)
        self.assertAlmostEqual(d, -3.0)

    def test_points_satisfy_plane_equation(self):
        pts = [(1.0, 2.0, 0.5), (4.0, -1.0, 2.0), (0.0, 3.0, 7.0)]
        a, b, c, d = plane_from_points(*pts)
        for x, y, z in pts:
            self.assertAlmostEqual(a * x + b * y + c * z + d, 0.0)

    def test_collinear_points_rejected(self):
        with self.assertRaises(DegeneratePlaneError):
            plane_from_points((0, 0, 0), (1, 1, 1), (2, 2, 2))

    def test_coincident_points_rejected(self):
        with self.assertRaises(DegeneratePlaneError):
            plane_from_points((1, 1, 1), (1, 1, 1), (0, 1, 0))


class TestFrame(unittest.TestCase):
    def test_frame_rows_follow_edge_and_normal(self):
        x_axis, y_axis, z_axis = frame_from_points((0, 0, 0), (2, 0, 0), (0, 0, 1))
        np.testing.assert_allclose(x_axis, (1, 0, 0))
        np.testing.assert_allclose(y_axis, (0, 1, 0))
        np.testing.assert_allclose(z_axis, (0, 0, 1))

    def test_transpose_inverts_rotation(self):
        A, B, C = (1.0, 0.0, 2.0), (3.0, 1.0, 0.0), (0.0, 4.0, 1.0)
        a, b, c, _ = plane_from_points(A, B, C)
        rotation = frame_from_points(A, B, (a, b, c))
        v = (0.3, -1.7, 2.2)
        back = rotate_vector(transpose(rotation), rotate_vector(rotation, v))
        np.testing.assert_allclose(back, v, atol=1e-12)


def test_rotate_points_elementwise():
    matrix = ((0, -1, 0), (1, 0, 0), (0, 0, 1))
    xs = np.array([1.0, 2.0])
    ys = np.array([0.0, 1.0])
    zs = np.array([5.0, 6.0])
    x, y, z = rotate_points(matrix, xs, ys, zs)
    np.testing.assert_allclose(x, [0.0, -1.0])
    np.testing.assert_allclose(y, [1.0, 2.0])
    np.testing.assert_allclose(z, [5.0, 6.0])


def test_intersections_of_axial_plane():
    points = box_plane_intersections((4, 4, 4), (0.0, 0.0, 1.0, -2.0))
    assert sorted(points) == [(0.0, 0.0, 2.0), (0.0, 4.0, 2.0), (4.0, 0.0, 2.0), (4.0, 4.0, 2.0)]


def test_intersections_skip_edges_parallel_to_plane():
    # a == 0: x-parallel edges never cross the plane y + z = 4
    points = box_plane_intersections((4, 4, 4), (0.0, 1.0, 1.0, -4.0))
    assert sorted(points) == [(0.0, 0.0, 4.0), (0.0, 4.0, 0.0), (4.0, 0.0, 4.0), (4.0, 4.0, 0.0)]
    for x, y, z in points:
        assert y + z == pytest.approx(4.0)


def test_intersections_of_corner_cut():
    points = box_plane_intersections((4, 4, 4), (1.0, 1.0, 1.0, -2.0))
    assert sorted(points) == [(0.0, 0.0, 2.0), (0.0, 2.0, 0.0), (2.0, 0.0, 0.0)]


def test_plane_outside_box_has_no_intersections():
    assert box_plane_intersections((4, 4, 4), (0.0, 0.0, 1.0, -10.0)) == []


def test_bbox_2d():
    box = bbox_2d([(1, 2), (3, -1), (0, 5)])
    assert box.min == (0.0, -1.0)
    assert box.max == (3.0, 5.0)
    assert box.width == 3.0
    assert box.height == 6.0


def test_bbox_2d_rejects_empty():
    with pytest.raises(ValueError):
        bbox_2d([])
