import dataclasses
import unittest

import numpy as np
import pytest

from core import (
    DecodeError,
    DegenerateVolumeError,
    NiftiHeader,
    UnsupportedDatatypeError,
    Volume,
    normalize_samples,
)
from loaders import make_index_volume


class TestVolumeIndexing(unittest.TestCase):
    def setUp(self):
        self.data = make_index_volume((3, 4, 5))
        self.volume = Volume.from_array(self.data)

    def test_dims_and_datatype(self):
        self.assertEqual(self.volume.dims, (3, 4, 5))
        self.assertEqual(self.volume.header.datatype_code, 8)
        self.assertEqual(self.volume.n_voxels, 60)

    def test_linear_index_matches_layout(self):
        raw = self.volume.raw_samples
        seen = set()
        for z in range(5):
            for y in range(4):
                for x in range(3):
                    offset = self.volume.linear_index(x, y, z)
                    self.assertEqual(raw[offset], self.data[x, y, z])
                    seen.add(offset)
        self.assertEqual(seen, set(range(60)))

    def test_normalized_grid_is_zyx(self):
        grid = self.volume.normalized_grid
        self.assertEqual(grid.shape, (5, 4, 3))
        self.assertEqual(grid[2, 1, 0], self.volume.normalized_samples[self.volume.linear_index(0, 1, 2)])

    def test_normalized_extremes(self):
        norm = self.volume.normalized_samples
        self.assertEqual(norm.dtype, np.uint8)
        self.assertEqual(norm[0], 0)
        self.assertEqual(norm[59], 255)
        self.assertEqual(self.volume.value_range(), (0.0, 59.0))

    def test_buffers_are_read_only(self):
        with self.assertRaises(ValueError):
            self.volume.raw_samples[0] = 1
        with self.assertRaises(ValueError):
            self.volume.normalized_samples[0] = 1
        with self.assertRaises(dataclasses.FrozenInstanceError):
            self.volume.header = NiftiHeader(dims=(1, 1, 1))


def test_normalize_rounds_half_up():
    out = normalize_samples(np.array([0, 1, 2], dtype=np.int16))
    assert out.tolist() == [0, 128, 255]


def test_normalize_negative_range():
    out = normalize_samples(np.array([-100.0, 0.0, 100.0], dtype=np.float32))
    assert out.tolist() == [0, 128, 255]


def test_normalize_ignores_non_finite():
    out = normalize_samples(np.array([0.0, np.nan, 10.0, np.inf]))
    assert out.tolist() == [0, 0, 255, 0]


def test_constant_volume_fills_and_strict_range_raises():
    volume = Volume.from_array(np.full((2, 2, 2), 7, dtype=np.int16))
    assert not volume.normalized_samples.any()
    assert volume.value_range() == (7.0, 7.0)
    with pytest.raises(DegenerateVolumeError):
        volume.value_range(strict=True)


def test_unsupported_datatype_volume_has_no_samples():
    header = NiftiHeader(dims=(2, 2, 2), datatype_code=32)
    volume = Volume.load(header, b"\x00" * 64)
    assert not header.is_supported
    assert not volume.is_sliceable
    with pytest.raises(UnsupportedDatatypeError) as excinfo:
        volume.require_samples()
    assert excinfo.value.datatype_code == 32


def test_short_buffer_rejected():
    header = NiftiHeader(dims=(2, 2, 2), datatype_code=4)
    with pytest.raises(DecodeError):
        Volume.load(header, b"\x00" * 15)


def test_non_positive_dims_rejected():
    with pytest.raises(DecodeError):
        Volume.load(NiftiHeader(dims=(2, 0, 2)), b"")


def test_header_dict_round_trip():
    header = NiftiHeader(
        dims=(3, 4, 5),
        affine=((2.0, 0.0, 0.0, 1.0), (0.0, 3.0, 0.0, 2.0), (0.0, 0.0, 4.0, 3.0), (0.0, 0.0, 0.0, 1.0)),
        pixdim=(1.0, 2.0, 3.0, 4.0, 1.0, 1.0, 1.0, 1.0),
        sform_code=2,
        datatype_code=16,
    )
    assert NiftiHeader.from_dict(header.to_dict()) == header
    assert header.has_sform
    assert header.dtype == np.dtype(np.float32)
