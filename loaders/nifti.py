"""
NIfTI decoding through nibabel.

The decoder turns a byte stream (optionally gzip-compressed) into the header
fields the viewer needs and the unscaled sample bytes, x fastest-varying.
"""

import gzip
import logging
import os
from typing import Callable, Optional, Tuple

import nibabel as nib
import numpy as np

from core.base import BaseLoader
from core.errors import DecodeError
from core.volume import DATATYPE_CODES, NiftiHeader, Volume, datatype_code_for

logger = logging.getLogger(__name__)

GZIP_MAGIC = b"\x1f\x8b"

# Single-file image classes tried in order
_IMAGE_CLASSES = (nib.Nifti1Image, nib.Nifti2Image)


def _parse_image(data: bytes):
    errors = []
    for image_class in _IMAGE_CLASSES:
        try:
            return image_class.from_bytes(data)
        except Exception as exc:
            errors.append(f"{image_class.__name__}: {exc}")
    raise DecodeError("Input is not a NIfTI volume (" + "; ".join(errors) + ")")


def decode_nifti(raw_bytes: bytes) -> Tuple[NiftiHeader, bytes]:
    """
    Decode a NIfTI-1 or NIfTI-2 byte stream.

    Returns:
        (header, sample_bytes): sample bytes are in the file datatype, native
        byte order, x fastest. They are empty for unsupported datatypes.

    Raises:
        DecodeError: If the bytes are not a NIfTI volume.
    """
    data = bytes(raw_bytes)
    if data[:2] == GZIP_MAGIC:
        try:
            data = gzip.decompress(data)
        except (OSError, EOFError) as exc:
            raise DecodeError(f"Corrupt gzip stream: {exc}") from exc

    image = _parse_image(data)
    hdr = image.header

    shape = tuple(int(v) for v in hdr.get_data_shape())
    if len(shape) == 0:
        raise DecodeError("NIfTI header declares no data dimensions")
    dims = (shape + (1, 1, 1))[:3]

    sform_code = int(hdr["sform_code"])
    affine = hdr.get_sform() if sform_code > 0 else hdr.get_best_affine()
    header = NiftiHeader(
        dims=dims,
        affine=tuple(tuple(float(v) for v in row) for row in affine),
        pixdim=tuple(float(v) for v in hdr["pixdim"]),
        sform_code=sform_code,
        datatype_code=int(hdr["datatype"]),
    )

    if header.datatype_code not in DATATYPE_CODES:
        logger.warning("NIfTI datatype code %d is not supported for display", header.datatype_code)
        return header, b""

    samples = np.asanyarray(image.dataobj.get_unscaled())
    if samples.ndim > 3:
        logger.info("Volume has shape %s; using the first 3D frame", samples.shape)
        samples = samples.reshape(samples.shape[:3] + (-1,))[..., 0]
    samples = samples.reshape(dims, order="F")
    samples = samples.astype(samples.dtype.newbyteorder("="), copy=False)
    return header, samples.tobytes(order="F")


def load_volume_bytes(raw_bytes: bytes) -> Volume:
    """Decode and normalize a NIfTI byte stream."""
    header, sample_bytes = decode_nifti(raw_bytes)
    return Volume.load(header, sample_bytes)


def encode_nifti(
    data: np.ndarray,
    affine: Optional[np.ndarray] = None,
    sform_code: int = 0,
    compress: bool = False,
) -> bytes:
    """
    Serialize an (nx, ny, nz) array as a single-file NIfTI-1 byte stream.
    """
    arr = np.asarray(data)
    datatype_code_for(arr.dtype)
    matrix = np.eye(4) if affine is None else np.asarray(affine, dtype=np.float64)
    image = nib.Nifti1Image(arr, matrix)
    image.set_qform(matrix, code=1)
    image.set_sform(matrix, code=int(sform_code))
    payload = image.to_bytes()
    return gzip.compress(payload) if compress else payload


class NiftiLoader(BaseLoader):
    """Loads ``.nii`` / ``.nii.gz`` files into a normalized Volume."""

    def load(self, source: str, callback: Optional[Callable[[int, str], None]] = None) -> Volume:
        """
        Args:
            source: Path to a NIfTI file.
            callback: Optional progress callback (percent, message).
        """
        print(f"[NiftiLoader] Reading: {source}")
        if callback: callback(0, "Reading file...")

        if not os.path.isfile(source):
            raise FileNotFoundError(f"Path does not exist: {source}")

        with open(source, "rb") as fh:
            raw_bytes = fh.read()

        if callback: callback(30, "Decoding NIfTI header...")
        header, sample_bytes = decode_nifti(raw_bytes)

        if callback: callback(60, "Normalizing samples...")
        volume = Volume.load(header, sample_bytes)

        if callback: callback(100, "Volume ready.")
        print(f"[NiftiLoader] Loaded dims={volume.dims} datatype={header.datatype_code}")
        return volume
