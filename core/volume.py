"""
Volume store: decoded NIfTI header, raw samples and the normalized display buffer.

Layout convention:
- Samples are stored flat with x fastest-varying, then y, then z
- ``linear_index(col, row, slice) = nx * ny * slice + nx * row + col``
- ``normalized_grid`` exposes the same buffer as a (z, y, x) array
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence, Tuple

import numpy as np

import config
from core.errors import DecodeError, DegenerateVolumeError, UnsupportedDatatypeError

logger = logging.getLogger(__name__)


# NIfTI-1 datatype codes of the numeric kinds the viewer can display
DATATYPE_CODES: Dict[int, np.dtype] = {
    2: np.dtype(np.uint8),
    4: np.dtype(np.int16),
    8: np.dtype(np.int32),
    16: np.dtype(np.float32),
    64: np.dtype(np.float64),
    256: np.dtype(np.int8),
    512: np.dtype(np.uint16),
    768: np.dtype(np.uint32),
}


def datatype_code_for(dtype) -> int:
    """Reverse lookup of ``DATATYPE_CODES``."""
    dt = np.dtype(dtype).newbyteorder("=")
    for code, known in DATATYPE_CODES.items():
        if known == dt:
            return code
    raise ValueError(f"No supported NIfTI datatype code for dtype {dt}")


def _identity_affine() -> Tuple[Tuple[float, ...], ...]:
    return tuple(tuple(float(v) for v in row) for row in np.eye(4))


@dataclass(frozen=True)
class NiftiHeader:
    """
    Header fields consumed by the viewer.

    Attributes:
        dims: Voxel counts (nx, ny, nz).
        affine: Row-major 4x4 voxel-to-world transform.
        pixdim: The 8 ``pixdim`` entries; [1:4] are the voxel sizes.
        sform_code: ``affine`` is authoritative when > 0.
        datatype_code: NIfTI datatype code of the stored samples.
    """

    dims: Tuple[int, int, int]
    affine: Tuple[Tuple[float, ...], ...] = field(default_factory=_identity_affine)
    pixdim: Tuple[float, ...] = (1.0, 1.0, 1.0, 1.0, 1.0, 1.0, 1.0, 1.0)
    sform_code: int = 0
    datatype_code: int = 2

    @property
    def has_sform(self) -> bool:
        return self.sform_code > 0

    @property
    def is_supported(self) -> bool:
        return self.datatype_code in DATATYPE_CODES

    @property
    def dtype(self) -> Optional[np.dtype]:
        return DATATYPE_CODES.get(self.datatype_code)

    def affine_matrix(self) -> np.ndarray:
        return np.asarray(self.affine, dtype=np.float64).reshape(4, 4)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dims": list(self.dims),
            "affine": [list(row) for row in self.affine],
            "pixdim": list(self.pixdim),
            "sform_code": self.sform_code,
            "datatype_code": self.datatype_code,
        }

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "NiftiHeader":
        affine = d.get("affine")
        return NiftiHeader(
            dims=tuple(int(v) for v in d["dims"]),
            affine=tuple(tuple(float(v) for v in row) for row in affine) if affine else _identity_affine(),
            pixdim=tuple(float(v) for v in d.get("pixdim", (1.0,) * 8)),
            sform_code=int(d.get("sform_code", 0)),
            datatype_code=int(d.get("datatype_code", 2)),
        )


def normalize_samples(samples: np.ndarray, fill_value: int = config.DEGENERATE_FILL_VALUE) -> np.ndarray:
    """
    Stretch samples linearly onto [0, 255] using the global extrema.

    ``out = round((s - min) * 255 / (max - min))``. A constant volume has no
    defined stretch; every sample maps to ``fill_value`` instead. Non-finite
    float samples are ignored for the extrema and map to 0.
    """
    flat = np.asarray(samples).ravel()
    if flat.size == 0:
        return np.empty(0, dtype=np.uint8)

    values = flat.astype(np.float64)
    finite = np.isfinite(values)
    if not finite.all():
        logger.warning("Volume holds %d non-finite samples; they display as 0", int((~finite).sum()))
        values = np.where(finite, values, np.nan)
        if not finite.any():
            return np.full(flat.size, fill_value, dtype=np.uint8)
        lo, hi = float(np.nanmin(values)), float(np.nanmax(values))
    else:
        lo, hi = float(values.min()), float(values.max())

    if hi == lo:
        logger.warning("Constant volume (min == max == %g); normalized samples set to %d", lo, fill_value)
        return np.full(flat.size, fill_value, dtype=np.uint8)

    scaled = (values - lo) * config.NORMALIZED_MAX / (hi - lo)
    scaled = np.floor(scaled + 0.5)
    scaled = np.nan_to_num(scaled, nan=0.0)
    np.clip(scaled, 0, config.NORMALIZED_MAX, out=scaled)
    return scaled.astype(np.uint8)


def _read_only(arr: np.ndarray) -> np.ndarray:
    view = arr.view()
    view.flags.writeable = False
    return view


@dataclass(frozen=True, eq=False)
class Volume:
    """
    Immutable volumetric image ready for slicing.

    Attributes:
        header: Decoded header fields.
        raw_samples: Flat samples in the file datatype (empty when the
            datatype is unsupported).
        normalized_samples: Flat uint8 display values, same length.
    """

    header: NiftiHeader
    raw_samples: np.ndarray
    normalized_samples: np.ndarray

    @property
    def dims(self) -> Tuple[int, int, int]:
        return self.header.dims

    @property
    def n_voxels(self) -> int:
        nx, ny, nz = self.dims
        return nx * ny * nz

    @property
    def is_sliceable(self) -> bool:
        return self.n_voxels > 0 and self.normalized_samples.size == self.n_voxels

    @property
    def normalized_grid(self) -> np.ndarray:
        """Read-only (z, y, x) view of the normalized samples."""
        self.require_samples()
        nx, ny, nz = self.dims
        return self.normalized_samples.reshape(nz, ny, nx)

    def linear_index(self, col, row, slice):
        """Offset of voxel (col, row, slice); works on scalars and arrays."""
        nx, ny, _ = self.dims
        return nx * ny * slice + nx * row + col

    def require_samples(self) -> None:
        if not self.is_sliceable:
            raise UnsupportedDatatypeError(self.header.datatype_code)

    def value_range(self, strict: bool = False) -> Tuple[float, float]:
        """Global (min, max) of the raw samples."""
        self.require_samples()
        lo, hi = float(self.raw_samples.min()), float(self.raw_samples.max())
        if strict and lo == hi:
            raise DegenerateVolumeError(f"Constant volume: every sample equals {lo:g}")
        return lo, hi

    # ------------------------------------------------------------------
    # Factories
    # ------------------------------------------------------------------

    @classmethod
    def load(cls, header: NiftiHeader, raw_bytes: bytes) -> "Volume":
        """
        Build a volume from a decoded header and its raw sample bytes.

        An unsupported datatype code leaves the sample buffers empty; the
        volume can then be inspected but not sliced.
        """
        nx, ny, nz = header.dims
        if min(nx, ny, nz) <= 0:
            raise DecodeError(f"Invalid volume dimensions: {header.dims}")

        dtype = header.dtype
        if dtype is None:
            logger.warning("Unsupported datatype code %d; volume has no samples", header.datatype_code)
            empty = np.empty(0, dtype=np.uint8)
            return cls(header=header, raw_samples=_read_only(empty), normalized_samples=_read_only(empty))

        count = nx * ny * nz
        if len(raw_bytes) < count * dtype.itemsize:
            raise DecodeError(
                f"Sample buffer too short: {len(raw_bytes)} bytes for {count} voxels of {dtype.name}"
            )

        raw = np.frombuffer(raw_bytes, dtype=dtype, count=count)
        normalized = normalize_samples(raw)
        logger.info(
            "Loaded volume dims=%s dtype=%s range=[%g, %g]",
            header.dims, dtype.name, float(raw.min()), float(raw.max()),
        )
        return cls(header=header, raw_samples=_read_only(raw), normalized_samples=_read_only(normalized))

    @classmethod
    def from_array(
        cls,
        data: np.ndarray,
        affine: Optional[Sequence[Sequence[float]]] = None,
        pixdim: Optional[Sequence[float]] = None,
        sform_code: int = 0,
    ) -> "Volume":
        """Build a volume from an (nx, ny, nz) array indexed [x, y, z]."""
        arr = np.asarray(data)
        if arr.ndim != 3:
            raise ValueError(f"Expected 3D volume, got shape={arr.shape}")
        arr = arr.astype(arr.dtype.newbyteorder("="), copy=False)
        header = NiftiHeader(
            dims=tuple(int(v) for v in arr.shape),
            affine=tuple(tuple(float(v) for v in row) for row in (affine if affine is not None else np.eye(4))),
            pixdim=tuple(float(v) for v in pixdim) if pixdim is not None else (1.0,) * 8,
            sform_code=int(sform_code),
            datatype_code=datatype_code_for(arr.dtype),
        )
        return cls.load(header, arr.tobytes(order="F"))


__all__ = [
    "DATATYPE_CODES",
    "datatype_code_for",
    "NiftiHeader",
    "Volume",
    "normalize_samples",
]
