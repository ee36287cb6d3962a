"""
Synthetic volume generators for testing and demos.
"""

import numpy as np
from typing import Optional, Callable, Tuple

import config
from core import BaseLoader, Volume


def make_index_volume(shape: Tuple[int, int, int], dtype=np.int32) -> np.ndarray:
    """
    (nx, ny, nz) array whose value at [x, y, z] is its linear voxel offset.
    """
    nx, ny, nz = shape
    return np.arange(nx * ny * nz, dtype=dtype).reshape((nx, ny, nz), order="F")


class DummyLoader(BaseLoader):
    """Synthetic phantom generator: intensity ramp with a bright sphere"""

    def generate(self, shape: Tuple[int, int, int] = config.DUMMY_SHAPE,
                 callback: Optional[Callable[[int, str], None]] = None) -> np.ndarray:
        """Return the phantom as an int16 (nx, ny, nz) array."""
        nx, ny, nz = (int(v) for v in shape)
        if min(nx, ny, nz) <= 0:
            raise ValueError(f"Phantom shape must be positive, got {shape}")
        if callback:
            callback(0, "Building intensity ramp...")

        xx, yy, zz = np.meshgrid(
            np.arange(nx, dtype=np.float32),
            np.arange(ny, dtype=np.float32),
            np.arange(nz, dtype=np.float32),
            indexing="ij",
        )

        # 1) Background ramp along z, so every axial slice differs.
        volume = (zz / max(nz - 1, 1)) * 400.0 - 200.0

        if callback:
            callback(40, "Inserting sphere...")

        # 2) Bright sphere at the centre.
        cx, cy, cz = (nx - 1) / 2.0, (ny - 1) / 2.0, (nz - 1) / 2.0
        radius = max(1.0, min(nx, ny, nz) / 4.0)
        sphere_mask = (xx - cx) ** 2 + (yy - cy) ** 2 + (zz - cz) ** 2 <= radius ** 2
        volume[sphere_mask] = 1000.0

        # 3) Dark marker in the (0, 0, 0) corner to make orientation visible.
        mx, my, mz = max(1, nx // 8), max(1, ny // 8), max(1, nz // 8)
        volume[:mx, :my, :mz] = -1000.0

        if callback:
            callback(100, "Generation complete.")
        return volume.astype(np.int16)

    def load(self, shape: Tuple[int, int, int] = config.DUMMY_SHAPE,
             callback: Optional[Callable[[int, str], None]] = None) -> Volume:
        print(f"[Loader] Generating synthetic phantom (shape={tuple(shape)})...")
        return Volume.from_array(self.generate(shape, callback=callback))

    def to_nifti_bytes(self, shape: Tuple[int, int, int] = config.DUMMY_SHAPE) -> bytes:
        """Phantom serialized as NIfTI-1, ready for an ``init`` request."""
        from loaders.nifti import encode_nifti

        return encode_nifti(self.generate(shape))
