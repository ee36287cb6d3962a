"""
Slice exporters: VTK, TIFF and NumPy outputs for axis and oriented slices.
"""

from pathlib import Path
from typing import Tuple

import numpy as np
import pyvista as pv
import tifffile

from core.coordinates import plane_axis
from processors.slicer import OrientedSlice

# Texture coordinates matching OrientedSlice.vertices order
_QUAD_TCOORDS = np.array([[0.0, 1.0], [1.0, 1.0], [0.0, 0.0], [1.0, 0.0]], dtype=np.float32)
# Quad outline through the vertices in winding order
_QUAD_FACES = np.array([4, 0, 1, 3, 2])


class SliceExporter:
    """
    Writes slice results to disk; the format follows the file suffix:
    .vti/.vtp (VTK), .tif/.tiff (TIFF), .npy (NumPy).
    """

    @staticmethod
    def export_axis(image: np.ndarray, filepath: str, plane: str = "xy", index: int = 0,
                    spacing: Tuple[float, float] = (1.0, 1.0)) -> str:
        """
        Export an axis-aligned (rows, cols) slice.

        Returns:
            str: The written path.
        """
        if image is None or image.ndim != 2:
            raise ValueError("Axis slice export expects a 2D image.")

        path = Path(filepath)
        suffix = path.suffix.lower()
        if suffix in (".vti", ".vtk"):
            rows, cols = image.shape
            grid = pv.ImageData(dimensions=(cols, rows, 1), spacing=(spacing[0], spacing[1], 1.0))
            grid.point_data["values"] = np.ascontiguousarray(image).ravel()
            grid.field_data["slice_index"] = np.array([int(index)])
            grid.field_data["plane_axis"] = np.array([plane_axis(plane)])
            grid.save(str(path))
        elif suffix in (".tif", ".tiff"):
            tifffile.imwrite(str(path), image)
        elif suffix == ".npy":
            np.save(str(path), image)
        else:
            raise ValueError(f"Unsupported export format: {suffix!r}")

        print(f"[Exporter] {plane} slice {index} saved to {path}")
        return str(path)

    @staticmethod
    def export_oriented(result: OrientedSlice, filepath: str) -> str:
        """
        Export an oriented slice.

        VTK output is a textured quad (.vtp) carrying texture and alpha as
        field data; TIFF and NumPy outputs stack texture and alpha.
        """
        if result is None:
            raise ValueError("No oriented slice to export.")

        path = Path(filepath)
        suffix = path.suffix.lower()
        if suffix in (".vtp", ".vtk"):
            mesh = pv.PolyData(np.asarray(result.vertices, dtype=np.float64), _QUAD_FACES)
            mesh.active_texture_coordinates = _QUAD_TCOORDS
            mesh.field_data["texture"] = result.texture
            mesh.field_data["alpha"] = result.alpha
            mesh.field_data["width"] = np.array([result.width])
            mesh.save(str(path))
        elif suffix in (".tif", ".tiff"):
            tifffile.imwrite(str(path), np.stack([result.image(), result.alpha_image()]))
        elif suffix == ".npy":
            np.save(str(path), np.stack([result.image(), result.alpha_image()]))
        else:
            raise ValueError(f"Unsupported export format: {suffix!r}")

        if result.is_empty:
            print("[Exporter] Warning: oriented slice does not intersect the volume.")
        print(f"[Exporter] Oriented slice saved to {path}")
        return str(path)
