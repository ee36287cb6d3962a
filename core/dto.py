"""
Data Transfer Objects (DTOs) for headless slice export runs.

Design rules
------------
* All DTOs are immutable (frozen=True).
* No PyQt5 imports anywhere in this module.
* ``from_dict`` / ``from_yaml`` / ``from_json`` keep parsing in one place.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

import config


Point3 = Tuple[float, float, float]


# ---------------------------------------------------------------------------
# Oriented plane DTO
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class OrientedPlaneDTO:
    """Three voxel-space points defining a cutting plane, plus its offset."""

    points:   Tuple[Point3, Point3, Point3] = config.DEFAULT_PLANE_POINTS
    distance: float                         = config.DEFAULT_PLANE_DISTANCE

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "OrientedPlaneDTO":
        raw_points = d.get("points", config.DEFAULT_PLANE_POINTS)
        points = tuple(tuple(float(v) for v in p) for p in raw_points)
        if len(points) != 3 or any(len(p) != 3 for p in points):
            raise ValueError(f"'points' must hold three 3D points, got {raw_points!r}")
        return OrientedPlaneDTO(
            points   = points,  # type: ignore[arg-type]
            distance = float(d.get("distance", config.DEFAULT_PLANE_DISTANCE)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "points":   [list(p) for p in self.points],
            "distance": self.distance,
        }


# ---------------------------------------------------------------------------
# Slice export DTO
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SliceExportDTO:
    """
    Immutable configuration for a headless slicing run.

    Used by the CLI and by unit tests that bypass the GUI entirely.
    """

    # Input
    input_path:     str                             = ""
    loader_type:    str                             = "nifti"    # "nifti" | "dummy"

    # Requests
    axis_slices:    Tuple[Tuple[str, int], ...]     = ()         # (plane, index) pairs
    all_planes:     bool                            = False      # middle slice of every plane
    oriented:       Optional[OrientedPlaneDTO]      = None

    # Output
    output_dir:     Optional[str]                   = None
    export_formats: Tuple[str, ...]                 = config.DEFAULT_EXPORT_FORMATS

    # ------------------------------------------------------------------
    # Factories
    # ------------------------------------------------------------------

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "SliceExportDTO":
        oriented_raw = d.get("oriented")
        oriented = OrientedPlaneDTO.from_dict(oriented_raw) if oriented_raw else None
        axis_slices = tuple((str(p), int(i)) for p, i in d.get("axis_slices", []))
        for plane, _ in axis_slices:
            if plane not in config.PLANES:
                raise ValueError(f"Unknown plane '{plane}' in axis_slices.")
        return SliceExportDTO(
            input_path     = str(d.get("input_path",   "")),
            loader_type    = str(d.get("loader_type",  "nifti")),
            axis_slices    = axis_slices,
            all_planes     = bool(d.get("all_planes",  False)),
            oriented       = oriented,
            output_dir     = d.get("output_dir"),
            export_formats = tuple(d.get("export_formats", list(config.DEFAULT_EXPORT_FORMATS))),
        )

    @staticmethod
    def from_yaml(path: str) -> "SliceExportDTO":
        """Load config from a YAML file."""
        import yaml
        with open(path, encoding="utf-8") as fh:
            d = yaml.safe_load(fh)
        return SliceExportDTO.from_dict(d or {})

    @staticmethod
    def from_json(path: str) -> "SliceExportDTO":
        """Load config from a JSON file."""
        import json
        with open(path, encoding="utf-8") as fh:
            d = json.load(fh)
        return SliceExportDTO.from_dict(d)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "input_path":     self.input_path,
            "loader_type":    self.loader_type,
            "axis_slices":    [list(s) for s in self.axis_slices],
            "all_planes":     self.all_planes,
            "oriented":       self.oriented.to_dict() if self.oriented else None,
            "output_dir":     self.output_dir,
            "export_formats": list(self.export_formats),
        }
