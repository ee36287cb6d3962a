"""
Headless CLI entry point for the NIfTI slice viewer core.

Loads a volume through the same request/response protocol the GUI worker
uses, extracts axis-aligned and oriented slices, and exports them without
any display server or PyQt runtime.
"""

from __future__ import annotations

import argparse
import logging
import math
import sys
import time
from pathlib import Path
from typing import List, Tuple

import config
from core import (
    OrientedPlaneDTO,
    ResponseKind,
    SliceComputeUnit,
    SliceExportDTO,
    SlicerError,
    init_request,
    plane_axis,
    slice_plane_request,
    slice_request,
    voxel_to_world_matrix,
    voxel_to_world_points,
)

_AXIS_SUFFIX = {"vtk": ".vti", "tiff": ".tif", "npy": ".npy"}
_ORIENTED_SUFFIX = {"vtk": ".vtp", "tiff": ".tif", "npy": ".npy"}


def _resolve_dummy_shape(input_path: str) -> Tuple[int, int, int]:
    """
    Resolve the phantom shape from input_path.

    Accepts "N" (cube) or "NX,NY,NZ"; anything else uses the default shape.
    """
    if not input_path:
        return config.DUMMY_SHAPE
    try:
        parts = [int(p) for p in input_path.replace("x", ",").split(",") if p.strip()]
    except ValueError:
        return config.DUMMY_SHAPE
    if len(parts) == 1 and parts[0] > 0:
        return (parts[0],) * 3
    if len(parts) == 3 and min(parts) > 0:
        return tuple(parts)  # type: ignore[return-value]
    return config.DUMMY_SHAPE


def _load_input_bytes(dto: SliceExportDTO) -> bytes:
    loader_type = (dto.loader_type or "nifti").lower()
    if loader_type == "dummy":
        from loaders import DummyLoader

        return DummyLoader().to_nifti_bytes(_resolve_dummy_shape(dto.input_path))

    if loader_type == "nifti":
        if not dto.input_path:
            raise ValueError("input_path is required when loader_type='nifti'.")
        path = Path(dto.input_path)
        if not path.is_file():
            raise FileNotFoundError(f"Path does not exist: {path}")
        return path.read_bytes()

    raise ValueError(f"Unknown loader_type: {dto.loader_type!r}. Supported: 'nifti', 'dummy'.")


def _payload(response):
    if response.kind is ResponseKind.ERROR:
        request_kind, message = response.payload
        raise SlicerError(f"'{request_kind}' request failed: {message}")
    return response.payload


def _plane_spacing(header, plane: str) -> Tuple[float, float]:
    sizes = [abs(float(v)) or 1.0 for v in header.pixdim[1:4]]
    in_plane = [s for axis, s in enumerate(sizes) if axis != plane_axis(plane)]
    return (in_plane[0], in_plane[1])


def run_export(dto: SliceExportDTO) -> List[str]:
    """
    Execute the requested slices and export them.

    Returns:
        Paths of the exported files.
    """
    from exporters import SliceExporter

    formats = tuple(fmt.lower() for fmt in dto.export_formats)
    unknown = [fmt for fmt in formats if fmt not in config.EXPORT_FORMATS]
    if unknown:
        raise ValueError(f"Unknown export formats: {unknown}. Supported: {list(config.EXPORT_FORMATS)}")

    out_dir = Path(dto.output_dir) if dto.output_dir else Path.cwd() / config.DEFAULT_OUTPUT_DIR
    out_dir.mkdir(parents=True, exist_ok=True)

    unit = SliceComputeUnit()
    t_start = time.perf_counter()
    dims, header = _payload(unit.handle(init_request(_load_input_bytes(dto))))
    print(f"[CLI] Volume dims={dims} datatype={header.datatype_code} sform_code={header.sform_code}")
    if header.is_supported:
        lo, hi = unit.volume.value_range()
        print(f"[CLI] Sample range [{lo:g}, {hi:g}]")

    requests = list(dto.axis_slices)
    if dto.all_planes:
        for axis, plane in enumerate(config.PLANES):
            requests.append((plane, int(math.floor((dims[axis] - 1) / 2 + 0.5))))

    exported: List[str] = []
    for plane, index in requests:
        axis = plane_axis(plane)
        if not 0 <= index < dims[axis]:
            raise ValueError(f"Slice index {index} out of range for plane {plane} (0..{dims[axis] - 1})")
        _, _, image = _payload(unit.handle(slice_request(plane, index)))
        for fmt in formats:
            path = out_dir / f"{plane}_{index:04d}{_AXIS_SUFFIX[fmt]}"
            exported.append(SliceExporter.export_axis(image, str(path), plane, index, _plane_spacing(header, plane)))

    if dto.oriented is not None:
        _, result = _payload(unit.handle(slice_plane_request(dto.oriented.points, dto.oriented.distance)))
        if not result.is_empty:
            corners = voxel_to_world_points(result.vertices, voxel_to_world_matrix(header))
            for corner in corners:
                print(f"[CLI] Oriented corner (world): ({corner[0]:.3f}, {corner[1]:.3f}, {corner[2]:.3f})")
        for fmt in formats:
            path = out_dir / f"oriented{_ORIENTED_SUFFIX[fmt]}"
            exported.append(SliceExporter.export_oriented(result, str(path)))

    print(f"[CLI] {len(exported)} files written in {time.perf_counter() - t_start:.2f}s")
    return exported


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python cli.py",
        description="Headless NIfTI slice extractor",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument(
        "--config",
        metavar="FILE",
        help="Path to YAML or JSON config file. Overrides other flags.",
    )
    parser.add_argument("--input", metavar="PATH", default="", help="Input NIfTI file (.nii or .nii.gz).")
    parser.add_argument(
        "--dummy",
        metavar="SHAPE",
        nargs="?",
        const="",
        default=None,
        help="Use a synthetic phantom instead of --input (N or NX,NY,NZ).",
    )
    parser.add_argument(
        "--plane",
        metavar=("PLANE", "INDEX"),
        nargs=2,
        action="append",
        default=[],
        help="Axis slice to extract, e.g. --plane xy 40 (repeatable).",
    )
    parser.add_argument("--all-planes", action="store_true", help="Extract the middle slice of every plane.")
    parser.add_argument(
        "--points",
        metavar="V",
        nargs=9,
        type=float,
        default=None,
        help="Oriented plane through three voxel points: ax ay az bx by bz cx cy cz.",
    )
    parser.add_argument("--distance", metavar="D", type=float, default=0.0, help="Oriented plane offset along its normal.")
    parser.add_argument(
        "--formats",
        metavar="FMT",
        nargs="+",
        default=list(config.DEFAULT_EXPORT_FORMATS),
        help="Export formats: vtk tiff npy (space-separated).",
    )
    parser.add_argument("--output", metavar="DIR", default=None, help="Output directory.")
    parser.add_argument("--dry-run", action="store_true", help="Print resolved DTO without running.")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    return parser


def _resolve_dto(args: argparse.Namespace, parser: argparse.ArgumentParser) -> SliceExportDTO:
    """Resolve DTO from config file or inline CLI flags."""
    if args.config:
        cfg_path = args.config
        if cfg_path.endswith((".yaml", ".yml")):
            return SliceExportDTO.from_yaml(cfg_path)
        if cfg_path.endswith(".json"):
            return SliceExportDTO.from_json(cfg_path)
        try:
            return SliceExportDTO.from_yaml(cfg_path)
        except Exception:
            return SliceExportDTO.from_json(cfg_path)

    if args.dummy is None and not args.input:
        parser.error("Provide --config FILE, --input PATH or --dummy")

    axis_slices = []
    for plane, index in args.plane:
        if plane not in config.PLANES:
            parser.error(f"--plane expects one of {', '.join(config.PLANES)}, got {plane!r}")
        try:
            axis_slices.append((plane, int(index)))
        except ValueError:
            parser.error(f"--plane index must be an integer, got {index!r}")

    oriented = None
    if args.points is not None:
        p = args.points
        oriented = OrientedPlaneDTO(points=(tuple(p[0:3]), tuple(p[3:6]), tuple(p[6:9])), distance=args.distance)

    if not axis_slices and oriented is None and not args.all_planes:
        parser.error("Nothing to do: give --plane, --all-planes or --points")

    return SliceExportDTO(
        input_path=args.dummy if args.dummy is not None else args.input,
        loader_type="dummy" if args.dummy is not None else "nifti",
        axis_slices=tuple(axis_slices),
        all_planes=args.all_planes,
        oriented=oriented,
        output_dir=args.output,
        export_formats=tuple(args.formats),
    )


def main(argv=None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    dto = _resolve_dto(args, parser)

    if args.dry_run:
        import json

        print("Resolved SliceExportDTO:")
        print(json.dumps(dto.to_dict(), indent=2))
        return 0

    print("=" * 60)
    print("NIfTI Slice Viewer - Headless Slice Export")
    print("=" * 60)

    try:
        run_export(dto)
    except KeyboardInterrupt:
        print("\nAborted by user.")
        return 1
    except Exception as exc:
        import traceback

        print(f"\nSlicing failed: {type(exc).__name__}: {exc}")
        traceback.print_exc()
        return 2

    return 0


if __name__ == "__main__":
    sys.exit(main())
