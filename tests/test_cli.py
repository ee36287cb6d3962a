import json
from pathlib import Path

import numpy as np
import pytest

import cli
from core.dto import OrientedPlaneDTO, SliceExportDTO
from loaders import encode_nifti, make_index_volume


def test_run_export_dummy_all_planes(tmp_path):
    dto = SliceExportDTO(loader_type="dummy", input_path="8", all_planes=True, output_dir=str(tmp_path))
    written = cli.run_export(dto)

    names = sorted(Path(p).name for p in written)
    assert names == ["xy_0004.npy", "xz_0004.npy", "yz_0004.npy"]
    assert np.load(tmp_path / "xy_0004.npy").shape == (8, 8)


def test_run_export_nifti_file_with_oriented_plane(tmp_path):
    source = tmp_path / "index.nii"
    source.write_bytes(encode_nifti(make_index_volume((3, 4, 5), dtype=np.int16)))
    dto = SliceExportDTO(
        input_path=str(source),
        axis_slices=(("xz", 3),),
        oriented=OrientedPlaneDTO(points=((0, 0, 1), (1, 0, 1), (0, 1, 1)), distance=0.0),
        output_dir=str(tmp_path / "out"),
        export_formats=("npy", "tiff"),
    )
    written = cli.run_export(dto)

    assert len(written) == 4
    assert (tmp_path / "out" / "xz_0003.npy").exists()
    assert (tmp_path / "out" / "oriented.tif").exists()
    assert np.load(tmp_path / "out" / "oriented.npy").shape == (2, 5, 5)


def test_run_export_rejects_out_of_range_index(tmp_path):
    dto = SliceExportDTO(loader_type="dummy", input_path="4", axis_slices=(("xy", 4),), output_dir=str(tmp_path))
    with pytest.raises(ValueError):
        cli.run_export(dto)


def test_run_export_rejects_unknown_format(tmp_path):
    dto = SliceExportDTO(loader_type="dummy", all_planes=True, output_dir=str(tmp_path), export_formats=("png",))
    with pytest.raises(ValueError):
        cli.run_export(dto)


def test_resolve_dummy_shape():
    assert cli._resolve_dummy_shape("12") == (12, 12, 12)
    assert cli._resolve_dummy_shape("4,5,6") == (4, 5, 6)
    assert cli._resolve_dummy_shape("") == cli.config.DUMMY_SHAPE


def test_main_exports_axis_and_oriented(tmp_path):
    code = cli.main([
        "--dummy", "6", "--plane", "xy", "2",
        "--points", "0", "0", "1", "1", "0", "1", "0", "1", "1",
        "--formats", "npy", "vtk", "--output", str(tmp_path),
    ])
    assert code == 0
    assert (tmp_path / "xy_0002.vti").exists()
    assert (tmp_path / "oriented.vtp").exists()


def test_main_dry_run_output(capsys):
    code = cli.main(["--dummy", "6", "--plane", "xy", "2", "--dry-run"])
    assert code == 0
    out = capsys.readouterr().out
    payload = json.loads(out.split("Resolved SliceExportDTO:", 1)[1])
    assert payload["loader_type"] == "dummy"
    assert payload["axis_slices"] == [["xy", 2]]


def test_main_reports_failures(tmp_path):
    code = cli.main(["--dummy", "4", "--plane", "xy", "9", "--output", str(tmp_path)])
    assert code == 2


def test_main_requires_work():
    with pytest.raises(SystemExit):
        cli.main(["--dummy", "4"])


def test_main_rejects_unknown_plane():
    with pytest.raises(SystemExit):
        cli.main(["--dummy", "4", "--plane", "ab", "1"])


def test_run_export_reports_range_and_world_corners(tmp_path, capsys):
    source = tmp_path / "scaled.nii"
    affine = np.diag([2.0, 2.0, 2.0, 1.0])
    source.write_bytes(encode_nifti(make_index_volume((3, 4, 5), dtype=np.int16), affine=affine, sform_code=2))
    dto = SliceExportDTO(
        input_path=str(source),
        oriented=OrientedPlaneDTO(points=((0, 0, 1), (1, 0, 1), (0, 1, 1)), distance=0.0),
        output_dir=str(tmp_path / "out"),
    )
    cli.run_export(dto)

    out = capsys.readouterr().out
    assert "[CLI] Sample range [0, 59]" in out
    assert "[CLI] Oriented corner (world): (0.000, 8.000, 2.000)" in out
    assert "[CLI] Oriented corner (world): (6.000, 0.000, 2.000)" in out
