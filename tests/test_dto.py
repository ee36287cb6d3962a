import json

import pytest
import yaml

from core.dto import OrientedPlaneDTO, SliceExportDTO
from config import DEFAULT_EXPORT_FORMATS, DEFAULT_PLANE_POINTS


def test_slice_export_dto_defaults():
    dto = SliceExportDTO()
    assert dto.loader_type == "nifti"
    assert dto.axis_slices == ()
    assert dto.oriented is None
    assert dto.export_formats == DEFAULT_EXPORT_FORMATS


def test_slice_export_dto_from_dict_uses_defaults():
    dto = SliceExportDTO.from_dict({})
    assert dto == SliceExportDTO()


def test_oriented_plane_dto_defaults():
    dto = OrientedPlaneDTO.from_dict({})
    assert dto.points == DEFAULT_PLANE_POINTS
    assert dto.distance == 0.0


def test_oriented_plane_dto_rejects_bad_points():
    with pytest.raises(ValueError):
        OrientedPlaneDTO.from_dict({"points": [[0, 0, 0], [1, 0, 0]]})


def test_unknown_plane_rejected():
    with pytest.raises(ValueError):
        SliceExportDTO.from_dict({"axis_slices": [["ab", 1]]})


def test_yaml_and_json_configs_agree(tmp_path):
    config = {
        "input_path": "brain.nii.gz",
        "axis_slices": [["xy", 10], ["yz", 3]],
        "oriented": {"points": [[0, 0, 1], [1, 0, 1], [0, 1, 1]], "distance": 2.5},
        "export_formats": ["vtk", "npy"],
        "output_dir": "out",
    }
    yaml_path = tmp_path / "run.yaml"
    json_path = tmp_path / "run.json"
    yaml_path.write_text(yaml.safe_dump(config), encoding="utf-8")
    json_path.write_text(json.dumps(config), encoding="utf-8")

    from_yaml = SliceExportDTO.from_yaml(str(yaml_path))
    from_json = SliceExportDTO.from_json(str(json_path))

    assert from_yaml == from_json
    assert from_yaml.axis_slices == (("xy", 10), ("yz", 3))
    assert from_yaml.oriented.distance == 2.5
    assert from_yaml.export_formats == ("vtk", "npy")
    assert SliceExportDTO.from_dict(from_yaml.to_dict()) == from_yaml
