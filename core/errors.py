"""
Exception taxonomy for volume loading and slicing.
"""


class SlicerError(ValueError):
    """Base class for all errors raised by the slicing core."""


class DecodeError(SlicerError):
    """Input bytes are not a recognized volumetric format."""


class UnsupportedDatatypeError(SlicerError):
    """The volume's datatype code is not one of the supported numeric kinds."""

    def __init__(self, datatype_code: int):
        super().__init__(f"Unsupported NIfTI datatype code: {datatype_code}")
        self.datatype_code = datatype_code


class DegenerateVolumeError(SlicerError):
    """Every sample of the volume has the same value (min == max)."""


class DegeneratePlaneError(SlicerError):
    """The three points defining a plane are collinear or coincident."""


__all__ = [
    "SlicerError",
    "DecodeError",
    "UnsupportedDatatypeError",
    "DegenerateVolumeError",
    "DegeneratePlaneError",
]
