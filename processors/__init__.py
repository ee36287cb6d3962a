"""
Slicing processors for volumetric display.

Modules:
- slicer: Axis-aligned and oriented-plane slice extraction
"""

from processors.slicer import OrientedSlice, VolumeSlicer, slice_axis, slice_oriented

__all__ = [
    'OrientedSlice',
    'VolumeSlicer',
    'slice_axis',
    'slice_oriented',
]
