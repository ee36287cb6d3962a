"""
Data loaders package.
"""

from loaders.nifti import (
    NiftiLoader,
    decode_nifti,
    encode_nifti,
    load_volume_bytes,
)
from loaders.dummy import DummyLoader, make_index_volume

__all__ = [
    'NiftiLoader',
    'decode_nifti',
    'encode_nifti',
    'load_volume_bytes',
    'DummyLoader',
    'make_index_volume',
]
