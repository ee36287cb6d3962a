"""
GUI Package for the NIfTI slice viewer.
Exports the background slice worker and its orchestrating handler.
"""

from gui.handlers.slice_handler import RequestState, SliceHandler, SliceWorker

__all__ = [
    'RequestState',
    'SliceHandler',
    'SliceWorker',
]
