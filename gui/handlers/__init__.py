"""
Background workers and orchestration handlers.
"""

from gui.handlers.slice_handler import RequestState, SliceHandler, SliceWorker

__all__ = ['RequestState', 'SliceHandler', 'SliceWorker']
