"""
Exporters package.
"""

from exporters.slices import SliceExporter

__all__ = ['SliceExporter']
