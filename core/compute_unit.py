"""
Computation unit: owns the loaded Volume and answers protocol requests.

The unit is transport-agnostic. ``gui.handlers.slice_handler.SliceWorker``
runs it on a background thread; the CLI calls it inline.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Dict, Optional, Tuple, Any

from core.errors import SlicerError
from core.protocol import Request, RequestKind, Response, ResponseKind, error_response
from core.volume import Volume

logger = logging.getLogger(__name__)


class SliceComputeUnit:
    """
    Serves ``init``, ``slice`` and ``slice_plane`` requests one at a time.

    A failed request yields an ``error`` response and leaves the current
    volume untouched.
    """

    def __init__(self) -> None:
        self._volume: Optional[Volume] = None
        self._handlers: Dict[RequestKind, Callable[[Tuple[Any, ...]], Tuple[ResponseKind, Tuple[Any, ...]]]] = {
            RequestKind.INIT: self._handle_init,
            RequestKind.SLICE: self._handle_slice,
            RequestKind.SLICE_PLANE: self._handle_slice_plane,
        }

    @property
    def volume(self) -> Optional[Volume]:
        return self._volume

    def handle(self, request: Request) -> Response:
        handler = self._handlers.get(request.kind)
        if handler is None:
            return error_response(request, f"Unknown request kind: {request.kind!r}")

        t0 = time.perf_counter()
        try:
            kind, payload = handler(request.payload)
        except SlicerError as exc:
            logger.warning("Request %s #%d failed: %s", request.kind.value, request.request_id, exc)
            return error_response(request, str(exc))

        logger.debug(
            "%s #%d handled in %.1f ms",
            request.kind.value, request.request_id, (time.perf_counter() - t0) * 1000.0,
        )
        return Response(kind, payload, request.request_id)

    def _require_volume(self) -> Volume:
        if self._volume is None:
            raise SlicerError("No volume initialized; send 'init' first.")
        return self._volume

    def _handle_init(self, payload):
        from loaders.nifti import load_volume_bytes

        (raw_bytes,) = payload
        volume = load_volume_bytes(raw_bytes)
        self._volume = volume
        return ResponseKind.INITIALIZED, (volume.dims, volume.header)

    def _slicer(self):
        from processors.slicer import VolumeSlicer

        return VolumeSlicer(self._require_volume())

    def _handle_slice(self, payload):
        plane, index = payload
        image = self._slicer().slice(plane, index)
        return ResponseKind.SLICED, (plane, index, image)

    def _handle_slice_plane(self, payload):
        points, distance = payload
        result = self._slicer().slice_oriented(points, distance)
        return ResponseKind.SLICED_ORIENTED, (points, result)


__all__ = ["SliceComputeUnit"]
