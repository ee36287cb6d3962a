from __future__ import annotations

import logging
import math
import queue
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Optional, Sequence

from PyQt5.QtCore import QObject, QThread, pyqtSignal

import config
from core import (
    Request,
    RequestKind,
    Response,
    ResponseKind,
    SliceComputeUnit,
    axis_quad_vertices,
    init_request,
    slice_plane_request,
    slice_request,
    voxel_to_world_matrix,
    world_to_voxel_points,
)
from core.protocol import error_response

logger = logging.getLogger(__name__)


class SliceWorker(QThread):
    """Background computation unit serving slice requests in arrival order."""

    response = pyqtSignal(object)  # Response

    def __init__(self, unit: Optional[SliceComputeUnit] = None):
        super().__init__()
        self._unit = unit or SliceComputeUnit()
        self._inbox: "queue.Queue[Optional[Request]]" = queue.Queue()

    def post(self, request: Request) -> None:
        self._inbox.put(request)

    def stop(self) -> None:
        """Finish the queued requests, then exit the thread loop."""
        self._inbox.put(None)

    def run(self) -> None:
        while True:
            request = self._inbox.get()
            if request is None:
                return
            try:
                result = self._unit.handle(request)
            except Exception as exc:
                logger.exception("Unexpected failure while handling %s", request.kind.value)
                result = error_response(request, str(exc))
            self.response.emit(result)


class RequestState(Enum):
    IDLE = "idle"
    IN_FLIGHT = "in_flight"


class SliceHandler(QObject):
    """
    Orchestrates the slice worker for the ortho viewer.

    Axis-aligned requests are forwarded freely; an oriented-plane request is
    ignored while the previous one is still in flight.
    """

    volume_ready = pyqtSignal(object, object)           # dims, NiftiHeader
    slice_ready = pyqtSignal(str, int, object, object)  # plane, index, image, quad vertices
    oriented_ready = pyqtSignal(object, object)         # points, OrientedSlice
    error = pyqtSignal(str)

    def __init__(
        self,
        worker_factory: Callable[[], SliceWorker] = SliceWorker,
        discard_stale: bool = config.DISCARD_STALE_SLICES,
    ):
        super().__init__()
        self._worker_factory = worker_factory
        self._worker: Optional[SliceWorker] = None
        self.discard_stale = discard_stale

        self.dims = None
        self.header = None
        self.voxel_to_world = None
        self.oriented_state = RequestState.IDLE
        self._latest_slice_ids: Dict[str, int] = {}
        self._init_request_id = 0

    @property
    def is_busy(self) -> bool:
        return self.oriented_state is RequestState.IN_FLIGHT

    @property
    def has_volume(self) -> bool:
        return self.dims is not None

    def _ensure_worker(self) -> SliceWorker:
        if self._worker is None:
            self._worker = self._worker_factory()
            self._worker.response.connect(self._on_response)
            self._worker.start()
        return self._worker

    # ==========================================
    # Requests
    # ==========================================

    def open_bytes(self, raw_bytes) -> None:
        """Send a NIfTI byte stream to the worker for decoding."""
        worker = self._ensure_worker()
        self.dims = None
        self.header = None
        self.voxel_to_world = None
        self.oriented_state = RequestState.IDLE
        self._latest_slice_ids.clear()
        request = init_request(raw_bytes)
        self._init_request_id = request.request_id
        worker.post(request)

    def open_file(self, path: str) -> None:
        self.open_bytes(Path(path).read_bytes())

    def slice(self, plane: str, index: int) -> None:
        """Request an axis-aligned slice; the index is clamped to the volume."""
        if not self.has_volume:
            raise ValueError("No volume loaded.")
        request = slice_request(plane, index)
        axis = config.PLANES.index(plane)
        clamped = max(0, min(self.dims[axis] - 1, int(index)))
        if clamped != request.payload[1]:
            request = Request(RequestKind.SLICE, (plane, clamped), request.request_id)
        self._latest_slice_ids[plane] = request.request_id
        self._ensure_worker().post(request)

    def slice_plane(self, points: Sequence[Sequence[float]], distance: float = 0.0, world: bool = False) -> bool:
        """
        Request an oriented slice through three points.

        Args:
            points: Three points, in voxel coordinates unless ``world`` is set.
            distance: Offset of the plane along its normal.
            world: Map the points from world to voxel coordinates first.

        Returns:
            bool: False when a previous oriented request is still in flight.
        """
        if not self.has_volume:
            raise ValueError("No volume loaded.")
        if self.is_busy:
            return False
        if world:
            points = world_to_voxel_points(points, self.voxel_to_world).tolist()
        request = slice_plane_request(points, distance)
        self.oriented_state = RequestState.IN_FLIGHT
        self._ensure_worker().post(request)
        return True

    def close(self) -> None:
        if self._worker is None:
            return
        self._worker.stop()
        self._worker.wait(config.WORKER_STOP_TIMEOUT_MS)
        self._worker = None

    # ==========================================
    # Responses
    # ==========================================

    def _is_current(self, response: Response) -> bool:
        """Responses to requests posted before the latest init belong to a previous volume."""
        if response.request_id < self._init_request_id:
            return False
        if response.kind in (ResponseKind.SLICED, ResponseKind.SLICED_ORIENTED):
            return self.has_volume
        return True

    def _on_response(self, response: Response) -> None:
        if not self._is_current(response):
            logger.debug("Dropping %s #%d from a previous volume", response.kind.value, response.request_id)
            return
        if response.kind is ResponseKind.INITIALIZED:
            self._on_initialized(*response.payload)
        elif response.kind is ResponseKind.SLICED:
            self._on_sliced(response)
        elif response.kind is ResponseKind.SLICED_ORIENTED:
            self.oriented_state = RequestState.IDLE
            points, result = response.payload
            self.oriented_ready.emit(points, result)
        elif response.kind is ResponseKind.ERROR:
            request_kind, message = response.payload
            if request_kind == RequestKind.SLICE_PLANE.value:
                self.oriented_state = RequestState.IDLE
            logger.warning("Worker error on %s: %s", request_kind, message)
            self.error.emit(f"{request_kind}: {message}")

    def _on_initialized(self, dims, header) -> None:
        self.dims = tuple(dims)
        self.header = header
        self.voxel_to_world = voxel_to_world_matrix(header)
        self.volume_ready.emit(self.dims, header)

        if not header.is_supported:
            self.error.emit(f"init: unsupported NIfTI datatype code {header.datatype_code}")
            return

        for axis, plane in enumerate(config.PLANES):
            self.slice(plane, int(math.floor((self.dims[axis] - 1) / 2 + 0.5)))

    def _on_sliced(self, response: Response) -> None:
        plane, index, image = response.payload
        if self.discard_stale and self._latest_slice_ids.get(plane) != response.request_id:
            logger.debug("Dropping stale %s slice %d", plane, index)
            return
        quad = axis_quad_vertices(plane, self.dims, index)
        self.slice_ready.emit(plane, int(index), image, quad)
