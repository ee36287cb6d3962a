"""
Message contract between the viewer orchestrator and the computation unit.

Every message is a tagged pair ``(kind, payload)``:

    init          (raw_bytes,)                 -> initialized      (dims, header)
    slice         (plane, index)               -> sliced           (plane, index, image)
    slice_plane   (points, distance)           -> sliced_oriented  (points, OrientedSlice)
    any request that fails                     -> error            (request_kind, message)

Request payloads are immutable (bytes, tuples) so the sender cannot alter
them after posting. Response buffers are allocated per request and owned by
the receiver.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Sequence, Tuple

import config

_request_ids = itertools.count(1)


def _next_request_id() -> int:
    return next(_request_ids)


class RequestKind(str, Enum):
    INIT = "init"
    SLICE = "slice"
    SLICE_PLANE = "slice_plane"


class ResponseKind(str, Enum):
    INITIALIZED = "initialized"
    SLICED = "sliced"
    SLICED_ORIENTED = "sliced_oriented"
    ERROR = "error"


@dataclass(frozen=True)
class Request:
    """One request to the computation unit; ``request_id`` increases monotonically."""

    kind: RequestKind
    payload: Tuple[Any, ...]
    request_id: int = field(default_factory=_next_request_id)

    def as_message(self) -> Tuple[str, Tuple[Any, ...]]:
        return (self.kind.value, self.payload)

    @staticmethod
    def from_message(message: Sequence[Any]) -> "Request":
        """Build a request from a ``(kind, payload)`` pair."""
        kind, payload = message
        kind = RequestKind(kind)
        if kind is RequestKind.INIT:
            return init_request(payload[0])
        if kind is RequestKind.SLICE:
            return slice_request(payload[0], payload[1])
        distance = payload[1] if len(payload) > 1 else 0.0
        return slice_plane_request(payload[0], distance)


@dataclass(frozen=True)
class Response:
    """One response; ``request_id`` echoes the request it answers."""

    kind: ResponseKind
    payload: Tuple[Any, ...]
    request_id: int = 0

    def as_message(self) -> Tuple[str, Tuple[Any, ...]]:
        return (self.kind.value, self.payload)


# ---------------------------------------------------------------------------
# Request constructors
# ---------------------------------------------------------------------------

def init_request(raw_bytes) -> Request:
    """Request decoding of a NIfTI byte stream (bytearray/memoryview are copied)."""
    return Request(RequestKind.INIT, (bytes(raw_bytes),))


def slice_request(plane: str, index: int) -> Request:
    if plane not in config.PLANES:
        allowed = ", ".join(config.PLANES)
        raise ValueError(f"Unknown plane '{plane}'. Expected one of: {allowed}.")
    return Request(RequestKind.SLICE, (plane, int(index)))


def slice_plane_request(points: Sequence[Sequence[float]], distance: float = 0.0) -> Request:
    frozen = tuple(tuple(float(v) for v in p) for p in points)
    if len(frozen) != 3 or any(len(p) != 3 for p in frozen):
        raise ValueError(f"Expected three 3D points, got {points!r}")
    return Request(RequestKind.SLICE_PLANE, (frozen, float(distance)))


def error_response(request: Request, message: str) -> Response:
    return Response(ResponseKind.ERROR, (request.kind.value, message), request.request_id)


__all__ = [
    "RequestKind",
    "ResponseKind",
    "Request",
    "Response",
    "init_request",
    "slice_request",
    "slice_plane_request",
    "error_response",
]
