"""Streaming support: SSE line decoding and ordered chunk delivery."""

from .sse import iter_sse_data, DONE_SENTINEL
from .accumulator import StreamAccumulator, ChunkCallback

__all__ = [
    "iter_sse_data",
    "DONE_SENTINEL",
    "StreamAccumulator",
    "ChunkCallback",
]
