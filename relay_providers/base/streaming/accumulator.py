"""Ordered text accumulation for one streamed call."""
from __future__ import annotations

import time
from typing import Callable, List, Optional

ChunkCallback = Callable[[str], None]


class StreamAccumulator:
    """Deliver text deltas to ``on_chunk`` in arrival order and keep the total.

    ``emitted`` tells the recovery logic whether the caller has already seen
    output (after which a retry would duplicate text).
    """

    def __init__(self, on_chunk: ChunkCallback, clock: Callable[[], float] = time.monotonic) -> None:
        self._on_chunk = on_chunk
        self._clock = clock
        self._parts: List[str] = []
        self._started = clock()
        self.first_chunk_ms: Optional[float] = None
        self.finish_reason: Optional[str] = None

    def push(self, delta: Optional[str]) -> None:
        if not delta:
            return
        if self.first_chunk_ms is None:
            self.first_chunk_ms = (self._clock() - self._started) * 1000.0
        self._parts.append(delta)
        self._on_chunk(delta)

    @property
    def emitted(self) -> bool:
        return bool(self._parts)

    @property
    def chunk_count(self) -> int:
        return len(self._parts)

    @property
    def text(self) -> str:
        return "".join(self._parts)
