"""Dispatch port for running chunks as independent units of work."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from assetsync.domain.orchestrator import DeviceChunk
    from assetsync.domain.outcomes import ChunkSummary

type ChunkHandler = Callable[[DeviceChunk], ChunkSummary]


@runtime_checkable
class ChunkDispatcher(Protocol):
    def dispatch(
        self,
        chunks: Sequence[DeviceChunk],
        handler: ChunkHandler,
    ) -> list[ChunkSummary]:
        """Run every chunk at least once and return their summaries."""
        ...
