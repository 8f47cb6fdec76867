"""Chunk dispatchers: inline and thread-pool, both with whole-chunk retries."""

from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from assetsync.domain.errors import ChunkFatalError, ChunkRetriesExhaustedError

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from assetsync.domain.orchestrator import DeviceChunk
    from assetsync.domain.outcomes import ChunkSummary
    from assetsync.domain.ports import ChunkHandler

log = getLogger(__name__)


@dataclass(slots=True, frozen=True)
class ChunkRetryPolicy:
    """How often a chunk is attempted before the run gives up on it.

    Only ``ChunkFatalError`` triggers another attempt; anything else propagates.
    """

    attempts: int = 3
    backoff_seconds: float = 0.0
    sleep: Callable[[float], None] = field(default=time.sleep, compare=False)

    def run(self, chunk: DeviceChunk, handler: ChunkHandler) -> ChunkSummary:
        attempts = max(1, self.attempts)
        attempt = 1
        while True:
            try:
                return handler(chunk)
            except ChunkFatalError as exc:
                if attempt >= attempts:
                    log.exception("Batch #%s failed permanently", chunk.sequence)
                    raise ChunkRetriesExhaustedError(chunk.sequence, attempts) from exc
                log.warning(
                    "Batch #%s failed on attempt %s/%s: %s; retrying",
                    chunk.sequence,
                    attempt,
                    attempts,
                    exc,
                )
                if self.backoff_seconds > 0:
                    self.sleep(self.backoff_seconds * attempt)
                attempt += 1


@dataclass(slots=True)
class InlineChunkDispatcher:
    """Runs chunks one after another in the calling thread."""

    retry: ChunkRetryPolicy = field(default_factory=ChunkRetryPolicy)

    def dispatch(
        self,
        chunks: Sequence[DeviceChunk],
        handler: ChunkHandler,
    ) -> list[ChunkSummary]:
        return [self.retry.run(chunk, handler) for chunk in chunks]


@dataclass(slots=True)
class ThreadPoolChunkDispatcher:
    """Runs chunks concurrently on a thread pool.

    Every chunk is given the chance to finish; if any exhausted its retries the
    first such failure is raised once the pool has drained.
    """

    max_workers: int = 4
    retry: ChunkRetryPolicy = field(default_factory=ChunkRetryPolicy)

    def dispatch(
        self,
        chunks: Sequence[DeviceChunk],
        handler: ChunkHandler,
    ) -> list[ChunkSummary]:
        if not chunks:
            return []
        summaries: list[ChunkSummary] = []
        failures: list[ChunkRetriesExhaustedError] = []
        with ThreadPoolExecutor(
            max_workers=max(1, self.max_workers), thread_name_prefix="assetsync-chunk"
        ) as executor:
            futures = {executor.submit(self.retry.run, chunk, handler): chunk for chunk in chunks}
            for future in as_completed(futures):
                try:
                    summaries.append(future.result())
                except ChunkRetriesExhaustedError as exc:
                    failures.append(exc)
        if failures:
            raise min(failures, key=lambda failure: failure.sequence)
        return sorted(summaries, key=lambda summary: summary.sequence)
