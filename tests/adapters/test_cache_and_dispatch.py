from __future__ import annotations

import threading

import pytest

from assetsync.adapters.cache import InMemoryReferenceCache
from assetsync.adapters.dispatch import (
    ChunkRetryPolicy,
    InlineChunkDispatcher,
    ThreadPoolChunkDispatcher,
)
from assetsync.domain.errors import ChunkRetriesExhaustedError, RegistryUnavailableError
from assetsync.domain.orchestrator import DeviceChunk
from assetsync.domain.outcomes import ChunkSummary


class _ManualClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


def _chunks(count: int) -> list[DeviceChunk]:
    return [DeviceChunk(sequence=number, devices=()) for number in range(1, count + 1)]


def test_cache_entries_expire() -> None:
    clock = _ManualClock()
    cache = InMemoryReferenceCache(clock=clock)
    cache.put("manufacturer:apple", 7, ttl_seconds=60)

    clock.now += 59
    assert cache.get("manufacturer:apple") == 7

    clock.now += 1
    assert cache.get("manufacturer:apple") is None
    assert len(cache) == 0


def test_cache_put_overwrites_and_delete_removes() -> None:
    cache = InMemoryReferenceCache()
    cache.put("category:laptops", 1, 60)
    cache.put("category:laptops", 2, 60)

    assert cache.get("category:laptops") == 2

    cache.delete("category:laptops")
    cache.delete("category:missing")
    assert cache.get("category:laptops") is None


def test_retry_policy_retries_whole_chunk() -> None:
    calls: list[int] = []
    sleeps: list[float] = []

    def flaky(chunk: DeviceChunk) -> ChunkSummary:
        calls.append(chunk.sequence)
        if len(calls) < 3:
            raise RegistryUnavailableError("lost connection")
        return ChunkSummary(sequence=chunk.sequence, processed=len(chunk))

    policy = ChunkRetryPolicy(attempts=3, backoff_seconds=0.5, sleep=sleeps.append)

    summary = policy.run(DeviceChunk(sequence=4, devices=()), flaky)

    assert summary.sequence == 4
    assert calls == [4, 4, 4]
    assert sleeps == [0.5, 1.0]


def test_retry_policy_gives_up() -> None:
    def broken(_chunk: DeviceChunk) -> ChunkSummary:
        raise RegistryUnavailableError("still down")

    with pytest.raises(ChunkRetriesExhaustedError) as excinfo:
        ChunkRetryPolicy(attempts=2).run(DeviceChunk(sequence=2, devices=()), broken)

    assert excinfo.value.attempts == 2
    assert isinstance(excinfo.value.__cause__, RegistryUnavailableError)


def test_retry_policy_does_not_retry_non_fatal_errors() -> None:
    calls: list[int] = []

    def buggy(chunk: DeviceChunk) -> ChunkSummary:
        calls.append(chunk.sequence)
        raise KeyError("serial")

    with pytest.raises(KeyError):
        ChunkRetryPolicy(attempts=3).run(DeviceChunk(sequence=1, devices=()), buggy)

    assert calls == [1]


def test_inline_dispatcher_preserves_order() -> None:
    order: list[int] = []

    def handler(chunk: DeviceChunk) -> ChunkSummary:
        order.append(chunk.sequence)
        return ChunkSummary(sequence=chunk.sequence)

    summaries = InlineChunkDispatcher().dispatch(_chunks(3), handler)

    assert order == [1, 2, 3]
    assert [summary.sequence for summary in summaries] == [1, 2, 3]


def test_thread_pool_dispatcher_runs_every_chunk() -> None:
    threads: set[str] = set()
    lock = threading.Lock()

    def handler(chunk: DeviceChunk) -> ChunkSummary:
        with lock:
            threads.add(threading.current_thread().name)
        return ChunkSummary(sequence=chunk.sequence, processed=chunk.sequence)

    summaries = ThreadPoolChunkDispatcher(max_workers=3).dispatch(_chunks(6), handler)

    assert [summary.sequence for summary in summaries] == [1, 2, 3, 4, 5, 6]
    assert all(name.startswith("assetsync-chunk") for name in threads)


def test_thread_pool_dispatcher_finishes_before_raising() -> None:
    finished: list[int] = []
    lock = threading.Lock()

    def handler(chunk: DeviceChunk) -> ChunkSummary:
        if chunk.sequence in (2, 4):
            raise RegistryUnavailableError(f"chunk {chunk.sequence} failed")
        with lock:
            finished.append(chunk.sequence)
        return ChunkSummary(sequence=chunk.sequence)

    dispatcher = ThreadPoolChunkDispatcher(max_workers=2, retry=ChunkRetryPolicy(attempts=1))

    with pytest.raises(ChunkRetriesExhaustedError) as excinfo:
        dispatcher.dispatch(_chunks(5), handler)

    assert excinfo.value.sequence == 2
    assert sorted(finished) == [1, 3, 5]


def test_dispatch_of_no_chunks() -> None:
    def handler(chunk: DeviceChunk) -> ChunkSummary:
        raise AssertionError("no chunk expected")

    assert ThreadPoolChunkDispatcher().dispatch([], handler) == []
    assert InlineChunkDispatcher().dispatch([], handler) == []
