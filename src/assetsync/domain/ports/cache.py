"""Key-value cache port for resolved reference identities."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class ReferenceCache(Protocol):
    """Shared between chunk workers, so implementations must be thread-safe."""

    def get(self, key: str) -> int | None: ...

    def put(self, key: str, value: int, ttl_seconds: float) -> None: ...

    def delete(self, key: str) -> None: ...

    def clear(self) -> None: ...
