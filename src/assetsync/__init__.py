"""Device inventory reconciliation and enrichment."""

from __future__ import annotations

from importlib import metadata

try:
    __version__ = metadata.version("assetsync")
except metadata.PackageNotFoundError:  # pragma: no cover - local source tree
    __version__ = "0.0.0+local"

__all__ = ["__version__"]
