"""AI response caching layer for agent-backed language model calls."""

from __future__ import annotations

from importlib import metadata

__all__ = ("__version__",)


def _detect_version() -> str:
    """Return the installed package version or a placeholder during development."""
    try:
        return metadata.version("aicache")
    except metadata.PackageNotFoundError:
        return "0.0.0"


__version__ = _detect_version()
