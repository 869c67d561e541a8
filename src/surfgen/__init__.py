"""Procedural indexed-mesh construction and soap-film surface relaxation."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("surfgen")
except PackageNotFoundError:  # pragma: no cover - handled when package not installed
    __version__ = "unknown"
