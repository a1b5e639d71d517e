"""Core package exports for bumpline."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version as metadata_version
from typing import TYPE_CHECKING, Any

__all__ = ["__version__", "Release", "create_cli_context"]

try:
    __version__ = metadata_version("bumpline")
except PackageNotFoundError:  # pragma: no cover - fallback for editable installs
    __version__ = "0.0.0"

if TYPE_CHECKING:  # pragma: no cover
    from .api import Release
    from .cli import create_cli_context


def __getattr__(name: str) -> Any:  # pragma: no cover - simple delegation
    if name == "Release":
        from .api import Release as _Release

        return _Release
    if name == "create_cli_context":
        from .cli import create_cli_context as _create_cli_context

        return _create_cli_context
    raise AttributeError(f"module 'bumpline' has no attribute {name!r}")
