"""Python-friendly facade for invoking bumpline functionality."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional

from .cli import (
    CLIContext,
    compute_next_version,
    create_cli_context,
    run_add_entry,
    run_bump,
    run_documented_versions,
)
from .increments import IncrementLevel, LevelLike, resolve_increment_level
from .version_files import VersionFileUpdate


class Release:
    """High-level helper that mirrors the CLI commands for Python callers."""

    def __init__(
        self,
        *,
        root: Path | str | None = None,
        config: Path | str | None = None,
        debug: bool = False,
    ) -> None:
        resolved_root = Path(root) if root is not None else None
        resolved_config = Path(config) if config is not None else None
        self._ctx = create_cli_context(root=resolved_root, config=resolved_config, debug=debug)

    @property
    def context(self) -> CLIContext:
        """Expose the underlying CLIContext for advanced scenarios."""

        return self._ctx

    def resolve_level(self, levels: Iterable[LevelLike]) -> Optional[IncrementLevel]:
        """Return the highest increment level, as ``bumpline level`` prints it."""

        return resolve_increment_level(levels)

    def next_version(self, version: str, levels: Iterable[LevelLike]) -> str:
        """Return version incremented by the highest of levels."""

        return compute_next_version(version, levels)

    def update_versions(self, version: str, *, dry_run: bool = False) -> list[VersionFileUpdate]:
        """Write version into every configured or detected manifest."""

        return run_bump(self._ctx, version=version, dry_run=dry_run)

    def add_changelog_entry(
        self,
        entry: str,
        *,
        file: Path | str | None = None,
        from_line: Optional[int] = None,
    ) -> Path:
        """Merge a rendered entry into the changelog and return its path."""

        return run_add_entry(
            self._ctx,
            entry=entry,
            file=Path(file) if file is not None else None,
            from_line=from_line,
        )

    def documented_versions(self, *, file: Path | str | None = None) -> list[str]:
        """Return the versions named in changelog headings."""

        return run_documented_versions(self._ctx, file=Path(file) if file is not None else None)
