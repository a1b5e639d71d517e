"""Changelog commands."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

import click

from ..changelog import documented_versions, latest_documented_version, prepend_entry
from ..utils import emit_output, log_success
from ._core import CLIContext

__all__ = [
    "resolve_changelog_path",
    "run_add_entry",
    "run_documented_versions",
    "changelog_group",
]


def resolve_changelog_path(ctx: CLIContext, file: Optional[Path]) -> Path:
    """Return the explicit changelog path or the configured one."""
    if file is not None:
        return ctx.resolve_path(file)
    return ctx.resolve_path(ctx.ensure_config().changelog)


def _read_entry_file(path: Path) -> str:
    """Read entry text from file or stdin (if path is '-')."""
    if str(path) == "-":
        if sys.stdin.isatty():
            raise click.ClickException("No input provided on stdin. Pipe content or use --entry.")
        return sys.stdin.read()
    if not path.exists():
        raise click.ClickException(f"Entry file not found: {path}")
    return path.read_text(encoding="utf-8")


def run_add_entry(
    ctx: CLIContext,
    *,
    entry: str,
    file: Optional[Path] = None,
    from_line: Optional[int] = None,
) -> Path:
    """Merge entry into the changelog and return its path."""
    path = resolve_changelog_path(ctx, file)
    line = ctx.ensure_config().from_line if from_line is None else from_line
    prepend_entry(path, entry, line)
    log_success(f"added entry to {path}")
    return path


def run_documented_versions(ctx: CLIContext, *, file: Optional[Path] = None) -> list[str]:
    """Return the versions documented in the changelog headings."""
    path = resolve_changelog_path(ctx, file)
    return documented_versions(path, ctx.ensure_config().clean)


@click.group("changelog")
def changelog_group() -> None:
    """Add entries to and inspect the changelog."""


@changelog_group.command("add")
@click.option("--entry", help="Entry text to insert.")
@click.option(
    "--entry-file",
    type=click.Path(path_type=Path, dir_okay=False, allow_dash=True),
    help="Read the entry from a file, or '-' for stdin.",
)
@click.option(
    "--file",
    type=click.Path(path_type=Path, dir_okay=False),
    help="Changelog file (defaults to the configured changelog).",
)
@click.option(
    "--from-line",
    type=click.IntRange(min=0),
    default=None,
    help="Insert the entry before this line (0 is the top).",
)
@click.pass_obj
def changelog_add_cmd(
    ctx: CLIContext,
    entry: Optional[str],
    entry_file: Optional[Path],
    file: Optional[Path],
    from_line: Optional[int],
) -> None:
    """Insert a rendered entry into the changelog."""

    if entry is not None and entry_file is not None:
        raise click.ClickException("Use only one of --entry or --entry-file, not both.")
    if entry is None and entry_file is None:
        raise click.ClickException("Provide the entry with --entry or --entry-file.")
    text = entry if entry is not None else _read_entry_file(entry_file)  # type: ignore[arg-type]
    run_add_entry(ctx, entry=text, file=file, from_line=from_line)


@changelog_group.command("versions")
@click.option(
    "--file",
    type=click.Path(path_type=Path, dir_okay=False),
    help="Changelog file (defaults to the configured changelog).",
)
@click.option("--latest", is_flag=True, help="Print only the greatest documented version.")
@click.pass_obj
def changelog_versions_cmd(ctx: CLIContext, file: Optional[Path], latest: bool) -> None:
    """List the versions documented in changelog headings."""

    versions = run_documented_versions(ctx, file=file)
    if latest:
        greatest = latest_documented_version(versions)
        if greatest is None:
            raise click.ClickException(
                f"No versions documented in {resolve_changelog_path(ctx, file)}."
            )
        emit_output(greatest)
        return
    for version in versions:
        emit_output(version)
