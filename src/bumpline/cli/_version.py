"""Version commands: resolve increment levels, compute, clean, and write versions."""

from __future__ import annotations

import sys
from typing import Iterable, Optional, Sequence

import click
from rich.table import Table

from ..cleaning import Identity, clean_version, policy_from_option
from ..errors import EmptyCommitSetError
from ..increments import IncrementLevel, LevelLike, resolve_increment_level
from ..versions import git_reference_from_version, increment
from ..utils import console, emit_output, log_info, log_success, log_warning
from ..version_files import (
    VersionFileUpdate,
    resolve_default_targets,
    update_manifest_versions,
)
from ._core import CLIContext

__all__ = [
    "NONE_LEVEL",
    "parse_level_arguments",
    "compute_next_version",
    "run_bump",
    "level_cmd",
    "next_cmd",
    "clean_cmd",
    "bump_cmd",
]

NONE_LEVEL = "none"


def parse_level_arguments(values: Iterable[str]) -> list[LevelLike]:
    """Map command-line level tokens to levels; ``none`` and ``-`` mean no level."""
    levels: list[LevelLike] = []
    for value in values:
        token = value.strip().lower()
        if not token:
            continue
        levels.append(None if token in {NONE_LEVEL, "-"} else token)
    return levels


def _read_levels(values: Sequence[str]) -> list[LevelLike]:
    if values:
        return parse_level_arguments(values)
    if sys.stdin.isatty():
        return []
    return parse_level_arguments(sys.stdin.read().splitlines())


def compute_next_version(version: str, levels: Iterable[LevelLike]) -> str:
    """Increment version by the highest of levels.

    Raises EmptyCommitSetError when no level requires a release.
    """
    level: Optional[IncrementLevel] = resolve_increment_level(levels)
    if level is None:
        raise EmptyCommitSetError("No commit requires a release; nothing to do.")
    return increment(version, level)


def _render_updates(updates: Sequence[VersionFileUpdate], ctx: CLIContext, dry_run: bool) -> None:
    table = Table(title="Planned version updates" if dry_run else "Version updates")
    table.add_column("File")
    table.add_column("Old", style="version.old")
    table.add_column("New", style="version.new")
    for update in updates:
        try:
            label = str(update.path.relative_to(ctx.project_root))
        except ValueError:
            label = str(update.path)
        table.add_row(label, update.old_version or "-", update.new_version)
    console.print(table)


def run_bump(ctx: CLIContext, *, version: str, dry_run: bool = False) -> list[VersionFileUpdate]:
    """Write version to every configured or detected manifest."""
    config = ctx.ensure_config()
    targets = list(config.targets) or resolve_default_targets(ctx.project_root)
    if not targets:
        log_warning(f"no version files configured or detected in {ctx.project_root}.")
        return []

    updates = update_manifest_versions(
        targets,
        ctx.project_root,
        version,
        policy=config.clean,
        dry_run=dry_run,
    )
    _render_updates(updates, ctx, dry_run)
    if dry_run:
        log_info("dry run: no files were written.")
    else:
        changed = [update for update in updates if update.changed]
        log_success(f"updated {len(changed)} of {len(updates)} version file(s).")
    return updates


@click.command("level")
@click.argument("levels", nargs=-1)
def level_cmd(levels: tuple[str, ...]) -> None:
    """Print the highest of LEVELS (patch, minor, major, or none).

    Levels are read from standard input, one per line, when no arguments
    are given.
    """

    resolved = resolve_increment_level(_read_levels(levels))
    emit_output(str(resolved) if resolved is not None else NONE_LEVEL)


@click.command("next")
@click.argument("version")
@click.argument("levels", nargs=-1)
@click.option("--tag", is_flag=True, help="Print the version as a v-prefixed git reference.")
def next_cmd(version: str, levels: tuple[str, ...], tag: bool) -> None:
    """Print VERSION incremented by the highest of LEVELS."""

    next_version = compute_next_version(version, _read_levels(levels))
    emit_output(git_reference_from_version(next_version) if tag else next_version)


@click.command("clean")
@click.argument("version")
@click.option("--strip", "strip_pattern", help="Remove every match of this regex instead.")
@click.option("--no-clean", "raw", is_flag=True, help="Print the version unchanged.")
@click.pass_obj
def clean_cmd(ctx: CLIContext, version: str, strip_pattern: Optional[str], raw: bool) -> None:
    """Print VERSION normalized by the configured cleaning policy."""

    if strip_pattern is not None and raw:
        raise click.ClickException("Use only one of --strip or --no-clean, not both.")
    if raw:
        policy = Identity()
    elif strip_pattern is not None:
        policy = policy_from_option(strip_pattern)
    else:
        policy = ctx.ensure_config().clean
    emit_output(clean_version(policy, version))


@click.command("bump")
@click.argument("version")
@click.option("--dry-run", is_flag=True, help="Show the planned updates without writing.")
@click.pass_obj
def bump_cmd(ctx: CLIContext, version: str, dry_run: bool) -> None:
    """Write VERSION into every configured manifest."""

    run_bump(ctx, version=version, dry_run=dry_run)
