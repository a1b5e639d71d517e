"""CLI package for bumpline.

This package contains the modular CLI implementation:
- _core.py: CLIContext, the command group, main entry point
- _version.py: level, next, clean, and bump commands
- _changelog.py: changelog command group
"""

from __future__ import annotations

from ._core import (
    CLIContext,
    VERSION_FLAGS,
    create_cli_context,
    _create_cli_group,
    main,
)
from ._version import (
    NONE_LEVEL,
    bump_cmd,
    clean_cmd,
    compute_next_version,
    level_cmd,
    next_cmd,
    parse_level_arguments,
    run_bump,
)
from ._changelog import (
    changelog_group,
    resolve_changelog_path,
    run_add_entry,
    run_documented_versions,
)

# Create the main CLI group
cli = _create_cli_group()

# Register all commands with the cli group
cli.add_command(level_cmd)
cli.add_command(next_cmd)
cli.add_command(clean_cmd)
cli.add_command(bump_cmd)
cli.add_command(changelog_group)


__all__ = [
    # Core
    "cli",
    "main",
    "CLIContext",
    "VERSION_FLAGS",
    "create_cli_context",
    # Version
    "NONE_LEVEL",
    "compute_next_version",
    "parse_level_arguments",
    "run_bump",
    "level_cmd",
    "next_cmd",
    "clean_cmd",
    "bump_cmd",
    # Changelog
    "changelog_group",
    "resolve_changelog_path",
    "run_add_entry",
    "run_documented_versions",
]
