"""Core CLI infrastructure: context, the command group, and the entry point."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from importlib.metadata import PackageNotFoundError, version as metadata_version
from pathlib import Path
from typing import Optional

import click

from .. import __version__ as package_version
from ..config import Config, default_config_path, load_config, load_project_config
from ..utils import abort_on_user_interrupt, configure_logging, log_debug

__all__ = [
    "CLIContext",
    "VERSION_FLAGS",
    "create_cli_context",
    "_create_cli_group",
    "main",
]

VERSION_FLAGS = {"--version", "-V"}


def _resolve_cli_version() -> str:
    try:
        return metadata_version("bumpline")
    except PackageNotFoundError:
        return package_version


@dataclass
class CLIContext:
    """Shared command context."""

    project_root: Path
    config_path: Path
    _config: Optional[Config] = None

    def ensure_config(self) -> Config:
        if self._config is None:
            if self.config_path.exists():
                self._config = load_config(self.config_path)
            else:
                log_debug(f"no config at {self.config_path}, using defaults")
                self._config = load_project_config(self.project_root)
        return self._config

    def reset_config(self, config: Config) -> None:
        self._config = config

    def resolve_path(self, value: str | Path) -> Path:
        """Resolve a path relative to the project root."""
        path = Path(value).expanduser()
        if path.is_absolute():
            return path
        return self.project_root / path


def _resolve_project_root(value: Path) -> Path:
    resolved = value.resolve()
    for candidate in [resolved] + list(resolved.parents):
        if default_config_path(candidate).is_file():
            return candidate
    return resolved


def create_cli_context(
    *,
    root: Path | None = None,
    config: Optional[Path] = None,
    debug: bool = False,
) -> CLIContext:
    """Return a CLIContext using the same resolution logic as the CLI entry point."""

    configure_logging(debug)

    if root is None:
        resolved_root = _resolve_project_root(Path("."))
    else:
        resolved_root = root.resolve()

    config_path = config.resolve() if config else default_config_path(resolved_root)
    log_debug(f"resolved project root: {resolved_root}")
    log_debug(f"using config path: {config_path}")
    return CLIContext(project_root=resolved_root, config_path=config_path)


def _create_cli_group() -> click.Group:
    """Create the main CLI group. Called after all commands are defined."""

    @click.group(context_settings={"help_option_names": ["-h", "--help"]})
    @click.option(
        "--root",
        type=click.Path(path_type=Path, exists=True, file_okay=False),
        help="Project root containing the manifests and changelog.",
    )
    @click.option(
        "--config",
        type=click.Path(path_type=Path, dir_okay=False),
        help="Path to an explicit bumpline config YAML file.",
    )
    @click.option(
        "--debug",
        "-d",
        is_flag=True,
        help="Enable debug logging.",
    )
    @click.pass_context
    def _cli(
        ctx: click.Context,
        root: Path | None,
        config: Optional[Path],
        debug: bool,
    ) -> None:
        """Compute release versions and keep manifests and changelogs in sync."""

        ctx.obj = create_cli_context(root=root, config=config, debug=debug)

    return click.version_option(version=_resolve_cli_version())(_cli)


def main(argv: list[str] | None = None) -> int:
    """Entry point for console_scripts."""
    from . import cli

    args = list(argv) if argv is not None else list(sys.argv[1:])

    if any(flag in args for flag in VERSION_FLAGS):
        click.echo(_resolve_cli_version())
        return 0

    try:
        cli.main(args=args, prog_name="bumpline", standalone_mode=False)
    except click.ClickException as exc:
        exc.show(file=sys.stderr)
        exit_code = getattr(exc, "exit_code", 1)
        return exit_code if isinstance(exit_code, int) else 1
    except (click.exceptions.Abort, KeyboardInterrupt) as exc:
        try:
            abort_on_user_interrupt(exc)
        except click.exceptions.Exit as exit_exc:
            exit_code = getattr(exit_exc, "exit_code", 130)
            return exit_code if isinstance(exit_code, int) else 130
    except SystemExit as exc:
        return exc.code if isinstance(exc.code, int) else 0
    return 0
