"""Error types raised by bumpline operations.

All errors derive from :class:`click.ClickException` so that the command-line
entry point reports them on stderr and exits with a non-zero status, while
Python callers can catch :class:`ReleaseError` or one of its subclasses.
"""

from __future__ import annotations

import click

__all__ = [
    "ReleaseError",
    "InvalidIncrementLevelError",
    "EmptyCommitSetError",
    "InvalidVersionError",
    "MissingFileError",
    "PatternNotFoundError",
    "InvalidConfigurationError",
]


class ReleaseError(click.ClickException):
    """Base class for failures that abort a release run."""


class InvalidIncrementLevelError(ReleaseError):
    """An increment level outside of patch/minor/major was supplied."""

    def __init__(self, level: object) -> None:
        super().__init__(f"Invalid increment level: {level}")
        self.level = level


class EmptyCommitSetError(ReleaseError):
    """There are no qualifying commits, so there is nothing to release."""


class InvalidVersionError(ReleaseError):
    """A version string is not valid or cleans to an empty result."""

    def __init__(self, version: object) -> None:
        super().__init__(f"Invalid version: {version}")
        self.version = version


class MissingFileError(ReleaseError):
    """A file that must exist for the operation is absent."""

    def __init__(self, path: object) -> None:
        super().__init__(f"No such file or directory: {path}")
        self.path = path


class PatternNotFoundError(ReleaseError):
    """A locator pattern did not match its target exactly once."""


class InvalidConfigurationError(ReleaseError, ValueError):
    """Options passed to an operation are missing or malformed."""
