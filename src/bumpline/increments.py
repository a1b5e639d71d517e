"""Resolve a release-wide increment level from per-commit classifications."""

from __future__ import annotations

from enum import Enum
from typing import Callable, Iterable, Optional, TypeVar, Union

from .errors import EmptyCommitSetError, InvalidIncrementLevelError

__all__ = [
    "IncrementLevel",
    "INCREMENT_LEVELS",
    "LevelLike",
    "is_valid_increment_level",
    "coerce_increment_level",
    "higher_increment_level",
    "resolve_increment_level",
    "calculate_next_increment_level",
]

T = TypeVar("T")


class IncrementLevel(str, Enum):
    """Scope of change implied by a release, in ascending precedence."""

    PATCH = "patch"
    MINOR = "minor"
    MAJOR = "major"

    def __str__(self) -> str:
        return self.value


# Higher index wins in `higher_increment_level`.
INCREMENT_LEVELS: tuple[IncrementLevel, ...] = (
    IncrementLevel.PATCH,
    IncrementLevel.MINOR,
    IncrementLevel.MAJOR,
)

LevelLike = Union[IncrementLevel, str, None]


def is_valid_increment_level(level: object) -> bool:
    """Return True if level names one of patch, minor, or major."""
    if isinstance(level, IncrementLevel):
        return True
    if not isinstance(level, str):
        return False
    return level in {member.value for member in INCREMENT_LEVELS}


def coerce_increment_level(level: LevelLike) -> Optional[IncrementLevel]:
    """Convert a level or its string value to an IncrementLevel, preserving None."""
    if level is None:
        return None
    if not is_valid_increment_level(level):
        raise InvalidIncrementLevelError(level)
    return IncrementLevel(level)


def higher_increment_level(first: LevelLike, second: LevelLike) -> Optional[IncrementLevel]:
    """Return the higher of two increment levels.

    Any concrete level beats ``None``; two ``None`` values yield ``None``.

    >>> higher_increment_level("minor", "major")
    <IncrementLevel.MAJOR: 'major'>
    >>> higher_increment_level(None, "patch")
    <IncrementLevel.PATCH: 'patch'>
    """
    first_level = coerce_increment_level(first)
    second_level = coerce_increment_level(second)
    if first_level is None and second_level is None:
        return None
    first_index = INCREMENT_LEVELS.index(first_level) if first_level is not None else -1
    second_index = INCREMENT_LEVELS.index(second_level) if second_level is not None else -1
    return INCREMENT_LEVELS[max(first_index, second_index)]


def resolve_increment_level(levels: Iterable[LevelLike]) -> Optional[IncrementLevel]:
    """Reduce many per-commit levels to the single highest level.

    Raises EmptyCommitSetError when no levels are supplied. A sequence made
    only of ``None`` resolves to ``None``; whether that aborts the release is
    up to the caller.
    """
    items = list(levels)
    if not items:
        raise EmptyCommitSetError("No commits to calculate the next increment level from")

    current: Optional[IncrementLevel] = None
    for level in items:
        current = higher_increment_level(level, current)
    return current


def calculate_next_increment_level(
    commits: Iterable[T],
    get_level: Callable[[T], LevelLike],
) -> Optional[IncrementLevel]:
    """Classify each commit with get_level and resolve the release-wide level."""
    return resolve_increment_level(get_level(commit) for commit in commits)
