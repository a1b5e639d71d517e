"""Semantic version validation, ordering, and increments."""

from __future__ import annotations

from functools import cmp_to_key
from typing import Iterable, Optional

from semver import Version

from .errors import InvalidIncrementLevelError, InvalidVersionError
from .increments import LevelLike, coerce_increment_level

__all__ = [
    "parse_version",
    "is_valid",
    "check_valid",
    "compare_extended",
    "greater_version",
    "leq",
    "increment",
    "git_reference_from_version",
]


def _strip_prefix(version: str) -> str:
    value = version.strip()
    if value.startswith(("v", "V")):
        return value[1:]
    return value


def parse_version(version: str) -> Version:
    """Parse a semantic version, optionally prefixed with ``v``."""
    try:
        return Version.parse(_strip_prefix(version))
    except (TypeError, ValueError) as exc:
        raise InvalidVersionError(version) from exc


def is_valid(version: object) -> bool:
    """Return True if version is a semantic version, optionally prefixed with ``v``."""
    if not isinstance(version, str):
        return False
    return Version.is_valid(_strip_prefix(version))


def check_valid(version: str) -> bool:
    """Raise InvalidVersionError unless version is valid."""
    if not is_valid(version):
        raise InvalidVersionError(version)
    return True


def compare_extended(first: str, second: str) -> int:
    """Compare two versions, breaking precedence ties on the full string.

    >>> compare_extended("2.1.1", "2.1.0+rev1")
    1
    >>> compare_extended("2.1.1+rev1", "2.1.1+rev2")
    -1
    """
    result = parse_version(first).compare(parse_version(second))
    if result != 0:
        return result
    if first == second:
        return 0
    return 1 if first > second else -1


def greater_version(versions: Iterable[str]) -> Optional[str]:
    """Return the greatest version, or None when there are none."""
    ordered = sorted(versions, key=cmp_to_key(compare_extended))
    if not ordered:
        return None
    return ordered[-1].strip()


def leq(first: str, second: str) -> bool:
    """Return True if first sorts at or below second."""
    return compare_extended(first, second) <= 0


def increment(version: str, level: LevelLike) -> str:
    """Increment a version following semver.

    Pre-releases are promoted rather than bumped when they already sit on the
    requested boundary, so ``1.0.0-rc.1`` increments to ``1.0.0`` for
    ``major``. Build metadata is dropped.
    """
    current = parse_version(version)
    resolved = coerce_increment_level(level)
    if resolved is None:
        raise InvalidIncrementLevelError(level)
    # next_version treats build metadata like a pre-release; drop it first.
    return str(current.replace(build=None).next_version(resolved.value))


def git_reference_from_version(version: str) -> str:
    """Return the ``v``-prefixed git reference for a version."""
    if version.startswith("v"):
        return version
    return f"v{version}"
