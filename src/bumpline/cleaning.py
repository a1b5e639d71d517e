"""Version cleaning policies applied before a version is written anywhere."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Pattern, Union

from .errors import InvalidConfigurationError, InvalidVersionError
from .versions import parse_version

__all__ = [
    "StandardClean",
    "PatternStrip",
    "Identity",
    "CleaningPolicy",
    "DEFAULT_POLICY",
    "clean",
    "clean_version",
    "policy_from_option",
    "dump_policy",
]


@dataclass(frozen=True)
class StandardClean:
    """Canonical semver normalization."""


@dataclass(frozen=True)
class PatternStrip:
    """Remove every match of a regular expression."""

    pattern: Pattern[str]


@dataclass(frozen=True)
class Identity:
    """Leave the version unchanged."""


CleaningPolicy = Union[StandardClean, PatternStrip, Identity]

DEFAULT_POLICY: CleaningPolicy = StandardClean()


def _standard_clean(version: str) -> str:
    try:
        return str(parse_version(version.strip().lstrip("=")))
    except InvalidVersionError:
        return ""


def clean(policy: CleaningPolicy, version: str) -> str:
    """Return the cleaned version, or an empty string if cleaning failed."""
    if isinstance(policy, Identity):
        return version
    if isinstance(policy, PatternStrip):
        return policy.pattern.sub("", version)
    return _standard_clean(version)


def clean_version(policy: CleaningPolicy, version: str) -> str:
    """Clean version and raise InvalidVersionError if nothing usable remains."""
    cleaned = clean(policy, version)
    if not cleaned:
        raise InvalidVersionError(version)
    return cleaned


def policy_from_option(value: object) -> CleaningPolicy:
    """Translate a ``clean`` config option into a policy.

    ``True`` (or a missing value) selects the standard semver clean, ``False``
    disables cleaning, and a string or compiled pattern strips its matches.
    """
    if value is None or value is True:
        return StandardClean()
    if value is False:
        return Identity()
    if isinstance(value, re.Pattern):
        return PatternStrip(value)
    if isinstance(value, str):
        if not value:
            raise InvalidConfigurationError("Option 'clean' cannot be an empty pattern.")
        try:
            return PatternStrip(re.compile(value))
        except re.error as exc:
            raise InvalidConfigurationError(
                f"Option 'clean' is not a valid regular expression: {exc}"
            ) from exc
    raise InvalidConfigurationError(
        "Option 'clean' must be a boolean or a regular expression string."
    )


def dump_policy(policy: CleaningPolicy) -> bool | str:
    """Return the config representation of a policy."""
    if isinstance(policy, Identity):
        return False
    if isinstance(policy, PatternStrip):
        return policy.pattern.pattern
    return True
