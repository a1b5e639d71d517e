"""Helpers for planning and applying manifest version updates.

Versions are rewritten with anchored regular expressions rather than by
parsing and re-serializing each manifest, so comments and formatting survive.
Every locator must identify exactly one quoted literal; only the payload
between the quotes is replaced.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from pathlib import Path
from typing import ClassVar, Optional, Pattern, Sequence, Union

from .cleaning import DEFAULT_POLICY, CleaningPolicy, Identity, clean_version
from .errors import (
    InvalidConfigurationError,
    MissingFileError,
    PatternNotFoundError,
    ReleaseError,
)
from .utils import atomic_write_text, log_debug, log_warning, read_text

__all__ = [
    "SUPPORTED_AUTO_VERSION_FILES",
    "VersionFileUpdate",
    "JsonFieldTarget",
    "CrossFileTarget",
    "InitPyTarget",
    "PyprojectTarget",
    "QuotedTarget",
    "ManifestTarget",
    "anchored_pattern",
    "parse_regex_flags",
    "update_json_field",
    "update_anchored",
    "update_cross_file",
    "update_init_py",
    "update_pyproject",
    "update_quoted",
    "update_manifest_version",
    "update_manifest_versions",
    "resolve_default_targets",
    "apply_version_file_updates",
]

SUPPORTED_AUTO_VERSION_FILES: tuple[str, ...] = (
    "package.json",
    "Cargo.toml",
    "pyproject.toml",
)

_QUOTED_VALUE = r"(?P<quote>[\"'])(?P<value>.*?)(?P=quote)"
_NUMERIC_VERSION = r"(?:0|[1-9]\d*)\.(?:0|[1-9]\d*)\.(?:0|[1-9]\d*)"
_INIT_PY_PATTERN = re.compile(
    rf"(?P<prefix>__version__\s*=\s*)(?P<quote>[\"'])(?P<value>{_NUMERIC_VERSION})(?P=quote)"
)
_JSON_INDENT_PATTERN = re.compile(r"\n([ \t]+)\S")

_TOML_HEADER = re.compile(
    r"^[ \t]*\[(?P<array>\[)?[ \t]*(?P<table>[^\[\]\n]+?)[ \t]*\](?(array)\])[ \t]*(?:#.*)?\r?$",
    re.MULTILINE,
)
_TOML_VERSION_KEY = re.compile(rf"^[ \t]*version[ \t]*=[ \t]*{_QUOTED_VALUE}", re.MULTILINE)

_REGEX_FLAGS: dict[str, int] = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
    "x": re.VERBOSE,
    # Accepted and ignored: patterns are always Unicode-aware and single-match.
    "u": 0,
    "g": 0,
}


@dataclass(frozen=True)
class VersionFileUpdate:
    """In-memory representation of one file update."""

    path: Path
    old_version: str | None
    new_version: str
    content: str

    @property
    def changed(self) -> bool:
        return self.old_version != self.new_version


@dataclass(frozen=True)
class JsonFieldTarget:
    """A top-level string field of a JSON document, e.g. ``package.json``."""

    kind: ClassVar[str] = "npm"

    file: str = "package.json"
    field: str = "version"
    clean: Optional[CleaningPolicy] = None


@dataclass(frozen=True)
class CrossFileTarget:
    """A definition file plus a lock file that repeats its version, e.g. Cargo."""

    kind: ClassVar[str] = "cargo"

    definition_file: str = "Cargo.toml"
    lock_file: str = "Cargo.lock"
    section: str = "package"
    clean: Optional[CleaningPolicy] = None


@dataclass(frozen=True)
class InitPyTarget:
    """A ``__version__ = "X.Y.Z"`` assignment in a Python module."""

    kind: ClassVar[str] = "init-py"

    file: str = "__init__.py"
    clean: Optional[CleaningPolicy] = None


@dataclass(frozen=True)
class PyprojectTarget:
    """The static version of ``[project]`` or ``[tool.poetry]``."""

    kind: ClassVar[str] = "pyproject"

    file: str = "pyproject.toml"
    clean: Optional[CleaningPolicy] = None


@dataclass(frozen=True)
class QuotedTarget:
    """A quoted literal immediately following a caller-supplied regex."""

    kind: ClassVar[str] = "quoted"

    file: str
    regex: Union[str, Pattern[str]]
    regex_flags: str = ""
    base_dir: str = "."
    clean: Optional[CleaningPolicy] = None


ManifestTarget = Union[JsonFieldTarget, CrossFileTarget, InitPyTarget, PyprojectTarget, QuotedTarget]


def parse_regex_flags(flags: str) -> int:
    """Translate flag letters such as ``"mi"`` into ``re`` flags."""
    value = 0
    for letter in dict.fromkeys(flags or ""):
        if letter not in _REGEX_FLAGS:
            allowed = ", ".join(_REGEX_FLAGS)
            raise InvalidConfigurationError(
                f"Unsupported regex flag '{letter}'. Supported flags: {allowed}."
            )
        value |= _REGEX_FLAGS[letter]
    return value


def anchored_pattern(prefix: Union[str, Pattern[str]], flags: int = 0) -> Pattern[str]:
    """Combine prefix with a capture of the quoted literal that directly follows it."""
    if isinstance(prefix, re.Pattern):
        source = prefix.pattern
        flags |= prefix.flags
    else:
        source = prefix
    try:
        return re.compile(f"(?P<prefix>{source}){_QUOTED_VALUE}", flags)
    except re.error as exc:
        raise InvalidConfigurationError(f"Invalid regex {source!r}: {exc}") from exc


def _read_version_file(path: Path) -> str:
    if not path.is_file():
        raise MissingFileError(path)
    return read_text(path)


def _replace_match(path: Path, content: str, match: re.Match[str], new_version: str) -> VersionFileUpdate:
    start, end = match.span("value")
    return VersionFileUpdate(
        path=path,
        old_version=match.group("value"),
        new_version=new_version,
        content=content[:start] + new_version + content[end:],
    )


def _plan_single_match(
    path: Path, content: str, pattern: Pattern[str], new_version: str
) -> VersionFileUpdate:
    matches = list(pattern.finditer(content))
    if not matches:
        raise PatternNotFoundError(f"Pattern does not match {path}: {pattern.pattern}")
    if len(matches) > 1:
        raise PatternNotFoundError(
            f"Pattern matches {path} {len(matches)} times, expected exactly once: "
            f"{pattern.pattern}"
        )
    return _replace_match(path, content, matches[0], new_version)


def _finish(updates: list[VersionFileUpdate], dry_run: bool) -> list[VersionFileUpdate]:
    if not dry_run:
        apply_version_file_updates(updates)
    return updates


def _detect_json_layout(content: str) -> tuple[str | None, tuple[str, str]]:
    match = _JSON_INDENT_PATTERN.search(content)
    if match is not None:
        return match.group(1), (",", ": ")
    if re.search(r'"\s*:\s', content):
        return None, (", ", ": ")
    return None, (",", ":")


def _plan_json_field_update(path: Path, new_version: str, field: str) -> VersionFileUpdate:
    content = _read_version_file(path)
    try:
        parsed = json.loads(content)
    except json.JSONDecodeError as exc:
        raise ReleaseError(f"Cannot parse JSON in {path}: {exc.msg}") from exc

    if not isinstance(parsed, dict):
        raise InvalidConfigurationError(f"Expected a JSON object in {path}.")

    old_value = parsed.get(field)
    if old_value is not None and not isinstance(old_value, str):
        raise ReleaseError(
            f"Expected '{field}' in {path} to be a string, got {type(old_value).__name__}."
        )
    parsed[field] = new_version

    indent, separators = _detect_json_layout(content)
    newline = "\r\n" if "\r\n" in content else "\n"
    updated = json.dumps(parsed, indent=indent, separators=separators, ensure_ascii=False)
    if newline != "\n":
        updated = updated.replace("\n", newline)
    if content.endswith("\n"):
        updated += newline
    return VersionFileUpdate(path=path, old_version=old_value, new_version=new_version, content=updated)


def update_json_field(
    path: Path,
    version: str,
    *,
    field: str = "version",
    policy: CleaningPolicy = DEFAULT_POLICY,
    dry_run: bool = False,
) -> list[VersionFileUpdate]:
    """Set a top-level JSON field to the cleaned version.

    All other fields keep their values and order. The document's indentation
    and trailing newline are preserved.
    """
    new_version = clean_version(policy, version)
    update = _plan_json_field_update(path, new_version, field)
    return _finish([update], dry_run)


def update_anchored(
    path: Path,
    prefix: Union[str, Pattern[str]],
    version: str,
    *,
    flags: int = 0,
    policy: CleaningPolicy = DEFAULT_POLICY,
    dry_run: bool = False,
) -> list[VersionFileUpdate]:
    """Replace the quoted literal that immediately follows prefix.

    The combined pattern must match exactly once. Only the text between the
    quotes changes; the quote character and every other byte are kept.
    """
    new_version = clean_version(policy, version)
    pattern = anchored_pattern(prefix, flags)
    content = _read_version_file(path)
    update = _plan_single_match(path, content, pattern, new_version)
    return _finish([update], dry_run)


def _section_name_pattern(section: str) -> Pattern[str]:
    # Capture the first `name = "..."` key after `[section]`; `[^\[]` stops at the next table.
    return re.compile(
        rf"\[{re.escape(section)}\][^\[]+?^[ \t]*name\s*=\s*(?P<quote>[\"'])(?P<value>.+?)(?P=quote)",
        re.MULTILINE,
    )


def _section_version_prefix(section: str) -> str:
    return rf"\[{re.escape(section)}\][^\[]+?^[ \t]*version\s*=\s*"


def _lock_version_prefix(name: str) -> str:
    return rf"^[ \t]*name\s*=\s*[\"']{re.escape(name)}[\"'][^\[]+?^[ \t]*version\s*=\s*"


def update_cross_file(
    definition: Path,
    lock: Path,
    version: str,
    *,
    section: str = "package",
    policy: CleaningPolicy = DEFAULT_POLICY,
    dry_run: bool = False,
) -> list[VersionFileUpdate]:
    """Update a definition file and the lock file entry keyed by its name.

    The lock file is written before the definition file. If the lock file
    cannot be updated the definition file is left untouched. If the
    definition file fails after the lock file was written, the lock file is
    not restored; a warning reports the inconsistency and the error is
    re-raised.
    """
    new_version = clean_version(policy, version)
    definition_content = _read_version_file(definition)
    name_match = _section_name_pattern(section).search(definition_content)
    if name_match is None:
        raise PatternNotFoundError(f"Package name not found in {definition}")
    package_name = name_match.group("value")
    log_debug(f"found package name '{package_name}' in {definition}")

    updates: list[VersionFileUpdate] = []
    if lock.is_file():
        lock_content = read_text(lock)
        lock_pattern = anchored_pattern(_lock_version_prefix(package_name), re.MULTILINE)
        lock_match = lock_pattern.search(lock_content)
        if lock_match is None:
            raise PatternNotFoundError(
                f"Version of package '{package_name}' not found in {lock}"
            )
        lock_update = _replace_match(lock, lock_content, lock_match, new_version)
        _finish([lock_update], dry_run)
        updates.append(lock_update)
    else:
        log_debug(f"no lock file at {lock}, updating {definition} only")

    definition_pattern = anchored_pattern(_section_version_prefix(section), re.MULTILINE)
    try:
        definition_update = _plan_single_match(
            definition, definition_content, definition_pattern, new_version
        )
        _finish([definition_update], dry_run)
    except ReleaseError:
        if updates and not dry_run:
            log_warning(
                f"{lock} was already updated to {new_version} but {definition} was not; "
                "the two files are now inconsistent."
            )
        raise
    updates.append(definition_update)
    return updates


def update_init_py(
    path: Path,
    version: str,
    *,
    policy: CleaningPolicy = DEFAULT_POLICY,
    dry_run: bool = False,
) -> list[VersionFileUpdate]:
    """Update a numeric ``__version__`` literal in a Python module."""
    new_version = clean_version(policy, version)
    content = _read_version_file(path)
    update = _plan_single_match(path, content, _INIT_PY_PATTERN, new_version)
    return _finish([update], dry_run)


def _toml_table_span(content: str, table: str) -> tuple[int, int] | None:
    """Return the body span of the first plain ``[table]`` header."""
    headers = list(_TOML_HEADER.finditer(content))
    for index, header in enumerate(headers):
        if header.group("array") or header.group("table") != table:
            continue
        end = headers[index + 1].start() if index + 1 < len(headers) else len(content)
        return header.end(), end
    return None


def update_pyproject(
    path: Path,
    version: str,
    *,
    policy: CleaningPolicy = DEFAULT_POLICY,
    dry_run: bool = False,
) -> list[VersionFileUpdate]:
    """Update the static version in ``[project]``, falling back to ``[tool.poetry]``."""
    new_version = clean_version(policy, version)
    content = _read_version_file(path)

    found_tables: list[str] = []
    for table in ("project", "tool.poetry"):
        span = _toml_table_span(content, table)
        if span is None:
            continue
        match = _TOML_VERSION_KEY.search(content, *span)
        if match is None:
            found_tables.append(table)
            continue
        update = _replace_match(path, content, match, new_version)
        return _finish([update], dry_run)

    if found_tables:
        raise PatternNotFoundError(
            f"{path} has a [{found_tables[0]}] table but no static 'version' field."
        )
    raise PatternNotFoundError(
        f"{path} is missing [project] and [tool.poetry] tables with a static 'version' field."
    )


def update_quoted(
    cwd: Path,
    version: str,
    *,
    file: str | None,
    regex: Union[str, Pattern[str], None],
    regex_flags: str = "",
    base_dir: str = ".",
    policy: CleaningPolicy = DEFAULT_POLICY,
    dry_run: bool = False,
) -> list[VersionFileUpdate]:
    """Update the quoted version following a configured regex in ``cwd/base_dir/file``."""
    if Path(base_dir).is_absolute():
        raise InvalidConfigurationError("base_dir option cannot be an absolute path")
    if not file:
        raise InvalidConfigurationError("Missing file option")
    if Path(file).is_absolute():
        raise InvalidConfigurationError("file option cannot be an absolute path")
    if regex is None or (isinstance(regex, str) and not regex):
        raise InvalidConfigurationError("Missing regex option")

    flags = parse_regex_flags(regex_flags)
    new_version = clean_version(policy, version)
    return update_anchored(
        cwd / base_dir / file,
        regex,
        new_version,
        flags=flags,
        policy=Identity(),
        dry_run=dry_run,
    )


def update_manifest_version(
    target: ManifestTarget,
    cwd: Path,
    version: str,
    *,
    policy: CleaningPolicy = DEFAULT_POLICY,
    dry_run: bool = False,
) -> list[VersionFileUpdate]:
    """Apply one configured target; its own cleaning policy wins over ``policy``."""
    effective = target.clean if target.clean is not None else policy
    if isinstance(target, JsonFieldTarget):
        return update_json_field(
            cwd / target.file, version, field=target.field, policy=effective, dry_run=dry_run
        )
    if isinstance(target, CrossFileTarget):
        return update_cross_file(
            cwd / target.definition_file,
            cwd / target.lock_file,
            version,
            section=target.section,
            policy=effective,
            dry_run=dry_run,
        )
    if isinstance(target, InitPyTarget):
        return update_init_py(cwd / target.file, version, policy=effective, dry_run=dry_run)
    if isinstance(target, PyprojectTarget):
        return update_pyproject(cwd / target.file, version, policy=effective, dry_run=dry_run)
    return update_quoted(
        cwd,
        version,
        file=target.file,
        regex=target.regex,
        regex_flags=target.regex_flags,
        base_dir=target.base_dir,
        policy=effective,
        dry_run=dry_run,
    )


def update_manifest_versions(
    targets: Sequence[ManifestTarget],
    cwd: Path,
    version: str,
    *,
    policy: CleaningPolicy = DEFAULT_POLICY,
    dry_run: bool = False,
) -> list[VersionFileUpdate]:
    """Apply targets in order, stopping at the first failure.

    Files written by earlier targets are not restored when a later one fails.
    """
    updates: list[VersionFileUpdate] = []
    for target in targets:
        log_debug(f"updating {target.kind} target")
        updates.extend(
            update_manifest_version(target, cwd, version, policy=policy, dry_run=dry_run)
        )
    return updates


def resolve_default_targets(cwd: Path) -> list[ManifestTarget]:
    """Detect well-known manifests in cwd in deterministic order."""
    targets: list[ManifestTarget] = []
    for filename in SUPPORTED_AUTO_VERSION_FILES:
        if not (cwd / filename).is_file():
            continue
        if filename == "package.json":
            targets.append(JsonFieldTarget())
        elif filename == "Cargo.toml":
            targets.append(CrossFileTarget())
        else:
            targets.append(PyprojectTarget())
    return targets


def apply_version_file_updates(updates: Sequence[VersionFileUpdate]) -> None:
    """Write planned version file updates to disk."""

    for update in updates:
        if not update.changed:
            log_debug(f"{update.path} already at {update.new_version}")
            continue
        atomic_write_text(update.path, update.content)
