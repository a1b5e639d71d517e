"""Configuration helpers for bumpline."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Mapping, MutableMapping, Optional

import yaml

from .cleaning import DEFAULT_POLICY, CleaningPolicy, StandardClean, dump_policy, policy_from_option
from .errors import InvalidConfigurationError
from .version_files import (
    CrossFileTarget,
    InitPyTarget,
    JsonFieldTarget,
    ManifestTarget,
    PyprojectTarget,
    QuotedTarget,
    parse_regex_flags,
)

CONFIG_FILENAME = "bumpline.yaml"
DEFAULT_CHANGELOG = "CHANGELOG.md"


def default_config_path(project_root: Path) -> Path:
    """Return the default config path for a project root."""
    return project_root / CONFIG_FILENAME


@dataclass
class Config:
    """Structured representation of the bumpline config."""

    changelog: str = DEFAULT_CHANGELOG
    from_line: int = 0
    clean: CleaningPolicy = DEFAULT_POLICY
    targets: list[ManifestTarget] = field(default_factory=list)


def _optional_str(raw: Mapping[str, Any], key: str, context: str) -> Optional[str]:
    value = raw.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidConfigurationError(f"{context} option '{key}' must be a string.")
    stripped = value.strip()
    return stripped or None


def _target_clean(raw: Mapping[str, Any]) -> Optional[CleaningPolicy]:
    if "clean" not in raw:
        return None
    return policy_from_option(raw["clean"])


def _json_target(raw: Mapping[str, Any], context: str) -> ManifestTarget:
    return JsonFieldTarget(
        file=_optional_str(raw, "file", context) or "package.json",
        field=_optional_str(raw, "field", context) or "version",
        clean=_target_clean(raw),
    )


def _cargo_target(raw: Mapping[str, Any], context: str) -> ManifestTarget:
    return CrossFileTarget(
        definition_file=_optional_str(raw, "file", context) or "Cargo.toml",
        lock_file=_optional_str(raw, "lock_file", context) or "Cargo.lock",
        section=_optional_str(raw, "section", context) or "package",
        clean=_target_clean(raw),
    )


def _init_py_target(raw: Mapping[str, Any], context: str) -> ManifestTarget:
    return InitPyTarget(
        file=_optional_str(raw, "file", context) or "__init__.py",
        clean=_target_clean(raw),
    )


def _pyproject_target(raw: Mapping[str, Any], context: str) -> ManifestTarget:
    return PyprojectTarget(
        file=_optional_str(raw, "file", context) or "pyproject.toml",
        clean=_target_clean(raw),
    )


def _quoted_target(raw: Mapping[str, Any], context: str) -> ManifestTarget:
    file = _optional_str(raw, "file", context)
    if file is None:
        raise InvalidConfigurationError(f"{context} is missing required option 'file'.")
    regex = raw.get("regex")
    if not isinstance(regex, str) or not regex:
        raise InvalidConfigurationError(f"{context} is missing required option 'regex'.")
    regex_flags = _optional_str(raw, "regex_flags", context) or ""
    parse_regex_flags(regex_flags)
    base_dir = _optional_str(raw, "base_dir", context) or "."
    if Path(base_dir).is_absolute():
        raise InvalidConfigurationError(f"{context} option 'base_dir' cannot be an absolute path.")
    if Path(file).is_absolute():
        raise InvalidConfigurationError(f"{context} option 'file' cannot be an absolute path.")
    return QuotedTarget(
        file=file,
        regex=regex,
        regex_flags=regex_flags,
        base_dir=base_dir,
        clean=_target_clean(raw),
    )


TARGET_PARSERS: dict[str, Callable[[Mapping[str, Any], str], ManifestTarget]] = {
    "npm": _json_target,
    "json": _json_target,
    "cargo": _cargo_target,
    "init-py": _init_py_target,
    "pyproject": _pyproject_target,
    "quoted": _quoted_target,
}


def parse_target(raw: object, index: int = 0) -> ManifestTarget:
    """Build a manifest target from one entry of the ``targets`` list."""
    context = f"Target #{index + 1}"
    if isinstance(raw, str):
        raw = {"kind": raw}
    if not isinstance(raw, Mapping):
        raise InvalidConfigurationError(f"{context} must be a mapping or a kind name.")
    kind = raw.get("kind")
    if not isinstance(kind, str) or not kind.strip():
        raise InvalidConfigurationError(f"{context} is missing required option 'kind'.")
    parser = TARGET_PARSERS.get(kind.strip().lower())
    if parser is None:
        allowed = ", ".join(TARGET_PARSERS)
        raise InvalidConfigurationError(
            f"{context} has unknown kind '{kind}'. Supported kinds: {allowed}."
        )
    return parser(raw, context)


def parse_config(raw: object) -> Config:
    """Validate a raw mapping and return a Config."""
    if raw is None:
        raw = {}
    if not isinstance(raw, MutableMapping):
        raise InvalidConfigurationError("Config root must be a mapping")

    changelog = _optional_str(raw, "changelog", "Config") or DEFAULT_CHANGELOG

    from_line_raw = raw.get("from_line", 0)
    if isinstance(from_line_raw, bool) or not isinstance(from_line_raw, int):
        raise InvalidConfigurationError("Config option 'from_line' must be an integer.")
    if from_line_raw < 0:
        raise InvalidConfigurationError("Config option 'from_line' must not be negative.")

    clean = policy_from_option(raw.get("clean"))

    targets_raw = raw.get("targets")
    targets: list[ManifestTarget] = []
    if targets_raw is not None:
        if not isinstance(targets_raw, list):
            raise InvalidConfigurationError("Config option 'targets' must be a list.")
        targets = [parse_target(item, index) for index, item in enumerate(targets_raw)]

    return Config(changelog=changelog, from_line=from_line_raw, clean=clean, targets=targets)


def load_config(path: Path) -> Config:
    """Load the configuration from disk."""
    with path.open("r", encoding="utf-8") as handle:
        try:
            raw = yaml.safe_load(handle)
        except yaml.YAMLError as exc:
            raise InvalidConfigurationError(f"Cannot parse YAML in {path}: {exc}") from exc
    return parse_config(raw)


def load_project_config(project_root: Path) -> Config:
    """Load the project config, or return defaults when none exists."""
    config_path = default_config_path(project_root)
    if config_path.exists():
        return load_config(config_path)
    return Config()


def _dump_target(target: ManifestTarget) -> dict[str, Any]:
    data: dict[str, Any] = {"kind": target.kind}
    if isinstance(target, JsonFieldTarget):
        if target.file != "package.json":
            data["file"] = target.file
        if target.field != "version":
            data["field"] = target.field
    elif isinstance(target, CrossFileTarget):
        if target.definition_file != "Cargo.toml":
            data["file"] = target.definition_file
        if target.lock_file != "Cargo.lock":
            data["lock_file"] = target.lock_file
        if target.section != "package":
            data["section"] = target.section
    elif isinstance(target, InitPyTarget):
        if target.file != "__init__.py":
            data["file"] = target.file
    elif isinstance(target, PyprojectTarget):
        if target.file != "pyproject.toml":
            data["file"] = target.file
    else:
        data["file"] = target.file
        data["regex"] = target.regex if isinstance(target.regex, str) else target.regex.pattern
        if target.regex_flags:
            data["regex_flags"] = target.regex_flags
        if target.base_dir != ".":
            data["base_dir"] = target.base_dir
    if target.clean is not None:
        data["clean"] = dump_policy(target.clean)
    return data


def dump_config(config: Config) -> dict[str, Any]:
    """Convert a Config into a plain dictionary suitable for YAML output."""
    data: dict[str, Any] = {}
    if config.changelog != DEFAULT_CHANGELOG:
        data["changelog"] = config.changelog
    if config.from_line:
        data["from_line"] = config.from_line
    if not isinstance(config.clean, StandardClean):
        data["clean"] = dump_policy(config.clean)
    if config.targets:
        data["targets"] = [_dump_target(target) for target in config.targets]
    return data


def save_config(config: Config, path: Path) -> None:
    """Write the configuration to disk."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as handle:
        yaml.safe_dump(dump_config(config), handle, sort_keys=False)
