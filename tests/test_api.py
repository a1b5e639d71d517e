from __future__ import annotations

import json
from pathlib import Path

import pytest

from bumpline import Release
from bumpline.config import Config, save_config
from bumpline.errors import EmptyCommitSetError
from bumpline.increments import IncrementLevel
from bumpline.version_files import InitPyTarget


def _bootstrap_project(tmp_path: Path) -> Path:
    project_dir = tmp_path / "project"
    (project_dir / "pkg").mkdir(parents=True)
    (project_dir / "pkg" / "__init__.py").write_text('__version__ = "0.1.0"\n', encoding="utf-8")
    (project_dir / "package.json").write_text('{"version": "0.1.0"}\n', encoding="utf-8")
    save_config(
        Config(changelog="NEWS.md", targets=[InitPyTarget(file="pkg/__init__.py")]),
        project_dir / "bumpline.yaml",
    )
    return project_dir


def test_python_api_computes_next_version(tmp_path: Path) -> None:
    client = Release(root=_bootstrap_project(tmp_path))

    assert client.resolve_level(["patch", None, "minor"]) is IncrementLevel.MINOR
    assert client.next_version("0.1.0", ["patch", None, "minor"]) == "0.2.0"
    with pytest.raises(EmptyCommitSetError):
        client.next_version("0.1.0", [None])


def test_python_api_updates_configured_targets(tmp_path: Path) -> None:
    project_dir = _bootstrap_project(tmp_path)
    client = Release(root=project_dir)

    updates = client.update_versions("0.2.0")

    assert [update.path for update in updates] == [project_dir.resolve() / "pkg" / "__init__.py"]
    assert (project_dir / "pkg" / "__init__.py").read_text(encoding="utf-8") == (
        '__version__ = "0.2.0"\n'
    )
    assert json.loads((project_dir / "package.json").read_text(encoding="utf-8")) == {
        "version": "0.1.0"
    }


def test_python_api_dry_run(tmp_path: Path) -> None:
    project_dir = _bootstrap_project(tmp_path)
    client = Release(root=project_dir)

    updates = client.update_versions("1.0.0", dry_run=True)

    assert updates[0].old_version == "0.1.0"
    assert updates[0].new_version == "1.0.0"
    assert '"0.1.0"' in (project_dir / "pkg" / "__init__.py").read_text(encoding="utf-8")


def test_python_api_changelog_round_trip(tmp_path: Path) -> None:
    project_dir = _bootstrap_project(tmp_path)
    client = Release(root=project_dir)

    path = client.add_changelog_entry("## 0.1.0\n\n- initial\n")
    client.add_changelog_entry("## 0.2.0\n\n- second\n")

    assert path == project_dir.resolve() / "NEWS.md"
    assert client.documented_versions() == ["0.2.0", "0.1.0"]


def test_python_api_explicit_config(tmp_path: Path) -> None:
    project_dir = _bootstrap_project(tmp_path)
    other_config = tmp_path / "other.yaml"
    save_config(Config(changelog="HISTORY.md"), other_config)

    client = Release(root=project_dir, config=other_config)

    assert client.context.ensure_config().changelog == "HISTORY.md"
    assert client.documented_versions() == []
