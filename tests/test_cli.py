"""Integration-style tests for the bumpline CLI."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
import yaml
from click.testing import CliRunner, Result

from bumpline import __version__
from bumpline.cli import cli, main
from bumpline.cli._core import _resolve_project_root


def invoke(project_dir: Path, *args: str, input: str | None = None) -> Result:
    runner = CliRunner()
    return runner.invoke(cli, ["--root", str(project_dir), *args], input=input)


def test_cli_version_option(capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = main(["--version"])
    captured = capsys.readouterr()
    assert exit_code == 0
    assert captured.out.strip() == __version__


def test_level_prints_highest(tmp_path: Path) -> None:
    result = invoke(tmp_path, "level", "patch", "none", "minor")

    assert result.exit_code == 0, result.output
    assert result.output == "minor\n"


def test_level_reads_stdin(tmp_path: Path) -> None:
    result = invoke(tmp_path, "level", input="none\npatch\n\nnone\n")

    assert result.exit_code == 0, result.output
    assert result.output == "patch\n"


def test_level_all_none(tmp_path: Path) -> None:
    result = invoke(tmp_path, "level", "none", "-")

    assert result.exit_code == 0, result.output
    assert result.output == "none\n"


def test_level_rejects_unknown_level(tmp_path: Path) -> None:
    result = invoke(tmp_path, "level", "patch", "huge")

    assert result.exit_code == 1
    assert "Invalid increment level: huge" in result.output


def test_next_version(tmp_path: Path) -> None:
    result = invoke(tmp_path, "next", "1.2.3", "patch", "major")

    assert result.exit_code == 0, result.output
    assert result.output == "2.0.0\n"


def test_next_version_as_tag(tmp_path: Path) -> None:
    result = invoke(tmp_path, "next", "v0.1.9", "patch", "--tag")

    assert result.exit_code == 0, result.output
    assert result.output == "v0.1.10\n"


def test_next_version_without_release(tmp_path: Path) -> None:
    result = invoke(tmp_path, "next", "1.2.3", "none")

    assert result.exit_code == 1
    assert "nothing to do" in result.output


def test_clean_command_policies(tmp_path: Path) -> None:
    assert invoke(tmp_path, "clean", "=v1.2.3").output == "1.2.3\n"
    assert invoke(tmp_path, "clean", "1.2.3-beta", "--strip", "-beta").output == "1.2.3\n"
    assert invoke(tmp_path, "clean", "v1.2.3", "--no-clean").output == "v1.2.3\n"


def test_clean_command_uses_configured_policy(tmp_path: Path) -> None:
    (tmp_path / "bumpline.yaml").write_text("clean: false\n", encoding="utf-8")

    result = invoke(tmp_path, "clean", "v1.2.3")

    assert result.exit_code == 0, result.output
    assert result.output == "v1.2.3\n"


def test_clean_command_rejects_garbage(tmp_path: Path) -> None:
    result = invoke(tmp_path, "clean", "latest")

    assert result.exit_code == 1
    assert "Invalid version: latest" in result.output


def test_bump_updates_detected_manifests(tmp_path: Path) -> None:
    (tmp_path / "package.json").write_text('{\n  "name": "x",\n  "version": "0.1.0"\n}\n')
    (tmp_path / "pyproject.toml").write_text('[project]\nname = "x"\nversion = "0.1.0"\n')

    result = invoke(tmp_path, "bump", "v0.2.0")

    assert result.exit_code == 0, result.output
    assert json.loads((tmp_path / "package.json").read_text())["version"] == "0.2.0"
    assert 'version = "0.2.0"' in (tmp_path / "pyproject.toml").read_text()


def test_bump_dry_run_leaves_files(tmp_path: Path) -> None:
    (tmp_path / "package.json").write_text('{"version": "0.1.0"}\n')

    result = invoke(tmp_path, "bump", "0.2.0", "--dry-run")

    assert result.exit_code == 0, result.output
    assert (tmp_path / "package.json").read_text() == '{"version": "0.1.0"}\n'


def test_bump_uses_configured_targets(tmp_path: Path) -> None:
    config = {
        "targets": [
            {
                "kind": "quoted",
                "file": "version.h",
                "regex": r"^#define VERSION\s+",
                "regex_flags": "m",
                "base_dir": "include",
            }
        ]
    }
    (tmp_path / "bumpline.yaml").write_text(yaml.safe_dump(config), encoding="utf-8")
    header = tmp_path / "include" / "version.h"
    header.parent.mkdir()
    header.write_text('#pragma once\n#define VERSION "1.0.0"\n', encoding="utf-8")
    (tmp_path / "package.json").write_text('{"version": "1.0.0"}\n')

    result = invoke(tmp_path, "bump", "1.1.0")

    assert result.exit_code == 0, result.output
    assert header.read_text(encoding="utf-8") == '#pragma once\n#define VERSION "1.1.0"\n'
    assert (tmp_path / "package.json").read_text() == '{"version": "1.0.0"}\n'


def test_bump_reports_missing_match(tmp_path: Path) -> None:
    config = {"targets": [{"kind": "init-py", "file": "pkg/__init__.py"}]}
    (tmp_path / "bumpline.yaml").write_text(yaml.safe_dump(config), encoding="utf-8")
    (tmp_path / "pkg").mkdir()
    (tmp_path / "pkg" / "__init__.py").write_text("__version__ = get_version()\n")

    result = invoke(tmp_path, "bump", "1.0.0")

    assert result.exit_code == 1
    assert "Pattern does not match" in result.output


def test_bump_rejects_invalid_config(tmp_path: Path) -> None:
    (tmp_path / "bumpline.yaml").write_text("targets:\n  - kind: gradle\n", encoding="utf-8")

    result = invoke(tmp_path, "bump", "1.0.0")

    assert result.exit_code == 1
    assert "unknown kind 'gradle'" in result.output


def test_changelog_add_and_versions(tmp_path: Path) -> None:
    changelog = tmp_path / "CHANGELOG.md"
    changelog.write_text("# Changelog\n\n## 1.0.0\n\n- first\n", encoding="utf-8")

    add = invoke(
        tmp_path, "changelog", "add", "--entry", "## 1.1.0\n\n- second\n", "--from-line", "1"
    )

    assert add.exit_code == 0, add.output
    assert changelog.read_text(encoding="utf-8") == (
        "# Changelog\n\n## 1.1.0\n\n- second\n\n## 1.0.0\n\n- first\n"
    )

    versions = invoke(tmp_path, "changelog", "versions")
    assert versions.exit_code == 0, versions.output
    assert versions.output == "1.1.0\n1.0.0\n"

    latest = invoke(tmp_path, "changelog", "versions", "--latest")
    assert latest.output == "1.1.0\n"


def test_changelog_add_reads_entry_file_and_config(tmp_path: Path) -> None:
    (tmp_path / "bumpline.yaml").write_text(
        "changelog: docs/NEWS.md\nfrom_line: 1\n", encoding="utf-8"
    )
    news = tmp_path / "docs" / "NEWS.md"
    news.parent.mkdir()
    news.write_text("# News\n## 0.1.0\n", encoding="utf-8")
    entry = tmp_path / "entry.md"
    entry.write_text("## 0.2.0\n", encoding="utf-8")

    result = invoke(tmp_path, "changelog", "add", "--entry-file", str(entry))

    assert result.exit_code == 0, result.output
    assert news.read_text(encoding="utf-8") == "# News\n\n## 0.2.0\n\n## 0.1.0\n"


def test_changelog_add_from_stdin_creates_file(tmp_path: Path) -> None:
    result = invoke(tmp_path, "changelog", "add", "--entry-file", "-", input="## 1.0.0\n")

    assert result.exit_code == 0, result.output
    assert (tmp_path / "CHANGELOG.md").read_text(encoding="utf-8") == "## 1.0.0\n"


def test_changelog_add_requires_exactly_one_source(tmp_path: Path) -> None:
    missing = invoke(tmp_path, "changelog", "add")
    assert missing.exit_code == 1
    assert "--entry or --entry-file" in missing.output

    entry = tmp_path / "entry.md"
    entry.write_text("x\n", encoding="utf-8")
    both = invoke(tmp_path, "changelog", "add", "--entry", "x", "--entry-file", str(entry))
    assert both.exit_code == 1


def test_changelog_add_rejects_negative_from_line(tmp_path: Path) -> None:
    result = invoke(tmp_path, "changelog", "add", "--entry", "x", "--from-line", "-1")

    assert result.exit_code == 2


def test_changelog_versions_latest_without_versions(tmp_path: Path) -> None:
    result = invoke(tmp_path, "changelog", "versions", "--latest")

    assert result.exit_code == 1
    assert "No versions documented" in result.output


def test_main_returns_error_exit_code(tmp_path: Path) -> None:
    assert main(["--root", str(tmp_path), "next", "1.0.0", "none"]) == 1
    assert main(["--root", str(tmp_path), "bogus"]) == 2


def test_project_root_found_from_subdirectory(tmp_path: Path) -> None:
    (tmp_path / "bumpline.yaml").write_text("{}\n", encoding="utf-8")
    nested = tmp_path / "a" / "b"
    nested.mkdir(parents=True)

    assert _resolve_project_root(nested) == tmp_path.resolve()
