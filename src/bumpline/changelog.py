"""Changelog document handling.

New entries are spliced into an existing line-oriented document. Segment
boundaries are normalized so that exactly one blank line separates the
entry from its neighbours, regardless of how many blank lines either side
brought along.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Sequence

from .cleaning import DEFAULT_POLICY, CleaningPolicy, clean
from .errors import InvalidConfigurationError
from .versions import greater_version, is_valid
from .utils import atomic_write_text, log_debug, read_text

__all__ = [
    "merge_lines",
    "merge_entry",
    "prepend_entry",
    "extract_titles",
    "documented_versions",
    "latest_documented_version",
]

_ATX_HEADING = re.compile(r"^ {0,3}#{1,6}(?:[ \t]+(?P<title>.*?))?(?:[ \t]+#+)?[ \t]*$")
_FENCE = re.compile(r"^ {0,3}(?P<fence>`{3,}|~{3,})")


def _is_blank(line: str) -> bool:
    # A lone "\r" is the remainder of a CRLF line break.
    return not line.rstrip("\r")


def _drop_leading_blanks(lines: Sequence[str]) -> list[str]:
    index = 0
    while index < len(lines) and _is_blank(lines[index]):
        index += 1
    return list(lines[index:])


def _drop_trailing_blanks(lines: Sequence[str]) -> list[str]:
    end = len(lines)
    while end > 0 and _is_blank(lines[end - 1]):
        end -= 1
    return list(lines[:end])


def _join_segments(accumulated: Sequence[str], segment: Sequence[str]) -> list[str]:
    head = _drop_trailing_blanks(accumulated)
    body = _drop_leading_blanks(segment)
    if not head:
        return body
    return head + [""] + body


def merge_lines(
    existing: Sequence[str], entry: Sequence[str], from_line: int = 0
) -> list[str]:
    """Insert entry lines into existing lines before index from_line."""
    if from_line < 0:
        raise InvalidConfigurationError(f"from_line must not be negative, got {from_line}")

    merged: list[str] = []
    for segment in (existing[:from_line], entry, existing[from_line:]):
        merged = _join_segments(merged, segment)

    # Keep at most one terminating newline.
    if merged and _is_blank(merged[-1]):
        merged = _drop_trailing_blanks(merged) + [""]
    return merged


def merge_entry(existing: str, entry: str, from_line: int = 0) -> str:
    """Return existing text with entry spliced in at line from_line.

    Merging is stable under repetition as long as from_line is recomputed
    against the latest document; reusing an index computed for an older
    revision inserts at the shifted position.

    >>> merge_entry("## 1.0.0\\n\\nfoo\\n", "## 1.1.0\\n\\nbar\\n")
    '## 1.1.0\\n\\nbar\\n\\n## 1.0.0\\n\\nfoo\\n'
    """
    return "\n".join(merge_lines(existing.split("\n"), entry.split("\n"), from_line))


def prepend_entry(path: Path, entry: str, from_line: int = 0) -> str:
    """Merge entry into the changelog at path and return the new content.

    A missing changelog is created and treated as an empty document.
    """
    if not path.exists():
        log_debug(f"creating empty changelog at {path}")
        path.parent.mkdir(parents=True, exist_ok=True)
        path.touch()
    merged = merge_entry(read_text(path), entry, from_line)
    atomic_write_text(path, merged)
    return merged


def extract_titles(markdown: str) -> list[str]:
    """Return the text of ATX headings outside of fenced code blocks."""
    titles: list[str] = []
    fence: str | None = None
    for line in markdown.splitlines():
        fence_match = _FENCE.match(line)
        if fence_match:
            marker = fence_match.group("fence")
            if fence is None:
                fence = marker
            elif marker[0] == fence[0] and len(marker) >= len(fence):
                fence = None
            continue
        if fence is not None:
            continue
        heading = _ATX_HEADING.match(line)
        if heading and heading.group("title"):
            titles.append(heading.group("title"))
    return titles


def documented_versions(path: Path, policy: CleaningPolicy = DEFAULT_POLICY) -> list[str]:
    """Return the cleaned semantic versions named in changelog headings.

    A missing changelog documents no versions.
    """
    if not path.exists():
        return []
    versions: list[str] = []
    for title in extract_titles(read_text(path)):
        for token in title.split(" "):
            candidate = token.strip("[]")
            if not is_valid(candidate):
                continue
            cleaned = clean(policy, candidate)
            if cleaned:
                versions.append(cleaned)
    return versions


def latest_documented_version(versions: Sequence[str]) -> str | None:
    """Return the greatest documented version."""
    return greater_version(versions)
