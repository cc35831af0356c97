"""Markdown checklist scanning for agmd markers."""

from __future__ import annotations

import fnmatch
import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path

from .marker import Attributes, MarkerError, resolve_marker

logger = logging.getLogger(__name__)

MARKER_SCHEME = 'agmd:'
DEFAULT_IGNORE_FILE = '.agmdignore'

_TASK_RE = re.compile(r'^(\s*)(?:[-*+]|\d+[.)])\s+\[([ xX])\]\s+(.*)$')
_AUTOLINK_RE = re.compile(r'<agmd:([^>\s]*)>')
_INLINE_LINK_RE = re.compile(r'\[[^\]]*\]\(\s*<?agmd:([^)\s>]*)>?\s*\)')
_FENCE_RE = re.compile(r'^\s*(```|~~~)')


@dataclass(frozen=True)
class Todo:
    path: Path | None
    line: int
    summary: str
    done: bool
    raw: str
    attributes: Attributes | MarkerError

    @property
    def is_malformed(self) -> bool:
        return isinstance(self.attributes, MarkerError)


def find_marker(text: str) -> tuple[str, str] | None:
    """Find the first agmd link in an item's text.

    Returns:
        tuple: (payload, text with the link removed), or None if no marker
    """
    matches = [m for m in (_AUTOLINK_RE.search(text), _INLINE_LINK_RE.search(text)) if m]
    if not matches:
        return None
    match = min(matches, key=lambda m: m.start())
    remaining = text[:match.start()] + ' ' + text[match.end():]
    return match.group(1), re.sub(r'\s{2,}', ' ', remaining).strip()


def parse_todos(content: str, path: Path | None = None) -> list[Todo]:
    """Collect checklist items carrying an agmd marker.

    Rules:
    - Skip items inside fenced code blocks
    - Skip checklist items without a marker
    - Malformed markers still produce a Todo, holding a MarkerError
    """
    todos = []
    fence = None

    for number, line in enumerate(content.splitlines(), start=1):
        fence_match = _FENCE_RE.match(line)
        if fence_match:
            marker = fence_match.group(1)
            if fence is None:
                fence = marker
            elif fence == marker:
                fence = None
            continue

        if fence is not None:
            continue

        match = _TASK_RE.match(line)
        if not match:
            continue

        done = match.group(2).lower() == 'x'
        found = find_marker(match.group(3))
        if found is None:
            continue

        raw, summary = found
        attributes = resolve_marker(raw, done)
        if isinstance(attributes, MarkerError):
            logger.debug(f"Malformed marker in {path or '<text>'}:{number}: {attributes.reason}")

        todos.append(
            Todo(
                path=path,
                line=number,
                summary=summary,
                done=done,
                raw=raw,
                attributes=attributes,
            )
        )

    return todos


def read_ignore_patterns(directory: Path, ignore_file: str = DEFAULT_IGNORE_FILE) -> list[str]:
    """Read glob patterns from ``directory/ignore_file``, skipping blanks and comments."""
    ignore_path = directory / ignore_file
    if not ignore_path.is_file():
        return []
    try:
        lines = ignore_path.read_text(encoding='utf-8').splitlines()
    except (PermissionError, OSError, UnicodeDecodeError) as e:
        logger.warning(f"Failed to read ignore file {ignore_path}: {e}")
        return []
    patterns = []
    for line in lines:
        stripped = line.strip()
        if stripped and not stripped.startswith('#'):
            patterns.append(stripped.rstrip('/'))
    return patterns


def _is_ignored(path: Path, rules: list[tuple[Path, list[str]]]) -> bool:
    for directory, patterns in rules:
        try:
            relative = path.relative_to(directory).as_posix()
        except ValueError:
            continue
        for pattern in patterns:
            if fnmatch.fnmatch(relative, pattern) or fnmatch.fnmatch(path.name, pattern):
                return True
    return False


def walk_markdown_files(root: Path, ignore_file: str = DEFAULT_IGNORE_FILE) -> list[Path]:
    """Return the markdown files under ``root`` in a stable order.

    Hidden files and directories are skipped, as is anything matched by an
    ignore file in the same directory or one of its parents.
    """
    root = Path(root)
    if root.is_file():
        return [root]

    found = []
    rules: list[tuple[Path, list[str]]] = []
    for dirpath, dirnames, filenames in os.walk(root):
        current = Path(dirpath)
        # Rules from directories we have left behind no longer apply
        rules = [rule for rule in rules if current == rule[0] or rule[0] in current.parents]
        patterns = read_ignore_patterns(current, ignore_file)
        if patterns:
            rules.append((current, patterns))

        dirnames[:] = sorted(
            name for name in dirnames
            if not name.startswith('.') and not _is_ignored(current / name, rules)
        )
        for name in sorted(filenames):
            path = current / name
            if name.startswith('.') or path.suffix.lower() != '.md':
                continue
            if _is_ignored(path, rules):
                continue
            found.append(path)

    return found


def load_todos(root: Path, ignore_file: str = DEFAULT_IGNORE_FILE) -> list[Todo]:
    """Scan every markdown file under ``root``; unreadable files are skipped."""
    todos = []
    for path in walk_markdown_files(root, ignore_file):
        try:
            content = path.read_text(encoding='utf-8')
        except (PermissionError, OSError, UnicodeDecodeError) as e:
            logger.warning(f"Failed to read {path}: {e}")
            continue
        todos.extend(parse_todos(content, path))
    return todos
