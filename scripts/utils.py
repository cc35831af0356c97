#!/usr/bin/env python3
"""
Shared utilities for agemda scripts.

Configuration via environment variables:
- AGEMDA_ROOT: Directory (or single markdown file) to scan for todos
- AGEMDA_IGNORE_FILE: Name of per-directory ignore files (default .agmdignore)
- AGEMDA_LOG_LEVEL: Logging level name (default WARNING)
"""

import logging
import os
import sys
from datetime import date, datetime, timedelta
from pathlib import Path

# Add lib directory to path for imports
_SCRIPT_DIR = Path(__file__).parent.resolve()
if str(_SCRIPT_DIR / "lib") not in sys.path:
    sys.path.insert(0, str(_SCRIPT_DIR / "lib"))

from agmd.marker import Attributes, MarkerError
from agmd.scanner import DEFAULT_IGNORE_FILE, Todo, load_todos

SCHEMA_VERSION = "v1"


def _env_path(name: str) -> Path | None:
    raw_value = os.getenv(name)
    if not raw_value:
        return None
    cleaned = raw_value.strip()
    if not cleaned:
        return None
    return Path(cleaned).expanduser()


def get_root(override: str | None = None) -> Path:
    """Return the scan root: CLI override, then AGEMDA_ROOT, then the current directory."""
    if override:
        return Path(override).expanduser()
    return _env_path('AGEMDA_ROOT') or Path.cwd()


def get_ignore_file() -> str:
    return (os.getenv('AGEMDA_IGNORE_FILE') or '').strip() or DEFAULT_IGNORE_FILE


def get_log_level() -> str:
    """Return AGEMDA_LOG_LEVEL as a level name, falling back to WARNING if unknown."""
    name = (os.getenv('AGEMDA_LOG_LEVEL') or '').strip().upper()
    if not name or not isinstance(logging.getLevelName(name), int):
        return 'WARNING'
    return name


def load_root_todos(root: Path) -> list[Todo]:
    """Load todos from the scan root, exiting with a hint if it is missing."""
    if not root.exists():
        print(f"\n❌ Todo root not found: {root}\n", file=sys.stderr)
        print("Configure the root via environment variable or flag:", file=sys.stderr)
        print("  AGEMDA_ROOT=~/path/to/notes", file=sys.stderr)
        print("  agemda.py --root ~/path/to/notes list", file=sys.stderr)
        print("", file=sys.stderr)

        sys.exit(1)

    return load_todos(root, get_ignore_file())


def parse_day(value: str) -> date:
    """Parse YYYY-MM-DD, raising ValueError on anything else."""
    return datetime.strptime(value, '%Y-%m-%d').date()


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """Return the half-open [midnight, next midnight) span of a calendar day."""
    start = datetime(day.year, day.month, day.day)
    return start, start + timedelta(days=1)


def is_overdue(attrs: Attributes, now: datetime | None = None) -> bool:
    """Open todo whose exclusive due bound has passed."""
    if attrs.is_completed or attrs.due is None:
        return False
    now = now or datetime.now()
    return attrs.due <= now


def is_due_on(attrs: Attributes, day: date) -> bool:
    """Check whether the due period ends on ``day``.

    ``due`` is an exclusive bound, so a todo due ``2025-03-01`` resolves to
    2025-03-02 00:00 and still counts as due on March 1st. A due written to
    the second is the instant itself.
    """
    if attrs.due is None:
        return False
    start, end = day_bounds(day)
    last_instant = attrs.due if attrs.due_exact else attrs.due - timedelta(microseconds=1)
    return start <= last_instant < end


def overlaps(attrs: Attributes, range_start: datetime, range_end: datetime) -> bool:
    """Check whether a todo's [start, due) period overlaps [range_start, range_end).

    Without a start the period is open backwards; without a due it is open
    forwards. A todo with neither never overlaps anything. A due written to
    the second is included in the period.
    """
    if attrs.start is None and attrs.due is None:
        return False
    if attrs.start is not None and attrs.start >= range_end:
        return False
    if attrs.due is not None:
        if attrs.due < range_start:
            return False
        if attrs.due == range_start and not attrs.due_exact:
            return False
    return True


def start_after_due(attrs: Attributes) -> bool:
    """Content error: the todo starts after it is due."""
    return attrs.start is not None and attrs.due is not None and attrs.start > attrs.due


def format_instant(value: datetime | None) -> str:
    """Format an instant for display, hiding midnight times."""
    if value is None:
        return '-'
    if value.hour == value.minute == value.second == 0:
        return value.strftime('%Y-%m-%d')
    if value.second == 0:
        return value.strftime('%Y-%m-%d %H:%M')
    return value.strftime('%Y-%m-%d %H:%M:%S')


def todo_to_dict(todo: Todo) -> dict:
    """Serialize a todo for JSON output."""
    payload = {
        'summary': todo.summary,
        'done': todo.done,
        'path': str(todo.path) if todo.path else None,
        'line': todo.line,
        'raw': todo.raw,
    }
    if isinstance(todo.attributes, MarkerError):
        payload['error'] = todo.attributes.reason
        return payload

    for key in ('start', 'due', 'completed'):
        value = getattr(todo.attributes, key)
        payload[key] = value.isoformat() if value else None
    return payload
