#!/usr/bin/env python3
"""
Agemda CLI - scheduling view over markdown checklists with agmd markers.

Usage:
    agemda.py [--root DIR] list [--all] [--json]
    agemda.py [--root DIR] today [--date YYYY-MM-DD] [--json]
    agemda.py [--root DIR] overdue [--json]
    agemda.py [--root DIR] on YYYY-MM-DD [--to YYYY-MM-DD] [--json]
    agemda.py [--root DIR] check [--json]
    agemda.py parse "2025-03-01;start=02;due=04" [--done] [--json]

A todo is a checklist item carrying a marker, e.g.
    - [ ] Write report <agmd:2025-03-01;start=02;due=04>
"""

import argparse
import json
import logging
import sys
from datetime import datetime
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))
from utils import (
    SCHEMA_VERSION,
    day_bounds,
    format_instant,
    get_log_level,
    get_root,
    is_due_on,
    is_overdue,
    load_root_todos,
    overlaps,
    parse_day,
    start_after_due,
    todo_to_dict,
)
from agmd.marker import MarkerError, resolve_marker

logger = logging.getLogger(__name__)


def _new_schema(command: str) -> dict:
    return {
        "schema_version": SCHEMA_VERSION,
        "command": command,
    }


def _print_json(command: str, todos, **extra):
    payload = _new_schema(command)
    payload.update(extra)
    payload["todos"] = [todo_to_dict(todo) for todo in todos]
    print(json.dumps(payload, indent=2))


def _print_todos(title: str, todos):
    if not todos:
        print("No todos found matching criteria.")
        return

    print(f"\n📋 {title} ({len(todos)} items)\n")

    for todo in todos:
        checkbox = '✅' if todo.done else '⬜'
        attrs = todo.attributes
        if isinstance(attrs, MarkerError):
            print(f"{checkbox} **{todo.summary}** ❌ malformed <agmd:{attrs.raw}>")
            continue
        parts = []
        if attrs.start:
            parts.append(f"start {format_instant(attrs.start)}")
        if attrs.due:
            parts.append(f"🗓️ due {format_instant(attrs.due)}")
        if attrs.completed:
            parts.append(f"done {format_instant(attrs.completed)}")
        detail = f" ({', '.join(parts)})" if parts else ''
        print(f"{checkbox} **{todo.summary}**{detail}")


def _valid(todos):
    return [todo for todo in todos if not todo.is_malformed]


def cmd_list(args):
    """List todos, open ones only unless --all."""
    todos = load_root_todos(get_root(args.root))
    if not args.all:
        todos = [
            todo for todo in todos
            if todo.is_malformed or not todo.attributes.is_completed
        ]

    if args.json:
        _print_json("list", todos)
        return
    _print_todos("Todos", todos)


def cmd_today(args):
    """List open todos due on a day (default today)."""
    if args.date:
        try:
            day = parse_day(args.date)
        except ValueError:
            print(f"❌ Invalid date format: {args.date} (use YYYY-MM-DD)", file=sys.stderr)
            sys.exit(2)
    else:
        day = datetime.now().date()

    todos = [
        todo for todo in _valid(load_root_todos(get_root(args.root)))
        if not todo.attributes.is_completed and is_due_on(todo.attributes, day)
    ]

    if args.json:
        _print_json("today", todos, date=day.isoformat())
        return
    _print_todos(f"Due {day.isoformat()}", todos)


def cmd_overdue(args):
    """List open todos whose due has passed."""
    now = datetime.now()
    todos = [
        todo for todo in _valid(load_root_todos(get_root(args.root)))
        if is_overdue(todo.attributes, now)
    ]

    if args.json:
        _print_json("overdue", todos, generated_at=now.isoformat(timespec="seconds"))
        return
    _print_todos("Overdue", todos)


def cmd_on(args):
    """List todos whose start..due period overlaps a day or a range of days."""
    try:
        first = parse_day(args.date)
        last = parse_day(args.to) if args.to else first
    except ValueError:
        print("❌ Invalid date format (use YYYY-MM-DD)", file=sys.stderr)
        sys.exit(2)
    if last < first:
        print("❌ --to must not be before the start date", file=sys.stderr)
        sys.exit(2)

    range_start, _ = day_bounds(first)
    _, range_end = day_bounds(last)

    todos = [
        todo for todo in _valid(load_root_todos(get_root(args.root)))
        if overlaps(todo.attributes, range_start, range_end)
        and (args.all or not todo.attributes.is_completed)
    ]

    if args.json:
        _print_json("on", todos, start=range_start.isoformat(), end=range_end.isoformat())
        return
    label = first.isoformat() if first == last else f"{first.isoformat()} → {last.isoformat()}"
    _print_todos(f"Scheduled {label}", todos)


def cmd_check(args):
    """Report malformed markers and todos that start after they are due."""
    todos = load_root_todos(get_root(args.root))
    malformed = [todo for todo in todos if todo.is_malformed]
    inverted = [todo for todo in _valid(todos) if start_after_due(todo.attributes)]

    if args.json:
        payload = _new_schema("check")
        payload.update(
            {
                "malformed": [todo_to_dict(todo) for todo in malformed],
                "start_after_due": [todo_to_dict(todo) for todo in inverted],
            }
        )
        print(json.dumps(payload, indent=2))
    else:
        for todo in malformed:
            print(f"❌ {todo.path}:{todo.line} malformed marker <agmd:{todo.raw}> ({todo.summary})")
        for todo in inverted:
            print(f"⚠️ {todo.path}:{todo.line} starts after due: {todo.summary}")
        if not malformed and not inverted:
            print(f"✅ {len(todos)} todos checked, no problems found.")

    if malformed or inverted:
        sys.exit(1)


def cmd_parse(args):
    """Resolve a single marker payload."""
    payload = args.payload
    if payload.startswith('agmd:'):
        payload = payload[len('agmd:'):]

    result = resolve_marker(payload, args.done)
    if isinstance(result, MarkerError):
        if args.json:
            out = _new_schema("parse")
            out.update({"raw": result.raw, "error": result.reason})
            print(json.dumps(out, indent=2))
        else:
            print(f"❌ {result.reason}", file=sys.stderr)
        sys.exit(1)

    if args.json:
        out = _new_schema("parse")
        out["raw"] = payload
        for key in ('start', 'due', 'completed'):
            value = getattr(result, key)
            out[key] = value.isoformat() if value else None
        print(json.dumps(out, indent=2))
        return

    for key in ('start', 'due', 'completed'):
        value = getattr(result, key)
        print(f"{key:<10} {value.isoformat() if value else '-'}")


def main():
    parser = argparse.ArgumentParser(description='Agemda CLI (markdown checklist schedule)')
    parser.add_argument('--root', help='Directory or markdown file to scan (default: $AGEMDA_ROOT or cwd)')

    subparsers = parser.add_subparsers(dest='command', required=True)

    list_parser = subparsers.add_parser('list', help='List todos')
    list_parser.add_argument('--all', action='store_true', help='Include completed todos')
    list_parser.add_argument('--json', action='store_true', help='Output as JSON')
    list_parser.set_defaults(func=cmd_list)

    today_parser = subparsers.add_parser('today', help='Show open todos due today')
    today_parser.add_argument('--date', help='Day to check (YYYY-MM-DD), default: today')
    today_parser.add_argument('--json', action='store_true', help='Output as JSON')
    today_parser.set_defaults(func=cmd_today)

    overdue_parser = subparsers.add_parser('overdue', help='Show open todos past due')
    overdue_parser.add_argument('--json', action='store_true', help='Output as JSON')
    overdue_parser.set_defaults(func=cmd_overdue)

    on_parser = subparsers.add_parser('on', help='Show todos scheduled on a day or range')
    on_parser.add_argument('date', help='First day (YYYY-MM-DD)')
    on_parser.add_argument('--to', help='Last day, inclusive (YYYY-MM-DD)')
    on_parser.add_argument('--all', action='store_true', help='Include completed todos')
    on_parser.add_argument('--json', action='store_true', help='Output as JSON')
    on_parser.set_defaults(func=cmd_on)

    check_parser = subparsers.add_parser('check', help='Report malformed or inconsistent markers')
    check_parser.add_argument('--json', action='store_true', help='Output as JSON')
    check_parser.set_defaults(func=cmd_check)

    parse_parser = subparsers.add_parser('parse', help='Resolve one marker payload')
    parse_parser.add_argument('payload', help='Marker payload, e.g. "2025-03;due=10"')
    parse_parser.add_argument('--done', action='store_true', help='Treat the todo as ticked')
    parse_parser.add_argument('--json', action='store_true', help='Output as JSON')
    parse_parser.set_defaults(func=cmd_parse)

    args = parser.parse_args()

    logging.basicConfig(level=get_log_level(), format="%(levelname)s: %(message)s")
    logger.debug(f"Running {args.command} (root={get_root(args.root)})")

    args.func(args)


if __name__ == '__main__':
    main()
