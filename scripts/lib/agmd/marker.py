"""Marker payloads: ``BASE;key=value;...`` as written in ``<agmd:...>`` links.

    <agmd:2025-03-01;start=02;due=04;completed=03>
          <--------> <------> <----> <---------->
             base     keyed fragments merged against the base

Only ``start``, ``due`` and ``completed`` are collected. Values of other keys
must still be valid fragments but are thrown away.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime

from .fragment import Fragment, FragmentSyntaxError, scan_fragment
from .merge import merge_fragments
from .resolve import Role, resolve, resolve_completed

KNOWN_KEYS = ('start', 'due', 'completed')
SEPARATOR = ';'

_KEY_RE = re.compile(r'([A-Za-z_][A-Za-z0-9_-]*)=')


@dataclass(frozen=True)
class MarkerBody:
    base: Fragment | None = None
    start: Fragment | None = None
    due: Fragment | None = None
    completed: Fragment | None = None


@dataclass(frozen=True)
class Attributes:
    """Resolved instants of one todo.

    ``due`` is normally an exclusive bound (the first instant after the due
    period). ``due_exact`` marks a second-precision due, which is the due
    instant itself.
    """

    start: datetime | None = None
    due: datetime | None = None
    completed: datetime | None = None
    due_exact: bool = field(default=False, compare=False)

    @property
    def is_completed(self) -> bool:
        return self.completed is not None

    @property
    def is_unspecified(self) -> bool:
        return self.start is None and self.due is None and self.completed is None


@dataclass(frozen=True)
class MarkerError:
    """A marker that failed to parse; ``raw`` is the payload exactly as written."""

    raw: str
    reason: str = ''


def _key_value(text: str, pos: int) -> tuple[str, Fragment, int]:
    match = _KEY_RE.match(text, pos)
    if match is None:
        raise FragmentSyntaxError("expected key=value", text, pos)
    fragment, end = scan_fragment(text, match.end())
    return match.group(1), fragment, end


def _key_values(text: str, pos: int, leading_separator: bool) -> list[tuple[str, Fragment]]:
    """Parse ``(";" kv)*`` or, without a base, ``[kv (";" kv)*]`` up to the end of text."""
    pairs = []
    first = not leading_separator
    while pos < len(text):
        if not first:
            if not text.startswith(SEPARATOR, pos):
                raise FragmentSyntaxError(f"expected {SEPARATOR!r}", text, pos)
            pos += 1
        first = False
        key, fragment, pos = _key_value(text, pos)
        pairs.append((key, fragment))
    return pairs


def parse_marker(payload: str) -> MarkerBody:
    """Parse a marker payload (without the ``agmd:`` scheme).

    Raises:
        FragmentSyntaxError: if any part of the payload is left unconsumed
            or does not match the grammar
    """
    base = None
    pairs = None
    base_error = None
    try:
        base, end = scan_fragment(payload)
    except FragmentSyntaxError:
        pass
    else:
        try:
            pairs = _key_values(payload, end, leading_separator=True)
        except FragmentSyntaxError as exc:
            # Not a base after all, e.g. a key that starts with "T"
            base = None
            base_error = exc

    if pairs is None:
        try:
            pairs = _key_values(payload, 0, leading_separator=False)
        except FragmentSyntaxError:
            # Report where the payload went wrong after its base
            if base_error is not None:
                raise base_error from None
            raise

    collected = {}
    for key, fragment in pairs:
        if key in KNOWN_KEYS:
            # Last assignment wins
            collected[key] = fragment
    return MarkerBody(base=base, **collected)


def attributes_from_body(body: MarkerBody, done: bool) -> Attributes:
    """Resolve a parsed marker into start/due/completed instants."""
    start = resolve(merge_fragments(body.start, body.base), Role.RANGE_START)
    due_fields = merge_fragments(body.due, body.base)
    due = resolve(due_fields, Role.RANGE_END)
    completed_fields = None
    if body.completed is not None:
        completed_fields = merge_fragments(body.completed, body.base)
    completed = resolve_completed(completed_fields, done, due=due, start=start)
    return Attributes(
        start=start,
        due=due,
        completed=completed,
        due_exact=due is not None and due_fields.precision == 'second',
    )


def resolve_marker(payload: str, done: bool) -> Attributes | MarkerError:
    """Resolve one checklist item's marker payload.

    Malformed payloads are returned as MarkerError carrying the original
    text; this never raises for bad input.
    """
    try:
        body = parse_marker(payload)
    except FragmentSyntaxError as exc:
        return MarkerError(raw=payload, reason=str(exc))
    return attributes_from_body(body, done)
