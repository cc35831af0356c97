"""Turn merged fields into concrete local-calendar instants."""

from __future__ import annotations

from datetime import datetime, timedelta
from enum import Enum

from .fragment import Fragment
from .merge import MergedFields, merge_fragments

# Fill values for the fields a literal leaves unset
_FLOOR = (1, 1, 1, 0, 0, 0)


class Role(Enum):
    """Which boundary of the period implied by a literal to compute.

    RANGE_START is the inclusive first instant of the period, RANGE_END the
    exclusive upper bound, i.e. the first instant of the next period at the
    same precision. ``2025-03`` spans [2025-03-01 00:00, 2025-04-01 00:00).
    """

    RANGE_START = 'start'
    RANGE_END = 'end'


def _next_period(start: datetime, precision: int) -> datetime:
    if precision == 1:
        return start.replace(year=start.year + 1)
    if precision == 2:
        year = start.year + start.month // 12
        month = start.month % 12 + 1
        return start.replace(year=year, month=month)
    step = {
        3: timedelta(days=1),
        4: timedelta(hours=1),
        5: timedelta(minutes=1),
    }[precision]
    return start + step


def resolve(fields: MergedFields, role: Role) -> datetime | None:
    """Resolve merged fields to one instant, or None.

    None means either no year anchor or a value the calendar cannot hold
    (month 13, April 31st, hour 24). Second precision has no range to widen,
    so both roles give the same instant.
    """
    precision = len(fields.values)
    if precision == 0:
        return None

    values = fields.values + _FLOOR[precision:]
    try:
        start = datetime(*values)
    except ValueError:
        return None

    if role is Role.RANGE_START or precision == len(_FLOOR):
        return start

    try:
        return _next_period(start, precision)
    except (ValueError, OverflowError):
        # Past datetime.max
        return None


def resolve_fragments(relative: Fragment | None, base: Fragment | None, role: Role) -> datetime | None:
    return resolve(merge_fragments(relative, base), role)


def resolve_completed(
    completed: MergedFields | None,
    done: bool,
    due: datetime | None = None,
    start: datetime | None = None,
) -> datetime | None:
    """Resolve the completion instant of a todo.

    Args:
        completed: merged ``completed`` fields, None when the marker has no
            ``completed`` key at all
        done: whether the checklist box is ticked
        due: already resolved due instant
        start: already resolved start instant

    An open todo is never completed, whatever the marker says. A ticked todo
    without a completion literal is taken as completed when it was due, or
    failing that when it started.
    """
    if not done:
        return None
    if completed is None:
        return due if due is not None else start
    return resolve(completed, Role.RANGE_END)
