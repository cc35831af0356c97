"""Date-time fragments: partial literals such as ``2025-03``, ``04`` or ``T10:30``.

A fragment keeps only the precision actually written in the text. It is a
chain of values that starts at one root level and extends to finer levels
without gaps:

    2025-03-01T10   year root   -> (2025, 3, 1, 10)
    03-01           month root  -> (3, 1)
    01T10:30        day root    -> (1, 10, 30)
    T10             hour root   -> (10,)
    T               hour root   -> ()        time-only, nothing specified
    04              month-or-day -> (4,)     meaning decided at merge time

No value is range-checked here; ``2025-13-40`` is a valid fragment.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

FIELDS = ('year', 'month', 'day', 'hour', 'minute', 'second')

YEAR = 'year'
MONTH = 'month'
DAY = 'day'
HOUR = 'hour'
MONTH_OR_DAY = 'month_or_day'

ROOTS = (YEAR, MONTH, DAY, HOUR, MONTH_OR_DAY)

# Characters that may follow a bare two-digit value
FRAGMENT_END = ';'

_FOUR_DIGITS = re.compile(r'[0-9]{4}')
_TWO_DIGITS = re.compile(r'[0-9]{2}')


class FragmentSyntaxError(ValueError):
    """Raised when text does not match the fragment or marker grammar."""

    def __init__(self, message: str, text: str, pos: int = 0):
        super().__init__(f"{message} at position {pos} in {text!r}")
        self.text = text
        self.pos = pos


@dataclass(frozen=True)
class Fragment:
    root: str
    values: tuple[int, ...] = ()

    def __post_init__(self):
        if self.root not in ROOTS:
            raise ValueError(f"unknown fragment root: {self.root}")
        if self.root == MONTH_OR_DAY:
            if len(self.values) != 1:
                raise ValueError("month-or-day fragment holds exactly one value")
        elif len(self.values) > len(FIELDS) - FIELDS.index(self.root):
            raise ValueError(f"too many values for a {self.root} fragment: {self.values}")
        elif self.root != HOUR and not self.values:
            raise ValueError(f"{self.root} fragment needs its root value")

    # Constructors for each shape

    @classmethod
    def from_y(cls, year, *rest) -> Fragment:
        return cls(YEAR, (year, *rest))

    @classmethod
    def from_m(cls, month, *rest) -> Fragment:
        return cls(MONTH, (month, *rest))

    @classmethod
    def from_d(cls, day, *rest) -> Fragment:
        return cls(DAY, (day, *rest))

    @classmethod
    def from_t(cls, *values) -> Fragment:
        return cls(HOUR, tuple(values))

    @classmethod
    def month_or_day(cls, value) -> Fragment:
        return cls(MONTH_OR_DAY, (value,))

    @property
    def is_month_or_day(self) -> bool:
        return self.root == MONTH_OR_DAY

    @property
    def ambiguous_value(self) -> int | None:
        return self.values[0] if self.is_month_or_day else None

    def get(self, field: str) -> int | None:
        """Return the value of ``field`` or None when the literal did not set it.

        A month-or-day fragment answers None for every field; its value only
        gains a meaning once merged against another fragment.
        """
        if self.is_month_or_day:
            return None
        index = FIELDS.index(field) - FIELDS.index(self.root)
        if 0 <= index < len(self.values):
            return self.values[index]
        return None

    @property
    def year(self) -> int | None:
        return self.get('year')

    @property
    def month(self) -> int | None:
        return self.get('month')

    @property
    def day(self) -> int | None:
        return self.get('day')

    @property
    def hour(self) -> int | None:
        return self.get('hour')

    @property
    def minute(self) -> int | None:
        return self.get('minute')

    @property
    def second(self) -> int | None:
        return self.get('second')

    def fields(self) -> dict[str, int]:
        """Return the fields set by this fragment, coarsest first."""
        return {field: value for field in FIELDS if (value := self.get(field)) is not None}

    def __str__(self) -> str:
        if self.is_month_or_day:
            return f"{self.values[0]:02d}"
        parts = self.fields()
        date_part = '-'.join(
            f"{parts[field]:04d}" if field == 'year' else f"{parts[field]:02d}"
            for field in ('year', 'month', 'day') if field in parts
        )
        if self.root == MONTH and 'day' not in parts:
            date_part += '-'
        time_values = [parts[field] for field in ('hour', 'minute', 'second') if field in parts]
        if self.root in (DAY, HOUR) or time_values:
            return date_part + 'T' + ':'.join(f"{value:02d}" for value in time_values)
        return date_part


def _digits(pattern: re.Pattern, text: str, pos: int) -> tuple[int | None, int]:
    match = pattern.match(text, pos)
    if match is None:
        return None, pos
    return int(match.group()), match.end()


def _time_rest(text: str, pos: int) -> tuple[tuple[int, ...], int] | None:
    """Match ``T[HH[:[MM[:[SS]]]]]``."""
    if not text.startswith('T', pos):
        return None
    pos += 1
    values = []
    for index in range(3):
        if index:
            if not text.startswith(':', pos):
                break
            pos += 1
        value, after = _digits(_TWO_DIGITS, text, pos)
        if value is None:
            break
        values.append(value)
        pos = after
    return tuple(values), pos


def _day_rest(text: str, pos: int) -> tuple[tuple[int, ...], int] | None:
    """Match ``DD[T...]``."""
    day, pos = _digits(_TWO_DIGITS, text, pos)
    if day is None:
        return None
    time = _time_rest(text, pos)
    if time is None:
        return (day,), pos
    values, pos = time
    return (day, *values), pos


def _month_rest(text: str, pos: int) -> tuple[tuple[int, ...], int] | None:
    """Match ``MM[-[DD...]]``; a month is never followed directly by ``T``."""
    month, pos = _digits(_TWO_DIGITS, text, pos)
    if month is None:
        return None
    values = (month,)
    if text.startswith('-', pos):
        pos += 1
        day = _day_rest(text, pos)
        if day is not None:
            rest, pos = day
            values += rest
    if text.startswith('T', pos):
        return None
    return values, pos


def _year_rest(text: str, pos: int) -> tuple[tuple[int, ...], int] | None:
    """Match ``YYYY[-[MM...]]``."""
    year, pos = _digits(_FOUR_DIGITS, text, pos)
    if year is None:
        return None
    values = (year,)
    if text.startswith('-', pos):
        pos += 1
        month = _month_rest(text, pos)
        if month is not None:
            rest, pos = month
            values += rest
    return values, pos


def _month_or_day(text: str, pos: int) -> tuple[tuple[int, ...], int] | None:
    value, after = _digits(_TWO_DIGITS, text, pos)
    if value is None:
        return None
    if after < len(text) and text[after] not in FRAGMENT_END:
        return None
    return (value,), after


# Tried in order, first match wins
_RULES = (
    (YEAR, _year_rest),
    (MONTH_OR_DAY, _month_or_day),
    (MONTH, _month_rest),
    (DAY, _day_rest),
    (HOUR, _time_rest),
)


def scan_fragment(text: str, pos: int = 0) -> tuple[Fragment, int]:
    """Parse the fragment starting at ``pos``.

    Returns:
        tuple: (fragment, end) where ``text[end:]`` is the unconsumed remainder

    Raises:
        FragmentSyntaxError: if no fragment rule matches at ``pos``
    """
    for root, rule in _RULES:
        matched = rule(text, pos)
        if matched is not None:
            values, end = matched
            return Fragment(root, values), end
    raise FragmentSyntaxError("expected a date or time fragment", text, pos)


def parse_fragment(text: str) -> Fragment:
    """Parse a complete fragment literal; trailing characters are an error."""
    fragment, end = scan_fragment(text)
    if end != len(text):
        raise FragmentSyntaxError("unexpected trailing characters", text, end)
    return fragment
