"""Merge a keyed (relative) fragment with the marker's shared (base) fragment."""

from __future__ import annotations

from dataclasses import dataclass

from .fragment import FIELDS, Fragment


@dataclass(frozen=True)
class MergedFields:
    """Effective field values, always a gapless prefix of year..second.

    Build with ``from_candidates`` so that a missing level cuts off every
    finer level: there is no day without a month.
    """

    values: tuple[int, ...] = ()

    @classmethod
    def from_candidates(cls, candidates) -> MergedFields:
        values = []
        for value in candidates:
            if value is None:
                break
            values.append(value)
            if len(values) == len(FIELDS):
                break
        return cls(tuple(values))

    def get(self, field: str) -> int | None:
        index = FIELDS.index(field)
        return self.values[index] if index < len(self.values) else None

    @property
    def precision(self) -> str | None:
        """Finest field set, or None when there is no year anchor."""
        return FIELDS[len(self.values) - 1] if self.values else None

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


def settle_fields(fragment: Fragment, other: Fragment | None) -> dict[str, int]:
    """Return the fields of ``fragment``, deciding a month-or-day value from ``other``.

    A bare two-digit value is a day when the other fragment carries a month
    (``2025-03`` + ``04`` is March 4th), and a month when the other fragment
    carries only a year (``2025`` + ``04`` is April).
    """
    if not fragment.is_month_or_day:
        return fragment.fields()
    if other is not None and other.month is not None:
        return {'day': fragment.ambiguous_value}
    return {'month': fragment.ambiguous_value}


def merge_fragments(relative: Fragment | None, base: Fragment | None) -> MergedFields:
    """Combine two optional fragments field by field, relative first.

    A fragment without a year anchor (month-or-day, month or day rooted, time
    only) contributes nothing on its own; merged against an anchored fragment
    it fills or overrides the finer fields.
    """
    if relative is None and base is None:
        return MergedFields()

    relative_fields = settle_fields(relative, base) if relative is not None else {}
    base_fields = settle_fields(base, relative) if base is not None else {}

    return MergedFields.from_candidates(
        relative_fields.get(field, base_fields.get(field)) for field in FIELDS
    )
