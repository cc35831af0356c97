"""Tests for fragment merging and role resolution."""

import sys
from datetime import datetime
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "scripts" / "lib"))

from agmd.fragment import Fragment, parse_fragment
from agmd.merge import MergedFields, merge_fragments
from agmd.resolve import Role, resolve, resolve_completed, resolve_fragments


def _both(text, base=None):
    relative = parse_fragment(text) if text is not None else None
    base = parse_fragment(base) if base is not None else None
    return (
        resolve_fragments(relative, base, Role.RANGE_START),
        resolve_fragments(relative, base, Role.RANGE_END),
    )


class TestMerge:
    def test_both_absent(self):
        assert merge_fragments(None, None) == MergedFields()

    def test_single_fragment_keeps_its_fields(self):
        merged = merge_fragments(Fragment.from_y(2025, 3), None)
        assert merged.values == (2025, 3)
        assert merged.precision == 'month'
        assert merge_fragments(None, Fragment.from_y(2025, 3)) == merged

    def test_single_rootless_fragment_has_no_anchor(self):
        assert merge_fragments(Fragment.month_or_day(4), None).values == ()
        assert merge_fragments(Fragment.from_m(10, 21), None).values == ()
        assert merge_fragments(None, Fragment.from_t(10)).precision is None

    def test_month_or_day_is_day_against_year_month(self):
        merged = merge_fragments(Fragment.month_or_day(4), Fragment.from_y(2025, 3, 1))
        assert merged.values == (2025, 3, 4)

    def test_month_or_day_is_month_against_year(self):
        merged = merge_fragments(Fragment.month_or_day(4), Fragment.from_y(2025))
        assert merged.values == (2025, 4)

    def test_base_month_or_day_uses_relative_shape(self):
        assert merge_fragments(Fragment.from_y(2025, 3), Fragment.month_or_day(9)).values == (2025, 3, 9)
        assert merge_fragments(Fragment.from_y(2025), Fragment.month_or_day(9)).values == (2025, 9)

    def test_shapeless_pairs_never_get_a_year(self):
        assert merge_fragments(Fragment.month_or_day(4), Fragment.month_or_day(5)).values == ()
        assert merge_fragments(Fragment.month_or_day(4), Fragment.from_m(10, 21)).values == ()
        assert merge_fragments(Fragment.from_m(10, 21), Fragment.month_or_day(4)).values == ()

    def test_relative_overrides_base_per_field(self):
        merged = merge_fragments(Fragment.from_y(2026), Fragment.from_y(2025, 3, 1))
        assert merged.values == (2026, 3, 1)
        merged = merge_fragments(Fragment.from_m(4, 2), Fragment.from_y(2025, 3, 1, 9))
        assert merged.values == (2025, 4, 2, 9)

    def test_time_only_relative_extends_base_day(self):
        merged = merge_fragments(Fragment.from_t(14, 30), Fragment.from_y(2025, 3, 1))
        assert merged.values == (2025, 3, 1, 14, 30)

    def test_gap_cuts_off_finer_fields(self):
        # A time without a day cannot attach to a bare year
        merged = merge_fragments(Fragment.from_t(14, 30), Fragment.from_y(2025))
        assert merged.values == (2025,)
        assert merged.hour is None
        assert merged.minute is None

    def test_from_candidates_stops_at_first_gap(self):
        merged = MergedFields.from_candidates([2025, 3, None, 10, 20, 30])
        assert merged.values == (2025, 3)
        assert merged.day is None
        assert merged.hour is None


class TestResolvePrecision:
    def test_year(self):
        assert _both("2025") == (datetime(2025, 1, 1), datetime(2026, 1, 1))

    def test_year_month(self):
        assert _both("2025-02") == (datetime(2025, 2, 1), datetime(2025, 3, 1))

    def test_year_month_carries_into_next_year(self):
        assert _both("2025-12") == (datetime(2025, 12, 1), datetime(2026, 1, 1))

    def test_year_month_leap_february(self):
        assert _both("2024-02")[1] == datetime(2024, 3, 1)
        assert _both("2025-02")[1] == datetime(2025, 3, 1)

    def test_day(self):
        assert _both("2025-03-01") == (datetime(2025, 3, 1), datetime(2025, 3, 2))

    def test_day_carries_across_month_and_year(self):
        assert _both("2025-03-31")[1] == datetime(2025, 4, 1)
        assert _both("2025-12-31")[1] == datetime(2026, 1, 1)
        assert _both("2024-02-28")[1] == datetime(2024, 2, 29)
        assert _both("2024-02-29")[1] == datetime(2024, 3, 1)

    def test_hour(self):
        assert _both("2025-02-03T12") == (datetime(2025, 2, 3, 12), datetime(2025, 2, 3, 13))
        assert _both("2025-02-03T23")[1] == datetime(2025, 2, 4, 0)

    def test_minute(self):
        assert _both("2025-02-03T12:31") == (datetime(2025, 2, 3, 12, 31), datetime(2025, 2, 3, 12, 32))
        assert _both("2025-12-31T23:59")[1] == datetime(2026, 1, 1, 0, 0)

    def test_second_has_no_range(self):
        start, end = _both("2025-02-03T12:31:50")
        assert start == end == datetime(2025, 2, 3, 12, 31, 50)


class TestResolveFailures:
    def test_no_year_resolves_to_none(self):
        assert _both("10-21") == (None, None)
        assert _both("04") == (None, None)
        assert _both("T10") == (None, None)
        assert _both(None) == (None, None)

    def test_calendar_invalid_values(self):
        assert _both("2025-13-01") == (None, None)
        assert _both("2025-13") == (None, None)
        assert _both("2025-04-31") == (None, None)
        assert _both("2025-02-29") == (None, None)
        assert _both("2025-00") == (None, None)
        assert _both("2025-03-01T24") == (None, None)
        assert _both("2025-03-01T10:60") == (None, None)
        assert _both("0000") == (None, None)

    def test_end_past_maximum_year(self):
        start, end = _both("9999")
        assert start == datetime(9999, 1, 1)
        assert end is None


class TestResolveWithBase:
    def test_day_override_against_base(self):
        assert _both("02", base="2025-03-01")[0] == datetime(2025, 3, 2)
        assert _both("04", base="2025-03-01")[1] == datetime(2025, 3, 5)

    def test_month_override_against_year_base(self):
        assert _both("04", base="2025") == (datetime(2025, 4, 1), datetime(2025, 5, 1))

    def test_base_alone_matches_literal_alone(self):
        for literal in ("2025", "2025-03", "2025-03-01", "2025-03-01T10:15", "10-21", "2025-13-01"):
            fragment = parse_fragment(literal)
            for role in Role:
                assert resolve_fragments(None, fragment, role) == resolve_fragments(fragment, None, role)

    def test_month_day_against_year_base(self):
        assert _both("10-21", base="2025") == (datetime(2025, 10, 21), datetime(2025, 10, 22))


class TestCompletion:
    def test_open_todo_is_never_completed(self):
        fields = merge_fragments(Fragment.from_y(2025, 3, 1), None)
        assert resolve_completed(fields, False, due=datetime(2025, 3, 2)) is None

    def test_done_with_literal_uses_range_end(self):
        fields = merge_fragments(Fragment.from_y(2025, 3, 1), None)
        assert resolve_completed(fields, True) == datetime(2025, 3, 2)

    def test_done_without_literal_falls_back_to_due(self):
        assert resolve_completed(None, True, due=datetime(2025, 1, 1)) == datetime(2025, 1, 1)

    def test_done_without_literal_or_due_falls_back_to_start(self):
        assert resolve_completed(None, True, start=datetime(2025, 1, 1)) == datetime(2025, 1, 1)
        assert resolve_completed(None, True) is None

    def test_done_with_invalid_literal_does_not_fall_back(self):
        fields = merge_fragments(Fragment.from_y(2025, 13, 1), None)
        assert resolve_completed(fields, True, due=datetime(2025, 1, 1)) is None


def test_resolve_takes_merged_fields_directly():
    assert resolve(MergedFields((2025, 3, 1, 10)), Role.RANGE_END) == datetime(2025, 3, 1, 11)
    assert resolve(MergedFields(), Role.RANGE_START) is None
