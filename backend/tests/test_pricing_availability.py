"""
Unit tests for price calculation, date-range overlap and the week window.
"""

from datetime import date
from decimal import Decimal
from types import SimpleNamespace
from uuid import uuid4

import pytest

from app.core.errors import InvalidDateRange
from app.services.availability import (
    DateRange,
    find_overlap,
    ranges_overlap,
    week_end,
    week_start,
    week_window,
)
from app.services.booking_service import validate_stay
from app.services.pricing import as_date, calc_total_price, nights_between


class TestPricing:

    def test_nightly_rate_times_nights(self):
        assert calc_total_price(Decimal("1200"), "2025-07-01", "2025-07-04") == Decimal("3600.00")

    def test_float_rate_keeps_cents(self):
        assert calc_total_price(99.99, date(2030, 1, 1), date(2030, 1, 4)) == Decimal("299.97")

    def test_rounds_half_up(self):
        assert calc_total_price(Decimal("0.125"), "2030-01-01", "2030-01-02") == Decimal("0.13")

    def test_nights_across_month_end(self):
        assert nights_between("2030-01-30", "2030-02-02") == 3

    @pytest.mark.parametrize("check_out", ["2030-01-01", "2029-12-31"])
    def test_no_nights_is_rejected(self, check_out):
        with pytest.raises(InvalidDateRange):
            calc_total_price(100, "2030-01-01", check_out)

    def test_invalid_calendar_date(self):
        with pytest.raises(InvalidDateRange, match="Invalid date"):
            as_date("2030-02-30")


class TestOverlap:

    def test_half_open_ranges(self):
        jan = date(2030, 1, 1)
        assert ranges_overlap(jan, date(2030, 1, 5), date(2030, 1, 4), date(2030, 1, 6))
        # Check-out day equals the next check-in day
        assert not ranges_overlap(jan, date(2030, 1, 5), date(2030, 1, 5), date(2030, 1, 8))
        assert not ranges_overlap(date(2030, 1, 5), date(2030, 1, 8), jan, date(2030, 1, 5))

    def test_containment_overlaps(self):
        outer = DateRange(date(2030, 1, 1), date(2030, 1, 10))
        inner = DateRange(date(2030, 1, 3), date(2030, 1, 4))
        assert outer.overlaps(inner)
        assert inner.overlaps(outer)

    def test_find_overlap_skips_excluded_booking(self):
        booking = SimpleNamespace(id=uuid4(), check_in_date=date(2030, 1, 1), check_out_date=date(2030, 1, 3))
        candidate = DateRange(date(2030, 1, 2), date(2030, 1, 4))
        assert find_overlap(candidate, [booking]) is booking
        assert find_overlap(candidate, [booking], exclude_id=booking.id) is None


class TestWeekWindow:

    def test_week_bounds(self):
        # 2025-07-02 is a Wednesday
        assert week_start(date(2025, 7, 2)) == date(2025, 6, 30)
        assert week_end(date(2025, 7, 2)) == date(2025, 7, 6)
        assert week_start(date(2025, 6, 30)) == date(2025, 6, 30)
        assert week_end(date(2025, 7, 6)) == date(2025, 7, 6)

    def test_window_covers_weeks_with_nights(self):
        window = week_window(date(2025, 7, 2), date(2025, 7, 3))
        assert window == DateRange(date(2025, 6, 30), date(2025, 7, 7))

    def test_monday_checkout_stays_in_first_week(self):
        # Friday to Monday: last night is Sunday
        window = week_window(date(2025, 7, 4), date(2025, 7, 7))
        assert window == DateRange(date(2025, 6, 30), date(2025, 7, 7))

    def test_stay_spanning_two_weeks(self):
        window = week_window(date(2025, 7, 5), date(2025, 7, 9))
        assert window == DateRange(date(2025, 6, 30), date(2025, 7, 14))


class TestValidateStay:

    def test_valid_stay(self):
        stay = validate_stay("2030-01-01", "2030-01-03", today=date(2029, 12, 31))
        assert stay == DateRange(date(2030, 1, 1), date(2030, 1, 3))

    def test_today_is_not_past(self):
        validate_stay("2030-01-01", "2030-01-02", today=date(2030, 1, 1))

    def test_past_check_in(self):
        with pytest.raises(InvalidDateRange, match="already passed"):
            validate_stay("2030-01-01", "2030-01-03", today=date(2030, 1, 2))

    def test_past_is_checked_before_order(self):
        with pytest.raises(InvalidDateRange, match="already passed"):
            validate_stay("2030-01-01", "2029-12-30", today=date(2030, 1, 2))

    def test_inverted_range(self):
        with pytest.raises(InvalidDateRange, match="after check-in"):
            validate_stay("2030-01-03", "2030-01-01", today=date(2030, 1, 1))
