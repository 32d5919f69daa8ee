from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from tabwise.application.services.date_range import (
    InvalidDateRangeError,
    parse_date_range,
    previous_period_range,
)


def test_out_of_order_range_rejected(now):
    with pytest.raises(InvalidDateRangeError, match="before"):
        parse_date_range(now=now, start_date="2025-10-20", end_date="2025-10-15")


def test_ninety_one_day_span_rejected(now):
    start = date(2025, 1, 1)
    with pytest.raises(InvalidDateRangeError, match="90 days"):
        parse_date_range(now=now, start_date=start, end_date=start + timedelta(days=90))


def test_ninety_day_span_accepted(now):
    start = date(2025, 1, 1)
    rng = parse_date_range(now=now, start_date=start.isoformat(), end_date=(start + timedelta(days=89)).isoformat())
    assert rng.is_custom is True
    assert rng.period == "custom"
    assert rng.days == 90.0


def test_invalid_date_is_client_error(now):
    with pytest.raises(ValueError, match="Invalid date"):
        parse_date_range(now=now, start_date="yesterday", end_date="2025-10-15")


def test_custom_range_wins_over_period(now):
    rng = parse_date_range(now=now, period="month", start_date="2025-10-15", end_date="2025-10-15")
    assert rng.start == datetime(2025, 10, 15, tzinfo=timezone.utc)
    assert rng.end.date() == date(2025, 10, 15)
    assert rng.end.hour == 23 and rng.end.minute == 59
    assert rng.days == 1.0


def test_half_pair_falls_back_to_period(now):
    rng = parse_date_range(now=now, period="today", start_date="2025-10-15")
    assert rng.period == "today"


@pytest.mark.parametrize("period,expected_days", [("today", 1.0), ("week", 8.0), ("month", 31.0)])
def test_presets(now, period, expected_days):
    rng = parse_date_range(now=now, period=period)
    assert rng.period == period
    assert rng.days == expected_days
    assert rng.end.date() == now.date()


def test_unknown_period_becomes_week(now):
    assert parse_date_range(now=now, period="fortnight").period == "week"
    assert parse_date_range(now=now).period == "week"


def test_previous_period_same_length_ending_before_start(now):
    current = parse_date_range(now=now, period="week")
    previous = previous_period_range(current)
    assert previous.end == current.start - timedelta(seconds=1)
    assert previous.start.hour == 0 and previous.start.minute == 0
    assert previous.period == "previous_week"
    assert abs(previous.days - current.days) <= 1.0
