from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Dict, Optional, Union

VALID_PERIODS = ("today", "week", "month")
DEFAULT_PERIOD = "week"
MAX_RANGE_DAYS = 90

DateLike = Union[str, date, datetime, None]


class InvalidDateRangeError(ValueError):
    pass


@dataclass(frozen=True)
class DateRange:
    start: datetime
    end: datetime
    period: str
    is_custom: bool = False

    @property
    def days(self) -> float:
        return round((self.end - self.start).total_seconds() / 86400.0, 2)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "days": self.days,
        }


def beginning_of_day(value: datetime) -> datetime:
    return datetime.combine(value.date(), time.min, tzinfo=value.tzinfo or timezone.utc)


def end_of_day(value: datetime) -> datetime:
    return datetime.combine(value.date(), time.max, tzinfo=value.tzinfo or timezone.utc)


def _parse_date(value: DateLike) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value or "").strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        raise InvalidDateRangeError(f"Invalid date: {text!r}") from None


def _present(value: DateLike) -> bool:
    return value is not None and str(value).strip() != ""


def parse_date_range(
    *,
    now: datetime,
    period: Optional[str] = None,
    start_date: DateLike = None,
    end_date: DateLike = None,
) -> DateRange:
    """
    Resolve a period preset or an explicit date pair into a DateRange.

    An explicit start/end pair wins over ``period``. Unknown presets fall
    back to ``week``. Preset ranges end at the end of ``now``'s day.
    """
    if _present(start_date) and _present(end_date):
        return _custom_range(start_date, end_date)

    name = period if period in VALID_PERIODS else DEFAULT_PERIOD
    end = end_of_day(now)
    if name == "today":
        start = beginning_of_day(now)
    elif name == "month":
        start = beginning_of_day(now - timedelta(days=30))
    else:
        start = beginning_of_day(now - timedelta(days=7))
    return DateRange(start=start, end=end, period=name, is_custom=False)


def _custom_range(start_date: DateLike, end_date: DateLike) -> DateRange:
    start_day = _parse_date(start_date)
    end_day = _parse_date(end_date)
    if start_day > end_day:
        raise InvalidDateRangeError("start_date must be before end_date")
    span_days = (end_day - start_day).days + 1
    if span_days > MAX_RANGE_DAYS:
        raise InvalidDateRangeError(f"Date range cannot exceed {MAX_RANGE_DAYS} days")

    return DateRange(
        start=datetime.combine(start_day, time.min, tzinfo=timezone.utc),
        end=datetime.combine(end_day, time.max, tzinfo=timezone.utc),
        period="custom",
        is_custom=True,
    )


def previous_period_range(current: DateRange) -> DateRange:
    """Same-length range ending one second before ``current`` starts."""
    duration = current.end - current.start
    return DateRange(
        start=beginning_of_day(current.start - duration),
        end=current.start - timedelta(seconds=1),
        period=f"previous_{current.period}",
        is_custom=current.is_custom,
    )
