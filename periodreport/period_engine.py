from __future__ import annotations

from calendar import monthrange
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import Callable, Dict

MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)


class InvalidRangeCode(ValueError):
    """Raised when a range code is not one of the supported granularities."""


class PeriodOutOfRange(ValueError):
    """Raised when a period would start or end outside the supported calendar."""


class RangeCode(str, Enum):
    DAY = "1D"
    WEEK = "1W"
    MONTH = "1M"
    QUARTER = "3M"
    HALF_YEAR = "6M"
    YEAR = "1Y"


RANGE_ALIASES: Dict[str, RangeCode] = {
    "day": RangeCode.DAY,
    "week": RangeCode.WEEK,
    "month": RangeCode.MONTH,
    "quarter": RangeCode.QUARTER,
    "half-year": RangeCode.HALF_YEAR,
    "halfyear": RangeCode.HALF_YEAR,
    "year": RangeCode.YEAR,
}


@dataclass(frozen=True)
class Period:
    start: date
    end: date
    label: str


@dataclass(frozen=True)
class PeriodNavigation:
    range: RangeCode
    current: Period
    previous: Period
    next: Period


@dataclass(frozen=True)
class _RangeRule:
    start_of: Callable[[date], date]
    end_of: Callable[[date], date]
    step: Callable[[date, int], date]
    label_of: Callable[[date], str]


def parse_range_code(value: RangeCode | str) -> RangeCode:
    if isinstance(value, RangeCode):
        return value
    if not isinstance(value, str):
        raise InvalidRangeCode(f"Unsupported range: {value!r}")
    normalized = value.strip()
    for code in RangeCode:
        if code.value == normalized.upper():
            return code
    try:
        return RANGE_ALIASES[normalized.lower()]
    except KeyError as exc:
        raise InvalidRangeCode(f"Unsupported range: {value!r}") from exc


def compute_current(range_code: RangeCode | str, anchor: date) -> Period:
    rule = _rule_for(range_code)
    try:
        start = rule.start_of(anchor)
        end = rule.end_of(start)
    except (OverflowError, ValueError) as exc:
        code = parse_range_code(range_code)
        raise PeriodOutOfRange(f"The {code.name.lower()} around {anchor} is out of range.") from exc
    return Period(start=start, end=end, label=rule.label_of(start))


def compute_previous(range_code: RangeCode | str, anchor: date) -> Period:
    return _shifted(range_code, anchor, -1)


def compute_next(range_code: RangeCode | str, anchor: date) -> Period:
    return _shifted(range_code, anchor, 1)


def resolve_navigation(range_code: RangeCode | str, anchor: date) -> PeriodNavigation:
    """Resolve the period containing ``anchor`` together with its neighbours."""
    code = parse_range_code(range_code)
    return PeriodNavigation(
        range=code,
        current=compute_current(code, anchor),
        previous=compute_previous(code, anchor),
        next=compute_next(code, anchor),
    )


def _shifted(range_code: RangeCode | str, anchor: date, units: int) -> Period:
    # Normalize to the unit boundary before stepping so neighbours tile.
    rule = _rule_for(range_code)
    try:
        start = rule.step(rule.start_of(anchor), units)
    except (OverflowError, ValueError) as exc:
        direction = "after" if units > 0 else "before"
        raise PeriodOutOfRange(f"No period {direction} {anchor} is in range.") from exc
    return compute_current(range_code, start)


def _rule_for(range_code: RangeCode | str) -> _RangeRule:
    return RANGE_RULES[parse_range_code(range_code)]


def _start_of_week(value: date) -> date:
    return value - timedelta(days=value.weekday())


def _start_of_quarter(value: date) -> date:
    return date(value.year, 3 * ((value.month - 1) // 3) + 1, 1)


def _start_of_half_year(value: date) -> date:
    return date(value.year, 7 if value.month >= 7 else 1, 1)


def _month_end(value: date) -> date:
    return value.replace(day=monthrange(value.year, value.month)[1])


def _shift_month(value: date, months: int) -> date:
    month_index = (value.year * 12 + value.month - 1) + months
    year = month_index // 12
    month = month_index % 12 + 1
    return date(year, month, 1)


def _months_rule(
    months: int,
    start_of: Callable[[date], date],
    label_of: Callable[[date], str],
) -> _RangeRule:
    return _RangeRule(
        start_of=start_of,
        end_of=lambda start: _month_end(_shift_month(start, months - 1)),
        step=lambda start, units: start_of(_shift_month(start, units * months)),
        label_of=label_of,
    )


def _ordinal(day: int) -> str:
    if 10 <= day % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(day % 10, "th")
    return f"{day}{suffix}"


def _day_label(value: date) -> str:
    return f"{_ordinal(value.day)} {MONTH_NAMES[value.month - 1]} {value.year}"


def _week_label(value: date) -> str:
    return f"week {value.isocalendar()[1]:02d}, {value.year}"


def _month_label(value: date) -> str:
    return f"{MONTH_NAMES[value.month - 1]} {value.year}"


def _quarter_label(value: date) -> str:
    return f"Q{(value.month + 2) // 3} {value.year}"


def _half_year_label(value: date) -> str:
    half = "first" if value.month <= 6 else "second"
    return f"{half} half of {value:%d-%m-%Y}"


def _year_label(value: date) -> str:
    return str(value.year)


RANGE_RULES: Dict[RangeCode, _RangeRule] = {
    RangeCode.DAY: _RangeRule(
        start_of=lambda value: value,
        end_of=lambda start: start,
        step=lambda start, units: start + timedelta(days=units),
        label_of=_day_label,
    ),
    RangeCode.WEEK: _RangeRule(
        start_of=_start_of_week,
        end_of=lambda start: start + timedelta(days=6),
        step=lambda start, units: start + timedelta(weeks=units),
        label_of=_week_label,
    ),
    RangeCode.MONTH: _months_rule(1, lambda value: value.replace(day=1), _month_label),
    RangeCode.QUARTER: _months_rule(3, _start_of_quarter, _quarter_label),
    RangeCode.HALF_YEAR: _months_rule(6, _start_of_half_year, _half_year_label),
    RangeCode.YEAR: _months_rule(12, lambda value: date(value.year, 1, 1), _year_label),
}
