"""Overflow-checked integer arithmetic and proleptic Gregorian calendar math.

Python integers don't overflow, so the fixed-width bounds are emulated:
every checked operation computes the exact result first and only then
compares it against the bounds of the requested width.
"""

from __future__ import annotations

from typing import Generic, NoReturn, TypeVar, Union

I32_MIN = -(2**31)
I32_MAX = 2**31 - 1
I64_MIN = -(2**63)
I64_MAX = 2**63 - 1

_BOUNDS = {32: (I32_MIN, I32_MAX), 64: (I64_MIN, I64_MAX)}

_T = TypeVar("_T")


class ArithmeticOverflow(OverflowError):
    """The exact result of an integer operation doesn't fit its width"""


class Ok(Generic[_T]):
    """The successful outcome of a checked operation"""

    __slots__ = ("value",)

    def __init__(self, value: _T):
        self.value = value

    def unwrap(self) -> _T:
        return self.value

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Ok):
            return self.value == other.value
        return False

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


class Overflow:
    """The outcome of a checked operation whose exact result didn't fit"""

    __slots__ = ("reason",)

    def __init__(self, reason: str):
        self.reason = reason

    def unwrap(self) -> NoReturn:
        raise ArithmeticOverflow(self.reason)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Overflow):
            return self.reason == other.reason
        return False

    def __repr__(self) -> str:
        return f"Overflow({self.reason!r})"


Checked = Union[Ok[_T], Overflow]


def fits(value: int, bits: int = 64) -> bool:
    lo, hi = _BOUNDS[bits]
    return lo <= value <= hi


def safe_add(a: int, b: int, *, bits: int = 64) -> Checked[int]:
    if fits(result := a + b, bits):
        return Ok(result)
    return Overflow(f"Addition overflows {bits}-bit integer: {a} + {b}")


def safe_multiply(a: int, b: int, *, bits: int = 64) -> Checked[int]:
    if fits(result := a * b, bits):
        return Ok(result)
    return Overflow(f"Multiplication overflows {bits}-bit integer: {a} * {b}")


def multiply_and_divide(
    value: int, numerator: int, denominator: int
) -> Checked[tuple[int, int]]:
    """Compute ``value * numerator / denominator`` as a (quotient, remainder)
    pair using floor division. Only the quotient needs to fit in 64 bits,
    the intermediate product may be arbitrarily large.
    """
    assert denominator > 0
    q, r = divmod(value * numerator, denominator)
    if fits(q):
        return Ok((q, r))
    return Overflow(
        f"Result of {value} * {numerator} / {denominator} overflows"
    )


def trunc_div(a: int, b: int) -> int:
    """Integer division rounding toward zero"""
    q = abs(a) // abs(b)
    return q if (a < 0) == (b < 0) else -q


def trunc_rem(a: int, b: int) -> int:
    """The remainder of :func:`trunc_div`, with the sign of ``a``"""
    return a - b * trunc_div(a, b)


# -- calendar -----------------------------------------------------------------

# Unlike the standard library, all of these work for any (proleptic) year,
# including zero and negative years.

Date = tuple[int, int, int]  # (year, month, day)

DAYS_PER_400_YEARS = 146_097
# Days from 0000-03-01 to 1970-01-01
_DAYS_0000_TO_1970 = 719_468

# 1-indexed days per month
_MONTHDAYS = [0, 31, 28, 31, 30, 31, 30, 31, 31, 30, 31, 30, 31]
_DAYS_BEFORE_MONTH = [0, 0, 31, 59, 90, 120, 151, 181, 212, 243, 273, 304, 334]


def is_leap(year: int) -> bool:
    return year % 4 == 0 and (year % 100 != 0 or year % 400 == 0)


def days_in_month(year: int, month: int) -> int:
    return _MONTHDAYS[month] + (month == 2 and is_leap(year))


def days_in_year(year: int) -> int:
    return 365 + is_leap(year)


def day_of_year(year: int, month: int, day: int) -> int:
    return _DAYS_BEFORE_MONTH[month] + (month > 2 and is_leap(year)) + day


def epoch_day_from_date(year: int, month: int, day: int) -> int:
    """Days since 1970-01-01. Years are shifted to start in March,
    so the leap day is always the last day of the (shifted) year.
    """
    y = year - (month <= 2)
    era = y // 400
    yoe = y - era * 400
    doy = (153 * ((month + 9) % 12) + 2) // 5 + day - 1
    doe = yoe * 365 + yoe // 4 - yoe // 100 + doy
    return era * DAYS_PER_400_YEARS + doe - _DAYS_0000_TO_1970


def date_from_epoch_day(n: int) -> Date:
    """Inverse of :func:`epoch_day_from_date`"""
    z = n + _DAYS_0000_TO_1970
    era = z // DAYS_PER_400_YEARS
    doe = z - era * DAYS_PER_400_YEARS
    yoe = (doe - doe // 1460 + doe // 36524 - doe // 146096) // 365
    doy = doe - (365 * yoe + yoe // 4 - yoe // 100)
    mp = (5 * doy + 2) // 153
    day = doy - (153 * mp + 2) // 5 + 1
    month = mp + 3 if mp < 10 else mp - 9
    return (yoe + era * 400 + (month <= 2), month, day)


def year_for_epoch_day(n: int) -> int:
    return date_from_epoch_day(n)[0]


def day_of_week(epoch_day: int) -> int:
    """ISO day of the week: Monday is 1, Sunday is 7"""
    # 1970-01-01 was a Thursday
    return (epoch_day + 3) % 7 + 1


def add_months(year: int, month: int, day: int, months: int) -> Date:
    """Shift by whole months, clamping the day to the new month's length"""
    year_delta, month0_new = divmod(month - 1 + months, 12)
    year_new = year + year_delta
    month_new = month0_new + 1
    return (year_new, month_new, min(day, days_in_month(year_new, month_new)))


def add_days(year: int, month: int, day: int, days: int) -> Date:
    return date_from_epoch_day(epoch_day_from_date(year, month, day) + days)


def days_until(a: Date, b: Date) -> int:
    return epoch_day_from_date(*b) - epoch_day_from_date(*a)


def months_until(a: Date, b: Date) -> int:
    """The number of whole months from ``a`` to ``b``, truncated toward zero.
    A month is only complete once the day-of-month is reached again.
    """
    packed_a = ((a[0] * 12 + a[1] - 1) << 5) + a[2]
    packed_b = ((b[0] * 12 + b[1] - 1) << 5) + b[2]
    return trunc_div(packed_b - packed_a, 32)


# -- units --------------------------------------------------------------------

NS_PER_SEC = 1_000_000_000
SECS_PER_DAY = 86_400
NS_PER_DAY = SECS_PER_DAY * NS_PER_SEC

TIME_UNIT_NANOS = {
    "hour": 3_600_000_000_000,
    "minute": 60_000_000_000,
    "second": 1_000_000_000,
    "millisecond": 1_000_000,
    "microsecond": 1_000,
    "nanosecond": 1,
}
DAY_UNIT_DAYS = {
    "week": 7,
    "day": 1,
}
MONTH_UNIT_MONTHS = {
    "century": 1_200,
    "year": 12,
    "quarter": 3,
    "month": 1,
}


def is_date_unit(unit: str) -> bool:
    if unit in TIME_UNIT_NANOS:
        return False
    elif unit in DAY_UNIT_DAYS or unit in MONTH_UNIT_MONTHS:
        return True
    raise ValueError(f"Invalid unit: {unit!r}")


# -- instant range ------------------------------------------------------------

# Instants span whole years -1_000_000 through +1_000_000, slightly more
# than the range of local dates. This leaves room to apply any UTC offset
# to a local date-time without leaving the instant range.
MIN_EPOCH_SECOND = epoch_day_from_date(-1_000_000, 1, 1) * SECS_PER_DAY
MAX_EPOCH_SECOND = (
    epoch_day_from_date(1_000_000, 12, 31) * SECS_PER_DAY + SECS_PER_DAY - 1
)
