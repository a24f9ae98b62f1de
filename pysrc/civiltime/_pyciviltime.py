# The MIT License (MIT)
#
# Copyright (c) Arie Bovenberg
#
# Permission is hereby granted, free of charge, to any person obtaining a copy
# of this software and associated documentation files (the "Software"), to deal
# in the Software without restriction, including without limitation the rights
# to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
# copies of the Software, and to permit persons to whom the Software is
# furnished to do so, subject to the following conditions:
#
# The above copyright notice and this permission notice shall be included in all
# copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
# IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
# FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
# AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
# LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
# OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.

# Maintainer's notes:
#
# - All value classes live in this one module. They refer to each other
#   constantly, and keeping them together prevents circular imports.
# - Nothing here touches the standard library's datetime module. Its range
#   (years 1-9999) is far too narrow, so all calendar math goes through
#   the `_math` module instead.
# - Fixed-duration arithmetic on instants saturates at MIN/MAX.
#   Calendar arithmetic never saturates: it raises DateTimeArithmeticError.
from __future__ import annotations

__version__ = "0.1.0"

import enum
import re
from struct import pack, unpack
from time import time_ns
from typing import Any, ClassVar, Iterable, Mapping, no_type_check, overload

from ._common import _ImmutableBase, final
from ._format import (
    ISO_DATE,
    ISO_DATE_TIME,
    ISO_INSTANT,
    ISO_OFFSET,
    ISO_TIME,
    LENIENT_OFFSET,
    DateTimeFormat,
    InvalidFormat,
)
from ._math import (
    DAY_UNIT_DAYS,
    I64_MAX,
    I64_MIN,
    MAX_EPOCH_SECOND,
    MIN_EPOCH_SECOND,
    MONTH_UNIT_MONTHS,
    NS_PER_DAY,
    NS_PER_SEC,
    SECS_PER_DAY,
    TIME_UNIT_NANOS,
    ArithmeticOverflow,
    Checked,
    Ok,
    Overflow,
    add_days,
    add_months,
    date_from_epoch_day,
    day_of_week,
    day_of_year,
    days_in_month,
    days_until,
    epoch_day_from_date,
    fits,
    is_date_unit,
    months_until,
    multiply_and_divide,
    safe_add,
    safe_multiply,
    trunc_div,
    trunc_rem,
)
from ._tz.posix import PosixTz
from ._tz.rules import TimeZoneRules
from ._tz.store import TimeZoneNotFoundError, get_system_tz, get_tz

__all__ = [
    # Date and time
    "LocalDate",
    "LocalTime",
    "LocalDateTime",
    "UtcOffset",
    "Instant",
    # Durations and periods
    "TimeDelta",
    "DateTimePeriod",
    "DatePeriod",
    "years",
    "months",
    "weeks",
    "days",
    "hours",
    "minutes",
    "seconds",
    "milliseconds",
    "microseconds",
    "nanoseconds",
    # Time zones
    "TimeZone",
    "Transition",
    # Formatting
    "DateTimeComponents",
    # Exceptions
    "InvalidComponent",
    "OutOfRange",
    "DateTimeArithmeticError",
    # Constants
    "MONDAY",
    "TUESDAY",
    "WEDNESDAY",
    "THURSDAY",
    "FRIDAY",
    "SATURDAY",
    "SUNDAY",
    "Weekday",
]


class Weekday(enum.Enum):
    """The days of the week; ``.value`` corresponds with ISO numbering."""

    MONDAY = 1
    TUESDAY = 2
    WEDNESDAY = 3
    THURSDAY = 4
    FRIDAY = 5
    SATURDAY = 6
    SUNDAY = 7


MONDAY = Weekday.MONDAY
TUESDAY = Weekday.TUESDAY
WEDNESDAY = Weekday.WEDNESDAY
THURSDAY = Weekday.THURSDAY
FRIDAY = Weekday.FRIDAY
SATURDAY = Weekday.SATURDAY
SUNDAY = Weekday.SUNDAY


class InvalidComponent(ValueError):
    """A date or time component is out of its valid range,
    e.g. February 30th or hour 24"""


class OutOfRange(OverflowError):
    """The result of an operation is outside the supported range"""


class DateTimeArithmeticError(ArithmeticError):
    """Calendar arithmetic failed, e.g. because the result would fall
    outside the supported range. The underlying error is chained."""


# Helpers that pre-compute/lookup as much as possible
_object_new = object.__new__
_MIN_YEAR = -999_999
_MAX_YEAR = 999_999
_MAX_OFFSET = 18 * 3600
_NS_PER_HOUR = TIME_UNIT_NANOS["hour"]
_NS_PER_MINUTE = TIME_UNIT_NANOS["minute"]


def _check_year(year: int) -> None:
    if not _MIN_YEAR <= year <= _MAX_YEAR:
        raise InvalidComponent(
            f"year must be between {_MIN_YEAR} and {_MAX_YEAR}, got {year}"
        )


def _check_month_day(year: int, month: int, day: int) -> None:
    if not 1 <= month <= 12:
        raise InvalidComponent(f"month must be between 1 and 12, got {month}")
    last = days_in_month(year, month)
    if not 1 <= day <= last:
        raise InvalidComponent(
            f"day must be between 1 and {last} in {year:04d}-{month:02d}, "
            f"got {day}"
        )


def _check_time(hour: int, minute: int, second: int, nanosecond: int) -> None:
    if not 0 <= hour <= 23:
        raise InvalidComponent(f"hour must be between 0 and 23, got {hour}")
    if not 0 <= minute <= 59:
        raise InvalidComponent(
            f"minute must be between 0 and 59, got {minute}"
        )
    # no leap seconds
    if not 0 <= second <= 59:
        raise InvalidComponent(
            f"second must be between 0 and 59, got {second}"
        )
    if not 0 <= nanosecond < NS_PER_SEC:
        raise InvalidComponent(f"nanosecond out of range: {nanosecond}")


def _check_ints(**kwargs: Any) -> None:
    for name, value in kwargs.items():
        if not isinstance(value, int):
            raise TypeError(f"{name} must be an int, got {type(value)!r}")


def _validated_offset(hours: int, minutes: int, seconds: int) -> int:
    if not -18 <= hours <= 18:
        raise InvalidComponent(
            f"Offset hours must be between -18 and 18, got {hours}"
        )
    # All components must share the same sign
    if hours > 0:
        if minutes < 0 or seconds < 0:
            raise InvalidComponent(
                "Offset minutes and seconds must be positive "
                "when hours are positive"
            )
    elif hours < 0:
        if minutes > 0 or seconds > 0:
            raise InvalidComponent(
                "Offset minutes and seconds must be negative "
                "when hours are negative"
            )
    elif (minutes > 0 and seconds < 0) or (minutes < 0 and seconds > 0):
        raise InvalidComponent(
            "Offset minutes and seconds must have the same sign"
        )
    if not -59 <= minutes <= 59:
        raise InvalidComponent(
            f"Offset minutes must be between -59 and 59, got {minutes}"
        )
    if not -59 <= seconds <= 59:
        raise InvalidComponent(
            f"Offset seconds must be between -59 and 59, got {seconds}"
        )
    if abs(hours) == 18 and (minutes or seconds):
        raise InvalidComponent("Offset must be between -18:00 and +18:00")
    return hours * 3600 + minutes * 60 + seconds


def _parse_with(s: str, fmt: DateTimeFormat, convert: Any) -> Any:
    """Parse text into fields, then convert those into a value.
    Invalid values surface as a parse failure as well."""
    components = DateTimeComponents._from_fields(fmt.parse(s))
    try:
        return convert(components)
    except (InvalidComponent, OutOfRange) as e:
        raise InvalidFormat._for_value(s, e) from e


@final
class LocalDate(_ImmutableBase):
    """A date in the proleptic Gregorian calendar, without a time component

    Years from -999,999 to 999,999 are supported, including year zero.

    Example
    -------
    >>> d = LocalDate(2021, 1, 2)
    LocalDate(2021-01-02)
    """

    __slots__ = ("_year", "_month", "_day")

    MIN: ClassVar[LocalDate]
    """The minimum possible date"""
    MAX: ClassVar[LocalDate]
    """The maximum possible date"""

    def __init__(self, year: int, month: int, day: int) -> None:
        _check_ints(year=year, month=month, day=day)
        _check_year(year)
        _check_month_day(year, month, day)
        self._year = year
        self._month = month
        self._day = day

    @property
    def year(self) -> int:
        return self._year

    @property
    def month(self) -> int:
        return self._month

    @property
    def day(self) -> int:
        return self._day

    def day_of_week(self) -> Weekday:
        """The day of the week

        Example
        -------
        >>> LocalDate(2021, 1, 2).day_of_week()
        Weekday.SATURDAY
        >>> Weekday.SATURDAY.value
        6  # the ISO value
        """
        return Weekday(day_of_week(self.to_epoch_days()))

    def day_of_year(self) -> int:
        """The day of the year, from 1 to 366

        Example
        -------
        >>> LocalDate(2019, 10, 1).day_of_year()
        274
        """
        return day_of_year(self._year, self._month, self._day)

    def at(self, t: LocalTime, /) -> LocalDateTime:
        """Combine a date with a time to create a datetime

        Example
        -------
        >>> d = LocalDate(2021, 1, 2)
        >>> d.at(LocalTime(12, 30))
        LocalDateTime(2021-01-02 12:30)
        """
        return LocalDateTime._from_parts(self, t)

    def to_epoch_days(self) -> int:
        """The number of days since 1970-01-01"""
        return epoch_day_from_date(self._year, self._month, self._day)

    @classmethod
    def from_epoch_days(cls, n: int, /) -> LocalDate:
        """Create a date from the number of days since 1970-01-01

        Inverse of :meth:`to_epoch_days`.
        """
        return cls._from_ymd_checked(*date_from_epoch_day(n))

    def replace(self, **kwargs: Any) -> LocalDate:
        """Create a new instance with the given fields replaced

        Example
        -------
        >>> d = LocalDate(2021, 1, 2)
        >>> d.replace(day=4)
        LocalDate(2021-01-04)
        """
        return LocalDate(
            kwargs.pop("year", self._year),
            kwargs.pop("month", self._month),
            kwargs.pop("day", self._day),
            **kwargs,
        )

    def add(
        self, *, years: int = 0, months: int = 0, weeks: int = 0, days: int = 0
    ) -> LocalDate:
        """Add calendar units to a date. Months are added first,
        clamping the day to the end of the month if needed.

        Raises :class:`OutOfRange` if the result is beyond the supported dates.

        Example
        -------
        >>> d = LocalDate(2021, 1, 2)
        >>> d.add(years=1, months=2, days=3)
        LocalDate(2022-03-05)
        >>> LocalDate(2020, 2, 29).add(years=1)
        LocalDate(2021-02-28)
        """
        return self._shift(
            safe_add(safe_multiply(years, 12).unwrap(), months).unwrap(),
            safe_add(safe_multiply(weeks, 7).unwrap(), days).unwrap(),
        )

    def subtract(
        self, *, years: int = 0, months: int = 0, weeks: int = 0, days: int = 0
    ) -> LocalDate:
        """Subtract calendar units from a date.
        Equivalent to :meth:`add` with negated arguments.

        Example
        -------
        >>> d = LocalDate(2021, 1, 2)
        >>> d.subtract(years=1, months=2, days=3)
        LocalDate(2019-10-30)
        """
        return self.add(years=-years, months=-months, weeks=-weeks, days=-days)

    def add_units(self, value: int, unit: str, /) -> LocalDate:
        """Add a number of date-based units (``"day"``, ``"week"``,
        ``"month"``, ``"quarter"``, ``"year"`` or ``"century"``)

        Example
        -------
        >>> LocalDate(2021, 1, 31).add_units(1, "month")
        LocalDate(2021-02-28)
        """
        if not is_date_unit(unit):
            raise ValueError(f"Can't add time-based unit {unit!r} to a date")
        elif unit in DAY_UNIT_DAYS:
            return self._shift(
                0, safe_multiply(value, DAY_UNIT_DAYS[unit]).unwrap()
            )
        return self._shift(
            safe_multiply(value, MONTH_UNIT_MONTHS[unit]).unwrap(), 0
        )

    def until(self, other: LocalDate, unit: str, /) -> int:
        """The number of whole date-based units from this date to another,
        rounded toward zero.

        Example
        -------
        >>> LocalDate(2021, 1, 31).until(LocalDate(2021, 3, 30), "month")
        1
        """
        if not is_date_unit(unit):
            raise ValueError(f"Unit {unit!r} isn't date-based")
        elif unit in DAY_UNIT_DAYS:
            return trunc_div(self.days_until(other), DAY_UNIT_DAYS[unit])
        return trunc_div(self.months_until(other), MONTH_UNIT_MONTHS[unit])

    def days_until(self, other: LocalDate, /) -> int:
        """The number of days from this date to another.
        If the other date is before this date, the result is negative.

        Example
        -------
        >>> LocalDate(2021, 1, 2).days_until(LocalDate(2021, 1, 5))
        3
        """
        return days_until(self._ymd(), other._ymd())

    def months_until(self, other: LocalDate, /) -> int:
        """The number of whole months from this date to another.
        A month only counts once its day-of-month is reached.

        Example
        -------
        >>> LocalDate(2021, 1, 15).months_until(LocalDate(2021, 3, 14))
        1
        """
        return months_until(self._ymd(), other._ymd())

    def period_until(self, other: LocalDate, /) -> DatePeriod:
        """The difference to another date in whole months and remaining days,
        such that ``d + d.period_until(other) == other``.

        Example
        -------
        >>> LocalDate(2011, 6, 24).period_until(LocalDate(2023, 4, 15))
        DatePeriod(P11Y9M22D)
        """
        months = self.months_until(other)
        days = days_until(
            add_months(self._year, self._month, self._day, months),
            other._ymd(),
        )
        return DatePeriod._from_months_days(months, days)

    def __add__(self, p: DatePeriod) -> LocalDate:
        """Add a period to a date. Behaves the same as :meth:`add`"""
        if isinstance(p, DatePeriod):
            return self._shift(p._months, p._days)
        return NotImplemented

    @overload
    def __sub__(self, d: DatePeriod) -> LocalDate: ...

    @overload
    def __sub__(self, d: LocalDate) -> DatePeriod: ...

    def __sub__(self, d: DatePeriod | LocalDate) -> LocalDate | DatePeriod:
        """Subtract a period from a date, or subtract two dates

        >>> LocalDate(2023, 4, 15) - LocalDate(2011, 6, 24)
        DatePeriod(P11Y9M22D)
        """
        if isinstance(d, DatePeriod):
            return self._shift(-d._months, -d._days)
        elif isinstance(d, LocalDate):
            return d.period_until(self)
        return NotImplemented

    def format(self, fmt: DateTimeFormat = ISO_DATE, /) -> str:
        """Format with the given format, ISO 8601 (``YYYY-MM-DD``) by default

        Example
        -------
        >>> LocalDate(2021, 1, 2).format(ISO_DATE_BASIC)
        '20210102'
        """
        return fmt.format(self._to_fields())

    @classmethod
    def parse(cls, s: str, fmt: DateTimeFormat = ISO_DATE, /) -> LocalDate:
        """Parse with the given format, ISO 8601 (``YYYY-MM-DD``) by default

        Inverse of :meth:`format`.
        Raises :class:`InvalidFormat` if the text doesn't match,
        or describes a date that doesn't exist.
        """
        return _parse_with(s, fmt, DateTimeComponents.to_local_date)  # type: ignore[no-any-return]

    def format_iso(self) -> str:
        """Format as ISO 8601 ``YYYY-MM-DD``

        Years beyond 9999 are prefixed with ``+``, negative years with ``-``.
        """
        return ISO_DATE.format(self._to_fields())

    @classmethod
    def parse_iso(cls, s: str, /) -> LocalDate:
        """Parse ISO 8601 ``YYYY-MM-DD``. Inverse of :meth:`format_iso`"""
        return cls.parse(s, ISO_DATE)

    __str__ = format_iso

    def __repr__(self) -> str:
        return f"LocalDate({self})"

    def __eq__(self, other: object) -> bool:
        """Compare for equality

        Example
        -------
        >>> d = LocalDate(2021, 1, 2)
        >>> d == LocalDate(2021, 1, 2)
        True
        >>> d == LocalDate(2021, 1, 3)
        False
        """
        if not isinstance(other, LocalDate):
            return NotImplemented
        return self._ymd() == other._ymd()

    def __hash__(self) -> int:
        return hash(self._ymd())

    def __lt__(self, other: LocalDate) -> bool:
        if not isinstance(other, LocalDate):
            return NotImplemented
        return self._ymd() < other._ymd()

    def __le__(self, other: LocalDate) -> bool:
        if not isinstance(other, LocalDate):
            return NotImplemented
        return self._ymd() <= other._ymd()

    def __gt__(self, other: LocalDate) -> bool:
        if not isinstance(other, LocalDate):
            return NotImplemented
        return self._ymd() > other._ymd()

    def __ge__(self, other: LocalDate) -> bool:
        if not isinstance(other, LocalDate):
            return NotImplemented
        return self._ymd() >= other._ymd()

    def _ymd(self) -> tuple[int, int, int]:
        return (self._year, self._month, self._day)

    def _to_fields(self) -> dict[str, int]:
        return {"year": self._year, "month": self._month, "day": self._day}

    def _shift(self, months: int, days: int) -> LocalDate:
        y, m, d = self._year, self._month, self._day
        if months:
            y, m, d = add_months(y, m, d, months)
            if not _MIN_YEAR <= y <= _MAX_YEAR:
                raise OutOfRange(
                    f"Adding {months} months to {self} is out of range"
                )
        if days:
            y, m, d = add_days(y, m, d, days)
        return LocalDate._from_ymd_checked(y, m, d)

    @classmethod
    def _from_ymd_checked(cls, year: int, month: int, day: int) -> LocalDate:
        if not _MIN_YEAR <= year <= _MAX_YEAR:
            raise OutOfRange(f"Date out of range: year {year}")
        return cls._from_ymd_unchecked(year, month, day)

    @classmethod
    def _from_ymd_unchecked(cls, year: int, month: int, day: int) -> LocalDate:
        self = _object_new(cls)
        self._year = year
        self._month = month
        self._day = day
        return self

    @no_type_check
    def __reduce__(self):
        return _unpkl_date, (pack("<iBB", *self._ymd()),)


# A separate unpickling function allows us to make backwards-compatible changes
# to the pickling format in the future
@no_type_check
def _unpkl_date(data: bytes) -> LocalDate:
    return LocalDate(*unpack("<iBB", data))


@final
class LocalTime(_ImmutableBase):
    """Time of day without a date component

    Example
    -------
    >>> t = LocalTime(12, 30, 0)
    LocalTime(12:30)
    """

    __slots__ = ("_hour", "_minute", "_second", "_nanos")

    MIDNIGHT: ClassVar[LocalTime]
    """The time at midnight"""
    NOON: ClassVar[LocalTime]
    """The time at noon"""
    MIN: ClassVar[LocalTime]
    """Alias for :attr:`MIDNIGHT`"""
    MAX: ClassVar[LocalTime]
    """The maximum time, just before midnight"""

    def __init__(
        self,
        hour: int = 0,
        minute: int = 0,
        second: int = 0,
        *,
        nanosecond: int = 0,
    ) -> None:
        _check_ints(
            hour=hour, minute=minute, second=second, nanosecond=nanosecond
        )
        _check_time(hour, minute, second, nanosecond)
        self._hour = hour
        self._minute = minute
        self._second = second
        self._nanos = nanosecond

    @property
    def hour(self) -> int:
        return self._hour

    @property
    def minute(self) -> int:
        return self._minute

    @property
    def second(self) -> int:
        return self._second

    @property
    def nanosecond(self) -> int:
        return self._nanos

    def on(self, d: LocalDate, /) -> LocalDateTime:
        """Combine a time with a date to create a datetime

        Example
        -------
        >>> t = LocalTime(12, 30)
        >>> t.on(LocalDate(2021, 1, 2))
        LocalDateTime(2021-01-02 12:30)
        """
        return LocalDateTime._from_parts(d, self)

    def to_second_of_day(self) -> int:
        """Seconds since midnight, ignoring the nanoseconds"""
        return self._hour * 3600 + self._minute * 60 + self._second

    def to_nanosecond_of_day(self) -> int:
        """Nanoseconds since midnight"""
        return self.to_second_of_day() * NS_PER_SEC + self._nanos

    @classmethod
    def from_second_of_day(cls, n: int, /) -> LocalTime:
        """Create from the number of seconds since midnight

        Example
        -------
        >>> LocalTime.from_second_of_day(3_661)
        LocalTime(01:01:01)
        """
        if not 0 <= n < SECS_PER_DAY:
            raise InvalidComponent(f"second of day out of range: {n}")
        return cls._from_nanos_of_day(n * NS_PER_SEC)

    @classmethod
    def from_nanosecond_of_day(cls, n: int, /) -> LocalTime:
        """Create from the number of nanoseconds since midnight"""
        if not 0 <= n < NS_PER_DAY:
            raise InvalidComponent(f"nanosecond of day out of range: {n}")
        return cls._from_nanos_of_day(n)

    def replace(self, **kwargs: Any) -> LocalTime:
        """Create a new instance with the given fields replaced

        Example
        -------
        >>> t = LocalTime(12, 30)
        >>> t.replace(minute=45)
        LocalTime(12:45)
        """
        return LocalTime(
            kwargs.pop("hour", self._hour),
            kwargs.pop("minute", self._minute),
            kwargs.pop("second", self._second),
            nanosecond=kwargs.pop("nanosecond", self._nanos),
            **kwargs,
        )

    def format(self, fmt: DateTimeFormat = ISO_TIME, /) -> str:
        return fmt.format(self._to_fields())

    @classmethod
    def parse(cls, s: str, fmt: DateTimeFormat = ISO_TIME, /) -> LocalTime:
        return _parse_with(s, fmt, DateTimeComponents.to_local_time)  # type: ignore[no-any-return]

    def format_iso(self) -> str:
        """Format as ISO 8601 ``HH:MM[:SS[.fff]]``

        Seconds are omitted if they're zero (along with the fraction).
        The fraction is written in groups of three digits.

        Example
        -------
        >>> LocalTime(12, 30, 0).format_iso()
        '12:30'
        >>> LocalTime(12, 30, 5, nanosecond=100_000_000).format_iso()
        '12:30:05.100'
        """
        return ISO_TIME.format(self._to_fields())

    @classmethod
    def parse_iso(cls, s: str, /) -> LocalTime:
        """Parse ISO 8601 ``HH:MM[:SS[.fffffffff]]``.
        Inverse of :meth:`format_iso`
        """
        return cls.parse(s, ISO_TIME)

    __str__ = format_iso

    def __repr__(self) -> str:
        return f"LocalTime({self})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LocalTime):
            return NotImplemented
        return self._as_tuple() == other._as_tuple()

    def __hash__(self) -> int:
        return hash(self._as_tuple())

    def __lt__(self, other: LocalTime) -> bool:
        if not isinstance(other, LocalTime):
            return NotImplemented
        return self._as_tuple() < other._as_tuple()

    def __le__(self, other: LocalTime) -> bool:
        if not isinstance(other, LocalTime):
            return NotImplemented
        return self._as_tuple() <= other._as_tuple()

    def __gt__(self, other: LocalTime) -> bool:
        if not isinstance(other, LocalTime):
            return NotImplemented
        return self._as_tuple() > other._as_tuple()

    def __ge__(self, other: LocalTime) -> bool:
        if not isinstance(other, LocalTime):
            return NotImplemented
        return self._as_tuple() >= other._as_tuple()

    def _as_tuple(self) -> tuple[int, int, int, int]:
        return (self._hour, self._minute, self._second, self._nanos)

    def _to_fields(self) -> dict[str, int]:
        return {
            "hour": self._hour,
            "minute": self._minute,
            "second": self._second,
            "nanosecond": self._nanos,
        }

    @classmethod
    def _from_nanos_of_day(cls, n: int) -> LocalTime:
        self = _object_new(cls)
        secs, self._nanos = divmod(n, NS_PER_SEC)
        self._hour, rem = divmod(secs, 3600)
        self._minute, self._second = divmod(rem, 60)
        return self

    @no_type_check
    def __reduce__(self):
        return _unpkl_time, (pack("<BBBI", *self._as_tuple()),)


# A separate unpickling function allows us to make backwards-compatible changes
# to the pickling format in the future
@no_type_check
def _unpkl_time(data: bytes) -> LocalTime:
    h, m, s, ns = unpack("<BBBI", data)
    return LocalTime(h, m, s, nanosecond=ns)


@final
class LocalDateTime(_ImmutableBase):
    """A date and time without a UTC offset or time zone.

    It can't be mixed with exact-time types without explicitly
    choosing a time zone or offset.

    Example
    -------
    >>> dt = LocalDateTime(2024, 3, 31, hour=2, minute=30)
    LocalDateTime(2024-03-31 02:30)
    >>> dt.to_instant(TimeZone.of("Europe/Amsterdam"))
    Instant(2024-03-31 01:30:00Z)  # 02:30 is skipped, 03:30 is used
    """

    __slots__ = ("_date", "_time")

    MIN: ClassVar[LocalDateTime]
    """The minimum possible date-time"""
    MAX: ClassVar[LocalDateTime]
    """The maximum possible date-time"""

    def __init__(
        self,
        year: int,
        month: int,
        day: int,
        hour: int = 0,
        minute: int = 0,
        second: int = 0,
        *,
        nanosecond: int = 0,
    ) -> None:
        self._date = LocalDate(year, month, day)
        self._time = LocalTime(hour, minute, second, nanosecond=nanosecond)

    @property
    def year(self) -> int:
        return self._date._year

    @property
    def month(self) -> int:
        return self._date._month

    @property
    def day(self) -> int:
        return self._date._day

    @property
    def hour(self) -> int:
        return self._time._hour

    @property
    def minute(self) -> int:
        return self._time._minute

    @property
    def second(self) -> int:
        return self._time._second

    @property
    def nanosecond(self) -> int:
        return self._time._nanos

    def date(self) -> LocalDate:
        """The date part"""
        return self._date

    def time(self) -> LocalTime:
        """The time-of-day part"""
        return self._time

    def day_of_week(self) -> Weekday:
        return self._date.day_of_week()

    def day_of_year(self) -> int:
        return self._date.day_of_year()

    def replace(self, **kwargs: Any) -> LocalDateTime:
        """Create a new instance with the given fields replaced"""
        d = {k: kwargs.pop(k) for k in ("year", "month", "day") if k in kwargs}
        return LocalDateTime._from_parts(
            self._date.replace(**d) if d else self._date,
            self._time.replace(**kwargs) if kwargs else self._time,
        )

    def add(
        self, *, years: int = 0, months: int = 0, weeks: int = 0, days: int = 0
    ) -> LocalDateTime:
        """Add calendar units, leaving the time of day untouched.

        Time units can only be added after choosing a time zone,
        since some days are shorter or longer than 24 hours.
        Use :meth:`to_instant` first, then :meth:`Instant.add`.

        Example
        -------
        >>> LocalDateTime(2024, 1, 31, 8).add(months=1)
        LocalDateTime(2024-02-29 08:00)
        """
        return LocalDateTime._from_parts(
            self._date.add(years=years, months=months, weeks=weeks, days=days),
            self._time,
        )

    def subtract(
        self, *, years: int = 0, months: int = 0, weeks: int = 0, days: int = 0
    ) -> LocalDateTime:
        """Subtract calendar units. Equivalent to :meth:`add` with
        negated arguments."""
        return self.add(years=-years, months=-months, weeks=-weeks, days=-days)

    def add_units(self, value: int, unit: str, /) -> LocalDateTime:
        """Add a number of date-based units, leaving the time untouched"""
        return LocalDateTime._from_parts(
            self._date.add_units(value, unit), self._time
        )

    def until(self, other: LocalDateTime, unit: str, /) -> int:
        """The number of whole units from this datetime to another,
        rounded toward zero.

        For date-based units, a day only counts once its time of day is
        reached. Time-based units count the exact elapsed time,
        as if in UTC.

        Example
        -------
        >>> LocalDateTime(2024, 1, 1, 12).until(LocalDateTime(2024, 1, 2, 11), "day")
        0
        """
        if is_date_unit(unit):
            end = other._date
            if end > self._date and other._time < self._time:
                end = end._shift(0, -1)
            elif end < self._date and other._time > self._time:
                end = end._shift(0, 1)
            return self._date.until(end, unit)
        diff = (
            other._local_secs() - self._local_secs()
        ) * NS_PER_SEC + other._time._nanos - self._time._nanos
        return trunc_div(diff, TIME_UNIT_NANOS[unit])

    def to_instant(
        self,
        zone: TimeZone | UtcOffset,
        /,
        *,
        prefer: UtcOffset | None = None,
    ) -> Instant:
        """The instant at which this local time occurs in the given zone.

        If the time is skipped (e.g. clocks moving forward), it's moved
        forward by the length of the gap. If the time occurs twice
        (e.g. clocks moving back), the ``prefer`` offset is used if it
        applies. Otherwise, the earlier offset is used.

        Example
        -------
        >>> LocalDateTime(2024, 10, 27, 2, 30).to_instant(
        ...     TimeZone.of("Europe/Amsterdam"),
        ...     prefer=UtcOffset(hours=1)
        ... )
        Instant(2024-10-27 01:30:00Z)
        """
        if isinstance(zone, UtcOffset):
            return Instant._from_parts(
                self._local_secs() - zone._total, self._time._nanos
            )
        elif isinstance(zone, TimeZone):
            return zone._to_instant(
                self, None if prefer is None else prefer._total
            )
        raise TypeError(
            f"Expected TimeZone or UtcOffset, got {type(zone)!r}"
        )

    def format(self, fmt: DateTimeFormat = ISO_DATE_TIME, /) -> str:
        return fmt.format(self._to_fields())

    @classmethod
    def parse(
        cls, s: str, fmt: DateTimeFormat = ISO_DATE_TIME, /
    ) -> LocalDateTime:
        return _parse_with(s, fmt, DateTimeComponents.to_local_date_time)  # type: ignore[no-any-return]

    def format_iso(self) -> str:
        """Format as ISO 8601 ``YYYY-MM-DDTHH:MM[:SS[.fff]]``

        Example
        -------
        >>> LocalDateTime(2019, 10, 1, 18, 43, 15, nanosecond=100_500_000).format_iso()
        '2019-10-01T18:43:15.100500'
        """
        return ISO_DATE_TIME.format(self._to_fields())

    @classmethod
    def parse_iso(cls, s: str, /) -> LocalDateTime:
        """Parse ISO 8601 ``YYYY-MM-DDTHH:MM[:SS[.fffffffff]]``.
        A lowercase ``t`` is accepted as well.

        Inverse of :meth:`format_iso`
        """
        return cls.parse(s, ISO_DATE_TIME)

    __str__ = format_iso

    def __repr__(self) -> str:
        return f"LocalDateTime({str(self).replace('T', ' ')})"

    def __eq__(self, other: object) -> bool:
        """Compare for equality

        Example
        -------
        >>> d = LocalDateTime(2020, 8, 15, 23)
        >>> d == LocalDateTime(2020, 8, 15, 23)
        True
        >>> d == LocalDateTime(2020, 8, 15, 22)
        False
        """
        if not isinstance(other, LocalDateTime):
            return NotImplemented
        return self._as_tuple() == other._as_tuple()

    def __hash__(self) -> int:
        return hash(self._as_tuple())

    def __lt__(self, other: LocalDateTime) -> bool:
        if not isinstance(other, LocalDateTime):
            return NotImplemented
        return self._as_tuple() < other._as_tuple()

    def __le__(self, other: LocalDateTime) -> bool:
        if not isinstance(other, LocalDateTime):
            return NotImplemented
        return self._as_tuple() <= other._as_tuple()

    def __gt__(self, other: LocalDateTime) -> bool:
        if not isinstance(other, LocalDateTime):
            return NotImplemented
        return self._as_tuple() > other._as_tuple()

    def __ge__(self, other: LocalDateTime) -> bool:
        if not isinstance(other, LocalDateTime):
            return NotImplemented
        return self._as_tuple() >= other._as_tuple()

    def _as_tuple(self) -> tuple[int, ...]:
        return (*self._date._ymd(), *self._time._as_tuple())

    def _to_fields(self) -> dict[str, int]:
        return {**self._date._to_fields(), **self._time._to_fields()}

    def _local_secs(self) -> int:
        """Seconds since 1970-01-01T00:00, ignoring nanoseconds"""
        return (
            self._date.to_epoch_days() * SECS_PER_DAY
            + self._time.to_second_of_day()
        )

    @classmethod
    def _from_local_secs(cls, secs: int, nanos: int) -> LocalDateTime:
        """Inverse of _local_secs. Raises OutOfRange beyond the supported dates"""
        days, secs_of_day = divmod(secs, SECS_PER_DAY)
        return cls._from_parts(
            LocalDate._from_ymd_checked(*date_from_epoch_day(days)),
            LocalTime._from_nanos_of_day(secs_of_day * NS_PER_SEC + nanos),
        )

    @classmethod
    def _from_parts(cls, d: LocalDate, t: LocalTime) -> LocalDateTime:
        self = _object_new(cls)
        self._date = d
        self._time = t
        return self

    @no_type_check
    def __reduce__(self):
        return _unpkl_local, (pack("<iBBBBBI", *self._as_tuple()),)


# A separate unpickling function allows us to make backwards-compatible changes
# to the pickling format in the future
@no_type_check
def _unpkl_local(data: bytes) -> LocalDateTime:
    *args, nanos = unpack("<iBBBBBI", data)
    return LocalDateTime(*args, nanosecond=nanos)


@final
class UtcOffset(_ImmutableBase):
    """A fixed difference from UTC, between -18:00 and +18:00

    Minutes and seconds must have the same sign as the hours.
    If only minutes (or seconds) are given, they may exceed 59
    and are normalized.

    Example
    -------
    >>> UtcOffset(hours=3, minutes=30)
    UtcOffset(+03:30)
    >>> UtcOffset(minutes=-90)
    UtcOffset(-01:30)
    >>> UtcOffset(hours=1, minutes=-30)  # mixed signs: error
    """

    __slots__ = ("_total",)

    ZERO: ClassVar[UtcOffset]
    """The zero offset, i.e. UTC"""
    MIN: ClassVar[UtcOffset]
    MAX: ClassVar[UtcOffset]

    def __init__(
        self,
        *,
        hours: int | None = None,
        minutes: int | None = None,
        seconds: int | None = None,
    ) -> None:
        _check_ints(
            **{
                k: v
                for k, v in zip(
                    ("hours", "minutes", "seconds"), (hours, minutes, seconds)
                )
                if v is not None
            }
        )
        if hours is not None:
            self._total = _validated_offset(hours, minutes or 0, seconds or 0)
        elif minutes is not None:
            self._total = _validated_offset(
                trunc_div(minutes, 60), trunc_rem(minutes, 60), seconds or 0
            )
        else:
            if not -_MAX_OFFSET <= (total := seconds or 0) <= _MAX_OFFSET:
                raise InvalidComponent(
                    f"Offset must be between -18:00 and +18:00, got {total}s"
                )
            self._total = total

    @property
    def total_seconds(self) -> int:
        return self._total

    def as_timezone(self) -> TimeZone:
        """A time zone which always has this offset

        Example
        -------
        >>> UtcOffset(hours=3, minutes=30).as_timezone().id
        '+03:30'
        """
        return TimeZone.fixed(self)

    def format(self, fmt: DateTimeFormat = ISO_OFFSET, /) -> str:
        """Format with the given format, ISO 8601 by default

        Example
        -------
        >>> off = UtcOffset(hours=10, minutes=36, seconds=22)
        >>> off.format()
        '+10:36:22'
        >>> off.format(ISO_OFFSET_BASIC)
        '+103622'
        >>> off.format(FOUR_DIGIT_OFFSET)  # seconds are dropped
        '+1036'
        """
        return fmt.format(self._to_fields())

    @classmethod
    def parse(cls, s: str, fmt: DateTimeFormat = ISO_OFFSET, /) -> UtcOffset:
        return _parse_with(s, fmt, DateTimeComponents.to_utc_offset)  # type: ignore[no-any-return]

    def format_iso(self) -> str:
        """Format as ISO 8601 ``±HH:MM[:SS]``, or ``Z`` for zero"""
        return ISO_OFFSET.format(self._to_fields())

    @classmethod
    def parse_iso(cls, s: str, /) -> UtcOffset:
        return cls.parse(s, ISO_OFFSET)

    __str__ = format_iso

    def __repr__(self) -> str:
        return f"UtcOffset({'+00:00' if self._total == 0 else self})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, UtcOffset):
            return NotImplemented
        return self._total == other._total

    def __hash__(self) -> int:
        return hash(self._total)

    def _to_fields(self) -> dict[str, int]:
        hrs, rem = divmod(abs(self._total), 3600)
        mins, secs = divmod(rem, 60)
        return {
            "offset_negative": int(self._total < 0),
            "offset_hours": hrs,
            "offset_minutes": mins,
            "offset_seconds": secs,
        }

    @classmethod
    def _from_secs_unchecked(cls, secs: int) -> UtcOffset:
        self = _object_new(cls)
        self._total = secs
        return self

    @no_type_check
    def __reduce__(self):
        return _unpkl_offset, (pack("<i", self._total),)


# A separate unpickling function allows us to make backwards-compatible changes
# to the pickling format in the future
@no_type_check
def _unpkl_offset(data: bytes) -> UtcOffset:
    return UtcOffset(seconds=unpack("<i", data)[0])


@final
class TimeDelta(_ImmutableBase):
    """A duration consisting of a precise time: hours, minutes, (micro)seconds

    The inputs are normalized, so 90 minutes becomes 1 hour and 30 minutes,
    for example.

    Examples
    --------
    >>> d = TimeDelta(hours=1, minutes=30)
    TimeDelta(01:30:00)
    >>> d.in_minutes()
    90.0

    Note
    ----
    A shorter way to instantiate a timedelta is to use the helper functions
    :func:`~civiltime.hours`, :func:`~civiltime.minutes`, etc.
    """

    __slots__ = ("_total_ns",)

    ZERO: ClassVar[TimeDelta]
    """A delta of zero"""
    MAX: ClassVar[TimeDelta]
    """The maximum possible delta"""
    MIN: ClassVar[TimeDelta]
    """The minimum possible delta"""

    def __init__(
        self,
        *,
        hours: float = 0,
        minutes: float = 0,
        seconds: float = 0,
        milliseconds: float = 0,
        microseconds: float = 0,
        nanoseconds: int = 0,
    ) -> None:
        assert type(nanoseconds) is int  # catch this common mistake
        ns = self._total_ns = (
            # Cast individual components to int to avoid floating point errors
            int(hours * _NS_PER_HOUR)
            + int(minutes * _NS_PER_MINUTE)
            + int(seconds * NS_PER_SEC)
            + int(milliseconds * 1_000_000)
            + int(microseconds * 1_000)
            + nanoseconds
        )
        if not fits(ns // NS_PER_SEC):
            raise OutOfRange("TimeDelta out of range")

    def in_hours(self) -> float:
        """The total size in hours

        Example
        -------
        >>> d = TimeDelta(hours=1, minutes=30)
        >>> d.in_hours()
        1.5
        """
        return self._total_ns / _NS_PER_HOUR

    def in_minutes(self) -> float:
        return self._total_ns / _NS_PER_MINUTE

    def in_seconds(self) -> float:
        return self._total_ns / NS_PER_SEC

    def in_nanoseconds(self) -> int:
        """The total size in nanoseconds

        >>> d = TimeDelta(seconds=2, nanoseconds=50)
        >>> d.in_nanoseconds()
        2_000_000_050
        """
        return self._total_ns

    def in_hrs_mins_secs_nanos(self) -> tuple[int, int, int, int]:
        """Convert to a tuple of (hours, minutes, seconds, nanoseconds)

        Example
        -------
        >>> d = TimeDelta(hours=1, minutes=30, microseconds=5_000_090)
        >>> d.in_hrs_mins_secs_nanos()
        (1, 30, 5, 90_000)
        """
        hours, rem = divmod(abs(self._total_ns), _NS_PER_HOUR)
        mins, rem = divmod(rem, _NS_PER_MINUTE)
        secs, ns = divmod(rem, NS_PER_SEC)
        return (
            (hours, mins, secs, ns)
            if self._total_ns >= 0
            else (-hours, -mins, -secs, -ns)
        )

    def format_iso(self) -> str:
        """Format as an ISO 8601 duration, e.g. ``PT1H30M``

        Inverse of :meth:`parse_iso`.
        """
        hrs, mins, secs, ns = abs(self).in_hrs_mins_secs_nanos()
        seconds = f"{secs}.{ns:09d}".rstrip("0") if ns else str(secs)
        return f"{(self._total_ns < 0) * '-'}PT" + (
            (
                f"{hrs}H" * bool(hrs)
                + f"{mins}M" * bool(mins)
                + f"{seconds}S" * bool(secs or ns)
            )
            or "0S"
        )

    @classmethod
    def parse_iso(cls, s: str, /) -> TimeDelta:
        """Parse an ISO 8601 duration without a date part, e.g. ``PT1H30M``

        Example
        -------
        >>> TimeDelta.parse_iso("PT1H30M")
        TimeDelta(01:30:00)
        """
        if (match := _match_timedelta(s)) is None or s.endswith("T"):
            raise InvalidFormat(f"Invalid format: {s!r}")
        sign, hrs, mins, secs, fraction = match.groups()
        if hrs is None and mins is None and secs is None:
            raise InvalidFormat(f"Invalid format: {s!r}")
        ns = (
            int(hrs or 0) * _NS_PER_HOUR
            + int(mins or 0) * _NS_PER_MINUTE
            + int(secs or 0) * NS_PER_SEC
            + int((fraction or "").ljust(9, "0"))
        )
        if sign == "-":
            ns = -ns
        if not fits(ns // NS_PER_SEC):
            raise InvalidFormat(f"Invalid format: {s!r} (out of range)")
        return cls._from_nanos_unchecked(ns)

    def __add__(self, other: TimeDelta) -> TimeDelta:
        """Add two deltas together

        Example
        -------
        >>> d = TimeDelta(hours=1, minutes=30)
        >>> d + TimeDelta(minutes=30)
        TimeDelta(02:00:00)
        """
        if not isinstance(other, TimeDelta):
            return NotImplemented
        return TimeDelta(nanoseconds=self._total_ns + other._total_ns)

    def __sub__(self, other: TimeDelta) -> TimeDelta:
        if not isinstance(other, TimeDelta):
            return NotImplemented
        return TimeDelta(nanoseconds=self._total_ns - other._total_ns)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TimeDelta):
            return NotImplemented
        return self._total_ns == other._total_ns

    def __hash__(self) -> int:
        return hash(self._total_ns)

    def __lt__(self, other: TimeDelta) -> bool:
        if not isinstance(other, TimeDelta):
            return NotImplemented
        return self._total_ns < other._total_ns

    def __le__(self, other: TimeDelta) -> bool:
        if not isinstance(other, TimeDelta):
            return NotImplemented
        return self._total_ns <= other._total_ns

    def __gt__(self, other: TimeDelta) -> bool:
        if not isinstance(other, TimeDelta):
            return NotImplemented
        return self._total_ns > other._total_ns

    def __ge__(self, other: TimeDelta) -> bool:
        if not isinstance(other, TimeDelta):
            return NotImplemented
        return self._total_ns >= other._total_ns

    def __bool__(self) -> bool:
        """True if the value is non-zero"""
        return bool(self._total_ns)

    def __mul__(self, other: int) -> TimeDelta:
        """Multiply by a whole number

        Example
        -------
        >>> TimeDelta(hours=1, minutes=30) * 3
        TimeDelta(04:30:00)
        """
        if not isinstance(other, int):
            return NotImplemented
        return TimeDelta(nanoseconds=self._total_ns * other)

    def __rmul__(self, other: int) -> TimeDelta:
        return self * other

    def __neg__(self) -> TimeDelta:
        return TimeDelta(nanoseconds=-self._total_ns)

    def __pos__(self) -> TimeDelta:
        return self

    def __abs__(self) -> TimeDelta:
        return TimeDelta._from_nanos_unchecked(abs(self._total_ns))

    __str__ = format_iso

    def __repr__(self) -> str:
        hrs, mins, secs, ns = abs(self).in_hrs_mins_secs_nanos()
        return (
            f"TimeDelta({'-'*(self._total_ns < 0)}{hrs:02}:{mins:02}:{secs:02}"
            + f".{ns:0>9}".rstrip("0") * bool(ns)
            + ")"
        )

    @no_type_check
    def __reduce__(self):
        secs, nanos = divmod(self._total_ns, NS_PER_SEC)
        return _unpkl_tdelta, (pack("<qI", secs, nanos),)

    @classmethod
    def _from_nanos_unchecked(cls, ns: int) -> TimeDelta:
        new = _object_new(cls)
        new._total_ns = ns
        return new


# A separate unpickling function allows us to make backwards-compatible changes
# to the pickling format in the future
@no_type_check
def _unpkl_tdelta(data: bytes) -> TimeDelta:
    s, ns = unpack("<qI", data)
    return TimeDelta(seconds=s, nanoseconds=ns)


class DateTimePeriod(_ImmutableBase):
    """A calendar-relative amount of time: months, days and nanoseconds.

    Unlike :class:`TimeDelta`, the length of a period depends on where
    it's applied: a month may have 28 to 31 days, and a day may have
    23 to 25 hours in a time zone with daylight saving time.

    The three components are stored (and signed) independently, so
    ``DateTimePeriod(months=1, days=-1)`` is not simplified.
    Years are stored as months, and hours, minutes and seconds as
    nanoseconds.

    Example
    -------
    >>> p = DateTimePeriod(years=1, months=2, hours=25)
    DateTimePeriod(P1Y2MT25H)
    >>> p.years, p.months, p.hours
    (1, 2, 25)
    """

    __slots__ = ("_months", "_days", "_ns")

    def __init__(
        self,
        *,
        years: int = 0,
        months: int = 0,
        weeks: int = 0,
        days: int = 0,
        hours: int = 0,
        minutes: int = 0,
        seconds: int = 0,
        nanoseconds: int = 0,
    ) -> None:
        _check_ints(
            years=years,
            months=months,
            weeks=weeks,
            days=days,
            hours=hours,
            minutes=minutes,
            seconds=seconds,
            nanoseconds=nanoseconds,
        )
        self._months, self._days, self._ns = _checked_period(
            years * 12 + months,
            weeks * 7 + days,
            hours * _NS_PER_HOUR
            + minutes * _NS_PER_MINUTE
            + seconds * NS_PER_SEC
            + nanoseconds,
        )

    @property
    def years(self) -> int:
        return trunc_div(self._months, 12)

    @property
    def months(self) -> int:
        """The months beyond whole years, with the same sign as the total"""
        return trunc_rem(self._months, 12)

    @property
    def days(self) -> int:
        return self._days

    @property
    def hours(self) -> int:
        return trunc_div(self._ns, _NS_PER_HOUR)

    @property
    def minutes(self) -> int:
        return trunc_rem(trunc_div(self._ns, _NS_PER_MINUTE), 60)

    @property
    def seconds(self) -> int:
        return trunc_rem(trunc_div(self._ns, NS_PER_SEC), 60)

    @property
    def nanoseconds(self) -> int:
        return trunc_rem(self._ns, NS_PER_SEC)

    @property
    def total_months(self) -> int:
        return self._months

    @property
    def total_nanoseconds(self) -> int:
        return self._ns

    def format_iso(self) -> str:
        """Format as an ISO 8601 duration, e.g. ``P1Y2M3DT4H5M6.000000007S``

        If no component is positive, a single leading ``-`` is written.
        Otherwise, each negative component carries its own sign.
        A zero period is written as ``P0D``.

        Example
        -------
        >>> DateTimePeriod(days=-1, hours=-2).format_iso()
        '-P1DT2H'
        >>> DateTimePeriod(months=1, days=-1).format_iso()
        'P1M-1D'
        """
        sign = -1 if self._all_nonpositive() else 1
        parts = ["-P" if sign == -1 else "P"]
        if years := self.years:
            parts.append(f"{years * sign}Y")
        if months := self.months:
            parts.append(f"{months * sign}M")
        if self._days:
            parts.append(f"{self._days * sign}D")
        time_parts = []
        if hours := self.hours:
            time_parts.append(f"{hours * sign}H")
        if minutes := self.minutes:
            time_parts.append(f"{minutes * sign}M")
        secs, nanos = self.seconds, self.nanoseconds
        if secs or nanos:
            if secs:
                whole = str(secs * sign)
            else:
                whole = "-0" if nanos * sign < 0 else "0"
            fraction = f".{abs(nanos):09d}" if nanos else ""
            time_parts.append(f"{whole}{fraction}S")
        if time_parts:
            parts.append("T")
            parts.extend(time_parts)
        if len(parts) == 1:
            parts.append("0D")
        return "".join(parts)

    @classmethod
    def parse_iso(cls, s: str, /) -> DateTimePeriod:
        """Parse an ISO 8601 duration, e.g. ``P1Y2M3DT4H5M6.000000007S``

        Components may carry their own sign, and a leading sign applies
        to all of them. Weeks (``W``) are accepted and counted as 7 days.

        Inverse of :meth:`format_iso`
        """
        if (match := _match_period(s)) is None or s.endswith("T"):
            raise InvalidFormat(f"Invalid format: {s!r}")
        sign_str, *values, fraction = match.groups()
        if all(v is None for v in values):
            raise InvalidFormat(f"Invalid format: {s!r} (no components)")
        sign = -1 if sign_str == "-" else 1
        years, months, weeks, days, hours, minutes, secs = (
            int(v or 0) * sign for v in values
        )
        nanos = 0
        if fraction:
            nanos = int(fraction.ljust(9, "0"))
            if values[-1].startswith("-"):
                nanos = -nanos
            nanos *= sign
        try:
            return cls._from_parts(
                years * 12 + months,
                weeks * 7 + days,
                hours * _NS_PER_HOUR
                + minutes * _NS_PER_MINUTE
                + secs * NS_PER_SEC
                + nanos,
            )
        except ArithmeticOverflow as e:
            raise InvalidFormat._for_value(s, e) from e

    __str__ = format_iso

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self})"

    def __eq__(self, other: object) -> bool:
        """Compare for equality. Periods are compared component-wise,
        so ``DateTimePeriod(days=1) != DateTimePeriod(hours=24)``.
        """
        if not isinstance(other, DateTimePeriod):
            return NotImplemented
        return self._as_tuple() == other._as_tuple()

    def __hash__(self) -> int:
        return hash(self._as_tuple())

    def __bool__(self) -> bool:
        return any(self._as_tuple())

    def __add__(self, other: DateTimePeriod) -> DateTimePeriod:
        """Add two periods component-wise"""
        if not isinstance(other, DateTimePeriod):
            return NotImplemented
        return DateTimePeriod._from_parts(
            self._months + other._months,
            self._days + other._days,
            self._ns + other._ns,
        )

    def __sub__(self, other: DateTimePeriod) -> DateTimePeriod:
        if not isinstance(other, DateTimePeriod):
            return NotImplemented
        return DateTimePeriod._from_parts(
            self._months - other._months,
            self._days - other._days,
            self._ns - other._ns,
        )

    def __neg__(self) -> DateTimePeriod:
        return DateTimePeriod._from_parts(
            -self._months, -self._days, -self._ns
        )

    def __pos__(self) -> DateTimePeriod:
        return self

    def _as_tuple(self) -> tuple[int, int, int]:
        return (self._months, self._days, self._ns)

    def _all_nonpositive(self) -> bool:
        return (
            self._months <= 0
            and self._days <= 0
            and self._ns <= 0
            and any(self._as_tuple())
        )

    @staticmethod
    def _from_parts(months: int, days: int, ns: int) -> DateTimePeriod:
        """Create a period, which is a :class:`DatePeriod` if there is no
        time component. Raises ArithmeticOverflow if a component is too large.
        """
        months, days, ns = _checked_period(months, days, ns)
        self = _object_new(DatePeriod if ns == 0 else DateTimePeriod)
        self._months = months
        self._days = days
        self._ns = ns
        return self

    @no_type_check
    def __reduce__(self):
        return _unpkl_period, (pack("<iiq", *self._as_tuple()),)


@final
class DatePeriod(DateTimePeriod):
    """A period consisting of only calendar units: years, months and days

    Example
    -------
    >>> p = DatePeriod(years=1, weeks=2)
    DatePeriod(P1Y14D)
    >>> LocalDate(2021, 1, 31) + DatePeriod(months=1)
    LocalDate(2021-02-28)
    """

    __slots__ = ()

    def __init__(
        self, *, years: int = 0, months: int = 0, weeks: int = 0, days: int = 0
    ) -> None:
        super().__init__(years=years, months=months, weeks=weeks, days=days)

    @overload
    def __add__(self, other: DatePeriod) -> DatePeriod: ...

    @overload
    def __add__(self, other: DateTimePeriod) -> DateTimePeriod: ...

    def __add__(self, other: DateTimePeriod) -> DateTimePeriod:
        return super().__add__(other)

    def __neg__(self) -> DatePeriod:
        return DatePeriod._from_months_days(-self._months, -self._days)

    @staticmethod
    def _from_months_days(months: int, days: int) -> DatePeriod:
        return DateTimePeriod._from_parts(months, days, 0)  # type: ignore[return-value]


def _checked_period(months: int, days: int, ns: int) -> tuple[int, int, int]:
    if not fits(months, 32):
        raise ArithmeticOverflow(
            f"Total months overflow a 32-bit int: {months}"
        )
    if not fits(days, 32):
        raise ArithmeticOverflow(f"Days overflow a 32-bit int: {days}")
    if not fits(ns):
        raise ArithmeticOverflow(
            f"Total nanoseconds overflow a 64-bit int: {ns}"
        )
    return months, days, ns


# A separate unpickling function allows us to make backwards-compatible changes
# to the pickling format in the future
@no_type_check
def _unpkl_period(data: bytes) -> DateTimePeriod:
    return DateTimePeriod._from_parts(*unpack("<iiq", data))


@final
class Instant(_ImmutableBase):
    """A moment in time with nanosecond precision, independent of location.

    Instants range from the start of year -1,000,000 to the end of year
    1,000,000 (UTC), slightly wider than the supported local dates.

    Example
    -------
    >>> from civiltime import Instant
    >>> py311_release = Instant.from_utc(2022, 10, 24, hour=17)
    Instant(2022-10-24 17:00:00Z)
    >>> py311_release.add(hours=3).epoch_seconds
    1666641600
    """

    __slots__ = ("_secs", "_nanos")

    MIN: ClassVar[Instant]
    """The minimum representable instant."""
    MAX: ClassVar[Instant]
    """The maximum representable instant."""
    DISTANT_PAST: ClassVar[Instant]
    """An instant far in the past, which can still be converted to a local
    date-time in any time zone"""
    DISTANT_FUTURE: ClassVar[Instant]
    """An instant far in the future, which can still be converted to a local
    date-time in any time zone"""

    def __init__(self) -> None:
        raise TypeError(
            "Instant instances cannot be created through the constructor. "
            "Use `Instant.from_utc` or `Instant.now` instead."
        )

    @classmethod
    def from_utc(
        cls,
        year: int,
        month: int,
        day: int,
        hour: int = 0,
        minute: int = 0,
        second: int = 0,
        *,
        nanosecond: int = 0,
    ) -> Instant:
        """Create an Instant defined by a UTC date and time."""
        return LocalDateTime(
            year, month, day, hour, minute, second, nanosecond=nanosecond
        ).to_instant(UtcOffset.ZERO)

    @classmethod
    def now(cls) -> Instant:
        """Create an Instant from the current time."""
        return cls._from_parts(*divmod(time_ns(), NS_PER_SEC))

    @classmethod
    def from_epoch_seconds(
        cls, secs: int, /, nanosecond_adjustment: int = 0
    ) -> Instant:
        """Create an Instant from seconds since 1970-01-01T00:00:00Z,
        plus an adjustment in nanoseconds (which may be negative, or exceed
        a second).

        Results outside the supported range are clamped to
        :attr:`MIN` or :attr:`MAX`.

        Example
        -------
        >>> Instant.from_epoch_seconds(1_700_000_000, 1_500_000_000)
        Instant(2023-11-14 22:13:21.5Z)
        """
        _check_ints(secs=secs, nanosecond_adjustment=nanosecond_adjustment)
        carry, nanos = divmod(nanosecond_adjustment, NS_PER_SEC)
        total = safe_add(secs, carry)
        if isinstance(total, Overflow):
            return cls.MAX if secs > 0 else cls.MIN
        elif total.value < MIN_EPOCH_SECOND:
            return cls.MIN
        elif total.value > MAX_EPOCH_SECOND:
            return cls.MAX
        return cls._from_parts(total.value, nanos)

    @classmethod
    def from_epoch_milliseconds(cls, ms: int, /) -> Instant:
        """Create an Instant from milliseconds since 1970-01-01T00:00:00Z.
        Clamped to :attr:`MIN` or :attr:`MAX` if out of range.
        """
        _check_ints(ms=ms)
        if ms < MIN_EPOCH_SECOND * 1000:
            return cls.MIN
        elif ms > MAX_EPOCH_SECOND * 1000 + 999:
            return cls.MAX
        secs, millis = divmod(ms, 1000)
        return cls._from_parts(secs, millis * 1_000_000)

    @property
    def epoch_seconds(self) -> int:
        """Whole seconds since 1970-01-01T00:00:00Z. Rounded down for
        instants before it: ``-0.5s`` is ``-1`` seconds plus 500ms."""
        return self._secs

    @property
    def nanosecond(self) -> int:
        """The nanoseconds within the second, from 0 to 999,999,999"""
        return self._nanos

    def to_epoch_milliseconds(self) -> int:
        """Milliseconds since 1970-01-01T00:00:00Z, rounded down"""
        return self._secs * 1000 + self._nanos // 1_000_000

    def add(
        self,
        *,
        hours: float = 0,
        minutes: float = 0,
        seconds: float = 0,
        milliseconds: float = 0,
        microseconds: float = 0,
        nanoseconds: int = 0,
    ) -> Instant:
        """Add a time amount to this instant. Saturates at
        :attr:`MIN` and :attr:`MAX`."""
        return self + TimeDelta(
            hours=hours,
            minutes=minutes,
            seconds=seconds,
            milliseconds=milliseconds,
            microseconds=microseconds,
            nanoseconds=nanoseconds,
        )

    def subtract(
        self,
        *,
        hours: float = 0,
        minutes: float = 0,
        seconds: float = 0,
        milliseconds: float = 0,
        microseconds: float = 0,
        nanoseconds: int = 0,
    ) -> Instant:
        """Subtract a time amount from this instant. Saturates at
        :attr:`MIN` and :attr:`MAX`."""
        return self.add(
            hours=-hours,
            minutes=-minutes,
            seconds=-seconds,
            milliseconds=-milliseconds,
            microseconds=-microseconds,
            nanoseconds=-nanoseconds,
        )

    def __add__(self, delta: TimeDelta) -> Instant:
        """Add a fixed duration. The result is clamped to
        :attr:`MIN` or :attr:`MAX` instead of overflowing.

        Example
        -------
        >>> Instant.MAX - hours(1) + hours(2) == Instant.MAX
        True
        """
        if isinstance(delta, TimeDelta):
            result = self._plus(*divmod(delta._total_ns, NS_PER_SEC))
            if isinstance(result, Ok):
                return result.value
            return Instant.MAX if delta._total_ns > 0 else Instant.MIN
        return NotImplemented

    @overload
    def __sub__(self, other: Instant) -> TimeDelta: ...

    @overload
    def __sub__(self, other: TimeDelta) -> Instant: ...

    def __sub__(self, other: TimeDelta | Instant) -> Instant | TimeDelta:
        """Subtract another instant or a timedelta

        Example
        -------
        >>> d = Instant.from_utc(2020, 8, 15, hour=23, minute=12)
        >>> d - hours(24) - seconds(5)
        Instant(2020-08-14 23:11:55Z)
        >>> d - Instant.from_utc(2020, 8, 14)
        TimeDelta(47:12:00)
        """
        if isinstance(other, Instant):
            return TimeDelta._from_nanos_unchecked(
                (self._secs - other._secs) * NS_PER_SEC
                + self._nanos
                - other._nanos
            )
        elif isinstance(other, TimeDelta):
            return self + -other
        return NotImplemented

    def add_units(
        self, value: int, unit: str, /, zone: TimeZone | None = None
    ) -> Instant:
        """Add a number of units to this instant.

        Without a time zone, only time-based units (``"hour"`` through
        ``"nanosecond"``) can be added. These saturate at
        :attr:`MIN` or :attr:`MAX`, like :meth:`add`.

        With a time zone, date-based units (``"day"``, ``"month"``, ...)
        are added to the local date-time in that zone. In this case, the
        result never saturates: :class:`DateTimeArithmeticError` is raised
        if the result (or this instant) is out of range for local
        date-times.

        Example
        -------
        >>> ams = TimeZone.of("Europe/Amsterdam")
        >>> i = Instant.from_utc(2024, 3, 30, 12)
        >>> i.add_units(1, "day", ams)  # DST starts: a day of 23 hours
        Instant(2024-03-31 11:00:00Z)
        >>> i.add_units(24, "hour")
        Instant(2024-03-31 12:00:00Z)
        """
        _check_ints(value=value)
        if zone is None:
            if is_date_unit(unit):
                raise ValueError(
                    f"Adding {unit!r} units requires a time zone"
                )
            return self._add_time_units(value, unit)
        try:
            if is_date_unit(unit):
                if not fits(value, 32):
                    raise ArithmeticOverflow(
                        f"Can't add {value} date-based units: "
                        "more than 32 bits"
                    )
                offset = zone._rules.offset_for_instant(self._secs)
                local = self._local_at(offset).add_units(value, unit)
                return zone._to_instant(local, offset)
            return (
                self._check_in(zone)
                ._add_time_units(value, unit)
                ._check_in(zone)
            )
        except (ArithmeticOverflow, OutOfRange) as e:
            raise DateTimeArithmeticError(
                f"Can't add {value} {unit}(s) to {self} in time zone {zone.id}"
            ) from e

    def subtract_units(
        self, value: int, unit: str, /, zone: TimeZone | None = None
    ) -> Instant:
        """Subtract a number of units. The reverse of :meth:`add_units`"""
        _check_ints(value=value)
        return self.add_units(-value, unit, zone)

    def add_period(self, period: DateTimePeriod, zone: TimeZone, /) -> Instant:
        """Add a calendar-relative period in the given time zone.

        Months are added first, then days (both to the local date-time,
        keeping the offset if it's still valid), then the time part as an
        exact duration.

        Raises :class:`DateTimeArithmeticError` if any step is out of range.

        Example
        -------
        >>> ams = TimeZone.of("Europe/Amsterdam")
        >>> i = Instant.from_utc(2024, 3, 30, 12)
        >>> i.add_period(DateTimePeriod(days=1, hours=1), ams)
        Instant(2024-03-31 12:00:00Z)
        """
        if not isinstance(period, DateTimePeriod):
            raise TypeError(f"Expected DateTimePeriod, got {type(period)!r}")
        return self._add_period_parts(
            period._months, period._days, period._ns, zone
        )

    def subtract_period(
        self, period: DateTimePeriod, zone: TimeZone, /
    ) -> Instant:
        """Subtract a calendar-relative period. See :meth:`add_period`"""
        if not isinstance(period, DateTimePeriod):
            raise TypeError(f"Expected DateTimePeriod, got {type(period)!r}")
        return self._add_period_parts(
            -period._months, -period._days, -period._ns, zone
        )

    def period_until(
        self, other: Instant, zone: TimeZone, /
    ) -> DateTimePeriod:
        """The period from this instant to another, as observed in the
        given time zone.

        Whole months are counted first, then whole days, and the rest
        is given as an exact time, such that
        ``a.add_period(a.period_until(b, zone), zone) == b``.

        Example
        -------
        >>> ams = TimeZone.of("Europe/Amsterdam")
        >>> a = Instant.from_utc(2024, 1, 15, 9)
        >>> a.period_until(Instant.from_utc(2024, 4, 16, 8), ams)
        DatePeriod(P3M1D)
        >>> a.period_until(Instant.from_utc(2024, 4, 16, 7), ams)
        DateTimePeriod(P3MT23H)
        """
        try:
            offset1 = zone._rules.offset_for_instant(self._secs)
            local1 = self._local_at(offset1)
            other_local = other._local_in(zone)

            months = local1.until(other_local, "month")
            local2 = local1.add_units(months, "month")
            instant2 = zone._to_instant(local2, offset1)
            offset2 = zone._rules.offset_for_instant(instant2._secs)
            local2 = instant2._local_at(offset2)

            days = local2.until(other_local, "day")
            instant3 = zone._to_instant(local2.add_units(days, "day"), offset2)
            return DateTimePeriod._from_parts(
                months,
                days,
                (other._secs - instant3._secs) * NS_PER_SEC
                + other._nanos
                - instant3._nanos,
            )
        except (ArithmeticOverflow, OutOfRange) as e:
            raise DateTimeArithmeticError(
                f"Can't express the period from {self} to {other} "
                f"in time zone {zone.id}"
            ) from e

    def until(
        self, other: Instant, unit: str, /, zone: TimeZone | None = None
    ) -> int:
        """The number of whole units between two instants, rounded toward zero.

        Date-based units require a time zone, and are counted between the
        local date-times in it. Time-based units count exact elapsed time,
        clamped to the 64-bit integer range.
        """
        if is_date_unit(unit):
            if zone is None:
                raise ValueError(
                    f"Counting {unit!r} units requires a time zone"
                )
            try:
                return self._local_in(zone).until(other._local_in(zone), unit)
            except OutOfRange as e:
                raise DateTimeArithmeticError(
                    f"Instants are out of range in time zone {zone.id}"
                ) from e
        if zone is not None:
            try:
                self._check_in(zone)
                other._check_in(zone)
            except OutOfRange as e:
                raise DateTimeArithmeticError(
                    f"Instants are out of range in time zone {zone.id}"
                ) from e
        diff = (other._secs - self._secs) * NS_PER_SEC + (
            other._nanos - self._nanos
        )
        count = trunc_div(diff, TIME_UNIT_NANOS[unit])
        return max(I64_MIN, min(I64_MAX, count))

    def to_local(self, zone: TimeZone | UtcOffset, /) -> LocalDateTime:
        """The local date-time at this instant in the given zone or offset.

        Raises :class:`DateTimeArithmeticError` if it's outside the
        supported range of local date-times.

        Example
        -------
        >>> Instant.from_utc(2024, 7, 1, 12).to_local(TimeZone.of("Europe/Paris"))
        LocalDateTime(2024-07-01 14:00)
        """
        try:
            if isinstance(zone, UtcOffset):
                return self._local_at(zone._total)
            elif isinstance(zone, TimeZone):
                return self._local_in(zone)
        except OutOfRange as e:
            raise DateTimeArithmeticError(
                f"Instant {self} is out of range for local date-times"
            ) from e
        raise TypeError(f"Expected TimeZone or UtcOffset, got {type(zone)!r}")

    def offset_in(self, zone: TimeZone, /) -> UtcOffset:
        """The offset from UTC in the given zone at this instant"""
        return zone.offset_at(self)

    def format(
        self,
        fmt: DateTimeFormat = ISO_INSTANT,
        /,
        *,
        offset: UtcOffset | None = None,
    ) -> str:
        """Format with the given format, at the given offset (UTC by default).

        Unlike local date-times, the full range of instants can be formatted.

        Example
        -------
        >>> i = Instant.from_utc(2020, 8, 15, 23, 12)
        >>> i.format(offset=UtcOffset(hours=2))
        '2020-08-16T01:12:00+02:00'
        """
        return fmt.format(self._to_fields(offset or UtcOffset.ZERO))

    @classmethod
    def parse(cls, s: str, fmt: DateTimeFormat = ISO_INSTANT, /) -> Instant:
        """Parse text with the given format, which must include an offset.

        Example
        -------
        >>> Instant.parse("2020-08-15T23:12:00+02:00")
        Instant(2020-08-15 21:12:00Z)
        """
        return _parse_with(s, fmt, DateTimeComponents.to_instant_using_offset)  # type: ignore[no-any-return]

    def format_iso(self) -> str:
        """Format as ISO 8601 ``YYYY-MM-DDTHH:MM:SS[.fff]Z``

        The inverse of the ``parse_iso()`` method.
        """
        return ISO_INSTANT.format(self._to_fields(UtcOffset.ZERO))

    @classmethod
    def parse_iso(cls, s: str, /) -> Instant:
        """Parse ISO 8601 ``YYYY-MM-DDTHH:MM:SS[.fff](Z|±HH[:MM[:SS]])``.
        Offsets are converted to UTC. Lowercase ``t`` and ``z`` are accepted.

        The inverse of the ``format_iso()`` method.
        """
        return cls.parse(s, ISO_INSTANT)

    __str__ = format_iso

    def __repr__(self) -> str:
        return f"Instant({str(self).replace('T', ' ')})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Instant):
            return NotImplemented
        return self._secs == other._secs and self._nanos == other._nanos

    def __hash__(self) -> int:
        return hash((self._secs, self._nanos))

    def __lt__(self, other: Instant) -> bool:
        if not isinstance(other, Instant):
            return NotImplemented
        return (self._secs, self._nanos) < (other._secs, other._nanos)

    def __le__(self, other: Instant) -> bool:
        if not isinstance(other, Instant):
            return NotImplemented
        return (self._secs, self._nanos) <= (other._secs, other._nanos)

    def __gt__(self, other: Instant) -> bool:
        if not isinstance(other, Instant):
            return NotImplemented
        return (self._secs, self._nanos) > (other._secs, other._nanos)

    def __ge__(self, other: Instant) -> bool:
        if not isinstance(other, Instant):
            return NotImplemented
        return (self._secs, self._nanos) >= (other._secs, other._nanos)

    def _plus(self, seconds: int, nanos: int) -> Checked[Instant]:
        if not (seconds or nanos):
            return Ok(self)
        carry, new_nanos = divmod(self._nanos + nanos, NS_PER_SEC)
        total = safe_add(self._secs, seconds)
        if isinstance(total, Ok):
            total = safe_add(total.value, carry)
        if isinstance(total, Overflow):
            return total
        elif not MIN_EPOCH_SECOND <= total.value <= MAX_EPOCH_SECOND:
            return Overflow(
                f"Instant out of range: {total.value}s since epoch"
            )
        return Ok(Instant._from_parts(total.value, new_nanos))

    def _add_time_units(self, value: int, unit: str) -> Instant:
        # Only the resulting seconds need to fit, not the nanosecond product
        result: Checked[Any] = multiply_and_divide(
            value, TIME_UNIT_NANOS[unit], NS_PER_SEC
        )
        if isinstance(result, Ok):
            result = self._plus(*result.value)
        if isinstance(result, Ok):
            return result.value  # type: ignore[no-any-return]
        return Instant.MAX if value > 0 else Instant.MIN

    def _add_period_parts(
        self, months: int, days: int, ns: int, zone: TimeZone
    ) -> Instant:
        try:
            rules = zone._rules
            offset = rules.offset_for_instant(self._secs)
            local = self._local_at(offset)
            result = self
            if months:
                result = zone._to_instant(
                    local.add_units(months, "month"), offset
                )
                offset = rules.offset_for_instant(result._secs)
                local = result._local_at(offset)
            if days:
                result = zone._to_instant(local.add_units(days, "day"), offset)
            if ns:
                result = result._plus(*divmod(ns, NS_PER_SEC)).unwrap()
            return result._check_in(zone)
        except (ArithmeticOverflow, OutOfRange) as e:
            raise DateTimeArithmeticError(
                f"Can't add the period of {months} months, {days} days and "
                f"{ns} nanoseconds to {self} in time zone {zone.id}"
            ) from e

    def _local_at(self, offset: int) -> LocalDateTime:
        """Raises OutOfRange beyond the supported local date-times"""
        return LocalDateTime._from_local_secs(self._secs + offset, self._nanos)

    def _local_in(self, zone: TimeZone) -> LocalDateTime:
        return self._local_at(zone._rules.offset_for_instant(self._secs))

    def _check_in(self, zone: TimeZone) -> Instant:
        self._local_in(zone)
        return self

    def _to_fields(self, offset: UtcOffset) -> dict[str, int]:
        days, secs = divmod(self._secs + offset._total, SECS_PER_DAY)
        year, month, day = date_from_epoch_day(days)
        hour, rem = divmod(secs, 3600)
        minute, second = divmod(rem, 60)
        return {
            "year": year,
            "month": month,
            "day": day,
            "hour": hour,
            "minute": minute,
            "second": second,
            "nanosecond": self._nanos,
            **offset._to_fields(),
        }

    def _epoch_nanos(self) -> int:
        return self._secs * NS_PER_SEC + self._nanos

    @classmethod
    def _from_parts(cls, secs: int, nanos: int) -> Instant:
        self = _object_new(cls)
        self._secs = secs
        self._nanos = nanos
        return self

    # a custom pickle implementation with a smaller payload
    def __reduce__(self) -> tuple[object, ...]:
        return (_unpkl_inst, (pack("<qL", self._secs, self._nanos),))


# A separate unpickling function allows us to make backwards-compatible changes
# to the pickling format in the future
def _unpkl_inst(data: bytes) -> Instant:
    return Instant._from_parts(*unpack("<qL", data))


@final
class Transition(_ImmutableBase):
    """A change of UTC offset in a time zone, at a given instant

    Example
    -------
    >>> Transition(
    ...     Instant.from_utc(2024, 3, 31, 1),
    ...     UtcOffset(hours=1),
    ...     UtcOffset(hours=2),
    ... )
    """

    __slots__ = ("_at", "_before", "_after")

    def __init__(
        self, at: Instant, offset_before: UtcOffset, offset_after: UtcOffset
    ) -> None:
        if not isinstance(at, Instant):
            raise TypeError(f"Expected Instant, got {type(at)!r}")
        if not (
            isinstance(offset_before, UtcOffset)
            and isinstance(offset_after, UtcOffset)
        ):
            raise TypeError("Offsets must be UtcOffset instances")
        if offset_before == offset_after:
            raise ValueError("A transition must change the offset")
        self._at = at
        self._before = offset_before
        self._after = offset_after

    @property
    def at(self) -> Instant:
        return self._at

    @property
    def offset_before(self) -> UtcOffset:
        return self._before

    @property
    def offset_after(self) -> UtcOffset:
        return self._after

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Transition):
            return NotImplemented
        return (
            self._at == other._at
            and self._before == other._before
            and self._after == other._after
        )

    def __hash__(self) -> int:
        return hash((self._at, self._before, self._after))

    def __repr__(self) -> str:
        return f"Transition({self._at}, {self._before} -> {self._after})"


_ZERO_OFFSET_IDS = ("UTC", "GMT", "UT")


@final
class TimeZone(_ImmutableBase):
    """A time zone: an ID, and the rules determining its UTC offset over time

    Example
    -------
    >>> TimeZone.of("Europe/Amsterdam")
    TimeZone(Europe/Amsterdam)
    >>> TimeZone.of("UTC+01:30").offset_at(Instant.now())
    UtcOffset(+01:30)
    """

    __slots__ = ("_id", "_rules")

    UTC: ClassVar[TimeZone]
    """The UTC time zone, with ID ``Z``"""

    def __init__(self) -> None:
        raise TypeError(
            "TimeZone instances cannot be created through the constructor. "
            "Use `TimeZone.of` instead."
        )

    @property
    def id(self) -> str:
        return self._id

    @classmethod
    def of(cls, zone_id: str, /) -> TimeZone:
        """Look up a time zone by ID.

        Accepted are:

        - ``Z``, ``UTC``, ``GMT``, and ``UT``
        - UTC offsets, e.g. ``+01:30``, ``+0130``, or ``-3``
        - offsets prefixed with ``UTC``, ``GMT``, or ``UT``, e.g. ``UTC+01:00``
        - IANA time zone IDs, e.g. ``Europe/Amsterdam``. These are loaded from
          the ``TZPATH`` directories, or else the ``tzdata`` package.

        Raises :class:`TimeZoneNotFoundError` if the ID can't be resolved.
        """
        if not isinstance(zone_id, str):
            raise TypeError(f"Expected str, got {type(zone_id)!r}")
        if zone_id == "Z":
            return cls.UTC
        elif zone_id.startswith(("+", "-")):
            return cls.fixed(_lenient_offset(zone_id, zone_id))
        elif zone_id in _ZERO_OFFSET_IDS:
            return cls._new(zone_id, TimeZoneRules.fixed(0))
        for prefix in _ZERO_OFFSET_IDS:
            if zone_id.startswith((prefix + "+", prefix + "-")):
                offset = _lenient_offset(zone_id[len(prefix) :], zone_id)
                return cls._new(
                    prefix + str(offset) if offset._total else prefix,
                    TimeZoneRules.fixed(offset._total),
                )
        return cls._new(zone_id, get_tz(zone_id))

    @classmethod
    def fixed(cls, offset: UtcOffset, /) -> TimeZone:
        """A time zone which always has the given offset.
        Its ID is the offset in ISO 8601 format.

        Example
        -------
        >>> TimeZone.fixed(UtcOffset(hours=3, minutes=30)).id
        '+03:30'
        """
        return cls._new(str(offset), TimeZoneRules.fixed(offset._total))

    @classmethod
    def system_default(cls) -> TimeZone:
        """The system time zone.

        It's determined from the ``TZ`` environment variable,
        ``/etc/localtime``, or (on Windows) the ``tzlocal`` package.
        The result is cached until :func:`reset_system_tz` is called.
        """
        key, rules = get_system_tz()
        return cls._new(key or "SYSTEM", rules)

    @classmethod
    def from_transitions(
        cls,
        zone_id: str,
        initial: UtcOffset,
        transitions: Iterable[Transition],
        /,
        *,
        recurring: str | None = None,
    ) -> TimeZone:
        """Define a time zone from explicit transitions.

        Parameters
        ----------
        zone_id
            The ID of the new time zone
        initial
            The offset before the first transition
        transitions
            Transitions in chronological order, at whole seconds. Each must
            start from the offset the previous one ended with.
        recurring
            A POSIX TZ string (e.g. ``CET-1CEST,M3.5.0,M10.5.0/3``)
            defining the offsets after the last transition.

        Example
        -------
        >>> TimeZone.from_transitions(
        ...     "Custom/Zone",
        ...     UtcOffset(hours=1),
        ...     [
        ...         Transition(
        ...             Instant.from_utc(2024, 3, 31, 1),
        ...             UtcOffset(hours=1),
        ...             UtcOffset(hours=2),
        ...         )
        ...     ],
        ... )
        """
        entries: list[tuple[int, int, int]] = []
        for t in transitions:
            if t._at._nanos:
                raise ValueError(
                    f"Transitions must be at whole seconds, got {t._at}"
                )
            entries.append((t._at._secs, t._before._total, t._after._total))
        return cls._new(
            zone_id,
            TimeZoneRules(
                initial._total,
                entries,
                None if recurring is None else PosixTz.parse(recurring),
            ),
        )

    @property
    def transitions(self) -> tuple[Transition, ...]:
        """The explicitly listed transitions, in chronological order"""
        return tuple(
            Transition(
                Instant._from_parts(t, 0),
                UtcOffset._from_secs_unchecked(before),
                UtcOffset._from_secs_unchecked(after),
            )
            for t, before, after in self._rules.transitions
        )

    def offset_at(self, instant: Instant, /) -> UtcOffset:
        """The offset from UTC at the given instant"""
        return UtcOffset._from_secs_unchecked(
            self._rules.offset_for_instant(instant._secs)
        )

    def valid_offsets(self, local: LocalDateTime, /) -> list[UtcOffset]:
        """The offsets at which the local date-time occurs.

        This is a single offset normally, two offsets if the time is repeated
        (e.g. when clocks move back), and none if it's skipped
        (e.g. when clocks move forward).
        """
        return [
            UtcOffset._from_secs_unchecked(o)
            for o in self._rules.valid_offsets(local._local_secs())
        ]

    def resolve(
        self, local: LocalDateTime, /, *, prefer: UtcOffset | None = None
    ) -> tuple[LocalDateTime, UtcOffset]:
        """Pick the offset for a local date-time.

        A repeated time uses the ``prefer`` offset if it applies, otherwise
        the earlier offset. A skipped time is moved forward by the length of
        the gap. Returns the (possibly moved) local date-time and its offset.

        Example
        -------
        >>> ams = TimeZone.of("Europe/Amsterdam")
        >>> ams.resolve(LocalDateTime(2024, 3, 31, 2, 30))
        (LocalDateTime(2024-03-31 03:30), UtcOffset(+02:00))
        """
        secs, offset = self._rules.resolve_local(
            local._local_secs(), None if prefer is None else prefer._total
        )
        return (
            LocalDateTime._from_local_secs(secs, local._time._nanos),
            UtcOffset._from_secs_unchecked(offset),
        )

    def _to_instant(self, local: LocalDateTime, prefer: int | None) -> Instant:
        secs, offset = self._rules.resolve_local(local._local_secs(), prefer)
        return Instant._from_parts(secs - offset, local._time._nanos)

    __str__ = id.fget  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"TimeZone({self._id})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TimeZone):
            return NotImplemented
        return self._id == other._id and self._rules == other._rules

    def __hash__(self) -> int:
        return hash((self._id, self._rules))

    @classmethod
    def _new(cls, zone_id: str, rules: TimeZoneRules) -> TimeZone:
        self = _object_new(cls)
        self._id = zone_id
        self._rules = rules
        return self

    # Zones which can be looked up again are pickled by ID only
    @no_type_check
    def __reduce__(self):
        if _can_look_up(self):
            return _unpkl_tz, (self._id,)
        return _unpkl_tz, (self._id, self._rules)


def _can_look_up(zone: TimeZone) -> bool:
    try:
        return TimeZone.of(zone._id) == zone
    except ValueError:
        return False


# A separate unpickling function allows us to make backwards-compatible changes
# to the pickling format in the future
@no_type_check
def _unpkl_tz(zone_id: str, rules: TimeZoneRules | None = None) -> TimeZone:
    if rules is None:
        return TimeZone.of(zone_id)
    return TimeZone._new(zone_id, rules)


def _lenient_offset(s: str, zone_id: str) -> UtcOffset:
    try:
        return UtcOffset.parse(s, LENIENT_OFFSET)
    except InvalidFormat:
        raise TimeZoneNotFoundError.for_key(zone_id) from None


_Fields = Mapping[str, int]


@final
class DateTimeComponents(_ImmutableBase):
    """A bag of date, time and offset fields, as read or written by a
    :class:`DateTimeFormat`. Any of the fields may be missing.

    This is useful for formats which don't map onto a single type.

    Example
    -------
    >>> fmt = DateTimeFormat.from_unicode_pattern("uuuu-MM-dd HH:mmXXX")
    >>> c = DateTimeComponents.parse("2024-03-09 14:00+01:00", fmt)
    >>> c.to_local_date(), c.offset
    (LocalDate(2024-03-09), UtcOffset(+01:00))
    """

    __slots__ = ("_fields",)

    def __init__(
        self,
        *,
        year: int | None = None,
        month: int | None = None,
        day: int | None = None,
        hour: int | None = None,
        minute: int | None = None,
        second: int | None = None,
        nanosecond: int | None = None,
        offset: UtcOffset | None = None,
    ) -> None:
        fields = {
            name: value
            for name, value in (
                ("year", year),
                ("month", month),
                ("day", day),
                ("hour", hour),
                ("minute", minute),
                ("second", second),
                ("nanosecond", nanosecond),
            )
            if value is not None
        }
        if offset is not None:
            fields.update(offset._to_fields())
        self._fields: _Fields = fields

    @classmethod
    def parse(cls, s: str, fmt: DateTimeFormat, /) -> DateTimeComponents:
        return cls._from_fields(fmt.parse(s))

    def format(self, fmt: DateTimeFormat, /) -> str:
        """Write the fields with the given format. Raises ``ValueError``
        if the format needs a field that isn't set."""
        return fmt.format(self._fields)

    @property
    def year(self) -> int | None:
        return self._fields.get("year")

    @property
    def month(self) -> int | None:
        return self._fields.get("month")

    @property
    def day(self) -> int | None:
        return self._fields.get("day")

    @property
    def hour(self) -> int | None:
        return self._fields.get("hour")

    @property
    def minute(self) -> int | None:
        return self._fields.get("minute")

    @property
    def second(self) -> int | None:
        return self._fields.get("second")

    @property
    def nanosecond(self) -> int | None:
        return self._fields.get("nanosecond")

    @property
    def offset(self) -> UtcOffset | None:
        if "offset_hours" not in self._fields:
            return None
        return self.to_utc_offset()

    def to_local_date(self) -> LocalDate:
        year, month, day = map(self._require, ("year", "month", "day"))
        return LocalDate(year, month, day)

    def to_local_time(self) -> LocalTime:
        return LocalTime(
            self._require("hour"),
            self._require("minute"),
            self._fields.get("second", 0),
            nanosecond=self._fields.get("nanosecond", 0),
        )

    def to_local_date_time(self) -> LocalDateTime:
        return LocalDateTime._from_parts(
            self.to_local_date(), self.to_local_time()
        )

    def to_utc_offset(self) -> UtcOffset:
        sign = -1 if self._fields.get("offset_negative") else 1
        return UtcOffset._from_secs_unchecked(
            _validated_offset(
                sign * self._require("offset_hours"),
                sign * self._fields.get("offset_minutes", 0),
                sign * self._fields.get("offset_seconds", 0),
            )
        )

    def to_instant_using_offset(self) -> Instant:
        """The instant described by the date, time and offset fields.

        Unlike a local date-time, the year may be beyond 999,999 as long as
        the resulting instant is within range.
        """
        year, month, day = map(self._require, ("year", "month", "day"))
        _check_month_day(year, month, day)
        t = self.to_local_time()
        secs = (
            epoch_day_from_date(year, month, day) * SECS_PER_DAY
            + t.to_second_of_day()
            - self.to_utc_offset()._total
        )
        if not MIN_EPOCH_SECOND <= secs <= MAX_EPOCH_SECOND:
            raise OutOfRange("Instant out of range")
        return Instant._from_parts(secs, t._nanos)

    def _require(self, name: str) -> int:
        try:
            return self._fields[name]
        except KeyError:
            raise InvalidComponent(f"Missing field: {name}") from None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DateTimeComponents):
            return NotImplemented
        return dict(self._fields) == dict(other._fields)

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        fields = ", ".join(f"{k}={v}" for k, v in self._fields.items())
        return f"DateTimeComponents({fields})"

    @classmethod
    def _from_fields(cls, fields: _Fields) -> DateTimeComponents:
        self = _object_new(cls)
        self._fields = fields
        return self


_match_timedelta = re.compile(
    r"([-+]?)PT(?:(\d{1,35})H)?(?:(\d{1,35})M)?(?:(\d{1,35})(?:[.,](\d{1,9}))?S)?",
    re.ASCII,
).fullmatch
_match_period = re.compile(
    r"([-+]?)P(?:([-+]?\d{1,20})Y)?(?:([-+]?\d{1,20})M)?(?:([-+]?\d{1,20})W)?"
    r"(?:([-+]?\d{1,20})D)?(?:T(?:([-+]?\d{1,20})H)?(?:([-+]?\d{1,20})M)?"
    r"(?:([-+]?\d{1,20})(?:[.,](\d{1,9}))?S)?)?",
    re.ASCII,
).fullmatch


LocalDate.MIN = LocalDate._from_ymd_unchecked(_MIN_YEAR, 1, 1)
LocalDate.MAX = LocalDate._from_ymd_unchecked(_MAX_YEAR, 12, 31)
LocalTime.MIDNIGHT = LocalTime()
LocalTime.NOON = LocalTime(12)
LocalTime.MIN = LocalTime.MIDNIGHT
LocalTime.MAX = LocalTime(23, 59, 59, nanosecond=999_999_999)
LocalDateTime.MIN = LocalDateTime._from_parts(LocalDate.MIN, LocalTime.MIN)
LocalDateTime.MAX = LocalDateTime._from_parts(LocalDate.MAX, LocalTime.MAX)
UtcOffset.ZERO = UtcOffset._from_secs_unchecked(0)
UtcOffset.MIN = UtcOffset._from_secs_unchecked(-_MAX_OFFSET)
UtcOffset.MAX = UtcOffset._from_secs_unchecked(_MAX_OFFSET)
TimeDelta.ZERO = TimeDelta()
TimeDelta.MAX = TimeDelta._from_nanos_unchecked(
    I64_MAX * NS_PER_SEC + NS_PER_SEC - 1
)
TimeDelta.MIN = TimeDelta._from_nanos_unchecked(I64_MIN * NS_PER_SEC)
Instant.MIN = Instant._from_parts(MIN_EPOCH_SECOND, 0)
Instant.MAX = Instant._from_parts(MAX_EPOCH_SECOND, 999_999_999)
Instant.DISTANT_PAST = Instant._from_parts(
    epoch_day_from_date(-100_001, 12, 31) * SECS_PER_DAY + SECS_PER_DAY - 1,
    999_999_999,
)
Instant.DISTANT_FUTURE = Instant._from_parts(
    epoch_day_from_date(100_000, 1, 1) * SECS_PER_DAY, 0
)
TimeZone.UTC = TimeZone._new("Z", TimeZoneRules.fixed(0))


def years(i: int, /) -> DatePeriod:
    """Create a :class:`~DatePeriod` with the given number of years.
    ``years(1) == DatePeriod(years=1)``
    """
    return DatePeriod(years=i)


def months(i: int, /) -> DatePeriod:
    """Create a :class:`~DatePeriod` with the given number of months.
    ``months(1) == DatePeriod(months=1)``
    """
    return DatePeriod(months=i)


def weeks(i: int, /) -> DatePeriod:
    """Create a :class:`~DatePeriod` with the given number of weeks.
    ``weeks(1) == DatePeriod(weeks=1)``
    """
    return DatePeriod(weeks=i)


def days(i: int, /) -> DatePeriod:
    """Create a :class:`~DatePeriod` with the given number of days.
    ``days(1) == DatePeriod(days=1)``
    """
    return DatePeriod(days=i)


def hours(i: float, /) -> TimeDelta:
    """Create a :class:`~TimeDelta` with the given number of hours.
    ``hours(1) == TimeDelta(hours=1)``
    """
    return TimeDelta(hours=i)


def minutes(i: float, /) -> TimeDelta:
    """Create a :class:`TimeDelta` with the given number of minutes.
    ``minutes(1) == TimeDelta(minutes=1)``
    """
    return TimeDelta(minutes=i)


def seconds(i: float, /) -> TimeDelta:
    """Create a :class:`TimeDelta` with the given number of seconds.
    ``seconds(1) == TimeDelta(seconds=1)``
    """
    return TimeDelta(seconds=i)


def milliseconds(i: int, /) -> TimeDelta:
    """Create a :class:`TimeDelta` with the given number of milliseconds.
    ``milliseconds(1) == TimeDelta(milliseconds=1)``
    """
    return TimeDelta(milliseconds=i)


def microseconds(i: float, /) -> TimeDelta:
    """Create a :class:`TimeDelta` with the given number of microseconds.
    ``microseconds(1) == TimeDelta(microseconds=1)``
    """
    return TimeDelta(microseconds=i)


def nanoseconds(i: int, /) -> TimeDelta:
    """Create a :class:`TimeDelta` with the given number of nanoseconds.
    ``nanoseconds(1) == TimeDelta(nanoseconds=1)``
    """
    return TimeDelta(nanoseconds=i)


# We expose the public members in the root of the module.
# For clarity, we remove the "_pyciviltime" part from the names,
# since this is an implementation detail.
for name in __all__:
    member = locals()[name]
    if getattr(member, "__module__", None) == __name__:  # pragma: no branch
        member.__module__ = "civiltime"

# clear up loop variables so they don't leak into the namespace
del name
del member

for _unpkl in (
    _unpkl_date,
    _unpkl_time,
    _unpkl_local,
    _unpkl_offset,
    _unpkl_tdelta,
    _unpkl_period,
    _unpkl_inst,
    _unpkl_tz,
):
    _unpkl.__module__ = "civiltime"


# disable further subclassing
final(_ImmutableBase)
final(DateTimePeriod)


def _patch_time_frozen(inst: Instant) -> None:
    global time_ns

    def time_ns() -> int:
        return inst._epoch_nanos()


def _patch_time_keep_ticking(inst: Instant) -> None:
    global time_ns

    _patched_at = time_ns()
    _time_ns = time_ns

    def time_ns() -> int:
        return inst._epoch_nanos() + _time_ns() - _patched_at


def _unpatch_time() -> None:
    global time_ns

    from time import time_ns
