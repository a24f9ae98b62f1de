"""POSIX TZ strings, e.g. ``CET-1CEST,M3.5.0,M10.5.0/3``.

These describe a recurring daylight saving time rule. TZif files embed one
to describe the zone after its last listed transition.
"""

from __future__ import annotations

from typing import Optional, Union

from .._math import (
    SECS_PER_DAY,
    Date,
    date_from_epoch_day,
    day_of_week,
    days_in_month,
    days_in_year,
    epoch_day_from_date,
    is_leap,
    year_for_epoch_day,
)
from .common import Ambiguity, EpochSecs, Gap, Offset, Overlap, Unambiguous

DEFAULT_DST = 3600
DEFAULT_RULE_TIME = 2 * 3600
MAX_OFFSET = 24 * 3600
# Transition times may exceed 24 hours (RFC 8536 section 3.3.1)
MAX_RULE_TIME = 167 * 3600
Weekday = int  # Different than usual! Sunday=0, Saturday=6


def _sunday_based_weekday(year: int, month: int, day: int) -> Weekday:
    return day_of_week(epoch_day_from_date(year, month, day)) % 7


def _nth_day_of_year(year: int, nth: int) -> Date:
    return date_from_epoch_day(epoch_day_from_date(year, 1, 1) + nth - 1)


def _epoch_for_date(d: Date) -> EpochSecs:
    return epoch_day_from_date(*d) * SECS_PER_DAY


def _year_for_epoch(t: EpochSecs) -> int:
    return year_for_epoch_day(t // SECS_PER_DAY)


class LastWeekday:
    """``Mm.5.d``: the last given weekday of the month"""

    __slots__ = ("month", "weekday")

    def __init__(self, month: int, weekday: Weekday):
        self.month = month
        self.weekday = weekday

    def apply(self, year: int) -> Date:
        last = days_in_month(year, self.month)
        weekday_of_last = _sunday_based_weekday(year, self.month, last)
        return (year, self.month, last - (weekday_of_last - self.weekday) % 7)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LastWeekday):
            return NotImplemented  # pragma: no cover
        return self.month == other.month and self.weekday == other.weekday

    def __repr__(self) -> str:
        return f"LastWeekday({self.month}, {self.weekday})"


class NthWeekday:
    """``Mm.n.d``: the n-th (1-4) given weekday of the month"""

    __slots__ = ("month", "nth", "weekday")

    def __init__(self, month: int, nth: int, weekday: Weekday):
        self.month = month
        self.nth = nth
        self.weekday = weekday

    def apply(self, year: int) -> Date:
        weekday_of_first = _sunday_based_weekday(year, self.month, 1)
        first_match = (self.weekday - weekday_of_first) % 7 + 1
        return (year, self.month, first_match + 7 * (self.nth - 1))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NthWeekday):
            return NotImplemented  # pragma: no cover
        return (
            self.month == other.month
            and self.nth == other.nth
            and self.weekday == other.weekday
        )

    def __repr__(self) -> str:
        return f"NthWeekday({self.month}, {self.nth}, {self.weekday})"


class DayOfYear:
    """``n``: zero-based day of the year, counting February 29th"""

    __slots__ = ("nth",)

    def __init__(self, nth: int):
        self.nth = nth  # one-based, 1-366

    def apply(self, year: int) -> Date:
        return _nth_day_of_year(year, min(self.nth, days_in_year(year)))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DayOfYear):
            return NotImplemented  # pragma: no cover
        return self.nth == other.nth

    def __repr__(self) -> str:
        return f"DayOfYear({self.nth})"


class JulianDayOfYear:
    """``Jn``: one-based day of the year, never counting February 29th"""

    __slots__ = ("nth",)

    def __init__(self, nth: int):
        self.nth = nth  # 1-365

    def apply(self, year: int) -> Date:
        return _nth_day_of_year(
            year, self.nth + (self.nth > 59 and is_leap(year))
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, JulianDayOfYear):
            return NotImplemented  # pragma: no cover
        return self.nth == other.nth

    def __repr__(self) -> str:
        return f"JulianDayOfYear({self.nth})"


Rule = Union[LastWeekday, NthWeekday, DayOfYear, JulianDayOfYear]


class Dst:
    __slots__ = ("offset", "start", "end")

    def __init__(
        self, offset: Offset, start: tuple[Rule, int], end: tuple[Rule, int]
    ):
        self.offset = offset
        self.start = start
        self.end = end

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Dst):
            return NotImplemented  # pragma: no cover
        return (
            self.offset == other.offset
            and self.start == other.start
            and self.end == other.end
        )

    def __repr__(self) -> str:
        return f"Dst(offset={self.offset}, start={self.start}, end={self.end})"


class PosixTz:
    """A standard offset, and optionally a yearly DST rule"""

    __slots__ = ("std", "dst")

    def __init__(self, std: Offset, dst: Optional[Dst] = None):
        self.std = std
        self.dst = dst

    def _local_transitions(self, year: int) -> tuple[EpochSecs, EpochSecs]:
        """DST start and end in the given year, in local epoch seconds
        (each expressed in the offset in effect before it)"""
        assert self.dst is not None
        (start_rule, start_time), (end_rule, end_time) = (
            self.dst.start,
            self.dst.end,
        )
        return (
            _epoch_for_date(start_rule.apply(year)) + start_time,
            _epoch_for_date(end_rule.apply(year)) + end_time,
        )

    def offset_for_instant(self, t: EpochSecs) -> Offset:
        if self.dst is None:
            return self.std
        # The year of a transition is assumed to be the same in UTC and
        # local time. Zones with transitions near new year don't exist.
        start, end = self._local_transitions(_year_for_epoch(t + self.std))
        start -= self.std
        end -= self.dst.offset

        if start < end:
            return self.dst.offset if start <= t < end else self.std
        # DST spans new year, e.g. on the southern hemisphere
        return self.std if end <= t < start else self.dst.offset

    def ambiguity_for_local(self, t: EpochSecs) -> Ambiguity:
        """Determine the offset(s) for a local time, in local epoch seconds"""
        if self.dst is None:
            return Unambiguous(self.std)
        start, end = self._local_transitions(_year_for_epoch(t))
        std, dst = self.std, self.dst.offset

        if start < end:
            t1, t2 = start, end
            off1, off2 = std, dst
        else:
            t1, t2 = end, start
            off1, off2 = dst, std
        shift = off2 - off1

        # Two transitions per year: off1 -> off2 at t1, off2 -> off1 at t2
        if shift >= 0:
            if t < t1:
                return Unambiguous(off1)
            elif t < t1 + shift:
                return Gap(off1, off2)
            elif t < t2 - shift:
                return Unambiguous(off2)
            elif t < t2:
                return Overlap(off2, off1)
            return Unambiguous(off1)
        else:
            if t < t1 + shift:
                return Unambiguous(off1)
            elif t < t1:
                return Overlap(off1, off2)
            elif t < t2:
                return Unambiguous(off2)
            elif t < t2 - shift:
                return Gap(off2, off1)
            return Unambiguous(off1)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PosixTz):
            return NotImplemented  # pragma: no cover
        return self.std == other.std and self.dst == other.dst

    def __hash__(self) -> int:
        return hash((self.std, repr(self.dst)))

    def __repr__(self) -> str:
        if self.dst is None:
            return f"PosixTz(std={self.std})"
        return f"PosixTz(std={self.std}, dst={self.dst})"

    @classmethod
    def parse(cls, s: str) -> PosixTz:
        if not s.isascii():
            raise ValueError(
                "Invalid POSIX TZ string: non-ASCII characters found"
            )
        r = _Reader(s)
        r.skip_name()
        std = r.offset()

        # Without anything else, it's a fixed offset
        if r.done():
            return cls(std)

        r.skip_name()
        if r.peek() == ",":
            # Without an explicit DST offset, it's one hour ahead
            dst = std + DEFAULT_DST
            if dst >= MAX_OFFSET:
                raise ValueError(
                    "Invalid POSIX TZ string: DST offset out of range"
                )
        else:
            dst = r.offset()
        r.expect(",")
        start = r.rule()
        r.expect(",")
        end = r.rule()

        if not r.done():
            raise ValueError(
                f"Invalid POSIX TZ string: unexpected trailing {r.rest()!r}"
            )
        return cls(std, Dst(dst, start, end))


class _Reader:
    """Cursor over a POSIX TZ string"""

    __slots__ = ("s", "pos")

    def __init__(self, s: str):
        self.s = s
        self.pos = 0

    def done(self) -> bool:
        return self.pos == len(self.s)

    def peek(self) -> str:
        return self.s[self.pos : self.pos + 1]

    def rest(self) -> str:
        return self.s[self.pos :]

    def expect(self, char: str) -> None:
        if self.peek() != char:
            raise ValueError(f"Invalid POSIX TZ string: expected {char!r}")
        self.pos += 1

    def skip_name(self) -> None:
        s, start = self.s, self.pos
        if self.peek() == "<":
            # <...> names may contain digits and signs, e.g. <+0330>
            stop = s.find(">", start)
            if stop < start + 2:
                raise ValueError(
                    "Invalid POSIX TZ string: missing or empty name"
                )
            self.pos = stop + 1
            return
        while self.pos < len(s) and s[self.pos].isalpha():
            self.pos += 1
        if self.pos == start:
            raise ValueError("Invalid POSIX TZ string: missing name")

    def digits(self, most: int) -> int:
        s, start = self.s, self.pos
        while (
            self.pos < len(s)
            and self.pos - start < most
            and s[self.pos].isdigit()
        ):
            self.pos += 1
        if self.pos == start:
            raise ValueError(
                f"Invalid POSIX TZ string: expected digits at {start}"
            )
        return int(s[start : self.pos])

    def two_digits_below_60(self) -> int:
        start = self.pos
        if (value := self.digits(2)) > 59 or self.pos - start != 2:
            raise ValueError(
                "Invalid POSIX TZ string: expected minutes or seconds (00-59)"
            )
        return value

    def hms(self) -> int:
        """``[+|-]h[hh][:mm[:ss]]`` in seconds"""
        sign = -1 if self.peek() == "-" else 1
        if self.peek() in ("+", "-"):
            self.pos += 1
        total = self.digits(3) * 3600
        if self.peek() == ":":
            self.pos += 1
            total += self.two_digits_below_60() * 60
            if self.peek() == ":":
                self.pos += 1
                total += self.two_digits_below_60()
        return sign * total

    def offset(self) -> Offset:
        # POSIX offsets are "hours west of UTC", the reverse of ISO 8601
        value = -self.hms()
        if abs(value) >= MAX_OFFSET:
            raise ValueError("Invalid POSIX TZ string: offset out of range")
        return value

    def rule(self) -> tuple[Rule, int]:
        rule: Rule
        if self.peek() == "M":
            self.pos += 1
            month = self.digits(2)
            self.expect(".")
            week = self.digits(1)
            self.expect(".")
            weekday = self.digits(1)
            if not (1 <= month <= 12 and 1 <= week <= 5 and weekday <= 6):
                raise ValueError("Invalid POSIX TZ string: invalid DST rule")
            rule = (
                LastWeekday(month, weekday)
                if week == 5
                else NthWeekday(month, week, weekday)
            )
        elif self.peek() == "J":
            self.pos += 1
            if not 1 <= (nth := self.digits(3)) <= 365:
                raise ValueError(
                    f"Invalid POSIX TZ string: invalid Julian day {nth}"
                )
            rule = JulianDayOfYear(nth)
        else:
            if (nth := self.digits(3)) > 365:
                raise ValueError(
                    f"Invalid POSIX TZ string: invalid day of year {nth}"
                )
            rule = DayOfYear(nth + 1)

        if self.peek() == "/":
            self.pos += 1
            if abs(time := self.hms()) > MAX_RULE_TIME:
                raise ValueError(
                    "Invalid POSIX TZ string: rule time out of range"
                )
        else:
            time = DEFAULT_RULE_TIME
        return rule, time
