"""A small, bidirectional format engine.

A format is a flat sequence of directives, some of which (optional and
alternative groups) nest further sequences. The same sequence drives both
formatting and parsing, so the two directions can't drift apart.

Directives read and write a plain mapping of field names to integers.
Conversion between these fields and the actual date/time classes happens
elsewhere.

Parsing is a single left-to-right pass. Only optional and alternative
groups (and numbers of variable width) introduce choice points. These are
explored lazily with generators, so no partial result ever escapes a failed
attempt.
"""

from __future__ import annotations

from typing import (
    Iterable,
    Iterator,
    Literal as _Literal,
    Mapping,
    NoReturn,
    Union,
)

from ._common import _ImmutableBase, final

__all__ = [
    "DateTimeFormat",
    "Directive",
    "Literal",
    "Number",
    "Year",
    "Fraction",
    "OffsetHours",
    "OffsetMinutes",
    "OffsetSeconds",
    "Optional",
    "Alternative",
    "InvalidFormat",
    "iso_offset",
    "ISO_DATE",
    "ISO_DATE_BASIC",
    "ISO_TIME",
    "ISO_DATE_TIME",
    "ISO_INSTANT",
    "ISO_OFFSET",
    "ISO_OFFSET_BASIC",
    "FOUR_DIGIT_OFFSET",
    "LENIENT_OFFSET",
]

Fields = dict[str, int]
Padding = _Literal["zero", "none", "space"]
WhenToOutput = _Literal["never", "if_nonzero", "always"]

YEAR = "year"
MONTH = "month"
DAY = "day"
HOUR = "hour"
MINUTE = "minute"
SECOND = "second"
NANOSECOND = "nanosecond"
OFFSET_NEGATIVE = "offset_negative"
OFFSET_HOURS = "offset_hours"
OFFSET_MINUTES = "offset_minutes"
OFFSET_SECONDS = "offset_seconds"

# Only fields with a default may appear in an optional group
DEFAULTS: Mapping[str, int] = {
    SECOND: 0,
    NANOSECOND: 0,
    OFFSET_NEGATIVE: 0,
    OFFSET_HOURS: 0,
    OFFSET_MINUTES: 0,
    OFFSET_SECONDS: 0,
}

_MAX_YEAR_DIGITS = 9


class InvalidFormat(ValueError):
    """Text doesn't match the expected format, or describes invalid values"""

    position: int | None
    """Where parsing failed (the furthest point reached), if known"""

    def __init__(self, msg: str, position: int | None = None):
        super().__init__(msg)
        self.position = position

    @classmethod
    def _at(cls, s: str, pos: int, reason: str) -> InvalidFormat:
        return cls(f"Invalid format: {s!r} ({reason} at position {pos})", pos)

    @classmethod
    def _for_value(cls, s: str, reason: object) -> InvalidFormat:
        return cls(f"Invalid format: {s!r} ({reason})")


class _Context:
    """Per-parse state: the input, and the furthest failure seen so far"""

    __slots__ = ("s", "fail_pos", "fail_reason")

    def __init__(self, s: str):
        self.s = s
        self.fail_pos = 0
        self.fail_reason = "no match"

    def fail(self, pos: int, reason: str) -> None:
        if pos >= self.fail_pos:
            self.fail_pos = pos
            self.fail_reason = reason


_Candidates = Iterator[tuple[int, Fields]]


def _assign(fields: Fields, name: str, value: int) -> Fields | None:
    """Set a field in a copy of ``fields``. None if it conflicts."""
    existing = fields.get(name)
    if existing is None:
        new = fields.copy()
        new[name] = value
        return new
    return fields if existing == value else None


def _fill_missing(fields: Fields, names: Iterable[str]) -> Fields:
    """Give fields a group didn't set their default value"""
    if missing := [n for n in names if n not in fields]:
        fields = {**fields, **{n: DEFAULTS[n] for n in missing}}
    return fields


def _fill_defaults(fields: Fields, names: Iterable[str]) -> Fields | None:
    """Set all fields to their default. None if that conflicts"""
    for name in names:
        if (filled := _assign(fields, name, DEFAULTS[name])) is None:
            return None
        fields = filled
    return fields


def _count_digits(s: str, pos: int, limit: int) -> int:
    n = 0
    end = min(len(s), pos + limit)
    # Only ASCII digits are accepted, str.isdigit() is too lenient
    while pos + n < end and "0" <= s[pos + n] <= "9":
        n += 1
    return n


def _require(fields: Mapping[str, int], name: str) -> int:
    try:
        return fields[name]
    except KeyError:
        raise ValueError(f"Field {name!r} is required by the format") from None


def _parse_seq(
    directives: tuple[Directive, ...],
    ctx: _Context,
    pos: int,
    fields: Fields,
    start: int = 0,
) -> _Candidates:
    if start == len(directives):
        yield pos, fields
        return
    for p, f in directives[start]._parse(ctx, pos, fields):
        yield from _parse_seq(directives, ctx, p, f, start + 1)


class Directive(_ImmutableBase):
    """Base class of all format directives"""

    __slots__ = ()

    @property
    def fields(self) -> tuple[str, ...]:
        """The fields this directive reads and writes"""
        return ()

    def _format(self, fields: Mapping[str, int], out: list[str]) -> None:
        raise NotImplementedError()

    def _parse(self, ctx: _Context, pos: int, fields: Fields) -> _Candidates:
        raise NotImplementedError()

    def _key(self) -> tuple[object, ...]:
        raise NotImplementedError()

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self._key() == other._key()  # type: ignore[attr-defined]

    def __hash__(self) -> int:
        return hash((type(self), self._key()))

    def __repr__(self) -> str:
        return f"{type(self).__name__}{self._key()!r}"


@final
class Literal(Directive):
    """Fixed text, e.g. a separator"""

    __slots__ = ("text",)

    def __init__(self, text: str) -> None:
        if not text:
            raise ValueError("Literal directive must not be empty")
        self.text = text

    def _format(self, fields: Mapping[str, int], out: list[str]) -> None:
        out.append(self.text)

    def _parse(self, ctx: _Context, pos: int, fields: Fields) -> _Candidates:
        if ctx.s.startswith(self.text, pos):
            yield pos + len(self.text), fields
        else:
            ctx.fail(pos, f"expected {self.text!r}")

    def _key(self) -> tuple[object, ...]:
        return (self.text,)


class Number(Directive):
    """An unsigned numeric field, e.g. month or minute.

    With ``padding="zero"`` the value is zero-padded to ``min_digits`` on
    output, and at least that many digits are required on input. With
    ``"space"``, spaces are used for padding instead. With ``"none"``, no
    padding is written and 1 digit suffices on input.
    """

    __slots__ = ("field", "min_digits", "max_digits", "padding")

    def __init__(
        self,
        field: str,
        min_digits: int = 2,
        max_digits: int = 2,
        *,
        padding: Padding = "zero",
    ) -> None:
        if padding not in ("zero", "none", "space"):
            raise ValueError(f"Invalid padding: {padding!r}")
        if not 1 <= min_digits <= max_digits:
            raise ValueError("Invalid number of digits")
        self.field = field
        self.min_digits = 1 if padding == "none" else min_digits
        self.max_digits = max_digits
        self.padding = padding

    @property
    def fields(self) -> tuple[str, ...]:
        return (self.field,)

    def _format(self, fields: Mapping[str, int], out: list[str]) -> None:
        value = _require(fields, self.field)
        if value < 0:
            raise ValueError(f"Field {self.field!r} must not be negative")
        digits = str(value)
        if len(digits) > self.max_digits:
            raise ValueError(
                f"Field {self.field!r} has more than {self.max_digits} digits"
            )
        if self.padding == "zero":
            digits = digits.zfill(self.min_digits)
        elif self.padding == "space":
            digits = digits.rjust(self.min_digits)
        out.append(digits)

    def _parse(self, ctx: _Context, pos: int, fields: Fields) -> _Candidates:
        s = ctx.s
        spaces = 0
        if self.padding == "space":
            while (
                spaces < self.min_digits - 1
                and s[pos + spaces : pos + spaces + 1] == " "
            ):
                spaces += 1
        start = pos + spaces
        n = _count_digits(s, start, self.max_digits)
        least = max(1, self.min_digits - spaces)
        if n < least:
            ctx.fail(start + n, f"expected {least} digit(s) for {self.field}")
            return
        for width in range(n, least - 1, -1):
            value = int(s[start : start + width])
            assigned = _assign(fields, self.field, value)
            if assigned is None:
                ctx.fail(pos, f"conflicting values for {self.field}")
            else:
                yield start + width, assigned

    def _key(self) -> tuple[object, ...]:
        return (self.field, self.min_digits, self.max_digits, self.padding)


@final
class Year(Directive):
    """A signed year.

    With the default ISO 8601 padding, years are zero-padded to 4 digits.
    A sign is written (and required) once a year needs more than 4 digits,
    and negative years always carry one.
    At most 9 digits are accepted.
    """

    __slots__ = ("padding",)

    def __init__(self, padding: _Literal["zero", "none"] = "zero") -> None:
        if padding not in ("zero", "none"):
            raise ValueError(f"Invalid padding: {padding!r}")
        self.padding = padding

    @property
    def fields(self) -> tuple[str, ...]:
        return (YEAR,)

    def _format(self, fields: Mapping[str, int], out: list[str]) -> None:
        year = _require(fields, YEAR)
        if len(digits := str(abs(year))) > _MAX_YEAR_DIGITS:
            raise ValueError(f"Year has too many digits: {year}")
        if self.padding == "none":
            out.append(str(year))
        elif year < 0:
            out.append("-" + digits.zfill(4))
        elif year > 9999:
            out.append("+" + digits)
        else:
            out.append(digits.zfill(4))

    def _parse(self, ctx: _Context, pos: int, fields: Fields) -> _Candidates:
        s = ctx.s
        sign = s[pos : pos + 1]
        if sign in ("+", "-"):
            start = pos + 1
        else:
            sign = ""
            start = pos
        n = _count_digits(s, start, _MAX_YEAR_DIGITS)
        if self.padding == "none":
            least, most = 1, n
        elif sign == "+":
            least, most = 5, n
        elif sign == "-":
            least, most = 4, n
        else:
            least, most = 4, min(n, 4)
        if n < least:
            ctx.fail(
                start + n,
                f"expected at least {least} digits for a year"
                + (f" with sign {sign!r}" if sign else ""),
            )
            return
        for width in range(most, least - 1, -1):
            value = int(s[start : start + width])
            assigned = _assign(fields, YEAR, -value if sign == "-" else value)
            if assigned is None:
                ctx.fail(pos, "conflicting values for year")
            else:
                yield start + width, assigned

    def _key(self) -> tuple[object, ...]:
        return (self.padding,)


@final
class Fraction(Directive):
    """The fraction of a second, written as a number of decimal digits.

    Trailing zeros are omitted on output, down to ``min_digits``. With
    ``group_by_three``, the output is rounded up to whole groups of three
    digits (milli-, micro- or nanoseconds). Output is truncated at
    ``max_digits``.
    """

    __slots__ = ("min_digits", "max_digits", "group_by_three")

    def __init__(
        self,
        min_digits: int = 1,
        max_digits: int = 9,
        *,
        group_by_three: bool = False,
    ) -> None:
        if not 1 <= min_digits <= max_digits <= 9:
            raise ValueError("Invalid number of fraction digits")
        self.min_digits = min_digits
        self.max_digits = max_digits
        self.group_by_three = group_by_three

    @property
    def fields(self) -> tuple[str, ...]:
        return (NANOSECOND,)

    def _format(self, fields: Mapping[str, int], out: list[str]) -> None:
        digits = f"{_require(fields, NANOSECOND):09d}"
        significant = len(digits.rstrip("0"))
        if self.group_by_three:
            significant = -(-significant // 3) * 3
        width = min(self.max_digits, max(self.min_digits, significant))
        out.append(digits[:width])

    def _parse(self, ctx: _Context, pos: int, fields: Fields) -> _Candidates:
        s = ctx.s
        n = _count_digits(s, pos, self.max_digits)
        if n < self.min_digits:
            ctx.fail(
                pos + n, f"expected {self.min_digits} digit(s) for a fraction"
            )
            return
        for width in range(n, self.min_digits - 1, -1):
            nanos = int(s[pos : pos + width].ljust(9, "0"))
            assigned = _assign(fields, NANOSECOND, nanos)
            if assigned is None:
                ctx.fail(pos, "conflicting values for nanosecond")
            else:
                yield pos + width, assigned

    def _key(self) -> tuple[object, ...]:
        return (self.min_digits, self.max_digits, self.group_by_three)


@final
class OffsetHours(Directive):
    """The sign and whole hours of a UTC offset, e.g. ``+01`` or ``-1``"""

    __slots__ = ("padding",)

    def __init__(self, padding: _Literal["zero", "none"] = "zero") -> None:
        if padding not in ("zero", "none"):
            raise ValueError(f"Invalid padding: {padding!r}")
        self.padding = padding

    @property
    def fields(self) -> tuple[str, ...]:
        return (OFFSET_NEGATIVE, OFFSET_HOURS)

    def _format(self, fields: Mapping[str, int], out: list[str]) -> None:
        hours = _require(fields, OFFSET_HOURS)
        out.append("-" if fields.get(OFFSET_NEGATIVE) else "+")
        out.append(f"{hours:02d}" if self.padding == "zero" else str(hours))

    def _parse(self, ctx: _Context, pos: int, fields: Fields) -> _Candidates:
        s = ctx.s
        sign = s[pos : pos + 1]
        if sign not in ("+", "-"):
            ctx.fail(pos, "expected '+' or '-'")
            return
        signed = _assign(fields, OFFSET_NEGATIVE, int(sign == "-"))
        if signed is None:
            ctx.fail(pos, "conflicting offset sign")
            return
        least = 2 if self.padding == "zero" else 1
        n = _count_digits(s, pos + 1, 2)
        if n < least:
            ctx.fail(
                pos + 1 + n, f"expected {least} digit(s) for offset hours"
            )
            return
        for width in range(n, least - 1, -1):
            hours = int(s[pos + 1 : pos + 1 + width])
            if (assigned := _assign(signed, OFFSET_HOURS, hours)) is None:
                ctx.fail(pos, "conflicting values for offset hours")
            else:
                yield pos + 1 + width, assigned

    def _key(self) -> tuple[object, ...]:
        return (self.padding,)


@final
class OffsetMinutes(Number):
    """The minutes of a UTC offset. The sign is taken from the hours."""

    __slots__ = ()

    def __init__(self) -> None:
        super().__init__(OFFSET_MINUTES)

    def _key(self) -> tuple[object, ...]:
        return ()


@final
class OffsetSeconds(Number):
    """The seconds of a UTC offset. The sign is taken from the hours."""

    __slots__ = ()

    def __init__(self) -> None:
        super().__init__(OFFSET_SECONDS)

    def _key(self) -> tuple[object, ...]:
        return ()


_DirectiveLike = Union[Directive, str, "DateTimeFormat"]


def _as_directives(
    items: Iterable[_DirectiveLike | Iterable[_DirectiveLike]],
) -> tuple[Directive, ...]:
    result: list[Directive] = []
    for item in items:
        if isinstance(item, Directive):
            result.append(item)
        elif isinstance(item, str):
            result.append(Literal(item))
        elif isinstance(item, DateTimeFormat):
            result.extend(item._directives)
        elif isinstance(item, (tuple, list)):
            result.extend(_as_directives(item))
        else:
            raise TypeError(f"Expected a format directive, got {item!r}")
    return tuple(result)


def _unique_fields(directives: Iterable[Directive]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(f for d in directives for f in d.fields))


@final
class Optional(Directive):
    """A group that is left out on output when all its fields are at their
    default values. ``on_zero`` is written in its place, and is accepted
    on input to mean "all defaults".

    Example
    -------
    >>> Optional(".", Fraction())  # omit a zero fraction
    >>> Optional(OffsetHours(), ":", OffsetMinutes(), on_zero="Z")
    """

    __slots__ = ("directives", "on_zero")

    def __init__(self, *directives: _DirectiveLike, on_zero: str = "") -> None:
        self.directives = _as_directives(directives)
        self.on_zero = on_zero
        if not self.fields:
            raise ValueError("Optional group must contain at least one field")
        if missing := [f for f in self.fields if f not in DEFAULTS]:
            raise ValueError(
                f"Fields in an optional group need a default value: {missing}"
            )

    @property
    def fields(self) -> tuple[str, ...]:
        return _unique_fields(self.directives)

    def _format(self, fields: Mapping[str, int], out: list[str]) -> None:
        if all(fields.get(f, DEFAULTS[f]) == DEFAULTS[f] for f in self.fields):
            out.append(self.on_zero)
        else:
            for d in self.directives:
                d._format(fields, out)

    def _parse(self, ctx: _Context, pos: int, fields: Fields) -> _Candidates:
        names = self.fields
        for p, f in _parse_seq(self.directives, ctx, pos, fields):
            yield p, _fill_missing(f, names)
        if ctx.s.startswith(self.on_zero, pos):
            if (filled := _fill_defaults(fields, names)) is None:
                ctx.fail(pos, "conflicting field values")
            else:
                yield pos + len(self.on_zero), filled
        else:
            ctx.fail(pos, f"expected {self.on_zero!r}")

    def _key(self) -> tuple[object, ...]:
        return (self.directives, self.on_zero)


@final
class Alternative(Directive):
    """Several ways to parse the same thing. Output always uses the first.

    Example
    -------
    >>> Alternative("T", "t")  # write 'T', but also accept 't'
    """

    __slots__ = ("branches",)

    def __init__(
        self,
        primary: _DirectiveLike | Iterable[_DirectiveLike],
        *alternatives: _DirectiveLike | Iterable[_DirectiveLike],
    ) -> None:
        self.branches = tuple(
            _as_directives([b]) for b in (primary, *alternatives)
        )

    @property
    def fields(self) -> tuple[str, ...]:
        return _unique_fields(d for b in self.branches for d in b)

    def _format(self, fields: Mapping[str, int], out: list[str]) -> None:
        for d in self.branches[0]:
            d._format(fields, out)

    def _parse(self, ctx: _Context, pos: int, fields: Fields) -> _Candidates:
        for branch in self.branches:
            yield from _parse_seq(branch, ctx, pos, fields)

    def _key(self) -> tuple[object, ...]:
        return self.branches


@final
class DateTimeFormat(_ImmutableBase):
    """A reusable format, used both to write and to read text.

    Example
    -------
    >>> fmt = DateTimeFormat(Year(), "/", Number("month"), "/", Number("day"))
    >>> fmt.format({"year": 2024, "month": 3, "day": 9})
    '2024/03/09'
    >>> fmt.parse("2024/03/09")
    {'year': 2024, 'month': 3, 'day': 9}
    >>> LocalDate.parse("2024/03/09", fmt)
    LocalDate(2024-03-09)
    """

    __slots__ = ("_directives",)

    def __init__(self, *directives: _DirectiveLike) -> None:
        self._directives = _as_directives(directives)

    @property
    def directives(self) -> tuple[Directive, ...]:
        return self._directives

    @property
    def fields(self) -> tuple[str, ...]:
        return _unique_fields(self._directives)

    def format(self, fields: Mapping[str, int], /) -> str:
        """Write the given fields as text"""
        out: list[str] = []
        for d in self._directives:
            d._format(fields, out)
        return "".join(out)

    def parse(self, s: str, /) -> dict[str, int]:
        """Read fields from text. The entire text must match."""
        if not isinstance(s, str):
            raise TypeError(f"Expected str, got {type(s)!r}")
        ctx = _Context(s)
        for pos, fields in _parse_seq(self._directives, ctx, 0, {}):
            if pos == len(s):
                return fields
            ctx.fail(pos, "unexpected trailing text")
        raise InvalidFormat._at(s, ctx.fail_pos, ctx.fail_reason)

    @classmethod
    def from_unicode_pattern(cls, pattern: str, /) -> DateTimeFormat:
        """Compile a subset of Unicode date/time patterns
        (as used by ``java.time`` and ICU).

        Supported are ``uuuu``/``yyyy``, ``u``/``y``, ``MM``/``M``,
        ``dd``/``d``, ``HH``/``H``, ``mm``/``m``, ``ss``/``s``, one to nine
        ``S`` for the fraction of the second, ``X`` to ``XXXXX`` and ``x`` to
        ``xxxxx`` for UTC offsets, ``'quoted text'`` and ``[optional groups]``.

        Example
        -------
        >>> DateTimeFormat.from_unicode_pattern("uuuu-MM-dd'T'HH:mm[:ss]")
        """
        stack: list[list[Directive]] = [[]]
        i = 0
        while i < len(pattern):
            c = pattern[i]
            if c == "'":
                end = pattern.find("'", i + 1)
                if end == -1:
                    raise ValueError(f"Unterminated quote in {pattern!r}")
                stack[-1].append(Literal(pattern[i + 1 : end] or "'"))
                i = end + 1
            elif c == "[":
                stack.append([])
                i += 1
            elif c == "]":
                if len(stack) == 1:
                    raise ValueError(f"Unmatched ']' in {pattern!r}")
                group = stack.pop()
                stack[-1].append(Optional(*group))
                i += 1
            elif c.isascii() and c.isalpha():
                end = i
                while end < len(pattern) and pattern[end] == c:
                    end += 1
                stack[-1].extend(_directives_for_letter(c, end - i))
                i = end
            else:
                stack[-1].append(Literal(c))
                i += 1
        if len(stack) != 1:
            raise ValueError(f"Unmatched '[' in {pattern!r}")
        return cls(*stack[0])

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DateTimeFormat):
            return NotImplemented
        return self._directives == other._directives

    def __hash__(self) -> int:
        return hash(self._directives)

    def __repr__(self) -> str:
        return f"DateTimeFormat{self._directives!r}"


_PATTERN_FIELDS = {
    "M": MONTH,
    "d": DAY,
    "H": HOUR,
    "m": MINUTE,
    "s": SECOND,
}

# (use_separator, output_minute, output_second) by number of letters
_PATTERN_OFFSETS: Mapping[int, tuple[bool, WhenToOutput, WhenToOutput]] = {
    1: (False, "if_nonzero", "never"),
    2: (False, "always", "never"),
    3: (True, "always", "never"),
    4: (False, "always", "if_nonzero"),
    5: (True, "always", "if_nonzero"),
}


def _directives_for_letter(c: str, n: int) -> tuple[Directive, ...]:
    if c in "uy" and n in (1, 4):
        return (Year("zero" if n == 4 else "none"),)
    elif c in _PATTERN_FIELDS and n in (1, 2):
        field = _PATTERN_FIELDS[c]
        return (Number(field) if n == 2 else Number(field, padding="none"),)
    elif c == "S" and n <= 9:
        return (Fraction(n, n),)
    elif c in "Xx" and n in _PATTERN_OFFSETS:
        sep, minute, second = _PATTERN_OFFSETS[n]
        return iso_offset(
            z_on_zero=c == "X",
            use_separator=sep,
            output_minute=minute,
            output_second=second,
        ).directives
    raise ValueError(f"Unsupported pattern: {c * n!r}")


def iso_offset(
    *,
    z_on_zero: bool,
    use_separator: bool,
    output_minute: WhenToOutput,
    output_second: WhenToOutput,
) -> DateTimeFormat:
    """Build an ISO 8601 UTC offset format, in one of its many variations.

    Parameters
    ----------
    z_on_zero
        Write ``Z`` for a zero offset (``z`` is accepted too)
    use_separator
        Separate the components with ``:``
    output_minute, output_second
        Whether to write the minutes and seconds:
        ``"never"``, ``"always"``, or ``"if_nonzero"``.
    """
    order = ("never", "if_nonzero", "always")
    if output_minute not in order or output_second not in order:
        raise ValueError("Invalid output setting")
    if order.index(output_minute) < order.index(output_second):
        raise ValueError("Seconds can't be written more often than minutes")
    sep: tuple[Directive, ...] = (Literal(":"),) if use_separator else ()

    seconds: tuple[Directive, ...] = ()
    if output_second == "if_nonzero":
        seconds = (Optional(*sep, OffsetSeconds()),)
    elif output_second == "always":
        seconds = (*sep, OffsetSeconds())

    body: tuple[Directive, ...] = (OffsetHours(),)
    if output_minute == "if_nonzero":
        body += (Optional(*sep, OffsetMinutes(), *seconds),)
    elif output_minute == "always":
        body += (*sep, OffsetMinutes(), *seconds)

    if z_on_zero:
        return DateTimeFormat(Optional(Alternative(body, "z"), on_zero="Z"))
    return DateTimeFormat(*body)


_T_SEPARATOR = Alternative("T", "t")

ISO_DATE = DateTimeFormat(Year(), "-", Number(MONTH), "-", Number(DAY))
"""``2024-03-09``, ``-0044-03-15``, or ``+12345-01-01``"""

ISO_DATE_BASIC = DateTimeFormat(Year(), Number(MONTH), Number(DAY))
"""``20240309``"""

ISO_TIME = DateTimeFormat(
    Number(HOUR),
    ":",
    Number(MINUTE),
    Optional(
        ":",
        Number(SECOND),
        Optional(".", Fraction(group_by_three=True)),
    ),
)
"""``18:43``, ``18:43:15``, or ``18:43:15.100500``"""

ISO_DATE_TIME = DateTimeFormat(ISO_DATE, _T_SEPARATOR, ISO_TIME)
"""``2024-03-09T18:43:15``"""

ISO_INSTANT = DateTimeFormat(
    ISO_DATE,
    _T_SEPARATOR,
    Number(HOUR),
    ":",
    Number(MINUTE),
    ":",
    Number(SECOND),
    Optional(".", Fraction(group_by_three=True)),
    iso_offset(
        z_on_zero=True,
        use_separator=True,
        output_minute="if_nonzero",
        output_second="if_nonzero",
    ),
)
"""``2024-03-09T18:43:15.100Z``. Seconds and an offset are required."""

ISO_OFFSET = iso_offset(
    z_on_zero=True,
    use_separator=True,
    output_minute="always",
    output_second="if_nonzero",
)
"""``Z``, ``+01:30``, or ``-10:36:22``"""

ISO_OFFSET_BASIC = iso_offset(
    z_on_zero=True,
    use_separator=False,
    output_minute="always",
    output_second="if_nonzero",
)
"""``Z``, ``+0130``, or ``-103622``"""

FOUR_DIGIT_OFFSET = iso_offset(
    z_on_zero=False,
    use_separator=False,
    output_minute="always",
    output_second="never",
)
"""``+0000`` or ``+0130``. Seconds are dropped on output."""

# Accepts the offsets people actually write in zone IDs: +1, +0130, +01:30
LENIENT_OFFSET = DateTimeFormat(
    Alternative(
        ISO_OFFSET,
        OffsetHours("none"),
        iso_offset(
            z_on_zero=False,
            use_separator=False,
            output_minute="if_nonzero",
            output_second="if_nonzero",
        ),
    )
)


def fail_parse(s: str, reason: object) -> NoReturn:
    raise InvalidFormat._for_value(s, reason)
