from __future__ import annotations

from ._format import (
    FOUR_DIGIT_OFFSET,
    ISO_DATE,
    ISO_DATE_BASIC,
    ISO_DATE_TIME,
    ISO_INSTANT,
    ISO_OFFSET,
    ISO_OFFSET_BASIC,
    ISO_TIME,
    LENIENT_OFFSET,
    Alternative,
    DateTimeFormat,
    Directive,
    Fraction,
    InvalidFormat,
    Literal,
    Number,
    OffsetHours,
    OffsetMinutes,
    OffsetSeconds,
    Optional,
    Year,
    iso_offset,
)
from ._math import ArithmeticOverflow
from ._pyciviltime import *
from ._pyciviltime import (  # for pickling and the docs
    __all__ as _values_all,
    __version__,
    _patch_time_frozen,
    _patch_time_keep_ticking,
    _unpatch_time,
    _unpkl_date,
    _unpkl_inst,
    _unpkl_local,
    _unpkl_offset,
    _unpkl_period,
    _unpkl_tdelta,
    _unpkl_time,
    _unpkl_tz,
)
from ._tz.store import (
    TimeZoneNotFoundError,
    clear_tz_cache as _clear_tz_cache,
    clear_tz_cache_by_keys as _clear_tz_cache_by_keys,
    reset_system_tz,
    set_tzpath as _set_tzpath,
)

import os as _os
import sysconfig as _sysconfig
from contextlib import contextmanager as _contextmanager
from dataclasses import dataclass as _dataclass
from importlib.resources import open_text as _open_resource
from pathlib import Path as _Path
from typing import Iterable as _Iterable, Iterator as _Iterator

__all__ = [
    *_values_all,
    # Formatting
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
    # Exceptions
    "ArithmeticOverflow",
    "InvalidFormat",
    "TimeZoneNotFoundError",
    # Configuration
    "TZPATH",
    "reset_tzpath",
    "clear_tzcache",
    "available_zone_ids",
    "reset_system_tz",
    "patch_current_time",
]

for _cls in (
    ArithmeticOverflow,
    InvalidFormat,
    TimeZoneNotFoundError,
    DateTimeFormat,
    Directive,
    Literal,
    Number,
    Year,
    Fraction,
    OffsetHours,
    OffsetMinutes,
    OffsetSeconds,
    Optional,
    Alternative,
):
    _cls.__module__ = __name__

del _cls


@_dataclass
class _TimePatch:
    _pin: Instant
    _keep_ticking: bool

    def shift(self, **kwargs):
        if self._keep_ticking:
            self._pin = new = (self._pin + (Instant.now() - self._pin)).add(
                **kwargs
            )
            _patch_time_keep_ticking(new)
        else:
            self._pin = new = self._pin.add(**kwargs)
            _patch_time_frozen(new)


@_contextmanager
def patch_current_time(
    i: Instant, /, *, keep_ticking: bool
) -> _Iterator[_TimePatch]:
    """Patch the current time to a fixed value (for testing purposes).
    Behaves as a context manager or decorator, with similar semantics to
    ``unittest.mock.patch``.

    Important
    ---------

    * This function should be used only for testing purposes. It is not
      thread-safe or part of the stable API.
    * This function only affects :meth:`Instant.now`. It does not
      affect the standard library's time functions or any other libraries.
      Use the ``time_machine`` package if you also want to patch other libraries.
    * It doesn't affect the system time zone.

    Example
    -------

    >>> from civiltime import Instant, patch_current_time
    >>> i = Instant.from_utc(1980, 3, 2, hour=2)
    >>> with patch_current_time(i, keep_ticking=False) as p:
    ...     assert Instant.now() == i
    ...     p.shift(hours=4)
    ...     assert i.now() == i.add(hours=4)
    ...
    >>> assert Instant.now() != i
    """
    if keep_ticking:
        _patch_time_keep_ticking(i)
    else:
        _patch_time_frozen(i)

    try:
        yield _TimePatch(i, keep_ticking)
    finally:
        _unpatch_time()


TZPATH: tuple[str, ...] = ()
"""The paths in which ``civiltime`` searches for time zone data.
By default, this is determined the same way as :data:`zoneinfo.TZPATH`,
although you can override it using :func:`civiltime.reset_tzpath`.
Zones not found here are loaded from the ``tzdata`` package.
"""


def reset_tzpath(target: _Iterable[str | _os.PathLike[str]] | None = None, /):
    """Reset or set the paths in which ``civiltime`` searches for
    time zone data.

    It does not affect the :mod:`zoneinfo` module or other libraries.

    Note
    ----
    Due to caching, looking up a time zone after setting the tzpath
    may not load the data from the new path. Call :func:`clear_tzcache`
    to force loading *all* time zones from the new path.

    Behaves similarly to :func:`zoneinfo.reset_tzpath`
    """
    global TZPATH

    if target is not None:
        # This is such a common mistake, that we raise a descriptive error
        if isinstance(target, (str, bytes)):
            raise TypeError("tzpath must be an iterable of paths")

        if not all(map(_os.path.isabs, target)):
            raise ValueError("tzpaths must be absolute paths")
        TZPATH = tuple(str(_Path(p)) for p in target)
    else:
        TZPATH = _tzpath_from_env()
    _set_tzpath(TZPATH)


def _tzpath_from_env() -> tuple[str, ...]:
    try:
        env_var = _os.environ["PYTHONTZPATH"]
    except KeyError:
        env_var = _sysconfig.get_config_var("TZPATH")

    if not env_var:
        return ()

    # invalid paths may be silently ignored, like zoneinfo does
    return tuple(filter(_os.path.isabs, env_var.split(_os.pathsep)))


def clear_tzcache(*, only_keys: _Iterable[str] | None = None) -> None:
    """Clear the time zone cache. If ``only_keys`` is provided,
    only the cache for those keys is cleared.

    Existing :class:`TimeZone` instances keep the rules they were loaded
    with. A zone loaded after clearing may therefore compare unequal
    to one loaded before, if the underlying data changed.

    Behaves similarly to :meth:`zoneinfo.ZoneInfo.clear_cache`.
    """
    if only_keys is None:
        _clear_tz_cache()
    else:
        _clear_tz_cache_by_keys(tuple(only_keys))


def available_zone_ids() -> set[str]:
    """Gather the IDs of all available time zones.

    Each call recalculates the result depending on the currently
    configured ``TZPATH``, and the presence of the ``tzdata`` package.

    Warning
    -------
    This function may open a large number of files, since the first few bytes
    of each file must be read to determine if it's valid.

    Note
    ----
    Like :func:`zoneinfo.available_timezones`, this ignores
    the "special" zones (e.g. posixrules, right/posix, etc.)
    """
    zones = set()
    # Get the zones from the tzdata package, if available
    try:
        with _open_resource("tzdata", "zones") as f:
            zones.update(map(str.strip, f))
    except (ImportError, FileNotFoundError):
        pass

    # Get the zones from the tzpath directories
    for base in TZPATH:
        zones.update(_find_all_tznames(_Path(base)))

    zones.discard("posixrules")  # a special file that shouldn't be included
    return zones


# Recursion is safe here since the file tree is trusted, and nesting doesn't
# even approach the recursion limit.
def _find_all_tznames(base: _Path) -> _Iterator[str]:
    if not base.is_dir():
        return
    for entry in base.iterdir():
        if entry.is_dir():
            if entry.name in ("right", "posix"):
                # These contain special files that shouldn't be included
                continue
            for p in _find_nested_tzfiles(entry):
                yield p.relative_to(base).as_posix()
        elif _is_tzifile(entry):
            yield entry.name


def _find_nested_tzfiles(path: _Path) -> _Iterator[_Path]:
    for entry in path.iterdir():
        if entry.is_dir():
            yield from _find_nested_tzfiles(entry)
        elif _is_tzifile(entry):
            yield entry


def _is_tzifile(p: _Path) -> bool:
    try:
        with p.open("rb") as f:
            return f.read(4) == b"TZif"
    except OSError:
        return False


reset_tzpath()  # populate the tzpath once at startup
