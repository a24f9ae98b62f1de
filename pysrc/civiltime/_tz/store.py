"""Time zone database access and caching."""

from __future__ import annotations

import logging
import os.path
import sys
from collections import OrderedDict
from typing import TYPE_CHECKING, NewType, Optional
from weakref import WeakValueDictionary

from . import system
from .posix import PosixTz
from .rules import TimeZoneRules
from .tzif import parse_tzif

__all__ = [
    "TimeZoneNotFoundError",
    "get_tz",
    "get_system_tz",
    "reset_system_tz",
    "validate_tzid",
]

logger = logging.getLogger(__name__)

_NOGIL = hasattr(sys, "_is_gil_enabled") and not sys._is_gil_enabled()

_TZPATH: tuple[str, ...] = ()

# Loaded zones are cached the same way `zoneinfo` does it: weakly,
# plus strong references to the few most recently used.
_TZCACHE_LRU_SIZE = 8
_tzcache_lru: OrderedDict[str, TimeZoneRules] = OrderedDict()
_tzcache_lookup: WeakValueDictionary[str, TimeZoneRules] = (
    WeakValueDictionary()
)

# OrderedDict is thread-unsafe in Python < 3.14 under free-threading,
# so the LRU needs a lock there.
if TYPE_CHECKING or (
    _NOGIL and sys.version_info < (3, 14)
):  # pragma: no cover
    from threading import Lock as _Lock
else:

    class _Lock:
        def __enter__(self) -> None:
            pass

        def __exit__(self, *args: object) -> None:
            pass


_tzcache_lru_lock = _Lock()


def set_tzpath(to: tuple[str, ...]) -> None:
    global _TZPATH
    logger.debug("Time zone search path set to %r", to)
    _TZPATH = to


def get_tzpath() -> tuple[str, ...]:
    return _TZPATH


def clear_tz_cache() -> None:
    _tzcache_lookup.clear()
    with _tzcache_lru_lock:
        _tzcache_lru.clear()


def clear_tz_cache_by_keys(keys: tuple[str, ...]) -> None:
    with _tzcache_lru_lock:
        for k in keys:
            _tzcache_lookup.pop(k, None)
            _tzcache_lru.pop(k, None)


def get_tz(key: str) -> TimeZoneRules:
    """Load the rules of an IANA time zone, e.g. ``Europe/Amsterdam``"""
    instance = _tzcache_lookup.get(key)
    if instance is None:
        # Multiple threads may load the same zone at the same time.
        # Rules are immutable, so the last one to write wins.
        instance = _tzcache_lookup.setdefault(
            key, _load_tz(validate_tzid(key))
        )

    with _tzcache_lru_lock:
        _tzcache_lru[key] = _tzcache_lru.pop(key, instance)
        if len(_tzcache_lru) > _TZCACHE_LRU_SIZE:
            try:
                evicted, _ = _tzcache_lru.popitem(last=False)
            except KeyError:  # pragma: no cover
                pass  # possible if other threads are clearing too
            else:
                logger.debug("Evicted time zone %r from LRU cache", evicted)

    return instance


# A tz ID that has been confirmed not to be a path traversal
# or contain other "bad" characters.
SafeTzId = NewType("SafeTzId", str)


def validate_tzid(key: str) -> SafeTzId:
    """Checks for invalid characters and path traversal in the key."""
    if (
        key.isascii()
        # There's no standard limit on IANA tz IDs, but we have to draw
        # the line somewhere to prevent abuse.
        and 0 < len(key) < 100
        and all(b.isalnum() or b in "-_+/." for b in key)
        # specific sequences not allowed
        and ".." not in key
        and "//" not in key
        and "/./" not in key
        # specific restrictions on the first and last characters
        and key[0] not in ".-+/"
        and key[-1] != "/"
    ):
        return SafeTzId(key)
    raise TimeZoneNotFoundError.for_key(key)


def _try_tzif_from_path(key: SafeTzId) -> Optional[bytes]:
    for search_path in _TZPATH:
        target = os.path.join(search_path, key)
        if os.path.isfile(target):
            logger.debug("Loading time zone %r from %s", key, target)
            with open(target, "rb") as f:
                return f.read()
    return None


def _tzif_from_tzdata(key: SafeTzId) -> bytes:
    try:
        tzdata_path = __import__("tzdata.zoneinfo").zoneinfo.__path__[0]
        # Check before reading: the resulting exceptions vary by platform
        if os.path.isfile(
            relpath := os.path.join(tzdata_path, *key.split("/"))
        ):
            logger.debug("Loading time zone %r from tzdata", key)
            with open(relpath, "rb") as f:
                return f.read()
        raise FileNotFoundError(relpath)
    # Several exceptions amount to "can't find the key"
    except (
        ImportError,
        FileNotFoundError,
        UnicodeEncodeError,
    ):
        raise TimeZoneNotFoundError.for_key(key) from None


def _load_tz(key: SafeTzId) -> TimeZoneRules:
    tzif = _try_tzif_from_path(key) or _tzif_from_tzdata(key)
    if not tzif.startswith(b"TZif"):
        # A file was found, but it isn't a TZif file.
        # Stop here instead of getting a cryptic error later.
        raise TimeZoneNotFoundError.for_key(key)
    return parse_tzif(tzif)


# (key, rules), key is None if it can't be determined
_CACHED_SYSTEM_TZ: Optional[tuple[Optional[str], TimeZoneRules]] = None


def get_system_tz() -> tuple[Optional[str], TimeZoneRules]:
    """The system time zone: its ID (if known) and rules"""
    global _CACHED_SYSTEM_TZ
    # Lock-free: loading is side-effect free and the last writer wins
    if _CACHED_SYSTEM_TZ is None:
        _CACHED_SYSTEM_TZ = _read_system_tz()
    return _CACHED_SYSTEM_TZ


def reset_system_tz() -> None:
    """Reset the cached system time zone to the current one"""
    global _CACHED_SYSTEM_TZ
    _CACHED_SYSTEM_TZ = _read_system_tz()


def _read_system_tz() -> tuple[Optional[str], TimeZoneRules]:
    tz_type, tz_value = system.get_tz()
    logger.debug("System time zone detected: type=%d, %r", tz_type, tz_value)
    if tz_type == 0:  # IANA tz ID
        return tz_value, get_tz(tz_value)
    elif tz_type == 2:  # IANA tz ID or POSIX TZ string (unknown which)
        try:
            return tz_value, get_tz(tz_value)
        except TimeZoneNotFoundError:
            logger.debug("Interpreting %r as a POSIX TZ string", tz_value)
            try:
                posix = PosixTz.parse(tz_value)
            except ValueError:
                raise TimeZoneNotFoundError.for_key(tz_value) from None
            return tz_value, TimeZoneRules(posix.std, (), posix)
    else:  # file-based time zone (no key)
        assert tz_type == 1, "Unknown system time zone type"
        with open(tz_value, "rb") as f:
            return None, parse_tzif(f.read())


class TimeZoneNotFoundError(ValueError):
    """A time zone with the given ID was not found"""

    @classmethod
    def for_key(cls, key: str) -> TimeZoneNotFoundError:
        return cls(f"No time zone found for key: {key!r}")
