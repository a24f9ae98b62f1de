"""
Hammer shared formats and time zones from many threads at once.

Each worker checks its results against answers computed up front on the
main thread. Run it on a free-threaded build to be meaningful. It isn't
a unit test because it clears the global time zone cache while running.
"""

import sys
import time
from concurrent.futures import ThreadPoolExecutor
from itertools import cycle, islice

from civiltime import (
    ISO_INSTANT,
    DateTimeFormat,
    Instant,
    LocalDateTime,
    TimeZone,
    UtcOffset,
    clear_tzcache,
)

if not hasattr(sys, "_is_gil_enabled") or sys._is_gil_enabled():
    print("WARNING: the GIL is enabled, so threads won't actually overlap.")

WORKERS = 16
ROUNDS = 2_000
ZONE_IDS = [
    "Europe/Amsterdam",
    "America/New_York",
    "Australia/Lord_Howe",
    "Asia/Kolkata",
    "Pacific/Chatham",
    "America/Sao_Paulo",
    "Africa/Casablanca",
    "UTC+05:45",
    "-03:30",
]
# Some of these fall in a gap or a fold in the zones above
LOCALS = [
    LocalDateTime(2024, 3, 31, 2, 30),
    LocalDateTime(2024, 10, 27, 2, 30),
    LocalDateTime(2024, 11, 3, 1, 30),
    LocalDateTime(2024, 6, 15, 12, 0, 0, nanosecond=123_456_789),
]
CUSTOM_FORMAT = DateTimeFormat.from_unicode_pattern(
    "dd/MM/uuuu HH:mm[:ss[.SSSSSSSSS]] XXXXX"
)
FORMATS = [ISO_INSTANT, CUSTOM_FORMAT]
SHARED_ZONES = {zone_id: TimeZone.of(zone_id) for zone_id in ZONE_IDS}


def expected_results():
    """The answers, computed before any threads start"""
    results = {}
    for zone_id, zone in SHARED_ZONES.items():
        for local in LOCALS:
            resolved, offset = zone.resolve(local)
            instant = resolved.to_instant(offset)
            texts = tuple(instant.format(f, offset=offset) for f in FORMATS)
            results[zone_id, local] = (resolved, offset, instant, texts)
    return results


def check(expected, zone_id, zone, local):
    resolved, offset = zone.resolve(local)
    instant = local.to_instant(zone)
    want_resolved, want_offset, want_instant, want_texts = expected[
        zone_id, local
    ]
    assert (resolved, offset) == (want_resolved, want_offset), zone_id
    assert instant == want_instant, (zone_id, local)
    for fmt, want in zip(FORMATS, want_texts):
        text = instant.format(fmt, offset=offset)
        assert text == want, (text, want)
        assert Instant.parse(text, fmt) == instant, text
    assert UtcOffset.parse(offset.format()) == offset


def shared_zones(expected, seed):
    """Use time zones loaded once, before the threads started"""
    items = list(SHARED_ZONES.items())
    for zone_id, zone in islice(cycle(items[seed:] + items[:seed]), ROUNDS):
        for local in LOCALS:
            check(expected, zone_id, zone, local)


def cache_churn(expected, seed):
    """Look up zones by ID, while other threads clear the cache"""
    for n, zone_id in enumerate(
        islice(cycle(ZONE_IDS[seed:] + ZONE_IDS[:seed]), ROUNDS)
    ):
        if n % 97 == seed:
            clear_tzcache(only_keys=[zone_id] if n % 2 else None)
        zone = TimeZone.of(zone_id)
        assert zone == SHARED_ZONES[zone_id], zone_id
        for local in LOCALS:
            check(expected, zone_id, zone, local)


def run(func, expected):
    print(f"Running {func.__name__} with {WORKERS} threads")
    start = time.perf_counter()
    with ThreadPoolExecutor(max_workers=WORKERS) as pool:
        futures = [
            pool.submit(func, expected, n % len(ZONE_IDS))
            for n in range(WORKERS)
        ]
        for future in futures:
            # re-raises any failure from the worker
            future.result()
    print(f"  done in {time.perf_counter() - start:.2f}s")


if __name__ == "__main__":
    expected = expected_results()
    run(shared_zones, expected)
    run(cache_churn, expected)
