"""Reading of TZif files (RFC 8536), as found in the IANA tz database"""

from __future__ import annotations

import struct
from io import BytesIO
from typing import IO, NamedTuple, Optional, Sequence

from .._math import MAX_EPOCH_SECOND, MIN_EPOCH_SECOND
from .common import EpochSecs, Offset
from .posix import PosixTz
from .rules import TimeZoneRules, TransitionTuple


class InvalidTzif(ValueError):
    """The data isn't a valid TZif file"""


class Header(NamedTuple):
    version: int
    isutcnt: int
    isstdcnt: int
    leapcnt: int
    timecnt: int
    typecnt: int
    charcnt: int

    @property
    def v1_data_size(self) -> int:
        return (
            self.timecnt * 5
            + self.typecnt * 6
            + self.charcnt
            + self.leapcnt * 8
            + self.isstdcnt
            + self.isutcnt
        )


def parse_tzif(data: bytes) -> TimeZoneRules:
    """Load the offset rules from the contents of a TZif file"""
    read = BytesIO(data)
    header = _parse_header(read)
    if header.version >= 2:
        # Version 2+ files repeat the data with 64-bit times.
        # The legacy 32-bit block is skipped entirely.
        read.read(header.v1_data_size)
        header = _parse_header(read)
        times = _unpack(read, f">{header.timecnt}q", 8 * header.timecnt)
    else:
        times = _unpack(read, f">{header.timecnt}i", 4 * header.timecnt)

    indices = read.read(header.timecnt)
    if len(indices) != header.timecnt:
        raise InvalidTzif("Unexpected end of data")
    offsets = [
        utoff
        for utoff, *_ in struct.iter_unpack(
            ">ixx", _read_exact(read, 6 * header.typecnt)
        )
    ]
    if not offsets:
        raise InvalidTzif("No local time types in file")
    if any(i >= len(offsets) for i in indices):
        raise InvalidTzif("Invalid local time type index")
    read.read(header.charcnt)

    recurring: Optional[PosixTz] = None
    if header.version >= 2:
        # Skip leap second records and indicators, plus the newline
        # before the footer
        read.read(header.leapcnt * 12 + header.isstdcnt + header.isutcnt + 1)
        footer, *_ = read.read().split(b"\n", 1)
        if footer:
            recurring = PosixTz.parse(footer.decode("ascii"))

    return TimeZoneRules(
        offsets[0],
        _transitions(offsets[0], times, [offsets[i] for i in indices]),
        recurring,
    )


def _parse_header(data: IO[bytes]) -> Header:
    if data.read(4) != b"TZif":
        raise InvalidTzif("Invalid header value")
    version_byte = data.read(1)
    if version_byte == b"\x00":
        version = 1
    elif version_byte.isdigit():
        version = int(version_byte)
    else:
        raise InvalidTzif("Invalid header value")
    data.read(15)  # reserved
    return Header(version, *_unpack(data, ">6i", 24))


def _read_exact(data: IO[bytes], size: int) -> bytes:
    if len(chunk := data.read(size)) != size:
        raise InvalidTzif("Unexpected end of data")
    return chunk


def _unpack(data: IO[bytes], fmt: str, size: int) -> tuple[int, ...]:
    return struct.unpack(fmt, _read_exact(data, size))


def _transitions(
    initial: Offset, times: Sequence[EpochSecs], offsets: Sequence[Offset]
) -> list[TransitionTuple]:
    """Build (time, before, after) transitions. Entries which only change
    the abbreviation or DST flag (not the offset) are left out."""
    result: list[TransitionTuple] = []
    prev = initial
    for time, offset in zip(times, offsets):
        # Some files start with a "big bang" transition far outside
        # the supported range
        time = max(MIN_EPOCH_SECOND, min(MAX_EPOCH_SECOND, time))
        if result and time <= result[-1][0]:
            # Clamping merged this transition into the previous one
            time, prev, _ = result.pop()
        if offset != prev:
            result.append((time, prev, offset))
            prev = offset
    return result
