import os
import struct
from contextlib import contextmanager
from typing import Sequence
from unittest.mock import patch

from civiltime import reset_system_tz

# The POSIX TZ string for the Amsterdam time zone.
AMS_TZ_POSIX = "CET-1CEST,M3.5.0,M10.5.0/3"


class AlwaysEqual:
    def __eq__(self, _):
        return True


class NeverEqual:
    def __eq__(self, _):
        return False


class AlwaysLarger:
    def __lt__(self, _):
        return False

    def __le__(self, _):
        return False

    def __gt__(self, _):
        return True

    def __ge__(self, _):
        return True


class AlwaysSmaller:
    def __lt__(self, _):
        return True

    def __le__(self, _):
        return True

    def __gt__(self, _):
        return False

    def __ge__(self, _):
        return False


@contextmanager
def system_tz(name):
    try:
        with patch.dict(os.environ, {"TZ": name}):
            reset_system_tz()
            yield
    finally:
        reset_system_tz()


@contextmanager
def system_tz_ams():
    with system_tz("Europe/Amsterdam"):
        yield


def make_tzif(
    offsets: Sequence[int],
    transitions: Sequence[tuple[int, int]] = (),
    footer: str = "",
    *,
    version: int = 2,
) -> bytes:
    """Build the contents of a TZif file.

    ``transitions`` are (UTC epoch seconds, index into ``offsets``) pairs.
    Version 1 files get only a 32-bit data block. Later versions get an
    empty 32-bit block, then a 64-bit block and the footer.
    """
    chars = b"ABC\x00"
    times = [t for t, _ in transitions]
    indices = bytes(i for _, i in transitions)
    ttinfos = b"".join(struct.pack(">iBB", off, 0, 0) for off in offsets)

    def header(version_byte: bytes, *counts: int) -> bytes:
        return b"TZif" + version_byte + bytes(15) + struct.pack(">6i", *counts)

    counts = (0, 0, 0, len(times), len(offsets), len(chars))

    def block(time_fmt: str) -> bytes:
        return (
            struct.pack(f">{len(times)}{time_fmt}", *times)
            + indices
            + ttinfos
            + chars
        )

    if version == 1:
        return header(b"\x00", *counts) + block("i")
    version_byte = str(version).encode()
    return (
        # the legacy 32-bit block is skipped by readers, so it may be empty
        header(version_byte, 0, 0, 0, 0, 0, 0)
        + header(version_byte, *counts)
        + block("q")
        + b"\n"
        + footer.encode()
        + b"\n"
    )
