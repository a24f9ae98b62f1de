"""Detection of the system time zone"""

import logging
import os
import os.path
import platform
from typing import Literal, Optional

logger = logging.getLogger(__name__)

SYSTEM = platform.system()
LOCALTIME = "/etc/localtime"

# On unix-like systems, the time zone is found through /etc/localtime.
# Elsewhere, the tzlocal package knows where to look.
if SYSTEM in ("Linux", "Darwin"):  # pragma: no cover

    def _key_or_file() -> tuple[Literal[0, 1], str]:
        tzif_path = os.path.realpath(LOCALTIME)
        if tzif_path == LOCALTIME:
            # Not a symlink: there's no way to tell the tz ID
            logger.debug("%s is not a symlink, tz ID unknown", LOCALTIME)
            return (1, LOCALTIME)

        if (tzid := _tzid_from_path(tzif_path)) is None:
            logger.debug("%s is outside any zoneinfo directory", tzif_path)
            return (1, tzif_path)
        return (0, tzid)

else:  # pragma: no cover
    import tzlocal

    def _key_or_file() -> tuple[Literal[0, 1], str]:
        return (0, tzlocal.get_localzone_name())


def _tzid_from_path(path: str) -> Optional[str]:
    """The IANA tz ID of a path to a zoneinfo file, e.g.
    ``/usr/share/zoneinfo/Europe/Paris`` -> ``Europe/Paris``.
    None if the path is not in a zoneinfo directory.
    """
    # Matches e.g. `zoneinfo/` as well as `zoneinfo.default/`
    if (zoneinfo := path.rfind("zoneinfo")) == -1:
        return None
    if (index := path.find("/", zoneinfo)) == -1:
        return None
    return path[index + 1 :] or None


def get_tz() -> tuple[Literal[0, 1, 2], str]:
    """Find the system time zone. The first item tells what the second is:

    - 0: an IANA tz ID
    - 1: a path to a TZif file (tz ID unknown)
    - 2: an IANA tz ID or a POSIX TZ string (unknown which)
    """
    try:
        tz_env = os.environ["TZ"]
    except KeyError:  # pragma: no cover
        return _key_or_file()

    tz_env = tz_env.removeprefix(":")
    if os.path.isabs(tz_env):
        return (1, tz_env)
    # Digits suggest a POSIX TZ string, although a few IDs have them too
    elif any(c.isdigit() for c in tz_env):
        return (2, tz_env)
    return (0, tz_env)
