from __future__ import annotations
import logging
import os
from typing import Dict, Iterator, List, Optional

import psutil

log = logging.getLogger(__name__)

# firmlinked system mounts; their data already shows up under "/"
HIDDEN_PREFIXES = ("/System/Volumes",)


def _usage_dict(u) -> Dict:
    return {"total": int(u.total), "used": int(u.used), "free": int(u.free), "percent": float(u.percent)}


def _mountpoints() -> Iterator[tuple]:
    yield os.path.abspath(os.sep), ""
    for part in psutil.disk_partitions(all=False):
        if part.mountpoint:
            yield os.path.abspath(part.mountpoint), part.fstype


def list_volumes() -> List[Dict]:
    """Scannable volumes: the filesystem root first, then other mounts by path."""
    root = os.path.abspath(os.sep)
    found: Dict[str, Dict] = {}
    for mountpoint, fstype in _mountpoints():
        if mountpoint.startswith(HIDDEN_PREFIXES):
            continue
        known = found.get(mountpoint)
        if known is not None:
            if not known["fstype"]:
                known["fstype"] = fstype
            continue
        try:
            usage = psutil.disk_usage(mountpoint)
        except OSError as e:
            log.debug("Skipping volume %s: %s", mountpoint, e)
            continue
        found[mountpoint] = dict(mountpoint=mountpoint, fstype=fstype, **_usage_dict(usage))

    return sorted(found.values(), key=lambda v: (v["mountpoint"] != root, v["mountpoint"].lower()))


def volume_usage(path: str) -> Optional[Dict]:
    """Usage of the volume holding ``path``, or None if it cannot be queried."""
    try:
        return _usage_dict(psutil.disk_usage(path))
    except OSError as e:
        log.debug("Cannot query disk usage for %s: %s", path, e)
        return None
