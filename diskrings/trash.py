from __future__ import annotations
import logging
import os

from send2trash import send2trash

from .models import TrashError

log = logging.getLogger(__name__)


def move_to_trash(path: str) -> None:
    """Hand ``path`` to the platform trash. Raises TrashError on failure."""
    ap = os.path.abspath(path)
    if not os.path.lexists(ap):
        raise TrashError(ap, f"Path does not exist: {ap}")
    try:
        send2trash(ap)
    except OSError as e:
        log.warning("Moving %s to trash failed: %s", ap, e)
        raise TrashError(ap, f"Cannot move {ap} to trash: {e}") from e
    log.info("Moved %s to trash", ap)
