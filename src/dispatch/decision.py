from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol

from domain.errors import StatusLookupError
from domain.models import RenderJob

if TYPE_CHECKING:
    from domain.models import TileCoordinate, TileStatus
    from tiles.store import StorageBackend

logger = logging.getLogger(__name__)


class SubmissionChannel(Protocol):
    """Where render jobs go. submit() may block until the job is admitted."""

    def submit(self, job: RenderJob, timeout: float | None = None) -> None: ...


def lookup_status(
    store: StorageBackend, map_name: str, coord: TileCoordinate
) -> TileStatus:
    """Ask storage about ``coord``; a failed lookup raises instead of
    reading as "missing".
    """
    status = store.status(map_name, coord.x, coord.y, coord.z)
    if status.failed_lookup:
        raise StatusLookupError(
            store.identifier_for(map_name, coord.x, coord.y, coord.z),
            status.error,
        )
    return status


def needs_render(status: TileStatus, *, force: bool, only_existing: bool) -> bool:
    """Decision for a tile whose status has been looked up.

    only_existing rules out tiles that are not in storage; past that gate a
    tile renders if forced or stale (absent or expired).
    """
    if only_existing and not status.exists:
        return False
    return force or status.stale


def check_and_queue(
    coord: TileCoordinate,
    *,
    force: bool,
    only_existing: bool,
    map_name: str,
    store: StorageBackend,
    channel: SubmissionChannel,
) -> bool:
    """Submit a render job for ``coord`` if it needs one.

    With force set and only_existing unset the tile is submitted without
    consulting storage at all.

    Returns:
        True if a job was submitted.
    """
    if only_existing or not force:
        status = lookup_status(store, map_name, coord)
        if not needs_render(status, force=force, only_existing=only_existing):
            return False
    channel.submit(RenderJob.at(map_name, coord))
    return True
