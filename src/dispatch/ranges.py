"""Zoom-by-zoom scan of a rectangular metatile range."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from dispatch.decision import lookup_status
from domain.models import RenderJob, TileCoordinate

if TYPE_CHECKING:
    from collections.abc import Callable

    from dispatch.decision import SubmissionChannel
    from dispatch.stats import RunStatistics
    from domain.models import SelectionCriteria
    from tiles.store import StorageBackend

logger = logging.getLogger(__name__)


@dataclass
class ZoomCounts:
    zoom: int
    submitted: int = 0
    examined: int = 0


def enumerate_zoom(
    zoom: int,
    criteria: SelectionCriteria,
    store: StorageBackend,
    channel: SubmissionChannel,
    out: Callable[[str], None] = print,
) -> ZoomCounts:
    """Scan one zoom level.

    Unlike check_and_queue() this rule ignores only_existing: a cell is
    submitted when forced, or when it is absent or expired.
    """
    min_x, max_x, min_y, max_y = criteria.bounds_for_zoom(zoom)
    out(
        f'Rendering all tiles for zoom {zoom} from ({min_x}, {min_y}) '
        f'to ({max_x}, {max_y})'
    )
    counts = ZoomCounts(zoom)
    stride = criteria.metatile
    for x in range(min_x, max_x + 1, stride):
        for y in range(min_y, max_y + 1, stride):
            coord = TileCoordinate(x, y, zoom)
            if criteria.force or lookup_status(store, criteria.map_name, coord).stale:
                channel.submit(RenderJob.at(criteria.map_name, coord))
                counts.submitted += 1
            counts.examined += 1
    return counts


def enumerate_range(
    criteria: SelectionCriteria,
    store: StorageBackend,
    channel: SubmissionChannel,
    stats: RunStatistics | None = None,
    out: Callable[[str], None] = print,
) -> list[ZoomCounts]:
    """Scan every zoom in [min_zoom, max_zoom] independently."""
    if criteria.only_existing:
        logger.info('--exists has no effect when scanning all tiles without --recurse')
    results = []
    for zoom in range(criteria.min_zoom, criteria.max_zoom + 1):
        counts = enumerate_zoom(zoom, criteria, store, channel, out)
        if stats is not None:
            stats.jobs_submitted += counts.submitted
            stats.tiles_examined += counts.examined
        logger.debug(
            'Zoom %d: %d of %d metatiles submitted',
            zoom,
            counts.submitted,
            counts.examined,
        )
        results.append(counts)
    return results
