"""Depth-first walk of the zoom pyramid below a set of start metatiles."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from dispatch.decision import check_and_queue
from domain.models import TileCoordinate
from shared.constants import METATILE, PROGRESS_INTERVAL_SECONDS
from shared.progress import CallbackLineRenderer, ThrottledProgress

if TYPE_CHECKING:
    from collections.abc import Callable

    from dispatch.decision import SubmissionChannel
    from dispatch.stats import RunStatistics
    from domain.models import SelectionCriteria
    from tiles.store import StorageBackend

logger = logging.getLogger(__name__)


def recurse_and_queue(
    start: TileCoordinate,
    max_zoom: int,
    *,
    force: bool,
    only_existing: bool,
    map_name: str,
    store: StorageBackend,
    channel: SubmissionChannel,
    stride: int = METATILE,
    stats: RunStatistics | None = None,
) -> int:
    """Apply the render decision to ``start`` and everything below it.

    Nodes are visited in post-order: the four children of a node, each with
    its whole subtree, in the order (0,0), (M,0), (M,M), (0,M), and only
    then the node itself, so finer zooms are queued before their parent.
    An explicit stack keeps deep spans off the interpreter stack.

    Returns:
        Number of jobs submitted for the subtree rooted at ``start``.
    """
    did = 0
    # (coordinate, children already pushed)
    stack: list[tuple[TileCoordinate, bool]] = [(start, False)]
    while stack:
        coord, expanded = stack.pop()
        if not expanded and coord.z < max_zoom:
            stack.append((coord, True))
            stack.extend((child, False) for child in reversed(list(coord.children(stride))))
            continue
        submitted = check_and_queue(
            coord,
            force=force,
            only_existing=only_existing,
            map_name=map_name,
            store=store,
            channel=channel,
        )
        if stats is not None:
            stats.tiles_examined += 1
            stats.jobs_submitted += int(submitted)
        did += int(submitted)
    return did


def render_pyramid(
    criteria: SelectionCriteria,
    store: StorageBackend,
    channel: SubmissionChannel,
    stats: RunStatistics,
    progress: ThrottledProgress | None = None,
    out: Callable[[str], None] | None = None,
) -> int:
    """Recurse from every start metatile of the range at min_zoom.

    Progress goes to ``progress`` if given, else line by line to ``out``,
    else to a redrawn console line.
    """
    if progress is None:
        writer = CallbackLineRenderer(out) if out is not None else None
        progress = ThrottledProgress(PROGRESS_INTERVAL_SECONDS, writer)
    min_x, max_x, min_y, max_y = criteria.bounds_for_zoom(criteria.min_zoom)
    stride = criteria.metatile
    total = 0
    for x in range(min_x, max_x + 1, stride):
        for y in range(min_y, max_y + 1, stride):
            progress.update(
                f'Checking ({x}, {y}) zoom {criteria.min_zoom} to {criteria.max_zoom}'
            )
            total += recurse_and_queue(
                TileCoordinate(x, y, criteria.min_zoom),
                criteria.max_zoom,
                force=criteria.force,
                only_existing=criteria.only_existing,
                map_name=criteria.map_name,
                store=store,
                channel=channel,
                stride=stride,
                stats=stats,
            )
    progress.close()
    logger.info('Pyramid walk submitted %d jobs', total)
    return total
