"""Render decisions for explicit coordinates read one per line ("X Y Z")."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from dispatch.decision import check_and_queue
from dispatch.stats import RunStatistics
from domain.models import TileCoordinate
from shared.constants import BAD_LINE_MAX_CHARS, STREAM_REPORT_EVERY

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from dispatch.decision import SubmissionChannel
    from domain.models import SelectionCriteria
    from tiles.store import StorageBackend

logger = logging.getLogger(__name__)

HANDLED_FROM_INPUT = 'Total tiles handled from input'


@dataclass
class StreamCounts:
    """Per-stream diagnostics; submissions are counted in RunStatistics."""

    lines: int = 0
    bad_lines: int = 0
    out_of_range: int = 0


def parse_line(line: str) -> TileCoordinate | None:
    """Parse "X Y Z"; return None unless it is exactly three non-negative ints."""
    parts = line.split()
    if len(parts) != 3:
        return None
    try:
        x, y, z = (int(p) for p in parts)
    except ValueError:
        return None
    if x < 0 or y < 0 or z < 0:
        return None
    return TileCoordinate(x, y, z)


def read_stream(
    lines: Iterable[str],
    criteria: SelectionCriteria,
    store: StorageBackend,
    channel: SubmissionChannel,
    stats: RunStatistics | None = None,
    out: Callable[[str], None] = print,
) -> StreamCounts:
    """Feed each well-formed, in-range coordinate to check_and_queue().

    Malformed lines, and coordinates off the zoom's grid, are dropped with
    a warning; coordinates outside [min_zoom, max_zoom] are skipped.
    Neither affects the submission count.
    A rate snapshot is printed after every tenth submission.
    """
    stats = stats if stats is not None else RunStatistics(metatile=criteria.metatile)
    counts = StreamCounts()
    for raw in lines:
        counts.lines += 1
        if not raw.strip():
            continue
        coord = parse_line(raw)
        if coord is None:
            counts.bad_lines += 1
            logger.warning('bad line %d: %s', counts.lines, raw.rstrip('\n')[:BAD_LINE_MAX_CHARS])
            continue
        logger.debug('got: x(%d) y(%d) z(%d)', coord.x, coord.y, coord.z)

        if not criteria.zoom_in_range(coord.z):
            counts.out_of_range += 1
            out(
                f'Ignoring tile, zoom {coord.z} outside valid range '
                f'({criteria.min_zoom}..{criteria.max_zoom})'
            )
            continue
        if not coord.on_grid():
            counts.bad_lines += 1
            logger.warning('bad line %d: %s', counts.lines, raw.rstrip('\n')[:BAD_LINE_MAX_CHARS])
            continue

        stats.tiles_examined += 1
        submitted = check_and_queue(
            coord,
            force=criteria.force,
            only_existing=criteria.only_existing,
            map_name=criteria.map_name,
            store=store,
            channel=channel,
        )
        if submitted:
            stats.jobs_submitted += 1
            if stats.jobs_submitted % STREAM_REPORT_EVERY == 0:
                out('')
                stats.report(out, HANDLED_FROM_INPUT)
        elif logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                'Tile %s is clean, ignoring',
                store.identifier_for(criteria.map_name, coord.x, coord.y, coord.z),
            )
    return counts
