"""Render dispatch: decide which metatiles need rendering and queue them.

This module provides:
- Dispatcher: runs one traversal and owns storage and the render queue
- check_and_queue: the per-metatile render decision
- recurse_and_queue / render_pyramid: post-order pyramid walk
- enumerate_range: zoom-by-zoom range scan
- read_stream: coordinates read one per line
"""

from dispatch.decision import check_and_queue, needs_render
from dispatch.facade import Dispatcher
from dispatch.pyramid import recurse_and_queue, render_pyramid
from dispatch.ranges import enumerate_range, enumerate_zoom
from dispatch.stats import RunStatistics
from dispatch.stream import parse_line, read_stream

__all__ = [
    'Dispatcher',
    'RunStatistics',
    'check_and_queue',
    'enumerate_range',
    'enumerate_zoom',
    'needs_render',
    'parse_line',
    'read_stream',
    'recurse_and_queue',
    'render_pyramid',
]
