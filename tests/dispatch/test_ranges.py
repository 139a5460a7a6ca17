"""Tests for the zoom-by-zoom range scan."""

from __future__ import annotations

from dispatch.ranges import enumerate_range, enumerate_zoom
from dispatch.stats import RunStatistics
from domain.models import SelectionCriteria, TileStatus


def test_four_absent_cells_submit_four_jobs(store, channel):
    criteria = SelectionCriteria(
        all_mode=True, min_zoom=1, max_zoom=1, min_x=0, max_x=1, min_y=0, max_y=1, metatile=1
    )
    stats = RunStatistics(metatile=1, clock=lambda: 0.0)
    lines = []

    counts = enumerate_range(criteria, store, channel, stats, out=lines.append)

    assert [(c.zoom, c.submitted, c.examined) for c in counts] == [(1, 4, 4)]
    assert stats.jobs_submitted == 4
    assert stats.tiles_examined == 4
    assert lines == ['Rendering all tiles for zoom 1 from (0, 0) to (1, 1)']


def test_repeat_runs_submit_the_same_count(make_store, channel):
    fresh = TileStatus.present(512)
    store = make_store(statuses={(0, 0, 1): fresh, (1, 0, 1): fresh})
    criteria = SelectionCriteria(all_mode=True, min_zoom=1, max_zoom=1, metatile=1)

    first = enumerate_zoom(1, criteria, store, channel, out=lambda _: None)
    second = enumerate_zoom(1, criteria, store, channel, out=lambda _: None)

    assert first.submitted == second.submitted == 2


def test_scan_ignores_only_existing(store, channel):
    """Test absent cells are still submitted when only_existing is set."""
    criteria = SelectionCriteria(
        all_mode=True, min_zoom=1, max_zoom=1, only_existing=True, metatile=1
    )

    counts = enumerate_zoom(1, criteria, store, channel, out=lambda _: None)

    assert counts.submitted == 4


def test_expired_cells_are_submitted(make_store, channel):
    store = make_store(default=TileStatus.present(10, expired=True))
    criteria = SelectionCriteria(all_mode=True, min_zoom=2, max_zoom=2, metatile=2)

    counts = enumerate_zoom(2, criteria, store, channel, out=lambda _: None)

    assert (counts.submitted, counts.examined) == (4, 4)
    assert [(j.x, j.y) for j in channel.jobs] == [(0, 0), (0, 2), (2, 0), (2, 2)]


def test_force_skips_lookups(store, channel, events):
    criteria = SelectionCriteria(all_mode=True, min_zoom=0, max_zoom=0, force=True)

    enumerate_zoom(0, criteria, store, channel, out=lambda _: None)

    assert events == [('submit', 0, 0, 0)]


def test_every_zoom_scanned_with_full_range(store, channel):
    criteria = SelectionCriteria(all_mode=True, min_zoom=0, max_zoom=4)

    counts = enumerate_range(criteria, store, channel, out=lambda _: None)

    # metatile 8: one cell up to zoom 3, four at zoom 4
    assert [c.submitted for c in counts] == [1, 1, 1, 1, 4]
