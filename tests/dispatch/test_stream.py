"""Tests for reading coordinates from a stream."""

from __future__ import annotations

import io
import logging

from dispatch.stats import RunStatistics
from dispatch.stream import parse_line, read_stream
from domain.models import SelectionCriteria, TileCoordinate, TileStatus
from tiles.store import SQLiteTileStore


class TestParseLine:
    """Tests for parse_line()."""

    def test_valid(self):
        assert parse_line('1 2 3\n') == TileCoordinate(1, 2, 3)

    def test_extra_whitespace(self):
        assert parse_line('  4\t5   6 ') == TileCoordinate(4, 5, 6)

    def test_invalid(self):
        assert parse_line('BAD LINE') is None
        assert parse_line('1 2') is None
        assert parse_line('1 2 3 4') is None
        assert parse_line('1 -2 3') is None
        assert parse_line('1.5 2 3') is None


def test_mixed_input(store, channel, events, caplog):
    criteria = SelectionCriteria(min_zoom=0, max_zoom=3)
    stats = RunStatistics(clock=lambda: 0.0)
    lines = []
    stream = io.StringIO('0 0 1\n1 1 1\nBAD LINE\n2 2 5\n')

    with caplog.at_level(logging.WARNING):
        counts = read_stream(stream, criteria, store, channel, stats, out=lines.append)

    assert events == [
        ('status', 0, 0, 1),
        ('submit', 0, 0, 1),
        ('status', 1, 1, 1),
        ('submit', 1, 1, 1),
    ]
    assert stats.jobs_submitted == 2
    assert stats.tiles_examined == 2
    assert counts.bad_lines == 1
    assert counts.out_of_range == 1
    assert 'bad line 3: BAD LINE' in caplog.text
    assert lines == ['Ignoring tile, zoom 5 outside valid range (0..3)']


def test_snapshot_every_ten_submissions(store, channel):
    criteria = SelectionCriteria()
    stats = RunStatistics(clock=lambda: 0.0)
    lines = []
    stream = [f'{i} 0 18\n' for i in range(25)]

    read_stream(stream, criteria, store, channel, stats, out=lines.append)

    handled = [ln for ln in lines if ln.startswith('Total tiles handled from input')]
    assert len(handled) == 2
    assert lines.count('') == 2
    assert stats.jobs_submitted == 25


def test_clean_tiles_are_not_counted(make_store, channel):
    store = make_store(default=TileStatus.present(1))
    stats = RunStatistics(clock=lambda: 0.0)

    read_stream(['3 3 3\n'], SelectionCriteria(), store, channel, stats, out=lambda _: None)

    assert channel.jobs == []
    assert stats.jobs_submitted == 0
    assert stats.tiles_examined == 1


def test_blank_lines_are_skipped(store, channel):
    counts = read_stream(['\n', '0 0 0\n', '   \n'], SelectionCriteria(), store, channel,
                         out=lambda _: None)
    assert counts.bad_lines == 0
    assert len(channel.jobs) == 1


def test_coordinates_off_the_grid_are_bad_lines(tmp_path, channel, caplog):
    store = SQLiteTileStore(tmp_path)
    store.put('default', 0, 0, 5, size_bytes=10)
    stats = RunStatistics(clock=lambda: 0.0)
    lines = ['99999999999999999999 0 5\n', '32 0 5\n', '31 31 5\n']

    with caplog.at_level(logging.WARNING):
        counts = read_stream(lines, SelectionCriteria(), store, channel, stats, out=lambda _: None)
    store.close()

    assert counts.bad_lines == 2
    assert 'bad line 1: 99999999999999999999 0 5' in caplog.text
    assert 'bad line 2: 32 0 5' in caplog.text
    assert [(j.x, j.y, j.z) for j in channel.jobs] == [(31, 31, 5)]
    assert stats.tiles_examined == 1


def test_on_grid():
    assert TileCoordinate(0, 0, 0).on_grid()
    assert TileCoordinate(7, 7, 3).on_grid()
    assert not TileCoordinate(8, 0, 3).on_grid()
    assert not TileCoordinate(0, 8, 3).on_grid()
