"""Tests for domain models and their validation."""

import pytest
from pydantic import ValidationError

from domain.models import (
    DispatchSettings,
    RenderJob,
    SelectionCriteria,
    TileCoordinate,
    TileState,
    TileStatus,
)
from shared.constants import HASH_PATH, MAX_ZOOM, TraversalMode


class TestTileCoordinate:
    """Tests for TileCoordinate."""

    def test_children_order(self):
        children = list(TileCoordinate(1, 2, 3).children(8))
        assert children == [
            TileCoordinate(2, 4, 4),
            TileCoordinate(10, 4, 4),
            TileCoordinate(10, 12, 4),
            TileCoordinate(2, 12, 4),
        ]

    def test_origin(self):
        assert TileCoordinate(13, 21, 5).origin(8) == TileCoordinate(8, 16, 5)
        assert TileCoordinate(8, 16, 5).origin(8) == TileCoordinate(8, 16, 5)


class TestTileStatus:
    """Tests for TileStatus."""

    def test_absent(self):
        status = TileStatus.absent()
        assert status.state is TileState.ABSENT
        assert status.size_bytes == -1
        assert not status.exists
        assert status.stale

    def test_present_fresh(self):
        status = TileStatus.present(100)
        assert status.exists
        assert not status.stale

    def test_present_expired(self):
        assert TileStatus.present(100, expired=True).stale

    def test_failed(self):
        status = TileStatus.failed('boom')
        assert status.failed_lookup
        assert not status.exists
        assert not status.stale
        assert status.error == 'boom'


def test_render_job_at():
    assert RenderJob.at('osm', TileCoordinate(1, 2, 3)) == RenderJob('osm', 1, 2, 3)


class TestSelectionCriteria:
    """Tests for SelectionCriteria validation."""

    def test_defaults(self):
        c = SelectionCriteria()
        assert (c.min_zoom, c.max_zoom, c.metatile, c.map_name) == (0, MAX_ZOOM, 8, 'default')
        assert c.mode is TraversalMode.STREAM

    def test_modes(self):
        assert SelectionCriteria(all_mode=True).mode is TraversalMode.RANGE
        assert SelectionCriteria(all_mode=True, recurse=True).mode is TraversalMode.PYRAMID
        assert SelectionCriteria(recurse=True).mode is TraversalMode.STREAM

    @pytest.mark.parametrize('field', ['min_zoom', 'max_zoom'])
    @pytest.mark.parametrize('value', [-1, MAX_ZOOM + 1])
    def test_zoom_out_of_range(self, field, value):
        with pytest.raises(ValidationError, match='zoom selected, must be between 0'):
            SelectionCriteria(**{field: value})

    def test_inverted_zoom_range(self):
        with pytest.raises(ValidationError, match='Invalid zoom range'):
            SelectionCriteria(min_zoom=5, max_zoom=4)

    def test_bounds_need_single_zoom(self):
        with pytest.raises(ValidationError, match='min-zoom must be equal to max-zoom'):
            SelectionCriteria(all_mode=True, min_zoom=1, max_zoom=3, min_x=0)

    def test_bounds_allowed_when_recursing(self):
        c = SelectionCriteria(all_mode=True, recurse=True, min_zoom=1, max_zoom=3, max_x=1)
        assert c.bounds_for_zoom(1) == (0, 1, 0, 1)

    def test_bounds_above_zoom_limit(self):
        with pytest.raises(ValidationError, match=r'must be <= 3 \(2\^zoom-1\)'):
            SelectionCriteria(all_mode=True, min_zoom=2, max_zoom=2, max_x=4)

    def test_negative_bounds(self):
        with pytest.raises(ValidationError, match='must be >= 0'):
            SelectionCriteria(all_mode=True, min_zoom=2, max_zoom=2, min_y=-3)

    def test_bounds_ignored_outside_all_mode(self):
        c = SelectionCriteria(min_zoom=1, max_zoom=3, min_x=-5, max_x=999)
        assert c.mode is TraversalMode.STREAM

    def test_bounds_for_zoom_defaults(self):
        assert SelectionCriteria().bounds_for_zoom(3) == (0, 7, 0, 7)

    def test_zoom_in_range(self):
        c = SelectionCriteria(min_zoom=2, max_zoom=4)
        assert not c.zoom_in_range(1)
        assert c.zoom_in_range(2)
        assert c.zoom_in_range(4)
        assert not c.zoom_in_range(5)

    def test_negative_metatile(self):
        with pytest.raises(ValidationError):
            SelectionCriteria(metatile=-1)

    def test_frozen(self):
        c = SelectionCriteria()
        with pytest.raises(ValidationError):
            c.force = True


class TestDispatchSettings:
    """Tests for DispatchSettings validation."""

    def test_defaults(self):
        s = DispatchSettings()
        assert s.tile_dir == HASH_PATH
        assert s.num_threads == 1
        assert s.max_load == 16
        assert s.submit_timeout is None

    def test_invalid_thread_count(self):
        with pytest.raises(ValidationError, match='Invalid number of threads'):
            DispatchSettings(num_threads=0)

    def test_negative_max_load(self):
        with pytest.raises(ValidationError):
            DispatchSettings(max_load=-1)

    def test_submit_timeout_must_be_positive(self):
        with pytest.raises(ValidationError):
            DispatchSettings(submit_timeout=0)
        assert DispatchSettings(submit_timeout=2).submit_timeout == 2.0
