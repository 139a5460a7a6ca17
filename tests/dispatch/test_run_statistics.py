"""Tests for RunStatistics."""

from __future__ import annotations

from dispatch.stats import RunStatistics


class FakeClock:
    def __init__(self, now=100.0):
        self.now = now

    def __call__(self):
        return self.now


def test_rate():
    stats = RunStatistics(clock=FakeClock(100.0))
    assert stats.rate(100, now=102.0) == 50.0


def test_rate_with_no_elapsed_time():
    stats = RunStatistics(clock=FakeClock(100.0))
    assert stats.rate(0, now=100.0) == 0.0
    assert stats.rate(10, now=100.0) == 0.0


def test_snapshot_lines():
    clock = FakeClock(0.0)
    stats = RunStatistics(metatile=8, clock=clock)
    stats.jobs_submitted = 2
    stats.tiles_examined = 4
    clock.now = 2.0

    assert stats.snapshot_lines() == [
        'Meta tiles rendered: Rendered 2 tiles in 2.00 seconds (1.00 tiles/s)',
        'Total tiles rendered: Rendered 128 tiles in 2.00 seconds (64.00 tiles/s)',
        'Total tiles handled: Rendered 4 tiles in 2.00 seconds (2.00 tiles/s)',
    ]


def test_report_with_zero_counters():
    lines = []
    RunStatistics(clock=FakeClock()).report(lines.append, 'Total tiles handled from input')
    assert len(lines) == 3
    assert lines[2] == (
        'Total tiles handled from input: Rendered 0 tiles in 0.00 seconds (0.00 tiles/s)'
    )
