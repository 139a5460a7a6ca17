"""Pytest configuration and fixtures for render-list tests."""

import sys
from pathlib import Path

import pytest

# Add src directory to path for imports
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from domain.errors import QueueClosedError, StorageClosedError  # noqa: E402
from domain.models import TileStatus  # noqa: E402


class RecordingStore:
    """In-memory storage backend that logs every call into a shared event list."""

    def __init__(self, events, statuses=None, default=None):
        self.events = events
        self.statuses = dict(statuses or {})
        self.default = default or TileStatus.absent()
        self.closed = False

    def status(self, map_name, x, y, z):
        if self.closed:
            msg = 'status() after close()'
            raise StorageClosedError(msg)
        self.events.append(('status', x, y, z))
        return self.statuses.get((x, y, z), self.default)

    def identifier_for(self, map_name, x, y, z):
        return f'memory://{map_name}/{z}/{x}/{y}'

    def close(self):
        self.events.append(('close',))
        self.closed = True


class RecordingChannel:
    """Submission channel that records jobs instead of rendering them."""

    def __init__(self, events):
        self.events = events
        self.jobs = []
        self.started_with = None
        self.drained = False

    def start(self, num_threads, target, max_load):
        self.started_with = (num_threads, target, max_load)
        self.events.append(('start', num_threads))

    def submit(self, job, timeout=None):
        if self.drained:
            msg = 'submit() after drain_and_stop()'
            raise QueueClosedError(msg)
        self.events.append(('submit', job.x, job.y, job.z))
        self.jobs.append(job)

    def drain_and_stop(self):
        self.events.append(('drain',))
        self.drained = True

    def format_statistics(self):
        return ['Zoom 01: recorded']


@pytest.fixture
def events():
    return []


@pytest.fixture
def store(events):
    return RecordingStore(events)


@pytest.fixture
def channel(events):
    return RecordingChannel(events)


@pytest.fixture
def make_store(events):
    """Build a RecordingStore with explicit per-coordinate statuses."""

    def _make(statuses=None, default=None):
        return RecordingStore(events, statuses, default)

    return _make
