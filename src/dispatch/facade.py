"""Run orchestration: pick one traversal, own storage and the render queue."""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Protocol

from dispatch.pyramid import render_pyramid
from dispatch.ranges import enumerate_range
from dispatch.stats import RunStatistics
from dispatch.stream import read_stream
from infrastructure.http.client import make_render_client
from shared.constants import TraversalMode
from shared.diagnostics import (
    log_comprehensive_diagnostics,
    log_system_load,
    log_thread_status,
)
from tiles.render_queue import RenderQueue
from tiles.store import init_storage_backend

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from domain.models import DispatchSettings, RenderJob
    from tiles.store import StorageBackend

logger = logging.getLogger(__name__)

BANNER = '*' * 53


class RenderChannel(Protocol):
    """Lifecycle the dispatcher drives on the submission channel."""

    def start(self, num_threads: int, target: str, max_load: float) -> None: ...

    def submit(self, job: RenderJob, timeout: float | None = None) -> None: ...

    def drain_and_stop(self) -> None: ...

    def format_statistics(self) -> list[str]: ...


def default_channel_factory(settings: DispatchSettings) -> RenderChannel:
    return RenderQueue(make_render_client, submit_timeout=settings.submit_timeout)


class Dispatcher:
    """Runs exactly one traversal strategy for a DispatchSettings.

    Usage:
        dispatcher = Dispatcher(settings)
        stats = dispatcher.run(sys.stdin)
    """

    def __init__(
        self,
        settings: DispatchSettings,
        *,
        storage_factory: Callable[..., StorageBackend] = init_storage_backend,
        channel_factory: Callable[[DispatchSettings], RenderChannel] = default_channel_factory,
        out: Callable[[str], None] = print,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.settings = settings
        self._storage_factory = storage_factory
        self._channel_factory = channel_factory
        self._out = out
        self._clock = clock

    @property
    def mode(self) -> TraversalMode:
        return self.settings.selection.mode

    def run(self, stream: Iterable[str] | None = None) -> RunStatistics:
        """Execute the run and print the final statistics.

        Storage is opened before any worker starts; on the way out storage is
        closed first and then the queue is drained, so nothing is submitted
        or looked up once shutdown has begun.

        Raises:
            NotImplementedError: metatile is 0 (non-metatile mode).
            StorageInitError: Storage could not be opened; nothing submitted.
            StatusLookupError: A lookup failed; the run is aborted after
                the orderly shutdown.
        """
        criteria = self.settings.selection
        if criteria.metatile < 1:
            msg = 'render_list not implemented for non-metatile mode'
            raise NotImplementedError(msg)
        if self.mode is TraversalMode.STREAM and stream is None:
            msg = 'A coordinate stream is required when not rendering all tiles'
            raise ValueError(msg)

        store = self._storage_factory(self.settings.tile_dir, metatile=criteria.metatile)
        logger.info('Rendering client')
        stats = RunStatistics(metatile=criteria.metatile, clock=self._clock)
        channel: RenderChannel | None = None
        try:
            channel = self._channel_factory(self.settings)
            channel.start(self.settings.num_threads, self.settings.socket, self.settings.max_load)
            log_system_load('run start')
            log_comprehensive_diagnostics('dispatch start')
            self._traverse(store, channel, stats, stream)
        finally:
            store.close()
            if channel is not None:
                channel.drain_and_stop()
            log_thread_status('run end')
            self._report_final(stats, channel)
        return stats

    def _traverse(
        self,
        store: StorageBackend,
        channel: RenderChannel,
        stats: RunStatistics,
        stream: Iterable[str] | None,
    ) -> None:
        criteria = self.settings.selection
        mode = self.mode
        logger.info('Traversal mode: %s', mode.value)
        if mode is TraversalMode.STREAM:
            read_stream(stream or (), criteria, store, channel, stats, self._out)
            return
        self._out(
            f'Rendering all tiles from zoom {criteria.min_zoom} to zoom {criteria.max_zoom}'
        )
        if mode is TraversalMode.PYRAMID:
            render_pyramid(criteria, store, channel, stats, out=self._out)
        else:
            enumerate_range(criteria, store, channel, stats, self._out)

    def _report_final(self, stats: RunStatistics, channel: RenderChannel | None) -> None:
        self._out('')
        self._out(BANNER)
        self._out(BANNER)
        self._out('Total for all tiles rendered')
        stats.report(self._out)
        if channel is not None:
            for line in channel.format_statistics():
                self._out(line)
