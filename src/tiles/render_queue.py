"""Worker pool that hands render jobs to the render service.

This module provides RenderQueue, the submission channel between the
dispatcher (a single producer) and a fixed number of worker threads, each
owning its own connection to the render service.
"""

from __future__ import annotations

import logging
import math
import queue
import threading
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

import psutil

from domain.errors import (
    QueueClosedError,
    RenderConnectionError,
    RenderError,
    SubmissionTimeout,
)
from shared.constants import (
    LOAD_SLEEP_SECONDS,
    MAX_LOAD_OLD,
    QMAX,
    RECONNECT_DELAY_SECONDS,
    RENDER_RETRIES_DEFAULT,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from domain.models import RenderJob
    from infrastructure.http.client import RenderClient

logger = logging.getLogger(__name__)


def system_load() -> float:
    """1-minute load average."""
    return psutil.getloadavg()[0]


@dataclass
class ZoomStats:
    """Render timings for one zoom level."""

    count: int = 0
    failures: int = 0
    total: float = 0.0
    min: float = math.inf
    max: float = 0.0

    def add(self, seconds: float) -> None:
        self.count += 1
        self.total += seconds
        self.min = min(self.min, seconds)
        self.max = max(self.max, seconds)

    @property
    def avg(self) -> float:
        return self.total / self.count if self.count else 0.0


class RenderQueue:
    """Bounded job queue drained by worker threads.

    submit() blocks while the queue is full or while the system load is
    above the configured ceiling; there is no cancellation of queued jobs.
    drain_and_stop() waits until every queued job has been attempted.

    Usage:
        rq = RenderQueue(make_render_client)
        rq.start(num_threads=4, target='http://localhost', max_load=16)
        rq.submit(RenderJob('default', 0, 0, 3))
        rq.drain_and_stop()
    """

    def __init__(
        self,
        client_factory: Callable[[str], RenderClient],
        *,
        max_queue_size: int = QMAX,
        submit_timeout: float | None = None,
        load_probe: Callable[[], float] = system_load,
        sleep: Callable[[float], None] = time.sleep,
        load_sleep: float = LOAD_SLEEP_SECONDS,
        retries: int = RENDER_RETRIES_DEFAULT,
        reconnect_delay: float = RECONNECT_DELAY_SECONDS,
    ) -> None:
        """Initialize the queue (workers are not started yet).

        Args:
            client_factory: Creates one RenderClient per worker from the target.
            max_queue_size: Jobs that may wait before submit() blocks.
            submit_timeout: Default deadline for submit(); None waits forever.
            load_probe: Returns the current system load.
            sleep: Sleep function used while waiting out high load.
            load_sleep: Seconds between load checks while above the ceiling.
            retries: Connection attempts per job.
            reconnect_delay: Seconds between connection attempts.
        """
        self._client_factory = client_factory
        self._queue: queue.Queue[RenderJob | None] = queue.Queue(maxsize=max_queue_size)
        self.submit_timeout = submit_timeout
        self._load_probe = load_probe
        self._sleep = sleep
        self.load_sleep = load_sleep
        self.retries = max(1, retries)
        self.reconnect_delay = reconnect_delay
        self.target = ''
        self.max_load: float = MAX_LOAD_OLD
        self._threads: list[threading.Thread] = []
        self._running = False
        self._closing = False
        self._lock = threading.Lock()
        self._zoom_stats: dict[int, ZoomStats] = {}
        self._submitted = 0
        self._rendered = 0
        self._failed = 0

    def start(self, num_threads: int, target: str, max_load: float = MAX_LOAD_OLD) -> None:
        """Spawn ``num_threads`` workers talking to ``target``."""
        if self._running:
            return
        if num_threads <= 0:
            msg = 'Invalid number of threads, must be at least 1'
            raise ValueError(msg)
        self.target = target
        self.max_load = max_load
        self._running = True
        self._closing = False
        for i in range(num_threads):
            th = threading.Thread(
                target=self._worker_loop,
                args=(i,),
                name=f'render-worker-{i}',
                daemon=True,
            )
            th.start()
            self._threads.append(th)
        logger.info('RenderQueue started: %d workers -> %s', num_threads, target)

    def submit(self, job: RenderJob, timeout: float | None = None) -> None:
        """Queue ``job``, blocking until the queue admits it.

        Args:
            job: Job to render.
            timeout: Give up after this many seconds. None falls back to
                ``submit_timeout`` (and waits forever if that is None too).

        Raises:
            QueueClosedError: The queue is not running or is shutting down.
            SubmissionTimeout: The deadline passed; the job was not queued.
        """
        if not self._running or self._closing:
            msg = f'Render queue is closed, cannot submit {job}'
            raise QueueClosedError(msg)
        if timeout is None:
            timeout = self.submit_timeout
        deadline = None if timeout is None else time.monotonic() + timeout
        self._wait_for_load(deadline)
        try:
            self._queue.put(job, block=True, timeout=self._remaining(deadline))
        except queue.Full:
            msg = f'Render queue did not accept {job} within {timeout}s'
            raise SubmissionTimeout(msg) from None
        with self._lock:
            self._submitted += 1

    def drain_and_stop(self) -> None:
        """Stop accepting jobs, wait for queued jobs to finish, join workers."""
        if not self._running:
            return
        self._closing = True
        for _ in self._threads:
            self._queue.put(None)
        for th in self._threads:
            th.join()
        self._threads.clear()
        self._running = False
        logger.info(
            'RenderQueue stopped: %d submitted, %d rendered, %d failed',
            self._submitted,
            self._rendered,
            self._failed,
        )

    def queue_size(self) -> int:
        return self._queue.qsize()

    def is_running(self) -> bool:
        return self._running and not self._closing

    @property
    def stats(self) -> dict:
        with self._lock:
            return {
                'submitted': self._submitted,
                'rendered': self._rendered,
                'failed': self._failed,
                'queue_size': self.queue_size(),
                'running': self.is_running(),
            }

    def zoom_statistics(self) -> dict[int, ZoomStats]:
        with self._lock:
            return {z: ZoomStats(**vars(s)) for z, s in sorted(self._zoom_stats.items())}

    def format_statistics(self) -> list[str]:
        """Per-zoom render time summary, one line per zoom level."""
        lines = []
        for z, s in self.zoom_statistics().items():
            if s.count:
                lines.append(
                    f'Zoom {z:02d}: min: {s.min:4.1f} avg: {s.avg:4.1f} max: {s.max:4.1f}'
                    f' over a total of {s.total:8.1f}s in {s.count} requests'
                )
            if s.failures:
                lines.append(f'Zoom {z:02d}: {s.failures} failed requests')
        return lines

    def _remaining(self, deadline: float | None) -> float | None:
        if deadline is None:
            return None
        return max(0.0, deadline - time.monotonic())

    def _wait_for_load(self, deadline: float | None) -> None:
        if self.max_load <= 0:
            return
        while (load := self._load_probe()) > self.max_load:
            remaining = self._remaining(deadline)
            if remaining is not None and remaining <= 0:
                msg = f'System load {load:.2f} stayed above {self.max_load}'
                raise SubmissionTimeout(msg)
            logger.warning(
                'Load above threshold (%.2f > %.2f), waiting %.0fs',
                load,
                self.max_load,
                self.load_sleep,
            )
            pause = self.load_sleep if remaining is None else min(self.load_sleep, remaining)
            self._sleep(pause)

    def _worker_loop(self, index: int) -> None:
        client: RenderClient | None = None
        try:
            while True:
                job = self._queue.get()
                try:
                    if job is None:
                        break
                    client = self._process(index, client, job)
                finally:
                    self._queue.task_done()
        finally:
            self._close_client(index, client)

    def _close_client(self, index: int, client: RenderClient | None) -> None:
        if client is None:
            return
        try:
            client.close()
        except Exception:
            logger.exception('Worker %d: error closing render client', index)

    def _process(
        self, index: int, client: RenderClient | None, job: RenderJob
    ) -> RenderClient | None:
        """Render one job, reconnecting on connection failures."""
        for attempt in range(1, self.retries + 1):
            started = time.monotonic()
            try:
                if client is None:
                    client = self._client_factory(self.target)
                client.render(job)
            except RenderConnectionError as e:
                logger.warning(
                    'Worker %d: connection failed (attempt %d/%d): %s',
                    index,
                    attempt,
                    self.retries,
                    e,
                )
                self._close_client(index, client)
                client = None
                if attempt < self.retries:
                    self._sleep(self.reconnect_delay)
                    continue
            except RenderError as e:
                logger.error('Worker %d: %s', index, e)
            except Exception:
                logger.exception('Worker %d: unexpected error rendering %s', index, job)
            else:
                self._record(job.z, time.monotonic() - started)
                return client
            break
        self._record_failure(job.z)
        return client

    def _record(self, zoom: int, seconds: float) -> None:
        with self._lock:
            self._zoom_stats.setdefault(zoom, ZoomStats()).add(seconds)
            self._rendered += 1

    def _record_failure(self, zoom: int) -> None:
        with self._lock:
            self._zoom_stats.setdefault(zoom, ZoomStats()).failures += 1
            self._failed += 1

    def __enter__(self) -> RenderQueue:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.drain_and_stop()
