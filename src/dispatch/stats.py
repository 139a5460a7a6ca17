"""Run counters and throughput figures."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from shared.constants import METATILE

if TYPE_CHECKING:
    from collections.abc import Callable


@dataclass
class RunStatistics:
    """Counters owned by the dispatcher, updated only by the producer thread.

    Attributes:
        metatile: Stride used to convert metatiles into leaf tiles.
        clock: Monotonic clock (seconds); injectable for tests.
        jobs_submitted: Render jobs handed to the queue.
        tiles_examined: Coordinates the decision rule was applied to.
        start: Clock reading when the run started.
    """

    metatile: int = METATILE
    clock: Callable[[], float] = time.monotonic
    jobs_submitted: int = 0
    tiles_examined: int = 0
    start: float = field(init=False)

    def __post_init__(self) -> None:
        self.start = self.clock()

    def elapsed(self, now: float | None = None) -> float:
        now = self.clock() if now is None else now
        return now - self.start

    def rate(self, count: int, now: float | None = None) -> float:
        """Items per second since start; 0.0 while no time has elapsed."""
        elapsed = self.elapsed(now)
        if elapsed <= 0:
            return 0.0
        return count / elapsed

    @property
    def leaf_tiles_submitted(self) -> int:
        return self.jobs_submitted * self.metatile * self.metatile

    def format_rate(self, count: int, now: float | None = None) -> str:
        elapsed = max(0.0, self.elapsed(now))
        return (
            f'Rendered {count} tiles in {elapsed:.2f} seconds '
            f'({self.rate(count, now):.2f} tiles/s)'
        )

    def snapshot_lines(
        self,
        handled_label: str = 'Total tiles handled',
        now: float | None = None,
    ) -> list[str]:
        """The three throughput figures, all measured at the same instant."""
        now = self.clock() if now is None else now
        return [
            f'Meta tiles rendered: {self.format_rate(self.jobs_submitted, now)}',
            f'Total tiles rendered: {self.format_rate(self.leaf_tiles_submitted, now)}',
            f'{handled_label}: {self.format_rate(self.tiles_examined, now)}',
        ]

    def report(
        self,
        out: Callable[[str], None] = print,
        handled_label: str = 'Total tiles handled',
    ) -> None:
        for line in self.snapshot_lines(handled_label):
            out(line)
