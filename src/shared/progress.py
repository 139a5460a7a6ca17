import sys
import threading
import time
from collections.abc import Callable
from typing import TextIO


class SingleLineRenderer:
    """Thread-safe writer that keeps redrawing one console line."""

    def __init__(self, *, single_line: bool = True, stream: TextIO | None = None) -> None:
        self.single_line = single_line
        self._stream = stream
        self._last_len = 0
        self._lock = threading.Lock()

    @property
    def stream(self) -> TextIO:
        # Resolved lazily so pytest's capsys sees the output
        return self._stream or sys.stdout

    def clear_line(self) -> None:
        """Wipe the current progress line."""
        with self._lock:
            if self.single_line and self._last_len > 0:
                self.stream.write('\r' + ' ' * self._last_len + '\r')
                self.stream.flush()
                self._last_len = 0

    def write_line(self, msg: str) -> None:
        """Redraw the current progress line."""
        with self._lock:
            if self.single_line:
                pad = max(0, self._last_len - len(msg))
                self.stream.write('\r' + msg + (' ' * pad))
            else:
                self.stream.write(msg + '\n')
            self.stream.flush()
            self._last_len = len(msg)


class CallbackLineRenderer:
    """Progress writer that hands every line to a callable, one per update."""

    def __init__(self, out: Callable[[str], None]) -> None:
        self._out = out

    def clear_line(self) -> None:
        pass

    def write_line(self, msg: str) -> None:
        self._out(msg)


class ThrottledProgress:
    """Write a progress line at most once per ``interval`` seconds."""

    def __init__(
        self,
        interval: float = 1.0,
        writer: SingleLineRenderer | CallbackLineRenderer | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.interval = interval
        self._writer = writer or SingleLineRenderer()
        self._clock = clock
        self._next_time: float | None = None

    def update(self, msg: str) -> bool:
        """Show ``msg`` if the interval has passed; return whether it was shown."""
        now = self._clock()
        if self._next_time is not None and now < self._next_time:
            return False
        self._next_time = now + self.interval
        self._writer.write_line(msg)
        return True

    def close(self) -> None:
        self._writer.clear_line()
