from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from pydantic import BaseModel, field_validator, model_validator

from shared.constants import (
    HASH_PATH,
    MAX_LOAD_OLD,
    MAX_ZOOM,
    METATILE,
    NUM_THREADS_DEFAULT,
    RENDER_SOCKET,
    XMLCONFIG_DEFAULT,
    TraversalMode,
)

if TYPE_CHECKING:
    from collections.abc import Iterator


@dataclass(frozen=True)
class TileCoordinate:
    """Metatile address in the zoom pyramid."""

    x: int
    y: int
    z: int

    def children(self, stride: int = METATILE) -> Iterator[TileCoordinate]:
        """Yield the four children at z+1.

        The order (0,0), (M,0), (M,M), (0,M) is part of the submission
        contract and must not change.
        """
        x2, y2, z1 = self.x * 2, self.y * 2, self.z + 1
        yield TileCoordinate(x2, y2, z1)
        yield TileCoordinate(x2 + stride, y2, z1)
        yield TileCoordinate(x2 + stride, y2 + stride, z1)
        yield TileCoordinate(x2, y2 + stride, z1)

    def origin(self, stride: int = METATILE) -> TileCoordinate:
        """Return the coordinate of the metatile containing this tile."""
        return TileCoordinate(
            self.x - self.x % stride, self.y - self.y % stride, self.z
        )

    def on_grid(self) -> bool:
        """Whether x and y lie inside [0, 2^z - 1]."""
        limit = 1 << self.z
        return 0 <= self.x < limit and 0 <= self.y < limit


class TileState(str, Enum):
    PRESENT = 'present'
    ABSENT = 'absent'
    LOOKUP_FAILED = 'lookup_failed'


@dataclass(frozen=True)
class TileStatus:
    """Snapshot of what storage knows about a metatile.

    ``size_bytes`` keeps the historical -1 sentinel for absent tiles so the
    value can still be printed, but callers should branch on ``state``.
    """

    state: TileState
    size_bytes: int = -1
    expired: bool = False
    error: str | None = None

    @classmethod
    def present(cls, size_bytes: int, *, expired: bool = False) -> TileStatus:
        return cls(TileState.PRESENT, size_bytes=size_bytes, expired=expired)

    @classmethod
    def absent(cls) -> TileStatus:
        return cls(TileState.ABSENT)

    @classmethod
    def failed(cls, cause: str) -> TileStatus:
        return cls(TileState.LOOKUP_FAILED, error=cause)

    @property
    def exists(self) -> bool:
        return self.state is TileState.PRESENT

    @property
    def failed_lookup(self) -> bool:
        return self.state is TileState.LOOKUP_FAILED

    @property
    def stale(self) -> bool:
        """Absent or expired tiles need a render."""
        return self.state is TileState.ABSENT or (self.exists and self.expired)


@dataclass(frozen=True)
class RenderJob:
    """Request handed to the render queue."""

    map_name: str
    x: int
    y: int
    z: int

    @classmethod
    def at(cls, map_name: str, coord: TileCoordinate) -> RenderJob:
        return cls(map_name, coord.x, coord.y, coord.z)


def _max_index(zoom: int) -> int:
    return (1 << zoom) - 1


class SelectionCriteria(BaseModel):
    """Which tiles a run looks at and how it decides to render them.

    Built once at startup and never mutated. Spatial bounds use None for
    "not given"; they are only validated (and only used) in all-mode.
    """

    model_config = {'frozen': True, 'extra': 'ignore'}

    min_zoom: int = 0
    max_zoom: int = MAX_ZOOM
    min_x: int | None = None
    max_x: int | None = None
    min_y: int | None = None
    max_y: int | None = None
    force: bool = False
    only_existing: bool = False
    recurse: bool = False
    all_mode: bool = False
    map_name: str = XMLCONFIG_DEFAULT
    # 0 selects non-metatile mode, which the dispatcher does not implement
    metatile: int = METATILE

    @field_validator('min_zoom')
    @classmethod
    def validate_min_zoom(cls, v: int) -> int:
        v = int(v)
        if not (0 <= v <= MAX_ZOOM):
            msg = f'Invalid minimum zoom selected, must be between 0 and {MAX_ZOOM}'
            raise ValueError(msg)
        return v

    @field_validator('max_zoom')
    @classmethod
    def validate_max_zoom(cls, v: int) -> int:
        v = int(v)
        if not (0 <= v <= MAX_ZOOM):
            msg = f'Invalid maximum zoom selected, must be between 0 and {MAX_ZOOM}'
            raise ValueError(msg)
        return v

    @field_validator('metatile')
    @classmethod
    def validate_metatile(cls, v: int) -> int:
        v = int(v)
        if v < 0:
            msg = 'metatile must be >= 0'
            raise ValueError(msg)
        return v

    @model_validator(mode='after')
    def validate_ranges(self) -> SelectionCriteria:
        if self.max_zoom < self.min_zoom:
            msg = (
                'Invalid zoom range, max zoom must be greater or equal to '
                'minimum zoom'
            )
            raise ValueError(msg)
        if not self.all_mode:
            return self

        if self.has_bounds and self.min_zoom != self.max_zoom and not self.recurse:
            msg = (
                'min-zoom must be equal to max-zoom when using min-x, max-x, '
                'min-y, or max-y options'
            )
            raise ValueError(msg)

        given = [v for v in (self.min_x, self.max_x, self.min_y, self.max_y) if v is not None]
        if self.min_zoom == self.max_zoom or self.recurse:
            lz = _max_index(self.min_zoom)
            if any(v > lz for v in given):
                msg = f'Invalid range, x and y values must be <= {lz} (2^zoom-1)'
                raise ValueError(msg)
        if any(v < 0 for v in given):
            msg = 'Invalid range, x and y values must be >= 0'
            raise ValueError(msg)
        return self

    @property
    def has_bounds(self) -> bool:
        return any(
            v is not None for v in (self.min_x, self.max_x, self.min_y, self.max_y)
        )

    @property
    def mode(self) -> TraversalMode:
        if not self.all_mode:
            return TraversalMode.STREAM
        return TraversalMode.PYRAMID if self.recurse else TraversalMode.RANGE

    def zoom_in_range(self, zoom: int) -> bool:
        return self.min_zoom <= zoom <= self.max_zoom

    def bounds_for_zoom(self, zoom: int) -> tuple[int, int, int, int]:
        """Return (min_x, max_x, min_y, max_y) at ``zoom``.

        Unset bounds default to the full valid range [0, 2^zoom - 1].
        """
        lz = _max_index(zoom)
        return (
            0 if self.min_x is None else self.min_x,
            lz if self.max_x is None else self.max_x,
            0 if self.min_y is None else self.min_y,
            lz if self.max_y is None else self.max_y,
        )


class DispatchSettings(BaseModel):
    """Complete run configuration: selection plus the collaborators' setup."""

    model_config = {'frozen': True, 'extra': 'ignore'}

    selection: SelectionCriteria = SelectionCriteria()
    # Render service endpoint handed to every worker
    socket: str = RENDER_SOCKET
    # Tile storage location (directory, sqlite://PATH or null://)
    tile_dir: str = HASH_PATH
    num_threads: int = NUM_THREADS_DEFAULT
    # Hold submissions while the 1-minute load average is above this
    max_load: float = MAX_LOAD_OLD
    # Seconds a submission may wait for load or queue space; None waits forever
    submit_timeout: float | None = None
    verbose: bool = False

    @field_validator('num_threads')
    @classmethod
    def validate_num_threads(cls, v: int) -> int:
        v = int(v)
        if v <= 0:
            msg = 'Invalid number of threads, must be at least 1'
            raise ValueError(msg)
        return v

    @field_validator('max_load')
    @classmethod
    def validate_max_load(cls, v: float) -> float:
        v = float(v)
        if v < 0:
            msg = 'max-load must not be negative'
            raise ValueError(msg)
        return v

    @field_validator('submit_timeout')
    @classmethod
    def validate_submit_timeout(cls, v: float | None) -> float | None:
        if v is None:
            return None
        v = float(v)
        if v <= 0:
            msg = 'submit timeout must be positive'
            raise ValueError(msg)
        return v
