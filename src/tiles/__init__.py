"""Tile storage and render queue.

This module provides:
- SQLiteTileStore: per-zoom SQLite index of rendered metatiles
- NullTileStore: storage that never has a tile
- RenderQueue: bounded queue drained by render worker threads
"""

from tiles.render_queue import RenderQueue, ZoomStats
from tiles.store import (
    NullTileStore,
    SQLiteTileStore,
    StorageBackend,
    init_storage_backend,
)

__all__ = [
    'NullTileStore',
    'RenderQueue',
    'SQLiteTileStore',
    'StorageBackend',
    'ZoomStats',
    'init_storage_backend',
]
