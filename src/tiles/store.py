"""Tile storage backends answering "does this metatile exist, is it current".

The dispatcher only reads from storage. SQLiteTileStore keeps one database
per zoom level (as the tile cache it grew out of did) and treats a tile as
expired when it was rendered before the last data import, recorded as the
modification time of a ``planet-import-complete`` marker file.
"""

from __future__ import annotations

import logging
import os
import sqlite3
import time
from pathlib import Path
from typing import Protocol

from domain.errors import StorageClosedError, StorageInitError
from domain.models import TileCoordinate, TileStatus
from shared.constants import (
    METATILE,
    PLANET_MARKER,
    STORAGE_NULL_SCHEME,
    STORAGE_SQLITE_SCHEME,
)

logger = logging.getLogger(__name__)


class StorageBackend(Protocol):
    """Capabilities the dispatcher needs from tile storage."""

    def status(self, map_name: str, x: int, y: int, z: int) -> TileStatus: ...

    def identifier_for(self, map_name: str, x: int, y: int, z: int) -> str: ...

    def close(self) -> None: ...


class NullTileStore:
    """Backend without storage: every tile is reported absent."""

    def __init__(self) -> None:
        self._closed = False

    def status(self, map_name: str, x: int, y: int, z: int) -> TileStatus:
        if self._closed:
            msg = 'status() called on a closed storage backend'
            raise StorageClosedError(msg)
        return TileStatus.absent()

    def identifier_for(self, map_name: str, x: int, y: int, z: int) -> str:
        return f'{STORAGE_NULL_SCHEME}{map_name}/{z}/{x}/{y}'

    def close(self) -> None:
        self._closed = True


class SQLiteTileStore:
    """SQLite-based metatile index with separate databases per zoom level.

    Usage:
        store = SQLiteTileStore('/var/cache/renderd/tiles')
        status = store.status('default', x=8, y=16, z=5)
        store.close()
    """

    def __init__(
        self,
        root: str | Path,
        *,
        metatile: int = METATILE,
        create: bool = False,
    ) -> None:
        """Open the store.

        Args:
            root: Directory holding the zoom databases.
            metatile: Metatile stride used to normalise lookups.
            create: Create ``root`` if missing instead of failing.
        """
        self.root = Path(root)
        if create:
            self.root.mkdir(parents=True, exist_ok=True)
        if not self.root.is_dir():
            msg = f'Tile directory does not exist: {self.root}'
            raise StorageInitError(msg)
        self.metatile = max(1, metatile)
        self._connections: dict[int, sqlite3.Connection] = {}
        self._closed = False
        self._planet_timestamp = self._read_planet_timestamp()
        logger.info('SQLiteTileStore opened at %s', self.root)

    def _get_db_path(self, zoom: int) -> Path:
        """Get database file path for a zoom level."""
        return self.root / f'zoom_{zoom}.db'

    def _get_connection(self, zoom: int) -> sqlite3.Connection:
        """Get or create a connection for the given zoom level."""
        if zoom not in self._connections:
            conn = sqlite3.connect(str(self._get_db_path(zoom)), check_same_thread=False)
            conn.execute('PRAGMA journal_mode=WAL')
            self._init_schema(conn)
            self._connections[zoom] = conn
        return self._connections[zoom]

    def _init_schema(self, conn: sqlite3.Connection) -> None:
        conn.executescript('''
            CREATE TABLE IF NOT EXISTS tiles (
                map TEXT NOT NULL,
                x INTEGER NOT NULL,
                y INTEGER NOT NULL,
                size_bytes INTEGER NOT NULL,
                rendered_at INTEGER NOT NULL,
                PRIMARY KEY (map, x, y)
            );
        ''')
        conn.commit()

    def _read_planet_timestamp(self) -> int:
        marker = self.root / PLANET_MARKER
        if not marker.exists():
            return 0
        return int(marker.stat().st_mtime)

    @property
    def planet_timestamp(self) -> int:
        return self._planet_timestamp

    def set_planet_timestamp(self, timestamp: int) -> None:
        """Record a data import at ``timestamp``; older tiles become expired."""
        marker = self.root / PLANET_MARKER
        marker.touch(exist_ok=True)
        os.utime(marker, (timestamp, timestamp))
        self._planet_timestamp = int(timestamp)

    def _check_open(self) -> None:
        if self._closed:
            msg = 'status() called on a closed storage backend'
            raise StorageClosedError(msg)

    def status(self, map_name: str, x: int, y: int, z: int) -> TileStatus:
        """Look up the metatile containing (x, y, z).

        Returns TileStatus.failed() instead of raising when SQLite errors,
        so callers never mistake a broken lookup for a missing tile.
        """
        self._check_open()
        origin = TileCoordinate(x, y, z).origin(self.metatile)
        if z not in self._connections and not self._get_db_path(z).exists():
            return TileStatus.absent()
        try:
            conn = self._get_connection(z)
            row = conn.execute(
                'SELECT size_bytes, rendered_at FROM tiles WHERE map = ? AND x = ? AND y = ?',
                (map_name, origin.x, origin.y),
            ).fetchone()
        except (sqlite3.Error, OverflowError) as e:
            logger.warning('Status lookup failed for z%d/%d/%d: %s', z, x, y, e)
            return TileStatus.failed(str(e))
        if row is None:
            return TileStatus.absent()
        size_bytes, rendered_at = row
        return TileStatus.present(
            size_bytes, expired=rendered_at < self._planet_timestamp
        )

    def identifier_for(self, map_name: str, x: int, y: int, z: int) -> str:
        origin = TileCoordinate(x, y, z).origin(self.metatile)
        return f'{self._get_db_path(z)}#{map_name}/{origin.x}/{origin.y}'

    def put(
        self,
        map_name: str,
        x: int,
        y: int,
        z: int,
        *,
        size_bytes: int,
        rendered_at: int | None = None,
    ) -> None:
        """Record a rendered metatile (used by seeding tools and tests)."""
        self._check_open()
        origin = TileCoordinate(x, y, z).origin(self.metatile)
        rendered_at = int(time.time()) if rendered_at is None else rendered_at
        conn = self._get_connection(z)
        conn.execute(
            '''INSERT OR REPLACE INTO tiles (map, x, y, size_bytes, rendered_at)
               VALUES (?, ?, ?, ?, ?)''',
            (map_name, origin.x, origin.y, size_bytes, rendered_at),
        )
        conn.commit()

    def close(self) -> None:
        """Close all database connections."""
        for conn in self._connections.values():
            conn.close()
        self._connections.clear()
        self._closed = True
        logger.info('SQLiteTileStore closed')

    def __enter__(self) -> SQLiteTileStore:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def init_storage_backend(location: str, *, metatile: int = METATILE) -> StorageBackend:
    """Open the backend named by ``location``.

    ``null://`` selects NullTileStore; ``sqlite://PATH`` or a bare directory
    path selects SQLiteTileStore.

    Raises:
        StorageInitError: The backend could not be opened.
    """
    if location.startswith(STORAGE_NULL_SCHEME):
        logger.info('Using null storage backend')
        return NullTileStore()
    path = location
    if location.startswith(STORAGE_SQLITE_SCHEME):
        path = location[len(STORAGE_SQLITE_SCHEME):]
    try:
        return SQLiteTileStore(path, metatile=metatile)
    except (OSError, sqlite3.Error) as e:
        msg = f'Failed to initialise storage backend {location}: {e}'
        raise StorageInitError(msg) from e
