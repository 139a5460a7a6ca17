from __future__ import annotations

import asyncio
import logging
import ssl
from typing import TYPE_CHECKING, Protocol

import aiohttp
import certifi

from domain.errors import RenderConnectionError, RenderError
from shared.constants import (
    HTTP_OK_MAX,
    HTTP_OK_MIN,
    HTTP_TIMEOUT_DEFAULT,
    RENDER_PATH_TEMPLATE,
)

if TYPE_CHECKING:
    from domain.models import RenderJob

logger = logging.getLogger(__name__)

# Base URL used when talking HTTP over a unix domain socket
_UNIX_BASE_URL = 'http://localhost'


class RenderClient(Protocol):
    """One connection to the render service, owned by a single worker."""

    def render(self, job: RenderJob) -> None: ...

    def close(self) -> None: ...


def is_unix_socket(target: str) -> bool:
    return target.startswith('/') or target.startswith('unix:')


def make_http_session(target: str, timeout: float = HTTP_TIMEOUT_DEFAULT) -> aiohttp.ClientSession:
    """Create a session for ``target``; must be called inside a running loop."""
    client_timeout = aiohttp.ClientTimeout(total=timeout)
    if is_unix_socket(target):
        path = target.removeprefix('unix:')
        return aiohttp.ClientSession(
            connector=aiohttp.UnixConnector(path=path),
            timeout=client_timeout,
        )
    # TLS with certifi's CA bundle
    ssl_context = ssl.create_default_context(cafile=certifi.where())
    connector = aiohttp.TCPConnector(ssl=ssl_context, limit=1)
    return aiohttp.ClientSession(connector=connector, timeout=client_timeout)


def render_url(target: str, job: RenderJob) -> str:
    base = _UNIX_BASE_URL if is_unix_socket(target) else target.rstrip('/')
    path = RENDER_PATH_TEMPLATE.format(map=job.map_name, z=job.z, x=job.x, y=job.y)
    return base + path


class HttpRenderClient:
    """Blocking render trigger over HTTP, one event loop and session per client.

    Workers are plain threads, so each client drives its own private loop.
    """

    def __init__(self, target: str, *, timeout: float = HTTP_TIMEOUT_DEFAULT) -> None:
        self.target = target
        self.timeout = timeout
        self._loop = asyncio.new_event_loop()
        self._session: aiohttp.ClientSession | None = None

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = make_http_session(self.target, self.timeout)
        return self._session

    async def _render(self, job: RenderJob) -> None:
        url = render_url(self.target, job)
        session = await self._ensure_session()
        try:
            async with session.get(url) as resp:
                status = resp.status
                await resp.read()
        except (asyncio.TimeoutError, aiohttp.ClientConnectionError) as e:
            msg = f'Cannot reach render service at {self.target}: {e}'
            raise RenderConnectionError(msg) from e
        if not (HTTP_OK_MIN <= status < HTTP_OK_MAX):
            msg = f'Render of {job.map_name}/{job.z}/{job.x}/{job.y} failed (HTTP {status})'
            raise RenderError(msg)
        logger.debug('Rendered %s/%d/%d/%d', job.map_name, job.z, job.x, job.y)

    def render(self, job: RenderJob) -> None:
        self._loop.run_until_complete(self._render(job))

    def close(self) -> None:
        if self._loop.is_closed():
            return
        if self._session is not None and not self._session.closed:
            self._loop.run_until_complete(self._session.close())
        self._loop.close()


def make_render_client(target: str) -> RenderClient:
    """Client factory handed to the render queue (one call per worker)."""
    return HttpRenderClient(target)
