"""HTTP client infrastructure."""
from infrastructure.http.client import (
    HttpRenderClient,
    RenderClient,
    make_http_session,
    make_render_client,
    render_url,
)

__all__ = [
    'HttpRenderClient',
    'RenderClient',
    'make_http_session',
    'make_render_client',
    'render_url',
]
