"""Exceptions raised by the dispatcher and its collaborators."""

from __future__ import annotations


class DispatchError(Exception):
    """Base class for all dispatcher errors."""


class ConfigurationError(DispatchError):
    """Run configuration is invalid; nothing has been submitted."""


class StorageInitError(DispatchError):
    """Tile storage backend could not be opened."""


class StorageClosedError(DispatchError):
    """A status lookup was attempted after the backend was closed."""


class StatusLookupError(DispatchError):
    """Tile status could not be determined; the run must not guess."""

    def __init__(self, identifier: str, cause: str | None = None) -> None:
        self.identifier = identifier
        self.cause = cause
        msg = f'Status lookup failed for {identifier}'
        if cause:
            msg = f'{msg}: {cause}'
        super().__init__(msg)


class QueueClosedError(DispatchError):
    """A job was submitted after the render queue began shutting down."""


class SubmissionTimeout(DispatchError):
    """Render queue did not admit the job before the deadline."""


class RenderError(DispatchError):
    """Render service rejected or failed a render request."""


class RenderConnectionError(RenderError):
    """Render service could not be reached; the request may be retried."""
