"""Domain layer - run configuration, tile types and errors."""
from domain.errors import (
    ConfigurationError,
    DispatchError,
    QueueClosedError,
    RenderConnectionError,
    RenderError,
    StatusLookupError,
    StorageClosedError,
    StorageInitError,
    SubmissionTimeout,
)
from domain.models import (
    DispatchSettings,
    RenderJob,
    SelectionCriteria,
    TileCoordinate,
    TileState,
    TileStatus,
)
from domain.profiles import build_settings, load_profile, save_profile

__all__ = [
    'ConfigurationError',
    'DispatchError',
    'DispatchSettings',
    'QueueClosedError',
    'RenderConnectionError',
    'RenderError',
    'RenderJob',
    'SelectionCriteria',
    'StatusLookupError',
    'StorageClosedError',
    'StorageInitError',
    'SubmissionTimeout',
    'TileCoordinate',
    'TileState',
    'TileStatus',
    'build_settings',
    'load_profile',
    'save_profile',
]
