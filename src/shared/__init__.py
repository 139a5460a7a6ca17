"""Shared utilities and helpers."""
from shared.diagnostics import (
    log_comprehensive_diagnostics,
    log_system_load,
    log_thread_status,
)
from shared.progress import CallbackLineRenderer, SingleLineRenderer, ThrottledProgress

__all__ = [
    'CallbackLineRenderer',
    'SingleLineRenderer',
    'ThrottledProgress',
    'log_comprehensive_diagnostics',
    'log_system_load',
    'log_thread_status',
]
