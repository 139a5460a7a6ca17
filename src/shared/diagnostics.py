"""
Diagnostic utilities.

This module reports process and host resources around a dispatch run.
"""

import logging
import threading
from typing import Any

import psutil

from shared.constants import PSUTIL_AVAILABLE as _PSUTIL_AVAILABLE

logger = logging.getLogger(__name__)


def get_memory_info() -> dict[str, Any]:
    """Get process and system memory usage."""
    if not _PSUTIL_AVAILABLE:
        return {'error': 'psutil not available'}

    try:
        process = psutil.Process()
        memory_info = process.memory_info()
        system_memory = psutil.virtual_memory()

        return {
            'process_rss_mb': round(memory_info.rss / 1024 / 1024, 2),
            'system_available_mb': round(
                system_memory.available / 1024 / 1024,
                2,
            ),
            'system_used_percent': system_memory.percent,
        }
    except Exception as e:
        return {'error': f'Failed to get memory info: {e}'}


def get_thread_info() -> dict[str, Any]:
    """Get information about active threads."""
    try:
        info: dict[str, Any] = {
            'active_count': threading.active_count(),
            'thread_names': [t.name for t in threading.enumerate()],
            'render_workers': sum(
                1 for t in threading.enumerate() if t.name.startswith('render-worker')
            ),
        }

        if _PSUTIL_AVAILABLE:
            try:
                info['system_threads'] = psutil.Process().num_threads()
            except Exception as e:
                logger.debug('Failed to get system thread count: %s', e)
    except Exception as e:
        return {'error': f'Failed to get thread info: {e}'}
    else:
        return info


def get_system_load() -> dict[str, Any]:
    """Get load averages and CPU count."""
    if not _PSUTIL_AVAILABLE:
        return {'error': 'psutil not available'}

    try:
        load_1, load_5, load_15 = psutil.getloadavg()
        return {
            'cpu_count': psutil.cpu_count(),
            'load_avg_1min': round(load_1, 2),
            'load_avg_5min': round(load_5, 2),
            'load_avg_15min': round(load_15, 2),
        }
    except Exception as e:
        return {'error': f'Failed to get system load: {e}'}


def log_comprehensive_diagnostics(
    operation: str = 'general',
    level: int = logging.DEBUG,
) -> None:
    """Log memory, thread and load information in one block."""
    logger.log(level, '=== DIAGNOSTIC INFO: %s ===', operation.upper())

    memory_info = get_memory_info()
    logger.log(
        level,
        'Memory - RSS: %sMB, System Available: %sMB (%s%% used)',
        memory_info.get('process_rss_mb', 'N/A'),
        memory_info.get('system_available_mb', 'N/A'),
        memory_info.get('system_used_percent', 'N/A'),
    )

    thread_info = get_thread_info()
    logger.log(
        level,
        'Threads - Active: %s, Render workers: %s, System: %s',
        thread_info.get('active_count', 'N/A'),
        thread_info.get('render_workers', 'N/A'),
        thread_info.get('system_threads', 'N/A'),
    )

    load_info = get_system_load()
    logger.log(
        level,
        'System - CPUs: %s, Load avg: %s / %s / %s',
        load_info.get('cpu_count', 'N/A'),
        load_info.get('load_avg_1min', 'N/A'),
        load_info.get('load_avg_5min', 'N/A'),
        load_info.get('load_avg_15min', 'N/A'),
    )

    logger.log(level, '=== END DIAGNOSTIC INFO: %s ===', operation.upper())


def log_system_load(context: str = '') -> None:
    """Quick load average logging."""
    load_info = get_system_load()
    context_label = f' ({context})' if context else ''
    logger.info(
        'System load%s: 1min=%s, CPUs=%s',
        context_label,
        load_info.get('load_avg_1min', 'N/A'),
        load_info.get('cpu_count', 'N/A'),
    )


def log_thread_status(context: str = '') -> None:
    """Quick thread status logging."""
    thread_info = get_thread_info()
    context_label = f' ({context})' if context else ''
    logger.info(
        'Thread status%s: Active=%s, Render workers=%s',
        context_label,
        thread_info.get('active_count', 'N/A'),
        thread_info.get('render_workers', 'N/A'),
    )
